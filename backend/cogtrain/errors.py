"""Error kinds raised by the session store and aggregation services.

Every error carries the name of the operation that raised it so the HTTP
layer (and logs) can say where a failure originated.
"""


class SessionError(Exception):
    """Base class for session store / leaderboard failures."""

    status_code = 500

    def __init__(self, operation: str, message: str):
        super().__init__(message)
        self.operation = operation
        self.message = message

    def to_dict(self):
        return {'error': self.message, 'operation': self.operation}


class ValidationError(SessionError):
    """Caller input is missing required fields or is malformed."""

    status_code = 400


class AlreadyCompletedError(ValidationError):
    """The session already has a completion; scores are immutable after that."""

    status_code = 409


class NotFoundError(SessionError):
    status_code = 404


class PersistenceError(SessionError):
    """The database failed to complete a read or write."""

    status_code = 500

    def __init__(self, operation: str, details=None):
        super().__init__(operation, f"Database error during {operation}: {details}")

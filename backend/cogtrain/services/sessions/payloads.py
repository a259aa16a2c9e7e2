from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional
import uuid

from flask import current_app

from cogtrain.errors import ValidationError
from cogtrain.models import ScoreDetails

SCORE_FIELDS = ('color', 'shape', 'size', 'total')
COMPLETION_FIELDS = ('score', 'rule_changes', 'duration_seconds', 'completed_at')
# Upper bound of the Integer columns the counts are stored in
MAX_INT = 2**31 - 1


@dataclass(frozen=True)
class CompletionUpdate:
    score: ScoreDetails
    rule_changes: int
    duration_seconds: int
    completed_at: datetime


def parse_uuid(value: Any, operation: str, message: str = 'invalid ID') -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        raise ValidationError(operation, message)
    try:
        return uuid.UUID(value)
    except ValueError:
        raise ValidationError(operation, message) from None


def _non_negative_int(value: Any, field: str, operation: str) -> int:
    # bool is an int subclass; true/false are not counts
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(operation, f'{field} must be an integer')
    if value < 0:
        raise ValidationError(operation, f'{field} must be non-negative')
    if value > MAX_INT:
        raise ValidationError(operation, f'{field} must be <= {MAX_INT}')
    return value


def _parse_timestamp(value: Any, field: str, operation: str) -> datetime:
    if not isinstance(value, str) or not value:
        raise ValidationError(operation, f'{field} must be an ISO-8601 timestamp')
    text = value[:-1] + '+00:00' if value.endswith('Z') else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(operation, f'{field} must be an ISO-8601 timestamp') from None
    # Timestamps without an offset are taken as UTC
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_score(value: Any, operation: str) -> ScoreDetails:
    if not isinstance(value, dict):
        raise ValidationError(operation, 'score must be an object')
    missing = [f for f in SCORE_FIELDS if f not in value]
    if missing:
        raise ValidationError(operation, f"score is missing: {', '.join(missing)}")
    return ScoreDetails(**{f: _non_negative_int(value[f], f'score.{f}', operation) for f in SCORE_FIELDS})


def parse_completion(payload: Any, operation: str = 'complete_session') -> CompletionUpdate:
    """Validate a completion body. All four fields are mandatory."""
    if not isinstance(payload, dict):
        raise ValidationError(operation, 'request body must be a JSON object')
    missing = [f for f in COMPLETION_FIELDS if payload.get(f) is None]
    if missing:
        raise ValidationError(operation, f"missing required fields: {', '.join(missing)}")
    return CompletionUpdate(
        score=parse_score(payload['score'], operation),
        rule_changes=_non_negative_int(payload['rule_changes'], 'rule_changes', operation),
        duration_seconds=_non_negative_int(payload['duration_seconds'], 'duration_seconds', operation),
        completed_at=_parse_timestamp(payload['completed_at'], 'completed_at', operation),
    )


def resolve_limit(limit: Optional[Any], operation: str = 'get_leaderboard') -> int:
    """Apply the configured default and upper clamp to a leaderboard limit."""
    cfg = current_app.config
    if limit is None or limit == '':
        return int(cfg.get('LEADERBOARD_DEFAULT_LIMIT', 10))
    if isinstance(limit, bool):
        raise ValidationError(operation, 'limit must be a positive integer')
    if isinstance(limit, str):
        try:
            limit = int(limit.strip())
        except ValueError:
            raise ValidationError(operation, 'limit must be a positive integer') from None
    if not isinstance(limit, int) or limit < 1:
        raise ValidationError(operation, 'limit must be a positive integer')
    return min(limit, int(cfg.get('LEADERBOARD_MAX_LIMIT', 100)))

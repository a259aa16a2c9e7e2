import os
import sys
import uuid
from datetime import datetime, timedelta, timezone

import pytest

# Ensure the backend root (containing the `cogtrain` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from cogtrain import create_app, db


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    LEADERBOARD_DEFAULT_LIMIT = 10
    LEADERBOARD_MAX_LIMIT = 100
    CORS_ORIGINS = ['http://localhost:5173']


BASE_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import cogtrain.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def add_session(flask_app):
    """Insert a session row directly, with explicit timestamps."""
    from cogtrain.models import GameSession

    counter = {'n': 0}

    def _add(user_id, total=0, completed=True, created_at=None, completed_at=None,
             color=0, shape=0, size=0):
        counter['n'] += 1
        created = created_at or BASE_TIME + timedelta(minutes=counter['n'])
        session = GameSession(
            id=uuid.uuid4(),
            user_id=user_id,
            score_color=color,
            score_shape=shape,
            score_size=size,
            score_total=total,
            rule_changes=0,
            duration_seconds=60,
            created_at=created,
            completed_at=(completed_at or created + timedelta(seconds=60)) if completed else None,
        )
        db.session.add(session)
        db.session.commit()
        return session

    return _add


@pytest.fixture()
def completion():
    """Build a completion request body."""
    return completion_payload


def completion_payload(total=0, color=0, shape=0, size=0, rule_changes=0,
                       duration_seconds=0, completed_at='2026-01-01T12:05:00Z'):
    return {
        'score': {'color': color, 'shape': shape, 'size': size, 'total': total},
        'rule_changes': rule_changes,
        'duration_seconds': duration_seconds,
        'completed_at': completed_at,
    }

import uuid
from datetime import timedelta

import pytest
import sqlalchemy as sa

from cogtrain import db
from cogtrain.errors import PersistenceError, ValidationError
from cogtrain.models import User
from cogtrain.services.sessions import store
from cogtrain.services.sessions.leaderboard import get_leaderboard, get_user_stats

from conftest import BASE_TIME


def _user(email):
    user = User(email=email)
    user.set_password('password')
    db.session.add(user)
    db.session.commit()
    return user.id


def test_user_stats_mean_high_and_count(flask_app, add_session):
    user_id = uuid.uuid4()
    for total in (10, 20, 30):
        add_session(user_id, total=total)
    stats = get_user_stats(user_id)
    assert stats.average_score == 20.0
    assert stats.high_score.total == 30
    assert stats.total_games == 3


def test_incomplete_sessions_are_ignored(flask_app, add_session):
    user_id = uuid.uuid4()
    add_session(user_id, total=10)
    add_session(user_id, completed=False)
    stats = get_user_stats(user_id)
    assert stats.total_games == 1
    assert stats.average_score == 10.0


def test_user_with_only_incomplete_sessions_is_absent(flask_app, add_session):
    idle = uuid.uuid4()
    add_session(idle, completed=False)
    add_session(idle, completed=False)
    active = uuid.uuid4()
    add_session(active, total=5)

    assert get_user_stats(idle) is None
    assert [e.user_id for e in get_leaderboard()] == [active]


def test_user_stats_absent_for_unknown_user(flask_app):
    assert get_user_stats(str(uuid.uuid4())) is None


def test_user_stats_rejects_malformed_id(flask_app):
    with pytest.raises(ValidationError):
        get_user_stats('nope')


def test_create_complete_then_stats(flask_app, completion):
    user_id = uuid.uuid4()
    session = store.create_session(user_id)
    store.complete_session(session.id, completion(total=50, color=20, shape=20, size=10))
    stats = get_user_stats(user_id)
    assert stats.total_games == 1
    assert stats.average_score == 50.0
    assert stats.high_score.total == 50
    assert stats.high_score.color == 20


def test_leaderboard_limit_one_returns_best_average(flask_app, add_session):
    strong, weak = uuid.uuid4(), uuid.uuid4()
    for total in (70, 90):
        add_session(strong, total=total)
    for total in (60, 60):
        add_session(weak, total=total)

    board = get_leaderboard(limit=1)
    assert len(board) == 1
    assert board[0].user_id == strong
    assert board[0].average_score == 80.0


def test_leaderboard_sorted_by_average_and_bounded(flask_app, add_session):
    averages = [15, 40, 5, 25, 35]
    for avg in averages:
        user_id = uuid.uuid4()
        add_session(user_id, total=avg - 5)
        add_session(user_id, total=avg + 5)

    board = get_leaderboard(limit=3)
    assert len(board) == 3
    assert [e.average_score for e in board] == [40.0, 35.0, 25.0]

    full = get_leaderboard(limit=50)
    scores = [e.average_score for e in full]
    assert scores == sorted(scores, reverse=True)
    assert len(full) == len(averages)


def test_leaderboard_default_limit(flask_app, add_session):
    for i in range(12):
        add_session(uuid.uuid4(), total=i)
    assert len(get_leaderboard()) == 10


def test_leaderboard_limit_is_clamped(flask_app, add_session):
    flask_app.config['LEADERBOARD_MAX_LIMIT'] = 2
    for i in range(4):
        add_session(uuid.uuid4(), total=i)
    assert len(get_leaderboard(limit=50)) == 2


@pytest.mark.parametrize('bad', [0, -3, 'ten', True, 2.5])
def test_leaderboard_rejects_bad_limit(flask_app, bad):
    with pytest.raises(ValidationError):
        get_leaderboard(limit=bad)


def test_leaderboard_accepts_numeric_string_limit(flask_app, add_session):
    for i in range(3):
        add_session(uuid.uuid4(), total=i)
    assert len(get_leaderboard(limit='2')) == 2


def test_leaderboard_empty_without_completed_sessions(flask_app, add_session):
    add_session(uuid.uuid4(), completed=False)
    assert get_leaderboard() == []


def test_leaderboard_joins_email_and_tolerates_unknown_users(flask_app, add_session):
    known = _user('ada@example.com')
    stranger = uuid.uuid4()
    add_session(known, total=30)
    add_session(stranger, total=20)

    board = {e.user_id: e for e in get_leaderboard()}
    assert board[known].user_email == 'ada@example.com'
    assert board[stranger].user_email == ''


def test_high_score_tie_prefers_latest_completion(flask_app, add_session):
    user_id = uuid.uuid4()
    add_session(user_id, total=40, color=40, completed_at=BASE_TIME + timedelta(hours=1))
    add_session(user_id, total=40, shape=40, completed_at=BASE_TIME + timedelta(hours=3))
    add_session(user_id, total=10, completed_at=BASE_TIME + timedelta(hours=5))

    stats = get_user_stats(user_id)
    assert stats.high_score.total == 40
    assert stats.high_score.shape == 40


def test_high_score_only_from_completed_sessions(flask_app, add_session):
    user_id = uuid.uuid4()
    add_session(user_id, total=0, completed=True)
    add_session(user_id, total=0, completed=False)
    stats = get_user_stats(user_id)
    assert stats.total_games == 1
    assert stats.high_score.total == 0


def test_leaderboard_database_failure(flask_app):
    db.session.execute(sa.text('DROP TABLE game_session'))
    db.session.commit()
    with pytest.raises(PersistenceError) as err:
        get_leaderboard()
    assert err.value.operation == 'get_leaderboard'


def test_user_stats_database_failure(flask_app):
    db.session.execute(sa.text('DROP TABLE game_session'))
    db.session.commit()
    with pytest.raises(PersistenceError) as err:
        get_user_stats(uuid.uuid4())
    assert err.value.operation == 'get_user_stats'
    assert isinstance(err.value.__cause__, sa.exc.SQLAlchemyError)

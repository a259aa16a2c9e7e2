from typing import Any, List
import uuid

import sqlalchemy as sa
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from cogtrain import db
from cogtrain.errors import AlreadyCompletedError, NotFoundError, PersistenceError
from cogtrain.models import GameSession, utcnow
from .payloads import parse_completion, parse_uuid


def _fail(operation: str, exc: SQLAlchemyError) -> PersistenceError:
    db.session.rollback()
    current_app.logger.error(f"[{operation}] database error: {exc}")
    return PersistenceError(operation, exc)


def create_session(user_id: Any) -> GameSession:
    """Start a new session for `user_id` with an all-zero score.

    The user is not looked up; any well-formed id is accepted.
    """
    user_uuid = parse_uuid(user_id, 'create_session', 'invalid user ID')
    session = GameSession(
        id=uuid.uuid4(),
        user_id=user_uuid,
        score_color=0,
        score_shape=0,
        score_size=0,
        score_total=0,
        rule_changes=0,
        duration_seconds=0,
        created_at=utcnow(),
    )
    try:
        db.session.add(session)
        db.session.commit()
    except SQLAlchemyError as exc:
        raise _fail('create_session', exc) from exc
    current_app.logger.info(f"[session-create] session={session.id} user={user_uuid}")
    return session


def get_session(session_id: Any) -> GameSession:
    sid = parse_uuid(session_id, 'get_session', 'invalid session ID')
    try:
        session = db.session.get(GameSession, sid)
    except SQLAlchemyError as exc:
        raise _fail('get_session', exc) from exc
    if session is None:
        raise NotFoundError('get_session', 'session not found')
    return session


def complete_session(session_id: Any, payload: Any) -> None:
    """Write the final score, rule changes, duration and completion time.

    One conditional UPDATE; it only matches a session that has not been
    completed yet, so a finished session's score cannot be overwritten.
    """
    sid = parse_uuid(session_id, 'complete_session', 'invalid session ID')
    update = parse_completion(payload)
    stmt = (
        sa.update(GameSession)
        .where(GameSession.id == sid, GameSession.completed_at.is_(None))
        .values(
            score_color=update.score.color,
            score_shape=update.score.shape,
            score_size=update.score.size,
            score_total=update.score.total,
            rule_changes=update.rule_changes,
            duration_seconds=update.duration_seconds,
            completed_at=update.completed_at,
        )
    )
    try:
        updated = db.session.execute(stmt).rowcount
        db.session.commit()
    except SQLAlchemyError as exc:
        raise _fail('complete_session', exc) from exc

    if updated == 0:
        try:
            exists = db.session.get(GameSession, sid) is not None
        except SQLAlchemyError as exc:
            raise _fail('complete_session', exc) from exc
        if not exists:
            raise NotFoundError('complete_session', 'session not found')
        raise AlreadyCompletedError('complete_session', 'session already completed')

    current_app.logger.info(
        f"[session-complete] session={sid} total={update.score.total} "
        f"rule_changes={update.rule_changes} duration={update.duration_seconds}s"
    )


def list_user_sessions(user_id: Any) -> List[GameSession]:
    """All of a user's sessions, completed or not, newest first."""
    user_uuid = parse_uuid(user_id, 'list_user_sessions', 'invalid user ID')
    try:
        return (
            GameSession.query
            .filter_by(user_id=user_uuid)
            .order_by(GameSession.created_at.desc(), GameSession.id.desc())
            .all()
        )
    except SQLAlchemyError as exc:
        raise _fail('list_user_sessions', exc) from exc

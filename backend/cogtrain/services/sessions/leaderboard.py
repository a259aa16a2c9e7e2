"""Leaderboard and per-user statistics over completed sessions.

Nothing is cached: every call re-aggregates from the game_session table,
so a result can never drift from the sessions it was derived from.
"""
from typing import Any, Dict, List, Optional
import uuid

import sqlalchemy as sa
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from cogtrain import db
from cogtrain.errors import PersistenceError
from cogtrain.models import GameSession, LeaderboardEntry
from .identity import lookup_emails
from .payloads import parse_uuid, resolve_limit


def _aggregate_query():
    """One row per user with at least one completed session."""
    return (
        db.session.query(
            GameSession.user_id.label('user_id'),
            sa.func.count(GameSession.id).label('total_games'),
            sa.func.avg(GameSession.score_total).label('average_score'),
            sa.func.max(GameSession.score_total).label('max_total'),
        )
        .filter(GameSession.completed_at.isnot(None))
        .group_by(GameSession.user_id)
    )


def _high_score_sessions(rows) -> Dict[uuid.UUID, GameSession]:
    """Pick the session holding each user's best total.

    Sessions tied on the best total resolve to the most recently completed.
    """
    if not rows:
        return {}
    matches = sa.or_(*[
        sa.and_(GameSession.user_id == row.user_id, GameSession.score_total == row.max_total)
        for row in rows
    ])
    candidates = (
        GameSession.query
        .filter(GameSession.completed_at.isnot(None), matches)
        .order_by(GameSession.completed_at.desc(), GameSession.id.desc())
        .all()
    )
    best: Dict[uuid.UUID, GameSession] = {}
    for session in candidates:
        best.setdefault(session.user_id, session)
    return best


def _build_entries(rows) -> List[LeaderboardEntry]:
    high_scores = _high_score_sessions(rows)
    emails = lookup_emails(row.user_id for row in rows)
    return [
        LeaderboardEntry(
            user_id=row.user_id,
            user_email=emails.get(row.user_id, ''),
            high_score=high_scores[row.user_id].score,
            total_games=int(row.total_games),
            average_score=float(row.average_score),
        )
        for row in rows
    ]


def get_leaderboard(limit: Optional[Any] = None) -> List[LeaderboardEntry]:
    """Top players ranked by average total score, best first.

    Ties on the average go to the player with more completed games, then
    to the lower user id so the order is stable between calls.
    """
    limit = resolve_limit(limit)
    query = _aggregate_query()
    average = sa.func.avg(GameSession.score_total)
    try:
        rows = (
            query
            .order_by(average.desc(), sa.func.count(GameSession.id).desc(), GameSession.user_id)
            .limit(limit)
            .all()
        )
        entries = _build_entries(rows)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[get_leaderboard] database error: {exc}")
        raise PersistenceError('get_leaderboard', exc) from exc
    current_app.logger.info(f"[leaderboard] limit={limit} entries={len(entries)}")
    return entries


def get_user_stats(user_id: Any) -> Optional[LeaderboardEntry]:
    """Aggregate for one user, or None if they have no completed sessions."""
    user_uuid = parse_uuid(user_id, 'get_user_stats', 'invalid user ID')
    try:
        row = _aggregate_query().filter(GameSession.user_id == user_uuid).first()
        if row is None:
            return None
        return _build_entries([row])[0]
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f"[get_user_stats] database error: {exc}")
        raise PersistenceError('get_user_stats', exc) from exc

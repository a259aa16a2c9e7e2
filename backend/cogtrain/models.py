from cogtrain import db, bcrypt
from flask_login import UserMixin
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
import uuid


def utcnow():
    return datetime.now(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': str(self.id),
            'email': self.email,
        }


@dataclass(frozen=True)
class ScoreDetails:
    """Correct answers per rule type; `total` is the ranking metric."""
    color: int = 0
    shape: int = 0
    size: int = 0
    total: int = 0

    def to_dict(self):
        return {
            'color': self.color,
            'shape': self.shape,
            'size': self.size,
            'total': self.total,
        }


class GameSession(db.Model):
    __tablename__ = 'game_session'
    id = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    # No foreign key: sessions may reference users this service has never seen
    user_id = db.Column(db.Uuid, nullable=False, index=True)
    score_color = db.Column(db.Integer, nullable=False, default=0)
    score_shape = db.Column(db.Integer, nullable=False, default=0)
    score_size = db.Column(db.Integer, nullable=False, default=0)
    score_total = db.Column(db.Integer, nullable=False, default=0)
    rule_changes = db.Column(db.Integer, nullable=False, default=0)
    duration_seconds = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        db.Index('ix_game_session_user_created', 'user_id', 'created_at'),
    )

    @property
    def score(self) -> ScoreDetails:
        return ScoreDetails(
            color=self.score_color or 0,
            shape=self.score_shape or 0,
            size=self.score_size or 0,
            total=self.score_total or 0,
        )

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def to_dict(self):
        return {
            'id': str(self.id),
            'user_id': str(self.user_id),
            'score': self.score.to_dict(),
            'rule_changes': self.rule_changes or 0,
            'duration_seconds': self.duration_seconds or 0,
            'created_at': _isoformat(self.created_at),
            'completed_at': _isoformat(self.completed_at),
        }


@dataclass(frozen=True)
class LeaderboardEntry:
    """Per-user aggregate over completed sessions. Derived, never stored."""
    user_id: uuid.UUID
    user_email: str
    high_score: ScoreDetails
    total_games: int
    average_score: float

    def to_dict(self):
        return {
            'user_id': str(self.user_id),
            'user_email': self.user_email,
            'high_score': self.high_score.to_dict(),
            'total_games': self.total_games,
            'average_score': self.average_score,
        }

from datetime import datetime, timezone
from enum import Enum

import sqlalchemy as sa
from flask_login import UserMixin

from draughts_arena import db, bcrypt
from draughts_arena.engine import AIDifficulty, Board

# Reserved actor id for the built-in opponent. It never has a Player row.
AI_PLAYER_ID = -1


def utcnow():
    """Naive UTC timestamp, matching what the DATETIME columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SessionStatus(str, Enum):
    ONGOING = 'Ongoing'
    COMPLETED = 'Completed'
    ABANDONED = 'Abandoned'
    TIMED_OUT = 'Timed Out'

    @property
    def is_terminal(self):
        return self is not SessionStatus.ONGOING


class SessionKind(str, Enum):
    PVP = 'PvP'
    PVE = 'PvE'


def _enum_column(enum_cls, **kwargs):
    return db.Column(
        db.Enum(enum_cls, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        **kwargs,
    )


class BoardType(sa.types.TypeDecorator):
    """Stores a :class:`Board` as a versioned JSON snapshot.

    Values are validated against the snapshot schema in both directions, so a
    malformed document can neither be written nor silently loaded.
    """
    impl = sa.JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, Board):
            value = Board.from_snapshot(value)
        return value.to_snapshot()

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Board.from_snapshot(value)


class Player(UserMixin, db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(16), nullable=False, default='user')
    tokens = db.Column(db.Float, nullable=False, default=0.0)
    score = db.Column(db.Float, nullable=False, default=0.0)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == 'admin'

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'role': self.role,
            'tokens': round(self.tokens, 2),
            'score': self.score,
        }


class GameSession(db.Model):
    __tablename__ = 'game_session'
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    # A Player id, or AI_PLAYER_ID for PvE sessions
    opponent_id = db.Column(db.Integer, nullable=False, index=True)
    status = _enum_column(SessionStatus, nullable=False, default=SessionStatus.ONGOING, index=True)
    kind = _enum_column(SessionKind, nullable=False)
    ai_difficulty = _enum_column(AIDifficulty, nullable=False, default=AIDifficulty.ABSENT)
    initial_board = db.Column(BoardType, nullable=False)
    board = db.Column(BoardType, nullable=False)
    total_moves = db.Column(db.Integer, nullable=False, default=0)
    winner_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    ended_at = db.Column(db.DateTime, nullable=True)

    player = db.relationship('Player', foreign_keys=[player_id])
    moves = db.relationship('Move', back_populates='session', lazy='dynamic', order_by='Move.move_number')

    @property
    def participants(self):
        return (self.player_id, self.opponent_id)

    def is_participant(self, actor_id):
        return actor_id in self.participants

    def other_participant(self, actor_id):
        return self.opponent_id if actor_id == self.player_id else self.player_id

    @property
    def is_terminal(self):
        return SessionStatus(self.status).is_terminal

    def to_dict(self, include_board=True):
        data = {
            'id': self.id,
            'player_id': self.player_id,
            'opponent_id': self.opponent_id,
            'status': SessionStatus(self.status).value,
            'type': SessionKind(self.kind).value,
            'ai_difficulty': AIDifficulty(self.ai_difficulty).value,
            'total_moves': self.total_moves,
            'winner_id': self.winner_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'ended_at': self.ended_at.isoformat() if self.ended_at else None,
        }
        if include_board:
            data['board'] = self.board.to_snapshot()
        return data


class Move(db.Model):
    __tablename__ = 'move'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'move_number', name='uq_move_session_move_number'),
    )
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=False, index=True)
    move_number = db.Column(db.Integer, nullable=False)
    actor_id = db.Column(db.Integer, nullable=False)
    from_position = db.Column(db.String(2), nullable=False)
    to_position = db.Column(db.String(2), nullable=False)
    piece_type = db.Column(db.String(8), nullable=False, default='single')
    board = db.Column(BoardType, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    session = db.relationship('GameSession', back_populates='moves')

    def to_dict(self):
        return {
            'move_number': self.move_number,
            'actor_id': self.actor_id,
            'from_position': self.from_position,
            'to_position': self.to_position,
            'piece_type': self.piece_type,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

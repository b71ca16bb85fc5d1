from flask import current_app
from sqlalchemy import or_

from draughts_arena import db
from draughts_arena.engine import AIDifficulty, Board, InvalidBoard
from draughts_arena.errors import (
    InsufficientCredit,
    InvalidBoardSnapshot,
    InvalidDifficulty,
    InvalidParameters,
    MissingParameters,
    NotParticipant,
    OpponentAlreadyInGame,
    OpponentNotFound,
    PlayerAlreadyInGame,
    PlayerNotFound,
    SelfChallenge,
    SessionNotActive,
    SessionNotFound,
)
from draughts_arena.models import AI_PLAYER_ID, GameSession, Player, SessionKind, SessionStatus, utcnow
from .economy import apply_terminal_scores, try_debit_tokens
from .locks import SessionLocks, player_key, session_key


def load_session_for_update(session_id) -> GameSession:
    """Load a session row with a row lock, bypassing stale identity-map state."""
    session = (
        GameSession.query.filter_by(id=session_id)
        .populate_existing()
        .with_for_update()
        .first()
    )
    if session is None:
        raise SessionNotFound()
    return session


def finalize_session(session: GameSession, status: SessionStatus, winner_id, now, forfeiting_actor_id=None) -> None:
    """Move an Ongoing session to a terminal status and apply score effects."""
    if session.is_terminal:
        raise SessionNotActive()
    session.status = status
    session.ended_at = now
    session.winner_id = winner_id
    db.session.flush()
    apply_terminal_scores(session, forfeiting_actor_id=forfeiting_actor_id)
    current_app.logger.info(
        f"[finish] session={session.id} status={status.value} winner={winner_id} moves={session.total_moves}"
    )


class SessionLifecycle:
    """Creates and abandons game sessions."""

    def __init__(self, locks: SessionLocks, creation_cost: float = 0.35, clock=utcnow):
        self.locks = locks
        self.creation_cost = creation_cost
        self.clock = clock

    @staticmethod
    def _in_ongoing_session(player_id) -> bool:
        return GameSession.query.filter(
            GameSession.status == SessionStatus.ONGOING,
            or_(GameSession.player_id == player_id, GameSession.opponent_id == player_id),
        ).first() is not None

    @staticmethod
    def _coerce_board(initial_board) -> Board:
        if initial_board is None:
            return Board.initial()
        if isinstance(initial_board, Board):
            return initial_board
        try:
            return Board.from_snapshot(initial_board)
        except InvalidBoard as exc:
            raise InvalidBoardSnapshot(details=str(exc))

    def create_session(self, initiator_id, opponent_email=None, ai_difficulty=None, initial_board=None) -> GameSession:
        """Create an Ongoing session against another player or the AI.

        Exactly one of ``opponent_email`` / ``ai_difficulty`` must be given.
        The initiator pays the creation cost; the check and the debit are a
        single conditional UPDATE.
        """
        if not opponent_email and not ai_difficulty:
            raise MissingParameters()
        if opponent_email and ai_difficulty:
            raise InvalidParameters()

        initiator = db.session.get(Player, initiator_id)
        if initiator is None:
            raise PlayerNotFound()

        if opponent_email:
            opponent = Player.query.filter_by(email=opponent_email.strip().lower()).first()
            if not opponent:
                raise OpponentNotFound()
            if opponent.id == initiator.id:
                raise SelfChallenge()
            kind, opponent_id, difficulty = SessionKind.PVP, opponent.id, AIDifficulty.ABSENT
        else:
            difficulty = AIDifficulty.parse(ai_difficulty)
            if difficulty is None or difficulty is AIDifficulty.ABSENT:
                raise InvalidDifficulty()
            kind, opponent_id = SessionKind.PVE, AI_PLAYER_ID

        board = self._coerce_board(initial_board)
        keys = [player_key(initiator.id)]
        if kind is SessionKind.PVP:
            keys.append(player_key(opponent_id))

        with self.locks.hold(*keys):
            try:
                if self._in_ongoing_session(initiator.id):
                    raise PlayerAlreadyInGame()
                if kind is SessionKind.PVP and self._in_ongoing_session(opponent_id):
                    raise OpponentAlreadyInGame()
                if not try_debit_tokens(initiator.id, self.creation_cost):
                    raise InsufficientCredit()
                session = GameSession(
                    player_id=initiator.id,
                    opponent_id=opponent_id,
                    status=SessionStatus.ONGOING,
                    kind=kind,
                    ai_difficulty=difficulty,
                    initial_board=board,
                    board=board,
                    total_moves=0,
                    created_at=self.clock(),
                )
                db.session.add(session)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise

        current_app.logger.info(
            f"[create] session={session.id} kind={kind.value} player={initiator.id} opponent={opponent_id} difficulty={difficulty.value}"
        )
        return session

    def abandon_session(self, session_id, actor_id) -> GameSession:
        """Abandon an Ongoing session: the other participant wins."""
        with self.locks.hold(session_key(session_id)):
            try:
                session = load_session_for_update(session_id)
                if not session.is_participant(actor_id):
                    raise NotParticipant()
                if session.is_terminal:
                    raise SessionNotActive()
                finalize_session(
                    session,
                    SessionStatus.ABANDONED,
                    session.other_participant(actor_id),
                    self.clock(),
                    forfeiting_actor_id=actor_id,
                )
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
        current_app.logger.info(f"[abandon] session={session_id} actor={actor_id}")
        return session

"""Move execution pipeline.

``TurnOrchestrator.execute_move`` is the only writer of the move ledger. It
runs under the per-session lock and inside one database transaction:

    load session -> participant / turn checks -> debit -> resolve squares
    -> legality -> timeout -> repetition -> apply -> terminal check
    -> (PvE) AI reply through the same steps

A rejected request rolls the whole transaction back. Rejections raised after
the debit are still charged: the debit is re-issued and committed on its own.
A timeout commits the forfeit together with that debit before raising.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from flask import current_app

from draughts_arena import db
from draughts_arena.engine import (
    AIDifficulty,
    AIOpponent,
    Board,
    EngineMove,
    GameOutcome,
    MalformedSquare,
    RulesEngine,
    UnplayableSquare,
    index_to_square,
    square_to_index,
)
from draughts_arena.engine.notation import normalize_square
from draughts_arena.engine.rules import winning_side
from draughts_arena.errors import (
    GameError,
    IllegalMove,
    InvalidPosition,
    NotActorsTurn,
    NotParticipant,
    SessionNotActive,
    TimeoutForfeit,
)
from draughts_arena.models import AI_PLAYER_ID, GameSession, SessionKind, SessionStatus, utcnow
from .economy import debit_tokens
from .ledger import MoveLedger
from .lifecycle import finalize_session, load_session_for_update
from .locks import SessionLocks, session_key


@dataclass
class PlayedMove:
    actor_id: int
    move_number: int
    from_position: str
    to_position: str
    piece_type: str

    def describe(self, viewer_id) -> str:
        if self.actor_id == viewer_id:
            who = 'You'
        elif self.actor_id == AI_PLAYER_ID:
            who = 'AI'
        else:
            who = 'Your opponent'
        return f"{who} moved a {self.piece_type} from {self.from_position} to {self.to_position}."

    def to_dict(self):
        return {
            'move_number': self.move_number,
            'actor_id': self.actor_id,
            'from_position': self.from_position,
            'to_position': self.to_position,
            'piece_type': self.piece_type,
        }


def outcome_message(winner_id, viewer_id) -> str:
    if winner_id is None:
        return 'The game ended in a draw!'
    if winner_id == viewer_id:
        return 'You have won!'
    if winner_id == AI_PLAYER_ID:
        return 'The AI has won!'
    return 'Your opponent has won!'


@dataclass
class MoveResult:
    session_id: int
    actor_id: int
    board: Board
    status: SessionStatus
    moves: List[PlayedMove] = field(default_factory=list)
    winner_id: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def message(self) -> str:
        if self.is_terminal:
            return outcome_message(self.winner_id, self.actor_id)
        return 'Move successfully executed'

    @property
    def move_description(self) -> str:
        description = ' '.join(move.describe(self.actor_id) for move in self.moves)
        if self.is_terminal:
            return f"{description} The game has ended: {self.message}".strip()
        return description

    def to_dict(self):
        return {
            'message': self.message,
            'session_id': self.session_id,
            'board': self.board.to_snapshot(),
            'move_description': self.move_description,
            'moves': [move.to_dict() for move in self.moves],
            'status': self.status.value,
            'winner_id': self.winner_id,
        }


class TurnOrchestrator:

    def __init__(self, rules: RulesEngine, ai: AIOpponent, locks: SessionLocks,
                 move_cost: float = 0.02, timeout_sec: float = 60, clock=utcnow):
        self.rules = rules
        self.ai = ai
        self.locks = locks
        self.move_cost = move_cost
        self.timeout_sec = timeout_sec
        self.clock = clock

    def execute_move(self, session_id, origin, destination, actor_id) -> MoveResult:
        """Validate and execute one move request end to end.

        Raises a GameError subclass for every rejected request; see the module
        docstring for what is persisted in each case.
        """
        charges = []
        with self.locks.hold(session_key(session_id)):
            try:
                result = self._execute_move(session_id, origin, destination, actor_id, charges)
                db.session.commit()
            except GameError:
                db.session.rollback()
                if charges:
                    self._settle_charges(charges)
                    db.session.commit()
                raise
            except Exception:
                db.session.rollback()
                raise
        return result

    def _settle_charges(self, charges):
        # re-issue the debits of a rejected attempt after its rollback
        for payer_id, amount in charges:
            debit_tokens(payer_id, amount)
            current_app.logger.info(f"[charge] player={payer_id} amount={amount:g} (rejected move)")
        charges.clear()

    def _debit(self, charges, payer_id):
        debit_tokens(payer_id, self.move_cost)
        charges.append((payer_id, self.move_cost))

    def _execute_move(self, session_id, origin, destination, actor_id, charges) -> MoveResult:
        now = self.clock()
        session = load_session_for_update(session_id)
        if session.is_terminal:
            raise SessionNotActive()
        if not session.is_participant(actor_id):
            raise NotParticipant()

        ledger = MoveLedger(session.id)
        last = ledger.last()
        if last is not None and last.actor_id == actor_id:
            raise NotActorsTurn()

        self._debit(charges, actor_id)
        from_position, to_position, move = self._resolve(session.board, origin, destination)
        played = [self._play(session, ledger, actor_id, from_position, to_position, move, now, charges)]
        if not session.is_terminal and SessionKind(session.kind) is SessionKind.PVE:
            reply = self._ai_reply(session, ledger, actor_id, now, charges)
            if reply is not None:
                played.append(reply)

        return MoveResult(
            session_id=session.id,
            actor_id=actor_id,
            board=session.board,
            status=SessionStatus(session.status),
            moves=played,
            winner_id=session.winner_id,
        )

    def _resolve(self, board: Board, origin, destination):
        try:
            from_position = normalize_square(origin)
            to_position = normalize_square(destination)
        except MalformedSquare:
            raise InvalidPosition()
        try:
            start, end = square_to_index(from_position), square_to_index(to_position)
        except UnplayableSquare as exc:
            raise IllegalMove(str(exc))
        for move in self.rules.legal_moves(board):
            if (move.origin, move.destination) == (start, end):
                return from_position, to_position, move
        raise IllegalMove()

    def _expired(self, entry, now) -> bool:
        return (now - entry.created_at).total_seconds() > self.timeout_sec

    def _play(self, session: GameSession, ledger: MoveLedger, actor_id, from_position, to_position,
              move: EngineMove, now, charges) -> PlayedMove:
        previous = ledger.last_by(actor_id)
        if previous is not None and actor_id != AI_PLAYER_ID and self._expired(previous, now):
            self._forfeit_on_timeout(session.id, actor_id, now, charges)
        if previous is not None and (previous.from_position, previous.to_position) == (from_position, to_position):
            raise IllegalMove('You cannot repeat your previous move.')

        piece_type = 'king' if session.board.is_king(move.origin) else 'single'
        board = self.rules.apply(session.board, move)
        entry = ledger.append(actor_id, from_position, to_position, piece_type, board, now)
        session.board = board
        session.total_moves = entry.move_number
        current_app.logger.info(
            f"[move] session={session.id} actor={actor_id} #{entry.move_number} {from_position}->{to_position}"
        )

        outcome = self.rules.status(board)
        if outcome is not GameOutcome.IN_PROGRESS:
            finalize_session(session, SessionStatus.COMPLETED, self._winner_for(session, ledger, outcome), now)
        return PlayedMove(actor_id, entry.move_number, from_position, to_position, piece_type)

    def _winner_for(self, session: GameSession, ledger: MoveLedger, outcome: GameOutcome):
        side = winning_side(outcome)
        if side is None:
            return None
        # whoever made move #1 plays the side that was to move on the initial board
        first_actor = ledger.first().actor_id
        if side is session.initial_board.turn:
            return first_actor
        return session.other_participant(first_actor)

    def _forfeit_on_timeout(self, session_id, actor_id, now, charges):
        db.session.rollback()
        self._settle_charges(charges)
        session = load_session_for_update(session_id)
        winner_id = session.other_participant(actor_id)
        finalize_session(session, SessionStatus.TIMED_OUT, winner_id, now, forfeiting_actor_id=actor_id)
        db.session.commit()
        current_app.logger.info(f"[timeout] session={session_id} actor={actor_id} winner={winner_id}")
        raise TimeoutForfeit(
            f"The game has ended due to a timeout after {self.timeout_sec:g} seconds.",
            session_id=session_id,
            status=SessionStatus.TIMED_OUT.value,
            winner_id=winner_id,
        )

    def _ai_reply(self, session: GameSession, ledger: MoveLedger, payer_id, now, charges) -> Optional[PlayedMove]:
        board = session.board
        move = self.ai.choose_move(board, AIDifficulty(session.ai_difficulty))
        previous = ledger.last_by(AI_PLAYER_ID)
        if move is not None and previous is not None:
            proposed = (index_to_square(move.origin), index_to_square(move.destination))
            if proposed == (previous.from_position, previous.to_position):
                alternatives = [
                    m for m in self.rules.legal_moves(board)
                    if (m.origin, m.destination) != (move.origin, move.destination)
                ]
                move = alternatives[0] if alternatives else None

        if move is None:
            # the AI cannot reply: it loses instead of passing its turn
            finalize_session(session, SessionStatus.COMPLETED, session.other_participant(AI_PLAYER_ID), now)
            current_app.logger.info(f"[ai-resign] session={session.id}")
            return None
        # the requesting human pays for the AI's reply
        self._debit(charges, payer_id)
        return self._play(
            session, ledger, AI_PLAYER_ID, index_to_square(move.origin), index_to_square(move.destination),
            move, now, charges,
        )

    def expire_if_stalled(self, session_id, now=None) -> bool:
        """Finalize an Ongoing session whose side to move has been idle too long.

        Only forfeits a player the lazy request-path check would also forfeit:
        one with a previous move, waiting longer than the threshold since the
        last ledger entry. Returns True when the session was finalized.
        """
        now = now or self.clock()
        with self.locks.hold(session_key(session_id)):
            try:
                session = load_session_for_update(session_id)
                if session.is_terminal:
                    return False
                ledger = MoveLedger(session.id)
                last = ledger.last()
                if last is None:
                    return False
                stalled = session.other_participant(last.actor_id)
                if stalled == AI_PLAYER_ID or ledger.last_by(stalled) is None or not self._expired(last, now):
                    return False
                finalize_session(session, SessionStatus.TIMED_OUT, last.actor_id, now, forfeiting_actor_id=stalled)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
        current_app.logger.info(f"[timeout] session={session_id} actor={stalled} winner={last.actor_id} (sweep)")
        return True

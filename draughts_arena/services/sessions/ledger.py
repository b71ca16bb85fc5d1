"""Append-only move ledger of a game session.

The ledger is the source of truth for turn order and timeouts: whose turn it
is follows from the last entry, and a player's idle time from their own last
entry. Entries are never updated or deleted.
"""

from typing import List, Optional

from draughts_arena import db
from draughts_arena.engine import Board, RulesEngine, square_to_index
from draughts_arena.models import Move


class MoveLedger:

    def __init__(self, session_id: int):
        self.session_id = session_id

    def _query(self):
        return Move.query.filter_by(session_id=self.session_id)

    def entries(self) -> List[Move]:
        return self._query().order_by(Move.move_number.asc()).all()

    def __len__(self) -> int:
        return self._query().count()

    def last(self) -> Optional[Move]:
        return self._query().order_by(Move.move_number.desc()).first()

    def first(self) -> Optional[Move]:
        return self._query().order_by(Move.move_number.asc()).first()

    def last_by(self, actor_id: int) -> Optional[Move]:
        return (
            self._query()
            .filter(Move.actor_id == actor_id)
            .order_by(Move.move_number.desc())
            .first()
        )

    def append(self, actor_id, from_position, to_position, piece_type, board: Board, timestamp) -> Move:
        last = self.last()
        entry = Move(
            session_id=self.session_id,
            move_number=(last.move_number if last else 0) + 1,
            actor_id=actor_id,
            from_position=from_position,
            to_position=to_position,
            piece_type=piece_type,
            board=board,
            created_at=timestamp,
        )
        db.session.add(entry)
        db.session.flush()
        return entry


def replay(rules: RulesEngine, initial_board: Board, moves) -> Board:
    """Re-apply ledger entries to ``initial_board`` and return the final board."""
    board = initial_board
    for entry in moves:
        origin = square_to_index(entry.from_position)
        destination = square_to_index(entry.to_position)
        candidates = [m for m in rules.legal_moves(board) if (m.origin, m.destination) == (origin, destination)]
        if not candidates:
            raise ValueError(
                f"Move #{entry.move_number} {entry.from_position}-{entry.to_position} is not legal on replay"
            )
        board = rules.apply(board, candidates[0])
    return board


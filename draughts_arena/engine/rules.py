"""Rules oracle contract and the default English draughts implementation.

The orchestrator only relies on the :class:`RulesEngine` protocol. Boards are
immutable, so one oracle instance can be shared by every request.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Protocol, Tuple

from .board import EMPTY, Board, Side
from .notation import coords, index_at


class GameOutcome(str, Enum):
    IN_PROGRESS = 'in_progress'
    SIDE1_WON = 'side1_won'  # dark
    SIDE2_WON = 'side2_won'  # light
    DRAW = 'draw'


class RulesPreconditionError(RuntimeError):
    """A move that was not produced by ``legal_moves`` was applied."""


@dataclass(frozen=True)
class EngineMove:
    origin: int
    destination: int
    captures: Tuple[int, ...] = ()
    path: Tuple[int, ...] = ()

    @property
    def is_capture(self) -> bool:
        return bool(self.captures)


class RulesEngine(Protocol):
    def legal_moves(self, board: Board) -> List[EngineMove]: ...

    def apply(self, board: Board, move: EngineMove) -> Board: ...

    def status(self, board: Board) -> GameOutcome: ...


def _step(index: int, drow: int, dcol: int):
    row, col = coords(index)
    return index_at(row + drow, col + dcol)


def _forward(side: Side) -> int:
    return 1 if side is Side.DARK else -1


def _crowning_row(side: Side) -> int:
    return 7 if side is Side.DARK else 0


class EnglishDraughts:
    """8x8 English draughts: mandatory capture, short kings, men crown and stop."""

    QUIET_PLY_LIMIT = 80

    def _directions(self, board: Board, index: int):
        side = board.owner(index)
        if board.is_king(index):
            return [(-1, -1), (-1, 1), (1, -1), (1, 1)]
        forward = _forward(side)
        return [(forward, -1), (forward, 1)]

    def _jumps_from(self, board: Board, origin: int) -> List[EngineMove]:
        side = board.owner(origin)
        king = board.is_king(origin)
        directions = self._directions(board, origin)
        squares = list(board.squares)
        squares[origin] = EMPTY
        found: List[EngineMove] = []

        def walk(position, path, captured):
            extended = False
            crowned = not king and coords(position)[0] == _crowning_row(side)
            if not (path and crowned):
                for drow, dcol in directions:
                    over = _step(position, drow, dcol)
                    land = _step(position, 2 * drow, 2 * dcol)
                    if over is None or land is None or over in captured:
                        continue
                    if squares[land] != EMPTY or board.owner(over) is not side.opponent:
                        continue
                    extended = True
                    walk(land, path + (land,), captured + (over,))
            if path and not extended:
                found.append(EngineMove(origin, position, captured, path))

        walk(origin, (), ())
        return found

    def _steps_from(self, board: Board, origin: int) -> List[EngineMove]:
        moves = []
        for drow, dcol in self._directions(board, origin):
            target = _step(origin, drow, dcol)
            if target is not None and board.piece_at(target) == EMPTY:
                moves.append(EngineMove(origin, target, (), (target,)))
        return moves

    def legal_moves(self, board: Board) -> List[EngineMove]:
        own = [i for i in range(32) if board.owner(i) is board.turn]
        jumps = [move for i in own for move in self._jumps_from(board, i)]
        if jumps:
            return jumps
        return [move for i in own for move in self._steps_from(board, i)]

    def _play(self, board: Board, move: EngineMove) -> Board:
        squares = list(board.squares)
        piece = squares[move.origin]
        squares[move.origin] = EMPTY
        for captured in move.captures:
            squares[captured] = EMPTY
        if piece.islower() and coords(move.destination)[0] == _crowning_row(board.turn):
            piece = piece.upper()
        squares[move.destination] = piece
        progress = move.is_capture or board.piece_at(move.origin).islower()
        return Board(
            squares=''.join(squares),
            turn=board.turn.opponent,
            quiet_plies=0 if progress else board.quiet_plies + 1,
        )

    def apply(self, board: Board, move: EngineMove) -> Board:
        if move not in self.legal_moves(board):
            raise RulesPreconditionError(f"{move} is not legal in this position")
        return self._play(board, move)

    def status(self, board: Board) -> GameOutcome:
        if board.quiet_plies >= self.QUIET_PLY_LIMIT:
            return GameOutcome.DRAW
        if self.legal_moves(board):
            return GameOutcome.IN_PROGRESS
        # side to move is blocked or has no pieces left
        return GameOutcome.SIDE2_WON if board.turn is Side.DARK else GameOutcome.SIDE1_WON


def winning_side(outcome: GameOutcome):
    if outcome is GameOutcome.SIDE1_WON:
        return Side.DARK
    if outcome is GameOutcome.SIDE2_WON:
        return Side.LIGHT
    return None

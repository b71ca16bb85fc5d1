"""Built-in opponent for PvE sessions."""

from __future__ import annotations

import random
from enum import Enum
from typing import Optional

from .board import Board, Side
from .notation import coords
from .rules import EngineMove, GameOutcome, RulesEngine, winning_side

MAN_VALUE = 100
KING_VALUE = 160
WIN_SCORE = 100_000


class AIDifficulty(str, Enum):
    ABSENT = 'Absent'
    EASY = 'Easy'
    HARD = 'Hard'

    @classmethod
    def parse(cls, value):
        """Case-insensitive lookup by value. Returns None for unknown names."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if isinstance(value, str) and member.value.lower() == value.strip().lower():
                return member
        return None


class AIOpponent:
    """Chooses moves through the rules oracle.

    Easy picks a uniformly random legal move. Hard runs a fixed-depth
    negamax search with alpha-beta pruning and a material evaluation; the
    depth bound keeps it fast enough to run inside a request.
    """

    def __init__(self, rules: RulesEngine, rng: Optional[random.Random] = None, search_depth: int = 4):
        self.rules = rules
        self.rng = rng or random.Random()
        self.search_depth = max(1, int(search_depth))

    def choose_move(self, board: Board, difficulty: AIDifficulty) -> Optional[EngineMove]:
        if difficulty is AIDifficulty.ABSENT:
            return None
        moves = self.rules.legal_moves(board)
        if not moves:
            return None
        if difficulty is AIDifficulty.EASY:
            return self.rng.choice(moves)
        return self._search(board, moves)

    def _search(self, board: Board, moves) -> EngineMove:
        best_move = moves[0]
        alpha, beta = -WIN_SCORE * 2, WIN_SCORE * 2
        for move in moves:
            score = -self._negamax(self.rules.apply(board, move), self.search_depth - 1, -beta, -alpha)
            if score > alpha:
                alpha = score
                best_move = move
        return best_move

    def _negamax(self, board: Board, depth: int, alpha: int, beta: int) -> int:
        outcome = self.rules.status(board)
        if outcome is GameOutcome.DRAW:
            return 0
        if outcome is not GameOutcome.IN_PROGRESS:
            # prefer quicker wins and slower losses
            score = WIN_SCORE + depth
            return score if winning_side(outcome) is board.turn else -score
        if depth <= 0:
            return self.evaluate(board)
        for move in self.rules.legal_moves(board):
            score = -self._negamax(self.rules.apply(board, move), depth - 1, -beta, -alpha)
            if score >= beta:
                return beta
            if score > alpha:
                alpha = score
        return alpha

    def evaluate(self, board: Board) -> int:
        """Material plus a small advancement bonus, from the side to move."""
        total = 0
        for index in range(32):
            side = board.owner(index)
            if side is None:
                continue
            if board.is_king(index):
                value = KING_VALUE
            else:
                row = coords(index)[0]
                value = MAN_VALUE + 2 * (row if side is Side.DARK else 7 - row)
            total += value if side is board.turn else -value
        return total

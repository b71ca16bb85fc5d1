"""English draughts engine: board values, coordinate notation, rules and AI.

Everything in this package is pure and free of Flask/SQLAlchemy imports so it
can be shared by concurrent requests without coordination.
"""

from .board import Board, InvalidBoard, Side
from .rules import EngineMove, EnglishDraughts, GameOutcome, RulesEngine, RulesPreconditionError
from .ai import AIDifficulty, AIOpponent
from .notation import MalformedSquare, UnplayableSquare, index_to_square, square_to_index

__all__ = [
    'AIDifficulty',
    'AIOpponent',
    'Board',
    'EngineMove',
    'EnglishDraughts',
    'GameOutcome',
    'InvalidBoard',
    'MalformedSquare',
    'RulesEngine',
    'RulesPreconditionError',
    'Side',
    'UnplayableSquare',
    'index_to_square',
    'square_to_index',
]

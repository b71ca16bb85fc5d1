"""Board value type and its persisted snapshot schema.

The 32 playable squares are stored as a string of one character each:

    '.'  empty
    'd'  dark man      'D'  dark king
    'l'  light man     'L'  light king

Index 0 is the playable square on the top-left of the top row (rank 8),
index 31 the one on the bottom-right of the bottom row (rank 1). Dark starts
on the top three rows and moves first.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError

SQUARE_COUNT = 32
BOARD_VERSION = 1
EMPTY = '.'


class Side(str, Enum):
    DARK = 'dark'
    LIGHT = 'light'

    @property
    def opponent(self) -> 'Side':
        return Side.LIGHT if self is Side.DARK else Side.DARK

    @property
    def man(self) -> str:
        return 'd' if self is Side.DARK else 'l'

    @property
    def king(self) -> str:
        return self.man.upper()


class InvalidBoard(ValueError):
    """Raised when a board snapshot does not match the schema."""


class BoardSnapshot(BaseModel):
    """Version 1 of the persisted board document."""
    version: Literal[1] = BOARD_VERSION
    variant: Literal['english'] = 'english'
    turn: Side
    squares: str = Field(..., pattern=r'^[.dDlL]{32}$')
    quiet_plies: int = Field(0, ge=0)


@dataclass(frozen=True)
class Board:
    squares: str
    turn: Side = Side.DARK
    quiet_plies: int = 0

    @classmethod
    def initial(cls) -> 'Board':
        return cls(squares='d' * 12 + EMPTY * 8 + 'l' * 12, turn=Side.DARK)

    @classmethod
    def from_snapshot(cls, data) -> 'Board':
        try:
            snapshot = BoardSnapshot.model_validate(data)
        except ValidationError as exc:
            raise InvalidBoard(str(exc)) from exc
        return cls(squares=snapshot.squares, turn=snapshot.turn, quiet_plies=snapshot.quiet_plies)

    def to_snapshot(self) -> dict:
        return BoardSnapshot(
            turn=self.turn, squares=self.squares, quiet_plies=self.quiet_plies
        ).model_dump(mode='json')

    def piece_at(self, index: int) -> str:
        return self.squares[index]

    def owner(self, index: int) -> Optional[Side]:
        piece = self.squares[index]
        if piece == EMPTY:
            return None
        return Side.DARK if piece.lower() == 'd' else Side.LIGHT

    def is_king(self, index: int) -> bool:
        return self.squares[index].isupper()

    def count(self, side: Side) -> int:
        return sum(1 for sq in self.squares if sq.lower() == side.man)

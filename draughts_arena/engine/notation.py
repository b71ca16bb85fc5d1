"""Translation between algebraic squares ("B6") and native board indices.

Only the 32 dark squares are playable. With ``file = letter - 'A'`` and
``row = 8 - rank`` a square is playable iff ``file + row`` is odd, and its
index is ``row * 4 + file // 2``. ``index_to_square`` is the exact inverse.
"""

import re

_SQUARE_RE = re.compile(r'^([A-Ha-h])([1-8])$')


class MalformedSquare(ValueError):
    pass


class UnplayableSquare(ValueError):
    pass


def coords(index: int) -> tuple[int, int]:
    """(row, col) of a native index, row 0 being rank 8."""
    row = index // 4
    col = (index % 4) * 2 + (1 if row % 2 == 0 else 0)
    return row, col


def index_at(row: int, col: int):
    """Native index of (row, col), or None when off-board or not playable."""
    if not (0 <= row < 8 and 0 <= col < 8) or (row + col) % 2 == 0:
        return None
    return row * 4 + col // 2


def normalize_square(square: str) -> str:
    match = _SQUARE_RE.match((square or '').strip())
    if not match:
        raise MalformedSquare(f"Invalid square {square!r}")
    return match.group(1).upper() + match.group(2)


def square_to_index(square: str) -> int:
    name = normalize_square(square)
    col = ord(name[0]) - ord('A')
    row = 8 - int(name[1])
    index = index_at(row, col)
    if index is None:
        raise UnplayableSquare(f"{name} is not a playable square")
    return index


def index_to_square(index: int) -> str:
    if not 0 <= index < 32:
        raise ValueError(f"Index {index} is outside the playable squares")
    row, col = coords(index)
    return f"{chr(ord('A') + col)}{8 - row}"

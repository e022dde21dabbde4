from __future__ import annotations

from collections import Counter
from typing import List, Optional, Sequence

from .moves import LegalMove
from .position import Position, PositionKey


class History:
    """Positions of a game in order, the moves between them and a repetition count.

    ``positions[i + 1]`` is ``positions[i]`` after ``moves[i]``.
    """

    def __init__(self, initial: Position) -> None:
        self._positions: List[Position] = [initial]
        self._moves: List[LegalMove] = []
        self._keys: Counter[PositionKey] = Counter([initial.key()])

    def push(self, move: LegalMove, position: Position) -> None:
        self._moves.append(move)
        self._positions.append(position)
        self._keys[position.key()] += 1

    @property
    def initial(self) -> Position:
        return self._positions[0]

    @property
    def current(self) -> Position:
        return self._positions[-1]

    @property
    def positions(self) -> Sequence[Position]:
        return tuple(self._positions)

    @property
    def moves(self) -> Sequence[LegalMove]:
        return tuple(self._moves)

    def position_at(self, ply: int) -> Position:
        if not 0 <= ply < len(self._positions):
            raise IndexError(f"ply {ply} is outside 0..{len(self._positions) - 1}")
        return self._positions[ply]

    def repetitions(self, position: Optional[Position] = None) -> int:
        """How many times `position` (default: the current one) has occurred."""
        return self._keys[(position or self.current).key()]

    def __len__(self) -> int:
        return len(self._positions)


class ReviewNavigator:
    """Read-only cursor over a History.

    While the cursor sits on the last position it follows new moves as
    they are appended; anywhere else it stays on its ply.
    """

    def __init__(self, history: History) -> None:
        self._history = history
        self._ply: Optional[int] = None

    def __len__(self) -> int:
        return len(self._history)

    @property
    def ply(self) -> int:
        return len(self._history) - 1 if self._ply is None else self._ply

    @property
    def current(self) -> Position:
        return self._history.position_at(self.ply)

    @property
    def at_start(self) -> bool:
        return self.ply == 0

    @property
    def at_end(self) -> bool:
        return self.ply == len(self._history) - 1

    def jump(self, ply: int) -> Position:
        if not 0 <= ply < len(self._history):
            raise IndexError(f"ply {ply} is outside 0..{len(self._history) - 1}")
        self._ply = None if ply == len(self._history) - 1 else ply
        return self.current

    def to_start(self) -> Position:
        return self.jump(0)

    def to_end(self) -> Position:
        self._ply = None
        return self.current

    def forward(self) -> Position:
        if self.at_end:
            return self.current
        return self.jump(self.ply + 1)

    def back(self) -> Position:
        if self.at_start:
            return self.current
        return self.jump(self.ply - 1)

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .material import Color
from .position import MatingMaterial, Position

FIFTY_MOVE_PLIES = 100
REPETITION_LIMIT = 3

_MINOR_DRAWS = {
    frozenset({MatingMaterial.LONE_KING}),
    frozenset({MatingMaterial.LONE_KING, MatingMaterial.KNIGHT}),
    frozenset({MatingMaterial.LONE_KING, MatingMaterial.LIGHT_BISHOP}),
    frozenset({MatingMaterial.LONE_KING, MatingMaterial.DARK_BISHOP}),
    frozenset({MatingMaterial.LIGHT_BISHOP}),
    frozenset({MatingMaterial.DARK_BISHOP}),
    frozenset({MatingMaterial.KNIGHT}),
    frozenset({MatingMaterial.KNIGHT, MatingMaterial.LIGHT_BISHOP}),
    frozenset({MatingMaterial.KNIGHT, MatingMaterial.DARK_BISHOP}),
}


class WinReason(str, Enum):
    CHECKMATE = "checkmate"
    RESIGNED = "resigned"
    TIME_EXPIRED = "time_expired"
    ABANDONED = "abandoned"


class DrawReason(str, Enum):
    STALEMATE = "stalemate"
    REPETITION = "repetition"
    FIFTY_MOVES = "fifty_moves"
    INSUFFICIENT_MATERIAL = "insufficient_material"
    AGREED = "agreed"


@dataclass(frozen=True)
class GameResult:
    """Terminal outcome: a winner with a WinReason, or a DrawReason."""

    winner: Optional[Color] = None
    win_reason: Optional[WinReason] = None
    draw_reason: Optional[DrawReason] = None

    @classmethod
    def win(cls, winner: Color, reason: WinReason) -> "GameResult":
        return cls(winner=winner, win_reason=reason)

    @classmethod
    def draw(cls, reason: DrawReason) -> "GameResult":
        return cls(draw_reason=reason)

    @property
    def is_draw(self) -> bool:
        return self.draw_reason is not None

    @property
    def reason(self) -> str:
        if self.draw_reason is not None:
            return self.draw_reason.value
        if self.win_reason is not None:
            return self.win_reason.value
        raise ValueError("result has neither a win nor a draw reason")

    def __str__(self) -> str:
        if self.is_draw:
            return "1/2-1/2"
        return "1-0" if self.winner == Color.WHITE else "0-1"


def is_insufficient_material(position: Position) -> bool:
    """True when the material left on the board is scored as a draw.

    Draws: K v K, K+minor v K, a single minor each where at least one is a
    knight, and K+B v K+B with bishops on one square color. Opposite-colored
    bishops and two minors on one side stay sufficient.
    """
    white = position.mating_material(Color.WHITE)
    black = position.mating_material(Color.BLACK)
    if MatingMaterial.SUFFICIENT in (white, black):
        return False
    return frozenset({white, black}) in _MINOR_DRAWS


def detect(position: Position, has_moves: bool, in_check: bool, repetitions: int) -> Optional[GameResult]:
    """Decide the result of `position`, or None while the game goes on.

    Checks run in a fixed order and the first match wins: checkmate,
    stalemate, threefold repetition, fifty-move rule, insufficient material.
    """
    if not has_moves:
        if in_check:
            return GameResult.win(position.turn.other, WinReason.CHECKMATE)
        return GameResult.draw(DrawReason.STALEMATE)
    if repetitions >= REPETITION_LIMIT:
        return GameResult.draw(DrawReason.REPETITION)
    if position.halfmove_clock >= FIFTY_MOVE_PLIES:
        return GameResult.draw(DrawReason.FIFTY_MOVES)
    if is_insufficient_material(position):
        return GameResult.draw(DrawReason.INSUFFICIENT_MATERIAL)
    return None

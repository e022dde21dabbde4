from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .material import PROMOTION_CHARS, Piece
from .square import KING_ATTACKS, bit, square_to_str, str_to_square


class MoveKind(str, Enum):
    NORMAL = "normal"
    DOUBLE_PUSH = "double_push"
    EN_PASSANT = "en_passant"
    CASTLE = "castle"


@dataclass(frozen=True)
class Move:
    """Caller-supplied move, not yet checked against any position.

    Attributes:
        from_sq (int): Origin square index (0-based).
        to_sq (int): Destination square index (0-based). Castling may be
            given as king-to-destination or king-to-rook.
        promotion (Optional[Piece]): Promotion piece, if any.
    """

    from_sq: int
    to_sq: int
    promotion: Optional[Piece] = None

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form, e.g. ``"e7e8q"``."""
        promo = self.promotion.char if self.promotion is not None else ""
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + promo


def parse_uci(uci: str) -> Move:
    """Parse a UCI move string.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo: Optional[Piece] = None
    if len(uci) == 5:
        ch = uci[4].lower()
        if ch not in PROMOTION_CHARS:
            raise ValueError(f"invalid promotion piece: {ch!r}")
        promo = PROMOTION_CHARS[ch]
    return Move(from_sq, to_sq, promo)


@dataclass(frozen=True)
class _Shaped:
    from_sq: int
    to_sq: int
    promotion: Optional[Piece] = None
    kind: MoveKind = MoveKind.NORMAL
    # castling only: the rook's square before castling
    rook_from: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.kind == MoveKind.CASTLE) != (self.rook_from is not None):
            raise ValueError("rook_from is given for castling moves and only for them")

    @property
    def is_castle(self) -> bool:
        return self.kind == MoveKind.CASTLE

    @property
    def _king_step_castle(self) -> bool:
        # the king-to-destination form would read back as a plain king move
        return self.is_castle and (
            self.to_sq == self.from_sq or bool(KING_ATTACKS[self.from_sq] & bit(self.to_sq))
        )

    def to_move(self, chess960: bool = False) -> Move:
        """Return the caller-facing form.

        Castles are written king-takes-rook in Chess960, and always when the
        king-to-destination form would read back as a plain king move.
        """
        if self.rook_from is not None and (chess960 or self._king_step_castle):
            return Move(self.from_sq, self.rook_from)
        return Move(self.from_sq, self.to_sq, self.promotion)

    def to_uci(self, chess960: bool = False) -> str:
        return self.to_move(chess960).to_uci()


@dataclass(frozen=True)
class LegalMove(_Shaped):
    """A move validated against the position it was generated from."""


@dataclass(frozen=True)
class PreMove(_Shaped):
    """A speculative move built from piece geometry only.

    It is re-validated as a regular move once the opponent has replied.
    """

    @property
    def move(self) -> Move:
        if self.rook_from is not None:
            return Move(self.from_sq, self.rook_from)
        return Move(self.from_sq, self.to_sq, self.promotion)

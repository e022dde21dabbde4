from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import InvalidPosition
from .material import BISHOP, KING, KNIGHT, QUEEN, ROOK, Piece


BACKRANK_COUNT = 960
STANDARD_BACKRANK_ID = 518

# Knight placements over the five squares left after bishops and queen
_KNIGHT_PLACEMENTS: Tuple[Tuple[int, int], ...] = (
    (0, 1),
    (0, 2),
    (0, 3),
    (0, 4),
    (1, 2),
    (1, 3),
    (1, 4),
    (2, 3),
    (2, 4),
    (3, 4),
)


@dataclass(frozen=True)
class BackRank:
    """Arrangement of the eight non-pawn pieces on a starting rank.

    Attributes:
        pieces: Piece kinds on files a..h.
        king: File of the king.
        rooks: Files of the (queenside, kingside) rooks.
    """

    pieces: Tuple[Piece, ...]
    king: int
    queen: int
    rooks: Tuple[int, int]
    bishops: Tuple[int, int]
    knights: Tuple[int, int]

    @classmethod
    def build(cls, pieces: Iterable[Piece]) -> "BackRank":
        """Validate and build a back rank from eight piece kinds.

        Raises:
            InvalidPosition: Wrong piece counts, bishops on same-colored
                squares, or king not between the rooks.
        """
        pieces = tuple(Piece(p) for p in pieces)
        files: Dict[Piece, List[int]] = {p: [] for p in (KING, QUEEN, ROOK, BISHOP, KNIGHT)}
        if len(pieces) != 8:
            raise InvalidPosition("back rank must have exactly 8 pieces")
        for f, p in enumerate(pieces):
            if p not in files:
                raise InvalidPosition("pawns cannot be placed on the back rank")
            files[p].append(f)
        counts = {p: len(fs) for p, fs in files.items()}
        if counts != {KING: 1, QUEEN: 1, ROOK: 2, BISHOP: 2, KNIGHT: 2}:
            raise InvalidPosition("expecting 1 king, 1 queen, and 2 of each other piece")
        b1, b2 = files[BISHOP]
        if (b1 + b2) % 2 == 0:
            raise InvalidPosition("bishops must be placed on different colored squares")
        r1, r2 = files[ROOK]
        (king,) = files[KING]
        if not r1 < king < r2:
            raise InvalidPosition("king must be placed between rooks")
        return cls(
            pieces=pieces,
            king=king,
            queen=files[QUEEN][0],
            rooks=(r1, r2),
            bishops=(b1, b2),
            knights=(files[KNIGHT][0], files[KNIGHT][1]),
        )

    @classmethod
    def standard(cls) -> "BackRank":
        return BACKRANKS[STANDARD_BACKRANK_ID]

    @classmethod
    def lookup(cls, backrank_id: int) -> "BackRank":
        return BACKRANKS[check_backrank_id(backrank_id)]

    @property
    def id(self) -> int:
        return _IDS[self.pieces]

    @property
    def is_standard(self) -> bool:
        return self.id == STANDARD_BACKRANK_ID

    def __str__(self) -> str:
        return "".join(p.char for p in self.pieces).upper()


def check_backrank_id(value: int) -> int:
    """Return `value` if it names one of the 960 back ranks."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPosition(f"back rank id must be an integer, got {value!r}")
    if not 0 <= value < BACKRANK_COUNT:
        raise InvalidPosition("back rank id is out of range (expecting 0..959)")
    return value


def shuffled_backrank_id(rng: Optional[random.Random] = None) -> int:
    """Draw a uniformly random back rank id."""
    return (rng or random).randrange(BACKRANK_COUNT)


def _decode(n: int) -> BackRank:
    slots: List[Optional[Piece]] = [None] * 8
    n, light = divmod(n, 4)
    slots[2 * light + 1] = BISHOP
    n, dark = divmod(n, 4)
    slots[2 * dark] = BISHOP
    n, queen = divmod(n, 6)
    empty = [f for f in range(8) if slots[f] is None]
    slots[empty[queen]] = QUEEN
    empty = [f for f in range(8) if slots[f] is None]
    for i in _KNIGHT_PLACEMENTS[n]:
        slots[empty[i]] = KNIGHT
    rest = [f for f in range(8) if slots[f] is None]
    for f, p in zip(rest, (ROOK, KING, ROOK)):
        slots[f] = p
    return BackRank.build(slots)  # type: ignore[arg-type]


BACKRANKS: List[BackRank] = [_decode(n) for n in range(BACKRANK_COUNT)]
_IDS: Dict[Tuple[Piece, ...], int] = {br.pieces: n for n, br in enumerate(BACKRANKS)}

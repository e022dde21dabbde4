from __future__ import annotations

from typing import Iterator, List, Tuple


MASK64 = 0xFFFFFFFFFFFFFFFF

FILE_NAMES = "abcdefgh"
FILE_A, FILE_B, FILE_C, FILE_D, FILE_E, FILE_F, FILE_G, FILE_H = range(8)
RANK_1, RANK_2, RANK_3, RANK_4, RANK_5, RANK_6, RANK_7, RANK_8 = range(8)

# fmt: off
(
    A1, B1, C1, D1, E1, F1, G1, H1,
    A2, B2, C2, D2, E2, F2, G2, H2,
    A3, B3, C3, D3, E3, F3, G3, H3,
    A4, B4, C4, D4, E4, F4, G4, H4,
    A5, B5, C5, D5, E5, F5, G5, H5,
    A6, B6, C6, D6, E6, F6, G6, H6,
    A7, B7, C7, D7, E7, F7, G7, H7,
    A8, B8, C8, D8, E8, F8, G8, H8,
) = range(64)
# fmt: on

RANK_MASKS = [0xFF << (8 * r) for r in range(8)]
FILE_MASKS = [0x0101010101010101 << f for f in range(8)]
LIGHT_SQUARES = 0x55AA55AA55AA55AA
DARK_SQUARES = 0xAA55AA55AA55AA55

# (file step, rank step); index order is relied on by RAYS below
DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (0, 1),  # N
    (1, 0),  # E
    (0, -1),  # S
    (-1, 0),  # W
    (1, 1),  # NE
    (-1, 1),  # NW
    (1, -1),  # SE
    (-1, -1),  # SW
)
ORTHOGONAL = (0, 1, 2, 3)
DIAGONAL = (4, 5, 6, 7)

KNIGHT_OFFSETS = ((-1, 2), (1, 2), (-2, 1), (2, 1), (-2, -1), (2, -1), (-1, -2), (1, -2))


def square(file: int, rank: int) -> int:
    return rank * 8 + file


def file_of(sq: int) -> int:
    return sq & 7


def rank_of(sq: int) -> int:
    return sq >> 3


def bit(sq: int) -> int:
    return 1 << sq


def lsb(mask: int) -> int:
    """Index of the lowest set bit of a non-empty mask."""
    return (mask & -mask).bit_length() - 1


def msb(mask: int) -> int:
    """Index of the highest set bit of a non-empty mask."""
    return mask.bit_length() - 1


def popcount(mask: int) -> int:
    return bin(mask).count("1")


def iter_squares(mask: int) -> Iterator[int]:
    """Yield the squares of `mask` from a1 towards h8."""
    while mask:
        low = mask & -mask
        yield low.bit_length() - 1
        mask ^= low


def mask_of(squares) -> int:
    mask = 0
    for sq in squares:
        mask |= 1 << sq
    return mask


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a 0-based square index.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: Zero-based square index.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    return square(ord(s[0]) - ord("a"), int(s[1]) - 1)


def square_to_str(idx: int) -> str:
    """Convert a 0-based square index into algebraic notation.

    Raises:
        ValueError: If ``idx`` is outside the valid square range.
    """
    if idx < 0 or idx > 63:
        raise ValueError(f"invalid square index: {idx}")
    return FILE_NAMES[file_of(idx)] + str(rank_of(idx) + 1)


# --- Precomputed tables (built once at import, read-only afterwards) ---


def _step(sq: int, df: int, dr: int) -> int:
    f, r = file_of(sq) + df, rank_of(sq) + dr
    if 0 <= f < 8 and 0 <= r < 8:
        return square(f, r)
    return -1


def _leaper_table(offsets) -> List[int]:
    table = [0] * 64
    for sq in range(64):
        for df, dr in offsets:
            to = _step(sq, df, dr)
            if to >= 0:
                table[sq] |= 1 << to
    return table


def _ray_table() -> List[List[int]]:
    rays = [[0] * 64 for _ in DIRECTIONS]
    for d, (df, dr) in enumerate(DIRECTIONS):
        for sq in range(64):
            to = _step(sq, df, dr)
            while to >= 0:
                rays[d][sq] |= 1 << to
                to = _step(to, df, dr)
    return rays


def _line_tables() -> Tuple[List[List[int]], List[List[int]]]:
    between = [[0] * 64 for _ in range(64)]
    lines = [[0] * 64 for _ in range(64)]
    for a in range(64):
        for d, (df, dr) in enumerate(DIRECTIONS):
            # full line through `a` along this axis, both directions plus `a`
            full = RAYS[d][a] | RAYS[_OPPOSITE[d]][a] | (1 << a)
            gap = 0
            to = _step(a, df, dr)
            while to >= 0:
                between[a][to] = gap
                lines[a][to] = full
                gap |= 1 << to
                to = _step(to, df, dr)
    return between, lines


KNIGHT_ATTACKS = _leaper_table(KNIGHT_OFFSETS)
KING_ATTACKS = _leaper_table(DIRECTIONS)
# PAWN_ATTACKS[color][sq]: squares attacked by a pawn of `color` standing on sq
PAWN_ATTACKS = (_leaper_table(((-1, 1), (1, 1))), _leaper_table(((-1, -1), (1, -1))))
RAYS = _ray_table()
_OPPOSITE = (2, 3, 0, 1, 7, 6, 5, 4)
BETWEEN, LINES = _line_tables()
# step > 0 means the nearest blocker along the ray is the lowest set bit
_POSITIVE = tuple(dr * 8 + df > 0 for df, dr in DIRECTIONS)


def between(a: int, b: int) -> int:
    """Mask of squares strictly between `a` and `b`, or 0 if not aligned."""
    return BETWEEN[a][b]


def line(a: int, b: int) -> int:
    """Edge-to-edge line through `a` and `b`, or 0 if they share no line."""
    return LINES[a][b]


def aligned(a: int, b: int, c: int) -> bool:
    return bool(LINES[a][b] & (1 << c))


def slide(sq: int, occupied: int, directions) -> int:
    """Ray-cast from `sq`; each ray stops at and includes its first blocker."""
    attacks = 0
    for d in directions:
        ray = RAYS[d][sq]
        blockers = ray & occupied
        if blockers:
            first = lsb(blockers) if _POSITIVE[d] else msb(blockers)
            ray ^= RAYS[d][first]
        attacks |= ray
    return attacks


def bishop_attacks(sq: int, occupied: int) -> int:
    return slide(sq, occupied, DIAGONAL)


def rook_attacks(sq: int, occupied: int) -> int:
    return slide(sq, occupied, ORTHOGONAL)


def queen_attacks(sq: int, occupied: int) -> int:
    return slide(sq, occupied, ORTHOGONAL) | slide(sq, occupied, DIAGONAL)

from __future__ import annotations

import pytest

from chessrules.board.fen import parse_fen
from chessrules.board.perft import divide, perft
from chessrules.board.position import Position

KIWIPETE = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"
POSITION_3 = "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1"
POSITION_4 = "r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1"
POSITION_5 = "rnbq1k1r/pp1Pbppp/2p5/8/2B5/8/PPP1NnPP/RNBQK2R w KQ - 1 8"
CHESS960_1 = "bqnb1rkr/pp3ppp/3ppn2/2p5/5P2/P2P4/NPP1P1PP/BQ1BNRKR w HFhf - 2 9"
CHESS960_2 = "2nnrbkr/p1qppppp/8/1ppb4/6PP/3PP3/PPP2P2/BQNNRBKR w HEhe - 1 9"


@pytest.mark.parametrize("depth,expected", [(0, 1), (1, 20), (2, 400), (3, 8902)])
def test_perft_startpos(depth: int, expected: int) -> None:
    assert perft(Position.initial(), depth) == expected


@pytest.mark.parametrize(
    "fen,depth,expected",
    [
        (KIWIPETE, 1, 48),
        (KIWIPETE, 2, 2039),
        (POSITION_3, 1, 14),
        (POSITION_3, 2, 191),
        (POSITION_3, 3, 2812),
        (POSITION_4, 1, 6),
        (POSITION_4, 2, 264),
        (POSITION_5, 1, 44),
        (POSITION_5, 2, 1486),
    ],
)
def test_perft_reference_positions(fen: str, depth: int, expected: int) -> None:
    assert perft(parse_fen(fen), depth) == expected


@pytest.mark.parametrize(
    "fen,depth,expected",
    [
        (CHESS960_1, 1, 21),
        (CHESS960_1, 2, 528),
        (CHESS960_2, 1, 21),
        (CHESS960_2, 2, 807),
    ],
)
def test_perft_chess960_positions(fen: str, depth: int, expected: int) -> None:
    assert perft(parse_fen(fen), depth) == expected


def test_perft_chess960_start_position() -> None:
    # BBQNNRKR: knights on d1/e1, every pawn free
    pos = Position.initial(0)
    assert perft(pos, 1) == 20
    assert perft(pos, 2) == 400


def test_divide_sums_to_perft() -> None:
    counts = divide(Position.initial(), 2)
    assert len(counts) == 20
    assert counts["e2e4"] == 20
    assert sum(counts.values()) == 400


def test_perft_rejects_negative_depth() -> None:
    with pytest.raises(ValueError):
        perft(Position.initial(), -1)


@pytest.mark.slow
@pytest.mark.parametrize(
    "fen,depth,expected",
    [
        (KIWIPETE, 3, 97862),
        (POSITION_4, 3, 9467),
        (POSITION_5, 3, 62379),
        (CHESS960_1, 3, 12189),
        (CHESS960_2, 3, 18002),
    ],
)
def test_perft_deep(fen: str, depth: int, expected: int) -> None:
    assert perft(parse_fen(fen), depth) == expected


@pytest.mark.slow
def test_perft_startpos_depth_4() -> None:
    assert perft(Position.initial(), 4) == 197281

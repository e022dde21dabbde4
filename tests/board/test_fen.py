from __future__ import annotations

import pytest

from chessrules.board.castling import KINGSIDE, QUEENSIDE
from chessrules.board.errors import InvalidPosition
from chessrules.board.fen import STARTING_FEN, parse_fen, to_fen
from chessrules.board.material import BLACK, WHITE
from chessrules.board.position import Position
from chessrules.board.square import E3, FILE_F, FILE_G, FILE_H


def test_start_position_matches_starting_fen() -> None:
    assert to_fen(Position.initial()) == STARTING_FEN
    assert parse_fen(STARTING_FEN) == Position.initial()


@pytest.mark.parametrize(
    "fen",
    [
        STARTING_FEN,
        "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1",
        "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1",
        "rnbq1k1r/pp1Pbppp/2p5/8/2B5/8/PPP1NnPP/RNBQK2R w KQ - 1 8",
    ],
)
def test_fen_round_trip(fen: str) -> None:
    assert to_fen(parse_fen(fen)) == fen


def test_en_passant_target_is_parsed() -> None:
    pos = parse_fen("rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1")
    assert pos.ep_square == E3
    assert pos.turn == BLACK


def test_shredder_castling_for_chess960() -> None:
    fen = "bqnb1rkr/pp3ppp/3ppn2/2p5/5P2/P2P4/NPP1P1PP/BQ1BNRKR w HFhf - 2 9"
    pos = parse_fen(fen)
    white = pos.castling_rights(WHITE)
    assert white.king_file == FILE_G
    assert white.rook_file(KINGSIDE) == FILE_H
    assert white.rook_file(QUEENSIDE) == FILE_F
    assert to_fen(pos, shredder=True) == fen
    # outermost rooks on both sides, so X-FEN letters are enough
    assert to_fen(pos).split()[2] == "KQkq"
    assert parse_fen(to_fen(pos)) == pos


def test_inner_rook_is_written_as_file_letter() -> None:
    # two rooks on the kingside; the right belongs to the inner one
    fen = "4k3/8/8/8/8/8/8/R3K1RR w Ga - 0 1"
    with pytest.raises(InvalidPosition):
        parse_fen(fen)  # black has no rook on a8
    pos = parse_fen("4k3/8/8/8/8/8/8/R3K1RR w G - 0 1")
    assert pos.castling_rights(WHITE).rook_file(KINGSIDE) == FILE_G
    assert to_fen(pos).split()[2] == "G"


@pytest.mark.parametrize(
    "fen",
    [
        "",
        "8/8/8/8/8/8/8/8 w - - 0 1",  # no kings
        "4k3/8/8/8/8/8/8/3KK3 w - - 0 1",  # two white kings
        "P3k3/8/8/8/8/8/8/4K3 w - - 0 1",  # pawn on the last rank
        "4k3/4R3/8/8/8/8/8/4K3 w - - 0 1",  # black king in check with white to move
        "4k3/8/8/8/8/8/8/4K3 w K - 0 1",  # castling right without a rook
        "4k3/8/8/8/8/8/8/4K3 x - - 0 1",  # bad side to move
        "4k3/8/8/8/8/8/8/4K3 w - e6 0 1",  # en passant without a pushed pawn
        "4k3/8/8/8/8/8/8/4K3 w - - -1 1",  # negative clock
        "4k3/8/8/9/8/8/8/4K3 w - - 0 1",  # bad empty count
        "4k3/8/8/8/8/8/8/4K3 w - - 0",  # five fields
    ],
)
def test_invalid_fen_rejected(fen: str) -> None:
    with pytest.raises(InvalidPosition):
        parse_fen(fen)

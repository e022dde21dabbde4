#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import os
import sys
import time

# Allow running this script directly via `python scripts/perft.py`
# by adding the repo root (which contains `chessrules/`) to sys.path.
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from chessrules.board.backrank import STANDARD_BACKRANK_ID
from chessrules.board.fen import parse_fen
from chessrules.board.perft import divide, perft
from chessrules.board.position import Position


def main() -> None:
    parser = argparse.ArgumentParser(description="Run perft on a position and depth")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--fen", type=str, help="FEN or Shredder-FEN string")
    source.add_argument(
        "--backrank-id",
        type=int,
        default=None,
        help=f"Chess960 start position 0..959 (default: {STANDARD_BACKRANK_ID}, standard chess)",
    )
    parser.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    parser.add_argument("--divide", action="store_true", help="Print counts per root move")
    args = parser.parse_args()

    if args.fen:
        position = parse_fen(args.fen)
        chess960 = False
    else:
        backrank_id = STANDARD_BACKRANK_ID if args.backrank_id is None else args.backrank_id
        position = Position.initial(backrank_id)
        chess960 = backrank_id != STANDARD_BACKRANK_ID

    start = time.perf_counter()
    if args.divide:
        counts = divide(position, args.depth, chess960)
        for uci in sorted(counts):
            print(f"{uci}: {counts[uci]}")
        nodes = sum(counts.values())
    else:
        nodes = perft(position, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()

from __future__ import annotations

from typing import Dict

from .legal import MoveState
from .position import Position


def perft(position: Position, depth: int) -> int:
    """Compute perft node count for `position` at `depth`.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    The last ply is bulk-counted from the length of the legal-move list.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    moves = MoveState(position).legal_moves()
    if depth == 1:
        return len(moves)
    return sum(perft(position.apply(m), depth - 1) for m in moves)


def divide(position: Position, depth: int, chess960: bool = False) -> Dict[str, int]:
    """Per-root-move perft counts keyed by UCI string."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    return {
        m.to_uci(chess960): perft(position.apply(m), depth - 1)
        for m in MoveState(position).legal_moves()
    }

from __future__ import annotations


class ChessError(ValueError):
    """Base class for errors reported by the rules core."""


class IllegalMove(ChessError):
    """The move is not in the current legal-move set.

    Covers moving into check, moving a pinned piece off its ray, unmet
    castling or en passant preconditions and moves made out of turn.
    """

    def __init__(self, message: str = "illegal move", *, move: object = None) -> None:
        super().__init__(message)
        self.move = move


class InvalidPosition(ChessError):
    """A position or back rank that cannot occur in a game."""


class GameAlreadyTerminal(ChessError):
    """A move was submitted after the game result was decided."""

    def __init__(self, result: object = None) -> None:
        super().__init__("game is already over")
        self.result = result

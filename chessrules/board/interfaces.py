"""Capabilities shared by the board modes.

Callers that only need one capability (rendering a position, listing moves,
stepping through history) depend on these protocols instead of a concrete
board class.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .moves import LegalMove
    from .position import Position
    from .review import ReviewNavigator


@runtime_checkable
class HasPosition(Protocol):
    @property
    def position(self) -> "Position": ...


@runtime_checkable
class LegalMoveSource(Protocol):
    def legal_moves(self) -> List["LegalMove"]: ...


@runtime_checkable
class Reviewable(Protocol):
    review: "ReviewNavigator"

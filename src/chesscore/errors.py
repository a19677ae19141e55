from __future__ import annotations


class ChessCoreError(Exception):
    """Base class for engine errors."""


class BoardInvariantError(ChessCoreError, AssertionError):
    """A move does not fit the board it is applied to or reverted on.

    Signals a sequencing bug in the caller (for example breaking the LIFO
    order of apply/revert); the board must not be used afterwards.
    """


class StaleMoveError(BoardInvariantError):
    """The move was generated for a different en passant state."""


class IllegalMoveError(ChessCoreError, ValueError):
    """The requested move is not available in the current position."""

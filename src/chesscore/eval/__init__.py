"""Static evaluation.

Pure, deterministic, and side-effect free.
"""

from __future__ import annotations

from typing import Iterable

from chesscore.engine.board import Board
from chesscore.engine.types import PieceOnBoard


def material(pieces: Iterable[PieceOnBoard]) -> float:
    """Signed material sum; White pieces count positive."""
    total = 0.0
    for piece, _ in pieces:
        total += piece.value
    return total


def static_evaluation(board: Board) -> float:
    """Evaluate ``board`` from White's point of view.

    The score is the signed material balance and does not depend on the
    side to move, so it is zero-sum: swapping all piece colors negates it.
    """
    return material(board.pieces())

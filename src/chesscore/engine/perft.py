from __future__ import annotations

from typing import Dict

from .board import Board
from .movegen import generate_moves, legal_moves


def perft(board: Board, depth: int, *, legal: bool = True) -> int:
    """Compute perft node count for `board` at `depth`.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all child positions' perft(depth-1).

    Children come from ``legal_moves`` by default, or from the raw
    pseudo-legal generator with ``legal=False``. The board is walked with
    apply/revert and left unchanged.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = legal_moves(board) if legal else generate_moves(board)
    if depth == 1:
        return len(moves)
    nodes = 0
    for m in moves:
        board.apply_move(m)
        nodes += perft(board, depth - 1, legal=legal)
        board.revert_move(m)
    return nodes


def divide(board: Board, depth: int, *, legal: bool = True) -> Dict[str, int]:
    """Per-root-move perft counts keyed by move text, in generation order."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    moves = legal_moves(board) if legal else generate_moves(board)
    counts: Dict[str, int] = {}
    for m in moves:
        board.apply_move(m)
        counts[str(m)] = perft(board, depth - 1, legal=legal)
        board.revert_move(m)
    return counts

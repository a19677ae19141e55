from __future__ import annotations

from concurrent.futures import Executor, ProcessPoolExecutor
from typing import List, Optional, Tuple
import logging
import time

from chesscore.engine.board import Board
from chesscore.engine.move import Move
from chesscore.engine.movegen import generate_moves
from chesscore.eval import static_evaluation

from .service import AlphaBetaEvaluator, MIN_SCORE, SearchResult, make_evaluator

logger = logging.getLogger(__name__)


def _evaluate_root_move(args: Tuple[Board, Move, str, int]) -> Tuple[float, int, List[Move]]:
    """Worker: apply one root move on a private board and search below it.

    Args:
        args: tuple(board_copy, move, evaluator_name, max_depth)

    Returns:
        (White-positive value, nodes, line below the move)
    """
    board, move, name, max_depth = args
    board.apply_move(move)
    evaluator = make_evaluator(name, max_depth)
    value = evaluator.evaluate(board)
    return value, evaluator.statistics.node_count, evaluator.best_line.moves


def parallel_best_move(
    board: Board,
    depth: int,
    evaluator: str = AlphaBetaEvaluator.name,
    max_workers: Optional[int] = None,
    *,
    executor: Optional[Executor] = None,
) -> SearchResult:
    """Root-split search: each root move is searched on its own board copy.

    Results are combined in generation order with a strict maximum, so the
    chosen move equals the sequential ``SearchService`` result for the same
    depth and evaluator. ``board`` itself is never mutated.

    Args:
        board (Board): Position to search.
        depth (int): Plies including the root move (at least 1).
        evaluator (str): Evaluator registry name.
        max_workers (Optional[int]): Process count for the default pool.
        executor (Optional[Executor]): Use this executor instead of creating
            a ``ProcessPoolExecutor``; it is not shut down.
    """
    if depth < 1:
        raise ValueError(f"depth must be at least 1, got {depth}")
    # Fail before any worker starts on an unknown name
    make_evaluator(evaluator, depth - 1)

    start = time.perf_counter()
    moves = generate_moves(board)
    if not moves:
        return SearchResult(
            best_move=None,
            score=static_evaluation(board),
            pv=[],
            nodes=0,
            depth=depth,
            time_ms=int((time.perf_counter() - start) * 1000),
            evaluator=evaluator,
            game_over=True,
        )

    tasks = [(board.copy(), m, evaluator, depth - 1) for m in moves]
    if executor is None:
        with ProcessPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(_evaluate_root_move, tasks))
    else:
        results = list(executor.map(_evaluate_root_move, tasks))

    sign = board.side.evaluation_sign
    best: Optional[Move] = None
    best_value = MIN_SCORE
    best_line: List[Move] = []
    nodes = 0
    for m, (value, n, line) in zip(moves, results):
        nodes += n
        if best is None or value * sign > best_value:
            best = m
            best_value = value * sign
            best_line = [m] + line

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.debug(
        "parallel search evaluator=%s depth=%d roots=%d best=%s nodes=%d time_ms=%d",
        evaluator,
        depth,
        len(moves),
        best,
        nodes,
        elapsed_ms,
    )
    return SearchResult(
        best_move=best,
        score=best_value * sign,
        pv=best_line,
        nodes=nodes,
        depth=depth,
        time_ms=elapsed_ms,
        evaluator=evaluator,
    )

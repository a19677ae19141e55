from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Type, Union
import logging
import sys
import time

from chesscore.engine.board import Board
from chesscore.engine.game import Game
from chesscore.engine.move import Move
from chesscore.engine.movegen import generate_moves
from chesscore.eval import static_evaluation

logger = logging.getLogger(__name__)

# Finite stand-ins for -inf/+inf so window arithmetic never produces NaN
MIN_SCORE = -sys.float_info.max
MAX_SCORE = sys.float_info.max


@dataclass
class Line:
    """Sequence of moves, root first."""

    moves: List[Move] = field(default_factory=list)

    @classmethod
    def from_moves(cls, moves: Iterable[Move]) -> "Line":
        return cls(list(moves))

    def push_front(self, move: Move) -> None:
        self.moves.insert(0, move)

    def to_string(self) -> str:
        return " ".join(m.long_algebraic() for m in self.moves)

    def __len__(self) -> int:
        return len(self.moves)

    def __iter__(self):
        return iter(self.moves)

    def __str__(self) -> str:
        return self.to_string()


@dataclass
class EvaluatorStatistics:
    node_count: int = 0
    duration: float = 0.0  # seconds

    @property
    def nodes_per_second(self) -> float:
        if self.duration <= 0.0:
            return 0.0
        return self.node_count / self.duration


class Evaluator:
    """Depth-limited tree search scoring positions from White's point of view.

    Subclasses implement ``_search``. Statistics accumulate over every
    ``evaluate`` call on the same instance; ``best_line`` holds the line of
    the most recent call.

    Attributes:
        max_depth (int): Plies searched below the evaluated position.
        statistics (EvaluatorStatistics): Cumulative nodes and duration.
        best_line (Line): Line found by the last ``evaluate`` call.
    """

    name = "evaluator"

    def __init__(self, max_depth: int) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self.max_depth = max_depth
        self.statistics = EvaluatorStatistics()
        self.best_line = Line()

    def evaluate(self, board: Board, max_depth: Optional[int] = None) -> float:
        """Search ``board`` and return its White-positive score.

        ``board`` is mutated during the search and restored before returning.

        Args:
            board (Board): Position to evaluate.
            max_depth (Optional[int]): Overrides ``self.max_depth`` for this call.
        """
        depth = self.max_depth if max_depth is None else max_depth
        if depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {depth}")
        start = time.perf_counter()
        value, moves = self._search(board, depth)
        self.statistics.duration += time.perf_counter() - start
        self.best_line = Line.from_moves(moves)
        return value

    def _search(self, board: Board, depth: int) -> Tuple[float, List[Move]]:
        raise NotImplementedError


class MinimaxEvaluator(Evaluator):
    """Full-width minimax in negamax form."""

    name = "minimax"

    def _search(self, board: Board, depth: int) -> Tuple[float, List[Move]]:
        return self._minimax(board, depth, board.side.evaluation_sign)

    def _minimax(self, board: Board, depth: int, sign: float) -> Tuple[float, List[Move]]:
        self.statistics.node_count += 1
        if depth == 0:
            return static_evaluation(board), []
        moves = generate_moves(board)
        if not moves:
            return static_evaluation(board), []

        best_value: Optional[float] = None
        best_line: List[Move] = []
        for m in moves:
            board.apply_move(m)
            value, line = self._minimax(board, depth - 1, -sign)
            board.revert_move(m)
            value *= sign
            # Strict comparison keeps the first of equal moves
            if best_value is None or value > best_value:
                best_value = value
                best_line = [m] + line
        assert best_value is not None
        return best_value * sign, best_line


class AlphaBetaEvaluator(Evaluator):
    """Minimax with alpha-beta pruning; same root value as ``MinimaxEvaluator``."""

    name = "alphabeta"

    def _search(self, board: Board, depth: int) -> Tuple[float, List[Move]]:
        if board.side.evaluation_sign > 0:
            return self._max(board, MIN_SCORE, MAX_SCORE, depth)
        return self._min(board, MIN_SCORE, MAX_SCORE, depth)

    def _max(self, board: Board, alpha: float, beta: float, depth: int) -> Tuple[float, List[Move]]:
        self.statistics.node_count += 1
        if depth == 0:
            return static_evaluation(board), []
        moves = generate_moves(board)
        if not moves:
            return static_evaluation(board), []

        best_value: Optional[float] = None
        best_line: List[Move] = []
        for m in moves:
            board.apply_move(m)
            value, line = self._min(board, alpha, beta, depth - 1)
            board.revert_move(m)
            if best_value is None or value > best_value:
                best_value = value
                best_line = [m] + line
            if value >= beta:
                break
            if value > alpha:
                alpha = value
        assert best_value is not None
        return best_value, best_line

    def _min(self, board: Board, alpha: float, beta: float, depth: int) -> Tuple[float, List[Move]]:
        self.statistics.node_count += 1
        if depth == 0:
            return static_evaluation(board), []
        moves = generate_moves(board)
        if not moves:
            return static_evaluation(board), []

        best_value: Optional[float] = None
        best_line: List[Move] = []
        for m in moves:
            board.apply_move(m)
            value, line = self._max(board, alpha, beta, depth - 1)
            board.revert_move(m)
            if best_value is None or value < best_value:
                best_value = value
                best_line = [m] + line
            if value <= alpha:
                break
            if value < beta:
                beta = value
        assert best_value is not None
        return best_value, best_line


EVALUATORS: Dict[str, Type[Evaluator]] = {
    MinimaxEvaluator.name: MinimaxEvaluator,
    AlphaBetaEvaluator.name: AlphaBetaEvaluator,
}


def make_evaluator(name: str, max_depth: int) -> Evaluator:
    """Build an evaluator by registry name (``"minimax"`` or ``"alphabeta"``)."""
    try:
        cls = EVALUATORS[name]
    except KeyError:
        raise ValueError(
            f"unknown evaluator {name!r}; expected one of {sorted(EVALUATORS)}"
        ) from None
    return cls(max_depth)


def _choose(
    board: Board, evaluator: Evaluator, deadline: Optional[float]
) -> Tuple[Optional[Move], float, Line]:
    """Score every root move and keep the best for the side to move.

    Returns the move, its White-positive score and the line starting with it.
    ``deadline`` is a ``time.monotonic()`` value checked between root moves;
    the first move is always evaluated.
    """
    moves = generate_moves(board)
    if not moves:
        return None, static_evaluation(board), Line()

    sign = board.side.evaluation_sign
    best: Optional[Move] = None
    best_value = MIN_SCORE
    best_line = Line()
    for i, m in enumerate(moves):
        if deadline is not None and i > 0 and time.monotonic() >= deadline:
            logger.debug("deadline reached after %d of %d root moves", i, len(moves))
            break
        board.apply_move(m)
        try:
            value = evaluator.evaluate(board) * sign
        finally:
            board.revert_move(m)
        if best is None or value > best_value:
            best = m
            best_value = value
            best_line = Line([m] + evaluator.best_line.moves)
    return best, best_value * sign, best_line


def best_move(
    board: Board, evaluator: Evaluator, deadline: Optional[float] = None
) -> Optional[Move]:
    """Return the best move for the side to move, or None if it has none.

    Each root move is applied and its resulting position scored by
    ``evaluator``; among equal scores the earliest generated move wins.
    The board is restored before returning.
    """
    move, score, line = _choose(board, evaluator, deadline)
    stats = evaluator.statistics
    logger.debug(
        "best move %s score=%.2f line=%s nodes=%d nps=%.0f",
        move,
        score,
        line,
        stats.node_count,
        stats.nodes_per_second,
    )
    return move


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: float
    pv: List[Move]
    nodes: int
    depth: int
    time_ms: int
    evaluator: str
    game_over: bool = False


class SearchService:
    """Runs a root search on a game position.

    ``depth`` counts plies including the root move, so ``depth=1`` picks the
    move with the best static score after it is played.
    """

    def __init__(self, default_evaluator: str = AlphaBetaEvaluator.name) -> None:
        if default_evaluator not in EVALUATORS:
            raise ValueError(f"unknown evaluator {default_evaluator!r}")
        self.default_evaluator = default_evaluator

    def search(
        self,
        game: Union[Game, Board],
        depth: int = 1,
        movetime_ms: Optional[int] = None,
        *,
        evaluator: Optional[str] = None,
    ) -> SearchResult:
        if depth < 1:
            raise ValueError(f"depth must be at least 1, got {depth}")
        if movetime_ms is not None and movetime_ms <= 0:
            raise ValueError(f"movetime_ms must be positive, got {movetime_ms}")
        name = evaluator or self.default_evaluator
        ev = make_evaluator(name, depth - 1)
        board = game.board if isinstance(game, Game) else game
        deadline = None if movetime_ms is None else time.monotonic() + movetime_ms / 1000.0

        start = time.perf_counter()
        move, score, line = _choose(board, ev, deadline)
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        logger.debug(
            "search evaluator=%s depth=%d best=%s score=%.2f nodes=%d time_ms=%d",
            name,
            depth,
            move,
            score,
            ev.statistics.node_count,
            elapsed_ms,
        )
        return SearchResult(
            best_move=move,
            score=score,
            pv=line.moves,
            nodes=ev.statistics.node_count,
            depth=depth,
            time_ms=elapsed_ms,
            evaluator=name,
            game_over=move is None,
        )

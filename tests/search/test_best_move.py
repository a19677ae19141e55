from __future__ import annotations

import time

import pytest

from chesscore.engine.board import Board, STARTPOS_FEN
from chesscore.engine.game import Game
from chesscore.engine.types import Color, PieceKind
from chesscore.search.service import (
    AlphaBetaEvaluator,
    MinimaxEvaluator,
    SearchService,
    best_move,
)

WP = PieceKind.PAWN.colored(Color.WHITE)
BP = PieceKind.PAWN.colored(Color.BLACK)


def test_no_moves_returns_none() -> None:
    assert best_move(Board.create_empty(), MinimaxEvaluator(2)) is None
    # Only the opponent has pieces
    board = Board.from_pieces([BP.at(0, 6)])
    assert best_move(board, AlphaBetaEvaluator(2)) is None


@pytest.mark.parametrize("evaluator_cls", [MinimaxEvaluator, AlphaBetaEvaluator])
def test_white_takes_the_pawn(evaluator_cls) -> None:
    board = Board.from_pieces([WP.at(0, 1), BP.at(1, 2)])
    before = board.copy()
    move = best_move(board, evaluator_cls(0))
    assert move is not None
    assert str(move) == "a2-b3"
    assert board == before


@pytest.mark.parametrize("evaluator_cls", [MinimaxEvaluator, AlphaBetaEvaluator])
def test_black_takes_the_pawn(evaluator_cls) -> None:
    board = Board.from_pieces([WP.at(0, 2), BP.at(1, 3)], side=Color.BLACK)
    move = best_move(board, evaluator_cls(0))
    assert move is not None
    assert str(move) == "b4-a3"


def test_ties_keep_the_first_generated_move() -> None:
    board = Board.from_pieces([WP.at(0, 1)])
    move = best_move(board, MinimaxEvaluator(1))
    assert move is not None
    assert str(move) == "a2-a3"


def test_passed_deadline_still_examines_one_move() -> None:
    board = Board.from_pieces([WP.at(0, 1), BP.at(1, 2)])
    move = best_move(board, MinimaxEvaluator(0), deadline=time.monotonic() - 1.0)
    assert move is not None
    assert str(move) == "a2-a3"


def test_search_service_result_shape() -> None:
    game = Game.new()
    res = SearchService().search(game, depth=2)
    assert res.best_move is not None
    assert res.pv[0] == res.best_move
    assert len(res.pv) == 2
    assert res.depth == 2
    assert res.nodes > 0
    assert res.time_ms >= 0
    assert res.evaluator == "alphabeta"
    assert not res.game_over
    assert game.to_fen() == STARTPOS_FEN


def test_search_service_reports_game_over() -> None:
    board = Board.from_pieces([BP.at(0, 6)])
    res = SearchService().search(board, depth=3)
    assert res.best_move is None
    assert res.game_over
    assert res.pv == []
    assert res.score == -1.0


def test_search_service_evaluators_agree() -> None:
    fen = "r1bqkbnr/pppp1ppp/2n5/4p3/3P4/5N2/PPP1PPPP/RNBQKB1R w KQkq - 2 3"
    service = SearchService()
    a = service.search(Game.from_fen(fen), depth=2, evaluator="minimax")
    b = service.search(Game.from_fen(fen), depth=2, evaluator="alphabeta")
    assert a.best_move == b.best_move
    assert a.score == b.score
    assert b.nodes <= a.nodes


def test_search_service_finds_free_material() -> None:
    # White queen can take an undefended rook
    game = Game.from_fen("k7/8/8/3r4/8/8/8/K2Q4 w - - 0 1")
    res = SearchService().search(game, depth=2)
    assert res.best_move is not None
    assert str(res.best_move) == "d1-d5"
    assert res.score == 9.0


def test_search_service_validates_arguments() -> None:
    service = SearchService()
    with pytest.raises(ValueError):
        service.search(Game.new(), depth=0)
    with pytest.raises(ValueError):
        service.search(Game.new(), depth=1, movetime_ms=0)
    with pytest.raises(ValueError):
        service.search(Game.new(), depth=1, evaluator="random")
    with pytest.raises(ValueError):
        SearchService(default_evaluator="random")

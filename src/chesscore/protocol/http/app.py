from __future__ import annotations

import logging
from typing import Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    chess_error_handler,
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ...config import EngineConfig
from ...engine.board import STARTPOS_FEN
from ...engine.game import Game
from ...engine.perft import perft as perft_nodes
from ...errors import ChessCoreError
from ...eval import static_evaluation
from ...search.service import SearchService
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)

MAX_PERFT_DEPTH = 5


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., description="Move text, e.g. e2-e4 or e7-e8=q")
    promotion: Optional[Literal["n", "b", "r", "q"]] = Field(
        default=None, description="Promotion piece when not given in `move`"
    )


class SearchRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1)
    evaluator: Optional[Literal["minimax", "alphabeta"]] = None
    movetime_ms: Optional[int] = Field(default=None, ge=1)


class SearchResponse(BaseModel):
    best_move: Optional[str]
    score: float
    pv: List[str]
    nodes: int
    depth: int
    time_ms: int
    evaluator: str
    game_over: bool


class PerftRequest(BaseModel):
    fen: str = STARTPOS_FEN
    depth: int = Field(default=1, ge=0, le=MAX_PERFT_DEPTH)
    legal: bool = True


class GameState(BaseModel):
    game_id: str
    fen: str
    side: str
    moves: List[str]
    legal_moves: List[str]
    in_check: bool
    game_over: bool
    evaluation: float
    last_move: Optional[str]
    move_history: List[str]


def create_app(config: Optional[EngineConfig] = None) -> FastAPI:
    config = config or EngineConfig.from_env()
    app = FastAPI(title="chesscore API", version="0.1.0")

    # Basic logging setup
    logging.basicConfig(level=getattr(logging, config.log_level))

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ChessCoreError, chess_error_handler)
    app.add_exception_handler(Exception, exception_handler)

    # In-memory session store for games
    store = InMemorySessionStore()
    service = SearchService(default_evaluator=config.default_evaluator)
    app.state.config = config
    app.state.store = store

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    def create_game() -> CreateGameResponse:
        game = Game.new()
        game_id = store.create(game)
        logger.info("game created", extra={"game_id": game_id})
        return CreateGameResponse(game_id=game_id, fen=game.to_fen())

    @app.delete("/api/games/{game_id}")
    def delete_game(game_id: str) -> Dict[str, str]:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        return {"status": "deleted"}

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    def get_state(game_id: str) -> GameState:
        with store.locked(game_id) as game:
            return _state(game_id, _require_game(game))

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        if store.get(game_id) is None:
            raise HTTPException(status_code=404, detail="game not found")
        try:
            game = Game.from_fen(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        # Build the state first so a position that cannot be served is never stored
        state = _state(game_id, game)
        try:
            store.set(game_id, game)
        except KeyError:
            raise HTTPException(status_code=404, detail="game not found")
        return state

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    def make_move(game_id: str, req: MoveRequest) -> GameState:
        text = req.move.strip()
        if req.promotion is not None and "=" not in text:
            text = f"{text}={req.promotion}"
        with store.locked(game_id) as game:
            game = _require_game(game)
            try:
                move = game.find_legal(text)
            except ChessCoreError:
                raise
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            game.apply_move(move)
            logger.info("move applied", extra={"game_id": game_id, "move": str(move)})
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    def undo(game_id: str) -> GameState:
        with store.locked(game_id) as game:
            game = _require_game(game)
            try:
                game.undo_move()
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/search", response_model=SearchResponse)
    def search(game_id: str, req: SearchRequest) -> SearchResponse:
        depth = req.depth or config.default_depth
        if depth > config.max_depth:
            raise HTTPException(
                status_code=400, detail=f"depth must be <= {config.max_depth}"
            )
        with store.locked(game_id) as game:
            game = _require_game(game)
            res = service.search(
                game, depth=depth, movetime_ms=req.movetime_ms, evaluator=req.evaluator
            )
        return SearchResponse(
            best_move=str(res.best_move) if res.best_move else None,
            score=res.score,
            pv=[str(m) for m in res.pv],
            nodes=res.nodes,
            depth=res.depth,
            time_ms=res.time_ms,
            evaluator=res.evaluator,
            game_over=res.game_over,
        )

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, int]:
        try:
            game = Game.from_fen(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        nodes = perft_nodes(game.board, req.depth, legal=req.legal)
        return {"nodes": nodes}

    return app


def _require_game(game: Optional[Game]) -> Game:
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


def _state(game_id: str, game: Game) -> GameState:
    last = game.last_move()
    return GameState(
        game_id=game_id,
        fen=game.to_fen(),
        side=game.board.side.token,
        moves=[str(m) for m in game.moves()],
        legal_moves=[str(m) for m in game.legal_moves()],
        in_check=game.in_check(),
        game_over=game.is_game_over(),
        evaluation=static_evaluation(game.board),
        last_move=str(last) if last is not None else None,
        move_history=game.move_history(),
    )

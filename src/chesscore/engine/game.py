from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from chesscore.errors import IllegalMoveError

from .board import STARTPOS_FEN, Board
from .move import Move, find_move
from .movegen import generate_moves, is_check, legal_moves
from .types import Color, PieceKind


@dataclass
class Game:
    """Game wrapper around a board with helper operations.

    Responsibility: track board state and move counters, validate and apply
    moves, undo them in LIFO order.
    """

    board: Board
    move_stack: List[Move] = field(default_factory=list)
    halfmove_clock: int = 0
    fullmove_number: int = 1
    # Halfmove clock before each move on the stack
    _clock_stack: List[int] = field(default_factory=list, repr=False)

    @classmethod
    def new(cls) -> "Game":
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        board = Board.from_fen(fen)
        # Board.from_fen has validated the counter fields
        halfmove, fullmove = fen.split()[4:6]
        return cls(board=board, halfmove_clock=int(halfmove), fullmove_number=int(fullmove))

    def to_fen(self) -> str:
        return self.board.to_fen(self.halfmove_clock, self.fullmove_number)

    def moves(self) -> List[Move]:
        """Pseudo-legal moves, in generation order."""
        return generate_moves(self.board)

    def legal_moves(self) -> List[Move]:
        return legal_moves(self.board)

    def find_legal(self, text: str) -> Move:
        """Resolve move ``text`` (``"e2-e4"``, ``"e7-e8=q"``).

        Raises:
            IllegalMoveError: If no legal move matches.
            ValueError: If ``text`` cannot be parsed.
        """
        move = find_move(self.legal_moves(), text)
        if move is None:
            raise IllegalMoveError(f"illegal move: {text}")
        return move

    def apply_move(self, move: Move) -> None:
        """Validate ``move`` against the legal moves and apply it."""
        # Match by squares so callers may pass moves built for another board
        match = None
        for m in self.legal_moves():
            if m.from_sq == move.from_sq and m.to_sq == move.to_sq and m.promotion == move.promotion:
                match = m
                break
        if match is None:
            raise IllegalMoveError(f"illegal move: {move}")
        self._push(match)

    def play(self, text: str) -> Move:
        """Apply the legal move named by ``text`` and return it."""
        move = self.find_legal(text)
        self._push(move)
        return move

    def _push(self, move: Move) -> None:
        self._clock_stack.append(self.halfmove_clock)
        if move.capture is not None or move.piece_kind is PieceKind.PAWN:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1
        if self.board.side is Color.BLACK:
            self.fullmove_number += 1
        self.board.apply_move(move)
        self.move_stack.append(move)

    def undo_move(self) -> Move:
        if not self.move_stack:
            raise ValueError("no moves to undo")
        last = self.move_stack.pop()
        self.board.revert_move(last)
        self.halfmove_clock = self._clock_stack.pop()
        if self.board.side is Color.BLACK:
            self.fullmove_number -= 1
        return last

    # --- State flags for protocol ---
    def in_check(self) -> bool:
        return is_check(self.board, self.board.side)

    def is_game_over(self) -> bool:
        """No generated moves for the side to move."""
        return self.board.is_game_over()

    def has_legal_moves(self) -> bool:
        return bool(self.legal_moves())

    def last_move(self) -> Optional[Move]:
        return self.move_stack[-1] if self.move_stack else None

    def move_history(self) -> List[str]:
        return [str(m) for m in self.move_stack]

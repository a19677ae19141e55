from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from chesscore.errors import BoardInvariantError, StaleMoveError

from .move import Move
from .movegen import generate_moves
from .types import (
    BoardCastleRights,
    Color,
    Piece,
    PieceKind,
    PieceOnBoard,
    Square,
)


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

BACK_RANK_KINDS = (
    PieceKind.ROOK,
    PieceKind.KNIGHT,
    PieceKind.BISHOP,
    PieceKind.QUEEN,
    PieceKind.KING,
    PieceKind.BISHOP,
    PieceKind.KNIGHT,
    PieceKind.ROOK,
)
FEN_PIECE_CHARS = "PNBRQKpnbrqk"


def _empty_index() -> List[Optional[int]]:
    return [None] * 64


@dataclass(eq=False)
class Board:
    """Mutable chess position.

    Notes:
    - Pieces live in a slot list; a 64-entry index maps each square to its
      slot, so add/remove/lookup are O(1). Vacated slots go on a LIFO free
      list, which makes ``revert_move`` put a captured piece back into the
      slot it left and keeps iteration order stable across apply/revert.
    - ``apply_move``/``revert_move`` must be used as a stack: every applied
      move is reverted, in reverse order, before siblings are explored.
    - Not safe to share between threads; use ``copy()`` per worker.
    """

    side: Color = Color.WHITE
    en_passant: Optional[Square] = None
    castle_rights: BoardCastleRights = field(default_factory=BoardCastleRights.none)
    _slots: List[Optional[PieceOnBoard]] = field(default_factory=list, repr=False)
    _free: List[int] = field(default_factory=list, repr=False)
    _index: List[Optional[int]] = field(default_factory=_empty_index, repr=False)

    # --- Construction ---
    @classmethod
    def create_empty(cls) -> "Board":
        return cls()

    @classmethod
    def from_pieces(
        cls,
        pieces: Iterable[PieceOnBoard],
        *,
        side: Color = Color.WHITE,
        en_passant: Optional[Square] = None,
        castle_rights: Optional[BoardCastleRights] = None,
    ) -> "Board":
        board = cls(
            side=side,
            en_passant=en_passant,
            castle_rights=castle_rights if castle_rights is not None else BoardCastleRights.none(),
        )
        board.add_pieces(pieces)
        return board

    @classmethod
    def create_populated(cls) -> "Board":
        """Create a board holding the standard 32-piece starting position."""
        board = cls(castle_rights=BoardCastleRights.all())
        for file in range(8):
            board.add_piece(PieceKind.PAWN.colored(Color.WHITE).at(file, 1))
            board.add_piece(PieceKind.PAWN.colored(Color.BLACK).at(file, 6))
        for file, kind in enumerate(BACK_RANK_KINDS):
            board.add_piece(kind.colored(Color.WHITE).at(file, 0))
            board.add_piece(kind.colored(Color.BLACK).at(file, 7))
        return board

    @classmethod
    def create_king_rooks(cls) -> "Board":
        """Kings and rooks on their home squares with all castle rights."""
        return cls.from_pieces(
            [
                PieceKind.ROOK.colored(Color.WHITE).at(0, 0),
                PieceKind.ROOK.colored(Color.WHITE).at(7, 0),
                PieceKind.ROOK.colored(Color.BLACK).at(0, 7),
                PieceKind.ROOK.colored(Color.BLACK).at(7, 7),
                PieceKind.KING.colored(Color.WHITE).at(4, 0),
                PieceKind.KING.colored(Color.BLACK).at(4, 7),
            ],
            castle_rights=BoardCastleRights.all(),
        )

    @classmethod
    def from_fen(cls, fen: str) -> "Board":
        """Create a board from a Forsyth–Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Board: Board instance initialized with state encoded in ``fen``.

        Raises:
            ValueError: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid piece placement, castling rights, en passant
                square, or move counters.

        Notes:
            Move counters are validated but not kept on the board; ``Game``
            tracks them.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise ValueError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        board = cls()
        for rank_idx, rank in enumerate(ranks[::-1]):  # start from rank 1 (bottom)
            file_idx = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    file_idx += n
                else:
                    if ch not in FEN_PIECE_CHARS:
                        raise ValueError(f"invalid piece in FEN: {ch!r}")
                    if file_idx >= 8:
                        raise ValueError("too many squares in FEN rank")
                    board.add_piece(Piece.from_symbol(ch).at(file_idx, rank_idx))
                    file_idx += 1
            if file_idx != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")

        if stm not in ("w", "b"):
            raise ValueError("side to move must be 'w' or 'b'")
        board.side = Color.WHITE if stm == "w" else Color.BLACK

        board.castle_rights = BoardCastleRights.from_fen(castling)

        if ep != "-":
            try:
                ep_square = Square.parse(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            # The pawn that just double-pushed stands one step past the target
            pusher = board.side.switch()
            if ep_square.rank != pusher.home_rank + pusher.forward:
                raise ValueError("invalid en passant square rank")
            if board.has_piece_at(ep_square):
                raise ValueError("en passant square is occupied")
            if board.piece_at(ep_square.delta(0, pusher.forward)) != Piece(PieceKind.PAWN, pusher):
                raise ValueError("en passant square has no pawn behind it")
            board.en_passant = ep_square

        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise ValueError("invalid move counters in FEN")
        return board

    def to_fen(self, halfmove_clock: int = 0, fullmove_number: int = 1) -> str:
        """Serialize the position into a FEN string.

        Returns:
            str: FEN string describing the board state.
        """
        ranks_str: List[str] = []
        for rank_idx in range(7, -1, -1):
            run = 0
            row = []
            for file_idx in range(8):
                piece = self.piece_at(Square(file_idx, rank_idx))
                if piece is None:
                    run += 1
                else:
                    if run > 0:
                        row.append(str(run))
                        run = 0
                    row.append(piece.symbol)
            if run > 0:
                row.append(str(run))
            ranks_str.append("".join(row))
        placement = "/".join(ranks_str)
        ep = self.en_passant.name() if self.en_passant is not None else "-"
        castling = self.castle_rights.to_fen()
        return f"{placement} {self.side.token} {castling} {ep} {halfmove_clock} {fullmove_number}"

    def copy(self) -> "Board":
        """Return an independent deep copy (pieces and squares are immutable)."""
        return Board(
            side=self.side,
            en_passant=self.en_passant,
            castle_rights=self.castle_rights,
            _slots=list(self._slots),
            _free=list(self._free),
            _index=list(self._index),
        )

    # --- Piece storage ---
    def add_piece(self, pob: PieceOnBoard) -> None:
        sq = pob.square
        if not sq.is_on_board():
            raise BoardInvariantError(f"cannot place {pob.piece!r} off the board at {sq!r}")
        if self._index[sq.idx] is not None:
            raise BoardInvariantError(f"square {sq!r} is already occupied")
        if self._free:
            slot = self._free.pop()
            self._slots[slot] = pob
        else:
            slot = len(self._slots)
            self._slots.append(pob)
        self._index[sq.idx] = slot

    def add_pieces(self, pieces: Iterable[PieceOnBoard]) -> None:
        for pob in pieces:
            self.add_piece(pob)

    def remove_piece(self, square: Square) -> PieceOnBoard:
        slot = self._slot_at(square)
        if slot is None:
            raise BoardInvariantError(f"no piece on {square!r}")
        pob = self._slots[slot]
        assert pob is not None
        self._slots[slot] = None
        self._index[square.idx] = None
        self._free.append(slot)
        return pob

    def _slot_at(self, square: Square) -> Optional[int]:
        if not (0 <= square.file < 8 and 0 <= square.rank < 8):
            return None
        return self._index[square.rank * 8 + square.file]

    def piece_at(self, square: Square) -> Optional[Piece]:
        slot = self._slot_at(square)
        if slot is None:
            return None
        pob = self._slots[slot]
        assert pob is not None
        return pob.piece

    def has_piece_at(self, square: Square) -> bool:
        return self._slot_at(square) is not None

    def pieces(self) -> List[PieceOnBoard]:
        """Pieces in iteration (slot) order."""
        return [pob for pob in self._slots if pob is not None]

    def king_square(self, color: Color) -> Optional[Square]:
        for piece, square in self.pieces():
            if piece.kind is PieceKind.KING and piece.color is color:
                return square
        return None

    def _relocate(self, from_sq: Square, to_sq: Square, kind: Optional[PieceKind] = None) -> None:
        slot = self._slot_at(from_sq)
        if slot is None:
            raise BoardInvariantError(f"no piece to move from {from_sq!r}")
        if not to_sq.is_on_board():
            raise BoardInvariantError(f"destination {to_sq!r} is off the board")
        if self._index[to_sq.idx] is not None:
            raise BoardInvariantError(f"destination {to_sq!r} is occupied")
        pob = self._slots[slot]
        assert pob is not None
        piece = pob.piece if kind is None else Piece(kind, pob.piece.color)
        self._slots[slot] = PieceOnBoard(piece, to_sq)
        self._index[from_sq.idx] = None
        self._index[to_sq.idx] = slot

    # --- Move application ---
    def apply_move(self, move: Move) -> None:
        """Apply ``move`` in place.

        Raises:
            StaleMoveError: If the move was generated for another en passant
                state.
            BoardInvariantError: If the moving piece, capture or destination
                do not match the board.
        """
        if move.en_passant_before != self.en_passant:
            raise StaleMoveError(
                f"move {move} expects en passant {move.en_passant_before!r}, "
                f"board has {self.en_passant!r}"
            )
        mover = self.piece_at(move.from_sq)
        if mover is None or mover.color is not self.side:
            raise BoardInvariantError(f"no {self.side.name.lower()} piece on {move.from_sq!r}")
        if mover.kind is not move.piece_kind:
            raise BoardInvariantError(f"expected {move.piece_kind.name} on {move.from_sq!r}")

        # Validate before touching the board so a failed apply leaves it intact
        freed = None
        if move.capture is not None:
            slot = self._slot_at(move.capture.square)
            if slot is None or self._slots[slot] != move.capture:
                raise BoardInvariantError(f"capture target {move.capture!r} not on board")
            freed = move.capture.square
        if move.to_sq != freed and self.has_piece_at(move.to_sq):
            raise BoardInvariantError(f"destination {move.to_sq!r} is occupied")
        if freed is not None:
            self.remove_piece(freed)

        self._apply_move_impl(move)
        self.en_passant = move.en_passant_after
        self.castle_rights = move.castle_rights_after(self.side)
        self.side = self.side.switch()

    def _apply_move_impl(self, move: Move) -> None:
        piece = self.piece_at(move.from_sq)
        if piece is None or piece.kind is not move.piece_kind:
            raise BoardInvariantError(f"expected {move.piece_kind.name} on {move.from_sq!r}")
        if move.castle is not None:
            self._apply_move_impl(Move.rook_castle(self, move.castle, move.from_sq.rank))
        self._relocate(move.from_sq, move.to_sq, move.promotion)

    def revert_move(self, move: Move) -> None:
        """Undo ``move``, which must be the last move applied to this board."""
        self._revert_move_impl(move)
        if move.capture is not None:
            if self.has_piece_at(move.capture.square):
                raise BoardInvariantError(f"cannot restore capture on occupied {move.capture.square!r}")
            self.add_piece(move.capture)
        self.side = self.side.switch()
        self.en_passant = move.en_passant_before
        self.castle_rights = move.castle_rights_before

    def _revert_move_impl(self, move: Move) -> None:
        expected = move.promotion if move.promotion is not None else move.piece_kind
        piece = self.piece_at(move.to_sq)
        if piece is None or piece.kind is not expected:
            raise BoardInvariantError(f"expected {expected.name} on {move.to_sq!r}")
        if move.castle is not None:
            self._revert_move_impl(Move.rook_castle(self, move.castle, move.from_sq.rank))
        demote = PieceKind.PAWN if move.promotion is not None else None
        self._relocate(move.to_sq, move.from_sq, demote)

    # --- Queries ---
    def is_game_over(self) -> bool:
        """True when the side to move has no generated moves.

        Checkmate and stalemate are not told apart.
        """
        return not generate_moves(self)

    def semantic_eq(self, other: "Board") -> bool:
        """Equality that ignores piece iteration order."""
        if (
            self.side != other.side
            or self.en_passant != other.en_passant
            or self.castle_rights != other.castle_rights
        ):
            return False
        return sorted(self.pieces()) == sorted(other.pieces())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (
            self.side == other.side
            and self.en_passant == other.en_passant
            and self.castle_rights == other.castle_rights
            and self.pieces() == other.pieces()
        )

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from .types import (
    BoardCastleRights,
    Castle,
    Color,
    ColorCastleRights,
    PieceKind,
    PieceOnBoard,
    Square,
)

if TYPE_CHECKING:
    from .board import Board


@dataclass(frozen=True)
class Move:
    """Engine-internal move representation.

    A move snapshots the en passant square and castle rights of the board it
    was generated from, so ``Board.revert_move`` can restore them without
    recomputation. The same value must be passed to ``apply_move`` and later
    to ``revert_move``.

    Attributes:
        from_sq (Square): Origin square.
        to_sq (Square): Destination square.
        piece_kind (PieceKind): Kind of the moving piece before promotion.
        capture (Optional[PieceOnBoard]): Captured piece with its square. The
            square differs from ``to_sq`` for en passant captures.
        promotion (Optional[PieceKind]): Kind the pawn turns into.
        castle (Optional[Castle]): Castle side for king castling moves.
        en_passant_after (Optional[Square]): Skipped square of a double push.
        en_passant_before (Optional[Square]): Board en passant at generation.
        castle_rights_before (BoardCastleRights): Board rights at generation.
    """

    from_sq: Square
    to_sq: Square
    piece_kind: PieceKind
    capture: Optional[PieceOnBoard] = None
    promotion: Optional[PieceKind] = None
    castle: Optional[Castle] = None
    en_passant_after: Optional[Square] = None
    en_passant_before: Optional[Square] = None
    castle_rights_before: BoardCastleRights = BoardCastleRights()

    @classmethod
    def from_to(cls, board: "Board", piece_kind: PieceKind, from_sq: Square, to_sq: Square) -> "Move":
        return cls(
            from_sq=from_sq,
            to_sq=to_sq,
            piece_kind=piece_kind,
            en_passant_before=board.en_passant,
            castle_rights_before=board.castle_rights,
        )

    @classmethod
    def from_to_capture(
        cls,
        board: "Board",
        piece_kind: PieceKind,
        from_sq: Square,
        to_sq: Square,
        capture: PieceOnBoard,
    ) -> "Move":
        return replace(cls.from_to(board, piece_kind, from_sq, to_sq), capture=capture)

    @classmethod
    def from_to_en_passant(
        cls, board: "Board", from_sq: Square, to_sq: Square, en_passant: Square
    ) -> "Move":
        """Double pawn push that opens ``en_passant`` for the opponent."""
        return replace(
            cls.from_to(board, PieceKind.PAWN, from_sq, to_sq), en_passant_after=en_passant
        )

    @classmethod
    def promotion_move(
        cls, board: "Board", from_sq: Square, to_sq: Square, promotion: PieceKind
    ) -> "Move":
        return replace(cls.from_to(board, PieceKind.PAWN, from_sq, to_sq), promotion=promotion)

    @classmethod
    def promotion_capture(
        cls,
        board: "Board",
        from_sq: Square,
        to_sq: Square,
        capture: PieceOnBoard,
        promotion: PieceKind,
    ) -> "Move":
        return replace(
            cls.from_to(board, PieceKind.PAWN, from_sq, to_sq),
            capture=capture,
            promotion=promotion,
        )

    @classmethod
    def castle_move(cls, board: "Board", color: Color, castle: Castle) -> "Move":
        """King move of a castle; the rook follows at apply time."""
        rank = color.back_rank
        file = 6 if castle is Castle.KING_SIDE else 2
        m = cls.from_to(board, PieceKind.KING, Square(4, rank), Square(file, rank))
        return replace(m, castle=castle)

    @classmethod
    def rook_castle(cls, board: "Board", castle: Castle, rank: int) -> "Move":
        """Rook relocation that accompanies a castle on ``rank``."""
        if rank not in (0, 7):
            raise ValueError(f"castle rank must be a back rank, got {rank}")
        if castle is Castle.KING_SIDE:
            return cls.from_to(board, PieceKind.ROOK, Square(7, rank), Square(5, rank))
        return cls.from_to(board, PieceKind.ROOK, Square(0, rank), Square(3, rank))

    def castle_rights_after(self, side: Color) -> BoardCastleRights:
        """Rights once ``side`` has played this move."""
        rights = self.castle_rights_before
        other = side.switch()

        if self.piece_kind is PieceKind.KING:
            rights = rights.with_rights(side, ColorCastleRights.none())
        elif self.piece_kind is PieceKind.ROOK:
            if self.from_sq == Square(7, side.back_rank):
                rights = rights.with_rights(side, rights.get(side).without(Castle.KING_SIDE))
            elif self.from_sq == Square(0, side.back_rank):
                rights = rights.with_rights(side, rights.get(side).without(Castle.QUEEN_SIDE))

        if self.capture is not None:
            cap_sq = self.capture.square
            if cap_sq == Square(7, other.back_rank):
                rights = rights.with_rights(other, rights.get(other).without(Castle.KING_SIDE))
            elif cap_sq == Square(0, other.back_rank):
                rights = rights.with_rights(other, rights.get(other).without(Castle.QUEEN_SIDE))

        return rights

    def long_algebraic(self) -> str:
        """Render the squares with ``Square.algebraic``, like ``"a1-a3"``."""
        return self.from_sq.algebraic() + "-" + self.to_sq.algebraic()

    def notation(self) -> str:
        """Standard move text, like ``"e2-e4"`` or ``"e7-e8=q"``.

        This is the form the HTTP API and ``Game`` read and write.
        """
        s = self.from_sq.name() + "-" + self.to_sq.name()
        if self.promotion is not None:
            s += "=" + self.promotion.token
        return s

    def __str__(self) -> str:
        return self.notation()


def parse_notation(text: str) -> Tuple[Square, Square, Optional[PieceKind]]:
    """Parse move text as rendered by ``Move.notation``.

    Accepts ``"e2-e4"`` and an optional promotion suffix (``"b7-b8=q"``).

    Returns:
        Tuple[Square, Square, Optional[PieceKind]]: Origin, destination and
            promotion kind.

    Raises:
        ValueError: If the squares or the promotion piece are invalid.
    """
    text = text.strip()
    promo: Optional[PieceKind] = None
    if "=" in text:
        text, promo_token = text.split("=", 1)
        promo = PieceKind.from_token(promo_token)
        if promo not in (PieceKind.KNIGHT, PieceKind.BISHOP, PieceKind.ROOK, PieceKind.QUEEN):
            raise ValueError(f"invalid promotion piece: {promo_token!r}")
    parts = text.split("-")
    if len(parts) != 2:
        raise ValueError(f"invalid move text: {text!r}")
    return Square.parse(parts[0]), Square.parse(parts[1]), promo


def find_move(moves: Iterable[Move], text: str) -> Optional[Move]:
    """Return the move in ``moves`` matching ``text``, if any.

    A promotion move only matches when the promotion kind is given.
    """
    from_sq, to_sq, promo = parse_notation(text)
    for m in moves:
        if m.from_sq == from_sq and m.to_sq == to_sq and m.promotion == promo:
            return m
    return None

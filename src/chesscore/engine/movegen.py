"""Pseudo-legal move generation and check detection.

Generation order is deterministic and part of the contract, since search
keeps the first of equally scored moves:

- pieces are visited in board iteration order, skipping the opponent;
- pawn: single push, double push, then for file delta -1 and +1 the
  diagonal capture followed by the en passant capture; moves onto the
  promotion rank expand to knight, bishop, rook, queen;
- rook rays ``ROOK_DIRECTIONS``; bishop rays ``BISHOP_DIRECTIONS``; queen
  rook rays then bishop rays;
- knight offsets ``KNIGHT_OFFSETS``;
- king offsets ``KING_OFFSETS``, then king-side and queen-side castling
  (king on its home square, right held, gap empty, own rook in the corner).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

from .move import Move
from .types import (
    PROMOTION_KINDS,
    Castle,
    Color,
    Piece,
    PieceKind,
    PieceOnBoard,
    Square,
)

if TYPE_CHECKING:
    from .board import Board


ROOK_DIRECTIONS: Tuple[Tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))
BISHOP_DIRECTIONS: Tuple[Tuple[int, int], ...] = ((1, 1), (-1, 1), (-1, -1), (1, -1))
QUEEN_DIRECTIONS = ROOK_DIRECTIONS + BISHOP_DIRECTIONS
KNIGHT_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-2, -1),
    (-1, -2),
    (1, -2),
    (2, -1),
    (2, 1),
    (1, 2),
    (-1, 2),
    (-2, 1),
)
KING_OFFSETS = QUEEN_DIRECTIONS

# Files that must be empty between king and rook
CASTLE_GAPS = {
    Castle.KING_SIDE: (5, 6),
    Castle.QUEEN_SIDE: (3, 2, 1),
}


def _try_square(board: "Board", piece: Piece, from_sq: Square, to_sq: Square, moves: List[Move]) -> bool:
    """Add the move to ``to_sq`` if it is on board and not own-occupied.

    Returns True when the target square was empty (a ray may continue).
    """
    if not to_sq.is_on_board():
        return False
    target = board.piece_at(to_sq)
    if target is None:
        moves.append(Move.from_to(board, piece.kind, from_sq, to_sq))
        return True
    if target.color is not piece.color:
        moves.append(
            Move.from_to_capture(board, piece.kind, from_sq, to_sq, PieceOnBoard(target, to_sq))
        )
    return False


def _slide(
    board: "Board",
    piece: Piece,
    from_sq: Square,
    directions: Tuple[Tuple[int, int], ...],
    moves: List[Move],
) -> None:
    for df, dr in directions:
        to_sq = from_sq.delta(df, dr)
        while _try_square(board, piece, from_sq, to_sq, moves):
            to_sq = to_sq.delta(df, dr)


def _step(
    board: "Board",
    piece: Piece,
    from_sq: Square,
    offsets: Tuple[Tuple[int, int], ...],
    moves: List[Move],
) -> None:
    for df, dr in offsets:
        _try_square(board, piece, from_sq, from_sq.delta(df, dr), moves)


def _pawn_move(
    board: "Board",
    piece: Piece,
    from_sq: Square,
    to_sq: Square,
    capture: Optional[PieceOnBoard],
    moves: List[Move],
) -> None:
    if to_sq.rank == piece.color.promotion_rank:
        for promo in PROMOTION_KINDS:
            if capture is not None:
                moves.append(Move.promotion_capture(board, from_sq, to_sq, capture, promo))
            else:
                moves.append(Move.promotion_move(board, from_sq, to_sq, promo))
    elif capture is not None:
        moves.append(Move.from_to_capture(board, PieceKind.PAWN, from_sq, to_sq, capture))
    else:
        moves.append(Move.from_to(board, PieceKind.PAWN, from_sq, to_sq))


def _pawn_moves(board: "Board", piece: Piece, from_sq: Square, moves: List[Move]) -> None:
    forward = piece.color.forward

    one = from_sq.delta(0, forward)
    if one.is_on_board() and not board.has_piece_at(one):
        _pawn_move(board, piece, from_sq, one, None, moves)
        two = from_sq.delta(0, 2 * forward)
        if from_sq.rank == piece.color.home_rank and two.is_on_board() and not board.has_piece_at(two):
            moves.append(Move.from_to_en_passant(board, from_sq, two, one))

    for df in (-1, 1):
        target_sq = from_sq.delta(df, forward)
        target = board.piece_at(target_sq)
        if target is not None and target.color is not piece.color:
            _pawn_move(board, piece, from_sq, target_sq, PieceOnBoard(target, target_sq), moves)

        if board.en_passant is not None and board.en_passant == target_sq and target is None:
            victim_sq = from_sq.delta(df, 0)
            victim = board.piece_at(victim_sq)
            if (
                victim is not None
                and victim.kind is PieceKind.PAWN
                and victim.color is not piece.color
            ):
                moves.append(
                    Move.from_to_capture(
                        board, PieceKind.PAWN, from_sq, target_sq, PieceOnBoard(victim, victim_sq)
                    )
                )


def _king_moves(board: "Board", piece: Piece, from_sq: Square, moves: List[Move]) -> None:
    _step(board, piece, from_sq, KING_OFFSETS, moves)

    rights = board.castle_rights.get(piece.color)
    rank = piece.color.back_rank
    if from_sq != Square(4, rank):
        return
    for castle in (Castle.KING_SIDE, Castle.QUEEN_SIDE):
        if not rights.test(castle):
            continue
        if any(board.has_piece_at(Square(f, rank)) for f in CASTLE_GAPS[castle]):
            continue
        rook_file = 7 if castle is Castle.KING_SIDE else 0
        if board.piece_at(Square(rook_file, rank)) != Piece(PieceKind.ROOK, piece.color):
            continue
        moves.append(Move.castle_move(board, piece.color, castle))


def generate_moves(board: "Board") -> List[Move]:
    """Return all pseudo-legal moves for the side to move.

    Moves that leave the mover's own king attacked are included; use
    ``legal_moves`` to filter them.
    """
    moves: List[Move] = []
    for piece, square in board.pieces():
        if piece.color is not board.side:
            continue
        kind = piece.kind
        if kind is PieceKind.PAWN:
            _pawn_moves(board, piece, square, moves)
        elif kind is PieceKind.ROOK:
            _slide(board, piece, square, ROOK_DIRECTIONS, moves)
        elif kind is PieceKind.BISHOP:
            _slide(board, piece, square, BISHOP_DIRECTIONS, moves)
        elif kind is PieceKind.QUEEN:
            _slide(board, piece, square, QUEEN_DIRECTIONS, moves)
        elif kind is PieceKind.KNIGHT:
            _step(board, piece, square, KNIGHT_OFFSETS, moves)
        elif kind is PieceKind.KING:
            _king_moves(board, piece, square, moves)
        # DUMMY pieces never move
    return moves


def _first_on_ray(board: "Board", start: Square, df: int, dr: int) -> Optional[Piece]:
    sq = start.delta(df, dr)
    while sq.is_on_board():
        piece = board.piece_at(sq)
        if piece is not None:
            return piece
        sq = sq.delta(df, dr)
    return None


def _attacked_by(board: "Board", square: Square, attacker: Color, include_king: bool) -> bool:
    """Return True if ``attacker`` attacks ``square``.

    Covers: slider rays, knights, pawns and, with ``include_king``, the
    enemy king's adjacency.
    """
    for df, dr in ROOK_DIRECTIONS:
        p = _first_on_ray(board, square, df, dr)
        if p is not None and p.color is attacker and p.kind in (PieceKind.ROOK, PieceKind.QUEEN):
            return True
    for df, dr in BISHOP_DIRECTIONS:
        p = _first_on_ray(board, square, df, dr)
        if p is not None and p.color is attacker and p.kind in (PieceKind.BISHOP, PieceKind.QUEEN):
            return True
    for df, dr in KNIGHT_OFFSETS:
        p = board.piece_at(square.delta(df, dr))
        if p is not None and p.color is attacker and p.kind is PieceKind.KNIGHT:
            return True
    # A pawn attacks diagonally along its own forward direction, so it sits
    # one step against that direction from the attacked square.
    back = -attacker.forward
    for df in (-1, 1):
        p = board.piece_at(square.delta(df, back))
        if p is not None and p.color is attacker and p.kind is PieceKind.PAWN:
            return True
    if include_king:
        for df, dr in KING_OFFSETS:
            p = board.piece_at(square.delta(df, dr))
            if p is not None and p.color is attacker and p.kind is PieceKind.KING:
                return True
    return False


def is_check(board: "Board", color: Color) -> bool:
    """Return True if ``color``'s king is attacked by a rook, bishop, queen,
    knight or pawn of the other color.

    Returns False when ``color`` has no king on the board.
    """
    king_sq = board.king_square(color)
    if king_sq is None:
        return False
    return _attacked_by(board, king_sq, color.switch(), include_king=False)


def legal_moves(board: "Board") -> List[Move]:
    """Return generated moves that do not leave the mover's king attacked.

    Each candidate is applied and reverted on ``board`` itself.
    """
    mover = board.side
    legal: List[Move] = []
    for m in generate_moves(board):
        board.apply_move(m)
        try:
            king_sq = board.king_square(mover)
            exposed = king_sq is not None and _attacked_by(
                board, king_sq, mover.switch(), include_king=True
            )
        finally:
            board.revert_move(m)
        if not exposed:
            legal.append(m)
    return legal

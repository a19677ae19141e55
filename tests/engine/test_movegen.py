from __future__ import annotations

from chesscore.engine.board import Board, STARTPOS_FEN
from chesscore.engine.move import Move
from chesscore.engine.movegen import generate_moves, legal_moves
from chesscore.engine.types import BoardCastleRights, Castle, Color, ColorCastleRights, PieceKind, Square

WP = PieceKind.PAWN.colored(Color.WHITE)
BP = PieceKind.PAWN.colored(Color.BLACK)
WD = PieceKind.DUMMY.colored(Color.WHITE)
BD = PieceKind.DUMMY.colored(Color.BLACK)


def _quiet(b: Board, kind: PieceKind, frm: tuple, to: tuple) -> Move:
    return Move.from_to(b, kind, Square(*frm), Square(*to))


def _take(b: Board, kind: PieceKind, frm: tuple, to: tuple) -> Move:
    return Move.from_to_capture(b, kind, Square(*frm), Square(*to), BP.at(*to))


def test_startpos_has_twenty_moves() -> None:
    assert len(generate_moves(Board.from_fen(STARTPOS_FEN))) == 20


def test_pawn_pushes() -> None:
    b = Board.from_pieces([BP.at(0, 6), WP.at(2, 1), WP.at(3, 2)])
    assert generate_moves(b) == [
        _quiet(b, PieceKind.PAWN, (2, 1), (2, 2)),
        Move.from_to_en_passant(b, Square(2, 1), Square(2, 3), Square(2, 2)),
        _quiet(b, PieceKind.PAWN, (3, 2), (3, 3)),
    ]

    b.side = Color.BLACK
    assert generate_moves(b) == [
        _quiet(b, PieceKind.PAWN, (0, 6), (0, 5)),
        Move.from_to_en_passant(b, Square(0, 6), Square(0, 4), Square(0, 5)),
    ]


def test_pawn_pushes_blocked() -> None:
    b = Board.from_pieces(
        [
            BP.at(0, 6),
            WD.at(0, 4),
            BP.at(5, 3),
            WD.at(5, 2),
            WP.at(2, 1),
            WD.at(2, 2),
            WP.at(3, 1),
            WD.at(3, 3),
        ]
    )
    assert generate_moves(b) == [_quiet(b, PieceKind.PAWN, (3, 1), (3, 2))]

    b.side = Color.BLACK
    assert generate_moves(b) == [_quiet(b, PieceKind.PAWN, (0, 6), (0, 5))]


def test_pawn_capture() -> None:
    b = Board.from_pieces([BP.at(0, 6), WP.at(0, 5), WP.at(1, 5)], side=Color.BLACK)
    assert generate_moves(b) == [
        Move.from_to_capture(b, PieceKind.PAWN, Square(0, 6), Square(1, 5), WP.at(1, 5)),
    ]


def test_pawn_en_passant() -> None:
    b = Board.from_pieces(
        [WP.at(1, 4), BP.at(2, 4), BP.at(4, 3), WP.at(5, 3), BP.at(7, 3)],
        en_passant=Square(2, 5),
    )
    assert generate_moves(b) == [
        _quiet(b, PieceKind.PAWN, (1, 4), (1, 5)),
        Move.from_to_capture(b, PieceKind.PAWN, Square(1, 4), Square(2, 5), BP.at(2, 4)),
        _quiet(b, PieceKind.PAWN, (5, 3), (5, 4)),
    ]

    b.side = Color.BLACK
    b.en_passant = Square(5, 2)
    assert generate_moves(b) == [
        _quiet(b, PieceKind.PAWN, (2, 4), (2, 3)),
        _quiet(b, PieceKind.PAWN, (4, 3), (4, 2)),
        Move.from_to_capture(b, PieceKind.PAWN, Square(4, 3), Square(5, 2), WP.at(5, 3)),
        _quiet(b, PieceKind.PAWN, (7, 3), (7, 2)),
    ]


def test_en_passant_needs_a_victim() -> None:
    b = Board.from_pieces([WP.at(1, 4)], en_passant=Square(2, 5))
    assert generate_moves(b) == [_quiet(b, PieceKind.PAWN, (1, 4), (1, 5))]


def test_en_passant_victim_must_be_a_pawn() -> None:
    b = Board.from_pieces(
        [WP.at(3, 4), PieceKind.KNIGHT.colored(Color.BLACK).at(4, 4)],
        en_passant=Square(4, 5),
    )
    assert generate_moves(b) == [_quiet(b, PieceKind.PAWN, (3, 4), (3, 5))]


def test_en_passant_target_must_be_empty() -> None:
    knight = PieceKind.KNIGHT.colored(Color.BLACK)
    b = Board.from_pieces([WP.at(3, 4), BP.at(4, 4), knight.at(4, 5)], en_passant=Square(4, 5))
    assert generate_moves(b) == [
        _quiet(b, PieceKind.PAWN, (3, 4), (3, 5)),
        Move.from_to_capture(b, PieceKind.PAWN, Square(3, 4), Square(4, 5), knight.at(4, 5)),
    ]


def test_promotion_expands_in_fixed_order() -> None:
    kinds = [PieceKind.KNIGHT, PieceKind.BISHOP, PieceKind.ROOK, PieceKind.QUEEN]

    b = Board.from_pieces([WP.at(1, 6), BP.at(2, 7)])
    expected = [Move.promotion_move(b, Square(1, 6), Square(1, 7), k) for k in kinds]
    expected += [
        Move.promotion_capture(b, Square(1, 6), Square(2, 7), BP.at(2, 7), k) for k in kinds
    ]
    assert generate_moves(b) == expected

    b = Board.from_pieces([BP.at(1, 1), WP.at(2, 0)], side=Color.BLACK)
    expected = [Move.promotion_move(b, Square(1, 1), Square(1, 0), k) for k in kinds]
    expected += [
        Move.promotion_capture(b, Square(1, 1), Square(2, 0), WP.at(2, 0), k) for k in kinds
    ]
    assert generate_moves(b) == expected


def test_rook_rays() -> None:
    R = PieceKind.ROOK
    b = Board.from_pieces([R.colored(Color.WHITE).at(3, 3), WD.at(3, 5), BP.at(1, 3)])
    assert generate_moves(b) == [
        _quiet(b, R, (3, 3), (4, 3)),
        _quiet(b, R, (3, 3), (5, 3)),
        _quiet(b, R, (3, 3), (6, 3)),
        _quiet(b, R, (3, 3), (7, 3)),
        _quiet(b, R, (3, 3), (2, 3)),
        _take(b, R, (3, 3), (1, 3)),
        _quiet(b, R, (3, 3), (3, 4)),
        _quiet(b, R, (3, 3), (3, 2)),
        _quiet(b, R, (3, 3), (3, 1)),
        _quiet(b, R, (3, 3), (3, 0)),
    ]


def test_bishop_rays() -> None:
    B = PieceKind.BISHOP
    b = Board.from_pieces([B.colored(Color.WHITE).at(3, 3), WD.at(1, 1), BP.at(1, 5)])
    assert generate_moves(b) == [
        _quiet(b, B, (3, 3), (4, 4)),
        _quiet(b, B, (3, 3), (5, 5)),
        _quiet(b, B, (3, 3), (6, 6)),
        _quiet(b, B, (3, 3), (7, 7)),
        _quiet(b, B, (3, 3), (2, 4)),
        _take(b, B, (3, 3), (1, 5)),
        _quiet(b, B, (3, 3), (2, 2)),
        _quiet(b, B, (3, 3), (4, 2)),
        _quiet(b, B, (3, 3), (5, 1)),
        _quiet(b, B, (3, 3), (6, 0)),
    ]


def test_queen_is_rook_then_bishop() -> None:
    Q = PieceKind.QUEEN
    b = Board.from_pieces(
        [Q.colored(Color.WHITE).at(3, 3), WD.at(1, 1), BP.at(1, 5), WD.at(3, 5), BP.at(1, 3)]
    )
    moves = generate_moves(b)
    targets = [(m.to_sq.file, m.to_sq.rank) for m in moves]
    assert targets == [
        (4, 3), (5, 3), (6, 3), (7, 3), (2, 3), (1, 3), (3, 4), (3, 2), (3, 1), (3, 0),
        (4, 4), (5, 5), (6, 6), (7, 7), (2, 4), (1, 5), (2, 2), (4, 2), (5, 1), (6, 0),
    ]
    assert [m.capture is not None for m in moves].count(True) == 2


def test_king_steps() -> None:
    K = PieceKind.KING
    b = Board.from_pieces([K.colored(Color.WHITE).at(3, 2)])
    assert generate_moves(b) == [
        _quiet(b, K, (3, 2), (4, 2)),
        _quiet(b, K, (3, 2), (2, 2)),
        _quiet(b, K, (3, 2), (3, 3)),
        _quiet(b, K, (3, 2), (3, 1)),
        _quiet(b, K, (3, 2), (4, 3)),
        _quiet(b, K, (3, 2), (2, 3)),
        _quiet(b, K, (3, 2), (2, 1)),
        _quiet(b, K, (3, 2), (4, 1)),
    ]

    b = Board.from_pieces([K.colored(Color.WHITE).at(3, 0), WD.at(4, 0), BP.at(2, 1)])
    assert generate_moves(b) == [
        _quiet(b, K, (3, 0), (2, 0)),
        _quiet(b, K, (3, 0), (3, 1)),
        _quiet(b, K, (3, 0), (4, 1)),
        _take(b, K, (3, 0), (2, 1)),
    ]


def test_castling_follows_rights() -> None:
    b = Board.from_pieces(
        [
            PieceKind.KING.colored(Color.WHITE).at(4, 0),
            PieceKind.ROOK.colored(Color.WHITE).at(0, 0),
            PieceKind.ROOK.colored(Color.WHITE).at(7, 0),
        ]
    )

    def castles() -> list:
        moves = generate_moves(b)
        return [
            c
            for c in (Castle.KING_SIDE, Castle.QUEEN_SIDE)
            if Move.castle_move(b, Color.WHITE, c) in moves
        ]

    assert castles() == []
    b.castle_rights = BoardCastleRights(ColorCastleRights(True, False), ColorCastleRights.none())
    assert castles() == [Castle.KING_SIDE]
    b.castle_rights = BoardCastleRights(ColorCastleRights.all(), ColorCastleRights.none())
    assert castles() == [Castle.KING_SIDE, Castle.QUEEN_SIDE]
    b.castle_rights = BoardCastleRights.all()
    assert castles() == [Castle.KING_SIDE, Castle.QUEEN_SIDE]


def test_castling_blocked_by_any_piece_between() -> None:
    def board_with(extra=None) -> Board:
        pieces = [
            PieceKind.KING.colored(Color.BLACK).at(4, 7),
            PieceKind.ROOK.colored(Color.BLACK).at(0, 7),
            PieceKind.ROOK.colored(Color.BLACK).at(7, 7),
        ]
        if extra is not None:
            pieces.append(extra)
        return Board.from_pieces(pieces, side=Color.BLACK, castle_rights=BoardCastleRights.all())

    def has(b: Board, castle: Castle) -> bool:
        return Move.castle_move(b, Color.BLACK, castle) in generate_moves(b)

    b = board_with()
    assert has(b, Castle.KING_SIDE) and has(b, Castle.QUEEN_SIDE)

    b = board_with(BD.at(1, 7))
    assert has(b, Castle.KING_SIDE) and not has(b, Castle.QUEEN_SIDE)

    b = board_with(WD.at(5, 7))
    assert not has(b, Castle.KING_SIDE) and has(b, Castle.QUEEN_SIDE)


def test_castling_needs_rook_in_corner() -> None:
    b = Board.from_pieces(
        [PieceKind.KING.colored(Color.WHITE).at(4, 0)], castle_rights=BoardCastleRights.all()
    )
    assert all(m.castle is None for m in generate_moves(b))


def test_knight_jumps() -> None:
    N = PieceKind.KNIGHT
    b = Board.from_pieces([N.colored(Color.WHITE).at(3, 4), BP.at(4, 3), BP.at(4, 4), BP.at(5, 3)])
    assert generate_moves(b) == [
        _quiet(b, N, (3, 4), (1, 3)),
        _quiet(b, N, (3, 4), (2, 2)),
        _quiet(b, N, (3, 4), (4, 2)),
        _take(b, N, (3, 4), (5, 3)),
        _quiet(b, N, (3, 4), (5, 5)),
        _quiet(b, N, (3, 4), (4, 6)),
        _quiet(b, N, (3, 4), (2, 6)),
        _quiet(b, N, (3, 4), (1, 5)),
    ]

    b = Board.from_pieces([N.colored(Color.WHITE).at(0, 7), WD.at(1, 5)])
    assert generate_moves(b) == [_quiet(b, N, (0, 7), (2, 6))]


def test_generation_does_not_mutate_board() -> None:
    b = Board.from_fen("r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1")
    before = b.copy()
    generate_moves(b)
    legal_moves(b)
    assert b == before


def test_legal_moves_drop_king_exposure() -> None:
    # Pinned rook on the e-file may only move along it
    b = Board.from_fen("4r2k/8/8/8/8/8/4R3/4K3 w - - 0 1")
    pseudo = {str(m) for m in generate_moves(b)}
    legal = {str(m) for m in legal_moves(b)}
    assert "e2-a2" in pseudo
    assert "e2-a2" not in legal
    assert "e2-e8" in legal

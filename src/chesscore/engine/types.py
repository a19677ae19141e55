from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import NamedTuple


FILES = "abcdefgh"


class Square(NamedTuple):
    """Signed board coordinate.

    Squares outside the 8x8 board are valid values; ray stepping produces
    them transiently and callers check ``is_on_board()`` before use.
    """

    file: int
    rank: int

    @classmethod
    def at(cls, file: int, rank: int) -> "Square":
        return cls(file, rank)

    @classmethod
    def parse(cls, name: str) -> "Square":
        """Convert a standard square name such as ``"e4"`` into a square.

        Inverse of ``name()``.

        Raises:
            ValueError: If ``name`` is not a valid square name.
        """
        if len(name) != 2 or name[0] not in FILES or name[1] < "1" or name[1] > "8":
            raise ValueError(f"invalid square: {name!r}")
        return cls(FILES.index(name[0]), int(name[1]) - 1)

    @classmethod
    def from_index(cls, idx: int) -> "Square":
        if idx < 0 or idx > 63:
            raise ValueError(f"invalid square index: {idx}")
        return cls(idx % 8, idx // 8)

    def is_on_board(self) -> bool:
        return 0 <= self.file < 8 and 0 <= self.rank < 8

    def delta(self, df: int, dr: int) -> "Square":
        return Square(self.file + df, self.rank + dr)

    @property
    def idx(self) -> int:
        return self.rank * 8 + self.file

    def algebraic(self) -> str:
        """File letter followed by the rank index: ``Square(0, 1)`` is ``"a1"``.

        This is the engine's own rendering, used for move and line text. FEN
        and the HTTP API use ``name()``.
        """
        self._check_on_board()
        return FILES[self.file] + str(self.rank)

    def name(self) -> str:
        """Standard square name: ``Square(0, 1)`` is ``"a2"``."""
        self._check_on_board()
        return FILES[self.file] + str(self.rank + 1)

    def _check_on_board(self) -> None:
        if not self.is_on_board():
            raise ValueError(f"square is off the board: {tuple(self)}")

    def __repr__(self) -> str:
        return f"({self.file}, {self.rank})"


class Castle(Enum):
    KING_SIDE = "king_side"
    QUEEN_SIDE = "queen_side"


class Color(IntEnum):
    WHITE = 0
    BLACK = 1

    def switch(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def index(self) -> int:
        return int(self)

    @property
    def forward(self) -> int:
        return 1 if self is Color.WHITE else -1

    @property
    def home_rank(self) -> int:
        return 1 if self is Color.WHITE else 6

    @property
    def promotion_rank(self) -> int:
        return 7 if self is Color.WHITE else 0

    @property
    def back_rank(self) -> int:
        return 0 if self is Color.WHITE else 7

    @property
    def evaluation_sign(self) -> float:
        return 1.0 if self is Color.WHITE else -1.0

    @property
    def token(self) -> str:
        return "w" if self is Color.WHITE else "b"


class PieceKind(IntEnum):
    PAWN = 0
    KNIGHT = 1
    BISHOP = 2
    ROOK = 3
    QUEEN = 4
    KING = 5
    # Test-only placeholder: occupies a square, never moves, worth nothing.
    DUMMY = 6

    @property
    def material(self) -> float:
        return _MATERIAL[self]

    @property
    def token(self) -> str:
        return _TOKENS[self]

    @classmethod
    def from_token(cls, token: str) -> "PieceKind":
        try:
            return _KIND_BY_TOKEN[token.lower()]
        except KeyError:
            raise ValueError(f"invalid piece token: {token!r}") from None

    def colored(self, color: Color) -> "Piece":
        return Piece(self, color)


_MATERIAL = {
    PieceKind.PAWN: 1.0,
    PieceKind.KNIGHT: 3.0,
    PieceKind.BISHOP: 3.0,
    PieceKind.ROOK: 5.0,
    PieceKind.QUEEN: 9.0,
    PieceKind.KING: 200.0,
    PieceKind.DUMMY: 0.0,
}
_TOKENS = {
    PieceKind.PAWN: "p",
    PieceKind.KNIGHT: "n",
    PieceKind.BISHOP: "b",
    PieceKind.ROOK: "r",
    PieceKind.QUEEN: "q",
    PieceKind.KING: "k",
    PieceKind.DUMMY: "d",
}
_KIND_BY_TOKEN = {v: k for k, v in _TOKENS.items()}

PROMOTION_KINDS = (PieceKind.KNIGHT, PieceKind.BISHOP, PieceKind.ROOK, PieceKind.QUEEN)


class Piece(NamedTuple):
    kind: PieceKind
    color: Color

    @property
    def value(self) -> float:
        """Signed material value, positive for White."""
        return self.kind.material * self.color.evaluation_sign

    @property
    def symbol(self) -> str:
        t = self.kind.token
        return t.upper() if self.color is Color.WHITE else t

    @classmethod
    def from_symbol(cls, symbol: str) -> "Piece":
        kind = PieceKind.from_token(symbol)
        return cls(kind, Color.WHITE if symbol.isupper() else Color.BLACK)

    def at(self, file: int, rank: int) -> "PieceOnBoard":
        return PieceOnBoard(self, Square(file, rank))

    def __repr__(self) -> str:
        return self.symbol


class PieceOnBoard(NamedTuple):
    piece: Piece
    square: Square


@dataclass(frozen=True)
class ColorCastleRights:
    """Castle rights of one side."""

    king_side: bool = False
    queen_side: bool = False

    @classmethod
    def all(cls) -> "ColorCastleRights":
        return cls(True, True)

    @classmethod
    def none(cls) -> "ColorCastleRights":
        return cls(False, False)

    def test(self, castle: Castle) -> bool:
        return self.king_side if castle is Castle.KING_SIDE else self.queen_side

    def without(self, castle: Castle) -> "ColorCastleRights":
        if castle is Castle.KING_SIDE:
            return replace(self, king_side=False)
        return replace(self, queen_side=False)


@dataclass(frozen=True)
class BoardCastleRights:
    white: ColorCastleRights = ColorCastleRights()
    black: ColorCastleRights = ColorCastleRights()

    @classmethod
    def all(cls) -> "BoardCastleRights":
        return cls(ColorCastleRights.all(), ColorCastleRights.all())

    @classmethod
    def none(cls) -> "BoardCastleRights":
        return cls(ColorCastleRights.none(), ColorCastleRights.none())

    def get(self, color: Color) -> ColorCastleRights:
        return self.white if color is Color.WHITE else self.black

    def with_rights(self, color: Color, rights: ColorCastleRights) -> "BoardCastleRights":
        if color is Color.WHITE:
            return replace(self, white=rights)
        return replace(self, black=rights)

    @classmethod
    def from_fen(cls, field: str) -> "BoardCastleRights":
        """Parse the FEN castling field (subset of ``KQkq`` or ``-``)."""
        if field == "-":
            return cls.none()
        if not field or any(ch not in "KQkq" for ch in field):
            raise ValueError("invalid castling rights")
        return cls(
            ColorCastleRights("K" in field, "Q" in field),
            ColorCastleRights("k" in field, "q" in field),
        )

    def to_fen(self) -> str:
        out = ""
        if self.white.king_side:
            out += "K"
        if self.white.queen_side:
            out += "Q"
        if self.black.king_side:
            out += "k"
        if self.black.queen_side:
            out += "q"
        return out or "-"

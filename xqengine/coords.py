"""Board geometry, piece encoding and packed move values."""

from __future__ import annotations

from dataclasses import dataclass

KING_FROM = 0
ADVISOR_FROM = 1
ADVISOR_TO = 2
BISHOP_FROM = 3
BISHOP_TO = 4
KNIGHT_FROM = 5
KNIGHT_TO = 6
ROOK_FROM = 7
ROOK_TO = 8
CANNON_FROM = 9
CANNON_TO = 10
PAWN_FROM = 11
PAWN_TO = 15

COL_LEFT = 3
ROW_TOP = 3
BOARD_ROWS = 10
BOARD_COLS = 9

FEN_PIECES = "KABNRCP"

_SIDE_PIECES = (0, 1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6, 6, 6, 6)
_PIECE_TYPE = (0,) * 16 + _SIDE_PIECES * 2 + (0, 0)

# |src - dst| -> 1 king step, 2 advisor step, 3 bishop step
_SPAN = {1: 1, 16: 1, 15: 2, 17: 2, 30: 3, 34: 3}

# dst - src -> offset from src of the square that blocks a knight move
_KNIGHT_PIN = {
    -33: -0x10, -31: -0x10,
    -18: -0x01, -14: 0x01,
    14: -0x01, 18: 0x01,
    31: 0x10, 33: 0x10,
}


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must fit in one byte, got {value}")


@dataclass(frozen=True)
class Move:
    """A move between two array squares, with capture and check bytes."""

    src: int
    dst: int
    capture: int = 0
    chkchs: int = 0

    def __post_init__(self) -> None:
        _check_byte("src", self.src)
        _check_byte("dst", self.dst)
        _check_byte("capture", self.capture)
        _check_byte("chkchs", self.chkchs)

    @classmethod
    def scored(cls, src: int, dst: int, mvlva: int) -> "Move":
        """Build a move whose upper half holds a signed MVV/LVA score."""
        if not -0x8000 <= mvlva <= 0x7FFF:
            raise ValueError(f"mvlva out of 16-bit range: {mvlva}")
        raw = mvlva & 0xFFFF
        return cls(src, dst, raw & 0xFF, raw >> 8)

    @property
    def mvlva(self) -> int:
        """The upper 16 bits read as a signed score."""
        raw = self.capture | (self.chkchs << 8)
        return raw - 0x10000 if raw & 0x8000 else raw

    def pack(self) -> int:
        """Pack into a 32-bit integer: src, dst, capture, chkchs from low byte up."""
        return self.src | (self.dst << 8) | (self.capture << 16) | (self.chkchs << 24)


def unpack_move(value: int) -> Move:
    """Inverse of Move.pack."""
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"packed move must be a 32-bit value, got {value}")
    return Move(value & 0xFF, (value >> 8) & 0xFF, (value >> 16) & 0xFF, value >> 24)


def opp_side(side: int) -> int:
    return 1 - side


def side_tag(side: int) -> int:
    return side * 16 + 16


def piece_type(pc: int) -> int:
    """Piece type 0..6 (K, A, B, N, R, C, P) of a piece number."""
    if not 0 <= pc < len(_PIECE_TYPE):
        raise ValueError(f"invalid piece number: {pc}")
    return _PIECE_TYPE[pc]


def piece_type_side(pc: int) -> int:
    """Piece type with black pieces shifted to 7..13."""
    pt = piece_type(pc)
    return pt + 7 if pc > 31 else pt


def piece_side(pc: int) -> int:
    """Side of a piece number: 0 when bit 0x10 is set, otherwise 1."""
    tag_bit = (pc >> 4) & 1
    return 1 - tag_bit


def same_side(pc1: int, pc2: int) -> bool:
    return ((pc1 ^ pc2) & 0x10) == 0


def piece_index(pc: int) -> int:
    return pc & 0x0F


def away_half(pos: int, side: int) -> bool:
    return (pos & 0x10) == (side << 7)


def to_fen_piece(pc: int) -> str:
    return FEN_PIECES[piece_type(pc)]


def fen_piece(c: str) -> int:
    """Piece type for a FEN letter, either case."""
    if len(c) != 1 or FEN_PIECES.find(c.upper()) < 0:
        raise ValueError(f"not a FEN piece letter: {c!r}")
    return FEN_PIECES.index(c.upper())


def coord_xy(r: int, c: int) -> int:
    return (r * 16 + c) & 0xFF


def to_row(row: int) -> int:
    return (row + ROW_TOP) & 0xFF


def to_col(col: int) -> int:
    return (col + COL_LEFT) & 0xFF


def coord_pc(r: int, c: int) -> int:
    """Array square for a board row and column."""
    return coord_xy(to_row(r), to_col(c))


def get_row(pos: int) -> int:
    return (pos & 0xF0) >> 4


def get_col(pos: int) -> int:
    return pos & 0x0F


def get_rel_row(pos: int) -> int:
    return get_row(pos) - ROW_TOP


def get_rel_col(pos: int) -> int:
    return get_col(pos) - COL_LEFT


def in_board(pos: int) -> bool:
    if not 0 <= pos <= 0xFF:
        return False
    return (ROW_TOP <= get_row(pos) < ROW_TOP + BOARD_ROWS
            and COL_LEFT <= get_col(pos) < COL_LEFT + BOARD_COLS)


def in_fort(pos: int) -> bool:
    if not in_board(pos):
        return False
    row = get_rel_row(pos)
    return (row <= 2 or row >= 7) and 3 <= get_rel_col(pos) <= 5


def square_forward(pos: int, side: int) -> int:
    return pos - 0x10 + (side << 5)


def square_backward(pos: int, side: int) -> int:
    return pos + 0x10 - (side << 5)


def same_half(pos1: int, pos2: int) -> bool:
    return ((pos1 ^ pos2) & 0x80) == 0


def _span(src: int, dst: int) -> int:
    return _SPAN.get(abs(src - dst), 0)


def king_span(src: int, dst: int) -> bool:
    return _span(src, dst) == 1


def advisor_span(src: int, dst: int) -> bool:
    return _span(src, dst) == 2


def bishop_span(src: int, dst: int) -> bool:
    return _span(src, dst) == 3


def bishop_pin(src: int, dst: int) -> int:
    return (src + dst) >> 1


def knight_pin(src: int, dst: int) -> int:
    """Blocking square of a knight move; src itself if it is no knight move."""
    return src + _KNIGHT_PIN.get(dst - src, 0)
"""Board state: piece placement, occupancy bitboards, hashing and move making."""

from __future__ import annotations

from dataclasses import dataclass

from .coords import (
    ADVISOR_FROM,
    ADVISOR_TO,
    BISHOP_FROM,
    BISHOP_TO,
    BOARD_COLS,
    BOARD_ROWS,
    CANNON_FROM,
    CANNON_TO,
    KING_FROM,
    KNIGHT_FROM,
    KNIGHT_TO,
    PAWN_FROM,
    PAWN_TO,
    ROOK_FROM,
    ROOK_TO,
    Move,
    advisor_span,
    bishop_pin,
    bishop_span,
    coord_pc,
    fen_piece,
    get_col,
    get_rel_col,
    get_rel_row,
    get_row,
    in_board,
    in_fort,
    king_span,
    knight_pin,
    opp_side,
    piece_index,
    piece_side,
    piece_type_side,
    same_half,
    same_side,
    side_tag,
    square_backward,
    square_forward,
    to_fen_piece,
    unpack_move,
)
from .pregen import PreGen, RookCannonMove, RookCannonMoveMask, default_tables
from .zobrist import ZobristKey

_FIRST_PIECE = (KING_FROM, ADVISOR_FROM, BISHOP_FROM, KNIGHT_FROM, ROOK_FROM, CANNON_FROM, PAWN_FROM)
_LAST_PIECE = (KING_FROM, ADVISOR_TO, BISHOP_TO, KNIGHT_TO, ROOK_TO, CANNON_TO, PAWN_TO)
_DIGITS = "0123456789"


class PositionError(ValueError):
    """Raised for an operation the current position cannot carry out."""


class IllegalMoveError(PositionError):
    """Raised when a move would leave the mover's king in check."""


@dataclass(frozen=True)
class Trace:
    """Saved hash before a move, with the move as it was made."""

    zobri: ZobristKey
    mv: Move | None = None


def _as_move(mv: Move | int) -> Move:
    return mv if isinstance(mv, Move) else unpack_move(mv)


class Position:
    """A xiangqi position on a 16x16 array board.

    Red is side 0 with piece numbers 16..31, black is side 1 with 32..47;
    0 on a square or in a lookup result means no piece.
    """

    def __init__(self, tables: PreGen | None = None) -> None:
        self.tables = tables if tables is not None else default_tables()
        self.reset()

    def reset(self) -> None:
        """Clear the board, hash, history and side to move."""
        self.board: list[int] = [0] * 256
        self.pieces: list[int] = [0] * 50
        self.bit_row: list[int] = [0] * BOARD_ROWS
        self.bit_col: list[int] = [0] * BOARD_COLS
        self.zobri = ZobristKey()
        self.side = 0
        self.trace: list[Trace] = []

    # ------------------------------------------------------------------ FEN

    def from_fen(self, fen: str) -> None:
        """Set up the board from the placement field of a FEN string."""
        self.reset()
        fields = fen.split()
        placement = fields[0] if fields else ""
        next_piece = [list(_FIRST_PIECE), list(_FIRST_PIECE)]
        row = col = 0
        for ch in placement:
            if ch.isascii() and ch.isalpha():
                side = 0 if ch.isupper() else 1
                kind = fen_piece(ch)
                index = next_piece[side][kind]
                if index > _LAST_PIECE[kind]:
                    raise PositionError(f"too many pieces of kind {ch!r}")
                if not (0 <= row < BOARD_ROWS and 0 <= col < BOARD_COLS):
                    raise PositionError(f"piece {ch!r} lies off the board")
                self.add_piece(coord_pc(row, col), side_tag(side) + index)
                next_piece[side][kind] = index + 1
                col += 1
            elif ch in _DIGITS:
                col += int(ch)
            elif ch == "/":
                row += 1
                col = 0

    def to_fen(self) -> str:
        """Placement field of the board, each rank followed by '/'."""
        parts: list[str] = []
        for r in range(BOARD_ROWS):
            gap = 0
            for c in range(BOARD_COLS):
                pc = self.board[coord_pc(r, c)]
                if pc == 0:
                    gap += 1
                    continue
                if gap:
                    parts.append(str(gap))
                    gap = 0
                letter = to_fen_piece(pc)
                parts.append(letter if piece_side(pc) == 0 else letter.lower())
            if gap:
                parts.append(str(gap))
            parts.append("/")
        return "".join(parts)

    # ---------------------------------------------------------- line tables

    @staticmethod
    def _line_index(pos: int) -> tuple[int, int]:
        if not in_board(pos):
            raise PositionError(f"square {pos:#x} is off the board")
        return get_rel_row(pos), get_rel_col(pos)

    def horizon_mask(self, pos: int) -> RookCannonMoveMask:
        r, c = self._line_index(pos)
        return self.tables.rook_cannon_mask_row[c][self.bit_row[r]]

    def vertic_mask(self, pos: int) -> RookCannonMoveMask:
        r, c = self._line_index(pos)
        return self.tables.rook_cannon_mask_col[r][self.bit_col[c]]

    def horizon_move(self, pos: int) -> RookCannonMove:
        r, c = self._line_index(pos)
        return self.tables.rook_cannon_move_row[c][self.bit_row[r]]

    def vertic_move(self, pos: int) -> RookCannonMove:
        r, c = self._line_index(pos)
        return self.tables.rook_cannon_move_col[r][self.bit_col[c]]

    def _line_bits(self, origin: int, other: int) -> tuple[RookCannonMoveMask, int] | None:
        """Line mask seen from origin and the bit of other, if they share a line."""
        if get_row(origin) == get_row(other):
            return self.horizon_mask(origin), self.tables.piece_mask_col[other]
        if get_col(origin) == get_col(other):
            return self.vertic_mask(origin), self.tables.piece_mask_row[other]
        return None

    def _rook_reaches(self, origin: int, other: int) -> bool:
        line = self._line_bits(origin, other)
        return line is not None and bool(line[0].rook_cap & line[1])

    def _cannon_reaches(self, origin: int, other: int) -> bool:
        line = self._line_bits(origin, other)
        return line is not None and bool(line[0].cannon_cap & line[1])

    # ------------------------------------------------------ piece placement

    def _toggle(self, pos: int) -> None:
        r, c = get_rel_row(pos), get_rel_col(pos)
        self.bit_row[r] ^= 1 << c
        self.bit_col[c] ^= 1 << r

    def _hash(self, pc: int, pos: int) -> None:
        self.zobri = self.zobri ^ self.tables.zobri_table[piece_type_side(pc)][pos]

    def add_piece(self, pos: int, pc: int) -> None:
        """Put piece pc on an empty square."""
        if not in_board(pos):
            raise PositionError(f"square {pos:#x} is off the board")
        if not 16 <= pc < 48:
            raise PositionError(f"invalid piece number: {pc}")
        if self.board[pos]:
            raise PositionError(f"square {pos:#x} is already occupied")
        self.board[pos] = pc
        self.pieces[pc] = pos
        self._toggle(pos)
        self._hash(pc, pos)

    def del_piece(self, pos: int) -> int:
        """Remove and return the piece on a square."""
        if not in_board(pos) or not self.board[pos]:
            raise PositionError(f"no piece on square {pos:#x}")
        pc = self.board[pos]
        self.pieces[pc] = 0
        self.board[pos] = 0
        self._toggle(pos)
        self._hash(pc, pos)
        return pc

    # ---------------------------------------------------------- move making

    def move_piece(self, move: Move | int) -> Move:
        """Move a piece, updating hash and bitboards; return the move with its capture."""
        move = _as_move(move)
        src, dst = move.src, move.dst
        if not (in_board(src) and in_board(dst)):
            raise PositionError("move leaves the board")
        moved = self.board[src]
        if not moved:
            raise PositionError(f"no piece on square {src:#x}")
        captured = self.board[dst]

        self.board[src] = 0
        self.board[dst] = moved
        self.pieces[moved] = dst
        self._toggle(src)
        if captured:
            self.pieces[captured] = 0
            self._hash(captured, dst)
        else:
            self._toggle(dst)
        self._hash(moved, src)
        self._hash(moved, dst)
        return Move(src, dst, captured, move.chkchs)

    def undo_move_piece(self, move: Move | int) -> None:
        """Put back the pieces of a move returned by move_piece; the hash is left alone."""
        move = _as_move(move)
        src, dst = move.src, move.dst
        moved = self.board[dst]
        self.board[src] = moved
        self.pieces[moved] = src
        self._toggle(src)
        if move.capture:
            self.board[dst] = move.capture
            self.pieces[move.capture] = dst
        else:
            self.board[dst] = 0
            self._toggle(dst)

    def make_move(self, mv: Move | int) -> Move:
        """Play a move for the side to move and return it with its capture filled in."""
        move = _as_move(mv)
        self.save_status()
        try:
            made = self.move_piece(move)
        except PositionError:
            self.rollback()
            raise
        if self.checked_by():
            self.undo_move_piece(made)
            self.rollback()
            raise IllegalMoveError("move leaves the king in check")
        self.change_side()
        self.trace[-1] = Trace(self.trace[-1].zobri, made)
        return made

    def undo_make_move(self) -> None:
        """Take back the last move made with make_move."""
        if not self.trace or self.trace[-1].mv is None:
            raise PositionError("no move to undo")
        self.undo_move_piece(self.trace[-1].mv)
        self.side = opp_side(self.side)
        self.rollback()

    def save_status(self) -> None:
        self.trace.append(Trace(self.zobri))

    def rollback(self) -> None:
        """Restore the hash saved by the last save_status and drop it."""
        if not self.trace:
            raise PositionError("no saved status to roll back")
        self.zobri = self.trace.pop().zobri

    def change_side(self) -> None:
        self.side = opp_side(self.side)
        self.zobri = self.zobri ^ self.tables.zobri_player

    # -------------------------------------------------------------- queries

    def legal_move(self, move: Move | int) -> bool:
        """Whether the piece on src may go to dst by its own movement rules."""
        move = _as_move(move)
        src, dst = move.src, move.dst
        if not (in_board(src) and in_board(dst)):
            return False
        moved = self.board[src]
        if not moved:
            return False
        captured = self.board[dst]
        if captured and same_side(moved, captured):
            return False

        index = piece_index(moved)
        if index == KING_FROM:
            return in_fort(dst) and king_span(src, dst)
        if index <= ADVISOR_TO:
            return in_fort(dst) and advisor_span(src, dst)
        if index <= BISHOP_TO:
            return (same_half(src, dst) and bishop_span(src, dst)
                    and self.board[bishop_pin(src, dst)] == 0)
        if index <= KNIGHT_TO:
            pin = knight_pin(src, dst)
            return pin != src and self.board[pin] == 0
        if index <= CANNON_TO:
            line = self._line_bits(src, dst)
            if line is None:
                return False
            mask, bit = line
            if not captured:
                reach = mask.non_cap
            elif index <= ROOK_TO:
                reach = mask.rook_cap
            else:
                reach = mask.cannon_cap
            return bool(reach & bit)

        side = piece_side(moved)
        if same_half(dst, side << 7) and dst in (src - 1, src + 1):
            return True
        return square_forward(src, side) == dst

    def checked_by(self) -> int:
        """The opposing piece giving check to the side to move, or 0."""
        opp_tag = side_tag(opp_side(self.side))
        king = self.pieces[side_tag(self.side)]
        if not king:
            return 0

        for pc in range(opp_tag + ROOK_FROM, opp_tag + ROOK_TO + 1):
            pos = self.pieces[pc]
            if pos and self._rook_reaches(king, pos):
                return pc
        for pc in range(opp_tag + CANNON_FROM, opp_tag + CANNON_TO + 1):
            pos = self.pieces[pc]
            if pos and self._cannon_reaches(king, pos):
                return pc
        for pc in range(opp_tag + KNIGHT_FROM, opp_tag + KNIGHT_TO + 1):
            pos = self.pieces[pc]
            if pos:
                pin = knight_pin(pos, king)
                if pin != pos and self.board[pin] == 0:
                    return pc
        opp_king = opp_tag + KING_FROM
        pos = self.pieces[opp_king]
        if pos and get_col(pos) == get_col(king) and self._rook_reaches(king, pos):
            return opp_king
        for pos in (king - 1, king + 1, square_forward(king, self.side)):
            pc = self.board[pos]
            if pc and not same_side(pc, side_tag(self.side)) and piece_index(pc) >= PAWN_FROM:
                return pc
        return 0

    def protected_by(self, side: int, dst: int) -> int:
        """A piece of side that could move onto dst, or 0 if none."""
        if not in_board(dst):
            raise PositionError(f"square {dst:#x} is off the board")
        tag = side_tag(side)

        if same_half(dst, (1 - side) << 7):
            if in_fort(dst):
                pos = self.pieces[tag + KING_FROM]
                if pos and king_span(pos, dst):
                    return tag + KING_FROM
                for pc in range(tag + ADVISOR_FROM, tag + ADVISOR_TO + 1):
                    pos = self.pieces[pc]
                    if pos and advisor_span(pos, dst):
                        return pc
            for pc in range(tag + BISHOP_FROM, tag + BISHOP_TO + 1):
                pos = self.pieces[pc]
                if pos and bishop_span(pos, dst) and self.board[bishop_pin(pos, dst)] == 0:
                    return pc
            pawn_squares: tuple[int, ...] = (square_backward(dst, side),)
        else:
            pawn_squares = (dst - 1, dst + 1, square_backward(dst, side))

        for pos in pawn_squares:
            pc = self.board[pos]
            if pc and piece_side(pc) == side and piece_index(pc) >= PAWN_FROM:
                return pc

        for pc in range(tag + ROOK_FROM, tag + ROOK_TO + 1):
            pos = self.pieces[pc]
            if pos and self._rook_reaches(dst, pos):
                return pc
        for pc in range(tag + CANNON_FROM, tag + CANNON_TO + 1):
            pos = self.pieces[pc]
            if pos and self._cannon_reaches(dst, pos):
                return pc
        for pc in range(tag + KNIGHT_FROM, tag + KNIGHT_TO + 1):
            pos = self.pieces[pc]
            if pos:
                pin = knight_pin(pos, dst)
                if pin != pos and self.board[pin] == 0:
                    return pc
        return 0
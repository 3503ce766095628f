"""Precomputed move tables and Zobrist keys for the engine."""

from __future__ import annotations

import random
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from functools import lru_cache

from .coords import (
    BOARD_COLS,
    BOARD_ROWS,
    bishop_pin,
    get_col,
    get_row,
    in_board,
    in_fort,
    knight_pin,
    same_half,
    square_forward,
    to_col,
    to_row,
)
from .zobrist import ZobristKey, random_key

KNIGHT_DISPLACE = (-0x21, -0x12, -0x1F, -0x0E, 0x21, 0x0E, 0x1F, 0x12)
BISHOP_DISPLACE = (-0x22, -0x1E, 0x1E, 0x22)
ADVISOR_DISPLACE = (-0x11, -0x0F, 0x0F, 0x11)
KING_DISPLACE = (-0x10, -0x01, 0x01, 0x10)


@dataclass(frozen=True)
class RookCannonMove:
    """Reachable squares along one line, index 0 towards left/up, 1 towards right/down.

    non_cap holds the farthest empty square, rook_cap the first piece,
    cannon_cap the piece behind the screen; 0 means none.
    """

    non_cap: tuple[int, int] = (0, 0)
    rook_cap: tuple[int, int] = (0, 0)
    cannon_cap: tuple[int, int] = (0, 0)


@dataclass(frozen=True)
class RookCannonMoveMask:
    """The same squares as RookCannonMove, as bit masks over array rows or columns."""

    non_cap: int = 0
    rook_cap: int = 0
    cannon_cap: int = 0


@dataclass(frozen=True)
class PinnedMoves:
    """Target squares with the square that must be empty for each."""

    targets: tuple[int, ...] = ()
    pins: tuple[int, ...] = ()

    def __iter__(self) -> Iterator[tuple[int, int]]:
        return zip(self.targets, self.pins)

    def __len__(self) -> int:
        return len(self.targets)


def _scan_line(
    origin: int, occupancy: int, size: int, convert: Callable[[int], int]
) -> tuple[RookCannonMove, RookCannonMoveMask]:
    non_cap = [0, 0]
    rook_cap = [0, 0]
    cannon_cap = [0, 0]
    non_mask = rook_mask = cannon_mask = 0
    directions = (range(origin - 1, -1, -1), range(origin + 1, size))
    for direction, steps in enumerate(directions):
        screened = False
        for k in steps:
            square = convert(k)
            bit = 1 << square
            occupied = (occupancy >> k) & 1
            if not screened:
                if occupied:
                    rook_cap[direction] = square
                    rook_mask |= bit
                    screened = True
                else:
                    non_cap[direction] = square
                    non_mask |= bit
            elif occupied:
                cannon_cap[direction] = square
                cannon_mask |= bit
                break
    move = RookCannonMove(tuple(non_cap), tuple(rook_cap), tuple(cannon_cap))
    mask = RookCannonMoveMask(non_mask, rook_mask, cannon_mask)
    return move, mask


def _line_tables(
    size: int, convert: Callable[[int], int]
) -> tuple[list[list[RookCannonMove]], list[list[RookCannonMoveMask]]]:
    moves: list[list[RookCannonMove]] = []
    masks: list[list[RookCannonMoveMask]] = []
    for origin in range(size):
        pairs = [_scan_line(origin, occ, size, convert) for occ in range(1 << size)]
        moves.append([move for move, _ in pairs])
        masks.append([mask for _, mask in pairs])
    return moves, masks


def _pawn_targets(pos: int, side: int) -> tuple[int, ...]:
    targets = []
    forward = square_forward(pos, side)
    if in_board(forward):
        targets.append(forward)
    # once across the river the pawn may also step sideways
    if not same_half(pos, (1 - side) << 7):
        targets.extend(k for k in (pos - 1, pos + 1) if in_board(k))
    return tuple(targets)


class PreGen:
    """All tables the position and move generator look up.

    Rook/cannon line tables are indexed [origin][occupancy], where origin is
    the board column (row table) or board row (column table) and bit k of the
    occupancy marks board column or row k as occupied.
    """

    def __init__(self, rng: random.Random) -> None:
        self.zobri_table: list[list[ZobristKey]] = [
            [random_key(rng) for _ in range(256)] for _ in range(14)
        ]
        self.zobri_player: ZobristKey = random_key(rng)

        self.piece_mask_row = [1 << get_row(i) if in_board(i) else 0 for i in range(256)]
        self.piece_mask_col = [1 << get_col(i) if in_board(i) else 0 for i in range(256)]

        self.rook_cannon_move_row, self.rook_cannon_mask_row = _line_tables(BOARD_COLS, to_col)
        self.rook_cannon_move_col, self.rook_cannon_mask_col = _line_tables(BOARD_ROWS, to_row)

        empty = PinnedMoves()
        self.knight_moves: list[PinnedMoves] = [empty] * 256
        self.bishop_moves: list[PinnedMoves] = [empty] * 256
        self.advisor_moves: list[tuple[int, ...]] = [()] * 256
        self.king_moves: list[tuple[int, ...]] = [()] * 256
        self.pawn_moves: list[tuple[tuple[int, ...], tuple[int, ...]]] = [((), ())] * 256

        for i in filter(in_board, range(256)):
            knights = [i + d for d in KNIGHT_DISPLACE if in_board(i + d)]
            self.knight_moves[i] = PinnedMoves(
                tuple(knights), tuple(knight_pin(i, k) for k in knights)
            )
            bishops = [
                i + d for d in BISHOP_DISPLACE if in_board(i + d) and same_half(i, i + d)
            ]
            self.bishop_moves[i] = PinnedMoves(
                tuple(bishops), tuple(bishop_pin(i, k) for k in bishops)
            )
            self.advisor_moves[i] = tuple(i + d for d in ADVISOR_DISPLACE if in_fort(i + d))
            self.king_moves[i] = tuple(i + d for d in KING_DISPLACE if in_fort(i + d))
            self.pawn_moves[i] = (_pawn_targets(i, 0), _pawn_targets(i, 1))


@lru_cache(maxsize=None)
def default_tables() -> PreGen:
    """A shared set of tables with randomly seeded Zobrist keys."""
    return PreGen(random.Random())
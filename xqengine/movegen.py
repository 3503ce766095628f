"""Move generation: captures, quiet moves and per-piece move lists."""

from __future__ import annotations

from collections.abc import Iterator

from .coords import (
    ADVISOR_FROM,
    ADVISOR_TO,
    BISHOP_FROM,
    BISHOP_TO,
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
    coord_xy,
    get_col,
    get_row,
    opp_side,
    piece_index,
    piece_side,
    piece_type,
    same_side,
    side_tag,
)
from .position import Position, PositionError

# Rough piece values by type: K, A, B, N, R, C, P.
SIMPLE_VALUE = (5, 1, 2, 3, 4, 3, 1)

# (first index, last index, value of the attacker) in generation order.
_CAPTURE_ORDER = (
    (KING_FROM, KING_FROM, 5),
    (ADVISOR_FROM, ADVISOR_TO, 1),
    (BISHOP_FROM, BISHOP_TO, 2),
    (KNIGHT_FROM, KNIGHT_TO, 3),
    (CANNON_FROM, CANNON_TO, 3),
    (ROOK_FROM, ROOK_TO, 4),
    (PAWN_FROM, PAWN_TO, 1),
)
_QUIET_ORDER = (
    (KING_FROM, KING_FROM, 5),
    (ADVISOR_FROM, ADVISOR_TO, 1),
    (BISHOP_FROM, BISHOP_TO, 2),
    (KNIGHT_FROM, KNIGHT_TO, 3),
    (ROOK_FROM, CANNON_TO, 3),
    (PAWN_FROM, PAWN_TO, 1),
)


def mv_lva(position: Position, dst: int, captured: int, lva: int) -> int:
    """Value of the captured piece, less the attacker's value if dst is defended."""
    value = SIMPLE_VALUE[piece_type(captured)] if captured else 0
    if position.protected_by(opp_side(position.side), dst):
        value -= lva
    return value


def _own_pieces(position: Position, first: int, last: int) -> Iterator[tuple[int, int]]:
    tag = side_tag(position.side)
    for pc in range(tag + first, tag + last + 1):
        pos = position.pieces[pc]
        if pos:
            yield pc, pos


def _step_targets(position: Position, pc: int, src: int) -> Iterator[tuple[int, int | None]]:
    tables = position.tables
    index = piece_index(pc)
    if index == KING_FROM:
        return ((d, None) for d in tables.king_moves[src])
    if index <= ADVISOR_TO:
        return ((d, None) for d in tables.advisor_moves[src])
    if index <= BISHOP_TO:
        return iter(tables.bishop_moves[src])
    if index <= KNIGHT_TO:
        return iter(tables.knight_moves[src])
    return ((d, None) for d in tables.pawn_moves[src][piece_side(pc)])


def _slide_captures(position: Position, pc: int, src: int) -> list[int]:
    rook = piece_index(pc) <= ROOK_TO
    row, col = get_row(src), get_col(src)
    horizon = position.horizon_move(src)
    vertic = position.vertic_move(src)
    h_caps = horizon.rook_cap if rook else horizon.cannon_cap
    v_caps = vertic.rook_cap if rook else vertic.cannon_cap
    squares = [coord_xy(row, c) for c in h_caps if c]
    squares += [coord_xy(r, col) for r in v_caps if r]
    board = position.board
    return [dst for dst in squares if board[dst] and not same_side(pc, board[dst])]


def _slide_quiet(position: Position, src: int) -> list[int]:
    row, col = get_row(src), get_col(src)
    horizon = position.horizon_move(src)
    vertic = position.vertic_move(src)
    left, right = horizon.non_cap
    up, down = vertic.non_cap
    squares: list[int] = []
    if left:
        squares.extend(range(src - 1, coord_xy(row, left) - 1, -1))
    if right:
        squares.extend(range(src + 1, coord_xy(row, right) + 1))
    if up:
        squares.extend(range(src - 0x10, coord_xy(up, col) - 1, -0x10))
    if down:
        squares.extend(range(src + 0x10, coord_xy(down, col) + 1, 0x10))
    return squares


def _is_slider(pc: int) -> bool:
    return ROOK_FROM <= piece_index(pc) <= CANNON_TO


def _targets(position: Position, pc: int, src: int, captures: bool | None) -> list[int]:
    """Destinations of pc: captures only (True), quiet only (False) or both (None)."""
    board = position.board
    if _is_slider(pc):
        result: list[int] = []
        if captures is not False:
            result.extend(_slide_captures(position, pc, src))
        if captures is not True:
            result.extend(_slide_quiet(position, src))
        return result
    result = []
    for dst, pin in _step_targets(position, pc, src):
        if pin is not None and board[pin]:
            continue
        occupant = board[dst]
        if occupant:
            if captures is not False and not same_side(pc, occupant):
                result.append(dst)
        elif captures is not True:
            result.append(dst)
    return result


def gen_cap_moves(position: Position) -> list[Move]:
    """Captures for the side to move, each scored with mv_lva."""
    moves: list[Move] = []
    for first, last, lva in _CAPTURE_ORDER:
        for pc, src in _own_pieces(position, first, last):
            for dst in _targets(position, pc, src, True):
                score = mv_lva(position, dst, position.board[dst], lva)
                moves.append(Move.scored(src, dst, score))
    return moves


def gen_non_cap_moves(position: Position) -> list[Move]:
    """Non-capturing moves for the side to move, scored with mv_lva."""
    moves: list[Move] = []
    for first, last, lva in _QUIET_ORDER:
        for _pc, src in _own_pieces(position, first, last):
            for dst in _targets(position, _pc, src, False):
                moves.append(Move.scored(src, dst, mv_lva(position, dst, 0, lva)))
    return moves


def gen_all_moves(position: Position) -> list[Move]:
    """Captures followed by non-captures for the side to move."""
    return gen_cap_moves(position) + gen_non_cap_moves(position)


def gen_piece_moves(position: Position, pos: int) -> list[Move]:
    """Moves of the piece standing on pos, whichever side it belongs to."""
    if not 0 <= pos <= 0xFF or not position.board[pos]:
        raise PositionError(f"no piece on square {pos:#x}")
    pc = position.board[pos]
    return [Move(pos, dst) for dst in _targets(position, pc, pos, None)]
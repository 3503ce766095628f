import pytest

from xqengine.coords import coord_pc, same_side
from xqengine.movegen import (
    gen_all_moves,
    gen_cap_moves,
    gen_non_cap_moves,
    gen_piece_moves,
    mv_lva,
)
from xqengine.position import Position, PositionError

START = "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR"


def _pos(fen, side=0):
    position = Position()
    position.from_fen(fen)
    position.side = side
    return position


def _pairs(moves):
    return {(m.src, m.dst) for m in moves}


def _dsts(moves):
    return {m.dst for m in moves}


def test_start_position_move_count():
    assert len(gen_all_moves(_pos(START))) == 44


def test_start_position_black_symmetric():
    red = gen_all_moves(_pos(START, 0))
    black = gen_all_moves(_pos(START, 1))
    assert len(black) == len(red)


def test_start_captures_are_cannon_takes_knight():
    position = _pos(START)
    caps = gen_cap_moves(position)
    assert _pairs(caps) == {
        (coord_pc(7, 1), coord_pc(0, 1)),
        (coord_pc(7, 7), coord_pc(0, 7)),
    }


def test_all_moves_is_caps_then_quiet():
    position = _pos(START)
    assert gen_all_moves(position) == gen_cap_moves(position) + gen_non_cap_moves(position)


@pytest.mark.parametrize("side", [0, 1])
def test_capture_and_quiet_targets(side):
    position = _pos(START, side)
    for move in gen_cap_moves(position):
        victim = position.board[move.dst]
        assert victim and not same_side(victim, position.board[move.src])
    for move in gen_non_cap_moves(position):
        assert position.board[move.dst] == 0


@pytest.mark.parametrize("side", [0, 1])
def test_generated_moves_pass_legal_move(side):
    position = _pos(START, side)
    moves = gen_all_moves(position)
    assert moves
    assert all(position.legal_move(m) for m in moves)


def test_piece_moves_cover_all_moves():
    position = _pos(START)
    by_piece = set()
    for r in range(10):
        for c in range(9):
            sq = coord_pc(r, c)
            pc = position.board[sq]
            if pc and 16 <= pc < 32:
                by_piece |= _pairs(gen_piece_moves(position, sq))
    assert by_piece == _pairs(gen_all_moves(position))


def test_generation_leaves_position_unchanged():
    position = _pos(START)
    before = (position.to_fen(), position.zobri, position.side)
    gen_all_moves(position)
    gen_piece_moves(position, coord_pc(9, 1))
    assert (position.to_fen(), position.zobri, position.side) == before


def test_piece_moves_empty_square_raises():
    position = _pos(START)
    with pytest.raises(PositionError):
        gen_piece_moves(position, coord_pc(4, 4))


def test_knight_leg_blocked():
    position = _pos(START)
    moves = gen_piece_moves(position, coord_pc(9, 1))
    assert _dsts(moves) == {coord_pc(7, 0), coord_pc(7, 2)}


def test_rook_slides_until_blocked():
    position = _pos("4k4/9/9/9/9/9/9/9/9/R3K4")
    moves = gen_piece_moves(position, coord_pc(9, 0))
    expected = {coord_pc(r, 0) for r in range(9)} | {coord_pc(9, c) for c in range(1, 4)}
    assert _dsts(moves) == expected


def test_cannon_jumps_screen_to_capture():
    position = _pos("4k4/9/9/9/9/9/9/9/4K4/C1P1n4")
    dsts = _dsts(gen_piece_moves(position, coord_pc(9, 0)))
    assert coord_pc(9, 4) in dsts
    assert coord_pc(9, 1) in dsts
    assert coord_pc(9, 2) not in dsts
    assert coord_pc(9, 3) not in dsts


def test_pawn_across_river_moves_sideways():
    position = _pos("4k4/9/9/9/2P6/9/9/9/9/4K4")
    dsts = _dsts(gen_piece_moves(position, coord_pc(4, 2)))
    assert dsts == {coord_pc(3, 2), coord_pc(4, 1), coord_pc(4, 3)}


def test_pawn_before_river_moves_forward_only():
    position = _pos(START)
    dsts = _dsts(gen_piece_moves(position, coord_pc(6, 0)))
    assert dsts == {coord_pc(5, 0)}


def test_mv_lva_unprotected_and_protected():
    free = _pos("4k4/9/9/9/9/9/9/4r4/4R4/4K4")
    target = coord_pc(7, 4)
    unprotected = mv_lva(free, target, free.board[target], 4)
    assert unprotected == 4

    guarded = _pos("4k4/9/9/9/9/9/9/3rr4/4R4/4K4")
    protected = mv_lva(guarded, target, guarded.board[target], 4)
    assert protected == 0
    assert protected < unprotected


def test_capture_score_recorded_in_move():
    position = _pos("4k4/9/9/9/9/9/9/4r4/4R4/4K4")
    caps = gen_cap_moves(position)
    target = coord_pc(7, 4)
    rook_take = [m for m in caps if m.dst == target]
    assert len(rook_take) == 1
    assert rook_take[0].mvlva == mv_lva(position, target, position.board[target], 4)
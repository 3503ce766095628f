from itertools import product

import pytest

from xqengine.ucci import (
    STARTPOS,
    UcciParser,
    UcciType,
    array_coord_from_ucci,
    ucci_from_array_coord,
    ucci_point,
)


@pytest.fixture
def parser():
    return UcciParser()


@pytest.mark.parametrize(
    "line, expected",
    [
        ("ucci", UcciType.UCCI),
        ("isready", UcciType.ISREADY),
        ("go", UcciType.GO),
        ("stop", UcciType.STOP),
        ("quit", UcciType.QUIT),
        ("getpos", UcciType.GETPOS),
        ("hello", UcciType.POS_ERROR),
        ("", UcciType.POS_ERROR),
    ],
)
def test_simple_commands(parser, line, expected):
    assert parser.process_command(line).type == expected


def test_position_startpos(parser):
    cmd = parser.process_command("position startpos")
    assert cmd.type == UcciType.POSITION
    assert cmd.fen == STARTPOS
    assert cmd.coords == ()
    assert cmd.side == 0


def test_position_fen_with_moves(parser):
    cmd = parser.process_command(f"position {STARTPOS} b moves h2e2 h9g7")
    assert cmd.fen == STARTPOS
    assert cmd.side == 1
    assert cmd.coords == (array_coord_from_ucci("h2e2"), array_coord_from_ucci("h9g7"))


def test_getmv_parses_point(parser):
    cmd = parser.process_command("getmv e0")
    assert cmd.type == UcciType.GETMV
    assert [ucci_point(c) for c in cmd.coords] == ["e0"]


def test_makemv_parses_move(parser):
    cmd = parser.process_command("makemv h2e2")
    assert cmd.type == UcciType.MAKEMV
    assert [ucci_from_array_coord(c) for c in cmd.coords] == ["h2e2"]


def test_makemv_bad_coordinates_raise(parser):
    with pytest.raises(ValueError):
        parser.process_command("makemv zz")


def test_getmv_without_argument_raises(parser):
    with pytest.raises(ValueError):
        parser.process_command("getmv")


def test_source_square_in_low_byte():
    assert array_coord_from_ucci("e0e1") & 0xFF == 0xC7


@pytest.mark.parametrize("src, dst", [("a0", "i9"), ("e4", "e5"), ("i0", "a9")])
def test_move_round_trip(src, dst):
    assert ucci_from_array_coord(array_coord_from_ucci(src + dst)) == src + dst


def test_every_point_round_trips():
    points = [f + r for f, r in product("abcdefghi", "0123456789")]
    assert [ucci_point(array_coord_from_ucci(p + p)) for p in points] == points


def test_coordinates_are_case_insensitive():
    assert array_coord_from_ucci("H2E2") == array_coord_from_ucci("h2e2")


@pytest.mark.parametrize("text", ["z9a0", "a1", "a1b", "a1bx", "j0a0"])
def test_invalid_moves_raise(text):
    with pytest.raises(ValueError):
        array_coord_from_ucci(text)


def test_off_board_square_raises():
    with pytest.raises(ValueError):
        ucci_point(0)
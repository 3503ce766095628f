"""Parsing of UCCI-style text commands and conversion of UCCI coordinates."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .coords import coord_pc, get_rel_col, get_rel_row, in_board

STARTPOS = "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR"

_FILES = "abcdefghi"
_RANKS = "0123456789"


class UcciType(IntEnum):
    """Kinds of command the engine understands."""

    UCCI = 0
    ISREADY = 1
    POSITION = 2
    GO = 3
    STOP = 4
    QUIT = 5
    GETPOS = 6
    GETMV = 7
    MAKEMV = 8
    POS_ERROR = 9


@dataclass(frozen=True)
class UcciCommand:
    """A parsed command with the FEN, array coordinates and side it carries."""

    type: UcciType
    fen: str = ""
    coords: tuple[int, ...] = ()
    side: int = 0


def _square(text: str) -> int:
    """Array square for a two-character UCCI point such as 'e0'."""
    if len(text) != 2:
        raise ValueError(f"not a UCCI point: {text!r}")
    file, rank = text[0].lower(), text[1]
    if file not in _FILES or rank not in _RANKS:
        raise ValueError(f"not a UCCI point: {text!r}")
    return coord_pc(9 - int(rank), ord(file) - ord("a"))


def _point_text(square: int) -> str:
    if not in_board(square):
        raise ValueError(f"square {square:#x} is off the board")
    return chr(get_rel_col(square) + ord("a")) + str(9 - get_rel_row(square))


def array_coord_from_ucci(mv: str) -> int:
    """Packed move (source in the low byte, destination above it) for text like 'h2e2'."""
    if len(mv) != 4:
        raise ValueError(f"not a UCCI move: {mv!r}")
    return (_square(mv[2:]) << 8) | _square(mv[:2])


def ucci_from_array_coord(mv: int) -> str:
    """UCCI text for a packed move; only the two low bytes are read."""
    return _point_text(mv & 0xFF) + _point_text((mv >> 8) & 0xFF)


def ucci_point(cr: int) -> str:
    """UCCI text for the square in the low byte of cr."""
    return _point_text(cr & 0xFF)


class UcciParser:
    """Turns command lines into UcciCommand values."""

    startpos = STARTPOS

    def process_command(self, command: str) -> UcciCommand:
        """Parse one command line; malformed coordinates raise ValueError."""
        args = command.split()
        if not args:
            return UcciCommand(UcciType.POS_ERROR)
        name = args[0]
        simple = {
            "ucci": UcciType.UCCI,
            "isready": UcciType.ISREADY,
            "go": UcciType.GO,
            "stop": UcciType.STOP,
            "quit": UcciType.QUIT,
            "getpos": UcciType.GETPOS,
        }
        if name in simple:
            return UcciCommand(simple[name])
        if name == "position":
            return self._position(args)
        if name == "getmv":
            return UcciCommand(UcciType.GETMV, coords=(_square(self._argument(args)),))
        if name == "makemv":
            move = array_coord_from_ucci(self._argument(args))
            return UcciCommand(UcciType.MAKEMV, coords=(move,))
        return UcciCommand(UcciType.POS_ERROR)

    @staticmethod
    def _argument(args: list[str]) -> str:
        if len(args) < 2:
            raise ValueError(f"{args[0]} needs an argument")
        return args[1]

    def _position(self, args: list[str]) -> UcciCommand:
        fen_field = self._argument(args)
        fen = self.startpos if fen_field == "startpos" else fen_field
        side = 1 if len(args) > 2 and args[2] == "b" else 0
        moves: tuple[int, ...] = ()
        if "moves" in args:
            start = args.index("moves") + 1
            moves = tuple(array_coord_from_ucci(mv) for mv in args[start:])
        return UcciCommand(UcciType.POSITION, fen=fen, coords=moves, side=side)
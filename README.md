# xqengine

A Xiangqi (Chinese chess) toolkit: a 16×16 array board with Zobrist
hashing, precomputed move tables, move generation, a parser for a small
UCCI-style command language, and an asyncio TCP server that answers those
commands over length-prefixed packets.

## Install

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Running the server

```
xqengine-server 9000
xqengine-server --host 127.0.0.1 9000
```

The port is required; `--host` defaults to `Any`, which listens on all
interfaces. Stop the server with Ctrl+C.

Every packet in either direction is a little-endian signed 64-bit byte count
followed by that many bytes of UTF-8 text. All clients share one position.
The server understands:

| Command                          | Reply                                   |
|----------------------------------|-----------------------------------------|
| `ucci`                           | `ucci fighting!!!`                      |
| `isready`                        | `isready ready`                         |
| `quit`                           | `quit`                                  |
| `position startpos [moves ...]`  | none; sets up the position              |
| `position <fen> [moves ...]`     | none; sets up the position              |
| `getpos`                         | `getpos ` followed by the board FEN     |
| `getmv <square>`                 | `getmv ` followed by moves of that piece |
| `makemv <move>`                  | `makemv ok`                             |
| `go`, `stop`                     | none                                    |

Squares and moves use UCCI notation such as `h2` and `h2e2`. Moves that
would leave the mover's king in check are skipped without an error
message. Malformed commands get no reply.

## Using the library

```python
from xqengine.pregen import default_tables
from xqengine.position import Position
from xqengine.movegen import gen_all_moves, gen_piece_moves
from xqengine.ucci import STARTPOS, array_coord_from_ucci, ucci_from_array_coord

pos = Position(default_tables())
pos.from_fen(STARTPOS)
print(pos.to_fen())          # every rank is followed by '/'

moves = gen_all_moves(pos)   # captures first, then quiet moves
print([ucci_from_array_coord(mv.pack()) for mv in moves])

pos.make_move(array_coord_from_ucci("h2e2"))
pos.undo_make_move()
```

- `xqengine.coords` — square arithmetic, piece numbering and the `Move`
  value with `pack()` / `unpack_move()`.
- `xqengine.zobrist` — `ZobristKey` (combined with `^`), `random_key`.
- `xqengine.pregen` — `PreGen` move and hash tables; `default_tables()`
  returns one shared, randomly seeded set.
- `xqengine.position` — `Position` with `from_fen`, `to_fen`, `make_move`,
  `undo_make_move`, `legal_move`, `checked_by` and `protected_by`.
  `make_move` raises `IllegalMoveError` if the king would be left in check.
- `xqengine.movegen` — `gen_cap_moves`, `gen_non_cap_moves`,
  `gen_all_moves` (scored with `mv_lva`) and `gen_piece_moves`.
- `xqengine.ucci` — `UcciParser.process_command`, returning a `UcciCommand`.
- `xqengine.framing` — `encode_packet`, `PacketDecoder` and the asyncio
  `FramedClient`, which retries failed connections.
- `xqengine.server` — `CommandHandler` and `EngineServer`.

Commands can be handled without a network connection:

```python
from xqengine.server import CommandHandler

handler = CommandHandler()
handler.handle_command("position startpos")
print(handler.handle_command("getpos"))
```

## What it does not do

There is no search: `go` and `stop` are accepted but produce no move. The
side field of a FEN or `position` command is not applied; red moves first
after every setup. Generated moves are pseudo-legal — they follow each
piece's movement rules but are not filtered for checks, which only
`make_move` tests. There is no graphical board.
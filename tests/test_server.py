import asyncio

import pytest

from xqengine.framing import FramedClient
from xqengine.server import CommandHandler, EngineServer, main
from xqengine.ucci import STARTPOS


@pytest.fixture
def handler():
    h = CommandHandler()
    h.handle_command("position startpos")
    return h


@pytest.mark.parametrize(
    "cmd, reply",
    [
        ("ucci", "ucci fighting!!!"),
        ("isready", "isready ready"),
        ("quit", "quit"),
        ("go", ""),
        ("stop", ""),
        ("nonsense", ""),
        ("makemv zz", ""),
    ],
)
def test_fixed_replies(handler, cmd, reply):
    assert handler.handle_command(cmd) == reply


def test_getpos_after_startpos(handler):
    assert handler.handle_command("getpos") == "getpos " + STARTPOS + "/"


def test_getmv_lists_cannon_moves(handler):
    reply = handler.handle_command("getmv b2")
    assert reply.startswith("getmv ")
    assert reply.endswith(" ")
    moves = reply.split()[1:]
    assert all(mv.startswith("b2") for mv in moves)
    assert "b2b9" in moves
    assert "b2e2" in moves


def test_getmv_on_empty_square(handler):
    assert handler.handle_command("getmv e5") == "getmv "


def test_makemv_changes_position(handler):
    assert handler.handle_command("makemv h2e2") == "makemv ok"
    fen = handler.handle_command("getpos")
    assert "1C2C4" in fen
    assert fen != "getpos " + STARTPOS + "/"


def test_position_moves_match_makemv():
    direct = CommandHandler()
    direct.handle_command(f"position {STARTPOS} w moves h2e2 h9g7")
    stepwise = CommandHandler()
    stepwise.handle_command("position startpos")
    stepwise.handle_command("makemv h2e2")
    stepwise.handle_command("makemv h9g7")
    assert direct.handle_command("getpos") == stepwise.handle_command("getpos")
    assert direct.position.side == stepwise.position.side == 0


@pytest.mark.asyncio
async def test_server_answers_client():
    server = EngineServer("127.0.0.1", 0, CommandHandler())
    await server.start()
    assert server.is_listening
    client = FramedClient("127.0.0.1", server.port)
    await client.connect()
    await client.send_packet("isready")
    await client.send_packet("position startpos")
    await client.send_packet("getpos")
    packets = client.receive_packets()
    assert await asyncio.wait_for(anext(packets), 5) == "isready ready"
    assert await asyncio.wait_for(anext(packets), 5) == "getpos " + STARTPOS + "/"
    await packets.aclose()
    await client.close()
    await server.close()
    assert not server.is_listening


@pytest.mark.asyncio
async def test_start_twice_raises():
    server = EngineServer("127.0.0.1", 0)
    await server.start()
    try:
        with pytest.raises(RuntimeError):
            await server.start()
    finally:
        await server.close()
    assert server.connection_count == 0


@pytest.mark.parametrize("argv", [[], ["70000"], ["--host", "127.0.0.1", "port"]])
def test_main_rejects_bad_arguments(argv):
    with pytest.raises(SystemExit):
        main(argv)
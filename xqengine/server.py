"""TCP engine server answering UCCI-style commands about one shared position."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging

from .framing import PacketDecoder, encode_packet
from .movegen import gen_piece_moves
from .position import Position, PositionError
from .pregen import PreGen
from .ucci import UcciParser, UcciType, ucci_from_array_coord

log = logging.getLogger(__name__)


class CommandHandler:
    """Keeps a position and turns each command into a reply ('' for none)."""

    def __init__(self, tables: PreGen | None = None) -> None:
        self.parser = UcciParser()
        self.position = Position(tables)

    def handle_command(self, cmd: str) -> str:
        try:
            command = self.parser.process_command(cmd)
        except ValueError as exc:
            log.debug("bad command %r: %s", cmd, exc)
            return ""
        kind = command.type
        if kind == UcciType.UCCI:
            return "ucci fighting!!!"
        if kind == UcciType.ISREADY:
            return "isready ready"
        if kind == UcciType.QUIT:
            return "quit"
        if kind == UcciType.GETPOS:
            return "getpos " + self.position.to_fen()
        if kind == UcciType.POSITION:
            self.position.from_fen(command.fen)
            for mv in command.coords:
                self._try_move(mv)
            return ""
        if kind == UcciType.GETMV:
            try:
                moves = gen_piece_moves(self.position, command.coords[0])
            except PositionError:
                moves = []
            return "getmv " + "".join(ucci_from_array_coord(m.pack()) + " " for m in moves)
        if kind == UcciType.MAKEMV:
            self._try_move(command.coords[0])
            return "makemv ok"
        return ""

    def _try_move(self, mv: int) -> None:
        try:
            self.position.make_move(mv)
        except PositionError as exc:
            log.debug("move %s rejected: %s", ucci_from_array_coord(mv), exc)


class EngineServer:
    """Accepts clients, decodes their packets and answers through a CommandHandler.

    A host of 'Any' listens on all interfaces; port 0 picks a free port,
    which start() then stores in self.port.
    """

    def __init__(self, host: str, port: int | str, handler: CommandHandler | None = None) -> None:
        self.host = host
        self.port = int(port)
        self.handler = handler if handler is not None else CommandHandler()
        self._server: asyncio.AbstractServer | None = None
        self._clients: set[asyncio.StreamWriter] = set()

    @property
    def is_listening(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def connection_count(self) -> int:
        return len(self._clients)

    async def start(self) -> None:
        if self._server is not None:
            raise RuntimeError("server is already listening")
        host = None if self.host == "Any" else self.host
        self._server = await asyncio.start_server(self._serve_client, host, self.port)
        sockets = self._server.sockets
        if sockets:
            self.port = sockets[0].getsockname()[1]
        log.info("Server started on %s:%s", self.host, self.port)

    async def close(self) -> None:
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()
        for writer in list(self._clients):
            writer.close()
        await server.wait_closed()
        log.info("Server stopped")

    async def send_to_client(self, text: str, writer: asyncio.StreamWriter) -> None:
        """Send one packet to a client; nothing is sent while not listening."""
        if not self.is_listening:
            return
        data = encode_packet(text)
        if not data:
            return
        writer.write(data)
        await writer.drain()

    async def _serve_client(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        peer = writer.get_extra_info("peername")
        self._clients.add(writer)
        log.info("[%s] socket connected, connections: %d", peer, len(self._clients))
        decoder = PacketDecoder()
        try:
            while data := await reader.read(65536):
                for text in decoder.feed(data):
                    log.debug("recv: %s", text)
                    reply = self.handler.handle_command(text)
                    if reply:
                        await self.send_to_client(reply, writer)
        except (ConnectionError, ValueError) as exc:
            log.info("[%s] socket error: %s", peer, exc)
        finally:
            self._clients.discard(writer)
            writer.close()
            with contextlib.suppress(ConnectionError, OSError):
                await writer.wait_closed()
            log.info("[%s] socket disconnected, connections: %d", peer, len(self._clients))


def _port(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a port number: {text!r}") from None
    if not 0 <= value <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"port out of range: {value}")
    return value


async def _serve(host: str, port: int) -> None:
    server = EngineServer(host, port, CommandHandler())
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the xiangqi engine server.")
    parser.add_argument("--host", default="Any", help="address to listen on ('Any' for all)")
    parser.add_argument("port", type=_port, help="TCP port to listen on")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(_serve(args.host, args.port))
    return 0
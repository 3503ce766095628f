import asyncio
import socket

import pytest

from xqengine.framing import (
    FramedClient,
    PacketDecoder,
    SocketState,
    encode_packet,
    socket_state_to_string,
)


def test_encode_packet_wire_bytes():
    assert encode_packet("ab") == b"\x02\x00\x00\x00\x00\x00\x00\x00ab"


def test_encode_empty_text_is_nothing():
    assert encode_packet("") == b""


def test_decoder_waits_for_whole_packet():
    data = encode_packet("hello")
    decoder = PacketDecoder()
    assert decoder.feed(data[:5]) == []
    assert decoder.feed(data[5:-1]) == []
    assert decoder.feed(data[-1:]) == ["hello"]
    assert decoder.pending == 0


def test_decoder_splits_several_packets():
    decoder = PacketDecoder()
    data = encode_packet("one") + encode_packet("two") + encode_packet("three")[:4]
    assert decoder.feed(data) == ["one", "two"]
    assert decoder.pending == 4


def test_unicode_round_trip():
    text = "将军 getmv"
    assert PacketDecoder().feed(encode_packet(text)) == [text]


def test_negative_length_raises():
    with pytest.raises(ValueError):
        PacketDecoder().feed((-1).to_bytes(8, "little", signed=True))


@pytest.mark.parametrize(
    "state, name",
    [
        (SocketState.CONNECTED, "Connected"),
        (SocketState.UNCONNECTED, "Unconnected"),
        (SocketState.RECONNECTING, "Reconnecting"),
        (99, "Unknown"),
    ],
)
def test_state_names(state, name):
    assert socket_state_to_string(state) == name


async def _echo(reader, writer):
    while data := await reader.read(1024):
        writer.write(data)
        await writer.drain()
    writer.close()


@pytest.mark.asyncio
async def test_client_round_trip_through_echo_server():
    server = await asyncio.start_server(_echo, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    client = FramedClient("127.0.0.1", port)
    seen = []
    client.state_listeners.append(seen.append)
    await client.connect()
    assert client.state == SocketState.CONNECTED
    await client.send_packet("isready")
    await client.send_packet("quit")
    packets = client.receive_packets()
    assert await asyncio.wait_for(anext(packets), 5) == "isready"
    assert await asyncio.wait_for(anext(packets), 5) == "quit"
    await packets.aclose()
    await client.close()
    server.close()
    await server.wait_closed()
    assert seen == [SocketState.CONNECTED, SocketState.UNCONNECTED]


@pytest.mark.asyncio
async def test_send_without_connection_raises():
    client = FramedClient("127.0.0.1", 1)
    with pytest.raises(ConnectionError):
        await client.send_packet("ucci")


@pytest.mark.asyncio
async def test_connect_to_closed_port_gives_up():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    client = FramedClient("127.0.0.1", port)
    client.max_attempts = 2
    client.reconnect_delay = 0.01
    seen = []
    client.state_listeners.append(seen.append)
    with pytest.raises(ConnectionError):
        await client.connect()
    assert seen == [SocketState.RECONNECTING, SocketState.UNCONNECTED]
    assert client.error_string
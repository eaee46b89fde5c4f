import asyncio
import contextlib
import json

import aiohttp
import pytest

from wirerpc.codec_json import JsonCodec
from wirerpc.core import Message, RpcRequest, RpcResponse, StreamChunk, StreamEnd
from wirerpc.http_server import HttpError, HttpListener


@contextlib.asynccontextmanager
async def running_server():
    listener = await HttpListener.bind("127.0.0.1:0")
    server = await listener.serve()
    host, port = server.local_addr()
    try:
        async with aiohttp.ClientSession() as http:
            yield server, http, f"http://{host}:{port}"
    finally:
        await server.close()


async def read_event(resp) -> bytes:
    data = None
    while True:
        line = await asyncio.wait_for(resp.content.readline(), 5)
        if not line:
            raise AssertionError("event stream ended")
        line = line.rstrip(b"\r\n")
        if not line:
            if data is not None:
                return bytes(json.loads(data))
            continue
        if line.startswith(b"data: "):
            data = line[6:]


@pytest.mark.asyncio
async def test_bind_rejects_invalid_address():
    with pytest.raises(HttpError) as info:
        await HttpListener.bind("not an address")
    assert info.value.kind == "http"
    assert str(info.value).startswith("HTTP error: invalid address")


@pytest.mark.asyncio
async def test_bind_rejects_bad_port():
    with pytest.raises(HttpError) as info:
        await HttpListener.bind("127.0.0.1:99999")
    assert info.value.kind == "http"


@pytest.mark.asyncio
async def test_local_addr_reports_bound_port():
    async with running_server() as (server, _http, _url):
        host, port = server.local_addr()
        assert host == "127.0.0.1"
        assert port > 0


@pytest.mark.asyncio
async def test_posted_message_is_received():
    async with running_server() as (server, http, url):
        async with http.post(f"{url}/rpc/s1", data=bytes([1, 2, 3, 4])) as resp:
            assert resp.status == 200
        msg = await asyncio.wait_for(server.recv(), 5)
        assert msg.data == bytes([1, 2, 3, 4])


@pytest.mark.asyncio
async def test_send_without_session_is_invalid():
    async with running_server() as (server, _http, _url):
        with pytest.raises(HttpError) as info:
            await server.send(Message(b"x"))
        assert info.value.kind == "invalid_session"
        assert str(info.value) == "invalid session"


@pytest.mark.asyncio
async def test_send_to_unknown_session_is_invalid():
    async with running_server() as (server, _http, _url):
        with pytest.raises(HttpError) as info:
            await server.send_to_session("missing", Message(b"x"))
        assert info.value.kind == "invalid_session"


@pytest.mark.asyncio
async def test_echo_over_event_stream():
    async with running_server() as (server, http, url):
        async with http.get(f"{url}/events/s1") as events:
            assert events.headers["Content-Type"].startswith("text/event-stream")
            await http.post(f"{url}/rpc/s1", data=bytes([1, 2, 3, 4]))
            msg = await asyncio.wait_for(server.recv(), 5)
            await server.send(msg)
            assert await read_event(events) == bytes([1, 2, 3, 4])


@pytest.mark.asyncio
async def test_multiple_messages_keep_order():
    async with running_server() as (server, http, url):
        async with http.get(f"{url}/events/s1") as events:
            for i in range(5):
                await http.post(f"{url}/rpc/s1", data=bytes([i] * 10))
                msg = await asyncio.wait_for(server.recv(), 5)
                await server.send(msg)
                assert await read_event(events) == bytes([i] * 10)


@pytest.mark.asyncio
async def test_send_to_session_targets_named_stream():
    async with running_server() as (server, http, url):
        async with http.get(f"{url}/events/a") as first, http.get(
            f"{url}/events/b"
        ) as second:
            await server.send_to_session("b", Message(b"\x07"))
            await server.send_to_session("a", Message(b"\x09"))
            assert await read_event(second) == b"\x07"
            assert await read_event(first) == b"\x09"


@pytest.mark.asyncio
async def test_event_data_is_json_byte_array():
    async with running_server() as (server, http, url):
        async with http.get(f"{url}/events/s1") as events:
            await server.send(Message(bytes([1, 2, 3])))
            line = b""
            while not line.startswith(b"data: "):
                line = await asyncio.wait_for(events.content.readline(), 5)
            assert line.rstrip(b"\r\n") == b"data: [1,2,3]"


@pytest.mark.asyncio
async def test_streamed_responses_reach_client():
    codec = JsonCodec()
    async with running_server() as (server, http, url):
        async with http.get(f"{url}/events/s1") as events:
            request = RpcRequest(id=1, method="stream_data", params=b"")
            await http.post(f"{url}/rpc/s1", data=codec.encode(request))
            received = RpcRequest.from_wire(
                codec.decode((await asyncio.wait_for(server.recv(), 5)).data)
            )
            assert received.method == "stream_data"
            for i in range(5):
                chunk = RpcResponse(id=received.id, result=StreamChunk(bytes([i] * 100)))
                await server.send(Message(codec.encode(chunk)))
            await server.send(
                Message(codec.encode(RpcResponse(id=received.id, result=StreamEnd())))
            )

            chunks = 0
            while True:
                response = RpcResponse.from_wire(codec.decode(await read_event(events)))
                assert response.id == 1
                if isinstance(response.result, StreamEnd):
                    break
                assert len(response.result.data) == 100
                assert response.result.data[0] == chunks
                chunks += 1
            assert chunks == 5


@pytest.mark.asyncio
async def test_cors_allows_any_origin():
    async with running_server() as (_server, http, url):
        async with http.post(f"{url}/rpc/s1", data=b"x") as resp:
            assert resp.headers["Access-Control-Allow-Origin"] == "*"
        async with http.options(f"{url}/rpc/s1") as resp:
            assert resp.status == 200
            assert resp.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_recv_after_close_raises_connection_closed():
    listener = await HttpListener.bind("127.0.0.1:0")
    server = await listener.serve()
    await server.close()
    with pytest.raises(HttpError) as info:
        await server.recv()
    assert info.value.kind == "connection_closed"
    assert str(info.value) == "connection closed"


def test_error_messages():
    assert str(HttpError("http", "boom")) == "HTTP error: boom"
    assert str(HttpError("channel_send")) == "channel send error"
    with pytest.raises(ValueError):
        HttpError("nonsense")
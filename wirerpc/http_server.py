"""HTTP server transport: clients POST requests and receive replies over Server-Sent Events.

Clients send messages with ``POST /rpc/<session_id>`` and receive messages
from an event stream at ``GET /events/<session_id>``. Each event carries
one message as a JSON array of byte values in its ``data:`` line. Because
the client opens both connections, this works behind NAT and firewalls.
"""

from __future__ import annotations

import asyncio
import ipaddress
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Set, Tuple

from aiohttp import web

from .core import Message, Transport

logger = logging.getLogger(__name__)

KEEP_ALIVE_INTERVAL = 15.0
"""Seconds of silence after which a keep-alive comment is written to an event stream."""

_ERROR_FORMATS = {
    "http": "HTTP error: {}",
    "connection_closed": "connection closed",
    "io": "IO error: {}",
    "serialization": "serialization error: {}",
    "channel_send": "channel send error",
    "channel_recv": "channel receive error",
    "invalid_session": "invalid session",
}


class HttpError(Exception):
    """An error of the HTTP transport.

    ``kind`` is one of ``http``, ``connection_closed``, ``io``,
    ``serialization``, ``channel_send``, ``channel_recv`` and
    ``invalid_session``.
    """

    def __init__(self, kind: str, detail: object = "") -> None:
        if kind not in _ERROR_FORMATS:
            raise ValueError(f"unknown HTTP error kind {kind!r}")
        super().__init__(kind, detail)
        self.kind = kind
        self.detail = str(detail)

    def __str__(self) -> str:
        return _ERROR_FORMATS[self.kind].format(self.detail)


class _Session:
    """The outgoing queue of one connected event stream."""

    def __init__(self) -> None:
        self.queue: "asyncio.Queue[Optional[Message]]" = asyncio.Queue()
        self.closed = False

    def push(self, msg: Message) -> None:
        if self.closed:
            raise HttpError("channel_send")
        self.queue.put_nowait(msg)


@dataclass
class _ServerState:
    sessions: Dict[str, _Session] = field(default_factory=dict)
    streams: Set[_Session] = field(default_factory=set)
    incoming: "asyncio.Queue[Optional[Message]]" = field(default_factory=asyncio.Queue)


def _parse_addr(addr: str) -> Tuple[str, int]:
    host, sep, port_text = addr.rpartition(":")
    if not sep or not host:
        raise HttpError("http", f"invalid address: {addr!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        ip = ipaddress.ip_address(host)
    except ValueError as exc:
        raise HttpError("http", f"invalid address: {exc}") from None
    if not port_text.isdigit() or int(port_text) > 65535:
        raise HttpError("http", f"invalid address: bad port {port_text!r}")
    return str(ip), int(port_text)


def _sse_event(msg: Message) -> bytes:
    return b"data: " + json.dumps(list(msg.data), separators=(",", ":")).encode() + b"\n\n"


def _build_app(state: _ServerState) -> web.Application:
    async def events(request: web.Request) -> web.StreamResponse:
        session = _Session()
        state.sessions[request.match_info["session_id"]] = session
        state.streams.add(session)
        response = web.StreamResponse(
            headers={"Content-Type": "text/event-stream", "Cache-Control": "no-cache"}
        )
        try:
            await response.prepare(request)
            while True:
                try:
                    msg = await asyncio.wait_for(session.queue.get(), KEEP_ALIVE_INTERVAL)
                except asyncio.TimeoutError:
                    await response.write(b":\n\n")
                    continue
                if msg is None:
                    break
                await response.write(_sse_event(msg))
            await response.write_eof()
        except (ConnectionError, RuntimeError) as exc:
            logger.debug("event stream ended: %s", exc)
        finally:
            session.closed = True
            state.streams.discard(session)
        return response

    async def rpc(request: web.Request) -> web.Response:
        body = await request.read()
        state.incoming.put_nowait(Message(body))
        return web.Response(status=200)

    async def preflight(request: web.Request) -> web.Response:
        return web.Response(status=200)

    async def add_cors(request: web.Request, response: web.StreamResponse) -> None:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"

    app = web.Application()
    app.router.add_get("/events/{session_id}", events)
    app.router.add_post("/rpc/{session_id}", rpc)
    app.router.add_route("OPTIONS", "/{tail:.*}", preflight)
    app.on_response_prepare.append(add_cors)
    return app


class HttpListener:
    """An address to serve on, with the state shared by all sessions."""

    def __init__(self, host: str, port: int) -> None:
        self._host = host
        self._port = port
        self._state = _ServerState()

    @classmethod
    async def bind(cls, addr: str) -> "HttpListener":
        """Parse ``host:port`` and prepare a listener; raises HttpError if invalid."""
        host, port = _parse_addr(addr)
        return cls(host, port)

    async def serve(self) -> "HttpServerTransport":
        """Start the HTTP server and return the transport that talks to its clients."""
        runner = web.AppRunner(_build_app(self._state))
        await runner.setup()
        site = web.TCPSite(runner, self._host, self._port)
        try:
            await site.start()
        except OSError as exc:
            await runner.cleanup()
            raise HttpError("io", exc) from exc
        host, port = runner.addresses[0][:2]
        return HttpServerTransport(self._state, (host, port), runner)


class HttpServerTransport(Transport):
    """Server side of the HTTP transport.

    ``recv`` yields messages posted by any client; ``send`` writes to the
    first connected session, ``send_to_session`` to a named one.
    """

    def __init__(
        self, state: _ServerState, addr: Tuple[str, int], runner: web.AppRunner
    ) -> None:
        self._state = state
        self._addr = addr
        self._runner = runner
        self._closed = False

    def local_addr(self) -> Tuple[str, int]:
        """Return the (host, port) the server is bound to."""
        return self._addr

    async def send_to_session(self, session_id: str, msg: Message) -> None:
        """Send ``msg`` on the event stream of ``session_id``."""
        session = self._state.sessions.get(session_id)
        if session is None:
            raise HttpError("invalid_session")
        session.push(msg)

    async def send(self, msg: Message) -> None:
        """Send ``msg`` to the first registered session."""
        session = next(iter(self._state.sessions.values()), None)
        if session is None:
            raise HttpError("invalid_session")
        session.push(msg)

    async def recv(self) -> Message:
        """Wait for the next message posted by a client."""
        if self._closed:
            raise HttpError("connection_closed")
        msg = await self._state.incoming.get()
        if msg is None:
            self._state.incoming.put_nowait(None)
            raise HttpError("connection_closed")
        return msg

    async def close(self) -> None:
        """End all event streams and stop the HTTP server."""
        if self._closed:
            return
        self._closed = True
        self._state.incoming.put_nowait(None)
        for session in list(self._state.streams):
            session.queue.put_nowait(None)
        await self._runner.cleanup()
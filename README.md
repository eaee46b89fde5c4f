# wirerpc

Building blocks for an asyncio RPC system in which the transport and the
codec are kept apart:

- `wirerpc.core`: the `Message` carried by transports, the abstract
  `Transport` and `Codec` interfaces, and the request/response envelope.
- `wirerpc.codec_json.JsonCodec` and `wirerpc.codec_msgpack.MessagePackCodec`:
  readable and compact codecs.
- `wirerpc.http_server`: a server transport over HTTP with Server-Sent Events.
- `wirerpc.openapi`: OpenAPI 3.0 specs and TypeScript clients generated from
  method schemas.
- `wirerpc.errors`: the exceptions raised by all of the above.

## Installing

```
pip install wirerpc
```

Python 3.10 or later is required. The package depends on `msgpack` and
`aiohttp`.

## Codecs

```python
from wirerpc.codec_json import JsonCodec
from wirerpc.codec_msgpack import MessagePackCodec

for codec in (JsonCodec(), MessagePackCodec()):
    data = codec.encode([1, 2, 3, 4, 5])
    assert codec.decode(data) == [1, 2, 3, 4, 5]
```

Both codecs encode dataclass instances as maps of their fields, enum members
by their value, and the envelope types below by their wire form. `JsonCodec`
writes compact JSON and turns `bytes` into arrays of integers;
`MessagePackCodec` writes `bytes` as MessagePack binary. Decoding returns plain
data (lists, maps, strings, numbers). A value that cannot be encoded, or bytes
that cannot be decoded, raise `wirerpc.errors.CodecError`.

## Wire protocol

`wirerpc.core` defines the envelope:

- `RpcRequest(id, method, params)`: a call with a request id, a method name
  and encoded parameters.
- `RpcResponse(id, result)`: the answer to the request with the same id,
  where `result` is one of `ResultOk(data)`, `ResultErr(message)`,
  `StreamChunk(data)` or `StreamEnd()`.

A streaming answer is any number of `StreamChunk` responses followed by a
`StreamEnd`; several streams can be interleaved on one connection and told
apart by their request id.

Each envelope type has `to_wire()`, and `from_wire(data)` to rebuild it from
decoded data; `result_to_wire` and `result_from_wire` do the same for a result
alone. Results use an externally tagged form such as `{"Ok": [...]}`,
`{"Err": "..."}` or `"StreamEnd"`. Malformed data raises `CodecError`.

```python
from wirerpc.codec_json import JsonCodec
from wirerpc.core import ResultOk, RpcRequest, RpcResponse

codec = JsonCodec()
request = RpcRequest(id=1, method="add", params=codec.encode([2, 3]))
assert RpcRequest.from_wire(codec.decode(codec.encode(request))) == request

response = RpcResponse(id=1, result=ResultOk(codec.encode(5)))
decoded = RpcResponse.from_wire(codec.decode(codec.encode(response)))
assert codec.decode(decoded.result.data) == 5
```

`str()` of a result gives `Ok`, `Err: <message>`, `StreamChunk` or
`StreamEnd`.

`Message(data)` holds raw bytes; `Message.from_slice` builds one from any
bytes-like object or iterable of byte values. A `Transport` has async `send`,
`recv` and `close`, and can be used with `async with`, which closes it on exit.

## HTTP server transport

The client opens both connections, so this works when the client is behind
NAT or a firewall:

- `POST /rpc/{session_id}` delivers the request body as one message.
- `GET /events/{session_id}` opens an event stream on which the server writes
  one event per message, `data: ` followed by the message as a JSON array of
  byte values. A keep-alive comment is written after 15 seconds of silence.

All responses carry permissive CORS headers, and `OPTIONS` preflight requests
are answered on every path.

```python
import asyncio

from wirerpc.http_server import HttpListener


async def main() -> None:
    listener = await HttpListener.bind("127.0.0.1:8080")
    async with await listener.serve() as server:
        print("listening on", server.local_addr())
        msg = await server.recv()
        await server.send(msg)


asyncio.run(main())
```

- `HttpListener.bind(addr)` takes `host:port` with an IP address as host
  (IPv6 in brackets); port `0` picks a free port.
- `serve()` starts the server and returns an `HttpServerTransport`.
- `recv()` returns the next message posted by any client.
- `send(msg)` writes to the first registered session;
  `send_to_session(session_id, msg)` writes to a named one.
- `local_addr()` returns the bound `(host, port)`.
- `close()` ends every event stream and stops the server; `recv` then raises.

Failures raise `HttpError`, whose `kind` is one of `http`,
`connection_closed`, `io`, `serialization`, `channel_send`, `channel_recv` or
`invalid_session`.

## OpenAPI and TypeScript

```python
from wirerpc.openapi import MethodSchema, generate_openapi_spec, generate_typescript_client

methods = {
    "add": MethodSchema(
        name="add",
        params={"type": "array", "prefixItems": [{"type": "number"}, {"type": "number"}]},
        returns={"type": "number"},
    )
}

spec = generate_openapi_spec("Math API", "1.0.0", methods)
print(spec.to_dict()["paths"]["/add"])

print(generate_typescript_client("MathClient", "http://localhost:3000", methods))
```

Each method becomes a `POST /<method>` operation with an `application/json`
request body (left out when `params` is `None`) and a `200` response.
`to_dict()` drops unset optional fields. The TypeScript client has one async
method per schema; a `prefixItems` array becomes positional arguments
`arg0`, `arg1`, ….

## Errors

Every failure in the core and codec modules is an `RpcError` from
`wirerpc.errors`: `TransportError`, `CodecError`, `MethodNotFoundError`,
`InvalidRequestError`, `RemoteError`, `ConnectionClosedError`, `RpcIoError`
and `OtherError`. Their messages are prefixed by kind, for example
`codec error: invalid json` or `method not found: unknown_method`;
`OtherError` shows the bare message.

## What this package does not do

- It has no service layer: nothing here matches a method name to a Python
  function, calls it, or wraps the calls in a typed client. Code that uses the
  transport reads `RpcRequest`s and writes `RpcResponse`s itself, as in the
  examples above.
- It has only the server side of the HTTP transport. Clients use any HTTP
  library that can POST and read an event stream.
- It has no command-line program.

## Running the tests

```
pip install "wirerpc[test]"
pytest
```
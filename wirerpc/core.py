"""Messages, transport and codec interfaces, and the request/response envelope."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Union

from .errors import CodecError

_U64_MAX = 2**64 - 1


@dataclass
class Message:
    """Opaque bytes carried by a transport and interpreted by a codec."""

    data: bytes = b""

    def __post_init__(self) -> None:
        self.data = bytes(self.data)

    @classmethod
    def from_slice(cls, data) -> "Message":
        """Build a message from any bytes-like object or iterable of byte values."""
        return cls(bytes(data))


class Transport(abc.ABC):
    """Sends and receives whole messages over some channel."""

    @abc.abstractmethod
    async def send(self, msg: Message) -> None:
        """Send one message."""

    @abc.abstractmethod
    async def recv(self) -> Message:
        """Wait for and return the next message."""

    async def close(self) -> None:
        """Close the transport gracefully."""

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


class Codec(abc.ABC):
    """Turns values into bytes and back."""

    @abc.abstractmethod
    def encode(self, value: Any) -> bytes:
        """Serialize a value; raises CodecError on failure."""

    @abc.abstractmethod
    def decode(self, data: bytes) -> Any:
        """Deserialize bytes into plain data; raises CodecError on failure."""


@dataclass
class ResultOk:
    """A successful call result holding the encoded return value."""

    data: bytes = b""

    def __post_init__(self) -> None:
        self.data = bytes(self.data)

    def __str__(self) -> str:
        return "Ok"


@dataclass
class ResultErr:
    """A failed call with the error message."""

    message: str

    def __str__(self) -> str:
        return f"Err: {self.message}"


@dataclass
class StreamChunk:
    """One non-final chunk of a streamed result."""

    data: bytes = b""

    def __post_init__(self) -> None:
        self.data = bytes(self.data)

    def __str__(self) -> str:
        return "StreamChunk"


@dataclass
class StreamEnd:
    """Marker for the end of a streamed result."""

    def __str__(self) -> str:
        return "StreamEnd"


ResponseResult = Union[ResultOk, ResultErr, StreamChunk, StreamEnd]


def _byte_field(value: Any, name: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, list) and all(
        isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in value
    ):
        return bytes(value)
    raise CodecError(f"invalid byte sequence for field {name!r}")


def _u64_field(value: Any, name: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= _U64_MAX:
        return value
    raise CodecError(f"invalid unsigned integer for field {name!r}")


def _str_field(value: Any, name: str) -> str:
    if isinstance(value, str):
        return value
    raise CodecError(f"invalid string for field {name!r}")


def _record(data: Any, kind: str, names: tuple) -> dict:
    if not isinstance(data, dict):
        raise CodecError(f"expected a map for {kind}")
    missing = [n for n in names if n not in data]
    if missing:
        raise CodecError(f"missing field {missing[0]!r} in {kind}")
    return data


def result_to_wire(result: ResponseResult) -> Any:
    """Convert a response result to its plain, externally tagged form."""
    if isinstance(result, ResultOk):
        return {"Ok": list(result.data)}
    if isinstance(result, ResultErr):
        return {"Err": result.message}
    if isinstance(result, StreamChunk):
        return {"StreamChunk": list(result.data)}
    if isinstance(result, StreamEnd):
        return "StreamEnd"
    raise TypeError(f"not a response result: {result!r}")


def result_from_wire(data: Any) -> ResponseResult:
    """Rebuild a response result from its plain form."""
    if data == "StreamEnd":
        return StreamEnd()
    if isinstance(data, dict) and len(data) == 1:
        ((tag, payload),) = data.items()
        if tag == "Ok":
            return ResultOk(_byte_field(payload, "Ok"))
        if tag == "Err":
            return ResultErr(_str_field(payload, "Err"))
        if tag == "StreamChunk":
            return StreamChunk(_byte_field(payload, "StreamChunk"))
        raise CodecError(f"unknown response result variant {tag!r}")
    raise CodecError("invalid response result")


@dataclass
class RpcRequest:
    """A call: request id, method name and encoded parameters."""

    id: int
    method: str
    params: bytes = field(default=b"")

    def __post_init__(self) -> None:
        self.params = bytes(self.params)

    def to_wire(self) -> dict:
        return {"id": self.id, "method": self.method, "params": list(self.params)}

    @classmethod
    def from_wire(cls, data: Any) -> "RpcRequest":
        record = _record(data, "request", ("id", "method", "params"))
        return cls(
            id=_u64_field(record["id"], "id"),
            method=_str_field(record["method"], "method"),
            params=_byte_field(record["params"], "params"),
        )


@dataclass
class RpcResponse:
    """The answer to a request with the same id."""

    id: int
    result: ResponseResult

    def to_wire(self) -> dict:
        return {"id": self.id, "result": result_to_wire(self.result)}

    @classmethod
    def from_wire(cls, data: Any) -> "RpcResponse":
        record = _record(data, "response", ("id", "result"))
        return cls(
            id=_u64_field(record["id"], "id"),
            result=result_from_wire(record["result"]),
        )
"""Human-readable JSON codec."""

from __future__ import annotations

import dataclasses
import enum
import json
from typing import Any

from .core import (
    Codec,
    ResultErr,
    ResultOk,
    RpcRequest,
    RpcResponse,
    StreamChunk,
    StreamEnd,
    result_to_wire,
)
from .errors import CodecError


def _default(value: Any) -> Any:
    if isinstance(value, (RpcRequest, RpcResponse)):
        return value.to_wire()
    if isinstance(value, (ResultOk, ResultErr, StreamChunk, StreamEnd)):
        return result_to_wire(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return list(bytes(value))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, enum.Enum):
        return value.value
    raise TypeError(f"object of type {type(value).__name__} is not serializable")


class JsonCodec(Codec):
    """Compact JSON encoding; bytes become arrays of integers."""

    def encode(self, value: Any) -> bytes:
        try:
            text = json.dumps(value, default=_default, separators=(",", ":"))
        except (TypeError, ValueError, RecursionError) as exc:
            raise CodecError(f"JSON encode error: {exc}") from exc
        return text.encode("utf-8")

    def decode(self, data: bytes) -> Any:
        try:
            return json.loads(bytes(data))
        except (ValueError, TypeError, RecursionError) as exc:
            raise CodecError(f"JSON decode error: {exc}") from exc
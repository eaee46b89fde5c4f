from dataclasses import dataclass

import pytest

from wirerpc.codec_json import JsonCodec
from wirerpc.core import RpcRequest, RpcResponse, StreamChunk
from wirerpc.errors import CodecError


def test_json_encode_decode():
    codec = JsonCodec()
    value = [1, 2, 3, 4, 5]
    assert codec.decode(codec.encode(value)) == value


def test_json_human_readable():
    codec = JsonCodec()
    json_str = codec.encode(("hello", 42)).decode("utf-8")
    assert "hello" in json_str
    assert "42" in json_str


def test_json_complex_types():
    codec = JsonCodec()
    value = (42, "test", True)
    assert tuple(codec.decode(codec.encode(value))) == value


def test_json_error_handling():
    codec = JsonCodec()
    with pytest.raises(CodecError) as info:
        codec.decode(b"not valid json")
    assert str(info.value).startswith("codec error: JSON decode error:")


def test_json_nested_structures():
    @dataclass
    class Inner:
        value: int

    @dataclass
    class Outer:
        name: str
        inner: Inner

    codec = JsonCodec()
    data = Outer(name="test", inner=Inner(value=42))
    decoded = codec.decode(codec.encode(data))
    assert decoded == {"name": "test", "inner": {"value": 42}}
    assert Outer(decoded["name"], Inner(**decoded["inner"])) == data


def test_json_bytes_as_integer_array():
    codec = JsonCodec()
    assert codec.encode(b"\x01\x02") == b"[1,2]"


def test_json_request_round_trip():
    codec = JsonCodec()
    request = RpcRequest(id=3, method="echo", params=b"[1]")
    assert RpcRequest.from_wire(codec.decode(codec.encode(request))) == request


def test_json_response_round_trip():
    codec = JsonCodec()
    response = RpcResponse(id=9, result=StreamChunk(b"\x00\xff"))
    assert RpcResponse.from_wire(codec.decode(codec.encode(response))) == response


def test_json_encode_unserializable():
    with pytest.raises(CodecError) as info:
        JsonCodec().encode(object())
    assert "JSON encode error" in str(info.value)
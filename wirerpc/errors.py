"""Exception hierarchy raised by RPC operations."""

from __future__ import annotations

from typing import ClassVar, Optional


class RpcError(Exception):
    """Base class for every error raised by an RPC operation."""

    prefix: ClassVar[Optional[str]] = None

    def __init__(self, detail: object = "") -> None:
        super().__init__(detail)
        self.detail = str(detail)
        self.cause: Optional[BaseException] = (
            detail if isinstance(detail, BaseException) else None
        )

    def __str__(self) -> str:
        if self.prefix is None:
            return self.detail
        return f"{self.prefix}: {self.detail}"


class TransportError(RpcError):
    """The transport failed to send or receive a message.

    The detail may be a message or the underlying exception.
    """

    prefix = "transport error"


class CodecError(RpcError):
    """A value could not be serialized or deserialized."""

    prefix = "codec error"


class MethodNotFoundError(RpcError):
    """The requested method does not exist."""

    prefix = "method not found"

    @property
    def method(self) -> str:
        return self.detail


class InvalidRequestError(RpcError):
    """A request was malformed."""

    prefix = "invalid request"


class RemoteError(RpcError):
    """The remote side reported an error for the call."""

    prefix = "remote error"


class ConnectionClosedError(RpcError):
    """The connection was closed."""

    def __init__(self) -> None:
        super().__init__("connection closed")

    def __str__(self) -> str:
        return "connection closed"


class RpcIoError(RpcError):
    """An operating-system level I/O error occurred."""

    prefix = "io error"


class OtherError(RpcError):
    """Any other failure; displayed as the bare message."""
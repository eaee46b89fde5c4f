"""RPC building blocks: message envelope, JSON and MessagePack codecs, HTTP+SSE server transport, OpenAPI generation."""

__version__ = "0.1.0"
"""Framing and serialization helpers for stream RPC frames."""

from __future__ import annotations

import json
from typing import Any

from .protocol import JSONRPC_VERSION, RpcRequest, RpcResponse
from lnbridge.utils.exceptions import RemoteError


def encode_request(request: RpcRequest, delimiter: bytes) -> bytes:
    """Encode a request frame as JSON followed by the delimiter.

    json.dumps escapes control characters, so a newline delimiter can never
    occur inside the encoded frame. Any other delimiter is checked explicitly.
    """
    payload = {
        "jsonrpc": JSONRPC_VERSION,
        "method": request.method,
        "params": request.params,
        "id": request.id,
    }
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    if delimiter in body:
        raise ValueError(f"delimiter {delimiter!r} occurs inside request {request.id}")
    return body + delimiter


class FrameBuffer:
    """Receive buffer that yields complete delimiter-terminated frames.

    Only bytes not yet scanned are searched on each feed, so a large reply
    arriving in many chunks is scanned once.
    """

    def __init__(self, delimiter: bytes):
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self._delimiter = delimiter
        self._buffer = bytearray()
        self._scan_from = 0

    def __len__(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes) -> list[bytes]:
        """Append a chunk; return the non-blank frames it completed."""
        self._buffer += chunk
        frames: list[bytes] = []
        consumed = 0
        pos = self._scan_from
        while True:
            end = self._buffer.find(self._delimiter, pos)
            if end == -1:
                break
            frame = bytes(self._buffer[consumed:end])
            if frame.strip():
                frames.append(frame)
            consumed = pos = end + len(self._delimiter)
        if consumed:
            del self._buffer[:consumed]
        # A delimiter split across chunks starts at most len(delimiter) - 1 bytes back.
        self._scan_from = max(0, len(self._buffer) - len(self._delimiter) + 1)
        return frames

    def clear(self) -> None:
        self._buffer.clear()
        self._scan_from = 0


def decode_response(payload: Any) -> RpcResponse | None:
    """Decode a parsed message into an RpcResponse, or None when it carries no usable id."""
    if not isinstance(payload, dict):
        return None
    msg_id = payload.get("id")
    if msg_id is None or isinstance(msg_id, (dict, list, bool)):
        return None
    if payload.get("error") is not None:
        return RpcResponse(id=str(msg_id), ok=False, error=payload["error"])
    return RpcResponse(id=str(msg_id), ok=True, result=payload.get("result"))


def to_remote_error(response: RpcResponse) -> RemoteError:
    """Convert an error response into RemoteError carrying the serialized payload."""
    return RemoteError(json.dumps(response.error, ensure_ascii=False), payload=response.error)

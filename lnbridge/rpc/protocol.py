"""JSON-RPC 2.0 frame models for the stream backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

JSONRPC_VERSION = "2.0"


@dataclass(slots=True)
class RpcRequest:
    """Request frame written to the socket."""

    id: str
    method: str
    params: list[Any] | dict[str, Any]


@dataclass(slots=True)
class RpcResponse:
    """Response frame read from the socket.

    `error` holds the raw error payload exactly as the node sent it.
    """

    id: str
    ok: bool
    result: Any = None
    error: Any = None

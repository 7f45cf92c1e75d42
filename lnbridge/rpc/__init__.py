"""Stream JSON-RPC transport: frames, pending-call registry and client."""

from .client import StreamRpcClient
from .protocol import JSONRPC_VERSION, RpcRequest, RpcResponse
from .registry import PendingCall, PendingCallRegistry, RegistryStats
from .serialization import FrameBuffer, decode_response, encode_request, to_remote_error

__all__ = [
    "FrameBuffer",
    "JSONRPC_VERSION",
    "PendingCall",
    "PendingCallRegistry",
    "RegistryStats",
    "RpcRequest",
    "RpcResponse",
    "StreamRpcClient",
    "decode_response",
    "encode_request",
    "to_remote_error",
]

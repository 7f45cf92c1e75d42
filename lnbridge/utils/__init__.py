"""Utility functions for lnbridge."""

from lnbridge.utils.helpers import base64_to_hex, hex_to_base64, safe_dict, sat_to_msat
from lnbridge.utils.exceptions import (
    LnBridgeError,
    InvalidArgument,
    ConfigurationError,
    TransportError,
    RemoteError,
    ProtocolError,
    UnexpectedResponse,
    ErrorCategory,
    classify_exception,
    sanitize_error_message,
)

__all__ = [
    "base64_to_hex",
    "hex_to_base64",
    "safe_dict",
    "sat_to_msat",
    "LnBridgeError",
    "InvalidArgument",
    "ConfigurationError",
    "TransportError",
    "RemoteError",
    "ProtocolError",
    "UnexpectedResponse",
    "ErrorCategory",
    "classify_exception",
    "sanitize_error_message",
]

"""
Exception hierarchy and error handling utilities for lnbridge.

Provides:
- One failure vocabulary shared by every backend adapter
- Error categorization (retryable, validation, remote, fatal)
- Safe error message formatting (no credential leak)
"""

from __future__ import annotations

import asyncio
import json
import re
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Error categories for classification."""
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    RETRYABLE = "retryable"
    REMOTE = "remote"
    PROTOCOL = "protocol"
    FATAL = "fatal"


class LnBridgeError(Exception):
    """Base exception for all lnbridge errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        category: ErrorCategory = ErrorCategory.FATAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}

    @property
    def retryable(self) -> bool:
        return self.category == ErrorCategory.RETRYABLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class InvalidArgument(LnBridgeError):
    """Malformed call input."""

    def __init__(self, message: str, argument: str | None = None):
        details = {"argument": argument} if argument else {}
        super().__init__(message, code="INVALID_ARGUMENT", category=ErrorCategory.VALIDATION, details=details)
        self.argument = argument


class ConfigurationError(LnBridgeError):
    """Bad or missing adapter options."""

    def __init__(self, message: str, fields: list[str] | None = None):
        details = {"fields": list(fields)} if fields else {}
        super().__init__(message, code="CONFIGURATION_ERROR", category=ErrorCategory.CONFIGURATION, details=details)
        self.fields = list(fields or [])


class TransportError(LnBridgeError):
    """Connection, socket or HTTP transport failure."""

    def __init__(self, message: str, reason: str | None = None):
        details = {"reason": reason} if reason else {}
        super().__init__(message, code="TRANSPORT_ERROR", category=ErrorCategory.RETRYABLE, details=details)
        self.reason = reason


class RemoteError(LnBridgeError):
    """The backend answered with an explicit error or a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
    ):
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if payload is not None:
            details["payload"] = payload
        super().__init__(message, code="REMOTE_ERROR", category=ErrorCategory.REMOTE, details=details)
        self.status_code = status_code
        self.payload = payload


class ProtocolError(LnBridgeError):
    """Response bytes do not parse as the expected wire format."""

    def __init__(self, message: str):
        super().__init__(message, code="PROTOCOL_ERROR", category=ErrorCategory.PROTOCOL)


class UnexpectedResponse(LnBridgeError):
    """Response parsed, but a required field is missing or has the wrong type."""

    def __init__(self, operation: str, field: str | None = None, reason: str | None = None):
        if field:
            message = f'Unexpected response from LN backend [{operation}]: "{field}"'
        else:
            message = f"Unexpected response from LN backend [{operation}]"
        if reason:
            message += f" ({reason})"
        super().__init__(
            message,
            code="UNEXPECTED_RESPONSE",
            category=ErrorCategory.PROTOCOL,
            details={"operation": operation, "field": field},
        )
        self.operation = operation
        self.field = field


_SENSITIVE_PATTERNS = [
    re.compile(r"(macaroon|api[_-]?key|token|secret|password|auth)[=:]\s*['\"]?([^\s'\"]+)['\"]?", re.IGNORECASE),
    re.compile(r"-----BEGIN [A-Z ]+-----.*?-----END [A-Z ]+-----", re.DOTALL),
    re.compile(r"\b[0-9a-fA-F]{128,}\b"),
]


def sanitize_error_message(message: str, replacement: str = "[REDACTED]") -> str:
    """Remove credential material from error messages."""
    sanitized = message
    for pattern in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def classify_exception(exc: BaseException) -> tuple[str, ErrorCategory, bool]:
    """
    Classify an exception and return (error_code, category, should_retry).

    Returns:
        Tuple of (error_code, category, should_retry)
    """
    if isinstance(exc, LnBridgeError):
        return exc.code, exc.category, exc.retryable

    if isinstance(exc, asyncio.TimeoutError):
        return "TIMEOUT", ErrorCategory.RETRYABLE, True

    if isinstance(exc, (ConnectionError, OSError)):
        return "TRANSPORT_ERROR", ErrorCategory.RETRYABLE, True

    if isinstance(exc, json.JSONDecodeError):
        return "PROTOCOL_ERROR", ErrorCategory.PROTOCOL, False

    if isinstance(exc, (ValueError, TypeError)):
        return "INVALID_ARGUMENT", ErrorCategory.VALIDATION, False

    return "INTERNAL_ERROR", ErrorCategory.FATAL, False

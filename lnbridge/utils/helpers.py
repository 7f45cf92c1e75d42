"""Small data-shaping helpers shared by the backends."""

from __future__ import annotations

import base64
import binascii
from decimal import Decimal, InvalidOperation
from typing import Any

from lnbridge.utils.exceptions import InvalidArgument

MSAT_PER_SAT = 1000


def safe_dict(value: Any) -> dict[str, Any]:
    """Return the value when dict-like, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def sat_to_msat(value: int | float | str | Decimal) -> int:
    """Convert satoshis to millisatoshis without float rounding."""
    if isinstance(value, bool):
        raise InvalidArgument("Invalid amount: number expected", argument="amount")
    try:
        amount = Decimal(str(value)) * MSAT_PER_SAT
    except InvalidOperation as exc:
        raise InvalidArgument(f"Invalid amount: {value!r}", argument="amount") from exc
    if amount != amount.to_integral_value():
        raise InvalidArgument(f"Amount {value!r} is not a whole number of millisatoshis", argument="amount")
    return int(amount)


def base64_to_hex(value: str) -> str:
    """Decode base64 text and return the bytes as lowercase hex."""
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64: {value!r}") from exc
    return raw.hex()


def hex_to_base64(value: str) -> str:
    """Decode hex text and return the bytes as standard base64."""
    try:
        raw = bytes.fromhex(value)
    except ValueError as exc:
        raise ValueError(f"invalid hex: {value!r}") from exc
    return base64.b64encode(raw).decode("ascii")

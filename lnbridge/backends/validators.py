"""Declarative response shapes checked before a backend reply reaches the caller."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from lnbridge.utils.exceptions import UnexpectedResponse

FieldKind = Literal["string", "number", "boolean", "object", "array"]


def _is_kind(value: Any, kind: FieldKind) -> bool:
    if kind == "string":
        return isinstance(value, str)
    if kind == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind == "boolean":
        return isinstance(value, bool)
    if kind == "object":
        return isinstance(value, dict)
    if kind == "array":
        return isinstance(value, list)
    raise ValueError(f"unknown field kind: {kind}")


@dataclass(frozen=True, slots=True)
class ResponseShape:
    """Required fields (in check order) of one operation's reply."""

    operation: str
    fields: dict[str, FieldKind] = field(default_factory=dict)


def validate_response(shape: ResponseShape, payload: Any) -> dict[str, Any]:
    """Return the payload unchanged, or raise UnexpectedResponse naming the first bad field."""
    if not isinstance(payload, dict):
        raise UnexpectedResponse(shape.operation, reason=f"object expected, got {type(payload).__name__}")
    for name, kind in shape.fields.items():
        if name not in payload or not _is_kind(payload[name], kind):
            raise UnexpectedResponse(shape.operation, field=name)
    return payload


# lnd REST
LND_GETINFO = ResponseShape(
    "GET /v1/getinfo",
    {"alias": "string", "identity_pubkey": "string", "uris": "array"},
)
LND_OPEN_CHANNEL = ResponseShape(
    "POST /v1/channels",
    {"output_index": "number", "funding_txid_str": "string"},
)
LND_PAY_INVOICE = ResponseShape(
    "POST /v1/channels/transactions",
    {"payment_preimage": "string", "payment_hash": "string", "payment_route": "object"},
)
LND_ADD_INVOICE = ResponseShape(
    "POST /v1/invoices",
    {"payment_request": "string"},
)

# c-lightning JSON-RPC
CLN_FUNDCHANNEL = ResponseShape("fundchannel", {"txid": "string"})
CLN_PAY = ResponseShape("pay", {"payment_preimage": "string"})
CLN_INVOICE = ResponseShape("invoice", {"bolt11": "string"})

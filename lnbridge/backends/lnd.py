"""lnd backend: REST over TLS, authenticated with a macaroon header."""

from __future__ import annotations

import ssl
from typing import Any

import httpx
from loguru import logger

from lnbridge.backends.base import LightningBackend
from lnbridge.backends.validators import (
    LND_ADD_INVOICE,
    LND_GETINFO,
    LND_OPEN_CHANNEL,
    LND_PAY_INVOICE,
    validate_response,
)
from lnbridge.config.schema import LndOptions
from lnbridge.credentials import load_cert, load_macaroon
from lnbridge.utils.exceptions import (
    ConfigurationError,
    InvalidArgument,
    ProtocolError,
    RemoteError,
    TransportError,
    UnexpectedResponse,
)
from lnbridge.utils.helpers import base64_to_hex, hex_to_base64, safe_dict

MACAROON_HEADER = "Grpc-Metadata-macaroon"


class LndBackend(LightningBackend):
    name = "lnd"
    options_model = LndOptions

    def __init__(self, options: Any, http_client: httpx.AsyncClient | None = None):
        super().__init__(options)
        self.options: LndOptions
        self.cert = load_cert(self.options.cert)
        self.macaroon = load_macaroon(self.options.macaroon)
        self.base_url = f"{self.options.protocol}://{self.options.hostname}"
        self._http_client = http_client

    def _ssl_context(self) -> ssl.SSLContext:
        try:
            return ssl.create_default_context(cadata=self.cert)
        except (ssl.SSLError, ValueError) as exc:
            raise ConfigurationError(f'Invalid option ("cert"): {exc}', ["cert"]) from exc

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            verify: ssl.SSLContext | bool = self._ssl_context() if self.options.protocol == "https" else False
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                verify=verify,
                timeout=self.options.timeout,
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def request(self, method: str, uri: str, data: dict[str, Any] | None = None) -> Any:
        """Send one request and return the parsed JSON body."""
        if not isinstance(method, str):
            raise InvalidArgument('Invalid argument ("method"): String expected', argument="method")
        if not isinstance(uri, str):
            raise InvalidArgument('Invalid argument ("uri"): String expected', argument="uri")
        data = data or {}
        if not isinstance(data, dict):
            raise InvalidArgument('Invalid argument ("data"): Object expected', argument="data")

        method = method.upper()
        client = self._ensure_client()
        logger.debug("lnd {} {}", method, uri)
        try:
            resp = await client.request(
                method,
                uri,
                json=data or None,
                headers={MACAROON_HEADER: self.macaroon},
            )
        except httpx.TimeoutException as exc:
            raise TransportError(f"lnd timeout: {method} {uri}", reason="TIMEOUT") from exc
        except httpx.RequestError as exc:
            raise TransportError(f"lnd network error: {method} {uri}: {exc}", reason="NETWORK_ERROR") from exc

        status_code = resp.status_code
        if status_code >= 300:
            logger.warning("lnd error: {} {} -> {}", method, uri, status_code)
            raise RemoteError(
                f"Unexpected response from LN backend: HTTP_{status_code}_ERROR",
                status_code=status_code,
                payload=self._error_payload(resp),
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise ProtocolError("Unexpected response format from LN backend: JSON data expected") from exc

    @staticmethod
    def _error_payload(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            text = resp.text.strip()
            return text[:200] or None

    async def get_node_info(self) -> dict[str, Any]:
        return validate_response(LND_GETINFO, await self.request("get", "/v1/getinfo"))

    async def get_node_uri(self) -> str:
        info = await self.get_node_info()
        if not info["uris"] or not isinstance(info["uris"][0], str):
            raise UnexpectedResponse(LND_GETINFO.operation, field="uris", reason="no advertised URI")
        return info["uris"][0]

    async def open_channel(
        self,
        remote_id: str,
        local_amt: int,
        push_amt: int,
        make_private: bool,
    ) -> dict[str, Any]:
        result = await self.request(
            "post",
            "/v1/channels",
            {
                "node_pubkey_string": remote_id,
                "local_funding_amount": local_amt,
                "push_sat": push_amt,
                "private": make_private,
            },
        )
        if isinstance(result, dict) and isinstance(result.get("funding_txid_bytes"), str):
            try:
                txid = base64_to_hex(result["funding_txid_bytes"])
            except ValueError as exc:
                raise UnexpectedResponse(LND_OPEN_CHANNEL.operation, field="funding_txid_bytes") from exc
            result = {**result, "funding_txid_str": txid}
        return validate_response(LND_OPEN_CHANNEL, result)

    async def pay_invoice(self, invoice: str) -> dict[str, Any]:
        result = validate_response(
            LND_PAY_INVOICE,
            await self.request("post", "/v1/channels/transactions", {"payment_request": invoice}),
        )
        if result.get("payment_error"):
            message = result["payment_error"]
            raise RemoteError(f'Failed to pay invoice: "{message}"', payload=result)
        if not result["payment_preimage"]:
            raise RemoteError("Probable failed payment: Did not receive payment_preimage in response", payload=result)
        return result

    async def add_invoice(self, amount: int, extra: dict[str, Any] | None = None) -> str:
        extra = safe_dict(extra)
        body: dict[str, Any] = {"value_msat": amount}
        description_hash = extra.get("description_hash") or extra.get("descriptionHash")
        if description_hash:
            try:
                body["description_hash"] = hex_to_base64(description_hash)
            except (TypeError, ValueError) as exc:
                raise InvalidArgument(
                    'Invalid argument ("description_hash"): hex string expected', argument="description_hash"
                ) from exc
        elif extra.get("description"):
            body["memo"] = extra["description"]
        result = validate_response(LND_ADD_INVOICE, await self.request("post", "/v1/invoices", body))
        if not result["payment_request"]:
            raise UnexpectedResponse(LND_ADD_INVOICE.operation, field="payment_request")
        return result["payment_request"]

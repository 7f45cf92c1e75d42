"""c-lightning backend: JSON-RPC over the node's lightning-rpc socket."""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from loguru import logger

from lnbridge.backends.base import LightningBackend
from lnbridge.backends.validators import CLN_FUNDCHANNEL, CLN_INVOICE, CLN_PAY, validate_response
from lnbridge.config.schema import CLightningOptions
from lnbridge.rpc.client import StreamRpcClient
from lnbridge.utils.helpers import safe_dict, sat_to_msat


class CLightningBackend(LightningBackend):
    name = "c-lightning"
    options_model = CLightningOptions

    def __init__(self, options: Any, client: StreamRpcClient | None = None):
        super().__init__(options)
        self.options: CLightningOptions
        self.client = client or StreamRpcClient.from_options(self.options)

    async def connect(self) -> None:
        await self.client.connect()

    async def close(self) -> None:
        await self.client.close()

    async def cmd(self, method: str, params: list[Any] | dict[str, Any] | None = None) -> Any:
        """Raw JSON-RPC passthrough."""
        return await self.client.invoke(method, params)

    async def get_node_uri(self) -> str:
        return self.options.node_uri

    async def open_channel(
        self,
        remote_id: str,
        local_amt: int,
        push_amt: int,
        make_private: bool,
    ) -> dict[str, Any]:
        # https://github.com/ElementsProject/lightning/blob/master/doc/lightning-fundchannel.7.md
        result = await self.cmd(
            "fundchannel",
            {
                "id": remote_id,
                "amount": local_amt,
                "announce": not make_private,
                "push_msat": sat_to_msat(push_amt),
            },
        )
        return validate_response(CLN_FUNDCHANNEL, result)

    async def pay_invoice(self, invoice: str) -> dict[str, Any]:
        # https://github.com/ElementsProject/lightning/blob/master/doc/lightning-pay.7.md
        result = await self.cmd("pay", {"bolt11": invoice})
        return validate_response(CLN_PAY, result)

    async def add_invoice(self, amount: int, extra: dict[str, Any] | None = None) -> str:
        # https://github.com/ElementsProject/lightning/blob/master/doc/lightning-invoice.7.md
        extra = safe_dict(extra)
        label = extra.get("label") or f"{self.client.prefix}-{uuid4().hex}"
        params = {
            "msatoshi": amount,
            "label": label,
            "description": extra.get("description") or "",
        }
        result = validate_response(CLN_INVOICE, await self.cmd("invoice", params))
        logger.debug("Created invoice {}", label)
        return result["bolt11"]

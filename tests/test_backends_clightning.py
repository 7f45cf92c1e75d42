"""Tests for the c-lightning backend."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from fakes import reply, start_echo_node, wait_until
from lnbridge.backends import BACKENDS, CLightningBackend, create_backend
from lnbridge.rpc.client import StreamRpcClient
from lnbridge.utils.exceptions import ConfigurationError, InvalidArgument, RemoteError, UnexpectedResponse

OPTIONS = {"nodeUri": "02ab@10.0.0.1:9735", "socket": "/tmp/lightning-rpc"}


class FakeRpc:
    """Records invoke() calls and answers from a method -> result table."""

    def __init__(self, results: dict[str, Any] | None = None):
        self.prefix = "clightning99"
        self.results = results or {}
        self.calls: list[tuple[str, Any]] = []
        self.connected = False
        self.closed = False

    async def connect(self) -> None:
        self.connected = True

    async def close(self) -> None:
        self.closed = True

    async def invoke(self, method: str, params: Any = None) -> Any:
        self.calls.append((method, params))
        result = self.results.get(method)
        if isinstance(result, Exception):
            raise result
        return result


def test_registered_under_its_name() -> None:
    assert BACKENDS["c-lightning"] is CLightningBackend


def test_missing_options() -> None:
    with pytest.raises(ConfigurationError) as err:
        CLightningBackend({"nodeUri": "02ab@h:9735"})
    assert "socket" in err.value.fields


def test_create_backend_builds_client_from_options() -> None:
    backend = create_backend("c-lightning", {**OPTIONS, "cmd": {"concurrency": 3, "prefix": "node"}})
    assert isinstance(backend, CLightningBackend)
    assert isinstance(backend.client, StreamRpcClient)
    assert backend.client.target == "/tmp/lightning-rpc"
    assert backend.client.prefix.startswith("node")


def test_create_backend_unknown_name() -> None:
    with pytest.raises(ConfigurationError) as err:
        create_backend("eclair", {})
    assert err.value.fields == ["backend"]


@pytest.mark.asyncio
async def test_context_manager_connects_and_closes() -> None:
    rpc = FakeRpc()
    async with CLightningBackend(OPTIONS, client=rpc):
        assert rpc.connected
    assert rpc.closed


@pytest.mark.asyncio
async def test_get_node_uri_comes_from_options() -> None:
    rpc = FakeRpc()
    backend = CLightningBackend(OPTIONS, client=rpc)
    assert await backend.get_node_uri() == "02ab@10.0.0.1:9735"
    assert rpc.calls == []


@pytest.mark.asyncio
async def test_open_channel() -> None:
    rpc = FakeRpc({"fundchannel": {"tx": "0200", "txid": "ab" * 32, "channel_id": "cd" * 32}})
    backend = CLightningBackend(OPTIONS, client=rpc)
    result = await backend.open_channel("03ff", 100000, 2500, make_private=True)
    assert result["txid"] == "ab" * 32
    assert rpc.calls == [
        ("fundchannel", {"id": "03ff", "amount": 100000, "announce": False, "push_msat": 2500000}),
    ]


@pytest.mark.asyncio
async def test_open_channel_unexpected_response() -> None:
    backend = CLightningBackend(OPTIONS, client=FakeRpc({"fundchannel": {"tx": "0200"}}))
    with pytest.raises(UnexpectedResponse) as err:
        await backend.open_channel("03ff", 100000, 0, make_private=False)
    assert err.value.field == "txid"


@pytest.mark.asyncio
async def test_pay_invoice() -> None:
    paid = {"payment_preimage": "11" * 32, "payment_hash": "22" * 32, "status": "complete"}
    rpc = FakeRpc({"pay": paid})
    backend = CLightningBackend(OPTIONS, client=rpc)
    assert await backend.pay_invoice("lnbc1") == paid
    assert rpc.calls == [("pay", {"bolt11": "lnbc1"})]


@pytest.mark.asyncio
async def test_pay_invoice_remote_error_propagates() -> None:
    backend = CLightningBackend(OPTIONS, client=FakeRpc({"pay": RemoteError('{"code": 210}')}))
    with pytest.raises(RemoteError):
        await backend.pay_invoice("lnbc1")


@pytest.mark.asyncio
async def test_add_invoice_generates_label() -> None:
    rpc = FakeRpc({"invoice": {"bolt11": "lnbc50n1", "payment_hash": "33" * 32}})
    backend = CLightningBackend(OPTIONS, client=rpc)
    assert await backend.add_invoice(5000, {"description": "coffee"}) == "lnbc50n1"
    method, params = rpc.calls[0]
    assert method == "invoice"
    assert params["msatoshi"] == 5000
    assert params["description"] == "coffee"
    assert params["label"].startswith("clightning99-")


@pytest.mark.asyncio
async def test_add_invoice_explicit_label() -> None:
    rpc = FakeRpc({"invoice": {"bolt11": "lnbc50n1"}})
    backend = CLightningBackend(OPTIONS, client=rpc)
    await backend.add_invoice(5000, {"label": "order-7"})
    assert rpc.calls[0][1] == {"msatoshi": 5000, "label": "order-7", "description": ""}


@pytest.mark.asyncio
async def test_cmd_passthrough() -> None:
    rpc = FakeRpc({"listfunds": {"outputs": []}})
    backend = CLightningBackend(OPTIONS, client=rpc)
    assert await backend.cmd("listfunds") == {"outputs": []}
    assert rpc.calls == [("listfunds", None)]


@pytest.mark.asyncio
async def test_pay_over_stream_client(fake_writer) -> None:
    client = StreamRpcClient("/tmp/lightning-rpc")
    backend = CLightningBackend(OPTIONS, client=client)
    reader = asyncio.StreamReader()
    client.attach(reader, fake_writer)
    try:
        call = asyncio.create_task(backend.pay_invoice("lnbc1"))
        await wait_until(lambda: len(fake_writer.frames) == 1)
        request = fake_writer.requests()[0]
        assert request["method"] == "pay"
        assert request["params"] == {"bolt11": "lnbc1"}
        reader.feed_data(reply(request["id"], {"payment_preimage": "44" * 32}))
        assert (await call)["payment_preimage"] == "44" * 32
    finally:
        await backend.close()


@pytest.mark.asyncio
async def test_invalid_params_surface_as_invalid_argument() -> None:
    client = StreamRpcClient("/tmp/lightning-rpc")
    backend = CLightningBackend(OPTIONS, client=client)
    try:
        with pytest.raises(InvalidArgument):
            await backend.cmd("pay", "lnbc1")  # type: ignore[arg-type]
    finally:
        await backend.close()


@pytest.mark.asyncio
async def test_calls_without_explicit_connect_reach_the_node() -> None:
    server, target, _ = await start_echo_node()
    backend = create_backend("c-lightning", {"nodeUri": "02ab@10.0.0.1:9735", "socket": target})
    try:
        with pytest.raises(UnexpectedResponse):
            # The echo node answers without a preimage, so reaching validation proves the round trip.
            await asyncio.wait_for(backend.pay_invoice("lnbc1"), timeout=5)
        assert await asyncio.wait_for(backend.cmd("getinfo"), timeout=5) == {"method": "getinfo", "params": []}
    finally:
        await backend.close()
        server.close()
        await server.wait_closed()

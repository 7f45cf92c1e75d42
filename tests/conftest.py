"""Pytest fixtures."""

from __future__ import annotations

import pytest
import pytest_asyncio

from fakes import FakeWriter
from lnbridge.rpc.client import StreamRpcClient


@pytest.fixture
def fake_writer() -> FakeWriter:
    return FakeWriter()


@pytest_asyncio.fixture
async def stream_client():
    """An unconnected client; tests attach their own reader/writer pair."""
    client = StreamRpcClient("/tmp/lightning-rpc", concurrency=7, auto_connect=False)
    yield client
    await client.close()

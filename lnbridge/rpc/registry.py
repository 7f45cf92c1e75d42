"""Registry of in-flight stream RPC calls keyed by request id."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from lnbridge.utils.exceptions import TransportError


@dataclass
class PendingCall:
    call_id: str
    method: str
    future: asyncio.Future[Any]
    created_at: float = field(default_factory=time.monotonic)


@dataclass
class RegistryStats:
    pending: int
    oldest_age_s: float | None
    settled: int
    unmatched: int
    expired: int


class PendingCallRegistry:
    """Tracks pending calls and settles each one exactly once.

    Every settle path pops the entry before touching its future, so a second
    response for the same id finds nothing and is counted as unmatched. Not
    thread-safe: all access must happen on the owning event loop.
    """

    def __init__(self, max_pending: int | None = None):
        self._max_pending = max_pending
        self._pending: dict[str, PendingCall] = {}
        self._settled = 0
        self._unmatched = 0
        self._expired = 0

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, call_id: object) -> bool:
        return call_id in self._pending

    def register(self, call_id: str, method: str) -> asyncio.Future[Any]:
        if call_id in self._pending:
            raise ValueError(f"duplicate call id: {call_id}")
        if self._max_pending is not None and len(self._pending) >= self._max_pending:
            raise TransportError(
                f"too many pending calls ({len(self._pending)}/{self._max_pending})",
                reason="PENDING_LIMIT",
            )
        fut: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[call_id] = PendingCall(call_id=call_id, method=method, future=fut)
        return fut

    def resolve(self, call_id: str, result: Any) -> bool:
        call = self._pending.pop(call_id, None)
        if call is None:
            self._unmatched += 1
            return False
        self._settled += 1
        if not call.future.done():
            call.future.set_result(result)
        return True

    def reject(self, call_id: str, error: BaseException) -> bool:
        call = self._pending.pop(call_id, None)
        if call is None:
            self._unmatched += 1
            return False
        self._settled += 1
        if not call.future.done():
            call.future.set_exception(error)
        return True

    def fail_all(self, error: BaseException) -> int:
        """Reject every pending call, e.g. on connection loss or shutdown."""
        doomed = list(self._pending)
        for call_id in doomed:
            self.reject(call_id, error)
        return len(doomed)

    def expire(self, older_than_s: float) -> list[str]:
        """Reject calls pending longer than older_than_s; returns their ids."""
        now = time.monotonic()
        doomed = [c for c in self._pending.values() if now - c.created_at >= older_than_s]
        for call in doomed:
            logger.warning("Expiring RPC call {} ({}) after {:.1f}s", call.call_id, call.method, now - call.created_at)
            self.reject(
                call.call_id,
                TransportError(f"call {call.call_id} ({call.method}) expired after {older_than_s}s", reason="EXPIRED"),
            )
        self._expired += len(doomed)
        return [c.call_id for c in doomed]

    def stats(self) -> RegistryStats:
        oldest = min((c.created_at for c in self._pending.values()), default=None)
        return RegistryStats(
            pending=len(self._pending),
            oldest_age_s=(time.monotonic() - oldest) if oldest is not None else None,
            settled=self._settled,
            unmatched=self._unmatched,
            expired=self._expired,
        )

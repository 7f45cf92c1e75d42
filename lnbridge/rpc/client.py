"""JSON-RPC client multiplexing concurrent calls over one stream socket."""

from __future__ import annotations

import asyncio
import itertools
import json
from dataclasses import dataclass
from typing import Any

from loguru import logger

from lnbridge.config.schema import DEFAULT_MAX_BUFFER_BYTES, CLightningOptions
from lnbridge.rpc.protocol import RpcRequest
from lnbridge.rpc.registry import PendingCallRegistry, RegistryStats
from lnbridge.rpc.serialization import FrameBuffer, decode_response, encode_request, to_remote_error
from lnbridge.utils.exceptions import InvalidArgument, LnBridgeError, TransportError

# Process-wide counters: request ids are never reused while the process lives.
_INSTANCE_IDS = itertools.count(1)
_REQUEST_IDS = itertools.count(1)

READ_CHUNK_SIZE = 64 * 1024


@dataclass(slots=True)
class _Job:
    call_id: str
    method: str
    frame: bytes


class StreamRpcClient:
    """Delimiter-framed JSON-RPC client over a unix or TCP stream socket.

    Calls are admitted through one FIFO queue served by `concurrency` writer
    workers; a worker is busy from dequeue until the frame has been written and
    drained. Workers start only once the connection is up, so calls made
    earlier wait in the queue. With `auto_connect` (the default) the first call
    opens the connection itself. A single read loop owns the receive buffer and
    hands each parsed response to the pending-call registry.

    There is no per-call timeout. Wrap `invoke` in `asyncio.wait_for`, or call
    `expire()` periodically, to bound how long a call may stay pending.
    """

    def __init__(
        self,
        target: str,
        *,
        delimiter: str = "\n",
        concurrency: int = 7,
        prefix: str = "clightning",
        max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES,
        max_pending: int | None = None,
        auto_connect: bool = True,
    ):
        if not delimiter:
            raise InvalidArgument("delimiter must not be empty", argument="delimiter")
        self.target = target
        self.prefix = f"{prefix}{next(_INSTANCE_IDS)}"
        self.auto_connect = auto_connect
        self._delimiter = delimiter.encode("utf-8")
        self._concurrency = max(1, int(concurrency))
        self._max_buffer_bytes = max_buffer_bytes
        self._registry = PendingCallRegistry(max_pending=max_pending)
        self._queue: asyncio.Queue[_Job] = asyncio.Queue()
        self._writer: asyncio.StreamWriter | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._workers: list[asyncio.Task[None]] = []
        self._failure: LnBridgeError | None = None

    @classmethod
    def from_options(cls, options: CLightningOptions) -> StreamRpcClient:
        return cls(
            options.socket,
            delimiter=options.delimiter,
            concurrency=options.cmd.concurrency,
            prefix=options.cmd.prefix,
            max_buffer_bytes=options.max_buffer_bytes,
            max_pending=options.max_pending,
        )

    @property
    def connected(self) -> bool:
        return self._writer is not None and self._failure is None

    @property
    def pending_count(self) -> int:
        return len(self._registry)

    async def __aenter__(self) -> StreamRpcClient:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def connect(self) -> None:
        """Open the connection; concurrent callers share one attempt.

        A failed attempt fails every queued call with the same TransportError.
        A later call to connect() tries again.
        """
        if self._writer is not None:
            return
        self._raise_if_failed()
        await asyncio.shield(self._start_connect())

    def _start_connect(self) -> asyncio.Task[None]:
        if self._connect_task is None:
            self._connect_task = asyncio.create_task(self._open())
            self._connect_task.add_done_callback(self._connect_done)
        return self._connect_task

    def _connect_done(self, task: asyncio.Task[None]) -> None:
        if self._connect_task is task:
            self._connect_task = None
        if not task.cancelled():
            # Awaited by connect() callers; background attempts report through the registry.
            task.exception()

    async def _open(self) -> None:
        try:
            reader, writer = await self._open_stream()
        except TransportError as exc:
            failed = self._fail_queued(exc)
            logger.warning("Cannot connect to {} ({}); failed {} queued call(s)", self.target, exc.reason, failed)
            raise
        try:
            self.attach(reader, writer)
        except TransportError:
            writer.close()
            raise
        logger.info("Connected to JSON-RPC socket {}", self.target)

    async def _open_stream(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        try:
            if self.target.startswith("tcp://"):
                host, _, port = self.target[len("tcp://"):].rpartition(":")
                return await asyncio.open_connection(host or "127.0.0.1", int(port))
            return await asyncio.open_unix_connection(self.target)
        except ValueError as exc:
            raise TransportError(f"invalid socket target: {self.target}", reason="BAD_TARGET") from exc
        except OSError as exc:
            raise TransportError(f"cannot connect to {self.target}: {exc}", reason="CONNECT_FAILED") from exc

    def attach(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Adopt an open stream and release queued calls."""
        if self._writer is not None:
            raise TransportError("client already has a connection", reason="ALREADY_CONNECTED")
        self._raise_if_failed()
        self._writer = writer
        self._reader_task = asyncio.create_task(self._read_loop(reader))
        self._workers = [asyncio.create_task(self._write_loop(writer)) for _ in range(self._concurrency)]

    def _raise_if_failed(self) -> None:
        if self._failure is not None:
            raise TransportError(self._failure.message, reason=self._failure.reason)

    def _fail_queued(self, error: LnBridgeError) -> int:
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()
        return self._registry.fail_all(error)

    def _next_id(self) -> str:
        return f"{self.prefix}-req{next(_REQUEST_IDS)}"

    async def invoke(self, method: str, params: list[Any] | dict[str, Any] | None = None) -> Any:
        """Send one call and wait for the response carrying its id."""
        if not isinstance(method, str):
            raise InvalidArgument('Invalid argument ("method"): String expected', argument="method")
        if params is None:
            params = []
        elif isinstance(params, tuple):
            params = list(params)
        if not isinstance(params, (list, dict)):
            raise InvalidArgument('Invalid argument ("params"): Array or Object expected', argument="params")
        self._raise_if_failed()

        call_id = self._next_id()
        try:
            frame = encode_request(RpcRequest(id=call_id, method=method, params=params), self._delimiter)
        except (TypeError, ValueError) as exc:
            raise InvalidArgument(f'Invalid argument ("params"): {exc}', argument="params") from exc

        fut = self._registry.register(call_id, method)
        self._queue.put_nowait(_Job(call_id=call_id, method=method, frame=frame))
        logger.debug("Queued {} as {}", method, call_id)
        if self._writer is None and self.auto_connect:
            self._start_connect()
        return await fut

    async def _write_loop(self, writer: asyncio.StreamWriter) -> None:
        while True:
            job = await self._queue.get()
            try:
                writer.write(job.frame)
                await writer.drain()
            except (ConnectionError, OSError) as exc:
                error = TransportError(f"write failed for {job.method}: {exc}", reason="WRITE_FAILED")
                self._registry.reject(job.call_id, error)
                self._connection_lost(error)
                return
            finally:
                self._queue.task_done()

    async def _read_loop(self, reader: asyncio.StreamReader) -> None:
        frames = FrameBuffer(self._delimiter)
        error = TransportError(f"connection to {self.target} closed", reason="EOF")
        try:
            while True:
                chunk = await reader.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                for frame in frames.feed(chunk):
                    self._handle_frame(frame)
                if len(frames) > self._max_buffer_bytes:
                    logger.error(
                        "Discarding {} buffered bytes from {} without a delimiter",
                        len(frames),
                        self.target,
                    )
                    frames.clear()
        except (ConnectionError, OSError) as exc:
            error = TransportError(f"connection to {self.target} failed: {exc}", reason="READ_FAILED")
        self._connection_lost(error)

    def _handle_frame(self, frame: bytes) -> None:
        try:
            payload = json.loads(frame)
        except ValueError as exc:
            logger.warning("Skipping unparseable message ({}): {!r}", exc, frame[:200])
            return
        response = decode_response(payload)
        if response is None:
            logger.debug("Ignoring message without a usable id: {!r}", frame[:200])
            return
        if response.ok:
            matched = self._registry.resolve(response.id, response.result)
        else:
            matched = self._registry.reject(response.id, to_remote_error(response))
        if not matched:
            logger.debug("No pending call for response id {}", response.id)

    def _connection_lost(self, error: LnBridgeError) -> None:
        if self._failure is not None:
            return
        self._failure = error
        failed = self._fail_queued(error)
        logger.warning("JSON-RPC connection lost ({}); failed {} pending call(s)", error.message, failed)
        current = asyncio.current_task()
        for task in self._workers:
            if task is not current:
                task.cancel()

    def stats(self) -> RegistryStats:
        return self._registry.stats()

    def expire(self, older_than_s: float) -> list[str]:
        """Fail calls that have been pending for at least older_than_s seconds."""
        return self._registry.expire(older_than_s)

    async def close(self) -> None:
        if self._failure is None:
            self._failure = TransportError("client closed", reason="CLOSED")
        failed = self._fail_queued(self._failure)
        if failed:
            logger.info("Closed JSON-RPC client with {} pending call(s)", failed)
        current = asyncio.current_task()
        tasks = [t for t in [self._connect_task, self._reader_task, *self._workers] if t is not None and t is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._connect_task = None
        self._workers = []
        self._reader_task = None
        writer, self._writer = self._writer, None
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

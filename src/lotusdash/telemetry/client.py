from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosedError, WebSocketException

from ..core.types import VesselData
from ..settings import Settings
from .events import BatchReceived, Closed, ConnectionEvent, Opened, TransportError

log = logging.getLogger(__name__)

BatchCallback = Callable[[list[VesselData]], None]


class ConnectionState(Enum):
    DISCONNECTED = 0
    CONNECTING = 1
    OPEN = 2
    CLOSED = 3


class InvalidBatch(ValueError):
    """An inbound telemetry message does not hold a valid vessel-state batch."""


def parse_batch(raw: Union[str, bytes]) -> list[VesselData]:
    """Parse and validate one telemetry message.

    The message must be a JSON array whose elements all carry a truthy
    ``vessel_name`` and a ``pose``. Validation is all-or-nothing.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidBatch(f"message is not JSON: {exc}") from exc
    if not isinstance(data, list):
        raise InvalidBatch(f"expected a JSON array, got {type(data).__name__}")
    for idx, item in enumerate(data):
        if not isinstance(item, dict) or not item.get("vessel_name") or item.get("pose") is None:
            raise InvalidBatch(f"element {idx} lacks vessel_name or pose")
    try:
        return [VesselData.model_validate(item) for item in data]
    except ValidationError as exc:
        raise InvalidBatch(f"invalid vessel entry: {exc}") from exc


class TelemetryClient:
    """Single websocket connection streaming vessel-state batches.

    The transport side only turns connection activity into
    :mod:`~lotusdash.telemetry.events` on a queue; :meth:`handle_event`
    consumes them in arrival order and owns the state machine
    ``DISCONNECTED -> CONNECTING -> OPEN -> CLOSED``. Every valid batch
    replaces the previous one and is handed to ``on_batch``.

    There is no automatic reconnect: after ``CLOSED`` a new client is needed.
    """

    def __init__(
        self,
        settings: Settings,
        on_batch: BatchCallback,
        *,
        connector: Callable[[str], Any] = connect,
    ) -> None:
        self.settings = settings
        self._on_batch = on_batch
        self._connector = connector
        self.state = ConnectionState.DISCONNECTED
        self.latest_batch: list[VesselData] = []
        self.closed_cleanly: Optional[bool] = None

        self._events: asyncio.Queue[ConnectionEvent] = asyncio.Queue()
        self._conn: Any = None
        self._close_emitted = False
        self._pump_task: Optional[asyncio.Task] = None
        self._consumer_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def connect(self) -> None:
        if self.state is not ConnectionState.DISCONNECTED:
            log.info("Telemetry client is already %s; connect ignored", self.state.name.lower())
            return
        uri = self.settings.telemetry_uri
        log.info("Telemetry connecting to %s", uri)
        self.state = ConnectionState.CONNECTING
        self._pump_task = asyncio.create_task(self._pump(uri), name="telemetry-pump")
        self._consumer_task = asyncio.create_task(self._consume(), name="telemetry-consumer")

    async def disconnect(self) -> None:
        """Close the connection and wait until every queued event is handled."""
        pump, consumer = self._pump_task, self._consumer_task
        self._pump_task = None
        self._consumer_task = None
        if pump is None:
            return
        conn = self._conn
        if conn is not None:
            await conn.close()
        else:
            pump.cancel()
        await asyncio.gather(pump, return_exceptions=True)
        # The pump may have been cancelled before it ever ran.
        self._emit_closed(Closed(was_clean=True))
        if consumer is not None:
            await consumer
        log.info("Telemetry connection closed.")

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------
    async def handle_event(self, event: ConnectionEvent) -> None:
        if isinstance(event, Opened):
            self.state = ConnectionState.OPEN
            log.info("Connected to telemetry server")
            await self.send_identity(event.connection)
        elif isinstance(event, BatchReceived):
            self._handle_batch(event.raw)
        elif isinstance(event, TransportError):
            log.error("Telemetry transport error: %s", event.error)
        elif isinstance(event, Closed):
            self.state = ConnectionState.CLOSED
            self.closed_cleanly = event.was_clean
            if event.was_clean:
                log.info("Telemetry connection closed cleanly (code=%s)", event.code)
            else:
                log.error("Telemetry connection died (code=%s reason=%r)", event.code, event.reason)

    async def send_identity(self, conn: Any) -> None:
        """Tell the server which instance this client follows."""
        if conn is None or self.state is not ConnectionState.OPEN:
            log.error("Telemetry connection is not open.")
            return
        # Read at send time so a newly selected instance is honoured.
        instance = self.settings.instance
        try:
            await conn.send(json.dumps({"instance": instance}, separators=(",", ":")))
        except WebSocketException as exc:
            log.error("Failed to send client name: %s", exc)
            return
        log.info("Sent client name: %s", instance)

    def _handle_batch(self, raw: Union[str, bytes]) -> None:
        try:
            batch = parse_batch(raw)
        except InvalidBatch as exc:
            log.warning("Dropped telemetry message: %s", exc)
            return
        self._on_batch(batch)
        self.latest_batch = batch

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def _emit(self, event: ConnectionEvent) -> None:
        self._events.put_nowait(event)

    def _emit_closed(self, event: Closed) -> None:
        if self._close_emitted:
            return
        self._close_emitted = True
        self._emit(event)

    async def _pump(self, uri: str) -> None:
        closed = Closed(was_clean=False)
        try:
            async with self._connector(uri) as conn:
                self._conn = conn
                self._emit(Opened(conn))
                try:
                    async for raw in conn:
                        self._emit(BatchReceived(raw))
                    closed = Closed(True, getattr(conn, "close_code", None), getattr(conn, "close_reason", "") or "")
                except ConnectionClosedError as exc:
                    self._emit(TransportError(exc))
                    closed = Closed(False, getattr(conn, "close_code", None), getattr(conn, "close_reason", "") or "")
        except asyncio.CancelledError:
            closed = Closed(was_clean=True)
            raise
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            self._emit(TransportError(exc))
        finally:
            self._conn = None
            self._emit_closed(closed)

    async def _consume(self) -> None:
        while True:
            event = await self._events.get()
            try:
                await self.handle_event(event)
            except Exception:
                log.exception("Telemetry handler for %s failed", type(event).__name__)
            if isinstance(event, Closed):
                return


__all__ = [
    "BatchCallback",
    "ConnectionState",
    "InvalidBatch",
    "TelemetryClient",
    "parse_batch",
]

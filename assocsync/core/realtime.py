"""Live subscription to inserts and deletes on the messages collection."""

import asyncio
import contextlib
import itertools
import json
import logging
from collections.abc import Callable
from typing import Any, Protocol

import websockets

from ..models.config import RealtimeConfig
from ..models.entities import CommunityMessage
from ..models.mappers import map_message
from .auth import StoreAuth

logger = logging.getLogger(__name__)


class MessageSink(Protocol):
    """Receiver of change events (the local store)."""

    def apply_message_insert(self, message: CommunityMessage) -> Any: ...

    def apply_message_delete(self, message_id: str) -> Any: ...


class MessageSubscriber:
    """Keeps one channel open on ``messages`` and forwards its events.

    Inserts are forwarded in arrival order without deduplication; deletes
    carry the id of the removed row.
    """

    TABLE = "messages"
    EVENTS = ("INSERT", "DELETE")

    def __init__(
        self,
        auth: StoreAuth,
        sink: MessageSink,
        config: RealtimeConfig | None = None,
    ) -> None:
        """Initialize the subscriber.

        Args:
            auth: StoreAuth providing the websocket URL
            sink: Object receiving mapped inserts and deletes
            config: Realtime settings (defaults if not provided)
        """
        self.auth = auth
        self.sink = sink
        self.config = config or RealtimeConfig()
        self.topic = f"realtime:{self.config.schema}:{self.TABLE}"
        self._refs = itertools.count(1)
        self._task: asyncio.Task[None] | None = None
        self._stopping = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # -------------------------------------------------------------------------
    # Frames
    # -------------------------------------------------------------------------

    def _next_ref(self) -> str:
        return str(next(self._refs))

    def join_frame(self) -> dict[str, Any]:
        changes = [
            {"event": event, "schema": self.config.schema, "table": self.TABLE}
            for event in self.EVENTS
        ]
        return {
            "topic": self.topic,
            "event": "phx_join",
            "payload": {"config": {"postgres_changes": changes}},
            "ref": self._next_ref(),
        }

    def heartbeat_frame(self) -> dict[str, Any]:
        return {"topic": "phoenix", "event": "heartbeat", "payload": {}, "ref": self._next_ref()}

    def handle_frame(self, frame: dict[str, Any]) -> None:
        """Dispatch one decoded frame to the sink.

        Understands ``postgres_changes`` frames and the older per-event
        frames; anything else is ignored.
        """
        event = frame.get("event")
        payload = frame.get("payload") or {}

        if event == "postgres_changes":
            data = payload.get("data") or {}
            change = data.get("type")
            record = data.get("record")
            old_record = data.get("old_record")
        elif event in self.EVENTS:
            change = event
            record = payload.get("record")
            old_record = payload.get("old_record")
        else:
            if event == "phx_reply" and payload.get("status") != "ok":
                logger.warning("Channel %s replied %s", self.topic, payload)
            return

        if change == "INSERT" and record:
            try:
                message = map_message(record)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Dropping unreadable message row %r: %s", record, e)
                return
            self._deliver(self.sink.apply_message_insert, message)
        elif change == "DELETE" and old_record and "id" in old_record:
            self._deliver(self.sink.apply_message_delete, str(old_record["id"]))

    def _deliver(self, apply: Callable[[Any], Any], item: Any) -> None:
        try:
            apply(item)
        except Exception:
            logger.exception("Message sink failed to apply %r", item)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Open the subscription (no-op if already running)."""
        if self.running:
            return
        self._stopping = False
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Tear the subscription down."""
        self._stopping = True
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Unsubscribed from %s", self.topic)

    async def _run(self) -> None:
        url = self.auth.get_realtime_url()
        while not self._stopping:
            try:
                async with websockets.connect(url) as ws:
                    logger.info("Subscribed to %s", self.topic)
                    await self._listen(ws)
            except Exception as e:
                logger.warning("Realtime connection lost: %r", e)

            if not self._stopping:
                await asyncio.sleep(self.config.reconnect_delay)

    async def _listen(self, ws: Any) -> None:
        await ws.send(json.dumps(self.join_frame()))
        heartbeat = asyncio.create_task(self._heartbeat(ws))
        try:
            async for raw in ws:
                try:
                    frame = json.loads(raw)
                except ValueError:
                    logger.warning("Ignoring non-JSON realtime frame")
                    continue
                if isinstance(frame, dict):
                    self.handle_frame(frame)
        finally:
            heartbeat.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await heartbeat

    async def _heartbeat(self, ws: Any) -> None:
        while True:
            await asyncio.sleep(self.config.heartbeat_interval)
            await ws.send(json.dumps(self.heartbeat_frame()))

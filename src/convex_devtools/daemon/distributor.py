"""Push distribution of schema snapshots to connected clients.

A channel is anything with an async ``send_text`` (a Starlette WebSocket in
production). Every message has the same envelope:

    {"type": "schema", "data": <snapshot>}

Subscribing and fan-out are serialized by one lock, so a new subscriber sees
either the snapshot current before an update or the update itself, and never
receives the two out of order.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from convex_devtools.schema.models import SchemaSnapshot

logger = structlog.get_logger()

MESSAGE_TYPE = "schema"
SEND_TIMEOUT_SEC = 5.0


class SnapshotChannel(Protocol):
    async def send_text(self, data: str) -> None: ...


def encode_message(snapshot: SchemaSnapshot) -> str:
    return json.dumps({"type": MESSAGE_TYPE, "data": snapshot.to_dict()})


@dataclass
class SnapshotDistributor:
    """Registry of live channels fed from the current snapshot pointer.

    ``get_snapshot`` reads the single current-snapshot slot; the distributor
    never stores a snapshot of its own.
    """

    get_snapshot: Callable[[], SchemaSnapshot | None]
    send_timeout: float = SEND_TIMEOUT_SEC

    _channels: list[SnapshotChannel] = field(default_factory=list, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    @property
    def subscriber_count(self) -> int:
        return len(self._channels)

    async def _send(self, channel: SnapshotChannel, message: str) -> None:
        await asyncio.wait_for(channel.send_text(message), timeout=self.send_timeout)

    async def subscribe(self, channel: SnapshotChannel) -> bool:
        """Send the current snapshot (if any), then register the channel.

        Returns False if the initial send failed; the channel is not registered.
        """
        async with self._lock:
            snapshot = self.get_snapshot()
            if snapshot is not None:
                try:
                    await self._send(channel, encode_message(snapshot))
                except Exception as e:
                    logger.debug("subscriber_initial_send_failed", error=str(e))
                    return False
            if channel not in self._channels:
                self._channels.append(channel)
        logger.debug("subscriber_added", subscribers=len(self._channels))
        return True

    def unsubscribe(self, channel: SnapshotChannel) -> None:
        """Remove a channel. Removing an unknown channel is a no-op."""
        if channel in self._channels:
            self._channels.remove(channel)
            logger.debug("subscriber_removed", subscribers=len(self._channels))

    async def on_update(self, snapshot: SchemaSnapshot) -> None:
        """Fan a new snapshot out to every channel; failed channels are pruned."""
        async with self._lock:
            if not self._channels:
                return
            message = encode_message(snapshot)
            channels = list(self._channels)
            results = await asyncio.gather(
                *(self._send(channel, message) for channel in channels),
                return_exceptions=True,
            )
            failed = [
                channel
                for channel, result in zip(channels, results, strict=True)
                if isinstance(result, BaseException)
            ]
            for channel in failed:
                self.unsubscribe(channel)

        logger.info(
            "schema_distributed",
            delivered=len(channels) - len(failed),
            pruned=len(failed),
            generation=snapshot.generation,
        )

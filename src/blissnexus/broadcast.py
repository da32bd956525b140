"""In-memory broadcast channel.

Every subscribed viewer owns a bounded asyncio queue per world. Sends are
fire-and-forget ``put_nowait`` calls, so a slow reader never blocks the
scheduler; a viewer whose queue overflows is pruned and must subscribe again.

All methods must be called from the event loop thread that runs the world.
"""

import asyncio
import logging
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 200


class Broadcaster:
    """Fan-out of engine messages to per-viewer queues."""

    def __init__(self, max_queue: int = DEFAULT_QUEUE_SIZE):
        self.max_queue = max_queue
        self._queues: dict[str, dict[str, asyncio.Queue]] = {}

    def subscribe(self, world_id: str, viewer_id: str) -> asyncio.Queue:
        """Register a viewer, keeping its queue if it is already subscribed."""
        viewers = self._queues.setdefault(world_id, {})
        queue = viewers.get(viewer_id)
        if queue is None:
            queue = asyncio.Queue(maxsize=self.max_queue)
            viewers[viewer_id] = queue
            logger.debug(f"Viewer {viewer_id} subscribed to {world_id}")
        return queue

    def unsubscribe(self, world_id: str, viewer_id: str) -> None:
        self._queues.get(world_id, {}).pop(viewer_id, None)

    def viewers(self, world_id: str) -> list[str]:
        return list(self._queues.get(world_id, {}))

    def is_subscribed(self, world_id: str, viewer_id: str) -> bool:
        return viewer_id in self._queues.get(world_id, {})

    def send_to_all(self, world_id: str, message: dict[str, Any]) -> None:
        for viewer_id in self.viewers(world_id):
            self.send_to_one(world_id, viewer_id, message)

    def send_to_one(self, world_id: str, viewer_id: str, message: dict[str, Any]) -> None:
        queue = self._queues.get(world_id, {}).get(viewer_id)
        if queue is None:
            return
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"Viewer {viewer_id} fell behind on {world_id}, pruning")
            self.unsubscribe(world_id, viewer_id)

    async def next_messages(self, world_id: str, viewer_id: str, timeout: float) -> list[dict[str, Any]] | None:
        """Wait up to ``timeout`` seconds for messages and return everything queued.

        Returns:
            Messages in arrival order (possibly empty), or None if the viewer
            is not subscribed
        """
        queue = self._queues.get(world_id, {}).get(viewer_id)
        if queue is None:
            return None
        messages = []
        try:
            messages.append(await asyncio.wait_for(queue.get(), timeout=timeout))
        except asyncio.TimeoutError:
            return messages
        while not queue.empty():
            messages.append(queue.get_nowait())
        return messages

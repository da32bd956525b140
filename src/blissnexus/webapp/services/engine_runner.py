"""Engine runner - hosts the world event loop for the Flask app.

Flask handlers are synchronous and run on request threads, while a world
keeps ticking between requests. The runner owns one asyncio loop on a
daemon thread; handlers hand coroutines to it and wait for the result.
"""

import asyncio
import logging
import threading
from collections.abc import Coroutine
from typing import Any

from flask import current_app

from blissnexus.engine import SessionManager, WorldSession

logger = logging.getLogger(__name__)

EXTENSION_KEY = "blissnexus"


class EngineRunner:
    """Background event loop plus the SessionManager that lives on it."""

    def __init__(self, manager: SessionManager, request_timeout: float = 90.0):
        self.manager = manager
        self.request_timeout = request_timeout
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name="blissnexus-engine", daemon=True)
        self._started = False

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def start(self) -> None:
        if not self._started:
            self._thread.start()
            self._started = True
            logger.info("Engine loop started")

    def run(self, coro: Coroutine[Any, Any, Any], timeout: float | None = None) -> Any:
        """Run a coroutine on the engine loop and wait for its result."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout or self.request_timeout)

    def session(self, world_id: str) -> WorldSession:
        return self.run(self.manager.get(world_id))

    def shutdown(self) -> None:
        if not self._started:
            return
        try:
            self.run(self.manager.shutdown())
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=5)
            self._started = False
            logger.info("Engine loop stopped")


def get_engine_runner() -> EngineRunner:
    """The runner attached to the current Flask app."""
    return current_app.extensions[EXTENSION_KEY]

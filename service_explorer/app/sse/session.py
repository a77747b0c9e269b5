"""
Per-connection stream session.
"""

import asyncio
import time
import uuid
from enum import Enum
from typing import AsyncGenerator, Awaitable, Callable, Optional

from shared.metrics import MetricsCollector

from ..catalog.store import CatalogStore
from .events import game_event, no_games_event


DisconnectCheck = Callable[[], Awaitable[bool]]


class SessionState(str, Enum):
    CONNECTING = "connecting"
    STREAMING = "streaming"
    CLOSED = "closed"


class StreamSession:
    """Pushes one random game per tick to a single client.

    The first message goes out as soon as streaming starts. Between ticks the
    session waits on its close signal with the tick interval as timeout: a
    timeout means "emit", a fired signal means "stop". The transport's
    disconnect check is consulted before every tick emission.
    """

    def __init__(
        self,
        store: CatalogStore,
        interval_seconds: float = 3.0,
        disconnect_check: Optional[DisconnectCheck] = None,
        connection_id: Optional[str] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        self.store = store
        self.interval_seconds = interval_seconds
        self.disconnect_check = disconnect_check
        self.connection_id = connection_id or str(uuid.uuid4())
        self.metrics = metrics

        self.state = SessionState.CONNECTING
        self.created_at = time.monotonic()
        self.closed_at: Optional[float] = None
        self.messages_sent = 0
        self.empty_events_sent = 0
        self._closed = asyncio.Event()

    @property
    def is_closed(self) -> bool:
        return self.state is SessionState.CLOSED

    @property
    def duration_seconds(self) -> float:
        end = self.closed_at if self.closed_at is not None else time.monotonic()
        return end - self.created_at

    def close(self):
        """Stop the session. Safe to call more than once."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        self.closed_at = time.monotonic()
        self._closed.set()

    def next_message(self) -> str:
        """Sample the store and frame the result as one SSE message."""
        game, found = self.store.sample_random()
        if not found:
            self.empty_events_sent += 1
            self._count("error")
            return no_games_event()

        self.messages_sent += 1
        self._count("game")
        return game_event(game)

    async def stream(self) -> AsyncGenerator[str, None]:
        """Yield SSE frames until the client goes away or close() is called."""
        if self.state is not SessionState.CONNECTING:
            raise RuntimeError(f"Session {self.connection_id} already {self.state.value}")

        self.state = SessionState.STREAMING
        try:
            yield self.next_message()
            while await self._wait_for_tick():
                yield self.next_message()
        finally:
            self.close()

    async def _wait_for_tick(self) -> bool:
        """Return True when the next tick fired with the session still open."""
        try:
            await asyncio.wait_for(self._closed.wait(), timeout=self.interval_seconds)
            return False
        except asyncio.TimeoutError:
            pass

        if self.disconnect_check is not None and await self.disconnect_check():
            return False
        return not self._closed.is_set()

    def _count(self, event: str):
        if self.metrics:
            self.metrics.increment_counter("sse_messages_sent_total", event=event)

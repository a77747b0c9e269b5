"""
Server-Sent Events (SSE) stream manager for the Explorer service.
"""

from typing import Any, AsyncGenerator, Dict, Mapping, Optional

from shared.errors import ConnectionLimitError, StreamingUnsupportedError
from shared.logging import get_logger, set_connection_context
from shared.metrics import MetricsCollector

from ..catalog.store import CatalogStore
from .session import DisconnectCheck, StreamSession


def check_streaming_capability(scope: Mapping[str, Any]):
    """Raise StreamingUnsupportedError when the connection cannot stream.

    An incrementally flushed response needs an HTTP/1.1+ connection: HTTP/1.0
    has no chunked transfer encoding, and non-HTTP scopes carry no response body.
    """
    if scope.get("type") != "http":
        raise StreamingUnsupportedError(details={"scope_type": scope.get("type")})
    if scope.get("http_version", "1.1") == "1.0":
        raise StreamingUnsupportedError(details={"http_version": "1.0"})


class SSEStreamManager:
    """Tracks open stream sessions.

    Sessions only read the shared catalog store; the manager keeps the
    bookkeeping needed for limits, statistics and shutdown.
    """

    def __init__(
        self,
        store: CatalogStore,
        interval_seconds: float = 3.0,
        max_connections: int = 1000,
        metrics: Optional[MetricsCollector] = None
    ):
        self.store = store
        self.interval_seconds = interval_seconds
        self.max_connections = max_connections
        self.metrics = metrics
        self.logger = get_logger("explorer.sse.manager")

        self.sessions: Dict[str, StreamSession] = {}
        self.total_sessions = 0

    def open_session(self, disconnect_check: Optional[DisconnectCheck] = None) -> StreamSession:
        """Create and register a new session."""
        if len(self.sessions) >= self.max_connections:
            raise ConnectionLimitError(self.max_connections)

        session = StreamSession(
            store=self.store,
            interval_seconds=self.interval_seconds,
            disconnect_check=disconnect_check,
            metrics=self.metrics
        )
        self.sessions[session.connection_id] = session
        self.total_sessions += 1
        self._update_gauge()

        self.logger.info(
            "SSE session opened",
            connection_id=session.connection_id,
            total_connections=len(self.sessions)
        )
        return session

    async def stream(self, session: StreamSession) -> AsyncGenerator[str, None]:
        """Run a registered session, unregistering it when it ends."""
        set_connection_context(session.connection_id)
        try:
            async for message in session.stream():
                yield message
        finally:
            self.remove_session(session.connection_id)

    def remove_session(self, connection_id: str):
        """Close and unregister a session."""
        session = self.sessions.pop(connection_id, None)
        if session is None:
            return

        session.close()
        self._update_gauge()
        if self.metrics:
            self.metrics.observe_histogram("sse_session_duration_seconds", session.duration_seconds)

        self.logger.info(
            "SSE session closed",
            connection_id=connection_id,
            messages_sent=session.messages_sent,
            empty_events_sent=session.empty_events_sent,
            duration_seconds=round(session.duration_seconds, 3),
            total_connections=len(self.sessions)
        )

    def close_all(self):
        """Signal every open session to stop."""
        for session in list(self.sessions.values()):
            session.close()

    def get_session(self, connection_id: str) -> Optional[StreamSession]:
        return self.sessions.get(connection_id)

    def get_connection_stats(self) -> Dict[str, Any]:
        """Get SSE connection statistics."""
        return {
            "active_connections": len(self.sessions),
            "max_connections": self.max_connections,
            "total_sessions": self.total_sessions,
            "interval_seconds": self.interval_seconds
        }

    def _update_gauge(self):
        if self.metrics:
            self.metrics.set_gauge("sse_active_sessions", len(self.sessions))

"""Session registry: the single authority over which sessions exist."""

from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import uuid4

import anyio

from streamchat.server.event_log import EventLog
from streamchat.server.lowlevel import Server
from streamchat.server.transport import SessionTransport

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Process-wide mapping from session id to ``SessionTransport``.

    Nothing else creates or deletes sessions. A transport removes itself through
    the ``on_close`` callback it is constructed with, so ``remove`` never needs to
    be called by request handlers.

    Build one instance per application and drain it with ``close_all()`` on
    shutdown; after that the registry refuses to create new sessions.

    Args:
        server: The handler registry every session dispatches to
        event_log_factory: Builds the event log of each new session
        session_id_generator: Produces candidate session ids. Defaults to
            ``uuid4().hex`` (backed by the OS CSPRNG).
    """

    def __init__(
        self,
        server: Server,
        event_log_factory: Callable[[], EventLog] = EventLog,
        session_id_generator: Callable[[], str] | None = None,
    ):
        self.server = server
        self._event_log_factory = event_log_factory
        self._session_id_generator = session_id_generator or (lambda: uuid4().hex)
        self._session_creation_lock = anyio.Lock()
        self._transports: dict[str, SessionTransport] = {}
        self._shut_down = False

    def __len__(self) -> int:
        return len(self._transports)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._transports

    @property
    def session_ids(self) -> list[str]:
        return list(self._transports)

    async def create(self) -> tuple[str, SessionTransport]:
        """Create and register a new, uninitialized session."""
        async with self._session_creation_lock:
            if self._shut_down:
                raise RuntimeError("Session registry is shut down")

            session_id = self._session_id_generator()
            while session_id in self._transports:
                logger.warning("Session id collision, drawing a new id")
                session_id = self._session_id_generator()

            transport = SessionTransport(
                session_id,
                self.server,
                event_log=self._event_log_factory(),
                on_close=self.remove,
            )
            self._transports[session_id] = transport

        logger.info(f"Created new transport with session ID: {session_id}")
        return session_id, transport

    def lookup(self, session_id: str | None) -> SessionTransport | None:
        if session_id is None:
            return None
        return self._transports.get(session_id)

    def remove(self, session_id: str) -> None:
        """Forget a session. Removing an unknown id is a no-op."""
        if self._transports.pop(session_id, None) is not None:
            logger.debug(f"Session {session_id} removed, {len(self._transports)} active")

    async def close_all(self) -> None:
        """Close every live transport exactly once and refuse new sessions."""
        self._shut_down = True
        transports = list(self._transports.values())
        logger.info(f"Closing {len(transports)} active sessions")
        for transport in transports:
            try:
                await transport.close()
            except Exception:
                logger.exception(f"Error closing session {transport.session_id}")
                self.remove(transport.session_id)

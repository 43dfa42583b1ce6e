"""Request router: binds inbound messages to sessions.

The router is pure dispatch. Its only decision is whether an inbound request
may create a session, and ``route`` is the only code path that does so.
"""

from __future__ import annotations

import logging

from anyio.streams.memory import MemoryObjectReceiveStream

from streamchat.server.event_log import Event, EventSequence
from streamchat.server.registry import SessionRegistry
from streamchat.server.transport import INITIALIZATION_METHODS, SessionTransport
from streamchat.shared.exceptions import SessionError, SessionErrorKind
from streamchat.types.json_rpc import JSONRPCMessage, JSONRPCRequest, JSONRPCResponse

logger = logging.getLogger(__name__)


def is_initialization_request(message: JSONRPCMessage) -> bool:
    return isinstance(message, JSONRPCRequest) and message.method in INITIALIZATION_METHODS


class RequestRouter:
    """Resolves the session of each inbound request and forwards it to its transport."""

    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    def _resolve(self, session_id: str | None) -> SessionTransport:
        transport = self.registry.lookup(session_id)
        if transport is None:
            logger.warning(f"Invalid session ID: {session_id or 'none'}")
            raise SessionError(SessionErrorKind.INVALID)
        return transport

    async def route(
        self, session_id: str | None, message: JSONRPCMessage
    ) -> tuple[str, JSONRPCResponse | None]:
        """Forward a plain request to its session, creating the session on initialize.

        Returns:
            The id of the session that handled the message and its response.

        Raises:
            SessionError: the credential is unknown, or missing on a
                non-initialization request
        """
        transport = self.registry.lookup(session_id)
        if transport is not None:
            logger.debug(f"Using existing session: {session_id}")
            return transport.session_id, await transport.handle_message(message)

        if session_id is None and is_initialization_request(message):
            new_session_id, transport = await self.registry.create()
            try:
                response = await transport.handle_message(message)
            finally:
                if not transport.is_active:
                    # Failed handshake, don't leave an unusable session behind.
                    await transport.close()
            return new_session_id, response

        logger.warning(f"Invalid session ID: {session_id or 'none'}")
        raise SessionError(SessionErrorKind.INVALID)

    async def open_stream(
        self, session_id: str | None, last_event_id: EventSequence | None = None
    ) -> tuple[str, MemoryObjectReceiveStream[Event]]:
        """Attach a push stream to an existing session.

        Returns:
            The id of the session the stream belongs to and the stream itself.
        """
        transport = self._resolve(session_id)
        logger.info(f"Opening push stream for session {transport.session_id}")
        return transport.session_id, await transport.attach_stream(last_event_id)

    async def terminate(self, session_id: str | None) -> None:
        """Close an existing session. Unknown ids leave the registry untouched."""
        transport = self._resolve(session_id)
        logger.info(f"Terminating session {transport.session_id}")
        await transport.close()

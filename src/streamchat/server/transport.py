"""
Session transport.

One ``SessionTransport`` exists per session. It owns the session's event log,
handles inbound JSON-RPC messages for the session, and forwards emitted
notifications to at most one attached push stream. A client that reconnects
attaches a new stream, which replaces the previous one and can replay the
events it missed.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import ValidationError

from streamchat.server.event_log import Event, EventLog, EventSequence
from streamchat.server.lowlevel import RequestContext, Server
from streamchat.shared.exceptions import NotificationSendError, SessionError, SessionErrorKind, TransportError
from streamchat.types.initialize import (
    LATEST_PROTOCOL_VERSION,
    Implementation,
    InitializeRequestParams,
    InitializeResult,
)
from streamchat.types.json_rpc import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPCMessage,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCResultResponse,
    error_response,
)
from streamchat.types.notifications import LoggingMessageNotification

logger = logging.getLogger(__name__)

INITIALIZE_METHOD = "initialize"
SERVER_INFO_METHOD = "server/info"
INITIALIZATION_METHODS = frozenset({INITIALIZE_METHOD, SERVER_INFO_METHOD})


class TransportState(Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


_VALID_TRANSITIONS: dict[TransportState, frozenset[TransportState]] = {
    TransportState.UNINITIALIZED: frozenset({TransportState.ACTIVE, TransportState.CLOSED}),
    TransportState.ACTIVE: frozenset({TransportState.ACTIVE, TransportState.CLOSED}),
    TransportState.CLOSED: frozenset(),
}


class SessionTransport:
    """
    Per-session channel binding an event log to request handling and a push stream.

    States: ``UNINITIALIZED -> ACTIVE -> CLOSED``. Only an initialization
    request moves the transport to ``ACTIVE``; ``close()`` is terminal and
    idempotent.

    ``emit`` and ``attach_stream`` run under the same lock, so an attaching
    client sees every event exactly once: either in the replay or live.
    """

    def __init__(
        self,
        session_id: str,
        server: Server,
        event_log: EventLog | None = None,
        on_close: Callable[[str], None] | None = None,
    ):
        self.session_id = session_id
        self.created_at = time.time()
        self._server = server
        self._event_log = event_log if event_log is not None else EventLog()
        self._on_close = on_close
        self._state = TransportState.UNINITIALIZED
        self._stream: MemoryObjectSendStream[Event] | None = None
        self._lock = anyio.Lock()

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is TransportState.ACTIVE

    @property
    def is_closed(self) -> bool:
        return self._state is TransportState.CLOSED

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def has_stream(self) -> bool:
        return self._stream is not None

    def _transition(self, new_state: TransportState) -> None:
        if new_state not in _VALID_TRANSITIONS[self._state]:
            raise RuntimeError(f"Invalid transport transition {self._state.name} -> {new_state.name}")
        self._state = new_state

    def _require_active(self) -> None:
        if self._state is not TransportState.ACTIVE:
            raise SessionError(SessionErrorKind.NOT_FOUND)

    async def handle_message(self, message: JSONRPCMessage) -> JSONRPCResponse | None:
        """Handle one inbound message and return the correlated response.

        Notifications and client responses produce no response (``None``).

        Raises:
            SessionError: the transport is not active (``NOT_FOUND``)
            TransportError: the request failed inside the transport
        """
        if isinstance(message, JSONRPCRequest) and message.method in INITIALIZATION_METHODS:
            return await self._handle_initialization(message)

        self._require_active()
        ctx = RequestContext(
            session_id=self.session_id,
            request_id=message.id if isinstance(message, JSONRPCRequest) else "notification",
            emitter=self,
        )
        try:
            if isinstance(message, JSONRPCRequest):
                return await self._server.dispatch_request(ctx, message)
            if isinstance(message, JSONRPCNotification):
                if message.method != "notifications/initialized":
                    await self._server.dispatch_notification(ctx, message)
                return None
        except Exception as e:
            logger.exception(f"Request handling failed in session {self.session_id}")
            raise TransportError() from e

        # The server never sends requests to the client, so client responses are dropped.
        logger.debug(f"Ignoring client response in session {self.session_id}")
        return None

    async def _handle_initialization(self, request: JSONRPCRequest) -> JSONRPCResponse:
        if self._state is TransportState.CLOSED:
            raise SessionError(SessionErrorKind.NOT_FOUND)

        if self._state is TransportState.ACTIVE:
            if request.method == INITIALIZE_METHOD:
                return error_response(INVALID_REQUEST, "Session already initialized", request.id)
            return JSONRPCResultResponse(id=request.id, result=self._server_info())

        if request.method == INITIALIZE_METHOD:
            try:
                params = InitializeRequestParams.model_validate(request.params or {})
            except ValidationError as e:
                logger.warning(f"Invalid initialize params: {e}")
                return error_response(INVALID_PARAMS, "Invalid initialize params", request.id)
            client = params.client_info.name if params.client_info else "unknown"
            logger.info(f"Session {self.session_id} initialized by client {client}")

        self._transition(TransportState.ACTIVE)
        return JSONRPCResultResponse(id=request.id, result=self._server_info())

    def _server_info(self) -> dict[str, Any]:
        result = InitializeResult(
            protocol_version=LATEST_PROTOCOL_VERSION,
            capabilities=self._server.get_capabilities(),
            server_info=Implementation(name=self._server.name, version=self._server.version),
        )
        return result.model_dump(by_alias=True, exclude_none=True)

    async def attach_stream(self, last_event_id: EventSequence | None = None) -> MemoryObjectReceiveStream[Event]:
        """Attach a new push stream, replacing any previous one.

        When ``last_event_id`` is given, every buffered event after it is queued
        on the new stream before any newly emitted event.

        Raises:
            SessionError: the transport is not active (``NOT_FOUND``)
        """
        async with self._lock:
            self._require_active()

            previous, self._stream = self._stream, None
            if previous is not None:
                logger.info(f"Replacing push stream of session {self.session_id}")
                await previous.aclose()

            send_stream, receive_stream = anyio.create_memory_object_stream[Event](math.inf)
            if last_event_id is not None:
                replayed = await self._event_log.replay_events_after(last_event_id, send_stream.send)
                logger.info(f"Replayed {replayed} events after {last_event_id} for session {self.session_id}")

            self._stream = send_stream
            logger.debug(f"Push stream attached to session {self.session_id}")
            return receive_stream

    async def emit(self, notification: LoggingMessageNotification) -> Event:
        """Append a notification to the event log and forward it to the attached stream.

        The append always succeeds; only the forward can fail.

        Raises:
            NotificationSendError: the attached stream is gone
        """
        async with self._lock:
            event = self._event_log.append(notification)
            stream = self._stream
            if stream is None:
                return event

            try:
                await stream.send(event)
            except (anyio.BrokenResourceError, anyio.ClosedResourceError) as e:
                if self._stream is stream:
                    self._stream = None
                stream.close()
                raise NotificationSendError(
                    f"Push stream of session {self.session_id} is closed",
                    sequence=event.sequence,
                ) from e
            return event

    async def close(self) -> None:
        """Close the transport and release its stream. Calling it again is a no-op.

        Waits for an attach in progress, so a stream bound during a replay is
        released here too.
        """
        async with self._lock:
            if self._state is TransportState.CLOSED:
                return
            self._transition(TransportState.CLOSED)

            stream, self._stream = self._stream, None
            if stream is not None:
                await stream.aclose()

        logger.info(f"Transport closed: {self.session_id}")
        if self._on_close is not None:
            self._on_close(self.session_id)

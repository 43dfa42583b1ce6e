"""Starlette adapter - the HTTP surface of the server.

This is the only module with a Starlette dependency. It converts HTTP requests
to router calls and router results back to HTTP responses:

- POST: route a JSON-RPC message, reply with JSON and the ``mcp-session-id`` header
- GET: open the session's push stream as Server-Sent Events
- DELETE: terminate the session
- OPTIONS: acknowledge preflight requests
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import partial
from http import HTTPStatus
from typing import Any

from anyio.streams.memory import MemoryObjectReceiveStream
from pydantic import ValidationError
from sse_starlette import EventSourceResponse
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from streamchat.server.event_log import Event, EventLog, EventSequence
from streamchat.server.lowlevel import Server
from streamchat.server.registry import SessionRegistry
from streamchat.server.router import RequestRouter
from streamchat.server.settings import Settings
from streamchat.shared.exceptions import SessionError, SessionErrorKind, StreamChatError, TransportError
from streamchat.types.json_rpc import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    PARSE_ERROR,
    JSONRPCErrorResponse,
    JSONRPCMessageAdapter,
    JSONRPCResponse,
    error_response,
)

logger = logging.getLogger(__name__)

MCP_SESSION_ID_HEADER = "mcp-session-id"
LAST_EVENT_ID_HEADER = "last-event-id"


def _dump(message: JSONRPCResponse) -> dict[str, Any]:
    data = message.model_dump(by_alias=True, exclude_none=True)
    if isinstance(message, JSONRPCErrorResponse):
        # Uncorrelated errors still carry an explicit "id": null.
        data["id"] = message.id
    return data


def _error(status: HTTPStatus, code: int, message: str) -> JSONResponse:
    return JSONResponse(_dump(error_response(code, message)), status_code=status)


def _stream_chat_error(exc: StreamChatError) -> JSONResponse:
    if isinstance(exc, SessionError):
        status = HTTPStatus.NOT_FOUND if exc.kind is SessionErrorKind.NOT_FOUND else HTTPStatus.BAD_REQUEST
    else:
        status = HTTPStatus.INTERNAL_SERVER_ERROR
    return JSONResponse(_dump(JSONRPCErrorResponse(error=exc.error)), status_code=status)


def _parse_last_event_id(value: str | None) -> EventSequence | None:
    if value is None or not value.strip():
        return None
    try:
        cursor = int(value.strip())
    except ValueError:
        raise SessionError(SessionErrorKind.INVALID, f"Bad Request: Invalid Last-Event-ID {value!r}") from None
    if cursor < 0:
        raise SessionError(SessionErrorKind.INVALID, f"Bad Request: Invalid Last-Event-ID {value!r}")
    return cursor


def create_starlette_app(
    server: Server,
    settings: Settings | None = None,
    *,
    registry: SessionRegistry | None = None,
) -> Starlette:
    """Create the Starlette ASGI app serving ``server``.

    The registry is drained in the app's lifespan, so every live session is
    closed exactly once when the server shuts down.

    Usage:
        server = Server(name="my-server", version="1.0")
        app = create_starlette_app(server)
        uvicorn.run(app, host="127.0.0.1", port=3000)
    """
    settings = settings or Settings()
    if registry is None:
        registry = SessionRegistry(server, event_log_factory=partial(EventLog, settings.event_retention))
    router = RequestRouter(registry)

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info(f"{server.name} started, endpoint {settings.endpoint_path}")
        try:
            yield
        finally:
            logger.info("Server shutdown started")
            await registry.close_all()
            logger.info("Server shutdown complete")

    async def handle_post(request: Request) -> Response:
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        try:
            body = await request.json()
        except ValueError:
            logger.warning("Rejected POST with unparseable body")
            return _error(HTTPStatus.BAD_REQUEST, PARSE_ERROR, "Parse error")
        try:
            message = JSONRPCMessageAdapter.validate_python(body)
        except ValidationError:
            logger.warning("Rejected POST with invalid JSON-RPC message")
            return _error(HTTPStatus.BAD_REQUEST, INVALID_REQUEST, "Invalid Request")

        try:
            handled_by, response = await router.route(session_id, message)
        except (SessionError, TransportError) as e:
            return _stream_chat_error(e)
        except Exception:
            logger.exception("Error handling POST request")
            return _error(HTTPStatus.INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "Internal server error")

        headers = {MCP_SESSION_ID_HEADER: handled_by}
        if response is None:
            return Response(status_code=HTTPStatus.ACCEPTED, headers=headers)
        return JSONResponse(_dump(response), headers=headers)

    async def handle_get(request: Request) -> Response:
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        last_event_id = request.headers.get(LAST_EVENT_ID_HEADER)
        if last_event_id:
            logger.info(f"Resuming stream after Last-Event-ID {last_event_id}")
        try:
            stream_session_id, stream = await router.open_stream(session_id, _parse_last_event_id(last_event_id))
        except SessionError as e:
            return _stream_chat_error(e)
        except Exception:
            logger.exception("Error opening push stream")
            return _error(HTTPStatus.INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "Internal server error")

        return EventSourceResponse(
            _sse_events(stream, stream_session_id),
            headers={MCP_SESSION_ID_HEADER: stream_session_id},
        )

    async def handle_delete(request: Request) -> Response:
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        try:
            await router.terminate(session_id)
        except SessionError as e:
            return _stream_chat_error(e)
        except Exception:
            logger.exception("Error closing transport")
            return _error(HTTPStatus.INTERNAL_SERVER_ERROR, INTERNAL_ERROR, "Error closing transport")
        return Response(status_code=HTTPStatus.OK)

    async def handle_options(request: Request) -> Response:
        return Response(status_code=HTTPStatus.OK)

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Accept", "Mcp-Session-Id", "Last-Event-Id"],
            expose_headers=["Mcp-Session-Id"],
            allow_credentials=True,
            max_age=86400,
        )
    ]

    app = Starlette(
        debug=settings.debug,
        routes=[
            Route(settings.endpoint_path, handle_post, methods=["POST"]),
            Route(settings.endpoint_path, handle_get, methods=["GET"]),
            Route(settings.endpoint_path, handle_delete, methods=["DELETE"]),
            Route(settings.endpoint_path, handle_options, methods=["OPTIONS"]),
        ],
        middleware=middleware,
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.router = router
    return app


async def _sse_events(stream: MemoryObjectReceiveStream[Event], session_id: str) -> AsyncIterator[dict[str, str]]:
    async with stream:
        async for event in stream:
            yield {
                "event": "message",
                "id": event.event_id,
                "data": event.notification.model_dump_json(by_alias=True, exclude_none=True),
            }
    logger.debug(f"Push stream of session {session_id} ended")

"""Low-level server - handler registry and dispatch.

No I/O, no lifecycle, no transport knowledge. Transports hand it a request
and a ``RequestContext``; it returns the correlated response.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

from streamchat.types.initialize import ServerCapabilities
from streamchat.types.json_rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCResultResponse,
    RequestId,
    error_response,
)
from streamchat.types.notifications import LoggingMessageNotification
from streamchat.types.tools import CallToolRequestParams, CallToolResult, JsonSchema, ListToolsResult, TextContent, Tool

logger = logging.getLogger(__name__)


class NotificationEmitter(Protocol):
    """Capability handed to handlers for pushing notifications to the client.

    ``emit`` raises ``NotificationSendError`` when the notification was logged
    but could not be forwarded to the attached stream.
    """

    async def emit(self, notification: LoggingMessageNotification) -> Any: ...


@dataclass
class RequestContext:
    """What handlers receive for the duration of one request."""

    session_id: str | None
    request_id: RequestId
    emitter: NotificationEmitter

    async def emit(self, notification: LoggingMessageNotification) -> Any:
        return await self.emitter.emit(notification)


RequestHandler = Callable[[RequestContext, JSONRPCRequest], Awaitable[Any]]
NotificationHandler = Callable[[RequestContext, JSONRPCNotification], Awaitable[None]]
ToolHandler = Callable[[RequestContext, dict[str, Any]], Awaitable[CallToolResult | str]]


class Server:
    """Handler registry + dispatch.

    Usage:
        server = Server(name="my-server", version="1.0")

        @server.tool("echo", "Echo the message back", {"message": {"type": "string"}})
        async def echo(ctx: RequestContext, arguments: dict[str, Any]) -> str:
            return arguments["message"]
    """

    def __init__(self, *, name: str, version: str) -> None:
        self.name = name
        self.version = version
        self._request_handlers: dict[str, RequestHandler] = {}
        self._notification_handlers: dict[str, NotificationHandler] = {}
        self._tools: dict[str, tuple[Tool, ToolHandler]] = {}

        self._request_handlers["ping"] = self._handle_ping

    def request_handler(self, method: str) -> Callable[[RequestHandler], RequestHandler]:
        """Decorator to register a request handler for a given method."""

        def decorator(fn: RequestHandler) -> RequestHandler:
            self._request_handlers[method] = fn
            return fn

        return decorator

    def notification_handler(self, method: str) -> Callable[[NotificationHandler], NotificationHandler]:
        """Decorator to register a notification handler for a given method."""

        def decorator(fn: NotificationHandler) -> NotificationHandler:
            self._notification_handlers[method] = fn
            return fn

        return decorator

    def tool(
        self,
        name: str,
        description: str,
        properties: dict[str, Any] | None = None,
        required: list[str] | None = None,
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator to register a tool; installs the tools/list and tools/call handlers."""

        def decorator(fn: ToolHandler) -> ToolHandler:
            if name in self._tools:
                logger.warning(f"Tool already exists: {name}")
            definition = Tool(
                name=name,
                description=description,
                input_schema=JsonSchema(properties=properties or {}, required=required),
            )
            self._tools[name] = (definition, fn)
            self._request_handlers["tools/list"] = self._handle_list_tools
            self._request_handlers["tools/call"] = self._handle_call_tool
            return fn

        return decorator

    def list_tools(self) -> list[Tool]:
        return [definition for definition, _ in self._tools.values()]

    async def dispatch_request(self, ctx: RequestContext, request: JSONRPCRequest) -> JSONRPCResponse:
        """Dispatch a request to the appropriate handler."""
        handler = self._request_handlers.get(request.method)
        if not handler:
            return error_response(METHOD_NOT_FOUND, f"Method not found: {request.method}", request.id)
        try:
            result = await handler(ctx, request)
            # Handler can return a BaseModel (serialized) or a raw dict
            if isinstance(result, BaseModel):
                result_data = result.model_dump(by_alias=True, exclude_none=True)
            elif isinstance(result, dict):
                result_data = result
            else:
                result_data = {}
            return JSONRPCResultResponse(id=request.id, result=result_data)
        except ValidationError as e:
            logger.warning(f"Invalid params for {request.method}: {e}")
            return error_response(INVALID_PARAMS, f"Invalid params: {e.error_count()} validation error(s)", request.id)
        except Exception:
            logger.exception("Handler error for %s", request.method)
            return error_response(INTERNAL_ERROR, "Internal error", request.id)

    async def dispatch_notification(self, ctx: RequestContext, notification: JSONRPCNotification) -> None:
        """Dispatch a notification to the appropriate handler."""
        handler = self._notification_handlers.get(notification.method)
        if handler:
            try:
                await handler(ctx, notification)
            except Exception:
                logger.exception("Notification handler error for %s", notification.method)

    def get_capabilities(self) -> ServerCapabilities:
        """Derive capabilities from registered handlers."""
        caps = ServerCapabilities(logging={})
        if self._tools:
            caps.tools = {}
        return caps

    async def _handle_ping(self, ctx: RequestContext, request: JSONRPCRequest) -> dict[str, Any]:
        return {}

    async def _handle_list_tools(self, ctx: RequestContext, request: JSONRPCRequest) -> ListToolsResult:
        return ListToolsResult(tools=self.list_tools())

    async def _handle_call_tool(self, ctx: RequestContext, request: JSONRPCRequest) -> CallToolResult:
        params = CallToolRequestParams.model_validate(request.params or {})
        entry = self._tools.get(params.name)
        if entry is None:
            return CallToolResult(content=[TextContent(text=f"Unknown tool: {params.name}")], is_error=True)

        _, fn = entry
        result = await fn(ctx, params.arguments or {})
        if isinstance(result, str):
            return CallToolResult(content=[TextContent(text=result)])
        return result

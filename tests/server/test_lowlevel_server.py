"""Tests for the low-level handler registry and dispatch."""

from typing import Any

import pytest

from streamchat.server.lowlevel import RequestContext, Server
from streamchat.types.json_rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    JSONRPCErrorResponse,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResultResponse,
)


@pytest.fixture
def ctx(emitter) -> RequestContext:
    return RequestContext(session_id="s", request_id=1, emitter=emitter)


@pytest.mark.anyio
async def test_ping(server: Server, ctx: RequestContext):
    response = await server.dispatch_request(ctx, JSONRPCRequest(id=1, method="ping"))

    assert isinstance(response, JSONRPCResultResponse)
    assert response.result == {}


@pytest.mark.anyio
async def test_unknown_method(server: Server, ctx: RequestContext):
    response = await server.dispatch_request(ctx, JSONRPCRequest(id=7, method="resources/list"))

    assert isinstance(response, JSONRPCErrorResponse)
    assert response.id == 7
    assert response.error.code == METHOD_NOT_FOUND


@pytest.mark.anyio
async def test_handler_exception_becomes_internal_error(server: Server, ctx: RequestContext):
    @server.request_handler("explode")
    async def explode(ctx: RequestContext, request: JSONRPCRequest) -> Any:
        raise RuntimeError("kaboom")

    response = await server.dispatch_request(ctx, JSONRPCRequest(id=2, method="explode"))

    assert isinstance(response, JSONRPCErrorResponse)
    assert response.id == 2
    assert response.error.code == INTERNAL_ERROR
    assert "kaboom" not in response.error.message


@pytest.mark.anyio
async def test_tool_call_validation_error_is_invalid_params(server: Server, ctx: RequestContext):
    response = await server.dispatch_request(ctx, JSONRPCRequest(id=3, method="tools/call", params={"arguments": {}}))

    assert isinstance(response, JSONRPCErrorResponse)
    assert response.error.code == INVALID_PARAMS


@pytest.mark.anyio
async def test_unknown_tool_is_an_error_result(server: Server, ctx: RequestContext):
    response = await server.dispatch_request(
        ctx, JSONRPCRequest(id=4, method="tools/call", params={"name": "missing", "arguments": {}})
    )

    assert isinstance(response, JSONRPCResultResponse)
    assert response.result["isError"] is True
    assert response.result["content"][0]["text"] == "Unknown tool: missing"


@pytest.mark.anyio
async def test_tool_emits_through_context(server: Server, ctx: RequestContext, emitter):
    response = await server.dispatch_request(
        ctx, JSONRPCRequest(id=5, method="tools/call", params={"name": "shout", "arguments": {"text": "one two"}})
    )

    assert isinstance(response, JSONRPCResultResponse)
    assert response.result == {"content": [{"type": "text", "text": "2 words"}], "isError": False}
    assert [n.params.data for n in emitter.notifications] == ["one", "two"]


def test_tool_listing_and_capabilities():
    server = Server(name="bare", version="0")
    assert server.get_capabilities().model_dump(exclude_none=True) == {"logging": {}}

    @server.tool("echo", "Echo", {"message": {"type": "string"}}, ["message"])
    async def echo(ctx: RequestContext, arguments: dict[str, Any]) -> str:
        return arguments["message"]

    (tool,) = server.list_tools()
    assert tool.model_dump(by_alias=True, exclude_none=True) == {
        "name": "echo",
        "description": "Echo",
        "inputSchema": {"type": "object", "properties": {"message": {"type": "string"}}, "required": ["message"]},
    }
    assert server.get_capabilities().model_dump(exclude_none=True) == {"logging": {}, "tools": {}}


@pytest.mark.anyio
async def test_notification_handler_errors_are_contained(server: Server, ctx: RequestContext):
    @server.notification_handler("notifications/cancelled")
    async def on_cancelled(ctx: RequestContext, notification: JSONRPCNotification) -> None:
        raise RuntimeError("ignored")

    await server.dispatch_notification(ctx, JSONRPCNotification(method="notifications/cancelled"))

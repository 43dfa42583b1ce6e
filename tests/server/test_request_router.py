"""Tests for RequestRouter: which requests may create, use and terminate sessions."""

import anyio
import pytest

from streamchat.server.lowlevel import Server
from streamchat.server.registry import SessionRegistry
from streamchat.server.router import RequestRouter, is_initialization_request
from streamchat.shared.exceptions import SessionError, SessionErrorKind
from streamchat.types.json_rpc import (
    JSONRPCErrorResponse,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResultResponse,
)
from streamchat.types.notifications import LoggingMessageNotification

INITIALIZE = JSONRPCRequest(id=1, method="initialize", params={"clientInfo": {"name": "c", "version": "1"}})


@pytest.fixture
def registry(server: Server) -> SessionRegistry:
    return SessionRegistry(server)


@pytest.fixture
def router(registry: SessionRegistry) -> RequestRouter:
    return RequestRouter(registry)


def test_is_initialization_request():
    assert is_initialization_request(INITIALIZE)
    assert is_initialization_request(JSONRPCRequest(id=1, method="server/info"))
    assert not is_initialization_request(JSONRPCRequest(id=1, method="tools/list"))
    assert not is_initialization_request(JSONRPCNotification(method="initialize"))


@pytest.mark.anyio
async def test_initialize_without_credential_creates_session(router: RequestRouter, registry: SessionRegistry):
    session_id, response = await router.route(None, INITIALIZE)

    assert isinstance(response, JSONRPCResultResponse)
    transport = registry.lookup(session_id)
    assert transport is not None
    assert transport.is_active


@pytest.mark.anyio
async def test_server_info_without_credential_creates_session(router: RequestRouter, registry: SessionRegistry):
    session_id, response = await router.route(None, JSONRPCRequest(id=1, method="server/info"))

    assert isinstance(response, JSONRPCResultResponse)
    assert session_id in registry


@pytest.mark.anyio
async def test_plain_request_without_credential_is_rejected(router: RequestRouter, registry: SessionRegistry):
    with pytest.raises(SessionError) as excinfo:
        await router.route(None, JSONRPCRequest(id=1, method="tools/list"))

    assert excinfo.value.kind is SessionErrorKind.INVALID
    assert len(registry) == 0


@pytest.mark.anyio
async def test_unknown_credential_is_rejected_even_for_initialize(router: RequestRouter, registry: SessionRegistry):
    with pytest.raises(SessionError) as excinfo:
        await router.route("forged", INITIALIZE)

    assert excinfo.value.kind is SessionErrorKind.INVALID
    assert len(registry) == 0


@pytest.mark.anyio
async def test_requests_with_credential_reach_their_session(router: RequestRouter):
    session_id, _ = await router.route(None, INITIALIZE)

    handled_by, response = await router.route(session_id, JSONRPCRequest(id=2, method="tools/list"))

    assert handled_by == session_id
    assert isinstance(response, JSONRPCResultResponse)
    assert [tool["name"] for tool in response.result["tools"]] == ["shout"]


@pytest.mark.anyio
async def test_failed_handshake_leaves_no_session(router: RequestRouter, registry: SessionRegistry):
    _, response = await router.route(None, JSONRPCRequest(id=1, method="initialize", params={"clientInfo": 42}))

    assert isinstance(response, JSONRPCErrorResponse)
    assert len(registry) == 0


@pytest.mark.anyio
async def test_concurrent_initializations_get_independent_sessions(router: RequestRouter, registry: SessionRegistry):
    session_ids: list[str] = []

    async def initialize() -> None:
        session_id, _ = await router.route(None, INITIALIZE)
        session_ids.append(session_id)

    async with anyio.create_task_group() as tg:
        tg.start_soon(initialize)
        tg.start_soon(initialize)

    first, second = (registry.lookup(session_id) for session_id in session_ids)
    assert first is not None and second is not None
    assert first.session_id != second.session_id

    await first.emit(LoggingMessageNotification.chunk("only for first", 1, 1))
    assert len(first.event_log) == 1
    assert len(second.event_log) == 0


@pytest.mark.anyio
async def test_open_stream_requires_known_session(router: RequestRouter):
    for session_id in (None, "unknown"):
        with pytest.raises(SessionError) as excinfo:
            await router.open_stream(session_id)
        assert excinfo.value.kind is SessionErrorKind.INVALID


@pytest.mark.anyio
async def test_open_stream_replays_after_cursor(router: RequestRouter, registry: SessionRegistry):
    session_id, _ = await router.route(None, INITIALIZE)
    await router.route(
        session_id,
        JSONRPCRequest(id=2, method="tools/call", params={"name": "shout", "arguments": {"text": "x y z"}}),
    )

    stream_session_id, stream = await router.open_stream(session_id, last_event_id=1)
    assert stream_session_id == session_id
    async with stream:
        assert stream.receive_nowait().sequence == 2
        assert stream.receive_nowait().sequence == 3
    await router.terminate(session_id)


@pytest.mark.anyio
async def test_terminate_closes_and_forgets_session(router: RequestRouter, registry: SessionRegistry):
    session_id, _ = await router.route(None, INITIALIZE)
    transport = registry.lookup(session_id)
    assert transport is not None

    await router.terminate(session_id)

    assert transport.is_closed
    assert session_id not in registry
    with pytest.raises(SessionError):
        await router.route(session_id, JSONRPCRequest(id=3, method="ping"))


@pytest.mark.anyio
async def test_terminate_unknown_session_changes_nothing(router: RequestRouter, registry: SessionRegistry):
    session_id, _ = await router.route(None, INITIALIZE)

    with pytest.raises(SessionError) as excinfo:
        await router.terminate("unknown")

    assert excinfo.value.kind is SessionErrorKind.INVALID
    assert registry.session_ids == [session_id]

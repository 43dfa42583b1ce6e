import anyio
import pytest
import sse_starlette
from packaging import version

from streamchat.server.lowlevel import RequestContext, Server
from streamchat.types.notifications import LoggingMessageNotification


@pytest.fixture
def anyio_backend():
    return "asyncio"


SSE_STARLETTE_VERSION = version.parse(sse_starlette.__version__)
NEEDS_RESET = SSE_STARLETTE_VERSION < version.parse("3.0.0")


@pytest.fixture(autouse=True)
def reset_sse_app_status():
    """Reset sse-starlette's global AppStatus singleton before each test.

    AppStatus.should_exit_event is a global asyncio.Event that gets bound to
    an event loop. sse-starlette 3.0+ uses context-local events instead, so
    the reset is only needed for older versions.
    """
    if not NEEDS_RESET:
        yield
        return

    # lazy import to avoid import errors
    from sse_starlette.sse import AppStatus

    AppStatus.should_exit_event = anyio.Event()  # type: ignore[attr-defined]

    yield

    AppStatus.should_exit_event = anyio.Event()  # type: ignore[attr-defined]


class RecordingEmitter:
    """NotificationEmitter that records notifications and can fail on chosen calls."""

    def __init__(self, fail_on: set[int] | None = None):
        self.notifications: list[LoggingMessageNotification] = []
        self.attempts = 0
        self.fail_on = fail_on or set()

    async def emit(self, notification: LoggingMessageNotification) -> None:
        self.attempts += 1
        if self.attempts in self.fail_on:
            raise ConnectionError(f"emit {self.attempts} failed")
        self.notifications.append(notification)


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def server() -> Server:
    """A server with a tool that emits one notification per word of its argument."""
    server = Server(name="test-server", version="0.1.0")

    @server.tool("shout", "Emit every word", {"text": {"type": "string"}})
    async def shout(ctx: RequestContext, arguments: dict) -> str:
        words = arguments["text"].split()
        for index, word in enumerate(words, start=1):
            await ctx.emit(LoggingMessageNotification.chunk(word, index, len(words)))
        return f"{len(words)} words"

    return server

"""Application factory wiring the tool catalog into the HTTP server."""

from starlette.applications import Starlette

from streamchat.server.lowlevel import Server
from streamchat.server.registry import SessionRegistry
from streamchat.server.settings import Settings
from streamchat.server.starlette import create_starlette_app
from streamchat.server.streaming import SentenceSegmenter, StreamingDispatcher
from streamchat.tools import Generator, generate_response, register_tools


def create_server(settings: Settings, generate: Generator = generate_response) -> Server:
    """Build the handler registry with the dice, chat and chat_stream tools."""
    server = Server(name=settings.server_name, version=settings.server_version)
    dispatcher = StreamingDispatcher(
        delay=settings.chunk_delay,
        segmenter=SentenceSegmenter(settings.sentence_terminals),
    )
    register_tools(server, dispatcher, generate)
    return server


def create_app(
    settings: Settings | None = None,
    *,
    generate: Generator = generate_response,
    registry: SessionRegistry | None = None,
) -> Starlette:
    settings = settings or Settings()
    server = registry.server if registry is not None else create_server(settings, generate)
    return create_starlette_app(server, settings, registry=registry)

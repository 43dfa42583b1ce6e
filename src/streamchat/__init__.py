"""streamchat - session-scoped streaming chat server."""

from streamchat.app import create_app, create_server
from streamchat.server.settings import Settings

__all__ = ["Settings", "create_app", "create_server"]

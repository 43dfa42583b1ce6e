"""Types for the initialize handshake and the server/info query."""

from typing import Annotated, Any, Final

from pydantic import Field

from streamchat.types.base import StreamChatModel

LATEST_PROTOCOL_VERSION: Final[str] = "2025-03-26"


class Implementation(StreamChatModel):
    """Describes the name and version of a client or server implementation."""

    name: str
    version: str


class ServerCapabilities(StreamChatModel):
    """Capabilities that the server supports."""

    logging: dict[str, Any] | None = None
    tools: dict[str, Any] | None = None


class InitializeRequestParams(StreamChatModel):
    """Parameters for the initialize request. Every field is optional."""

    protocol_version: Annotated[str | None, Field(alias="protocolVersion")] = None
    capabilities: dict[str, Any] | None = None
    client_info: Annotated[Implementation | None, Field(alias="clientInfo")] = None


class InitializeResult(StreamChatModel):
    """Server's response to an initialize (or server/info) request."""

    protocol_version: Annotated[str, Field(alias="protocolVersion")]
    capabilities: ServerCapabilities
    server_info: Annotated[Implementation, Field(alias="serverInfo")]

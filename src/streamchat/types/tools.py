"""Types for tool listing and invocation."""

from typing import Annotated, Any, Literal

from pydantic import Field

from streamchat.types.base import StreamChatModel
from streamchat.types.notifications import StreamMetadata


class JsonSchema(StreamChatModel):
    """A JSON Schema object."""

    type: Literal["object"] = "object"
    properties: dict[str, Any] | None = None
    required: list[str] | None = None


class Tool(StreamChatModel):
    """Definition of a tool the server provides."""

    name: str
    input_schema: Annotated[JsonSchema, Field(alias="inputSchema")]
    description: str | None = None


class ListToolsResult(StreamChatModel):
    """The server's response to a tools/list request."""

    tools: list[Tool]


class CallToolRequestParams(StreamChatModel):
    """Parameters for a tools/call request."""

    name: str
    arguments: dict[str, Any] | None = None


class TextContent(StreamChatModel):
    """Text returned from a tool.

    Streaming tools deliver their output through notifications and return an
    empty ``text`` with the final ``metadata`` of the stream.
    """

    type: Literal["text"] = "text"
    text: str
    metadata: StreamMetadata | None = None


class CallToolResult(StreamChatModel):
    """The server's response to a tool call."""

    content: list[TextContent]
    is_error: Annotated[bool, Field(alias="isError")] = False

"""Chat tools: a one-shot reply and a streamed reply."""

import logging
from typing import Any

from pydantic import BaseModel, Field

from streamchat.server.lowlevel import RequestContext, Server
from streamchat.server.streaming import StreamingDispatcher
from streamchat.tools.generator import Generator, generate_response
from streamchat.types.notifications import LoggingMessageNotification, LoggingMessageNotificationParams, StreamMetadata
from streamchat.types.tools import CallToolResult, TextContent

logger = logging.getLogger(__name__)

MESSAGE_PROPERTIES = {"message": {"type": "string", "description": "The user's message"}}


class ChatArguments(BaseModel):
    message: str = Field(description="The user's message")


def _final_result(total_chunks: int) -> CallToolResult:
    # The reply itself travels as notifications; the result only closes the stream.
    return CallToolResult(content=[TextContent(text="", metadata=StreamMetadata.complete(total_chunks))])


def register_chat_tools(
    server: Server,
    dispatcher: StreamingDispatcher,
    generate: Generator = generate_response,
) -> None:
    """Register the ``chat`` and ``chat_stream`` tools on ``server``."""

    @server.tool("chat", "Answer a message in a single notification", MESSAGE_PROPERTIES, ["message"])
    async def chat(ctx: RequestContext, arguments: dict[str, Any]) -> CallToolResult:
        args = ChatArguments.model_validate(arguments)
        reply = generate(args.message)
        logger.info(f'chat: "{args.message}" => {len(reply)} characters')

        notification = LoggingMessageNotification(
            params=LoggingMessageNotificationParams(data=reply, metadata=StreamMetadata.complete())
        )
        try:
            await ctx.emit(notification)
        except Exception as e:
            logger.error(f"Failed to send chat notification: {e}")
        return _final_result(1)

    @server.tool("chat_stream", "Answer a message sentence by sentence", MESSAGE_PROPERTIES, ["message"])
    async def chat_stream(ctx: RequestContext, arguments: dict[str, Any]) -> CallToolResult:
        args = ChatArguments.model_validate(arguments)
        reply = generate(args.message)
        logger.info(f'chat_stream: "{args.message}" => streaming started')

        total = await dispatcher.dispatch(reply, ctx.emit)
        logger.info(f"chat_stream: sent {total} chunks")
        return _final_result(max(total, 1))

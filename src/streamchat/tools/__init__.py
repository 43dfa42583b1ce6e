from streamchat.server.lowlevel import Server
from streamchat.server.streaming import StreamingDispatcher
from streamchat.tools.chat import register_chat_tools
from streamchat.tools.dice import register_dice_tool
from streamchat.tools.generator import Generator, generate_response


def register_tools(
    server: Server,
    dispatcher: StreamingDispatcher,
    generate: Generator = generate_response,
) -> None:
    """Register the full tool catalog: ``dice``, ``chat`` and ``chat_stream``."""
    register_dice_tool(server)
    register_chat_tools(server, dispatcher, generate)


__all__ = ["Generator", "generate_response", "register_chat_tools", "register_dice_tool", "register_tools"]

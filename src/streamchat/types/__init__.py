from .json_rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    INVALID_SESSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ErrorData,
    JSONRPCErrorResponse,
    JSONRPCMessage,
    JSONRPCMessageAdapter,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCResultResponse,
    RequestId,
    error_response,
)
from .notifications import LoggingLevel, LoggingMessageNotification, LoggingMessageNotificationParams, StreamMetadata
from .tools import CallToolRequestParams, CallToolResult, JsonSchema, ListToolsResult, TextContent, Tool

__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "INVALID_SESSION",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "CallToolRequestParams",
    "CallToolResult",
    "ErrorData",
    "JSONRPCErrorResponse",
    "JSONRPCMessage",
    "JSONRPCMessageAdapter",
    "JSONRPCNotification",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCResultResponse",
    "JsonSchema",
    "ListToolsResult",
    "LoggingLevel",
    "LoggingMessageNotification",
    "LoggingMessageNotificationParams",
    "RequestId",
    "StreamMetadata",
    "TextContent",
    "Tool",
    "error_response",
]

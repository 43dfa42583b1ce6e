"""JSON-RPC 2.0 envelopes exchanged on the streamchat endpoint.

Inbound bodies are parsed with ``JSONRPCMessageAdapter``. Server-to-client
notifications subclass ``NotificationBase`` with a typed method and params.
"""

from typing import Annotated, Any, Final, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

JSONRPC_VERSION: Final[str] = "2.0"

PARSE_ERROR: Final[int] = -32700
INVALID_REQUEST: Final[int] = -32600
METHOD_NOT_FOUND: Final[int] = -32601
INVALID_PARAMS: Final[int] = -32602
INTERNAL_ERROR: Final[int] = -32603

# Server-defined error range; used for every session credential failure.
INVALID_SESSION: Final[int] = -32000

RequestId = Annotated[int, Field(strict=True)] | str


class JSONRPCBase(BaseModel):
    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION


class JSONRPCRequest(JSONRPCBase):
    """A client call that is answered on the same POST."""

    id: RequestId
    method: str
    params: dict[str, Any] | None = None


MethodT = TypeVar("MethodT", bound=str)
ParamsT = TypeVar("ParamsT", bound=BaseModel | dict[str, Any] | None)


class NotificationBase(JSONRPCBase, Generic[MethodT, ParamsT]):
    """A message without an id; nobody answers it."""

    method: MethodT
    params: ParamsT


# noinspection PyTypeChecker
class JSONRPCNotification(NotificationBase[str, dict[str, Any] | None]):
    """An inbound notification with untyped params."""

    params: dict[str, Any] | None = None


class ErrorData(BaseModel):
    model_config = ConfigDict(extra="allow")

    code: int
    message: str
    data: Any | None = None


class JSONRPCResultResponse(JSONRPCBase):
    """A successful reply, correlated to its request by ``id``."""

    id: RequestId
    result: dict[str, Any]


class JSONRPCErrorResponse(JSONRPCBase):
    """A failed reply.

    ``id`` is ``None`` when the failure happened before the request could be
    correlated (parse errors, rejected session credentials).
    """

    id: RequestId | None = None
    error: ErrorData


JSONRPCResponse = JSONRPCResultResponse | JSONRPCErrorResponse
JSONRPCMessage = JSONRPCRequest | JSONRPCNotification | JSONRPCResponse

JSONRPCMessageAdapter: TypeAdapter[JSONRPCMessage] = TypeAdapter(JSONRPCMessage)


def error_response(code: int, message: str, request_id: RequestId | None = None) -> JSONRPCErrorResponse:
    """Build an error envelope, uncorrelated unless ``request_id`` is given."""
    return JSONRPCErrorResponse(id=request_id, error=ErrorData(code=code, message=message))

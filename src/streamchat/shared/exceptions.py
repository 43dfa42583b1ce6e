from enum import Enum

from streamchat.types.json_rpc import INTERNAL_ERROR, INVALID_SESSION, ErrorData


class StreamChatError(Exception):
    """Base class for errors raised by the streamchat server.

    Attributes:
        error: The ErrorData sent to the client when this error reaches a
               request boundary
    """

    error: ErrorData

    def __init__(self, error: ErrorData):
        super().__init__(error.message)
        self.error = error


class SessionErrorKind(Enum):
    NOT_FOUND = "not_found"
    """A credential was given but no active transport answers to it."""

    INVALID = "invalid"
    """The credential is malformed, missing where required, or unknown."""


class SessionError(StreamChatError):
    """Raised when a request cannot be bound to a usable session.

    Surfaced to the caller as a structured error response, never retried.
    """

    def __init__(self, kind: SessionErrorKind, message: str | None = None):
        if message is None:
            if kind is SessionErrorKind.NOT_FOUND:
                message = "Session not found"
            else:
                message = "Bad Request: No valid session ID provided"
        super().__init__(ErrorData(code=INVALID_SESSION, message=message))
        self.kind = kind


class TransportError(StreamChatError):
    """Raised when handling a request inside an active transport fails."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(ErrorData(code=INTERNAL_ERROR, message=message))


class NotificationSendError(StreamChatError):
    """Raised when a notification could not be forwarded to the attached stream.

    The notification is already in the session's event log when this is raised,
    so a reconnecting client can still replay it.
    """

    def __init__(self, message: str = "Failed to forward notification", sequence: int | None = None):
        super().__init__(ErrorData(code=INTERNAL_ERROR, message=message))
        self.sequence = sequence

"""Types for the ``notifications/message`` push messages carrying streamed output."""

from typing import Annotated, Literal

from pydantic import Field, model_validator

from streamchat.types.base import StreamChatModel
from streamchat.types.json_rpc import NotificationBase

LoggingLevel = Literal["info", "warn", "error"]


class StreamMetadata(StreamChatModel):
    """Position and completion status of one chunk of a streamed reply."""

    streaming: bool
    progress: Annotated[int, Field(ge=0, le=100)]
    total_chunks: Annotated[int, Field(alias="totalChunks", ge=1)]
    current_chunk: Annotated[int, Field(alias="currentChunk", ge=1)]
    is_complete: Annotated[bool, Field(alias="isComplete")]

    @model_validator(mode="after")
    def _check_consistency(self) -> "StreamMetadata":
        if self.current_chunk > self.total_chunks:
            raise ValueError("currentChunk must not exceed totalChunks")
        if self.is_complete != (self.current_chunk == self.total_chunks):
            raise ValueError("isComplete must be true exactly on the last chunk")
        if self.streaming == self.is_complete:
            raise ValueError("streaming must be false exactly when isComplete is true")
        return self

    @classmethod
    def for_chunk(cls, current_chunk: int, total_chunks: int) -> "StreamMetadata":
        """Metadata for chunk ``current_chunk`` (1-based) out of ``total_chunks``."""
        is_complete = current_chunk == total_chunks
        return cls(
            streaming=not is_complete,
            progress=current_chunk * 100 // total_chunks,
            total_chunks=total_chunks,
            current_chunk=current_chunk,
            is_complete=is_complete,
        )

    @classmethod
    def complete(cls, total_chunks: int = 1) -> "StreamMetadata":
        return cls.for_chunk(total_chunks, total_chunks)


class LoggingMessageNotificationParams(StreamChatModel):
    """Parameters for a notifications/message notification."""

    level: LoggingLevel = "info"
    data: str
    metadata: StreamMetadata


class LoggingMessageNotification(
    NotificationBase[Literal["notifications/message"], LoggingMessageNotificationParams]
):
    """Server-to-client push message with partial or complete output."""

    method: Literal["notifications/message"] = "notifications/message"

    @classmethod
    def chunk(
        cls,
        data: str,
        current_chunk: int,
        total_chunks: int,
        level: LoggingLevel = "info",
    ) -> "LoggingMessageNotification":
        return cls(
            params=LoggingMessageNotificationParams(
                level=level,
                data=data,
                metadata=StreamMetadata.for_chunk(current_chunk, total_chunks),
            )
        )

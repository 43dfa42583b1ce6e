"""Base model shared by the streamchat domain types."""

from pydantic import BaseModel, ConfigDict


class StreamChatModel(BaseModel):
    """Base class for all domain types. Allows extra fields for forward compatibility."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

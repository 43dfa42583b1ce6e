"""Server settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from streamchat.server.streaming import DEFAULT_CHUNK_DELAY, DEFAULT_SENTENCE_TERMINALS


class Settings(BaseSettings):
    """streamchat server settings.

    All settings can be configured via environment variables with the prefix STREAMCHAT_.
    For example, STREAMCHAT_CHUNK_DELAY=0.1 will set chunk_delay=0.1.
    """

    model_config = SettingsConfigDict(
        env_prefix="STREAMCHAT_",
        env_file=".env",
        extra="ignore",
    )

    # Server settings
    server_name: str = "mcp-streaming-chat-server"
    server_version: str = "1.0.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # HTTP settings
    host: str = "127.0.0.1"
    port: int = 3000
    endpoint_path: str = "/mcp"
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3001"])

    # Streaming settings
    chunk_delay: float = Field(default=DEFAULT_CHUNK_DELAY, ge=0)
    """Seconds between two chunks of a streamed reply."""

    sentence_terminals: str = Field(default=DEFAULT_SENTENCE_TERMINALS, min_length=1)
    """Characters that end a chunk of a streamed reply."""

    event_retention: int | None = Field(default=None, ge=1)
    """Maximum number of events kept per session for replay; unbounded when unset."""

import logging

import click

from streamchat.app import create_app
from streamchat.server.settings import Settings
from streamchat.utilities.logging import configure_logging

logger = logging.getLogger(__name__)


@click.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to listen on for HTTP")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
@click.option("--chunk-delay", default=None, type=float, help="Seconds between streamed chunks")
def main(host: str | None, port: int | None, log_level: str | None, chunk_delay: float | None) -> int:
    """Run the streaming chat server."""
    overrides = {
        "host": host,
        "port": port,
        "log_level": log_level.upper() if log_level else None,
        "chunk_delay": chunk_delay,
    }
    settings = Settings(**{key: value for key, value in overrides.items() if value is not None})
    configure_logging(settings.log_level)

    import uvicorn

    app = create_app(settings)
    logger.info(f"Listening on http://{settings.host}:{settings.port}{settings.endpoint_path}")
    # uvicorn turns SIGINT/SIGTERM into a lifespan shutdown, which closes every session.
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0

"""
Chunked delivery of a generated reply.

``StreamingDispatcher`` splits one payload into sentences and emits each as a
``notifications/message`` carrying its position and progress, pausing between
sentences to pace the delivery like incremental generation would.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from typing import Any, Final

import anyio

from streamchat.types.notifications import LoggingLevel, LoggingMessageNotification

logger = logging.getLogger(__name__)

DEFAULT_SENTENCE_TERMINALS: Final[str] = ".!?。！？"
DEFAULT_CHUNK_DELAY: Final[float] = 0.3

EmitFn = Callable[[LoggingMessageNotification], Awaitable[Any]]

_LINE_BREAKS = re.compile(r"[\r\n]+")


class SentenceSegmenter:
    """Splits text after runs of sentence-terminal marks.

    Each segment keeps its terminal marks (``"Wait..."`` stays one segment) and
    any whitespace that follows the previous segment. Text after the last mark
    becomes a final segment. Whitespace-only segments are dropped.

    Args:
        terminals: The characters that end a sentence
    """

    def __init__(self, terminals: str = DEFAULT_SENTENCE_TERMINALS):
        if not terminals:
            raise ValueError("At least one sentence terminal is required")
        self.terminals = terminals
        marks = re.escape(terminals)
        self._pattern = re.compile(rf"[^{marks}]*[{marks}]+|[^{marks}]+$")

    def split(self, text: str) -> list[str]:
        text = _LINE_BREAKS.sub(" ", text)
        return [segment for segment in self._pattern.findall(text) if segment.strip()]


class StreamingDispatcher:
    """Delivers a payload as an ordered, paced sequence of chunk notifications.

    Delivery is best-effort per chunk: a failed ``emit`` is logged and the
    remaining chunks are still emitted.

    Args:
        delay: Seconds to wait before every chunk after the first
        segmenter: Splits the payload into chunks
    """

    def __init__(self, delay: float = DEFAULT_CHUNK_DELAY, segmenter: SentenceSegmenter | None = None):
        if delay < 0:
            raise ValueError("delay must not be negative")
        self.delay = delay
        self.segmenter = segmenter or SentenceSegmenter()

    async def dispatch(self, payload: str, emit: EmitFn, *, level: LoggingLevel = "info") -> int:
        """Emit ``payload`` chunk by chunk.

        Returns:
            The number of chunks, 0 for an empty or whitespace-only payload.
        """
        chunks = self.segmenter.split(payload)
        total = len(chunks)
        if total == 0:
            logger.debug("Nothing to stream, payload is empty")
            return 0

        for index, chunk in enumerate(chunks, start=1):
            if index > 1:
                await anyio.sleep(self.delay)

            notification = LoggingMessageNotification.chunk(chunk, index, total, level=level)
            try:
                await emit(notification)
            except Exception as e:
                logger.error(f"Failed to send chunk {index}/{total}: {e}")
                continue
            logger.debug(f"Sent chunk {index}/{total} ({notification.params.metadata.progress}%)")

        return total

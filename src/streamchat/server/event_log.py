"""
Per-session, append-only event log for stream resumability.

Every notification a session emits is appended here with a monotonically
increasing sequence number (starting at 1). A client that reconnects with the
sequence number of the last event it saw gets exactly the events after it.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from streamchat.types.notifications import LoggingMessageNotification

logger = logging.getLogger(__name__)

EventSequence = int


@dataclass(frozen=True)
class Event:
    """A notification together with its position in the session's log."""

    sequence: EventSequence
    notification: LoggingMessageNotification
    timestamp: float = field(default_factory=time.time)

    @property
    def event_id(self) -> str:
        """The SSE ``id:`` field for this event."""
        return str(self.sequence)


class EventLog:
    """
    Ordered in-memory buffer of one session's notifications.

    The log grows for the whole lifetime of the session. ``retention`` is the
    extension point for an eviction policy: when set, only the newest
    ``retention`` events are kept and a replay from an evicted cursor starts at
    the oldest retained event. Sequence numbers are never reused either way.
    """

    def __init__(self, retention: int | None = None):
        if retention is not None and retention < 1:
            raise ValueError("retention must be a positive number of events")
        self.retention = retention
        self._events: list[Event] = []
        self._last_sequence: EventSequence = 0

    def __len__(self) -> int:
        return len(self._events)

    @property
    def last_sequence(self) -> EventSequence:
        """Sequence number of the newest event, 0 when nothing was appended yet."""
        return self._last_sequence

    def append(self, notification: LoggingMessageNotification) -> Event:
        """Store a notification under the next sequence number."""
        self._last_sequence += 1
        event = Event(sequence=self._last_sequence, notification=notification)
        self._events.append(event)
        if self.retention is not None and len(self._events) > self.retention:
            del self._events[: len(self._events) - self.retention]
        return event

    def events_after(self, cursor: EventSequence) -> list[Event]:
        """Return the events with ``sequence > cursor``, in order."""
        if not self._events:
            return []
        first_sequence = self._events[0].sequence
        start = max(cursor + 1 - first_sequence, 0)
        return self._events[start:]

    async def replay_events_after(
        self,
        cursor: EventSequence,
        send_callback: Callable[[Event], Awaitable[None]],
    ) -> int:
        """Replays the events after ``cursor`` through ``send_callback``.

        Returns:
            The number of events replayed.
        """
        events_to_replay = self.events_after(cursor)
        logger.debug(f"Replaying {len(events_to_replay)} events after sequence {cursor}")

        for event in events_to_replay:
            await send_callback(event)

        return len(events_to_replay)

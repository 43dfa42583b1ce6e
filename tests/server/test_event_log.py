import pytest

from streamchat.server.event_log import Event, EventLog
from streamchat.types.notifications import LoggingMessageNotification


def _note(text: str) -> LoggingMessageNotification:
    return LoggingMessageNotification.chunk(text, 1, 1)


def test_sequences_start_at_one_and_increase():
    log = EventLog()
    assert log.last_sequence == 0

    events = [log.append(_note(str(i))) for i in range(3)]

    assert [e.sequence for e in events] == [1, 2, 3]
    assert [e.event_id for e in events] == ["1", "2", "3"]
    assert log.last_sequence == 3
    assert len(log) == 3


@pytest.mark.parametrize("cursor, expected", [(0, [1, 2, 3, 4]), (2, [3, 4]), (4, []), (10, [])])
def test_events_after_cursor(cursor: int, expected: list[int]):
    log = EventLog()
    for i in range(4):
        log.append(_note(str(i)))

    assert [e.sequence for e in log.events_after(cursor)] == expected


def test_events_after_on_empty_log():
    assert EventLog().events_after(0) == []


def test_retention_evicts_oldest_but_keeps_numbering():
    log = EventLog(retention=2)
    for i in range(5):
        log.append(_note(str(i)))

    assert len(log) == 2
    assert log.last_sequence == 5
    # A cursor that points into the evicted range resumes at the oldest retained event.
    assert [e.sequence for e in log.events_after(1)] == [4, 5]
    assert [e.sequence for e in log.events_after(4)] == [5]


def test_retention_must_be_positive():
    with pytest.raises(ValueError):
        EventLog(retention=0)


@pytest.mark.anyio
async def test_replay_events_after():
    log = EventLog()
    for i in range(3):
        log.append(_note(f"message {i}"))
    replayed: list[Event] = []

    async def send(event: Event) -> None:
        replayed.append(event)

    count = await log.replay_events_after(1, send)

    assert count == 2
    assert [e.notification.params.data for e in replayed] == ["message 1", "message 2"]

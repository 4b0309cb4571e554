import pytest
from pydantic import ValidationError

from code_cartographer.progress import CancellationToken, ProgressChannel, ProgressEvent


@pytest.mark.unit
def test_channel_records_and_forwards_events() -> None:
    seen: list[tuple[str, int]] = []
    channel = ProgressChannel(lambda m, p: seen.append((m, p)))
    channel.subscribe(lambda m, p: seen.append((m.upper(), p)))

    channel.publish("Starting", 0)
    channel.publish("Done", 140)

    assert seen == [("Starting", 0), ("STARTING", 0), ("Done", 100), ("DONE", 100)]
    assert [e.percent for e in channel.events] == [0, 100]


@pytest.mark.unit
def test_progress_event_bounds() -> None:
    with pytest.raises(ValidationError):
        ProgressEvent(message="x", percent=101)


@pytest.mark.unit
def test_cancellation_token() -> None:
    token = CancellationToken()
    assert not token.cancelled

    token.cancel()

    assert token.cancelled

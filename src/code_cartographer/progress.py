from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Callable

    ProgressCallback = Callable[[str, int], None]


class ProgressEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    percent: int = Field(..., ge=0, le=100)


class ProgressChannel:
    """Observer list decoupling progress reporting from the assembly loop.

    Subscribers receive ``(message, percent)``; the channel keeps the events
    it published so callers without a subscriber can inspect them later.
    """

    def __init__(self, *subscribers: ProgressCallback) -> None:
        self._subscribers: list[ProgressCallback] = list(subscribers)
        self.events: list[ProgressEvent] = []

    def subscribe(self, callback: ProgressCallback) -> None:
        self._subscribers.append(callback)

    def publish(self, message: str, percent: int) -> None:
        event = ProgressEvent(message=message, percent=max(0, min(100, int(percent))))
        self.events.append(event)
        for callback in self._subscribers:
            callback(event.message, event.percent)


class CancellationToken:
    """Soft cancellation flag checked by a run between batches."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

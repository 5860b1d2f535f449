"""
Load Layer - Downstream NDJSON emission.

Each event becomes one JSON value on its own line. The pipeline writes into an
NDJSONBuffer; the HTTP layer drains it after every upstream chunk, so events
reach the client as soon as the chunk that completed them has been handled.
"""
import json
from collections import deque
from typing import Any, Iterator

from .schema import ACCURACY, ERROR, AccuracyEvent, AccuracyPayload, ErrorEvent


def to_ndjson(event: Any) -> str:
    return json.dumps(event, ensure_ascii=False) + "\n"


def accuracy_event(accuracy: AccuracyPayload) -> AccuracyEvent:
    return {"type": ACCURACY, "accuracy": accuracy}


def error_event(message: str) -> ErrorEvent:
    return {"type": ERROR, "message": message}


class NDJSONBuffer:
    """
    Callable sink for pipeline events.
    Holds encoded lines only until the next drain().
    """

    def __init__(self):
        self._lines = deque()

    def __call__(self, event: Any) -> None:
        self._lines.append(to_ndjson(event))

    def drain(self) -> Iterator[str]:
        while self._lines:
            yield self._lines.popleft()

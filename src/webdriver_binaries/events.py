"""Named event dispatch between the fetcher, the manager and listeners."""
from typing import Any, Callable, Dict, Iterable, List

Listener = Callable[[Dict[str, Any]], None]

PROGRESS = "progress"
REQUEST_START = "request.start"
COMPLETE = "complete"
DOWNLOAD_EVENTS = (PROGRESS, REQUEST_START, COMPLETE)


class EventEmitter:
    """Synchronous event emitter.

    Listeners are called in registration order with a single payload dict.
    A listener that raises aborts the emitting operation.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listeners(self, event: str) -> List[Listener]:
        return list(self._listeners.get(event, []))

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        for listener in self.listeners(event):
            listener(payload)

    def forward(self, source: "EventEmitter", events: Iterable[str]) -> None:
        """Re-emit ``events`` raised on ``source`` to this emitter's listeners."""
        for event in events:
            source.on(event, lambda payload, event=event: self.emit(event, payload))

"""Event Publisher port - progress notifications for a submission."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from ...domain.value_objects.config import ProcessMode


@dataclass(frozen=True, slots=True)
class ProcessingEvent:
    """Progress of one submission through the pipeline.
    
    ``stage`` is ``start``, a pipeline step name, or ``complete``.
    """
    stage: str
    mode: ProcessMode
    message: str
    progress: float | None = None  # 0.0 to 1.0


@runtime_checkable
class EventPublisher(Protocol):
    """Port for publishing processing events."""
    
    def publish(self, event: ProcessingEvent) -> None:
        ...
    
    def subscribe(self, callback: Callable[[ProcessingEvent], None]) -> None:
        ...


class SimpleEventPublisher:
    """Delivers events synchronously, in subscription order."""
    
    def __init__(self):
        self._subscribers: list[Callable[[ProcessingEvent], None]] = []
    
    def publish(self, event: ProcessingEvent) -> None:
        for callback in self._subscribers:
            callback(event)
    
    def subscribe(self, callback: Callable[[ProcessingEvent], None]) -> None:
        self._subscribers.append(callback)

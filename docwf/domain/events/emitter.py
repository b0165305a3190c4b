"""Workflow event emitter for dispatching events to observers."""

import logging
from collections import defaultdict

from docwf.domain.events.event import WorkflowEvent
from docwf.domain.events.event_types import WorkflowEventType
from docwf.domain.events.observer import WorkflowObserver

logger = logging.getLogger(__name__)


class WorkflowEventEmitter:
    """Fans engine events out to subscribed observers."""

    def __init__(self) -> None:
        self._by_type: dict[WorkflowEventType, list[WorkflowObserver]] = defaultdict(list)
        self._catch_all: list[WorkflowObserver] = []

    def subscribe(
        self,
        observer: WorkflowObserver,
        event_types: list[WorkflowEventType] | None = None,
    ) -> None:
        """Subscribe to the given event types, or to every event when None."""
        if event_types is None:
            self._catch_all.append(observer)
            return
        for event_type in event_types:
            self._by_type[event_type].append(observer)

    def unsubscribe(self, observer: WorkflowObserver) -> None:
        if observer in self._catch_all:
            self._catch_all.remove(observer)
        for observers in self._by_type.values():
            if observer in observers:
                observers.remove(observer)

    def emit(self, event: WorkflowEvent) -> None:
        for observer in [*self._catch_all, *self._by_type.get(event.event_type, [])]:
            self._notify(observer, event)

    def _notify(self, observer: WorkflowObserver, event: WorkflowEvent) -> None:
        """An observer failure is logged and never reaches the engine."""
        try:
            observer.on_event(event)
        except Exception as e:
            logger.warning("Observer %r failed on %s: %s", observer, event.event_type.value, e)

"""
Board change notifications.

A BoardEvents instance is created by the application and handed to request
handlers; nothing here is module-global. Subscribers are plain callables
receiving a BoardEvent.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List

from aligned_execution.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BoardEvent:
    name: str  # e.g. "deliverable.recommitted"
    project_id: int
    actor: str
    payload: dict = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=datetime.utcnow)


Subscriber = Callable[[BoardEvent], None]


class BoardEvents:
    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it"""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, name: str, project_id: int, actor: str, /, **payload) -> BoardEvent:
        event = BoardEvent(name=name, project_id=project_id, actor=actor, payload=payload)
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                # One broken subscriber must not fail the request that triggered it
                logger.error(f"Subscriber {callback!r} failed on {name}: {e}")
        return event


def log_event(event: BoardEvent) -> None:
    """Default subscriber - writes every board change to the log"""
    logger.info(
        f"[project {event.project_id}] {event.name} by {event.actor}: {event.payload}"
    )

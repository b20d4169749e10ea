"""Change notifications.

Each event name has its own payload dataclass. Callbacks receive the
payload object:

    def on_set(event: SetEvent) -> None:
        print(event.key, event.value, event.expires_at)

    unsubscribe = db.on("set", on_set)
    ...
    unsubscribe()
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Optional, Union

from .exceptions import InvalidEventError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetEvent:
    """A value was written (set, arithmetic, toggle)."""

    name: ClassVar[str] = "set"
    key: str
    value: Any
    expires_at: Optional[float] = None


@dataclass(frozen=True)
class DeleteEvent:
    """A key or nested path was removed."""

    name: ClassVar[str] = "delete"
    key: str
    old_value: Any = None


@dataclass(frozen=True)
class PushEvent:
    """A value was appended to a list."""

    name: ClassVar[str] = "push"
    key: str
    value: Any


@dataclass(frozen=True)
class PullEvent:
    """Matching values were removed from a list."""

    name: ClassVar[str] = "pull"
    key: str
    value: Any


@dataclass(frozen=True)
class ExpiredEvent:
    """An entry's TTL ran out and it was evicted."""

    name: ClassVar[str] = "expired"
    key: str


@dataclass(frozen=True)
class ClearEvent:
    """The whole store was replaced (clear or restore)."""

    name: ClassVar[str] = "clear"


@dataclass(frozen=True)
class RenameEvent:
    """A root entry moved to a new key."""

    name: ClassVar[str] = "rename"
    old_key: str
    new_key: str


Event = Union[SetEvent, DeleteEvent, PushEvent, PullEvent, ExpiredEvent, ClearEvent, RenameEvent]

EVENT_TYPES: Dict[str, type] = {
    cls.name: cls
    for cls in (SetEvent, DeleteEvent, PushEvent, PullEvent, ExpiredEvent, ClearEvent, RenameEvent)
}

Callback = Callable[[Any], None]


class EventBus:
    """Synchronous, in-process publish/subscribe by event name.

    Registering the same callback twice for one event is a no-op. A callback
    that raises is logged and does not stop the others or reach the code that
    triggered the event. Dispatch order is not guaranteed.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, Dict[Callback, None]] = {name: {} for name in EVENT_TYPES}

    def _handlers(self, event_name: str) -> Dict[Callback, None]:
        handlers = self._subscribers.get(event_name)
        if handlers is None:
            raise InvalidEventError(event_name)
        return handlers

    def subscribe(self, event_name: str, callback: Callback) -> Callable[[], None]:
        """Register callback for event_name.

        Returns:
            A handle that unsubscribes when called; calling it again is a no-op

        Raises:
            InvalidEventError: If event_name is not a known event
        """
        self._handlers(event_name)[callback] = None

        def unsubscribe() -> None:
            self.unsubscribe(event_name, callback)

        return unsubscribe

    def unsubscribe(self, event_name: str, callback: Callback) -> None:
        """Remove callback; does nothing if it is not registered."""
        self._handlers(event_name).pop(callback, None)

    def emit(self, event: Event) -> None:
        for handler in list(self._handlers(event.name)):
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed for %s", event.name)

    def listener_count(self, event_name: str) -> int:
        return len(self._handlers(event_name))

    def clear(self) -> None:
        """Drop every subscription."""
        for handlers in self._subscribers.values():
            handlers.clear()

"""Shared fixtures for dotkv tests."""

from dataclasses import dataclass, field
from typing import Any, List

import pytest

from dotkv import MemoryBackend, Store, StoreConfig


@dataclass
class FakeClock:
    """Manually advanced clock in epoch milliseconds."""

    t: float = 1_700_000_000_000

    def now(self) -> float:
        return self.t

    def advance(self, ms: float) -> None:
        self.t += ms


@dataclass(eq=False)
class EventRecorder:
    """Collects every event a store emits."""

    events: List[Any] = field(default_factory=list)

    def __call__(self, event: Any) -> None:
        self.events.append(event)

    def named(self, name: str) -> List[Any]:
        return [event for event in self.events if event.name == name]


EVENT_NAMES = ("set", "delete", "push", "pull", "expired", "clear", "rename")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def db(backend, clock):
    """Memory-backed store with inline writes and no background sweeper."""
    store = Store(
        backend,
        StoreConfig(auto_clean_interval=0, write_delay=0),
        clock=clock.now,
    )
    yield store
    store.close()


@pytest.fixture
def file_db(tmp_path, clock):
    """JSON-file store in a temporary directory."""
    store = Store(
        config=StoreConfig(
            file_path=str(tmp_path / "data" / "store.json"),
            auto_clean_interval=0,
            write_delay=0,
        ),
        clock=clock.now,
    )
    yield store
    store.close()


@pytest.fixture
def recorder(db):
    """Records every event emitted by the db fixture."""
    rec = EventRecorder()
    for name in EVENT_NAMES:
        db.on(name, rec)
    return rec

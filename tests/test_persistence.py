"""Tests for the persistence pipeline."""

import json
import logging
import threading

import pytest

from dotkv import (
    Entry,
    InvalidNameError,
    MemoryBackend,
    NotFoundError,
    PersistenceError,
    SerializationError,
)
from dotkv.persistence import PersistencePipeline, sanitize_name


class SignallingBackend(MemoryBackend):
    """MemoryBackend that sets an event on every write."""

    def __init__(self, text=None):
        super().__init__(text)
        self.written = threading.Event()

    def write(self, text, keep_recovery=True):
        super().write(text, keep_recovery)
        self.written.set()


class FailingBackend(MemoryBackend):
    """MemoryBackend whose writes always fail."""

    def write(self, text, keep_recovery=True):
        raise OSError("disk full")

    def write_backup(self, name, text):
        raise OSError("disk full")


def make_pipeline(backend, entries=None, **kwargs):
    entries = entries if entries is not None else {"a": Entry(1)}
    return PersistencePipeline(backend, source=lambda: entries, **kwargs)


class TestDebounce:
    """Tests for schedule() and flush()."""

    def test_disabled_never_writes(self):
        backend = MemoryBackend()
        pipeline = make_pipeline(backend, enabled=False, write_delay=0)
        pipeline.schedule()
        assert pipeline.flush() is False
        assert backend.writes == 0

    def test_zero_delay_writes_inline(self):
        backend = MemoryBackend()
        pipeline = make_pipeline(backend, write_delay=0)
        pipeline.schedule()
        assert backend.writes == 1
        assert json.loads(backend.read()) == {"a": {"v": 1, "e": None}}

    def test_requests_coalesce(self):
        """A burst of requests becomes one write."""
        backend = MemoryBackend()
        pipeline = make_pipeline(backend, write_delay=60_000)
        for _ in range(5):
            pipeline.schedule()

        assert backend.writes == 0
        assert pipeline.pending is True

        assert pipeline.flush() is True
        assert backend.writes == 1
        assert pipeline.pending is False

    def test_trailing_write_fires(self):
        backend = SignallingBackend()
        pipeline = make_pipeline(backend, write_delay=10)
        pipeline.schedule()
        pipeline.schedule()

        assert backend.written.wait(timeout=5)
        assert backend.writes == 1
        assert pipeline.pending is False

    def test_write_reflects_latest_state(self):
        backend = MemoryBackend()
        entries = {"a": Entry(1)}
        pipeline = make_pipeline(backend, entries, write_delay=60_000)
        pipeline.schedule()
        entries["a"] = Entry(2)
        pipeline.flush()
        assert json.loads(backend.read())["a"]["v"] == 2

    def test_flush_raises_on_io_error(self):
        pipeline = make_pipeline(FailingBackend(), write_delay=0)
        with pytest.raises(PersistenceError):
            pipeline.flush()

    def test_scheduled_io_error_is_logged(self, caplog):
        pipeline = make_pipeline(FailingBackend(), write_delay=0)
        with caplog.at_level(logging.ERROR, logger="dotkv.persistence"):
            pipeline.schedule()
        assert "Failed to persist store" in caplog.text

    def test_close_writes_pending(self):
        backend = MemoryBackend()
        pipeline = make_pipeline(backend, write_delay=60_000)
        pipeline.schedule()
        pipeline.close()
        assert backend.writes == 1
        assert pipeline.pending is False

    def test_close_without_pending(self):
        backend = MemoryBackend()
        pipeline = make_pipeline(backend, write_delay=60_000)
        pipeline.close()
        assert backend.writes == 0


class TestLoad:
    """Tests for load()."""

    def test_no_data(self):
        assert make_pipeline(MemoryBackend()).load() == {}

    def test_valid_data(self):
        backend = MemoryBackend(json.dumps({"a": {"v": 1, "e": 5}, "b": 2}))
        loaded = make_pipeline(backend).load()
        assert loaded == {"a": Entry(1, 5), "b": Entry(2, None)}

    def test_corrupt_falls_back_to_recovery_copy(self, caplog):
        backend = MemoryBackend()
        backend.write(json.dumps({"a": {"v": "good", "e": None}}))
        backend.write("{corrupt")
        backend.writes = 0

        with caplog.at_level(logging.WARNING, logger="dotkv.persistence"):
            loaded = make_pipeline(backend).load()

        assert loaded == {"a": Entry("good", None)}
        assert "corrupt" in caplog.text
        # live data is repaired from the recovery copy
        assert json.loads(backend.read()) == {"a": {"v": "good", "e": None}}
        assert backend.writes == 1

    def test_recovery_not_written_when_disabled(self):
        backend = MemoryBackend()
        backend.write(json.dumps({"a": 1}))
        backend.write("{corrupt")
        backend.writes = 0

        loaded = make_pipeline(backend, enabled=False).load()
        assert loaded == {"a": Entry(1, None)}
        assert backend.writes == 0
        assert backend.read() == "{corrupt"

    def test_corrupt_everything_starts_empty(self):
        backend = MemoryBackend()
        backend.write("[1, 2]")
        backend.write("{corrupt")
        assert make_pipeline(backend).load() == {}

    def test_corrupt_without_recovery_copy(self):
        assert make_pipeline(MemoryBackend("")).load() == {}


class TestBackups:
    """Tests for backup() and restore()."""

    def test_sanitize_name(self):
        assert sanitize_name("daily-2024_01") == "daily-2024_01"
        assert sanitize_name("my backup!") == "my_backup_"
        assert sanitize_name("../etc/passwd") == "___etc_passwd"

    def test_sanitize_rejects_empty(self):
        for name in ("", None, 5):
            with pytest.raises(InvalidNameError):
                sanitize_name(name)

    def test_backup_and_restore(self):
        backend = MemoryBackend()
        entries = {"a": Entry(1, 99)}
        pipeline = make_pipeline(backend, entries)

        location = pipeline.backup("snap 1")
        assert location == "memory://backups/snap_1"
        assert pipeline.list_backups() == ["snap_1"]
        assert pipeline.restore("snap 1") == {"a": Entry(1, 99)}

    def test_backup_refused_when_disabled(self):
        """With saving off nothing is written, backups included."""
        backend = MemoryBackend()
        pipeline = make_pipeline(backend, enabled=False)
        with pytest.raises(PersistenceError):
            pipeline.backup("snap")
        assert backend.read_backup("snap") is None
        assert pipeline.list_backups() == []

    def test_backup_io_error(self):
        with pytest.raises(PersistenceError):
            make_pipeline(FailingBackend()).backup("snap")

    def test_restore_missing(self):
        with pytest.raises(NotFoundError):
            make_pipeline(MemoryBackend()).restore("nope")

    def test_restore_corrupt(self):
        backend = MemoryBackend()
        backend.write_backup("bad", "{nope")
        with pytest.raises(SerializationError):
            make_pipeline(backend).restore("bad")

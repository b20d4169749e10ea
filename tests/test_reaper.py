"""Tests for expired entry eviction."""

import logging
import threading

from dotkv import MemoryBackend, Store, StoreConfig
from dotkv.reaper import Reaper


class TestReaper:
    """Tests for the Reaper thread."""

    def test_disabled_interval(self):
        reaper = Reaper(lambda: None, interval=0)
        reaper.start()
        assert reaper.running is False

    def test_ticks_until_stopped(self):
        ticked = threading.Event()
        reaper = Reaper(ticked.set, interval=5)
        reaper.start()
        try:
            assert reaper.running is True
            assert ticked.wait(timeout=5)
        finally:
            reaper.stop()
        assert reaper.running is False

    def test_thread_is_daemon(self):
        reaper = Reaper(lambda: None, interval=60_000)
        reaper.start()
        try:
            assert reaper._thread.daemon is True
        finally:
            reaper.stop()

    def test_failing_sweep_keeps_running(self, caplog):
        calls = []
        second_call = threading.Event()

        def sweep():
            calls.append(1)
            if len(calls) >= 2:
                second_call.set()
            raise RuntimeError("boom")

        reaper = Reaper(sweep, interval=5)
        with caplog.at_level(logging.ERROR, logger="dotkv.reaper"):
            reaper.start()
            try:
                assert second_call.wait(timeout=5)
            finally:
                reaper.stop()
        assert "Expired entry sweep failed" in caplog.text

    def test_stop_is_idempotent(self):
        reaper = Reaper(lambda: None, interval=60_000)
        reaper.start()
        reaper.stop()
        reaper.stop()
        assert reaper.running is False


class TestCleanExpired:
    """Tests for Store.clean_expired()."""

    def test_evicts_and_notifies(self, db, clock, recorder, backend):
        db.set("a", 1, ttl=10)
        db.set("b", 2, ttl=10)
        db.set("c", 3)
        writes = backend.writes
        clock.advance(10)

        assert sorted(db.clean_expired()) == ["a", "b"]
        assert sorted(event.key for event in recorder.named("expired")) == ["a", "b"]
        assert backend.writes == writes + 1
        assert db.keys() == ["c"]

    def test_nothing_expired(self, db, recorder, backend):
        db.set("a", 1)
        writes = backend.writes

        assert db.clean_expired() == []
        assert recorder.named("expired") == []
        assert backend.writes == writes

    def test_background_sweep(self, clock):
        """The store's reaper evicts without any read."""
        expired = threading.Event()
        store = Store(
            MemoryBackend(),
            StoreConfig(auto_clean_interval=5, write_delay=0),
            clock=clock.now,
        )
        try:
            store.on("expired", lambda event: expired.set())
            store.set("k", "v", ttl=100)
            clock.advance(100)

            assert expired.wait(timeout=5)
            assert store.stats().total_keys == 0
        finally:
            store.close()

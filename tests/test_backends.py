"""Tests for storage backends."""

from dotkv import JsonFileBackend, MemoryBackend


class TestMemoryBackend:
    """Tests for MemoryBackend."""

    def test_write_and_read(self):
        backend = MemoryBackend()
        backend.connect()

        assert backend.read() is None
        backend.write("one")
        assert backend.read() == "one"
        assert backend.size() == 3
        assert backend.writes == 1

    def test_recovery_copy(self):
        """Each write keeps the previous snapshot as the recovery copy."""
        backend = MemoryBackend()
        backend.write("one")
        assert backend.read_recovery() is None
        backend.write("two")
        assert backend.read_recovery() == "one"

        backend.write("three", keep_recovery=False)
        assert backend.read_recovery() == "one"

    def test_backups(self):
        backend = MemoryBackend()
        assert backend.write_backup("b1", "data") == "memory://backups/b1"
        backend.write_backup("a0", "other")
        assert backend.read_backup("b1") == "data"
        assert backend.read_backup("missing") is None
        assert list(backend.list_backups()) == ["a0", "b1"]

    def test_close_drops_data(self):
        backend = MemoryBackend("text")
        backend.close()
        assert backend.read() is None


class TestJsonFileBackend:
    """Tests for JsonFileBackend."""

    def test_missing_file(self, tmp_path):
        backend = JsonFileBackend(tmp_path / "store.json")
        assert backend.read() is None
        assert backend.read_recovery() is None
        assert backend.size() == 0

    def test_write_creates_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "store.json"
        backend = JsonFileBackend(path)
        backend.write("{}")

        assert path.read_text(encoding="utf-8") == "{}"
        assert backend.read() == "{}"
        assert backend.size() == 2
        assert backend.location == str(path)

    def test_recovery_copy(self, tmp_path):
        path = tmp_path / "store.json"
        backend = JsonFileBackend(path)
        backend.write('{"a": 1}')
        backend.write('{"a": 2}')

        assert (tmp_path / "store.json.bak").read_text(encoding="utf-8") == '{"a": 1}'
        assert backend.read_recovery() == '{"a": 1}'

    def test_no_temp_files_left(self, tmp_path):
        backend = JsonFileBackend(tmp_path / "store.json")
        backend.write("{}")
        backend.write("{}")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["store.json", "store.json.bak"]

    def test_default_backup_dir(self, tmp_path):
        backend = JsonFileBackend(tmp_path / "store.json")
        assert backend.backup_dir == tmp_path / "backups"

    def test_backups(self, tmp_path):
        backend = JsonFileBackend(tmp_path / "store.json", backup_dir=tmp_path / "snaps")

        location = backend.write_backup("daily", "{}")
        assert location == str(tmp_path / "snaps" / "daily.json")
        backend.write_backup("daily", '{"x": 1}')
        backend.write_backup("weekly", "{}")

        assert backend.read_backup("daily") == '{"x": 1}'
        assert backend.read_backup("missing") is None
        assert list(backend.list_backups()) == ["daily", "weekly"]

    def test_list_backups_without_directory(self, tmp_path):
        backend = JsonFileBackend(tmp_path / "store.json")
        assert list(backend.list_backups()) == []

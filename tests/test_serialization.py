"""Tests for store serialization."""

import json

import pytest

from dotkv import Entry, SerializationError, Serializer


class TestSerializer:
    """Tests for Serializer."""

    def test_encode_shape(self):
        """Each entry becomes a {"v", "e"} record."""
        serializer = Serializer()
        data = serializer.encode({"a": Entry(1), "b": Entry({"x": 2}, expires_at=1234)})
        assert data == {"a": {"v": 1, "e": None}, "b": {"v": {"x": 2}, "e": 1234}}

    def test_dumps_is_json(self):
        serializer = Serializer()
        text = serializer.dumps({"name": Entry("Åsa")})
        assert json.loads(text) == {"name": {"v": "Åsa", "e": None}}

    def test_loads_roundtrip(self):
        serializer = Serializer()
        entries = {"a": Entry([1, 2]), "b": Entry(None, expires_at=99)}
        loaded = serializer.loads(serializer.dumps(entries))
        assert loaded == entries

    def test_legacy_values_are_wrapped(self):
        """Bare values from older files load with no expiry."""
        serializer = Serializer()
        loaded = serializer.loads(json.dumps({"count": 3, "user": {"name": "Ada"}}))
        assert loaded == {
            "count": Entry(3, None),
            "user": Entry({"name": "Ada"}, None),
        }

    def test_partial_record_is_legacy(self):
        """A dict with only one of the two fields is a plain value."""
        serializer = Serializer()
        loaded = serializer.loads(json.dumps({"a": {"v": 1}}))
        assert loaded["a"] == Entry({"v": 1}, None)

    def test_bad_expiry_is_dropped(self):
        serializer = Serializer()
        loaded = serializer.loads(json.dumps({"a": {"v": 1, "e": "soon"}}))
        assert loaded["a"] == Entry(1, None)

    def test_invalid_json(self):
        with pytest.raises(SerializationError):
            Serializer().loads("{not json")

    def test_non_object_top_level(self):
        with pytest.raises(SerializationError):
            Serializer().loads("[1, 2, 3]")

    def test_unserializable_value(self):
        with pytest.raises(SerializationError):
            Serializer().dumps({"a": Entry(object())})

    def test_size(self):
        serializer = Serializer()
        entries = {"a": Entry(1)}
        expected = len(json.dumps({"a": {"v": 1, "e": None}}).encode("utf-8"))
        assert serializer.size(entries) == expected

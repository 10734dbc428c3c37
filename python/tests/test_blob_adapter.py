"""Tests for the named blob store adapter."""

from chatsync.schemas.blobs import BlobValue


class TestBlobStore:
    def test_get_missing_returns_none(self, blob_adapter):
        assert blob_adapter.get("app-ui") is None

    def test_put_then_get(self, blob_adapter):
        blob_adapter.put("app-ui", {"state": {"centerMode": "wide"}, "version": 3}, version=3)

        assert blob_adapter.get("app-ui") == BlobValue(
            value={"state": {"centerMode": "wide"}, "version": 3}, version=3
        )

    def test_put_replaces_value_and_version(self, blob_adapter):
        """A second put overwrites the whole value; nothing is merged."""
        blob_adapter.put("app-ui", {"a": 1, "b": 2}, version=1)
        blob_adapter.put("app-ui", {"c": 3}, version=2)

        stored = blob_adapter.get("app-ui")
        assert stored.value == {"c": 3}
        assert stored.version == 2

    def test_scalar_and_list_values(self, blob_adapter):
        blob_adapter.put("flag", True)
        blob_adapter.put("list", [1, "two", None])

        assert blob_adapter.get("flag").value is True
        assert blob_adapter.get("list").value == [1, "two", None]

    def test_delete(self, blob_adapter):
        blob_adapter.put("app-ui", {"a": 1})

        assert blob_adapter.delete("app-ui") is True
        assert blob_adapter.delete("app-ui") is False
        assert blob_adapter.get("app-ui") is None

    def test_list_all(self, blob_adapter):
        blob_adapter.put("first", {"n": 1})
        blob_adapter.put("second", {"n": 2}, version=4)

        entries = blob_adapter.list_all()

        assert [e.name for e in entries] == ["second", "first"]
        assert entries[0].version == 4
        assert entries[1].data == {"n": 1}

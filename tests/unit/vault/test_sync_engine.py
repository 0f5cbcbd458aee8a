"""Unit tests for vault.sync_engine module."""

from unittest.mock import Mock, patch

import pytest

from src.vault.catalog_store import MemoryCatalogStore
from src.vault.errors import AccessError, FilesystemError
from src.vault.filesystem import LocalDirectoryHandle
from src.vault.models import NoteRecord, RecordKind, ResourceRecord
from src.vault.sync_engine import SyncEngine
from tests.fixtures.vault_fixtures import make_note, memory_tree, write_layout


class TestSyncEngineInit:
    """Test cases for SyncEngine construction."""

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError, match="on_read_error"):
            SyncEngine(MemoryCatalogStore(), on_read_error="retry")

    def test_defaults(self):
        engine = SyncEngine(MemoryCatalogStore())

        assert engine.on_read_error == "abort"
        assert engine.walker is not None
        assert engine.classifier is not None


class TestFullSync:
    """Test cases for SyncEngine.full_sync()."""

    def test_sync_sample_layout(self, sample_root):
        store = MemoryCatalogStore()

        report = SyncEngine(store).full_sync(sample_root)

        assert report.note_count == 4
        assert report.resource_count == 2
        assert report.folder_paths == ["daily", "projects", "projects/assets"]
        assert report.skipped == []

        notes = store.get_all(RecordKind.NOTE)
        assert [note.path for note in notes] == [
            "daily/2024-01-15.md",
            "daily/2024-01-16.md",
            "index.md",
            "projects/plan.md",
        ]
        assert store.get("index.md").content == "# Index\n"
        assert store.get("index.md").title == "index"
        assert isinstance(store.get("logo.png"), ResourceRecord)
        assert store.get("logo.png").size == 8
        assert store.get_folders() == ["daily", "projects", "projects/assets"]

    def test_sync_is_idempotent(self, sample_root):
        store = MemoryCatalogStore()
        engine = SyncEngine(store)

        engine.full_sync(sample_root)
        first = (store.get_all(RecordKind.NOTE), store.get_all(RecordKind.RESOURCE))
        engine.full_sync(sample_root)
        second = (store.get_all(RecordKind.NOTE), store.get_all(RecordKind.RESOURCE))

        assert first == second

    def test_stale_records_are_removed(self, tmp_path):
        write_layout(tmp_path, {"a.md": "a"})
        store = MemoryCatalogStore()
        store.put(make_note("deleted.md"))

        SyncEngine(store).full_sync(LocalDirectoryHandle.open(tmp_path))

        assert store.get("deleted.md") is None
        assert store.get("a.md") is not None

    def test_markdown_with_control_bytes_is_still_note(self):
        root = memory_tree({"weird.md": b"\x00\x01"})
        store = MemoryCatalogStore()

        SyncEngine(store).full_sync(root)

        assert isinstance(store.get("weird.md"), NoteRecord)

    def test_missing_root_raises_access_error(self):
        with pytest.raises(AccessError):
            SyncEngine(MemoryCatalogStore()).full_sync(None)

    def test_works_with_memory_adapter(self):
        root = memory_tree({"a.md": "# A", "img/b.png": b"123"})
        store = MemoryCatalogStore()

        report = SyncEngine(store).full_sync(root)

        assert report.note_count == 1
        assert report.resource_count == 1
        assert report.folder_paths == ["img"]


class TestReadErrors:
    """Read failure policies."""

    def _root_with_unreadable_note(self):
        root = memory_tree({"good.md": "ok", "bad.md": "x", "c.png": b"1"})
        root.children["bad.md"].read_text = Mock(
            side_effect=FilesystemError("bad.md", "read", "I/O error")
        )
        return root

    def test_abort_policy_fails_and_keeps_previous_catalog(self):
        store = MemoryCatalogStore()
        store.put(make_note("previous.md"))

        with pytest.raises(FilesystemError):
            SyncEngine(store).full_sync(self._root_with_unreadable_note())

        assert store.get("previous.md") is not None
        assert store.get("good.md") is None

    def test_skip_policy_reports_and_continues(self):
        store = MemoryCatalogStore()

        report = SyncEngine(store, on_read_error="skip").full_sync(
            self._root_with_unreadable_note()
        )

        assert report.note_count == 1
        assert report.resource_count == 1
        assert [path for path, _ in report.skipped] == ["bad.md"]
        assert "I/O error" in report.skipped[0][1]
        assert store.get("bad.md") is None
        assert store.get("good.md") is not None

    def test_walk_failure_leaves_catalog_untouched(self):
        store = MemoryCatalogStore()
        store.put(make_note("previous.md"))
        walker = Mock()
        walker.walk.side_effect = AccessError("", "enumerate", "revoked")

        with pytest.raises(AccessError):
            SyncEngine(store, walker=walker).full_sync(memory_tree({}))

        assert store.get("previous.md") is not None

    def test_store_mutations_run_inside_transaction(self):
        store = MemoryCatalogStore()
        calls = []
        original_transaction = store.transaction

        def tracking_transaction():
            calls.append("transaction")
            return original_transaction()

        with patch.object(store, 'transaction', side_effect=tracking_transaction):
            SyncEngine(store).full_sync(memory_tree({"a.md": "a"}))

        assert calls == ["transaction"]

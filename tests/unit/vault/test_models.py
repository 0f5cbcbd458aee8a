"""Unit tests for vault.models module."""

from src.vault.models import (
    Entry,
    EntryKind,
    FolderNode,
    LeafNode,
    RecordKind,
    SyncReport,
    VaultConfig,
)
from tests.fixtures.vault_fixtures import make_note, make_resource


class TestEntry:
    """Test cases for Entry."""

    def test_name_is_last_segment(self):
        assert Entry(path="a/b/c.md", kind=EntryKind.FILE).name == "c.md"
        assert Entry(path="top", kind=EntryKind.DIRECTORY).name == "top"


class TestRecords:
    """Test cases for NoteRecord and ResourceRecord."""

    def test_kinds(self):
        assert make_note("a.md").kind == RecordKind.NOTE
        assert make_resource("a.png").kind == RecordKind.RESOURCE

    def test_kind_is_not_a_field(self):
        assert make_note("a.md") == make_note("a.md")
        assert "kind" not in make_note("a.md").__dataclass_fields__


class TestTreeNodes:
    """Test cases for FolderNode and LeafNode."""

    def test_folder_defaults(self):
        folder = FolderNode(id="a/b", name="b")

        assert folder.is_folder is True
        assert folder.children == []

    def test_leaf(self):
        note = make_note("a.md")
        leaf = LeafNode(id="a.md", name="a", kind=RecordKind.NOTE, record=note)

        assert leaf.is_folder is False


class TestDefaults:
    """Default values of SyncReport and VaultConfig."""

    def test_sync_report_defaults(self):
        report = SyncReport()

        assert report.note_count == 0
        assert report.folder_paths == []
        assert report.skipped == []

    def test_sync_report_lists_are_independent(self):
        first, second = SyncReport(), SyncReport()
        first.folder_paths.append("x")

        assert second.folder_paths == []

    def test_vault_config_defaults(self):
        config = VaultConfig()

        assert config.catalog_path == ".notevault/catalog.yaml"
        assert "node_modules" in config.ignored_names
        assert config.on_read_error == "abort"
        assert config.atomic_move is True
        assert config.write_access == "prompt"
        assert config.lock_timeout == 30.0

"""Data models for the vault catalog.

This module defines all data models used by the vault library.
All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Tuple, Union


class EntryKind(str, Enum):
    """Kind of a filesystem entry produced by the tree walker."""
    FILE = "file"
    DIRECTORY = "directory"


class RecordKind(str, Enum):
    """Kind of a catalog record (also the kind of a tree leaf)."""
    NOTE = "note"
    RESOURCE = "resource"


class PermissionMode(str, Enum):
    """Access mode checked by the permission gate."""
    READ = "read"
    READWRITE = "readwrite"


class PermissionState(str, Enum):
    """Result of a permission query or request.

    PROMPT means the capability is not granted yet but may be requested.
    """
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"


@dataclass
class Entry:
    """A single entry discovered while walking the root directory.

    Entries are transient: they are produced by the TreeWalker and consumed
    by the SyncEngine, never persisted.

    Attributes:
        path: '/'-separated path relative to the root (unique key)
        kind: File or directory
        handle: Leaf handle used to read the file or enumerate the directory
    """
    path: str
    kind: EntryKind
    handle: Any = None

    @property
    def name(self) -> str:
        return self.path.rsplit('/', 1)[-1]


@dataclass
class FileMeta:
    """Metadata read from a file handle."""
    size: int
    last_modified: datetime


@dataclass
class NoteRecord:
    """Catalog record for a Markdown file.

    Attributes:
        path: Primary key, '/'-separated path relative to the root
        content: Full text content of the file
        title: Display title (file name without the .md suffix by default)
        last_modified: Modification time of the file
    """
    path: str
    content: str
    title: str
    last_modified: datetime

    kind = RecordKind.NOTE


@dataclass
class ResourceRecord:
    """Catalog record for any non-Markdown file.

    Attributes:
        path: Primary key, '/'-separated path relative to the root
        name: File name including extension
        extension: Lowercased extension without the dot ('' when none)
        size: File size in bytes
        last_modified: Modification time of the file
    """
    path: str
    name: str
    extension: str
    size: int
    last_modified: datetime

    kind = RecordKind.RESOURCE


CatalogRecord = Union[NoteRecord, ResourceRecord]


@dataclass
class FolderNode:
    """Folder in the presentation tree.

    Attributes:
        id: Full folder path
        name: Last path segment
        children: Sorted child nodes
    """
    id: str
    name: str
    children: List['TreeNode'] = field(default_factory=list)

    is_folder = True


@dataclass
class LeafNode:
    """Note or resource in the presentation tree.

    Attributes:
        id: Full file path
        name: Display name (note title or resource file name)
        kind: RecordKind.NOTE or RecordKind.RESOURCE
        record: The catalog record backing this leaf
    """
    id: str
    name: str
    kind: RecordKind
    record: CatalogRecord

    is_folder = False


TreeNode = Union[FolderNode, LeafNode]


@dataclass
class SyncReport:
    """Result of a full sync pass.

    Attributes:
        note_count: Number of notes written to the catalog
        resource_count: Number of resources written to the catalog
        folder_paths: Every directory path enumerated during the walk
        skipped: (path, reason) pairs for files skipped under the skip policy
    """
    note_count: int = 0
    resource_count: int = 0
    folder_paths: List[str] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class VaultConfig:
    """Workspace configuration loaded from .notevault/config.yaml.

    Attributes:
        catalog_path: Location of the YAML catalog file
        ignored_names: Directory and file names skipped by the walker
        on_read_error: 'abort' to fail the whole sync, 'skip' to skip the file
        atomic_move: Whether the local filesystem adapter declares atomic move
        write_access: 'prompt', 'always' or 'never'
        lock_timeout: Seconds to wait for the catalog lock
    """
    catalog_path: str = ".notevault/catalog.yaml"
    ignored_names: List[str] = field(default_factory=lambda: [
        "node_modules",
        "__pycache__",
        "venv",
        "site-packages",
    ])
    on_read_error: str = "abort"
    atomic_move: bool = True
    write_access: str = "prompt"
    lock_timeout: float = 30.0

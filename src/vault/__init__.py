"""Vault library: index a local directory into a catalog of notes and resources.

This package walks a user-chosen root directory, classifies Markdown files
as notes and everything else as resources, keeps the catalog in a keyed
store, rebuilds it with full rescans, and performs permission-gated
create/rename/delete operations on the directory.
"""

from .catalog_store import CatalogStore, MemoryCatalogStore, YamlCatalogStore
from .classifier import Classifier, file_extension, is_note_path
from .config_loader import ConfigLoader
from .errors import (
    VaultError,
    AccessError,
    NotFoundError,
    ConflictError,
    PartialFailureError,
    FilesystemError,
    ConfigError,
    CatalogError,
    CatalogLockError,
)
from .filesystem import (
    DirectoryHandle,
    FileHandle,
    LocalDirectoryHandle,
    LocalFileHandle,
    LocalPermissions,
)
from .models import (
    Entry,
    EntryKind,
    FolderNode,
    LeafNode,
    NoteRecord,
    RecordKind,
    ResourceRecord,
    SyncReport,
    VaultConfig,
)
from .mutation_service import MutationService
from .permission_gate import PermissionGate
from .sync_engine import SyncEngine
from .tree_builder import TreeBuilder, build_tree
from .tree_walker import TreeWalker
from .workspace import Workspace

__all__ = [
    'CatalogStore',
    'MemoryCatalogStore',
    'YamlCatalogStore',
    'Classifier',
    'file_extension',
    'is_note_path',
    'ConfigLoader',
    'VaultError',
    'AccessError',
    'NotFoundError',
    'ConflictError',
    'PartialFailureError',
    'FilesystemError',
    'ConfigError',
    'CatalogError',
    'CatalogLockError',
    'DirectoryHandle',
    'FileHandle',
    'LocalDirectoryHandle',
    'LocalFileHandle',
    'LocalPermissions',
    'Entry',
    'EntryKind',
    'FolderNode',
    'LeafNode',
    'NoteRecord',
    'RecordKind',
    'ResourceRecord',
    'SyncReport',
    'VaultConfig',
    'MutationService',
    'PermissionGate',
    'SyncEngine',
    'TreeBuilder',
    'build_tree',
    'TreeWalker',
    'Workspace',
]

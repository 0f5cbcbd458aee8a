"""Caller-facing session object tying the vault components together.

A Workspace holds everything one opened root needs: the root handle, the
catalog store, the permission gate, the sync engine and the mutation
service. It replaces process-wide "current directory" state, so several
workspaces can live side by side (one per test, for instance).

Mutations are followed by a fresh full sync; the catalog is never patched
incrementally, except for note content writes, which re-put the single
NoteRecord they changed.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from .catalog_store import CatalogStore, MemoryCatalogStore, YamlCatalogStore
from .classifier import is_note_path, note_title
from .errors import AccessError, ConflictError, NotFoundError, PartialFailureError
from .filesystem import DirectoryHandle, LocalDirectoryHandle, LocalPermissions, PromptCallback
from .models import (
    NoteRecord,
    PermissionMode,
    RecordKind,
    SyncReport,
    TreeNode,
    VaultConfig,
)
from .mutation_service import MutationService
from .permission_gate import PermissionGate
from .sync_engine import SyncEngine
from .tree_builder import TreeBuilder
from .tree_walker import TreeWalker

logger = logging.getLogger(__name__)


def build_permissions(config: VaultConfig, prompt: Optional[PromptCallback] = None) -> LocalPermissions:
    """Create the permission broker matching config.write_access.

    - 'always': read-write granted up front
    - 'never': read only, write requests are denied without prompting
    - 'prompt': read granted, write asked through the prompt callback
    """
    if config.write_access == 'always':
        return LocalPermissions(granted=(PermissionMode.READWRITE,))
    if config.write_access == 'never':
        return LocalPermissions(prompt=None)
    return LocalPermissions(prompt=prompt)


class Workspace:
    """One opened root directory and its catalog.

    Example:
        >>> workspace = Workspace(config=VaultConfig(write_access="always"))
        >>> workspace.open_root("./notes")
        >>> workspace.create_note("daily/today")
        'daily/today.md'
        >>> [node.name for node in workspace.list_tree()]
        ['daily']
    """

    def __init__(
        self,
        store: Optional[CatalogStore] = None,
        config: Optional[VaultConfig] = None,
        prompt: Optional[PromptCallback] = None,
        gate: Optional[PermissionGate] = None,
        permissions: Optional[LocalPermissions] = None
    ):
        """Initialize a workspace with no root attached yet.

        Args:
            store: Catalog store (defaults to an in-memory store)
            config: Workspace configuration (defaults to VaultConfig())
            prompt: Callback asked before write access is granted
            gate: Permission gate (defaults to PermissionGate())
            permissions: Permission broker for local handles (defaults to
                         one built from config.write_access and prompt)
        """
        self.config = config or VaultConfig()
        self.store = store if store is not None else MemoryCatalogStore()
        self.prompt = prompt
        self.gate = gate or PermissionGate()
        self.walker = TreeWalker(self.config.ignored_names)
        self.sync_engine = SyncEngine(
            self.store,
            walker=self.walker,
            on_read_error=self.config.on_read_error,
        )
        self.tree_builder = TreeBuilder()
        self._permissions = permissions or build_permissions(self.config, prompt)
        self._root: Optional[DirectoryHandle] = None
        self._mutations: Optional[MutationService] = None
        self.last_report: Optional[SyncReport] = None

    @classmethod
    def from_config(
        cls,
        config: VaultConfig,
        prompt: Optional[PromptCallback] = None
    ) -> 'Workspace':
        """Create a workspace persisting its catalog in config.catalog_path."""
        permissions = build_permissions(config, prompt)

        def open_stored_root(path: str) -> LocalDirectoryHandle:
            return LocalDirectoryHandle.open(
                path,
                permissions=permissions,
                supports_move=config.atomic_move,
            )

        store = YamlCatalogStore(
            config.catalog_path,
            handle_factory=open_stored_root,
            lock_timeout=config.lock_timeout,
        )
        return cls(store=store, config=config, prompt=prompt, permissions=permissions)

    # ------------------------------------------------------------------
    # Root management
    # ------------------------------------------------------------------

    @property
    def root(self) -> Optional[DirectoryHandle]:
        return self._root

    def open_handle(self, path: Union[str, Path]) -> LocalDirectoryHandle:
        """Open a local directory handle with this workspace's permissions."""
        return LocalDirectoryHandle.open(
            path,
            permissions=self._permissions,
            supports_move=self.config.atomic_move,
        )

    def attach(self, root: DirectoryHandle) -> None:
        """Use root for all later operations (any adapter)."""
        self._root = root
        self._mutations = MutationService(root, self.gate)
        logger.debug(f"Attached root {root.name}")

    def open_root(self, path: Union[str, Path]) -> DirectoryHandle:
        """Open a directory as the root, persist it, and run a full sync.

        Raises:
            NotFoundError: If the directory does not exist
            AccessError: If read access is denied
        """
        handle = self.open_handle(path)
        self.gate.require(handle, write_needed=False, path=str(path))
        self.attach(handle)
        self.store.put_root_handle(handle)
        logger.info(f"Opened root {handle.path}")
        self.full_sync()
        return handle

    def reopen(self) -> bool:
        """Re-attach the root persisted in the catalog store.

        Returns:
            True if a root was restored, False if none was stored

        Raises:
            NotFoundError: If the stored root directory no longer exists
        """
        handle = self.store.get_root_handle()
        if handle is None:
            return False
        self.attach(handle)
        logger.info(f"Re-attached root {handle.name}")
        return True

    def _require_root(self) -> DirectoryHandle:
        if self._root is None:
            raise AccessError("", 'open', 'No root directory is open')
        return self._root

    @property
    def mutations(self) -> MutationService:
        self._require_root()
        return self._mutations

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def full_sync(self) -> SyncReport:
        """Rebuild the catalog from the root directory."""
        self.last_report = self.sync_engine.full_sync(self._require_root())
        return self.last_report

    def list_tree(self) -> List[TreeNode]:
        """Build the presentation tree from the current catalog."""
        return self.tree_builder.build(
            self.store.get_all(RecordKind.NOTE),
            self.store.get_all(RecordKind.RESOURCE),
            self.store.get_folders(),
        )

    def read_note_content(self, path: str) -> str:
        """Return the catalogued content of a note.

        Raises:
            NotFoundError: If no note is catalogued at path
        """
        record = self.store.get(path)
        if not isinstance(record, NoteRecord):
            raise NotFoundError(path)
        return record.content

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_note(self, path: str, content: str = "") -> str:
        """Create a new note, appending '.md' when the path lacks it.

        Returns:
            Path of the created note

        Raises:
            ConflictError: If an entry already exists at the path
        """
        mutations = self.mutations
        if not is_note_path(path):
            path = f"{path.rstrip('/')}.md"
        if mutations.exists(path):
            raise ConflictError(path, "a note or folder already exists here")

        mutations.create_file(path, content)
        self.full_sync()
        return path

    def create_folder(self, path: str) -> None:
        self.mutations.create_directory(path)
        self.full_sync()

    def rename(self, old_path: str, new_path: str) -> None:
        """Rename or move an entry and resync.

        On PartialFailureError the catalog is still resynced, so it shows
        both copies, before the error is re-raised.
        """
        try:
            self.mutations.rename_entry(old_path, new_path)
        except PartialFailureError:
            self.full_sync()
            raise
        self.full_sync()

    def delete(self, path: str) -> None:
        self.mutations.delete_entry(path)
        self.full_sync()

    def write_note_content(self, path: str, content: str) -> NoteRecord:
        """Overwrite a note's content and re-put its catalog record.

        Raises:
            NotFoundError: If no note is catalogued at path
            AccessError: If write permission is denied
        """
        existing = self.store.get(path)
        if not isinstance(existing, NoteRecord):
            raise NotFoundError(path)

        file_handle = self.mutations.create_file(path, content)
        record = NoteRecord(
            path=path,
            content=content,
            title=existing.title or note_title(path.rsplit('/', 1)[-1]),
            last_modified=file_handle.stat().last_modified,
        )
        self.store.put(record)
        return record

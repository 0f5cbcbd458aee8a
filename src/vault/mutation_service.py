"""Structural mutations of the root directory.

Every operation passes through the PermissionGate (read-write on the root)
before touching the filesystem, including each nested write made by the
copy fallback of rename. The catalog is not patched here: callers run a
fresh full sync afterwards.
"""

import logging
from typing import List, Optional, Tuple, Union

from .errors import (
    ConflictError,
    FilesystemError,
    NotFoundError,
    PartialFailureError,
    VaultError,
)
from .filesystem import DirectoryHandle, FileHandle, Handle
from .models import EntryKind
from .permission_gate import PermissionGate

logger = logging.getLogger(__name__)


def split_path(path: str) -> List[str]:
    """Split a '/'-separated relative path into validated segments.

    Leading and trailing slashes are ignored; empty, '.' and '..' segments
    are rejected.

    Raises:
        FilesystemError: If the path contains an invalid segment
    """
    stripped = path.strip('/')
    if not stripped:
        return []
    segments = stripped.split('/')
    for segment in segments:
        if segment in ('', '.', '..'):
            raise FilesystemError(path, 'resolve', f"Invalid path segment '{segment}'")
    return segments


class MutationService:
    """Create, delete and rename entries under a root directory.

    Rename first tries the adapter's atomic move when the handle declares
    supports_move. When the adapter has no move, or the move fails, it falls
    back to copying the subtree and deleting the source. If that delete
    fails, PartialFailureError is raised and both paths are left in place:
    the copy is not rolled back, because a partly deleted source may no
    longer be complete.

    Example:
        >>> service = MutationService(root)
        >>> service.create_file("projects/plan.md", "# Plan")
        >>> service.rename_entry("projects/plan.md", "archive/plan.md")
    """

    def __init__(self, root: DirectoryHandle, gate: Optional[PermissionGate] = None):
        """Initialize the mutation service.

        Args:
            root: Root directory handle all paths are relative to
            gate: Permission gate (defaults to PermissionGate())
        """
        self.root = root
        self.gate = gate or PermissionGate()

    def _require_write(self, path: str) -> None:
        self.gate.require(self.root, write_needed=True, path=path)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _resolve_directory(self, segments: List[str]) -> DirectoryHandle:
        current = self.root
        for segment in segments:
            current = current.get_directory(segment)
        return current

    def _resolve_parent(self, path: str) -> Tuple[DirectoryHandle, str]:
        segments = split_path(path)
        if not segments:
            raise FilesystemError(path, 'resolve', 'The root has no parent')
        return self._resolve_directory(segments[:-1]), segments[-1]

    def resolve(self, path: str) -> Handle:
        """Resolve a path to a file or directory handle.

        Raises:
            NotFoundError: If any segment does not exist
        """
        segments = split_path(path)
        if not segments:
            return self.root
        parent, name = self._resolve_parent(path)
        return parent.get_entry(name)

    def exists(self, path: str) -> bool:
        try:
            self.resolve(path)
        except NotFoundError:
            return False
        return True

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create_directory(self, path: str) -> DirectoryHandle:
        """Create every missing directory along path.

        Existing segments are reused, so calling this twice is harmless.

        Args:
            path: '/'-separated directory path relative to the root

        Returns:
            Handle to the deepest directory

        Raises:
            AccessError: If write permission is denied
            ConflictError: If a segment is occupied by a file
            FilesystemError: If the directory cannot be created
        """
        self._require_write(path)

        current = self.root
        for segment in split_path(path):
            current = current.get_directory(segment, create=True)

        logger.debug(f"Ensured directory '{path}'")
        return current

    def create_file(self, path: str, content: Union[str, bytes] = "") -> FileHandle:
        """Create or overwrite a file, creating its parent directories.

        The content is written atomically: after the call returns readers
        see either the whole new content or the old one.

        Args:
            path: '/'-separated file path relative to the root
            content: Text or bytes to write

        Returns:
            Handle to the written file

        Raises:
            AccessError: If write permission is denied
            ConflictError: If the path or a parent segment is occupied by
                           an entry of the other kind
            FilesystemError: If the write fails
        """
        self._require_write(path)

        segments = split_path(path)
        if not segments:
            raise FilesystemError(path, 'create_file', 'A file path is required')

        if len(segments) > 1:
            parent = self.create_directory('/'.join(segments[:-1]))
        else:
            parent = self.root

        file_handle = parent.get_file(segments[-1], create=True)
        file_handle.write(content)

        logger.info(f"Wrote file '{path}'")
        return file_handle

    def delete_entry(self, path: str) -> None:
        """Remove a file, or a directory with all of its descendants.

        Confirmation is the caller's concern; nothing is asked here.

        Raises:
            AccessError: If write permission is denied
            NotFoundError: If the path does not exist
            FilesystemError: If the path is the root or removal fails
        """
        self._require_write(path)

        parent, name = self._resolve_parent(path)
        parent.remove_entry(name, recursive=True)

        logger.info(f"Deleted '{path}'")

    def rename_entry(self, old_path: str, new_path: str) -> None:
        """Rename or move an entry, with copy+delete fallback.

        Args:
            old_path: Existing entry path
            new_path: Target path (its parent directories are created)

        Raises:
            AccessError: If write permission is denied
            NotFoundError: If old_path does not exist
            ConflictError: If new_path exists or lies inside old_path
            PartialFailureError: If the fallback copied the entry but could
                                 not delete the original
            FilesystemError: If the copy fails
        """
        self._require_write(old_path)

        old_segments = split_path(old_path)
        new_segments = split_path(new_path)
        if not old_segments or not new_segments:
            raise FilesystemError(old_path, 'rename', 'Cannot rename the root')

        if old_segments == new_segments:
            logger.debug(f"Rename of '{old_path}' onto itself - nothing to do")
            return

        if new_segments[:len(old_segments)] == old_segments:
            raise ConflictError(new_path, f"cannot move '{old_path}' inside itself")

        old_norm = '/'.join(old_segments)
        new_norm = '/'.join(new_segments)

        source = self.resolve(old_norm)
        if self.exists(new_norm):
            raise ConflictError(new_norm, "target path already exists")

        created_parent = None
        if len(new_segments) > 1:
            for depth in range(1, len(new_segments)):
                prefix = '/'.join(new_segments[:depth])
                if not self.exists(prefix):
                    created_parent = prefix
                    break
            destination = self.create_directory('/'.join(new_segments[:-1]))
        else:
            destination = self.root

        if source.supports_move:
            try:
                source.move(destination, new_segments[-1])
                logger.info(f"Moved '{old_norm}' -> '{new_norm}'")
                return
            except VaultError as e:
                logger.warning(
                    f"Atomic move of '{old_norm}' failed ({e}) - falling back to copy+delete"
                )
        else:
            logger.debug("Filesystem adapter has no atomic move - using copy+delete")

        self._copy_then_delete(source, old_norm, new_norm, created_parent)

    def _copy_then_delete(
        self,
        source: Handle,
        old_path: str,
        new_path: str,
        created_parent: Optional[str] = None,
    ) -> None:
        try:
            self.copy_recursive(source, new_path)
        except VaultError:
            logger.error(f"Copy of '{old_path}' to '{new_path}' failed - removing partial copy")
            # Parents made for the destination hold nothing but the partial copy
            self._discard_partial_copy(created_parent or new_path)
            raise

        try:
            self.delete_entry(old_path)
        except VaultError as e:
            logger.error(
                f"Copied '{old_path}' to '{new_path}' but could not delete the original: {e}"
            )
            raise PartialFailureError(old_path, new_path, str(e)) from e

        logger.info(f"Moved '{old_path}' -> '{new_path}' (copy+delete)")

    def _discard_partial_copy(self, new_path: str) -> None:
        try:
            if self.exists(new_path):
                self.delete_entry(new_path)
        except VaultError as cleanup_error:
            logger.warning(f"Failed to remove partial copy '{new_path}': {cleanup_error}")

    def copy_recursive(self, source: Handle, dest_path: str) -> None:
        """Copy a file or directory subtree to dest_path.

        Files are read as bytes and written with create_file; directories
        are created with create_directory and their children copied in turn.
        Each nested write passes through the permission gate.

        Raises:
            AccessError: If write permission is denied
            FilesystemError: If a read or write fails
        """
        if source.kind == EntryKind.FILE:
            self.create_file(dest_path, source.read_bytes())
            return

        self.create_directory(dest_path)
        for child in source.iter_entries():
            self.copy_recursive(child, f"{dest_path}/{child.name}")

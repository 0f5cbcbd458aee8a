"""Recursive enumeration of the root directory.

The walker turns the root directory into a flat, depth-first, pre-order
list of entries. It uses an explicit stack instead of recursion so deep
trees cannot exhaust the interpreter stack, and it only talks to the
directory handle interface so it can run against any adapter.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from .errors import AccessError, FilesystemError, NotFoundError, VaultError
from .filesystem import DirectoryHandle, Handle
from .models import Entry, EntryKind

logger = logging.getLogger(__name__)

# Names skipped in addition to anything starting with '.'
DEFAULT_IGNORED_NAMES = frozenset({
    "node_modules",
    "__pycache__",
    "venv",
    "site-packages",
})


class TreeWalker:
    """Enumerates a root directory into an ordered list of entries.

    Hidden names (starting with '.') and the configured ignored names are
    skipped together with everything below them. Directory entries are
    emitted before their children, so empty folders still appear.

    Any failure aborts the whole walk: callers must treat an exception as
    "no reliable inventory available".

    Example:
        >>> walker = TreeWalker()
        >>> for entry in walker.walk(root):
        ...     print(entry.kind.value, entry.path)
        directory daily
        file daily/2024-01-15.md
        file index.md
    """

    def __init__(self, ignored_names: Optional[Iterable[str]] = None):
        """Initialize the walker.

        Args:
            ignored_names: Names to skip; defaults to DEFAULT_IGNORED_NAMES
        """
        if ignored_names is None:
            ignored_names = DEFAULT_IGNORED_NAMES
        self.ignored_names = frozenset(ignored_names)

    def is_ignored(self, name: str) -> bool:
        return name.startswith('.') or name in self.ignored_names

    def walk(self, root: DirectoryHandle) -> List[Entry]:
        """Walk the root and return all entries in pre-order.

        Args:
            root: Root directory handle

        Returns:
            List of Entry objects ('/'-separated paths relative to root)

        Raises:
            AccessError: If the root or a subdirectory cannot be enumerated
                         because access is denied or the handle is invalid
            FilesystemError: If enumeration fails for another reason
        """
        if root is None:
            raise AccessError("", 'enumerate', 'No root directory handle')

        entries: List[Entry] = []
        stack: List[Tuple[Handle, str]] = []
        self._push_children(stack, root, "")

        while stack:
            handle, path = stack.pop()
            if handle.kind == EntryKind.DIRECTORY:
                entries.append(Entry(path=path, kind=EntryKind.DIRECTORY, handle=handle))
                self._push_children(stack, handle, path)
            else:
                entries.append(Entry(path=path, kind=EntryKind.FILE, handle=handle))

        logger.debug(f"Walk produced {len(entries)} entry(ies)")
        return entries

    def _push_children(
        self,
        stack: List[Tuple[Handle, str]],
        directory: DirectoryHandle,
        dir_path: str
    ) -> None:
        """Push the visible children of directory so they pop in name order."""
        try:
            children = list(directory.iter_entries())
        except NotFoundError as e:
            raise AccessError(dir_path, 'enumerate', f"Directory is no longer available: {e}")
        except VaultError:
            logger.error(f"Enumeration failed for '{dir_path or '.'}' - aborting walk")
            raise
        except OSError as e:
            raise FilesystemError(dir_path or '.', 'enumerate', str(e))

        visible = []
        for child in children:
            if self.is_ignored(child.name):
                logger.debug(f"Ignoring {child.name} in '{dir_path or '.'}'")
                continue
            child_path = f"{dir_path}/{child.name}" if dir_path else child.name
            visible.append((child, child_path))

        visible.sort(key=lambda item: item[0].name)
        stack.extend(reversed(visible))

"""Filesystem capability interface and its local implementation.

The vault never touches paths directly: it works through directory and file
handles that support enumeration, resolution by name, reading, atomic
writing, recursive removal and permission query/request. Each handle also
declares whether it supports an atomic move, so callers branch on the
declared capability instead of probing for it.

LocalDirectoryHandle and LocalFileHandle implement the interface on top of
the local filesystem. Other adapters (in-memory, remote) only need to
implement the abstract methods.
"""

import logging
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, UTC
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Set, Union

from .errors import AccessError, ConflictError, FilesystemError, NotFoundError
from .models import EntryKind, FileMeta, PermissionMode, PermissionState

logger = logging.getLogger(__name__)

# Prompt callback signature: (display_path, mode) -> granted?
PromptCallback = Callable[[str, PermissionMode], bool]


class Handle(ABC):
    """Common interface of file and directory handles."""

    kind: EntryKind
    supports_move: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Entry name (last path segment)."""

    def move(self, destination: 'DirectoryHandle', new_name: str) -> None:
        """Atomically move this entry into destination under new_name.

        Only called when supports_move is True; adapters without an atomic
        move raise FilesystemError.
        """
        raise FilesystemError(self.name, 'move', 'Atomic move is not supported')


class FileHandle(Handle):
    """Handle to a single file."""

    kind = EntryKind.FILE

    @abstractmethod
    def read_text(self) -> str:
        """Read the whole file as UTF-8 text."""

    @abstractmethod
    def read_bytes(self) -> bytes:
        """Read the whole file as bytes."""

    @abstractmethod
    def stat(self) -> FileMeta:
        """Return size and modification time."""

    @abstractmethod
    def write(self, content: Union[str, bytes]) -> None:
        """Replace the file content atomically."""


class DirectoryHandle(Handle):
    """Handle to a directory."""

    kind = EntryKind.DIRECTORY

    @abstractmethod
    def iter_entries(self) -> Iterator[Handle]:
        """Yield child handles in name order."""

    @abstractmethod
    def get_directory(self, name: str, create: bool = False) -> 'DirectoryHandle':
        """Resolve a child directory, creating it when create is True."""

    @abstractmethod
    def get_file(self, name: str, create: bool = False) -> FileHandle:
        """Resolve a child file, creating it empty when create is True."""

    @abstractmethod
    def get_entry(self, name: str) -> Handle:
        """Resolve a child of either kind."""

    @abstractmethod
    def remove_entry(self, name: str, recursive: bool = False) -> None:
        """Remove a child entry (with all descendants when recursive)."""

    @abstractmethod
    def query_permission(self, mode: PermissionMode) -> PermissionState:
        """Return the current permission state without prompting."""

    @abstractmethod
    def request_permission(self, mode: PermissionMode) -> PermissionState:
        """Ask for the permission, prompting the user at most once."""


class LocalPermissions:
    """Permission broker shared by all handles under one local root.

    Combines the operating system check (os.access) with grants given by
    the user through the prompt callback. Granted modes are remembered for
    the lifetime of the broker; denials are not, so a later request prompts
    again.

    Example:
        >>> perms = LocalPermissions(prompt=lambda path, mode: True)
        >>> perms.request(Path("."), PermissionMode.READWRITE)
        <PermissionState.GRANTED: 'granted'>
    """

    def __init__(
        self,
        prompt: Optional[PromptCallback] = None,
        granted: Iterable[PermissionMode] = (PermissionMode.READ,)
    ):
        self._prompt = prompt
        self._granted: Set[PermissionMode] = set(granted)
        if PermissionMode.READWRITE in self._granted:
            self._granted.add(PermissionMode.READ)

    def _os_allows(self, path: Path, mode: PermissionMode) -> bool:
        flags = os.R_OK | os.X_OK
        if mode == PermissionMode.READWRITE:
            flags |= os.W_OK
        return os.access(path, flags)

    def query(self, path: Path, mode: PermissionMode) -> PermissionState:
        if not self._os_allows(path, mode):
            return PermissionState.DENIED
        if mode in self._granted:
            return PermissionState.GRANTED
        return PermissionState.PROMPT

    def request(self, path: Path, mode: PermissionMode) -> PermissionState:
        state = self.query(path, mode)
        if state != PermissionState.PROMPT:
            return state

        if self._prompt is None:
            logger.debug(f"No prompt available for {mode.value} on {path} - denying")
            return PermissionState.DENIED

        if self._prompt(str(path), mode):
            self._granted.add(mode)
            self._granted.add(PermissionMode.READ)
            logger.info(f"Permission {mode.value} granted for {path}")
            return PermissionState.GRANTED

        logger.info(f"Permission {mode.value} denied for {path}")
        return PermissionState.DENIED


def _translate_os_error(error: OSError, rel_path: str, operation: str) -> Exception:
    """Map an OSError onto the vault error taxonomy."""
    if isinstance(error, PermissionError):
        return AccessError(rel_path, operation, error.strerror or str(error))
    if isinstance(error, FileNotFoundError):
        return NotFoundError(rel_path)
    if isinstance(error, FileExistsError):
        return ConflictError(rel_path, "entry already exists")
    return FilesystemError(rel_path, operation, error.strerror or str(error))


def _default_file_mode() -> int:
    """Mode open() gives a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def _join(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


class _LocalHandleMixin:
    """State shared by local file and directory handles."""

    def _init_local(
        self,
        path: Path,
        rel_path: str,
        permissions: LocalPermissions,
        supports_move: bool
    ) -> None:
        self.path = path
        self.rel_path = rel_path
        self.permissions = permissions
        self.supports_move = supports_move

    @property
    def name(self) -> str:
        return self.path.name

    def move(self, destination: 'DirectoryHandle', new_name: str) -> None:
        if not isinstance(destination, LocalDirectoryHandle):
            raise FilesystemError(
                self.rel_path,
                'move',
                'Destination is not a local directory'
            )
        target = destination.path / new_name
        logger.debug(f"Moving {self.path} -> {target}")
        try:
            os.rename(self.path, target)
        except OSError as e:
            raise _translate_os_error(e, self.rel_path, 'move')
        self.path = target
        self.rel_path = _join(destination.rel_path, new_name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"


class LocalFileHandle(_LocalHandleMixin, FileHandle):
    """File handle backed by a local path."""

    def __init__(
        self,
        path: Path,
        rel_path: str,
        permissions: LocalPermissions,
        supports_move: bool = True
    ):
        self._init_local(path, rel_path, permissions, supports_move)

    def read_text(self) -> str:
        try:
            with open(self.path, 'r', encoding='utf-8', newline='') as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise FilesystemError(self.rel_path, 'read', f"Not valid UTF-8: {e}")
        except OSError as e:
            raise _translate_os_error(e, self.rel_path, 'read')

    def read_bytes(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise _translate_os_error(e, self.rel_path, 'read')

    def stat(self) -> FileMeta:
        try:
            st = self.path.stat()
        except OSError as e:
            raise _translate_os_error(e, self.rel_path, 'stat')
        return FileMeta(
            size=st.st_size,
            last_modified=datetime.fromtimestamp(st.st_mtime, tz=UTC)
        )

    def write(self, content: Union[str, bytes]) -> None:
        """Write content via a temp file in the same directory, then replace.

        Readers see either the old or the new content, never a partial write.
        The temp file name starts with '.' so the walker never indexes a
        leftover.
        The existing file mode is kept; a new file gets the umask default
        instead of the owner-only mode of the temp file.
        """
        data = content.encode('utf-8') if isinstance(content, str) else content
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp"
            )
        except OSError as e:
            raise _translate_os_error(e, self.rel_path, 'write')

        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(temp_path, self._target_mode())
            os.replace(temp_path, self.path)
        except OSError as e:
            try:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
            except OSError as cleanup_error:
                logger.warning(f"Failed to remove temp file {temp_path}: {cleanup_error}")
            raise _translate_os_error(e, self.rel_path, 'write')

        logger.debug(f"Wrote {len(data)} byte(s) to {self.rel_path}")

    def _target_mode(self) -> int:
        try:
            return self.path.stat().st_mode & 0o7777
        except FileNotFoundError:
            return _default_file_mode()


class LocalDirectoryHandle(_LocalHandleMixin, DirectoryHandle):
    """Directory handle backed by a local path.

    Example:
        >>> root = LocalDirectoryHandle.open("./notes")
        >>> [child.name for child in root.iter_entries()]
        ['daily', 'index.md']
    """

    def __init__(
        self,
        path: Path,
        rel_path: str = "",
        permissions: Optional[LocalPermissions] = None,
        supports_move: bool = True
    ):
        self._init_local(
            path,
            rel_path,
            permissions if permissions is not None else LocalPermissions(),
            supports_move
        )

    @classmethod
    def open(
        cls,
        path: Union[str, Path],
        permissions: Optional[LocalPermissions] = None,
        supports_move: bool = True
    ) -> 'LocalDirectoryHandle':
        """Open a root directory handle.

        Raises:
            NotFoundError: If the path does not exist
            FilesystemError: If the path exists but is not a directory
        """
        root = Path(path).expanduser().resolve()
        if not root.exists():
            raise NotFoundError(str(path))
        if not root.is_dir():
            raise FilesystemError(str(path), 'open', 'Path exists but is not a directory')
        return cls(root, "", permissions, supports_move)

    def _child_path(self, name: str) -> Path:
        if not name or name in ('.', '..') or '/' in name or os.sep in name:
            raise FilesystemError(_join(self.rel_path, name), 'resolve', 'Invalid entry name')
        return self.path / name

    def _wrap(self, path: Path, is_dir: bool) -> Handle:
        rel_path = _join(self.rel_path, path.name)
        if is_dir:
            return LocalDirectoryHandle(path, rel_path, self.permissions, self.supports_move)
        return LocalFileHandle(path, rel_path, self.permissions, self.supports_move)

    def iter_entries(self) -> Iterator[Handle]:
        try:
            with os.scandir(self.path) as it:
                dir_entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise _translate_os_error(e, self.rel_path, 'enumerate')

        for dir_entry in dir_entries:
            try:
                if dir_entry.is_dir(follow_symlinks=False):
                    yield self._wrap(Path(dir_entry.path), True)
                elif dir_entry.is_file():
                    yield self._wrap(Path(dir_entry.path), False)
                else:
                    logger.debug(f"Skipping special entry {dir_entry.path}")
            except OSError as e:
                raise _translate_os_error(e, _join(self.rel_path, dir_entry.name), 'enumerate')

    def get_directory(self, name: str, create: bool = False) -> 'LocalDirectoryHandle':
        child = self._child_path(name)
        rel_path = _join(self.rel_path, name)

        if child.is_dir():
            return self._wrap(child, True)
        if child.exists():
            if create:
                raise ConflictError(rel_path, "a file already occupies this path")
            raise NotFoundError(rel_path)
        if not create:
            raise NotFoundError(rel_path)

        try:
            child.mkdir(exist_ok=True)
        except OSError as e:
            raise _translate_os_error(e, rel_path, 'create_directory')
        logger.debug(f"Created directory {rel_path}")
        return self._wrap(child, True)

    def get_file(self, name: str, create: bool = False) -> LocalFileHandle:
        child = self._child_path(name)
        rel_path = _join(self.rel_path, name)

        if child.is_dir():
            if create:
                raise ConflictError(rel_path, "a directory already occupies this path")
            raise NotFoundError(rel_path)
        if child.exists():
            return self._wrap(child, False)
        if not create:
            raise NotFoundError(rel_path)

        try:
            child.touch(exist_ok=True)
        except OSError as e:
            raise _translate_os_error(e, rel_path, 'create_file')
        logger.debug(f"Created file {rel_path}")
        return self._wrap(child, False)

    def get_entry(self, name: str) -> Handle:
        child = self._child_path(name)
        if child.is_dir() and not child.is_symlink():
            return self._wrap(child, True)
        if child.exists() or child.is_symlink():
            return self._wrap(child, False)
        raise NotFoundError(_join(self.rel_path, name))

    def remove_entry(self, name: str, recursive: bool = False) -> None:
        child = self._child_path(name)
        rel_path = _join(self.rel_path, name)

        try:
            if child.is_dir() and not child.is_symlink():
                if recursive:
                    shutil.rmtree(child)
                else:
                    child.rmdir()
            elif child.exists() or child.is_symlink():
                child.unlink()
            else:
                raise NotFoundError(rel_path)
        except OSError as e:
            raise _translate_os_error(e, rel_path, 'delete')
        logger.debug(f"Removed {rel_path} (recursive={recursive})")

    def query_permission(self, mode: PermissionMode) -> PermissionState:
        return self.permissions.query(self.path, mode)

    def request_permission(self, mode: PermissionMode) -> PermissionState:
        return self.permissions.request(self.path, mode)

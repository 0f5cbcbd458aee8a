"""Durable keyed storage for catalog records.

The sync engine and the workspace only talk to the CatalogStore interface:
get/put/delete/list keyed by path, a single root-handle slot and the list of
known folders. Two implementations are provided:

- MemoryCatalogStore: plain dictionaries, used in tests and for one-shot runs
- YamlCatalogStore: a YAML file under .notevault/, guarded by an fcntl lock
  so two processes never interleave a clear-then-rebuild
"""

import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

import yaml

# Import fcntl for POSIX file locking (not available on Windows)
try:
    import fcntl
    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False

from .errors import CatalogError, CatalogLockError
from .models import CatalogRecord, NoteRecord, RecordKind, ResourceRecord

logger = logging.getLogger(__name__)

CATALOG_FORMAT_VERSION = 1

# YAML readers normalize these to '\n' or fold them outside double quotes
_YAML_LINE_BREAKS = ('\x85', '\u2028', '\u2029')


class _CatalogDumper(yaml.SafeDumper):
    """SafeDumper that double-quotes strings holding Unicode line breaks."""


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    if any(ch in value for ch in _YAML_LINE_BREAKS):
        return dumper.represent_scalar('tag:yaml.org,2002:str', value, style='"')
    return dumper.represent_str(value)


_CatalogDumper.add_representer(str, _represent_str)


class CatalogStore(ABC):
    """Interface of the catalog persistence layer."""

    @abstractmethod
    def get(self, path: str) -> Optional[CatalogRecord]:
        """Return the note or resource stored at path, or None."""

    @abstractmethod
    def put(self, record: CatalogRecord) -> None:
        """Insert or replace a record keyed by its path.

        A path holds exactly one kind: putting a note removes a resource
        stored at the same path and vice versa.
        """

    @abstractmethod
    def get_all(self, kind: RecordKind) -> List[CatalogRecord]:
        """Return every record of the given kind, ordered by path."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove the record at path (no error when absent)."""

    @abstractmethod
    def clear(self, kind: RecordKind) -> None:
        """Remove every record of the given kind."""

    @abstractmethod
    def get_root_handle(self) -> Any:
        """Return the persisted root handle, or None."""

    @abstractmethod
    def put_root_handle(self, handle: Any) -> None:
        """Persist the root handle in the single workspace slot."""

    @abstractmethod
    def get_folders(self) -> List[str]:
        """Return folder paths recorded by the last sync."""

    @abstractmethod
    def put_folders(self, folders: List[str]) -> None:
        """Replace the recorded folder paths."""

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group several mutations; stores may defer persistence until exit."""
        yield


class MemoryCatalogStore(CatalogStore):
    """In-memory store backed by dictionaries."""

    def __init__(self):
        self._notes: Dict[str, NoteRecord] = {}
        self._resources: Dict[str, ResourceRecord] = {}
        self._folders: List[str] = []
        self._root_handle: Any = None

    def _table(self, kind: RecordKind) -> Dict[str, Any]:
        return self._notes if kind == RecordKind.NOTE else self._resources

    def get(self, path: str) -> Optional[CatalogRecord]:
        return self._notes.get(path) or self._resources.get(path)

    def put(self, record: CatalogRecord) -> None:
        other = RecordKind.RESOURCE if record.kind == RecordKind.NOTE else RecordKind.NOTE
        self._table(other).pop(record.path, None)
        self._table(record.kind)[record.path] = record

    def get_all(self, kind: RecordKind) -> List[CatalogRecord]:
        table = self._table(kind)
        return [table[path] for path in sorted(table)]

    def delete(self, path: str) -> None:
        self._notes.pop(path, None)
        self._resources.pop(path, None)

    def clear(self, kind: RecordKind) -> None:
        self._table(kind).clear()

    def get_root_handle(self) -> Any:
        return self._root_handle

    def put_root_handle(self, handle: Any) -> None:
        self._root_handle = handle

    def get_folders(self) -> List[str]:
        return list(self._folders)

    def put_folders(self, folders: List[str]) -> None:
        self._folders = sorted(set(folders))


class YamlCatalogStore(MemoryCatalogStore):
    """Catalog persisted as a YAML file.

    Records are kept in memory and written back atomically (temp file +
    replace) after every mutation, or once at the end of a transaction.
    A transaction holds an exclusive fcntl lock on '<catalog>.lock' and
    reloads the file first, so concurrent processes serialize their passes.

    The root handle is stored as its absolute path and rebuilt with
    handle_factory on read.

    Catalog file structure:
        version: 1
        root: /home/me/notes
        folders: [daily, projects]
        notes:
          - path: index.md
            title: index
            content: "# Index"
            last_modified: "2024-01-15T10:30:00+00:00"
        resources:
          - path: logo.png
            name: logo.png
            extension: png
            size: 2048
            last_modified: "2024-01-15T10:30:00+00:00"
    """

    def __init__(
        self,
        catalog_path: str,
        handle_factory: Optional[Callable[[str], Any]] = None,
        lock_timeout: float = 30.0
    ):
        """Initialize the store.

        Args:
            catalog_path: Path of the YAML catalog file
            handle_factory: Builds a root handle from a stored path
            lock_timeout: Seconds to wait for the catalog lock
        """
        super().__init__()
        self.catalog_path = Path(catalog_path)
        self.lock_path = self.catalog_path.with_name(self.catalog_path.name + ".lock")
        self._handle_factory = handle_factory
        self._lock_timeout = lock_timeout
        self._root_path: Optional[str] = None
        self._loaded = False
        self._in_transaction = False

    # ------------------------------------------------------------------
    # CatalogStore interface
    # ------------------------------------------------------------------

    def get(self, path: str) -> Optional[CatalogRecord]:
        self._ensure_loaded()
        return super().get(path)

    def put(self, record: CatalogRecord) -> None:
        self._ensure_loaded()
        super().put(record)
        self._persist()

    def get_all(self, kind: RecordKind) -> List[CatalogRecord]:
        self._ensure_loaded()
        return super().get_all(kind)

    def delete(self, path: str) -> None:
        self._ensure_loaded()
        super().delete(path)
        self._persist()

    def clear(self, kind: RecordKind) -> None:
        self._ensure_loaded()
        super().clear(kind)
        self._persist()

    def get_root_handle(self) -> Any:
        self._ensure_loaded()
        if self._root_handle is None and self._root_path and self._handle_factory:
            self._root_handle = self._handle_factory(self._root_path)
        return self._root_handle

    def put_root_handle(self, handle: Any) -> None:
        self._ensure_loaded()
        path = getattr(handle, 'path', None)
        if path is None:
            raise CatalogError(
                f"Cannot persist root handle of type {type(handle).__name__}",
                str(self.catalog_path)
            )
        self._root_handle = handle
        self._root_path = str(path)
        self._persist()

    def get_folders(self) -> List[str]:
        self._ensure_loaded()
        return super().get_folders()

    def put_folders(self, folders: List[str]) -> None:
        self._ensure_loaded()
        super().put_folders(folders)
        self._persist()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Hold the catalog lock, reload, and write once on success.

        On failure the in-memory state is reloaded from disk so a failed
        pass leaves no half-written catalog behind.
        """
        if self._in_transaction:
            yield
            return

        with self._acquire_lock():
            self._loaded = False
            self._ensure_loaded()
            self._in_transaction = True
            try:
                yield
            except BaseException:
                self._in_transaction = False
                self._loaded = False
                self._ensure_loaded()
                raise
            self._in_transaction = False
            self._save()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self) -> None:
        if not self._in_transaction:
            with self._acquire_lock():
                self._save()

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._load()
        self._loaded = True

    def _load(self) -> None:
        """Read the catalog file; a missing or empty file is an empty catalog."""
        self._notes = {}
        self._resources = {}
        self._folders = []
        self._root_path = None
        self._root_handle = None

        try:
            with open(self.catalog_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            logger.debug(f"No catalog at {self.catalog_path} - starting empty")
            return
        except OSError as e:
            raise CatalogError(f"Failed to read catalog: {e}", str(self.catalog_path))

        if not content.strip():
            return

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise CatalogError(f"Invalid YAML syntax: {e}", str(self.catalog_path))

        if data is None:
            return
        if not isinstance(data, dict):
            raise CatalogError(
                f"Catalog must be a YAML dictionary, got {type(data).__name__}",
                str(self.catalog_path)
            )

        version = data.get('version', CATALOG_FORMAT_VERSION)
        if version != CATALOG_FORMAT_VERSION:
            raise CatalogError(
                f"Unsupported catalog version {version}",
                str(self.catalog_path)
            )

        root = data.get('root')
        self._root_path = str(root) if root else None
        self._folders = [str(folder) for folder in data.get('folders') or []]

        try:
            for raw in data.get('notes') or []:
                note = NoteRecord(
                    path=str(raw['path']),
                    content=str(raw.get('content', '')),
                    title=str(raw.get('title', '')),
                    last_modified=self._parse_time(raw.get('last_modified')),
                )
                self._notes[note.path] = note

            for raw in data.get('resources') or []:
                resource = ResourceRecord(
                    path=str(raw['path']),
                    name=str(raw.get('name', '')),
                    extension=str(raw.get('extension', '')),
                    size=int(raw.get('size', 0)),
                    last_modified=self._parse_time(raw.get('last_modified')),
                )
                self._resources[resource.path] = resource
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"Malformed record: {e}", str(self.catalog_path))

        logger.debug(
            f"Loaded catalog: {len(self._notes)} note(s), "
            f"{len(self._resources)} resource(s)"
        )

    def _save(self) -> None:
        """Write the catalog atomically (temp file in the same directory + replace)."""
        data = {
            'version': CATALOG_FORMAT_VERSION,
            'root': self._root_path,
            'folders': list(self._folders),
            'notes': [
                {
                    'path': note.path,
                    'title': note.title,
                    'content': note.content,
                    'last_modified': note.last_modified.isoformat(),
                }
                for note in super().get_all(RecordKind.NOTE)
            ],
            'resources': [
                {
                    'path': resource.path,
                    'name': resource.name,
                    'extension': resource.extension,
                    'size': resource.size,
                    'last_modified': resource.last_modified.isoformat(),
                }
                for resource in super().get_all(RecordKind.RESOURCE)
            ],
        }

        yaml_str = yaml.dump(
            data,
            Dumper=_CatalogDumper,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        catalog_dir = self.catalog_path.parent
        temp_path = None
        try:
            catalog_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=catalog_dir,
                prefix=f".{self.catalog_path.name}.",
                suffix=".tmp"
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
            os.replace(temp_path, self.catalog_path)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError as cleanup_error:
                    logger.warning(f"Failed to remove temp file {temp_path}: {cleanup_error}")
            raise CatalogError(f"Failed to write catalog: {e}", str(self.catalog_path))

    @staticmethod
    def _parse_time(value: Any) -> datetime:
        if isinstance(value, datetime):
            return value
        if not value:
            raise ValueError("missing last_modified")
        return datetime.fromisoformat(str(value))

    @contextmanager
    def _acquire_lock(self) -> Iterator[None]:
        """Acquire an exclusive lock on the catalog file.

        Uses fcntl advisory locking on POSIX systems. On platforms without
        fcntl a warning is logged and the operation proceeds unlocked.

        Raises:
            CatalogLockError: If the lock cannot be acquired within lock_timeout
        """
        lock_acquired = False

        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            lock_file = open(self.lock_path, 'w')
        except OSError as e:
            raise CatalogError(f"Failed to open lock file: {e}", str(self.catalog_path))

        try:
            if HAS_FCNTL:
                logger.debug(f"Acquiring catalog lock {self.lock_path}")
                start_time = time.time()

                while True:
                    try:
                        fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                        lock_acquired = True
                        logger.debug("Catalog lock acquired")
                        break
                    except OSError:
                        if time.time() - start_time > self._lock_timeout:
                            raise CatalogLockError(str(self.catalog_path), self._lock_timeout)
                        time.sleep(0.1)
            else:
                logger.warning(
                    "File locking not available on this platform. "
                    "Concurrent syncs may corrupt the catalog."
                )

            yield

        finally:
            if HAS_FCNTL and lock_acquired:
                try:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
                    logger.debug("Catalog lock released")
                except OSError as e:
                    logger.warning(f"Failed to release catalog lock: {e}")
            lock_file.close()

"""Full-rescan synchronization of the catalog with the root directory.

Every pass is a complete rebuild: walk the tree, read every file, then
replace the whole catalog. No diffing against the previous catalog takes
place, so a pass costs O(total entries) regardless of how much changed.
"""

import logging
import threading
from typing import List, Optional

from .catalog_store import CatalogStore
from .classifier import Classifier
from .errors import AccessError, VaultError
from .filesystem import DirectoryHandle
from .models import CatalogRecord, Entry, EntryKind, RecordKind, SyncReport
from .tree_walker import TreeWalker

logger = logging.getLogger(__name__)

ON_READ_ERROR_ABORT = "abort"
ON_READ_ERROR_SKIP = "skip"
READ_ERROR_POLICIES = (ON_READ_ERROR_ABORT, ON_READ_ERROR_SKIP)


class SyncEngine:
    """Rebuilds the catalog from the root directory.

    Only one pass runs at a time per engine: the "clear then rebuild" step
    must never interleave with another clear. Records are read and staged
    before the catalog is touched, so a pass that fails leaves the previous
    catalog intact instead of a partial one.

    Read failure policy:
    - 'abort' (default): the first unreadable file fails the whole pass
    - 'skip': unreadable files are left out and listed in SyncReport.skipped

    Example:
        >>> engine = SyncEngine(MemoryCatalogStore())
        >>> report = engine.full_sync(root)
        >>> print(f"{report.note_count} notes, {report.resource_count} resources")
    """

    def __init__(
        self,
        store: CatalogStore,
        walker: Optional[TreeWalker] = None,
        classifier: Optional[Classifier] = None,
        on_read_error: str = ON_READ_ERROR_ABORT
    ):
        """Initialize the sync engine.

        Args:
            store: Catalog store to rebuild
            walker: Tree walker (defaults to TreeWalker())
            classifier: Record classifier (defaults to Classifier())
            on_read_error: 'abort' or 'skip'

        Raises:
            ValueError: If on_read_error is not a known policy
        """
        if on_read_error not in READ_ERROR_POLICIES:
            raise ValueError(
                f"on_read_error must be one of {', '.join(READ_ERROR_POLICIES)}, "
                f"got '{on_read_error}'"
            )
        self.store = store
        self.walker = walker or TreeWalker()
        self.classifier = classifier or Classifier()
        self.on_read_error = on_read_error
        self._lock = threading.Lock()

    def full_sync(self, root: DirectoryHandle) -> SyncReport:
        """Walk the root and replace the catalog with what was found.

        Args:
            root: Root directory handle

        Returns:
            SyncReport with note/resource counts, folder paths and skipped files

        Raises:
            AccessError: If the root is missing or cannot be enumerated
            FilesystemError: If enumeration or (under 'abort') a read fails
            CatalogError: If the catalog cannot be written
        """
        if root is None:
            raise AccessError("", 'sync', 'No root directory is open')

        with self._lock:
            logger.info(f"Starting full sync of {root.name}")
            entries = self.walker.walk(root)

            report = SyncReport()
            staged: List[CatalogRecord] = []

            for entry in entries:
                if entry.kind == EntryKind.DIRECTORY:
                    report.folder_paths.append(entry.path)
                    continue

                try:
                    record = self._read_record(entry)
                except VaultError as e:
                    if self.on_read_error == ON_READ_ERROR_ABORT:
                        logger.error(f"Failed to read {entry.path}: {e} - aborting sync")
                        raise
                    logger.warning(f"Failed to read {entry.path}: {e} - skipping")
                    report.skipped.append((entry.path, str(e)))
                    continue

                staged.append(record)
                if record.kind == RecordKind.NOTE:
                    report.note_count += 1
                else:
                    report.resource_count += 1

            with self.store.transaction():
                self.store.clear(RecordKind.NOTE)
                self.store.clear(RecordKind.RESOURCE)
                for record in staged:
                    self.store.put(record)
                self.store.put_folders(report.folder_paths)

            logger.info(
                f"Indexing complete: {report.note_count} note(s), "
                f"{report.resource_count} resource(s), "
                f"{len(report.folder_paths)} folder(s)"
            )
            if report.skipped:
                logger.warning(f"{len(report.skipped)} file(s) skipped during sync")
            return report

    def _read_record(self, entry: Entry) -> CatalogRecord:
        """Read content (notes) or metadata (resources) and classify."""
        meta = entry.handle.stat()
        if self.classifier.is_note(entry):
            content = entry.handle.read_text()
            return self.classifier.classify(entry, meta, content)
        return self.classifier.classify(entry, meta)

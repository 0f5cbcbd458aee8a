"""Maps walked file entries to typed catalog records by extension."""

from typing import Optional

from .models import CatalogRecord, Entry, FileMeta, NoteRecord, ResourceRecord

NOTE_EXTENSION = "md"


def file_extension(name: str) -> str:
    """Return the lowercased substring after the last '.', or '' if none."""
    if '.' not in name:
        return ""
    return name.rsplit('.', 1)[-1].lower()


def is_note_path(path: str) -> bool:
    """True when the path names a Markdown file (case-insensitive)."""
    return file_extension(path.rsplit('/', 1)[-1]) == NOTE_EXTENSION


def note_title(name: str) -> str:
    """Derive the default title: the file name without its .md suffix."""
    if file_extension(name) == NOTE_EXTENSION:
        return name[:-(len(NOTE_EXTENSION) + 1)]
    return name


class Classifier:
    """Turns a file entry plus what was read from it into a catalog record.

    Only the extension is inspected: a .md file with binary content is still
    a note, and anything else is a resource.
    """

    def is_note(self, entry: Entry) -> bool:
        return is_note_path(entry.path)

    def classify(
        self,
        entry: Entry,
        meta: FileMeta,
        content: Optional[str] = None
    ) -> CatalogRecord:
        """Build a NoteRecord or ResourceRecord for a file entry.

        Args:
            entry: File entry from the walker
            meta: Size and modification time of the file
            content: Text content; required for notes, ignored for resources

        Returns:
            NoteRecord for .md files, ResourceRecord otherwise

        Raises:
            ValueError: If a note is classified without content
        """
        name = entry.name

        if self.is_note(entry):
            if content is None:
                raise ValueError(f"Content is required to classify note {entry.path}")
            return NoteRecord(
                path=entry.path,
                content=content,
                title=note_title(name),
                last_modified=meta.last_modified,
            )

        return ResourceRecord(
            path=entry.path,
            name=name,
            extension=file_extension(name),
            size=meta.size,
            last_modified=meta.last_modified,
        )

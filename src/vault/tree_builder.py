"""Builds the hierarchical presentation tree from the flat catalog."""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional

from .models import (
    CatalogRecord,
    FolderNode,
    LeafNode,
    NoteRecord,
    RecordKind,
    ResourceRecord,
    TreeNode,
)

logger = logging.getLogger(__name__)


def _sort_key(node: TreeNode):
    # Folders first, then case-insensitive name with lowercase winning ties
    return (0 if node.is_folder else 1, node.name.casefold(), node.name.swapcase(), node.id)


class TreeBuilder:
    """Converts notes, resources and known folders into a sorted tree.

    Folder nodes are materialized lazily and memoized by full path, so an
    ancestor shared by many leaves exists once. Known folders seed nodes for
    folders no leaf implies (empty folders). The function is pure: the same
    inputs always give structurally identical trees.

    Example:
        >>> builder = TreeBuilder()
        >>> tree = builder.build(notes, resources, ["archive"])
        >>> [node.name for node in tree]
        ['archive', 'daily', 'index']
    """

    def build(
        self,
        notes: Iterable[NoteRecord],
        resources: Iterable[ResourceRecord],
        known_folders: Optional[Iterable[str]] = None
    ) -> List[TreeNode]:
        """Build the presentation tree.

        Args:
            notes: Note records
            resources: Resource records
            known_folders: Folder paths to show even when empty

        Returns:
            Sorted list of top-level nodes
        """
        roots: List[TreeNode] = []
        folders: Dict[str, FolderNode] = {}

        def get_or_create_folder(path: str) -> FolderNode:
            existing = folders.get(path)
            if existing is not None:
                return existing

            parent_path, _, name = path.rpartition('/')
            node = FolderNode(id=path, name=name)
            folders[path] = node

            if parent_path:
                get_or_create_folder(parent_path).children.append(node)
            else:
                roots.append(node)
            return node

        records: List[CatalogRecord] = list(notes) + list(resources)
        leaf_paths = {record.path for record in records}

        for folder_path in known_folders or []:
            folder_path = folder_path.strip('/')
            if not folder_path or folder_path in leaf_paths:
                continue
            get_or_create_folder(folder_path)

        for record in records:
            parent_path, _, file_name = record.path.rpartition('/')
            leaf = LeafNode(
                id=record.path,
                name=self._display_name(record, file_name),
                kind=record.kind,
                record=record,
            )
            if parent_path:
                get_or_create_folder(parent_path).children.append(leaf)
            else:
                roots.append(leaf)

        self._finalize(roots)
        logger.debug(
            f"Built tree: {len(folders)} folder(s), {len(records)} leaf node(s)"
        )
        return roots

    def _display_name(self, record: CatalogRecord, file_name: str) -> str:
        if record.kind == RecordKind.NOTE:
            return record.title or file_name
        return record.name or file_name

    def _finalize(self, nodes: List[TreeNode]) -> None:
        """Disambiguate clashing leaf names and sort every sibling group."""
        stack = [nodes]
        while stack:
            siblings = stack.pop()
            self._disambiguate(siblings)

            siblings.sort(key=_sort_key)
            for node in siblings:
                if node.is_folder:
                    stack.append(node.children)

    def _disambiguate(self, siblings: List[TreeNode]) -> None:
        """Rename clashing leaves until no two of a kind share a name.

        A clashing leaf falls back to its file name, then to its full path.
        File names are unique within a folder, so this settles after a few
        passes.
        """
        while True:
            clashes = Counter(
                (node.kind, node.name) for node in siblings if not node.is_folder
            )
            renamed = False
            for node in siblings:
                if node.is_folder or clashes[(node.kind, node.name)] < 2:
                    continue
                file_name = node.id.rpartition('/')[2]
                fallback = file_name if node.name != file_name else node.id
                if fallback != node.name:
                    node.name = fallback
                    renamed = True
            if not renamed:
                return


def build_tree(
    notes: Iterable[NoteRecord],
    resources: Iterable[ResourceRecord],
    known_folders: Optional[Iterable[str]] = None
) -> List[TreeNode]:
    """Module-level shortcut for TreeBuilder().build()."""
    return TreeBuilder().build(notes, resources, known_folders)

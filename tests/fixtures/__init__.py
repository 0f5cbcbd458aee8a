"""Test fixtures for the vault library and CLI.

This module provides:
- A sample directory layout and a helper to write it under tmp_path
- Note and resource record factories with a fixed timestamp
- In-memory directory and file handles (no atomic move support)
"""

from .vault_fixtures import (
    FIXED_TIME,
    SAMPLE_LAYOUT,
    MemoryDirectoryHandle,
    MemoryFileHandle,
    make_note,
    make_resource,
    memory_tree,
    write_layout,
)

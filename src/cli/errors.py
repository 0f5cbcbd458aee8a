"""Typed exception hierarchy for CLI-related errors.

This module defines the exceptions raised by the CLI itself. They inherit
from CLIError, which in turn inherits from VaultError so a single except
clause catches every application-level error.
"""

from src.vault.errors import VaultError


class CLIError(VaultError):
    """Base exception for all CLI-related errors."""
    pass


class RootNotOpenError(CLIError):
    """Raised when a command needs a root but none has been opened yet."""

    def __init__(self, catalog_path: str):
        super().__init__(
            f"No root directory is open (catalog: {catalog_path}). "
            f"Run 'notevault open <folder>' first."
        )
        self.catalog_path = catalog_path

"""Typed exception hierarchy for vault errors.

This module defines all custom exceptions used by the vault library.
All exceptions inherit from VaultError base class for easy catching and
carry the affected path(s) as attributes so callers can report them.
"""

from typing import Optional


class VaultError(Exception):
    """Base exception for all notevault errors.

    Use this to catch any application-level error from the tool.
    """
    pass


class AccessError(VaultError):
    """Raised when read or write permission is denied or revoked."""

    def __init__(self, path: str, operation: str, reason: Optional[str] = None):
        message = f"Access denied for '{operation}' on {path or '/'}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.path = path
        self.operation = operation
        self.reason = reason


class NotFoundError(VaultError):
    """Raised when a path does not resolve during navigation."""

    def __init__(self, path: str):
        super().__init__(f"Path not found: {path}")
        self.path = path


class ConflictError(VaultError):
    """Raised when a target path is occupied in a way the operation cannot overwrite."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Conflict at {path}: {reason}")
        self.path = path
        self.reason = reason


class PartialFailureError(VaultError):
    """Raised when a rename copied the source but could not delete it.

    Both the old and the new path exist afterwards and must be reconciled
    by the user.
    """

    def __init__(self, old_path: str, new_path: str, reason: Optional[str] = None):
        message = (
            f"Rename of {old_path} to {new_path} copied the entry but could not "
            f"remove the original; both paths now exist"
        )
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.old_path = old_path
        self.new_path = new_path
        self.reason = reason


class FilesystemError(VaultError):
    """Raised when filesystem operations fail (read, write, enumerate, etc)."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class ConfigError(VaultError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class CatalogError(VaultError):
    """Raised when the catalog file cannot be read, parsed or written."""

    def __init__(self, message: str, catalog_path: Optional[str] = None):
        if catalog_path:
            full_message = f"Catalog error in {catalog_path}: {message}"
        else:
            full_message = f"Catalog error: {message}"
        super().__init__(full_message)
        self.catalog_path = catalog_path
        self.original_message = message


class CatalogLockError(CatalogError):
    """Raised when the catalog lock cannot be acquired in time."""

    def __init__(self, catalog_path: str, timeout: float):
        super().__init__(
            f"Timeout acquiring catalog lock after {timeout}s. "
            f"Another sync may be in progress.",
            catalog_path,
        )
        self.timeout = timeout

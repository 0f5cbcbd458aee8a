"""Permission checks performed before any mutating filesystem operation."""

import logging

from .errors import AccessError
from .filesystem import DirectoryHandle
from .models import PermissionMode, PermissionState

logger = logging.getLogger(__name__)


class PermissionGate:
    """Checks, and if needed requests, read or read-write access on a handle.

    A call issues at most one interactive request. A denial is final for
    that call and is not remembered, so the next call asks again.

    Example:
        >>> gate = PermissionGate()
        >>> gate.require(root, write_needed=True, path="notes/today.md")
    """

    def verify(self, handle: DirectoryHandle, write_needed: bool) -> bool:
        """Return True when the requested access is granted.

        Args:
            handle: Directory handle to check (normally the root)
            write_needed: True for read-write access, False for read-only

        Returns:
            True if granted, False if denied
        """
        mode = PermissionMode.READWRITE if write_needed else PermissionMode.READ

        if handle.query_permission(mode) == PermissionState.GRANTED:
            return True

        logger.debug(f"Requesting {mode.value} permission for {handle.name}")
        return handle.request_permission(mode) == PermissionState.GRANTED

    def require(self, handle: DirectoryHandle, write_needed: bool, path: str = "") -> None:
        """Raise AccessError unless the requested access is granted.

        Args:
            handle: Directory handle to check (normally the root)
            write_needed: True for read-write access, False for read-only
            path: Path of the operation being guarded, used in the error

        Raises:
            AccessError: If access is denied
        """
        if not self.verify(handle, write_needed):
            operation = 'write' if write_needed else 'read'
            logger.warning(f"Permission denied: {operation} on {path or handle.name}")
            raise AccessError(path, operation, 'Permission not granted')

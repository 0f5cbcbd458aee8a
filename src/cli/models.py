"""Data models for CLI operations.

This module defines the data models used by the CLI module, following the
patterns established in src/vault/models.py.
"""

from dataclasses import dataclass
from enum import IntEnum

from src.vault.errors import (
    AccessError,
    ConflictError,
    NotFoundError,
    PartialFailureError,
)


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): Config issues, I/O failures, anything not below
    - CONFLICT (2): Target path already occupied
    - ACCESS_DENIED (3): Permission denied or revoked
    - NOT_FOUND (4): Path does not exist
    - PARTIAL_FAILURE (5): Rename left both the old and the new path behind

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFLICT = 2
    ACCESS_DENIED = 3
    NOT_FOUND = 4
    PARTIAL_FAILURE = 5


def exit_code_for(error: BaseException) -> ExitCode:
    """Map an exception onto the exit code reported to the shell."""
    if isinstance(error, PartialFailureError):
        return ExitCode.PARTIAL_FAILURE
    if isinstance(error, AccessError):
        return ExitCode.ACCESS_DENIED
    if isinstance(error, NotFoundError):
        return ExitCode.NOT_FOUND
    if isinstance(error, ConflictError):
        return ExitCode.CONFLICT
    return ExitCode.GENERAL_ERROR


@dataclass
class CLIState:
    """Options shared by every subcommand, set by the app callback.

    Attributes:
        config_path: Path to the YAML configuration file
        verbosity: 0=summary, 1=info, 2=debug
        no_color: Disable colored output
    """
    config_path: str
    verbosity: int = 0
    no_color: bool = False

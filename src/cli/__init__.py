"""Command-line interface for notevault.

This package provides the `notevault` CLI tool: it opens a root folder,
rebuilds the catalog with full rescans, renders the catalog tree, and runs
permission-gated create/rename/delete operations with progress indication
and error reporting.
"""

from .errors import CLIError, RootNotOpenError
from .models import CLIState, ExitCode, exit_code_for
from .output import OutputHandler

__all__ = [
    'CLIError',
    'RootNotOpenError',
    'CLIState',
    'ExitCode',
    'exit_code_for',
    'OutputHandler',
]

"""Main CLI entry point for the notevault command.

Typer application behind the notevault console script. Commands open a
root directory, rebuild the catalog, show the tree, and create, rename or
delete notes and folders.
"""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

import typer

from src.cli.errors import RootNotOpenError
from src.cli.models import CLIState, ExitCode, exit_code_for
from src.cli.output import OutputHandler
from src.vault.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader
from src.vault.errors import FilesystemError, PartialFailureError, VaultError
from src.vault.models import EntryKind, PermissionMode
from src.vault.workspace import Workspace

VERSION = "0.1.0"

app = typer.Typer(
    name="notevault",
    help="""Index a local folder of Markdown notes and resources.

QUICK START:
  notevault open ./notes            # Choose the root folder and index it
  notevault sync                    # Rebuild the catalog
  notevault tree                    # Show notes, resources and folders
  notevault new-note daily/today    # Create daily/today.md
  notevault mv daily/today.md archive/today.md
  notevault rm archive              # Delete a folder (asks first)""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

# Module logger
logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Attach stderr (and optionally file) handlers to the 'src' logger.

    Only the 'src' logger is touched; third-party loggers and the root logger
    keep their settings.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)
    app_logger.handlers.clear()

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        # Timestamped filename in local time
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"notevault_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _confirm_write(path: str, mode: PermissionMode) -> bool:
    """Ask the user before granting write access to the root."""
    return typer.confirm(f"Allow notevault to modify files in {path}?", default=False)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"notevault version {VERSION}")
        raise typer.Exit()


def _output(ctx: typer.Context) -> OutputHandler:
    state: CLIState = ctx.obj
    return OutputHandler(verbosity=state.verbosity, no_color=state.no_color)


def _load_workspace(ctx: typer.Context, require_root: bool = True) -> Workspace:
    """Load configuration and build a workspace, re-attaching the stored root.

    Raises:
        RootNotOpenError: If require_root is set and no root was ever opened
    """
    state: CLIState = ctx.obj
    config = ConfigLoader.load(state.config_path)
    workspace = Workspace.from_config(config, prompt=_confirm_write)
    if require_root and not workspace.reopen():
        raise RootNotOpenError(config.catalog_path)
    return workspace


@contextmanager
def _handle_errors(output: OutputHandler, action: str) -> Iterator[None]:
    """Report vault errors with their affected path and exit with the matching code."""
    try:
        yield
    except typer.Exit:
        raise
    except PartialFailureError as e:
        logger.error(f"{action} failed: {e}")
        output.error(f"{action} failed: {e}")
        output.print_partial_failure(e.old_path, e.new_path)
        raise typer.Exit(ExitCode.PARTIAL_FAILURE)
    except VaultError as e:
        logger.error(f"{action} failed: {e}")
        output.error(f"{action} failed: {e}")
        raise typer.Exit(exit_code_for(e))
    except Exception as e:
        logger.exception(f"Unexpected error during {action.lower()}")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: str = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Path to the configuration file",
        metavar="FILE",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Index a local folder of Markdown notes and resources."""
    _configure_logging(verbosity, logdir)
    ctx.obj = CLIState(config_path=config, verbosity=verbosity, no_color=no_color)


@app.command("open")
def open_command(
    ctx: typer.Context,
    folder: str = typer.Argument(..., help="Folder to use as the root"),
) -> None:
    """Choose the root folder, remember it, and index it."""
    output = _output(ctx)
    with _handle_errors(output, "Open"):
        workspace = _load_workspace(ctx, require_root=False)
        with output.spinner(f"Indexing {folder}..."):
            workspace.open_root(folder)
            report = workspace.last_report
        output.success(f"Opened {workspace.root.path}")
        output.print_sync_summary(report)


@app.command("sync")
def sync_command(ctx: typer.Context) -> None:
    """Rebuild the catalog from the root folder (full rescan)."""
    output = _output(ctx)
    with _handle_errors(output, "Sync"):
        workspace = _load_workspace(ctx)
        with output.spinner("Indexing..."):
            report = workspace.full_sync()
        output.print_sync_summary(report)


@app.command("tree")
def tree_command(ctx: typer.Context) -> None:
    """Show the catalog as a tree (folders first)."""
    output = _output(ctx)
    with _handle_errors(output, "Tree"):
        workspace = _load_workspace(ctx)
        output.print_tree(workspace.list_tree(), root_label=workspace.root.name)


@app.command("new-note")
def new_note_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Note path ('.md' is added if missing)"),
    content: str = typer.Option("", "--content", help="Initial note content"),
) -> None:
    """Create a new note."""
    output = _output(ctx)
    with _handle_errors(output, "Create note"):
        workspace = _load_workspace(ctx)
        created = workspace.create_note(path, content)
        output.success(f"Created note {created}")


@app.command("mkdir")
def mkdir_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Folder path (parents are created)"),
) -> None:
    """Create a folder and any missing parents."""
    output = _output(ctx)
    with _handle_errors(output, "Create folder"):
        workspace = _load_workspace(ctx)
        workspace.create_folder(path)
        output.success(f"Created folder {path}")


@app.command("mv")
def mv_command(
    ctx: typer.Context,
    old_path: str = typer.Argument(..., help="Existing note, resource or folder"),
    new_path: str = typer.Argument(..., help="New path"),
) -> None:
    """Rename or move a note, resource or folder."""
    output = _output(ctx)
    with _handle_errors(output, "Rename"):
        workspace = _load_workspace(ctx)
        workspace.rename(old_path, new_path)
        output.success(f"Moved {old_path} -> {new_path}")


@app.command("rm")
def rm_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Note, resource or folder to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete a note, resource or folder (folders with everything inside)."""
    output = _output(ctx)
    with _handle_errors(output, "Delete"):
        workspace = _load_workspace(ctx)
        handle = workspace.mutations.resolve(path)

        if not yes:
            if handle.kind == EntryKind.DIRECTORY:
                question = f"Delete folder {path} and everything inside it?"
            else:
                question = f"Delete {path}?"
            if not typer.confirm(question, default=False):
                output.warning("Deletion cancelled")
                raise typer.Exit(ExitCode.SUCCESS)

        workspace.delete(path)
        output.success(f"Deleted {path}")


@app.command("cat")
def cat_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Note path"),
) -> None:
    """Print the catalogued content of a note."""
    output = _output(ctx)
    with _handle_errors(output, "Read note"):
        workspace = _load_workspace(ctx)
        typer.echo(workspace.read_note_content(path), nl=False)


@app.command("write")
def write_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Existing note path"),
    source: Optional[str] = typer.Option(
        None,
        "--from",
        help="Read the new content from FILE instead of stdin",
        metavar="FILE",
    ),
) -> None:
    """Replace a note's content (from a file or stdin)."""
    output = _output(ctx)
    with _handle_errors(output, "Write note"):
        workspace = _load_workspace(ctx)
        if source:
            try:
                content = Path(source).read_text(encoding="utf-8")
            except OSError as e:
                raise FilesystemError(source, 'read', str(e))
        else:
            content = sys.stdin.read()
        workspace.write_note_content(path, content)
        output.success(f"Saved {path}")


def main() -> None:
    """Run the Typer app (console script entry point)."""
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()

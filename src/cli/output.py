"""Rich-based terminal output for the notevault commands.

OutputHandler is the single place commands print through.
Uses Rich for spinners, colored messages, the catalog tree view and sync
summaries. Supports verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.spinner import Spinner
from rich.tree import Tree

from src.vault.models import RecordKind, SyncReport, TreeNode


class OutputHandler:
    """Prints messages, spinners, sync summaries and the catalog tree.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Created note daily/today.md")
        >>> with handler.spinner("Indexing..."):
        ...     # Do work
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Create the Rich console.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(escape(message))

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def print(self, message: str) -> None:
        """Display message without formatting."""
        self.console.print(message, markup=False)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Show a transient spinner while the body runs.

        Example:
            >>> with handler.spinner("Indexing..."):
            ...     workspace.full_sync()
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_sync_summary(self, report: SyncReport) -> None:
        """Display the counts of a full sync with color coding."""
        self.console.print("\n[bold]Sync Summary:[/bold]")
        self.console.print(f"  [green]✎[/green] Notes: {report.note_count}")
        self.console.print(f"  [blue]▣[/blue] Resources: {report.resource_count}")
        self.console.print(f"  [dim]▸[/dim] Folders: {len(report.folder_paths)}")

        if report.skipped:
            self.console.print(f"  [yellow]⊘[/yellow] Skipped: {len(report.skipped)} file(s)")
            for path, reason in report.skipped:
                self.console.print(f"    • {escape(path)}: {escape(reason)}")

        total = report.note_count + report.resource_count
        if total == 0 and not report.folder_paths:
            self.console.print("\n[yellow]Directory is empty - nothing indexed[/yellow]")
        elif report.skipped:
            self.console.print("\n[yellow]Sync completed with skipped files[/yellow]")
        else:
            self.console.print("\n[green]Sync completed successfully[/green]")

    def print_tree(self, nodes: List[TreeNode], root_label: Optional[str] = None) -> None:
        """Render the catalog tree (folders first, as built by TreeBuilder)."""
        tree = Tree(f"[bold]{escape(root_label or '.')}[/bold]")
        stack = [(tree, nodes)]
        while stack:
            branch, children = stack.pop()
            for node in children:
                if node.is_folder:
                    sub_branch = branch.add(f"[bold blue]{escape(node.name)}/[/bold blue]")
                    stack.append((sub_branch, node.children))
                elif node.kind == RecordKind.NOTE:
                    branch.add(escape(node.name))
                else:
                    branch.add(f"[dim]{escape(node.name)}[/dim]")

        if not nodes:
            self.console.print("[yellow]Catalog is empty[/yellow]")
            return
        self.console.print(tree)

    def print_partial_failure(self, old_path: str, new_path: str) -> None:
        """Explain the state left behind by a rename that could not finish."""
        self.console.print(
            "\n[bold red]Rename did not complete.[/bold red] "
            "Both paths now exist and need manual reconciliation:"
        )
        self.console.print(f"  • original: {escape(old_path)}")
        self.console.print(f"  • copy:     {escape(new_path)}")

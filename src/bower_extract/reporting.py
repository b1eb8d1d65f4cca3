"""
Reporting and output formatting for extraction results.

Provides console output using the Rich library and a JSON export.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .dependency import ResolvedFile
from .error_handling import ErrorContext


def build_json_report(
    files: Sequence[ResolvedFile], errors: Sequence[ErrorContext], project_root: str
) -> Dict[str, Any]:
    """Build the JSON document describing an extraction run."""
    return {
        "project_root": project_root,
        "total_files": len(files),
        "files": [
            {
                "dependency": resolved.dependency_name,
                "path": resolved.absolute_path,
                "size": resolved.size,
            }
            for resolved in files
        ],
        "errors": [
            {
                "label": ctx.label,
                "category": ctx.category.value,
                "dependency": ctx.dependency,
                "message": ctx.message,
            }
            for ctx in errors
        ],
    }


class ResolutionReporter:
    """Formats and displays extraction results."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_results(
        self,
        files: List[ResolvedFile],
        errors: List[ErrorContext],
        project_root: str,
    ) -> None:
        """
        Print extraction results in a user-friendly format.

        Args:
            files: Resolved files, in emission order
            errors: Diagnostics reported during the run
            project_root: Project the dependencies belong to
        """
        self.console.print()
        self.console.print(
            Panel(
                f"📦 Resolved dependencies: {project_root}",
                title="[bold blue]bower-extract[/bold blue]",
                border_style="blue",
            )
        )

        if files:
            self._print_files(files)
        else:
            self.console.print("ℹ️  No files were resolved.", style="yellow")

        if errors:
            self._print_errors(errors)

        self._print_footer(files, errors)

    def _print_files(self, files: List[ResolvedFile]) -> None:
        table = Table(title="📄 Resolved Files", box=box.ROUNDED, title_style="bold cyan")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Dependency", style="bold")
        table.add_column("Path")
        table.add_column("Size", justify="right")

        for index, resolved in enumerate(files, 1):
            table.add_row(
                str(index),
                resolved.dependency_name,
                resolved.absolute_path,
                f"{resolved.size:,} B",
            )

        self.console.print(table)

    def _print_errors(self, errors: List[ErrorContext]) -> None:
        self.console.print("\n⚠️  [bold red]Errors[/bold red]")
        for ctx in errors:
            scope = f" ({ctx.dependency})" if ctx.dependency else ""
            self.console.print(
                f"  • [{ctx.label}]{scope} {ctx.message}",
                style="red",
                markup=False,
            )

    def _print_footer(self, files: List[ResolvedFile], errors: List[ErrorContext]) -> None:
        style = "red" if errors else "green"
        self.console.print(
            f"\n{len(files)} file(s) resolved, {len(errors)} error(s) reported",
            style=style,
        )


def dump_json_report(report: Dict[str, Any]) -> str:
    return json.dumps(report, indent=2, ensure_ascii=False)

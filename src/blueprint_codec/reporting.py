"""
Console and JSON output for blueprint checks.

Provides color-coded console output using Rich library.
"""

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .dependency import DependencyEntry, EnvVarEntry
from .document import BlueprintDocument, DecodeResult, LineError


class BlueprintReporter:
    """Formats and displays decode results for one blueprint."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_check_results(
        self,
        document: BlueprintDocument,
        dependencies: DecodeResult[DependencyEntry],
        env_vars: DecodeResult[EnvVarEntry],
        quiet: bool = False,
    ) -> None:
        """
        Print decode results in a user-friendly format.

        Args:
            document: The checked blueprint
            dependencies: Decoded DEPEND list
            env_vars: Decoded ENVVAR list
            quiet: Only print rejected lines
        """
        if not quiet:
            self.console.print()
            self._print_header(document)
            self._print_summary(dependencies, env_vars)
            if dependencies.entries:
                self._print_dependencies(dependencies.entries)

        errors = dependencies.errors + env_vars.errors
        if errors:
            self._print_errors(dependencies.errors, "DEPEND", show_line=True)
            # ENVVAR values may hold secrets
            self._print_errors(env_vars.errors, "ENVVAR", show_line=False)
        elif not quiet:
            self.console.print("✅ All lines decoded cleanly.", style="green")

    def _print_header(self, document: BlueprintDocument) -> None:
        title = escape(str(document.name or document.blueprint or "(unnamed)"))
        header_text = f"📋 Blueprint: {title}"
        if document.version:
            header_text += f"  [dim]version {escape(str(document.version))}[/dim]"
        if document.source:
            header_text += f"\n[dim]{escape(document.source)}[/dim]"
        self.console.print(
            Panel(
                header_text,
                title="[bold blue]Blueprint Check[/bold blue]",
                border_style="blue",
            )
        )

    def _print_summary(
        self,
        dependencies: DecodeResult[DependencyEntry],
        env_vars: DecodeResult[EnvVarEntry],
    ) -> None:
        table = Table(title="📊 Summary", box=box.ROUNDED, title_style="bold cyan")
        table.add_column("Field", style="bold")
        table.add_column("Lines", justify="center")
        table.add_column("Decoded", justify="center")
        table.add_column("Rejected", justify="center")

        for field_name, result in (("DEPEND", dependencies), ("ENVVAR", env_vars)):
            rejected = (
                f"[bold red]{result.error_count}[/bold red]"
                if result.error_count
                else "[green]0[/green]"
            )
            table.add_row(
                field_name,
                str(result.total_lines),
                str(len(result.entries)),
                rejected,
            )

        self.console.print(table)
        self.console.print()

    def _print_dependencies(self, entries: List[DependencyEntry]) -> None:
        table = Table(title="📦 Dependencies", box=box.SIMPLE_HEAVY)
        table.add_column("Shape")
        table.add_column("Category", style="cyan")
        table.add_column("Name", style="bold")
        table.add_column("Version / Path")
        table.add_column("Conditions", style="dim")

        for entry in entries:
            conditions = ""
            if entry.extra1 is not None:
                conditions = escape(f"{{{entry.extra1}}} {{{entry.extra2}}}")
            table.add_row(
                entry.shape.name.lower(),
                entry.category.value,
                escape(entry.name),
                escape(entry.version_or_path),
                conditions,
            )

        self.console.print(table)

    def _print_errors(self, errors: List[LineError], field_name: str, show_line: bool) -> None:
        if not errors:
            return

        table = Table(
            title=f"❌ Rejected {field_name} lines",
            box=box.ROUNDED,
            title_style="bold red",
        )
        table.add_column("#", justify="right", no_wrap=True)
        table.add_column("Kind", style="red", no_wrap=True)
        if show_line:
            table.add_column("Line")
        table.add_column("Message")

        for error in errors:
            row = [str(error.index), error.kind]
            if show_line:
                row.append(escape(error.line))
            row.append(escape(str(error.error)))
            table.add_row(*row)

        self.console.print(table)


def build_check_report(
    document: BlueprintDocument,
    dependencies: DecodeResult[DependencyEntry],
    env_vars: DecodeResult[EnvVarEntry],
) -> Dict[str, Any]:
    """Build the JSON form of a check; env var values are left out."""
    return {
        "file_path": document.source,
        "name": document.name,
        "summary": {
            "dependencies": dependencies.total_lines,
            "dependency_errors": dependencies.error_count,
            "env_vars": env_vars.total_lines,
            "env_var_errors": env_vars.error_count,
        },
        "ok": dependencies.ok and env_vars.ok,
        "dependencies": [entry.to_dict() for entry in dependencies.entries],
        "env_var_keys": [entry.key for entry in env_vars.entries],
        "errors": {
            "DEPEND": [error.to_dict() for error in dependencies.errors],
            "ENVVAR": [error.to_dict(include_line=False) for error in env_vars.errors],
        },
    }

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from runbook_studio.core.grammar import TreeSitterGrammar, is_script_path
from runbook_studio.core.parameters import STRUCTURAL_FAILURE_MESSAGE, ParameterExtractor

console = Console()


def _read_script(path: str) -> str:
    file_path = Path(path)
    if not file_path.exists():
        console.print(f"[red]File not found:[/red] {path}")
        raise typer.Exit(code=1)
    if not is_script_path(file_path):
        console.print(f"[yellow]Warning:[/yellow] {file_path.name} does not look like a PowerShell script")
    return file_path.read_text(encoding="utf-8-sig")


def params(
    path: Annotated[str, typer.Argument(help="Path to a runbook script (.ps1).")],
) -> None:
    """List the input parameters a runbook declares."""
    parameters = ParameterExtractor().extract_parameters(_read_script(path))
    if parameters is None:
        console.print(f"[red]{STRUCTURAL_FAILURE_MESSAGE}[/red]")
        raise typer.Exit(code=1)

    table = Table(show_lines=False)
    for header in ("name", "parameter", "type", "array"):
        table.add_column(header)
    for p in parameters:
        table.add_row(p.display_name, p.raw_name, p.type_name, "yes" if p.is_array else "no")
    console.print(table)
    console.print(f"({len(parameters)} parameters)")


def check(
    path: Annotated[str, typer.Argument(help="Path to a runbook script (.ps1).")],
) -> None:
    """Report parse errors in a runbook script."""
    result = TreeSitterGrammar().parse(_read_script(path))
    if not result.diagnostics:
        console.print("[green]No parse errors[/green]")
        return

    table = Table(show_lines=False)
    for header in ("line", "offset", "length", "message"):
        table.add_column(header)
    for d in result.diagnostics:
        table.add_row(str(d.line), str(d.start_offset), str(d.length), d.message)
    console.print(table)
    raise typer.Exit(code=1)

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from routeql.config import load_config
from routeql.core.compose import compose_documents
from routeql.core.transform import collect_project_documents, discover_source_files

console = Console()


def compose(
    project: Annotated[
        Path, typer.Argument(help="Project root.", exists=True, file_okay=False, dir_okay=True)
    ] = Path("."),
    operation: Annotated[str | None, typer.Option(help="Only print this operation.")] = None,
) -> None:
    """Print every operation with the fragments it depends on."""
    config = load_config(project.resolve())
    documents = asyncio.run(collect_project_documents(config, discover_source_files(config)))
    composed = compose_documents(documents)

    if operation is not None:
        if operation not in composed:
            console.print(f"[red]No composed operation named {operation}[/red]")
            raise typer.Exit(code=1)
        composed = {operation: composed[operation]}

    for name, document in composed.items():
        console.rule(name)
        console.print(document.text, markup=False, highlight=False, emoji=False, soft_wrap=True)
    console.print(f"[green]Composed[/green] {len(composed)} operations")

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from routeql.config import Config, load_config
from routeql.core.transform import run_pipeline
from routeql.loader.node_adapter import NodeModuleLoader
from routeql.models import TransformResult
from routeql.watcher.watchfiles_adapter import WatchfilesWatcher

console = Console()


def _loader(config: Config) -> NodeModuleLoader | None:
    if not config.dynamic_introspection:
        return None
    return NodeModuleLoader(config.node_command, config.introspection_timeout)


def _emit(config: Config, result: TransformResult, out: Path | None) -> None:
    relative = result.filepath.relative_to(config.project_root)
    if out is None:
        console.rule(str(relative))
        console.print(result.code, markup=False, highlight=False, emoji=False, soft_wrap=True)
        return
    target = out / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(result.code, encoding="utf-8")
    console.print(f"[green]Wrote[/green] {target}")


def transform(
    project: Annotated[
        Path, typer.Argument(help="Project root.", exists=True, file_okay=False, dir_okay=True)
    ] = Path("."),
    out: Annotated[
        Path | None, typer.Option(help="Write transformed files under this directory instead of printing them.")
    ] = None,
    watch: Annotated[bool, typer.Option(help="Transform again whenever a project file changes.")] = False,
) -> None:
    """Add load functions and reactive fetches to every route of a project."""
    config = load_config(project.resolve())
    loader = _loader(config)

    async def _transform() -> None:
        result = await run_pipeline(config, loader=loader)
        for changed in result.changed:
            _emit(config, changed, out)
        console.print(f"[green]Transformed[/green] {len(result.changed)} of {len(result.results)} route files")

    async def _on_change(paths: set[Path]) -> None:
        # a sibling query file or script changes what a route loads, so redo the project
        await _transform()

    async def _run() -> None:
        await _transform()
        if not watch:
            return
        watcher = WatchfilesWatcher(config.project_root / "src", _on_change)
        await watcher.start()
        try:
            await watcher.wait()
        finally:
            await watcher.stop()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("[yellow]Stopped[/yellow]")

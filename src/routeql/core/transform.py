import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from graphql import DocumentNode

from routeql.config import Config
from routeql.core.ast import Component, Script, parse_component, parse_file, parse_script
from routeql.core.compose import compose_documents
from routeql.core.documents import DocumentCollection, collect_documents
from routeql.core.extract import walk_graphql_tags
from routeql.core.languages import detect_language_from_path, is_supported_path
from routeql.core.load import add_load
from routeql.core.ports.module_loader import ModuleLoader
from routeql.core.reactive import add_reactive_fetches
from routeql.core.resolve import read_file, resolve_route
from routeql.errors import RouteValidationError
from routeql.models import ComposedDocument, RouteDescriptor, TransformResult

logger = logging.getLogger(__name__)

_DOCUMENT_LANGUAGES = {"graphql"}


@dataclass
class TransformPage:
    """One file going through the transformer, with its parsed contents."""

    config: Config
    filepath: Path
    target: Script | Component
    watch_files: list[Path] = field(default_factory=list)

    @property
    def route(self) -> RouteDescriptor:
        return self.config.describe(self.filepath)

    def add_watch_file(self, path: Path) -> None:
        if path not in self.watch_files:
            self.watch_files.append(path)

    def render(self) -> str:
        return self.target.render()


async def transform_route(
    page: TransformPage,
    documents: DocumentCollection | None = None,
    loader: ModuleLoader | None = None,
) -> bool:
    """Add loading code to a route component or route script.

    Returns whether the page was modified. A route whose declarations are
    invalid is logged and left as it was.
    """
    route = page.route
    if not route.is_component_document and not route.is_route_script:
        return False

    script = page.target if isinstance(page.target, Script) else None
    component = page.target if isinstance(page.target, Component) else None

    try:
        metadata = await resolve_route(
            page.config,
            route,
            documents=documents,
            loader=loader,
            script=script,
            component=component,
        )
    except RouteValidationError as exc:
        logger.error("error in %s: %s", page.filepath, exc)
        return False

    for path in metadata.watch_files:
        page.add_watch_file(path)

    if isinstance(page.target, Script):
        return add_load(page.config, page.target, metadata.targets, metadata.script_info, page.filepath)

    if not metadata.targets:
        return False
    add_reactive_fetches(page.config, page.target, metadata.targets, bare=page.config.framework == "svelte")
    return True


async def transform_file(
    config: Config,
    filepath: Path,
    documents: DocumentCollection | None = None,
    loader: ModuleLoader | None = None,
) -> TransformResult:
    """Transform one route file.

    A file that cannot be decoded or parsed is logged and reported
    unchanged so the rest of the project still goes through.
    """
    path = Path(filepath)
    try:
        target = await asyncio.to_thread(parse_file, path)
        page = TransformPage(config=config, filepath=path, target=target)
        if await transform_route(page, documents, loader):
            return TransformResult(filepath=path, changed=True, code=page.render())
        return TransformResult(filepath=path, changed=False, code=target.source.decode("utf-8"))
    except ValueError as exc:
        logger.error("error in %s: %s", path, exc)

    source = await asyncio.to_thread(path.read_bytes)
    return TransformResult(filepath=path, changed=False, code=source.decode("utf-8", errors="replace"))


# ---------------------------------------------------------------------------
# Project-wide passes
# ---------------------------------------------------------------------------


def discover_route_files(config: Config) -> list[Path]:
    """Every route component and route script under the routes directory."""
    root = config.routes_root
    if not root.is_dir():
        return []
    return sorted(
        path
        for path in root.rglob("*")
        if path.is_file() and (config.is_route(path) or config.is_route_script(path))
    )


def discover_source_files(config: Config) -> list[Path]:
    """Every file under the project's ``src`` directory that may hold documents."""
    root = config.project_root / "src"
    if not root.is_dir():
        return []
    return sorted(path for path in root.rglob("*") if path.is_file() and is_supported_path(path))


async def _document_sources(config: Config, path: Path) -> list[tuple[str, str | DocumentNode]]:
    contents = await read_file(path)
    if contents is None:
        return []

    try:
        language = detect_language_from_path(path)
    except ValueError:
        return []
    if language in _DOCUMENT_LANGUAGES:
        return [(str(path), contents)]

    try:
        if language == "svelte":
            target: Script | Component = await asyncio.to_thread(parse_component, contents)
        else:
            target = await asyncio.to_thread(parse_script, contents, language)
    except ValueError as exc:
        logger.warning("Skipping %s: %s", path, exc)
        return []
    return [(str(path), parsed.document) for parsed in walk_graphql_tags(target, config.graphql_tags, str(path))]


async def collect_project_documents(config: Config, files: Iterable[Path]) -> DocumentCollection:
    """Gather documents from query files and tagged literals in scripts."""
    per_file = await asyncio.gather(*(_document_sources(config, Path(path)) for path in files))
    sources = [source for file_sources in per_file for source in file_sources]
    collection = collect_documents(sources)
    logger.info("Collected %d documents", len(collection))
    return collection


@dataclass
class PipelineResult:
    documents: DocumentCollection
    composed: dict[str, ComposedDocument]
    results: list[TransformResult]

    @property
    def changed(self) -> list[TransformResult]:
        return [result for result in self.results if result.changed]


async def run_pipeline(
    config: Config,
    files: Sequence[Path] | None = None,
    loader: ModuleLoader | None = None,
) -> PipelineResult:
    """Compose every operation and transform every route of a project."""
    documents = await collect_project_documents(config, discover_source_files(config))
    composed = compose_documents(documents)

    route_files = list(files) if files is not None else discover_route_files(config)
    route_files = [path for path in route_files if config.is_route(path) or config.is_route_script(path)]
    results = await asyncio.gather(*(transform_file(config, path, documents, loader) for path in route_files))

    logger.info("Transformed %d of %d route files", sum(result.changed for result in results), len(results))
    return PipelineResult(documents=documents, composed=composed, results=list(results))

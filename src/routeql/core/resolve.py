"""Collect every query a route loads and what its route script exports."""

import asyncio
import logging
from pathlib import Path

from routeql.config import Config
from routeql.core.ast import Component, Script, parse_component, parse_script
from routeql.core.documents import DocumentCollection, find_query, operation_requires_variables, parse_document
from routeql.core.exports import COMPILED_QUERY_KIND, LOAD_EXPORT, read_module_metadata
from routeql.core.extract import find_inline_queries
from routeql.core.languages import detect_language_from_path
from routeql.core.ports.module_loader import ModuleLoader
from routeql.errors import DocumentParseError, IntrospectionError, RouteValidationError
from routeql.models import (
    ModuleMetadata,
    PageScriptInfo,
    QueryInfo,
    QueryTarget,
    RouteDescriptor,
    RouteMetadata,
    StoreReference,
)

logger = logging.getLogger(__name__)


def query_variable_fn(name: str) -> str:
    return f"{name}Variables"


async def read_file(path: Path) -> str | None:
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as exc:
        logger.warning("Skipping %s: not valid UTF-8 (%s)", path, exc.reason)
        return None


def route_script_path(config: Config, filepath: Path) -> Path | None:
    """The route script next to ``filepath``, preferring ``.js`` over ``.ts``."""
    path = config.route_data_path(filepath)
    if path.exists():
        return path
    typescript = path.with_suffix(".ts")
    if typescript.exists():
        return typescript
    return None


# ---------------------------------------------------------------------------
# Query sources
# ---------------------------------------------------------------------------


async def find_page_query(config: Config, filepath: Path) -> QueryTarget | None:
    if config.framework != "kit":
        return None
    path = config.page_query_path(filepath)
    contents = await read_file(path)
    if contents is None:
        return None

    try:
        parsed = parse_document(contents, str(path))
    except DocumentParseError as exc:
        logger.error("%s", exc)
        return None

    query = find_query(parsed)
    if query is None or query.name is None:
        raise RouteValidationError(f"{path.name} must contain a named query")

    name = query.name.value
    return QueryTarget(
        name=name,
        requires_variables=operation_requires_variables(query),
        reference=StoreReference(name=name),
    )


async def find_route_inline_queries(
    config: Config, route: RouteDescriptor, component: Component | None = None
) -> list[QueryTarget]:
    filename = route.filepath
    if component is None:
        filename = config.route_page_path(route.filepath)
        contents = await read_file(filename)
        if contents is None:
            return []
        try:
            component = await asyncio.to_thread(parse_component, contents)
        except ValueError as exc:
            logger.warning("Skipping inline queries of %s: %s", filename, exc)
            return []

    return [
        QueryTarget(
            name=query.name,
            requires_variables=query.requires_variables,
            reference=StoreReference(name=query.name),
        )
        for query in find_inline_queries(component, config.graphql_tags, str(filename))
    ]


# ---------------------------------------------------------------------------
# Route script introspection
# ---------------------------------------------------------------------------


async def introspect_module(
    path: Path,
    config: Config,
    documents: DocumentCollection | None = None,
    loader: ModuleLoader | None = None,
    script: Script | None = None,
) -> ModuleMetadata | None:
    """Read a module's exports statically, evaluating it only as a fallback.

    When evaluation fails, whatever static analysis found is returned;
    failures other than a missing module are logged.
    """
    if script is None:
        source = await read_file(path)
        if source is None:
            return None
        script = await asyncio.to_thread(parse_script, source, detect_language_from_path(path))

    metadata = read_module_metadata(script, config, documents)
    if metadata.complete:
        return metadata

    if loader is None:
        logger.warning("could not determine the exports of %s statically", path)
        return metadata

    logger.debug("Falling back to evaluating %s", path)
    try:
        loaded = await loader.load(path)
    except IntrospectionError as exc:
        if not exc.not_found:
            logger.warning("%s", exc)
        return metadata
    return merge_metadata(metadata, loaded)


def merge_metadata(static: ModuleMetadata, loaded: ModuleMetadata) -> ModuleMetadata:
    """Combine a partial static reading with the evaluated module's answer.

    Names seen statically always survive; the evaluated load list wins when
    it has one.
    """
    exports = list(static.exports)
    exports.extend(name for name in loaded.exports if name not in exports)
    load = loaded.load if loaded.load is not None else static.load
    return ModuleMetadata(exports=exports, load=load)


def build_script_info(metadata: ModuleMetadata | None, filepath: Path) -> PageScriptInfo:
    """Validate the exported load list and turn it into query infos."""
    if metadata is None:
        return PageScriptInfo()

    load: list[QueryInfo] = []
    seen: set[str] = set()
    for entry in metadata.load or []:
        if entry.document is not None:
            try:
                parsed = parse_document(entry.document, str(filepath))
            except DocumentParseError as exc:
                logger.error("%s", exc)
                continue
            query = find_query(parsed)
            if query is None or query.name is None:
                raise RouteValidationError(f"{LOAD_EXPORT} must contain store references")
            info = QueryInfo(name=query.name.value, requires_variables=operation_requires_variables(query))
        elif entry.kind != COMPILED_QUERY_KIND or not entry.name:
            raise RouteValidationError(f"you must pass query stores to {LOAD_EXPORT}")
        else:
            info = QueryInfo(name=entry.name, requires_variables=entry.variables)

        if info.name in seen:
            raise RouteValidationError(f"a store can only appear once in {LOAD_EXPORT}: {info.name}")
        seen.add(info.name)
        load.append(info)

    return PageScriptInfo(exported_names=frozenset(metadata.exports), explicit_load_list=load)


async def find_page_info(
    config: Config,
    route: RouteDescriptor,
    documents: DocumentCollection | None = None,
    loader: ModuleLoader | None = None,
    script: Script | None = None,
) -> ModuleMetadata | None:
    if config.framework != "kit":
        return None
    if route.is_route_script:
        return await introspect_module(route.filepath, config, documents, loader, script)

    path = route_script_path(config, route.filepath)
    if path is None:
        return None
    return await introspect_module(path, config, documents, loader)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def resolve_route(
    config: Config,
    route: RouteDescriptor,
    *,
    documents: DocumentCollection | None = None,
    loader: ModuleLoader | None = None,
    script: Script | None = None,
    component: Component | None = None,
) -> RouteMetadata:
    """Merge the route's page query, inline queries and exported load list.

    Raises ``RouteValidationError`` when a declaration is structurally wrong;
    nothing about the route is mutated here.
    """
    page_query, inline_targets, metadata = await asyncio.gather(
        find_page_query(config, route.filepath),
        find_route_inline_queries(config, route, component if route.is_component_document else None),
        find_page_info(config, route, documents, loader, script if route.is_route_script else None),
    )
    script_info = build_script_info(metadata, route.filepath)

    targets: list[QueryTarget] = []
    if page_query is not None:
        targets.append(page_query)
    targets.extend(inline_targets)
    targets.extend(
        QueryTarget(
            name=info.name,
            requires_variables=info.requires_variables,
            reference=StoreReference(name=info.name, index=index),
        )
        for index, info in enumerate(script_info.explicit_load_list)
    )

    siblings = [
        config.page_query_path(route.filepath),
        config.route_page_path(route.filepath),
        route_script_path(config, route.filepath),
    ]
    watch_files = [path for path in siblings if path is not None and path != route.filepath and path.exists()]

    return RouteMetadata(targets=targets, script_info=script_info, watch_files=watch_files)

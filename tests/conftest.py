"""Shared fixtures and helpers for tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from routeql.config import Config
from routeql.core.documents import DocumentCollection, collect_documents

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------

RouteFactory = Callable[..., Path]


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project with a routes directory."""
    (tmp_path / "src" / "routes").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def config(project: Path) -> Config:
    return Config(project_root=project)


@pytest.fixture
def bare_config(project: Path) -> Config:
    return Config(project_root=project, framework="svelte")


@pytest.fixture
def make_route(project: Path) -> RouteFactory:
    """Write the files of one route and return its directory.

    Keyword arguments name the files: ``page`` (+page.svelte), ``script``
    (+page.js), ``ts_script`` (+page.ts) and ``query`` (+page.gql).
    """

    def _make(
        route: str = "",
        *,
        page: str | None = None,
        script: str | None = None,
        ts_script: str | None = None,
        query: str | None = None,
    ) -> Path:
        directory = project / "src" / "routes" / route
        directory.mkdir(parents=True, exist_ok=True)
        for name, contents in (
            ("+page.svelte", page),
            ("+page.js", script),
            ("+page.ts", ts_script),
            ("+page.gql", query),
        ):
            if contents is not None:
                (directory / name).write_text(contents)
        return directory

    return _make


@pytest.fixture
def documents() -> DocumentCollection:
    """Operations and fragments most tests refer to."""
    return collect_documents(
        [
            ("queries/foo.gql", "query Foo { viewer { id } }"),
            ("queries/bar.gql", "query Bar($id: ID!) { node(id: $id) { id } }"),
            ("queries/baz.gql", "query Baz($first: Int) { items(first: $first) { id } }"),
        ]
    )

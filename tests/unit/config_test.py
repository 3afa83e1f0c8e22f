"""Unit tests for project configuration."""

from pathlib import Path

import pytest

from routeql.config import Config, load_config


class TestRouteClassification:
    @pytest.mark.parametrize(
        ("relative", "expected"),
        [
            ("src/routes/+page.svelte", True),
            ("src/routes/blog/+layout.svelte", True),
            ("src/routes/blog/Card.svelte", False),
            ("src/lib/+page.svelte", False),
            ("src/routes/+page.js", False),
        ],
    )
    def test_is_route(self, config: Config, project: Path, relative: str, expected: bool) -> None:
        assert config.is_route(project / relative) is expected

    @pytest.mark.parametrize(
        ("relative", "expected"),
        [
            ("src/routes/+page.js", True),
            ("src/routes/+layout.ts", True),
            ("src/routes/helpers.js", False),
            ("src/lib/+page.js", False),
        ],
    )
    def test_is_route_script(self, config: Config, project: Path, relative: str, expected: bool) -> None:
        assert config.is_route_script(project / relative) is expected

    def test_bare_mode_treats_every_component_as_route(self, bare_config: Config, project: Path) -> None:
        assert bare_config.is_route(project / "src/routes/Card.svelte") is True
        assert bare_config.is_route_script(project / "src/routes/+page.js") is False


class TestSiblings:
    def test_page_siblings(self, config: Config) -> None:
        page = Path("/app/src/routes/blog/+page.svelte")
        assert config.route_page_path(page) == page
        assert config.route_data_path(page) == Path("/app/src/routes/blog/+page.js")
        assert config.page_query_path(page) == Path("/app/src/routes/blog/+page.gql")

    def test_layout_siblings(self, config: Config) -> None:
        script = Path("/app/src/routes/+layout.ts")
        assert config.route_data_path(script) == script
        assert config.route_page_path(script) == Path("/app/src/routes/+layout.svelte")
        assert config.page_query_path(script) == Path("/app/src/routes/+layout.gql")


class TestStores:
    def test_store_names(self, config: Config) -> None:
        assert config.store_name("Foo") == "GQL_Foo"
        assert config.store_import_path("Foo") == "$houdini/stores/Foo"

    @pytest.mark.parametrize(
        ("source", "imported", "expected"),
        [
            ("$houdini/stores/Foo", "GQL_Foo", "Foo"),
            ("$houdini/stores/Foo.js", "default", "Foo"),
            ("$houdini", "GQL_Bar", "Bar"),
            ("$houdini", "graphql", None),
            ("./local", "GQL_Foo", None),
        ],
    )
    def test_store_name_from_import(
        self, config: Config, source: str, imported: str, expected: str | None
    ) -> None:
        assert config.store_name_from_import(source, imported) == expected


class TestLoadConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        for name in ("ROUTEQL_FRAMEWORK", "ROUTEQL_GRAPHQL_TAGS", "ROUTEQL_DYNAMIC_INTROSPECTION"):
            monkeypatch.delenv(name, raising=False)

        config = load_config(tmp_path)

        assert config.project_root == tmp_path
        assert config.framework == "kit"
        assert config.graphql_tags == ("graphql",)
        assert config.dynamic_introspection is False

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("ROUTEQL_FRAMEWORK", "svelte")
        monkeypatch.setenv("ROUTEQL_ROUTES_DIR", "app/pages")
        monkeypatch.setenv("ROUTEQL_RUNTIME_ALIAS", "$gql")
        monkeypatch.setenv("ROUTEQL_GRAPHQL_TAGS", "graphql, gql")
        monkeypatch.setenv("ROUTEQL_DYNAMIC_INTROSPECTION", "on")
        monkeypatch.setenv("ROUTEQL_INTROSPECTION_TIMEOUT", "2.5")

        config = load_config(tmp_path)

        assert config.framework == "svelte"
        assert config.routes_root == tmp_path / "app" / "pages"
        assert config.store_import_path("Foo") == "$gql/stores/Foo"
        assert config.runtime_network_path == "$gql/runtime/lib/network"
        assert config.graphql_tags == ("graphql", "gql")
        assert config.dynamic_introspection is True
        assert config.introspection_timeout == 2.5

    def test_invalid_framework(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("ROUTEQL_FRAMEWORK", "next")
        with pytest.raises(ValueError):
            load_config(tmp_path)

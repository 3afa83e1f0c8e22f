import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from routeql.models import RouteDescriptor

_ROUTE_KINDS = ("+page", "+layout")
_SCRIPT_SUFFIXES = (".js", ".ts")
_TRUTHY = {"1", "true", "yes", "on"}


class Config(BaseModel):
    """Project conventions the transformer relies on.

    Classifies route files, resolves their siblings and names the generated
    stores and runtime modules that synthesized code imports.
    """

    model_config = ConfigDict(frozen=True)

    project_root: Path = Field(default_factory=Path.cwd)
    framework: Literal["kit", "svelte"] = "kit"
    routes_dir: Path = Path("src/routes")
    runtime_alias: str = "$houdini"
    graphql_tags: tuple[str, ...] = ("graphql",)
    store_prefix: str = "GQL_"
    browser_flag: str = "isBrowser"
    node_command: str = "node"
    dynamic_introspection: bool = False
    introspection_timeout: float = 10.0

    # -- route classification ------------------------------------------------

    @property
    def routes_root(self) -> Path:
        if self.routes_dir.is_absolute():
            return self.routes_dir
        return self.project_root / self.routes_dir

    def _in_routes(self, filepath: Path) -> bool:
        return Path(filepath).resolve().is_relative_to(self.routes_root.resolve())

    def is_route(self, filepath: Path) -> bool:
        path = Path(filepath)
        if path.suffix != ".svelte" or not self._in_routes(path):
            return False
        return self.framework == "svelte" or path.stem in _ROUTE_KINDS

    def is_route_script(self, filepath: Path) -> bool:
        path = Path(filepath)
        if self.framework != "kit" or path.suffix not in _SCRIPT_SUFFIXES:
            return False
        return path.stem in _ROUTE_KINDS and self._in_routes(path)

    def describe(self, filepath: Path) -> RouteDescriptor:
        return RouteDescriptor(
            filepath=Path(filepath),
            is_component_document=self.is_route(filepath),
            is_route_script=self.is_route_script(filepath),
        )

    # -- sibling resolution ----------------------------------------------------

    @staticmethod
    def _route_kind(filepath: Path) -> str:
        stem = Path(filepath).stem
        return stem if stem in _ROUTE_KINDS else "+page"

    def route_page_path(self, filepath: Path) -> Path:
        path = Path(filepath)
        return path.with_name(f"{self._route_kind(path)}.svelte")

    def route_data_path(self, filepath: Path) -> Path:
        path = Path(filepath)
        if path.suffix in _SCRIPT_SUFFIXES:
            return path
        return path.with_name(f"{self._route_kind(path)}.js")

    def page_query_path(self, filepath: Path) -> Path:
        path = Path(filepath)
        return path.with_name(f"{self._route_kind(path)}.gql")

    # -- generated stores and runtime modules ----------------------------------

    def store_name(self, operation: str) -> str:
        return f"{self.store_prefix}{operation}"

    def store_import_path(self, operation: str) -> str:
        return f"{self.runtime_alias}/stores/{operation}"

    def store_name_from_import(self, source: str, imported: str) -> str | None:
        """Map an import of a generated store back to its operation name."""
        stores_dir = f"{self.runtime_alias}/stores/"
        if source.startswith(stores_dir):
            name = source[len(stores_dir) :].removesuffix(".js")
            return name or None
        if source in (self.runtime_alias, f"{self.runtime_alias}/index.js") and imported.startswith(self.store_prefix):
            return imported[len(self.store_prefix) :]
        return None

    @property
    def runtime_network_path(self) -> str:
        return f"{self.runtime_alias}/runtime/lib/network"

    @property
    def runtime_context_path(self) -> str:
        return f"{self.runtime_alias}/runtime/lib/context"

    @property
    def runtime_adapter_path(self) -> str:
        return f"{self.runtime_alias}/runtime/adapter"

    @property
    def runtime_config_path(self) -> str:
        return f"{self.runtime_alias}/config"


def load_config(project_root: Path | None = None) -> Config:
    """Build a Config from ``ROUTEQL_*`` environment variables."""
    values: dict[str, object] = {"project_root": project_root or Path.cwd()}
    if framework := os.getenv("ROUTEQL_FRAMEWORK"):
        values["framework"] = framework
    if routes_dir := os.getenv("ROUTEQL_ROUTES_DIR"):
        values["routes_dir"] = Path(routes_dir)
    if runtime_alias := os.getenv("ROUTEQL_RUNTIME_ALIAS"):
        values["runtime_alias"] = runtime_alias
    if tags := os.getenv("ROUTEQL_GRAPHQL_TAGS"):
        values["graphql_tags"] = tuple(tag.strip() for tag in tags.split(",") if tag.strip())
    if node_command := os.getenv("ROUTEQL_NODE_COMMAND"):
        values["node_command"] = node_command
    if dynamic := os.getenv("ROUTEQL_DYNAMIC_INTROSPECTION"):
        values["dynamic_introspection"] = dynamic.strip().lower() in _TRUTHY
    if timeout := os.getenv("ROUTEQL_INTROSPECTION_TIMEOUT"):
        values["introspection_timeout"] = float(timeout)
    return Config.model_validate(values)

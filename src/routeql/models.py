from enum import Enum
from pathlib import Path

from graphql import DocumentNode, ExecutableDefinitionNode, print_ast
from pydantic import BaseModel, ConfigDict, Field


class DocumentKind(str, Enum):
    OPERATION = "operation"
    FRAGMENT = "fragment"


class Document(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    kind: DocumentKind
    filename: str
    definition: ExecutableDefinitionNode


class ComposedDocument(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    document: DocumentNode

    @property
    def definition_names(self) -> list[str]:
        return [definition.name.value for definition in self.document.definitions if definition.name is not None]

    @property
    def text(self) -> str:
        return print_ast(self.document)


class QueryInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    requires_variables: bool = False


class StoreReference(BaseModel):
    """Where the generated store for an operation comes from.

    Without an index the store is imported by its conventional name; with an
    index it is the matching member of the route's exported load list.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    index: int | None = None

    @property
    def from_load_list(self) -> bool:
        return self.index is not None


class QueryTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    requires_variables: bool = False
    reference: StoreReference


class ExtractedQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    requires_variables: bool = False
    syntactic_parent: str


class RouteDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    filepath: Path
    is_component_document: bool = False
    is_route_script: bool = False


class LoadHook(str, Enum):
    BEFORE = "before"
    AFTER = "after"

    @property
    def export_name(self) -> str:
        return f"{self.value}Load"


class LoadEntry(BaseModel):
    """One raw entry of a route's exported load list."""

    document: str | None = None
    kind: str | None = None
    name: str | None = None
    variables: bool = False


class ModuleMetadata(BaseModel):
    exports: list[str] = Field(default_factory=list)
    load: list[LoadEntry] | None = None
    complete: bool = True


class PageScriptInfo(BaseModel):
    exported_names: frozenset[str] = frozenset()
    explicit_load_list: list[QueryInfo] = Field(default_factory=list)

    @property
    def hooks(self) -> set[LoadHook]:
        return {hook for hook in LoadHook if hook.export_name in self.exported_names}


class RouteMetadata(BaseModel):
    targets: list[QueryTarget] = Field(default_factory=list)
    script_info: PageScriptInfo = Field(default_factory=PageScriptInfo)
    watch_files: list[Path] = Field(default_factory=list)


class TransformResult(BaseModel):
    filepath: Path
    changed: bool
    code: str

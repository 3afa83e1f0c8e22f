import logging
from collections.abc import Iterable, Iterator

from graphql import (
    DocumentNode,
    FragmentDefinitionNode,
    GraphQLSyntaxError,
    NonNullTypeNode,
    OperationDefinitionNode,
    OperationType,
    parse,
)

from routeql.errors import DocumentParseError, DuplicateDocumentError
from routeql.models import Document, DocumentKind

logger = logging.getLogger(__name__)


def parse_document(text: str, filename: str = "<inline>") -> DocumentNode:
    try:
        return parse(text)
    except GraphQLSyntaxError as exc:
        raise DocumentParseError(filename, exc.message) from exc


def operation_requires_variables(operation: OperationDefinitionNode) -> bool:
    """An operation requires variables if a non-null variable has no default."""
    return any(
        isinstance(variable.type, NonNullTypeNode) and variable.default_value is None
        for variable in operation.variable_definitions or ()
    )


def find_query(document: DocumentNode) -> OperationDefinitionNode | None:
    for definition in document.definitions:
        if isinstance(definition, OperationDefinitionNode) and definition.operation == OperationType.QUERY:
            return definition
    return None


def documents_from_node(node: DocumentNode, filename: str) -> list[Document]:
    """Split a parsed document into one Document per top-level definition."""
    documents: list[Document] = []
    for definition in node.definitions:
        if isinstance(definition, OperationDefinitionNode):
            if definition.name is None:
                raise DocumentParseError(filename, "operations must be named")
            kind = DocumentKind.OPERATION
        elif isinstance(definition, FragmentDefinitionNode):
            kind = DocumentKind.FRAGMENT
        else:
            continue
        documents.append(Document(name=definition.name.value, kind=kind, filename=filename, definition=definition))
    return documents


def documents_from_source(text: str, filename: str) -> list[Document]:
    return documents_from_node(parse_document(text, filename), filename)


class DocumentCollection:
    """Every operation and fragment of a project, keyed by name.

    Built once before routes are processed and only read afterwards.
    """

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self._operations: dict[str, Document] = {}
        self._fragments: dict[str, Document] = {}
        for document in documents:
            self.add(document)

    def add(self, document: Document) -> None:
        registry = self._operations if document.kind is DocumentKind.OPERATION else self._fragments
        existing = registry.get(document.name)
        if existing is not None:
            raise DuplicateDocumentError(document.name, document.filename, existing.filename)
        registry[document.name] = document

    def operation(self, name: str) -> Document | None:
        return self._operations.get(name)

    def fragment(self, name: str) -> Document | None:
        return self._fragments.get(name)

    @property
    def operations(self) -> list[Document]:
        return list(self._operations.values())

    @property
    def fragments(self) -> list[Document]:
        return list(self._fragments.values())

    def __iter__(self) -> Iterator[Document]:
        yield from self._operations.values()
        yield from self._fragments.values()

    def __len__(self) -> int:
        return len(self._operations) + len(self._fragments)


def collect_documents(sources: Iterable[tuple[str, str | DocumentNode]]) -> DocumentCollection:
    """Build a collection from ``(filename, text-or-parsed)`` pairs.

    Unparseable sources and duplicate names are logged and skipped.
    """
    collection = DocumentCollection()
    for filename, source in sources:
        try:
            if isinstance(source, DocumentNode):
                documents = documents_from_node(source, filename)
            else:
                documents = documents_from_source(source, filename)
        except DocumentParseError as exc:
            logger.error("%s", exc)
            continue
        for document in documents:
            try:
                collection.add(document)
            except DuplicateDocumentError as exc:
                logger.error("%s", exc)
    return collection

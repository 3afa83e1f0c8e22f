"""Compose each operation with the fragments it transitively spreads."""

import logging
from collections import deque
from typing import Any

from graphql import DocumentNode, FragmentSpreadNode, Node, Visitor, visit

from routeql.core.documents import DocumentCollection
from routeql.errors import CompositionError, FragmentCycleError, MissingFragmentError
from routeql.models import ComposedDocument, Document

logger = logging.getLogger(__name__)


class _FragmentSpreads(Visitor):
    def __init__(self) -> None:
        super().__init__()
        self.names: list[str] = []

    def enter_fragment_spread(self, node: FragmentSpreadNode, *_args: Any) -> None:
        name = node.name.value
        if name not in self.names:
            self.names.append(name)


def fragment_spreads(node: Node) -> list[str]:
    """Names of the fragments spread anywhere inside ``node``, in source order."""
    collector = _FragmentSpreads()
    visit(node, collector)
    return collector.names


def _check_acyclic(graph: dict[str, list[str]]) -> None:
    visiting: list[str] = []
    done: set[str] = set()

    def walk(name: str) -> None:
        if name in done:
            return
        if name in visiting:
            raise FragmentCycleError([*visiting[visiting.index(name) :], name])
        visiting.append(name)
        for dependency in graph.get(name, ()):
            walk(dependency)
        visiting.pop()
        done.add(name)

    for name in graph:
        walk(name)


def compose_document(operation: Document, documents: DocumentCollection) -> ComposedDocument:
    """Return ``operation`` extended with its transitive fragment closure.

    Fragments are visited breadth-first from the operation's own spreads and
    appear after the operation in first-visited order, each exactly once.
    """
    included: dict[str, Document] = {}
    graph: dict[str, list[str]] = {}
    queue = deque((name, operation.name) for name in fragment_spreads(operation.definition))

    while queue:
        name, referenced_by = queue.popleft()
        if name in included:
            continue
        fragment = documents.fragment(name)
        if fragment is None:
            raise MissingFragmentError(name, referenced_by)
        included[name] = fragment
        graph[name] = fragment_spreads(fragment.definition)
        queue.extend((dependency, name) for dependency in graph[name] if dependency not in included)

    _check_acyclic(graph)

    definitions = (operation.definition, *(fragment.definition for fragment in included.values()))
    return ComposedDocument(name=operation.name, document=DocumentNode(definitions=definitions))


def compose_documents(documents: DocumentCollection) -> dict[str, ComposedDocument]:
    composed: dict[str, ComposedDocument] = {}
    for operation in documents.operations:
        try:
            composed[operation.name] = compose_document(operation, documents)
        except CompositionError as exc:
            logger.error("could not compose %s (%s): %s", operation.name, operation.filename, exc)
    return composed

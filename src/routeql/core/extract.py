"""Find query-language literals embedded in scripts and components."""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from graphql import DocumentNode, OperationDefinitionNode, OperationType
from tree_sitter import Node

from routeql.core.ast import Component, Script, iter_nodes
from routeql.core.documents import operation_requires_variables, parse_document
from routeql.errors import DocumentParseError
from routeql.models import ExtractedQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphQLTag:
    text: str
    parent_type: str
    start_byte: int
    end_byte: int
    substitutions: int = 0


@dataclass(frozen=True)
class ParsedTag:
    tag: GraphQLTag
    document: DocumentNode


def tagged_template(node: Node, source: bytes, tag_names: Sequence[str]) -> GraphQLTag | None:
    """Return the literal if ``node`` is ``tag`...``` for one of ``tag_names``."""
    if node.type != "call_expression":
        return None
    function = node.child_by_field_name("function")
    arguments = node.child_by_field_name("arguments")
    if function is None or arguments is None or arguments.type != "template_string":
        return None
    if function.type != "identifier" or source[function.start_byte : function.end_byte].decode() not in tag_names:
        return None

    parent = node.parent
    parent_type = parent.type if parent is not None else "program"
    # tree-sitter nests call arguments one level deeper than the call itself
    if parent is not None and parent.type == "arguments" and parent.parent is not None:
        parent_type = parent.parent.type

    return GraphQLTag(
        text=source[arguments.start_byte + 1 : arguments.end_byte - 1].decode("utf-8"),
        parent_type=parent_type,
        start_byte=node.start_byte,
        end_byte=node.end_byte,
        substitutions=sum(1 for child in arguments.children if child.type == "template_substitution"),
    )


def iter_graphql_tags(script: Script, tag_names: Sequence[str]) -> Iterator[GraphQLTag]:
    root = script.root
    if root is None:
        return
    for node in iter_nodes(root):
        tag = tagged_template(node, script.source, tag_names)
        if tag is not None:
            yield tag


def _scripts(target: Script | Component) -> list[Script]:
    if isinstance(target, Component):
        return [block.script for block in target.blocks]
    return [target]


def walk_graphql_tags(target: Script | Component, tag_names: Sequence[str], filename: str) -> list[ParsedTag]:
    """Parse every tagged literal in ``target``.

    Literals that fail to parse are logged and skipped so the rest of the
    file is still processed.
    """
    parsed: list[ParsedTag] = []
    for script in _scripts(target):
        for tag in iter_graphql_tags(script, tag_names):
            if tag.substitutions:
                logger.error("error in %s: graphql documents cannot contain template substitutions", filename)
                continue
            try:
                document = parse_document(tag.text, filename)
            except DocumentParseError as exc:
                logger.error("%s", exc)
                continue
            parsed.append(ParsedTag(tag=tag, document=document))
    return parsed


def find_inline_queries(target: Script | Component, tag_names: Sequence[str], filename: str) -> list[ExtractedQuery]:
    """Queries declared and used immediately, e.g. ``query(graphql`...`)``."""
    queries: list[ExtractedQuery] = []
    for parsed in walk_graphql_tags(target, tag_names, filename):
        if not parsed.document.definitions:
            continue
        operation = parsed.document.definitions[0]
        if not isinstance(operation, OperationDefinitionNode) or operation.operation != OperationType.QUERY:
            continue
        if parsed.tag.parent_type != "call_expression":
            continue
        if operation.name is None:
            logger.error("error in %s: inline queries must be named", filename)
            continue
        queries.append(
            ExtractedQuery(
                name=operation.name.value,
                requires_variables=operation_requires_variables(operation),
                syntactic_parent=parsed.tag.parent_type,
            )
        )
    return queries

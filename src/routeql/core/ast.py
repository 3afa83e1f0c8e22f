from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

from tree_sitter import Node, Tree
from tree_sitter_language_pack import SupportedLanguage, get_parser

from routeql.core.languages import detect_language_from_path, normalize_script_language
from routeql.js.nodes import ImportDeclaration, ImportSpecifier, RawStatement, Statement, render_statements


@dataclass
class Script:
    """A script module as an ordered list of top-level statements.

    ``tree`` and ``source`` describe the text the script was parsed from and
    stay valid for analysis; mutations only touch ``body``.
    """

    body: list[Statement] = field(default_factory=list)
    language: str = "javascript"
    source: bytes = b""
    tree: Tree | None = None

    @property
    def root(self) -> Node | None:
        return self.tree.root_node if self.tree is not None else None

    def imports(self) -> list[ImportDeclaration]:
        return [statement for statement in self.body if isinstance(statement, ImportDeclaration)]

    def first_non_import_index(self) -> int:
        for index, statement in enumerate(self.body):
            if not isinstance(statement, ImportDeclaration):
                return index
        return len(self.body)

    def render(self) -> str:
        return render_statements(self.body)


@dataclass
class ScriptBlock:
    script: Script
    attributes: dict[str, str | None] = field(default_factory=dict)
    content_start: int | None = None
    content_end: int | None = None

    @property
    def is_module(self) -> bool:
        return self.attributes.get("context") == "module" or "module" in self.attributes


@dataclass
class Component:
    """A markup component document with its instance and module scripts."""

    source: bytes
    instance: ScriptBlock | None = None
    module: ScriptBlock | None = None

    @property
    def blocks(self) -> list[ScriptBlock]:
        return [block for block in (self.module, self.instance) if block is not None]

    @property
    def script(self) -> Script:
        """The instance script, created empty when the component has none."""
        if self.instance is None:
            self.instance = ScriptBlock(script=Script())
        return self.instance.script

    def render(self) -> str:
        source = self.source.decode("utf-8")
        if self.instance is None:
            return source
        rendered = self.instance.script.render()
        start, end = self.instance.content_start, self.instance.content_end
        if start is None or end is None:
            return f"<script>\n{rendered}\n</script>\n\n{source}"
        head = self.source[:start].decode("utf-8")
        tail = self.source[end:].decode("utf-8")
        return f"{head}\n{rendered}\n{tail}"


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8")


def string_value(node: Node, source: bytes) -> str:
    """Return the contents of a string or identifier node without quotes."""
    text = node_text(node, source)
    if node.type == "string" and len(text) >= 2:
        return text[1:-1]
    return text


def iter_nodes(root: Node) -> Iterator[Node]:
    """Yield ``root`` and its descendants in source order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


# ---------------------------------------------------------------------------
# Script parsing
# ---------------------------------------------------------------------------


def _parse_import(node: Node, source: bytes) -> ImportDeclaration:
    source_node = node.child_by_field_name("source")
    declaration = ImportDeclaration(
        source=string_value(source_node, source) if source_node is not None else "",
        raw=node_text(node, source),
    )
    for child in node.named_children:
        if child.type != "import_clause":
            continue
        for clause in child.named_children:
            if clause.type == "identifier":
                declaration.default = node_text(clause, source)
            elif clause.type == "namespace_import":
                for name in clause.named_children:
                    declaration.namespace = node_text(name, source)
            elif clause.type == "named_imports":
                for specifier in clause.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    name = specifier.child_by_field_name("name")
                    alias = specifier.child_by_field_name("alias")
                    if name is None:
                        continue
                    imported = string_value(name, source)
                    local = node_text(alias, source) if alias is not None else imported
                    declaration.specifiers.append(ImportSpecifier(imported=imported, local=local))
    return declaration


def parse_script(source: str | bytes, language: str | None = "javascript") -> Script:
    source_bytes = source.encode("utf-8") if isinstance(source, str) else source
    resolved = normalize_script_language(language)
    parser = get_parser(cast(SupportedLanguage, resolved))
    tree = parser.parse(source_bytes)

    body: list[Statement] = []
    for node in tree.root_node.named_children:
        if node.type == "import_statement":
            body.append(_parse_import(node, source_bytes))
        else:
            body.append(RawStatement(text=node_text(node, source_bytes), kind=node.type))

    return Script(body=body, language=resolved, source=source_bytes, tree=tree)


# ---------------------------------------------------------------------------
# Component parsing
# ---------------------------------------------------------------------------


def _tag_attributes(start_tag: Node, source: bytes) -> dict[str, str | None]:
    attributes: dict[str, str | None] = {}
    for attribute in start_tag.named_children:
        if attribute.type != "attribute":
            continue
        name: str | None = None
        value: str | None = None
        for part in attribute.named_children:
            if part.type == "attribute_name":
                name = node_text(part, source)
            elif part.type == "attribute_value":
                value = node_text(part, source)
            elif part.type == "quoted_attribute_value":
                value = "".join(node_text(v, source) for v in part.named_children if v.type == "attribute_value")
        if name:
            attributes[name] = value
    return attributes


def parse_component(source: str | bytes) -> Component:
    source_bytes = source.encode("utf-8") if isinstance(source, str) else source
    tree = get_parser("html").parse(source_bytes)
    component = Component(source=source_bytes)

    for node in iter_nodes(tree.root_node):
        if node.type != "script_element":
            continue
        start_tag = next((child for child in node.children if child.type == "start_tag"), None)
        if start_tag is None:
            continue
        end_tag = next((child for child in node.children if child.type == "end_tag"), None)
        content_start = start_tag.end_byte
        content_end = end_tag.start_byte if end_tag is not None else node.end_byte
        attributes = _tag_attributes(start_tag, source_bytes)

        block = ScriptBlock(
            script=parse_script(source_bytes[content_start:content_end], attributes.get("lang")),
            attributes=attributes,
            content_start=content_start,
            content_end=content_end,
        )
        if block.is_module:
            component.module = component.module or block
        else:
            component.instance = component.instance or block

    return component


def parse_file(path: Path) -> Script | Component:
    file_path = Path(path)
    try:
        source_bytes = file_path.read_bytes()
    except FileNotFoundError:
        raise FileNotFoundError(f"File not found: {path}") from None

    language = detect_language_from_path(file_path)
    if language == "svelte":
        return parse_component(source_bytes)
    return parse_script(source_bytes, language)

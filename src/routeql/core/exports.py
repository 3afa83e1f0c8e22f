"""Static inspection of a route script's exports.

Reads export names and the ``houdini_load`` list straight from the parsed
tree so the module does not have to be executed. When the answer depends on
something the tree cannot show (``export *``, a load entry built at runtime)
``read_module_metadata`` still returns the names it found but marks the
result incomplete, and the caller falls back to evaluating the module.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tree_sitter import Node

from routeql.config import Config
from routeql.core.ast import Script, node_text, string_value
from routeql.core.documents import DocumentCollection, operation_requires_variables
from routeql.core.extract import tagged_template
from routeql.models import LoadEntry, ModuleMetadata

COMPILED_QUERY_KIND = "HoudiniQuery"
LOAD_EXPORT = "houdini_load"

_NAMED_DECLARATIONS = {
    "abstract_class_declaration",
    "class_declaration",
    "enum_declaration",
    "function_declaration",
    "function_signature",
    "generator_function_declaration",
}
_VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}
_TRANSPARENT_EXPRESSIONS = {"as_expression", "parenthesized_expression", "satisfies_expression"}
_MAX_BINDING_DEPTH = 8


class _Undetermined(Exception):
    pass


@dataclass
class _ModuleScope:
    exports: list[str] = field(default_factory=list)
    bindings: dict[str, Node] = field(default_factory=dict)
    imports: dict[str, tuple[str, str]] = field(default_factory=dict)
    export_locals: dict[str, str] = field(default_factory=dict)
    reexports: set[str] = field(default_factory=set)
    complete: bool = True


def _pattern_names(node: Node, source: bytes) -> list[str]:
    if node.type in ("identifier", "shorthand_property_identifier_pattern"):
        return [node_text(node, source)]
    if node.type == "pair_pattern":
        value = node.child_by_field_name("value")
        return _pattern_names(value, source) if value is not None else []
    if node.type in ("assignment_pattern", "object_assignment_pattern"):
        left = node.child_by_field_name("left")
        return _pattern_names(left, source) if left is not None else []
    if node.type in ("object_pattern", "array_pattern", "rest_pattern"):
        names: list[str] = []
        for child in node.named_children:
            names.extend(_pattern_names(child, source))
        return names
    return []


def _record_variables(declaration: Node, source: bytes, scope: _ModuleScope) -> list[str]:
    names: list[str] = []
    for declarator in declaration.named_children:
        if declarator.type != "variable_declarator":
            continue
        name = declarator.child_by_field_name("name")
        value = declarator.child_by_field_name("value")
        if name is None:
            continue
        if name.type == "identifier" and value is not None:
            scope.bindings[node_text(name, source)] = value
        names.extend(_pattern_names(name, source))
    return names


def _record_import(node: Node, source: bytes, scope: _ModuleScope) -> None:
    source_node = node.child_by_field_name("source")
    if source_node is None:
        return
    module = string_value(source_node, source)
    for clause in node.named_children:
        if clause.type != "import_clause":
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                scope.imports[node_text(part, source)] = (module, "default")
            elif part.type == "named_imports":
                for specifier in part.named_children:
                    name = specifier.child_by_field_name("name")
                    if specifier.type != "import_specifier" or name is None:
                        continue
                    alias = specifier.child_by_field_name("alias")
                    imported = string_value(name, source)
                    local = node_text(alias, source) if alias is not None else imported
                    scope.imports[local] = (module, imported)


def _record_export(node: Node, source: bytes, scope: _ModuleScope) -> None:
    if any(child.type == "default" for child in node.children):
        scope.exports.append("default")
        return

    declaration = node.child_by_field_name("declaration")
    if declaration is not None:
        if declaration.type in _VARIABLE_DECLARATIONS:
            scope.exports.extend(_record_variables(declaration, source, scope))
        elif declaration.type in _NAMED_DECLARATIONS:
            name = declaration.child_by_field_name("name")
            if name is not None:
                scope.exports.append(node_text(name, source))
        return

    from_module = node.child_by_field_name("source")
    for child in node.named_children:
        if child.type == "namespace_export":
            scope.exports.extend(string_value(name, source) for name in child.named_children)
            return
        if child.type == "export_clause":
            for specifier in child.named_children:
                name = specifier.child_by_field_name("name")
                if specifier.type != "export_specifier" or name is None:
                    continue
                alias = specifier.child_by_field_name("alias")
                exported = string_value(alias if alias is not None else name, source)
                scope.exports.append(exported)
                if from_module is None:
                    scope.export_locals[exported] = string_value(name, source)
                else:
                    scope.reexports.add(exported)
            return

    if any(child.type == "*" for child in node.children):
        scope.complete = False


class _LoadListReader:
    def __init__(self, script: Script, scope: _ModuleScope, config: Config, documents: DocumentCollection | None):
        self._source = script.source
        self._scope = scope
        self._config = config
        self._documents = documents

    def read(self) -> list[LoadEntry]:
        if LOAD_EXPORT in self._scope.reexports:
            raise _Undetermined
        local = self._scope.export_locals.get(LOAD_EXPORT, LOAD_EXPORT)
        value = self._scope.bindings.get(local)
        if value is None:
            raise _Undetermined
        value = self._unwrap(value)
        if value.type == "array":
            return [self._entry(element, 0) for element in value.named_children if element.type != "comment"]
        return [self._entry(value, 0)]

    @staticmethod
    def _unwrap(node: Node) -> Node:
        while node.type in _TRANSPARENT_EXPRESSIONS and node.named_children:
            node = node.named_children[0]
        return node

    def _entry(self, node: Node, depth: int) -> LoadEntry:
        node = self._unwrap(node)
        tag = tagged_template(node, self._source, self._config.graphql_tags)
        if tag is not None:
            if tag.substitutions:
                raise _Undetermined
            return LoadEntry(document=tag.text)

        if node.type != "identifier" or depth > _MAX_BINDING_DEPTH:
            raise _Undetermined
        name = node_text(node, self._source)

        if name in self._scope.bindings:
            return self._entry(self._scope.bindings[name], depth + 1)
        if name in self._scope.imports:
            return self._store_entry(*self._scope.imports[name])
        raise _Undetermined

    def _store_entry(self, module: str, imported: str) -> LoadEntry:
        operation = self._config.store_name_from_import(module, imported)
        document = self._documents.operation(operation) if operation and self._documents else None
        if document is None:
            raise _Undetermined
        return LoadEntry(
            kind=COMPILED_QUERY_KIND,
            name=operation,
            variables=operation_requires_variables(document.definition),  # type: ignore[arg-type]
        )


def read_module_metadata(
    script: Script, config: Config, documents: DocumentCollection | None = None
) -> ModuleMetadata:
    """Return the module's export names and raw load list.

    ``complete`` is false when a star re-export or an unresolvable load entry
    hides part of the answer; the names found so far are still reported.
    """
    root = script.root
    if root is None:
        return ModuleMetadata()

    scope = _ModuleScope()
    for node in root.named_children:
        if node.type == "import_statement":
            _record_import(node, script.source, scope)
        elif node.type in _VARIABLE_DECLARATIONS:
            _record_variables(node, script.source, scope)
        elif node.type == "export_statement":
            _record_export(node, script.source, scope)

    load = None
    if LOAD_EXPORT in scope.exports:
        try:
            load = _LoadListReader(script, scope, config, documents).read()
        except _Undetermined:
            scope.complete = False

    return ModuleMetadata(exports=scope.exports, load=load, complete=scope.complete)


def declared_names(script: Script) -> set[str]:
    """Names bound by the script's top-level declarations, exported or not."""
    root = script.root
    if root is None:
        return set()

    names: set[str] = set()
    for node in root.named_children:
        if node.type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is None:
                continue
            node = declaration
        if node.type in _VARIABLE_DECLARATIONS:
            names.update(_record_variables(node, script.source, _ModuleScope()))
        elif node.type in _NAMED_DECLARATIONS:
            name = node.child_by_field_name("name")
            if name is not None:
                names.add(node_text(name, script.source))
    return names

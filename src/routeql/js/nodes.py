"""Small JavaScript syntax nodes used to build the code injected into routes.

Statements that already exist in a parsed script are kept verbatim as
``RawStatement`` (or ``ImportDeclaration`` with ``raw`` set); generated
statements are node objects that render themselves to source text.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, field

_INDENT = "    "


def _pad(indent: int) -> str:
    return _INDENT * indent


class Node:
    def render(self, indent: int = 0) -> str:
        raise NotImplementedError


class Expression(Node):
    pass


class Statement(Node):
    pass


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass
class Identifier(Expression):
    name: str

    def render(self, indent: int = 0) -> str:
        return self.name


@dataclass
class Literal(Expression):
    value: str | int | float | bool | None

    def render(self, indent: int = 0) -> str:
        return json.dumps(self.value)


@dataclass
class MemberExpression(Expression):
    object: Expression
    property: Expression
    computed: bool = False

    def render(self, indent: int = 0) -> str:
        target = self.object.render(indent)
        if self.computed:
            return f"{target}[{self.property.render(indent)}]"
        return f"{target}.{self.property.render(indent)}"


@dataclass
class ObjectProperty(Node):
    key: Expression
    value: Expression

    def render(self, indent: int = 0) -> str:
        return f"{self.key.render(indent)}: {self.value.render(indent)}"


@dataclass
class SpreadElement(Expression):
    argument: Expression

    def render(self, indent: int = 0) -> str:
        return f"...{self.argument.render(indent)}"


@dataclass
class ObjectExpression(Expression):
    properties: list[ObjectProperty | SpreadElement] = field(default_factory=list)

    def render(self, indent: int = 0) -> str:
        if not self.properties:
            return "{}"
        inner = ",\n".join(_pad(indent + 1) + prop.render(indent + 1) for prop in self.properties)
        return "{\n" + inner + "\n" + _pad(indent) + "}"


@dataclass
class ArrayExpression(Expression):
    elements: list[Expression] = field(default_factory=list)

    def render(self, indent: int = 0) -> str:
        return "[" + ", ".join(element.render(indent) for element in self.elements) + "]"


@dataclass
class CallExpression(Expression):
    callee: Expression
    arguments: list[Expression] = field(default_factory=list)

    def render(self, indent: int = 0) -> str:
        args = ", ".join(arg.render(indent) for arg in self.arguments)
        return f"{self.callee.render(indent)}({args})"


@dataclass
class NewExpression(Expression):
    callee: Expression
    arguments: list[Expression] = field(default_factory=list)

    def render(self, indent: int = 0) -> str:
        args = ", ".join(arg.render(indent) for arg in self.arguments)
        return f"new {self.callee.render(indent)}({args})"


@dataclass
class AwaitExpression(Expression):
    argument: Expression

    def render(self, indent: int = 0) -> str:
        return f"await {self.argument.render(indent)}"


@dataclass
class AssignmentExpression(Expression):
    operator: str
    left: Expression
    right: Expression

    def render(self, indent: int = 0) -> str:
        return f"{self.left.render(indent)} {self.operator} {self.right.render(indent)}"


@dataclass
class LogicalExpression(Expression):
    operator: str
    left: Expression
    right: Expression

    def render(self, indent: int = 0) -> str:
        return f"{self.left.render(indent)} {self.operator} {self.right.render(indent)}"


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass
class ExpressionStatement(Statement):
    expression: Expression

    def render(self, indent: int = 0) -> str:
        return f"{self.expression.render(indent)};"


@dataclass
class VariableDeclaration(Statement):
    kind: str
    id: Identifier
    init: Expression

    def render(self, indent: int = 0) -> str:
        return f"{self.kind} {self.id.render(indent)} = {self.init.render(indent)};"


@dataclass
class ReturnStatement(Statement):
    argument: Expression

    def render(self, indent: int = 0) -> str:
        return f"return {self.argument.render(indent)};"


@dataclass
class LabeledStatement(Statement):
    label: str
    body: Statement

    def render(self, indent: int = 0) -> str:
        return f"{self.label}: {self.body.render(indent)}"


@dataclass
class FunctionDeclaration(Statement):
    name: str
    params: list[Identifier]
    body: list[Statement]
    is_async: bool = False

    def render(self, indent: int = 0) -> str:
        prefix = "async function" if self.is_async else "function"
        params = ", ".join(param.render(indent) for param in self.params)
        lines = "\n".join(_pad(indent + 1) + statement.render(indent + 1) for statement in self.body)
        return f"{prefix} {self.name}({params}) {{\n{lines}\n{_pad(indent)}}}"


@dataclass
class ExportNamedDeclaration(Statement):
    declaration: Statement

    def render(self, indent: int = 0) -> str:
        return f"export {self.declaration.render(indent)}"


@dataclass
class ImportSpecifier:
    imported: str
    local: str

    def render(self) -> str:
        if self.imported == self.local:
            return self.imported
        return f"{self.imported} as {self.local}"


@dataclass
class ImportDeclaration(Statement):
    source: str
    specifiers: list[ImportSpecifier] = field(default_factory=list)
    default: str | None = None
    namespace: str | None = None
    raw: str | None = None

    def local_for(self, imported: str) -> str | None:
        for specifier in self.specifiers:
            if specifier.imported == imported:
                return specifier.local
        return None

    def locals(self) -> set[str]:
        names = {specifier.local for specifier in self.specifiers}
        if self.default:
            names.add(self.default)
        if self.namespace:
            names.add(self.namespace)
        return names

    def render(self, indent: int = 0) -> str:
        if self.raw is not None:
            return self.raw
        clauses: list[str] = []
        if self.default:
            clauses.append(self.default)
        if self.namespace:
            clauses.append(f"* as {self.namespace}")
        if self.specifiers:
            clauses.append("{ " + ", ".join(spec.render() for spec in self.specifiers) + " }")
        source = json.dumps(self.source)
        if not clauses:
            return f"import {source};"
        return f"import {', '.join(clauses)} from {source};"


@dataclass
class RawStatement(Statement):
    """A statement copied verbatim from the parsed source."""

    text: str
    kind: str = "statement"

    def render(self, indent: int = 0) -> str:
        return self.text


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def member(target: Expression, prop: str | int | Expression) -> MemberExpression:
    """Build ``target.prop`` for names and ``target[prop]`` for literals."""
    if isinstance(prop, str):
        return MemberExpression(target, Identifier(prop))
    if isinstance(prop, int):
        return MemberExpression(target, Literal(prop), computed=True)
    return MemberExpression(target, prop, computed=not isinstance(prop, Identifier))


def render_statements(statements: Sequence[Statement]) -> str:
    return "\n".join(statement.render() for statement in statements)

import logging
from collections.abc import Sequence

from routeql.config import Config
from routeql.core.ast import Component
from routeql.core.imports import ensure_import, store_import
from routeql.js.nodes import (
    AssignmentExpression,
    CallExpression,
    ExpressionStatement,
    Identifier,
    LabeledStatement,
    Literal,
    LogicalExpression,
    ObjectExpression,
    ObjectProperty,
    Statement,
    VariableDeclaration,
    member,
)
from routeql.models import QueryTarget

logger = logging.getLogger(__name__)

INPUTS_ID = "_houdini_inputs"
CONTEXT_ID = "_houdini_context_DO_NOT_USE"


def bare_input_id(name: str) -> str:
    return f"_{name}_Input"


def add_reactive_fetches(
    config: Config,
    component: Component,
    targets: Sequence[QueryTarget],
    *,
    bare: bool = False,
) -> int:
    """Re-fetch every target from the browser whenever its inputs change.

    Statements go right after the component's leading imports. In ``bare``
    mode there is no route script computing inputs, so each target gets an
    empty input object instead of a slice of ``$$props.data.inputs``.
    Returns the number of statements inserted, imports included.
    """
    script = component.script
    cursor = script.first_non_import_index()
    start = cursor

    context_import = ensure_import(script, "getHoudiniContext", config.runtime_context_path)
    browser_import = ensure_import(script, config.browser_flag, config.runtime_adapter_path)
    cursor += context_import.added + browser_import.added

    store_ids: dict[str, str] = {}
    for target in targets:
        result = store_import(config, script, target.name)
        cursor += result.added
        store_ids[target.name] = result.id

    statements: list[Statement] = []
    if not bare:
        statements.append(
            LabeledStatement(
                "$",
                ExpressionStatement(
                    AssignmentExpression(
                        "=", Identifier(INPUTS_ID), member(member(Identifier("$$props"), "data"), "inputs")
                    )
                ),
            )
        )
    statements.append(
        VariableDeclaration("const", Identifier(CONTEXT_ID), CallExpression(Identifier(context_import.id)))
    )

    if bare:
        declared: set[str] = set()
        for target in targets:
            if target.name in declared:
                continue
            declared.add(target.name)
            statements.append(VariableDeclaration("const", Identifier(bare_input_id(target.name)), ObjectExpression()))

    for target in targets:
        variables = (
            Identifier(bare_input_id(target.name)) if bare else member(Identifier(INPUTS_ID), Literal(target.name))
        )
        fetch = CallExpression(
            member(Identifier(store_ids[target.name]), "fetch"),
            [
                ObjectExpression(
                    [
                        ObjectProperty(Identifier("context"), Identifier(CONTEXT_ID)),
                        ObjectProperty(Identifier("variables"), variables),
                    ]
                )
            ],
        )
        statements.append(
            LabeledStatement("$", ExpressionStatement(LogicalExpression("&&", Identifier(browser_import.id), fetch)))
        )

    script.body[cursor:cursor] = statements
    logger.debug("Injected %d reactive fetches", len(targets))
    return cursor - start + len(statements)

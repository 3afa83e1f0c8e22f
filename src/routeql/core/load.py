"""Synthesize the ``load`` function a route script exports.

The function body is assembled from named slots that always render in the
same order, so adding imports to the script never shifts generated code.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from routeql.config import Config
from routeql.core.ast import Script
from routeql.core.exports import LOAD_EXPORT
from routeql.core.imports import ensure_default_import, ensure_import, store_import
from routeql.core.resolve import query_variable_fn
from routeql.js.nodes import (
    ArrayExpression,
    AssignmentExpression,
    AwaitExpression,
    CallExpression,
    ExportNamedDeclaration,
    Expression,
    ExpressionStatement,
    FunctionDeclaration,
    Identifier,
    Literal,
    NewExpression,
    ObjectExpression,
    ObjectProperty,
    ReturnStatement,
    SpreadElement,
    Statement,
    VariableDeclaration,
    member,
)
from routeql.models import LoadHook, PageScriptInfo, QueryTarget

logger = logging.getLogger(__name__)

LOAD_FUNCTION = "load"

_CONTEXT = Identifier("houdini_context")
_EVENT = Identifier("context")
_INPUTS = Identifier("inputs")
_PROMISES = Identifier("promises")
_RESULT = Identifier("result")


def _prop(key: str, value: Expression) -> ObjectProperty:
    return ObjectProperty(Identifier(key), value)


@dataclass
class LoadFunctionPlan:
    context_init: list[Statement] = field(default_factory=list)
    before_hook: list[Statement] = field(default_factory=list)
    declarations: list[Statement] = field(default_factory=list)
    fetches: list[Statement] = field(default_factory=list)
    join: list[Statement] = field(default_factory=list)
    after_hook: list[Statement] = field(default_factory=list)
    returns: list[Statement] = field(default_factory=list)

    def statements(self) -> list[Statement]:
        return [
            *self.context_init,
            *self.before_hook,
            *self.declarations,
            *self.fetches,
            *self.join,
            *self.after_hook,
            *self.returns,
        ]

    def build(self) -> ExportNamedDeclaration:
        return ExportNamedDeclaration(
            FunctionDeclaration(name=LOAD_FUNCTION, params=[_EVENT], body=self.statements(), is_async=True)
        )


def missing_variable_functions(targets: Sequence[QueryTarget], script_info: PageScriptInfo) -> list[str]:
    missing: list[str] = []
    for target in targets:
        variable_fn = query_variable_fn(target.name)
        if target.requires_variables and variable_fn not in script_info.exported_names and variable_fn not in missing:
            missing.append(variable_fn)
    return missing


def _store_expression(config: Config, script: Script, target: QueryTarget) -> Expression:
    if target.reference.index is not None:
        return member(Identifier(LOAD_EXPORT), target.reference.index)
    return Identifier(store_import(config, script, target.reference.name).id)


def _hook_statement(hook: LoadHook, targets: Sequence[QueryTarget]) -> Statement:
    properties = [
        _prop("variant", Literal(hook.value)),
        _prop("hookFn", Identifier(hook.export_name)),
    ]
    if hook is LoadHook.AFTER:
        data = ObjectExpression(
            [ObjectProperty(Literal(target.name), member(_RESULT, index)) for index, target in enumerate(targets)]
        )
        properties += [_prop("input", _INPUTS), _prop("data", data)]
    call = CallExpression(member(_CONTEXT, "invokeLoadHook"), [ObjectExpression(properties)])
    return ExpressionStatement(AwaitExpression(call))


def plan_load_function(
    targets: Sequence[QueryTarget],
    script_info: PageScriptInfo,
    stores: Sequence[Expression],
    request_context: str = "RequestContext",
    runtime_config: str = "houdiniConfig",
) -> LoadFunctionPlan:
    """Lay out the load function for ``targets`` whose stores are ``stores``."""
    hooks = script_info.hooks
    # every fetch blocks as soon as the route has an afterLoad hook
    blocking = LoadHook.AFTER in hooks
    plan = LoadFunctionPlan()

    plan.context_init.append(
        VariableDeclaration("const", _CONTEXT, NewExpression(Identifier(request_context), [_EVENT]))
    )
    if LoadHook.BEFORE in hooks:
        plan.before_hook.append(_hook_statement(LoadHook.BEFORE, targets))

    plan.declarations += [
        VariableDeclaration("const", _INPUTS, ObjectExpression()),
        VariableDeclaration("const", _PROMISES, ArrayExpression()),
    ]

    for target, store in zip(targets, stores):
        variable_fn = query_variable_fn(target.name)
        value: Expression = ObjectExpression()
        if variable_fn in script_info.exported_names:
            value = CallExpression(
                member(_CONTEXT, "computeInput"),
                [
                    ObjectExpression(
                        [
                            _prop("config", Identifier(runtime_config)),
                            _prop("variableFunction", Identifier(variable_fn)),
                            _prop("artifact", member(store, "artifact")),
                        ]
                    )
                ],
            )
        target_inputs = member(_INPUTS, Literal(target.name))
        fetch = CallExpression(
            member(store, "fetch"),
            [
                ObjectExpression(
                    [
                        _prop("variables", target_inputs),
                        _prop("event", _EVENT),
                        _prop("blocking", Literal(blocking)),
                    ]
                )
            ],
        )
        plan.fetches += [
            ExpressionStatement(AssignmentExpression("=", target_inputs, value)),
            ExpressionStatement(CallExpression(member(_PROMISES, "push"), [fetch])),
        ]

    plan.join.append(
        VariableDeclaration(
            "const", _RESULT, AwaitExpression(CallExpression(member(Identifier("Promise"), "all"), [_PROMISES]))
        )
    )
    if LoadHook.AFTER in hooks:
        plan.after_hook.append(_hook_statement(LoadHook.AFTER, targets))

    plan.returns.append(
        ReturnStatement(ObjectExpression([SpreadElement(member(_CONTEXT, "returnValue")), _prop("inputs", _INPUTS)]))
    )
    return plan


def add_load(
    config: Config,
    script: Script,
    targets: Sequence[QueryTarget],
    script_info: PageScriptInfo,
    filepath: Path | str,
) -> bool:
    """Append ``export async function load(context)`` to a route script.

    Returns ``False`` and leaves the script untouched when the route already
    exports ``load``, has nothing to load, or is missing a variable function
    one of its queries needs.
    """
    if LOAD_FUNCTION in script_info.exported_names:
        logger.debug("%s already exports load", filepath)
        return False
    if not targets and not script_info.hooks:
        return False

    missing = missing_variable_functions(targets, script_info)
    for variable_fn in missing:
        logger.error(
            "error in %s: could not find required variable function: %s. maybe its not exported?",
            filepath,
            variable_fn,
        )
    if missing:
        return False

    request_context = ensure_import(script, "RequestContext", config.runtime_network_path).id
    runtime_config = "houdiniConfig"
    if any(query_variable_fn(target.name) in script_info.exported_names for target in targets):
        runtime_config = ensure_default_import(script, runtime_config, config.runtime_config_path).id
    stores = [_store_expression(config, script, target) for target in targets]

    plan = plan_load_function(targets, script_info, stores, request_context, runtime_config)
    script.body.append(plan.build())
    logger.debug("Added load to %s for %d queries", filepath, len(targets))
    return True

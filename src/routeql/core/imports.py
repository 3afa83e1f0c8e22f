from collections.abc import Sequence
from dataclasses import dataclass

from routeql.config import Config
from routeql.core.ast import Script
from routeql.core.exports import declared_names
from routeql.js.nodes import ImportDeclaration, ImportSpecifier


@dataclass(frozen=True)
class ImportResult:
    ids: tuple[str, ...]
    added: int

    @property
    def id(self) -> str:
        return self.ids[0]


def _allocate(name: str, taken: set[str]) -> str:
    if name not in taken:
        return name
    suffix = 1
    while f"{name}_{suffix}" in taken:
        suffix += 1
    return f"{name}_{suffix}"


def _bound_names(script: Script) -> set[str]:
    names = declared_names(script)
    for declaration in script.imports():
        names |= declaration.locals()
    return names


def ensure_imports(script: Script, names: Sequence[str], source: str) -> ImportResult:
    """Make every name in ``names`` importable from ``source``.

    Names already imported from ``source`` keep their existing local
    identifier. Missing ones are added in a single declaration prepended to
    the script; a local name already bound by an import or a top-level
    declaration gets a numbered alias.
    """
    declarations = [declaration for declaration in script.imports() if declaration.source == source]
    taken = _bound_names(script)
    pending: list[ImportSpecifier] = []
    ids: list[str] = []

    for name in names:
        local = next((d.local_for(name) for d in declarations if d.local_for(name)), None)
        if local is None:
            local = next((spec.local for spec in pending if spec.imported == name), None)
        if local is None:
            local = _allocate(name, taken)
            taken.add(local)
            pending.append(ImportSpecifier(imported=name, local=local))
        ids.append(local)

    if pending:
        script.body.insert(0, ImportDeclaration(source=source, specifiers=pending))
    return ImportResult(ids=tuple(ids), added=1 if pending else 0)


def ensure_import(script: Script, name: str, source: str) -> ImportResult:
    return ensure_imports(script, [name], source)


def ensure_default_import(script: Script, name: str, source: str) -> ImportResult:
    for declaration in script.imports():
        if declaration.source == source and declaration.default:
            return ImportResult(ids=(declaration.default,), added=0)

    local = _allocate(name, _bound_names(script))
    script.body.insert(0, ImportDeclaration(source=source, default=local))
    return ImportResult(ids=(local,), added=1)


def store_import(config: Config, script: Script, operation: str) -> ImportResult:
    """Import the generated store for ``operation`` under its conventional name."""
    return ensure_import(script, config.store_name(operation), config.store_import_path(operation))

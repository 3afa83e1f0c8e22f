from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from routeql.errors import IntrospectionError
from routeql.models import ModuleMetadata

logger = logging.getLogger(__name__)

_MODULE_NOT_FOUND = "ERR_MODULE_NOT_FOUND"

# Evaluated by node as an ES module. Prints the module's export names and a
# JSON-safe view of its load list.
_INTROSPECT_SCRIPT = """
import { pathToFileURL } from "node:url";

const mod = await import(pathToFileURL(process.env.ROUTEQL_MODULE_PATH).href);
let load = mod.houdini_load;
if (load !== undefined && !Array.isArray(load)) {
    load = [load];
}
const entries = load === undefined ? null : load.map((entry) =>
    typeof entry === "string"
        ? { document: entry }
        : { kind: entry?.kind ?? null, name: entry?.name ?? null, variables: Boolean(entry?.variables) }
);
process.stdout.write(JSON.stringify({ exports: Object.keys(mod), load: entries }));
"""


class NodeModuleLoader:
    """Evaluate a route script with Node.js to read its exports.

    Implements the ``ModuleLoader`` protocol. Only used when static analysis
    of the script cannot answer; evaluating the module runs its top-level code.
    """

    def __init__(self, node_command: str = "node", timeout: float = 10.0) -> None:
        self._node_command = node_command
        self._timeout = timeout

    async def load(self, path: Path) -> ModuleMetadata:
        resolved = Path(path).resolve()
        try:
            process = await asyncio.create_subprocess_exec(
                self._node_command,
                "--input-type=module",
                "--eval",
                _INTROSPECT_SCRIPT,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, "ROUTEQL_MODULE_PATH": str(resolved)},
            )
        except FileNotFoundError as exc:
            raise IntrospectionError(resolved, f"{self._node_command} is not installed") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        except TimeoutError:
            process.kill()
            await process.wait()
            raise IntrospectionError(resolved, f"timed out after {self._timeout}s") from None

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise IntrospectionError(resolved, message, not_found=_MODULE_NOT_FOUND in message)

        try:
            metadata = ModuleMetadata.model_validate_json(stdout)
        except ValidationError as exc:
            raise IntrospectionError(resolved, f"unexpected introspection output: {exc}") from exc

        logger.debug("Introspected %s: %d export(s)", resolved, len(metadata.exports))
        return metadata

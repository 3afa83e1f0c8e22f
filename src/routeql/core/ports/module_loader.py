from pathlib import Path
from typing import Protocol

from routeql.models import ModuleMetadata


class ModuleLoader(Protocol):
    async def load(self, path: Path) -> ModuleMetadata: ...

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

from watchfiles import Change, awatch

from routeql.core.languages import is_supported_path

logger = logging.getLogger(__name__)


class WatchfilesWatcher:
    """Watch a project for route and document changes and trigger a callback.

    Implements the ``ChangeWatcher`` protocol. Deleted files are reported too,
    so the callback can drop whatever it derived from them.
    """

    def __init__(
        self,
        directory: str | Path,
        on_change: Callable[[set[Path]], Coroutine[Any, Any, None]],
        accept: Callable[[Path], bool] = is_supported_path,
    ) -> None:
        self._directory = Path(directory)
        self._on_change = on_change
        self._accept = accept
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watching %s for changes", self._directory)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stopped watching %s", self._directory)

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    def _relevant(self, changes: set[tuple[Change, str]]) -> set[Path]:
        return {Path(path) for _, path in changes if self._accept(Path(path))}

    async def _watch(self) -> None:
        async for changes in awatch(self._directory):
            paths = self._relevant(changes)
            if not paths:
                continue
            logger.info("Detected changes in %d file(s)", len(paths))
            try:
                await self._on_change(paths)
            except Exception:
                logger.exception("Error while handling changes in %s", self._directory)

"""Tests for the watchfiles watcher adapter."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from routeql.core.ports.watcher import ChangeWatcher
from routeql.watcher.watchfiles_adapter import WatchfilesWatcher

_AWATCH = "routeql.watcher.watchfiles_adapter.awatch"


class TestWatchfilesWatcher:
    def test_implements_protocol(self) -> None:
        watcher: ChangeWatcher = WatchfilesWatcher("/tmp", AsyncMock())
        assert watcher.running is False

    @pytest.mark.asyncio
    async def test_start_and_stop(self) -> None:
        watcher = WatchfilesWatcher("/tmp", AsyncMock())

        with patch(_AWATCH) as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            assert watcher.running is True
            await watcher.stop()

        assert watcher.running is False

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self) -> None:
        watcher = WatchfilesWatcher("/tmp", AsyncMock())
        await watcher.stop()

    @pytest.mark.asyncio
    async def test_double_start_is_noop(self) -> None:
        watcher = WatchfilesWatcher("/tmp", AsyncMock())

        with patch(_AWATCH) as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            task = watcher._task
            await watcher.start()
            assert watcher._task is task
            await watcher.stop()

    @pytest.mark.asyncio
    async def test_callback_receives_route_files(self) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher("/tmp", callback)
        changes = {
            (1, "/tmp/src/routes/+page.svelte"),
            (2, "/tmp/src/routes/+page.gql"),
            (1, "/tmp/README.md"),
            (3, "/tmp/src/routes/+page.ts"),
        }

        with patch(_AWATCH) as mock_awatch:
            mock_awatch.return_value = _single_change_iter(changes)
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_called_once()
        assert callback.call_args[0][0] == {
            Path("/tmp/src/routes/+page.svelte"),
            Path("/tmp/src/routes/+page.gql"),
            Path("/tmp/src/routes/+page.ts"),
        }

    @pytest.mark.asyncio
    async def test_callback_not_called_for_unrelated_files(self) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher("/tmp", callback)

        with patch(_AWATCH) as mock_awatch:
            mock_awatch.return_value = _single_change_iter({(1, "/tmp/readme.txt"), (2, "/tmp/Makefile")})
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_callback_errors_keep_watching(self) -> None:
        callback = AsyncMock(side_effect=RuntimeError("boom"))
        watcher = WatchfilesWatcher("/tmp", callback)

        with patch(_AWATCH) as mock_awatch:
            mock_awatch.return_value = _single_change_iter({(1, "/tmp/+page.svelte")})
            await watcher.start()
            await asyncio.sleep(0.05)
            assert watcher.running is True
            await watcher.stop()

    @pytest.mark.asyncio
    async def test_custom_filter(self) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher("/tmp", callback, accept=lambda path: path.suffix == ".gql")

        with patch(_AWATCH) as mock_awatch:
            mock_awatch.return_value = _single_change_iter({(1, "/tmp/a.gql"), (1, "/tmp/b.svelte")})
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        assert callback.call_args[0][0] == {Path("/tmp/a.gql")}


async def _empty_async_iter() -> AsyncIterator[Any]:
    """Async iterator that never yields, just blocks until cancelled."""
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
    yield  # pragma: no cover


async def _single_change_iter(changes: set[tuple[int, str]]) -> AsyncIterator[set[tuple[int, str]]]:
    """Async iterator that yields one set of changes then blocks."""
    yield changes
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return

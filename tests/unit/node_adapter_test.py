"""Tests for the Node.js module loader with the subprocess mocked out."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from routeql.core.ports.module_loader import ModuleLoader
from routeql.errors import IntrospectionError
from routeql.loader.node_adapter import NodeModuleLoader
from routeql.models import LoadEntry

_EXEC = "routeql.loader.node_adapter.asyncio.create_subprocess_exec"


def _process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.returncode = returncode
    process.wait = AsyncMock(return_value=returncode)
    return process


class TestNodeModuleLoader:
    def test_implements_protocol(self) -> None:
        loader: ModuleLoader = NodeModuleLoader()
        assert hasattr(loader, "load")

    @pytest.mark.asyncio
    async def test_parses_introspection_output(self, tmp_path: Path) -> None:
        output = b'{"exports": ["houdini_load", "afterLoad"], "load": [{"kind": "HoudiniQuery", "name": "Foo", "variables": true}]}'

        with patch(_EXEC, new=AsyncMock(return_value=_process(stdout=output))) as mock_exec:
            metadata = await NodeModuleLoader("node").load(tmp_path / "+page.js")

        assert metadata.exports == ["houdini_load", "afterLoad"]
        assert metadata.load == [LoadEntry(kind="HoudiniQuery", name="Foo", variables=True)]
        args, kwargs = mock_exec.call_args
        assert args[0] == "node"
        assert kwargs["env"]["ROUTEQL_MODULE_PATH"] == str((tmp_path / "+page.js").resolve())

    @pytest.mark.asyncio
    async def test_missing_module(self, tmp_path: Path) -> None:
        process = _process(stderr=b"Error [ERR_MODULE_NOT_FOUND]: Cannot find module", returncode=1)

        with patch(_EXEC, new=AsyncMock(return_value=process)):
            with pytest.raises(IntrospectionError) as excinfo:
                await NodeModuleLoader().load(tmp_path / "+page.js")

        assert excinfo.value.not_found is True

    @pytest.mark.asyncio
    async def test_evaluation_error(self, tmp_path: Path) -> None:
        process = _process(stderr=b"SyntaxError: Unexpected token", returncode=1)

        with patch(_EXEC, new=AsyncMock(return_value=process)):
            with pytest.raises(IntrospectionError) as excinfo:
                await NodeModuleLoader().load(tmp_path / "+page.js")

        assert excinfo.value.not_found is False
        assert "SyntaxError" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_node_not_installed(self, tmp_path: Path) -> None:
        with patch(_EXEC, new=AsyncMock(side_effect=FileNotFoundError("node"))):
            with pytest.raises(IntrospectionError, match="not installed"):
                await NodeModuleLoader("node").load(tmp_path / "+page.js")

    @pytest.mark.asyncio
    async def test_unexpected_output(self, tmp_path: Path) -> None:
        with patch(_EXEC, new=AsyncMock(return_value=_process(stdout=b"not json"))):
            with pytest.raises(IntrospectionError, match="unexpected introspection output"):
                await NodeModuleLoader().load(tmp_path / "+page.js")

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, tmp_path: Path) -> None:
        process = _process()

        async def _hang() -> tuple[bytes, bytes]:
            await asyncio.sleep(3600)
            return b"", b""

        process.communicate = _hang

        with patch(_EXEC, new=AsyncMock(return_value=process)):
            with pytest.raises(IntrospectionError, match="timed out"):
                await NodeModuleLoader(timeout=0.01).load(tmp_path / "+page.js")

        process.kill.assert_called_once()

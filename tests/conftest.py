"""Shared test fixtures for essh."""

from __future__ import annotations

import pytest
from pathlib import Path
from unittest.mock import MagicMock

from lupa import LuaRuntime

from essh.context import TaskContextBridge
from essh.modules import DirectoryModuleLoader
from essh.session import Session


@pytest.fixture
def lua():
    """A bare Lua runtime for building test tables."""
    return LuaRuntime(unpack_returned_tuples=True)


@pytest.fixture
def bridge(lua):
    """TaskContext bridge bound to the bare runtime."""
    return TaskContextBridge(lua)


@pytest.fixture
def module_dir(tmp_path):
    """Directory for local essh modules."""
    path = tmp_path / "modules"
    path.mkdir()
    return path


@pytest.fixture
def session(module_dir):
    """Session loading modules from module_dir."""
    return Session(loader=DirectoryModuleLoader([module_dir]))


@pytest.fixture
def write_module(module_dir):
    """Write a module index script: write_module(name, source)."""

    def _write(name: str, source: str) -> Path:
        index = module_dir / name / "index.lua"
        index.parent.mkdir(parents=True, exist_ok=True)
        index.write_text(source)
        return index

    return _write


@pytest.fixture
def mock_subprocess(mocker):
    """Mock subprocess.run for git commands."""
    mock = mocker.patch("subprocess.run")
    mock.return_value = MagicMock(returncode=0, stdout="", stderr="")
    return mock


@pytest.fixture
def global_config(mocker, module_dir):
    """Make the CLI load local modules from module_dir."""
    from essh.config import GlobalConfig

    config = GlobalConfig(module_paths=[module_dir])
    mocker.patch("essh.cli.GlobalConfig.load", return_value=config)
    return config

"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from cachectl.core.tools import ToolLocator
from cachectl.utils.shell import CommandResult


@pytest.fixture
def mock_go_list_output() -> str:
    """Sample `go list -m all` output for testing."""
    return """example.com/service
github.com/BurntSushi/toml v1.3.2
github.com/spf13/cobra v1.8.0
golang.org/x/text v0.14.0 => golang.org/x/text v0.15.0
example.com/internal/lib v0.0.0 => ../lib
example.com/abs v1.0.0 => /opt/src/abs"""


@pytest.fixture
def mock_package_json() -> str:
    """Sample package.json for testing."""
    return """{
  "name": "webapp",
  "version": "1.0.0",
  "dependencies": {
    "express": "^4.18.2",
    "@types/node": "^20.0.0"
  },
  "devDependencies": {
    "jest": "^29.7.0"
  }
}"""


@pytest.fixture
def mock_requirements_txt() -> str:
    """Sample requirements.txt for testing."""
    return """# Web stack
-r base.txt
--index-url https://pypi.org/simple

requests>=2.31  # http client
flask==3.0.0; python_version >= "3.8"
uvicorn[standard]~=0.27
numpy
-e .
"""


@pytest.fixture
def mock_cargo_toml() -> str:
    """Sample Cargo.toml for testing."""
    return """[package]
name = "cli"
version = "0.1.0"

[dependencies]
serde = "1.0"
tokio = { version = "1.35", features = ["full"] }
local-helper = { path = "../helper" }
forked = { git = "https://github.com/example/forked" }

[dev-dependencies]
proptest = "1.4"

[build-dependencies]
cc = "1.0"
"""


@pytest.fixture
def make_tree():
    """Create files below a root from a {relative path: size} mapping."""

    def _make(root: Path, files: dict[str, int]) -> Path:
        for relative, size in files.items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(b"x" * size)
        return root

    return _make


@pytest.fixture
def mock_locator() -> MagicMock:
    """ToolLocator double whose tools are all missing by default."""
    locator = MagicMock(spec=ToolLocator)
    locator.locate = AsyncMock(return_value=None)
    locator.environment = {"PATH": "/usr/bin:/bin", "HOME": "/nonexistent-home"}
    locator.runner = MagicMock()
    locator.runner.execute = AsyncMock(
        return_value=CommandResult(stdout="", stderr="", returncode=0)
    )
    return locator


@pytest.fixture
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG config and state directories at a temporary location."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    return tmp_path

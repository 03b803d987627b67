"""Unit tests for dependency inspection."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from cachectl.core.discovery import make_project
from cachectl.core.inspector import DependencyInspector
from cachectl.ecosystems.base import EcosystemStrategy
from cachectl.models.project import Dependency, Ecosystem
from cachectl.utils.shell import CommandResult, CommandTimeoutError, ToolNotFoundError


def _strategy(**kwargs) -> MagicMock:
    strategy = MagicMock(spec=EcosystemStrategy)
    strategy.dependencies = AsyncMock(**kwargs)
    return strategy


class TestDependencyInspector:
    """Tests for DependencyInspector.inspect."""

    async def test_returns_strategy_result(self, tmp_path: Path, mock_locator) -> None:
        """Dependencies come from the project's ecosystem strategy."""
        deps = [Dependency(name="github.com/pkg/errors", version="v0.9.1")]
        strategy = _strategy(return_value=deps)
        inspector = DependencyInspector(mock_locator, {Ecosystem.GO: strategy})
        project = make_project(tmp_path, Ecosystem.GO)

        assert await inspector.inspect(project) == deps
        strategy.dependencies.assert_awaited_once_with(project, mock_locator)

    async def test_missing_tool_gives_empty_list(self, tmp_path: Path, mock_locator) -> None:
        """A missing toolchain is not an error for the caller."""
        strategy = _strategy(side_effect=ToolNotFoundError("go"))
        inspector = DependencyInspector(mock_locator, {Ecosystem.GO: strategy})

        assert await inspector.inspect(make_project(tmp_path, Ecosystem.GO)) == []

    async def test_timeout_gives_empty_list(self, tmp_path: Path, mock_locator) -> None:
        """A hung toolchain is reported as no dependencies."""
        strategy = _strategy(side_effect=CommandTimeoutError("go list -m all", 60))
        inspector = DependencyInspector(mock_locator, {Ecosystem.GO: strategy})

        assert await inspector.inspect(make_project(tmp_path, Ecosystem.GO)) == []

    async def test_unreadable_manifest_gives_empty_list(
        self, tmp_path: Path, mock_locator
    ) -> None:
        """Malformed manifests degrade to an empty list."""
        strategy = _strategy(side_effect=ValueError("bad json"))
        inspector = DependencyInspector(mock_locator, {Ecosystem.NODE: strategy})

        assert await inspector.inspect(make_project(tmp_path, Ecosystem.NODE)) == []

    async def test_unknown_ecosystem_gives_empty_list(self, tmp_path: Path, mock_locator) -> None:
        """Projects without a strategy have no dependencies."""
        inspector = DependencyInspector(mock_locator, {})

        assert await inspector.inspect(make_project(tmp_path, Ecosystem.RUST)) == []

    async def test_builtin_strategies_without_tool(self, tmp_path: Path, mock_locator) -> None:
        """With the real Go strategy and no go binary, inspection yields nothing."""
        (tmp_path / "go.mod").write_text("module example.com/app\n")
        mock_locator.runner.execute = AsyncMock(
            return_value=CommandResult(stdout="", stderr="", returncode=0)
        )
        inspector = DependencyInspector(mock_locator)

        assert await inspector.inspect(make_project(tmp_path, Ecosystem.GO)) == []

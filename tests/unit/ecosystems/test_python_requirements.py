"""Unit tests for the Python ecosystem strategy."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from cachectl.core.discovery import make_project
from cachectl.ecosystems.python import PythonEcosystem, parse_requirement, parse_requirements
from cachectl.models.project import Ecosystem
from cachectl.utils.shell import CommandResult, ToolNotFoundError


class TestParseRequirement:
    """Tests for parse_requirement function."""

    @pytest.mark.parametrize(
        ("line", "name", "version"),
        [
            ("requests>=2.31", "requests", ">=2.31"),
            ("flask==3.0.0", "flask", "==3.0.0"),
            ("numpy", "numpy", "unknown"),
            ("uvicorn[standard]~=0.27", "uvicorn", "~=0.27"),
            ("Django >= 4.2, < 5", "Django", ">= 4.2, < 5"),
            ("requests>=2.31  # http", "requests", ">=2.31"),
            ('pywin32==306; sys_platform == "win32"', "pywin32", "==306"),
        ],
    )
    def test_parses_requirement(self, line: str, name: str, version: str) -> None:
        """Names and constraints are extracted."""
        dependency = parse_requirement(line)

        assert dependency is not None
        assert (dependency.name, dependency.version) == (name, version)

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "# comment",
            "-r base.txt",
            "--index-url https://pypi.org/simple",
            "-e .",
            "pkg @ https://example.com/pkg.whl",
            "https://example.com/pkg.tar.gz",
        ],
    )
    def test_skips_non_requirements(self, line: str) -> None:
        """Options, comments and URL requirements are skipped."""
        assert parse_requirement(line) is None


class TestParseRequirements:
    """Tests for parse_requirements function."""

    def test_sample_file(self, mock_requirements_txt: str) -> None:
        """Only real requirements survive, in file order."""
        deps = parse_requirements(mock_requirements_txt)

        assert [d.name for d in deps] == ["requests", "flask", "uvicorn", "numpy"]


class TestPythonEcosystem:
    """Tests for PythonEcosystem."""

    async def test_dependencies_from_file(
        self, tmp_path: Path, mock_locator, mock_requirements_txt: str
    ) -> None:
        """requirements.txt is read without running pip."""
        (tmp_path / "requirements.txt").write_text(mock_requirements_txt)

        deps = await PythonEcosystem().dependencies(
            make_project(tmp_path, Ecosystem.PYTHON), mock_locator
        )

        assert len(deps) == 4
        mock_locator.locate.assert_not_called()

    async def test_missing_file(self, tmp_path: Path, mock_locator) -> None:
        """A missing requirements.txt yields no dependencies."""
        deps = await PythonEcosystem().dependencies(
            make_project(tmp_path, Ecosystem.PYTHON), mock_locator
        )

        assert deps == []

    def test_cache_paths(self, tmp_path: Path) -> None:
        """Virtualenvs and tool caches at the root are project caches."""
        for name in (".venv", ".pytest_cache", "src"):
            (tmp_path / name).mkdir()

        assert PythonEcosystem().cache_paths(tmp_path) == [
            tmp_path / ".venv",
            tmp_path / ".pytest_cache",
        ]

    def test_recursive_and_commands(self) -> None:
        """__pycache__ is collected recursively and pip has no prune."""
        strategy = PythonEcosystem()

        assert strategy.recursive_cache_names == ("__pycache__",)
        assert strategy.global_purge_args == ("cache", "purge")
        assert strategy.prune_args is None

    async def test_global_cache_from_pip(self, tmp_path: Path, mock_locator) -> None:
        """`pip cache dir` locates the cache."""
        mock_locator.locate = AsyncMock(return_value="/usr/bin/pip")
        mock_locator.runner.execute = AsyncMock(
            return_value=CommandResult(stdout=f"{tmp_path}/pip\n", stderr="", returncode=0)
        )

        assert await PythonEcosystem().global_cache_dirs(mock_locator) == [tmp_path / "pip"]

    async def test_global_cache_fallback(self, tmp_path: Path, mock_locator) -> None:
        """A failing pip falls back to the XDG cache location."""
        (tmp_path / "xdg" / "pip").mkdir(parents=True)
        mock_locator.locate = AsyncMock(return_value="/usr/bin/pip")
        mock_locator.runner.execute = AsyncMock(side_effect=ToolNotFoundError("pip"))
        mock_locator.environment = {"HOME": str(tmp_path), "XDG_CACHE_HOME": str(tmp_path / "xdg")}

        assert await PythonEcosystem().global_cache_dirs(mock_locator) == [tmp_path / "xdg" / "pip"]

"""Unit tests for the Go ecosystem strategy."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from cachectl.core.discovery import make_project
from cachectl.core.tools import ToolLocator
from cachectl.ecosystems.base import LIST_TIMEOUT
from cachectl.ecosystems.go import GoEcosystem, escape_module_path, parse_module_line
from cachectl.models.project import Ecosystem
from cachectl.utils.shell import CommandFailedError, CommandResult


def _result(stdout: str) -> CommandResult:
    return CommandResult(stdout=stdout, stderr="", returncode=0)


class TestEscapeModulePath:
    """Tests for escape_module_path function."""

    @pytest.mark.parametrize(
        ("module", "expected"),
        [
            ("github.com/BurntSushi/toml", "github.com/!burnt!sushi/toml"),
            ("golang.org/x/text", "golang.org/x/text"),
            ("github.com/Azure/azure-sdk-for-go", "github.com/!azure/azure-sdk-for-go"),
        ],
    )
    def test_escapes_upper_case(self, module: str, expected: str) -> None:
        """Upper-case letters become '!' plus the lower-case letter."""
        assert escape_module_path(module) == expected


class TestParseModuleLine:
    """Tests for parse_module_line function."""

    def test_regular_module(self) -> None:
        """A module line yields name and version."""
        assert parse_module_line("golang.org/x/text v0.14.0") == ("golang.org/x/text", "v0.14.0")

    def test_main_module_skipped(self) -> None:
        """The main module has no version and is skipped."""
        assert parse_module_line("example.com/service") is None

    def test_module_replacement_keeps_original(self) -> None:
        """A module-to-module replacement reports the required version."""
        line = "golang.org/x/text v0.14.0 => golang.org/x/text v0.15.0"

        assert parse_module_line(line) == ("golang.org/x/text", "v0.14.0")

    @pytest.mark.parametrize("target", ["../lib", "./lib", "/opt/src/lib"])
    def test_local_replacement_skipped(self, target: str) -> None:
        """Replacements pointing at local directories are skipped."""
        assert parse_module_line(f"example.com/lib v1.0.0 => {target}") is None


class TestGoDependencies:
    """Tests for GoEcosystem.dependencies."""

    async def test_lists_modules(
        self, tmp_path: Path, mock_locator, mock_go_list_output: str
    ) -> None:
        """`go list -m all` output becomes dependencies, skipping main and local modules."""
        (tmp_path / "go.mod").write_text("module example.com/service\n")
        mock_locator.locate = AsyncMock(return_value="/usr/bin/go")
        mock_locator.environment = {"HOME": str(tmp_path), "GOMODCACHE": str(tmp_path / "mod")}
        mock_locator.runner.execute = AsyncMock(return_value=_result(mock_go_list_output))
        project = make_project(tmp_path, Ecosystem.GO)

        deps = await GoEcosystem().dependencies(project, mock_locator)

        assert [(d.name, d.version) for d in deps] == [
            ("github.com/BurntSushi/toml", "v1.3.2"),
            ("github.com/spf13/cobra", "v1.8.0"),
            ("golang.org/x/text", "v0.14.0"),
        ]
        mock_locator.runner.execute.assert_awaited_once_with(
            "/usr/bin/go",
            ["list", "-m", "all"],
            cwd=str(tmp_path),
            env=mock_locator.environment,
            timeout=LIST_TIMEOUT,
        )

    async def test_cache_path_when_downloaded(
        self, tmp_path: Path, mock_locator, mock_go_list_output: str
    ) -> None:
        """Modules present in the module cache carry their cache path."""
        modcache = tmp_path / "mod"
        downloaded = modcache / "github.com" / "!burnt!sushi" / "toml@v1.3.2"
        downloaded.mkdir(parents=True)
        mock_locator.locate = AsyncMock(return_value="/usr/bin/go")
        mock_locator.environment = {"HOME": str(tmp_path), "GOMODCACHE": str(modcache)}
        mock_locator.runner.execute = AsyncMock(return_value=_result(mock_go_list_output))

        deps = await GoEcosystem().dependencies(make_project(tmp_path, Ecosystem.GO), mock_locator)

        by_name = {d.name: d for d in deps}
        assert by_name["github.com/BurntSushi/toml"].cache_path == str(downloaded)
        assert by_name["github.com/spf13/cobra"].cache_path is None

    async def test_missing_go_gives_empty_list(self, tmp_path: Path, mock_locator) -> None:
        """Without a go executable nothing is run."""
        deps = await GoEcosystem().dependencies(make_project(tmp_path, Ecosystem.GO), mock_locator)

        assert deps == []
        mock_locator.runner.execute.assert_not_called()

    async def test_failing_command_propagates(self, tmp_path: Path, mock_locator) -> None:
        """A failing `go list` is raised for the inspector to handle."""
        mock_locator.locate = AsyncMock(return_value="/usr/bin/go")
        mock_locator.runner.execute = AsyncMock(
            side_effect=CommandFailedError(
                CommandResult(stdout="", stderr="go: no go.mod", returncode=1)
            )
        )

        with pytest.raises(CommandFailedError):
            await GoEcosystem().dependencies(make_project(tmp_path, Ecosystem.GO), mock_locator)


class TestGoGlobalCache:
    """Tests for GoEcosystem.global_cache_dirs."""

    async def test_uses_go_env(self, tmp_path: Path, mock_locator) -> None:
        """GOMODCACHE reported by `go env` is used."""
        mock_locator.locate = AsyncMock(return_value="/usr/bin/go")
        mock_locator.runner.execute = AsyncMock(return_value=_result(f"{tmp_path}/mod\n"))

        assert await GoEcosystem().global_cache_dirs(mock_locator) == [tmp_path / "mod"]

    async def test_default_location(self, tmp_path: Path, mock_locator) -> None:
        """Without go, ~/go/pkg/mod is used if it exists."""
        (tmp_path / "go" / "pkg" / "mod").mkdir(parents=True)
        mock_locator.environment = {"HOME": str(tmp_path)}

        dirs = await GoEcosystem().global_cache_dirs(mock_locator)

        assert dirs == [tmp_path / "go" / "pkg" / "mod"]

    async def test_gopath_location(self, tmp_path: Path, mock_locator) -> None:
        """GOPATH relocates the default module cache."""
        (tmp_path / "gopath" / "pkg" / "mod").mkdir(parents=True)
        mock_locator.environment = {"HOME": str(tmp_path), "GOPATH": str(tmp_path / "gopath")}

        dirs = await GoEcosystem().global_cache_dirs(mock_locator)

        assert dirs == [tmp_path / "gopath" / "pkg" / "mod"]

    async def test_no_cache(self, tmp_path: Path, mock_locator) -> None:
        """No go and no default directory means no cache."""
        mock_locator.environment = {"HOME": str(tmp_path)}

        assert await GoEcosystem().global_cache_dirs(mock_locator) == []

    async def test_resolved_per_locator(self, tmp_path: Path) -> None:
        """One strategy serves locators with different environments."""
        strategy = GoEcosystem()
        first = ToolLocator(env={"HOME": str(tmp_path), "GOMODCACHE": str(tmp_path / "a")})
        second = ToolLocator(env={"HOME": str(tmp_path), "GOMODCACHE": str(tmp_path / "b")})

        assert await strategy.global_cache_dirs(first) == [tmp_path / "a"]
        assert await strategy.global_cache_dirs(second) == [tmp_path / "b"]
        assert await strategy.global_cache_dirs(first) == [tmp_path / "a"]


class TestGoConventions:
    """Tests for Go cache and command conventions."""

    def test_vendor_is_project_cache(self, tmp_path: Path) -> None:
        """vendor is the project-level cache."""
        (tmp_path / "vendor").mkdir()

        assert GoEcosystem().cache_paths(tmp_path) == [tmp_path / "vendor"]

    def test_commands(self) -> None:
        """Purge and prune use the go toolchain."""
        strategy = GoEcosystem()

        assert strategy.tool == "go"
        assert strategy.global_purge_args == ("clean", "-modcache")
        assert strategy.prune_args == ("mod", "tidy")

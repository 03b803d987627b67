"""Unit tests for toolchain discovery."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from cachectl.core.settings import ToolSettings
from cachectl.core.tools import TOOL_INFO, ToolInfo, ToolLocator, is_executable, parse_version
from cachectl.utils.shell import CommandFailedError, CommandResult, ProcessRunner


def _make_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def runner() -> MagicMock:
    """Runner whose `which` lookups find nothing."""
    mock = MagicMock(spec=ProcessRunner)
    mock.execute = AsyncMock(
        side_effect=CommandFailedError(CommandResult(stdout="", stderr="", returncode=1))
    )
    return mock


@pytest.fixture
def no_common_paths():
    """Replace the well-known install locations with nothing."""
    empty = {
        name: ToolInfo(
            name=info.name,
            display_name=info.display_name,
            description=info.description,
            common_paths=(),
            version_args=info.version_args,
        )
        for name, info in TOOL_INFO.items()
    }
    with patch.dict(TOOL_INFO, empty):
        yield


class TestParseVersion:
    """Tests for parse_version function."""

    @pytest.mark.parametrize(
        ("output", "expected"),
        [
            ("go version go1.22.1 linux/amd64", "1.22.1"),
            ("10.5.0\n", "10.5.0"),
            ("pip 24.0 from /usr/lib/python3/site-packages/pip (python 3.12)", "24.0"),
            ("cargo 1.77.0 (3fe68eabf 2024-02-29)", "1.77.0"),
            ("", None),
            ("no version here", None),
        ],
    )
    def test_parses_tool_output(self, output: str, expected: str | None) -> None:
        """The first dotted version token is extracted."""
        assert parse_version(output) == expected


class TestIsExecutable:
    """Tests for is_executable function."""

    def test_executable_file(self, tmp_path: Path) -> None:
        """A file with the execute bit is executable."""
        assert is_executable(_make_executable(tmp_path / "go"))

    def test_plain_file(self, tmp_path: Path) -> None:
        """A file without the execute bit is not."""
        plain = tmp_path / "go"
        plain.write_text("")
        plain.chmod(0o644)

        assert not is_executable(plain)

    def test_directory(self, tmp_path: Path) -> None:
        """Directories are not executables."""
        assert not is_executable(tmp_path)


@pytest.mark.usefixtures("no_common_paths")
class TestToolLocator:
    """Tests for ToolLocator."""

    async def test_override_path_wins(self, tmp_path: Path, runner: MagicMock) -> None:
        """An executable override is used without running which."""
        go = _make_executable(tmp_path / "custom" / "go")
        settings = ToolSettings()
        settings.set_path("go", str(go))

        locator = ToolLocator(settings, runner=runner, env={"HOME": str(tmp_path)})

        assert await locator.locate("go") == str(go)
        runner.execute.assert_not_called()

    async def test_invalid_override_falls_back(self, tmp_path: Path, runner: MagicMock) -> None:
        """A non-executable override falls back to automatic lookup."""
        settings = ToolSettings()
        settings.set_path("go", str(tmp_path / "missing"))
        runner.execute = AsyncMock(
            return_value=CommandResult(stdout="/usr/bin/go\n", stderr="", returncode=0)
        )

        locator = ToolLocator(settings, runner=runner, env={"HOME": str(tmp_path)})

        assert await locator.locate("go") == "/usr/bin/go"

    async def test_common_path_found(self, tmp_path: Path, runner: MagicMock) -> None:
        """Well-known install locations are checked before which."""
        cargo = _make_executable(tmp_path / ".cargo" / "bin" / "cargo")
        info = TOOL_INFO["cargo"]
        patched = ToolInfo(
            name=info.name,
            display_name=info.display_name,
            description=info.description,
            common_paths=("~/.cargo/bin/cargo",),
        )

        with patch.dict(TOOL_INFO, {"cargo": patched}):
            locator = ToolLocator(runner=runner, env={"HOME": str(tmp_path)})
            assert await locator.locate("cargo") == str(cargo)

        runner.execute.assert_not_called()

    async def test_which_lookup(self, tmp_path: Path, runner: MagicMock) -> None:
        """which runs with the tool environment."""
        runner.execute = AsyncMock(
            return_value=CommandResult(stdout="/opt/bin/npm\n", stderr="", returncode=0)
        )
        env = {"HOME": str(tmp_path), "PATH": "/opt/bin"}
        locator = ToolLocator(runner=runner, env=env)

        assert await locator.locate("npm") == "/opt/bin/npm"
        args, kwargs = runner.execute.call_args
        assert args == ("which", ["npm"])
        assert kwargs["env"] == env

    async def test_missing_tool_is_none(self, tmp_path: Path, runner: MagicMock) -> None:
        """A tool that cannot be found resolves to None."""
        locator = ToolLocator(runner=runner, env={"HOME": str(tmp_path)})

        assert await locator.locate("pip") is None
        assert not await locator.exists("pip")

    async def test_results_are_cached(self, tmp_path: Path, runner: MagicMock) -> None:
        """Each tool is resolved only once."""
        locator = ToolLocator(runner=runner, env={"HOME": str(tmp_path)})

        await locator.locate("go")
        await locator.locate("go")

        assert runner.execute.call_count == 1

    async def test_version_of_missing_tool(self, tmp_path: Path, runner: MagicMock) -> None:
        """A missing tool has no version."""
        locator = ToolLocator(runner=runner, env={"HOME": str(tmp_path)})

        assert await locator.version("go") is None

    async def test_version_query(self, tmp_path: Path, runner: MagicMock) -> None:
        """The version comes from the tool's version command."""
        go = _make_executable(tmp_path / "go")
        settings = ToolSettings()
        settings.set_path("go", str(go))
        runner.execute = AsyncMock(
            return_value=CommandResult(
                stdout="go version go1.22.1 linux/amd64\n", stderr="", returncode=0
            )
        )
        locator = ToolLocator(settings, runner=runner, env={"HOME": str(tmp_path)})

        assert await locator.version("go") == "1.22.1"
        args, _ = runner.execute.call_args
        assert args == (str(go), ("version",))

    async def test_failing_version_query(self, tmp_path: Path, runner: MagicMock) -> None:
        """A failing version command yields None instead of raising."""
        npm = _make_executable(tmp_path / "npm")
        settings = ToolSettings()
        settings.set_path("npm", str(npm))
        locator = ToolLocator(settings, runner=runner, env={"HOME": str(tmp_path)})

        assert await locator.version("npm") is None

    async def test_unrunnable_override_version(self, tmp_path: Path) -> None:
        """An override the OS cannot execute has no version instead of raising."""
        npm = tmp_path / "npm"
        npm.write_bytes(b"\x7fELF\x00garbage")
        npm.chmod(0o755)
        settings = ToolSettings()
        settings.set_path("npm", str(npm))
        locator = ToolLocator(settings, runner=ProcessRunner(), env={"HOME": str(tmp_path)})

        assert await locator.locate("npm") == str(npm)
        assert await locator.version("npm") is None

    async def test_diagnose_reports_every_tool(self, tmp_path: Path, runner: MagicMock) -> None:
        """diagnose lists all supported tools with their status."""
        settings = ToolSettings()
        settings.set_path("cargo", str(tmp_path / "missing"))
        locator = ToolLocator(settings, runner=runner, env={"HOME": str(tmp_path)})

        statuses = await locator.diagnose()

        assert [s.name for s in statuses] == ["go", "npm", "pip", "cargo"]
        assert not any(s.available for s in statuses)
        assert [s.auto_detect for s in statuses] == [True, True, True, False]

    def test_environment_is_a_copy(self, tmp_path: Path, runner: MagicMock) -> None:
        """Changing the returned environment does not affect the locator."""
        locator = ToolLocator(runner=runner, env={"HOME": str(tmp_path)})

        locator.environment["PATH"] = "/tampered"

        assert "PATH" not in locator.environment

    def test_settings_are_copied(self, tmp_path: Path, runner: MagicMock) -> None:
        """Later changes to the settings object do not leak into the locator."""
        settings = ToolSettings()
        locator = ToolLocator(settings, runner=runner, env={"HOME": str(tmp_path)})

        settings.set_path("go", "/x/go")

        assert locator.candidate_paths("go") == []
        assert locator._settings.is_auto_detect("go")  # pyright: ignore[reportPrivateUsage]

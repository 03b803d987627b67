"""Unit tests for tool environment construction."""

import os
from pathlib import Path

from cachectl.core.environment import (
    COMMON_BIN_DIRS,
    build_tool_environment,
    scrape_shell_path,
)


def _path_entries(env: dict[str, str]) -> list[str]:
    return [p for p in env["PATH"].split(os.pathsep) if p]


class TestScrapeShellPath:
    """Tests for scrape_shell_path function."""

    def test_reads_exports(self, tmp_path: Path) -> None:
        """PATH exports are collected with ~ and $HOME expanded."""
        (tmp_path / ".zshrc").write_text(
            'export PATH="$HOME/.volta/bin:$PATH"\n'
            "PATH=~/bin:/opt/tools/bin  # personal tools\n"
        )

        entries = scrape_shell_path(tmp_path, [".zshrc"])

        assert entries == [
            f"{tmp_path}/.volta/bin",
            f"{tmp_path}/bin",
            "/opt/tools/bin",
        ]

    def test_skips_unresolvable_variables(self, tmp_path: Path) -> None:
        """Entries depending on unknown variables are dropped."""
        (tmp_path / ".bashrc").write_text('export PATH="$PYENV_ROOT/bin:/usr/games:$PATH"\n')

        assert scrape_shell_path(tmp_path, [".bashrc"]) == ["/usr/games"]

    def test_missing_files_are_ignored(self, tmp_path: Path) -> None:
        """Missing start-up files yield no entries and no error."""
        assert scrape_shell_path(tmp_path, [".zshrc", ".profile"]) == []

    def test_deduplicates(self, tmp_path: Path) -> None:
        """The same directory exported twice appears once."""
        (tmp_path / ".profile").write_text("PATH=/a:$PATH\nexport PATH=/a:/b:$PATH\n")

        assert scrape_shell_path(tmp_path, [".profile"]) == ["/a", "/b"]


class TestBuildToolEnvironment:
    """Tests for build_tool_environment function."""

    def test_merges_system_common_and_scraped(self, tmp_path: Path) -> None:
        """PATH starts with the inherited entries, then well-known dirs, then scraped ones."""
        (tmp_path / ".zshrc").write_text("export PATH=/scraped/bin:$PATH\n")

        env = build_tool_environment(
            base={"PATH": "/system/bin", "LANG": "C"},
            home=tmp_path,
            shell_files=[".zshrc"],
        )

        entries = _path_entries(env)
        assert entries[0] == "/system/bin"
        assert f"{tmp_path}/.cargo/bin" in entries
        assert entries[-1] == "/scraped/bin"
        assert env["HOME"] == str(tmp_path)
        assert env["LANG"] == "C"

    def test_no_duplicate_entries(self, tmp_path: Path) -> None:
        """Entries already on PATH are not repeated."""
        env = build_tool_environment(
            base={"PATH": "/usr/bin:/usr/bin"},
            home=tmp_path,
            shell_files=[],
        )

        entries = _path_entries(env)
        assert len(entries) == len(set(entries))
        assert entries.count("/usr/bin") == 1

    def test_does_not_mutate_base(self, tmp_path: Path) -> None:
        """The base mapping is left untouched."""
        base = {"PATH": "/x"}

        build_tool_environment(base=base, home=tmp_path, shell_files=[])

        assert base == {"PATH": "/x"}

    def test_common_dirs_are_expanded(self, tmp_path: Path) -> None:
        """Home-relative install directories are expanded."""
        env = build_tool_environment(base={}, home=tmp_path, shell_files=[])

        assert len(_path_entries(env)) == len(COMMON_BIN_DIRS)
        assert not any(p.startswith("~") for p in _path_entries(env))

"""Unit tests for persistent settings."""

import tomllib
from pathlib import Path

import pytest
from cachectl.core.settings import (
    ScanDirectorySet,
    ScanInProgressError,
    Settings,
    SettingsParseError,
    SettingsValidationError,
    ToolOverride,
    ToolSettings,
    load_settings,
    save_settings,
)


class TestToolSettings:
    """Tests for ToolSettings overrides."""

    def test_defaults_to_auto_detect(self) -> None:
        """Unknown tools are auto-detected with no override."""
        settings = ToolSettings()

        assert settings.is_auto_detect("go")
        assert settings.override_for("go") is None

    def test_set_path_disables_auto_detect(self) -> None:
        """Pinning a path turns auto-detection off."""
        settings = ToolSettings()
        settings.set_path("go", "/opt/go/bin/go")

        assert not settings.is_auto_detect("go")
        assert settings.override_for("go") == "/opt/go/bin/go"

    def test_enable_auto_detect_clears_path(self) -> None:
        """Returning to auto-detection drops the pinned path."""
        settings = ToolSettings()
        settings.set_path("npm", "/x/npm")
        settings.enable_auto_detect("npm")

        assert settings.override_for("npm") is None

    def test_path_ignored_while_auto_detecting(self) -> None:
        """A stored path has no effect when auto_detect is on."""
        settings = ToolSettings(tools={"pip": ToolOverride(path="/x/pip", auto_detect=True)})

        assert settings.override_for("pip") is None

    def test_blank_path_normalizes_to_none(self) -> None:
        """Blank paths are treated as unset."""
        assert ToolOverride(path="   ").path is None

    def test_extra_fields_forbidden(self) -> None:
        """Unknown keys are rejected."""
        with pytest.raises(ValueError):
            ToolOverride(path="/x", enabled=True)  # type: ignore[call-arg]


class TestScanDirectorySet:
    """Tests for ScanDirectorySet."""

    def test_normalizes_and_deduplicates(self, tmp_path: Path) -> None:
        """Roots are resolved to absolute paths and deduplicated."""
        roots = ScanDirectorySet([str(tmp_path), str(tmp_path / "." / "")])

        assert roots.to_list() == [str(tmp_path.resolve())]

    def test_add_and_remove(self, tmp_path: Path) -> None:
        """add and remove report whether anything changed."""
        roots = ScanDirectorySet()

        assert roots.add(tmp_path)
        assert not roots.add(tmp_path)
        assert tmp_path in roots
        assert roots.remove(tmp_path)
        assert not roots.remove(tmp_path)
        assert len(roots) == 0

    def test_mutation_refused_during_scan(self, tmp_path: Path) -> None:
        """Roots cannot change while a scan holds the set."""
        roots = ScanDirectorySet([str(tmp_path)])

        with roots.scanning() as snapshot:
            assert roots.is_scanning
            assert snapshot == (str(tmp_path.resolve()),)
            with pytest.raises(ScanInProgressError):
                roots.add(tmp_path / "other")
            with pytest.raises(ScanInProgressError):
                roots.remove(tmp_path)

        assert not roots.is_scanning
        assert roots.add(tmp_path / "other")

    def test_scanning_released_on_error(self, tmp_path: Path) -> None:
        """The lock is released even if the scan fails."""
        roots = ScanDirectorySet()

        with pytest.raises(RuntimeError), roots.scanning():
            raise RuntimeError("boom")

        assert not roots.is_scanning


class TestLoadSaveSettings:
    """Tests for settings persistence."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """A missing file yields empty settings."""
        settings = load_settings(tmp_path / "settings.toml")

        assert settings.scan_roots == []
        assert settings.tools == {}

    def test_round_trip(self, tmp_path: Path) -> None:
        """Saved settings load back unchanged."""
        path = tmp_path / "nested" / "settings.toml"
        settings = Settings(
            scan_roots=["/home/dev/src"],
            tools={"go": ToolOverride(path="/opt/go/bin/go", auto_detect=False)},
        )

        save_settings(settings, path)

        assert load_settings(path) == settings

    def test_saved_file_is_plain_toml(self, tmp_path: Path) -> None:
        """Unset paths are omitted and no temp files are left behind."""
        path = tmp_path / "settings.toml"
        save_settings(Settings(tools={"npm": ToolOverride()}), path)

        with open(path, "rb") as f:
            data = tomllib.load(f)
        assert data["tools"]["npm"] == {"auto_detect": True}
        assert list(tmp_path.iterdir()) == [path]

    def test_invalid_toml_raises_parse_error(self, tmp_path: Path) -> None:
        """Malformed TOML raises SettingsParseError."""
        path = tmp_path / "settings.toml"
        path.write_text("scan_roots = [")

        with pytest.raises(SettingsParseError):
            load_settings(path)

    def test_invalid_content_raises_validation_error(self, tmp_path: Path) -> None:
        """Schema violations raise SettingsValidationError."""
        path = tmp_path / "settings.toml"
        path.write_text('scan_roots = "not-a-list"\n')

        with pytest.raises(SettingsValidationError):
            load_settings(path)

    def test_tool_settings_are_copies(self) -> None:
        """Changing the locator copy leaves the settings untouched."""
        settings = Settings(tools={"go": ToolOverride()})

        copy = settings.tool_settings()
        copy.set_path("go", "/x/go")

        assert settings.tools["go"].auto_detect

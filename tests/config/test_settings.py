"""Tests for FormgateSettings — unified settings with TOML source."""

from pathlib import Path

import pytest

from formgate.config.settings import FormgateSettings
from formgate.domain.errors import ConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (
        "FORMGATE_CONFIG",
        "FORMGATE_VERBOSE",
        "FORMGATE_REMOTE__BASE_URL",
        "FORMGATE_FORM__PENDING_BLOCKS_SUBMIT",
    ):
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        """With no TOML and no env vars, all fields use code defaults."""
        settings = FormgateSettings.load(start=tmp_path)
        assert settings.config_path is None
        assert settings.verbose is False
        assert settings.remote.endpoint == "/ajax/{resource}/check/{field}"
        assert settings.remote.available_status == "available"
        assert settings.form.group_suffix == "[]"
        assert settings.form.pending_blocks_submit is True

    def test_frozen(self, tmp_path: Path) -> None:
        settings = FormgateSettings.load(start=tmp_path)
        with pytest.raises(Exception):
            settings.verbose = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        toml = tmp_path / "formgate.toml"
        toml.write_text('[remote]\nbase_url = "https://api.example.com"\n')
        settings = FormgateSettings.load(start=tmp_path)
        assert settings.config_path == toml
        assert settings.remote.base_url == "https://api.example.com"
        assert settings.remote.timeout_seconds == 10.0  # default preserved

    def test_discovered_from_subdirectory(self, tmp_path: Path) -> None:
        (tmp_path / "formgate.toml").write_text("[form]\npending_blocks_submit = false\n")
        child = tmp_path / "app" / "forms"
        child.mkdir(parents=True)
        settings = FormgateSettings.load(start=child)
        assert settings.form.pending_blocks_submit is False

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "validation.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text('[form]\ngroup_suffix = "[*]"\n')
        settings = FormgateSettings.load(config_path=custom)
        assert settings.form.group_suffix == "[*]"
        assert settings.config_path == custom

    def test_invalid_toml_raises_config_error(self, tmp_path: Path) -> None:
        (tmp_path / "formgate.toml").write_text("[remote\n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            FormgateSettings.load(start=tmp_path)


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "formgate.toml").write_text('[remote]\nbase_url = "https://toml"\n')
        monkeypatch.setenv("FORMGATE_REMOTE__BASE_URL", "https://env")
        settings = FormgateSettings.load(start=tmp_path)
        assert settings.remote.base_url == "https://env"

    def test_overrides_beat_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FORMGATE_VERBOSE", "true")
        settings = FormgateSettings.load(start=tmp_path, verbose=False)
        assert settings.verbose is False

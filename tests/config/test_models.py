"""Tests for config models — defaults and sparse overrides."""

import pytest
from pydantic import ValidationError

from formgate.config.models import FormConfig, RemoteConfig


class TestRemoteConfig:
    def test_defaults(self) -> None:
        cfg = RemoteConfig()
        assert cfg.base_url == ""
        assert cfg.endpoint == "/ajax/{resource}/check/{field}"
        assert cfg.timeout_seconds == 10.0
        assert cfg.available_status == "available"

    def test_sparse_override(self) -> None:
        """Only override fields you care about — rest keeps defaults."""
        cfg = RemoteConfig(base_url="https://api.example.com")
        assert cfg.base_url == "https://api.example.com"
        assert cfg.available_status == "available"

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            RemoteConfig(timeout_seconds=0)

    def test_frozen(self) -> None:
        cfg = RemoteConfig()
        with pytest.raises(ValidationError):
            cfg.base_url = "https://elsewhere"  # type: ignore[misc]


class TestFormConfig:
    def test_defaults(self) -> None:
        cfg = FormConfig()
        assert cfg.group_suffix == "[]"
        assert cfg.pending_blocks_submit is True

    def test_from_dict(self) -> None:
        cfg = FormConfig.model_validate({"pending_blocks_submit": False})
        assert cfg.pending_blocks_submit is False
        assert cfg.group_suffix == "[]"

"""Tests for routing formgate's structured logs."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from formgate.config.logging import ENGINE_LOGGER, configure_logging
from formgate.config.settings import FormgateSettings
from formgate.plugins.manager import PresenterManager, hookimpl


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore the engine and root logger state after each test."""
    engine = logging.getLogger(ENGINE_LOGGER)
    original_handlers = engine.handlers[:]
    original_level = engine.level
    original_propagate = engine.propagate
    yield
    engine.handlers = original_handlers
    engine.setLevel(original_level)
    engine.propagate = original_propagate


def _json_lines(err: str) -> list[dict]:
    return [json.loads(line) for line in err.splitlines() if line.strip()]


class TestSettingsDriven:
    def test_defaults_to_warning(self) -> None:
        configure_logging()
        assert logging.getLogger(ENGINE_LOGGER).level == logging.WARNING

    def test_verbose_setting_enables_debug(self) -> None:
        configure_logging(FormgateSettings(verbose=True))
        assert logging.getLogger(ENGINE_LOGGER).level == logging.DEBUG

    def test_keyword_overrides_setting(self) -> None:
        configure_logging(FormgateSettings(verbose=True), verbose=False)
        assert logging.getLogger(ENGINE_LOGGER).level == logging.WARNING

    def test_log_json_setting_selects_json(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(FormgateSettings(verbose=True, log_json=True))
        structlog.get_logger("formgate.test").warning("json test", field_id="email")
        (parsed,) = _json_lines(capfd.readouterr().err)
        assert parsed["event"] == "json test"
        assert parsed["field_id"] == "email"
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "formgate.test"
        assert "timestamp" in parsed


class TestRouting:
    def test_root_logger_untouched(self) -> None:
        root = logging.getLogger()
        before = root.handlers[:]
        configure_logging(verbose=True)
        assert root.handlers == before

    def test_engine_logger_does_not_propagate(self) -> None:
        handler = configure_logging()
        engine = logging.getLogger(ENGINE_LOGGER)
        assert engine.propagate is False
        assert handler in engine.handlers

    def test_stdlib_engine_logs_structured(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("formgate.services.remote").debug("Remote check scheduled: users:email")
        (parsed,) = _json_lines(capfd.readouterr().err)
        assert parsed["event"] == "Remote check scheduled: users:email"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "formgate.services.remote"

    def test_presenter_failure_surfaces_as_warning(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        class Broken:
            @hookimpl
            def notify_form_success(self) -> None:
                msg = "toast service down"
                raise RuntimeError(msg)

        configure_logging(log_json=True)
        pm = PresenterManager()
        pm.register_plugin(Broken())
        pm.emit("notify_form_success")
        (parsed,) = _json_lines(capfd.readouterr().err)
        assert parsed["event"] == "Presenter hook notify_form_success failed"
        assert parsed["level"] == "warning"

    def test_http_client_debug_is_suppressed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("httpx").debug("request noise")
        logging.getLogger("httpcore").debug("connection noise")
        assert capfd.readouterr().err == ""

    def test_repeat_calls_replace_handler(self) -> None:
        configure_logging(verbose=True)
        configure_logging(log_json=True)
        engine = logging.getLogger(ENGINE_LOGGER)
        assert len([h for h in engine.handlers if getattr(h, "_formgate_handler", False)]) == 1

"""Tests for the built-in LoggingPresenter."""

from __future__ import annotations

import structlog

from formgate.plugins.builtins.logging_presenter import LoggingPresenter
from formgate.plugins.manager import PresenterManager


def _presenter() -> PresenterManager:
    pm = PresenterManager()
    pm.register_plugin(LoggingPresenter(), name="logging")
    return pm


class TestLoggingPresenter:
    def test_rule_failure_logged(self) -> None:
        with structlog.testing.capture_logs() as logs:
            _presenter().emit("show_rule_message", field_id="email", rule="email", message=None)
        assert logs == [
            {
                "event": "rule_failed",
                "field_id": "email",
                "rule": "email",
                "message": None,
                "log_level": "info",
            }
        ]

    def test_form_rejection_logged(self) -> None:
        with structlog.testing.capture_logs() as logs:
            _presenter().emit("notify_form_failure", count=2)
        assert logs[0]["event"] == "form_rejected"
        assert logs[0]["failures"] == 2

    def test_group_clear_not_logged(self) -> None:
        with structlog.testing.capture_logs() as logs:
            _presenter().emit("mark_group_error", group="tags", error=False)
        assert logs == []

    def test_unimplemented_hooks_are_noops(self) -> None:
        assert _presenter().emit("hide_rule_message", field_id="email", rule="email") is True

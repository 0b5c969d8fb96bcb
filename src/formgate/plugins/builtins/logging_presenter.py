"""Built-in presenter that records presentation calls as structured logs.

Useful for headless integrations (API backends, batch imports) where there
is no UI to update but the rejected rules should still be traceable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from formgate.plugins.manager import hookimpl

if TYPE_CHECKING:
    from formgate.domain.rules import Effect

log = structlog.get_logger(__name__)


class LoggingPresenter:
    """Logs failures at INFO and everything else at DEBUG."""

    @hookimpl
    def show_rule_message(self, field_id: str, rule: str, message: str | None) -> None:
        log.info("rule_failed", field_id=field_id, rule=rule, message=message)

    @hookimpl
    def mark_group_error(self, group: str, error: bool) -> None:
        if error:
            log.info("group_failed", group=group)

    @hookimpl
    def show_remote_status(
        self,
        field_id: str,
        rule: str,
        available: bool,
        message: str,
    ) -> None:
        log.debug(
            "remote_status",
            field_id=field_id,
            rule=rule,
            available=available,
            message=message,
        )

    @hookimpl
    def apply_effects(self, field_id: str, effects: list[Effect]) -> None:
        log.debug("effects", field_id=field_id, kinds=[str(e.kind) for e in effects])

    @hookimpl
    def notify_form_failure(self, count: int) -> None:
        log.info("form_rejected", failures=count)

    @hookimpl
    def notify_form_success(self) -> None:
        log.debug("form_accepted")

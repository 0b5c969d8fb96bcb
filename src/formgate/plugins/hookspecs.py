"""Pluggy hook specifications for the presentation collaborator.

The engine never touches markup or widgets; it announces what should change
and presenter plugins apply it. One setup-time hook lets plugins contribute
rules to the registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from formgate.domain.rules import Effect, FailPredicate, Rule

hookspec = pluggy.HookspecMarker("formgate")


class FormgateHookSpec:
    """Hook specifications for formgate presenters."""

    @hookspec
    def show_rule_message(self, field_id: str, rule: str, message: str | None) -> None:
        """Show the message attached to *rule* for a field."""

    @hookspec
    def hide_rule_message(self, field_id: str, rule: str) -> None:
        """Hide the message attached to *rule* for a field."""

    @hookspec
    def mark_field_error(self, field_id: str, error: bool) -> None:
        """Toggle the error state of a single field."""

    @hookspec
    def mark_group_error(self, group: str, error: bool) -> None:
        """Toggle the error state of a repeated-field group container."""

    @hookspec
    def show_remote_status(
        self,
        field_id: str,
        rule: str,
        available: bool,
        message: str,
    ) -> None:
        """Display the answer of a remote lookup next to the field."""

    @hookspec
    def apply_effects(self, field_id: str, effects: list[Effect]) -> None:
        """Apply presentation effects returned by rules."""

    @hookspec
    def notify_form_failure(self, count: int) -> None:
        """Announce one rejected submission with *count* failing units."""

    @hookspec
    def notify_form_success(self) -> None:
        """Announce an accepted submission."""

    @hookspec
    def register_rules(self) -> dict[str, Rule | FailPredicate] | None:
        """Return name -> rule mappings to add to the rule registry."""

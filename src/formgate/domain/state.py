"""Per-field validation state.

The coordinator owns one :class:`FieldState` per field identifier. States are
created lazily on the first validation call and mutated on every call after.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final

from formgate.domain.types import Outcome


class _Unchecked:
    def __repr__(self) -> str:
        return "<unchecked>"


UNCHECKED: Final = _Unchecked()


@dataclass
class FieldState:
    """Mutable record of where a field's rule chain stands.

    Attributes:
        field_id: Identifier the caller uses for the field.
        value: Value seen by the most recent validation call.
        last_value: Value the chain was last fully evaluated against.
        outcome: Outcome of the last evaluation, or None before the first.
        passed: Rules passed in the current evaluation (async passes included).
        total: Rule count of the current chain.
        generation: Bumped on every full evaluation; late remote resolutions
            carrying an older generation are ignored.
        failed_rule: Name of the rule that failed, if any.
        remote_error: Transport fault reported by the last remote lookup.
    """

    field_id: str
    value: Any = None
    last_value: Any = UNCHECKED
    outcome: Outcome | None = None
    passed: int = 0
    total: int = 0
    generation: int = 0
    failed_rule: str | None = None
    remote_error: str | None = None

    @property
    def checked(self) -> bool:
        return self.last_value is not UNCHECKED

    def begin(self, value: Any, total: int) -> int:
        """Reset the tally for a fresh evaluation and return its generation."""
        self.generation += 1
        self.value = value
        self.last_value = value
        self.outcome = None
        self.passed = 0
        self.total = total
        self.failed_rule = None
        self.remote_error = None
        return self.generation

    def abandon(self) -> None:
        """Discard an interrupted evaluation so the next call starts over.

        The generation moves on, so lookups scheduled by the interrupted pass
        can no longer report.
        """
        self.generation += 1
        self.last_value = UNCHECKED
        self.outcome = None
        self.passed = 0
        self.failed_rule = None

    def fail(self, rule: str) -> None:
        self.outcome = Outcome.FAIL
        self.failed_rule = rule

    def record_pass(self) -> bool:
        """Count one passed rule. Returns True when the chain just completed."""
        if self.outcome is Outcome.FAIL:
            return False
        self.passed += 1
        if self.passed >= self.total and self.outcome is not Outcome.PASS:
            self.outcome = Outcome.PASS
            return True
        return False

    def settle(self) -> Outcome:
        """Close a synchronous pass: no verdict yet means PENDING."""
        if self.outcome is None:
            self.outcome = Outcome.PENDING
        return self.outcome

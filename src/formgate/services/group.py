"""GroupAggregator — partial-success semantics for repeated fields.

Every element of a ``name[]`` group is validated on its own with messages
and error markers suppressed. The group fails only when every element fails.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from formgate.domain.types import Outcome
from formgate.services.base import BaseService
from formgate.services.field import ValidateOptions
from formgate.services.result import FieldOutcome, GroupResult

if TYPE_CHECKING:
    from formgate.domain.chain import RuleChain
    from formgate.domain.rules import FieldContext
    from formgate.domain.state import FieldState
    from formgate.plugins.manager import PresenterManager
    from formgate.services.field import FieldValidator

    GroupElement = tuple[FieldState, Any, str | RuleChain, FieldContext]

logger = logging.getLogger(__name__)


class GroupAggregator(BaseService):
    """Combines element outcomes into one group outcome."""

    def __init__(self, validator: FieldValidator, presenter: PresenterManager) -> None:
        super().__init__(presenter)
        self._validator = validator

    def aggregate(
        self,
        name: str,
        elements: Sequence[GroupElement],
        *,
        check_only: bool = False,
    ) -> GroupResult:
        """Validate each ``(state, value, chain, context)`` element of group *name*."""
        options = ValidateOptions(
            check_only=check_only,
            emit_class_effects=False,
            emit_messages=False,
        )
        outcomes = tuple(
            self._validator.validate(state, value, chain, context, options)
            for state, value, chain, context in elements
        )
        return self.summarize(name, outcomes)

    def summarize(self, name: str, outcomes: Sequence[FieldOutcome]) -> GroupResult:
        """Combine element outcomes already computed for group *name*."""
        results = tuple(outcomes)
        failures = sum(1 for o in results if o.outcome is Outcome.FAIL)
        failed = bool(results) and failures == len(results)

        self._emit("mark_group_error", group=name, error=failed)
        if failed:
            logger.debug("Group %s failed: all %d elements failed", name, failures)

        return GroupResult(
            name=name,
            elements=results,
            failures=failures,
            outcome=Outcome.FAIL if failed else Outcome.PASS,
        )

"""FieldValidator — evaluates one field's rule chain.

Rules run in declaration order within a single synchronous pass. The first
FAIL stops the pass. A remote rule answers PENDING, hands its lookup to the
:class:`RemoteCheckManager`, and the pass carries on; its eventual answer
bumps the pass tally later and may complete the chain then.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from formgate.domain.chain import RuleChain, RuleInvocation, parse_chain
from formgate.domain.errors import FormgateError
from formgate.domain.rules import Effect, FieldContext, RemoteRule, Rule, RuleRegistry
from formgate.domain.types import Outcome, RemoteStatus
from formgate.services.base import BaseService
from formgate.services.result import FieldOutcome

if TYPE_CHECKING:
    from formgate.domain.state import FieldState
    from formgate.plugins.manager import PresenterManager
    from formgate.services.remote import RemoteCheckManager, RemoteCheckResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidateOptions:
    """Per-call switches for :meth:`FieldValidator.validate`.

    Attributes:
        check_only: Answer from the cached outcome when the field has no
            recorded failure or transport fault, even if the value changed.
        emit_class_effects: Toggle the field error marker.
        emit_messages: Show and hide rule messages.
        on_all_passed: Called once every rule in the chain has passed. May
            fire during the call, or later when a remote rule resolves.
    """

    check_only: bool = False
    emit_class_effects: bool = True
    emit_messages: bool = True
    on_all_passed: Callable[[], None] | None = None


class FieldValidator(BaseService):
    """Runs rule chains against :class:`FieldState` records."""

    def __init__(
        self,
        registry: RuleRegistry,
        manager: RemoteCheckManager,
        presenter: PresenterManager,
    ) -> None:
        super().__init__(presenter)
        self._registry = registry
        self._manager = manager

    def validate(
        self,
        state: FieldState,
        value: Any,
        chain: str | RuleChain,
        context: FieldContext,
        options: ValidateOptions | None = None,
    ) -> FieldOutcome:
        """Validate *value* for the field tracked by *state*.

        Returns PASS, FAIL, or PENDING as of the end of the synchronous pass.

        Raises:
            UnknownRuleError: The chain names an unregistered rule.
            MalformedChainError: The chain string cannot be parsed.
            RuleParameterError: A rule got missing or unusable parameters.
            RemoteCheckError: The chain has a remote rule but no event loop
                is running.

        A fault leaves *state* unchecked, so the next call evaluates afresh.
        """
        options = options or ValidateOptions()
        invocations = parse_chain(chain) if isinstance(chain, str) else tuple(chain)
        field_id = state.field_id

        if options.emit_class_effects:
            self._emit("mark_field_error", field_id=field_id, error=False)

        if self._is_cached(state, value, options):
            logger.debug("Cache hit for %s", field_id)
            state.value = value
            return self.snapshot(state, cached=True)

        # Resolve and check every rule before touching state so config faults leave it intact.
        rules = [self._registry.get(inv.name) for inv in invocations]
        for invocation, rule in zip(invocations, rules, strict=True):
            rule.check_params(invocation.params)
            if isinstance(rule, RemoteRule):
                self._manager.require_loop(f"{invocation.name} on {field_id}")

        generation = state.begin(value, len(invocations))
        try:
            effects = self._run_chain(
                state, generation, value, invocations, rules, context, options
            )
        except FormgateError:
            state.abandon()
            raise

        state.settle()
        if effects:
            self._emit("apply_effects", field_id=field_id, effects=effects)
        return self.snapshot(state, effects=tuple(effects))

    def snapshot(
        self,
        state: FieldState,
        *,
        cached: bool = False,
        effects: tuple[Effect, ...] = (),
    ) -> FieldOutcome:
        """Describe *state* as it stands now, without evaluating anything."""
        return FieldOutcome(
            field_id=state.field_id,
            outcome=state.outcome or Outcome.PENDING,
            failed_rule=state.failed_rule,
            passed=state.passed,
            total=state.total,
            cached=cached,
            remote_error=state.remote_error,
            effects=effects,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _run_chain(
        self,
        state: FieldState,
        generation: int,
        value: Any,
        invocations: RuleChain,
        rules: list[Rule],
        context: FieldContext,
        options: ValidateOptions,
    ) -> list[Effect]:
        field_id = state.field_id
        if options.emit_messages:
            for inv in invocations:
                self._emit("hide_rule_message", field_id=field_id, rule=inv.name)

        effects: list[Effect] = []
        for invocation, rule in zip(invocations, rules, strict=True):
            if isinstance(rule, RemoteRule):
                request = rule.build_request(value, invocation.params, context)
                callback = functools.partial(
                    self._resolve, state, generation, invocation, options
                )
                self._manager.check(request, callback)
                continue

            result = rule.evaluate(value, invocation.params, context)
            effects.extend(result.effects)

            if result.outcome is Outcome.FAIL:
                state.fail(invocation.name)
                if options.emit_messages:
                    self._emit(
                        "show_rule_message", field_id=field_id, rule=invocation.name, message=None
                    )
                if options.emit_class_effects and not result.effects:
                    self._emit("mark_field_error", field_id=field_id, error=True)
                logger.debug("%s failed at %s", field_id, invocation)
                break

            if result.outcome is Outcome.PENDING:
                msg = f"Rule {invocation.name!r} answered PENDING but is not a remote rule"
                raise FormgateError(msg)

            if state.record_pass() and options.on_all_passed is not None:
                options.on_all_passed()

        return effects

    @staticmethod
    def _is_cached(state: FieldState, value: Any, options: ValidateOptions) -> bool:
        # A recorded failure or transport fault always forces a fresh pass.
        if not state.checked or state.outcome is Outcome.FAIL or state.remote_error is not None:
            return False
        return options.check_only or state.last_value == value

    def _resolve(
        self,
        state: FieldState,
        generation: int,
        invocation: RuleInvocation,
        options: ValidateOptions,
        result: RemoteCheckResult,
    ) -> None:
        """Apply a finished remote lookup to the field's tally."""
        if state.generation != generation:
            logger.debug("Ignoring remote result for superseded pass of %s", state.field_id)
            return

        if result.status is RemoteStatus.ERROR:
            state.remote_error = result.message or "remote check unavailable"
            return

        if options.emit_messages:
            self._emit(
                "show_remote_status",
                field_id=state.field_id,
                rule=invocation.name,
                available=result.available,
                message=result.message,
            )
        if not result.available:
            logger.debug("%s: value taken (%s)", state.field_id, invocation)
            return

        if state.record_pass() and options.on_all_passed is not None:
            options.on_all_passed()


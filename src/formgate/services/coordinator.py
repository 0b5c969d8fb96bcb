"""FormValidationCoordinator — the engine's top-level entry point.

Owns the per-field state table and wires the rule registry, the remote check
manager, and the presenters together. A submission partitions the fields into
singular fields and ``name[]`` groups, validates each, and turns the number of
failing units into one accept/reject decision.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field

from formgate.config.settings import FormgateSettings
from formgate.domain.chain import RuleChain
from formgate.domain.rules import RULE_REGISTRY, FailPredicate, FieldContext, Rule, RuleRegistry
from formgate.domain.state import FieldState
from formgate.domain.types import Decision, Outcome
from formgate.plugins.manager import PresenterManager
from formgate.services.base import BaseService
from formgate.services.field import FieldValidator, ValidateOptions
from formgate.services.group import GroupAggregator
from formgate.services.remote import RemoteCheckManager
from formgate.services.result import FieldOutcome, GroupResult, SubmissionDecision

logger = logging.getLogger(__name__)


class FormField(BaseModel):
    """One submitted field.

    Attributes:
        name: Field name; a name ending in the group suffix (``[]``) marks an
            element of a repeated group.
        value: Current value.
        chain: Rule-chain string, e.g. ``"required|min:3"``.
        field_id: Stable identifier. Defaults to ``name`` for singular fields
            and ``name#<position>`` for group elements.
        valid: Already marked valid by the caller; skipped on submit.
        attributes: Widget-reported facts passed to rules.
    """

    model_config = {"frozen": True}

    name: str
    value: Any = None
    chain: str
    field_id: str | None = None
    valid: bool = False
    attributes: dict[str, Any] = Field(default_factory=dict)

    def context(self) -> FieldContext:
        return FieldContext(
            field_id=self.field_id or self.name,
            name=self.name,
            attributes=self.attributes,
        )


_Evaluation = tuple[list[FieldOutcome], list[GroupResult]]


class FormValidationCoordinator(BaseService):
    """Validates fields and whole submissions.

    Parameters:
        settings: Engine settings; loaded from env and ``formgate.toml``
            when omitted.
        registry: Rule registry; the process-wide registry by default.
        manager: Remote check manager; one is built from ``settings.remote``
            when omitted. Inject a shared instance to share its in-flight table.
        presenter: Presenter manager receiving presentation calls. When
            omitted, presenters installed under the ``formgate.presenters``
            entry point group are discovered and loaded.
    """

    def __init__(
        self,
        *,
        settings: FormgateSettings | None = None,
        registry: RuleRegistry | None = None,
        manager: RemoteCheckManager | None = None,
        presenter: PresenterManager | None = None,
    ) -> None:
        registry = registry if registry is not None else RULE_REGISTRY
        if presenter is None:
            presenter = PresenterManager()
            presenter.discover_and_load(registry=registry)
        super().__init__(presenter)
        self._settings = settings if settings is not None else FormgateSettings.load()
        self._registry = registry
        self._manager = (
            manager if manager is not None else RemoteCheckManager(config=self._settings.remote)
        )
        self._validator = FieldValidator(self._registry, self._manager, self._presenter)
        self._groups = GroupAggregator(self._validator, self._presenter)
        self._states: dict[str, FieldState] = {}

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def settings(self) -> FormgateSettings:
        return self._settings

    @property
    def registry(self) -> RuleRegistry:
        return self._registry

    @property
    def manager(self) -> RemoteCheckManager:
        return self._manager

    def state(self, field_id: str) -> FieldState | None:
        return self._states.get(field_id)

    def forget(self, field_id: str) -> None:
        """Drop the state of a field the caller no longer shows."""
        self._states.pop(field_id, None)

    def register_rule(self, name: str, rule: Rule | FailPredicate) -> Rule:
        return self._registry.register(name, rule)

    # ------------------------------------------------------------------
    # Single field
    # ------------------------------------------------------------------

    def validate_field(
        self,
        field_id: str,
        value: Any,
        chain: str | RuleChain,
        *,
        name: str | None = None,
        attributes: Mapping[str, Any] | None = None,
        check_only: bool = False,
        emit_class_effects: bool = True,
        on_all_passed: Callable[[], None] | None = None,
    ) -> FieldOutcome:
        """Validate one field and return its outcome.

        The field's state is created on first use and kept across calls.
        """
        context = FieldContext(
            field_id=field_id,
            name=name or field_id,
            attributes=dict(attributes or {}),
        )
        options = ValidateOptions(
            check_only=check_only,
            emit_class_effects=emit_class_effects,
            on_all_passed=on_all_passed,
        )
        return self._validator.validate(self._state_for(field_id), value, chain, context, options)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(
        self,
        fields: Iterable[FormField],
        *,
        on_accept: Callable[[], None] | None = None,
        on_reject: Callable[[int], None] | None = None,
    ) -> SubmissionDecision:
        """Validate every field and decide whether the submission goes through.

        *on_accept* runs only when the decision is ACCEPT; *on_reject* runs
        only on REJECT and receives the number of failing units.
        """
        return self._decide(self._evaluate(list(fields)), on_accept, on_reject)

    validate_form = submit

    async def submit_async(
        self,
        fields: Iterable[FormField],
        *,
        on_accept: Callable[[], None] | None = None,
        on_reject: Callable[[int], None] | None = None,
    ) -> SubmissionDecision:
        """Like :meth:`submit`, but waits for remote checks before deciding.

        Fields are evaluated once. After the lookups have reported, the
        decision is read from the field states without running rules again.
        """
        evaluation = self._evaluate(list(fields))
        await self._manager.drain()
        return self._decide(self._collect(evaluation), on_accept, on_reject)

    async def aclose(self) -> None:
        await self._manager.aclose()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _state_for(self, field_id: str) -> FieldState:
        state = self._states.get(field_id)
        if state is None:
            state = FieldState(field_id=field_id)
            self._states[field_id] = state
        return state

    def _partition(
        self, fields: list[FormField]
    ) -> tuple[list[FormField], dict[str, list[FormField]]]:
        suffix = self._settings.form.group_suffix
        singles: list[FormField] = []
        groups: dict[str, list[FormField]] = {}
        for field in fields:
            if suffix and field.name.endswith(suffix):
                members = groups.setdefault(field.name, [])
                if field.field_id is None:
                    field = field.model_copy(update={"field_id": f"{field.name}#{len(members)}"})
                members.append(field)
            else:
                singles.append(field)
        return singles, groups

    def _evaluate(self, fields: list[FormField]) -> _Evaluation:
        singles, groups = self._partition(fields)
        suffix = self._settings.form.group_suffix

        outcomes: list[FieldOutcome] = []
        for field in singles:
            if field.valid:
                continue
            context = field.context()
            outcomes.append(
                self._validator.validate(
                    self._state_for(context.field_id), field.value, field.chain, context
                )
            )

        group_results: list[GroupResult] = []
        for name, members in groups.items():
            elements = []
            for member in members:
                context = member.context()
                elements.append(
                    (self._state_for(context.field_id), member.value, member.chain, context)
                )
            group_name = name[: -len(suffix)] if suffix else name
            group_results.append(self._groups.aggregate(group_name, elements))

        return outcomes, group_results

    def _refresh(self, outcome: FieldOutcome) -> FieldOutcome:
        state = self._states.get(outcome.field_id)
        if state is None:
            return outcome
        return self._validator.snapshot(state, effects=outcome.effects)

    def _collect(self, evaluation: _Evaluation) -> _Evaluation:
        """Re-read an evaluation from the current field states."""
        outcomes, group_results = evaluation
        return (
            [self._refresh(o) for o in outcomes],
            [
                self._groups.summarize(g.name, [self._refresh(e) for e in g.elements])
                for g in group_results
            ],
        )

    def _decide(
        self,
        evaluation: _Evaluation,
        on_accept: Callable[[], None] | None,
        on_reject: Callable[[int], None] | None,
    ) -> SubmissionDecision:
        outcomes, group_results = evaluation
        blocking_pending = self._settings.form.pending_blocks_submit

        total = 0
        for outcome in outcomes:
            if outcome.outcome is Outcome.FAIL:
                total += 1
            elif outcome.outcome is Outcome.PENDING and blocking_pending:
                total += 1
        for group in group_results:
            if group.outcome is Outcome.FAIL:
                total += 1
            elif blocking_pending and group.pending and not group.passed:
                total += 1

        every_outcome = [*outcomes, *(e for g in group_results for e in g.elements)]
        decision = SubmissionDecision(
            decision=Decision.ACCEPT if total == 0 else Decision.REJECT,
            total=total,
            fields=tuple(outcomes),
            groups=tuple(group_results),
            pending=[o.field_id for o in every_outcome if o.outcome is Outcome.PENDING],
            remote_unavailable=[o.field_id for o in every_outcome if o.remote_error],
        )

        if decision.accepted:
            logger.debug("Submission accepted")
            self._emit("notify_form_success")
            if on_accept is not None:
                on_accept()
        else:
            logger.debug("Submission rejected: %d failing unit(s)", total)
            self._emit("notify_form_failure", count=total)
            if on_reject is not None:
                on_reject(total)
        return decision

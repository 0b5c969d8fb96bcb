"""Result models returned by the validation services.

INVARIANT: FAIL and PENDING travel as values on these models. Only
integration faults are raised.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from formgate.domain.rules import Effect
from formgate.domain.types import Decision, Outcome


class FieldOutcome(BaseModel):
    """Outcome of validating one field.

    Attributes:
        field_id: Identifier of the validated field.
        outcome: Chain state when the synchronous pass finished.
        failed_rule: First failing rule, if the chain failed.
        passed: Rules counted as passed so far.
        total: Rules in the chain.
        cached: True when the fast path answered without evaluating rules.
        remote_error: Transport fault from the last remote lookup, if any.
        effects: Presentation effects produced by the rules.
    """

    model_config = {"frozen": True}

    field_id: str
    outcome: Outcome
    failed_rule: str | None = None
    passed: int = 0
    total: int = 0
    cached: bool = False
    remote_error: str | None = None
    effects: tuple[Effect, ...] = ()

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAIL


class GroupResult(BaseModel):
    """Aggregate outcome of a repeated (``name[]``) field group."""

    model_config = {"frozen": True}

    name: str
    elements: tuple[FieldOutcome, ...] = ()
    failures: int = 0
    outcome: Outcome = Outcome.PASS

    @property
    def pending(self) -> int:
        return sum(1 for e in self.elements if e.outcome is Outcome.PENDING)

    @property
    def passed(self) -> int:
        return sum(1 for e in self.elements if e.outcome is Outcome.PASS)


class SubmissionDecision(BaseModel):
    """Form-level verdict for one submission attempt.

    Attributes:
        decision: ACCEPT when no unit failed, REJECT otherwise.
        total: Number of failing units (singular fields plus groups).
        fields: Outcomes of the singular fields that were validated.
        groups: Outcomes of the repeated-field groups.
        pending: Field ids still waiting on a remote lookup.
        remote_unavailable: Field ids whose lookup hit a transport fault.
    """

    model_config = {"frozen": True}

    decision: Decision
    total: int = 0
    fields: tuple[FieldOutcome, ...] = ()
    groups: tuple[GroupResult, ...] = ()
    pending: list[str] = Field(default_factory=list)
    remote_unavailable: list[str] = Field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.decision is Decision.ACCEPT

"""formgate — declarative field validation with async remote uniqueness checks.

Public surface::

    from formgate import FormField, FormgateSettings, FormValidationCoordinator, configure_logging

    settings = FormgateSettings.load()
    configure_logging(settings)
    engine = FormValidationCoordinator(settings=settings)
    engine.validate_field("email", "a@b.com", "required|email")
    engine.validate_form([FormField(name="email", value="a@b.com", chain="required|email")])
"""

from formgate.config.logging import configure_logging
from formgate.config.settings import FormgateSettings
from formgate.domain.chain import RuleInvocation, parse_chain
from formgate.domain.errors import (
    FormgateError,
    MalformedChainError,
    RemoteCheckError,
    RemoteCheckUnavailable,
    RuleParameterError,
    UnknownRuleError,
)
from formgate.domain.rules import (
    RULE_REGISTRY,
    Effect,
    FieldContext,
    RemoteRequest,
    RemoteRule,
    Rule,
    RuleRegistry,
    RuleResult,
    get_rule,
    register_rule,
)
from formgate.domain.types import Decision, EffectKind, Outcome
from formgate.services.coordinator import FormField, FormValidationCoordinator
from formgate.services.remote import HttpxLookupTransport, RemoteCheckManager
from formgate.services.result import FieldOutcome, GroupResult, SubmissionDecision

__all__ = [
    "RULE_REGISTRY",
    "Decision",
    "Effect",
    "EffectKind",
    "FieldContext",
    "FieldOutcome",
    "FormField",
    "FormValidationCoordinator",
    "FormgateSettings",
    "FormgateError",
    "GroupResult",
    "HttpxLookupTransport",
    "MalformedChainError",
    "Outcome",
    "RemoteCheckError",
    "RemoteCheckManager",
    "RemoteCheckUnavailable",
    "RemoteRequest",
    "RemoteRule",
    "Rule",
    "RuleInvocation",
    "RuleParameterError",
    "RuleRegistry",
    "RuleResult",
    "SubmissionDecision",
    "UnknownRuleError",
    "configure_logging",
    "get_rule",
    "parse_chain",
    "register_rule",
]

"""Integration faults raised by the engine.

Validation outcomes (FAIL, PENDING) are values, never exceptions. Everything
here signals a configuration defect or a broken collaborator and is meant to
reach the integrating caller.
"""

from __future__ import annotations


class FormgateError(Exception):
    """Base class for every fault raised by formgate."""


class UnknownRuleError(FormgateError, LookupError):
    """A rule chain references a rule name that was never registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No rule registered under {name!r}")
        self.name = name


class MalformedChainError(FormgateError, ValueError):
    """A rule-chain string cannot be parsed."""

    def __init__(self, chain: str, reason: str) -> None:
        super().__init__(f"Malformed rule chain {chain!r}: {reason}")
        self.chain = chain
        self.reason = reason


class RuleParameterError(FormgateError, ValueError):
    """A rule was invoked with missing or unusable parameters."""

    def __init__(self, rule: str, reason: str) -> None:
        super().__init__(f"Rule {rule!r}: {reason}")
        self.rule = rule
        self.reason = reason


class RemoteCheckError(FormgateError, RuntimeError):
    """A remote rule could not be scheduled (e.g. no running event loop)."""


class RemoteCheckUnavailable(FormgateError):
    """The transport failed to complete a remote lookup.

    Distinct from a business "not available" answer: the lookup itself never
    produced a verdict.
    """


class ConfigError(FormgateError):
    """The formgate configuration file is unreadable."""

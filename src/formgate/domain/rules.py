"""Rule definitions and the rule registry.

Every rule is addressed by name from a rule chain. Synchronous rules answer
PASS or FAIL immediately; the single remote kind (:class:`RemoteRule`) answers
PENDING and describes the lookup it needs as a :class:`RemoteRequest`.

Rules never touch presentation state. A rule that needs a visible change
returns it as an :class:`Effect` on its :class:`RuleResult`.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Sequence
from typing import Any

from pydantic import BaseModel, Field

from formgate.domain.errors import RuleParameterError, UnknownRuleError
from formgate.domain.types import EffectKind, Outcome

# ---------------------------------------------------------------------------
# Rule inputs and outputs
# ---------------------------------------------------------------------------


class FieldContext(BaseModel):
    """Facts about the field under validation, supplied by the caller.

    ``attributes`` carries widget-reported state the value alone cannot
    express, e.g. ``{"widget_complete": True}`` for a payment element.
    """

    model_config = {"frozen": True}

    field_id: str
    name: str
    attributes: dict[str, Any] = Field(default_factory=dict)


class Effect(BaseModel):
    """A presentation change requested by a rule, applied by presenters."""

    model_config = {"frozen": True}

    kind: EffectKind
    field_id: str
    detail: dict[str, Any] = Field(default_factory=dict)


class RuleResult(BaseModel):
    """Outcome of a single rule plus any presentation effects."""

    model_config = {"frozen": True}

    outcome: Outcome
    effects: tuple[Effect, ...] = ()


class RemoteRequest(BaseModel):
    """Everything a transport needs to run one uniqueness lookup."""

    model_config = {"frozen": True}

    resource: str
    field_name: str
    field_id: str
    value: Any = None
    exclude_id: str | None = None

    @property
    def key(self) -> str:
        """In-flight table key: one outstanding lookup per resource and field."""
        return f"{self.resource}:{self.field_id}"


PASSED = RuleResult(outcome=Outcome.PASS)
FAILED = RuleResult(outcome=Outcome.FAIL)
PENDING = RuleResult(outcome=Outcome.PENDING)


# ---------------------------------------------------------------------------
# Rule base classes
# ---------------------------------------------------------------------------


class Rule(ABC):
    """Abstract base class for rules.

    Subclasses set ``name`` and ``min_params`` and implement :meth:`fails`.
    ``int_params`` lists the parameter positions that must parse as integers.
    """

    name: str = ""
    min_params: int = 0
    int_params: tuple[int, ...] = ()

    def __init__(self, name: str | None = None) -> None:
        if name is not None:
            self.name = name

    @abstractmethod
    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        """Return True when *value* violates the rule."""
        ...

    def failure_effects(self, context: FieldContext) -> tuple[Effect, ...]:
        return ()

    def check_params(self, params: Sequence[str]) -> None:
        """Raise :class:`RuleParameterError` for missing or unusable parameters."""
        if len(params) < self.min_params:
            msg = f"expects at least {self.min_params} parameter(s), got {len(params)}"
            raise RuleParameterError(self.name, msg)
        for index in self.int_params:
            _int_param(self.name, params, index)

    def evaluate(self, value: Any, params: Sequence[str], context: FieldContext) -> RuleResult:
        self.check_params(params)
        if self.fails(value, params, context):
            effects = self.failure_effects(context)
            return RuleResult(outcome=Outcome.FAIL, effects=effects) if effects else FAILED
        return PASSED

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name!r}>"


FailPredicate = Callable[[Any, Sequence[str], FieldContext], bool]


class PredicateRule(Rule):
    """Adapts a plain FAIL predicate ``(value, params, context) -> bool``."""

    def __init__(self, name: str, predicate: FailPredicate, *, min_params: int = 0) -> None:
        super().__init__(name)
        self.min_params = min_params
        self._predicate = predicate

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return bool(self._predicate(value, params, context))


class RemoteRule(Rule):
    """Base for rules resolved by an asynchronous lookup.

    :meth:`evaluate` only validates parameters and answers PENDING; the
    validator hands :meth:`build_request` to the remote check manager.
    """

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        # The verdict arrives asynchronously.
        return False

    def evaluate(self, value: Any, params: Sequence[str], context: FieldContext) -> RuleResult:
        self.check_params(params)
        return PENDING

    @abstractmethod
    def build_request(
        self, value: Any, params: Sequence[str], context: FieldContext
    ) -> RemoteRequest:
        """Describe the lookup that decides this rule."""
        ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _leading_int(raw: Any) -> int | None:
    """Integer prefix of *raw* (``"12px"`` -> 12), or None if there is none."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw)
    match = _LEADING_INT.match("" if raw is None else str(raw))
    return int(match.group(1)) if match else None


def _int_param(rule: str, params: Sequence[str], index: int) -> int:
    parsed = _leading_int(params[index])
    if parsed is None:
        msg = f"parameter {index + 1} must be an integer, got {params[index]!r}"
        raise RuleParameterError(rule, msg)
    return parsed


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _length(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value)
    return len(str(value))


# ---------------------------------------------------------------------------
# Built-in rules
# ---------------------------------------------------------------------------


class Required(Rule):
    name = "required"

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return not value


class Accepted(Rule):
    name = "accepted"
    _pattern = re.compile(r"(?:1|t(?:rue)?|y(?:es)?|ok(?:ay)?)", re.IGNORECASE)

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return self._pattern.fullmatch(_text(value)) is None


class In(Rule):
    name = "in"

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return _text(value) not in params


class NotIn(Rule):
    name = "not_in"

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return _text(value) in params


class Between(Rule):
    name = "between"
    min_params = 2
    int_params = (0, 1)

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        low = _int_param(self.name, params, 0)
        high = _int_param(self.name, params, 1)
        number = _leading_int(value)
        return number is None or not low <= number <= high


class Max(Rule):
    name = "max"
    min_params = 1
    int_params = (0,)

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return _length(value) > _int_param(self.name, params, 0)


class Min(Rule):
    name = "min"
    min_params = 1
    int_params = (0,)

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return _length(value) < _int_param(self.name, params, 0)


class AlphaNum(Rule):
    name = "alpha_num"
    _pattern = re.compile(r"[^a-zA-Z0-9]")

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return self._pattern.search(_text(value)) is not None


class Time(Rule):
    """``HH:MM:SS`` on a 24h clock; each field may be one or two digits."""

    name = "time"
    _pattern = re.compile(r"(2[0-3]|[01]?[0-9]):([0-5]?[0-9]):([0-5]?[0-9])")

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return self._pattern.fullmatch(_text(value)) is None


# Unicode ranges permitted in addresses alongside ASCII.
_UCS = r"\u00a0-\ud7ff\uf900-\ufdcf\ufdf0-\uffef"
_ATEXT = r"[a-z\d!#$%&'*+\-/=?^_`{|}~" + _UCS + r"]"
_FWS = r"(?:(?:[\x20\x09]*\x0d\x0a)?[\x20\x09]+)"
_QTEXT = r"[\x01-\x08\x0b\x0c\x0e-\x1f\x7f\x21\x23-\x5b\x5d-\x7e" + _UCS + r"]"
_QPAIR = r"\\[\x01-\x09\x0b\x0c\x0d-\x7f" + _UCS + r"]"
_LOCAL = (
    rf"(?:{_ATEXT}+(?:\.{_ATEXT}+)*"
    rf"|\x22(?:{_FWS}?(?:{_QTEXT}|{_QPAIR}))*{_FWS}?\x22)"
)
_LD = r"[a-z\d" + _UCS + r"]"
_L = r"[a-z" + _UCS + r"]"
_INNER = r"[a-z\d\-._~" + _UCS + r"]"
_DOMAIN = rf"(?:(?:{_LD}|{_LD}{_INNER}*{_LD})\.)+(?:{_L}|{_L}{_INNER}*{_L})"


class Email(Rule):
    name = "email"
    _pattern = re.compile(rf"{_LOCAL}@{_DOMAIN}", re.IGNORECASE)

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return self._pattern.fullmatch(_text(value)) is None


class Date(Rule):
    """``YYYY[-/]MM[-/]DD``; a two-digit year is also accepted."""

    name = "date"
    _pattern = re.compile(
        r"(?:[0-9]{2})?[0-9]{2}([/-])(1[0-2]|0?[1-9])([/-])(3[01]|[12][0-9]|0?[1-9])"
    )

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return self._pattern.fullmatch(_text(value)) is None


class ValidCard(Rule):
    """Passes once the payment widget reports itself complete."""

    name = "valid_cc"
    complete_attribute = "widget_complete"

    def fails(self, value: Any, params: Sequence[str], context: FieldContext) -> bool:
        return context.attributes.get(self.complete_attribute) is not True

    def failure_effects(self, context: FieldContext) -> tuple[Effect, ...]:
        return (Effect(kind=EffectKind.MARK_WIDGET_INVALID, field_id=context.field_id),)


class Unique(RemoteRule):
    """``unique:<resource>[,<exclude_id>]`` — value must not be taken remotely."""

    name = "unique"
    min_params = 1

    def check_params(self, params: Sequence[str]) -> None:
        super().check_params(params)
        if not params[0].strip():
            raise RuleParameterError(self.name, "resource name must not be empty")

    def build_request(
        self, value: Any, params: Sequence[str], context: FieldContext
    ) -> RemoteRequest:
        self.check_params(params)
        resource = params[0].strip()
        exclude_id = params[1] if len(params) > 1 and params[1] else None
        return RemoteRequest(
            resource=resource,
            field_name=context.name,
            field_id=context.field_id,
            value=value,
            exclude_id=exclude_id,
        )


BUILTIN_RULES: tuple[type[Rule], ...] = (
    Required,
    Accepted,
    In,
    NotIn,
    Between,
    Max,
    Min,
    AlphaNum,
    Time,
    Email,
    Date,
    ValidCard,
    Unique,
)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class RuleRegistry:
    """Name -> rule mapping. Built-in names are reserved."""

    def __init__(self, *, builtins: bool = True) -> None:
        self._rules: dict[str, Rule] = {}
        self._reserved: frozenset[str] = frozenset()
        if builtins:
            for rule_cls in BUILTIN_RULES:
                rule = rule_cls()
                self._rules[rule.name] = rule
            self._reserved = frozenset(self._rules)

    def register(self, name: str, rule: Rule | FailPredicate) -> Rule:
        """Register *rule* under *name* and return the stored rule.

        A bare callable is wrapped as a :class:`PredicateRule` FAIL predicate.

        Raises:
            ValueError: Empty name, a built-in name, or a name already bound
                to a different rule.
            TypeError: *rule* is neither a Rule nor callable.
        """
        normalized = name.strip()
        if not normalized:
            msg = "Rule name must not be empty"
            raise ValueError(msg)
        if normalized in self._reserved:
            msg = f"Rule {normalized!r} conflicts with a built-in rule"
            raise ValueError(msg)

        if not isinstance(rule, Rule) and not callable(rule):
            msg = f"Rule {normalized!r} must be a Rule or a callable predicate"
            raise TypeError(msg)

        existing = self._rules.get(normalized)
        if existing is not None:
            if existing is rule or getattr(existing, "_predicate", None) is rule:
                return existing
            msg = f"Rule {normalized!r} is already registered"
            raise ValueError(msg)

        if isinstance(rule, Rule):
            resolved = rule
            resolved.name = normalized
        else:
            resolved = PredicateRule(normalized, rule)
        self._rules[normalized] = resolved
        return resolved

    def get(self, name: str) -> Rule:
        """Look up a rule by name.

        Raises:
            UnknownRuleError: If nothing is registered under *name*.
        """
        try:
            return self._rules[name]
        except KeyError:
            raise UnknownRuleError(name) from None

    def names(self) -> list[str]:
        return sorted(self._rules)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


RULE_REGISTRY = RuleRegistry()


def register_rule(name: str, rule: Rule | FailPredicate) -> Rule:
    """Register a rule in the process-wide registry."""
    return RULE_REGISTRY.register(name, rule)


def get_rule(name: str) -> Rule:
    """Look up a rule in the process-wide registry."""
    return RULE_REGISTRY.get(name)

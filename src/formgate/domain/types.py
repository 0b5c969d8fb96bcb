"""Outcome and decision enums shared by every layer."""

from __future__ import annotations

from enum import StrEnum


class Outcome(StrEnum):
    """Result of evaluating one rule, or a whole rule chain."""

    PASS = "pass"
    FAIL = "fail"
    PENDING = "pending"


class Decision(StrEnum):
    """Form-level verdict for a submission attempt."""

    ACCEPT = "accept"
    REJECT = "reject"


class RemoteStatus(StrEnum):
    """How a remote uniqueness lookup finished."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


class EffectKind(StrEnum):
    """Presentation changes a rule may ask the presenter to apply."""

    MARK_WIDGET_INVALID = "mark_widget_invalid"

"""Shared pytest fixtures and test helpers for formgate tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from formgate.config.settings import FormgateSettings
from formgate.domain.rules import RemoteRequest, RuleRegistry
from formgate.plugins.manager import PresenterManager, hookimpl
from formgate.services.coordinator import FormValidationCoordinator
from formgate.services.remote import RemoteCheckManager, RemoteResponse

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class RecordingPresenter:
    """Presenter that records every presentation call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def named(self, hook: str) -> list[dict[str, Any]]:
        return [payload for name, payload in self.calls if name == hook]

    @hookimpl
    def show_rule_message(self, field_id: str, rule: str, message: str | None) -> None:
        self.calls.append(("show_rule_message", {"field_id": field_id, "rule": rule}))

    @hookimpl
    def hide_rule_message(self, field_id: str, rule: str) -> None:
        self.calls.append(("hide_rule_message", {"field_id": field_id, "rule": rule}))

    @hookimpl
    def mark_field_error(self, field_id: str, error: bool) -> None:
        self.calls.append(("mark_field_error", {"field_id": field_id, "error": error}))

    @hookimpl
    def mark_group_error(self, group: str, error: bool) -> None:
        self.calls.append(("mark_group_error", {"group": group, "error": error}))

    @hookimpl
    def show_remote_status(
        self,
        field_id: str,
        rule: str,
        available: bool,
        message: str,
    ) -> None:
        self.calls.append(
            (
                "show_remote_status",
                {"field_id": field_id, "rule": rule, "available": available, "message": message},
            )
        )

    @hookimpl
    def apply_effects(self, field_id: str, effects: list[Any]) -> None:
        self.calls.append(("apply_effects", {"field_id": field_id, "effects": list(effects)}))

    @hookimpl
    def notify_form_failure(self, count: int) -> None:
        self.calls.append(("notify_form_failure", {"count": count}))

    @hookimpl
    def notify_form_success(self) -> None:
        self.calls.append(("notify_form_success", {}))


class FakeTransport:
    """In-memory lookup transport.

    ``responses`` maps a value to a status string or an exception to raise.
    ``gates`` maps a value to an asyncio.Event the lookup waits on.
    """

    def __init__(
        self,
        responses: dict[Any, str | Exception] | None = None,
        *,
        default: str = "available",
    ) -> None:
        self.responses: dict[Any, str | Exception] = dict(responses or {})
        self.default = default
        self.gates: dict[Any, asyncio.Event] = {}
        self.requests: list[RemoteRequest] = []
        self.closed = False

    async def lookup(self, request: RemoteRequest) -> RemoteResponse:
        self.requests.append(request)
        gate = self.gates.get(request.value)
        if gate is not None:
            await gate.wait()
        answer = self.responses.get(request.value, self.default)
        if isinstance(answer, Exception):
            raise answer
        return RemoteResponse(status=answer, message=f"{request.value} is {answer}")

    async def aclose(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> RuleRegistry:
    """Fresh registry with only the built-in rules."""
    return RuleRegistry()


@pytest.fixture
def recorder() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def presenter(recorder: RecordingPresenter) -> PresenterManager:
    """PresenterManager with the recording presenter registered."""
    pm = PresenterManager()
    pm.register_plugin(recorder, name="recorder")
    return pm


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport({"taken@example.com": "taken"})


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> FormgateSettings:
    """Default settings, isolated from FORMGATE_* variables."""
    for var in ("FORMGATE_CONFIG", "FORMGATE_VERBOSE", "FORMGATE_LOG_JSON"):
        monkeypatch.delenv(var, raising=False)
    return FormgateSettings()


@pytest.fixture
def engine(
    settings: FormgateSettings,
    registry: RuleRegistry,
    transport: FakeTransport,
    presenter: PresenterManager,
) -> FormValidationCoordinator:
    """Coordinator wired to the fake transport and recording presenter."""
    return FormValidationCoordinator(
        settings=settings,
        registry=registry,
        manager=RemoteCheckManager(transport, config=settings.remote),
        presenter=presenter,
    )


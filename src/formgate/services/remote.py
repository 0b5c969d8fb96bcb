"""Remote uniqueness checks — transports and the in-flight request table.

The manager runs lookups as asyncio tasks on the caller's running event loop
and returns PENDING straight away. One task may be in flight per key;
issuing a new check for a key cancels the previous task before the new one
is registered, in a single synchronous step.

A cancelled or superseded task never reports: before calling back, the task
confirms it is still the one registered under its key.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from formgate.config.models import RemoteConfig
from formgate.domain.errors import RemoteCheckError, RemoteCheckUnavailable
from formgate.domain.rules import RemoteRequest
from formgate.domain.types import Outcome, RemoteStatus

logger = logging.getLogger(__name__)


class RemoteResponse(BaseModel):
    """JSON body of a uniqueness lookup: ``{"status": ..., "message": ...}``."""

    status: str
    message: str = ""


class RemoteCheckResult(BaseModel):
    """What a finished lookup reports back to the validator."""

    model_config = {"frozen": True}

    key: str
    status: RemoteStatus
    message: str = ""

    @property
    def available(self) -> bool:
        return self.status is RemoteStatus.AVAILABLE


ResultCallback = Callable[[RemoteCheckResult], None]


@runtime_checkable
class RemoteLookupTransport(Protocol):
    """Anything that can answer a uniqueness lookup."""

    async def lookup(self, request: RemoteRequest) -> RemoteResponse:
        """Run the lookup. Raise RemoteCheckUnavailable on transport faults."""
        ...


# ---------------------------------------------------------------------------
# HTTP transport
# ---------------------------------------------------------------------------


class HttpxLookupTransport:
    """``GET {base_url}{endpoint}?value=...&id=...`` via httpx.

    Parameters:
        config: Remote section of the settings.
        client: Pre-built client (tests pass one with a MockTransport).
            When omitted, the transport owns and closes its own client.
    """

    def __init__(
        self,
        config: RemoteConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or RemoteConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=httpx.Timeout(self._config.timeout_seconds),
            headers={"Accept": "application/json"},
        )

    def endpoint_for(self, request: RemoteRequest) -> str:
        return self._config.endpoint.format(
            resource=quote(request.resource, safe=""),
            field=quote(request.field_name, safe=""),
        )

    async def lookup(self, request: RemoteRequest) -> RemoteResponse:
        params: dict[str, str] = {"value": "" if request.value is None else str(request.value)}
        if request.exclude_id is not None:
            params["id"] = request.exclude_id

        url = self.endpoint_for(request)
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return RemoteResponse.model_validate(response.json())
        except httpx.HTTPError as exc:
            msg = f"Lookup {url} failed: {exc}"
            raise RemoteCheckUnavailable(msg) from exc
        except ValueError as exc:
            # Undecodable JSON and schema mismatches both land here.
            msg = f"Lookup {url} returned an unusable body: {exc}"
            raise RemoteCheckUnavailable(msg) from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


# ---------------------------------------------------------------------------
# RemoteCheckManager
# ---------------------------------------------------------------------------


class RemoteCheckManager:
    """Owns the key -> in-flight task table for remote rules.

    Parameters:
        transport: Lookup transport. Defaults to an :class:`HttpxLookupTransport`
            built from *config* on first use.
        config: Remote section of the settings.

    Lifecycle: entries are added by :meth:`check`, and removed when their
    task finishes, when they are superseded, or via :meth:`cancel` /
    :meth:`cancel_all` / :meth:`aclose`.
    """

    def __init__(
        self,
        transport: RemoteLookupTransport | None = None,
        *,
        config: RemoteConfig | None = None,
    ) -> None:
        self._config = config or RemoteConfig()
        self._transport = transport
        self._inflight: dict[str, asyncio.Task[None]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def transport(self) -> RemoteLookupTransport:
        if self._transport is None:
            self._transport = HttpxLookupTransport(self._config)
        return self._transport

    @property
    def inflight(self) -> MappingProxyType[str, asyncio.Task[None]]:
        """Read-only view of the in-flight table."""
        return MappingProxyType(self._inflight)

    def is_pending(self, key: str) -> bool:
        return key in self._inflight

    def check(self, request: RemoteRequest, on_result: ResultCallback) -> Outcome:
        """Schedule a lookup for *request* and return PENDING.

        Any task already registered under ``request.key`` is cancelled first.

        Raises:
            RemoteCheckError: If no asyncio event loop is running.
        """
        loop = self.require_loop(request.key)
        key = request.key
        self.cancel(key)
        task = loop.create_task(
            self._run(key, request, on_result),
            name=f"formgate-remote:{key}",
        )
        self._inflight[key] = task
        task.add_done_callback(functools.partial(self._forget, key))
        logger.debug("Remote check scheduled: %s", key)
        return Outcome.PENDING

    @staticmethod
    def require_loop(key: str) -> asyncio.AbstractEventLoop:
        """Return the running loop, or raise :class:`RemoteCheckError`."""
        try:
            return asyncio.get_running_loop()
        except RuntimeError as exc:
            msg = f"Remote check {key!r} needs a running event loop"
            raise RemoteCheckError(msg) from exc

    def cancel(self, key: str) -> bool:
        """Cancel the task registered under *key*. Returns True if one existed."""
        task = self._inflight.pop(key, None)
        if task is None:
            return False
        if not task.done():
            task.cancel()
            logger.debug("Remote check superseded: %s", key)
        return True

    def cancel_all(self) -> int:
        keys = list(self._inflight)
        for key in keys:
            self.cancel(key)
        return len(keys)

    async def drain(self) -> None:
        """Wait until every in-flight lookup has reported."""
        while self._inflight:
            tasks = list(self._inflight.values())
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for task, outcome in zip(tasks, results, strict=True):
                if isinstance(outcome, Exception):
                    logger.warning(
                        "Remote check %s raised",
                        task.get_name(),
                        exc_info=outcome,
                    )

    async def aclose(self) -> None:
        """Cancel everything in flight and release the transport."""
        self.cancel_all()
        closer: Any = getattr(self._transport, "aclose", None)
        if closer is not None:
            await closer()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _run(self, key: str, request: RemoteRequest, on_result: ResultCallback) -> None:
        try:
            response = await self.transport.lookup(request)
        except RemoteCheckUnavailable as exc:
            logger.warning("Remote check %s unavailable: %s", key, exc)
            result = RemoteCheckResult(key=key, status=RemoteStatus.ERROR, message=str(exc))
        else:
            status = (
                RemoteStatus.AVAILABLE
                if response.status == self._config.available_status
                else RemoteStatus.UNAVAILABLE
            )
            result = RemoteCheckResult(key=key, status=status, message=response.message)

        if self._inflight.get(key) is not asyncio.current_task():
            logger.debug("Discarding stale remote result: %s", key)
            return
        on_result(result)

    def _forget(self, key: str, task: asyncio.Task[None]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

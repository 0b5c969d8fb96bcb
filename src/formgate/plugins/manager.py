"""Presenter discovery, loading, and hook dispatch.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
Presenters implement any subset of :class:`FormgateHookSpec`.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

import pluggy

from formgate.plugins.hookspecs import FormgateHookSpec

if TYPE_CHECKING:
    from formgate.domain.rules import RuleRegistry

PROJECT_NAME = "formgate"
ENTRY_POINT_GROUP = "formgate.presenters"

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)

logger = logging.getLogger(__name__)


class PresenterManager:
    """Manages presenter discovery, registration, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FormgateHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, registry: RuleRegistry | None = None) -> list[str]:
        """Load presenters from the ``formgate.presenters`` entry point group.

        Rules contributed through ``register_rules`` land in *registry*
        (the process-wide registry by default).

        Returns a list of loaded presenter names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        for plugin in self._pm.get_plugins():
            self._register_plugin_rules(plugin, self._plugin_name(plugin), registry)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(
        self,
        plugin: object,
        name: str | None = None,
        *,
        registry: RuleRegistry | None = None,
    ) -> None:
        """Register a presenter instance directly (e.g. in tests or app setup)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        self._register_plugin_rules(plugin, resolved_name, registry)
        logger.debug("Registered presenter: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a presenter instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching presentation calls."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        """Return all registered presenters."""
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered presenters."""
        return [self._plugin_name(p) for p in self._pm.get_plugins()]

    def emit(self, hook_name: str, **payload: Any) -> bool:
        """Call *hook_name* on every presenter.

        INVARIANT: Presenter failures are warnings, never errors.
        Returns False when a presenter raised.
        """
        hook_fn = getattr(self._pm.hook, hook_name)
        try:
            hook_fn(**payload)
        except Exception:
            logger.warning("Presenter hook %s failed", hook_name, exc_info=True)
            return False
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _plugin_name(self, plugin: object) -> str:
        return self._pm.get_name(plugin) or plugin.__class__.__name__

    def _normalize_plugin_instances(self) -> None:
        """Replace registered presenter classes with instantiated objects.

        Entry-point loading may register a class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            if not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point presenter %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point presenter: %s", plugin_name)

    @staticmethod
    def _register_plugin_rules(
        plugin: object,
        plugin_name: str,
        registry: RuleRegistry | None,
    ) -> None:
        """Register rules exposed by a single presenter instance."""
        from formgate.domain.rules import RULE_REGISTRY

        hook = getattr(plugin, "register_rules", None)
        if hook is None:
            return

        try:
            rule_map = hook()
        except Exception:
            logger.warning(
                "Failed to collect rules from presenter %s",
                plugin_name,
                exc_info=True,
            )
            return

        if rule_map is None:
            return
        if not isinstance(rule_map, dict):
            logger.warning("Presenter %s returned non-dict rule registrations", plugin_name)
            return

        target = registry if registry is not None else RULE_REGISTRY
        for rule_name, rule in rule_map.items():
            try:
                target.register(rule_name, rule)
            except (TypeError, ValueError):
                logger.warning(
                    "Skipping rule registration %r from presenter %s",
                    rule_name,
                    plugin_name,
                    exc_info=True,
                )

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("formgate")`` sets a ``formgate_impl``
        attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "formgate_impl", None):
                return True
        return False

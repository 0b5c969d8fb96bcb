"""BaseService — shared foundation for formgate services.

Every service receives the :class:`PresenterManager` at construction time and
talks to the presentation layer only through :meth:`BaseService._emit`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from formgate.plugins.manager import PresenterManager

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes that notify presenters."""

    def __init__(self, presenter: PresenterManager) -> None:
        self._presenter = presenter

    @property
    def presenter(self) -> PresenterManager:
        return self._presenter

    def _emit(self, hook_name: str, **payload: Any) -> None:
        """Forward a presentation call.

        INVARIANT: Presenter failures are warnings, never errors.
        """
        if not self._presenter.emit(hook_name, **payload):
            logger.debug("Presentation call %s dropped", hook_name)

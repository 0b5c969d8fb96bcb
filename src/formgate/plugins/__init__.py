"""Presentation layer boundary — presenter plugins via pluggy.

Discovery: entry_points (pip-installed) in the ``formgate.presenters`` group.
INVARIANT: Presenter failures are warnings, never errors.
"""

from formgate.plugins.manager import PresenterManager, hookimpl

__all__ = ["PresenterManager", "hookimpl"]

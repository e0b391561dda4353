"""
Restoration registry: pending restore actions for every active stub.
"""

import atexit
import threading
from typing import Callable, Dict, List, Optional

from ..utils.logging_setup import get_logger

logger = get_logger(__name__)

RestoreAction = Callable[[], None]


class RestorationRegistry:
    """
    Registry for stub restore actions.

    Each stub registers its restore action when it patches its target and
    unregisters it when restored individually. ``restore_all`` runs every
    pending action and empties the registry, which makes it the usual
    teardown hook for a test suite. Registries are independent, so tests can
    use their own instead of the process-wide ``default_registry``.
    """

    def __init__(self, name: str = "registry"):
        self.name = name
        # dict keys keep insertion order; values unused
        self._actions: Dict[RestoreAction, None] = {}
        self._lock = threading.RLock()

    def register(self, action: RestoreAction) -> None:
        """Add a restore action; registering the same action twice is a no-op."""
        with self._lock:
            self._actions[action] = None

    def unregister(self, action: RestoreAction) -> None:
        """Remove a restore action if present."""
        with self._lock:
            self._actions.pop(action, None)

    def active(self) -> List[RestoreAction]:
        """Snapshot of the pending actions in registration order."""
        with self._lock:
            return list(self._actions)

    def restore_all(self) -> None:
        """
        Invoke every pending restore action, then clear the registry.

        Runs newest first over a snapshot, so stubs stacked on the same
        member unwind back to the original, and actions may touch the
        registry. Every action runs even if an earlier one fails; the first
        failure is raised once the registry has been cleared.
        """
        with self._lock:
            actions = list(self._actions)
            self._actions.clear()

        logger.debug(f"{self.name}: restoring {len(actions)} stub(s)")

        first_error: Optional[BaseException] = None
        for action in reversed(actions):
            try:
                action()
            except Exception as e:
                logger.error(f"{self.name}: restore action {action!r} failed: {e}")
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error

    def __len__(self) -> int:
        with self._lock:
            return len(self._actions)

    def __contains__(self, action: object) -> bool:
        with self._lock:
            return action in self._actions

    def __repr__(self) -> str:
        return f"RestorationRegistry(name={self.name!r}, active={len(self)})"


default_registry = RestorationRegistry("default")

_exit_hook_installed = False


def restore_all() -> None:
    """Restore every stub created against the default registry."""
    default_registry.restore_all()


def install_exit_hook() -> None:
    """Restore the default registry at interpreter exit (installed once)."""
    global _exit_hook_installed
    if not _exit_hook_installed:
        atexit.register(restore_all)
        _exit_hook_installed = True

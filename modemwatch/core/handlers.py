"""
Modem lifecycle callbacks.

Holds the add/update/remove handlers and dispatches to them in a
thread-safe manner.
"""

import logging
import threading
from dataclasses import replace
from typing import Callable, Optional

from ..types import Modem

logger = logging.getLogger(__name__)

# Type alias for lifecycle callbacks
ModemCallback = Callable[[Modem], None]


def _noop(modem: Modem) -> None:
    pass


class ModemHandlers:
    """
    Add/update/remove callbacks.

    Every handler defaults to a no-op, so dispatch never needs a None check.
    A misbehaving callback is logged and does not stop the monitor thread.
    """

    def __init__(self) -> None:
        self._on_add: ModemCallback = _noop
        self._on_update: ModemCallback = _noop
        self._on_remove: ModemCallback = _noop
        self._lock = threading.Lock()

    def register(
        self,
        on_add: Optional[ModemCallback] = None,
        on_update: Optional[ModemCallback] = None,
        on_remove: Optional[ModemCallback] = None
    ) -> None:
        """
        Replace handlers. Passing None keeps the current handler.

        Args:
            on_add: Called when a modem is added
            on_update: Called when a modem changes
            on_remove: Called when a modem is unplugged
        """
        with self._lock:
            if on_add is not None:
                self._on_add = on_add
            if on_update is not None:
                self._on_update = on_update
            if on_remove is not None:
                self._on_remove = on_remove
        logger.debug("Registered modem handlers")

    def added(self, modem: Modem) -> None:
        """Dispatch to the add handler."""
        with self._lock:
            callback = self._on_add
        self._dispatch("add", callback, modem)

    def updated(self, modem: Modem) -> None:
        """Dispatch to the update handler."""
        with self._lock:
            callback = self._on_update
        self._dispatch("update", callback, modem)

    def removed(self, modem: Modem) -> None:
        """Dispatch to the remove handler."""
        with self._lock:
            callback = self._on_remove
        self._dispatch("remove", callback, modem)

    def _dispatch(self, name: str, callback: ModemCallback, modem: Modem) -> None:
        # Call outside lock so a slow callback cannot block registration
        try:
            callback(replace(modem))
        except Exception as e:
            logger.error(f"Modem {name} handler failed: {e}", exc_info=True)

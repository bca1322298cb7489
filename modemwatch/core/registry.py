"""
Registry of tracked modems.

Maps the device node of each parent USB device to its (possibly partial)
Modem record in a thread-safe manner.
"""

import logging
import threading
from dataclasses import replace
from typing import Dict, Optional

from ..types import Modem

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """
    Thread-safe store of Modem records keyed by parent device path.

    Records go in and come out as copies, so a reader never sees a record
    the monitor thread is still filling in. Every write replaces the whole
    record for its key.
    """

    def __init__(self) -> None:
        self._devices: Dict[str, Modem] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> Optional[Modem]:
        """
        Get a copy of the record for a path.

        Args:
            path: Parent USB device node

        Returns:
            Copy of the record, or None if not tracked
        """
        with self._lock:
            modem = self._devices.get(path)
            return replace(modem) if modem is not None else None

    def get_or_create(self, path: str) -> Modem:
        """Get a copy of the record for a path, or a new empty record."""
        modem = self.get(path)
        if modem is None:
            modem = Modem(device_path=path)
        return modem

    def put(self, path: str, modem: Modem) -> None:
        """
        Store a record, replacing any previous one for the path.

        Args:
            path: Parent USB device node
            modem: Record to store (a copy is kept)
        """
        with self._lock:
            self._devices[path] = replace(modem)

    def pop(self, path: str) -> Optional[Modem]:
        """
        Remove and return the record for a path.

        Returns:
            Removed record, or None if not tracked
        """
        with self._lock:
            return self._devices.pop(path, None)

    def clear(self) -> int:
        """
        Remove every record.

        Returns:
            Number of records that were removed
        """
        with self._lock:
            count = len(self._devices)
            self._devices.clear()
        logger.debug(f"Cleared {count} records from registry")
        return count

    def snapshot(self, ready_only: bool = True) -> Dict[str, Modem]:
        """
        Get a point-in-time copy of the registry.

        Args:
            ready_only: Only include records with ready set (default: True)

        Returns:
            Dictionary mapping parent device paths to record copies
        """
        with self._lock:
            return {
                path: replace(modem)
                for path, modem in self._devices.items()
                if modem.ready or not ready_only
            }

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._devices

    def __len__(self) -> int:
        with self._lock:
            return len(self._devices)

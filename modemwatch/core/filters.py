"""
USB vendor/product filter set.
"""

import logging
import threading

from ..types import UsbFilter

logger = logging.getLogger(__name__)


class FilterSet:
    """
    Ordered collection of vendor/product filters.

    Filters are append-only: no de-duplication and no removal. Safe to
    extend while the monitor thread is matching events.
    """

    def __init__(self) -> None:
        self._filters: list[UsbFilter] = []
        self._lock = threading.Lock()

    def add(self, vendor_id: str, product_id: str) -> UsbFilter:
        """
        Append a filter.

        Args:
            vendor_id: USB vendor ID as reported by sysfs (e.g., "12d1")
            product_id: USB product ID as reported by sysfs (e.g., "1506")

        Returns:
            The added filter
        """
        usb_filter = UsbFilter(vendor_id, product_id)
        with self._lock:
            self._filters.append(usb_filter)
        logger.info(f"Added device filter {vendor_id}:{product_id}")
        return usb_filter

    def matches(self, vendor_id: str, product_id: str) -> bool:
        """Check if any filter matches the given IDs exactly."""
        with self._lock:
            return any(f.matches(vendor_id, product_id) for f in self._filters)

    def filters(self) -> list[UsbFilter]:
        """Get a copy of the filters in insertion order."""
        with self._lock:
            return list(self._filters)

    def __len__(self) -> int:
        with self._lock:
            return len(self._filters)

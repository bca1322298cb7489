"""
Main ModemManager class.

User-facing API that coordinates filters, handlers and the monitor thread.
"""

import logging
from typing import Optional

from .core import (
    Correlator,
    DeviceRegistry,
    FilterSet,
    IdentifierRetriever,
    ModemCallback,
    ModemHandlers,
    MonitorLoop,
)
from .core.correlator import DEFAULT_SETTLE_DELAY
from .core.hotplug import HotplugSourceFactory
from .core.monitor import DEFAULT_JOIN_TIMEOUT, DEFAULT_POLL_INTERVAL
from .types import Modem, UsbFilter

logger = logging.getLogger(__name__)


class ModemManager:
    """
    Tracks USB modems plugged into this host.

    Declare the modems of interest with vendor/product filters, register
    lifecycle handlers, then start monitoring:

    .. code-block:: python

        manager = ModemManager()
        manager.register_handlers(
            on_add=lambda m: print(f"Added {m.hardware_id} on {m.serial_port}"),
            on_remove=lambda m: print(f"Removed {m.hardware_id}"),
        )
        manager.add_filter("1199", "68a3")
        manager.add_filter("12d1", "1506")

        manager.start()
        ...
        print(manager.list_modems())
        manager.stop()

    Or with a context manager:

    .. code-block:: python

        with ModemManager() as manager:
            manager.add_filter("12d1", "1506")
            time.sleep(30)
            print(manager.list_modems())

    Handlers run on the monitor thread. The add and update handlers may
    receive a modem whose identifier could not be read yet; check
    ``modem.ready`` before using ``hardware_id``.
    """

    def __init__(
        self,
        source_factory: Optional[HotplugSourceFactory] = None,
        retriever: Optional[IdentifierRetriever] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        join_timeout: float = DEFAULT_JOIN_TIMEOUT,
        auto_start: bool = False
    ) -> None:
        """
        Initialize ModemManager.

        Args:
            source_factory: Callable opening the hot-plug source (for testing).
                           Defaults to udev via pyudev.
            retriever: Identifier retriever (for testing). Defaults to
                      AT+CGSN over pyserial.
            poll_interval: Seconds between polls when no event is pending (default: 1.0)
            settle_delay: Seconds to wait before reading the IMEI from a newly added tty (default: 5.0)
            join_timeout: Seconds stop() waits for the monitor thread (default: 10.0)
            auto_start: Start monitoring immediately (default: False)
        """
        self._filters = FilterSet()
        self._registry = DeviceRegistry()
        self._handlers = ModemHandlers()

        self._correlator = Correlator(
            filters=self._filters,
            registry=self._registry,
            handlers=self._handlers,
            retriever=retriever,
            settle_delay=settle_delay
        )
        self._monitor = MonitorLoop(
            correlator=self._correlator,
            registry=self._registry,
            source_factory=source_factory,
            poll_interval=poll_interval,
            join_timeout=join_timeout
        )

        logger.debug("Initialized ModemManager")

        if auto_start:
            self.start()

    def add_filter(self, vendor_id: str, product_id: str) -> UsbFilter:
        """
        Track devices with this USB vendor/product ID pair.

        Args:
            vendor_id: Four hex digits as in sysfs idVendor (e.g., "12d1")
            product_id: Four hex digits as in sysfs idProduct (e.g., "1506")

        Returns:
            The added filter
        """
        return self._filters.add(vendor_id, product_id)

    @property
    def filters(self) -> list[UsbFilter]:
        """Registered filters, in insertion order."""
        return self._filters.filters()

    def register_handlers(
        self,
        on_add: Optional[ModemCallback] = None,
        on_update: Optional[ModemCallback] = None,
        on_remove: Optional[ModemCallback] = None
    ) -> None:
        """
        Register lifecycle handlers. None keeps the current handler.

        Args:
            on_add: Called with the Modem when its command port appears
            on_update: Called with the Modem when its command port changes
            on_remove: Called with the last known Modem when it is unplugged
        """
        self._handlers.register(on_add, on_update, on_remove)

    def start(self) -> None:
        """
        Start monitoring in a background thread.

        Devices already plugged in are reported first, then hot-plug events.

        Raises:
            AlreadyMonitoringError: If monitoring is already running
        """
        self._monitor.start()

    def stop(self, wait: bool = True) -> None:
        """
        Stop monitoring and forget all tracked modems.

        Remove handlers are not called for the forgotten modems.

        Args:
            wait: Block until the monitor thread has exited

        Raises:
            NotMonitoringError: If monitoring is not running
        """
        self._monitor.stop(wait=wait)

    # Original API names
    monitor = start
    stop_monitor = stop

    def list_modems(self) -> dict[str, Modem]:
        """
        Get the ready modems.

        Returns:
            Copies of the ready records keyed by parent USB device node.
            The result is a snapshot and does not follow later events.
        """
        return self._registry.snapshot(ready_only=True)

    snapshot = list_modems

    @property
    def is_monitoring(self) -> bool:
        """Check if the monitor thread is running."""
        return self._monitor.is_running

    def __enter__(self):
        """Context manager entry."""
        if not self.is_monitoring:
            self.start()
        return self

    def __exit__(self, *exc):
        """Context manager exit."""
        if self.is_monitoring:
            self.stop()

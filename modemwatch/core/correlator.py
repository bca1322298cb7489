"""
Hot-plug event correlation.

Merges the tty and net events of one physical USB modem into a single
Modem record and decides which lifecycle callback fires.
"""

import logging
import time
from typing import Callable, Optional

from .filters import FilterSet
from .handlers import ModemHandlers
from .hotplug import HotplugDevice
from .identifier import IdentifierRetriever
from .registry import DeviceRegistry
from ..exceptions import ModemWatchError
from ..types import DeviceAction, Modem, Subsystem

logger = logging.getLogger(__name__)

# Endpoint count of the AT command interface on composite modems
COMMAND_INTERFACE_ENDPOINTS = "03"
# Seconds to wait after "add" before the tty node is writable
DEFAULT_SETTLE_DELAY = 5.0

_RELEVANT_SUBSYSTEMS = (Subsystem.TTY.value, Subsystem.NET.value)
_UPDATE_ACTIONS = (DeviceAction.CHANGE.value, DeviceAction.UPDATE.value)


class Correlator:
    """
    Applies hot-plug events to the device registry.

    Records are keyed by the device node of the parent USB device, not the
    tty or net device itself. That is how events from the two subsystems
    converge on one record.

    Handler policy:

    - "remove" of a tracked parent fires the remove handler
    - net events only fill in the interface name and never fire a handler
    - tty events on the command interface fire add (or update for "change"),
      even when the identifier could not be read; check ``Modem.ready``
    """

    def __init__(
        self,
        filters: FilterSet,
        registry: DeviceRegistry,
        handlers: ModemHandlers,
        retriever: Optional[IdentifierRetriever] = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        """
        Initialize correlator.

        Args:
            filters: Vendor/product filters deciding which devices are tracked
            registry: Registry of Modem records
            handlers: Lifecycle callbacks
            retriever: Identifier retriever (default: serial AT+CGSN)
            settle_delay: Seconds to wait before reading the IMEI from a newly added tty
            sleep: Sleep function used for the settle delay
        """
        self.filters = filters
        self.registry = registry
        self.handlers = handlers
        self.retriever = retriever or IdentifierRetriever()
        self.settle_delay = settle_delay
        self._sleep = sleep

    def handle(self, device: HotplugDevice, action: Optional[str] = None) -> None:
        """
        Process one hot-plug event.

        Args:
            device: Device reported by the hot-plug source
            action: Override for the device's own action (enumeration uses "add")
        """
        action = action or device.action

        if action == DeviceAction.REMOVE.value:
            self._handle_remove(device)
            return

        subsystem = device.subsystem
        if subsystem not in _RELEVANT_SUBSYSTEMS:
            return

        usb_device = device.usb_parent()
        if usb_device is None:
            logger.debug(f"Ignoring {device.sys_name}: no USB parent")
            return

        vendor_id = usb_device.attribute("idVendor") or ""
        product_id = usb_device.attribute("idProduct") or ""
        if not self.filters.matches(vendor_id, product_id):
            logger.debug(f"Ignoring {device.sys_name}: {vendor_id}:{product_id} not filtered")
            return

        path = usb_device.device_node
        modem = self.registry.get_or_create(path)

        if subsystem == Subsystem.NET.value:
            modem.network_interface = device.sys_name
            self.registry.put(path, modem)
            logger.debug(f"Modem {path} network interface: {device.sys_name}")
            return

        self._handle_tty(device, action, path, modem)

    def _handle_remove(self, device: HotplugDevice) -> None:
        path = device.device_node
        modem = self.registry.get(path)
        if modem is None:
            return

        logger.info(f"Modem removed: {path} ({modem.hardware_id or 'no identifier'})")
        self.handlers.removed(modem)
        self.registry.pop(path)

    def _handle_tty(self, device: HotplugDevice, action: str, path: str, modem: Modem) -> None:
        endpoints = device.interface_attribute("bNumEndpoints")
        if endpoints != COMMAND_INTERFACE_ENDPOINTS:
            logger.debug(f"Ignoring {device.sys_name}: {endpoints} endpoints, not a command interface")
            return

        if action == DeviceAction.ADD.value and self.settle_delay > 0:
            logger.debug(f"Waiting {self.settle_delay}s for {device.device_node} to settle")
            self._sleep(self.settle_delay)

        port = device.device_node
        try:
            hardware_id = self.retriever.retrieve_id(port)
        except ModemWatchError as e:
            logger.warning(f"Could not read identifier from {port}: {e}")
        else:
            modem.serial_port = port
            modem.hardware_id = hardware_id
            modem.mark_ready()

        self.registry.put(path, modem)

        if action in _UPDATE_ACTIONS:
            logger.info(f"Modem updated: {path} on {port} (ready={modem.ready})")
            self.handlers.updated(modem)
        else:
            logger.info(f"Modem added: {path} on {port} (ready={modem.ready})")
            self.handlers.added(modem)

"""
Hot-plug notification source abstraction.

Wraps udev device enumeration and the netlink event stream behind a small
interface so the event loop can be driven by a mock in tests.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Deque, Iterable, Iterator, Optional

import pyudev

from ..types import DeviceAction, Subsystem

logger = logging.getLogger(__name__)

# Signature: factory() -> HotplugSource
HotplugSourceFactory = Callable[[], "HotplugSource"]

WATCHED_SUBSYSTEMS = (Subsystem.TTY.value, Subsystem.NET.value)


class HotplugDevice(ABC):
    """A device as seen in a hot-plug event or in the device tree."""

    @property
    @abstractmethod
    def action(self) -> str:
        """Hot-plug action ("add", "remove", "change")."""
        pass

    @property
    @abstractmethod
    def device_node(self) -> str:
        """Device node path, or empty string if the device has none."""
        pass

    @property
    @abstractmethod
    def subsystem(self) -> str:
        """Subsystem name (e.g., "tty", "net", "usb")."""
        pass

    @property
    @abstractmethod
    def sys_name(self) -> str:
        """Short device name (e.g., "ttyUSB2", "wwan0")."""
        pass

    @property
    @abstractmethod
    def parent(self) -> Optional["HotplugDevice"]:
        """Direct parent in the device tree."""
        pass

    @abstractmethod
    def find_parent(self, subsystem: str, device_type: Optional[str] = None) -> Optional["HotplugDevice"]:
        """
        Find the nearest ancestor with the given subsystem and device type.

        Args:
            subsystem: Ancestor subsystem (e.g., "usb")
            device_type: Ancestor device type (e.g., "usb_device")

        Returns:
            Matching ancestor or None
        """
        pass

    @abstractmethod
    def attribute(self, name: str) -> Optional[str]:
        """
        Read a sysfs attribute.

        Args:
            name: Attribute name (e.g., "idVendor")

        Returns:
            Attribute value or None if absent
        """
        pass

    def usb_parent(self) -> Optional["HotplugDevice"]:
        """Find the parent USB device representing the whole peripheral."""
        return self.find_parent(Subsystem.USB.value, "usb_device")

    def interface_attribute(self, name: str) -> Optional[str]:
        """Read a sysfs attribute of the grandparent (the USB interface of a tty)."""
        parent = self.parent
        grandparent = parent.parent if parent is not None else None
        if grandparent is None:
            return None
        return grandparent.attribute(name)


class HotplugSource(ABC):
    """Abstract base class for hot-plug notification sources."""

    @abstractmethod
    def enumerate(self) -> Iterable[HotplugDevice]:
        """
        List devices already present in the watched subsystems.

        Returns:
            Devices reporting action "add"
        """
        pass

    @abstractmethod
    def poll(self) -> Optional[HotplugDevice]:
        """
        Receive the next hot-plug event without blocking.

        Returns:
            Next device event, or None if nothing is pending
        """
        pass

    def close(self) -> None:
        """Release the source."""
        pass


class UdevDevice(HotplugDevice):
    """HotplugDevice backed by a pyudev.Device."""

    def __init__(self, device: pyudev.Device, default_action: str = DeviceAction.ADD.value) -> None:
        self._device = device
        self._default_action = default_action

    @property
    def action(self) -> str:
        return self._device.action or self._default_action

    @property
    def device_node(self) -> str:
        return self._device.device_node or ""

    @property
    def subsystem(self) -> str:
        return self._device.subsystem or ""

    @property
    def sys_name(self) -> str:
        return self._device.sys_name

    @property
    def parent(self) -> Optional[HotplugDevice]:
        parent = self._device.parent
        return UdevDevice(parent, self._default_action) if parent is not None else None

    def find_parent(self, subsystem: str, device_type: Optional[str] = None) -> Optional[HotplugDevice]:
        parent = self._device.find_parent(subsystem, device_type)
        return UdevDevice(parent, self._default_action) if parent is not None else None

    def attribute(self, name: str) -> Optional[str]:
        value = self._device.attributes.get(name)
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="ignore")
        return value.strip()

    def __repr__(self) -> str:
        return f"UdevDevice({self._device.sys_path!r}, action={self.action!r})"


class UdevHotplugSource(HotplugSource):
    """
    Hot-plug source backed by libudev through pyudev.

    Listens on the udev netlink socket for tty, net and usb_device events.
    usb_device events are needed so that unplugging the peripheral reports
    the parent device node the registry is keyed by.
    """

    def __init__(self, subsystems: Iterable[str] = WATCHED_SUBSYSTEMS) -> None:
        """
        Initialize udev source and start receiving events.

        Args:
            subsystems: Subsystems to enumerate and monitor
        """
        self.subsystems = tuple(subsystems)
        self._context = pyudev.Context()
        self._monitor = pyudev.Monitor.from_netlink(self._context)

        for subsystem in self.subsystems:
            self._monitor.filter_by(subsystem)
        self._monitor.filter_by(Subsystem.USB.value, device_type="usb_device")

        self._monitor.start()
        logger.debug(f"Listening for udev events on {self.subsystems}")

    def enumerate(self) -> Iterator[HotplugDevice]:
        if self._context is None:
            return
        for subsystem in self.subsystems:
            for device in self._context.list_devices(subsystem=subsystem):
                yield UdevDevice(device)

    def poll(self) -> Optional[HotplugDevice]:
        if self._monitor is None:
            return None
        device = self._monitor.poll(timeout=0)
        if device is None:
            return None
        return UdevDevice(device)

    def close(self) -> None:
        """Drop the netlink monitor and context so libudev releases them."""
        if self._monitor is None:
            return
        self._monitor = None
        self._context = None
        logger.debug("Closed udev monitor")


class MockDevice(HotplugDevice):
    """
    Mock device for testing.

    Builds device trees by hand:

    .. code-block:: python

        usb = MockDevice("1-1", "usb", device_node="/dev/bus/usb/001/002",
                         device_type="usb_device",
                         attributes={"idVendor": "12d1", "idProduct": "1506"})
        iface = MockDevice("1-1:1.2", "usb", parent=usb,
                           attributes={"bNumEndpoints": "03"})
        port = MockDevice("ttyUSB2", "usb-serial", parent=iface)
        tty = MockDevice("ttyUSB2", "tty", device_node="/dev/ttyUSB2", parent=port)
    """

    def __init__(
        self,
        sys_name: str,
        subsystem: str,
        device_node: str = "",
        action: str = DeviceAction.ADD.value,
        device_type: Optional[str] = None,
        attributes: Optional[dict[str, str]] = None,
        parent: Optional["MockDevice"] = None
    ) -> None:
        self._sys_name = sys_name
        self._subsystem = subsystem
        self._device_node = device_node
        self._action = action
        self.device_type = device_type
        self.attributes = dict(attributes or {})
        self._parent = parent

    @property
    def action(self) -> str:
        return self._action

    @property
    def device_node(self) -> str:
        return self._device_node

    @property
    def subsystem(self) -> str:
        return self._subsystem

    @property
    def sys_name(self) -> str:
        return self._sys_name

    @property
    def parent(self) -> Optional["MockDevice"]:
        return self._parent

    def find_parent(self, subsystem: str, device_type: Optional[str] = None) -> Optional["MockDevice"]:
        ancestor = self._parent
        while ancestor is not None:
            if ancestor.subsystem == subsystem and (device_type is None or ancestor.device_type == device_type):
                return ancestor
            ancestor = ancestor.parent
        return None

    def attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def with_action(self, action: str) -> "MockDevice":
        """Copy of this device reporting a different action."""
        return MockDevice(
            self._sys_name,
            self._subsystem,
            device_node=self._device_node,
            action=action,
            device_type=self.device_type,
            attributes=self.attributes,
            parent=self._parent
        )

    def __repr__(self) -> str:
        return f"MockDevice({self._sys_name!r}, {self._subsystem!r}, action={self._action!r})"


class MockHotplugSource(HotplugSource):
    """
    Mock hot-plug source for testing.

    Existing devices are returned by enumerate(); pushed events are handed
    out one per poll() in push order.
    """

    def __init__(self, existing: Optional[Iterable[HotplugDevice]] = None) -> None:
        self._existing: list[HotplugDevice] = list(existing or [])
        self._events: Deque[HotplugDevice] = deque()
        self._lock = threading.Lock()
        self.closed = False
        self.poll_count = 0

    def add_existing(self, device: HotplugDevice) -> None:
        """Add a device reported by enumerate()."""
        with self._lock:
            self._existing.append(device)

    def push_event(self, device: HotplugDevice) -> None:
        """Queue a live hot-plug event."""
        with self._lock:
            self._events.append(device)
            logger.debug(f"Queued mock event: {device}")

    def pending(self) -> int:
        """Number of events not yet polled."""
        with self._lock:
            return len(self._events)

    def enumerate(self) -> list[HotplugDevice]:
        with self._lock:
            return list(self._existing)

    def poll(self) -> Optional[HotplugDevice]:
        with self._lock:
            self.poll_count += 1
            if self._events:
                return self._events.popleft()
        return None

    def close(self) -> None:
        self.closed = True

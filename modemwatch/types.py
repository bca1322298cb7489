"""
Data types and structures for modemwatch.

Provides type-safe representations of tracked devices.
"""

from dataclasses import dataclass
from enum import Enum


class DeviceAction(str, Enum):
    """Hot-plug actions reported by the kernel."""
    ADD = "add"
    REMOVE = "remove"
    CHANGE = "change"
    UPDATE = "update"


class Subsystem(str, Enum):
    """Device subsystems the tracker cares about."""
    TTY = "tty"
    NET = "net"
    USB = "usb"


@dataclass(frozen=True)
class UsbFilter:
    """USB vendor/product pair a caller wants to track."""
    vendor_id: str   # e.g., "12d1"
    product_id: str  # e.g., "1506"

    def matches(self, vendor_id: str, product_id: str) -> bool:
        """Check for an exact match on both IDs."""
        return self.vendor_id == vendor_id and self.product_id == product_id


@dataclass
class Modem:
    """
    Logical USB modem record.

    Built incrementally from separate tty and net hot-plug events for the
    same parent USB device. Fields stay empty until the matching event has
    been seen.

    Attributes:
        network_interface: Network interface name (e.g., "wwan0")
        serial_port: AT command port device node (e.g., "/dev/ttyUSB2")
        hardware_id: IMEI read from the AT command port
        ready: True once serial_port and hardware_id are both known
        device_path: Device node of the parent USB device
    """
    network_interface: str = ""
    serial_port: str = ""
    hardware_id: str = ""
    ready: bool = False
    device_path: str = ""

    @property
    def is_complete(self) -> bool:
        """Check if both the serial port and hardware ID are known."""
        return bool(self.serial_port and self.hardware_id)

    def mark_ready(self) -> None:
        """Derive the ready flag from the populated fields."""
        self.ready = self.is_complete

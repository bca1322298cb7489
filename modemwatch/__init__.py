"""
modemwatch - Track USB modems through udev hot-plug events.
"""

from .version import __version__
from .manager import ModemManager

from .types import (
    Modem,
    UsbFilter,
    DeviceAction,
    Subsystem,
)

from .core import (
    MockTransport,
    MockDevice,
    MockHotplugSource,
)

from .exceptions import (
    ModemWatchError,
    TransportError,
    TransportOpenError,
    TransportWriteError,
    TransportReadError,
    InvalidIdentifierError,
    MonitorStateError,
    AlreadyMonitoringError,
    NotMonitoringError,
)

__all__ = [
    "__version__",
    "ModemManager",
    "Modem",
    "UsbFilter",
    "DeviceAction",
    "Subsystem",
    "MockTransport",
    "MockDevice",
    "MockHotplugSource",
    "ModemWatchError",
    "TransportError",
    "TransportOpenError",
    "TransportWriteError",
    "TransportReadError",
    "InvalidIdentifierError",
    "MonitorStateError",
    "AlreadyMonitoringError",
    "NotMonitoringError",
]

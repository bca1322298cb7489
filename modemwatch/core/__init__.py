"""
Core device tracking infrastructure.

Provides low-level building blocks for modem tracking:
- Transport: Serial communication abstraction
- Identifier: IMEI retrieval over AT+CGSN
- Hotplug: udev device enumeration and event stream
- Registry/Filters/Handlers: Shared state of the tracker
- Correlator: Merging of tty and net events into Modem records
- MonitorLoop: Background thread driving the correlator
"""

from .transport import Transport, SerialTransport, MockTransport
from .identifier import IdentifierRetriever
from .hotplug import (
    HotplugDevice,
    HotplugSource,
    UdevHotplugSource,
    MockDevice,
    MockHotplugSource,
)
from .filters import FilterSet
from .registry import DeviceRegistry
from .handlers import ModemHandlers, ModemCallback
from .correlator import Correlator
from .monitor import MonitorLoop, MonitorState

__all__ = [
    "Transport",
    "SerialTransport",
    "MockTransport",
    "IdentifierRetriever",
    "HotplugDevice",
    "HotplugSource",
    "UdevHotplugSource",
    "MockDevice",
    "MockHotplugSource",
    "FilterSet",
    "DeviceRegistry",
    "ModemHandlers",
    "ModemCallback",
    "Correlator",
    "MonitorLoop",
    "MonitorState",
]

"""
Pytest configuration and fixtures.

Provides shared test fixtures for modemwatch tests.
"""

import time
import pytest
import logging

from modemwatch.core import (
    Correlator,
    DeviceRegistry,
    FilterSet,
    IdentifierRetriever,
    MockDevice,
    MockHotplugSource,
    MockTransport,
    ModemHandlers,
)
from modemwatch.exceptions import TransportOpenError


# Enable logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# 15-digit IMEI plus CRLF (17 bytes), then the final result code; 25 bytes total
IMEI = "123456789012345"
IMEI_FRAME = b"123456789012345\r\n\r\nOK\r\n\r\n"
ECHO = b"AT+CGSN\r\n"

USB_NODE = "/dev/bus/usb/001/004"


class ScriptedTransports:
    """
    Transport factory handing out MockTransports with per-port replies.

    Each opened transport returns the echo on the first read and the
    scripted reply on the second.
    """

    def __init__(self) -> None:
        self.replies: dict[str, bytes] = {}
        self.fail_open: set[str] = set()
        self.fail_write: set[str] = set()
        self.fail_read: set[str] = set()
        self.opened: list[tuple[str, int, float]] = []
        self.transports: list[MockTransport] = []

    def set_reply(self, port: str, reply: bytes) -> None:
        self.replies[port] = reply

    def __call__(self, port: str, baudrate: int, timeout: float) -> MockTransport:
        self.opened.append((port, baudrate, timeout))
        if port in self.fail_open:
            raise TransportOpenError("Simulated open failure", port=port)

        transport = MockTransport(
            port=port,
            fail_write=port in self.fail_write,
            fail_read=port in self.fail_read
        )
        transport.add_reply(ECHO)
        transport.add_reply(self.replies.get(port, b""))
        self.transports.append(transport)
        return transport


class EventRecorder:
    """Records handler calls as (name, modem) tuples."""

    def __init__(self) -> None:
        self.calls = []

    def on_add(self, modem):
        self.calls.append(("add", modem))

    def on_update(self, modem):
        self.calls.append(("update", modem))

    def on_remove(self, modem):
        self.calls.append(("remove", modem))

    def named(self, name):
        return [modem for call, modem in self.calls if call == name]


def make_usb_device(vendor_id="12d1", product_id="1506", device_node=USB_NODE, bus_id="1-1"):
    """Parent USB device of a modem."""
    return MockDevice(
        bus_id,
        "usb",
        device_node=device_node,
        device_type="usb_device",
        attributes={"idVendor": vendor_id, "idProduct": product_id}
    )


def make_tty(usb_device, name="ttyUSB2", endpoints="03", action="add", interface=2):
    """tty device under a USB interface with the given endpoint count."""
    iface = MockDevice(
        f"{usb_device.sys_name}:1.{interface}",
        "usb",
        device_type="usb_interface",
        attributes={"bNumEndpoints": endpoints},
        parent=usb_device
    )
    port = MockDevice(name, "usb-serial", parent=iface)
    return MockDevice(name, "tty", device_node=f"/dev/{name}", action=action, parent=port)


def make_net(usb_device, name="wwan0", action="add", interface=4):
    """Network interface device under a USB interface."""
    iface = MockDevice(
        f"{usb_device.sys_name}:1.{interface}",
        "usb",
        device_type="usb_interface",
        attributes={"bNumEndpoints": "01"},
        parent=usb_device
    )
    return MockDevice(name, "net", action=action, parent=iface)


def wait_for(predicate, timeout=2.0, interval=0.01):
    """Poll predicate until true or timeout. Returns the last result."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def transports():
    """
    Create a ScriptedTransports factory.

    Example:
        def test_something(transports):
            transports.set_reply("/dev/ttyUSB2", IMEI_FRAME)
    """
    return ScriptedTransports()


@pytest.fixture
def retriever(transports):
    """IdentifierRetriever backed by scripted mock transports."""
    return IdentifierRetriever(transport_factory=transports)


@pytest.fixture
def recorder():
    """Handler call recorder."""
    return EventRecorder()


@pytest.fixture
def filters():
    """FilterSet tracking 12d1:1506."""
    filter_set = FilterSet()
    filter_set.add("12d1", "1506")
    return filter_set


@pytest.fixture
def registry():
    """Empty DeviceRegistry."""
    return DeviceRegistry()


@pytest.fixture
def sleeps():
    """Records settle delays instead of sleeping."""
    return []


@pytest.fixture
def correlator(filters, registry, recorder, retriever, sleeps):
    """
    Create a Correlator wired to the recorder and scripted transports.

    Example:
        def test_add(correlator, transports, recorder):
            transports.set_reply("/dev/ttyUSB2", IMEI_FRAME)
            correlator.handle(make_tty(make_usb_device()))
            assert recorder.named("add")
    """
    handlers = ModemHandlers()
    handlers.register(recorder.on_add, recorder.on_update, recorder.on_remove)
    return Correlator(
        filters=filters,
        registry=registry,
        handlers=handlers,
        retriever=retriever,
        settle_delay=5.0,
        sleep=sleeps.append
    )


@pytest.fixture
def hotplug_source():
    """Create an empty MockHotplugSource."""
    source = MockHotplugSource()
    yield source
    source.close()

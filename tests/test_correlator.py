"""
Tests for hot-plug event correlation.
"""

from modemwatch.core.hotplug import MockDevice

from conftest import (
    IMEI,
    IMEI_FRAME,
    USB_NODE,
    make_net,
    make_tty,
    make_usb_device,
)

TTY = "/dev/ttyUSB2"


def test_tty_add_ready(correlator, transports, registry, recorder):
    """Test a command-port tty with a readable IMEI becomes a ready modem."""
    transports.set_reply(TTY, IMEI_FRAME)

    correlator.handle(make_tty(make_usb_device()))

    modem = registry.get(USB_NODE)
    assert modem.ready is True
    assert modem.serial_port == TTY
    assert modem.hardware_id == IMEI
    assert modem.device_path == USB_NODE

    added = recorder.named("add")
    assert len(added) == 1
    assert added[0].hardware_id == IMEI
    assert added[0].ready is True
    assert recorder.named("update") == []


def test_tty_add_short_reply_still_notifies(correlator, transports, registry, recorder):
    """Test the add handler fires with a non-ready modem when the IMEI is unreadable.

    Consumers are notified of not-yet-ready modems on purpose and must
    check ``ready`` themselves.
    """
    transports.set_reply(TTY, b"1234567890")

    correlator.handle(make_tty(make_usb_device()))

    modem = registry.get(USB_NODE)
    assert modem.ready is False
    assert modem.hardware_id == ""
    assert modem.serial_port == ""

    added = recorder.named("add")
    assert len(added) == 1
    assert added[0].ready is False


def test_tty_open_failure_still_notifies(correlator, transports, registry, recorder):
    """Test transport failures leave the modem non-ready but still notify."""
    transports.fail_open.add(TTY)

    correlator.handle(make_tty(make_usb_device()))

    assert registry.get(USB_NODE).ready is False
    assert len(recorder.named("add")) == 1


def test_settle_delay_on_add(correlator, transports, sleeps):
    """Test a newly added tty waits 5 seconds before reading the IMEI."""
    transports.set_reply(TTY, IMEI_FRAME)

    correlator.handle(make_tty(make_usb_device(), action="add"))

    assert sleeps == [5.0]


def test_no_settle_delay_on_change(correlator, transports, sleeps):
    """Test a changed tty is read without delay."""
    transports.set_reply(TTY, IMEI_FRAME)

    correlator.handle(make_tty(make_usb_device(), action="change"))

    assert sleeps == []


def test_change_fires_update(correlator, transports, recorder):
    """Test a change event fires the update handler instead of add."""
    transports.set_reply(TTY, IMEI_FRAME)

    correlator.handle(make_tty(make_usb_device(), action="change"))

    assert recorder.named("add") == []
    updated = recorder.named("update")
    assert len(updated) == 1
    assert updated[0].hardware_id == IMEI


def test_change_retries_failed_identifier(correlator, transports, registry, recorder):
    """Test a later change event gives a failed IMEI read another chance."""
    usb = make_usb_device()
    transports.set_reply(TTY, b"")
    correlator.handle(make_tty(usb, action="add"))
    assert registry.get(USB_NODE).ready is False

    transports.set_reply(TTY, IMEI_FRAME)
    correlator.handle(make_tty(usb, action="change"))

    assert registry.get(USB_NODE).ready is True
    assert [name for name, _ in recorder.calls] == ["add", "update"]


def test_action_override(correlator, transports, recorder, sleeps):
    """Test the action override is used instead of the device's own action."""
    transports.set_reply(TTY, IMEI_FRAME)

    correlator.handle(make_tty(make_usb_device(), action="change"), action="add")

    assert len(recorder.named("add")) == 1
    assert sleeps == [5.0]


def test_unfiltered_device_ignored(correlator, transports, registry, recorder):
    """Test devices matching no filter leave the registry untouched."""
    usb = make_usb_device(vendor_id="1199", product_id="68a3")
    transports.set_reply(TTY, IMEI_FRAME)

    correlator.handle(make_tty(usb))
    correlator.handle(make_net(usb))

    assert len(registry) == 0
    assert recorder.calls == []
    assert transports.opened == []


def test_partial_filter_match_ignored(correlator, registry, recorder):
    """Test vendor and product must both match."""
    correlator.handle(make_tty(make_usb_device(vendor_id="12d1", product_id="1001")))
    correlator.handle(make_tty(make_usb_device(vendor_id="1199", product_id="1506")))

    assert len(registry) == 0
    assert recorder.calls == []


def test_filter_matching_is_exact(correlator, registry, recorder):
    """Test filter matching is case-sensitive string equality."""
    correlator.handle(make_tty(make_usb_device(vendor_id="12D1")))

    assert len(registry) == 0
    assert recorder.calls == []


def test_second_filter_matches(correlator, filters, transports, registry):
    """Test any filter in the set can match."""
    filters.add("1199", "68a3")
    transports.set_reply(TTY, IMEI_FRAME)

    correlator.handle(make_tty(make_usb_device(vendor_id="1199", product_id="68a3")))

    assert registry.get(USB_NODE).ready is True


def test_non_command_interface_ignored(correlator, transports, registry, recorder, sleeps):
    """Test ttys on interfaces without 3 endpoints never notify or become ready."""
    transports.set_reply(TTY, IMEI_FRAME)

    correlator.handle(make_tty(make_usb_device(), endpoints="02"))

    assert registry.get(USB_NODE) is None
    assert recorder.calls == []
    assert transports.opened == []
    assert sleeps == []


def test_endpoint_count_is_exact(correlator, recorder):
    """Test "3" is not accepted in place of "03"."""
    correlator.handle(make_tty(make_usb_device(), endpoints="3"))

    assert recorder.calls == []


def test_tty_without_interface_ignored(correlator, registry, recorder):
    """Test a tty whose grandparent is missing is ignored."""
    usb = make_usb_device()
    tty = MockDevice("ttyACM0", "tty", device_node="/dev/ttyACM0", parent=usb)

    correlator.handle(tty)

    assert recorder.calls == []
    assert registry.get(USB_NODE) is None


def test_net_event_sets_interface(correlator, registry, recorder):
    """Test a net event records the interface name without notifying."""
    correlator.handle(make_net(make_usb_device()))

    modem = registry.get(USB_NODE)
    assert modem.network_interface == "wwan0"
    assert modem.ready is False
    assert recorder.calls == []


def test_net_after_tty_preserves_fields(correlator, transports, registry, recorder):
    """Test a net event after the tty only fills in the interface name."""
    usb = make_usb_device()
    transports.set_reply(TTY, IMEI_FRAME)
    correlator.handle(make_tty(usb))

    correlator.handle(make_net(usb, name="wwan1"))

    modem = registry.get(USB_NODE)
    assert modem.network_interface == "wwan1"
    assert modem.serial_port == TTY
    assert modem.hardware_id == IMEI
    assert modem.ready is True
    assert len(recorder.calls) == 1


def test_tty_after_net_merges(correlator, transports, registry, recorder):
    """Test tty and net events for the same parent converge on one record."""
    usb = make_usb_device()
    transports.set_reply(TTY, IMEI_FRAME)

    correlator.handle(make_net(usb))
    correlator.handle(make_tty(usb))

    assert len(registry) == 1
    modem = registry.get(USB_NODE)
    assert modem.network_interface == "wwan0"
    assert modem.hardware_id == IMEI
    assert recorder.named("add")[0].network_interface == "wwan0"


def test_separate_modems_tracked_separately(correlator, transports, registry):
    """Test two modems on different USB devices get separate records."""
    first = make_usb_device(device_node="/dev/bus/usb/001/004", bus_id="1-1")
    second = make_usb_device(device_node="/dev/bus/usb/001/005", bus_id="1-2")
    transports.set_reply("/dev/ttyUSB2", IMEI_FRAME)
    transports.set_reply("/dev/ttyUSB6", b"861536030196001\r\n\r\nOK\r\n\r\n")

    correlator.handle(make_tty(first, name="ttyUSB2"))
    correlator.handle(make_tty(second, name="ttyUSB6"))

    assert registry.get("/dev/bus/usb/001/004").hardware_id == IMEI
    assert registry.get("/dev/bus/usb/001/005").hardware_id == "861536030196001"


def test_remove_fires_handler(correlator, transports, registry, recorder):
    """Test removing the parent USB device fires remove and drops the record."""
    usb = make_usb_device()
    transports.set_reply(TTY, IMEI_FRAME)
    correlator.handle(make_tty(usb))

    correlator.handle(usb.with_action("remove"))

    assert registry.get(USB_NODE) is None
    removed = recorder.named("remove")
    assert len(removed) == 1
    assert removed[0].hardware_id == IMEI


def test_remove_untracked_is_noop(correlator, registry, recorder):
    """Test removing an unknown path does nothing."""
    correlator.handle(make_usb_device(device_node="/dev/bus/usb/002/009").with_action("remove"))

    assert len(registry) == 0
    assert recorder.calls == []


def test_remove_of_leaf_device_is_noop(correlator, transports, registry, recorder):
    """Test removing the tty node does not drop the parent's record."""
    usb = make_usb_device()
    transports.set_reply(TTY, IMEI_FRAME)
    correlator.handle(make_tty(usb))

    correlator.handle(make_tty(usb, action="remove"))

    assert registry.get(USB_NODE) is not None
    assert recorder.named("remove") == []


def test_irrelevant_subsystem_ignored(correlator, registry, recorder):
    """Test add events outside tty/net are ignored."""
    correlator.handle(make_usb_device())

    assert len(registry) == 0
    assert recorder.calls == []


def test_no_usb_parent_ignored(correlator, registry, recorder):
    """Test ttys not on USB are ignored."""
    correlator.handle(MockDevice("ttyS0", "tty", device_node="/dev/ttyS0"))

    assert len(registry) == 0
    assert recorder.calls == []


def test_failing_handler_does_not_break_correlation(correlator, transports, registry):
    """Test an exception in a handler is contained."""
    def broken(modem):
        raise RuntimeError("handler bug")

    correlator.handlers.register(on_add=broken)
    transports.set_reply(TTY, IMEI_FRAME)

    correlator.handle(make_tty(make_usb_device()))

    assert registry.get(USB_NODE).ready is True


def test_handler_receives_copy(correlator, transports, registry, recorder):
    """Test handlers cannot mutate the stored record."""
    transports.set_reply(TTY, IMEI_FRAME)
    correlator.handle(make_tty(make_usb_device()))

    recorder.named("add")[0].hardware_id = "tampered"

    assert registry.get(USB_NODE).hardware_id == IMEI

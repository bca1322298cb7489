"""
Tests for the command-line watcher.
"""

import pytest

from modemwatch import Modem
from modemwatch import cli
from modemwatch.cli import format_modem, main, parse_filter


def test_parse_filter():
    """Test VID:PID parsing."""
    assert parse_filter("12d1:1506") == ("12d1", "1506")
    assert parse_filter(" 1199:68A3 ") == ("1199", "68a3")


@pytest.mark.parametrize("value", ["12d1", "12d1:", ":1506", ""])
def test_parse_filter_invalid(value):
    """Test malformed filters are rejected."""
    with pytest.raises(ValueError):
        parse_filter(value)


def test_format_modem_ready():
    """Test a ready modem is printed with all fields."""
    modem = Modem(
        network_interface="wwan0",
        serial_port="/dev/ttyUSB2",
        hardware_id="123456789012345",
        ready=True,
        device_path="/dev/bus/usb/001/004"
    )

    assert format_modem(modem) == (
        "/dev/bus/usb/001/004: imei=123456789012345 tty=/dev/ttyUSB2 net=wwan0 ready=yes"
    )


def test_format_modem_partial():
    """Test missing fields are shown as dashes."""
    modem = Modem(device_path="/dev/bus/usb/001/004")

    assert format_modem(modem) == "/dev/bus/usb/001/004: imei=- tty=- net=- ready=no"


def test_main_requires_filter(capsys):
    """Test the CLI refuses to run without filters."""
    with pytest.raises(SystemExit):
        main([])


def test_main_rejects_bad_filter():
    """Test an invalid filter is a usage error."""
    with pytest.raises(SystemExit):
        main(["-f", "12d1"])


def test_main_builds_cli(monkeypatch):
    """Test arguments are passed to the watcher."""
    created = {}

    class FakeCLI:
        def __init__(self, **kwargs):
            created.update(kwargs)

        def run(self):
            return 0

    monkeypatch.setattr(cli, "ModemWatchCLI", FakeCLI)

    assert main(["-f", "12d1:1506", "-f", "1199:68a3", "-d", "3", "--settle-delay", "1"]) == 0
    assert created["filters"] == [("12d1", "1506"), ("1199", "68a3")]
    assert created["duration"] == 3.0
    assert created["settle_delay"] == 1.0

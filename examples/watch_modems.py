"""
Modem watch example.

Prints modems as they are plugged in and removed, and lists the ready ones
every second for a minute.
"""

import time
from modemwatch import ModemManager, Modem


def on_add(modem: Modem):
    """Handle modem add."""
    if modem.ready:
        print(f"[ADD] {modem.hardware_id} on {modem.serial_port}")
    else:
        print(f"[ADD] {modem.device_path} (IMEI not available yet)")


def on_update(modem: Modem):
    """Handle modem update."""
    print(f"[UPDATE] {modem.hardware_id or modem.device_path} ready={modem.ready}")


def on_remove(modem: Modem):
    """Handle modem remove."""
    print(f"[REMOVE] {modem.hardware_id or modem.device_path}")


def main():
    """Main function."""
    print("modemwatch - Watch Example\n")

    manager = ModemManager()
    manager.register_handlers(on_add, on_update, on_remove)
    manager.add_filter("1199", "68a3")
    manager.add_filter("12d1", "1001")
    manager.add_filter("12d1", "1506")

    manager.start()
    try:
        for _ in range(60):
            for path, modem in manager.list_modems().items():
                print(f"{path}: {modem.hardware_id} tty={modem.serial_port} net={modem.network_interface}")
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        manager.stop()


if __name__ == "__main__":
    main()

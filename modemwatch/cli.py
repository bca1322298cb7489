"""
Command-line modem watcher.

Prints modem add/update/remove events and a periodic list of ready modems.
"""

import sys
import time
import logging
from typing import Optional

from .manager import ModemManager
from .types import Modem
from .version import __version__
from .exceptions import ModemWatchError


def parse_filter(value: str) -> tuple[str, str]:
    """
    Parse a VID:PID filter argument.

    Args:
        value: Filter string (e.g., "12d1:1506")

    Returns:
        (vendor_id, product_id) tuple

    Raises:
        ValueError: If value is not two non-empty IDs separated by a colon
    """
    vendor_id, sep, product_id = value.strip().partition(":")
    if not sep or not vendor_id or not product_id:
        raise ValueError(f"Invalid filter {value!r}, expected VID:PID")
    return vendor_id.lower(), product_id.lower()


def format_modem(modem: Modem) -> str:
    """Format a modem as a single line."""
    return (
        f"{modem.device_path}: "
        f"imei={modem.hardware_id or '-'} "
        f"tty={modem.serial_port or '-'} "
        f"net={modem.network_interface or '-'} "
        f"ready={'yes' if modem.ready else 'no'}"
    )


class ModemWatchCLI:
    """Event printer and periodic lister."""

    def __init__(
        self,
        filters: list[tuple[str, str]],
        interval: float = 1.0,
        duration: Optional[float] = None,
        settle_delay: float = 5.0
    ):
        """
        Initialize CLI.

        Args:
            filters: (vendor_id, product_id) pairs to track
            interval: Seconds between modem list prints
            duration: Stop after this many seconds (None runs until Ctrl+C)
            settle_delay: Seconds to wait before reading the IMEI from a new tty
        """
        self.filters = filters
        self.interval = interval
        self.duration = duration
        self.settle_delay = settle_delay
        self.manager: Optional[ModemManager] = None

    def run(self) -> int:
        """Run the watcher."""
        print(f"modemwatch v{__version__}")
        print(f"Watching {', '.join(f'{v}:{p}' for v, p in self.filters)}")
        print("Press Ctrl+C to stop\n")

        self.manager = ModemManager(settle_delay=self.settle_delay)
        self.manager.register_handlers(
            on_add=lambda m: print(f"[ADD]    {format_modem(m)}"),
            on_update=lambda m: print(f"[UPDATE] {format_modem(m)}"),
            on_remove=lambda m: print(f"[REMOVE] {format_modem(m)}"),
        )
        for vendor_id, product_id in self.filters:
            self.manager.add_filter(vendor_id, product_id)

        try:
            self.manager.start()

            deadline = None if self.duration is None else time.monotonic() + self.duration
            while deadline is None or time.monotonic() < deadline:
                time.sleep(self.interval)
                self._print_list()

        except KeyboardInterrupt:
            print()
        except ModemWatchError as e:
            print(f"\nError: {e}")
            return 1
        finally:
            if self.manager.is_monitoring:
                print("Stopping monitor...")
                self.manager.stop()

        return 0

    def _print_list(self):
        modems = self.manager.list_modems()
        print(f"--- {len(modems)} ready modem(s)")
        for modem in modems.values():
            print(format_modem(modem))


def main(argv: Optional[list[str]] = None):
    """Main entry point for CLI."""
    import argparse

    parser = argparse.ArgumentParser(
        description="modemwatch - Track USB modems and their IMEIs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  modemwatch -f 12d1:1506
  modemwatch -f 1199:68a3 -f 12d1:1001 --duration 60
  modemwatch -f 12d1:1506 -v
        """
    )

    parser.add_argument(
        "-f", "--filter",
        dest="filters",
        action="append",
        required=True,
        metavar="VID:PID",
        help="USB vendor:product ID to track (repeatable)"
    )
    parser.add_argument(
        "-i", "--interval",
        type=float,
        default=1.0,
        help="Seconds between modem list prints (default: 1.0)"
    )
    parser.add_argument(
        "-d", "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until Ctrl+C)"
    )
    parser.add_argument(
        "--settle-delay",
        type=float,
        default=5.0,
        help="Seconds to wait before reading the IMEI from a new tty (default: 5.0)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    try:
        filters = [parse_filter(value) for value in args.filters]
    except ValueError as e:
        parser.error(str(e))

    # Setup logging
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    else:
        logging.basicConfig(
            level=logging.WARNING,
            format='%(levelname)s: %(message)s'
        )

    cli = ModemWatchCLI(
        filters=filters,
        interval=args.interval,
        duration=args.duration,
        settle_delay=args.settle_delay
    )

    return cli.run()


if __name__ == "__main__":
    sys.exit(main())

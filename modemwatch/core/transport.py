"""
Transport layer abstraction for modem communication.

Provides abstractions for serial communication with dependency injection support.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable
import serial
from serial import SerialException

from ..exceptions import (
    TransportOpenError,
    TransportReadError,
    TransportWriteError,
)

logger = logging.getLogger(__name__)

# Signature: factory(port, baudrate, timeout) -> Transport
TransportFactory = Callable[[str, int, float], "Transport"]


class Transport(ABC):
    """Abstract base class for modem transport."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """
        Write data to the transport.

        Args:
            data: Bytes to write

        Returns:
            Number of bytes written

        Raises:
            TransportWriteError: If write fails
        """
        pass

    @abstractmethod
    def read(self, size: int) -> bytes:
        """
        Read up to size bytes, returning early when the read timeout expires.

        Args:
            size: Maximum number of bytes to read

        Returns:
            Bytes read (possibly empty)

        Raises:
            TransportReadError: If read fails
        """
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """Check if transport is open."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the transport."""
        pass

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, *exc):
        """Context manager exit."""
        self.close()


class SerialTransport(Transport):
    """Serial port transport implementation."""

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        timeout: float = 0.01
    ) -> None:
        """
        Initialize serial transport.

        Args:
            port: Serial port path (e.g., /dev/ttyUSB2)
            baudrate: Baud rate for serial communication
            timeout: Per-read timeout in seconds

        Raises:
            TransportOpenError: If serial port cannot be opened
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout

        try:
            self._serial = serial.Serial(
                port=port,
                baudrate=baudrate,
                timeout=timeout
            )
            logger.debug(f"Opened serial port {port} at {baudrate} baud")
        except (SerialException, OSError) as e:
            logger.warning(f"Failed to open serial port {port}: {e}")
            raise TransportOpenError(f"Failed to open serial port: {e}", port=port) from e

    def write(self, data: bytes) -> int:
        """Write data to serial port."""
        try:
            written = self._serial.write(data)
            logger.debug(f"Wrote {written} bytes to {self.port}: {data}")
            return written
        except SerialException as e:
            logger.warning(f"Serial write to {self.port} failed: {e}")
            raise TransportWriteError(f"Serial write failed: {e}", port=self.port) from e

    def read(self, size: int) -> bytes:
        """Read up to size bytes from serial port."""
        try:
            data = self._serial.read(size)
            if data:
                logger.debug(f"Read {len(data)} bytes from {self.port}: {data}")
            return data
        except SerialException as e:
            logger.warning(f"Serial read from {self.port} failed: {e}")
            raise TransportReadError(f"Serial read failed: {e}", port=self.port) from e

    def is_open(self) -> bool:
        """Check if serial port is open."""
        return bool(self._serial and self._serial.is_open)

    def close(self) -> None:
        """Close the serial port."""
        if self._serial and self._serial.is_open:
            self._serial.close()
            logger.debug(f"Closed serial port {self.port}")


class MockTransport(Transport):
    """
    Mock transport for testing.

    Simulates modem replies without requiring hardware. Each queued reply is
    returned by one call to read(); an exhausted queue reads as a timeout.
    """

    def __init__(
        self,
        port: str = "/dev/ttyMOCK0",
        fail_write: bool = False,
        fail_read: bool = False
    ) -> None:
        """
        Initialize mock transport.

        Args:
            port: Port path reported in errors
            fail_write: Raise TransportWriteError on write
            fail_read: Raise TransportReadError on read
        """
        self.port = port
        self.fail_write = fail_write
        self.fail_read = fail_read
        self.written: list[bytes] = []
        self._open = True
        self._replies: list[bytes] = []
        self._lock = threading.Lock()

    def add_reply(self, data: bytes) -> None:
        """
        Queue a reply to be returned by read.

        Args:
            data: Raw bytes (e.g., b"AT+CGSN\\r\\n")
        """
        with self._lock:
            self._replies.append(data)
            logger.debug(f"Added mock reply: {data}")

    def write(self, data: bytes) -> int:
        """Simulate writing data."""
        if not self._open:
            raise TransportWriteError("MockTransport is closed", port=self.port)
        if self.fail_write:
            raise TransportWriteError("Simulated write failure", port=self.port)

        logger.debug(f"Mock write: {data}")
        with self._lock:
            self.written.append(data)
        return len(data)

    def read(self, size: int) -> bytes:
        """Return the next queued reply, truncated to size."""
        if not self._open:
            raise TransportReadError("MockTransport is closed", port=self.port)
        if self.fail_read:
            raise TransportReadError("Simulated read failure", port=self.port)

        with self._lock:
            if self._replies:
                data = self._replies.pop(0)[:size]
                logger.debug(f"Mock read: {data}")
                return data

        # Timeout
        return b""

    def is_open(self) -> bool:
        """Check if mock transport is open."""
        return self._open

    def close(self) -> None:
        """Close mock transport."""
        self._open = False


def open_serial_transport(port: str, baudrate: int, timeout: float) -> Transport:
    """Default transport factory."""
    return SerialTransport(port, baudrate=baudrate, timeout=timeout)

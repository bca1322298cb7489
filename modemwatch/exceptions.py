"""
Exceptions for the modemwatch library.

Provides detailed error information for debugging device tracking issues.
"""

from typing import Optional


class ModemWatchError(Exception):
    """
    Base exception for modemwatch errors.

    All modemwatch exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        port: Optional[str] = None,
        response: Optional[bytes] = None
    ) -> None:
        """
        Initialize exception with context.

        Args:
            message: Error description
            port: Serial port involved (if applicable)
            response: Raw bytes received from the device (if applicable)
        """
        self.port = port
        self.response = response
        super().__init__(message)

    def __str__(self) -> str:
        """Format error message with context."""
        parts = [super().__str__()]

        if self.port:
            parts.append(f"Port: {self.port}")

        if self.response is not None:
            parts.append(f"Response: {self.response!r}")

        return " | ".join(parts)


class TransportError(ModemWatchError):
    """
    Raised when the serial transport fails.

    This indicates:
    - Serial port issues
    - Connection lost
    - Hardware communication failure
    """
    pass


class TransportOpenError(TransportError):
    """Raised when a serial port cannot be opened."""
    pass


class TransportWriteError(TransportError):
    """Raised when writing to a serial port fails."""
    pass


class TransportReadError(TransportError):
    """Raised when reading from a serial port fails."""
    pass


class InvalidIdentifierError(ModemWatchError):
    """
    Raised when the identifier reply is too short to hold an IMEI.

    This typically indicates:
    - The port is not the modem's AT command interface
    - The modem is still booting
    """
    pass


class MonitorStateError(ModemWatchError):
    """Raised when monitoring is started or stopped in the wrong state."""
    pass


class AlreadyMonitoringError(MonitorStateError):
    """Raised when starting a monitor that is already running."""
    pass


class NotMonitoringError(MonitorStateError):
    """Raised when stopping a monitor that is not running."""
    pass

"""
Hardware identifier retrieval.

Reads a modem's IMEI over its AT command port with a single AT+CGSN
exchange. The reply has a fixed width, so no general AT parsing is done.
"""

import logging
from typing import Optional

from .transport import TransportFactory, open_serial_transport
from ..exceptions import InvalidIdentifierError, TransportReadError

logger = logging.getLogger(__name__)

IDENTIFIER_COMMAND = b"AT+CGSN\r\n"
DEFAULT_BAUDRATE = 115200
DEFAULT_READ_TIMEOUT = 0.01  # seconds
READ_BUFFER_SIZE = 128
MIN_REPLY_LENGTH = 25
IDENTIFIER_LENGTH = 17


class IdentifierRetriever:
    """
    Retrieves the hardware identifier of a modem on a given serial port.

    Failures are raised, never retried. A later "change" event for the
    same device is the retry path.
    """

    def __init__(
        self,
        transport_factory: Optional[TransportFactory] = None,
        baudrate: int = DEFAULT_BAUDRATE,
        timeout: float = DEFAULT_READ_TIMEOUT
    ) -> None:
        """
        Initialize identifier retriever.

        Args:
            transport_factory: Callable opening a transport for a port
                              (default: SerialTransport via pyserial)
            baudrate: Serial baud rate (default: 115200)
            timeout: Per-read timeout in seconds (default: 0.01)
        """
        self.transport_factory = transport_factory or open_serial_transport
        self.baudrate = baudrate
        self.timeout = timeout

    def retrieve_id(self, port: str) -> str:
        """
        Read the hardware identifier from a modem.

        Args:
            port: Serial port path (e.g., "/dev/ttyUSB2")

        Returns:
            Identifier with surrounding whitespace removed

        Raises:
            TransportOpenError: If the port cannot be opened
            TransportWriteError: If the command cannot be written
            TransportReadError: If the reply cannot be read
            InvalidIdentifierError: If the reply is too short

        Example:

        .. code-block:: python

            retriever = IdentifierRetriever()
            imei = retriever.retrieve_id("/dev/ttyUSB2")
        """
        logger.debug(f"Retrieving identifier from {port}")

        with self.transport_factory(port, self.baudrate, self.timeout) as transport:
            transport.write(IDENTIFIER_COMMAND)

            # First read is the command echo; its errors are ignored
            try:
                transport.read(READ_BUFFER_SIZE)
            except TransportReadError as e:
                logger.debug(f"Ignoring echo read failure on {port}: {e}")

            reply = transport.read(READ_BUFFER_SIZE)

        if len(reply) < MIN_REPLY_LENGTH:
            raise InvalidIdentifierError(
                f"Invalid identifier reply ({len(reply)} bytes)",
                port=port,
                response=reply
            )

        identifier = reply[:IDENTIFIER_LENGTH].decode("ascii", errors="replace").strip("\r\n ")
        logger.debug(f"Identifier for {port}: {identifier}")
        return identifier

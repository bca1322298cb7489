"""
Background hot-plug monitor loop.

Enumerates existing devices once, then polls the hot-plug source for new
events and feeds them to the correlator until stopped.
"""

import logging
import threading
from enum import Enum
from typing import Optional

from .correlator import Correlator
from .hotplug import HotplugDevice, HotplugSource, HotplugSourceFactory, UdevHotplugSource
from .registry import DeviceRegistry
from ..exceptions import AlreadyMonitoringError, NotMonitoringError
from ..types import DeviceAction

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0  # seconds
DEFAULT_JOIN_TIMEOUT = 10.0  # seconds


class MonitorState(Enum):
    """Monitor loop states."""
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


class MonitorLoop:
    """
    Monitor thread management.

    State machine: IDLE -> RUNNING on start(), RUNNING -> STOPPING on
    stop(), STOPPING -> IDLE once the thread has cleared the registry and
    exited. Stop is cooperative: the thread checks for cancellation once per
    iteration, so an in-flight settle delay or identifier read runs to
    completion first.
    """

    def __init__(
        self,
        correlator: Correlator,
        registry: DeviceRegistry,
        source_factory: Optional[HotplugSourceFactory] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        join_timeout: float = DEFAULT_JOIN_TIMEOUT
    ) -> None:
        """
        Initialize monitor loop.

        Args:
            correlator: Correlator that processes each event
            registry: Registry cleared when monitoring stops
            source_factory: Callable opening the hot-plug source
                           (default: UdevHotplugSource)
            poll_interval: Seconds to pause when no event is pending
            join_timeout: Seconds stop() waits for the thread to exit
        """
        self.correlator = correlator
        self.registry = registry
        self.source_factory = source_factory or UdevHotplugSource
        self.poll_interval = poll_interval
        self.join_timeout = join_timeout

        self._state = MonitorState.IDLE
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> MonitorState:
        """Current loop state."""
        with self._state_lock:
            return self._state

    @property
    def is_running(self) -> bool:
        """Check if the loop is running (not idle or stopping)."""
        return self.state == MonitorState.RUNNING

    def start(self) -> None:
        """
        Start the monitor thread.

        Waits for a previous thread that is still stopping before starting
        a new one.

        Raises:
            AlreadyMonitoringError: If the monitor is already running
        """
        with self._state_lock:
            if self._state == MonitorState.RUNNING:
                raise AlreadyMonitoringError("Monitor is already started")
            previous = self._thread

        if previous is not None and previous.is_alive():
            logger.debug("Waiting for previous monitor thread to exit")
            previous.join()

        with self._state_lock:
            if self._state == MonitorState.RUNNING:
                raise AlreadyMonitoringError("Monitor is already started")

            # Fresh event per run so a late thread never sees a cleared flag
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                daemon=True,
                name="ModemMonitorThread"
            )
            self._state = MonitorState.RUNNING
            self._thread.start()

        logger.info("Started modem monitor")

    def stop(self, wait: bool = True) -> None:
        """
        Stop the monitor thread.

        Args:
            wait: Block until the thread has exited (bounded by join_timeout)

        Raises:
            NotMonitoringError: If the monitor is not running
        """
        with self._state_lock:
            if self._state != MonitorState.RUNNING:
                raise NotMonitoringError("Monitor already stopped")
            self._state = MonitorState.STOPPING
            self._stop_event.set()
            thread = self._thread

        logger.info("Stopping modem monitor...")

        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.join_timeout)
            if thread.is_alive():
                logger.warning("Monitor thread did not terminate in time")

    def _run(self, stop_event: threading.Event) -> None:
        logger.debug("Monitor thread started")

        try:
            source = self.source_factory()
        except Exception as e:
            logger.error(f"Failed to open hot-plug source: {e}", exc_info=True)
            self._finish()
            return

        try:
            try:
                self._enumerate(source, stop_event)
            except Exception as e:
                logger.error(f"Failed to enumerate existing devices: {e}", exc_info=True)

            while not stop_event.is_set():
                try:
                    device = source.poll()
                except Exception as e:
                    logger.error(f"Failed to receive hot-plug event: {e}")
                    device = None

                if device is None:
                    stop_event.wait(self.poll_interval)
                    continue

                self._dispatch(device)
        finally:
            # Tracked modems never outlive the loop
            count = self.registry.clear()
            logger.debug(f"Monitor exiting, dropped {count} tracked modems")
            source.close()
            self._finish()

        logger.debug("Monitor thread stopped")

    def _enumerate(self, source: HotplugSource, stop_event: threading.Event) -> None:
        count = 0
        for device in source.enumerate():
            if stop_event.is_set():
                break
            self._dispatch(device, action=DeviceAction.ADD.value)
            count += 1
        logger.debug(f"Enumerated {count} existing devices")

    def _dispatch(self, device: HotplugDevice, action: Optional[str] = None) -> None:
        try:
            self.correlator.handle(device, action=action)
        except Exception as e:
            logger.error(f"Error processing event for {device}: {e}", exc_info=True)

    def _finish(self) -> None:
        with self._state_lock:
            if self._thread is threading.current_thread():
                self._state = MonitorState.IDLE

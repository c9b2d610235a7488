"""
Transport layer for engraver communication.

Provides the abstract interface the session writes through, and the
pyserial implementation used for real devices.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import List, Optional

import serial
import serial.tools.list_ports

from ..errors import DeviceConnectionError, WriteError

logger = logging.getLogger(__name__)

# Polling interval while waiting for the output queue to drain
DRAIN_POLL_INTERVAL = 0.005


class Transport(ABC):
    """
    Abstract byte transport to a single device.

    Implementations must provide:
    - write
    - await_drained
    - close
    - is_open
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def write(self, data: bytes) -> int:
        """
        Hand bytes to the transport.

        Returns:
            Number of bytes accepted

        Raises:
            WriteError: If the transport rejected the write
        """
        pass

    @abstractmethod
    def await_drained(self, timeout_ms: int = -1) -> bool:
        """
        Block until all written bytes left the host.

        Args:
            timeout_ms: Maximum wait, negative waits indefinitely

        Returns:
            True if drained, False if the timeout elapsed first
        """
        pass

    @abstractmethod
    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class SerialTransport(Transport):
    """Transport backed by a pyserial port."""

    def __init__(self, serial_port: serial.Serial):
        self._serial = serial_port

    @classmethod
    def open(cls, port: str, baudrate: int = 57600,
             write_timeout: Optional[float] = 1.0) -> 'SerialTransport':
        """
        Open a serial port with exclusive access.

        Raises:
            DeviceConnectionError: If the port is missing or busy
        """
        try:
            serial_port = serial.Serial(
                port=port,
                baudrate=baudrate,
                timeout=1.0,
                write_timeout=write_timeout,
                exclusive=True
            )
        except serial.SerialException as e:
            raise DeviceConnectionError(port, _describe_open_error(port, str(e))) from e
        except (OSError, ValueError) as e:
            raise DeviceConnectionError(port, f"Connection to {port} failed: {e}") from e

        logger.info("Opened %s at %d baud", port, baudrate)
        return cls(serial_port)

    @property
    def port(self) -> str:
        return self._serial.port

    @property
    def serial(self) -> serial.Serial:
        """The underlying pyserial port."""
        return self._serial

    @property
    def is_open(self) -> bool:
        return self._serial.is_open

    def write(self, data: bytes) -> int:
        try:
            written = self._serial.write(data)
        except serial.SerialException as e:
            raise WriteError(f"Write to {self.port} failed: {e}") from e
        return len(data) if written is None else written

    def await_drained(self, timeout_ms: int = -1) -> bool:
        try:
            if timeout_ms < 0:
                self._serial.flush()
                return True

            deadline = time.monotonic() + timeout_ms / 1000.0
            while self._serial.out_waiting > 0:
                if time.monotonic() >= deadline:
                    return False
                time.sleep(DRAIN_POLL_INTERVAL)
            return True
        except serial.SerialException as e:
            raise WriteError(f"Waiting for {self.port} to drain failed: {e}") from e

    def close(self):
        if self._serial.is_open:
            self._serial.close()
            logger.info("Closed %s", self.port)


def list_ports() -> List[str]:
    """List the device names of all available serial ports."""
    return sorted(port.device for port in serial.tools.list_ports.comports())


def _describe_open_error(port: str, error_msg: str) -> str:
    lowered = error_msg.lower()
    # Windows reports "Access is denied", posix "Permission denied" or "busy"
    if "denied" in lowered or "busy" in lowered:
        return (
            f"Access denied to {port}.\n\n"
            "Possible causes:\n"
            "- Port is already open in another application\n"
            "- Another session is connected to the engraver\n\n"
            "Solutions:\n"
            "- Close other applications using this port\n"
            "- Disconnect and reconnect the USB cable"
        )
    if "could not open port" in lowered or "no such file" in lowered:
        return (
            f"Could not open {port}.\n\n"
            "Possible causes:\n"
            "- Port does not exist\n"
            "- Engraver not connected\n"
            "- USB-to-serial driver not installed"
        )
    return f"Connection to {port} failed: {error_msg}"

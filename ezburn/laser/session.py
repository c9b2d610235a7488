"""
Engraver session.

Owns the connection to one engraver and exposes the complete set of
device operations. All calls block until their bytes have left the host.
"""

import logging
import time
from enum import Enum
from typing import Callable, List, Optional, Union

from .commands import Command, CommandEncoder
from .scheduler import TransmissionScheduler
from .transport import SerialTransport, Transport, list_ports
from ..config import EngraverSettings
from ..errors import NotErased, SessionClosed, TransmissionFailure
from ..image.raster import DeviceImage, ImageSource, RasterConverter

logger = logging.getLogger(__name__)

TransportFactory = Callable[[str, EngraverSettings], Transport]


class SessionState(Enum):
    """Session states."""
    CONNECTED = "connected"
    ERASING = "erasing"
    ERASED = "erased"
    ENGRAVING = "engraving"
    PAUSED = "paused"
    CLOSED = "closed"


def _open_serial(port: str, settings: EngraverSettings) -> Transport:
    return SerialTransport.open(port, baudrate=settings.baudrate,
                                write_timeout=settings.write_timeout)


class EngraverSession:
    """
    Controls a single engraver.

    Typical use:

        with EngraverSession.create('/dev/ttyUSB0') as engraver:
            engraver.erase()
            engraver.upload_image('logo.png')
            engraver.start(60)

    An image can only be uploaded after an erase has completed. Each
    successful upload consumes that erase.
    """

    def __init__(self, transport: Transport, settings: Optional[EngraverSettings] = None):
        self.settings = settings or EngraverSettings()
        is_valid, error = self.settings.validate()
        if not is_valid:
            raise ValueError(error)

        self._transport = transport
        self._encoder = CommandEncoder(self.settings.opcodes)
        self._converter = RasterConverter()
        self._scheduler = TransmissionScheduler(transport, self.settings.drain_timeout_ms)
        self._state = SessionState.CONNECTED
        self._erased = False
        self._state_callbacks: List[Callable[[SessionState], None]] = []

    @classmethod
    def create(cls, port: str,
               settings: Optional[EngraverSettings] = None,
               transport_factory: Optional[TransportFactory] = None) -> 'EngraverSession':
        """
        Connect to the engraver on the given port.

        Raises:
            DeviceConnectionError: If the port is missing or busy
            ValueError: If the settings are invalid
        """
        settings = settings or EngraverSettings()
        is_valid, error = settings.validate()
        if not is_valid:
            raise ValueError(error)

        factory = transport_factory or _open_serial
        transport = factory(port, settings)
        logger.info("Engraver session opened on %s", port)
        return cls(transport, settings)

    @staticmethod
    def available_ports() -> List[str]:
        return list_ports()

    @property
    def state(self) -> SessionState:
        """
        Current state label.

        ERASED means the last erase completed; it stays set after an
        upload until start(). Whether another upload is allowed is
        reported by is_erased.
        """
        return self._state

    @property
    def is_erased(self) -> bool:
        """True while an erase is available for the next upload."""
        return self._erased

    @property
    def transport(self) -> Transport:
        return self._transport

    # Lifecycle

    def close(self):
        """Release the transport. Safe to call more than once."""
        if self._state == SessionState.CLOSED:
            return
        try:
            self._transport.close()
        finally:
            self._erased = False
            self._set_state(SessionState.CLOSED)
            logger.info("Engraver session closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # Engraving

    def erase(self):
        """
        Erase the device EEPROM and wait for it to settle.

        Always blocks for at least settings.erase_delay_ms after the
        command was written, otherwise the leading pixels of the next
        upload are lost.
        """
        self._ensure_open()
        previous = self._state
        self._set_state(SessionState.ERASING)
        try:
            self._transmit(Command.erase())
        except Exception:
            self._set_state(previous)
            raise

        logger.info("Erasing EEPROM, waiting %d ms", self.settings.erase_delay_ms)
        time.sleep(self.settings.erase_delay_ms / 1000.0)

        self._erased = True
        self._set_state(SessionState.ERASED)

    def upload_image(self, image: Union[ImageSource, DeviceImage, bytes, bytearray, memoryview]) -> int:
        """
        Upload an image to the device EEPROM.

        Args:
            image: A prepared raster (DeviceImage or raw bytes of exactly
                IMAGE_BYTES), or any image the RasterConverter can decode

        Returns:
            Number of bytes sent to the device

        Raises:
            NotErased: If no erase completed since the last upload
            InvalidImage: If the image cannot be decoded
            InvalidLength: If a raw buffer has the wrong length
            TransmissionFailure: If the upload was cut short. The device
                then needs a fresh erase and upload.
        """
        self._ensure_open()
        if not self._erased:
            raise NotErased("The device must be erased before uploading an image")

        if isinstance(image, DeviceImage):
            raster = image
        elif isinstance(image, (bytes, bytearray, memoryview)):
            raster = self._converter.from_raw(image)
        else:
            raster = self._converter.convert(image)

        try:
            sent = self._scheduler.send(raster.to_bytes(), self.settings.chunk_size)
        except TransmissionFailure as e:
            if e.bytes_sent > 0:
                # Part of the image reached the EEPROM
                self._erased = False
            raise
        self._erased = False
        logger.info("Uploaded image: %d bytes in %d chunks", sent, self._scheduler.chunks_sent)
        return sent

    def start(self, burn_time: int):
        """
        Start engraving, or resume after pause.

        Args:
            burn_time: Laser dwell per pixel, 0-255
        """
        command = Command.start(burn_time)
        self._ensure_open()
        self._transmit(command)
        self._set_state(SessionState.ENGRAVING)

    def pause(self):
        """Pause engraving at the current position. start() resumes."""
        self._ensure_open()
        self._transmit(Command.pause())
        if self._state == SessionState.ENGRAVING:
            self._set_state(SessionState.PAUSED)

    # One-shot commands

    def reset(self):
        self._send_oneshot(Command.reset())

    def home(self):
        self._send_oneshot(Command.home())

    def center(self):
        self._send_oneshot(Command.center())

    def preview(self):
        """Trace the outline of the loaded image."""
        self._send_oneshot(Command.preview())

    def up(self):
        self._send_oneshot(Command.jog('up'))

    def down(self):
        self._send_oneshot(Command.jog('down'))

    def left(self):
        self._send_oneshot(Command.jog('left'))

    def right(self):
        self._send_oneshot(Command.jog('right'))

    def await_transmission(self, timeout_ms: int = -1) -> bool:
        """
        Wait until everything written so far has left the host.

        Returns:
            False if timeout_ms elapsed first. Negative waits forever.
        """
        self._ensure_open()
        return self._scheduler.await_completion(timeout_ms)

    # Callbacks

    def add_state_callback(self, callback: Callable[[SessionState], None]):
        """Register callback for state changes."""
        self._state_callbacks.append(callback)

    def remove_state_callback(self, callback: Callable[[SessionState], None]):
        if callback in self._state_callbacks:
            self._state_callbacks.remove(callback)

    # Internals

    def _send_oneshot(self, command: Command):
        self._ensure_open()
        self._transmit(command)

    def _transmit(self, command: Command) -> int:
        data = self._encoder.encode(command)
        logger.debug("Sending %s: %s", command.kind.name, data.hex())
        return self._scheduler.send(data, self.settings.chunk_size)

    def _ensure_open(self):
        if self._state == SessionState.CLOSED:
            raise SessionClosed("Engraver session is closed")

    def _set_state(self, state: SessionState):
        if state == self._state:
            return
        self._state = state
        for callback in list(self._state_callbacks):
            try:
                callback(state)
            except Exception:
                logger.warning("State callback %r failed", callback, exc_info=True)

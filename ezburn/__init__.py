"""
EzBurn

Drives NEJE-style laser engravers over a serial link: motion and control
commands, EEPROM erase and raster image upload.
"""

from .config import EngraverSettings, IMAGE_WIDTH, IMAGE_HEIGHT, IMAGE_BYTES
from .errors import (
    EngraverError, DeviceConnectionError, InvalidImage, InvalidLength,
    WriteError, TransmissionFailure, NotErased, SessionClosed
)
from .image import DeviceImage, RasterConverter
from .laser import EngraverSession, SessionState, Command, CommandEncoder

__version__ = "0.1.0"

__all__ = [
    # Configuration
    'EngraverSettings', 'IMAGE_WIDTH', 'IMAGE_HEIGHT', 'IMAGE_BYTES',
    # Errors
    'EngraverError', 'DeviceConnectionError', 'InvalidImage', 'InvalidLength',
    'WriteError', 'TransmissionFailure', 'NotErased', 'SessionClosed',
    # Raster
    'DeviceImage', 'RasterConverter',
    # Device control
    'EngraverSession', 'SessionState', 'Command', 'CommandEncoder',
]

"""
Engraver Settings

Fixed device constants and the configuration used by an engraving session.
Nothing here is negotiated with the device at runtime.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any


# Device raster geometry
IMAGE_WIDTH = 512
IMAGE_HEIGHT = 512
IMAGE_BYTES = IMAGE_WIDTH * IMAGE_HEIGHT // 8

# Time required by the device to clear its EEPROM
ERASE_TIME_MS = 6000

# Receive buffer capacity of the device
DEFAULT_CHUNK_SIZE = 8192

# Opcodes understood by NEJE engravers. Start is preceded by the burn time byte.
NEJE_OPCODES: Dict[str, int] = {
    "start": 0xF1,
    "pause": 0xF2,
    "home": 0xF3,
    "preview": 0xF4,
    "up": 0xF5,
    "down": 0xF6,
    "left": 0xF7,
    "right": 0xF8,
    "reset": 0xF9,
    "center": 0xFB,
    "erase": 0xFE,
}


@dataclass
class EngraverSettings:
    """Settings for talking to an engraver."""

    # Serial link
    baudrate: int = 57600
    write_timeout: float = 1.0         # seconds, per write call

    # Flow control
    chunk_size: int = DEFAULT_CHUNK_SIZE
    drain_timeout_ms: int = -1         # between chunks, negative waits forever

    # Must not be lowered below what the EEPROM needs, leading pixels get lost
    erase_delay_ms: int = ERASE_TIME_MS

    opcodes: Dict[str, int] = field(default_factory=lambda: dict(NEJE_OPCODES))

    def validate(self) -> tuple[bool, str]:
        """
        Check the settings for values the device cannot work with.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if self.baudrate <= 0:
            return False, "Baud rate must be positive"
        if self.chunk_size < 1:
            return False, "Chunk size must be at least 1 byte"
        if self.erase_delay_ms < 0:
            return False, "Erase delay cannot be negative"
        if self.write_timeout is not None and self.write_timeout < 0:
            return False, "Write timeout cannot be negative"
        for name, value in self.opcodes.items():
            if not 0 <= value <= 0xFF:
                return False, f"Opcode '{name}' does not fit in a byte: {value}"
        return True, ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngraverSettings':
        """Create settings from a dictionary, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        settings = cls(**known)
        if 'opcodes' in known:
            # Partial tables only override the given entries
            settings.opcodes = {**NEJE_OPCODES, **known['opcodes']}
        return settings

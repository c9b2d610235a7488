"""
Engraver command encoding.

Maps each high-level command to the bytes the device expects. The
protocol is send-only; nothing is read back.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from ..config import NEJE_OPCODES


class CommandKind(Enum):
    """Commands understood by the engraver."""
    START = "start"
    PAUSE = "pause"
    RESET = "reset"
    HOME = "home"
    CENTER = "center"
    PREVIEW = "preview"
    JOG_UP = "up"
    JOG_DOWN = "down"
    JOG_LEFT = "left"
    JOG_RIGHT = "right"
    ERASE = "erase"


@dataclass(frozen=True)
class Command:
    """A single command. Only START carries a payload."""
    kind: CommandKind
    burn_time: Optional[int] = None

    def __post_init__(self):
        if self.kind == CommandKind.START:
            if self.burn_time is None:
                raise ValueError("Start requires a burn time")
            if not 0 <= self.burn_time <= 0xFF:
                raise ValueError(f"Burn time must fit in a byte (0-255), got {self.burn_time}")
        elif self.burn_time is not None:
            raise ValueError(f"{self.kind.name} takes no burn time")

    @classmethod
    def start(cls, burn_time: int) -> 'Command':
        return cls(CommandKind.START, burn_time)

    @classmethod
    def pause(cls) -> 'Command':
        return cls(CommandKind.PAUSE)

    @classmethod
    def reset(cls) -> 'Command':
        return cls(CommandKind.RESET)

    @classmethod
    def home(cls) -> 'Command':
        return cls(CommandKind.HOME)

    @classmethod
    def center(cls) -> 'Command':
        return cls(CommandKind.CENTER)

    @classmethod
    def preview(cls) -> 'Command':
        return cls(CommandKind.PREVIEW)

    @classmethod
    def erase(cls) -> 'Command':
        return cls(CommandKind.ERASE)

    @classmethod
    def jog(cls, direction: str) -> 'Command':
        """Jog command for 'up', 'down', 'left' or 'right'."""
        kinds = {
            'up': CommandKind.JOG_UP,
            'down': CommandKind.JOG_DOWN,
            'left': CommandKind.JOG_LEFT,
            'right': CommandKind.JOG_RIGHT,
        }
        try:
            return cls(kinds[direction.lower()])
        except KeyError:
            raise ValueError(f"Unknown jog direction: {direction}") from None


class CommandEncoder:
    """
    Encode commands using an opcode table.

    The table maps command names (CommandKind values) to single byte
    opcodes. START is sent as the burn time followed by its opcode.
    """

    def __init__(self, opcodes: Optional[Mapping[str, int]] = None):
        table = dict(NEJE_OPCODES if opcodes is None else opcodes)
        missing = [kind.value for kind in CommandKind if kind.value not in table]
        if missing:
            raise KeyError(f"Opcode table is missing: {', '.join(missing)}")
        self._opcodes: Dict[CommandKind, int] = {
            kind: table[kind.value] for kind in CommandKind
        }

    def encode(self, command: Command) -> bytes:
        opcode = self._opcodes[command.kind]
        if command.kind == CommandKind.START:
            return bytes((command.burn_time, opcode))
        return bytes((opcode,))

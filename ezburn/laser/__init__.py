"""
EzBurn Laser Module

Command encoding, chunked transmission and session control.
"""

from .commands import Command, CommandKind, CommandEncoder
from .transport import Transport, SerialTransport, list_ports
from .scheduler import TransmissionScheduler, ChunkPlan, plan_chunks
from .session import EngraverSession, SessionState

__all__ = [
    # Commands
    'Command', 'CommandKind', 'CommandEncoder',
    # Transport
    'Transport', 'SerialTransport', 'list_ports',
    # Scheduling
    'TransmissionScheduler', 'ChunkPlan', 'plan_chunks',
    # Session
    'EngraverSession', 'SessionState',
]

"""Core rotor layer - protocol, transports, polling, state"""

from .errors import (
    RotorError,
    TransportError,
    ParseError,
    TimedOut,
    PollCancelled,
    InvalidArgument,
    MotionInProgressError,
)
from .types import Direction, ControllerPhase
from .state import RotorConfig, RotorState
from .transport import Transport, MockTransport
from .serial_transport import SerialTransport, SerialConfig
from .file_transport import FileTransport
from .channel import CommandChannel, CommandResult
from .polling import poll_until

__all__ = [
    'RotorError', 'TransportError', 'ParseError', 'TimedOut', 'PollCancelled',
    'InvalidArgument', 'MotionInProgressError',
    'Direction', 'ControllerPhase',
    'RotorConfig', 'RotorState',
    'Transport', 'MockTransport', 'SerialTransport', 'SerialConfig', 'FileTransport',
    'CommandChannel', 'CommandResult',
    'poll_until',
]

"""
Rotor error types.

Every failure the driver reports is one of these. None of them are retried
by the driver: re-sending a motion command could move the rotor twice.
"""


class RotorError(Exception):
    """Base class for all rotor driver errors"""
    pass


class TransportError(RotorError, ConnectionError):
    """Open/write/read failure, or an operation attempted while disconnected"""
    pass


class ParseError(RotorError, ValueError):
    """Malformed response line from the controller"""
    pass


class TimedOut(RotorError, TimeoutError):
    """Position polling exceeded its bound - the rotor may still be moving"""
    pass


class PollCancelled(RotorError):
    """Position polling was cancelled by the caller"""
    pass


class InvalidArgument(RotorError, ValueError):
    """Out-of-range setting, rejected before any command is sent"""
    pass


class MotionInProgressError(RotorError, RuntimeError):
    """Operation attempted while a step-and-wait call is still running"""
    pass

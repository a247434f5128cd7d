"""
Core types for the rotor driver.

Commands are frozen dataclasses so a command sequence is deterministic and
testable. Each command knows its wire body and whether the controller
address is prefixed to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Protocol, Union

from .errors import InvalidArgument


# Decimal places written for non-integral V/A values
WIRE_DECIMALS = 6


# =============================================================================
# Enums
# =============================================================================


class Direction(Enum):
    """Rotation direction as seen from the controller (H+ / H-)."""
    CW = "cw"
    CCW = "ccw"

    @property
    def sign(self) -> int:
        """+1 for CW, -1 for CCW."""
        return 1 if self is Direction.CW else -1

    @classmethod
    def parse(cls, value: Union[Direction, str]) -> Direction:
        """Accept a Direction or a case-insensitive 'cw' / 'ccw' string."""
        if isinstance(value, Direction):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidArgument(f"Direction must be 'cw' or 'ccw', got {value!r}")


class ControllerPhase(Enum):
    """Motion controller state machine phases."""
    DISCONNECTED = "disconnected"
    IDLE = "idle"
    MOVING = "moving"


def format_number(value: float) -> str:
    """
    Write a value the way the controller reads it: plain integers (V10,
    not V10.0), otherwise fixed-point with up to six decimals. Never
    exponent notation.
    """
    if float(value).is_integer():
        return str(int(value))
    text = f"{value:.{WIRE_DECIMALS}f}".rstrip("0").rstrip(".")
    if text in ("0", "-0"):
        raise InvalidArgument(f"{value} is below the wire resolution of 1e-{WIRE_DECIMALS}")
    return text


# =============================================================================
# Command Protocol & Types
# =============================================================================


class Command(Protocol):
    """Protocol for all controller commands."""

    addressed: ClassVar[bool]

    def to_body(self) -> str:
        """Command text without address prefix or line terminator."""
        ...


@dataclass(frozen=True)
class SetAccelerationCommand:
    """Acceleration in revs/sec² (A)."""
    value: float
    addressed: ClassVar[bool] = False

    def to_body(self) -> str:
        return f"A{format_number(self.value)}"


@dataclass(frozen=True)
class SetVelocityCommand:
    """Velocity in revs/sec (V)."""
    value: float
    addressed: ClassVar[bool] = False

    def to_body(self) -> str:
        return f"V{format_number(self.value)}"


@dataclass(frozen=True)
class SetStepSizeCommand:
    """Distance per step in encoder counts (D)."""
    counts: int
    addressed: ClassVar[bool] = False

    def to_body(self) -> str:
        return f"D{self.counts}"


@dataclass(frozen=True)
class DirectionCommand:
    """Direction of the next step (H+ / H-)."""
    direction: Direction
    addressed: ClassVar[bool] = False

    def to_body(self) -> str:
        return "H+" if self.direction is Direction.CW else "H-"


@dataclass(frozen=True)
class GoCommand:
    """Execute one step of the configured distance (G)."""
    addressed: ClassVar[bool] = False

    def to_body(self) -> str:
        return "G"


@dataclass(frozen=True)
class HomeCommand:
    """Go to the hardware home reference (GH-2)."""
    addressed: ClassVar[bool] = False

    def to_body(self) -> str:
        return "GH-2"


@dataclass(frozen=True)
class ModeNormalCommand:
    """Normal (preset) mode, sent ahead of K and S (MN)."""
    addressed: ClassVar[bool] = False

    def to_body(self) -> str:
        return "MN"


@dataclass(frozen=True)
class KillCommand:
    """
    Kill motion immediately (K).
    
    Unconditional - position tracking is unreliable afterwards.
    """
    addressed: ClassVar[bool] = False

    def to_body(self) -> str:
        return "K"


@dataclass(frozen=True)
class StopCommand:
    """Decelerate to a controlled stop (S)."""
    addressed: ClassVar[bool] = False

    def to_body(self) -> str:
        return "S"


@dataclass(frozen=True)
class LimitsCommand:
    """Enable (LD0) or disable (LD3) the hardware safety limits."""
    enabled: bool
    addressed: ClassVar[bool] = True

    def to_body(self) -> str:
        return "LD0" if self.enabled else "LD3"


@dataclass(frozen=True)
class ResetCommand:
    """Reset the controller (Z). Needs a settle delay afterwards."""
    addressed: ClassVar[bool] = True

    def to_body(self) -> str:
        return "Z"


@dataclass(frozen=True)
class PositionZeroCommand:
    """Zero the encoder position register (PZ)."""
    addressed: ClassVar[bool] = True

    def to_body(self) -> str:
        return "PZ"


@dataclass(frozen=True)
class PositionReportCommand:
    """Request the absolute position register (PR)."""
    addressed: ClassVar[bool] = True

    def to_body(self) -> str:
        return "PR"


@dataclass(frozen=True)
class LineFeedCommand:
    """Make the controller emit its pending response line (LF)."""
    addressed: ClassVar[bool] = True

    def to_body(self) -> str:
        return "LF"


@dataclass(frozen=True)
class EchoCommand:
    """Echo received characters (SSA0) or stay silent (SSA1)."""
    enabled: bool
    addressed: ClassVar[bool] = True

    def to_body(self) -> str:
        return "SSA0" if self.enabled else "SSA1"


@dataclass(frozen=True)
class RawCommand:
    """Free-form line for commands the driver does not model."""
    text: str
    addressed: ClassVar[bool] = False

    def to_body(self) -> str:
        return self.text


# Union of all command types for type checking
AnyCommand = Union[
    SetAccelerationCommand,
    SetVelocityCommand,
    SetStepSizeCommand,
    DirectionCommand,
    GoCommand,
    HomeCommand,
    ModeNormalCommand,
    KillCommand,
    StopCommand,
    LimitsCommand,
    ResetCommand,
    PositionZeroCommand,
    PositionReportCommand,
    LineFeedCommand,
    EchoCommand,
    RawCommand,
]

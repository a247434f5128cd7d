"""
Rotor configuration and mutable rotor state.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict

from .types import ControllerPhase, Direction


DEGREES_PER_MOTOR_REV = 1000
DEFAULT_ADDRESS = 2
BAUD_RATE = 9600


@dataclass
class RotorConfig:
    """
    Driver settings, fixed for the lifetime of a controller.
    
    The delays are controller requirements found empirically, not tuning
    knobs: the controller needs time between commands and after a reset.
    """
    degrees_per_motor_rev: int = DEGREES_PER_MOTOR_REV
    default_address: int = DEFAULT_ADDRESS
    baudrate: int = BAUD_RATE
    read_timeout: float = 2.0
    command_settle_delay: float = 0.1
    reset_settle_delay: float = 2.0
    poll_interval: float = 0.05
    poll_timeout: float = 30.0
    position_tolerance: int = 0  # encoder counts; 0 = exact match
    history_limit: int = 1000  # command records kept for auditing


@dataclass
class RotorState:
    """
    Everything the driver knows about one rotor.
    
    current_angle is the cumulative *commanded* angle. It is never read
    back from the hardware and drifts from the real shaft angle if a
    command is lost.
    """
    controller_address: int = DEFAULT_ADDRESS
    degrees_per_step: float = 1.0
    step_counts: int = DEGREES_PER_MOTOR_REV
    direction: Direction = Direction.CW
    velocity: float = 1.0
    acceleration: float = 1.0
    gearbox_ratio: float = 1.0
    safety_limits_enabled: bool = True
    echo_enabled: bool = True
    current_angle: float = 0.0
    phase: ControllerPhase = ControllerPhase.DISCONNECTED

    @property
    def connected(self) -> bool:
        return self.phase is not ControllerPhase.DISCONNECTED

    @property
    def is_moving(self) -> bool:
        return self.phase is ControllerPhase.MOVING

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        d = asdict(self)
        d["direction"] = self.direction.value
        d["phase"] = self.phase.value
        d["connected"] = self.connected
        return d

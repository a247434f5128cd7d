"""
Antenna Rotor Controller - Main facade for one rotor.

Turns motion requests into controller commands, tracks the commanded
angle, and optionally blocks until a step has finished - either for an
estimated time or by polling the controller's position register.

Example:
    with MotionController(SerialTransport(), port="/dev/ttyUSB0") as rotor:
        rotor.reset_system()
        rotor.default_setup()
        rotor.disable_safety_limits()
        rotor.set_degrees_per_step(2)
        rotor.set_direction("ccw")
        rotor.activate_step()
"""

from __future__ import annotations

import math
import numbers
import threading
import time
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, List, Optional, Union, TYPE_CHECKING

from rotor.channel import CommandChannel, CommandResult
from rotor.errors import InvalidArgument, MotionInProgressError, TransportError
from rotor.logger import log_info, log_move, log_ok, log_pos, log_stop, log_wait, log_warn
from rotor.polling import poll_until
from rotor.protocol import degrees_to_counts, parse_position, to_degrees
from rotor.serial_transport import SerialTransport
from rotor.state import RotorConfig, RotorState
from rotor.types import (
    AnyCommand,
    ControllerPhase,
    Direction,
    DirectionCommand,
    EchoCommand,
    GoCommand,
    HomeCommand,
    KillCommand,
    LimitsCommand,
    LineFeedCommand,
    ModeNormalCommand,
    PositionReportCommand,
    PositionZeroCommand,
    RawCommand,
    ResetCommand,
    SetAccelerationCommand,
    SetStepSizeCommand,
    SetVelocityCommand,
    StopCommand,
)

if TYPE_CHECKING:
    from rotor.transport import Transport


# Values applied by default_setup()
DEFAULT_VELOCITY = 10
DEFAULT_ACCELERATION = 10
DEFAULT_DEGREES_PER_STEP = 10


class MotionController:
    """
    Controls a single rotor through one exclusively owned transport.

    State machine: DISCONNECTED -> IDLE <-> MOVING -> IDLE -> DISCONNECTED.
    MOVING lasts only for a step-and-wait call; any other operation made
    during it (e.g. from a poll callback) raises MotionInProgressError,
    except stop() and emergency_stop().

    Every setter validates first, sends its command second and updates the
    in-memory state last, so a failed write leaves the state untouched.
    """

    def __init__(
        self,
        transport: "Transport",
        port: Optional[str] = None,
        config: Optional[RotorConfig] = None,
    ):
        self.config = config or RotorConfig()
        self.port = port
        self._transport = transport
        self._channel = CommandChannel(
            transport,
            read_timeout=self.config.read_timeout,
            history_limit=self.config.history_limit,
        )
        self._state = RotorState(
            controller_address=self.config.default_address,
            step_counts=degrees_to_counts(1.0, self.config.degrees_per_motor_rev, 1.0),
        )

    def __enter__(self) -> MotionController:
        if not self.is_connected:
            self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> RotorState:
        """Snapshot of the rotor state (a copy - mutate through methods)."""
        return replace(self._state)

    @property
    def phase(self) -> ControllerPhase:
        return self._state.phase

    @property
    def is_connected(self) -> bool:
        return self._state.connected

    @property
    def current_angle(self) -> float:
        """Cumulative commanded angle in degrees."""
        return self._state.current_angle

    @property
    def direction(self) -> Direction:
        return self._state.direction

    @property
    def degrees_per_step(self) -> float:
        return self._state.degrees_per_step

    @property
    def velocity(self) -> float:
        return self._state.velocity

    @property
    def acceleration(self) -> float:
        return self._state.acceleration

    @property
    def gearbox_ratio(self) -> float:
        return self._state.gearbox_ratio

    @property
    def safety_limits_enabled(self) -> bool:
        return self._state.safety_limits_enabled

    @property
    def controller_address(self) -> int:
        return self._state.controller_address

    # =========================================================================
    # Connection
    # =========================================================================

    def connect(self, port: Optional[str] = None, baudrate: Optional[int] = None) -> None:
        """Open the transport. Raises TransportError on failure."""
        if self.is_connected:
            log_warn(f"Already connected to {self.port}")
            return

        port = port or self.port
        if not port:
            raise InvalidArgument("No port given")

        self._transport.open(port, baudrate or self.config.baudrate)
        self.port = port
        self._state.phase = ControllerPhase.IDLE
        log_ok(f"Connected to rotor on {port}")

    def disconnect(self) -> None:
        """Close the transport. Safe to call when already disconnected."""
        try:
            self._transport.close()
        finally:
            if self.is_connected:
                log_ok(f"Disconnected from {self.port}")
            self._state.phase = ControllerPhase.DISCONNECTED

    # =========================================================================
    # Setup
    # =========================================================================

    def default_setup(self) -> None:
        """Velocity 10, acceleration 10, 10 degrees per step, clockwise."""
        log_info("Applying default setup")
        self.set_velocity(DEFAULT_VELOCITY)
        self.set_acceleration(DEFAULT_ACCELERATION)
        self.set_degrees_per_step(DEFAULT_DEGREES_PER_STEP)
        self.set_cw()

    def set_direction(self, direction: Union[Direction, str]) -> None:
        """Set direction from a Direction or 'cw' / 'ccw'."""
        direction = Direction.parse(direction)
        self._send(DirectionCommand(direction))
        self._state.direction = direction

    def set_cw(self) -> None:
        self.set_direction(Direction.CW)

    def set_ccw(self) -> None:
        self.set_direction(Direction.CCW)

    def set_degrees_per_step(self, degrees_per_step: float) -> None:
        """
        Set the output shaft travel of one step.

        Sent as D<counts>, counts = degrees * degrees_per_motor_rev *
        gearbox_ratio rounded to a whole encoder count.
        """
        _require_positive("degrees_per_step", degrees_per_step)
        counts = degrees_to_counts(
            degrees_per_step, self.config.degrees_per_motor_rev, self._state.gearbox_ratio
        )
        if counts < 1:
            raise InvalidArgument(
                f"degrees_per_step={degrees_per_step} is less than one encoder count"
            )

        self._send(SetStepSizeCommand(counts))
        self._state.degrees_per_step = degrees_per_step
        self._state.step_counts = counts

    def set_velocity(self, revs_per_sec: float) -> None:
        _require_positive("velocity", revs_per_sec)
        self._send(SetVelocityCommand(revs_per_sec))
        self._state.velocity = revs_per_sec

    def set_acceleration(self, revs_per_sec_sq: float) -> None:
        _require_positive("acceleration", revs_per_sec_sq)
        self._send(SetAccelerationCommand(revs_per_sec_sq))
        self._state.acceleration = revs_per_sec_sq

    def set_gearbox_ratio(self, ratio: float) -> None:
        """
        Set the output/motor shaft reduction, 0 < ratio <= 1.

        Local only. The step size already on the controller is not
        re-sent; the new ratio applies from the next set_degrees_per_step().
        """
        _require_positive("gearbox_ratio", ratio)
        if ratio > 1:
            raise InvalidArgument(f"gearbox_ratio must be in (0, 1], got {ratio}")
        self._require_not_moving()
        self._state.gearbox_ratio = ratio

    def set_controller_address(self, address: int) -> None:
        """Local only: address prefixed to subsequent addressed commands."""
        if isinstance(address, bool) or not isinstance(address, numbers.Integral) or address < 0:
            raise InvalidArgument(f"Controller address must be an integer >= 0, got {address!r}")
        self._require_not_moving()
        self._state.controller_address = int(address)

    def disable_safety_limits(self) -> None:
        self._send(LimitsCommand(enabled=False))
        self._state.safety_limits_enabled = False

    def enable_safety_limits(self) -> None:
        self._send(LimitsCommand(enabled=True))
        self._state.safety_limits_enabled = True

    def set_echo_mode(self, enabled: bool) -> None:
        """Turn controller character echo on or off."""
        if not isinstance(enabled, bool):
            raise InvalidArgument(f"Echo mode must be True or False, got {enabled!r}")
        self._send(EchoCommand(enabled))
        self._state.echo_enabled = enabled

    # =========================================================================
    # Resets
    # =========================================================================

    def reset_system(self) -> None:
        """
        Reset the controller, then wait reset_settle_delay.

        The controller ignores commands until it has finished resetting.
        """
        self._send(ResetCommand())
        log_wait(f"Controller reset, settling {self.config.reset_settle_delay}s")
        time.sleep(self.config.reset_settle_delay)

    def reset_position_register(self) -> None:
        """Zero the hardware encoder count. current_angle is untouched."""
        self._send(PositionZeroCommand())

    def reset_angle(self) -> None:
        """Zero the software-tracked angle. Nothing is sent."""
        self._require_not_moving()
        self._state.current_angle = 0.0

    # =========================================================================
    # Motion
    # =========================================================================

    def activate_step(self) -> None:
        """Start one step and return without waiting for it to finish."""
        self._require_idle()
        self._step()

    def activate_step_and_wait_fixed_delay(self) -> None:
        """
        Start one step, then sleep degrees_per_step / velocity seconds.

        A time estimate with no feedback - may return before or well after
        the rotor actually stops.
        """
        self._require_idle()
        with self._moving():
            self._step()
            delay = self._state.degrees_per_step / self._state.velocity
            log_wait(f"Waiting {delay:.3f}s for step to complete")
            time.sleep(delay)

    def activate_step_and_wait_until_reached(
        self,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> float:
        """
        Start one step and poll the position register until it arrives.

        The target is the start count plus/minus the step size in encoder
        counts (the exact value sent with D), so integer comparison is
        sound. config.position_tolerance widens the match if non-zero.

        Returns:
            Reached absolute position in degrees.

        Raises:
            TimedOut: target not reached in time; the rotor may still be
                moving - send stop() if that matters.
            PollCancelled: `cancel` was set; same caveat.
        """
        self._require_idle()
        with self._moving():
            start = self._read_position_counts()
            target = start + self._state.direction.sign * self._state.step_counts
            self._step()

            log_wait(f"Polling position until {target}", {"start": start})
            reached = poll_until(
                self._read_position_counts,
                target,
                interval=interval if interval is not None else self.config.poll_interval,
                timeout=timeout if timeout is not None else self.config.poll_timeout,
                tolerance=self.config.position_tolerance,
                cancel=cancel,
            )
        return self._counts_to_degrees(reached)

    def rotate(self, direction: Union[Direction, str], degrees: float) -> None:
        """
        Default setup, then one step of `degrees` in `direction` with the
        safety limits disabled.

        The controller needs command_settle_delay between commands here.
        """
        direction = Direction.parse(direction)
        _require_positive("degrees", degrees)
        self._require_idle()

        sequence: List[Callable[[], None]] = [
            lambda: self.set_velocity(DEFAULT_VELOCITY),
            lambda: self.set_acceleration(DEFAULT_ACCELERATION),
            lambda: self.set_degrees_per_step(DEFAULT_DEGREES_PER_STEP),
            self.set_cw,
            lambda: self.set_degrees_per_step(degrees),
            lambda: self.set_direction(direction),
            self.disable_safety_limits,
            self.activate_step,
        ]
        log_move(f"Rotate {direction.value.upper()} {degrees} deg")
        for i, operation in enumerate(sequence):
            if i:
                time.sleep(self.config.command_settle_delay)
            operation()

    def go_to_home(self) -> None:
        """
        Send the controller to its home reference.

        Direction is left at CCW. current_angle is reset to 0 straight
        away; the controller's homing is trusted, not confirmed.
        """
        self._require_idle()
        log_move("Homing (GH-2)")
        self._send(DirectionCommand(Direction.CCW))
        self._state.direction = Direction.CCW
        self._send(LimitsCommand(enabled=True))
        self._state.safety_limits_enabled = True
        self._send(HomeCommand())
        self._state.current_angle = 0.0

    def emergency_stop(self) -> None:
        """
        Kill motion immediately (MN, K). Allowed in any connected state.

        WARNING: current_angle no longer matches the shaft after this.
        """
        log_stop("EMERGENCY STOP TRIGGERED")
        self._require_connected()
        self._channel.send_many(
            [ModeNormalCommand(), KillCommand()], self._state.controller_address
        )

    def stop(self) -> None:
        """Decelerate to a controlled stop (MN, S). Allowed in any connected state."""
        log_stop("Stop requested")
        self._require_connected()
        self._channel.send_many(
            [ModeNormalCommand(), StopCommand()], self._state.controller_address
        )

    # =========================================================================
    # Position
    # =========================================================================

    def get_absolute_position(self) -> float:
        """
        Read the controller's position register, in output shaft degrees.

        Informational only - current_angle is not updated.
        """
        self._require_idle()
        return self._counts_to_degrees(self._read_position_counts())

    def read_position_counts(self) -> int:
        """Read the controller's position register as raw encoder counts."""
        self._require_idle()
        return self._read_position_counts()

    # =========================================================================
    # Raw access
    # =========================================================================

    def send_line(self, text: str) -> None:
        """Send a line the driver does not model. No state is updated."""
        _require_single_line(text)
        self._send(RawCommand(text))

    def query(self, text: str) -> str:
        """Send a raw line and return the controller's one-line reply."""
        _require_single_line(text)
        self._require_idle()
        return self._channel.query([RawCommand(text)], self._state.controller_address)

    # =========================================================================
    # Status & History
    # =========================================================================

    def get_status(self) -> Dict[str, Any]:
        """Get current controller status."""
        status = self._state.to_dict()
        status["port"] = self.port
        status["degrees_per_motor_rev"] = self.config.degrees_per_motor_rev
        return status

    def get_command_history(self, limit: int | None = None) -> List[CommandResult]:
        """Get command execution history."""
        return self._channel.get_history(limit)

    def print_history(self, limit: int = 20) -> None:
        """Print recent command history."""
        self._channel.print_history(limit)

    # =========================================================================
    # Internals
    # =========================================================================

    def _send(self, command: AnyCommand) -> None:
        self._require_idle()
        self._channel.send(command, self._state.controller_address)

    def _step(self) -> None:
        self._channel.send(GoCommand(), self._state.controller_address)
        self._state.current_angle += self._state.direction.sign * self._state.degrees_per_step
        log_move(
            f"Step {self._state.direction.value.upper()} {self._state.degrees_per_step} deg",
            {"angle": self._state.current_angle},
        )

    def _read_position_counts(self) -> int:
        line = self._channel.query(
            [PositionReportCommand(), LineFeedCommand()], self._state.controller_address
        )
        counts = parse_position(line)
        log_pos(f"Position register: {counts}")
        return counts

    def _counts_to_degrees(self, counts: int) -> float:
        return to_degrees(counts, self.config.degrees_per_motor_rev, self._state.gearbox_ratio)

    @contextmanager
    def _moving(self) -> Iterator[None]:
        self._state.phase = ControllerPhase.MOVING
        try:
            yield
        finally:
            if self._state.phase is ControllerPhase.MOVING:
                self._state.phase = ControllerPhase.IDLE

    def _require_connected(self) -> None:
        if not self.is_connected or not self._transport.is_connected:
            raise TransportError("Not connected to rotor controller")

    def _require_not_moving(self) -> None:
        if self._state.is_moving:
            raise MotionInProgressError("Rotor is moving - wait for the step to finish")

    def _require_idle(self) -> None:
        self._require_connected()
        self._require_not_moving()


def _require_positive(name: str, value: float) -> None:
    if (
        isinstance(value, bool)
        or not isinstance(value, numbers.Real)
        or not math.isfinite(value)
        or value <= 0
    ):
        raise InvalidArgument(f"{name} must be a positive number, got {value!r}")


# =============================================================================
# Convenience functions
# =============================================================================


def _require_single_line(text: str) -> None:
    """Raw lines must be one ASCII line; the terminator is added on send."""
    if not isinstance(text, str):
        raise InvalidArgument(f"Raw line must be a string, got {text!r}")
    if not text.isascii():
        raise InvalidArgument(f"Raw line must be ASCII, got {text!r}")
    if "\r" in text or "\n" in text:
        raise InvalidArgument(f"Raw line must not contain line breaks, got {text!r}")


def rotate_once(
    port: str,
    direction: Union[Direction, str],
    degrees: float,
    baudrate: Optional[int] = None,
    config: Optional[RotorConfig] = None,
    transport: Optional["Transport"] = None,
) -> float:
    """
    Open the port, reset, rotate once, close the port.

    Returns the commanded angle after the step.
    """
    rotor = MotionController(transport or SerialTransport(), port=port, config=config)
    rotor.connect(port, baudrate)
    try:
        rotor.reset_system()
        rotor.rotate(direction, degrees)
        return rotor.current_angle
    finally:
        rotor.disconnect()


def rotate_cw(port: str, degrees: float, **kwargs) -> float:
    """One-call clockwise rotation. See rotate_once()."""
    return rotate_once(port, Direction.CW, degrees, **kwargs)


def rotate_ccw(port: str, degrees: float, **kwargs) -> float:
    """One-call counter-clockwise rotation. See rotate_once()."""
    return rotate_once(port, Direction.CCW, degrees, **kwargs)

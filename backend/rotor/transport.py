"""
Transport layer - moves bytes between the driver and the rotor controller.

Provides:
- Transport protocol (interface)
- MockTransport for testing
- (SerialTransport and FileTransport in separate files)
"""

from __future__ import annotations

import re
from collections import deque
from typing import Deque, List, Optional, Protocol

from .errors import TransportError
from .protocol import LINE_TERMINATOR


class Transport(Protocol):
    """Protocol for rotor controller communication."""

    def open(self, port: str, baudrate: int) -> None:
        """Open the link. Raises TransportError on failure."""
        ...

    def close(self) -> None:
        """Release the link. Safe to call when already closed."""
        ...

    def write(self, data: bytes) -> None:
        """Write one encoded command line."""
        ...

    def read_line(self, timeout: Optional[float] = None) -> bytes:
        """
        Read one response line (terminator included).
        
        Raises TransportError if nothing arrives within the timeout.
        """
        ...

    def flush_input(self) -> None:
        """Discard anything waiting in the input buffer."""
        ...

    @property
    def is_connected(self) -> bool:
        """Check if transport is connected."""
        ...


_ADDRESSED = re.compile(r"^(\d+)(LD[03]|Z|PZ|PR|LF|SSA[01])$")


class MockTransport:
    """
    Mock transport for testing without hardware.
    
    Simulates the controller's encoder register and answers PR/LF
    queries. A commanded step can be made to take several position
    reports to complete (motion_reads), or to never complete (stalled).
    """

    def __init__(self, motion_reads: int = 0, status_char: str = "*"):
        self.sent_commands: List[str] = []
        self.sent_bytes: List[bytes] = []
        self.port: Optional[str] = None
        self.baudrate: Optional[int] = None
        self.motion_reads = motion_reads
        self.status_char = status_char
        self.stalled = False
        self.fail_writes = False
        self.fail_open = False
        self.report_override: Optional[str] = None

        self.position: int = 0
        self.step_counts: int = 0
        self.direction_sign: int = 1
        self.limits_enabled: bool = True
        self.echo_enabled: bool = True
        self.velocity: Optional[str] = None
        self.acceleration: Optional[str] = None

        self._connected: bool = False
        self._target: Optional[int] = None
        self._remaining: int = 0
        self._report: Optional[str] = None
        self._responses: Deque[bytes] = deque()

    # =========================================================================
    # Transport protocol
    # =========================================================================

    def open(self, port: str, baudrate: int) -> None:
        if self.fail_open:
            raise TransportError(f"Failed to open {port}: simulated failure")
        self.port = port
        self.baudrate = baudrate
        self._connected = True

    def close(self) -> None:
        self._connected = False

    def write(self, data: bytes) -> None:
        """
        Simulate sending a command line.
        
        Tracks the command and simulates its effect on the controller.
        """
        if not self._connected:
            raise TransportError("Not connected")
        if self.fail_writes:
            raise TransportError("Write failed: simulated failure")

        self.sent_bytes.append(data)
        line = data.decode("ascii")
        if line.endswith(LINE_TERMINATOR):
            line = line[:-len(LINE_TERMINATOR)]
        self.sent_commands.append(line)
        self._simulate(line)

    def read_line(self, timeout: Optional[float] = None) -> bytes:
        if not self._connected:
            raise TransportError("Not connected")
        if not self._responses:
            raise TransportError("Timeout waiting for response")
        return self._responses.popleft()

    def flush_input(self) -> None:
        self._responses.clear()

    @property
    def is_connected(self) -> bool:
        return self._connected

    # =========================================================================
    # Test helpers
    # =========================================================================

    @property
    def command_count(self) -> int:
        """Number of commands sent."""
        return len(self.sent_commands)

    def queue_response(self, line: str) -> None:
        """Queue a raw response line, returned by the next read_line()."""
        self._responses.append(f"{line}{LINE_TERMINATOR}".encode("ascii"))

    def clear_history(self) -> None:
        """Clear sent commands history."""
        self.sent_commands.clear()
        self.sent_bytes.clear()

    @property
    def is_moving(self) -> bool:
        return self._target is not None

    # =========================================================================
    # Controller simulation
    # =========================================================================

    def _simulate(self, line: str) -> None:
        match = _ADDRESSED.match(line)
        if match:
            self._simulate_addressed(match.group(2))
            return

        if line == "H+":
            self.direction_sign = 1
        elif line == "H-":
            self.direction_sign = -1
        elif line.startswith("D"):
            self.step_counts = int(line[1:])
        elif line.startswith("V"):
            self.velocity = line[1:]
        elif line.startswith("A"):
            self.acceleration = line[1:]
        elif line == "G":
            if not self.stalled:
                self._target = self.position + self.direction_sign * self.step_counts
                self._remaining = self.motion_reads
                if self._remaining == 0:
                    self._finish_move()
        elif line == "GH-2":
            self._target = None
            self.position = 0
        elif line in ("K", "S"):
            # Motion halts wherever it currently is
            self._target = None

    def _simulate_addressed(self, body: str) -> None:
        if body == "LD3":
            self.limits_enabled = False
        elif body == "LD0":
            self.limits_enabled = True
        elif body == "Z":
            self._target = None
            self.position = 0
            self._responses.clear()
        elif body == "PZ":
            self.position = 0
        elif body == "PR":
            self._advance()
            if self.report_override is not None:
                self._report = self.report_override
            else:
                self._report = f"{self.status_char}{self.position}"
        elif body == "LF":
            if self._report is not None:
                self.queue_response(self._report)
                self._report = None
        elif body == "SSA0":
            self.echo_enabled = True
        elif body == "SSA1":
            self.echo_enabled = False

    def _advance(self) -> None:
        """Move the simulated shaft one report closer to its target."""
        if self._target is None:
            return
        if self._remaining > 0:
            self._remaining -= 1
            self.position += (self._target - self.position) // (self._remaining + 2)
        else:
            self._finish_move()

    def _finish_move(self) -> None:
        self.position = self._target
        self._target = None

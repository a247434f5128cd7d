"""
Command channel - serialized, auditable access to the transport.

Provides:
- CommandChannel: encodes commands, writes them, pairs queries with replies
- CommandResult: execution record with timestamp

Every write, and every query's write/read pair, runs under one lock so a
response always belongs to the query that asked for it.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, List, Optional, Sequence, TYPE_CHECKING

from .errors import RotorError
from .protocol import encode_command
from .types import AnyCommand

if TYPE_CHECKING:
    from .transport import Transport


DEFAULT_HISTORY_LIMIT = 1000


@dataclass
class CommandResult:
    """
    Result of sending a command.
    
    Record for audit trail.
    """
    command: AnyCommand
    wire: str
    response: Optional[str]
    timestamp: datetime
    success: bool

    def __str__(self) -> str:
        status = "✓" if self.success else "✗"
        reply = f" → {self.response}" if self.response is not None else ""
        return f"[{self.timestamp:%H:%M:%S}] {status} {self.wire}{reply}"


class CommandChannel:
    """
    Ordered command channel with history.
    
    Failures are recorded and then re-raised - the channel never retries.
    """

    def __init__(self, transport: "Transport", read_timeout: Optional[float] = None,
                 history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.transport = transport
        self.read_timeout = read_timeout
        self._lock = threading.RLock()
        # Oldest entries fall off once history_limit is reached
        self._history: Deque[CommandResult] = deque(maxlen=history_limit)

    def send(self, command: AnyCommand, address: int) -> CommandResult:
        """Encode and write one command."""
        data = encode_command(command, address)
        with self._lock:
            return self._write(command, data)

    def send_many(self, commands: Sequence[AnyCommand], address: int) -> List[CommandResult]:
        """Write several commands back to back, in order."""
        with self._lock:
            return [self._write(c, encode_command(c, address)) for c in commands]

    def query(self, commands: Sequence[AnyCommand], address: int) -> str:
        """
        Flush input, write the commands, then read one response line.
        
        Returns the line without its terminator.
        """
        with self._lock:
            self.transport.flush_input()
            results = [self._write(c, encode_command(c, address)) for c in commands]

            # The reply is attached to the command that triggered it
            last = results[-1]
            try:
                raw = self.transport.read_line(self.read_timeout)
            except RotorError as e:
                last.response = f"ERROR: {e}"
                last.success = False
                raise

            last.response = raw.decode("ascii", errors="replace").rstrip("\r\n")
            return last.response

    def _write(self, command: AnyCommand, data: bytes) -> CommandResult:
        wire = data.decode("ascii").rstrip("\r\n")
        try:
            self.transport.write(data)
        except RotorError as e:
            self._record(command, wire, f"ERROR: {e}", success=False)
            raise
        return self._record(command, wire, None, success=True)

    def _record(self, command: AnyCommand, wire: str, response: Optional[str],
                success: bool) -> CommandResult:
        result = CommandResult(
            command=command,
            wire=wire,
            response=response,
            timestamp=datetime.now(),
            success=success,
        )
        self._history.append(result)
        return result

    # =========================================================================
    # History
    # =========================================================================

    def get_history(self, limit: int | None = None) -> List[CommandResult]:
        """
        Get execution history.
        
        Args:
            limit: Optional max number of recent entries to return.
        """
        history = list(self._history)
        if limit is None:
            return history
        if limit <= 0:
            return []
        return history[-limit:]

    def get_last_result(self) -> CommandResult | None:
        """Get most recent execution result."""
        return self._history[-1] if self._history else None

    def clear_history(self) -> None:
        """Clear execution history."""
        self._history.clear()

    def print_history(self, limit: int = 20) -> None:
        """Print recent history to console (for debugging)."""
        for result in self.get_history(limit):
            print(result)

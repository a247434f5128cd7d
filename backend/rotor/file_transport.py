"""
File Transport - appends outbound command lines to a text file.

Used to dry-run command sequences without hardware. The file receives
exactly the bytes a serial port would. Nothing can be read back, so
position queries fail with TransportError.
"""

from pathlib import Path
from typing import IO, Optional

from .errors import TransportError
from .logger import log_ok, log_serial


class FileTransport:
    """Write-only transport backed by a file opened in append mode."""

    def __init__(self):
        self.path: Optional[Path] = None
        self._file: Optional[IO[bytes]] = None

    def open(self, port: str, baudrate: int = 0) -> None:
        """Open (or create) the capture file; baudrate is ignored"""
        try:
            self._file = open(port, "ab")
        except OSError as e:
            raise TransportError(f"Failed to open {port}: {e}") from e
        self.path = Path(port)
        log_ok(f"Capturing commands to {self.path}")

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def write(self, data: bytes) -> None:
        if not self._file:
            raise TransportError("Not connected")
        log_serial(">>>", data.decode("ascii", errors="replace").rstrip())
        try:
            self._file.write(data)
            self._file.flush()
        except OSError as e:
            raise TransportError(f"Write failed: {e}") from e

    def read_line(self, timeout: Optional[float] = None) -> bytes:
        raise TransportError("File transport cannot read responses")

    def flush_input(self) -> None:
        pass

    @property
    def is_connected(self) -> bool:
        return self._file is not None

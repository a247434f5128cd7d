"""
Serial Transport - Single responsibility: serial communication

Thread-safe: Uses lock to prevent interleaved writes/reads on the port.
"""

import threading
import time
from dataclasses import dataclass
from typing import Optional

import serial
import serial.tools.list_ports

from .errors import TransportError
from .logger import log_critical, log_ok, log_serial


BAUD_RATE = 9600
DEFAULT_TIMEOUT = 2.0


@dataclass
class SerialConfig:
    bytesize: int = serial.EIGHTBITS
    parity: str = serial.PARITY_NONE
    stopbits: float = serial.STOPBITS_ONE
    timeout: float = DEFAULT_TIMEOUT
    connect_delay: float = 0.0


class SerialTransport:
    """
    Handles raw serial communication with the rotor controller.
    
    Thread-safe: All write/read operations are protected by a lock.
    pyserial errors are re-raised as TransportError.
    """

    def __init__(self, config: Optional[SerialConfig] = None):
        self.config = config or SerialConfig()
        self._serial: Optional[serial.Serial] = None
        self._lock = threading.Lock()

    @staticmethod
    def list_ports() -> list[str]:
        """List available serial ports"""
        ports = serial.tools.list_ports.comports()
        return [port.device for port in ports]

    def open(self, port: str, baudrate: int = BAUD_RATE) -> None:
        """Open serial port (8 data bits by default)"""
        try:
            self._serial = serial.Serial(
                port,
                baudrate,
                bytesize=self.config.bytesize,
                parity=self.config.parity,
                stopbits=self.config.stopbits,
                timeout=self.config.timeout,
            )
        except (serial.SerialException, ValueError) as e:
            self._serial = None
            log_critical(f"Failed to open {port}", {"error": str(e)})
            raise TransportError(f"Failed to open {port}: {e}") from e
        if self.config.connect_delay:
            time.sleep(self.config.connect_delay)
        log_ok(f"Opened {port} @ {baudrate} baud")

    def close(self) -> None:
        """Close serial port. The handle is dropped even if close fails."""
        port, self._serial = self._serial, None
        if port is None:
            return
        try:
            port.close()
        except serial.SerialException as e:
            log_critical("Close failed", {"error": str(e)})
            raise TransportError(f"Close failed: {e}") from e

    def write(self, data: bytes) -> None:
        """Write one encoded command line"""
        port = self._require_open()
        with self._lock:
            log_serial(">>>", data.decode("ascii", errors="replace").rstrip())
            try:
                port.write(data)
            except serial.SerialException as e:
                log_critical("Write failed", {"error": str(e)})
                raise TransportError(f"Write failed: {e}") from e

    def read_line(self, timeout: Optional[float] = None) -> bytes:
        """
        Read a single line, terminator included.
        
        pyserial returns an empty/partial line when the read timeout
        expires; that is reported as TransportError.
        """
        port = self._require_open()
        with self._lock:
            previous = port.timeout
            if timeout is not None:
                port.timeout = timeout
            try:
                line = port.readline()
            except serial.SerialException as e:
                log_critical("Read failed", {"error": str(e)})
                raise TransportError(f"Read failed: {e}") from e
            finally:
                if timeout is not None:
                    port.timeout = previous

        if not line.endswith(b"\n"):
            waited = timeout if timeout is not None else previous
            log_critical(f"Timeout waiting for response after {waited}s")
            raise TransportError(f"Timeout waiting for response after {waited}s")

        log_serial("<<<", line.decode("ascii", errors="replace").rstrip())
        return line

    def flush_input(self) -> None:
        """Clear input buffer"""
        if not self._serial:
            return
        with self._lock:
            try:
                self._serial.reset_input_buffer()
            except serial.SerialException as e:
                log_critical("Flush failed", {"error": str(e)})
                raise TransportError(f"Flush failed: {e}") from e

    @property
    def is_connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def _require_open(self) -> serial.Serial:
        if not self._serial:
            raise TransportError("Not connected")
        return self._serial

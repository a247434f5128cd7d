"""
Structured logging for the antenna rotor driver.

Prefixes:
  ⚡ CRITICAL - Errors, failures
  ⚠️  WARN     - Warnings, unexpected behavior
  ✓  OK       - Success confirmations
  →  MOVE     - Step / home commands
  ⏳ WAIT     - Blocking waits (fixed delay, polling)
  ⬡  SERIAL   - Raw serial I/O
  📍 POS      - Position readings
  ⛔ STOP     - Stop / emergency stop
"""

from enum import Enum
from typing import Optional
from datetime import datetime


class LogLevel(Enum):
    CRITICAL = "⚡ CRITICAL"
    WARN = "⚠️  WARN    "
    OK = "✓  OK      "
    MOVE = "→  MOVE    "
    WAIT = "⏳ WAIT    "
    SERIAL = "⬡  SERIAL  "
    POS = "📍 POS     "
    STOP = "⛔ STOP    "
    INFO = "ℹ  INFO    "


def log(level: LogLevel, message: str, data: Optional[dict] = None):
    """Log a message with structured prefix."""
    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    prefix = level.value
    
    line = f"[{timestamp}] {prefix} | {message}"
    if data:
        line += f" | {data}"
    
    print(line)


# Convenience functions
def log_critical(msg: str, data: Optional[dict] = None):
    log(LogLevel.CRITICAL, msg, data)

def log_warn(msg: str, data: Optional[dict] = None):
    log(LogLevel.WARN, msg, data)

def log_ok(msg: str, data: Optional[dict] = None):
    log(LogLevel.OK, msg, data)

def log_move(msg: str, data: Optional[dict] = None):
    log(LogLevel.MOVE, msg, data)

def log_wait(msg: str, data: Optional[dict] = None):
    log(LogLevel.WAIT, msg, data)

def log_serial(direction: str, data: str):
    """Log serial I/O. direction is '>>>' (send) or '<<<' (recv)"""
    log(LogLevel.SERIAL, f"{direction} {data}")

def log_pos(msg: str, data: Optional[dict] = None):
    log(LogLevel.POS, msg, data)

def log_stop(msg: str, data: Optional[dict] = None):
    log(LogLevel.STOP, msg, data)

def log_info(msg: str, data: Optional[dict] = None):
    log(LogLevel.INFO, msg, data)

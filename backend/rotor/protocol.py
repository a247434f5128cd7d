"""
Wire protocol - encoding commands and parsing responses.

Pure functions only - no serial I/O here.

Outbound lines are ASCII, terminated by CR LF. Some commands carry the
controller address as a numeric prefix ("2LD3"), others go out bare ("G").
Position responses are one status character followed by a signed integer
encoder count ("*+4000", "#-120").
"""

from __future__ import annotations

from typing import Union

from .errors import InvalidArgument, ParseError
from .types import Command


LINE_TERMINATOR = "\r\n"


# =============================================================================
# CommandEncoder
# =============================================================================


def encode(address: int, body: str) -> bytes:
    """
    Addressed form: "{address}{body}\\r\\n".
    
    Example:
        >>> encode(2, "LD3")
        b'2LD3\\r\\n'
    """
    if address < 0:
        raise InvalidArgument(f"Controller address must be >= 0, got {address}")
    return f"{address}{body}{LINE_TERMINATOR}".encode("ascii")


def encode_unaddressed(body: str) -> bytes:
    """
    Bare form: "{body}\\r\\n".
    
    Example:
        >>> encode_unaddressed("H+")
        b'H+\\r\\n'
    """
    return f"{body}{LINE_TERMINATOR}".encode("ascii")


def encode_command(command: Command, address: int) -> bytes:
    """Encode a command in the form its type requires."""
    if command.addressed:
        return encode(address, command.to_body())
    return encode_unaddressed(command.to_body())


# =============================================================================
# ResponseParser
# =============================================================================


def parse_position(line: Union[str, bytes]) -> int:
    """
    Parse a position response into a raw encoder count.
    
    The first character is a status/address marker and is dropped; the rest
    must be a signed integer.
    
    Example:
        >>> parse_position("#4000")
        4000
        >>> parse_position("*-25")
        -25
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("ascii")
        except UnicodeDecodeError as e:
            raise ParseError(f"Position response is not ASCII: {line!r}") from e

    text = line.rstrip("\r\n")
    if not text:
        raise ParseError("Empty position response")

    payload = text[1:].strip()
    try:
        return int(payload)
    except ValueError as e:
        raise ParseError(f"Invalid position response: {line!r}") from e


def to_degrees(raw_position: int, degrees_per_motor_rev: int, gearbox_ratio: float) -> float:
    """Convert a raw encoder count to output shaft degrees."""
    return raw_position / (degrees_per_motor_rev * gearbox_ratio)


def degrees_to_counts(degrees: float, degrees_per_motor_rev: int, gearbox_ratio: float) -> int:
    """Convert output shaft degrees to the nearest whole encoder count."""
    return int(round(degrees * degrees_per_motor_rev * gearbox_ratio))

"""
Poll loop - block until a repeated reading reaches a target.

The only wait in the driver whose length depends on the hardware. Bounded
by a timeout and cancellable through a threading.Event.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from .errors import InvalidArgument, PollCancelled, TimedOut
from .logger import log_wait, log_warn


def poll_until(
    read: Callable[[], int],
    target: int,
    interval: float,
    timeout: float,
    tolerance: int = 0,
    cancel: Optional[threading.Event] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Sample read() every `interval` seconds until it returns `target`.
    
    Exact equality by default: positions are integer encoder counts. A
    non-zero tolerance accepts |reading - target| <= tolerance.
    
    Returns:
        The reading that matched.
    
    Raises:
        TimedOut: elapsed time reached `timeout` without a match. At most
            timeout/interval + 1 reads are made.
        PollCancelled: `cancel` was set.
        Anything read() raises, unchanged.
    """
    if interval <= 0:
        raise InvalidArgument(f"Poll interval must be > 0, got {interval}")
    if timeout < 0:
        raise InvalidArgument(f"Poll timeout must be >= 0, got {timeout}")
    if tolerance < 0:
        raise InvalidArgument(f"Poll tolerance must be >= 0, got {tolerance}")

    start = clock()
    reads = 0
    while True:
        value = read()
        reads += 1
        if abs(value - target) <= tolerance:
            log_wait(f"Target {target} reached after {reads} reads")
            return value

        elapsed = clock() - start
        if elapsed >= timeout:
            log_warn(f"Timed out waiting for {target}", {"last": value, "reads": reads})
            raise TimedOut(
                f"Position {target} not reached within {timeout}s (last reading {value})"
            )

        if cancel is not None:
            # Event.wait returns True as soon as the event is set
            if cancel.is_set() or cancel.wait(interval):
                raise PollCancelled(f"Polling for {target} cancelled after {reads} reads")
        else:
            sleep(interval)

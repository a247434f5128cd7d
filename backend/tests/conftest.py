"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rotor.state import RotorConfig
from rotor.transport import MockTransport
from antenna_rotor import MotionController


@pytest.fixture
def fast_config() -> RotorConfig:
    """Config with no settle delays and a short poll bound."""
    return RotorConfig(
        command_settle_delay=0.0,
        reset_settle_delay=0.0,
        poll_interval=0.001,
        poll_timeout=0.2,
    )


@pytest.fixture
def transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
def rotor(transport, fast_config) -> MotionController:
    """Controller connected to a mock transport."""
    ctrl = MotionController(transport, port="mock", config=fast_config)
    ctrl.connect()
    return ctrl

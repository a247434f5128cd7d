"""
API Dependencies - Dependency injection for FastAPI

Holds the one MotionController the API drives. The transport is owned
exclusively by that controller.
"""

from dataclasses import dataclass
from typing import Optional, List, Dict, Any

from fastapi import HTTPException

from rotor.state import RotorConfig
from rotor.transport import MockTransport
from rotor.serial_transport import SerialTransport
from rotor.logger import log_critical
from rotor.errors import RotorError
from antenna_rotor import MotionController


MOCK_PORT = "mock"


@dataclass
class AppState:
    """Application state container."""
    controller: Optional[MotionController] = None
    config: Optional[RotorConfig] = None

    @property
    def is_connected(self) -> bool:
        return self.controller is not None and self.controller.is_connected

    def connect(self, port: str, baudrate: Optional[int] = None) -> None:
        """
        Connect to the rotor controller.
        
        Port "mock" uses the simulated controller instead of a serial port.
        Raises RotorError on failure.
        """
        if self.is_connected:
            self.disconnect()

        transport = MockTransport() if port == MOCK_PORT else SerialTransport()
        controller = MotionController(transport, port=port, config=self.config)
        try:
            controller.connect(port, baudrate)
        except RotorError as e:
            log_critical(f"Connection error: {e}")
            raise
        self.controller = controller

    def disconnect(self) -> None:
        """Disconnect from the rotor controller."""
        controller, self.controller = self.controller, None
        if controller:
            controller.disconnect()

    def get_status(self) -> Dict[str, Any]:
        """Get current status for API."""
        if self.controller:
            return self.controller.get_status()
        return {"connected": False, "phase": "disconnected", "port": None}

    def get_command_history(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Get recent command history."""
        if not self.controller:
            return []

        history = self.controller.get_command_history(limit)
        return [
            {
                "command": r.wire,
                "response": r.response,
                "success": r.success,
                "timestamp": r.timestamp.isoformat(),
            }
            for r in history
        ]


# Global instance
_app_state: Optional[AppState] = None


def get_app_state() -> AppState:
    """Get the global app state instance."""
    global _app_state
    if _app_state is None:
        _app_state = AppState()
    return _app_state


def require_connection() -> MotionController:
    """Get controller, raising error if not connected."""
    state = get_app_state()
    if not state.is_connected or state.controller is None:
        raise HTTPException(status_code=400, detail="Not connected to rotor")
    return state.controller

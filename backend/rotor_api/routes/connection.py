"""
Connection Routes - Connect/disconnect, status and command history
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from rotor.errors import RotorError
from ..dependencies import get_app_state, AppState

router = APIRouter(tags=["connection"])


class ConnectRequest(BaseModel):
    port: str
    baudrate: Optional[int] = None


@router.get("/ports")
def get_ports():
    """List available serial ports."""
    from rotor.serial_transport import SerialTransport
    return {"ports": SerialTransport.list_ports()}


@router.get("/status")
def get_status(state: AppState = Depends(get_app_state)):
    """Get current connection status and rotor state."""
    return state.get_status()


@router.get("/history")
def get_history(limit: int = Query(50, ge=1), state: AppState = Depends(get_app_state)):
    """Get recent command history."""
    return {"history": state.get_command_history(limit)}


@router.post("/connect")
def connect(req: ConnectRequest, state: AppState = Depends(get_app_state)):
    """Connect to the rotor controller ("mock" for the simulator)."""
    try:
        state.connect(req.port, req.baudrate)
        return {"success": True, "message": "Connected"}
    except RotorError as e:
        return {"success": False, "message": str(e)}


@router.post("/disconnect")
def disconnect(state: AppState = Depends(get_app_state)):
    """Disconnect from the rotor controller."""
    state.disconnect()
    return {"success": True}

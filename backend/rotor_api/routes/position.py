"""
Position Routes - Absolute position register and tracked angle
"""

from fastapi import APIRouter

from rotor.protocol import to_degrees
from ..dependencies import require_connection

router = APIRouter(tags=["position"])


@router.get("/position")
def get_position():
    """Read the position register and report it next to the tracked angle."""
    ctrl = require_connection()
    counts = ctrl.read_position_counts()
    return {
        "success": True,
        "counts": counts,
        "degrees": to_degrees(counts, ctrl.config.degrees_per_motor_rev, ctrl.gearbox_ratio),
        "current_angle": ctrl.current_angle,
    }


@router.post("/position/zero")
def zero_position_register():
    """Zero the hardware encoder count (PZ)."""
    ctrl = require_connection()
    ctrl.reset_position_register()
    return {"success": True}


@router.post("/angle/reset")
def reset_angle():
    """Zero the tracked angle without moving."""
    ctrl = require_connection()
    ctrl.reset_angle()
    return {"success": True, "current_angle": ctrl.current_angle}

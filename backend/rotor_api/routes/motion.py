"""
Motion Routes - Setup, stepping, homing and stops
"""

from typing import Literal, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from ..dependencies import require_connection

router = APIRouter(tags=["motion"])


class DirectionRequest(BaseModel):
    direction: str


class ValueRequest(BaseModel):
    value: float


class SafetyLimitsRequest(BaseModel):
    enabled: bool


class StepRequest(BaseModel):
    wait: Literal["none", "fixed", "reached"] = "none"
    timeout: Optional[float] = None


class RotateRequest(BaseModel):
    direction: str
    degrees: float


@router.post("/setup/default")
def default_setup():
    """Velocity 10, acceleration 10, 10 degrees per step, CW."""
    ctrl = require_connection()
    ctrl.default_setup()
    return {"success": True, "status": ctrl.get_status()}


@router.post("/direction")
def set_direction(req: DirectionRequest):
    ctrl = require_connection()
    ctrl.set_direction(req.direction)
    return {"success": True, "direction": ctrl.direction.value}


@router.post("/degrees_per_step")
def set_degrees_per_step(req: ValueRequest):
    ctrl = require_connection()
    ctrl.set_degrees_per_step(req.value)
    return {"success": True, "degrees_per_step": ctrl.degrees_per_step}


@router.post("/velocity")
def set_velocity(req: ValueRequest):
    ctrl = require_connection()
    ctrl.set_velocity(req.value)
    return {"success": True, "velocity": ctrl.velocity}


@router.post("/acceleration")
def set_acceleration(req: ValueRequest):
    ctrl = require_connection()
    ctrl.set_acceleration(req.value)
    return {"success": True, "acceleration": ctrl.acceleration}


@router.post("/gearbox_ratio")
def set_gearbox_ratio(req: ValueRequest):
    ctrl = require_connection()
    ctrl.set_gearbox_ratio(req.value)
    return {"success": True, "gearbox_ratio": ctrl.gearbox_ratio}


@router.post("/safety_limits")
def set_safety_limits(req: SafetyLimitsRequest):
    ctrl = require_connection()
    if req.enabled:
        ctrl.enable_safety_limits()
    else:
        ctrl.disable_safety_limits()
    return {"success": True, "safety_limits_enabled": ctrl.safety_limits_enabled}


@router.post("/step")
def step(req: StepRequest):
    """
    Activate one step.
    
    wait: "none" returns immediately, "fixed" sleeps the estimated
    move time, "reached" polls the position register.
    """
    ctrl = require_connection()
    if req.wait == "fixed":
        ctrl.activate_step_and_wait_fixed_delay()
    elif req.wait == "reached":
        ctrl.activate_step_and_wait_until_reached(timeout=req.timeout)
    else:
        ctrl.activate_step()
    return {"success": True, "current_angle": ctrl.current_angle}


@router.post("/rotate")
def rotate(req: RotateRequest):
    """Default setup plus one step of the given size and direction."""
    ctrl = require_connection()
    ctrl.rotate(req.direction, req.degrees)
    return {"success": True, "current_angle": ctrl.current_angle}


@router.post("/home")
def go_home():
    """Send the rotor to its home reference (GH-2)."""
    ctrl = require_connection()
    ctrl.go_to_home()
    return {"success": True, "current_angle": ctrl.current_angle}


@router.post("/reset")
def reset_system():
    """Reset the controller and wait for it to settle."""
    ctrl = require_connection()
    ctrl.reset_system()
    return {"success": True}


@router.post("/stop")
def stop():
    """Controlled stop (MN, S)."""
    ctrl = require_connection()
    ctrl.stop()
    return {"success": True}


@router.post("/estop")
def emergency_stop():
    """
    EMERGENCY STOP - kill motion immediately (MN, K).
    
    The tracked angle is unreliable afterwards.
    """
    ctrl = require_connection()
    ctrl.emergency_stop()
    return {"success": True, "message": "EMERGENCY STOP - recommend homing"}

"""
Motion Routes - Reference, moves, speed and position queries

Every route holds the app state lock while it talks to the stage.
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from core.types import Axis, Position
from ..dependencies import get_app_state, require_connection, parse_axis, AppState

router = APIRouter(tags=["motion"])


class GoToRequest(BaseModel):
    x: float
    y: float


class MoveRequest(BaseModel):
    axis: str
    steps: int
    relative: bool = False
    wait: bool = True


class ReferenceRequest(BaseModel):
    axis: Optional[str] = None


class SpeedRequest(BaseModel):
    speed: int


class RawCommandRequest(BaseModel):
    command: str
    axis: str = "none"
    parameter: str = ""


def _position(stage) -> dict:
    x_steps = stage.get_counter(Axis.X)
    y_steps = stage.get_counter(Axis.Y)
    position = Position(x_steps * stage.x_scale_factor, y_steps * stage.y_scale_factor)
    return {**position.to_dict(), "x_steps": x_steps, "y_steps": y_steps}


@router.post("/reference")
def move_to_reference(req: ReferenceRequest, state: AppState = Depends(get_app_state)):
    """Reference one axis, or all axes in order when none is given."""
    stage = require_connection()
    axis = parse_axis(req.axis, stage.number_of_axes) if req.axis else None
    with state.lock:
        result = stage.move_to_reference(axis)
        return {"success": result.completed, "result": result.value, "position": _position(stage)}


@router.post("/goto")
def go_to(req: GoToRequest, state: AppState = Depends(get_app_state)):
    """Move to (x, y) in mm with backlash compensation and wait."""
    stage = require_connection()
    if not (math.isfinite(req.x) and math.isfinite(req.y)):
        raise HTTPException(status_code=400, detail="Coordinates must be finite")
    with state.lock:
        result = stage.go_to(req.x, req.y)
        return {"success": result.completed, "result": result.value, "position": _position(stage)}


@router.post("/move")
def move(req: MoveRequest, state: AppState = Depends(get_app_state)):
    """Move a single axis by or to a step count."""
    stage = require_connection()
    axis = parse_axis(req.axis, stage.number_of_axes)
    with state.lock:
        if req.relative:
            stage.move_relative(axis, req.steps)
        else:
            stage.move_absolute(axis, req.steps)
        result = stage.return_on_halt() if req.wait else None
        return {
            "success": result is None or result.completed,
            "result": result.value if result else None,
            "position": _position(stage),
        }


@router.get("/position")
def get_position(state: AppState = Depends(get_app_state)):
    """Read counters and positions of both axes."""
    stage = require_connection()
    with state.lock:
        return {"success": True, "position": _position(stage)}


@router.get("/speed/{axis}")
def get_speed(axis: str, state: AppState = Depends(get_app_state)):
    stage = require_connection()
    selected = parse_axis(axis, stage.number_of_axes)
    with state.lock:
        return {"axis": selected.name, "speed": stage.get_speed(selected)}


@router.post("/speed/{axis}")
def set_speed(axis: str, req: SpeedRequest, state: AppState = Depends(get_app_state)):
    """Set axis speed; values outside [1, 8191] are clamped."""
    stage = require_connection()
    selected = parse_axis(axis, stage.number_of_axes)
    with state.lock:
        speed = stage.set_speed(selected, req.speed)
        return {"success": True, "axis": selected.name, "speed": speed}


@router.post("/command")
def raw_command(req: RawCommandRequest, state: AppState = Depends(get_app_state)):
    """Send a raw command line and return the reply."""
    stage = require_connection()
    try:
        axis = Axis.parse(req.axis)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    with state.lock:
        response = stage.send_and_read(req.command, axis, req.parameter)
        return {"response": response, "last_error": stage.last_error}

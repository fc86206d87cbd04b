"""
Connection Routes - serial port, controller identity and wire history
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.serial_transport import SerialTransport
from hardware.stage import MOCK_PORT
from ..dependencies import get_app_state, AppState

router = APIRouter(tags=["connection"])


class ConnectRequest(BaseModel):
    # None falls back to SMS60_PORT
    port: Optional[str] = None


@router.get("/ports")
def get_ports():
    """Serial ports on this host plus the simulator port name."""
    return {"ports": SerialTransport.list_ports(), "simulator": MOCK_PORT}


@router.get("/status")
def get_status(state: AppState = Depends(get_app_state)):
    return state.get_status()


@router.get("/history")
def get_history(limit: int = 50, state: AppState = Depends(get_app_state)):
    """Most recent wire lines with their replies, oldest first."""
    return {"history": state.get_command_history(limit)}


@router.post("/connect")
def connect(req: ConnectRequest, state: AppState = Depends(get_app_state)):
    """
    Open the port and reset the controller.

    The reset keeps the call busy for several seconds on real hardware.
    An open failure is reported in the body, not as an HTTP error.
    """
    port = (req.port or state.default_port()).strip()
    if not port:
        return {"success": False, "port": None, "message": "No port given"}
    try:
        state.connect(port)
    except ConnectionError as e:
        return {"success": False, "port": port, "message": str(e)}
    return {"success": True, "port": port, "message": f"Connected to {port}"}


@router.post("/disconnect")
def disconnect(state: AppState = Depends(get_app_state)):
    """Release the port. Safe to call when not connected."""
    state.disconnect()
    return {"success": True}

"""
API Dependencies - Dependency injection for FastAPI

One stage driver per process. Requests are served from a thread pool, so
every route that talks to the stage holds `AppState.lock`.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
import os
import sys
import threading

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core import config
from core.types import Axis
from hardware.stage import Sms60


@dataclass
class AppState:
    """Application state container."""
    stage: Optional[Sms60] = None
    lock: threading.Lock = field(default_factory=threading.Lock)

    @property
    def is_connected(self) -> bool:
        return self.stage is not None and self.stage.transport.is_connected

    @staticmethod
    def default_port() -> str:
        return os.environ.get(config.DEFAULT_PORT_ENV, "")

    def connect(self, port: str) -> bool:
        """Open the port and initialize the controller. Raises ConnectionError."""
        with self.lock:
            if self.stage is not None:
                self.stage.close()
                self.stage = None
            self.stage = Sms60.connect(port)
            return True

    def disconnect(self) -> None:
        with self.lock:
            if self.stage is not None:
                self.stage.close()
            self.stage = None

    def get_status(self) -> Dict[str, Any]:
        """Get current status for API."""
        with self.lock:
            stage = self.stage
            if stage is None or not stage.transport.is_connected:
                return {
                    "connected": False,
                    "port": None,
                    "type": config.INSTRUMENT_TYPE,
                    "manufacturer": config.MANUFACTURER,
                    "firmware": None,
                    "number_of_axes": config.NUMBER_OF_AXES,
                    "moving": False,
                    "last_error": None,
                }
            return {
                "connected": True,
                "port": stage.device_port,
                "type": stage.instrument_type,
                "manufacturer": stage.manufacturer,
                "firmware": stage.firmware_version,
                "number_of_axes": stage.number_of_axes,
                "moving": stage.is_moving(),
                "last_error": stage.last_error,
            }

    def get_command_history(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Get recent command history."""
        with self.lock:
            if not self.stage:
                return []
            return [r.to_dict() for r in self.stage.commands.get_history(limit)]


# Global instance
_app_state: Optional[AppState] = None


def get_app_state() -> AppState:
    """Get the global app state instance."""
    global _app_state
    if _app_state is None:
        _app_state = AppState()
    return _app_state


def require_connection() -> Sms60:
    """Get the stage, raising error if not connected."""
    from fastapi import HTTPException

    state = get_app_state()
    if not state.is_connected or state.stage is None:
        raise HTTPException(status_code=400, detail="Not connected to stage")
    return state.stage


def parse_axis(name: str, number_of_axes: int = config.NUMBER_OF_AXES) -> Axis:
    """Parse an axis path/body value, HTTP 400 if invalid."""
    from fastapi import HTTPException

    try:
        axis = Axis.parse(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not axis.is_physical or axis.number > number_of_axes:
        raise HTTPException(status_code=400, detail=f"Invalid axis: {name}")
    return axis

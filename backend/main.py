"""
SMS60 Stage Controller - HTTP entry point

Run with: uvicorn main:app --port 8000
Set SMS60_PORT to connect on startup (use "mock" for the simulator).
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Add backend to path for imports
backend_path = Path(__file__).parent
sys.path.insert(0, str(backend_path))

import uvicorn
from fastapi import FastAPI

from api.app import create_app
from api.dependencies import get_app_state
from core.logger import log_critical, log_info


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect on startup if a port is configured, release it on shutdown"""
    state = get_app_state()
    port = state.default_port()
    log_info("SMS60 Stage Controller v1.0")
    if port:
        try:
            state.connect(port)
        except ConnectionError as e:
            log_critical(f"Startup connection failed: {e}")
    yield
    if state.is_connected:
        log_info("Disconnecting from stage...")
        state.disconnect()


def create_full_app() -> FastAPI:
    """Create the API app with startup/shutdown handling"""
    app = create_app(lifespan=lifespan)

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        state = get_app_state()
        return {
            "status": "ok",
            "version": "1.0.0",
            "connected": state.is_connected,
        }

    return app


# Create app instance
app = create_full_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
    )

"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.transport import MockTransport
from hardware.stage import Sms60, StageSettings


@pytest.fixture
def transport() -> MockTransport:
    """Simulated controller."""
    return MockTransport()


@pytest.fixture
def settings() -> StageSettings:
    """Stage settings without settle delays."""
    return StageSettings.immediate()


@pytest.fixture
def stage(transport, settings) -> Sms60:
    """Initialized stage on the simulator with a clean command log."""
    sms = Sms60(transport, settings, port="mock")
    transport.clear_history()
    sms.commands.clear_history()
    return sms

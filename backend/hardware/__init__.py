"""Hardware abstraction layer - SMS60 stage control"""

from .stage import Sms60, StageSettings, clamp_speed, mm_to_steps, MOCK_PORT

__all__ = [
    'Sms60', 'StageSettings', 'clamp_speed', 'mm_to_steps', 'MOCK_PORT',
]

"""Core infrastructure layer - serial, command dispatch, targets"""

from .serial_transport import SerialTransport, SerialConfig
from .transport import MockTransport, Transport
from .dispatch import CommandDispatcher, CommandRecord
from .types import Axis, MotionStatus, Position, WaitResult
from .targets import Point, PointCloud, load_targets_from_csv

__all__ = [
    'SerialTransport', 'SerialConfig', 'MockTransport', 'Transport',
    'CommandDispatcher', 'CommandRecord',
    'Axis', 'MotionStatus', 'Position', 'WaitResult',
    'Point', 'PointCloud', 'load_targets_from_csv',
]

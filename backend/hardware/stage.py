"""
SMS60 Stage Driver - Single responsibility: two-axis stage motion control

Motion primitives on top of the command dispatcher:
- Absolute and relative moves with backlash compensation
- Reference (homing) runs
- Speed, counter and position accessors
- Poll loop waiting for standstill

Backlash: every move that ends in negative direction first overshoots by
BACKLASH steps and then approaches the target from the positive side.
"""

import math
import time
from decimal import Decimal
from typing import Dict, Optional
from dataclasses import dataclass, field

from core import config
from core.commands import CommandBuilder, Verb
from core.dispatch import CommandDispatcher
from core.logger import log_info, log_move, log_ok, log_pos, log_ref, log_warn
from core.serial_transport import SerialConfig, SerialTransport
from core.transport import MockTransport, Transport
from core.types import Axis, MotionStatus, Position, WaitResult


MOCK_PORT = "mock"


def _default_scale_factors() -> Dict[int, float]:
    return {1: config.SCALE_FACTOR, 2: config.SCALE_FACTOR}


@dataclass
class StageSettings:
    """Stage configuration and protocol timing"""
    number_of_axes: int = config.NUMBER_OF_AXES
    scale_factors: Dict[int, float] = field(default_factory=_default_scale_factors)  # mm/step per axis
    backlash: int = config.BACKLASH
    max_speed: int = config.MAX_SPEED
    dispatch_delay: float = config.DELAY_DISPATCH
    reset_delay: float = config.DELAY_RESET
    # Wait for standstill
    max_iterations: int = config.MAX_ITERATION
    wait_timeout: Optional[float] = None  # s, None = bounded by max_iterations only
    poll_interval: float = 0.0
    history_size: int = config.HISTORY_SIZE

    @classmethod
    def immediate(cls, **overrides) -> "StageSettings":
        """Settings without settle delays, for the simulator and tests"""
        overrides.setdefault("dispatch_delay", 0.0)
        overrides.setdefault("reset_delay", 0.0)
        return cls(**overrides)


def clamp_speed(speed: int, max_speed: int = config.MAX_SPEED) -> int:
    """Clamp a speed into [MIN_SPEED, max_speed]"""
    return max(config.MIN_SPEED, min(max_speed, int(speed)))


def mm_to_steps(mm: float, scale_factor: float) -> int:
    """
    Convert mm to steps, truncating toward zero.

    Computed in decimal so that e.g. 1.0 mm at 0.00008 mm/step is exactly
    12500 steps and not 12499 from binary rounding.
    """
    return int(Decimal(repr(mm)) / Decimal(repr(scale_factor)))


class Sms60:
    """Driver for the OWIS SMS60 stepper motor controller

    Owns the transport for its whole lifetime. Construction resets the
    controller and switches it to terminal mode. Use as a context manager
    (or call close()) to release the port.

    Nothing is cached: counters and speeds are re-queried on every read.
    """

    def __init__(self, transport: Transport, settings: Optional[StageSettings] = None,
                 port: str = "", initialize: bool = True):
        self.transport = transport
        self.settings = settings or StageSettings()
        self.commands = CommandDispatcher(
            transport,
            number_of_axes=self.settings.number_of_axes,
            dispatch_delay=self.settings.dispatch_delay,
            history_size=self.settings.history_size,
        )
        self.builder = CommandBuilder()
        self._port = port.strip()
        self._firmware_version: Optional[str] = None
        if initialize:
            self.initialize()

    @classmethod
    def connect(cls, port: str, settings: Optional[StageSettings] = None,
                serial_config: Optional[SerialConfig] = None) -> "Sms60":
        """
        Open the port and initialize the controller.

        Port "mock" selects the in-memory simulator.
        Raises ConnectionError if the port cannot be opened.
        """
        if port.strip().lower() == MOCK_PORT:
            settings = settings or StageSettings.immediate()
            transport = MockTransport(number_of_axes=settings.number_of_axes)
        else:
            transport = SerialTransport(serial_config)
            transport.connect(port)
        return cls(transport, settings, port=port)

    def close(self) -> None:
        """Release the transport"""
        self.transport.disconnect()
        log_info(f"Closed {self._port or 'transport'}")

    def __enter__(self) -> "Sms60":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # === Properties ===

    @property
    def device_port(self) -> str:
        return self._port

    @property
    def manufacturer(self) -> str:
        return config.MANUFACTURER

    @property
    def instrument_type(self) -> str:
        return config.INSTRUMENT_TYPE

    @property
    def firmware_version(self) -> str:
        """Firmware version, queried on first access"""
        if self._firmware_version is None:
            reply = self.send_and_read(Verb.VERSION)
            version = reply[1:].strip()  # drop the one-character prefix
            if len(version) <= 1:
                self.commands.last_error = f"No firmware version from {self._port or 'controller'}"
                log_warn(self.commands.last_error, {"reply": reply})
                return ""
            self._firmware_version = version
        return self._firmware_version

    @property
    def number_of_axes(self) -> int:
        return self.settings.number_of_axes

    @property
    def x_scale_factor(self) -> float:
        return self.settings.scale_factors[Axis.X.number]

    @property
    def y_scale_factor(self) -> float:
        return self.settings.scale_factors[Axis.Y.number]

    @property
    def last_error(self) -> Optional[str]:
        """Most recent degraded operation (suppressed command, parse failure, wait timeout)"""
        return self.commands.last_error

    @property
    def physical_axes(self) -> list[Axis]:
        return [Axis.physical(i) for i in range(1, self.number_of_axes + 1)]

    # === Protocol ===

    def initialize(self) -> None:
        """Reset the controller and enable terminal mode"""
        verb, _ = self.builder.reset()
        self.commands.dispatch(verb, Axis.NONE.index)
        time.sleep(self.settings.reset_delay)
        verb, param = self.builder.terminal_mode()
        self.commands.dispatch(verb, Axis.NONE.index, param)
        log_ok(f"{self.instrument_type} initialized", {"port": self._port})

    def send_and_read(self, command: str, axis: Axis = Axis.NONE, parameter: str = "") -> str:
        """Send a raw command and return the raw reply"""
        return self.commands.send_and_read(command, axis, parameter)

    # === Status ===

    def get_status(self) -> MotionStatus:
        return MotionStatus(self.send_and_read(Verb.STATUS))

    def is_moving(self) -> bool:
        """True if any axis is moving or referencing"""
        return self.get_status().is_moving

    def return_on_halt(self, timeout: Optional[float] = None,
                       poll_interval: Optional[float] = None,
                       max_iterations: Optional[int] = None) -> WaitResult:
        """
        Poll the status until every axis is at standstill.

        Gives up after max_iterations status queries or after timeout
        seconds, whichever comes first, and reports TIMED_OUT.
        """
        timeout = self.settings.wait_timeout if timeout is None else timeout
        poll_interval = self.settings.poll_interval if poll_interval is None else poll_interval
        max_iterations = self.settings.max_iterations if max_iterations is None else max_iterations

        deadline = None if timeout is None else time.monotonic() + timeout
        for _ in range(max_iterations):
            if not self.is_moving():
                return WaitResult.HALTED
            if deadline is not None and time.monotonic() >= deadline:
                break
            if poll_interval > 0:
                time.sleep(poll_interval)

        self.commands.last_error = "Gave up waiting for standstill"
        log_warn(self.commands.last_error, {"max_iterations": max_iterations, "timeout": timeout})
        return WaitResult.TIMED_OUT

    # === Movement ===

    def _move_raw(self, axis: Axis, steps: int, absolute: bool) -> None:
        for verb, param in self.builder.move(steps, absolute):
            self.commands.dispatch(verb, axis.index, param)

    def move_relative(self, axis: Axis, steps: int) -> None:
        """Relative move, negative moves end with a positive BACKLASH approach"""
        backlash = self.settings.backlash
        log_move(f"{axis} relative {steps} steps")
        if steps < 0:
            self._move_raw(axis, steps - backlash, absolute=False)
            self.return_on_halt()
            self._move_raw(axis, backlash, absolute=False)
            return
        self._move_raw(axis, steps, absolute=False)

    def move_relative_wait(self, axis: Axis, steps: int) -> WaitResult:
        self.move_relative(axis, steps)
        return self.return_on_halt()

    def move_absolute(self, axis: Axis, steps: int) -> None:
        """Absolute move, approached from below when moving backwards"""
        log_move(f"{axis} absolute {steps} steps")
        if self.get_counter(axis) > steps:
            self._move_raw(axis, steps - self.settings.backlash, absolute=True)
            self.return_on_halt()
        self._move_raw(axis, steps, absolute=True)

    def move_absolute_wait(self, axis: Axis, steps: int) -> WaitResult:
        self.move_absolute(axis, steps)
        return self.return_on_halt()

    def move_absolute_xy(self, x_steps: int, y_steps: int) -> None:
        """Start both axes, X first, without waiting in between"""
        self.move_absolute(Axis.X, x_steps)
        self.move_absolute(Axis.Y, y_steps)

    def move_absolute_xy_wait(self, x_steps: int, y_steps: int) -> WaitResult:
        self.move_absolute_xy(x_steps, y_steps)
        return self.return_on_halt()

    def go_to(self, x: float, y: float) -> WaitResult:
        """
        Move to (x, y) in mm and wait.

        Non-finite coordinates are not sent; the result is REJECTED and
        last_error says why.
        """
        if not (math.isfinite(x) and math.isfinite(y)):
            self.commands.last_error = f"Rejected go to non-finite position ({x}, {y})"
            log_warn(self.commands.last_error)
            return WaitResult.REJECTED
        x_steps = mm_to_steps(x, self.x_scale_factor)
        y_steps = mm_to_steps(y, self.y_scale_factor)
        log_move(f"Go to {x:.3f} mm / {y:.3f} mm", {"x_steps": x_steps, "y_steps": y_steps})
        return self.move_absolute_xy_wait(x_steps, y_steps)

    def move_to_reference(self, axis: Optional[Axis] = None) -> WaitResult:
        """
        Reference run, resets the firmware counter to 0.

        Without an axis every physical axis is referenced in turn.
        """
        if axis is None:
            results = [self.move_to_reference(a) for a in self.physical_axes]
            if all(r.completed for r in results):
                return WaitResult.HALTED
            return WaitResult.TIMED_OUT

        log_ref(f"Referencing {axis}")
        verb, param = self.builder.reference()
        self.send_and_read(verb, axis, param)
        return self.return_on_halt()

    # === Speed & Position ===

    def set_speed(self, axis: Axis, speed: int) -> int:
        """Set axis speed, clamped into [1, max_speed]. Returns the value sent."""
        speed = clamp_speed(speed, self.settings.max_speed)
        verb, param = self.builder.set_speed(speed)
        self.send_and_read(verb, axis, param)
        return speed

    def get_speed(self, axis: Axis) -> int:
        return self.commands.get_integer_parameter(Verb.SPEED, axis)

    def get_counter(self, axis: Axis) -> int:
        return self.commands.get_integer_parameter(Verb.COUNTER, axis)

    def get_position(self, axis: Axis) -> float:
        """Axis position in mm, NaN for axes without a scale factor"""
        if not axis.is_physical or axis.number not in self.settings.scale_factors:
            return math.nan
        counter = self.get_counter(axis)
        position = counter * self.settings.scale_factors[axis.number]
        log_pos(f"{axis}: {counter} steps => {position:.5f} mm")
        return position

    def get_xy_position(self) -> Position:
        return Position(self.get_position(Axis.X), self.get_position(Axis.Y))

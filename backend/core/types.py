"""
Core immutable types for the SMS60 stage controller.

All types are frozen dataclasses to prevent accidental mutation.
The axis selector is a small tagged union: NONE addresses the controller
itself, ALL names every axis at once, and physical(n) names one motor.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Literal

from . import config


# =============================================================================
# Axis Selector
# =============================================================================


AxisKind = Literal["none", "all", "physical"]


@dataclass(frozen=True)
class Axis:
    """
    Axis selector used for addressing commands.

    Wire indices:
    - NONE: 0 (controller-global commands like RST, ?ST, ?VD)
    - ALL: -1, never put on the wire (the dispatcher suppresses it)
    - physical(n): n, starting at 1 (X = 1, Y = 2)
    """
    kind: AxisKind
    number: int = 0

    NONE: ClassVar[Axis]
    ALL: ClassVar[Axis]
    X: ClassVar[Axis]
    Y: ClassVar[Axis]

    def __post_init__(self):
        if self.kind == "physical" and self.number < 1:
            raise ValueError(f"Physical axis number must be >= 1, got {self.number}")
        if self.kind != "physical" and self.number != 0:
            raise ValueError(f"Axis '{self.kind}' does not take a number")

    @classmethod
    def physical(cls, number: int) -> Axis:
        """Select a physical axis by its 1-based number."""
        return cls("physical", number)

    @classmethod
    def parse(cls, text: str) -> Axis:
        """
        Parse an axis name.

        Accepts 'x', 'y', 'none', 'all' (any case) or a positive integer.
        """
        name = text.strip().lower()
        named = {"none": cls.NONE, "all": cls.ALL, "x": cls.X, "y": cls.Y}
        if name in named:
            return named[name]
        try:
            return cls.physical(int(name))
        except ValueError:
            raise ValueError(f"Invalid axis: {text!r}") from None

    @property
    def index(self) -> int:
        """Integer put verbatim into the command line."""
        if self.kind == "none":
            return 0
        if self.kind == "all":
            return -1
        return self.number

    @property
    def is_physical(self) -> bool:
        return self.kind == "physical"

    @property
    def name(self) -> str:
        if self.kind != "physical":
            return self.kind.upper()
        return {1: "X", 2: "Y"}.get(self.number, str(self.number))

    def __str__(self) -> str:
        return self.name


Axis.NONE = Axis("none")
Axis.ALL = Axis("all")
Axis.X = Axis.physical(1)
Axis.Y = Axis.physical(2)


# =============================================================================
# Status Types
# =============================================================================


@dataclass(frozen=True)
class MotionStatus:
    """
    Parsed reply of the ?ST status query.

    The controller is at standstill only when the reply reports neither
    active motion nor an active reference run. An empty reply (timeout)
    therefore counts as moving.
    """
    reply: str

    @property
    def is_halted(self) -> bool:
        return (config.STATUS_NO_MOTION in self.reply
                and config.STATUS_NO_REFERENCING in self.reply)

    @property
    def is_moving(self) -> bool:
        return not self.is_halted


class WaitResult(Enum):
    """Outcome of waiting for motion to stop."""
    HALTED = "halted"
    TIMED_OUT = "timed_out"
    REJECTED = "rejected"

    @property
    def completed(self) -> bool:
        return self is WaitResult.HALTED


@dataclass(frozen=True)
class Position:
    """Stage position of both axes in mm."""
    x: float
    y: float

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {"x": self.x, "y": self.y}

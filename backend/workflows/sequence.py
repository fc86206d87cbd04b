"""
Target Sequence Workflow.

Visits a list of target points with the stage:
1. Reference all axes
2. For each target: go to it, read back the position, hold
3. Reference all axes again

Reported positions are relative to the first reached position.
"""

from __future__ import annotations

import csv
import time
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Callable, List, Optional, Union, TYPE_CHECKING

from core.logger import log_info, log_ok, log_warn
from core.targets import Point, PointCloud
from core.types import Position, WaitResult

if TYPE_CHECKING:
    from hardware.stage import Sms60


class SequenceState(Enum):
    """States of a target sequence run."""
    IDLE = auto()
    REFERENCING = auto()
    MOVING = auto()
    HOLDING = auto()
    RETURNING = auto()
    COMPLETE = auto()


@dataclass(frozen=True)
class SequenceResult:
    """Measured position at one target."""
    index: int
    target: Point
    position: Position   # Relative to the first reached position
    wait: WaitResult

    def to_csv_row(self) -> list:
        return [self.index, f"{self.position.x:.5f}", f"{self.position.y:.5f}"]


class TargetSequence:
    """
    Runs a point cloud on the stage.

    Usage:
        seq = TargetSequence(stage, targets, hold_time=1.0)
        results = seq.run()  # Blocking, runs to completion
    """

    def __init__(
        self,
        stage: "Sms60",
        targets: PointCloud,
        hold_time: float = 1.0,
        reference_at_end: bool = True,
    ):
        self._stage = stage
        self._targets = targets
        self.hold_time = hold_time
        self.reference_at_end = reference_at_end
        self._state = SequenceState.IDLE
        self._results: List[SequenceResult] = []

        # Callbacks
        self.on_state_change: Optional[Callable[[SequenceState, SequenceState], None]] = None
        self.on_result: Optional[Callable[[SequenceResult], None]] = None
        self.on_hold: Optional[Callable[[SequenceResult], None]] = None

    @property
    def state(self) -> SequenceState:
        return self._state

    @property
    def results(self) -> List[SequenceResult]:
        return list(self._results)

    def _set_state(self, new_state: SequenceState) -> None:
        old_state = self._state
        self._state = new_state
        if self.on_state_change:
            self.on_state_change(old_state, new_state)

    def run(self) -> List[SequenceResult]:
        """Run every target once. Raises ValueError if not idle."""
        if self._state not in (SequenceState.IDLE, SequenceState.COMPLETE):
            raise ValueError("Cannot start: sequence is running")
        self._results = []
        log_info(f"Number of targets: {self._targets.number_of_points}")

        self._set_state(SequenceState.REFERENCING)
        self._stage.move_to_reference()

        origin: Optional[Position] = None
        for index, target in enumerate(self._targets):
            self._set_state(SequenceState.MOVING)
            wait = self._stage.go_to(target.x, target.y)
            if not wait.completed:
                log_warn(f"Target {index} not confirmed at standstill")
            position = self._stage.get_xy_position()
            if origin is None:
                origin = position
            result = SequenceResult(
                index=index,
                target=target,
                position=Position(position.x - origin.x, position.y - origin.y),
                wait=wait,
            )
            self._results.append(result)
            if self.on_result:
                self.on_result(result)

            self._set_state(SequenceState.HOLDING)
            self._hold(result)

        if self.reference_at_end:
            self._set_state(SequenceState.RETURNING)
            self._stage.move_to_reference()

        self._set_state(SequenceState.COMPLETE)
        log_ok(f"Sequence complete, {len(self._results)} targets")
        return self.results

    def _hold(self, result: SequenceResult) -> None:
        if self.on_hold:
            self.on_hold(result)
        if self.hold_time > 0:
            time.sleep(self.hold_time)


def write_results_csv(results: List[SequenceResult], file_path: Union[str, Path]) -> None:
    """Write index,x,y rows (mm, relative to the first target)"""
    with open(file_path, "w", newline="") as f:
        writer = csv.writer(f)
        for result in results:
            writer.writerow(result.to_csv_row())

"""
Targets - Single responsibility: load target points from text files

A target file holds one point per line, two numbers in mm separated by
comma, semicolon, space or tab. Lines that do not hold exactly two
numbers are skipped.
"""

import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union


_SEPARATORS = re.compile(r"[,; \t]")


@dataclass(frozen=True)
class Point:
    """Target point in mm"""
    x: float
    y: float


class PointCloud:
    """Ordered list of target points"""

    def __init__(self, points: Optional[Iterable[Point]] = None):
        self._cloud: List[Point] = list(points or [])

    def add(self, x: float, y: float) -> None:
        self._cloud.append(Point(x, y))

    def add_point(self, point: Point) -> None:
        self._cloud.append(point)

    @property
    def points(self) -> List[Point]:
        """Copy of the points"""
        return list(self._cloud)

    @property
    def number_of_points(self) -> int:
        return len(self._cloud)

    def __len__(self) -> int:
        return len(self._cloud)

    def __iter__(self):
        return iter(list(self._cloud))


def _parse_float(token: str) -> Optional[float]:
    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_target_line(line: str) -> Optional[Point]:
    """Parse one line, None if it is not a point"""
    tokens = _SEPARATORS.split(line.rstrip("\r\n"))
    if len(tokens) != 2:
        return None
    x, y = _parse_float(tokens[0]), _parse_float(tokens[1])
    if x is None or y is None:
        return None
    return Point(x, y)


def load_targets_from_csv(file_path: Union[str, Path]) -> PointCloud:
    """Load target points from file"""
    targets = PointCloud()
    with open(file_path, "r") as f:
        for line in f:
            point = parse_target_line(line)
            if point is not None:
                targets.add_point(point)
    return targets

"""
Transport layer - handles communication with the SMS60.

Provides:
- Transport protocol (interface)
- MockTransport for testing and demo runs without hardware
- (SerialTransport in separate file for production)
"""

from __future__ import annotations

import re
from typing import Dict, List, Protocol

from . import config


class Transport(Protocol):
    """Protocol for SMS60 communication."""

    def write_line(self, text: str) -> None:
        """Send one command line; the transport appends the CR terminator."""
        ...

    def read_response(self) -> str:
        """
        Read one reply buffer.

        Returns an empty string on timeout or I/O error.
        """
        ...

    def disconnect(self) -> None:
        """Release the channel."""
        ...

    @property
    def is_connected(self) -> bool:
        """Check if transport is connected."""
        ...


_LINE = re.compile(r"^(\??[A-Z]+)(-?\d+)(?:=(.*))?$")


class MockTransport:
    """
    Mock transport for testing without hardware.

    Simulates the SMS60 firmware in terminal mode: tracks the counter,
    speed and pending move of every axis and answers queries the way the
    controller does. A GO or REF keeps the axis "moving" for
    `moving_polls` status queries before reporting standstill.
    """

    def __init__(self, number_of_axes: int = config.NUMBER_OF_AXES,
                 firmware: str = "1.40", moving_polls: int = 0):
        self.sent_commands: List[str] = []
        self.firmware = firmware
        self.moving_polls = moving_polls
        self.stuck = False  # Never report standstill
        self.counters: Dict[int, int] = {i: 0 for i in range(1, number_of_axes + 1)}
        self.speeds: Dict[int, int] = {i: 2000 for i in self.counters}
        self._modes: Dict[int, str] = {i: "1" for i in self.counters}
        self._targets: Dict[int, int] = {i: 0 for i in self.counters}
        self._busy_polls = 0
        self._referencing = False
        self._pending = ""
        self._scripted: List[str] = []
        self._connected = True
        self.terminal_mode = False
        self.resets = 0

    @property
    def command_count(self) -> int:
        """Number of lines written."""
        return len(self.sent_commands)

    def commands_for(self, verb: str) -> List[str]:
        """Sent lines that start with the given verb."""
        matches = [(c, _LINE.match(c)) for c in self.sent_commands]
        return [c for c, m in matches if m and m.group(1) == verb]

    def queue_reply(self, *replies: str) -> None:
        """Script the next replies, consumed before any simulated reply."""
        self._scripted.extend(replies)

    def write_line(self, text: str) -> None:
        """Record the line and compute the simulated reply."""
        if not self._connected:
            raise ConnectionError("Not connected")
        self.sent_commands.append(text)
        self._pending = self._simulate(text)

    def read_response(self) -> str:
        if self._scripted:
            self._pending = ""
            return self._scripted.pop(0)
        reply, self._pending = self._pending, ""
        return reply

    def _simulate(self, line: str) -> str:
        match = _LINE.match(line)
        if not match:
            return ""
        verb, axis, param = match.group(1), int(match.group(2)), match.group(3)

        if verb == "RST":
            self.resets += 1
            self.terminal_mode = False
            return ""
        if verb == "TERM":
            self.terminal_mode = param == "1"
            return ""
        if verb == "?VD":
            return f"V{self.firmware}"
        if verb == "?ST":
            return self._status()

        if axis not in self.counters:
            return ""

        if verb == "MOD":
            self._modes[axis] = param or "0"
        elif verb == "SET":
            self._targets[axis] = int(param)
        elif verb == "GO":
            if self._modes[axis] == "1":
                self.counters[axis] = self._targets[axis]
            else:
                self.counters[axis] += self._targets[axis]
            self._busy_polls = self.moving_polls
        elif verb == "REF":
            self.counters[axis] = 0
            self._referencing = True
            self._busy_polls = self.moving_polls
        elif verb == "?CNT":
            return str(self.counters[axis])
        elif verb == "VEL":
            self.speeds[axis] = int(param)
        elif verb == "?VEL":
            return str(self.speeds[axis])
        return ""

    def _status(self) -> str:
        if self.stuck:
            return "MOTION=1 REF=0"
        if self._busy_polls > 0:
            self._busy_polls -= 1
            return f"MOTION=1 REF={1 if self._referencing else 0}"
        self._referencing = False
        return "MOTION=0 REF=0"

    @property
    def is_connected(self) -> bool:
        return self._connected

    def disconnect(self) -> None:
        self._connected = False

    def clear_history(self) -> None:
        """Clear sent commands history."""
        self.sent_commands.clear()

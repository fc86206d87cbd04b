"""
Command dispatch layer.

Provides:
- CommandDispatcher: sends one protocol line, reads the reply, parses
  integer replies with a single retry
- CommandRecord: auditable history entry with timestamp

Nothing here raises on a bad reply. Degraded operation is reported
through the log, `last_error` and the history instead.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from . import config
from .commands import format_command, parse_integer
from .logger import log_warn
from .types import Axis

if TYPE_CHECKING:
    from .transport import Transport


@dataclass
class CommandRecord:
    """
    One dispatched line.

    `response` stays None for lines that were sent without reading a reply.
    """
    line: str
    timestamp: datetime
    response: Optional[str] = None
    success: bool = True

    def __str__(self) -> str:
        status = "✓" if self.success else "✗"
        reply = "-" if self.response is None else repr(self.response)
        return f"[{self.timestamp:%H:%M:%S}] {status} {self.line} → {reply}"

    def to_dict(self) -> dict:
        return {
            "line": self.line,
            "response": self.response,
            "success": self.success,
            "timestamp": self.timestamp.isoformat(),
        }


class CommandDispatcher:
    """
    Builds, sends and reads SMS60 commands.

    Every sent line is followed by a fixed settle delay because the
    firmware gives no acknowledgement.
    """

    def __init__(
        self,
        transport: "Transport",
        number_of_axes: int = config.NUMBER_OF_AXES,
        dispatch_delay: float = config.DELAY_DISPATCH,
        history_size: int = config.HISTORY_SIZE,
    ):
        self._transport = transport
        self.number_of_axes = number_of_axes
        self.dispatch_delay = dispatch_delay
        self._history_size = history_size
        self._history: List[CommandRecord] = []
        self._last_sent: Optional[CommandRecord] = None
        self.last_error: Optional[str] = None

    @property
    def transport(self) -> "Transport":
        return self._transport

    def dispatch(self, verb: str, axis_index: int, parameter: str = "") -> bool:
        """
        Send one command line.

        Lines addressed outside [0, number_of_axes] are suppressed: nothing
        is written. Returns whether the line was sent.
        """
        if axis_index < 0 or axis_index > self.number_of_axes:
            self.last_error = f"Suppressed {verb} for axis index {axis_index}"
            log_warn(self.last_error)
            return False

        line = format_command(verb, axis_index, parameter)
        self._last_sent = CommandRecord(line=line, timestamp=datetime.now())
        self._record(self._last_sent)
        self._transport.write_line(line)
        if self.dispatch_delay > 0:
            time.sleep(self.dispatch_delay)
        return True

    def send_and_read(self, command: str, axis: Axis = Axis.NONE, parameter: str = "") -> str:
        """
        Send a command and return the raw reply.

        Suppressed commands return an empty string without reading.
        """
        if not self.dispatch(command, axis.index, parameter):
            return ""
        response = self._transport.read_response()
        self._last_sent.response = response
        self._last_sent.success = response != ""
        return response

    def get_integer_parameter(self, command: str, axis: Axis) -> int:
        """
        Query an integer value.

        An unparsable reply is retried once with the identical query;
        a second failure yields 0.
        """
        reply = self.send_and_read(command, axis)
        value = parse_integer(reply)
        if value is None:  # repeat once
            reply = self.send_and_read(command, axis)
            value = parse_integer(reply)
            if value is None:
                self.last_error = f"Parse error for {command} on axis {axis}: {reply!r}"
                log_warn(self.last_error)
                return 0
        return value

    def _record(self, record: CommandRecord) -> None:
        self._history.append(record)
        if len(self._history) > self._history_size:
            del self._history[: len(self._history) - self._history_size]

    def get_history(self, limit: int | None = None) -> List[CommandRecord]:
        """
        Get dispatch history.

        Args:
            limit: Optional max number of recent entries to return.
        """
        if limit is None:
            return list(self._history)
        if limit <= 0:
            return []
        return list(self._history[-limit:])

    def get_last_result(self) -> CommandRecord | None:
        """Get most recent record."""
        return self._history[-1] if self._history else None

    def clear_history(self) -> None:
        """Clear history and the last error."""
        self._history.clear()
        self.last_error = None

"""
Structured logging for the SMS60 stage controller.

Prefixes:
  ⚡ CRITICAL - Errors, failures
  ⚠️  WARN     - Degraded operation (empty replies, parse retries, timeouts)
  ✓  OK       - Success confirmations
  →  MOVE     - Movement commands
  ⌂  REF      - Reference (homing) moves
  ⬡  SERIAL   - Raw serial I/O
  📍 POS      - Counter and position readings
"""

from enum import Enum
from typing import Optional
from datetime import datetime


class LogLevel(Enum):
    CRITICAL = "⚡ CRITICAL"
    WARN = "⚠️  WARN    "
    OK = "✓  OK      "
    MOVE = "→  MOVE    "
    REF = "⌂  REF     "
    SERIAL = "⬡  SERIAL  "
    POS = "📍 POS     "
    INFO = "ℹ  INFO    "


def log(level: LogLevel, message: str, data: Optional[dict] = None):
    """Log a message with structured prefix."""
    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    prefix = level.value

    line = f"[{timestamp}] {prefix} | {message}"
    if data:
        line += f" | {data}"

    print(line)


# Convenience functions
def log_critical(msg: str, data: Optional[dict] = None):
    log(LogLevel.CRITICAL, msg, data)

def log_warn(msg: str, data: Optional[dict] = None):
    log(LogLevel.WARN, msg, data)

def log_ok(msg: str, data: Optional[dict] = None):
    log(LogLevel.OK, msg, data)

def log_move(msg: str, data: Optional[dict] = None):
    log(LogLevel.MOVE, msg, data)

def log_ref(msg: str, data: Optional[dict] = None):
    log(LogLevel.REF, msg, data)

def log_serial(direction: str, data: str):
    """Log serial I/O. direction is '>>>' (send) or '<<<' (recv)"""
    log(LogLevel.SERIAL, f"{direction} {data!r}")

def log_pos(msg: str, data: Optional[dict] = None):
    log(LogLevel.POS, msg, data)

def log_info(msg: str, data: Optional[dict] = None):
    log(LogLevel.INFO, msg, data)

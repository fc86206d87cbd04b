"""
Command Builder - Single responsibility: building SMS60 command lines

Line format: {verb}{axis_index}[={parameter}]
The carriage return terminator is appended by the transport.
"""

from typing import Optional


def format_command(verb: str, axis_index: int, parameter: str = "") -> str:
    """Build one protocol line (without terminator)"""
    line = f"{verb}{axis_index}"
    if parameter != "":
        line += f"={parameter}"
    return line


def parse_integer(reply: str) -> Optional[int]:
    """Parse an integer reply, None if the reply is not a number"""
    try:
        return int(reply.strip())
    except ValueError:
        return None


class Verb:
    """Protocol verbs"""
    RESET = "RST"
    TERMINAL = "TERM"
    VERSION = "?VD"
    REFERENCE = "REF"
    STATUS = "?ST"
    MODE = "MOD"
    SET_TARGET = "SET"
    GO = "GO"
    COUNTER = "?CNT"
    SET_SPEED = "VEL"
    SPEED = "?VEL"


class PositioningMode:
    """Parameter values of the MOD verb"""
    RELATIVE = "0"
    ABSOLUTE = "1"


REFERENCE_MODE = "2"
TERMINAL_MODE_ON = "1"


class CommandBuilder:
    """Builds (verb, parameter) pairs for the motion layer"""

    @staticmethod
    def reset() -> tuple:
        """Full controller reset"""
        return Verb.RESET, ""

    @staticmethod
    def terminal_mode() -> tuple:
        """Switch replies to plain text lines"""
        return Verb.TERMINAL, TERMINAL_MODE_ON

    @staticmethod
    def reference() -> tuple:
        """Move to the reference switch and zero the counter"""
        return Verb.REFERENCE, REFERENCE_MODE

    @staticmethod
    def mode(absolute: bool) -> tuple:
        """Select absolute or relative positioning"""
        return Verb.MODE, PositioningMode.ABSOLUTE if absolute else PositioningMode.RELATIVE

    @staticmethod
    def set_target(steps: int) -> tuple:
        """Target of the pending move"""
        return Verb.SET_TARGET, str(int(steps))

    @staticmethod
    def go() -> tuple:
        """Execute the pending move"""
        return Verb.GO, ""

    @staticmethod
    def set_speed(speed: int) -> tuple:
        return Verb.SET_SPEED, str(int(speed))

    @classmethod
    def move(cls, steps: int, absolute: bool) -> list:
        """MOD / SET / GO triple of a single axis move"""
        return [cls.mode(absolute), cls.set_target(steps), cls.go()]

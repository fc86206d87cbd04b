"""
Serial Transport - Single responsibility: serial communication

RS232 link to the SMS60: 9600 baud, 8N1, no handshake.
The controller sends no acknowledgement framing, so a read simply returns
whatever arrived before the timeout.
"""

import serial
import serial.tools.list_ports
from typing import Optional
from dataclasses import dataclass
from . import config
from .logger import log_serial, log_warn, log_ok


@dataclass
class SerialConfig:
    baud_rate: int = config.SERIAL_BAUDRATE
    bytesize: int = serial.EIGHTBITS
    parity: str = serial.PARITY_NONE
    stopbits: float = serial.STOPBITS_ONE
    timeout: float = config.SERIAL_TIMEOUT_S
    write_timeout: float = config.SERIAL_WRITE_TIMEOUT_S


class SerialTransport:
    """
    Handles raw serial communication with the controller.

    Usable as a context manager; the port is released on exit.
    """

    def __init__(self, config: Optional[SerialConfig] = None):
        self.config = config or SerialConfig()
        self._serial: Optional[serial.Serial] = None
        self._connected = False
        self.port: Optional[str] = None

    @staticmethod
    def list_ports() -> list[str]:
        """List available serial ports"""
        ports = serial.tools.list_ports.comports()
        return [port.device for port in ports]

    def connect(self, port: str) -> bool:
        """Open the serial port, raises ConnectionError on failure"""
        if self._connected and self._serial and self._serial.is_open:
            return True
        self.port = port.strip()
        try:
            self._serial = serial.Serial(
                self.port,
                self.config.baud_rate,
                bytesize=self.config.bytesize,
                parity=self.config.parity,
                stopbits=self.config.stopbits,
                timeout=self.config.timeout,
                write_timeout=self.config.write_timeout,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
            )
        except (serial.SerialException, ValueError) as e:
            self._serial = None
            self._connected = False
            raise ConnectionError(f"Failed to open {self.port}: {e}") from e
        self._connected = True
        log_ok(f"Opened {self.port}", {"baud": self.config.baud_rate})
        return True

    def disconnect(self) -> None:
        """Disconnect from serial port"""
        if self._serial:
            self._serial.close()
            self._serial = None
        self._connected = False

    def __enter__(self) -> "SerialTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    def write_line(self, text: str) -> None:
        """Write one command line terminated by CR"""
        if not self._serial or not self._connected:
            raise ConnectionError("Not connected")
        log_serial(">>>", text)
        try:
            self._serial.write(f"{text}\r".encode("ascii"))
        except serial.SerialException as e:
            # The reply read that follows comes back empty
            log_warn(f"Serial write failed: {e}")

    def read_response(self) -> str:
        """
        Read one reply buffer.

        Blocks for the first byte (up to the read timeout), then takes
        whatever else is already waiting. Timeouts and I/O errors are
        reported as an empty reply.
        """
        if not self._serial or not self._connected:
            return ""
        try:
            data = self._serial.read(1)
            if data:
                data += self._serial.read(self._serial.in_waiting)
        except (serial.SerialException, OSError) as e:
            log_warn(f"Serial read failed: {e}")
            return ""
        if not data:
            log_warn("Read timeout, empty reply")
            return ""
        response = data.decode("ascii", errors="replace")
        log_serial("<<<", response)
        return response

    @property
    def is_connected(self) -> bool:
        return self._connected

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import serial  # pip install pyserial

from models.errors import LineSourceError

logger = logging.getLogger(__name__)

MAX_PENDING_BYTES = 4096


class SerialLineSource:
    """
    Line source backed by a serial device (e.g. an Arduino on /dev/ttyACM0).

    The device is opened read-only in 8N1 mode. Opening the port resets most
    boards, so we wait ``settle_s`` before the first read. ``readline`` is
    bounded by ``timeout`` so cancellation is observed between chunks; a line
    split across timeouts is reassembled before it is returned. Unterminated
    input longer than ``MAX_PENDING_BYTES`` is discarded.
    """

    def __init__(
        self,
        port: str,
        baudrate: int = 9600,
        timeout: float = 1.0,
        settle_s: float = 2.0,
    ) -> None:
        self.port = port
        self.baudrate = baudrate
        self._pending = b""
        try:
            self.ser = serial.Serial(
                port=port,
                baudrate=baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=timeout,
            )
        except (serial.SerialException, OSError) as e:
            raise LineSourceError(f"Could not open serial port {port}: {e}") from e
        logger.info(f"Serial port opened at {baudrate} baud", extra={"port": port})

        try:
            if settle_s > 0:
                time.sleep(settle_s)
            self.ser.reset_input_buffer()
        except (serial.SerialException, OSError) as e:
            self.ser.close()
            raise LineSourceError(f"Could not prepare serial port {port}: {e}") from e
        except BaseException:
            self.ser.close()
            raise

    def read_line(self, cancelled: threading.Event) -> Optional[str]:
        while not cancelled.is_set():
            try:
                chunk = self.ser.readline()
            except (serial.SerialException, OSError) as e:
                raise LineSourceError(f"Serial read failed on {self.port}: {e}") from e
            if not chunk:
                continue
            self._pending += chunk
            if self._pending.endswith(b"\n"):
                line, self._pending = self._pending, b""
                return line.decode("ascii", errors="replace").rstrip("\r\n")
            if len(self._pending) > MAX_PENDING_BYTES:
                logger.warning(
                    f"Discarding {len(self._pending)} bytes without a line terminator",
                    extra={"port": self.port},
                )
                self._pending = b""
        return None

    def close(self) -> None:
        if self.ser.is_open:
            self.ser.close()
            logger.info("Serial port closed", extra={"port": self.port})

    def __enter__(self) -> "SerialLineSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

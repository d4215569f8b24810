"""
Frame decoder for raw glove telemetry lines.
Turns one serial line into a SensorReading or a rejection without ever raising.
"""

import logging
import math
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from bridge.bridge_config import (
    DEBUG_PREFIX,
    FLEX_CHANNELS,
    TOUCH_CHANNELS,
    FRAME_FIELD_COUNT
)
from bridge.sensor_reading import SensorReading

logger = logging.getLogger(__name__)
device_logger = logging.getLogger('bridge.device')

# Plain decimal or exponent notation, as the firmware prints it
DECIMAL_PATTERN = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*", re.ASCII)


class RejectionReason(Enum):
    """Why a raw line was not turned into a reading"""
    MALFORMED_FRAME = "MalformedFrame"
    NON_NUMERIC_FRAME = "NonNumericFrame"


@dataclass(frozen=True)
class FrameRejection:
    reason: RejectionReason
    raw_line: str
    detail: str = ''


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class FrameDecoder:
    """
    Parses comma-separated telemetry lines into SensorReadings.

    Debug lines are forwarded to the device logger, every rejection is logged
    with the offending line, and counters are kept for status reporting.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None, debug_prefix: str = DEBUG_PREFIX):
        """
        Initialize the frame decoder.

        Args:
            clock: Function returning the current time in epoch milliseconds
            debug_prefix: Marker identifying device log lines
        """
        self.clock = clock or _epoch_ms
        self.debug_prefix = debug_prefix

        self.frames_decoded = 0
        self.frames_rejected = 0
        self.debug_lines = 0

    def decode(self, raw_line: str) -> Union[SensorReading, FrameRejection, None]:
        """
        Decode one raw line.

        Args:
            raw_line: Text line as read from the serial link

        Returns:
            SensorReading for a valid data line, FrameRejection for an invalid one,
            None for a debug line
        """
        line = raw_line.strip()

        if line.startswith(self.debug_prefix):
            self.debug_lines += 1
            device_logger.info("Device: %s", line)
            return None

        fields = line.split(',')
        if len(fields) != FRAME_FIELD_COUNT:
            return self._reject(RejectionReason.MALFORMED_FRAME, raw_line,
                                f"expected {FRAME_FIELD_COUNT} fields, got {len(fields)}")

        values = []
        for field in fields:
            if not DECIMAL_PATTERN.fullmatch(field):
                return self._reject(RejectionReason.NON_NUMERIC_FRAME, raw_line,
                                    f"cannot parse {field!r}")
            value = float(field)
            if not math.isfinite(value):
                return self._reject(RejectionReason.NON_NUMERIC_FRAME, raw_line,
                                    f"non-finite value {field!r}")
            values.append(value)

        touch_end = FLEX_CHANNELS + TOUCH_CHANNELS
        reading = SensorReading(
            flex=tuple(values[:FLEX_CHANNELS]),
            touch=tuple(values[FLEX_CHANNELS:touch_end]),
            accel=tuple(values[touch_end:]),
            captured_at=self.clock()
        )
        self.frames_decoded += 1
        return reading

    def _reject(self, reason: RejectionReason, raw_line: str, detail: str) -> FrameRejection:
        self.frames_rejected += 1
        logger.warning("%s (%s): %r", reason.value, detail, raw_line)
        return FrameRejection(reason=reason, raw_line=raw_line, detail=detail)

    def get_stats(self) -> dict:
        return {
            'frames_decoded': self.frames_decoded,
            'frames_rejected': self.frames_rejected,
            'debug_lines': self.debug_lines
        }

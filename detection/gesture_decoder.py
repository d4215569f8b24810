"""
Gesture decoder that turns glove readings into discrete gameplay commands.
Color selection and aiming are evaluated every reading; firing is debounced by a cooldown gate.
"""

import logging
import time
from typing import Callable, List, Optional

from detection.detection_config import (
    ACCEL_CHANNELS,
    ACCEL_SENSITIVITY,
    AIM_ACCEL_CHANNEL,
    FINGER_CHANNELS,
    FIRE_COOLDOWN_MS,
    FLEX_CHANNELS,
    FLEX_STRENGTH_DIVISOR,
    FLEX_THRESHOLD,
    MAX_IMPACT_STRENGTH,
    MIN_IMPACT_STRENGTH,
    THUMB_CHANNEL,
    TOUCH_CHANNELS,
    TOUCH_THRESHOLD
)
from game.commands import BubbleColor, Command, Fire, SelectColor, SetAimAngle

logger = logging.getLogger(__name__)

# Finger touched together with the thumb -> potion color
FINGER_COLORS = {
    0: BubbleColor.GREEN,   # index
    1: BubbleColor.YELLOW,  # middle
    2: BubbleColor.PINK,    # ring
    3: BubbleColor.BLUE,    # little
}


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class CooldownGate:
    """Debounce for firing: closed for cooldown_ms after every shot."""

    def __init__(self, cooldown_ms: float = FIRE_COOLDOWN_MS):
        self.cooldown_ms = cooldown_ms
        self.last_fire_at: Optional[float] = None

    def is_open(self, now_ms: float) -> bool:
        return self.last_fire_at is None or now_ms - self.last_fire_at >= self.cooldown_ms

    def close(self, now_ms: float) -> None:
        self.last_fire_at = now_ms

    def remaining(self, now_ms: float) -> float:
        if self.last_fire_at is None:
            return 0
        return max(0, self.cooldown_ms - (now_ms - self.last_fire_at))

    def reset(self) -> None:
        self.last_fire_at = None


class GestureDecoder:
    """
    Maps one reading at a time to zero or more commands.

    Aim changes are emitted as relative deltas every reading; the bubble field
    owns and clamps the absolute angle.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None,
                 touch_threshold: float = TOUCH_THRESHOLD,
                 flex_threshold: float = FLEX_THRESHOLD,
                 accel_sensitivity: float = ACCEL_SENSITIVITY,
                 cooldown_ms: float = FIRE_COOLDOWN_MS):
        """
        Initialize the gesture decoder.

        Args:
            clock: Function returning the current time in epoch milliseconds
            touch_threshold: Touch channel value below which contact is registered
            flex_threshold: Mean flex value above which a shot is fired
            accel_sensitivity: Degrees of aim per unit of lateral acceleration
            cooldown_ms: Minimum time between two Fire commands
        """
        self.clock = clock or _epoch_ms
        self.touch_threshold = touch_threshold
        self.flex_threshold = flex_threshold
        self.accel_sensitivity = accel_sensitivity
        self.cooldown_gate = CooldownGate(cooldown_ms)

        self.readings_processed = 0
        self.readings_rejected = 0

    def on_reading(self, reading, now_ms: Optional[float] = None) -> List[Command]:
        """
        Decode one reading.

        Args:
            reading: SensorReading (or any object with flex/touch/accel sequences)
            now_ms: Arrival time of the reading, defaults to the decoder clock

        Returns:
            list: Commands in the order SelectColor, SetAimAngle, Fire (each optional)
        """
        if not self._is_well_formed(reading):
            self.readings_rejected += 1
            logger.warning("InvalidCommandInput: discarding reading %r", reading)
            return []

        now_ms = self.clock() if now_ms is None else now_ms
        self.readings_processed += 1
        commands: List[Command] = []

        color_command = self._decode_color(reading.touch)
        if color_command is not None:
            commands.append(color_command)

        commands.append(SetAimAngle(reading.accel[AIM_ACCEL_CHANNEL] * self.accel_sensitivity))

        fire_command = self._decode_fire(reading.flex, now_ms)
        if fire_command is not None:
            commands.append(fire_command)

        return commands

    def _decode_color(self, touch) -> Optional[SelectColor]:
        """Thumb contact plus the first touching finger, in index-to-little order."""
        if touch[THUMB_CHANNEL] >= self.touch_threshold:
            return None
        for finger in FINGER_CHANNELS:
            if touch[finger] < self.touch_threshold:
                return SelectColor.of(FINGER_COLORS[finger])
        return None

    def _decode_fire(self, flex, now_ms) -> Optional[Fire]:
        avg_flex = sum(flex) / len(flex)
        if avg_flex <= self.flex_threshold or not self.cooldown_gate.is_open(now_ms):
            return None

        self.cooldown_gate.close(now_ms)
        strength = min(MAX_IMPACT_STRENGTH, max(MIN_IMPACT_STRENGTH, avg_flex / FLEX_STRENGTH_DIVISOR))
        return Fire(strength)

    @staticmethod
    def _is_well_formed(reading) -> bool:
        try:
            return (len(reading.flex) == FLEX_CHANNELS
                    and len(reading.touch) == TOUCH_CHANNELS
                    and len(reading.accel) == ACCEL_CHANNELS)
        except (AttributeError, TypeError):
            return False

    def reset(self):
        self.cooldown_gate.reset()

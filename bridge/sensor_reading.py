"""
Sensor reading model shared by the bridge and the game.
Defines the immutable reading produced from one serial line and its JSON wire form.
"""

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from bridge.errors import InvalidReadingError

SENSOR_GROUPS = ('flex', 'touch', 'accel')


@dataclass(frozen=True)
class SensorReading:
    """One validated snapshot of the glove's flex, touch and accelerometer channels."""

    flex: Tuple[float, ...]
    touch: Tuple[float, ...]
    accel: Tuple[float, ...]
    captured_at: int  # epoch milliseconds

    def values(self) -> Tuple[float, ...]:
        """All channels in frame order (flex, touch, accel)."""
        return self.flex + self.touch + self.accel

    def to_wire(self) -> Dict[str, Any]:
        """
        Convert the reading to its wire dictionary.

        Returns:
            dict: {'flex': [...], 'touch': [...], 'accel': [...], 'timestamp': ms}
        """
        return {
            'flex': list(self.flex),
            'touch': list(self.touch),
            'accel': list(self.accel),
            'timestamp': self.captured_at
        }

    def to_json(self) -> str:
        return json.dumps(self.to_wire())

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> 'SensorReading':
        """
        Build a reading from a decoded wire message.

        Only the presence of the three groups is checked here; channel counts
        were validated by the bridge before the reading was published.

        Args:
            data: Decoded JSON object

        Returns:
            SensorReading built from the message

        Raises:
            InvalidReadingError: If the message is not an object, a group is missing
                or a value is not a finite number
        """
        if not isinstance(data, dict):
            raise InvalidReadingError(f"expected a JSON object, got {type(data).__name__}")

        missing = [group for group in SENSOR_GROUPS if not isinstance(data.get(group), list)]
        if missing:
            raise InvalidReadingError(f"missing sensor groups: {', '.join(missing)}")

        try:
            reading = cls(
                flex=tuple(float(v) for v in data['flex']),
                touch=tuple(float(v) for v in data['touch']),
                accel=tuple(float(v) for v in data['accel']),
                captured_at=int(data.get('timestamp', 0))
            )
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidReadingError(f"non-numeric sensor value: {e}") from e

        if not all(math.isfinite(v) for v in reading.values()):
            raise InvalidReadingError("non-finite sensor value")
        return reading

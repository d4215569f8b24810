import pytest

from bridge.sensor_reading import SensorReading
from game.event_manager import EventManager


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start=1_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


class RecordingEvents(EventManager):
    """EventManager that also remembers every triggered event."""

    def __init__(self):
        super().__init__()
        self.triggered = []

    def trigger_event(self, event_name, *args, **kwargs):
        self.triggered.append((event_name, args))
        return super().trigger_event(event_name, *args, **kwargs)

    def names(self):
        return [name for name, _ in self.triggered]


def make_reading(flex=(0, 0, 0, 0), touch=(100, 100, 100, 100, 100, 100), accel=(0, 0, 0), captured_at=0):
    return SensorReading(
        flex=tuple(float(v) for v in flex),
        touch=tuple(float(v) for v in touch),
        accel=tuple(float(v) for v in accel),
        captured_at=captured_at
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def events():
    return RecordingEvents()

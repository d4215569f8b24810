"""
Gameplay commands produced by the gesture decoder and the potion color palette.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class BubbleColor(Enum):
    """Potion colors, in palette order"""
    PINK = "pink"
    GREEN = "green"
    BLUE = "blue"
    YELLOW = "yellow"


PALETTE = [BubbleColor.PINK, BubbleColor.GREEN, BubbleColor.BLUE, BubbleColor.YELLOW]


@dataclass(frozen=True)
class SelectColor:
    color_index: int

    @property
    def color(self) -> BubbleColor:
        return PALETTE[self.color_index]

    @classmethod
    def of(cls, color: BubbleColor) -> 'SelectColor':
        return cls(PALETTE.index(color))


@dataclass(frozen=True)
class SetAimAngle:
    angle_degrees: float  # relative change, the field clamps the running angle


@dataclass(frozen=True)
class Fire:
    impact_strength: float


Command = Union[SelectColor, SetAimAngle, Fire]

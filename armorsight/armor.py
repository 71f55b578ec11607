"""Light bars and armor plates found in a camera frame."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Tuple

Point = Tuple[float, float]


class ArmorType(Enum):
    """Size class of an armor plate."""

    SMALL = "small"
    LARGE = "large"
    INVALID = "invalid"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Rect:
    """Axis-aligned integer rectangle."""

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass
class Light:
    """A bright light bar, described by its endpoints and bounding box."""

    box: Rect
    top: Point
    bottom: Point
    center: Point
    length: float
    width: float
    tilt_angle: float
    color: int = 0

    @classmethod
    def from_endpoints(cls, box, top, bottom, area, tilt_angle) -> "Light":
        """Build a light from its end points and contour area."""
        top = (float(top[0]), float(top[1]))
        bottom = (float(bottom[0]), float(bottom[1]))
        length = math.hypot(top[0] - bottom[0], top[1] - bottom[1])
        if length == 0:
            raise ValueError("light end points coincide")
        center = ((top[0] + bottom[0]) / 2, (top[1] + bottom[1]) / 2)
        return cls(
            box=box,
            top=top,
            bottom=bottom,
            center=center,
            length=length,
            width=area / length,
            tilt_angle=float(tilt_angle),
        )


@dataclass
class Armor:
    """An armor plate made from a left and a right light bar."""

    left_light: Light
    right_light: Light
    center: Point
    type: ArmorType = ArmorType.INVALID
    number_img: Any = None
    number: str = ""
    confidence: float = 0.0
    classification_result: str = ""
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_lights(cls, l1: Light, l2: Light) -> "Armor":
        """Pair two lights, ordering them left to right."""
        if l1.center[0] < l2.center[0]:
            left, right = l1, l2
        else:
            left, right = l2, l1
        center = (
            (left.center[0] + right.center[0]) / 2,
            (left.center[1] + right.center[1]) / 2,
        )
        return cls(left_light=left, right_light=right, center=center)
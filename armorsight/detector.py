"""Find light bars in a BGR frame and pair them into armor plates."""

from __future__ import annotations

import dataclasses
import math
from typing import List, Sequence

import numpy as np

from armorsight.armor import Armor, ArmorType, Light
from armorsight.geometry import (
    bounding_rect,
    contour_area,
    find_external_contours,
    gaussian_blur,
    min_area_rect,
    threshold,
)


def _dist(a, b) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


class ArmorDetector:
    """Red-channel light bar detector with geometric pairing."""

    def detect(self, image) -> List[Armor]:
        """Armor plates found in a BGR image."""
        return self.match_armors(self.find_lights(image))

    def find_lights(self, image) -> List[Light]:
        img = np.asarray(image)
        if img.ndim != 3 or img.shape[2] != 3:
            raise ValueError("expected a 3-channel BGR image")
        binary = threshold(img[:, :, 2], 220, 255)
        blurred = gaussian_blur(binary, 5)
        lights = []
        for contour in find_external_contours(blurred):
            if len(contour) < 5:
                continue
            rrect = min_area_rect(contour)
            angle = rrect.angle
            if rrect.width > rrect.height:
                rrect = dataclasses.replace(rrect, width=rrect.height, height=rrect.width)
            ratio = rrect.height / rrect.width if rrect.width else math.inf
            if ratio > 1.2 and rrect.height > 10:
                pts = rrect.points()
                top = ((pts[1][0] + pts[2][0]) / 2, (pts[1][1] + pts[2][1]) / 2)
                bottom = ((pts[3][0] + pts[0][0]) / 2, (pts[3][1] + pts[0][1]) / 2)
                box = bounding_rect(contour)
                area = int(contour_area(contour))
                lights.append(Light.from_endpoints(box, top, bottom, area, angle))
        return lights

    def match_armors(self, lights: Sequence[Light]) -> List[Armor]:
        armors = []
        for i, l1 in enumerate(lights):
            for l2 in lights[i + 1:]:
                if not self.is_valid_armor_pair(l1, l2):
                    continue
                armor = Armor.from_lights(l1, l2)
                ratio = _dist(l1.center, l2.center) / ((l1.length + l2.length) / 2)
                armor.type = ArmorType.LARGE if ratio > 3.2 else ArmorType.SMALL
                armors.append(armor)
        return armors

    def is_valid_armor_pair(self, l1: Light, l2: Light) -> bool:
        if abs(l1.tilt_angle - l2.tilt_angle) > 10.0:
            return False
        longest = max(l1.length, l2.length)
        if longest == 0 or abs(l1.length - l2.length) / longest > 0.3:
            return False
        y_diff = abs(l1.center[1] - l2.center[1])
        x_diff = abs(l1.center[0] - l2.center[0])
        if x_diff == 0 or y_diff / x_diff > 0.5:
            return False
        ratio = _dist(l1.center, l2.center) / ((l1.length + l2.length) / 2)
        return 1.0 <= ratio <= 5.0

    def is_color_match(self, roi, target_color) -> bool:
        """Colour is not checked; every region matches."""
        return True


def _fill(image, y0, y1, x0, x1, color) -> None:
    h, w = image.shape[:2]
    y0, x0 = max(y0, 0), max(x0, 0)
    y1, x1 = min(y1, h), min(x1, w)
    if y0 < y1 and x0 < x1:
        image[y0:y1, x0:x1] = color


def _rectangle(image, rect, color, thickness) -> None:
    x1, y1 = rect.x, rect.y
    x2, y2 = rect.x + rect.width - 1, rect.y + rect.height - 1
    lo, hi = -(thickness // 2), thickness - thickness // 2
    _fill(image, y1 + lo, y1 + hi, x1 + lo, x2 + hi, color)
    _fill(image, y2 + lo, y2 + hi, x1 + lo, x2 + hi, color)
    _fill(image, y1 + lo, y2 + hi, x1 + lo, x1 + hi, color)
    _fill(image, y1 + lo, y2 + hi, x2 + lo, x2 + hi, color)


def _filled_circle(image, center, radius, color) -> None:
    cx, cy = int(round(center[0])), int(round(center[1]))
    h, w = image.shape[:2]
    yy, xx = np.ogrid[:h, :w]
    image[(xx - cx) ** 2 + (yy - cy) ** 2 <= radius**2] = color


def draw_armors(image, armors: Sequence[Armor]) -> None:
    """Draw light boxes and armor centres onto a BGR image in place."""
    for armor in armors:
        _rectangle(image, armor.left_light.box, (255, 0, 0), 2)
        _rectangle(image, armor.right_light.box, (255, 0, 0), 2)
        _filled_circle(image, armor.center, 4, (0, 255, 0))
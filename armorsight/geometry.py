"""Image and contour geometry used by the light detector."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
from scipy import ndimage

from armorsight.armor import Rect

Point = Tuple[float, float]

_SMALL_GAUSSIAN = {
    1: [1.0],
    3: [0.25, 0.5, 0.25],
    5: [0.0625, 0.25, 0.375, 0.25, 0.0625],
    7: [0.03125, 0.109375, 0.21875, 0.28125, 0.21875, 0.109375, 0.03125],
}

# Clockwise neighbour directions with y pointing down.
_DIRS = [(1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1), (0, -1), (1, -1)]
_DIR_INDEX = {d: i for i, d in enumerate(_DIRS)}


@dataclass(frozen=True)
class RotatedRect:
    """A rectangle with a centre, a size and a rotation in degrees."""

    center: Point
    width: float
    height: float
    angle: float

    def points(self) -> List[Point]:
        """The four corners, in the usual rotated-rectangle order."""
        rad = math.radians(self.angle)
        b = math.cos(rad) * 0.5
        a = math.sin(rad) * 0.5
        cx, cy = self.center
        w, h = self.width, self.height
        p0 = (cx - a * h - b * w, cy + b * h - a * w)
        p1 = (cx + a * h - b * w, cy - b * h - a * w)
        p2 = (2 * cx - p0[0], 2 * cy - p0[1])
        p3 = (2 * cx - p1[0], 2 * cy - p1[1])
        return [p0, p1, p2, p3]


def threshold(image, thresh, maxval):
    """Binary threshold: pixels above ``thresh`` become ``maxval``, others 0."""
    img = np.asarray(image)
    return np.where(img > thresh, maxval, 0).astype(img.dtype)


def _gaussian_kernel(ksize: int) -> np.ndarray:
    if ksize in _SMALL_GAUSSIAN:
        return np.array(_SMALL_GAUSSIAN[ksize])
    sigma = 0.3 * ((ksize - 1) * 0.5 - 1) + 0.8
    offsets = np.arange(ksize) - (ksize - 1) / 2
    kernel = np.exp(-(offsets**2) / (2 * sigma**2))
    return kernel / kernel.sum()


def gaussian_blur(image, ksize):
    """Gaussian blur with a square odd kernel and sigma derived from its size."""
    if isinstance(ksize, tuple):
        kx, ky = ksize
    else:
        kx = ky = ksize
    for k in (kx, ky):
        if k <= 0 or k % 2 == 0:
            raise ValueError("kernel size must be positive and odd")
    img = np.asarray(image)
    out = ndimage.convolve1d(img.astype(float), _gaussian_kernel(ky), axis=0, mode="mirror")
    out = ndimage.convolve1d(out, _gaussian_kernel(kx), axis=1, mode="mirror")
    if np.issubdtype(img.dtype, np.integer):
        info = np.iinfo(img.dtype)
        out = np.clip(np.rint(out), info.min, info.max)
    return out.astype(img.dtype)


def _trace(component: np.ndarray) -> List[Tuple[int, int]]:
    padded = np.pad(component, 1)
    y0, x0 = np.argwhere(component)[0]
    start = (int(x0) + 1, int(y0) + 1)
    boundary = [start]
    p = start
    back = 4
    first_move = None
    while True:
        found = None
        for k in range(1, 9):
            d = (back + k) % 8
            q = (p[0] + _DIRS[d][0], p[1] + _DIRS[d][1])
            if padded[q[1], q[0]]:
                found = d
                break
        if found is None:
            break
        if p == start and first_move is not None and found == first_move:
            break
        if first_move is None:
            first_move = found
        q = (p[0] + _DIRS[found][0], p[1] + _DIRS[found][1])
        c_dir = _DIRS[(found - 1) % 8]
        c = (p[0] + c_dir[0], p[1] + c_dir[1])
        back = _DIR_INDEX[(c[0] - q[0], c[1] - q[1])]
        p = q
        boundary.append(p)
    if len(boundary) > 1 and boundary[-1] == boundary[0]:
        boundary.pop()
    return [(x - 1, y - 1) for x, y in boundary]


def _compress(points: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    if len(points) <= 2:
        return points
    kept = []
    count = len(points)
    for i, pt in enumerate(points):
        prev = points[i - 1]
        nxt = points[(i + 1) % count]
        incoming = (pt[0] - prev[0], pt[1] - prev[1])
        outgoing = (nxt[0] - pt[0], nxt[1] - pt[1])
        if incoming != outgoing:
            kept.append(pt)
    return kept or points[:1]


def find_external_contours(binary) -> List[List[Tuple[int, int]]]:
    """Outer boundaries of the non-zero regions, straight runs compressed."""
    mask = np.asarray(binary) != 0
    if mask.ndim != 2:
        raise ValueError("expected a single-channel image")
    filled = ndimage.binary_fill_holes(mask)
    labels, _ = ndimage.label(filled, structure=np.ones((3, 3), dtype=int))
    contours = []
    for idx, region in enumerate(ndimage.find_objects(labels), start=1):
        if region is None:
            continue
        component = labels[region] == idx
        oy, ox = region[0].start, region[1].start
        traced = _trace(component)
        contours.append([(x + ox, y + oy) for x, y in _compress(traced)])
    return contours


def contour_area(points) -> float:
    """Absolute polygon area by the shoelace formula."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    if len(pts) < 3:
        return 0.0
    x, y = pts[:, 0], pts[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2)


def bounding_rect(points) -> Rect:
    """Smallest integer rectangle holding every point."""
    pts = np.asarray(points).reshape(-1, 2)
    if len(pts) == 0:
        raise ValueError("no points")
    x0, y0 = np.floor(pts.min(axis=0)).astype(int)
    x1, y1 = np.floor(pts.max(axis=0)).astype(int)
    return Rect(int(x0), int(y0), int(x1 - x0 + 1), int(y1 - y0 + 1))


def _convex_hull(pts: np.ndarray) -> List[Tuple[float, float]]:
    unique = sorted({(float(x), float(y)) for x, y in pts})
    if len(unique) <= 2:
        return unique

    def cross(o, a, b):
        return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])

    lower: list = []
    for p in unique:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)
    upper: list = []
    for p in reversed(unique):
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)
    return lower[:-1] + upper[:-1]


def _normalised(center: Point, width: float, height: float, angle: float) -> RotatedRect:
    while angle < 0:
        angle += 90.0
        width, height = height, width
    while angle >= 90.0:
        angle -= 90.0
        width, height = height, width
    return RotatedRect(center, width, height, angle)


def min_area_rect(points: Sequence) -> RotatedRect:
    """Minimum-area enclosing rectangle, angle in [0, 90) degrees."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    if len(pts) == 0:
        raise ValueError("no points")
    hull = _convex_hull(pts)
    if len(hull) == 1:
        return RotatedRect(hull[0], 0.0, 0.0, 0.0)
    if len(hull) == 2:
        (ax, ay), (bx, by) = hull
        center = ((ax + bx) / 2, (ay + by) / 2)
        angle = math.degrees(math.atan2(by - ay, bx - ax))
        return _normalised(center, math.hypot(bx - ax, by - ay), 0.0, angle)
    hull_arr = np.array(hull)
    best = None
    for i, a in enumerate(hull):
        b = hull[(i + 1) % len(hull)]
        edge = np.array([b[0] - a[0], b[1] - a[1]])
        u = edge / np.linalg.norm(edge)
        v = np.array([-u[1], u[0]])
        pu = hull_arr @ u
        pv = hull_arr @ v
        width = pu.max() - pu.min()
        height = pv.max() - pv.min()
        area = width * height
        if best is None or area < best[0]:
            mid = u * (pu.max() + pu.min()) / 2 + v * (pv.max() + pv.min()) / 2
            angle = math.degrees(math.atan2(u[1], u[0]))
            best = (area, (float(mid[0]), float(mid[1])), float(width), float(height), angle)
    _, center, width, height, angle = best
    return _normalised(center, width, height, angle)
"""
geometry/kernel.py

Coordinate math shared by snapping, resizing and dimensioning.

Everything here works on raw floating-point millimetres and never rounds;
rounding happens once, when a patch goes through ``object_update``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from models import (
    DEFAULT_LANDING_LENGTH_MM,
    DEFAULT_LANDING_WIDTH_MM,
    DEFAULT_RAMP_RUN_MM,
    DEFAULT_RAMP_WIDTH_MM,
    KIND_RAMP,
    Object2D,
    PointMm,
    RampObj,
    Tool,
)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box size plus the offset of its centre from the object origin.

    A rotated ramp with asymmetric wings is not centred on ``(x_mm, y_mm)``;
    ``offset_x``/``offset_y`` carry the difference.
    """
    width: float
    height: float
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass(frozen=True)
class Footprint:
    """Unrotated rectangle in the object's local frame."""
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    def corners(self) -> List[PointMm]:
        return [
            PointMm(self.min_x, self.min_y),
            PointMm(self.min_x, self.max_y),
            PointMm(self.max_x, self.max_y),
            PointMm(self.max_x, self.min_y),
        ]


@dataclass(frozen=True)
class Aabb:
    """World-space axis-aligned box with its faces and centre lines."""
    left: float
    right: float
    top: float
    bottom: float
    cx: float
    cy: float
    w: float
    h: float


# ----------------------------
# Rotation
# ----------------------------

def rotate_point(p: Tuple[float, float], deg: float) -> PointMm:
    """Rotate *p* about the origin by *deg* degrees (y axis points down the screen)."""
    rad = deg * math.pi / 180
    cos = math.cos(rad)
    sin = math.sin(rad)
    x, y = p
    return PointMm(x * cos - y * sin, x * sin + y * cos)


def is_length_vertical(rotation_deg: float) -> bool:
    """True when the object's length axis currently runs up/down the screen."""
    return abs(rotation_deg % 180) == 90


# ----------------------------
# Footprints and outlines
# ----------------------------

def _wing_sizes(ramp: RampObj) -> Tuple[float, float]:
    left = ramp.left_wing_size_mm if ramp.has_left_wing else 0
    right = ramp.right_wing_size_mm if ramp.has_right_wing else 0
    return max(left, 0), max(right, 0)


def _length_of(obj: Object2D) -> float:
    if obj.kind == KIND_RAMP:
        return obj.run_mm
    return obj.length_mm


def local_footprint(obj: Object2D, include_wings: bool = True) -> Footprint:
    """
    Return the object's unrotated bounding rectangle in its local frame.

    The length runs along local x, the width along local y.  A ramp's left
    wing widens the negative-y side and its right wing the positive-y side.

    Args:
        obj: Ramp or landing.
        include_wings: ``False`` gives the plain body envelope, which is what
            the edge dimensions measure.

    Returns:
        Footprint in millimetres relative to the object centre.
    """
    half_length = _length_of(obj) / 2
    half_width = obj.width_mm / 2
    if obj.kind == KIND_RAMP and include_wings:
        left, right = _wing_sizes(obj)
        return Footprint(-half_length, half_length, -half_width - left, half_width + right)
    return Footprint(-half_length, half_length, -half_width, half_width)


def ramp_outline_points(ramp: RampObj) -> List[PointMm]:
    """Local outline polygon of a ramp, wings drawn as triangles.

    Each wing is a triangle from the near body corner out to a point
    beside the far end of the run.
    """
    half_length = ramp.run_mm / 2
    half_width = ramp.width_mm / 2
    left, right = _wing_sizes(ramp)

    a = PointMm(-half_length, -half_width)
    b = PointMm(-half_length, half_width)
    c = PointMm(half_length, half_width)
    d = PointMm(half_length, -half_width)

    points = [a, b]
    if right > 0:
        points.append(PointMm(half_length, half_width + right))
    points += [c, d]
    if left > 0:
        points.append(PointMm(half_length, -half_width - left))
    return points


def ramp_seam_lines(ramp: RampObj) -> List[Tuple[PointMm, PointMm]]:
    """Body edges that separate the run from a wing (local frame)."""
    half_length = ramp.run_mm / 2
    half_width = ramp.width_mm / 2
    left, right = _wing_sizes(ramp)
    seams = []
    if left > 0:
        seams.append((PointMm(-half_length, -half_width), PointMm(half_length, -half_width)))
    if right > 0:
        seams.append((PointMm(-half_length, half_width), PointMm(half_length, half_width)))
    return seams


# ----------------------------
# Bounding boxes
# ----------------------------

def bounding_box_from_points(points: Iterable[Tuple[float, float]]) -> BoundingBox:
    """Reduce points to an axis-aligned box centred on the min/max midpoint."""
    pts = list(points)
    xs = [p[0] for p in pts]
    ys = [p[1] for p in pts]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)
    return BoundingBox(
        width=max_x - min_x,
        height=max_y - min_y,
        offset_x=(min_x + max_x) / 2,
        offset_y=(min_y + max_y) / 2,
    )


def get_object_bounding_box_mm(obj: Object2D, include_wings: bool = True) -> BoundingBox:
    """Axis-aligned box of the rotated object outline.

    This is the footprint every placement, snap and resize computation
    works with.
    """
    if obj.kind == KIND_RAMP and include_wings:
        outline: Sequence[Tuple[float, float]] = ramp_outline_points(obj)
    else:
        outline = local_footprint(obj, include_wings=False).corners()
    return bounding_box_from_points(rotate_point(p, obj.rotation_deg) for p in outline)


def default_bounding_box(tool: str) -> Optional[BoundingBox]:
    """Box of a freshly placed object for *tool* (unrotated), or ``None``."""
    if tool == Tool.RAMP:
        return BoundingBox(DEFAULT_RAMP_RUN_MM, DEFAULT_RAMP_WIDTH_MM)
    if tool == Tool.LANDING:
        return BoundingBox(DEFAULT_LANDING_LENGTH_MM, DEFAULT_LANDING_WIDTH_MM)
    return None


# ----------------------------
# Centre <-> top-left
# ----------------------------

def top_left_from_center(center: Tuple[float, float], box: BoundingBox) -> PointMm:
    return PointMm(
        center[0] + box.offset_x - box.width / 2,
        center[1] + box.offset_y - box.height / 2,
    )


def center_from_top_left(top_left: Tuple[float, float], box: BoundingBox) -> PointMm:
    return PointMm(
        top_left[0] - box.offset_x + box.width / 2,
        top_left[1] - box.offset_y + box.height / 2,
    )


def axis_aligned_box(obj: Object2D, center: Optional[Tuple[float, float]] = None,
                     include_wings: bool = True) -> Aabb:
    """World-space box of *obj*, optionally as if its centre were *center*."""
    box = get_object_bounding_box_mm(obj, include_wings=include_wings)
    if center is None:
        center = (obj.x_mm, obj.y_mm)
    left, top = top_left_from_center(center, box)
    return Aabb(
        left=left,
        right=left + box.width,
        top=top,
        bottom=top + box.height,
        cx=center[0] + box.offset_x,
        cy=center[1] + box.offset_y,
        w=box.width,
        h=box.height,
    )


POI_NAMES: Tuple[str, ...] = (
    "topLeft", "topRight", "bottomLeft", "bottomRight",
    "midTop", "midBottom", "midLeft", "midRight", "centre",
)


def points_of_interest(aabb: Aabb) -> List[Tuple[str, PointMm]]:
    """The nine snap points of a box: corners, edge midpoints, centroid."""
    coords = (
        (aabb.left, aabb.top),
        (aabb.right, aabb.top),
        (aabb.left, aabb.bottom),
        (aabb.right, aabb.bottom),
        (aabb.cx, aabb.top),
        (aabb.cx, aabb.bottom),
        (aabb.left, aabb.cy),
        (aabb.right, aabb.cy),
        (aabb.cx, aabb.cy),
    )
    return [(name, PointMm(x, y)) for name, (x, y) in zip(POI_NAMES, coords)]

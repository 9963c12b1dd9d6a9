"""
snapping/resize.py

Corner-handle resizing with an anchored opposite corner.

Handles name corners of the unrotated body in the object's local frame:
``n``/``s`` are the -y/+y sides, ``w``/``e`` the -x/+x ends of the length.
The pointer is decomposed along the rotated local axes, so length and
width only grow along their own directions and a rotated object resizes
correctly.  Ramp wings keep their size.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from geometry.kernel import rotate_point
from models import KIND_RAMP, Object2D, PointMm, Snapshot
from object_update import grid_step
from settings import get_settings
from snapping.engine import (
    EMPTY_GUIDE,
    AxisCandidate,
    SnapGuide,
    build_guide,
    collect_point_candidates,
    pick_best_axis_candidate,
    sibling_boxes,
)
from utils import snap_mm

log = logging.getLogger(__name__)

MIN_RESIZE_MM = 100

# handle -> (sign along local x, sign along local y)
HANDLE_SIGNS: Dict[str, Tuple[int, int]] = {
    "nw": (-1, -1),
    "ne": (1, -1),
    "sw": (-1, 1),
    "se": (1, 1),
}


def _get_threshold_mm() -> float:
    """Get the object snap threshold from settings. Default: 20.0."""
    return get_settings().settings.snap.threshold_mm


def _get_min_resize_mm() -> int:
    """Get the minimum size per local axis from settings. Default: 100."""
    return get_settings().settings.snap.min_resize_mm


@dataclass(frozen=True)
class ResizeResult:
    """Outcome of one resize step.

    ``patch`` feeds ``object_update.update_object``; it is empty when the
    object is locked.
    """
    patch: Dict[str, Any] = field(default_factory=dict)
    guide: SnapGuide = EMPTY_GUIDE


def _length_of(obj: Object2D) -> float:
    return obj.run_mm if obj.kind == KIND_RAMP else obj.length_mm


def _signs(handle: str) -> Tuple[int, int]:
    try:
        return HANDLE_SIGNS[handle]
    except KeyError:
        raise ValueError(f"Unknown resize handle: {handle!r}") from None


def handle_position(obj: Object2D, handle: str) -> PointMm:
    """World position of a body corner handle."""
    sx, sy = _signs(handle)
    local = (sx * _length_of(obj) / 2, sy * obj.width_mm / 2)
    offset = rotate_point(local, obj.rotation_deg)
    return PointMm(obj.x_mm + offset.x, obj.y_mm + offset.y)


def anchor_position(obj: Object2D, handle: str) -> PointMm:
    """World position of the corner opposite *handle* (stays fixed)."""
    sx, sy = _signs(handle)
    local = (-sx * _length_of(obj) / 2, -sy * obj.width_mm / 2)
    offset = rotate_point(local, obj.rotation_deg)
    return PointMm(obj.x_mm + offset.x, obj.y_mm + offset.y)


def _local_sizes(anchor: PointMm, corner: Tuple[float, float], rotation_deg: float,
                 sx: int, sy: int) -> Tuple[float, float]:
    local = rotate_point((corner[0] - anchor.x, corner[1] - anchor.y), -rotation_deg)
    return sx * local.x, sy * local.y


def _length_follows_world_x(rotation_deg: float) -> bool:
    axis = rotate_point((1.0, 0.0), rotation_deg)
    return abs(axis.x) >= abs(axis.y)


def resize_from_corner(snapshot: Snapshot, obj: Object2D, handle: str,
                       handle_pos: Tuple[float, float],
                       threshold_mm: Optional[float] = None,
                       min_size_mm: Optional[float] = None) -> ResizeResult:
    """
    Resize *obj* by moving one corner handle to *handle_pos*.

    Args:
        snapshot: Supplies sibling objects and the snap configuration.
        obj: The object as it was when the gesture started.
        handle: ``"nw"``, ``"ne"``, ``"sw"`` or ``"se"``.
        handle_pos: Proposed world position of the handle, in mm.
        threshold_mm: Object snap distance; ``None`` reads settings.
        min_size_mm: Floor per local axis; ``None`` reads settings.

    Returns:
        ResizeResult holding ``length_mm``, ``width_mm``, ``x_mm`` and
        ``y_mm``.

    Raises:
        ValueError: if *handle* is not a corner name.
    """
    sx, sy = _signs(handle)
    if obj.locked:
        return ResizeResult()

    min_size = _get_min_resize_mm() if min_size_mm is None else min_size_mm
    rotation = obj.rotation_deg
    anchor = anchor_position(obj, handle)

    length, width = _local_sizes(anchor, handle_pos, rotation, sx, sy)
    length = max(length, min_size)
    width = max(width, min_size)

    best_x: Optional[AxisCandidate] = None
    best_y: Optional[AxisCandidate] = None
    if snapshot.snap_to_objects:
        threshold = _get_threshold_mm() if threshold_mm is None else threshold_mm
        offset = rotate_point((sx * length, sy * width), rotation)
        corner = PointMm(anchor.x + offset.x, anchor.y + offset.y)
        xs, ys = collect_point_candidates(corner, sibling_boxes(snapshot, obj.id), threshold)
        best_x = pick_best_axis_candidate(xs)
        best_y = pick_best_axis_candidate(ys)
        if best_x or best_y:
            snapped = (
                corner.x + (best_x.delta if best_x else 0),
                corner.y + (best_y.delta if best_y else 0),
            )
            length, width = _local_sizes(anchor, snapped, rotation, sx, sy)

    if _length_follows_world_x(rotation):
        length_snapped, width_snapped = best_x is not None, best_y is not None
    else:
        length_snapped, width_snapped = best_y is not None, best_x is not None

    step = grid_step(snapshot)
    if not length_snapped:
        length = snap_mm(length, step)
    if not width_snapped:
        width = snap_mm(width, step)
    length_floored, width_floored = length < min_size, width < min_size
    length = max(length, min_size)
    width = max(width, min_size)
    # a floored axis no longer sits on its snap target
    if _length_follows_world_x(rotation):
        x_floored, y_floored = length_floored, width_floored
    else:
        x_floored, y_floored = width_floored, length_floored
    if x_floored:
        best_x = None
    if y_floored:
        best_y = None

    center_offset = rotate_point((sx * length / 2, sy * width / 2), rotation)
    patch = {
        "length_mm": length,
        "width_mm": width,
        "x_mm": anchor.x + center_offset.x,
        "y_mm": anchor.y + center_offset.y,
    }
    return ResizeResult(patch=patch, guide=build_guide(best_x, best_y))

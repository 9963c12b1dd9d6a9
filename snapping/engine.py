"""
snapping/engine.py

Grid and object-to-object snapping for placing and moving objects.

Object snapping compares the active object's axis-aligned box against every
other object's box, one axis at a time:

  * face candidates: {left, centre, right} against {left, centre, right}
    (and {top, centre, bottom} on y);
  * point candidates: the nine points of interest of each box.

A face match always beats a point match on the same axis; within a type the
smallest ``|delta|`` wins and the first candidate found wins an exact tie.
An axis with no object match falls back to rounding the box's top-left to
the grid step (1mm when grid snapping is off).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from geometry.kernel import (
    Aabb,
    axis_aligned_box,
    center_from_top_left,
    default_bounding_box,
    get_object_bounding_box_mm,
    points_of_interest,
    top_left_from_center,
)
from models import IdSource, Object2D, PointMm, Snapshot, new_object, uuid_ids
from object_update import add_object, grid_step
from settings import get_settings
from utils import snap_mm

log = logging.getLogger(__name__)

SNAP_THRESHOLD_MM = 20.0

FACE = "face"
POI = "poi"


def _get_threshold_mm() -> float:
    """Get the object snap threshold from settings. Default: 20.0."""
    return get_settings().settings.snap.threshold_mm


@dataclass(frozen=True)
class AxisCandidate:
    """One possible correction along a single axis."""
    delta: float
    snap_coord: float
    type: str                            # face | poi
    poi_name: Optional[str] = None
    target_point: Optional[PointMm] = None


@dataclass(frozen=True)
class SnapGuide:
    """What a gesture snapped to, for drawing alignment guides only."""
    snapped_x: Optional[float] = None
    snapped_y: Optional[float] = None
    snapped_point: Optional[PointMm] = None
    x_type: Optional[str] = None
    y_type: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.snapped_x is None and self.snapped_y is None


EMPTY_GUIDE = SnapGuide()


@dataclass(frozen=True)
class SnapResult:
    center: PointMm
    guide: SnapGuide = EMPTY_GUIDE


# ----------------------------
# Candidate search
# ----------------------------

def _push_if_close(out: List[AxisCandidate], active: float, target: float, threshold: float,
                   kind: str, poi_name: Optional[str] = None,
                   target_point: Optional[PointMm] = None) -> None:
    delta = target - active
    if abs(delta) <= threshold:
        out.append(AxisCandidate(delta, target, kind, poi_name, target_point))


def collect_box_candidates(active: Aabb, targets: Iterable[Aabb],
                           threshold: float) -> Tuple[List[AxisCandidate], List[AxisCandidate]]:
    """Face and point candidates of a moving box against fixed boxes.

    Returns:
        ``(x_candidates, y_candidates)`` in discovery order.
    """
    xs: List[AxisCandidate] = []
    ys: List[AxisCandidate] = []
    active_pois = points_of_interest(active)

    for target in targets:
        for a in (active.left, active.cx, active.right):
            for t in (target.left, target.cx, target.right):
                _push_if_close(xs, a, t, threshold, FACE)
        for a in (active.top, active.cy, active.bottom):
            for t in (target.top, target.cy, target.bottom):
                _push_if_close(ys, a, t, threshold, FACE)

        target_pois = points_of_interest(target)
        for name, ap in active_pois:
            for _, tp in target_pois:
                _push_if_close(xs, ap.x, tp.x, threshold, POI, name, tp)
                _push_if_close(ys, ap.y, tp.y, threshold, POI, name, tp)

    return xs, ys


def collect_point_candidates(point: PointMm, targets: Iterable[Aabb],
                             threshold: float) -> Tuple[List[AxisCandidate], List[AxisCandidate]]:
    """Face and point candidates for a single moving point (a resize corner)."""
    xs: List[AxisCandidate] = []
    ys: List[AxisCandidate] = []
    for target in targets:
        for t in (target.left, target.cx, target.right):
            _push_if_close(xs, point.x, t, threshold, FACE)
        for t in (target.top, target.cy, target.bottom):
            _push_if_close(ys, point.y, t, threshold, FACE)
        for _, tp in points_of_interest(target):
            _push_if_close(xs, point.x, tp.x, threshold, POI, "corner", tp)
            _push_if_close(ys, point.y, tp.y, threshold, POI, "corner", tp)
    return xs, ys


def pick_best_axis_candidate(candidates: Sequence[AxisCandidate]) -> Optional[AxisCandidate]:
    """Faces first, then smallest ``|delta|``; the earliest wins a tie."""
    faces = [c for c in candidates if c.type == FACE]
    pool = faces or candidates
    best: Optional[AxisCandidate] = None
    for candidate in pool:
        if best is None or abs(candidate.delta) < abs(best.delta):
            best = candidate
    return best


def build_guide(best_x: Optional[AxisCandidate], best_y: Optional[AxisCandidate]) -> SnapGuide:
    """Describe the chosen snaps for the renderer."""
    if best_x is not None and best_x.type == POI:
        point = best_x.target_point
    elif best_y is not None and best_y.type == POI:
        point = best_y.target_point
    else:
        point = None
    return SnapGuide(
        snapped_x=best_x.snap_coord if best_x else None,
        snapped_y=best_y.snap_coord if best_y else None,
        snapped_point=point,
        x_type=best_x.type if best_x else None,
        y_type=best_y.type if best_y else None,
    )


def sibling_boxes(snapshot: Snapshot, obj_id: str) -> List[Aabb]:
    """Boxes of every other object, locked or not, in snapshot order."""
    return [axis_aligned_box(o) for o in snapshot.objects if o.id != obj_id]


# ----------------------------
# Move / place
# ----------------------------

def snap_move(snapshot: Snapshot, obj: Object2D, proposed_center: Tuple[float, float],
              threshold_mm: Optional[float] = None) -> SnapResult:
    """
    Correct a proposed centre for *obj* while it is dragged.

    Args:
        snapshot: Supplies sibling objects and the snap configuration.
        obj: The object being moved (its own entry in *snapshot* is skipped).
        proposed_center: Raw centre under the pointer, in mm.
        threshold_mm: Object snap distance; ``None`` reads it from settings.

    Returns:
        SnapResult with the corrected centre and the guide description.
        A locked object stays where it is.
    """
    if obj.locked:
        return SnapResult(PointMm(obj.x_mm, obj.y_mm))

    proposed = PointMm(*proposed_center)
    best_x: Optional[AxisCandidate] = None
    best_y: Optional[AxisCandidate] = None

    if snapshot.snap_to_objects:
        threshold = _get_threshold_mm() if threshold_mm is None else threshold_mm
        active = axis_aligned_box(obj, proposed)
        xs, ys = collect_box_candidates(active, sibling_boxes(snapshot, obj.id), threshold)
        best_x = pick_best_axis_candidate(xs)
        best_y = pick_best_axis_candidate(ys)

    after_object = PointMm(
        proposed.x + (best_x.delta if best_x else 0),
        proposed.y + (best_y.delta if best_y else 0),
    )

    box = get_object_bounding_box_mm(obj)
    left, top = top_left_from_center(after_object, box)
    step = grid_step(snapshot)
    top_left = (
        left if best_x else snap_mm(left, step),
        top if best_y else snap_mm(top, step),
    )
    center = center_from_top_left(top_left, box)
    guide = build_guide(best_x, best_y)
    if not guide.is_empty:
        log.debug("snap_move %s: x=%s y=%s", obj.id, guide.x_type, guide.y_type)
    return SnapResult(center, guide)


def snap_placement(snapshot: Snapshot, tool: str, anchor: Tuple[float, float]) -> Optional[PointMm]:
    """Centre for a click-placed object whose box top-left goes at *anchor*.

    The anchor is rounded to the grid step (1mm with grid snapping off).
    Returns ``None`` for tools that do not place objects.
    """
    box = default_bounding_box(tool)
    if box is None:
        return None
    step = grid_step(snapshot)
    top_left = (snap_mm(anchor[0], step), snap_mm(anchor[1], step))
    return center_from_top_left(top_left, box)


def place_object(snapshot: Snapshot, tool: str, anchor: Tuple[float, float],
                 make_id: IdSource = uuid_ids) -> Snapshot:
    """Create and select a new object for *tool* at *anchor*."""
    center = snap_placement(snapshot, tool, anchor)
    if center is None:
        return snapshot
    obj = new_object(tool, center.x, center.y, make_id)
    log.debug("Placed %s at (%s, %s)", obj.id, obj.x_mm, obj.y_mm)
    return add_object(snapshot, obj, select=True)

"""
object_update.py

Patch application and normalisation for layout objects, plus the small
snapshot edits (add, remove, select, snap options, nudge, rotate).

Every function returns a new value, or the *same* reference when nothing
observably changed.  Callers compare references to decide whether a
history commit or a redraw is needed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional

from geometry.kernel import center_from_top_left, get_object_bounding_box_mm, top_left_from_center
from models import (
    ANCHOR_ORIENTATIONS,
    AUTO,
    DEFAULT_ANCHOR,
    KIND_RAMP,
    MEASUREMENT_KEYS,
    SNAP_INCREMENTS_MM,
    MeasurementAnchor,
    Object2D,
    Snapshot,
    find_object,
    patchable_fields,
)
from utils import round_half_up, snap_mm

log = logging.getLogger(__name__)

ObjectPatch = Mapping[str, Any]


# ----------------------------
# Numeric normalisation
# ----------------------------

def round_mm(value: float) -> int:
    """Round to the nearest whole millimetre."""
    return round_half_up(value)


def clamp_int(value: float, min_value: int, max_value: Optional[int] = None) -> int:
    """
    Round *value* and clamp it into ``[min_value, max_value]``.

    Args:
        value: Raw number.
        min_value: Lower bound, also the result for NaN/infinite input.
        max_value: Optional upper bound.

    Returns:
        The clamped integer.
    """
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return min_value
    rounded = round_half_up(value)
    if max_value is not None:
        rounded = min(max_value, rounded)
    return max(min_value, rounded)


def normalise_deg(value: float) -> int:
    """Round to whole degrees and wrap into ``[0, 360)``."""
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return 0
    return round_half_up(value) % 360


def _position(value: Any, fallback: float) -> int:
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        value = fallback
    return round_mm(value)


# ----------------------------
# Measurement maps
# ----------------------------

def normalise_anchor(current: MeasurementAnchor, value: Any) -> MeasurementAnchor:
    """Merge a (possibly partial) anchor patch onto *current*.

    *value* may be a ``MeasurementAnchor`` or a mapping holding
    ``offset_mm`` and/or ``orientation``.
    """
    if isinstance(value, MeasurementAnchor):
        offset, orientation = value.offset_mm, value.orientation
    elif isinstance(value, Mapping):
        offset = value.get("offset_mm", current.offset_mm)
        orientation = value.get("orientation", current.orientation)
    else:
        offset, orientation = current.offset_mm, current.orientation
    if orientation not in ANCHOR_ORIENTATIONS:
        orientation = AUTO
    return MeasurementAnchor(offset_mm=clamp_int(offset, 0), orientation=orientation)


def merge_measurements(current: Mapping[str, bool], patch: Optional[Mapping[str, Any]]) -> Dict[str, bool]:
    """Key-by-key merge; keys missing from both sides read as ``False``."""
    merged = {key: bool(current.get(key, False)) for key in MEASUREMENT_KEYS}
    if patch:
        for key in MEASUREMENT_KEYS:
            if key in patch:
                merged[key] = bool(patch[key])
    return merged


def merge_anchors(current: Mapping[str, MeasurementAnchor],
                  patch: Optional[Mapping[str, Any]]) -> Dict[str, MeasurementAnchor]:
    """Key-by-key merge; missing keys get the default anchor."""
    merged = {}
    for key in MEASUREMENT_KEYS:
        base = current.get(key)
        if not isinstance(base, MeasurementAnchor):
            base = DEFAULT_ANCHOR
        merged[key] = normalise_anchor(base, patch[key]) if patch and key in patch else normalise_anchor(base, base)
    return merged


# ----------------------------
# Patch pipeline
# ----------------------------

def normalise_object(obj: Object2D) -> Object2D:
    """Return *obj* with every field in canonical form (new instance)."""
    changes: Dict[str, Any] = dict(
        x_mm=_position(obj.x_mm, 0),
        y_mm=_position(obj.y_mm, 0),
        length_mm=clamp_int(obj.length_mm, 0),
        width_mm=clamp_int(obj.width_mm, 0),
        height_mm=clamp_int(obj.height_mm, 0),
        elevation_mm=clamp_int(obj.elevation_mm, 0),
        rotation_deg=normalise_deg(obj.rotation_deg),
        locked=bool(obj.locked),
        measurements=merge_measurements(obj.measurements, None),
        measurement_anchors=merge_anchors(obj.measurement_anchors, None),
    )
    if obj.kind == KIND_RAMP:
        has_left = bool(obj.has_left_wing)
        has_right = bool(obj.has_right_wing)
        changes.update(
            run_mm=changes["length_mm"],
            show_arrow=bool(obj.show_arrow),
            has_left_wing=has_left,
            has_right_wing=has_right,
            left_wing_size_mm=clamp_int(obj.left_wing_size_mm, 0) if has_left else 0,
            right_wing_size_mm=clamp_int(obj.right_wing_size_mm, 0) if has_right else 0,
        )
    return replace(obj, **changes)


def apply_patch(obj: Object2D, patch: ObjectPatch) -> Object2D:
    """
    Apply a partial field patch to *obj* and normalise the result.

    ``measurements`` and ``measurement_anchors`` merge key by key.  ``id``,
    ``kind`` and fields that belong to another kind are ignored.  For a
    ramp, ``run_mm`` is an alias of ``length_mm``; ``length_mm`` wins when a
    patch carries both.

    Args:
        obj: The current object.
        patch: Field name -> new value.

    Returns:
        A new normalised object, or *obj* itself when nothing changed.
    """
    allowed = patchable_fields(obj)
    changes = {
        k: v for k, v in patch.items()
        if k in allowed and k not in ("measurements", "measurement_anchors")
    }
    if obj.kind == KIND_RAMP and "run_mm" in changes and "length_mm" not in changes:
        changes["length_mm"] = changes["run_mm"]
    changes.pop("run_mm", None)

    candidate = replace(
        obj,
        measurements=merge_measurements(obj.measurements, patch.get("measurements")),
        measurement_anchors=merge_anchors(obj.measurement_anchors, patch.get("measurement_anchors")),
        **changes,
    )
    updated = normalise_object(candidate)
    if updated == obj:
        return obj
    return updated


def update_object(snapshot: Snapshot, obj_id: str, patch: ObjectPatch) -> Snapshot:
    """Patch one object inside *snapshot*.

    Returns the same snapshot when *obj_id* is unknown or the patch is a
    no-op.
    """
    for index, target in enumerate(snapshot.objects):
        if target.id == obj_id:
            break
    else:
        return snapshot

    updated = apply_patch(target, patch)
    if updated is target:
        return snapshot

    objects = list(snapshot.objects)
    objects[index] = updated
    return replace(snapshot, objects=tuple(objects))


# ----------------------------
# Snapshot edits
# ----------------------------

def add_object(snapshot: Snapshot, obj: Object2D, select: bool = True) -> Snapshot:
    """Append a normalised copy of *obj*; a duplicate id is a no-op."""
    if find_object(snapshot, obj.id) is not None:
        log.debug("add_object ignored duplicate id %s", obj.id)
        return snapshot
    objects = snapshot.objects + (normalise_object(obj),)
    if select:
        return replace(snapshot, objects=objects, selected_id=obj.id, selected_measurement_key=None)
    return replace(snapshot, objects=objects)


def remove_object(snapshot: Snapshot, obj_id: str) -> Snapshot:
    """Drop *obj_id* and clear the selection if it pointed there."""
    objects = tuple(o for o in snapshot.objects if o.id != obj_id)
    if len(objects) == len(snapshot.objects):
        return snapshot
    if snapshot.selected_id == obj_id:
        return replace(snapshot, objects=objects, selected_id=None, selected_measurement_key=None)
    return replace(snapshot, objects=objects)


def select_object(snapshot: Snapshot, obj_id: Optional[str]) -> Snapshot:
    """Select *obj_id* (``None`` or an unknown id clears the selection)."""
    if obj_id is not None and find_object(snapshot, obj_id) is None:
        obj_id = None
    if snapshot.selected_id == obj_id and snapshot.selected_measurement_key is None:
        return snapshot
    return replace(snapshot, selected_id=obj_id, selected_measurement_key=None)


def select_measurement(snapshot: Snapshot, obj_id: str, key: str) -> Snapshot:
    """Select an object together with one of its measurement keys."""
    if key not in MEASUREMENT_KEYS or find_object(snapshot, obj_id) is None:
        return snapshot
    if snapshot.selected_id == obj_id and snapshot.selected_measurement_key == key:
        return snapshot
    return replace(snapshot, selected_id=obj_id, selected_measurement_key=key)


def reconcile_selection(snapshot: Snapshot) -> Snapshot:
    """Clear a ``selected_id`` that no longer names an object."""
    if snapshot.selected_id is None or find_object(snapshot, snapshot.selected_id) is not None:
        return snapshot
    return replace(snapshot, selected_id=None, selected_measurement_key=None)


def set_snap_options(snapshot: Snapshot, snap_to_grid: Optional[bool] = None,
                     snap_to_objects: Optional[bool] = None,
                     snap_increment_mm: Optional[int] = None) -> Snapshot:
    """Update the snap configuration; an unsupported increment is ignored."""
    changes: Dict[str, Any] = {}
    if snap_to_grid is not None and bool(snap_to_grid) != snapshot.snap_to_grid:
        changes["snap_to_grid"] = bool(snap_to_grid)
    if snap_to_objects is not None and bool(snap_to_objects) != snapshot.snap_to_objects:
        changes["snap_to_objects"] = bool(snap_to_objects)
    if snap_increment_mm is not None and snap_increment_mm != snapshot.snap_increment_mm:
        if snap_increment_mm in SNAP_INCREMENTS_MM:
            changes["snap_increment_mm"] = snap_increment_mm
        else:
            log.debug("Ignoring unsupported snap increment %r", snap_increment_mm)
    if not changes:
        return snapshot
    return replace(snapshot, **changes)


def grid_step(snapshot: Snapshot) -> int:
    """Grid step in mm: the snap increment with grid snap on, else 1mm."""
    return snapshot.snap_increment_mm if snapshot.snap_to_grid else 1


def nudge_object(snapshot: Snapshot, obj_id: str, dx_steps: int, dy_steps: int) -> Snapshot:
    """Move an object by whole keyboard steps (see ``grid_step``)."""
    obj = find_object(snapshot, obj_id)
    if obj is None or obj.locked:
        return snapshot
    step = grid_step(snapshot)
    return update_object(snapshot, obj_id, {
        "x_mm": obj.x_mm + dx_steps * step,
        "y_mm": obj.y_mm + dy_steps * step,
    })


def rotate_object(snapshot: Snapshot, obj_id: str, delta_deg: int = 90) -> Snapshot:
    """
    Rotate an object about its centre.

    With grid snap on, the rotated bounding box's top-left is pulled back
    onto the grid so right-angle turns stay grid aligned.
    """
    obj = find_object(snapshot, obj_id)
    if obj is None or obj.locked:
        return snapshot

    rotated = apply_patch(obj, {"rotation_deg": obj.rotation_deg + delta_deg})
    center = (obj.x_mm, obj.y_mm)
    if snapshot.snap_to_grid:
        box = get_object_bounding_box_mm(rotated)
        left, top = top_left_from_center(center, box)
        step = snapshot.snap_increment_mm
        center = center_from_top_left((snap_mm(left, step), snap_mm(top, step)), box)
    return update_object(snapshot, obj_id, {
        "rotation_deg": rotated.rotation_deg,
        "x_mm": center[0],
        "y_mm": center[1],
    })

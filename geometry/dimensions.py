"""
geometry/dimensions.py

Dimension-line geometry derived from an object's state.

Segments are recomputed on every render and never stored.  Output order is
fixed (``L1, L2, W1, W2, WL, WR, H, E``) so two structurally equal objects
always give identical lists.

Edge dimensions (L1/L2/W1/W2) measure the ramp body without its wings; the
wing spans are dimensioned separately (WL/WR) along the ramp's length axis.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from geometry.kernel import Aabb, axis_aligned_box, is_length_vertical, rotate_point
from models import (
    AUTO,
    HORIZONTAL,
    KIND_RAMP,
    VERTICAL,
    MeasurementAnchor,
    Object2D,
    PointMm,
    RampObj,
)
from settings import DimensionSettings, get_settings
from utils import format_mm, round_half_up

DIMENSION_TICK_LENGTH_MM = 80
DIMENSION_BRACKET_HEIGHT_MM = 160
DIMENSION_BRACKET_SPACING_MM = 60

LENGTH_AXIS = "length"
WIDTH_AXIS = "width"


@dataclass(frozen=True)
class DimensionSegment:
    """One dimension line, wing span or callout, in world millimetres.

    ``anchor_origin_mm`` is the zero-offset point on the measured edge and
    ``anchor_direction_mm`` the outward unit vector; together with
    ``anchor_offset_mm`` they let a renderer drag the line.
    """
    measurement_key: str
    object_id: str
    start_mm: PointMm
    end_mm: PointMm
    orientation: str                    # horizontal | vertical
    label: str
    variant: str                        # length | width | wing | height | elevation
    tick_length_mm: float
    anchor_offset_mm: Optional[float] = None
    anchor_origin_mm: Optional[PointMm] = None
    anchor_direction_mm: Optional[PointMm] = None
    label_position_mm: Optional[PointMm] = None


def _style(style: Optional[DimensionSettings]) -> DimensionSettings:
    return get_settings().settings.dimensions if style is None else style


def get_anchor(obj: Object2D, key: str, style: Optional[DimensionSettings] = None) -> MeasurementAnchor:
    """Anchor for *key*; a missing or malformed entry gives the default."""
    anchor = (obj.measurement_anchors or {}).get(key)
    if not isinstance(anchor, MeasurementAnchor):
        return MeasurementAnchor(offset_mm=_style(style).default_offset_mm, orientation=AUTO)
    return anchor


def is_measurement_on(obj: Object2D, key: str) -> bool:
    return bool((obj.measurements or {}).get(key, False))


def resolve_orientation(anchor: MeasurementAnchor, rotation_deg: float, fallback_axis: str) -> str:
    """
    Resolve an anchor's orientation to ``"horizontal"`` or ``"vertical"``.

    An explicit orientation on the anchor wins.  ``"auto"`` follows the
    object: the length axis is vertical on screen when the rotation is 90
    or 270 degrees, and the width axis is always perpendicular to it.

    Args:
        anchor: The measurement anchor.
        rotation_deg: Object rotation.
        fallback_axis: ``"length"`` or ``"width"``.
    """
    if anchor.orientation in (HORIZONTAL, VERTICAL):
        return anchor.orientation
    length_vertical = is_length_vertical(rotation_deg)
    if fallback_axis == LENGTH_AXIS:
        return VERTICAL if length_vertical else HORIZONTAL
    return HORIZONTAL if length_vertical else VERTICAL


def _midpoint(a: PointMm, b: PointMm) -> PointMm:
    return PointMm((a.x + b.x) / 2, (a.y + b.y) / 2)


# ----------------------------
# Edge dimensions
# ----------------------------

# key -> (axis, variant, side when vertical, side when horizontal)
_EDGE_SPECS: Tuple[Tuple[str, str, str, str, str], ...] = (
    ("L1", LENGTH_AXIS, "length", "left", "top"),
    ("L2", LENGTH_AXIS, "length", "right", "bottom"),
    ("W1", WIDTH_AXIS, "width", "left", "top"),
    ("W2", WIDTH_AXIS, "width", "right", "bottom"),
)


def _edge_segment(obj: Object2D, key: str, variant: str, orientation: str, side: str,
                  box: Aabb, anchor: MeasurementAnchor, tick: float) -> DimensionSegment:
    offset = max(anchor.offset_mm, 0)
    if orientation == VERTICAL:
        sign = -1 if side == "left" else 1
        edge_x = box.left if side == "left" else box.right
        x = edge_x + sign * offset
        start, end = PointMm(x, box.top), PointMm(x, box.bottom)
        origin = PointMm(edge_x, box.cy)
        direction = PointMm(sign, 0)
        extent = box.bottom - box.top
    else:
        sign = -1 if side == "top" else 1
        edge_y = box.top if side == "top" else box.bottom
        y = edge_y + sign * offset
        start, end = PointMm(box.left, y), PointMm(box.right, y)
        origin = PointMm(box.cx, edge_y)
        direction = PointMm(0, sign)
        extent = box.right - box.left
    return DimensionSegment(
        measurement_key=key,
        object_id=obj.id,
        start_mm=start,
        end_mm=end,
        orientation=orientation,
        label=format_mm(extent),
        variant=variant,
        tick_length_mm=tick,
        anchor_offset_mm=offset,
        anchor_origin_mm=origin,
        anchor_direction_mm=direction,
        label_position_mm=_midpoint(start, end),
    )


def build_edge_segments(obj: Object2D, style: Optional[DimensionSettings] = None) -> List[DimensionSegment]:
    """L1/L2/W1/W2 segments for the enabled keys, in that order."""
    style = _style(style)
    box = axis_aligned_box(obj, include_wings=False)
    segments = []
    for key, axis, variant, vertical_side, horizontal_side in _EDGE_SPECS:
        if not is_measurement_on(obj, key):
            continue
        anchor = get_anchor(obj, key, style)
        orientation = resolve_orientation(anchor, obj.rotation_deg, axis)
        side = vertical_side if orientation == VERTICAL else horizontal_side
        segments.append(_edge_segment(obj, key, variant, orientation, side, box, anchor,
                                      style.tick_length_mm))
    return segments


# ----------------------------
# Wing spans
# ----------------------------

def build_wing_segment(ramp: RampObj, side: str,
                       style: Optional[DimensionSettings] = None) -> Optional[DimensionSegment]:
    """
    WL/WR span from the body edge to the wing tip at the far end of the run.

    The line is pushed out along the ramp's length axis by the anchor offset.
    Returns ``None`` unless the wing is enabled, non-empty and toggled on.
    """
    style = _style(style)
    if side == "left":
        key, has_wing, size, direction = "WL", ramp.has_left_wing, ramp.left_wing_size_mm, -1
    else:
        key, has_wing, size, direction = "WR", ramp.has_right_wing, ramp.right_wing_size_mm, 1

    if not has_wing or size <= 0 or not is_measurement_on(ramp, key):
        return None

    orientation = HORIZONTAL if is_length_vertical(ramp.rotation_deg) else VERTICAL
    anchor = get_anchor(ramp, key, style)
    offset = max(anchor.offset_mm, 0)

    half_run = ramp.run_mm / 2
    half_width = ramp.width_mm / 2
    base = rotate_point((half_run, direction * half_width), ramp.rotation_deg)
    tip = rotate_point((half_run, direction * (half_width + size)), ramp.rotation_deg)
    length_dir = rotate_point((1.0, 0.0), ramp.rotation_deg)

    origin = PointMm(ramp.x_mm + base.x, ramp.y_mm + base.y)
    start = PointMm(origin.x + length_dir.x * offset, origin.y + length_dir.y * offset)
    tip_world = PointMm(ramp.x_mm + tip.x + length_dir.x * offset,
                        ramp.y_mm + tip.y + length_dir.y * offset)
    if orientation == HORIZONTAL:
        end = PointMm(tip_world.x, start.y)
    else:
        end = PointMm(start.x, tip_world.y)

    return DimensionSegment(
        measurement_key=key,
        object_id=ramp.id,
        start_mm=start,
        end_mm=end,
        orientation=orientation,
        label=format_mm(size),
        variant="wing",
        tick_length_mm=style.tick_length_mm,
        anchor_offset_mm=offset,
        anchor_origin_mm=origin,
        anchor_direction_mm=length_dir,
        label_position_mm=_midpoint(start, end),
    )


# ----------------------------
# Callouts
# ----------------------------

def build_height_callout(obj: Object2D, style: Optional[DimensionSettings] = None) -> Optional[DimensionSegment]:
    """
    H: a leader out of the object's centre line, as long as the anchor offset.

    Vertical (the default) leaves the top edge upwards on the vertical
    centre line; horizontal leaves the right edge on the horizontal one.
    """
    if not is_measurement_on(obj, "H"):
        return None
    style = _style(style)
    box = axis_aligned_box(obj)
    anchor = get_anchor(obj, "H", style)
    orientation = anchor.orientation if anchor.orientation in (HORIZONTAL, VERTICAL) else VERTICAL
    offset = max(anchor.offset_mm, 0)

    if orientation == VERTICAL:
        start = PointMm(box.cx, box.top)
        direction = PointMm(0, -1)
    else:
        start = PointMm(box.right, box.cy)
        direction = PointMm(1, 0)
    end = PointMm(start.x + direction.x * offset, start.y + direction.y * offset)

    return DimensionSegment(
        measurement_key="H",
        object_id=obj.id,
        start_mm=start,
        end_mm=end,
        orientation=orientation,
        label=f"H {format_mm(obj.height_mm)}",
        variant="height",
        tick_length_mm=0,
        anchor_offset_mm=offset,
        anchor_origin_mm=start,
        anchor_direction_mm=direction,
        label_position_mm=end,
    )


def build_elevation_bracket(obj: Object2D, style: Optional[DimensionSettings] = None) -> Optional[DimensionSegment]:
    """E: a vertical bracket rising from the top-left corner, left of the object.

    Nothing is drawn for an object sitting at elevation 0.
    """
    if not is_measurement_on(obj, "E") or obj.elevation_mm <= 0:
        return None
    style = _style(style)
    box = axis_aligned_box(obj)
    anchor = get_anchor(obj, "E", style)
    anchor_offset = max(anchor.offset_mm, 0)
    offset = anchor_offset / 2 + style.bracket_spacing_mm

    start = PointMm(box.left - offset, box.top)
    end = PointMm(box.left - offset, box.top - style.bracket_height_mm)
    return DimensionSegment(
        measurement_key="E",
        object_id=obj.id,
        start_mm=start,
        end_mm=end,
        orientation=VERTICAL,
        label=f"E {format_mm(obj.elevation_mm)}",
        variant="elevation",
        tick_length_mm=style.tick_length_mm,
        anchor_offset_mm=anchor_offset,
        anchor_origin_mm=PointMm(box.left, box.top),
        anchor_direction_mm=PointMm(-1, 0),
        label_position_mm=_midpoint(start, end),
    )


# ----------------------------
# Public entry points
# ----------------------------

def generate_dimensions_for_object(obj: Object2D,
                                   style: Optional[DimensionSettings] = None) -> List[DimensionSegment]:
    """All enabled segments of one object, in ``L1..W2, WL, WR, H, E`` order."""
    style = _style(style)
    segments = build_edge_segments(obj, style)
    if obj.kind == KIND_RAMP:
        for side in ("left", "right"):
            wing = build_wing_segment(obj, side, style)
            if wing is not None:
                segments.append(wing)
    height = build_height_callout(obj, style)
    if height is not None:
        segments.append(height)
    elevation = build_elevation_bracket(obj, style)
    if elevation is not None:
        segments.append(elevation)
    return segments


def generate_dimensions(objects: Iterable[Object2D],
                        style: Optional[DimensionSettings] = None) -> List[DimensionSegment]:
    """Segments for every object, object by object in the given order."""
    style = _style(style)
    return [segment for obj in objects for segment in generate_dimensions_for_object(obj, style)]


def anchor_offset_from_point(segment: DimensionSegment, point: Tuple[float, float],
                             style: Optional[DimensionSettings] = None) -> int:
    """
    Turn a dragged pointer position back into an anchor offset for *segment*.

    The pointer is projected onto the segment's outward direction; the
    elevation bracket's half-offset plus spacing is undone.  The result is
    a whole, non-negative number of millimetres.
    """
    if segment.anchor_origin_mm is None or segment.anchor_direction_mm is None:
        return int(segment.anchor_offset_mm or 0)
    origin, direction = segment.anchor_origin_mm, segment.anchor_direction_mm
    projected = (point[0] - origin.x) * direction.x + (point[1] - origin.y) * direction.y
    if segment.variant == "elevation":
        projected = (projected - _style(style).bracket_spacing_mm) * 2
    return max(0, round_half_up(projected))

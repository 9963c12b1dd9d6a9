"""
geometry package

Rotation, bounding boxes, dimension lines and ramp slope in millimetres.
"""

from geometry.kernel import (
    Aabb,
    BoundingBox,
    axis_aligned_box,
    center_from_top_left,
    get_object_bounding_box_mm,
    is_length_vertical,
    points_of_interest,
    rotate_point,
    top_left_from_center,
)
from geometry.dimensions import (
    DimensionSegment,
    anchor_offset_from_point,
    generate_dimensions,
    generate_dimensions_for_object,
    resolve_orientation,
)
from geometry.slope import RampSlope, compute_ramp_slope

__all__ = [
    "Aabb",
    "BoundingBox",
    "axis_aligned_box",
    "center_from_top_left",
    "get_object_bounding_box_mm",
    "is_length_vertical",
    "points_of_interest",
    "rotate_point",
    "top_left_from_center",
    "DimensionSegment",
    "anchor_offset_from_point",
    "generate_dimensions",
    "generate_dimensions_for_object",
    "resolve_orientation",
    "RampSlope",
    "compute_ramp_slope",
]

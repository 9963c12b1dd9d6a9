"""
snapping package

Grid and object snapping for placing, moving and corner-resizing objects.
"""

from snapping.engine import (
    EMPTY_GUIDE,
    FACE,
    POI,
    SNAP_THRESHOLD_MM,
    SnapGuide,
    SnapResult,
    place_object,
    snap_move,
    snap_placement,
)
from snapping.resize import MIN_RESIZE_MM, ResizeResult, handle_position, resize_from_corner

__all__ = [
    "EMPTY_GUIDE",
    "FACE",
    "POI",
    "SNAP_THRESHOLD_MM",
    "SnapGuide",
    "SnapResult",
    "place_object",
    "snap_move",
    "snap_placement",
    "MIN_RESIZE_MM",
    "ResizeResult",
    "handle_position",
    "resize_from_corner",
]

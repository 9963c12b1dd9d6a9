"""
utils.py

Unit helpers for the ramp & landing layout core.

All core geometry is in millimetres.  The pixel helpers exist for callers
that draw at the fixed canvas ratio; nothing in the core converts to pixels.
"""

from __future__ import annotations

import math

MM_PER_PX = 10

GRID_STEP_MM = 100


def mm_to_px(mm: float) -> float:
    """Convert millimetres to canvas pixels at the fixed ratio."""
    return mm / MM_PER_PX


def px_to_mm(px: float) -> float:
    """Convert canvas pixels to millimetres at the fixed ratio."""
    return px * MM_PER_PX


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity.

    Unlike ``round``, halves never go to the even neighbour: 0.5 -> 1,
    -0.5 -> 0, 2.5 -> 3.
    """
    return int(math.floor(value + 0.5))


def snap_mm(mm: float, step_mm: float = GRID_STEP_MM) -> float:
    """
    Round a coordinate to the nearest multiple of *step_mm*.

    Args:
        mm: Coordinate in millimetres.
        step_mm: Grid step; values <= 0 fall back to 1mm.

    Returns:
        The snapped coordinate (an integer-valued number of millimetres).
    """
    if step_mm <= 0:
        step_mm = 1
    return round_half_up(mm / step_mm) * step_mm


def format_mm(value_mm: float) -> str:
    """Format a length for a dimension label, e.g. ``'1000mm'``."""
    return f"{round_half_up(value_mm)}mm"

"""
geometry/slope.py

Gradient readout for a ramp's run and rise.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class RampSlope:
    gradient_deg: float
    gradient_text: str   # e.g. "4.76°"
    ratio_text: str      # e.g. "1 : 12"


def _format_ratio(ratio_n: float) -> str:
    nearest = round(ratio_n)
    if abs(ratio_n - nearest) < 0.01:
        return str(int(nearest))
    return f"{ratio_n:.2f}"


def compute_ramp_slope(length_mm: float, height_mm: float) -> RampSlope:
    """
    Compute the gradient of a ramp rising *height_mm* over *length_mm*.

    Args:
        length_mm: Horizontal run.
        height_mm: Total rise.

    Returns:
        RampSlope; a flat or degenerate ramp gives ``0``, ``"0.00°"`` and ``"-"``.
    """
    if height_mm <= 0 or length_mm <= 0:
        return RampSlope(gradient_deg=0.0, gradient_text="0.00°", ratio_text="-")

    gradient_deg = math.degrees(math.atan(height_mm / length_mm))
    ratio_n = length_mm / height_mm
    return RampSlope(
        gradient_deg=gradient_deg,
        gradient_text=f"{gradient_deg:.2f}°",
        ratio_text=f"1 : {_format_ratio(ratio_n)}",
    )

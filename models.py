"""
models.py

Data models and constants for the ramp & landing layout core.

Objects and snapshots are frozen dataclasses.  Nothing in the core mutates
them in place; edits build new values with ``dataclasses.replace`` so that
references held by the undo history stay valid.
"""

from __future__ import annotations

import itertools
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, NamedTuple, Optional, Tuple, Union

from utils import round_half_up


# ----------------------------
# Points
# ----------------------------

class PointMm(NamedTuple):
    """A point or vector in millimetres."""
    x: float
    y: float


# ----------------------------
# Measurements
# ----------------------------

# Near/far length edge, near/far width edge, left/right wing span,
# height callout, elevation callout.  Order is the dimension output order.
MEASUREMENT_KEYS: Tuple[str, ...] = ("L1", "L2", "W1", "W2", "WL", "WR", "H", "E")

HORIZONTAL = "horizontal"
VERTICAL = "vertical"
AUTO = "auto"
ANCHOR_ORIENTATIONS: Tuple[str, ...] = (HORIZONTAL, VERTICAL, AUTO)

DEFAULT_MEASUREMENT_OFFSET_MM = 200


@dataclass(frozen=True)
class MeasurementAnchor:
    """Where a measurement's dimension line is drawn relative to its object."""
    offset_mm: float = DEFAULT_MEASUREMENT_OFFSET_MM
    orientation: str = AUTO   # horizontal | vertical | auto


DEFAULT_ANCHOR = MeasurementAnchor()


def default_measurements() -> Dict[str, bool]:
    """Visibility toggles for a freshly placed object: the four edges only."""
    return {key: key in ("L1", "L2", "W1", "W2") for key in MEASUREMENT_KEYS}


def default_anchors() -> Dict[str, MeasurementAnchor]:
    return {key: MeasurementAnchor() for key in MEASUREMENT_KEYS}


# ----------------------------
# Object kinds
# ----------------------------

KIND_RAMP = "ramp"
KIND_LANDING = "landing"

# Older project files call a landing a "platform".
KIND_ALIAS_MAP: Dict[str, str] = {
    "ramp":     KIND_RAMP,
    "landing":  KIND_LANDING,
    "platform": KIND_LANDING,
}


def resolve_kind_alias(kind: str, fallback: Optional[str] = None) -> Optional[str]:
    """Resolve a stored kind name to a supported object kind.

    Args:
        kind: The kind string as found in a document (e.g. ``'platform'``).
        fallback: Kind to return if no alias match.  Defaults to ``None``.

    Returns:
        ``'ramp'``, ``'landing'``, or *fallback*.
    """
    return KIND_ALIAS_MAP.get(kind, fallback)


# Defaults used by the placement factories
DEFAULT_RAMP_RUN_MM = 1800
DEFAULT_RAMP_WIDTH_MM = 1000
DEFAULT_RAMP_HEIGHT_MM = 300
DEFAULT_LANDING_LENGTH_MM = 1200
DEFAULT_LANDING_WIDTH_MM = 1200
DEFAULT_LANDING_HEIGHT_MM = 50


@dataclass(frozen=True)
class _BaseObj:
    """Fields shared by every object kind.

    ``x_mm``/``y_mm`` is the centre of the (unrotated) body.  Geometry,
    snapping and dimensioning dispatch on ``kind``; the class split only
    exists to hold the kind-specific fields.
    """
    id: str
    kind: str = ""
    x_mm: float = 0
    y_mm: float = 0
    length_mm: int = 0
    width_mm: int = 0
    height_mm: int = 0
    elevation_mm: int = 0
    rotation_deg: int = 0
    locked: bool = False
    measurements: Dict[str, bool] = field(default_factory=default_measurements)
    measurement_anchors: Dict[str, MeasurementAnchor] = field(default_factory=default_anchors)


@dataclass(frozen=True)
class RampObj(_BaseObj):
    kind: str = KIND_RAMP
    run_mm: int = 0             # mirrors length_mm
    show_arrow: bool = True
    has_left_wing: bool = False
    left_wing_size_mm: int = 0
    has_right_wing: bool = False
    right_wing_size_mm: int = 0


@dataclass(frozen=True)
class LandingObj(_BaseObj):
    kind: str = KIND_LANDING


Object2D = Union[RampObj, LandingObj]

BASE_FIELDS: Tuple[str, ...] = (
    "x_mm", "y_mm", "length_mm", "width_mm", "height_mm", "elevation_mm",
    "rotation_deg", "locked", "measurements", "measurement_anchors",
)
RAMP_FIELDS: Tuple[str, ...] = BASE_FIELDS + (
    "run_mm", "show_arrow", "has_left_wing", "left_wing_size_mm",
    "has_right_wing", "right_wing_size_mm",
)


def patchable_fields(obj: Object2D) -> Tuple[str, ...]:
    """Field names an ObjectPatch may set on *obj* (``id``/``kind`` never)."""
    return RAMP_FIELDS if obj.kind == KIND_RAMP else BASE_FIELDS


# ----------------------------
# Tools
# ----------------------------

class Tool:
    """Active tool constants."""
    NONE = "none"
    RAMP = "ramp"
    LANDING = "landing"
    DELETE = "delete"


# ----------------------------
# Snapshot
# ----------------------------

SNAP_INCREMENTS_MM: Tuple[int, ...] = (1, 10, 100, 1000)


@dataclass(frozen=True)
class Snapshot:
    """Everything the undo history records for one editing state.

    ``selected_id`` should reference an object in ``objects``; a dangling id
    is read as "no selection" (see ``selected_object``).
    """
    objects: Tuple[Object2D, ...] = ()
    selected_id: Optional[str] = None
    selected_measurement_key: Optional[str] = None
    snap_to_grid: bool = True
    snap_to_objects: bool = True
    snap_increment_mm: int = 100


def find_object(snapshot: Snapshot, obj_id: Optional[str]) -> Optional[Object2D]:
    """Return the object with *obj_id*, or ``None``."""
    if obj_id is None:
        return None
    for obj in snapshot.objects:
        if obj.id == obj_id:
            return obj
    return None


def selected_object(snapshot: Snapshot) -> Optional[Object2D]:
    """Return the selected object; a dangling ``selected_id`` gives ``None``."""
    return find_object(snapshot, snapshot.selected_id)


# ----------------------------
# Id generation
# ----------------------------

IdSource = Callable[[str], str]


def uuid_ids(prefix: str) -> str:
    """Default id source: ``<prefix>-<uuid4>``."""
    return f"{prefix}-{uuid.uuid4()}"


class CounterIds:
    """Deterministic id source producing ``<prefix>-1``, ``<prefix>-2``, ...

    The counter is shared across prefixes so ids stay unique.
    """

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def __call__(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter)}"


# ----------------------------
# Factories
# ----------------------------

def new_ramp_at(x_mm: float, y_mm: float, make_id: IdSource = uuid_ids) -> RampObj:
    """Create a default ramp centred at (x_mm, y_mm)."""
    return RampObj(
        id=make_id(KIND_RAMP),
        x_mm=round_half_up(x_mm),
        y_mm=round_half_up(y_mm),
        length_mm=DEFAULT_RAMP_RUN_MM,
        width_mm=DEFAULT_RAMP_WIDTH_MM,
        height_mm=DEFAULT_RAMP_HEIGHT_MM,
        run_mm=DEFAULT_RAMP_RUN_MM,
    )


def new_landing_at(x_mm: float, y_mm: float, make_id: IdSource = uuid_ids) -> LandingObj:
    """Create a default landing centred at (x_mm, y_mm)."""
    return LandingObj(
        id=make_id(KIND_LANDING),
        x_mm=round_half_up(x_mm),
        y_mm=round_half_up(y_mm),
        length_mm=DEFAULT_LANDING_LENGTH_MM,
        width_mm=DEFAULT_LANDING_WIDTH_MM,
        height_mm=DEFAULT_LANDING_HEIGHT_MM,
    )


def new_object(tool: str, x_mm: float, y_mm: float, make_id: IdSource = uuid_ids) -> Object2D:
    """Create the object a placement tool drops at (x_mm, y_mm).

    Raises:
        ValueError: if *tool* does not place objects.
    """
    if tool == Tool.RAMP:
        return new_ramp_at(x_mm, y_mm, make_id)
    if tool == Tool.LANDING:
        return new_landing_at(x_mm, y_mm, make_id)
    raise ValueError(f"Tool {tool!r} does not place objects")

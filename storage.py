"""
storage.py

Project persistence: PersistedProject <-> plain dict, the JSON file
envelope, and a debounced writer driven by a Qt single-shot timer.

File layout::

    {
      "schemaVersion": 1,
      "savedAt": <epoch milliseconds>,
      "data": {"mode": "2d", "activeTool": "none", "objects": [...], ...}
    }

Wire keys are camelCase (``xMm``, ``measurementAnchors``, ``offsetMm``).
Loading never raises: a missing, unreadable or invalid file gives ``None``,
and objects that fail validation are dropped individually.
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jsonschema import ValidationError
from PyQt6.QtCore import QObject, QTimer

from models import (
    DEFAULT_LANDING_HEIGHT_MM,
    DEFAULT_LANDING_LENGTH_MM,
    DEFAULT_LANDING_WIDTH_MM,
    DEFAULT_RAMP_HEIGHT_MM,
    DEFAULT_RAMP_RUN_MM,
    DEFAULT_RAMP_WIDTH_MM,
    KIND_LANDING,
    KIND_RAMP,
    MEASUREMENT_KEYS,
    SNAP_INCREMENTS_MM,
    LandingObj,
    MeasurementAnchor,
    Object2D,
    RampObj,
    Snapshot,
    Tool,
    default_measurements,
    resolve_kind_alias,
)
from object_update import merge_anchors, normalise_object, reconcile_selection
from schemas import check_document, validate_object
from settings import get_settings

log = logging.getLogger(__name__)

SCHEMA_VERSION = 1

MODE_2D = "2d"
MODE_3D = "3d"

_TOOLS = (Tool.NONE, Tool.RAMP, Tool.LANDING, Tool.DELETE)

# kind -> (length, width, height) for fields a saved object omits
_SIZE_DEFAULTS = {
    KIND_RAMP: (DEFAULT_RAMP_RUN_MM, DEFAULT_RAMP_WIDTH_MM, DEFAULT_RAMP_HEIGHT_MM),
    KIND_LANDING: (DEFAULT_LANDING_LENGTH_MM, DEFAULT_LANDING_WIDTH_MM, DEFAULT_LANDING_HEIGHT_MM),
}

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class PersistedProject:
    """What a session saves: view mode, active tool and the editing snapshot."""
    mode: str = MODE_2D
    active_tool: str = Tool.NONE
    snapshot: Snapshot = field(default_factory=Snapshot)


# ----------------------------
# Objects
# ----------------------------

def _anchor_to_dict(anchor: MeasurementAnchor) -> Dict[str, Any]:
    return {"offsetMm": anchor.offset_mm, "orientation": anchor.orientation}


def object_to_dict(obj: Object2D) -> Dict[str, Any]:
    """Serialise one object with camelCase keys."""
    data: Dict[str, Any] = {
        "id": obj.id,
        "kind": obj.kind,
        "xMm": obj.x_mm,
        "yMm": obj.y_mm,
        "lengthMm": obj.length_mm,
        "widthMm": obj.width_mm,
        "heightMm": obj.height_mm,
        "elevationMm": obj.elevation_mm,
        "rotationDeg": obj.rotation_deg,
        "locked": obj.locked,
        "measurements": {key: bool(obj.measurements.get(key, False)) for key in MEASUREMENT_KEYS},
        "measurementAnchors": {
            key: _anchor_to_dict(anchor) for key, anchor in obj.measurement_anchors.items()
        },
    }
    if obj.kind == KIND_RAMP:
        data.update(
            runMm=obj.run_mm,
            showArrow=obj.show_arrow,
            hasLeftWing=obj.has_left_wing,
            leftWingSizeMm=obj.left_wing_size_mm,
            hasRightWing=obj.has_right_wing,
            rightWingSizeMm=obj.right_wing_size_mm,
        )
    return data


def object_from_dict(value: Any) -> Optional[Object2D]:
    """
    Build a normalised object from its serialised form.

    Missing optional fields take the factory defaults; a ramp without
    ``lengthMm`` falls back to ``runMm``.

    Args:
        value: One entry of a project's ``objects`` list.

    Returns:
        The object, or ``None`` when the entry fails validation.
    """
    ok, errors = validate_object(value)
    if not ok:
        log.warning("Dropping invalid object: %s", "; ".join(errors))
        return None

    kind = resolve_kind_alias(value["kind"])
    measurements = default_measurements()
    measurements.update(value.get("measurements", {}))
    anchors = merge_anchors({}, {
        key: {"offset_mm": raw.get("offsetMm", 200), "orientation": raw.get("orientation", "auto")}
        for key, raw in value.get("measurementAnchors", {}).items()
    })

    common = dict(
        id=value["id"],
        x_mm=value["xMm"],
        y_mm=value["yMm"],
        width_mm=value.get("widthMm"),
        height_mm=value.get("heightMm"),
        elevation_mm=value.get("elevationMm", 0),
        rotation_deg=value.get("rotationDeg", 0),
        locked=value.get("locked", False),
        measurements=measurements,
        measurement_anchors=anchors,
    )

    if kind == KIND_RAMP:
        length = value.get("lengthMm", value.get("runMm"))
        obj: Object2D = RampObj(
            **_with_defaults(common, length, KIND_RAMP),
            show_arrow=value.get("showArrow", True),
            has_left_wing=value.get("hasLeftWing", False),
            left_wing_size_mm=value.get("leftWingSizeMm", 0),
            has_right_wing=value.get("hasRightWing", False),
            right_wing_size_mm=value.get("rightWingSizeMm", 0),
        )
    else:
        obj = LandingObj(**_with_defaults(common, value.get("lengthMm"), KIND_LANDING))
    return normalise_object(obj)


def _with_defaults(common: Dict[str, Any], length: Optional[float], kind: str) -> Dict[str, Any]:
    defaults = _SIZE_DEFAULTS[kind]
    fields = dict(common)
    fields["length_mm"] = defaults[0] if length is None else length
    if fields["width_mm"] is None:
        fields["width_mm"] = defaults[1]
    if fields["height_mm"] is None:
        fields["height_mm"] = defaults[2]
    return fields


# ----------------------------
# Projects
# ----------------------------

def project_to_dict(project: PersistedProject) -> Dict[str, Any]:
    """Serialise the ``data`` part of a saved project."""
    snapshot = project.snapshot
    return {
        "mode": project.mode,
        "activeTool": project.active_tool,
        "snapToGrid": snapshot.snap_to_grid,
        "snapToObjects": snapshot.snap_to_objects,
        "snapIncrementMm": snapshot.snap_increment_mm,
        "objects": [object_to_dict(obj) for obj in snapshot.objects],
        "selectedId": snapshot.selected_id,
        "selectedMeasurementKey": snapshot.selected_measurement_key,
    }


def project_from_dict(data: Dict[str, Any]) -> PersistedProject:
    """
    Rebuild a project from its (already envelope-validated) ``data`` part.

    Invalid objects and duplicate ids are dropped; a ``selectedId`` that
    no longer names an object becomes ``None``.
    """
    objects: List[Object2D] = []
    seen = set()
    for raw in data.get("objects", []):
        obj = object_from_dict(raw)
        if obj is None or obj.id in seen:
            continue
        seen.add(obj.id)
        objects.append(obj)

    snap = get_settings().settings.snap
    increment = data.get("snapIncrementMm", snap.default_increment_mm)
    if increment not in SNAP_INCREMENTS_MM:
        increment = 100
    snapshot = Snapshot(
        objects=tuple(objects),
        selected_id=data.get("selectedId"),
        selected_measurement_key=data.get("selectedMeasurementKey"),
        snap_to_grid=data.get("snapToGrid", snap.snap_to_grid),
        snap_to_objects=data.get("snapToObjects", snap.snap_to_objects),
        snap_increment_mm=increment,
    )
    snapshot = reconcile_selection(snapshot)

    tool = data.get("activeTool", Tool.NONE)
    tool = resolve_kind_alias(tool, tool)
    if tool not in _TOOLS:
        tool = Tool.NONE
    return PersistedProject(mode=data.get("mode", MODE_2D), active_tool=tool, snapshot=snapshot)


# ----------------------------
# Files
# ----------------------------

def save_project(path: PathLike, project: PersistedProject, saved_at_ms: Optional[int] = None) -> bool:
    """
    Write *project* to *path* inside the versioned envelope.

    The file is written next to its target and renamed into place, so a
    failed write leaves the previous file intact.

    Args:
        path: Destination file; parent directories are created.
        project: The project to save.
        saved_at_ms: Timestamp override (epoch ms); defaults to now.

    Returns:
        True on success, False if the write failed (the error is logged).
    """
    path = Path(path)
    envelope = {
        "schemaVersion": SCHEMA_VERSION,
        "savedAt": int(time.time() * 1000) if saved_at_ms is None else saved_at_ms,
        "data": project_to_dict(project),
    }
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(envelope, f, indent=2)
        os.replace(tmp_path, path)
    except OSError as e:
        log.warning("Failed to persist project to %s: %s", path, e)
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            log.debug("Could not remove %s", tmp_path)
        return False
    return True


def load_project(path: PathLike) -> Optional[PersistedProject]:
    """Read a project saved by ``save_project``.

    Returns:
        The project, or ``None`` for a missing, unreadable, unparseable or
        schema-invalid file (including a different ``schemaVersion``).
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        log.warning("Failed to restore project from %s: %s", path, e)
        return None

    try:
        check_document(document)
    except ValidationError as e:
        log.warning("Ignoring project file %s: %s", path, e.message)
        return None

    return project_from_dict(document["data"])


# ----------------------------
# Debounced writer
# ----------------------------

class DebouncedProjectWriter(QObject):
    """Coalesces rapid project changes into one delayed write.

    Every ``schedule`` restarts the timer; only the latest project is
    written.  Failures are logged by ``save_project`` and never reach the
    caller.

    Args:
        path: Project file; ``None`` uses the settings' project path.
        delay_ms: Debounce interval; ``None`` reads settings (200ms).
        parent: Optional Qt parent.
    """

    def __init__(self, path: Optional[PathLike] = None, delay_ms: Optional[int] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        settings = get_settings()
        self.path = Path(path) if path is not None else settings.get_project_path()
        if delay_ms is None:
            delay_ms = settings.settings.storage.debounce_ms
        self._pending: Optional[PersistedProject] = None
        self.last_write_ok: Optional[bool] = None

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(delay_ms)
        self._timer.timeout.connect(self.flush)

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def schedule(self, project: PersistedProject) -> None:
        """Queue *project* for writing, cancelling any earlier pending write."""
        self._pending = project
        self._timer.start()

    def flush(self) -> None:
        """Write the pending project now, if there is one."""
        self._timer.stop()
        project, self._pending = self._pending, None
        if project is None:
            return
        self.last_write_ok = save_project(self.path, project)

    def cancel(self) -> None:
        """Drop the pending write (teardown)."""
        self._timer.stop()
        self._pending = None

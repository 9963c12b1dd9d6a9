"""
gesture.py

Pointer gesture state machine on top of the history log.

    IDLE --begin_drag--> DRAGGING --end/cancel--> IDLE
    IDLE --begin_resize--> RESIZING --end/cancel--> IDLE
    IDLE --begin_pan--> PANNING --end/cancel--> IDLE

Drags and resizes stream ``replace_present`` calls, one per pointer move,
and record a single undo step on ``end()``.  ``cancel()`` puts back the
snapshot captured when the gesture began.  Panning never touches history.

All pointer positions are world millimetres; converting from screen
pixels is the caller's job.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from history import HistoryState, commit_snapshot, replace_present
from models import Object2D, PointMm, Snapshot, find_object
from object_update import update_object
from snapping.engine import EMPTY_GUIDE, SnapGuide, snap_move
from snapping.resize import HANDLE_SIGNS, handle_position, resize_from_corner

log = logging.getLogger(__name__)


class GestureState:
    """Gesture state constants."""
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"
    PANNING = "panning"


class GestureController:
    """Turns pointer events into history transitions.

    Args:
        history: Initial history; the controller owns ``self.history`` from
            then on and callers read it back after each call.
    """

    def __init__(self, history: HistoryState):
        self.history = history
        self.state = GestureState.IDLE
        self.guide: SnapGuide = EMPTY_GUIDE
        self.pan_offset_mm = PointMm(0, 0)

        self._start: Optional[Snapshot] = None
        self._target: Optional[Object2D] = None
        self._handle: Optional[str] = None
        self._grab_offset = PointMm(0, 0)
        self._pan_origin = PointMm(0, 0)
        self._pan_base = PointMm(0, 0)

    @property
    def is_idle(self) -> bool:
        return self.state == GestureState.IDLE

    @property
    def target_id(self) -> Optional[str]:
        return self._target.id if self._target is not None else None

    # ----------------------------
    # Begin
    # ----------------------------

    def _grab(self, obj_id: str) -> Optional[Object2D]:
        if not self.is_idle:
            log.debug("Ignoring gesture start while %s", self.state)
            return None
        obj = find_object(self.history.present, obj_id)
        if obj is None or obj.locked:
            return None
        return obj

    def begin_drag(self, obj_id: str, pointer: Tuple[float, float]) -> bool:
        """Start moving *obj_id*; the pointer keeps its offset from the centre.

        Returns:
            False (and stays idle) for an unknown or locked object.
        """
        obj = self._grab(obj_id)
        if obj is None:
            return False
        self._start = self.history.present
        self._target = obj
        self._grab_offset = PointMm(pointer[0] - obj.x_mm, pointer[1] - obj.y_mm)
        self.state = GestureState.DRAGGING
        log.debug("Drag start %s", obj_id)
        return True

    def begin_resize(self, obj_id: str, handle: str, pointer: Tuple[float, float]) -> bool:
        """Start resizing *obj_id* from corner *handle*.

        Raises:
            ValueError: if *handle* is not a corner name.
        """
        if handle not in HANDLE_SIGNS:
            raise ValueError(f"Unknown resize handle: {handle!r}")
        obj = self._grab(obj_id)
        if obj is None:
            return False
        corner = handle_position(obj, handle)
        self._start = self.history.present
        self._target = obj
        self._handle = handle
        self._grab_offset = PointMm(pointer[0] - corner.x, pointer[1] - corner.y)
        self.state = GestureState.RESIZING
        log.debug("Resize start %s (%s)", obj_id, handle)
        return True

    def begin_pan(self, pointer: Tuple[float, float]) -> bool:
        if not self.is_idle:
            return False
        self._pan_origin = PointMm(*pointer)
        self._pan_base = self.pan_offset_mm
        self.state = GestureState.PANNING
        return True

    # ----------------------------
    # Move
    # ----------------------------

    def update(self, pointer: Tuple[float, float]) -> HistoryState:
        """Feed one pointer move; returns the (possibly unchanged) history."""
        if self.state == GestureState.DRAGGING:
            self._update_drag(pointer)
        elif self.state == GestureState.RESIZING:
            self._update_resize(pointer)
        elif self.state == GestureState.PANNING:
            self.pan_offset_mm = PointMm(
                self._pan_base.x + pointer[0] - self._pan_origin.x,
                self._pan_base.y + pointer[1] - self._pan_origin.y,
            )
        return self.history

    def _update_drag(self, pointer: Tuple[float, float]) -> None:
        proposed = (pointer[0] - self._grab_offset.x, pointer[1] - self._grab_offset.y)
        result = snap_move(self._start, self._target, proposed)
        preview = update_object(self._start, self._target.id, {"x_mm": result.center.x, "y_mm": result.center.y})
        self.history = replace_present(self.history, preview)
        self.guide = result.guide

    def _update_resize(self, pointer: Tuple[float, float]) -> None:
        corner = (pointer[0] - self._grab_offset.x, pointer[1] - self._grab_offset.y)
        result = resize_from_corner(self._start, self._target, self._handle, corner)
        preview = update_object(self._start, self._target.id, result.patch)
        self.history = replace_present(self.history, preview)
        self.guide = result.guide

    # ----------------------------
    # Finish
    # ----------------------------

    def end(self) -> HistoryState:
        """Finish the gesture; a drag or resize records one undo step."""
        if self.state in (GestureState.DRAGGING, GestureState.RESIZING):
            final = self.history.present
            rewound = replace_present(self.history, self._start)
            if final == self._start:
                self.history = rewound
            else:
                self.history = commit_snapshot(rewound, final)
            log.debug("%s end %s", self.state, self._target.id)
        self._reset()
        return self.history

    def cancel(self) -> HistoryState:
        """Abort the gesture and restore the snapshot it started from."""
        if self.state in (GestureState.DRAGGING, GestureState.RESIZING):
            self.history = replace_present(self.history, self._start)
            log.debug("%s cancelled %s", self.state, self._target.id)
        elif self.state == GestureState.PANNING:
            self.pan_offset_mm = self._pan_base
        self._reset()
        return self.history

    def _reset(self) -> None:
        self.state = GestureState.IDLE
        self.guide = EMPTY_GUIDE
        self._start = None
        self._target = None
        self._handle = None
        self._grab_offset = PointMm(0, 0)

"""Tests for gesture.py: drag/resize/pan transitions and history commits."""
from __future__ import annotations

import pytest

from gesture import GestureController, GestureState
from history import create_history
from models import LandingObj, Snapshot, find_object
from object_update import add_object
from snapping.engine import FACE


def _controller(*objects, **kwargs) -> GestureController:
    snapshot = Snapshot(**kwargs)
    for obj in objects:
        snapshot = add_object(snapshot, obj, select=False)
    return GestureController(create_history(snapshot))


def _square(obj_id: str, x: float, y: float, **kwargs) -> LandingObj:
    return LandingObj(id=obj_id, x_mm=x, y_mm=y, length_mm=1000, width_mm=1000, **kwargs)


def _position(controller: GestureController, obj_id: str):
    obj = find_object(controller.history.present, obj_id)
    return obj.x_mm, obj.y_mm


# ─────────────────────────────────────────────────────────
# Dragging
# ─────────────────────────────────────────────────────────


class TestDrag:
    def test_drag_snaps_and_commits_once(self):
        ctl = _controller(_square("a", 500, 500), _square("b", 1700, 500))
        assert ctl.begin_drag("b", (1700, 500))
        assert ctl.state == GestureState.DRAGGING

        ctl.update((1600, 500))
        ctl.update((1510, 500))
        assert _position(ctl, "b") == (1500, 500)
        assert ctl.guide.x_type == FACE
        assert ctl.history.past == ()

        history = ctl.end()
        assert len(history.past) == 1
        assert _position(ctl, "b") == (1500, 500)
        assert find_object(history.past[0], "b").x_mm == 1700
        assert ctl.state == GestureState.IDLE
        assert ctl.guide.is_empty

    def test_pointer_offset_is_preserved(self):
        ctl = _controller(_square("a", 500, 500), _square("b", 1700, 500))
        ctl.begin_drag("b", (1750, 520))
        ctl.update((1560, 520))
        assert _position(ctl, "b") == (1500, 500)

    def test_cancel_restores_start(self):
        ctl = _controller(_square("a", 500, 500), _square("b", 1700, 500))
        start = ctl.history.present
        ctl.begin_drag("b", (1700, 500))
        ctl.update((3000, 3000))
        history = ctl.cancel()
        assert history.present == start
        assert history.past == ()
        assert ctl.state == GestureState.IDLE

    def test_release_without_movement_records_nothing(self):
        ctl = _controller(_square("a", 500, 500))
        ctl.begin_drag("a", (500, 500))
        ctl.update((500, 500))
        assert ctl.end().past == ()

    def test_drag_back_to_start_records_nothing(self):
        ctl = _controller(_square("a", 500, 500))
        ctl.begin_drag("a", (500, 500))
        ctl.update((900, 500))
        ctl.update((500, 500))
        history = ctl.end()
        assert history.past == ()
        assert _position(ctl, "a") == (500, 500)

    def test_locked_object_cannot_be_dragged(self):
        ctl = _controller(_square("a", 500, 500, locked=True))
        assert not ctl.begin_drag("a", (500, 500))
        assert ctl.state == GestureState.IDLE

    def test_unknown_object(self):
        ctl = _controller()
        assert not ctl.begin_drag("missing", (0, 0))

    def test_only_one_gesture_at_a_time(self):
        ctl = _controller(_square("a", 500, 500), _square("b", 3000, 500))
        assert ctl.begin_drag("a", (500, 500))
        assert not ctl.begin_drag("b", (3000, 500))
        assert not ctl.begin_pan((0, 0))
        assert ctl.target_id == "a"


# ─────────────────────────────────────────────────────────
# Resizing
# ─────────────────────────────────────────────────────────


class TestResize:
    def test_resize_commits_once(self):
        ctl = _controller(_square("a", 500, 500))
        assert ctl.begin_resize("a", "se", (1000, 1000))
        ctl.update((1200, 1100))
        ctl.update((1530, 1260))
        obj = find_object(ctl.history.present, "a")
        assert (obj.length_mm, obj.width_mm) == (1500, 1300)
        history = ctl.end()
        assert len(history.past) == 1
        assert find_object(history.past[0], "a").length_mm == 1000

    def test_bad_handle(self):
        ctl = _controller(_square("a", 500, 500))
        with pytest.raises(ValueError):
            ctl.begin_resize("a", "north", (0, 0))
        assert ctl.state == GestureState.IDLE

    def test_locked_object_cannot_be_resized(self):
        ctl = _controller(_square("a", 500, 500, locked=True))
        assert not ctl.begin_resize("a", "se", (1000, 1000))


# ─────────────────────────────────────────────────────────
# Panning
# ─────────────────────────────────────────────────────────


class TestPan:
    def test_pan_never_touches_history(self):
        ctl = _controller(_square("a", 500, 500))
        history = ctl.history
        assert ctl.begin_pan((10, 10))
        assert ctl.update((40, 50)) is history
        assert ctl.pan_offset_mm == (30, 40)
        assert ctl.end() is history
        assert ctl.state == GestureState.IDLE

    def test_pan_accumulates(self):
        ctl = _controller()
        ctl.begin_pan((0, 0))
        ctl.update((100, 0))
        ctl.end()
        ctl.begin_pan((0, 0))
        ctl.update((0, 50))
        assert ctl.pan_offset_mm == (100, 50)

    def test_cancelled_pan_resets_offset(self):
        ctl = _controller()
        ctl.begin_pan((0, 0))
        ctl.update((100, 100))
        ctl.cancel()
        assert ctl.pan_offset_mm == (0, 0)

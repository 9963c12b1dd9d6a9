"""Tests for snapping/resize.py: anchored corner resizing."""
from __future__ import annotations

import pytest

from models import LandingObj, RampObj, Snapshot
from object_update import add_object, update_object
from snapping.engine import FACE
from snapping.resize import anchor_position, handle_position, resize_from_corner


def _snapshot(*objects, **kwargs) -> Snapshot:
    snapshot = Snapshot(**kwargs)
    for obj in objects:
        snapshot = add_object(snapshot, obj, select=False)
    return snapshot


def _square(obj_id: str = "a", x: float = 500, y: float = 500, **kwargs) -> LandingObj:
    return LandingObj(id=obj_id, x_mm=x, y_mm=y, length_mm=1000, width_mm=1000, **kwargs)


class TestHandles:
    def test_corner_positions(self):
        obj = _square()
        assert handle_position(obj, "nw") == (0, 0)
        assert handle_position(obj, "se") == (1000, 1000)
        assert anchor_position(obj, "se") == (0, 0)
        assert anchor_position(obj, "ne") == (0, 1000)

    def test_unknown_handle(self):
        with pytest.raises(ValueError):
            handle_position(_square(), "n")
        with pytest.raises(ValueError):
            resize_from_corner(Snapshot(), _square(), "middle", (0, 0))


class TestResizeFromCorner:
    def test_grid_rounds_sizes(self):
        snapshot = _snapshot(_square())
        result = resize_from_corner(snapshot, snapshot.objects[0], "se", (1530, 1260))
        assert result.patch == {"length_mm": 1500, "width_mm": 1300, "x_mm": 750, "y_mm": 650}

    def test_opposite_corner_is_fixed(self):
        snapshot = _snapshot(_square())
        result = resize_from_corner(snapshot, snapshot.objects[0], "nw", (-200, 100))
        updated = update_object(snapshot, "a", result.patch).objects[0]
        assert (updated.length_mm, updated.width_mm) == (1200, 900)
        assert handle_position(updated, "se") == (1000, 1000)

    def test_cannot_invert_through_zero(self):
        snapshot = _snapshot(_square())
        result = resize_from_corner(snapshot, snapshot.objects[0], "se", (-500, -500))
        assert result.patch["length_mm"] == 100
        assert result.patch["width_mm"] == 100
        assert (result.patch["x_mm"], result.patch["y_mm"]) == (50, 50)

    def test_min_size_from_settings(self, isolated_settings):
        isolated_settings.settings.snap.min_resize_mm = 300
        snapshot = _snapshot(_square())
        result = resize_from_corner(snapshot, snapshot.objects[0], "se", (10, 10))
        assert result.patch["length_mm"] == 300

    def test_rotated_object_uses_local_axes(self):
        obj = LandingObj(id="r", x_mm=0, y_mm=0, length_mm=1000, width_mm=500, rotation_deg=90)
        snapshot = _snapshot(obj)
        result = resize_from_corner(snapshot, snapshot.objects[0], "se", (-450, 700))
        assert result.patch["length_mm"] == 1200
        assert result.patch["width_mm"] == 700
        assert result.patch["x_mm"] == pytest.approx(-100)
        assert result.patch["y_mm"] == pytest.approx(100)

    def test_corner_snaps_to_neighbour(self):
        snapshot = _snapshot(_square("a"), _square("b", x=2500))
        result = resize_from_corner(snapshot, snapshot.objects[0], "se", (1990, 1007))
        assert result.patch == {"length_mm": 2000, "width_mm": 1000, "x_mm": 1000, "y_mm": 500}
        assert result.guide.x_type == FACE
        assert result.guide.snapped_x == 2000

    def test_no_object_snap_when_disabled(self):
        snapshot = _snapshot(_square("a"), _square("b", x=2500), snap_to_objects=False, snap_to_grid=False)
        result = resize_from_corner(snapshot, snapshot.objects[0], "se", (1990, 1007))
        assert result.patch["length_mm"] == 1990
        assert result.patch["width_mm"] == 1007
        assert result.guide.is_empty

    def test_ramp_wings_unchanged(self):
        ramp = RampObj(id="r", x_mm=500, y_mm=500, length_mm=1000, run_mm=1000, width_mm=1000,
                       has_left_wing=True, left_wing_size_mm=300)
        snapshot = _snapshot(ramp)
        result = resize_from_corner(snapshot, snapshot.objects[0], "se", (1500, 1000))
        updated = update_object(snapshot, "r", result.patch).objects[0]
        assert updated.length_mm == updated.run_mm == 1500
        assert updated.left_wing_size_mm == 300

    def test_locked_gives_empty_patch(self):
        snapshot = _snapshot(_square(locked=True))
        result = resize_from_corner(snapshot, snapshot.objects[0], "se", (2000, 2000))
        assert result.patch == {}
        assert result.guide.is_empty

    def test_floored_axis_drops_its_guide(self):
        # b's left face at x=90 pulls the corner below the 100mm floor
        snapshot = _snapshot(_square("a"), _square("b", x=590, y=5000))
        result = resize_from_corner(snapshot, snapshot.objects[0], "se", (95, 1000))
        assert result.patch["length_mm"] == 100
        assert result.patch["width_mm"] == 1000
        assert result.guide.snapped_x is None
        assert result.guide.x_type is None
        assert result.guide.is_empty

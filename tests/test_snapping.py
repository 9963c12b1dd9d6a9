"""Tests for snapping/engine.py: move snapping, tie-breaks and placement."""
from __future__ import annotations

import pytest

from models import CounterIds, LandingObj, RampObj, Snapshot, Tool
from object_update import add_object
from snapping.engine import (
    FACE,
    POI,
    AxisCandidate,
    collect_box_candidates,
    place_object,
    pick_best_axis_candidate,
    snap_move,
    snap_placement,
)
from geometry.kernel import axis_aligned_box


def _landing(obj_id: str, x: float, y: float, locked: bool = False) -> LandingObj:
    return LandingObj(id=obj_id, x_mm=x, y_mm=y, length_mm=1000, width_mm=1000, locked=locked)


def _snapshot(*objects, **kwargs) -> Snapshot:
    snapshot = Snapshot(**kwargs)
    for obj in objects:
        snapshot = add_object(snapshot, obj, select=False)
    return snapshot


# ─────────────────────────────────────────────────────────
# Tie-break policy
# ─────────────────────────────────────────────────────────


class TestPickBest:
    def test_face_beats_closer_poi(self):
        candidates = [
            AxisCandidate(delta=2, snap_coord=102, type=POI, poi_name="topLeft"),
            AxisCandidate(delta=-15, snap_coord=85, type=FACE),
        ]
        assert pick_best_axis_candidate(candidates).type == FACE

    def test_smallest_delta_within_type(self):
        candidates = [AxisCandidate(-9, 1, FACE), AxisCandidate(4, 2, FACE), AxisCandidate(-6, 3, FACE)]
        assert pick_best_axis_candidate(candidates).snap_coord == 2

    def test_first_wins_exact_tie(self):
        candidates = [AxisCandidate(5, 1, FACE), AxisCandidate(-5, 2, FACE)]
        assert pick_best_axis_candidate(candidates).snap_coord == 1

    def test_poi_when_no_face(self):
        candidates = [AxisCandidate(3, 1, POI, "centre"), AxisCandidate(1, 2, POI, "midTop")]
        assert pick_best_axis_candidate(candidates).poi_name == "midTop"

    def test_empty(self):
        assert pick_best_axis_candidate([]) is None


class TestCandidates:
    def test_edges_and_corners_both_found(self):
        fixed = axis_aligned_box(_landing("a", 500, 500))
        moving = axis_aligned_box(_landing("b", 1510, 500))
        xs, _ = collect_box_candidates(moving, [fixed], 20)
        assert {c.type for c in xs} == {FACE, POI}
        assert pick_best_axis_candidate(xs).type == FACE


# ─────────────────────────────────────────────────────────
# snap_move
# ─────────────────────────────────────────────────────────


class TestSnapMove:
    def test_adjacent_landings_close_the_gap(self):
        a, b = _landing("a", 500, 500), _landing("b", 3000, 500)
        snapshot = _snapshot(a, b)
        result = snap_move(snapshot, snapshot.objects[1], (1510, 500))
        assert result.center == (1500, 500)
        assert result.guide.x_type == FACE
        assert result.guide.snapped_x == 1000
        assert result.guide.snapped_point is None

    def test_object_snap_on_x_grid_on_y(self):
        a, b = _landing("a", 500, 500), _landing("b", 3000, 500)
        snapshot = _snapshot(a, b)
        result = snap_move(snapshot, snapshot.objects[1], (1510, 740))
        assert result.center == (1500, 700)
        assert result.guide.x_type == FACE
        assert result.guide.y_type is None

    def test_grid_only(self):
        snapshot = _snapshot(_landing("a", 0, 0), snap_to_objects=False)
        result = snap_move(snapshot, snapshot.objects[0], (1234, 567))
        assert result.center == (1200, 600)
        assert result.guide.is_empty

    def test_grid_off_rounds_to_whole_mm(self):
        snapshot = _snapshot(_landing("a", 0, 0), snap_to_objects=False, snap_to_grid=False)
        result = snap_move(snapshot, snapshot.objects[0], (1234.4, 567.6))
        assert result.center == (1234, 568)

    def test_threshold_respected(self):
        a, b = _landing("a", 500, 500), _landing("b", 3000, 500)
        snapshot = _snapshot(a, b, snap_to_grid=False)
        result = snap_move(snapshot, snapshot.objects[1], (1530, 2600))
        assert result.guide.is_empty
        assert result.center == (1530, 2600)

    def test_threshold_argument(self):
        a, b = _landing("a", 500, 500), _landing("b", 3000, 500)
        snapshot = _snapshot(a, b, snap_to_grid=False)
        result = snap_move(snapshot, snapshot.objects[1], (1530, 2600), threshold_mm=40)
        assert result.center.x == 1500
        assert result.guide.x_type == FACE

    def test_threshold_from_settings(self, isolated_settings):
        isolated_settings.settings.snap.threshold_mm = 40
        a, b = _landing("a", 500, 500), _landing("b", 3000, 500)
        snapshot = _snapshot(a, b, snap_to_grid=False)
        result = snap_move(snapshot, snapshot.objects[1], (1530, 2600))
        assert result.center.x == 1500

    def test_locked_object_stays(self):
        a, b = _landing("a", 500, 500), _landing("b", 3000, 500, locked=True)
        snapshot = _snapshot(a, b)
        result = snap_move(snapshot, snapshot.objects[1], (1510, 500))
        assert result.center == (3000, 500)
        assert result.guide.is_empty

    def test_locked_sibling_is_still_a_target(self):
        a, b = _landing("a", 500, 500, locked=True), _landing("b", 3000, 500)
        snapshot = _snapshot(a, b)
        result = snap_move(snapshot, snapshot.objects[1], (1510, 500))
        assert result.center == (1500, 500)

    def test_winged_ramp_grid_snaps_its_box(self):
        ramp = RampObj(id="r", length_mm=1000, run_mm=1000, width_mm=1000,
                       has_right_wing=True, right_wing_size_mm=500)
        snapshot = _snapshot(ramp, snap_to_objects=False)
        # box is 1000 x 1500 with its centre 250mm below the object origin
        result = snap_move(snapshot, snapshot.objects[0], (520, 480))
        assert result.center == (500, 500)


# ─────────────────────────────────────────────────────────
# Placement
# ─────────────────────────────────────────────────────────


class TestPlacement:
    def test_anchor_is_top_left(self):
        assert snap_placement(Snapshot(), Tool.LANDING, (123, 456)) == (700, 1100)

    def test_placement_without_grid(self):
        snapshot = Snapshot(snap_to_grid=False)
        assert snap_placement(snapshot, Tool.RAMP, (10.4, 20.6)) == (910, 521)

    def test_non_placing_tool(self):
        assert snap_placement(Snapshot(), Tool.DELETE, (0, 0)) is None

    def test_place_object_selects(self):
        snapshot = place_object(Snapshot(), Tool.LANDING, (123, 456), CounterIds())
        assert snapshot.selected_id == "landing-1"
        placed = snapshot.objects[0]
        assert (placed.x_mm, placed.y_mm) == (700, 1100)

    def test_place_with_delete_tool_is_noop(self):
        snapshot = Snapshot()
        assert place_object(snapshot, Tool.DELETE, (0, 0)) is snapshot

"""Tests for geometry/dimensions.py: segment geometry, labels and ordering."""
from __future__ import annotations

import pytest

from geometry.dimensions import (
    anchor_offset_from_point,
    generate_dimensions,
    generate_dimensions_for_object,
    resolve_orientation,
)
from models import LandingObj, MeasurementAnchor, RampObj
from object_update import normalise_object
from settings import DimensionSettings


def _flags(*keys):
    return {key: key in keys for key in ("L1", "L2", "W1", "W2", "WL", "WR", "H", "E")}


def _wing_ramp(**kwargs) -> RampObj:
    fields = dict(
        id="r", x_mm=0, y_mm=0, length_mm=1000, run_mm=1000, width_mm=1000,
        has_right_wing=True, right_wing_size_mm=500,
        measurements=_flags("L1", "L2", "W1", "W2", "WR"),
    )
    fields.update(kwargs)
    return normalise_object(RampObj(**fields))


def _landing(**kwargs) -> LandingObj:
    fields = dict(id="l", x_mm=0, y_mm=0, length_mm=1200, width_mm=1200, height_mm=50)
    fields.update(kwargs)
    return normalise_object(LandingObj(**fields))


def _by_key(segments):
    return {s.measurement_key: s for s in segments}


# ─────────────────────────────────────────────────────────
# Orientation
# ─────────────────────────────────────────────────────────


class TestResolveOrientation:
    def test_auto_unrotated(self):
        assert resolve_orientation(MeasurementAnchor(), 0, "length") == "horizontal"
        assert resolve_orientation(MeasurementAnchor(), 0, "width") == "vertical"

    def test_auto_quarter_turn(self):
        assert resolve_orientation(MeasurementAnchor(), 90, "length") == "vertical"
        assert resolve_orientation(MeasurementAnchor(), 270, "width") == "horizontal"

    def test_explicit_wins(self):
        anchor = MeasurementAnchor(orientation="vertical")
        assert resolve_orientation(anchor, 0, "length") == "vertical"


# ─────────────────────────────────────────────────────────
# Edge dimensions and wings
# ─────────────────────────────────────────────────────────


class TestRampFixture:
    def test_keys_and_labels(self):
        segments = generate_dimensions_for_object(_wing_ramp())
        assert [s.measurement_key for s in segments] == ["L1", "L2", "W1", "W2", "WR"]
        by_key = _by_key(segments)
        assert by_key["L1"].label == "1000mm"
        assert by_key["L2"].label == "1000mm"
        assert by_key["WR"].label == "500mm"

    def test_edges_measure_body_not_wings(self):
        by_key = _by_key(generate_dimensions_for_object(_wing_ramp()))
        l1, l2, w2 = by_key["L1"], by_key["L2"], by_key["W2"]
        assert l1.orientation == "horizontal"
        assert (l1.start_mm, l1.end_mm) == ((-500, -700), (500, -700))
        assert (l2.start_mm, l2.end_mm) == ((-500, 700), (500, 700))
        assert w2.orientation == "vertical"
        assert (w2.start_mm, w2.end_mm) == ((700, -500), (700, 500))
        assert w2.label == "1000mm"

    def test_wing_segment_geometry(self):
        wr = _by_key(generate_dimensions_for_object(_wing_ramp()))["WR"]
        assert wr.variant == "wing"
        assert wr.orientation == "vertical"
        assert wr.start_mm == pytest.approx((700, 500))
        assert wr.end_mm == pytest.approx((700, 1000))
        assert wr.anchor_direction_mm == pytest.approx((1, 0))

    def test_anchor_metadata(self):
        l1 = _by_key(generate_dimensions_for_object(_wing_ramp()))["L1"]
        assert l1.anchor_offset_mm == 200
        assert l1.anchor_origin_mm == (0, -500)
        assert l1.anchor_direction_mm == (0, -1)
        assert l1.label_position_mm == (0, -700)
        assert l1.tick_length_mm == 80

    def test_disabled_wing_not_drawn(self):
        ramp = _wing_ramp(has_right_wing=False)
        assert "WR" not in _by_key(generate_dimensions_for_object(ramp))

    def test_deterministic(self):
        assert generate_dimensions_for_object(_wing_ramp()) == generate_dimensions_for_object(_wing_ramp())


class TestEdgeOrientation:
    def test_quarter_turn_moves_length_to_the_side(self):
        landing = _landing(length_mm=2000, width_mm=1000, rotation_deg=90,
                           measurements=_flags("L1", "W1"))
        by_key = _by_key(generate_dimensions_for_object(landing))
        l1, w1 = by_key["L1"], by_key["W1"]
        assert l1.orientation == "vertical"
        assert l1.start_mm[0] == pytest.approx(-500 - 200)
        assert l1.label == "2000mm"
        assert w1.orientation == "horizontal"
        assert w1.label == "1000mm"

    def test_explicit_orientation_override(self):
        landing = _landing(measurements=_flags("L1"),
                           measurement_anchors={"L1": MeasurementAnchor(150, "vertical")})
        l1 = generate_dimensions_for_object(landing)[0]
        assert l1.orientation == "vertical"
        assert l1.start_mm == (-750, -600)

    def test_missing_anchor_uses_default(self):
        landing = LandingObj(id="l", length_mm=1000, width_mm=1000,
                             measurements={"L1": True}, measurement_anchors={})
        segments = generate_dimensions_for_object(landing)
        assert [s.measurement_key for s in segments] == ["L1"]
        assert segments[0].anchor_offset_mm == 200

    def test_style_override(self):
        segments = generate_dimensions_for_object(_landing(), DimensionSettings(tick_length_mm=40))
        assert {s.tick_length_mm for s in segments} == {40}


# ─────────────────────────────────────────────────────────
# Callouts
# ─────────────────────────────────────────────────────────


class TestCallouts:
    def test_height_callout(self):
        h = _by_key(generate_dimensions_for_object(_landing(measurements=_flags("H"))))["H"]
        assert h.label == "H 50mm"
        assert h.variant == "height"
        assert h.tick_length_mm == 0
        assert (h.start_mm, h.end_mm) == ((0, -600), (0, -800))
        assert h.label_position_mm == h.end_mm

    def test_elevation_suppressed_at_zero(self):
        segments = generate_dimensions_for_object(_landing(measurements=_flags("E")))
        assert segments == []

    def test_elevation_bracket(self):
        e = generate_dimensions_for_object(_landing(elevation_mm=300, measurements=_flags("E")))[0]
        assert e.label == "E 300mm"
        assert e.variant == "elevation"
        assert (e.start_mm, e.end_mm) == ((-760, -600), (-760, -760))

    def test_full_order(self):
        ramp = _wing_ramp(has_left_wing=True, left_wing_size_mm=200, elevation_mm=150,
                          measurements=_flags("L1", "L2", "W1", "W2", "WL", "WR", "H", "E"))
        keys = [s.measurement_key for s in generate_dimensions_for_object(ramp)]
        assert keys == ["L1", "L2", "W1", "W2", "WL", "WR", "H", "E"]

    def test_many_objects_in_order(self):
        segments = generate_dimensions([_landing(id="b"), _wing_ramp()])
        assert [s.object_id for s in segments] == ["b"] * 4 + ["r"] * 5


class TestAnchorOffsetFromPoint:
    def test_edge_drag(self):
        l1 = _by_key(generate_dimensions_for_object(_wing_ramp()))["L1"]
        assert anchor_offset_from_point(l1, (123, -950)) == 450

    def test_drag_rounds_half_up(self):
        l1 = _by_key(generate_dimensions_for_object(_wing_ramp()))["L1"]
        assert anchor_offset_from_point(l1, (123, -600.5)) == 101
        assert anchor_offset_from_point(l1, (123, -601.5)) == 102

    def test_drag_inside_clamps_to_zero(self):
        l1 = _by_key(generate_dimensions_for_object(_wing_ramp()))["L1"]
        assert anchor_offset_from_point(l1, (0, 0)) == 0

    def test_elevation_drag_round_trips(self):
        e = generate_dimensions_for_object(_landing(elevation_mm=300, measurements=_flags("E")))[0]
        assert anchor_offset_from_point(e, e.start_mm) == 200

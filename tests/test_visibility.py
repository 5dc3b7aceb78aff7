"""Tests for the visibility oracle, cut-finder and splitter."""

import numpy as np
import pytest

from hlrdraw.config import VisibilityConfig
from hlrdraw.curves.bezier import chord_length_sq, line_to_cubic
from hlrdraw.hlr.cuts import dedupe_sorted, find_visibility_cuts, majority_filter
from hlrdraw.hlr.split import split_by_visibility
from hlrdraw.hlr.visibility import VisibilityOracle


# x where the line z = -2 leaves the shadow of the unit sphere seen from (0, 0, 5)
SHADOW_X = np.sqrt(49.0 / 24.0)


def _params(**kwargs):
    base = dict(samples=64, refine_iters=30)
    base.update(kwargs)
    return VisibilityConfig(**base)


class TestVisibilityOracle:
    """Tests for point visibility queries."""

    def test_point_behind_sphere_is_hidden(self, unit_sphere, front_camera):
        """Test that a point directly behind an opaque sphere is not visible."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        assert oracle.is_visible((0.0, 0.0, -2.0)) is False

    def test_point_beside_sphere_is_visible(self, unit_sphere, front_camera):
        """Test that a point with a clear line of sight is visible."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        assert oracle.is_visible((3.0, 0.0, 0.0)) is True

    def test_point_on_front_surface_is_visible(self, unit_sphere, front_camera):
        """Test that a point on the surface facing the camera is visible."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        assert oracle.is_visible((0.0, 0.0, 1.0)) is True

    def test_self_grazing_hit_snaps_with_allow_list(self, unit_sphere, front_camera):
        """Test that a near-target hit on an allowed id is forgiven."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        point = (0.0, 0.0, 1.0 - 5e-4)

        assert oracle.is_visible(point, ignore_ids=("s",)) is True
        assert oracle.is_visible(point, ignore_ids=("other",)) is False
        assert oracle.is_visible(point) is True

    def test_owner_still_occludes_far_side(self, unit_sphere, front_camera):
        """Test that ignore ids do not remove the owner from the ray cast."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        assert oracle.is_visible((0.0, 0.0, -1.0), ignore_ids=("s",)) is False

    def test_orthographic_camera(self, unit_sphere, ortho_camera):
        """Test visibility with parallel rays."""
        oracle = VisibilityOracle([unit_sphere], ortho_camera)
        assert oracle.is_visible((0.0, 0.0, -2.0)) is False
        assert oracle.is_visible((0.5, 0.0, -2.0)) is False
        assert oracle.is_visible((1.5, 0.0, -2.0)) is True

    def test_raycast_exclude_ids(self, front_camera):
        """Test that excluded primitives are skipped by raycast_closest."""
        from hlrdraw.geometry.primitives import Ray, Sphere

        near = Sphere(id="near", center=(0.0, 0.0, 1.0), radius=0.5)
        far = Sphere(id="far", center=(0.0, 0.0, -2.0), radius=0.5)
        oracle = VisibilityOracle([far, near], front_camera)
        ray = Ray(np.array([0.0, 0.0, 5.0]), np.array([0.0, 0.0, -1.0]))

        assert oracle.raycast_closest(ray).primitive_id == "near"
        assert oracle.raycast_closest(ray, exclude_ids={"near"}).primitive_id == "far"
        assert oracle.raycast_closest(ray, exclude_ids={"near", "far"}) is None


class TestCutHelpers:
    """Tests for the majority filter and dedupe."""

    def test_majority_filter_removes_single_flips(self):
        """Test that isolated flips are smoothed."""
        assert majority_filter([True, False, True, True]) == [True, True, True, True]
        assert majority_filter([False, True, False, False]) == [False, False, False, False]

    def test_majority_filter_keeps_ends(self):
        """Test that the end samples are never changed."""
        assert majority_filter([False, True, True]) == [False, True, True]
        assert majority_filter([True, True, False]) == [True, True, False]

    def test_dedupe_sorted(self):
        """Test that near-equal values collapse to the first."""
        assert dedupe_sorted([0.1, 0.1 + 1e-9, 0.5], 1e-6) == [0.1, 0.5]


class TestVisibilityCuts:
    """Tests for cut-finding along curves."""

    def test_cuts_at_shadow_boundary(self, unit_sphere, front_camera):
        """Test that a line behind the sphere is cut where it leaves the shadow."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        bez = line_to_cubic((-3.0, 0.0, -2.0), (3.0, 0.0, -2.0))

        result = find_visibility_cuts(bez, oracle, _params())

        assert result.segment_visible == [True, False, True]
        assert result.cuts[0] == pytest.approx((3.0 - SHADOW_X) / 6.0, abs=1e-3)
        assert result.cuts[1] == pytest.approx((3.0 + SHADOW_X) / 6.0, abs=1e-3)

    def test_cut_monotonicity(self, front_camera):
        """Test that cuts are strictly increasing and inside (cut_eps, 1 - cut_eps)."""
        from hlrdraw.geometry.primitives import Box, Sphere

        prims = [
            Sphere(id="a", center=(-1.2, 0.0, 0.0), radius=0.6),
            Sphere(id="b", center=(1.2, 0.0, 0.0), radius=0.6),
            Box(id="c", min=(-0.2, -0.2, -0.2), max=(0.2, 0.2, 0.2)),
        ]
        oracle = VisibilityOracle(prims, front_camera)
        params = _params(samples=96)
        bez = line_to_cubic((-4.0, 0.1, -3.0), (4.0, -0.1, -3.0))

        result = find_visibility_cuts(bez, oracle, params)

        assert len(result.cuts) >= 4
        assert len(result.segment_visible) == len(result.cuts) + 1
        for a, b in zip(result.cuts, result.cuts[1:]):
            assert a < b
        for t in result.cuts:
            assert params.cut_eps < t < 1.0 - params.cut_eps

    def test_fully_hidden_curve(self, unit_sphere, front_camera):
        """Test that a curve entirely in shadow has no cuts and is hidden."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        bez = line_to_cubic((-0.2, 0.0, -2.0), (0.2, 0.0, -2.0))

        result = find_visibility_cuts(bez, oracle, _params())

        assert result.cuts == []
        assert result.segment_visible == [False]

    def test_coarse_pass_shortcut(self, unit_sphere, front_camera):
        """Test that a uniform coarse pass returns a single segment."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        bez = line_to_cubic((-3.0, 3.0, 0.0), (3.0, 3.0, 0.0))

        result = find_visibility_cuts(bez, oracle, _params(coarse_samples=8))

        assert result.cuts == []
        assert result.segment_visible == [True]


class TestSplitByVisibility:
    """Tests for curve splitting."""

    def test_round_trip_without_cuts(self, unit_sphere, front_camera):
        """Test that a constant-visibility curve comes back unchanged."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        bez = line_to_cubic((-3.0, 3.0, 0.0), (3.0, 3.0, 0.0))

        pieces = split_by_visibility(bez, oracle, _params())

        assert len(pieces) == 1
        assert pieces[0].visible
        assert pieces[0].bez == bez

    def test_split_pieces_alternate(self, unit_sphere, front_camera):
        """Test that a shadowed line splits into visible, hidden, visible."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        bez = line_to_cubic((-3.0, 0.0, -2.0), (3.0, 0.0, -2.0))

        pieces = split_by_visibility(bez, oracle, _params())

        assert [p.visible for p in pieces] == [True, False, True]
        assert pieces[0].bez.p0 == pytest.approx(bez.p0)
        assert pieces[-1].bez.p3 == pytest.approx(bez.p3)
        for a, b in zip(pieces, pieces[1:]):
            assert a.bez.p3 == pytest.approx(b.bez.p0)
        assert pieces[1].bez.p0[0] == pytest.approx(-SHADOW_X, abs=1e-2)
        assert pieces[1].bez.p3[0] == pytest.approx(SHADOW_X, abs=1e-2)

    def test_conservation(self, unit_sphere, front_camera):
        """Test that split pieces never add up to more than the original chord."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        bez = line_to_cubic((-3.0, 0.3, -2.0), (3.0, -0.2, -1.5))

        pieces = split_by_visibility(bez, oracle, _params())

        total = sum(chord_length_sq(p.bez) for p in pieces)
        assert total <= chord_length_sq(bez) + 1e-9

    def test_tiny_pieces_dropped(self, unit_sphere, front_camera):
        """Test that pieces shorter than min_seg_len_sq are discarded."""
        oracle = VisibilityOracle([unit_sphere], front_camera)
        bez = line_to_cubic((-3.0, 0.0, -2.0), (3.0, 0.0, -2.0))

        pieces = split_by_visibility(bez, oracle, _params(min_seg_len_sq=4.0))

        assert [p.visible for p in pieces] == [False]

"""Tests for branch tracking and run assembly."""

import numpy as np
import pytest

from hlrdraw.config import BezierFitConfig
from hlrdraw.intersections.branches import (
    BranchState,
    KeyedCandidate,
    assign_branches,
    branch_runs,
    fit_params_for,
    merge_cyclic_runs,
    runs_to_cubics,
    split_runs_by_jump,
    split_runs_by_key_jump,
    stitch_runs,
    try_merge_runs_to_single_polyline,
)
from hlrdraw.intersections.quadratic import solve_quadratic


def _c(key, x):
    return KeyedCandidate(key, (x, 0.0, 0.0))


class TestSolveQuadratic:
    """Tests for the quadratic solver."""

    def test_two_roots(self):
        """Test two distinct real roots in ascending order."""
        assert solve_quadratic(1.0, -3.0, 2.0) == pytest.approx([1.0, 2.0])

    def test_double_root_deduped(self):
        """Test that a double root is reported once."""
        assert solve_quadratic(1.0, -2.0, 1.0) == pytest.approx([1.0])

    def test_linear_and_none(self):
        """Test the linear fallback and the no-root case."""
        assert solve_quadratic(0.0, 2.0, -4.0) == pytest.approx([2.0])
        assert solve_quadratic(1.0, 0.0, 1.0) == []
        assert solve_quadratic(0.0, 0.0, 1.0) == []


class TestAssignBranches:
    """Tests for routing candidates onto branches."""

    def test_first_pair_low_high(self):
        """Test that the first pair goes low key to branch 0."""
        state = assign_branches(BranchState(), [_c(2.0, 2.0), _c(1.0, 1.0)])
        assert state.keys0 == (1.0,)
        assert state.keys1 == (2.0,)

    def test_pairing_follows_continuity(self):
        """Test that crossing keys keep following their branches."""
        state = BranchState(points0=((0, 0, 0),), points1=((1, 0, 0),), keys0=(0.0,), keys1=(1.0,))
        state = assign_branches(state, [_c(0.9, 0.9), _c(0.1, 0.1)])
        assert state.keys0 == (0.0, 0.1)
        assert state.keys1 == (1.0, 0.9)

    def test_single_candidate_nearest_branch(self):
        """Test that a lone candidate joins the branch with the closest key."""
        state = BranchState(points0=((0, 0, 0),), points1=((1, 0, 0),), keys0=(0.0,), keys1=(1.0,))
        state = assign_branches(state, [_c(0.8, 0.8)])
        assert state.keys0 == (0.0,)
        assert state.keys1 == (1.0, 0.8)

    def test_state_is_not_mutated(self):
        """Test that assign_branches returns a new state."""
        state = BranchState()
        new_state = assign_branches(state, [_c(1.0, 1.0)])
        assert state.keys0 == ()
        assert new_state.keys0 == (1.0,)

    def test_empty_sample_keeps_state(self):
        """Test that a sample without candidates changes nothing."""
        state = BranchState(keys0=(1.0,), points0=((1, 0, 0),))
        assert assign_branches(state, []) is state


class TestRuns:
    """Tests for run splitting, merging and stitching."""

    def test_split_by_jump(self):
        """Test that a spatial jump starts a new run."""
        pts = np.array([[0, 0, 0], [1, 0, 0], [2, 0, 0], [10, 0, 0], [11, 0, 0]], dtype=float)
        assert split_runs_by_jump(pts, 4.0) == [[0, 1, 2], [3, 4]]

    def test_single_point_runs_dropped(self):
        """Test that isolated points do not form runs."""
        pts = np.array([[0, 0, 0], [10, 0, 0], [11, 0, 0]], dtype=float)
        assert split_runs_by_jump(pts, 4.0) == [[1, 2]]

    def test_split_by_key_jump(self):
        """Test that a key jump splits an index run."""
        keys = [0.0, 0.1, 0.2, 5.0, 5.1]
        assert split_runs_by_key_jump([0, 1, 2, 3, 4], keys, 1.0) == [[0, 1, 2], [3, 4]]

    def test_lone_key_fragment_is_kept(self):
        """Test that a single index between two key jumps joins its neighbour."""
        keys = [0.0, 0.1, 0.2, 3.0, 6.0, 6.1, 6.2]
        assert split_runs_by_key_jump(list(range(7)), keys, 1.0) == [[0, 1, 2, 3], [4, 5, 6]]

    def test_leading_key_fragment_is_kept(self):
        """Test that a jumped first index, as at a branch birth, joins the next fragment."""
        keys = [0.0, 5.0, 5.1, 5.2]
        assert split_runs_by_key_jump([0, 1, 2, 3], keys, 1.0) == [[0, 1, 2, 3]]

    def test_steep_keys_leave_no_hole(self):
        """Test that a spatially continuous branch survives steep key changes whole."""
        pts = np.column_stack([np.arange(7) * 0.1, np.zeros(7), np.zeros(7)])
        keys = [0.0, 0.1, 0.2, 3.0, 6.0, 6.1, 6.2]

        runs = branch_runs(pts, keys, max_jump=0.15, key_jump=1.0, close_eps=0.3, min_tangent_cos=0.25)

        assert len(runs) == 1
        assert len(runs[0]) == 7
        assert np.allclose(np.sort(runs[0][:, 0]), pts[:, 0])

    def test_merge_cyclic_runs(self):
        """Test that a run ending where the first begins is joined across the seam."""
        first = np.array([[1.0, 0, 0], [2.0, 0, 0]])
        middle = np.array([[5.0, 5, 0], [6.0, 5, 0]])
        last = np.array([[-1.0, 0, 0], [0.0, 0, 0]])
        merged = merge_cyclic_runs([first, middle, last], 1.5 ** 2)
        assert len(merged) == 2
        assert np.allclose(merged[0][:, 0], [-1, 0, 1, 2])

    def test_stitch_collinear_runs(self):
        """Test that runs continuing each other are stitched, even reversed."""
        a = np.array([[0.0, 0, 0], [1.0, 0, 0]])
        b = np.array([[3.0, 0, 0], [1.1, 0, 0]])
        runs = stitch_runs([a, b], 0.2 ** 2)
        assert len(runs) == 1
        assert len(runs[0]) == 4

    def test_stitch_rejects_sharp_turns(self):
        """Test that the tangent gate blocks joins that double back."""
        a = np.array([[0.0, 0, 0], [1.0, 0, 0]])
        b = np.array([[1.05, 0, 0], [0.0, 0.1, 0]])
        runs = stitch_runs([a, b], 0.2 ** 2, min_tangent_cos=0.25)
        assert len(runs) == 2

    def test_try_merge_single_polyline(self):
        """Test chaining of runs into one polyline or None."""
        a = np.array([[0.0, 0, 0], [1.0, 0, 0]])
        b = np.array([[2.0, 0, 0], [1.0, 0, 0]])
        merged = try_merge_runs_to_single_polyline([a, b], 1e-6)
        assert np.allclose(merged[:, 0], [0, 1, 2])

        far = np.array([[9.0, 0, 0], [10.0, 0, 0]])
        assert try_merge_runs_to_single_polyline([a, far], 1e-6) is None


class TestRunsToCubics:
    """Tests for run to cubic conversion."""

    def test_straight_segments_without_fit(self):
        """Test that disabling the fit emits one cubic per edge."""
        run = np.array([[0.0, 0, 0], [1.0, 0, 0], [1.0, 1, 0]])
        cubics = runs_to_cubics([[run]], close_eps=1e-3, use_bezier_fit=False)
        assert len(cubics) == 2

    def test_closed_run_without_fit(self):
        """Test that a run ending near its start is closed."""
        run = np.array([[0.0, 0, 0], [1.0, 0, 0], [1.0, 1, 0], [0.0, 0.05, 0]])
        cubics = runs_to_cubics([[run]], close_eps=0.1, use_bezier_fit=False)
        assert len(cubics) == 4
        assert cubics[-1].p3 == pytest.approx((0.0, 0.0, 0.0))

    def test_fit_modes(self):
        """Test that stitch_then_fit fits chained runs in one go."""
        t = np.linspace(0.0, np.pi, 30)
        arc = np.column_stack([np.cos(t), np.sin(t), np.zeros_like(t)])
        runs = [arc[:15], arc[14:]]
        params = BezierFitConfig(max_error=1e-2)

        stitched = runs_to_cubics([runs], close_eps=1e-3, fit_params=params, fit_mode="stitch_then_fit")
        per_run = runs_to_cubics([runs], close_eps=1e-3, fit_params=params, fit_mode="per_run")

        assert stitched[0].p0 == pytest.approx(tuple(arc[0]))
        assert stitched[-1].p3 == pytest.approx(tuple(arc[-1]))
        assert len(per_run) >= 2
        assert len(stitched) <= len(per_run)

    def test_fit_params_for(self):
        """Test that solver fit tolerances scale with the step."""
        params = fit_params_for(BezierFitConfig(), 0.1, 0.6, max_alpha_factor=1.2)
        assert params.max_error == pytest.approx(0.06)
        assert params.close_eps == pytest.approx(0.3)
        assert params.max_alpha_factor == pytest.approx(1.2)

"""
Branch tracking and run assembly for sampled intersection curves.

A pair solver walks one surface parameter (usually an angle) and at every
sample gets zero, one or two intersection points, each tagged with the root
value ("key") it came from. Points are routed to one of two branches by key
continuity, then every branch is cut into runs at spatial or key jumps,
merged across the sampling seam and re-stitched where runs continue each
other. Runs become cubics either by fitting or as straight segments.
"""

from dataclasses import replace
from typing import NamedTuple, Tuple

import numpy as np

from hlrdraw.config import BezierFitConfig
from hlrdraw.curves.bezier import polyline_to_cubics
from hlrdraw.curves.bezier_fit import fit_polyline_to_cubics


class KeyedCandidate(NamedTuple):
    """One root of a sample: its key and the world point it maps to."""
    key: float
    point: Tuple[float, float, float]


class BranchState(NamedTuple):
    """Accumulated points and keys of the two branches of one solver call."""
    points0: tuple = ()
    points1: tuple = ()
    keys0: tuple = ()
    keys1: tuple = ()

    def append(self, branch, candidate):
        point = tuple(float(v) for v in candidate.point)
        if branch == 0:
            return self._replace(points0=self.points0 + (point,), keys0=self.keys0 + (float(candidate.key),))
        return self._replace(points1=self.points1 + (point,), keys1=self.keys1 + (float(candidate.key),))


def _key_distance(keys, key):
    return abs(keys[-1] - key) if keys else float("inf")


def assign_branches(state, candidates):
    """
    Route this sample's candidates onto the branches and return the new state.

    A single candidate joins the branch whose last key is closest. Two
    candidates go low key -> branch 0, high key -> branch 1 while both
    branches are empty; afterwards the pairing with the smaller total key
    change wins.
    """
    if not candidates:
        return state
    if len(candidates) == 1:
        c = candidates[0]
        d0 = _key_distance(state.keys0, c.key)
        d1 = _key_distance(state.keys1, c.key)
        return state.append(0 if d0 <= d1 else 1, c)

    lo, hi = sorted(candidates[:2], key=lambda c: c.key)
    if not state.keys0 and not state.keys1:
        return state.append(0, lo).append(1, hi)
    if not state.keys0:
        near, far = (lo, hi) if abs(lo.key - state.keys1[-1]) <= abs(hi.key - state.keys1[-1]) else (hi, lo)
        return state.append(1, near).append(0, far)
    if not state.keys1:
        near, far = (lo, hi) if abs(lo.key - state.keys0[-1]) <= abs(hi.key - state.keys0[-1]) else (hi, lo)
        return state.append(0, near).append(1, far)

    k0 = state.keys0[-1]
    k1 = state.keys1[-1]
    straight = abs(lo.key - k0) + abs(hi.key - k1)
    crossed = abs(hi.key - k0) + abs(lo.key - k1)
    if straight <= crossed:
        return state.append(0, lo).append(1, hi)
    return state.append(0, hi).append(1, lo)


def median_abs_delta(keys, fallback):
    """Median of the non-trivial consecutive key differences."""
    if len(keys) < 2:
        return fallback
    deltas = np.abs(np.diff(np.asarray(keys, dtype=float)))
    deltas = deltas[np.isfinite(deltas) & (deltas > 1e-12)]
    if deltas.size == 0:
        return fallback
    return float(np.sort(deltas)[deltas.size // 2])


def median_consecutive_step(points, fallback):
    """Median distance between consecutive points."""
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    if len(pts) < 2:
        return fallback
    steps = np.linalg.norm(np.diff(pts, axis=0), axis=1)
    steps = steps[np.isfinite(steps) & (steps > 1e-12)]
    if steps.size == 0:
        return fallback
    return float(np.sort(steps)[steps.size // 2])


def split_runs_by_jump(points, max_jump_sq):
    """Index runs (>= 2 points) separated wherever consecutive points jump too far."""
    runs = []
    current = []
    for i in range(len(points)):
        if current:
            d = np.asarray(points[i]) - np.asarray(points[current[-1]])
            if float(np.dot(d, d)) > max_jump_sq:
                if len(current) >= 2:
                    runs.append(current)
                current = []
        current.append(i)
    if len(current) >= 2:
        runs.append(current)
    return runs


def split_runs_by_key_jump(indices, keys, max_key_jump):
    """
    Split an index run wherever consecutive keys jump more than max_key_jump.

    A lone index between two jumps joins the fragment before it, or the one
    after it at the start of the run. Indices of one jump-split run are
    spatially continuous, so no point of the run is lost.
    """
    pieces = []
    for i in indices:
        if pieces and abs(keys[i] - keys[pieces[-1][-1]]) <= max_key_jump:
            pieces[-1].append(i)
        else:
            pieces.append([i])

    runs = []
    for piece in pieces:
        if len(piece) >= 2 or not runs:
            runs.append(piece)
        else:
            runs[-1].extend(piece)
    if len(runs) > 1 and len(runs[0]) < 2:
        runs[1] = runs[0] + runs[1]
        del runs[0]
    return [run for run in runs if len(run) >= 2]


def _gap_sq(a, b):
    d = np.asarray(a) - np.asarray(b)
    return float(np.dot(d, d))


def _join(a, b):
    """Concatenate two runs, dropping b's first point when it repeats a's last."""
    if _gap_sq(a[-1], b[0]) <= 1e-24:
        return np.vstack([a, b[1:]])
    return np.vstack([a, b])


def merge_cyclic_runs(runs, close_eps_sq):
    """Join the last run onto the first when they meet across the 0/2pi seam."""
    if len(runs) < 2:
        return list(runs)
    first = runs[0]
    last = runs[-1]
    if _gap_sq(last[-1], first[0]) > close_eps_sq:
        return list(runs)
    return [_join(last, first)] + list(runs[1:-1])


def _direction(a, b):
    d = np.asarray(b, dtype=float) - np.asarray(a, dtype=float)
    n = float(np.linalg.norm(d))
    return d / n if n > 1e-12 else None


def _orientations(a, b):
    """The four ways of putting run a before run b."""
    yield a, b
    yield a, b[::-1]
    yield a[::-1], b
    yield a[::-1], b[::-1]


def _continues(a, b, min_tangent_cos):
    t_end = _direction(a[-2], a[-1])
    t_start = _direction(b[0], b[1])
    if t_end is None or t_start is None:
        return True
    return float(np.dot(t_end, t_start)) >= min_tangent_cos


def stitch_runs(runs, close_eps_sq, min_tangent_cos=0.25):
    """
    Greedily join runs whose ends are within close_eps and whose tangents
    agree (cosine >= min_tangent_cos).

    The closest admissible pair is joined first; the scan order makes the
    result deterministic.
    """
    runs = [np.asarray(r, dtype=float) for r in runs]
    while len(runs) > 1:
        best = None
        for i in range(len(runs)):
            for j in range(i + 1, len(runs)):
                for a, b in _orientations(runs[i], runs[j]):
                    gap = _gap_sq(a[-1], b[0])
                    if gap > close_eps_sq or not _continues(a, b, min_tangent_cos):
                        continue
                    if best is None or gap < best[0]:
                        best = (gap, i, j, a, b)
        if best is None:
            break
        _, i, j, a, b = best
        runs[i] = _join(a, b)
        del runs[j]
    return runs


def try_merge_runs_to_single_polyline(runs, close_eps_sq):
    """Chain all runs end to start into one polyline, or None if some gap is too wide."""
    if not runs:
        return None
    remaining = [np.asarray(r, dtype=float) for r in runs]
    merged = remaining.pop(0)
    while remaining:
        best = None
        for idx, run in enumerate(remaining):
            for candidate in (run, run[::-1]):
                gap = _gap_sq(merged[-1], candidate[0])
                if gap <= close_eps_sq and (best is None or gap < best[0]):
                    best = (gap, idx, candidate)
        if best is None:
            return None
        _, idx, candidate = best
        merged = _join(merged, candidate)
        del remaining[idx]
    return merged


def branch_runs(points, keys, max_jump, key_jump, close_eps, min_tangent_cos):
    """Runs of one branch: jump split, key split, seam merge, stitch."""
    if len(points) < 2:
        return []
    pts = np.asarray(points, dtype=float)
    index_runs = []
    for run in split_runs_by_jump(pts, max_jump * max_jump):
        index_runs.extend(split_runs_by_key_jump(run, keys, key_jump))
    runs = [pts[run] for run in index_runs]
    close_eps_sq = close_eps * close_eps
    return stitch_runs(merge_cyclic_runs(runs, close_eps_sq), close_eps_sq, min_tangent_cos)


def assemble_runs(state, step, max_jump, close_eps, min_tangent_cos=0.25):
    """Per-branch runs for both branches of a finished BranchState."""
    out = []
    for points, keys in ((state.points0, state.keys0), (state.points1, state.keys1)):
        key_jump = max(1e-6, median_abs_delta(keys, step) * 8.0)
        out.append(branch_runs(points, keys, max_jump, key_jump, close_eps, min_tangent_cos))
    return out


def runs_to_cubics(branches, close_eps, fit_params=None, use_bezier_fit=True, fit_mode="stitch_then_fit"):
    """
    Convert per-branch runs to cubics.

    Without fitting every run becomes straight segments, closed when its ends
    meet. With stitch_then_fit a branch whose runs chain into one polyline is
    fitted in one go; otherwise (and in per_run mode) every run is fitted on
    its own.
    """
    close_eps_sq = close_eps * close_eps
    out = []
    for runs in branches:
        if not use_bezier_fit:
            for run in runs:
                closed = len(run) > 2 and _gap_sq(run[0], run[-1]) <= close_eps_sq
                out.extend(polyline_to_cubics(run, closed=closed))
            continue

        params = fit_params or BezierFitConfig()
        if fit_mode == "stitch_then_fit" and len(runs) > 1:
            merged = try_merge_runs_to_single_polyline(runs, close_eps_sq)
            if merged is not None:
                out.extend(fit_polyline_to_cubics(merged, params))
                continue
        for run in runs:
            out.extend(fit_polyline_to_cubics(run, params))
    return out


def fit_params_for(base, step, error_factor, max_alpha_factor=None):
    """Fit tolerance scaled to the sampling step of a solver."""
    base = base or BezierFitConfig()
    return replace(
        base,
        max_error=step * error_factor,
        close_eps=step * 3.0,
        max_alpha_factor=base.max_alpha_factor if max_alpha_factor is None else max_alpha_factor,
    )

"""
Flat bounded surfaces (disks and rectangles) seen through one interface,
plus helpers that turn sampled in-patch polylines into cubics.
"""

import math

import numpy as np

from hlrdraw.config import BezierFitConfig, IntersectionConfig
from hlrdraw.curves.bezier import circle_to_cubics, line_to_cubic
from hlrdraw.geometry.vec import basis_from_axis
from hlrdraw.intersections.branches import (
    fit_params_for,
    merge_cyclic_runs,
    runs_to_cubics,
    split_runs_by_jump,
    stitch_runs,
)

CONTAINS_EPS = 1e-7


def _slab(x0, dx, half):
    """Interval of t with -half <= x0 + dx*t <= half, or None."""
    if abs(dx) <= 1e-12:
        if abs(x0) > half:
            return None
        return -math.inf, math.inf
    t0 = (-half - x0) / dx
    t1 = (half - x0) / dx
    return min(t0, t1), max(t0, t1)


class PlanarPatch:
    """A Disk or PlaneRect reduced to plane + region tests."""

    def __init__(self, surface):
        self.surface = surface
        self.id = surface.id
        self.parent_id = surface.parent_id
        self.point = surface.center_vec
        self.normal = surface.normal_unit
        self.is_disk = surface.kind == "disk"
        if self.is_disk:
            self.typical_size = surface.radius
        else:
            self.typical_size = max(surface.half_width, surface.half_height)

    @property
    def is_degenerate(self):
        return self.surface.is_degenerate

    def plane_offset(self):
        """d in the plane equation n . x = d."""
        return float(np.dot(self.normal, self.point))

    def contains(self, p):
        d = np.asarray(p, dtype=float) - self.point
        if self.is_disk:
            r = self.surface.radius
            return float(np.dot(d, d)) <= r * r + CONTAINS_EPS
        return (abs(float(np.dot(d, self.surface.u))) <= self.surface.half_width + CONTAINS_EPS
                and abs(float(np.dot(d, self.surface.v))) <= self.surface.half_height + CONTAINS_EPS)

    def clip_line(self, x0, direction):
        """Parameter interval of x0 + direction*t inside the patch region, or None."""
        rel = np.asarray(x0, dtype=float) - self.point
        direction = np.asarray(direction, dtype=float)
        if self.is_disk:
            a = float(np.dot(direction, direction))
            if a <= 1e-24:
                return None
            half_b = float(np.dot(rel, direction))
            c = float(np.dot(rel, rel)) - self.surface.radius ** 2
            disc = half_b * half_b - a * c
            if disc < 0.0:
                return None
            s = math.sqrt(disc)
            return (-half_b - s) / a, (-half_b + s) / a
        iu = _slab(float(np.dot(rel, self.surface.u)), float(np.dot(direction, self.surface.u)),
                   self.surface.half_width)
        iv = _slab(float(np.dot(rel, self.surface.v)), float(np.dot(direction, self.surface.v)),
                   self.surface.half_height)
        if iu is None or iv is None:
            return None
        lo = max(iu[0], iv[0])
        hi = min(iu[1], iv[1])
        if hi < lo:
            return None
        return lo, hi

    def clip_segment(self, a, b):
        """Part of segment ab inside the patch as (a', b'), or None."""
        a = np.asarray(a, dtype=float)
        b = np.asarray(b, dtype=float)
        interval = self.clip_line(a, b - a)
        if interval is None:
            return None
        lo = max(0.0, interval[0])
        hi = min(1.0, interval[1])
        if hi <= lo:
            return None
        return a + (b - a) * lo, a + (b - a) * hi


def as_patch(surface):
    return surface if isinstance(surface, PlanarPatch) else PlanarPatch(surface)


def marker_at(p, normal, size):
    """Small in-plane cross marking an isolated contact point."""
    u, v = basis_from_axis(normal)
    return [line_to_cubic(p - u * size, p + u * size), line_to_cubic(p - v * size, p + v * size)]


def sampled_runs_to_cubics(samples, step, error_factor, config=None, fit=None, max_jump_factor=14.0):
    """
    Cubics from an angle-ordered sample list where None marks a rejected sample.

    Consecutive accepted samples form runs; runs are additionally cut at
    spatial jumps, merged across the seam and stitched.
    """
    config = (config or IntersectionConfig()).normalized()
    fit = (fit or BezierFitConfig()).normalized()
    runs = []
    current = []
    for p in list(samples) + [None]:
        if p is None:
            if len(current) >= 2:
                pts = np.asarray(current, dtype=float)
                runs.extend(pts[idx] for idx in split_runs_by_jump(pts, (step * max_jump_factor) ** 2))
            current = []
        else:
            current.append(p)

    close_eps = step * 3.0
    close_eps_sq = close_eps * close_eps
    runs = stitch_runs(merge_cyclic_runs(runs, close_eps_sq), close_eps_sq, config.min_tangent_cos)
    return runs_to_cubics(
        [runs],
        close_eps=close_eps,
        fit_params=fit_params_for(fit, step, error_factor),
        use_bezier_fit=config.use_bezier_fit,
        fit_mode=config.fit_mode,
    )


def circle_in_patch(center, normal, radius, patch, n_samples, config=None, fit=None):
    """
    The part of a circle lying inside a patch.

    A circle entirely inside is emitted exactly; otherwise it is sampled and
    the inside runs are fitted.
    """
    u, v = basis_from_axis(normal)
    samples = []
    all_inside = True
    for i in range(n_samples):
        th = 2.0 * math.pi * i / n_samples
        p = center + (u * math.cos(th) + v * math.sin(th)) * radius
        if patch.contains(p):
            samples.append(p)
        else:
            samples.append(None)
            all_inside = False
    if all_inside:
        return circle_to_cubics(center, normal, radius)
    step = 2.0 * math.pi * radius / n_samples
    return sampled_runs_to_cubics(samples, step, 0.6, config, fit, max_jump_factor=10.0)

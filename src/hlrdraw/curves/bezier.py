"""
Cubic Bezier primitives: evaluation, de Casteljau split and builders for
lines and circular arcs.

Functions accept either a CubicBezier3 or a (4, 3) array of control points.
"""

import math

import numpy as np

from hlrdraw.geometry.vec import basis_from_axis, normalize, vec3
from hlrdraw.models import CubicBezier3

# Curves whose end points are closer than this are degenerate.
DEGENERATE_EPS_SQ = 1e-18


def control_points(bez):
    if isinstance(bez, CubicBezier3):
        return bez.control_points()
    return np.asarray(bez, dtype=float).reshape(4, 3)


def _bernstein(i, t):
    """Bernstein basis polynomial B_i,3(t)."""
    mt = 1.0 - t
    if i == 0:
        return mt * mt * mt
    elif i == 1:
        return 3.0 * mt * mt * t
    elif i == 2:
        return 3.0 * mt * t * t
    else:
        return t * t * t


def evaluate(bez, t):
    """Point at parameter t (scalar) or at every entry of an array of t."""
    p = control_points(bez)
    t_arr = np.asarray(t, dtype=float)
    basis = np.stack([_bernstein(i, t_arr) for i in range(4)], axis=-1)
    return basis @ p


def derivative(bez, t):
    p = control_points(bez)
    mt = 1.0 - t
    return 3.0 * ((p[1] - p[0]) * mt * mt + 2.0 * (p[2] - p[1]) * mt * t + (p[3] - p[2]) * t * t)


def second_derivative(bez, t):
    p = control_points(bez)
    return 6.0 * ((p[2] - 2.0 * p[1] + p[0]) * (1.0 - t) + (p[3] - 2.0 * p[2] + p[1]) * t)


def split(bez, t):
    """Exact de Casteljau split at t. Returns (left, right) CubicBezier3."""
    p = control_points(bez)
    a = p[0] + (p[1] - p[0]) * t
    c = p[1] + (p[2] - p[1]) * t
    d = p[2] + (p[3] - p[2]) * t
    e = a + (c - a) * t
    f = c + (d - c) * t
    g = e + (f - e) * t
    return (
        CubicBezier3.from_points([p[0], a, e, g]),
        CubicBezier3.from_points([g, f, d, p[3]]),
    )


def chord_length_sq(bez):
    p = control_points(bez)
    d = p[3] - p[0]
    return float(np.dot(d, d))


def is_degenerate(bez, eps_sq=DEGENERATE_EPS_SQ):
    """True when the curve collapses to a point (p0 ~ p3 and handles on p0)."""
    p = control_points(bez)
    return all(float(np.dot(p[i] - p[0], p[i] - p[0])) <= eps_sq for i in (1, 2, 3))


def is_finite(bez):
    return bool(np.all(np.isfinite(control_points(bez))))


def line_to_cubic(p0, p3):
    """Straight cubic with handles at 1/3 and 2/3 of the chord."""
    p0 = vec3(p0)
    p3 = vec3(p3)
    d = p3 - p0
    return CubicBezier3.from_points([p0, p0 + d / 3.0, p0 + d * (2.0 / 3.0), p3])


def polyline_to_cubics(points, closed=False):
    """One straight cubic per polyline edge."""
    pts = [vec3(p) for p in points]
    out = [line_to_cubic(a, b) for a, b in zip(pts, pts[1:])]
    if closed and len(pts) > 2:
        out.append(line_to_cubic(pts[-1], pts[0]))
    return out


def arc_handle_ratio(sweep_rad):
    """Handle length over radius for a cubic approximating an arc of this sweep."""
    return 4.0 / 3.0 * math.tan(sweep_rad / 4.0)


def _arc_to_cubic(center, u, v, radius, a0, a1):
    k = arc_handle_ratio(a1 - a0)
    c0, s0 = math.cos(a0), math.sin(a0)
    c1, s1 = math.cos(a1), math.sin(a1)
    p0 = center + (u * c0 + v * s0) * radius
    p3 = center + (u * c1 + v * s1) * radius
    t0 = -u * s0 + v * c0
    t1 = -u * s1 + v * c1
    return CubicBezier3.from_points([p0, p0 + t0 * (k * radius), p3 - t1 * (k * radius), p3])


def circle_to_cubics(center, normal, radius, start_angle=0.0, end_angle=2.0 * math.pi):
    """
    Circle (or arc) in the plane perpendicular to normal as cubics.

    The sweep is divided into segments of at most 90 degrees. Angles are
    measured in the basis returned by basis_from_axis(normal).
    """
    n = normalize(vec3(normal))
    if radius <= 0.0 or not np.any(n):
        return []
    center = vec3(center)
    u, v = basis_from_axis(n)
    sweep = end_angle - start_angle
    segments = max(1, int(math.ceil(abs(sweep) / (math.pi / 2.0) - 1e-12)))
    out = []
    for i in range(segments):
        a0 = start_angle + sweep * i / segments
        a1 = start_angle + sweep * (i + 1) / segments
        out.append(_arc_to_cubic(center, u, v, radius, a0, a1))
    return out

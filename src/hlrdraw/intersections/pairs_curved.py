"""
Intersection curves between pairs of curved solids.

Sphere-sphere is a closed-form circle. The other pairs parametrize one
solid's side surface by the angle theta around its axis, substitute into the
other solid's implicit equation and solve the resulting quadratic for the
remaining axial parameter. Roots are filtered to both solids' axial ranges,
tracked into two branches by root value and assembled into runs.
"""

import math

import numpy as np

from hlrdraw.config import BezierFitConfig, IntersectionConfig
from hlrdraw.curves.bezier import circle_to_cubics
from hlrdraw.geometry.vec import basis_from_axis, is_finite
from hlrdraw.intersections.branches import (
    BranchState,
    KeyedCandidate,
    assemble_runs,
    assign_branches,
    fit_params_for,
    median_consecutive_step,
    runs_to_cubics,
)
from hlrdraw.intersections.quadratic import solve_quadratic

AXIAL_EPS = 1e-6


def _options(config, fit):
    return (config or IntersectionConfig()).normalized(), (fit or BezierFitConfig()).normalized()


def _directions(n):
    """(cos, sin) of n evenly spaced angles over a full turn."""
    for i in range(n):
        th = 2.0 * math.pi * i / n
        yield math.cos(th), math.sin(th)


def _track(n, u, v, candidates_at):
    """Walk n angles and route every finite candidate into branches."""
    state = BranchState()
    for c, s in _directions(n):
        w = u * c + v * s
        candidates = [cand for cand in candidates_at(w) if is_finite(cand.point) and math.isfinite(cand.key)]
        state = assign_branches(state, candidates)
    return state


def _to_cubics(state, step, max_jump, error_factor, config, fit, max_alpha_factor=None):
    branches = assemble_runs(state, step, max_jump, step * 3.0, config.min_tangent_cos)
    params = fit_params_for(fit, step, error_factor, max_alpha_factor)
    return runs_to_cubics(
        branches,
        close_eps=step * 3.0,
        fit_params=params,
        use_bezier_fit=config.use_bezier_fit,
        fit_mode=config.fit_mode,
    )


def _inside_axial(point, origin, axis, height):
    y = float(np.dot(point - origin, axis))
    return -AXIAL_EPS <= y <= height + AXIAL_EPS


def intersect_sphere_sphere(s0, s1, config=None, fit=None):
    """Circle where two spheres meet; [] for disjoint, nested or concentric spheres."""
    if s0.is_degenerate or s1.is_degenerate:
        return []
    d_vec = s1.center_vec - s0.center_vec
    d = float(np.linalg.norm(d_vec))
    r0, r1 = s0.radius, s1.radius
    if d <= 1e-9 or d > r0 + r1 or d < abs(r0 - r1):
        return []
    x = (r0 * r0 - r1 * r1 + d * d) / (2.0 * d)
    h2 = r0 * r0 - x * x
    if h2 < 0.0:
        return []
    n = d_vec / d
    return circle_to_cubics(s0.center_vec + n * x, n, math.sqrt(h2))


def intersect_sphere_cylinder(sphere, cyl, config=None, fit=None):
    """Walk the cylinder side: |base + a*h + r*w - c|^2 = R^2 is quadratic in h."""
    if sphere.is_degenerate or cyl.is_degenerate:
        return []
    config, fit = _options(config, fit)
    n = max(32, config.angular_samples)
    a = cyl.axis_unit
    u, v = basis_from_axis(a)
    base = cyl.base_vec
    radius = cyl.radius
    r2 = sphere.radius * sphere.radius

    def candidates_at(w):
        q = base - sphere.center_vec + w * radius
        roots = solve_quadratic(1.0, 2.0 * float(np.dot(a, q)), float(np.dot(q, q)) - r2)
        return [
            KeyedCandidate(h, base + a * h + w * radius)
            for h in roots if 0.0 <= h <= cyl.height
        ]

    state = _track(n, u, v, candidates_at)
    step = 2.0 * math.pi * max(1e-3, radius) / n
    return _to_cubics(state, step, step * 12.0, 0.55, config, fit)


def intersect_sphere_cone(sphere, cone, config=None, fit=None):
    """Walk the cone generators apex + y*(a + k*w): quadratic in y."""
    if sphere.is_degenerate or cone.is_degenerate:
        return []
    config, fit = _options(config, fit)
    n = max(32, config.angular_samples)
    a = cone.axis_unit
    k = cone.k
    u, v = basis_from_axis(a)
    apex = cone.apex_vec
    d0 = apex - sphere.center_vec
    big_a = 1.0 + k * k
    big_c = float(np.dot(d0, d0)) - sphere.radius * sphere.radius

    def candidates_at(w):
        direction = a + w * k
        roots = solve_quadratic(big_a, 2.0 * float(np.dot(d0, direction)), big_c)
        return [KeyedCandidate(y, apex + direction * y) for y in roots if 0.0 <= y <= cone.height]

    state = _track(n, u, v, candidates_at)
    step = 2.0 * math.pi * max(1e-3, cone.base_radius) / n
    return _to_cubics(state, step, step * 12.0, 0.55, config, fit)


def _cylinder_constraint(y0, d, cyl):
    """Roots s of |perp(y0 + d*s)|^2 = r^2, perp taken against cyl's axis, y0 relative to its base."""
    a = cyl.axis_unit
    p0 = y0 - a * float(np.dot(y0, a))
    p1 = d - a * float(np.dot(d, a))
    return solve_quadratic(
        float(np.dot(p1, p1)),
        2.0 * float(np.dot(p0, p1)),
        float(np.dot(p0, p0)) - cyl.radius * cyl.radius,
    )


def _cone_constraint(x0, d, cone):
    """Roots s of the cone's implicit equation along the line x0 + d*s."""
    a = cone.axis_unit
    k2 = cone.k * cone.k
    z0 = x0 - cone.apex_vec
    y0 = float(np.dot(z0, a))
    y1 = float(np.dot(d, a))
    p0 = z0 - a * y0
    p1 = d - a * y1
    return solve_quadratic(
        float(np.dot(p1, p1)) - k2 * y1 * y1,
        2.0 * float(np.dot(p0, p1)) - 2.0 * k2 * y0 * y1,
        float(np.dot(p0, p0)) - k2 * y0 * y0,
    )


def intersect_cylinder_cylinder(c0, c1, config=None, fit=None):
    """Walk c0's side generators base0 + r0*w + a0*s against c1's side."""
    if c0.is_degenerate or c1.is_degenerate:
        return []
    config, fit = _options(config, fit)
    n = max(48, config.angular_samples)
    a0 = c0.axis_unit
    u, v = basis_from_axis(a0)

    def candidates_at(w):
        x0 = c0.base_vec + w * c0.radius
        out = []
        for s in _cylinder_constraint(x0 - c1.base_vec, a0, c1):
            if not 0.0 <= s <= c0.height:
                continue
            p = x0 + a0 * s
            if _inside_axial(p, c1.base_vec, c1.axis_unit, c1.height):
                out.append(KeyedCandidate(s, p))
        return out

    state = _track(n, u, v, candidates_at)
    step = 2.0 * math.pi * max(1e-3, c0.radius, c1.radius) / n
    return _to_cubics(state, step, step * 14.0, 0.6, config, fit)


def intersect_cylinder_cone(cyl, cone, config=None, fit=None):
    """Walk the cylinder side generators against the cone's implicit equation."""
    if cyl.is_degenerate or cone.is_degenerate:
        return []
    config, fit = _options(config, fit)
    n = max(48, config.angular_samples)
    a = cyl.axis_unit
    u, v = basis_from_axis(a)

    def candidates_at(w):
        x0 = cyl.base_vec + w * cyl.radius
        out = []
        for s in _cone_constraint(x0, a, cone):
            if not 0.0 <= s <= cyl.height:
                continue
            p = x0 + a * s
            if _inside_axial(p, cone.apex_vec, cone.axis_unit, cone.height):
                out.append(KeyedCandidate(s, p))
        return out

    state = _track(n, u, v, candidates_at)
    step = 2.0 * math.pi * max(1e-3, cyl.radius, cone.base_radius) / n
    return _to_cubics(state, step, step * 14.0, 0.6, config, fit)


def intersect_cone_cone(cone0, cone1, config=None, fit=None):
    """
    Walk cone0's generators apex0 + y*(a0 + k0*w) against cone1.

    Cone pairs can have branches that are born or die sharply, so the jump
    threshold adapts to the median point spacing instead of a fixed factor.
    """
    if cone0.is_degenerate or cone1.is_degenerate:
        return []
    config, fit = _options(config, fit)
    n = max(64, config.angular_samples)
    a0 = cone0.axis_unit
    k0 = cone0.k
    u, v = basis_from_axis(a0)
    apex = cone0.apex_vec

    def candidates_at(w):
        d = a0 + w * k0
        out = []
        for y in _cone_constraint(apex, d, cone1):
            if not 0.0 <= y <= cone0.height:
                continue
            p = apex + d * y
            if _inside_axial(p, cone1.apex_vec, cone1.axis_unit, cone1.height):
                out.append(KeyedCandidate(y, p))
        return out

    state = _track(n, u, v, candidates_at)
    step = 2.0 * math.pi * max(1e-3, cone0.base_radius, cone1.base_radius) / n
    est = max(median_consecutive_step(state.points0, step), median_consecutive_step(state.points1, step))
    max_jump = max(step * 6.0, est * 4.0)
    return _to_cubics(state, step, max_jump, 0.65, config, fit, max_alpha_factor=1.2)

"""
Sections of curved solids by flat patches (disks, rectangles, box faces).

A plane cuts a sphere in a circle, a cylinder in an ellipse (or in
generator lines when it runs parallel to the axis) and a cone in a conic
(or in generator lines when it passes through the apex). Circles and conics
are sampled around the solid's axis, kept where they fall inside the patch
and fitted; generator lines are solved exactly and clipped to the patch.
"""

import math

import numpy as np

from hlrdraw.curves.bezier import line_to_cubic
from hlrdraw.geometry.vec import basis_from_axis
from hlrdraw.intersections.patches import as_patch, circle_in_patch, marker_at, sampled_runs_to_cubics

SPHERE_SAMPLES = 220
CYLINDER_SAMPLES = 180
CONE_SAMPLES = 220
AXIAL_EPS = 1e-6


def plane_sphere(surface, sphere, config=None, fit=None):
    patch = as_patch(surface)
    if patch.is_degenerate or sphere.is_degenerate:
        return []
    n = patch.normal
    dist = float(np.dot(n, sphere.center_vec - patch.point))
    if abs(dist) > sphere.radius + 1e-7:
        return []
    center = sphere.center_vec - n * dist
    r = math.sqrt(max(0.0, sphere.radius * sphere.radius - dist * dist))
    if r <= 1e-8:
        if not patch.contains(center):
            return []
        return marker_at(center, n, max(0.02, patch.typical_size * 0.02))
    return circle_in_patch(center, n, r, patch, SPHERE_SAMPLES, config, fit)


def _clipped_line(patch, a, b):
    clipped = patch.clip_segment(a, b)
    if clipped is None:
        return []
    return [line_to_cubic(*clipped)]


def _angle_solutions(nu, nv, rhs_numerator):
    """Angles psi with nu*cos(psi) + nv*sin(psi) = rhs_numerator."""
    m = math.hypot(nu, nv)
    if m <= 1e-12:
        return []
    rhs = rhs_numerator / m
    if abs(rhs) > 1.0:
        return []
    phi = math.atan2(nv, nu)
    delta = math.acos(rhs)
    if delta <= 1e-12:
        return [phi]
    return [phi + delta, phi - delta]


def plane_cylinder(surface, cyl, config=None, fit=None):
    patch = as_patch(surface)
    if patch.is_degenerate or cyl.is_degenerate:
        return []
    n = patch.normal
    d_plane = patch.plane_offset()
    a = cyl.axis_unit
    u, v = basis_from_axis(a)
    denom = float(np.dot(n, a))

    if abs(denom) <= 1e-10:
        # plane parallel to the axis: 0, 1 or 2 generator lines
        out = []
        offset = (d_plane - float(np.dot(n, cyl.base_vec))) / cyl.radius
        for th in _angle_solutions(float(np.dot(n, u)), float(np.dot(n, v)), offset):
            w = u * math.cos(th) + v * math.sin(th)
            p0 = cyl.base_vec + w * cyl.radius
            out.extend(_clipped_line(patch, p0, p0 + a * cyl.height))
        return out

    samples = []
    for i in range(CYLINDER_SAMPLES):
        th = 2.0 * math.pi * i / CYLINDER_SAMPLES
        w = u * math.cos(th) + v * math.sin(th)
        on_circle = cyl.base_vec + w * cyl.radius
        s = (d_plane - float(np.dot(n, on_circle))) / denom
        p = on_circle + a * s
        if -AXIAL_EPS <= s <= cyl.height + AXIAL_EPS and patch.contains(p):
            samples.append(p)
        else:
            samples.append(None)
    step = 2.0 * math.pi * max(1e-3, cyl.radius) / CYLINDER_SAMPLES
    return sampled_runs_to_cubics(samples, step, 0.65, config, fit)


def plane_cone(surface, cone, config=None, fit=None):
    patch = as_patch(surface)
    if patch.is_degenerate or cone.is_degenerate:
        return []
    n = patch.normal
    d_plane = patch.plane_offset()
    a = cone.axis_unit
    k = cone.k
    u, v = basis_from_axis(a)
    apex = cone.apex_vec
    apex_offset = d_plane - float(np.dot(n, apex))

    if abs(apex_offset) <= 1e-9:
        # plane through the apex: generators with n . (a + k*w) = 0
        out = []
        for psi in _angle_solutions(float(np.dot(n, u)) * k, float(np.dot(n, v)) * k, -float(np.dot(n, a))):
            w = u * math.cos(psi) + v * math.sin(psi)
            out.extend(_clipped_line(patch, apex, cone.base_center + w * cone.base_radius))
        return out

    samples = []
    for i in range(CONE_SAMPLES):
        th = 2.0 * math.pi * i / CONE_SAMPLES
        w = u * math.cos(th) + v * math.sin(th)
        direction = a + w * k
        denom = float(np.dot(n, direction))
        if abs(denom) <= 1e-8:
            samples.append(None)
            continue
        y = apex_offset / denom
        p = apex + direction * y
        if -AXIAL_EPS <= y <= cone.height + AXIAL_EPS and patch.contains(p):
            samples.append(p)
        else:
            samples.append(None)
    step = 2.0 * math.pi * max(1e-3, cone.base_radius) / CONE_SAMPLES
    return sampled_runs_to_cubics(samples, step, 0.65, config, fit)


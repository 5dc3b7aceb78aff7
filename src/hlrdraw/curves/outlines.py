"""
Automatically generated outline curves: silhouettes, rims, borders and box
edges. Silhouettes depend on the camera; the rest are fixed feature lines.
"""

import math

import numpy as np

from hlrdraw.curves.bezier import circle_to_cubics, line_to_cubic, polyline_to_cubics
from hlrdraw.geometry.vec import basis_from_axis, normalize
from hlrdraw.tracer import get_tracer, trace


def sphere_silhouette(sphere, camera):
    """Circle where view rays graze the sphere. None when the eye is inside."""
    if sphere.is_degenerate:
        return []
    c = sphere.center_vec
    r = sphere.radius
    if camera.kind == "orthographic":
        return circle_to_cubics(c, camera.forward, r)

    o = camera.eye
    u = c - o
    d = float(np.linalg.norm(u))
    if d <= r * (1.0 + 1e-8):
        return []
    k = 1.0 - (r * r) / (d * d)
    radius = r * math.sqrt(max(0.0, d * d - r * r)) / d
    return circle_to_cubics(o + u * k, u / d, radius)


def _cylinder_generators(cyl, normals):
    top = cyl.top_center
    return [
        line_to_cubic(cyl.base_vec + n * cyl.radius, top + n * cyl.radius)
        for n in normals
    ]


def cylinder_silhouette(cyl, camera):
    """Two tangent generators of the side surface."""
    if cyl.is_degenerate:
        return []
    a = cyl.axis_unit

    if camera.kind == "orthographic":
        n = normalize(np.cross(a, camera.forward))
        if not np.any(n):
            return []
        return _cylinder_generators(cyl, [n, -n])

    w = camera.eye - cyl.base_vec
    w_perp = w - a * float(np.dot(w, a))
    w_len = float(np.linalg.norm(w_perp))
    if w_len <= cyl.radius * (1.0 + 1e-8):
        return []
    w_unit = w_perp / w_len
    perp = normalize(np.cross(a, w_unit))
    cos_phi = cyl.radius / w_len
    sin_phi = math.sqrt(max(0.0, 1.0 - cos_phi * cos_phi))
    n0 = w_unit * cos_phi + perp * sin_phi
    n1 = w_unit * cos_phi - perp * sin_phi
    return _cylinder_generators(cyl, [n0, n1])


def cone_silhouette(cone, camera):
    """
    Two tangent generators from the apex to the base rim.

    A generator at angle psi has normal w(psi) - k*a; it is on the outline
    when that normal is perpendicular to the view ray.
    """
    if cone.is_degenerate:
        return []
    a = cone.axis_unit
    k = cone.k
    u, v = basis_from_axis(a)
    if camera.kind == "orthographic":
        q = camera.forward
    else:
        q = camera.eye - cone.apex_vec
    qu = float(np.dot(q, u))
    qv = float(np.dot(q, v))
    qa = float(np.dot(q, a))
    m = math.hypot(qu, qv)
    if m <= 1e-8:
        return []
    rhs = k * qa / m
    if abs(rhs) > 1.0:
        return []
    phi = math.atan2(qv, qu)
    delta = math.acos(rhs)
    out = []
    for psi in (phi + delta, phi - delta):
        w = u * math.cos(psi) + v * math.sin(psi)
        out.append(line_to_cubic(cone.apex_vec, cone.base_center + w * cone.base_radius))
    return out


def cylinder_rims(cyl):
    if cyl.is_degenerate:
        return []
    a = cyl.axis_unit
    return circle_to_cubics(cyl.base_vec, a, cyl.radius) + circle_to_cubics(cyl.top_center, a, cyl.radius)


def cone_rim(cone):
    if cone.is_degenerate:
        return []
    return circle_to_cubics(cone.base_center, cone.axis_unit, cone.base_radius)


def disk_rim(disk):
    if disk.is_degenerate:
        return []
    return circle_to_cubics(disk.center_vec, disk.normal_unit, disk.radius)


def plane_rect_border(rect):
    if rect.is_degenerate:
        return []
    return polyline_to_cubics(rect.corners(), closed=True)


# Corner index pairs along the 12 box edges (bit i of an index selects max on axis i).
_BOX_EDGES = (
    (0, 1), (1, 5), (5, 4), (4, 0),
    (2, 3), (3, 7), (7, 6), (6, 2),
    (0, 2), (1, 3), (5, 7), (4, 6),
)


def box_edges(box):
    if box.is_degenerate:
        return []
    corners = box.corners()
    return [line_to_cubic(corners[i], corners[j]) for i, j in _BOX_EDGES]


_SILHOUETTES = {
    "sphere": sphere_silhouette,
    "cylinder": cylinder_silhouette,
    "cone": cone_silhouette,
}

_RIMS = {
    "cylinder": cylinder_rims,
    "cone": cone_rim,
    "disk": disk_rim,
}


@trace(label="outline_curves")
def outline_curves(primitives, camera, include=None):
    """
    Outline curves of every primitive, grouped by family in this order:
    silhouettes, rims, borders, box edges.

    Args:
        primitives: scene primitives
        camera: Camera the silhouettes are computed for
        include: IncludeConfig selecting the families (all by default)
    """
    tracer = get_tracer()
    silhouettes = True if include is None else include.silhouettes
    rims = True if include is None else include.rims
    borders = True if include is None else include.borders
    edges = True if include is None else include.box_edges

    out = []
    if silhouettes:
        for p in primitives:
            fn = _SILHOUETTES.get(p.kind)
            if fn:
                out.extend(fn(p, camera))
    if rims:
        for p in primitives:
            fn = _RIMS.get(p.kind)
            if fn:
                out.extend(fn(p))
    if borders:
        for p in primitives:
            if p.kind == "plane_rect":
                out.extend(plane_rect_border(p))
    if edges:
        for p in primitives:
            if p.kind == "box":
                out.extend(box_edges(p))

    tracer.event(f"Generated {len(out)} outline curves")
    return out

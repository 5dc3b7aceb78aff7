"""
Exact intersections between flat surfaces: rectangles, disks, box faces.

Two non-parallel planes meet in a line, clipped to both patches. Coplanar
disks meet at their rim crossings (drawn as small markers); a disk coplanar
with a rectangle contributes the part of its rim inside the rectangle.
"""

import math

import numpy as np

from hlrdraw.curves.bezier import line_to_cubic
from hlrdraw.geometry.vec import basis_from_axis
from hlrdraw.intersections.patches import as_patch, circle_in_patch, marker_at

PARALLEL_EPS_SQ = 1e-12
COPLANAR_EPS = 1e-6
COPLANAR_DISK_RECT_SAMPLES = 260


def plane_line(n0, d0, n1, d1):
    """
    Line where planes n0.x = d0 and n1.x = d1 meet, as (point, unit_dir),
    or None for parallel planes.
    """
    dir_raw = np.cross(n0, n1)
    len_sq = float(np.dot(dir_raw, dir_raw))
    if len_sq <= PARALLEL_EPS_SQ:
        return None
    x0 = np.cross(n1 * d0 - n0 * d1, dir_raw) / len_sq
    return x0, dir_raw / math.sqrt(len_sq)


def _patch_patch_line(p0, p1):
    line = plane_line(p0.normal, p0.plane_offset(), p1.normal, p1.plane_offset())
    if line is None:
        return None
    x0, direction = line
    i0 = p0.clip_line(x0, direction)
    if i0 is None:
        return None
    i1 = p1.clip_line(x0, direction)
    if i1 is None:
        return None
    lo = max(i0[0], i1[0])
    hi = min(i0[1], i1[1])
    if hi < lo:
        return None
    return [line_to_cubic(x0 + direction * lo, x0 + direction * hi)]


def _coplanar(p0, p1):
    return abs(float(np.dot(p0.normal, p1.point - p0.point))) <= COPLANAR_EPS


def intersect_plane_rect_plane_rect(r0, r1, config=None, fit=None):
    """Segment shared by two rectangles; [] when parallel."""
    p0, p1 = as_patch(r0), as_patch(r1)
    if p0.is_degenerate or p1.is_degenerate:
        return []
    return _patch_patch_line(p0, p1) or []


def _circle_crossings(d0, d1):
    """Markers at the rim crossings of two coplanar disks."""
    n = d0.normal
    u, v = basis_from_axis(n)
    r0 = d0.surface.radius
    r1 = d1.surface.radius
    dc = d1.point - d0.point
    x = float(np.dot(dc, u))
    y = float(np.dot(dc, v))
    dist = math.hypot(x, y)
    # coincident rims cross everywhere; concentric ones nowhere
    if dist <= 1e-9:
        return []
    if dist > r0 + r1 + 1e-7 or dist < abs(r0 - r1) - 1e-7:
        return []

    a = (r0 * r0 - r1 * r1 + dist * dist) / (2.0 * dist)
    h2 = r0 * r0 - a * a
    ex, ey = x / dist, y / dist
    base = d0.point + u * (a * ex) + v * (a * ey)
    size = 0.03 * max(0.1, min(r0, r1))
    if abs(h2) <= 1e-8:
        return marker_at(base, n, size)
    h = math.sqrt(max(0.0, h2))
    offset = u * (-ey * h) + v * (ex * h)
    return marker_at(base + offset, n, size) + marker_at(base - offset, n, size)


def intersect_disk_disk(d0, d1, config=None, fit=None):
    """Chord shared by two disks, or rim-crossing markers when coplanar."""
    p0, p1 = as_patch(d0), as_patch(d1)
    if p0.is_degenerate or p1.is_degenerate:
        return []
    if float(np.dot(np.cross(p0.normal, p1.normal), np.cross(p0.normal, p1.normal))) <= PARALLEL_EPS_SQ:
        if not _coplanar(p0, p1):
            return []
        return _circle_crossings(p0, p1)
    return _patch_patch_line(p0, p1) or []


def intersect_disk_plane_rect(disk, rect, config=None, fit=None):
    """Chord of the disk inside the rectangle, or its rim inside the rectangle when coplanar."""
    pd, pr = as_patch(disk), as_patch(rect)
    if pd.is_degenerate or pr.is_degenerate:
        return []
    cross = np.cross(pd.normal, pr.normal)
    if float(np.dot(cross, cross)) <= PARALLEL_EPS_SQ:
        if not _coplanar(pr, pd):
            return []
        return circle_in_patch(pd.point, pd.normal, disk.radius, pr, COPLANAR_DISK_RECT_SAMPLES, config, fit)
    return _patch_patch_line(pd, pr) or []


def intersect_box_box(a, b, config=None, fit=None):
    """Segments where faces of two boxes cross."""
    out = []
    for fa in a.faces():
        for fb in b.faces():
            out.extend(intersect_plane_rect_plane_rect(fa, fb))
    return out


def intersect_disk_box(disk, box, config=None, fit=None):
    """Chords of a disk across the faces of a box."""
    out = []
    for face in box.faces():
        out.extend(intersect_disk_plane_rect(disk, face, config, fit))
    return out


def _box_edge_segments(box):
    c = box.corners()
    pairs = (
        (0, 1), (2, 3), (4, 5), (6, 7),
        (0, 2), (1, 3), (4, 6), (5, 7),
        (0, 4), (1, 5), (2, 6), (3, 7),
    )
    return [(c[i], c[j]) for i, j in pairs]


def intersect_plane_rect_box(rect, box, config=None, fit=None):
    """
    Outline of the box section cut by the rectangle's plane, clipped to the
    rectangle. Box edges lying in the plane are clipped and kept as well.
    """
    patch = as_patch(rect)
    if patch.is_degenerate or box.is_degenerate:
        return []
    n = patch.normal
    out = []
    crossings = []
    for a, b in _box_edge_segments(box):
        da = float(np.dot(n, a - patch.point))
        db = float(np.dot(n, b - patch.point))
        if abs(da) <= 1e-9 and abs(db) <= 1e-9:
            clipped = patch.clip_segment(a, b)
            if clipped is not None:
                out.append(line_to_cubic(*clipped))
            continue
        if da * db > 0.0:
            continue
        t = min(1.0, max(0.0, da / (da - db)))
        crossings.append(a + (b - a) * t)

    u = rect.u
    v = rect.v
    unique = []
    for p in crossings:
        d = p - patch.point
        uv = (float(np.dot(d, u)), float(np.dot(d, v)))
        if all((uv[0] - q[0]) ** 2 + (uv[1] - q[1]) ** 2 > 1e-12 for q, _ in unique):
            unique.append((uv, p))
    if len(unique) < 2:
        return out

    if len(unique) == 2:
        segments = [(unique[0][1], unique[1][1])]
    else:
        cu = sum(q[0] for q, _ in unique) / len(unique)
        cv = sum(q[1] for q, _ in unique) / len(unique)
        ordered = [p for _, p in sorted(unique, key=lambda item: math.atan2(item[0][1] - cv, item[0][0] - cu))]
        segments = [(ordered[i], ordered[(i + 1) % len(ordered)]) for i in range(len(ordered))]

    for a, b in segments:
        clipped = patch.clip_segment(a, b)
        if clipped is not None:
            out.append(line_to_cubic(*clipped))
    return out

"""
Intersection-curve orchestration.

Enumerates every pair of surfaces that can meet, resolves the solver for
the pair's kinds through a table and tags each resulting cubic with the ids
of its owners (plus their parents for cap disks and box faces) so the
visibility pass does not let the owners hide their own seam.
"""

from hlrdraw.config import PipelineConfig
from hlrdraw.curves.bezier import is_degenerate, is_finite
from hlrdraw.geometry.primitives import CURVED_KINDS, derived_cap_disks, owner_ids
from hlrdraw.intersections.pairs_curved import (
    intersect_cone_cone,
    intersect_cylinder_cone,
    intersect_cylinder_cylinder,
    intersect_sphere_cone,
    intersect_sphere_cylinder,
    intersect_sphere_sphere,
)
from hlrdraw.intersections.pairs_planar import (
    intersect_box_box,
    intersect_disk_box,
    intersect_disk_disk,
    intersect_disk_plane_rect,
    intersect_plane_rect_box,
    intersect_plane_rect_plane_rect,
)
from hlrdraw.intersections.plane_curved import plane_cone, plane_cylinder, plane_sphere
from hlrdraw.models import OwnedCubic3
from hlrdraw.tracer import get_tracer, trace
from hlrdraw.workers import map_tasks


def _box_faces_curved(fn):
    def solve(box, solid, config=None, fit=None):
        out = []
        for face in box.faces():
            out.extend(fn(face, solid, config, fit))
        return out
    solve.__name__ = f"box_{fn.__name__}"
    return solve


# Solvers keyed by (kind_a, kind_b). A pair missing here is looked up reversed.
PAIR_SOLVERS = {
    ("sphere", "sphere"): intersect_sphere_sphere,
    ("sphere", "cylinder"): intersect_sphere_cylinder,
    ("sphere", "cone"): intersect_sphere_cone,
    ("cylinder", "cylinder"): intersect_cylinder_cylinder,
    ("cylinder", "cone"): intersect_cylinder_cone,
    ("cone", "cone"): intersect_cone_cone,
    ("plane_rect", "plane_rect"): intersect_plane_rect_plane_rect,
    ("disk", "disk"): intersect_disk_disk,
    ("disk", "plane_rect"): intersect_disk_plane_rect,
    ("disk", "box"): intersect_disk_box,
    ("plane_rect", "box"): intersect_plane_rect_box,
    ("box", "box"): intersect_box_box,
    ("plane_rect", "sphere"): plane_sphere,
    ("plane_rect", "cylinder"): plane_cylinder,
    ("plane_rect", "cone"): plane_cone,
    ("disk", "sphere"): plane_sphere,
    ("disk", "cylinder"): plane_cylinder,
    ("disk", "cone"): plane_cone,
    ("box", "sphere"): _box_faces_curved(plane_sphere),
    ("box", "cylinder"): _box_faces_curved(plane_cylinder),
    ("box", "cone"): _box_faces_curved(plane_cone),
}


def resolve_solver(kind_a, kind_b):
    """
    Solver for a pair of kinds as (fn, swapped), or (None, False).

    swapped means the solver expects the arguments in (b, a) order.
    """
    fn = PAIR_SOLVERS.get((kind_a, kind_b))
    if fn is not None:
        return fn, False
    fn = PAIR_SOLVERS.get((kind_b, kind_a))
    if fn is not None:
        return fn, True
    return None, False


def _walk_order(p):
    """Same-kind pairs are solved smaller surface first, ties broken by id."""
    size = getattr(p, "radius", None)
    if size is None:
        size = getattr(p, "base_radius", 0.0)
    return float(size), p.id


def solve_pair(a, b, config=None, fit=None):
    """Intersection cubics of two surfaces, identical for either argument order."""
    fn, swapped = resolve_solver(a.kind, b.kind)
    if fn is None:
        return []
    if swapped or (a.kind == b.kind and _walk_order(b) < _walk_order(a)):
        a, b = b, a
    return fn(a, b, config, fit)


def _same_family(a, b):
    """True when one surface is derived from the other or both share a parent."""
    pa = getattr(a, "parent_id", None)
    pb = getattr(b, "parent_id", None)
    return pa == b.id or pb == a.id or (pa is not None and pa == pb)


def intersection_tasks(primitives):
    """
    Ordered (a, b, ignore_ids) pairs to solve.

    Derived surfaces take part next to the primitives: cap disks of
    cylinders and cones meet other disks, rectangles, boxes and curved
    solids (never their own parent). Box faces are reached through the box
    solvers.
    """
    primitives = list(primitives)
    caps = derived_cap_disks(primitives)
    disks = caps + [p for p in primitives if p.kind == "disk"]
    rects = [p for p in primitives if p.kind == "plane_rect"]
    boxes = [p for p in primitives if p.kind == "box"]
    curved = [p for p in primitives if p.kind in CURVED_KINDS]

    pairs = []
    for i in range(len(disks)):
        for j in range(i + 1, len(disks)):
            if not _same_family(disks[i], disks[j]):
                pairs.append((disks[i], disks[j]))

    for flat in disks + rects + boxes:
        for solid in curved:
            if not _same_family(flat, solid):
                pairs.append((flat, solid))

    for d in disks:
        for r in rects:
            pairs.append((d, r))
        for b in boxes:
            pairs.append((d, b))

    for r in rects:
        for b in boxes:
            pairs.append((r, b))

    for i in range(len(boxes)):
        for j in range(i + 1, len(boxes)):
            pairs.append((boxes[i], boxes[j]))

    for i in range(len(primitives)):
        for j in range(i + 1, len(primitives)):
            a, b = primitives[i], primitives[j]
            if a.kind in CURVED_KINDS and b.kind in CURVED_KINDS:
                pairs.append((a, b))
            elif a.kind == "plane_rect" and b.kind == "plane_rect":
                pairs.append((a, b))

    return [(a, b, owner_ids(a, b)) for a, b in pairs]


def clean_cubics(cubics):
    """Drop non-finite and degenerate cubics."""
    return [bez for bez in cubics if is_finite(bez) and not is_degenerate(bez)]


@trace(label="intersection_curves")
def intersection_curves(primitives, config=None):
    """
    Owned intersection cubics for every meeting pair of surfaces.

    Args:
        primitives: scene primitives
        config: PipelineConfig; intersections, bezier and workers are used

    Returns:
        list of OwnedCubic3 in pair order (deterministic for any worker count)
    """
    tracer = get_tracer()
    config = (config or PipelineConfig()).normalized()
    tasks = intersection_tasks(primitives)

    def run(task):
        a, b, ids = task
        cubics = clean_cubics(solve_pair(a, b, config.intersections, config.bezier))
        return [OwnedCubic3(bez=bez, ignore_ids=ids) for bez in cubics]

    results = map_tasks(run, tasks, config.workers)
    out = [owned for group in results for owned in group]
    tracer.event(f"Solved {len(tasks)} surface pairs into {len(out)} intersection cubics")
    return out

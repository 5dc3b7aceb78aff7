"""
Render pipeline for hlrdraw.

Collects outline curves, user curves and intersection curves for a scene,
splits each at its visibility cuts and returns styled pieces ready for a
vector writer.
"""

from hlrdraw.config import PipelineConfig, load_config
from hlrdraw.curves.outlines import outline_curves
from hlrdraw.hlr.split import split_by_visibility
from hlrdraw.hlr.visibility import VisibilityOracle
from hlrdraw.intersections.curves import intersection_curves
from hlrdraw.models import OwnedCubic3, RenderResult, RenderStats
from hlrdraw.tracer import get_tracer, trace
from hlrdraw.workers import map_tasks


def order_hidden_first(pieces):
    """Stable reorder so hidden pieces come before visible ones."""
    return [p for p in pieces if not p.visible] + [p for p in pieces if p.visible]


@trace(label="render_scene")
def render_scene(primitives, camera, config=None, extra_curves=None):
    """
    Render a scene into visible and hidden curve pieces.

    Outline curves and extra_curves are split with plain visibility.
    Intersection curves carry their owners as ignore ids so the two solids
    that meet along a seam do not hide it.

    Args:
        primitives: scene primitives
        camera: Camera
        config: PipelineConfig (defaults when None)
        extra_curves: optional CubicBezier3 or OwnedCubic3 list drawn with the scene

    Returns:
        RenderResult with pieces ordered hidden first
    """
    tracer = get_tracer()
    config = (config or PipelineConfig()).normalized()
    primitives = list(primitives)

    outlines = outline_curves(primitives, camera, config.include)
    extras = list(extra_curves or [])
    owned = []
    if config.include.intersections:
        owned = intersection_curves(primitives, config)

    jobs = [(bez, None) for bez in outlines]
    for curve in extras:
        if isinstance(curve, OwnedCubic3):
            jobs.append((curve.bez, curve.ignore_ids))
        else:
            jobs.append((curve, None))
    jobs.extend((o.bez, o.ignore_ids) for o in owned)

    oracle = VisibilityOracle(primitives, camera)
    params = config.visibility

    def run(job):
        bez, ignore_ids = job
        return split_by_visibility(bez, oracle, params, ignore_ids)

    with tracer.span("split_curves", module="pipeline", curves=len(jobs)):
        split_groups = map_tasks(run, jobs, config.workers)
    pieces = order_hidden_first([p for group in split_groups for p in group])

    visible = sum(1 for p in pieces if p.visible)
    stats = RenderStats(
        primitives=len(primitives),
        outline_curves=len(outlines),
        extra_curves=len(extras),
        intersection_curves=len(owned),
        pieces=len(pieces),
        visible_pieces=visible,
        hidden_pieces=len(pieces) - visible,
    )
    tracer.event(f"Rendered {stats.pieces} pieces ({stats.visible_pieces} visible, {stats.hidden_pieces} hidden)")
    return RenderResult(pieces=pieces, stats=stats)


@trace(label="render_scene_file", arg_names=["out_path", "stats_path"])
def render_scene_file(scene, out_path, config=None, config_path=None, stats_path=None):
    """
    Render a Scene to an SVG file.

    Args:
        scene: Scene model (camera + primitives)
        out_path: SVG output path
        config: PipelineConfig (optional)
        config_path: YAML config path used when config is None
        stats_path: optional JSON path for the render stats

    Returns:
        RenderResult
    """
    from hlrdraw.export.svg_emit import save_svg
    from hlrdraw.io.save_artifacts import save_json

    if config is None:
        config = load_config(config_path)
    config = config.normalized()

    result = render_scene(scene.primitives, scene.camera, config)
    save_svg(result.pieces, scene.camera, out_path, config.svg)
    if stats_path:
        save_json(result.stats, stats_path)
    return result

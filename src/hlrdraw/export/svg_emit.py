"""
SVG emission for hlrdraw.

Projects styled 3D pieces through the camera and writes them as cubic
paths. Hidden strokes are dashed and faded and sit under the visible ones.
"""

import os

import numpy as np
import svgwrite

from hlrdraw.config import SvgConfig
from hlrdraw.io.save_artifacts import ensure_dir
from hlrdraw.tracer import get_tracer, trace

# Screen-space distance under which consecutive pieces are joined into one path.
CONNECT_EPS = 1e-6


def project_piece(piece, camera, width, height):
    """Screen-space (4, 2) control points of a piece."""
    pts = piece.bez.control_points()
    return camera.project_to_screen(pts, width, height)[:, :2]


def chain_pieces(projected, visibility, connect_eps=CONNECT_EPS):
    """
    Group consecutive same-visibility pieces whose endpoints meet.

    Args:
        projected: list of (4, 2) screen control-point arrays
        visibility: list of bools, one per piece

    Returns:
        list of (visible, [ctrl, ...]) chains in input order
    """
    chains = []
    eps_sq = connect_eps * connect_eps
    for ctrl, visible in zip(projected, visibility):
        if not np.all(np.isfinite(ctrl)):
            continue
        if chains and chains[-1][0] == visible:
            prev_end = chains[-1][1][-1][3]
            d = ctrl[0] - prev_end
            if float(np.dot(d, d)) <= eps_sq:
                chains[-1][1].append(ctrl)
                continue
        chains.append((visible, [ctrl]))
    return chains


def chain_to_svg_path(chain):
    """
    Convert a chain of screen-space cubics to an SVG path d attribute.

    Assumes the cubics are connected (end of one = start of next).
    """
    if not chain:
        return ""

    parts = []
    p0 = chain[0][0]
    parts.append(f"M {p0[0]:.3f} {p0[1]:.3f}")
    for c in chain:
        parts.append(
            f"C {c[1][0]:.3f} {c[1][1]:.3f} {c[2][0]:.3f} {c[2][1]:.3f} {c[3][0]:.3f} {c[3][1]:.3f}"
        )
    return " ".join(parts)


@trace(label="pieces_to_drawing")
def pieces_to_drawing(pieces, camera, svg_config=None):
    """
    Create an SVG document containing all pieces.

    Args:
        pieces: list of StyledPiece objects
        camera: Camera used for the render; its aspect is matched to the canvas
        svg_config: SvgConfig (defaults when None)

    Returns:
        svgwrite.Drawing object
    """
    tracer = get_tracer()
    cfg = (svg_config or SvgConfig()).normalized()
    width, height = cfg.width, cfg.height
    cam = camera.with_aspect(width / height)

    dwg = svgwrite.Drawing(size=(f"{width}px", f"{height}px"))
    dwg.viewbox(0, 0, width, height)

    if cfg.background:
        dwg.add(dwg.rect(insert=(0, 0), size=(width, height), fill=cfg.background))

    projected = [project_piece(p, cam, width, height) for p in pieces]
    chains = chain_pieces(projected, [p.visible for p in pieces])

    hidden_group = dwg.g(
        id="hidden",
        fill="none",
        stroke=cfg.stroke_hidden,
        stroke_width=cfg.width_hidden,
        stroke_dasharray=cfg.hidden_dash,
        stroke_opacity=cfg.hidden_opacity,
        stroke_linecap=cfg.line_cap,
        stroke_linejoin=cfg.line_join,
    )
    visible_group = dwg.g(
        id="visible",
        fill="none",
        stroke=cfg.stroke_visible,
        stroke_width=cfg.width_visible,
        stroke_linecap=cfg.line_cap,
        stroke_linejoin=cfg.line_join,
    )

    n_visible = 0
    n_hidden = 0
    for visible, chain in chains:
        d = chain_to_svg_path(chain)
        if visible:
            visible_group.add(dwg.path(d=d))
            n_visible += 1
        elif cfg.draw_hidden:
            hidden_group.add(dwg.path(d=d))
            n_hidden += 1

    if cfg.draw_hidden:
        dwg.add(hidden_group)
    dwg.add(visible_group)

    tracer.event(f"SVG emitted with {n_visible} visible and {n_hidden} hidden paths")
    return dwg


def pieces_to_svg_string(pieces, camera, svg_config=None):
    """Serialize pieces to an SVG document string."""
    return pieces_to_drawing(pieces, camera, svg_config).tostring()


def save_svg(pieces, camera, path, svg_config=None):
    """
    Write pieces to an SVG file.
    """
    tracer = get_tracer()

    parent = os.path.dirname(path)
    if parent:
        ensure_dir(parent)

    content = pieces_to_svg_string(pieces, camera, svg_config)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)

    tracer.event(f"Saved SVG: {path}")

"""
Built-in sample scenes.
"""

import numpy as np

from hlrdraw.geometry.camera import Camera
from hlrdraw.geometry.primitives import Box, Cone, Cylinder, PlaneRect, Sphere
from hlrdraw.io.scene_file import Scene

_ASPECT = 700.0 / 520.0


def _camera(position, target=(0.0, 0.0, 0.0), fov_y_deg=55.0):
    return Camera(
        kind="perspective",
        position=position,
        target=target,
        up=(0.0, 1.0, 0.0),
        fov_y_deg=fov_y_deg,
        aspect=_ASPECT,
        near=0.1,
        far=100.0,
    )


def simple_primitives():
    return Scene(
        title="Simple primitives: sphere / cylinder / cone / box",
        camera=_camera((4.2, 2.8, 5.4), target=(0.2, 0.0, 0.0)),
        primitives=[
            Sphere(id="sphere", center=(-1.6, 0.2, 0.0), radius=1.0),
            Cylinder(id="cyl", base=(0.4, -1.1, -0.2), axis=(0.0, 1.0, 0.0), height=2.4, radius=0.65),
            Cone(id="cone", apex=(2.2, 1.2, 0.0), axis=(0.0, -1.0, 0.0), height=2.2, base_radius=0.9),
            Box(id="box", min=(-0.6, -0.9, 1.3), max=(0.8, 0.5, 2.7)),
        ],
    )


def conic_section():
    return Scene(
        title="Conic section: plane x cone",
        camera=_camera((3.8, 2.4, 5.2), target=(0.0, 0.1, 0.0)),
        primitives=[
            Cone(id="cone", apex=(0.0, -1.2, 0.0), axis=(0.1, 1.0, -0.15), height=2.6, base_radius=1.0),
            PlaneRect(
                id="plane",
                center=(0.15, 0.1, -0.1),
                normal=(0.0, 1.0, 0.25),
                u_hint=(1.0, 0.0, 0.0),
                half_width=2.6,
                half_height=1.9,
            ),
        ],
    )


def spheres():
    return Scene(
        title="Two overlapping spheres",
        camera=_camera((3.2, 2.2, 4.5), target=(0.75, 0.0, 0.0)),
        primitives=[
            Sphere(id="a", center=(0.0, 0.0, 0.0), radius=1.0),
            Sphere(id="b", center=(1.5, 0.0, 0.0), radius=1.0),
        ],
    )


def box_curved():
    return Scene(
        title="Box x curved solids",
        camera=_camera((3.2, 2.2, 4.5)),
        primitives=[
            Box(id="box", min=(-0.6, -0.6, -0.6), max=(0.6, 0.6, 0.6)),
            Sphere(id="sphere", center=(0.0, 0.0, 0.0), radius=0.9),
            Cylinder(id="cyl", base=(0.0, -1.0, 0.0), axis=(0.0, 1.0, 0.0), height=2.0, radius=0.5),
        ],
    )


def cubes():
    return Scene(
        title="Overlapping cubes",
        camera=_camera((3.2, 2.2, 4.5)),
        primitives=[
            Box(id="cubeA", min=(-1.2, -0.8, -0.6), max=(-0.2, 0.2, 0.4)),
            Box(id="cubeB", min=(-0.1, -0.6, -0.2), max=(0.9, 0.4, 0.8)),
            Box(id="cubeC", min=(0.6, -0.9, 0.2), max=(1.6, 0.1, 1.2)),
            Box(id="cubeD", min=(-0.5, 0.0, 0.1), max=(0.5, 1.0, 1.1)),
        ],
    )


def random_primitives(seed=1337, count=10):
    """Seeded scatter of spheres, cylinders, cones and boxes."""
    rng = np.random.default_rng(seed)
    primitives = []
    for i in range(count):
        kind = ("sphere", "cylinder", "cone", "box")[int(rng.integers(0, 4))]
        c = tuple(float(v) for v in rng.uniform(-2.0, 2.0, size=3))
        size = float(rng.uniform(0.35, 0.9))
        pid = f"{kind}{i}"
        if kind == "sphere":
            primitives.append(Sphere(id=pid, center=c, radius=size))
        elif kind == "cylinder":
            base = (c[0], c[1] - size, c[2])
            primitives.append(Cylinder(id=pid, base=base, axis=(0.0, 1.0, 0.0), height=2.0 * size, radius=size * 0.6))
        elif kind == "cone":
            apex = (c[0], c[1] + size, c[2])
            primitives.append(Cone(id=pid, apex=apex, axis=(0.0, -1.0, 0.0), height=2.0 * size, base_radius=size * 0.7))
        else:
            h = size * 0.6
            primitives.append(Box(id=pid, min=(c[0] - h, c[1] - h, c[2] - h), max=(c[0] + h, c[1] + h, c[2] + h)))
    return Scene(
        title=f"Random primitives (seed: {seed})",
        camera=_camera((5.0, 3.6, 6.2), fov_y_deg=50.0),
        primitives=primitives,
    )


SAMPLES = {
    "simple_primitives": simple_primitives,
    "conic_section": conic_section,
    "spheres": spheres,
    "box_curved": box_curved,
    "cubes": cubes,
    "random_primitives": random_primitives,
}


def list_samples():
    """(name, title) of every built-in sample, sorted by name."""
    return [(name, SAMPLES[name]().title) for name in sorted(SAMPLES)]


def get_sample(name):
    """Build a sample scene by name."""
    builder = SAMPLES.get(name)
    if builder is None:
        raise ValueError(f"Unknown sample: {name!r} (available: {', '.join(sorted(SAMPLES))})")
    return builder()

"""Tests for automatically generated outline curves."""

import numpy as np
import pytest

from hlrdraw.config import IncludeConfig
from hlrdraw.curves.outlines import (
    box_edges,
    cone_rim,
    cone_silhouette,
    cylinder_rims,
    cylinder_silhouette,
    disk_rim,
    outline_curves,
    plane_rect_border,
    sphere_silhouette,
)
from hlrdraw.geometry.camera import Camera
from hlrdraw.geometry.primitives import Box, Cone, Cylinder, Disk, PlaneRect, Sphere


class TestSilhouettes:
    """Tests for camera-dependent silhouettes."""

    def test_sphere_silhouette_perspective(self, unit_sphere, front_camera):
        """Test that the silhouette circle lies on the sphere where view rays graze it."""
        cubics = sphere_silhouette(unit_sphere, front_camera)
        assert len(cubics) == 4
        eye = front_camera.eye
        for bez in cubics:
            p = np.array(bez.p0)
            assert np.linalg.norm(p) == pytest.approx(1.0)
            assert p[2] == pytest.approx(0.2)
            assert float(np.dot(p - eye, p)) == pytest.approx(0.0, abs=1e-9)

    def test_sphere_silhouette_orthographic(self, unit_sphere, ortho_camera):
        """Test that the orthographic silhouette is the great circle facing the view."""
        cubics = sphere_silhouette(unit_sphere, ortho_camera)
        for bez in cubics:
            assert bez.p0[2] == pytest.approx(0.0)
            assert np.linalg.norm(bez.p0) == pytest.approx(1.0)

    def test_eye_inside_sphere(self):
        """Test that an eye inside the sphere has no silhouette."""
        cam = Camera(position=(0.0, 0.0, 0.5), target=(0.0, 0.0, 0.0))
        assert sphere_silhouette(Sphere(id="s", radius=1.0), cam) == []

    def test_cylinder_silhouette_tangency(self, front_camera):
        """Test that the two generators are tangent to the view rays."""
        cyl = Cylinder(id="c", base=(0, -1, 0), axis=(0, 1, 0), height=2.0, radius=0.5)
        cubics = cylinder_silhouette(cyl, front_camera)
        assert len(cubics) == 2
        for bez in cubics:
            p = np.array(bez.p0)
            n = (p - cyl.base_vec) / cyl.radius
            assert np.linalg.norm(n) == pytest.approx(1.0)
            assert float(np.dot(n, p - front_camera.eye)) == pytest.approx(0.0, abs=1e-9)
            assert bez.p3[1] == pytest.approx(1.0)

    def test_cylinder_silhouette_orthographic(self, ortho_camera):
        """Test that orthographic generators sit at +-radius across the view."""
        cyl = Cylinder(id="c", base=(0, -1, 0), axis=(0, 1, 0), height=2.0, radius=0.5)
        xs = sorted(bez.p0[0] for bez in cylinder_silhouette(cyl, ortho_camera))
        assert xs == pytest.approx([-0.5, 0.5])

    def test_camera_on_axis(self):
        """Test that looking straight down an axis gives no generators."""
        cam = Camera(position=(0.0, 5.0, 0.0), target=(0.0, 0.0, 0.0), up=(0.0, 0.0, 1.0))
        cyl = Cylinder(id="c", base=(0, -1, 0), axis=(0, 1, 0), height=2.0, radius=0.5)
        cone = Cone(id="k", apex=(0, 1, 0), axis=(0, -1, 0), height=2.0, base_radius=1.0)
        assert cylinder_silhouette(cyl, cam) == []
        assert cone_silhouette(cone, cam) == []

    def test_cone_silhouette_from_apex(self, front_camera):
        """Test that cone generators run from the apex to the base rim."""
        cone = Cone(id="k", apex=(0, 1, 0), axis=(0, -1, 0), height=2.0, base_radius=1.0)
        cubics = cone_silhouette(cone, front_camera)
        assert len(cubics) == 2
        for bez in cubics:
            assert bez.p0 == pytest.approx((0.0, 1.0, 0.0))
            end = np.array(bez.p3)
            assert end[1] == pytest.approx(-1.0)
            assert np.hypot(end[0], end[2]) == pytest.approx(1.0)


class TestFeatureLines:
    """Tests for rims, borders and box edges."""

    def test_rims(self):
        """Test rim circle counts."""
        assert len(cylinder_rims(Cylinder(id="c"))) == 8
        assert len(cone_rim(Cone(id="k"))) == 4
        assert len(disk_rim(Disk(id="d"))) == 4

    def test_plane_rect_border(self):
        """Test that the border is a closed loop of four edges."""
        cubics = plane_rect_border(PlaneRect(id="r", half_width=2.0, half_height=1.0))
        assert len(cubics) == 4
        assert cubics[-1].p3 == pytest.approx(cubics[0].p0)

    def test_box_edges(self):
        """Test that the 12 edges have the box extents as lengths."""
        cubics = box_edges(Box(id="b", min=(0, 0, 0), max=(1, 2, 3)))
        assert len(cubics) == 12
        lengths = sorted(round(float(np.linalg.norm(np.subtract(b.p3, b.p0))), 9) for b in cubics)
        assert lengths == [1.0] * 4 + [2.0] * 4 + [3.0] * 4

    def test_degenerate_primitives_have_no_outlines(self, front_camera):
        """Test that zero-size primitives produce no curves."""
        prims = [Sphere(id="s", radius=0.0), Cylinder(id="c", radius=0.0), Box(id="b", min=(0, 0, 0), max=(0, 1, 1))]
        assert outline_curves(prims, front_camera) == []


class TestOutlineCurves:
    """Tests for the combined outline generator."""

    def test_include_flags(self, front_camera):
        """Test that families can be switched off."""
        prims = [
            Sphere(id="s", center=(-2, 0, 0)),
            Cylinder(id="c"),
            Box(id="b", min=(1, 0, 0), max=(2, 1, 1)),
        ]
        everything = outline_curves(prims, front_camera)
        no_edges = outline_curves(prims, front_camera, IncludeConfig(box_edges=False))
        only_rims = outline_curves(
            prims, front_camera,
            IncludeConfig(silhouettes=False, borders=False, box_edges=False),
        )

        assert len(everything) == 4 + 2 + 8 + 12
        assert len(no_edges) == len(everything) - 12
        assert len(only_rims) == 8

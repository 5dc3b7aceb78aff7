"""Tests for flat-surface intersections and plane sections of curved solids."""

import math

import numpy as np
import pytest

from hlrdraw.geometry.primitives import Box, Cone, Cylinder, Disk, PlaneRect
from hlrdraw.intersections.pairs_planar import (
    intersect_box_box,
    intersect_disk_box,
    intersect_disk_disk,
    intersect_disk_plane_rect,
    intersect_plane_rect_box,
    intersect_plane_rect_plane_rect,
    plane_line,
)
from hlrdraw.intersections.plane_curved import plane_cone, plane_cylinder, plane_sphere


def _floor(y=0.0, half_width=2.0, half_height=2.0):
    return PlaneRect(id="floor", center=(0, y, 0), normal=(0, 1, 0), u_hint=(1, 0, 0),
                     half_width=half_width, half_height=half_height)


def _end_points(cubics):
    return [np.array(p) for bez in cubics for p in (bez.p0, bez.p3)]


class TestFlatPairs:
    """Tests for rectangles, disks and boxes against each other."""

    def test_plane_line(self):
        """Test the line shared by two planes."""
        x0, direction = plane_line(np.array([0.0, 1.0, 0.0]), 0.0, np.array([1.0, 0.0, 0.0]), 0.0)
        assert np.allclose(np.abs(direction), [0, 0, 1])
        assert np.allclose(x0, [0, 0, 0])
        assert plane_line(np.array([0.0, 1.0, 0.0]), 0.0, np.array([0.0, 1.0, 0.0]), 1.0) is None

    def test_crossing_rects(self):
        """Test that perpendicular rectangles meet in a clipped segment."""
        r0 = _floor(half_width=1.0, half_height=1.0)
        r1 = PlaneRect(id="wall", normal=(1, 0, 0), u_hint=(0, 0, 1), half_width=1.0, half_height=1.0)

        cubics = intersect_plane_rect_plane_rect(r0, r1)

        assert len(cubics) == 1
        zs = sorted([cubics[0].p0[2], cubics[0].p3[2]])
        assert zs == pytest.approx([-1.0, 1.0])
        assert cubics[0].p0[0] == pytest.approx(0.0, abs=1e-12)
        assert cubics[0].p0[1] == pytest.approx(0.0, abs=1e-12)

    def test_parallel_and_disjoint_rects(self):
        """Test that parallel or non-overlapping rectangles do not meet."""
        assert intersect_plane_rect_plane_rect(_floor(), _floor(y=1.0)) == []
        far_wall = PlaneRect(id="wall", center=(0, 0, 5), normal=(1, 0, 0), u_hint=(0, 0, 1),
                             half_width=1.0, half_height=1.0)
        assert intersect_plane_rect_plane_rect(_floor(half_width=1.0, half_height=1.0), far_wall) == []

    def test_disk_disk_chord(self):
        """Test that perpendicular disks share the shorter chord."""
        d0 = Disk(id="d0", normal=(0, 1, 0), radius=1.0)
        d1 = Disk(id="d1", normal=(1, 0, 0), radius=0.5)
        cubics = intersect_disk_disk(d0, d1)
        assert len(cubics) == 1
        assert sorted([cubics[0].p0[2], cubics[0].p3[2]]) == pytest.approx([-0.5, 0.5])

    def test_coplanar_disks_marker_crossings(self):
        """Test that coplanar disks mark their two rim crossings."""
        d0 = Disk(id="d0", normal=(0, 1, 0), radius=1.0)
        d1 = Disk(id="d1", center=(1, 0, 0), normal=(0, 1, 0), radius=1.0)

        cubics = intersect_disk_disk(d0, d1)

        assert len(cubics) == 4
        centers = sorted(
            tuple(np.round((np.array(b.p0) + np.array(b.p3)) / 2.0, 6)) for b in cubics
        )
        expected_z = math.sqrt(0.75)
        assert centers[0] == pytest.approx((0.5, 0.0, -expected_z))
        assert centers[-1] == pytest.approx((0.5, 0.0, expected_z))

    def test_parallel_disks_apart(self):
        """Test that parallel disks in different planes do not meet."""
        d0 = Disk(id="d0", normal=(0, 1, 0), radius=1.0)
        d1 = Disk(id="d1", center=(0, 1, 0), normal=(0, 1, 0), radius=1.0)
        assert intersect_disk_disk(d0, d1) == []

    def test_coplanar_disk_inside_rect(self):
        """Test that a disk lying inside a coplanar rectangle returns its whole rim."""
        disk = Disk(id="d", normal=(0, 1, 0), radius=0.5)
        cubics = intersect_disk_plane_rect(disk, _floor(half_width=1.0, half_height=1.0))
        assert len(cubics) == 4
        for p in _end_points(cubics):
            assert np.linalg.norm(p) == pytest.approx(0.5)

    def test_coplanar_disk_clipped_by_rect(self):
        """Test that only the rim part inside the rectangle is kept."""
        disk = Disk(id="d", normal=(0, 1, 0), radius=1.0)
        rect = _floor(half_width=2.0, half_height=0.5)

        cubics = intersect_disk_plane_rect(disk, rect)

        assert cubics
        for p in _end_points(cubics):
            assert np.linalg.norm(p) == pytest.approx(1.0)
            assert abs(p[2]) <= 0.5 + 1e-6

    def test_box_box(self):
        """Test that overlapping boxes meet in segments on both boundaries."""
        a = Box(id="a", min=(0, 0, 0), max=(1, 1, 1))
        b = Box(id="b", min=(0.5, 0.5, 0.5), max=(1.5, 1.5, 1.5))

        cubics = intersect_box_box(a, b)

        assert cubics
        for p in _end_points(cubics):
            assert np.all(p >= 0.5 - 1e-9) and np.all(p <= 1.0 + 1e-9)

    def test_plane_rect_box_section(self):
        """Test that a plane through a box cuts a closed square outline."""
        box = Box(id="b", min=(0, 0, 0), max=(1, 1, 1))

        cubics = intersect_plane_rect_box(_floor(y=0.5, half_width=5.0, half_height=5.0), box)

        assert len(cubics) == 4
        for p in _end_points(cubics):
            assert p[1] == pytest.approx(0.5)
            assert min(abs(p[0]), abs(p[0] - 1.0)) == pytest.approx(0.0, abs=1e-9)
            assert min(abs(p[2]), abs(p[2] - 1.0)) == pytest.approx(0.0, abs=1e-9)

    def test_disk_box(self):
        """Test that a disk through a box crosses its four side faces."""
        box = Box(id="b", min=(0, 0, 0), max=(1, 1, 1))
        disk = Disk(id="d", center=(0.5, 0.5, 0.5), normal=(0, 1, 0), radius=2.0)

        cubics = intersect_disk_box(disk, box)

        assert len(cubics) == 4
        for bez in cubics:
            assert np.linalg.norm(np.subtract(bez.p3, bez.p0)) == pytest.approx(1.0)


class TestPlaneCurved:
    """Tests for plane sections of spheres, cylinders and cones."""

    def test_plane_sphere_exact_circle(self, unit_sphere):
        """Test that a section fully inside the patch is an exact circle."""
        cubics = plane_sphere(_floor(y=0.5), unit_sphere)
        assert len(cubics) == 4
        for p in _end_points(cubics):
            assert p[1] == pytest.approx(0.5)
            assert np.linalg.norm(p) == pytest.approx(1.0)

    def test_plane_sphere_tangent_marker(self, unit_sphere):
        """Test that a tangent plane leaves a small cross at the contact point."""
        cubics = plane_sphere(_floor(y=1.0), unit_sphere)
        assert len(cubics) == 2
        for bez in cubics:
            mid = (np.array(bez.p0) + np.array(bez.p3)) / 2.0
            assert np.allclose(mid, [0, 1, 0])

    def test_plane_sphere_miss(self, unit_sphere):
        """Test that a distant plane gives nothing."""
        assert plane_sphere(_floor(y=2.0), unit_sphere) == []

    def test_plane_sphere_clipped(self, unit_sphere):
        """Test that a narrow patch keeps only the arcs over it."""
        cubics = plane_sphere(_floor(half_width=2.0, half_height=0.5), unit_sphere)
        assert cubics
        for p in _end_points(cubics):
            assert np.linalg.norm(p) == pytest.approx(1.0)
            assert abs(p[2]) <= 0.5 + 1e-6

    def test_plane_cylinder_section(self):
        """Test that a plane across the axis cuts the cylinder in a loop on its side."""
        cyl = Cylinder(id="c", base=(0, -1, 0), axis=(0, 1, 0), height=2.0, radius=0.5)
        cubics = plane_cylinder(_floor(), cyl)
        assert cubics
        for p in _end_points(cubics):
            assert p[1] == pytest.approx(0.0, abs=1e-9)
            assert math.hypot(p[0], p[2]) == pytest.approx(0.5)

    def test_plane_parallel_to_cylinder_axis(self):
        """Test that a plane along the axis cuts two generator lines."""
        cyl = Cylinder(id="c", base=(0, -1, 0), axis=(0, 1, 0), height=2.0, radius=0.5)
        wall = PlaneRect(id="wall", center=(0.25, 0, 0), normal=(1, 0, 0), u_hint=(0, 1, 0),
                         half_width=2.0, half_height=2.0)

        cubics = plane_cylinder(wall, cyl)

        assert len(cubics) == 2
        for bez in cubics:
            assert bez.p0[0] == pytest.approx(0.25)
            assert abs(bez.p0[2]) == pytest.approx(math.sqrt(0.25 - 0.0625))
            assert sorted([bez.p0[1], bez.p3[1]]) == pytest.approx([-1.0, 1.0])

    def test_plane_cone_section(self):
        """Test that a plane across the axis cuts the cone in a circle."""
        cone = Cone(id="k", apex=(0, 1, 0), axis=(0, -1, 0), height=2.0, base_radius=1.0)
        cubics = plane_cone(_floor(), cone)
        assert cubics
        for p in _end_points(cubics):
            assert p[1] == pytest.approx(0.0, abs=1e-9)
            assert math.hypot(p[0], p[2]) == pytest.approx(0.5)

    def test_plane_through_apex(self):
        """Test that a plane through the apex cuts two generators."""
        cone = Cone(id="k", apex=(0, 1, 0), axis=(0, -1, 0), height=2.0, base_radius=1.0)
        wall = PlaneRect(id="wall", normal=(0, 0, 1), u_hint=(1, 0, 0), half_width=2.0, half_height=2.0)

        cubics = plane_cone(wall, cone)

        assert len(cubics) == 2
        ends = sorted(bez.p3[0] for bez in cubics)
        assert ends == pytest.approx([-1.0, 1.0])
        for bez in cubics:
            assert bez.p0 == pytest.approx((0.0, 1.0, 0.0))

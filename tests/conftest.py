"""Pytest fixtures for hlrdraw tests."""

import tempfile

import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def default_config():
    """Create default pipeline configuration."""
    from hlrdraw.config import PipelineConfig
    return PipelineConfig()


@pytest.fixture
def fast_config():
    """Pipeline configuration with low sample counts for quick renders."""
    from hlrdraw.config import IntersectionConfig, PipelineConfig, VisibilityConfig
    return PipelineConfig(
        visibility=VisibilityConfig(samples=24, refine_iters=12),
        intersections=IntersectionConfig(angular_samples=32),
    )


@pytest.fixture
def unit_sphere():
    """Unit sphere at the origin."""
    from hlrdraw.geometry.primitives import Sphere
    return Sphere(id="s", center=(0.0, 0.0, 0.0), radius=1.0)


@pytest.fixture
def front_camera():
    """Perspective camera on +z looking at the origin."""
    from hlrdraw.geometry.camera import Camera
    return Camera(kind="perspective", position=(0.0, 0.0, 5.0), target=(0.0, 0.0, 0.0))


@pytest.fixture
def ortho_camera():
    """Orthographic camera on +z looking at the origin."""
    from hlrdraw.geometry.camera import Camera
    return Camera(kind="orthographic", position=(0.0, 0.0, 5.0), target=(0.0, 0.0, 0.0), half_height=2.0)

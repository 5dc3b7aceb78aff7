"""
Small vector helpers over numpy 3-vectors.
"""

import numpy as np

EPS = 1e-9


def vec3(value):
    """Coerce a 3-sequence to a float array."""
    return np.asarray(value, dtype=float).reshape(3)


def normalize(v):
    """Unit vector along v, or the zero vector when |v| <= EPS."""
    v = np.asarray(v, dtype=float)
    n = float(np.linalg.norm(v))
    if n <= EPS:
        return np.zeros_like(v)
    return v / n


def basis_from_axis(axis_unit):
    """
    Orthonormal (u, v) spanning the plane perpendicular to axis_unit.

    (u, v, axis) is right-handed. The helper axis switches from z to y when
    the axis is close to z.
    """
    n = vec3(axis_unit)
    helper = np.array([0.0, 0.0, 1.0]) if abs(n[2]) < 0.9 else np.array([0.0, 1.0, 0.0])
    u = normalize(np.cross(helper, n))
    v = normalize(np.cross(n, u))
    return u, v


def is_finite(*arrays):
    return all(bool(np.all(np.isfinite(a))) for a in arrays)

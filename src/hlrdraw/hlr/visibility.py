"""
Ray-cast point visibility.

The oracle answers whether a world point is unoccluded from the camera. Rays
stop just short of the target so the surface the point lies on does not hide
it. Hits that still land within a small snap radius of the target are
treated as self-hits:

- without an ignore list every such near-target hit is forgiven;
- with an ignore list only near-target hits on the listed primitives are.

Owning solids are never removed from the ray cast entirely, so a third solid
passing through the same spot still occludes.
"""

import numpy as np

from hlrdraw.geometry.primitives import Ray
from hlrdraw.geometry.vec import normalize, vec3

# Orthographic rays start this far behind the target along the view direction.
ORTHO_FAR = 1e6


class VisibilityOracle:
    """Visibility queries against an ordered set of primitives seen by a camera."""

    def __init__(self, primitives, camera):
        self.primitives = list(primitives)
        self.camera = camera

    def raycast_closest(self, ray, t_min=0.0, t_max=np.inf, exclude_ids=None):
        """Closest hit over all primitives not in exclude_ids, or None."""
        best = None
        best_t = t_max
        for prim in self.primitives:
            if exclude_ids and prim.id in exclude_ids:
                continue
            hit = prim.intersect(ray, t_min, best_t)
            if hit is not None and hit.t <= best_t:
                best = hit
                best_t = hit.t
        return best

    def is_visible(self, point, eps=2e-4, ignore_ids=None):
        """
        Check whether a world point is unoccluded.

        Args:
            point: world-space 3-vector
            eps: absolute distance tolerance
            ignore_ids: primitive ids whose near-target hits are self-hits
        """
        p = vec3(point)
        if self.camera.kind == "perspective":
            origin = self.camera.eye
            to_point = p - origin
            dist = float(np.linalg.norm(to_point))
            if dist <= 0.0:
                return True
            tol = max(eps, dist * 1e-6)
            ray = Ray(origin, to_point / dist)
            t_max = max(0.0, dist - tol * 2.0)
            snap = max(tol * 8.0, dist * 2e-6)
        else:
            direction = normalize(self.camera.forward)
            ray = Ray(p - direction * ORTHO_FAR, direction)
            t_max = ORTHO_FAR - eps * 2.0
            snap = max(eps * 8.0, ORTHO_FAR * 1e-9)

        hit = self.raycast_closest(ray, 0.0, t_max)
        if hit is None:
            return True

        d = hit.point - p
        if float(np.dot(d, d)) <= snap * snap:
            if ignore_ids is None:
                return True
            if hit.primitive_id in ignore_ids:
                return True
        return False

"""
Analytic solids and planar surfaces with ray intersection.

The set of kinds is closed: every primitive is a frozen pydantic model
carrying a ``kind`` discriminator, so scene files and the pair-solver table
can dispatch on it. Derived surfaces (cylinder and cone cap disks, box faces)
are ordinary Disk / PlaneRect instances with ``parent_id`` set to the solid
they were derived from.

Zero radius, zero height or a zero-length axis is allowed and describes an
empty solid: it is never hit and produces no curves. Negative sizes and
inverted boxes fail at construction.
"""

from typing import Annotated, Literal, NamedTuple, Optional, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from hlrdraw.geometry.vec import EPS, basis_from_axis, normalize, vec3
from hlrdraw.models import Point3

# Tolerance on in-surface bounds tests (radius, half extents).
BOUNDS_EPS = 1e-8


class Ray(NamedTuple):
    """Ray origin + t * direction."""
    origin: np.ndarray
    direction: np.ndarray


class Hit(NamedTuple):
    """Closest ray hit on one primitive."""
    t: float
    point: np.ndarray
    normal: np.ndarray
    primitive_id: str


class Primitive(BaseModel):
    """Base for every scene primitive."""
    id: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    @property
    def is_degenerate(self):
        return False

    def intersect(self, ray, t_min, t_max):
        """Closest hit with t > EPS inside [t_min, t_max], or None."""
        raise NotImplementedError


def _accept_t(t, t_min, t_max):
    return t > EPS and t_min <= t <= t_max


def _facing(normal, direction):
    """Flip a plane normal so it faces against the ray."""
    return normal if float(np.dot(direction, normal)) < 0.0 else -normal


def _hit_disk(ray, center, normal, radius, t_min, t_max, primitive_id):
    denom = float(np.dot(ray.direction, normal))
    if abs(denom) <= EPS:
        return None
    t = float(np.dot(center - ray.origin, normal)) / denom
    if not _accept_t(t, t_min, t_max):
        return None
    p = ray.origin + ray.direction * t
    d = p - center
    if float(np.dot(d, d)) > radius * radius + BOUNDS_EPS:
        return None
    return Hit(t, p, _facing(normal, ray.direction), primitive_id)


def _closest(*hits):
    best = None
    for h in hits:
        if h is not None and (best is None or h.t < best.t):
            best = h
    return best


class Sphere(Primitive):
    kind: Literal["sphere"] = "sphere"
    center: Point3 = (0.0, 0.0, 0.0)
    radius: float = Field(1.0, ge=0.0)

    _center: np.ndarray = PrivateAttr()

    def model_post_init(self, __context):
        self._center = vec3(self.center)

    @property
    def center_vec(self):
        return self._center

    @property
    def is_degenerate(self):
        return self.radius <= EPS

    def intersect(self, ray, t_min, t_max):
        if self.is_degenerate:
            return None
        d = ray.direction
        oc = ray.origin - self._center
        a = float(np.dot(d, d))
        if a <= EPS:
            return None
        half_b = float(np.dot(oc, d))
        c = float(np.dot(oc, oc)) - self.radius * self.radius
        disc = half_b * half_b - a * c
        if disc < 0.0:
            return None
        s = np.sqrt(disc)
        for t in ((-half_b - s) / a, (-half_b + s) / a):
            if _accept_t(t, t_min, t_max):
                p = ray.origin + d * t
                return Hit(t, p, normalize(p - self._center), self.id)
        return None


class Cylinder(Primitive):
    """Finite right circular cylinder from ``base`` along ``axis``."""
    kind: Literal["cylinder"] = "cylinder"
    base: Point3 = (0.0, 0.0, 0.0)
    axis: Point3 = (0.0, 1.0, 0.0)
    height: float = Field(1.0, ge=0.0)
    radius: float = Field(0.5, ge=0.0)
    caps: Literal["both", "none"] = "both"

    _base: np.ndarray = PrivateAttr()
    _axis: np.ndarray = PrivateAttr()

    def model_post_init(self, __context):
        self._base = vec3(self.base)
        self._axis = normalize(vec3(self.axis))

    @property
    def base_vec(self):
        return self._base

    @property
    def axis_unit(self):
        return self._axis

    @property
    def top_center(self):
        return self._base + self._axis * self.height

    @property
    def is_degenerate(self):
        return self.radius <= EPS or self.height <= EPS or not np.any(self._axis)

    def cap_disks(self):
        """Base and top cap disks, outward normals, or [] without caps."""
        if self.caps != "both" or self.is_degenerate:
            return []
        return [
            Disk(id=f"{self.id}:cap:base", center=tuple(self._base), normal=tuple(-self._axis),
                 radius=self.radius, parent_id=self.id),
            Disk(id=f"{self.id}:cap:top", center=tuple(self.top_center), normal=tuple(self._axis),
                 radius=self.radius, parent_id=self.id),
        ]

    def intersect(self, ray, t_min, t_max):
        if self.is_degenerate:
            return None
        a_dir = self._axis
        oc = ray.origin - self._base
        d_dot_a = float(np.dot(ray.direction, a_dir))
        oc_dot_a = float(np.dot(oc, a_dir))
        d_perp = ray.direction - a_dir * d_dot_a
        oc_perp = oc - a_dir * oc_dot_a

        best = None
        best_t = t_max
        a = float(np.dot(d_perp, d_perp))
        if a > EPS:
            half_b = float(np.dot(oc_perp, d_perp))
            c = float(np.dot(oc_perp, oc_perp)) - self.radius * self.radius
            disc = half_b * half_b - a * c
            if disc >= 0.0:
                s = np.sqrt(disc)
                for t in ((-half_b - s) / a, (-half_b + s) / a):
                    if not _accept_t(t, t_min, best_t):
                        continue
                    h = oc_dot_a + d_dot_a * t
                    if h < 0.0 or h > self.height:
                        continue
                    p = ray.origin + ray.direction * t
                    best = Hit(t, p, normalize(p - (self._base + a_dir * h)), self.id)
                    best_t = t
                    break

        if self.caps == "both":
            best = _closest(
                best,
                _hit_disk(ray, self._base, a_dir, self.radius, t_min, best_t, self.id),
                _hit_disk(ray, self.top_center, a_dir, self.radius, t_min, best_t, self.id),
            )
        return best


class Cone(Primitive):
    """Finite right circular cone with apex at ``apex``, opening along ``axis``."""
    kind: Literal["cone"] = "cone"
    apex: Point3 = (0.0, 1.0, 0.0)
    axis: Point3 = (0.0, -1.0, 0.0)
    height: float = Field(1.0, ge=0.0)
    base_radius: float = Field(0.5, ge=0.0)
    cap: Literal["base", "none"] = "base"

    _apex: np.ndarray = PrivateAttr()
    _axis: np.ndarray = PrivateAttr()

    def model_post_init(self, __context):
        self._apex = vec3(self.apex)
        self._axis = normalize(vec3(self.axis))

    @property
    def apex_vec(self):
        return self._apex

    @property
    def axis_unit(self):
        return self._axis

    @property
    def base_center(self):
        return self._apex + self._axis * self.height

    @property
    def k(self):
        """Radius growth per unit height, tan of the half angle."""
        return self.base_radius / self.height if self.height > EPS else 0.0

    @property
    def is_degenerate(self):
        return self.base_radius <= EPS or self.height <= EPS or not np.any(self._axis)

    def cap_disks(self):
        if self.cap != "base" or self.is_degenerate:
            return []
        return [
            Disk(id=f"{self.id}:cap:base", center=tuple(self.base_center), normal=tuple(self._axis),
                 radius=self.base_radius, parent_id=self.id),
        ]

    def intersect(self, ray, t_min, t_max):
        if self.is_degenerate:
            return None
        a_dir = self._axis
        k2 = self.k * self.k
        co = ray.origin - self._apex
        dv = float(np.dot(ray.direction, a_dir))
        cov = float(np.dot(co, a_dir))
        d_perp = ray.direction - a_dir * dv
        co_perp = co - a_dir * cov

        a = float(np.dot(d_perp, d_perp)) - k2 * dv * dv
        b = 2.0 * (float(np.dot(co_perp, d_perp)) - k2 * cov * dv)
        c = float(np.dot(co_perp, co_perp)) - k2 * cov * cov

        best = None
        best_t = t_max
        if abs(a) > EPS:
            disc = b * b - 4.0 * a * c
            if disc >= 0.0:
                s = np.sqrt(disc)
                for t in sorted(((-b - s) / (2.0 * a), (-b + s) / (2.0 * a))):
                    if not _accept_t(t, t_min, best_t):
                        continue
                    p = ray.origin + ray.direction * t
                    x = p - self._apex
                    y = float(np.dot(x, a_dir))
                    if y < 0.0 or y > self.height:
                        continue
                    x_perp = x - a_dir * y
                    grad = 2.0 * x_perp - a_dir * (2.0 * k2 * y)
                    best = Hit(t, p, normalize(grad), self.id)
                    best_t = t
                    break

        if self.cap == "base":
            best = _closest(best, _hit_disk(ray, self.base_center, a_dir, self.base_radius, t_min, best_t, self.id))
        return best


class Box(Primitive):
    """Axis-aligned box between ``min`` and ``max``."""
    kind: Literal["box"] = "box"
    min: Point3 = (-0.5, -0.5, -0.5)
    max: Point3 = (0.5, 0.5, 0.5)

    _min: np.ndarray = PrivateAttr()
    _max: np.ndarray = PrivateAttr()

    @model_validator(mode="after")
    def _check_extent(self):
        if any(lo > hi for lo, hi in zip(self.min, self.max)):
            raise ValueError(f"box '{self.id}' has min > max on some axis")
        return self

    def model_post_init(self, __context):
        self._min = vec3(self.min)
        self._max = vec3(self.max)

    @property
    def min_vec(self):
        return self._min

    @property
    def max_vec(self):
        return self._max

    @property
    def is_degenerate(self):
        return bool(np.any(self._max - self._min <= EPS))

    def corners(self):
        """The 8 corners, index bit i selecting max on axis i."""
        lo, hi = self._min, self._max
        return [
            np.array([hi[0] if i & 1 else lo[0], hi[1] if i & 2 else lo[1], hi[2] if i & 4 else lo[2]])
            for i in range(8)
        ]

    def faces(self):
        """Six faces as PlaneRects with outward normals."""
        if self.is_degenerate:
            return []
        lo, hi = self._min, self._max
        c = (lo + hi) * 0.5
        half = (hi - lo) * 0.5
        out = []
        names = ("x", "y", "z")
        for axis in range(3):
            u_axis = (axis + 1) % 3
            v_axis = (axis + 2) % 3
            u_hint = np.zeros(3)
            u_hint[u_axis] = 1.0
            for sign, label in ((-1.0, "min"), (1.0, "max")):
                center = c.copy()
                center[axis] = lo[axis] if sign < 0 else hi[axis]
                normal = np.zeros(3)
                normal[axis] = sign
                out.append(PlaneRect(
                    id=f"{self.id}:face:{label}{names[axis]}",
                    center=tuple(center),
                    normal=tuple(normal),
                    u_hint=tuple(u_hint),
                    half_width=float(half[u_axis]),
                    half_height=float(half[v_axis]),
                    parent_id=self.id,
                ))
        return out

    def intersect(self, ray, t_min, t_max):
        if self.is_degenerate:
            return None
        t_near = -np.inf
        t_far = np.inf
        near_axis = far_axis = 0
        for i in range(3):
            o = ray.origin[i]
            d = ray.direction[i]
            if abs(d) <= EPS:
                if o < self._min[i] or o > self._max[i]:
                    return None
                continue
            t0 = (self._min[i] - o) / d
            t1 = (self._max[i] - o) / d
            if t0 > t1:
                t0, t1 = t1, t0
            if t0 > t_near:
                t_near, near_axis = t0, i
            if t1 < t_far:
                t_far, far_axis = t1, i
            if t_near > t_far:
                return None

        for t, axis, outward in ((t_near, near_axis, False), (t_far, far_axis, True)):
            if not np.isfinite(t) or not _accept_t(float(t), t_min, t_max):
                continue
            normal = np.zeros(3)
            # entering hits face the ray, exit hits point along it
            normal[axis] = np.sign(ray.direction[axis]) * (1.0 if outward else -1.0)
            return Hit(float(t), ray.origin + ray.direction * t, normal, self.id)
        return None


class PlaneRect(Primitive):
    """Finite rectangle: center, normal, in-plane u hint and half extents."""
    kind: Literal["plane_rect"] = "plane_rect"
    center: Point3 = (0.0, 0.0, 0.0)
    normal: Point3 = (0.0, 1.0, 0.0)
    u_hint: Point3 = (1.0, 0.0, 0.0)
    half_width: float = Field(1.0, ge=0.0)
    half_height: float = Field(1.0, ge=0.0)
    parent_id: Optional[str] = None

    _center: np.ndarray = PrivateAttr()
    _normal: np.ndarray = PrivateAttr()
    _u: np.ndarray = PrivateAttr()
    _v: np.ndarray = PrivateAttr()

    def model_post_init(self, __context):
        self._center = vec3(self.center)
        n = normalize(vec3(self.normal))
        hint = vec3(self.u_hint)
        u = normalize(hint - n * float(np.dot(hint, n)))
        if np.any(n) and not np.any(u):
            u, _ = basis_from_axis(n)
        self._normal = n
        self._u = u
        self._v = normalize(np.cross(n, u))

    @property
    def center_vec(self):
        return self._center

    @property
    def normal_unit(self):
        return self._normal

    @property
    def u(self):
        return self._u

    @property
    def v(self):
        return self._v

    @property
    def is_degenerate(self):
        return self.half_width <= EPS or self.half_height <= EPS or not np.any(self._normal)

    def corners(self):
        """Corners in boundary order."""
        c, u, v = self._center, self._u * self.half_width, self._v * self.half_height
        return [c - u - v, c + u - v, c + u + v, c - u + v]

    def intersect(self, ray, t_min, t_max):
        if self.is_degenerate:
            return None
        n = self._normal
        denom = float(np.dot(ray.direction, n))
        if abs(denom) <= EPS:
            return None
        t = float(np.dot(self._center - ray.origin, n)) / denom
        if not _accept_t(t, t_min, t_max):
            return None
        p = ray.origin + ray.direction * t
        d = p - self._center
        if abs(float(np.dot(d, self._u))) > self.half_width + BOUNDS_EPS:
            return None
        if abs(float(np.dot(d, self._v))) > self.half_height + BOUNDS_EPS:
            return None
        return Hit(t, p, _facing(n, ray.direction), self.id)


class Disk(Primitive):
    kind: Literal["disk"] = "disk"
    center: Point3 = (0.0, 0.0, 0.0)
    normal: Point3 = (0.0, 1.0, 0.0)
    radius: float = Field(1.0, ge=0.0)
    parent_id: Optional[str] = None

    _center: np.ndarray = PrivateAttr()
    _normal: np.ndarray = PrivateAttr()

    def model_post_init(self, __context):
        self._center = vec3(self.center)
        self._normal = normalize(vec3(self.normal))

    @property
    def center_vec(self):
        return self._center

    @property
    def normal_unit(self):
        return self._normal

    @property
    def is_degenerate(self):
        return self.radius <= EPS or not np.any(self._normal)

    def intersect(self, ray, t_min, t_max):
        if self.is_degenerate:
            return None
        return _hit_disk(ray, self._center, self._normal, self.radius, t_min, t_max, self.id)


AnyPrimitive = Annotated[
    Union[Sphere, Cylinder, Cone, Box, PlaneRect, Disk],
    Field(discriminator="kind"),
]

CURVED_KINDS = ("sphere", "cylinder", "cone")


def derived_cap_disks(primitives):
    """Cap disks of every cylinder and cone, in primitive order."""
    out = []
    for p in primitives:
        if isinstance(p, (Cylinder, Cone)):
            out.extend(p.cap_disks())
    return out


def owner_ids(*surfaces):
    """Ids that must not self-occlude a curve lying on the given surfaces."""
    ids = []
    for s in surfaces:
        for ident in (s.id, getattr(s, "parent_id", None)):
            if ident and ident not in ids:
                ids.append(ident)
    return tuple(ids)

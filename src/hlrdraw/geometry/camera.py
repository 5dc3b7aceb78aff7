"""
Pinhole and orthographic cameras.

Matrices follow the OpenGL convention: right-handed view space looking down
-Z, column vectors, clip space in [-1, 1]. Screen space has its origin at the
top-left corner with y pointing down, as SVG expects.
"""

import math
from typing import Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from hlrdraw.geometry.vec import EPS, normalize, vec3
from hlrdraw.models import Point3


def look_at(eye, target, up):
    f = normalize(vec3(target) - vec3(eye))
    s = normalize(np.cross(f, vec3(up)))
    u = np.cross(s, f)
    eye = vec3(eye)
    return np.array([
        [s[0], s[1], s[2], -float(np.dot(s, eye))],
        [u[0], u[1], u[2], -float(np.dot(u, eye))],
        [-f[0], -f[1], -f[2], float(np.dot(f, eye))],
        [0.0, 0.0, 0.0, 1.0],
    ])


def perspective(fov_y_rad, aspect, near, far):
    f = 1.0 / math.tan(fov_y_rad / 2.0)
    nf = 1.0 / (near - far)
    return np.array([
        [f / aspect, 0.0, 0.0, 0.0],
        [0.0, f, 0.0, 0.0],
        [0.0, 0.0, (far + near) * nf, 2.0 * far * near * nf],
        [0.0, 0.0, -1.0, 0.0],
    ])


def orthographic(left, right, bottom, top, near, far):
    rl = right - left
    tb = top - bottom
    fn = far - near
    return np.array([
        [2.0 / rl, 0.0, 0.0, -(right + left) / rl],
        [0.0, 2.0 / tb, 0.0, -(top + bottom) / tb],
        [0.0, 0.0, -2.0 / fn, -(far + near) / fn],
        [0.0, 0.0, 0.0, 1.0],
    ])


class Camera(BaseModel):
    """Viewpoint plus projection."""
    kind: Literal["perspective", "orthographic"] = "perspective"
    position: Point3 = (4.0, 3.0, 5.0)
    target: Point3 = (0.0, 0.0, 0.0)
    up: Point3 = (0.0, 1.0, 0.0)
    fov_y_deg: float = Field(45.0, gt=0.0, lt=180.0)
    half_height: float = Field(1.5, gt=0.0)  # orthographic only
    aspect: float = Field(700.0 / 520.0, gt=0.0)
    near: float = Field(0.1, gt=0.0)
    far: float = Field(100.0, gt=0.0)

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    _forward: np.ndarray = PrivateAttr()
    _view: np.ndarray = PrivateAttr()
    _proj: np.ndarray = PrivateAttr()

    @model_validator(mode="after")
    def _check_frame(self):
        direction = vec3(self.target) - vec3(self.position)
        if float(np.linalg.norm(direction)) <= EPS:
            raise ValueError("camera position and target coincide")
        if float(np.linalg.norm(np.cross(direction, vec3(self.up)))) <= EPS:
            raise ValueError("camera up vector is parallel to the view direction")
        if self.far <= self.near:
            raise ValueError("camera far must be greater than near")
        return self

    def model_post_init(self, __context):
        self._forward = normalize(vec3(self.target) - vec3(self.position))
        self._view = look_at(self.position, self.target, self.up)
        if self.kind == "perspective":
            self._proj = perspective(math.radians(self.fov_y_deg), self.aspect, self.near, self.far)
        else:
            hw = self.half_height * self.aspect
            self._proj = orthographic(-hw, hw, -self.half_height, self.half_height, self.near, self.far)

    @property
    def eye(self):
        return vec3(self.position)

    @property
    def forward(self):
        """Unit world-space view direction."""
        return self._forward

    @property
    def view_matrix(self):
        return self._view

    @property
    def projection_matrix(self):
        return self._proj

    def with_aspect(self, aspect):
        """Copy of this camera with a different aspect ratio."""
        data = self.model_dump()
        data["aspect"] = float(aspect)
        return Camera(**data)

    def project_to_ndc(self, points):
        """Project (..., 3) world points to (..., 3) normalized device coordinates."""
        pts = np.asarray(points, dtype=float)
        flat = pts.reshape(-1, 3)
        homo = np.hstack([flat, np.ones((flat.shape[0], 1))])
        clip = homo @ (self._proj @ self._view).T
        w = clip[:, 3:4]
        w = np.where(np.abs(w) <= EPS, 1.0, w)
        return (clip[:, :3] / w).reshape(pts.shape)

    def project_to_screen(self, points, width, height):
        """Project world points to pixel coordinates, y down. Returns (..., 3) with NDC z."""
        ndc = self.project_to_ndc(points)
        out = np.empty_like(ndc)
        out[..., 0] = (ndc[..., 0] * 0.5 + 0.5) * width
        out[..., 1] = (1.0 - (ndc[..., 1] * 0.5 + 0.5)) * height
        out[..., 2] = ndc[..., 2]
        return out

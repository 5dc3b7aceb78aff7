"""
Pydantic data models passed between hlrdraw render stages.

Curves are immutable values. Every stage consumes and produces these models,
so a piece coming out of the splitter can be serialized or compared directly.
"""

from typing import List, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

Point3 = Tuple[float, float, float]


class CubicBezier3(BaseModel):
    """A cubic Bezier segment in world space."""
    p0: Point3  # start point
    p1: Point3  # control point 1
    p2: Point3  # control point 2
    p3: Point3  # end point

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def from_points(cls, points):
        """Build from a (4, 3) array-like of control points."""
        pts = np.asarray(points, dtype=float).reshape(4, 3)
        return cls(
            p0=tuple(float(v) for v in pts[0]),
            p1=tuple(float(v) for v in pts[1]),
            p2=tuple(float(v) for v in pts[2]),
            p3=tuple(float(v) for v in pts[3]),
        )

    def control_points(self):
        """Control points as a (4, 3) float array."""
        return np.array([self.p0, self.p1, self.p2, self.p3], dtype=float)


class StyledPiece(BaseModel):
    """A sub-arc of a source curve tagged visible or hidden."""
    bez: CubicBezier3
    visible: bool

    model_config = ConfigDict(frozen=True, extra="forbid")


class OwnedCubic3(BaseModel):
    """An intersection curve plus the primitive ids that must not self-occlude it."""
    bez: CubicBezier3
    ignore_ids: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")


class VisibilityCuts(BaseModel):
    """
    Cut parameters of one curve and the visibility of each segment.

    segment_visible has len(cuts) + 1 entries: segment 0 spans [0, cuts[0]],
    the last spans [cuts[-1], 1].
    """
    cuts: List[float] = Field(default_factory=list)
    segment_visible: List[bool] = Field(default_factory=lambda: [True])

    model_config = ConfigDict(extra="forbid")


class FitResult(BaseModel):
    """Output of a polyline fit."""
    cubics: List[CubicBezier3] = Field(default_factory=list)
    depth_exhausted: bool = False  # some span was accepted at max depth

    model_config = ConfigDict(extra="forbid")


class RenderStats(BaseModel):
    """Counts collected during a render."""
    primitives: int = 0
    outline_curves: int = 0
    extra_curves: int = 0
    intersection_curves: int = 0
    pieces: int = 0
    visible_pieces: int = 0
    hidden_pieces: int = 0

    model_config = ConfigDict(extra="forbid")


class RenderResult(BaseModel):
    """Styled pieces of a render, hidden pieces first."""
    pieces: List[StyledPiece] = Field(default_factory=list)
    stats: RenderStats = Field(default_factory=RenderStats)

    model_config = ConfigDict(extra="forbid")

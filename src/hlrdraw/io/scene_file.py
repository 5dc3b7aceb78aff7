"""
Scene loading for hlrdraw.

A scene file is YAML with a camera mapping and a list of primitives, each
tagged by its kind:

    camera:
      kind: perspective
      position: [4.2, 2.8, 5.4]
      target: [0.2, 0.0, 0.0]
    primitives:
      - {kind: sphere, id: ball, center: [0, 0, 0], radius: 1.0}
      - {kind: box, id: crate, min: [-0.5, -0.5, 1.2], max: [0.5, 0.5, 2.2]}
"""

import os
from typing import List

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from hlrdraw.geometry.camera import Camera
from hlrdraw.geometry.primitives import AnyPrimitive
from hlrdraw.tracer import get_tracer, trace


class Scene(BaseModel):
    """Camera plus an ordered list of primitives."""
    title: str = ""
    camera: Camera = Field(default_factory=Camera)
    primitives: List[AnyPrimitive] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_unique_ids(self):
        seen = set()
        for p in self.primitives:
            if p.id in seen:
                raise ValueError(f"duplicate primitive id: {p.id!r}")
            seen.add(p.id)
        return self


def scene_from_dict(data):
    """Validate a plain mapping into a Scene."""
    if not isinstance(data, dict):
        raise ValueError("Scene data must be a mapping")
    return Scene.model_validate(data)


@trace(label="load_scene", arg_names=["path"])
def load_scene(path):
    """
    Load and validate a YAML scene file.

    Raises:
        ValueError: missing file or non-mapping content
        pydantic.ValidationError: malformed camera or primitives
    """
    tracer = get_tracer()

    if not os.path.exists(path):
        raise ValueError(f"Scene file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    scene = scene_from_dict(data)
    tracer.event(f"Loaded scene with {len(scene.primitives)} primitives", path=path)
    return scene


def save_scene(scene, path):
    """Write a Scene back to YAML."""
    data = scene.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=None, sort_keys=False)

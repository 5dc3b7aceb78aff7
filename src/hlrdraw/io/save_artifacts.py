"""
Artifact saving utilities for hlrdraw.

Handles writing render stats and other JSON side outputs.
"""

import json
import os

from hlrdraw.tracer import get_tracer


def ensure_dir(path):
    """Create directory if it does not exist."""
    os.makedirs(path, exist_ok=True)


def save_json(data, path, indent=2):
    """
    Save a dictionary or Pydantic model to JSON.
    """
    tracer = get_tracer()

    parent = os.path.dirname(path)
    if parent:
        ensure_dir(parent)

    # Handle Pydantic models
    if hasattr(data, "model_dump"):
        data = data.model_dump()

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, default=str)

    tracer.event(f"Saved JSON: {path}")

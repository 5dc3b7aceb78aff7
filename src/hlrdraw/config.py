"""
Configuration management for hlrdraw.

Loads YAML configuration with sensible defaults for every render stage.
Each section can be normalized into a clamped copy so the algorithms never
see zero sample counts or non-positive tolerances.
"""

import math
import os
from dataclasses import asdict, dataclass, field, replace

import yaml


def _positive(value, floor):
    """Return value if it is a finite number >= floor, else floor."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return floor
    if not math.isfinite(value) or value < floor:
        return floor
    return value


@dataclass
class VisibilityConfig:
    """Configuration for visibility cut-finding and curve splitting."""
    samples: int = 192
    coarse_samples: int = 0  # 0 disables the coarse pre-pass
    refine_iters: int = 22
    eps_visible: float = 2e-4
    cut_eps: float = 1e-6
    min_seg_len_sq: float = 1e-6

    def normalized(self):
        """Return a copy with every knob clamped to a usable range."""
        coarse = max(0, int(self.coarse_samples or 0))
        return replace(
            self,
            samples=max(2, int(self.samples or 0)),
            coarse_samples=coarse if coarse >= 2 else 0,
            refine_iters=max(0, int(self.refine_iters or 0)),
            eps_visible=_positive(self.eps_visible, 1e-12),
            cut_eps=_positive(self.cut_eps, 0.0),
            min_seg_len_sq=_positive(self.min_seg_len_sq, 0.0),
        )


@dataclass
class BezierFitConfig:
    """Configuration for polyline-to-cubic fitting."""
    max_error: float = 0.02
    max_depth: int = 18
    reparam_iters: int = 3
    min_alpha: float = 1e-4
    max_alpha_factor: float = 2.0
    close_eps: float = 1e-3

    def normalized(self):
        return replace(
            self,
            max_error=_positive(self.max_error, 1e-9),
            max_depth=max(0, int(self.max_depth or 0)),
            reparam_iters=max(0, int(self.reparam_iters or 0)),
            min_alpha=_positive(self.min_alpha, 1e-12),
            max_alpha_factor=_positive(self.max_alpha_factor, 0.1),
            close_eps=_positive(self.close_eps, 0.0),
        )


@dataclass
class IntersectionConfig:
    """Configuration for intersection-curve generation."""
    angular_samples: int = 160
    use_bezier_fit: bool = True
    fit_mode: str = "stitch_then_fit"  # "stitch_then_fit" or "per_run"
    min_tangent_cos: float = 0.25

    def normalized(self):
        mode = self.fit_mode if self.fit_mode in ("stitch_then_fit", "per_run") else "stitch_then_fit"
        return replace(
            self,
            angular_samples=max(8, int(self.angular_samples or 0)),
            use_bezier_fit=bool(self.use_bezier_fit),
            fit_mode=mode,
            min_tangent_cos=min(1.0, max(-1.0, float(self.min_tangent_cos))),
        )


@dataclass
class IncludeConfig:
    """Which curve families are generated."""
    silhouettes: bool = True
    rims: bool = True
    borders: bool = True
    box_edges: bool = True
    intersections: bool = True

    def normalized(self):
        return replace(self, **{k: bool(v) for k, v in asdict(self).items()})


@dataclass
class SvgConfig:
    """Configuration for SVG output."""
    width: int = 700
    height: int = 520
    stroke_visible: str = "#000000"
    stroke_hidden: str = "#000000"
    width_visible: float = 1.8
    width_hidden: float = 1.2
    hidden_dash: str = "4 4"
    hidden_opacity: float = 0.5
    line_cap: str = "round"
    line_join: str = "round"
    background: str = "#ffffff"  # empty string for a transparent canvas
    draw_hidden: bool = True

    def normalized(self):
        return replace(
            self,
            width=max(1, int(self.width or 0)),
            height=max(1, int(self.height or 0)),
            width_visible=_positive(self.width_visible, 0.0),
            width_hidden=_positive(self.width_hidden, 0.0),
            hidden_opacity=min(1.0, _positive(self.hidden_opacity, 0.0)),
        )


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False

    def normalized(self):
        level = str(self.level).upper()
        return replace(self, level=level if level in ("ERROR", "WARN", "INFO", "DEBUG") else "INFO")


@dataclass
class PipelineConfig:
    """Complete render configuration."""
    visibility: VisibilityConfig = field(default_factory=VisibilityConfig)
    bezier: BezierFitConfig = field(default_factory=BezierFitConfig)
    intersections: IntersectionConfig = field(default_factory=IntersectionConfig)
    include: IncludeConfig = field(default_factory=IncludeConfig)
    svg: SvgConfig = field(default_factory=SvgConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    workers: int = 1

    def normalized(self):
        return PipelineConfig(
            visibility=self.visibility.normalized(),
            bezier=self.bezier.normalized(),
            intersections=self.intersections.normalized(),
            include=self.include.normalized(),
            svg=self.svg.normalized(),
            tracing=self.tracing.normalized(),
            workers=max(1, int(self.workers or 1)),
        )


_SECTIONS = ("visibility", "bezier", "intersections", "include", "svg", "tracing")


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values. Unknown keys are ignored.
    """
    config = PipelineConfig()

    if config_path:
        if not os.path.exists(config_path):
            raise ValueError(f"Config file not found: {config_path}")
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}
        if not isinstance(yaml_data, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass."""
    for section_name in _SECTIONS:
        section_data = yaml_data.get(section_name)
        if not section_data:
            continue
        if not isinstance(section_data, dict):
            raise ValueError(f"Config section '{section_name}' must be a mapping")
        section = getattr(config, section_name)
        for key, value in section_data.items():
            if hasattr(section, key):
                setattr(section, key, value)

    if "workers" in yaml_data:
        config.workers = yaml_data["workers"]

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    yaml_data = asdict(PipelineConfig())

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)

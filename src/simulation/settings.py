"""
Typed settings for the field line visualiser.

Converts the merged YAML configuration into dataclasses consumed by the
simulation session.
"""

import torch
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..physics.charges import ChargeSet, PointCharge
from ..physics.electric_field import PERMITTIVITY, SOFTENING
from ..tracing.field_lines import START_OFFSET, MIN_STEP_LENGTH, CAPTURE_RADIUS

Color = Tuple[float, float, float]

_DTYPES = {
    'float32': torch.float32,
    'float64': torch.float64,
}


def _vector(value: Any, name: str) -> Tuple[float, float, float]:
    if value is None or len(value) != 3:
        raise ValueError(f"{name} must have three components")
    return tuple(float(v) for v in value)


@dataclass
class MotionSettings:
    """Rotation of the charges about an axis through a pivot."""
    enabled: bool = True
    rotation_axis: Tuple[float, float, float] = (0.0, 1.0, 0.0)
    angular_speed: float = 30.0
    pivot: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rigid_rotation: bool = False


@dataclass
class OscillationSettings:
    """Noise modulation of the charge magnitudes."""
    enabled: bool = True
    speed: float = 1.0
    seed: Optional[int] = None


@dataclass
class TraceSettings:
    """Field line seeding and integration parameters."""
    lines_per_charge: int = 64
    max_steps: int = 128
    step_size: float = 0.5
    start_offset: float = START_OFFSET
    min_step_length: float = MIN_STEP_LENGTH
    capture_radius: float = CAPTURE_RADIUS

    def __post_init__(self):
        if self.lines_per_charge < 0:
            raise ValueError("lines_per_charge must not be negative")
        if self.max_steps <= 0:
            raise ValueError("max_steps must be positive")
        if self.step_size <= 0:
            raise ValueError("step_size must be positive")


@dataclass
class ColorScheme:
    """
    Colours for lines and markers.

    Lines fade from the colour of their source sign to the colour of the
    opposite sign when they end on an opposite charge, and keep their source
    colour otherwise.
    """
    positive: Color = (1.0, 0.3, 0.1)
    negative: Color = (0.0, 1.0, 1.0)
    neutral: Color = (1.0, 1.0, 1.0)
    bounds: Color = (0.0, 1.0, 0.0)

    def sign_color(self, sign: float) -> Color:
        if sign > 0:
            return self.positive
        if sign < 0:
            return self.negative
        return self.neutral

    def line_gradient(self, source_sign: float, terminated: bool) -> Tuple[Color, Color]:
        start = self.positive if source_sign > 0 else self.negative
        if not terminated:
            return start, start
        end = self.negative if source_sign > 0 else self.positive
        return start, end


@dataclass
class RenderSettings:
    line_width: float = 1.5
    marker_size: float = 60.0
    marker_refresh_interval: int = 10
    bounds_padding: float = 1.0


@dataclass
class VisualizerSettings:
    """Complete settings for a visualiser session."""
    motion: MotionSettings = field(default_factory=MotionSettings)
    oscillation: OscillationSettings = field(default_factory=OscillationSettings)
    tracing: TraceSettings = field(default_factory=TraceSettings)
    colors: ColorScheme = field(default_factory=ColorScheme)
    rendering: RenderSettings = field(default_factory=RenderSettings)
    origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    permittivity: float = PERMITTIVITY
    softening: float = SOFTENING
    device: str = 'cpu'
    dtype: torch.dtype = torch.float32

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'VisualizerSettings':
        """
        Build settings from a merged configuration dictionary.

        Missing keys fall back to the defaults.

        Args:
            config: Configuration as returned by ConfigManager.load_full_config

        Returns:
            Visualiser settings

        Raises:
            ValueError: If a value has the wrong shape or range
        """
        motion_cfg = config.get('motion', {})
        motion = MotionSettings(
            enabled=bool(motion_cfg.get('enabled', True)),
            rotation_axis=_vector(motion_cfg.get('rotation_axis', (0.0, 1.0, 0.0)), 'motion.rotation_axis'),
            angular_speed=float(motion_cfg.get('angular_speed', 30.0)),
            pivot=_vector(motion_cfg.get('pivot', (0.0, 0.0, 0.0)), 'motion.pivot'),
            rigid_rotation=bool(motion_cfg.get('rigid_rotation', False))
        )

        osc_cfg = config.get('oscillation', {})
        seed = osc_cfg.get('seed')
        oscillation = OscillationSettings(
            enabled=bool(osc_cfg.get('enabled', True)),
            speed=float(osc_cfg.get('speed', 1.0)),
            seed=int(seed) if seed is not None else None
        )

        trace_cfg = config.get('tracing', {})
        tracing = TraceSettings(
            lines_per_charge=int(trace_cfg.get('lines_per_charge', 64)),
            max_steps=int(trace_cfg.get('max_steps', 128)),
            step_size=float(trace_cfg.get('step_size', 0.5)),
            start_offset=float(trace_cfg.get('start_offset', START_OFFSET)),
            min_step_length=float(trace_cfg.get('min_step_length', MIN_STEP_LENGTH)),
            capture_radius=float(trace_cfg.get('capture_radius', CAPTURE_RADIUS))
        )

        color_cfg = config.get('colors', {})
        defaults = ColorScheme()
        colors = ColorScheme(
            positive=_vector(color_cfg.get('positive', defaults.positive), 'colors.positive'),
            negative=_vector(color_cfg.get('negative', defaults.negative), 'colors.negative'),
            neutral=_vector(color_cfg.get('neutral', defaults.neutral), 'colors.neutral'),
            bounds=_vector(color_cfg.get('bounds', defaults.bounds), 'colors.bounds')
        )

        render_cfg = config.get('rendering', {})
        rendering = RenderSettings(
            line_width=float(render_cfg.get('line_width', 1.5)),
            marker_size=float(render_cfg.get('marker_size', 60.0)),
            marker_refresh_interval=max(1, int(render_cfg.get('marker_refresh_interval', 10))),
            bounds_padding=float(render_cfg.get('bounds_padding', 1.0))
        )

        physics_cfg = config.get('physics', {})
        dtype_name = config.get('hardware', {}).get('dtype', 'float32')
        if dtype_name not in _DTYPES:
            raise ValueError(f"Unsupported dtype: {dtype_name}")

        return cls(
            motion=motion,
            oscillation=oscillation,
            tracing=tracing,
            colors=colors,
            rendering=rendering,
            origin=_vector(config.get('origin', (0.0, 0.0, 0.0)), 'origin'),
            permittivity=float(physics_cfg.get('permittivity', PERMITTIVITY)),
            softening=float(physics_cfg.get('softening', SOFTENING)),
            device=config.get('device', 'cpu'),
            dtype=_DTYPES[dtype_name]
        )


def charges_from_config(config: Dict[str, Any],
                        dtype: torch.dtype = torch.float32,
                        device: str = 'cpu') -> ChargeSet:
    """Build the charge set described by the 'charges' configuration list."""
    entries: List[Dict[str, Any]] = config.get('charges') or []
    charges = [
        PointCharge(position=_vector(entry['position'], f'charges[{i}].position'),
                    charge=float(entry['charge']))
        for i, entry in enumerate(entries)
    ]
    return ChargeSet.from_charges(charges, dtype=dtype, device=device)

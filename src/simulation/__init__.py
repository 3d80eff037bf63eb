"""
Simulation session module.

Ties charge motion, magnitude oscillation and field line tracing into a
per-tick pipeline that produces frames for rendering.
"""

from .settings import (
    MotionSettings,
    OscillationSettings,
    TraceSettings,
    ColorScheme,
    RenderSettings,
    VisualizerSettings,
    charges_from_config
)
from .visualizer import ChargeMarker, BoundingBox, FieldFrame, FieldLineVisualizer

__all__ = [
    'MotionSettings',
    'OscillationSettings',
    'TraceSettings',
    'ColorScheme',
    'RenderSettings',
    'VisualizerSettings',
    'charges_from_config',
    'ChargeMarker',
    'BoundingBox',
    'FieldFrame',
    'FieldLineVisualizer'
]

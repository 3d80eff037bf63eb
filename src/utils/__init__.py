"""
Utilities module for the electric field line visualiser.

This module provides frame metrics and matplotlib rendering tools for
traced field lines.
"""

from .metrics import (
    MetricResult,
    BaseMetric,
    FieldLineMetrics,
    MetricsCollector
)

from .plotting import (
    PlotConfig,
    BasePlotter,
    FieldLinePlotter,
    MetricsPlotter,
    gradient_segments,
    box_edges
)

__all__ = [
    # Metrics
    'MetricResult',
    'BaseMetric',
    'FieldLineMetrics',
    'MetricsCollector',

    # Plotting
    'PlotConfig',
    'BasePlotter',
    'FieldLinePlotter',
    'MetricsPlotter',
    'gradient_segments',
    'box_edges'
]

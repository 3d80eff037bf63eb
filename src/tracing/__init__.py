"""
Field line tracing module.

Seeds directions on a Fibonacci sphere around each source charge and
integrates streamlines through the field until they stall, reach a sink or
run out of steps.
"""

from .seeds import LineSeedGenerator, seed_direction, iter_seed_directions
from .field_lines import FieldLine, FieldLineTracer

__all__ = [
    'LineSeedGenerator',
    'seed_direction',
    'iter_seed_directions',
    'FieldLine',
    'FieldLineTracer'
]

"""
Physics module for point charge electrostatics.

This module contains the charge state and field evaluation used by the
field line tracer:
- Point charges and fixed-size charge sets
- Softened Coulomb field superposition
"""

from .charges import PointCharge, ChargeSet, as_vector
from .electric_field import FieldEvaluator, electric_field, safe_normalize, PERMITTIVITY, SOFTENING

__all__ = [
    'PointCharge',
    'ChargeSet',
    'as_vector',
    'FieldEvaluator',
    'electric_field',
    'safe_normalize',
    'PERMITTIVITY',
    'SOFTENING'
]

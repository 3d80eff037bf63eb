"""
Charge dynamics module.

Time evolution of the charge set between frames:
- Shared RK4 stepping
- Rotation of charges about an axis through a pivot
- Noise-modulated charge magnitudes
"""

from .integrators import rk4_increment, rk4_step
from .charge_motion import ChargeMotionIntegrator
from .noise import perlin_noise_2d
from .oscillation import ChargeOscillator, OscillationState

__all__ = [
    'rk4_increment',
    'rk4_step',
    'ChargeMotionIntegrator',
    'perlin_noise_2d',
    'ChargeOscillator',
    'OscillationState'
]

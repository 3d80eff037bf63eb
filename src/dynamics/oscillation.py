"""
Noise-driven oscillation of charge magnitudes.

Each charge keeps its sign while its magnitude wanders smoothly between a
floor of max(0.1, 5% of baseline) and its baseline magnitude.
"""

import torch
from dataclasses import dataclass
from typing import Optional

from ..physics.charges import ChargeSet
from .noise import perlin_noise_2d

SEED_RANGE = 1000.0
MIN_MAGNITUDE = 0.1
MIN_FRACTION = 0.05


@dataclass(frozen=True)
class OscillationState:
    """
    Per-charge oscillation parameters captured once at session start.

    Attributes:
        initial_magnitudes: Baseline signed charge per charge, shape (N,)
        seeds: Noise offsets drawn from [0, 1000), shape (N,)
    """
    initial_magnitudes: torch.Tensor
    seeds: torch.Tensor

    @classmethod
    def capture(cls,
                charges: ChargeSet,
                generator: Optional[torch.Generator] = None,
                seed: Optional[int] = None) -> 'OscillationState':
        """
        Record the current magnitudes and draw a noise seed for each charge.

        Args:
            charges: Charge set to capture
            generator: Random source for the noise seeds
            seed: Seed for a fresh generator when none is given

        Returns:
            New oscillation state
        """
        if generator is None:
            generator = torch.Generator()
            if seed is not None:
                generator.manual_seed(seed)
            else:
                generator.seed()

        seeds = torch.rand(len(charges), generator=generator, dtype=torch.float64) * SEED_RANGE
        return cls(initial_magnitudes=charges.magnitudes.clone(), seeds=seeds)

    def __len__(self) -> int:
        return self.initial_magnitudes.shape[0]


class ChargeOscillator:
    """Modulates charge magnitudes with smooth noise, independent of position."""

    def magnitudes_at(self, state: OscillationState, time: float, speed: float) -> torch.Tensor:
        """
        Oscillated signed magnitudes at a given time.

        Args:
            state: Baselines and noise seeds
            time: Elapsed simulation time
            speed: Oscillation speed multiplier

        Returns:
            Signed magnitudes of shape (N,)
        """
        baseline = state.initial_magnitudes
        sign = torch.sign(baseline)
        magnitude = baseline.abs()

        min_mag = torch.clamp(magnitude * MIN_FRACTION, min=MIN_MAGNITUDE)
        max_mag = magnitude

        noise = perlin_noise_2d(state.seeds, time * speed).to(dtype=baseline.dtype,
                                                               device=baseline.device)
        return torch.lerp(min_mag, max_mag, noise) * sign

    def update(self, charges: ChargeSet, state: OscillationState, time: float, speed: float):
        """
        Write oscillated magnitudes into the charge set.

        Raises:
            ValueError: If the state was captured for a different number of charges
        """
        if charges.is_empty():
            return
        if len(state) != len(charges):
            raise ValueError(
                f"Oscillation state holds {len(state)} charges, charge set has {len(charges)}"
            )
        charges.set_magnitudes(self.magnitudes_at(state, time, speed))

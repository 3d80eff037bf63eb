"""
Electrostatic field of a set of point charges.

Implements the softened inverse-square superposition used for tracing:

E(x) = Σ qᵢ / (4πε₀) · r̂ᵢ / (|rᵢ|² + δ),   rᵢ = x - pᵢ

The softening term δ keeps the field finite at and near a charge.
"""

import math
import torch
from typing import Union

from .charges import ChargeSet

PERMITTIVITY = 8.85e-12
SOFTENING = 0.001


def safe_normalize(vectors: torch.Tensor, eps: float = 1e-12) -> torch.Tensor:
    """
    Normalise vectors along the last dimension.

    Vectors whose length is not above eps map to the zero vector instead of
    producing NaN.

    Args:
        vectors: Tensor of shape (..., 3)
        eps: Length below which a vector is treated as degenerate

    Returns:
        Unit (or zero) vectors with the input shape
    """
    norm = torch.linalg.vector_norm(vectors, dim=-1, keepdim=True)
    unit = vectors / norm.clamp_min(eps)
    return torch.where(norm > eps, unit, torch.zeros_like(vectors))


class FieldEvaluator:
    """
    Superposed electric field of point charges.

    Args:
        permittivity: Permittivity used in the Coulomb constant (F/m)
        softening: Additive term in the squared distance
    """

    def __init__(self, permittivity: float = PERMITTIVITY, softening: float = SOFTENING):
        self.permittivity = permittivity
        self.softening = softening
        self.coulomb_constant = 1.0 / (4.0 * math.pi * permittivity)

    def evaluate(self, charges: ChargeSet, position: torch.Tensor) -> torch.Tensor:
        """
        Compute the total field at one or more query positions.

        Args:
            charges: Charge set to sum over
            position: Query position of shape (3,) or batch of shape (M, 3)

        Returns:
            Field vector(s) with the same shape as position
        """
        query = torch.as_tensor(position, dtype=charges.dtype, device=charges.positions.device)
        single = query.dim() == 1
        query = query.reshape(-1, 3)

        if charges.is_empty():
            field = torch.zeros_like(query)
            return field[0] if single else field

        # (M, N, 3) displacement from every charge to every query point
        r = query.unsqueeze(1) - charges.positions.unsqueeze(0)
        dist_sq = (r * r).sum(dim=-1) + self.softening
        strength = charges.magnitudes * self.coulomb_constant

        field = (safe_normalize(r) * (strength / dist_sq).unsqueeze(-1)).sum(dim=1)
        return field[0] if single else field

    def direction(self, charges: ChargeSet, position: torch.Tensor) -> torch.Tensor:
        """Unit field direction, zero where the field vanishes."""
        return safe_normalize(self.evaluate(charges, position))

    def magnitude(self, charges: ChargeSet, position: torch.Tensor) -> torch.Tensor:
        return torch.linalg.vector_norm(self.evaluate(charges, position), dim=-1)

    def __call__(self, charges: ChargeSet, position: torch.Tensor) -> torch.Tensor:
        return self.evaluate(charges, position)


def electric_field(charges: ChargeSet,
                   position: Union[torch.Tensor, list, tuple]) -> torch.Tensor:
    """Evaluate the field with the default constants."""
    return FieldEvaluator().evaluate(charges, torch.as_tensor(position, dtype=charges.dtype))

"""
Fibonacci-sphere seed directions for field lines.

For count n and index i:

φᵢ = acos(1 - 2(i + 0.5)/n),   θᵢ = π(1 + √5)·i

giving a near-uniform set of unit directions that depends only on n.
"""

import math
import torch
from typing import Iterator


def seed_direction(index: int, count: int) -> torch.Tensor:
    """Unit direction for one index of a Fibonacci sphere of the given size."""
    phi = math.acos(1.0 - 2.0 * (index + 0.5) / count)
    theta = math.pi * (1.0 + math.sqrt(5.0)) * index
    return torch.tensor([
        math.sin(phi) * math.cos(theta),
        math.sin(phi) * math.sin(theta),
        math.cos(phi),
    ])


def iter_seed_directions(count: int) -> Iterator[torch.Tensor]:
    """Lazily yield the seed directions; restartable by calling again."""
    for i in range(max(count, 0)):
        yield seed_direction(i, count)


class LineSeedGenerator:
    """
    Deterministic starting directions around a source charge.

    Args:
        dtype: Data type of returned tensors
        device: Torch device of returned tensors
    """

    def __init__(self, dtype: torch.dtype = torch.float32, device: str = 'cpu'):
        self.dtype = dtype
        self.device = device

    def seed_directions(self, count: int) -> torch.Tensor:
        """
        Directions evenly distributed on the unit sphere.

        Args:
            count: Number of directions

        Returns:
            Tensor of shape (count, 3); empty when count <= 0
        """
        if count <= 0:
            return torch.zeros(0, 3, dtype=self.dtype, device=self.device)

        i = torch.arange(count, dtype=torch.float64)
        phi = torch.acos(1.0 - 2.0 * (i + 0.5) / count)
        theta = math.pi * (1.0 + math.sqrt(5.0)) * i

        directions = torch.stack([
            torch.sin(phi) * torch.cos(theta),
            torch.sin(phi) * torch.sin(theta),
            torch.cos(phi),
        ], dim=1)
        return directions.to(dtype=self.dtype, device=self.device)

    def __call__(self, count: int) -> torch.Tensor:
        return self.seed_directions(count)

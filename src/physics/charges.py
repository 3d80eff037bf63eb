"""
Point charge state for field line visualisation.

A ChargeSet owns the positions and magnitudes of every charge in the scene
as tensors so that field evaluation and integration can be vectorised over
charges. The number of charges is fixed once the set is created; only
positions and magnitudes change between ticks.
"""

import torch
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

VectorLike = Union[torch.Tensor, Sequence[float]]


def as_vector(value: VectorLike,
              dtype: torch.dtype = torch.float32,
              device: Union[str, torch.device] = 'cpu') -> torch.Tensor:
    """
    Convert a 3-vector-like value to a tensor of shape (3,).

    Args:
        value: Tensor, tuple or list with three components
        dtype: Target tensor dtype
        device: Target device

    Returns:
        Tensor of shape (3,)

    Raises:
        ValueError: If the value does not have exactly three components
    """
    vec = torch.as_tensor(value, dtype=dtype, device=device).reshape(-1)
    if vec.numel() != 3:
        raise ValueError(f"Expected a 3-component vector, got {vec.numel()} components")
    return vec


@dataclass
class PointCharge:
    """
    Idealised point charge.

    Attributes:
        position: Location (x, y, z)
        charge: Signed magnitude; the sign selects source or sink role
    """
    position: Tuple[float, float, float]
    charge: float

    @property
    def sign(self) -> float:
        if self.charge > 0:
            return 1.0
        if self.charge < 0:
            return -1.0
        return 0.0


class ChargeSet:
    """
    Ordered, fixed-size collection of point charges.

    Positions are stored as an (N, 3) tensor and magnitudes as an (N,) tensor.
    Writers replace the contents through set_positions / set_magnitudes, which
    keep the shape fixed and reject non-finite values.

    Args:
        positions: Charge positions of shape (N, 3)
        magnitudes: Charge magnitudes of shape (N,)
        dtype: Tensor dtype
        device: Torch device for computations
    """

    def __init__(self,
                 positions: Optional[torch.Tensor] = None,
                 magnitudes: Optional[torch.Tensor] = None,
                 dtype: torch.dtype = torch.float32,
                 device: Union[str, torch.device] = 'cpu'):
        if positions is None:
            positions = torch.zeros(0, 3)
        positions = torch.as_tensor(positions, dtype=dtype, device=device).reshape(-1, 3)

        if magnitudes is None:
            magnitudes = torch.zeros(positions.shape[0])
        magnitudes = torch.as_tensor(magnitudes, dtype=dtype, device=device).reshape(-1)

        if positions.shape[0] != magnitudes.shape[0]:
            raise ValueError(
                f"Got {positions.shape[0]} positions but {magnitudes.shape[0]} magnitudes"
            )

        self._check_finite(positions, "positions")
        self._check_finite(magnitudes, "magnitudes")

        self.dtype = dtype
        self.device = device
        self._positions = positions.clone()
        self._magnitudes = magnitudes.clone()

    @classmethod
    def from_charges(cls,
                     charges: Iterable[PointCharge],
                     dtype: torch.dtype = torch.float32,
                     device: Union[str, torch.device] = 'cpu') -> 'ChargeSet':
        """Build a charge set from PointCharge records, preserving order."""
        charges = list(charges)
        if not charges:
            return cls(dtype=dtype, device=device)

        positions = torch.stack([as_vector(c.position, dtype, device) for c in charges])
        magnitudes = torch.tensor([float(c.charge) for c in charges], dtype=dtype, device=device)
        return cls(positions, magnitudes, dtype=dtype, device=device)

    @staticmethod
    def _check_finite(values: torch.Tensor, name: str):
        if values.numel() and not torch.isfinite(values).all():
            raise ValueError(f"Charge {name} must be finite")

    @property
    def positions(self) -> torch.Tensor:
        """Charge positions, shape (N, 3). Treat as read-only."""
        return self._positions

    @property
    def magnitudes(self) -> torch.Tensor:
        """Signed charge magnitudes, shape (N,). Treat as read-only."""
        return self._magnitudes

    @property
    def signs(self) -> torch.Tensor:
        return torch.sign(self._magnitudes)

    def set_positions(self, positions: torch.Tensor):
        """
        Replace all charge positions.

        Args:
            positions: New positions of shape (N, 3)

        Raises:
            ValueError: If the shape changes or values are non-finite
        """
        positions = torch.as_tensor(positions, dtype=self.dtype, device=self.device)
        if positions.shape != self._positions.shape:
            raise ValueError(
                f"Position shape {tuple(positions.shape)} does not match "
                f"{tuple(self._positions.shape)}"
            )
        self._check_finite(positions, "positions")
        self._positions = positions.clone()

    def set_magnitudes(self, magnitudes: torch.Tensor):
        """
        Replace all charge magnitudes.

        Args:
            magnitudes: New magnitudes of shape (N,)

        Raises:
            ValueError: If the shape changes or values are non-finite
        """
        magnitudes = torch.as_tensor(magnitudes, dtype=self.dtype, device=self.device)
        if magnitudes.shape != self._magnitudes.shape:
            raise ValueError(
                f"Magnitude shape {tuple(magnitudes.shape)} does not match "
                f"{tuple(self._magnitudes.shape)}"
            )
        self._check_finite(magnitudes, "magnitudes")
        self._magnitudes = magnitudes.clone()

    def positive_indices(self) -> List[int]:
        """Indices of charges that act as field line sources."""
        return torch.nonzero(self._magnitudes > 0).flatten().tolist()

    def subset(self, indices: Sequence[int]) -> 'ChargeSet':
        """New charge set holding copies of the selected charges."""
        index = torch.as_tensor(list(indices), dtype=torch.long, device=self._positions.device)
        return ChargeSet(self._positions[index], self._magnitudes[index],
                         dtype=self.dtype, device=self.device)

    def clone(self) -> 'ChargeSet':
        return ChargeSet(self._positions, self._magnitudes, dtype=self.dtype, device=self.device)

    def is_empty(self) -> bool:
        return len(self) == 0

    def __len__(self) -> int:
        return self._positions.shape[0]

    def __getitem__(self, index: int) -> PointCharge:
        position = tuple(float(v) for v in self._positions[index].tolist())
        return PointCharge(position=position, charge=float(self._magnitudes[index]))

    def __iter__(self) -> Iterator[PointCharge]:
        for i in range(len(self)):
            yield self[i]

    def __repr__(self) -> str:
        return f"ChargeSet(n={len(self)}, dtype={self.dtype}, device={self.device})"

"""
Rotational motion of charges about an axis through a pivot.

Every charge follows the tangential velocity field

v(p) = normalize(â × (p - c)) · ω

so it moves at the same linear speed whatever its distance from the axis.
Setting rigid_rotation uses ω · (â × (p - c)) instead, the velocity of a
rigid body spinning at ω.
"""

import math
import warnings
import torch
from typing import Union, Sequence

from ..physics.charges import ChargeSet, as_vector
from ..physics.electric_field import safe_normalize
from .integrators import rk4_increment


class ChargeMotionIntegrator:
    """
    RK4 integrator that moves each charge independently around an axis.

    Args:
        rigid_rotation: Scale tangential speed with distance from the axis
    """

    def __init__(self, rigid_rotation: bool = False):
        self.rigid_rotation = rigid_rotation

    def velocity(self,
                 positions: torch.Tensor,
                 axis: torch.Tensor,
                 angular_speed_deg: float,
                 pivot: torch.Tensor) -> torch.Tensor:
        """
        Velocity of points under rotation.

        Points on the axis, or any point when the axis is zero, get zero
        velocity.

        Args:
            positions: Positions of shape (N, 3)
            axis: Rotation axis of shape (3,), any length
            angular_speed_deg: Angular speed in degrees per unit time
            pivot: Point on the rotation axis, shape (3,)

        Returns:
            Velocities of shape (N, 3)
        """
        omega = math.radians(angular_speed_deg)
        tangent = torch.linalg.cross(
            safe_normalize(axis).expand_as(positions), positions - pivot, dim=-1
        )
        if self.rigid_rotation:
            return tangent * omega
        return safe_normalize(tangent) * omega

    def advance(self,
                charges: ChargeSet,
                dt: float,
                axis: Union[torch.Tensor, Sequence[float]],
                angular_speed_deg: float,
                pivot: Union[torch.Tensor, Sequence[float]]):
        """
        Move all charges one time step along their rotation.

        Args:
            charges: Charge set whose positions are updated in place
            dt: Time step
            axis: Rotation axis
            angular_speed_deg: Angular speed in degrees per unit time
            pivot: Point the axis passes through
        """
        if charges.is_empty():
            return

        device = charges.positions.device
        axis = as_vector(axis, charges.dtype, device)
        pivot = as_vector(pivot, charges.dtype, device)

        if torch.linalg.vector_norm(axis) == 0 and angular_speed_deg != 0:
            warnings.warn("Rotation axis is zero; charges will not move")

        delta = rk4_increment(
            lambda p: self.velocity(p, axis, angular_speed_deg, pivot),
            charges.positions,
            dt
        )
        charges.set_positions(charges.positions + delta)

"""
Explicit Runge-Kutta stepping for autonomous vector fields.

Used both to move charges and to trace field lines. The state may be a single
vector or a batch of vectors; the derivative function must accept and return
tensors of the same shape.
"""

import torch
from typing import Callable, Tuple

VectorField = Callable[[torch.Tensor], torch.Tensor]


def rk4_increment(f: VectorField, y: torch.Tensor, h: float) -> torch.Tensor:
    """
    Classic fourth-order Runge-Kutta increment for dy/ds = f(y).

    Args:
        f: Derivative function
        y: Current state
        h: Step size

    Returns:
        Increment h/6 · (k1 + 2k2 + 2k3 + k4)
    """
    k1 = f(y)
    k2 = f(y + 0.5 * h * k1)
    k3 = f(y + 0.5 * h * k2)
    k4 = f(y + h * k3)
    return (h / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


def rk4_step(f: VectorField, y: torch.Tensor, h: float) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Advance the state by one RK4 step.

    Returns:
        Tuple of (new state, increment)
    """
    delta = rk4_increment(f, y, h)
    return y + delta, delta

"""
Field line tracing through the electrostatic field.

Field lines are integrated as unit-speed streamlines, dr/ds = E(r)/|E(r)|,
with fourth-order Runge-Kutta. A line stops when it stalls (step shorter than
a threshold) or when it comes within a capture radius of a charge of the
opposite sign, in which case the charge position closes the line.
"""

import torch
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from ..physics.charges import ChargeSet, as_vector
from ..physics.electric_field import FieldEvaluator
from ..dynamics.integrators import rk4_increment
from .seeds import LineSeedGenerator

START_OFFSET = 0.1
MIN_STEP_LENGTH = 0.001
CAPTURE_RADIUS = 1.0


@dataclass
class FieldLine:
    """
    Traced field line polyline.

    Attributes:
        points: World-space points of shape (K, 3), K >= 2
        source_sign: Sign of the charge the line was seeded from
        terminated_on_opposite_charge: Whether the line ended on a sink
        source_index: Index of the seeding charge, if known
        sink_index: Index of the charge the line ended on
    """
    points: torch.Tensor
    source_sign: float
    terminated_on_opposite_charge: bool = False
    source_index: Optional[int] = None
    sink_index: Optional[int] = None

    @property
    def num_points(self) -> int:
        return self.points.shape[0]

    @property
    def start(self) -> torch.Tensor:
        return self.points[0]

    @property
    def end(self) -> torch.Tensor:
        return self.points[-1]

    def arc_length(self) -> float:
        """Total length of the polyline."""
        segments = self.points[1:] - self.points[:-1]
        return float(torch.linalg.vector_norm(segments, dim=-1).sum())

    def to_numpy(self):
        return self.points.detach().cpu().numpy()


class FieldLineTracer:
    """
    RK4 streamline tracer with sink capture.

    Args:
        evaluator: Field evaluator (default constants if None)
        origin: World offset added to every emitted point
        start_offset: Distance from the seed point to the first sample
        min_step_length: Step length below which a line is considered stalled
        capture_radius: Distance at which an opposite charge captures a line
    """

    def __init__(self,
                 evaluator: Optional[FieldEvaluator] = None,
                 origin: Union[torch.Tensor, Sequence[float]] = (0.0, 0.0, 0.0),
                 start_offset: float = START_OFFSET,
                 min_step_length: float = MIN_STEP_LENGTH,
                 capture_radius: float = CAPTURE_RADIUS):
        self.evaluator = evaluator or FieldEvaluator()
        self.origin = as_vector(origin, torch.float64)
        self.start_offset = start_offset
        self.min_step_length = min_step_length
        self.capture_radius = capture_radius

    def trace(self,
              charges: ChargeSet,
              start: Union[torch.Tensor, Sequence[float]],
              initial_dir: Union[torch.Tensor, Sequence[float]],
              source_sign: float,
              max_steps: int,
              step_size: float) -> Optional[FieldLine]:
        """
        Trace a single field line.

        Args:
            charges: Charge set defining the field
            start: Seed point (usually the source charge position)
            initial_dir: Direction of the initial offset from the seed point
            source_sign: Sign of the source; charges with opposite sign capture
            max_steps: Maximum number of integration steps
            step_size: RK4 step length

        Returns:
            The traced line, or None if it has fewer than two points
        """
        direction = as_vector(initial_dir, charges.dtype, charges.positions.device)
        lines = self.trace_many(charges, start, direction.unsqueeze(0),
                                source_sign, max_steps, step_size)
        return lines[0] if lines else None

    def trace_many(self,
                   charges: ChargeSet,
                   start: Union[torch.Tensor, Sequence[float]],
                   directions: torch.Tensor,
                   source_sign: float,
                   max_steps: int,
                   step_size: float,
                   source_index: Optional[int] = None) -> List[FieldLine]:
        """
        Trace lines for several seed directions from one start point.

        All lines advance together; a line drops out of the batch as soon as
        it stalls or is captured, so each line is identical to tracing it on
        its own.

        Args:
            charges: Charge set defining the field
            start: Common seed point, shape (3,)
            directions: Seed directions, shape (L, 3)
            source_sign: Sign of the source charge
            max_steps: Maximum number of integration steps
            step_size: RK4 step length
            source_index: Index of the source charge, recorded on each line

        Returns:
            Lines with at least two points, in seed order
        """
        device = charges.positions.device
        dtype = charges.dtype
        directions = torch.as_tensor(directions, dtype=dtype, device=device).reshape(-1, 3)
        n_lines = directions.shape[0]

        if n_lines == 0 or max_steps <= 0:
            return []

        start = as_vector(start, dtype, device)
        origin = self.origin.to(dtype=dtype, device=device)

        pos = start + directions * self.start_offset
        history = torch.zeros(max_steps + 1, n_lines, 3, dtype=dtype, device=device)
        counts = torch.zeros(n_lines, dtype=torch.long, device=device)
        active = torch.ones(n_lines, dtype=torch.bool, device=device)
        terminated = torch.zeros(n_lines, dtype=torch.bool, device=device)
        sink = torch.full((n_lines,), -1, dtype=torch.long, device=device)

        sink_mask = charges.magnitudes * source_sign < 0
        sink_indices = torch.nonzero(sink_mask).flatten()
        sink_positions = charges.positions[sink_indices]

        def direction_field(p: torch.Tensor) -> torch.Tensor:
            return self.evaluator.direction(charges, p)

        for step in range(max_steps):
            idx = torch.nonzero(active).flatten()
            if idx.numel() == 0:
                break

            current = pos[idx]
            history[step, idx] = current
            counts[idx] += 1

            delta = rk4_increment(direction_field, current, step_size)
            current = current + delta
            pos[idx] = current

            moving = torch.linalg.vector_norm(delta, dim=-1) >= self.min_step_length
            active[idx[~moving]] = False

            if sink_indices.numel() == 0 or not moving.any():
                continue

            live = idx[moving]
            distance = torch.linalg.vector_norm(
                current[moving].unsqueeze(1) - sink_positions.unsqueeze(0), dim=-1
            )
            near = distance < self.capture_radius
            captured = near.any(dim=1)
            if not captured.any():
                continue

            # First sink in charge order wins
            first = near.long().argmax(dim=1)[captured]
            lines = live[captured]
            history[step + 1, lines] = sink_positions[first]
            counts[lines] += 1
            terminated[lines] = True
            sink[lines] = sink_indices[first]
            active[lines] = False

        if not torch.isfinite(history).all():
            raise FloatingPointError("Field line tracing produced non-finite points")

        results = []
        for line in range(n_lines):
            n_points = int(counts[line])
            if n_points < 2:
                continue
            hit = bool(terminated[line])
            results.append(FieldLine(
                points=history[:n_points, line] + origin,
                source_sign=float(source_sign),
                terminated_on_opposite_charge=hit,
                source_index=source_index,
                sink_index=int(sink[line]) if hit else None
            ))
        return results

    def trace_all(self,
                  charges: ChargeSet,
                  lines_per_charge: int,
                  max_steps: int,
                  step_size: float,
                  seeds: Optional[LineSeedGenerator] = None) -> List[FieldLine]:
        """
        Trace every field line seeded from the positive charges.

        Negative and neutral charges are not seeded; they only shape the field
        and act as sinks.

        Args:
            charges: Charge set defining the field
            lines_per_charge: Seed directions per positive charge
            max_steps: Maximum number of integration steps per line
            step_size: RK4 step length
            seeds: Seed direction generator

        Returns:
            All lines, grouped by source charge in charge order
        """
        if charges.is_empty() or lines_per_charge <= 0:
            return []

        seeds = seeds or LineSeedGenerator(dtype=charges.dtype, device=charges.positions.device)
        directions = seeds.seed_directions(lines_per_charge).to(
            dtype=charges.dtype, device=charges.positions.device
        )

        lines = []
        for index in charges.positive_indices():
            lines.extend(self.trace_many(
                charges,
                charges.positions[index],
                directions,
                source_sign=1.0,
                max_steps=max_steps,
                step_size=step_size,
                source_index=index
            ))
        return lines

"""
Per-tick field line visualisation session.

Each tick moves the charges, oscillates their magnitudes, rebuilds every field
line from scratch and hands a FieldFrame to the renderer. Charge markers are
refreshed on a slower cadence than the lines.
"""

import logging
import warnings
import torch
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..physics.charges import ChargeSet
from ..physics.electric_field import FieldEvaluator
from ..dynamics.charge_motion import ChargeMotionIntegrator
from ..dynamics.oscillation import ChargeOscillator, OscillationState
from ..tracing.seeds import LineSeedGenerator
from ..tracing.field_lines import FieldLine, FieldLineTracer
from ..utils.metrics import FieldLineMetrics, MetricsCollector
from .settings import Color, VisualizerSettings, charges_from_config

logger = logging.getLogger(__name__)


@dataclass
class ChargeMarker:
    """World-space marker for one charge."""
    position: Tuple[float, float, float]
    charge: float
    color: Color


@dataclass
class BoundingBox:
    """Axis-aligned box around all charges, padded on every side."""
    minimum: torch.Tensor
    maximum: torch.Tensor

    @classmethod
    def around(cls,
               positions: torch.Tensor,
               padding: float = 1.0,
               origin: Optional[torch.Tensor] = None) -> Optional['BoundingBox']:
        """
        Box enclosing the given positions.

        Args:
            positions: Positions of shape (N, 3)
            padding: Distance added on each side of every axis
            origin: World offset applied to the box

        Returns:
            The box, or None for no positions
        """
        if positions.shape[0] == 0:
            return None
        if origin is None:
            origin = torch.zeros(3, dtype=positions.dtype)
        origin = origin.to(dtype=positions.dtype, device=positions.device)
        return cls(
            minimum=positions.min(dim=0).values - padding + origin,
            maximum=positions.max(dim=0).values + padding + origin
        )

    @property
    def center(self) -> torch.Tensor:
        return 0.5 * (self.minimum + self.maximum)

    @property
    def size(self) -> torch.Tensor:
        return self.maximum - self.minimum


@dataclass
class FieldFrame:
    """
    Everything the renderer needs for one tick.

    Attributes:
        tick: Tick index (0 for the frame produced by start)
        time: Elapsed simulation time
        lines: Field lines traced this tick
        gradients: (start, end) colour per line
        markers: Most recently refreshed charge markers
        bounds: Padded bounding box of the charges, None when there are none
        markers_refreshed: Whether markers were rebuilt this tick
        line_width: Stroke width for all lines
    """
    tick: int
    time: float
    lines: List[FieldLine] = field(default_factory=list)
    gradients: List[Tuple[Color, Color]] = field(default_factory=list)
    markers: List[ChargeMarker] = field(default_factory=list)
    bounds: Optional[BoundingBox] = None
    markers_refreshed: bool = False
    line_width: float = 1.5


class FieldLineVisualizer:
    """
    Owns the charge state and drives the motion, oscillation and tracing phases.

    Args:
        charges: Charge set; the visualiser is its only writer
        settings: Session settings
        generator: Random source for the oscillation seeds
    """

    def __init__(self,
                 charges: Optional[ChargeSet] = None,
                 settings: Optional[VisualizerSettings] = None,
                 generator: Optional[torch.Generator] = None):
        self.settings = settings or VisualizerSettings()
        self.charges = charges if charges is not None else ChargeSet(
            dtype=self.settings.dtype, device=self.settings.device
        )

        if generator is None and self.settings.oscillation.seed is not None:
            generator = torch.Generator().manual_seed(self.settings.oscillation.seed)
        self.generator = generator

        trace = self.settings.tracing
        self.evaluator = FieldEvaluator(self.settings.permittivity, self.settings.softening)
        self.tracer = FieldLineTracer(
            evaluator=self.evaluator,
            origin=self.settings.origin,
            start_offset=trace.start_offset,
            min_step_length=trace.min_step_length,
            capture_radius=trace.capture_radius
        )
        self.seeds = LineSeedGenerator(dtype=self.charges.dtype, device=self.charges.positions.device)
        self.motion = ChargeMotionIntegrator(rigid_rotation=self.settings.motion.rigid_rotation)
        self.oscillator = ChargeOscillator()
        self.metrics = MetricsCollector([FieldLineMetrics()])

        self.oscillation_state: Optional[OscillationState] = None
        self.initial_positions: Optional[torch.Tensor] = None
        self.tick_count = 0
        self.time = 0.0
        self.markers: List[ChargeMarker] = []
        self.started = False

    @classmethod
    def from_config(cls,
                    config: Dict[str, Any],
                    generator: Optional[torch.Generator] = None) -> 'FieldLineVisualizer':
        """Create a session from a merged configuration dictionary."""
        settings = VisualizerSettings.from_config(config)
        charges = charges_from_config(config, dtype=settings.dtype, device=settings.device)
        return cls(charges, settings, generator)

    @property
    def origin(self) -> torch.Tensor:
        return torch.tensor(self.settings.origin, dtype=self.charges.dtype,
                            device=self.charges.positions.device)

    def start(self) -> FieldFrame:
        """
        Start (or restart) the session and build the first frame.

        The oscillation baseline and noise seeds are captured on the first
        call only. Later calls restore the initial positions and magnitudes
        and replay the session from tick 0 with the same state.

        Returns:
            Frame for tick 0
        """
        if self.oscillation_state is None:
            self.initial_positions = self.charges.positions.clone()
            self.oscillation_state = OscillationState.capture(self.charges, generator=self.generator)
        else:
            self.charges.set_positions(self.initial_positions)
            self.charges.set_magnitudes(self.oscillation_state.initial_magnitudes)

        self.tick_count = 0
        self.time = 0.0
        self.started = True
        self.metrics.reset()

        n_sources = len(self.charges.positive_indices())
        logger.info(f"Starting field line session with {len(self.charges)} charges "
                    f"({n_sources} sources)")
        if not self.charges.is_empty() and n_sources == 0:
            warnings.warn("No positive charges; no field lines will be traced")

        self.markers = self.build_markers()
        frame = self._frame(self.generate_field_lines(), markers_refreshed=True)
        self.metrics.compute_all(frame=frame)
        return frame

    def step(self, dt: float) -> FieldFrame:
        """
        Advance the simulation by one tick and rebuild the field lines.

        Args:
            dt: Time step

        Returns:
            Frame for the new tick

        Raises:
            ValueError: If motion or oscillation produced non-finite charge state
        """
        if not self.started:
            self.start()

        self.tick_count += 1
        self.time += dt

        if self.charges.is_empty():
            self.markers = []
            frame = FieldFrame(tick=self.tick_count, time=self.time,
                               line_width=self.settings.rendering.line_width)
            self.metrics.compute_all(frame=frame)
            return frame

        motion = self.settings.motion
        if motion.enabled:
            self.motion.advance(self.charges, dt, motion.rotation_axis,
                                motion.angular_speed, motion.pivot)

        oscillation = self.settings.oscillation
        if oscillation.enabled:
            self.oscillator.update(self.charges, self.oscillation_state,
                                   self.time, oscillation.speed)

        lines = self.generate_field_lines()

        refreshed = self.tick_count % self.settings.rendering.marker_refresh_interval == 0
        if refreshed:
            self.markers = self.build_markers()

        frame = self._frame(lines, markers_refreshed=refreshed)
        results = self.metrics.compute_all(frame=frame)
        summary = results['field_lines']
        logger.debug(f"Tick {self.tick_count}: {len(lines)} lines, "
                     f"{summary.value:.0%} terminated on sinks")
        return frame

    def run(self, n_ticks: int, dt: float) -> Iterator[FieldFrame]:
        """Yield the start frame followed by n_ticks stepped frames."""
        yield self.start()
        for _ in range(n_ticks):
            yield self.step(dt)

    def generate_field_lines(self) -> List[FieldLine]:
        """Trace all field lines for the current charge state."""
        trace = self.settings.tracing
        return self.tracer.trace_all(
            self.charges,
            lines_per_charge=trace.lines_per_charge,
            max_steps=trace.max_steps,
            step_size=trace.step_size,
            seeds=self.seeds
        )

    def build_markers(self) -> List[ChargeMarker]:
        """Markers for every charge, coloured by sign."""
        origin = self.origin
        markers = []
        for position, charge in zip(self.charges.positions + origin, self.charges.magnitudes):
            q = float(charge)
            markers.append(ChargeMarker(
                position=tuple(float(v) for v in position.tolist()),
                charge=q,
                color=self.settings.colors.sign_color(q)
            ))
        return markers

    def bounding_box(self) -> Optional[BoundingBox]:
        return BoundingBox.around(self.charges.positions,
                                  padding=self.settings.rendering.bounds_padding,
                                  origin=self.origin)

    def _frame(self, lines: List[FieldLine], markers_refreshed: bool) -> FieldFrame:
        colors = self.settings.colors
        return FieldFrame(
            tick=self.tick_count,
            time=self.time,
            lines=lines,
            gradients=[colors.line_gradient(line.source_sign, line.terminated_on_opposite_charge)
                       for line in lines],
            markers=list(self.markers),
            bounds=self.bounding_box(),
            markers_refreshed=markers_refreshed,
            line_width=self.settings.rendering.line_width
        )

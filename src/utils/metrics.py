"""
Metrics for field line frames.

Summarises how many lines were traced, how many ended on an opposite charge,
and how long they are, so a session can log and track them per tick.
"""

import numpy as np
from typing import Any, Dict, List, Optional
from abc import ABC, abstractmethod
from dataclasses import dataclass
from collections import defaultdict, deque

# Per-metric cap on stored ticks; older entries are dropped
MAX_HISTORY = 1000


@dataclass
class MetricResult:
    """Container for metric evaluation results."""
    name: str
    value: float
    std: Optional[float] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    details: Optional[Dict[str, float]] = None


class BaseMetric(ABC):
    """Abstract base class for frame metrics."""

    def __init__(self, name: str, max_history: int = MAX_HISTORY):
        self.name = name
        self.history = deque(maxlen=max_history)

    @abstractmethod
    def compute(self, **kwargs) -> MetricResult:
        """Compute the metric value."""
        pass

    def update_history(self, result: MetricResult):
        """Update metric history."""
        self.history.append(result.value)

    def get_trend(self, window: int = 10) -> str:
        """Get trend direction over recent history."""
        if len(self.history) < window:
            return "insufficient_data"

        recent = list(self.history)[-window:]
        slope = np.polyfit(range(len(recent)), recent, 1)[0]

        if abs(slope) < 1e-8:
            return "stable"
        elif slope < 0:
            return "decreasing"
        else:
            return "increasing"


class FieldLineMetrics(BaseMetric):
    """Termination rate and length statistics of the traced lines."""

    def __init__(self, max_history: int = MAX_HISTORY):
        super().__init__("field_lines", max_history)

    @staticmethod
    def summarize(lines: List[Any]) -> Dict[str, float]:
        """
        Statistics of a list of field lines.

        Args:
            lines: FieldLine objects

        Returns:
            Dictionary with counts, termination fraction, point counts and arc lengths
        """
        if not lines:
            return {
                'n_lines': 0.0,
                'n_terminated': 0.0,
                'terminated_fraction': 0.0,
                'mean_points': 0.0,
                'max_points': 0.0,
                'mean_arc_length': 0.0,
            }

        points = np.array([line.num_points for line in lines], dtype=float)
        lengths = np.array([line.arc_length() for line in lines], dtype=float)
        terminated = sum(1 for line in lines if line.terminated_on_opposite_charge)

        return {
            'n_lines': float(len(lines)),
            'n_terminated': float(terminated),
            'terminated_fraction': terminated / len(lines),
            'mean_points': float(points.mean()),
            'max_points': float(points.max()),
            'mean_arc_length': float(lengths.mean()),
        }

    def compute(self, frame: Any = None, lines: Optional[List[Any]] = None, **kwargs) -> MetricResult:
        """
        Compute line statistics for a frame or an explicit list of lines.

        Args:
            frame: FieldFrame whose lines are summarised
            lines: Lines to summarise when no frame is given

        Returns:
            Result whose value is the fraction of lines ending on a sink
        """
        if lines is None:
            lines = frame.lines if frame is not None else []

        details = self.summarize(lines)
        lengths = [line.arc_length() for line in lines]

        return MetricResult(
            name=self.name,
            value=details['terminated_fraction'],
            std=float(np.std(lengths)) if lengths else None,
            unit='fraction',
            description='Fraction of field lines ending on an opposite charge',
            details=details
        )


class MetricsCollector:
    """Collects metric results tick by tick."""

    def __init__(self, metrics: Optional[List[BaseMetric]] = None, max_history: int = MAX_HISTORY):
        self.metrics = {metric.name: metric for metric in (metrics or [FieldLineMetrics(max_history)])}
        self.all_results = defaultdict(lambda: deque(maxlen=max_history))

    def compute_all(self, **kwargs) -> Dict[str, MetricResult]:
        """
        Evaluate every registered metric.

        Args:
            **kwargs: Passed through to each metric's compute

        Returns:
            Results keyed by metric name
        """
        results = {}
        for name, metric in self.metrics.items():
            result = metric.compute(**kwargs)
            metric.update_history(result)
            self.all_results[name].append(result)
            results[name] = result
        return results

    def get_history(self, name: str) -> List[float]:
        return list(self.metrics[name].history)

    def latest(self, name: str) -> Optional[MetricResult]:
        history = self.all_results.get(name)
        return history[-1] if history else None

    def reset(self):
        for metric in self.metrics.values():
            metric.history.clear()
        self.all_results.clear()

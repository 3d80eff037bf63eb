"""
Dipole Field Line Example

Traces field lines from the positive charge of a static dipole and reports
how many of them end on the negative charge. Lines leaving on the far side of
the positive charge escape and run until they stall or exhaust their steps.
"""

import logging
from typing import Dict

from src.physics import ChargeSet, PointCharge
from src.tracing import FieldLineTracer, LineSeedGenerator
from src.utils.metrics import FieldLineMetrics

# Dipole configuration
POSITIVE_CHARGE = 1.0
NEGATIVE_CHARGE = -1.0
SEPARATION = 5.0

# Tracing configuration
LINES_PER_CHARGE = 32
MAX_STEPS = 256
STEP_SIZE = 0.25

logger = logging.getLogger(__name__)


def build_dipole() -> ChargeSet:
    """Positive charge at the origin, negative charge on the +x axis."""
    return ChargeSet.from_charges([
        PointCharge(position=(0.0, 0.0, 0.0), charge=POSITIVE_CHARGE),
        PointCharge(position=(SEPARATION, 0.0, 0.0), charge=NEGATIVE_CHARGE),
    ])


def run_dipole_example(lines_per_charge: int = LINES_PER_CHARGE,
                       max_steps: int = MAX_STEPS,
                       step_size: float = STEP_SIZE) -> Dict[str, float]:
    """
    Trace the dipole's field lines.

    Returns:
        Line statistics from FieldLineMetrics
    """
    charges = build_dipole()
    tracer = FieldLineTracer()
    lines = tracer.trace_all(charges, lines_per_charge, max_steps, step_size,
                             seeds=LineSeedGenerator())

    stats = FieldLineMetrics.summarize(lines)
    logger.info(f"Traced {int(stats['n_lines'])} lines, "
                f"{int(stats['n_terminated'])} ended on the negative charge")
    return stats


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    results = run_dipole_example()
    for key, value in results.items():
        print(f"{key}: {value:.3f}")

import sys
import torch
from src.physics import ChargeSet, PointCharge, FieldEvaluator
from src.dynamics import ChargeMotionIntegrator
from src.tracing import FieldLineTracer


def validate_superposition():
    """Validate that the field of two charges is the sum of their fields."""
    print("Validating field superposition...")

    evaluator = FieldEvaluator()
    a = PointCharge(position=(-1.0, 0.5, 0.0), charge=2.0)
    b = PointCharge(position=(2.0, -1.0, 1.0), charge=-3.0)

    query = torch.tensor([[0.3, 0.7, -0.2], [4.0, 1.0, 2.0], [-3.0, -2.0, 0.5]], dtype=torch.float64)
    both = evaluator.evaluate(ChargeSet.from_charges([a, b], dtype=torch.float64), query)
    separate = (evaluator.evaluate(ChargeSet.from_charges([a], dtype=torch.float64), query)
                + evaluator.evaluate(ChargeSet.from_charges([b], dtype=torch.float64), query))

    max_error = torch.max(torch.abs(both - separate) / torch.abs(both).clamp_min(1.0))
    print(f"Maximum relative superposition error: {max_error:.2e}")

    if max_error < 1e-10:
        print("✓ Superposition validation passed")
        return True
    else:
        print("✗ Superposition validation failed")
        return False


def validate_inverse_square():
    """Validate that the softened field falls off as 1/r² away from a charge."""
    print("\nValidating inverse-square falloff...")

    evaluator = FieldEvaluator()
    charges = ChargeSet.from_charges([PointCharge(position=(0.0, 0.0, 0.0), charge=1.0)],
                                     dtype=torch.float64)

    radii = torch.tensor([2.0, 4.0, 8.0, 16.0], dtype=torch.float64)
    query = torch.stack([radii, torch.zeros_like(radii), torch.zeros_like(radii)], dim=1)
    magnitudes = evaluator.magnitude(charges, query)

    ratios = magnitudes[:-1] / magnitudes[1:]
    print(f"Field ratios for doubled distance: {ratios.tolist()}")

    if torch.allclose(ratios, torch.full_like(ratios, 4.0), rtol=1e-3):
        print("✓ Inverse-square validation passed")
        return True
    else:
        print("✗ Inverse-square validation failed")
        return False


def validate_rotation():
    """Validate that one revolution of motion returns a charge near its start."""
    print("\nValidating charge rotation...")

    charges = ChargeSet.from_charges([PointCharge(position=(3.0, 0.0, 0.0), charge=1.0)],
                                     dtype=torch.float64)
    integrator = ChargeMotionIntegrator(rigid_rotation=True)

    n_steps = 360
    dt = 1.0 / n_steps
    for _ in range(n_steps):
        integrator.advance(charges, dt, axis=(0.0, 1.0, 0.0), angular_speed_deg=360.0, pivot=(0.0, 0.0, 0.0))

    drift = torch.linalg.vector_norm(charges.positions[0] - torch.tensor([3.0, 0.0, 0.0], dtype=torch.float64))
    print(f"Position drift after one revolution: {drift:.2e}")

    if drift < 1e-6:
        print("✓ Rotation validation passed")
        return True
    else:
        print("✗ Rotation validation failed")
        return False


def validate_dipole_termination():
    """Validate that the axial line of a dipole ends on the negative charge."""
    print("\nValidating dipole field line termination...")

    charges = ChargeSet.from_charges([
        PointCharge(position=(0.0, 0.0, 0.0), charge=1.0),
        PointCharge(position=(5.0, 0.0, 0.0), charge=-1.0),
    ])
    line = FieldLineTracer().trace(charges, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0),
                                   source_sign=1.0, max_steps=128, step_size=0.5)

    if line is not None and line.terminated_on_opposite_charge:
        print(f"✓ Dipole line terminated after {line.num_points} points at {line.end.tolist()}")
        return True
    else:
        print("✗ Dipole line did not terminate on the negative charge")
        return False


if __name__ == "__main__":
    results = [
        validate_superposition(),
        validate_inverse_square(),
        validate_rotation(),
        validate_dipole_termination(),
    ]

    print("\n" + "=" * 50)
    print(f"{sum(results)}/{len(results)} validations passed")
    sys.exit(0 if all(results) else 1)

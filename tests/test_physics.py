"""
Unit tests for physics module components.

Tests the charge set container and the softened Coulomb field for
correctness and numerical stability.
"""

import math
import pytest
import torch
from src.physics import ChargeSet, PointCharge, FieldEvaluator, safe_normalize, PERMITTIVITY, SOFTENING


class TestChargeSet:
    """Test suite for the charge set container."""

    @pytest.fixture
    def charges(self):
        return ChargeSet.from_charges([
            PointCharge(position=(0.0, 0.0, 0.0), charge=2.0),
            PointCharge(position=(1.0, 2.0, 3.0), charge=-1.5),
            PointCharge(position=(-4.0, 0.0, 1.0), charge=0.0),
        ])

    def test_from_charges_preserves_order(self, charges):
        assert len(charges) == 3
        assert charges.positions.shape == (3, 3)
        assert charges[1].position == (1.0, 2.0, 3.0)
        assert charges[1].charge == pytest.approx(-1.5)

    def test_positive_indices(self, charges):
        assert charges.positive_indices() == [0]

    def test_point_charge_sign(self):
        assert PointCharge((0.0, 0.0, 0.0), 3.0).sign == 1.0
        assert PointCharge((0.0, 0.0, 0.0), -0.2).sign == -1.0
        assert PointCharge((0.0, 0.0, 0.0), 0.0).sign == 0.0

    def test_empty_set(self):
        empty = ChargeSet()
        assert empty.is_empty()
        assert empty.positions.shape == (0, 3)
        assert empty.positive_indices() == []
        assert list(empty) == []

    def test_set_positions_rejects_shape_change(self, charges):
        with pytest.raises(ValueError):
            charges.set_positions(torch.zeros(2, 3))

    def test_set_positions_rejects_non_finite(self, charges):
        positions = charges.positions.clone()
        positions[0, 0] = float('nan')
        with pytest.raises(ValueError):
            charges.set_positions(positions)

    def test_set_magnitudes_rejects_non_finite(self, charges):
        with pytest.raises(ValueError):
            charges.set_magnitudes(torch.tensor([1.0, float('inf'), 0.0]))

    def test_constructor_rejects_mismatched_lengths(self):
        with pytest.raises(ValueError):
            ChargeSet(torch.zeros(2, 3), torch.zeros(3))

    def test_positions_are_copied(self, charges):
        new_positions = torch.ones(3, 3)
        charges.set_positions(new_positions)
        new_positions[0, 0] = 100.0
        assert charges.positions[0, 0] == 1.0

    def test_subset_and_clone(self, charges):
        subset = charges.subset([1, 2])
        assert len(subset) == 2
        assert subset[0].charge == pytest.approx(-1.5)

        copy = charges.clone()
        copy.set_magnitudes(torch.zeros(3))
        assert charges[0].charge == pytest.approx(2.0)


class TestFieldEvaluator:
    """Test suite for electric field evaluation."""

    @pytest.fixture
    def evaluator(self):
        return FieldEvaluator()

    @pytest.fixture
    def pair(self):
        a = PointCharge(position=(-1.0, 0.5, 0.0), charge=2.0)
        b = PointCharge(position=(2.0, -1.0, 1.0), charge=-3.0)
        return a, b

    def test_constants(self, evaluator):
        assert evaluator.permittivity == PERMITTIVITY
        assert evaluator.softening == SOFTENING
        assert evaluator.coulomb_constant == pytest.approx(1.0 / (4 * math.pi * 8.85e-12))

    def test_superposition(self, evaluator, pair):
        a, b = pair
        query = torch.tensor([[0.3, 0.7, -0.2], [4.0, 1.0, 2.0], [-3.0, -2.0, 0.5]],
                             dtype=torch.float64)

        both = evaluator.evaluate(ChargeSet.from_charges([a, b], dtype=torch.float64), query)
        only_a = evaluator.evaluate(ChargeSet.from_charges([a], dtype=torch.float64), query)
        only_b = evaluator.evaluate(ChargeSet.from_charges([b], dtype=torch.float64), query)

        assert torch.allclose(both, only_a + only_b, rtol=1e-12)

    def test_antipodal_symmetry(self, evaluator):
        charges = ChargeSet.from_charges([PointCharge(position=(0.0, 0.0, 0.0), charge=4.0)])
        p = torch.tensor([1.5, -2.0, 0.7])

        forward = evaluator.evaluate(charges, p)
        backward = evaluator.evaluate(charges, -p)

        assert torch.allclose(forward, -backward)
        assert torch.linalg.vector_norm(forward) == pytest.approx(
            float(torch.linalg.vector_norm(backward)))

    def test_positive_charge_points_outward(self, evaluator):
        charges = ChargeSet.from_charges([PointCharge(position=(0.0, 0.0, 0.0), charge=1.0)])
        field = evaluator.evaluate(charges, torch.tensor([2.0, 0.0, 0.0]))
        assert field[0] > 0
        assert field[1] == 0 and field[2] == 0

    def test_softened_magnitude(self, evaluator):
        charges = ChargeSet.from_charges([PointCharge(position=(0.0, 0.0, 0.0), charge=1.0)],
                                         dtype=torch.float64)
        magnitude = evaluator.magnitude(charges, torch.tensor([2.0, 0.0, 0.0], dtype=torch.float64))
        expected = evaluator.coulomb_constant / (4.0 + SOFTENING)
        assert float(magnitude) == pytest.approx(expected, rel=1e-12)

    def test_query_at_charge_is_finite(self, evaluator, pair):
        a, b = pair
        charges = ChargeSet.from_charges([a, b])
        field = evaluator.evaluate(charges, torch.tensor(a.position))

        assert torch.isfinite(field).all()
        # Only the other charge contributes
        other = evaluator.evaluate(ChargeSet.from_charges([b]), torch.tensor(a.position))
        assert torch.allclose(field, other)

    def test_zero_charge_contributes_nothing(self, evaluator):
        charges = ChargeSet.from_charges([PointCharge(position=(1.0, 1.0, 1.0), charge=0.0)])
        field = evaluator.evaluate(charges, torch.tensor([0.0, 0.0, 0.0]))
        assert torch.equal(field, torch.zeros(3))

    def test_empty_set_gives_zero_field(self, evaluator):
        field = evaluator.evaluate(ChargeSet(), torch.tensor([[1.0, 2.0, 3.0], [0.0, 0.0, 0.0]]))
        assert field.shape == (2, 3)
        assert torch.equal(field, torch.zeros(2, 3))

    def test_batch_shape(self, evaluator, pair):
        charges = ChargeSet.from_charges(list(pair))
        field = evaluator.evaluate(charges, torch.randn(7, 3))
        assert field.shape == (7, 3)

    def test_direction_is_unit(self, evaluator, pair):
        charges = ChargeSet.from_charges(list(pair))
        direction = evaluator.direction(charges, torch.tensor([[0.0, 3.0, 0.0], [5.0, 5.0, 5.0]]))
        assert torch.allclose(torch.linalg.vector_norm(direction, dim=-1), torch.ones(2), atol=1e-6)


def test_safe_normalize_zero_vector():
    result = safe_normalize(torch.zeros(2, 3))
    assert torch.equal(result, torch.zeros(2, 3))


def test_safe_normalize_unit_length():
    result = safe_normalize(torch.tensor([3.0, 0.0, 4.0]))
    assert torch.allclose(result, torch.tensor([0.6, 0.0, 0.8]))


if __name__ == "__main__":
    pytest.main([__file__])

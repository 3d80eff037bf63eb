"""
Tests for the per-tick visualiser session and its settings.
"""

import copy
import pytest
import torch
from config import ConfigManager
from src.physics import ChargeSet, PointCharge
from src.simulation import (
    FieldLineVisualizer, VisualizerSettings, MotionSettings, OscillationSettings,
    TraceSettings, ColorScheme, RenderSettings, BoundingBox, charges_from_config
)


def make_settings(**overrides):
    settings = VisualizerSettings(
        motion=MotionSettings(angular_speed=30.0),
        oscillation=OscillationSettings(speed=1.0, seed=11),
        tracing=TraceSettings(lines_per_charge=8, max_steps=32, step_size=0.5),
        rendering=RenderSettings(marker_refresh_interval=10),
    )
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def make_dipole():
    return ChargeSet.from_charges([
        PointCharge(position=(-2.0, 0.0, 0.0), charge=2.0),
        PointCharge(position=(2.0, 0.0, 0.0), charge=-2.0),
    ])


class TestFieldLineVisualizer:
    """Test suite for the visualiser session."""

    @pytest.fixture
    def visualizer(self):
        return FieldLineVisualizer(make_dipole(), make_settings())

    def test_start_frame(self, visualizer):
        frame = visualizer.start()

        assert frame.tick == 0
        assert frame.time == 0.0
        assert frame.markers_refreshed
        assert len(frame.markers) == 2
        assert len(frame.lines) == 8
        assert len(frame.gradients) == len(frame.lines)
        assert visualizer.oscillation_state is not None

    def test_markers_coloured_by_sign(self, visualizer):
        frame = visualizer.start()
        colors = visualizer.settings.colors
        assert frame.markers[0].color == colors.positive
        assert frame.markers[1].color == colors.negative
        assert frame.markers[0].position == (-2.0, 0.0, 0.0)

    def test_lines_seeded_only_from_positive_charges(self, visualizer):
        frame = visualizer.start()
        assert all(line.source_index == 0 for line in frame.lines)
        assert all(line.source_sign == 1.0 for line in frame.lines)

    def test_gradients_follow_termination(self, visualizer):
        frame = visualizer.start()
        colors = visualizer.settings.colors

        assert any(line.terminated_on_opposite_charge for line in frame.lines)
        for line, gradient in zip(frame.lines, frame.gradients):
            if line.terminated_on_opposite_charge:
                assert gradient == (colors.positive, colors.negative)
            else:
                assert gradient == (colors.positive, colors.positive)

    def test_tick_and_time_advance(self, visualizer):
        visualizer.start()
        frame = visualizer.step(0.1)
        frame = visualizer.step(0.1)

        assert frame.tick == 2
        assert frame.time == pytest.approx(0.2)

    def test_markers_refresh_on_interval(self, visualizer):
        start = visualizer.start()
        frames = [visualizer.step(0.1) for _ in range(12)]

        refreshed = [frame.tick for frame in frames if frame.markers_refreshed]
        assert refreshed == [10]

        # Charges move every tick but markers lag until the refresh
        assert frames[4].markers == start.markers
        assert frames[9].markers != start.markers
        assert frames[11].markers == frames[9].markers

    def test_lines_rebuilt_every_tick(self, visualizer):
        first = visualizer.start()
        second = visualizer.step(0.5)
        assert not torch.equal(first.lines[0].points, second.lines[0].points)

    def test_step_starts_session(self, visualizer):
        frame = visualizer.step(0.1)
        assert visualizer.started
        assert frame.tick == 1

    def test_run_yields_start_and_steps(self, visualizer):
        frames = list(visualizer.run(3, 0.1))
        assert [frame.tick for frame in frames] == [0, 1, 2, 3]

    def test_magnitudes_stay_within_baseline(self, visualizer):
        visualizer.start()
        for _ in range(20):
            visualizer.step(0.25)
            magnitudes = visualizer.charges.magnitudes
            assert (magnitudes.abs() <= 2.0 + 1e-6).all()
            assert (magnitudes.abs() >= 0.1 - 1e-6).all()
            assert magnitudes[0] > 0 and magnitudes[1] < 0

    def test_zero_angular_speed_keeps_positions(self):
        settings = make_settings(motion=MotionSettings(angular_speed=0.0))
        visualizer = FieldLineVisualizer(make_dipole(), settings)
        before = visualizer.charges.positions.clone()

        visualizer.start()
        for _ in range(5):
            visualizer.step(0.1)

        assert torch.equal(visualizer.charges.positions, before)

    def test_disabled_phases(self):
        settings = make_settings(motion=MotionSettings(enabled=False),
                                 oscillation=OscillationSettings(enabled=False))
        visualizer = FieldLineVisualizer(make_dipole(), settings)
        visualizer.start()
        visualizer.step(1.0)

        assert torch.equal(visualizer.charges.magnitudes, torch.tensor([2.0, -2.0]))
        assert torch.equal(visualizer.charges.positions[0], torch.tensor([-2.0, 0.0, 0.0]))

    def test_seeded_sessions_match(self):
        first = FieldLineVisualizer(make_dipole(), make_settings())
        second = FieldLineVisualizer(make_dipole(), make_settings())

        list(first.run(4, 0.2))
        list(second.run(4, 0.2))

        assert torch.equal(first.charges.magnitudes, second.charges.magnitudes)
        assert torch.equal(first.charges.positions, second.charges.positions)

    def test_bounds_padding(self):
        settings = make_settings(motion=MotionSettings(enabled=False))
        frame = FieldLineVisualizer(make_dipole(), settings).start()

        assert torch.allclose(frame.bounds.minimum, torch.tensor([-3.0, -1.0, -1.0]))
        assert torch.allclose(frame.bounds.maximum, torch.tensor([3.0, 1.0, 1.0]))

    def test_origin_offsets_world_output(self):
        settings = make_settings(motion=MotionSettings(enabled=False), origin=(1.0, 2.0, 3.0))
        frame = FieldLineVisualizer(make_dipole(), settings).start()

        assert frame.markers[0].position == (-1.0, 2.0, 3.0)
        assert torch.allclose(frame.bounds.minimum, torch.tensor([-2.0, 1.0, 2.0]))
        assert torch.allclose(frame.lines[0].start - torch.tensor([1.0, 2.0, 3.0]),
                              torch.tensor([-2.0, 0.0, 0.0]), atol=0.1 + 1e-6)

    def test_empty_charge_set(self):
        visualizer = FieldLineVisualizer(ChargeSet(), make_settings())
        frame = visualizer.start()

        assert frame.lines == []
        assert frame.markers == []
        assert frame.bounds is None

        frame = visualizer.step(0.1)
        assert frame.tick == 1
        assert frame.lines == []
        assert frame.bounds is None

    def test_only_negative_charges(self):
        charges = ChargeSet.from_charges([PointCharge(position=(0.0, 0.0, 0.0), charge=-1.0)])
        with pytest.warns(UserWarning, match="No positive charges"):
            frame = FieldLineVisualizer(charges, make_settings()).start()

        assert frame.lines == []
        assert len(frame.markers) == 1

    def test_metrics_tracked_per_tick(self, visualizer):
        visualizer.start()
        visualizer.step(0.1)
        visualizer.step(0.1)

        # One entry per frame, starting with tick 0
        history = visualizer.metrics.get_history('field_lines')
        assert len(history) == 3
        assert all(0.0 <= value <= 1.0 for value in history)

    def test_metrics_include_empty_ticks(self):
        visualizer = FieldLineVisualizer(ChargeSet(), make_settings())
        list(visualizer.run(4, 0.1))
        assert visualizer.metrics.get_history('field_lines') == [0.0] * 5

    def test_restart_keeps_oscillation_state(self, visualizer):
        visualizer.start()
        baseline = visualizer.oscillation_state.initial_magnitudes.clone()
        seeds = visualizer.oscillation_state.seeds.clone()

        list(visualizer.run(5, 0.3))
        list(visualizer.run(5, 0.3))

        assert torch.equal(visualizer.oscillation_state.initial_magnitudes, baseline)
        assert torch.equal(visualizer.oscillation_state.seeds, seeds)
        assert torch.equal(baseline, torch.tensor([2.0, -2.0]))

    def test_rerun_replays_session(self, visualizer):
        list(visualizer.run(5, 0.3))
        positions = visualizer.charges.positions.clone()
        magnitudes = visualizer.charges.magnitudes.clone()

        frames = list(visualizer.run(5, 0.3))

        assert frames[0].tick == 0
        assert torch.equal(visualizer.charges.positions, positions)
        assert torch.equal(visualizer.charges.magnitudes, magnitudes)
        assert len(visualizer.metrics.get_history('field_lines')) == 6

    def test_restart_restores_initial_charges(self, visualizer):
        visualizer.start()
        for _ in range(3):
            visualizer.step(0.5)
        visualizer.start()

        assert torch.equal(visualizer.charges.positions, make_dipole().positions)
        assert torch.equal(visualizer.charges.magnitudes, torch.tensor([2.0, -2.0]))

    def test_repeated_start_draws_seeds_once(self):
        once = FieldLineVisualizer(make_dipole(), make_settings())
        twice = FieldLineVisualizer(make_dipole(), make_settings())

        once.start()
        twice.start()
        twice.start()

        assert torch.equal(once.oscillation_state.seeds, twice.oscillation_state.seeds)


class TestSettings:
    """Test suite for configuration-driven settings."""

    @pytest.fixture
    def config(self):
        return ConfigManager().load_full_config()

    def test_from_config(self, config):
        settings = VisualizerSettings.from_config(config)

        assert settings.tracing.lines_per_charge == 64
        assert settings.tracing.max_steps == 128
        assert settings.tracing.step_size == 0.5
        assert settings.motion.rotation_axis == (0.0, 1.0, 0.0)
        assert settings.oscillation.seed == 42
        assert settings.colors.positive == (1.0, 0.3, 0.1)
        assert settings.rendering.marker_refresh_interval == 10
        assert settings.dtype == torch.float32

    def test_charges_from_config(self, config):
        charges = charges_from_config(config)
        assert len(charges) == 4
        assert charges.positive_indices() == [0, 2]

    def test_visualizer_from_config(self, config):
        config = copy.deepcopy(config)
        config['tracing']['lines_per_charge'] = 4
        config['tracing']['max_steps'] = 16
        config['device'] = 'cpu'

        visualizer = FieldLineVisualizer.from_config(config)
        frame = visualizer.start()

        assert len(frame.markers) == 4
        assert 0 < len(frame.lines) <= 8

    def test_invalid_trace_settings(self):
        with pytest.raises(ValueError):
            TraceSettings(step_size=0.0)
        with pytest.raises(ValueError):
            TraceSettings(max_steps=0)
        with pytest.raises(ValueError):
            TraceSettings(lines_per_charge=-1)

    def test_bad_vector_rejected(self):
        with pytest.raises(ValueError):
            VisualizerSettings.from_config({'motion': {'rotation_axis': [0.0, 1.0]}})

    def test_unsupported_dtype(self):
        with pytest.raises(ValueError):
            VisualizerSettings.from_config({'hardware': {'dtype': 'int8'}})

    def test_color_scheme(self):
        colors = ColorScheme()
        assert colors.sign_color(0.0) == colors.neutral
        assert colors.line_gradient(-1.0, True) == (colors.negative, colors.positive)
        assert colors.line_gradient(-1.0, False) == (colors.negative, colors.negative)


def test_bounding_box_empty():
    assert BoundingBox.around(torch.zeros(0, 3)) is None


def test_bounding_box_center_and_size():
    box = BoundingBox.around(torch.tensor([[0.0, 0.0, 0.0], [2.0, 4.0, 6.0]]), padding=0.5)
    assert torch.allclose(box.center, torch.tensor([1.0, 2.0, 3.0]))
    assert torch.allclose(box.size, torch.tensor([3.0, 5.0, 7.0]))


if __name__ == "__main__":
    pytest.main([__file__])

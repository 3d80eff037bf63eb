"""
Tests for the matplotlib rendering helpers.
"""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from src.physics import ChargeSet, PointCharge, FieldEvaluator
from src.simulation import FieldLineVisualizer, VisualizerSettings, TraceSettings
from src.utils import FieldLinePlotter, MetricsPlotter, gradient_segments, box_edges


@pytest.fixture
def visualizer():
    charges = ChargeSet.from_charges([
        PointCharge(position=(-2.0, 0.0, 0.0), charge=1.0),
        PointCharge(position=(2.0, 0.0, 0.0), charge=-1.0),
    ])
    settings = VisualizerSettings(tracing=TraceSettings(lines_per_charge=6, max_steps=24))
    return FieldLineVisualizer(charges, settings)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


def test_gradient_segments():
    points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    segments, colors = gradient_segments(points, (1.0, 0.0, 0.0), (0.0, 0.0, 1.0))

    assert segments.shape == (3, 2, 3)
    assert colors.shape == (3, 4)
    np.testing.assert_allclose(segments[1], [[1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    np.testing.assert_allclose(colors[0], [1.0, 0.0, 0.0, 1.0])
    np.testing.assert_allclose(colors[-1], [0.0, 0.0, 1.0, 1.0])


def test_gradient_single_segment_uses_start_colour():
    points = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]])
    _, colors = gradient_segments(points, (1.0, 0.5, 0.0), (0.0, 0.0, 1.0))
    np.testing.assert_allclose(colors, [[1.0, 0.5, 0.0, 1.0]])


def test_box_edges():
    edges = box_edges(np.array([0.0, 0.0, 0.0]), np.array([1.0, 2.0, 3.0]))
    assert edges.shape == (12, 2, 3)

    lengths = sorted(np.linalg.norm(edges[:, 1] - edges[:, 0], axis=1).tolist())
    assert lengths == pytest.approx([1.0] * 4 + [2.0] * 4 + [3.0] * 4)


class TestFieldLinePlotter:
    """Test suite for the 3D frame renderer."""

    def test_plot_frame(self, visualizer):
        frame = visualizer.start()
        fig = FieldLinePlotter().plot_frame(frame)

        ax = fig.axes[0]
        assert ax.name == '3d'
        assert 'tick 0' in ax.get_title()

    def test_plot_empty_frame(self):
        frame = FieldLineVisualizer(ChargeSet()).start()
        fig = FieldLinePlotter().plot_frame(frame)
        assert len(fig.axes) == 1

    def test_redraw_replaces_content(self, visualizer):
        plotter = FieldLinePlotter()
        fig, ax = plotter.create_axes()

        plotter.draw_frame(ax, visualizer.start())
        first = len(ax.collections)
        plotter.draw_frame(ax, visualizer.step(0.1))

        assert len(ax.collections) == first

    def test_animate(self, visualizer):
        fig, animation = FieldLinePlotter().animate(visualizer, n_frames=3, dt=0.1)
        assert isinstance(animation, FuncAnimation)
        assert fig is not None

    @pytest.mark.parametrize("plane", ['xy', 'xz', 'yz'])
    def test_plot_field_slice(self, visualizer, plane):
        fig = FieldLinePlotter().plot_field_slice(FieldEvaluator(), visualizer.charges,
                                                  plane=plane, grid_size=9)
        assert plane in fig.axes[0].get_title()

    def test_unknown_plane(self, visualizer):
        with pytest.raises(ValueError):
            FieldLinePlotter().plot_field_slice(FieldEvaluator(), visualizer.charges, plane='xx')


def test_metrics_history_plot():
    fig = MetricsPlotter().plot_metrics_history({'field_lines': [0.2, 0.4, 0.5]})
    assert len(fig.axes[0].lines) == 1


if __name__ == "__main__":
    pytest.main([__file__])

"""
Visualization tools for electric field lines.

Renders the frames produced by the field line visualiser with matplotlib:
lines as gradient-coloured 3D polylines, charges as coloured markers and the
charge bounding box as a wireframe cube. Also provides field slice plots and
metric histories.
"""

import itertools
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from mpl_toolkits.mplot3d.art3d import Line3DCollection
from typing import Any, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING
from dataclasses import dataclass
from pathlib import Path
import torch

if TYPE_CHECKING:
    from ..physics.charges import ChargeSet
    from ..physics.electric_field import FieldEvaluator
    from ..simulation.visualizer import FieldFrame, FieldLineVisualizer


@dataclass
class PlotConfig:
    """Configuration for plot styling and parameters."""
    figsize: Tuple[int, int] = (10, 10)
    dpi: int = 150
    colormap: str = 'viridis'
    line_width: float = 1.5
    marker_size: float = 60.0
    font_size: int = 12
    title_size: int = 14
    label_size: int = 10
    background: str = 'black'
    save_format: str = 'png'
    transparent: bool = False


class BasePlotter:
    """Base class for field plotting utilities."""

    def __init__(self, config: Optional[PlotConfig] = None):
        self.config = config or PlotConfig()
        self._setup_matplotlib()

    def _setup_matplotlib(self):
        """Configure matplotlib settings."""
        plt.rcParams.update({
            'font.size': self.config.font_size,
            'axes.titlesize': self.config.title_size,
            'axes.labelsize': self.config.label_size,
            'xtick.labelsize': self.config.label_size,
            'ytick.labelsize': self.config.label_size,
            'legend.fontsize': self.config.label_size,
            'figure.dpi': self.config.dpi,
            'savefig.dpi': self.config.dpi,
            'savefig.transparent': self.config.transparent
        })

    def save_figure(self, fig: plt.Figure, filename: str, directory: str = "plots") -> Path:
        """Save figure with consistent formatting."""
        save_dir = Path(directory)
        save_dir.mkdir(parents=True, exist_ok=True)

        filepath = save_dir / f"{filename}.{self.config.save_format}"
        fig.savefig(filepath, format=self.config.save_format,
                    bbox_inches='tight', transparent=self.config.transparent)
        print(f"Saved plot: {filepath}")
        return filepath


def gradient_segments(points: np.ndarray,
                      start_color: Sequence[float],
                      end_color: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split a polyline into segments with linearly interpolated colours.

    Args:
        points: Polyline of shape (K, 3), K >= 2
        start_color: RGB at the first point
        end_color: RGB at the last point

    Returns:
        Segments of shape (K-1, 2, 3) and RGBA colours of shape (K-1, 4)
    """
    segments = np.stack([points[:-1], points[1:]], axis=1)

    n_segments = segments.shape[0]
    t = np.linspace(0.0, 1.0, n_segments) if n_segments > 1 else np.zeros(1)
    start = np.asarray(start_color, dtype=float)
    end = np.asarray(end_color, dtype=float)

    rgb = start[None, :] * (1.0 - t[:, None]) + end[None, :] * t[:, None]
    rgba = np.concatenate([rgb, np.ones((n_segments, 1))], axis=1)
    return segments, rgba


def box_edges(minimum: np.ndarray, maximum: np.ndarray) -> np.ndarray:
    """The 12 edges of an axis-aligned box, shape (12, 2, 3)."""
    corners = np.array(list(itertools.product(*zip(minimum, maximum))))
    edges = []
    for i, j in itertools.combinations(range(8), 2):
        # Corners joined by an edge differ in exactly one coordinate
        if np.count_nonzero(corners[i] != corners[j]) == 1:
            edges.append((corners[i], corners[j]))
    return np.array(edges)


class FieldLinePlotter(BasePlotter):
    """3D renderer for field line frames."""

    def __init__(self,
                 config: Optional[PlotConfig] = None,
                 bounds_color: Sequence[float] = (0.0, 1.0, 0.0)):
        super().__init__(config)
        self.bounds_color = tuple(bounds_color)

    def create_axes(self) -> Tuple[plt.Figure, Any]:
        fig = plt.figure(figsize=self.config.figsize)
        ax = fig.add_subplot(111, projection='3d')
        return fig, ax

    def draw_frame(self, ax, frame: 'FieldFrame', show_bounds: bool = True):
        """
        Draw one frame onto a 3D axis, replacing previous content.

        Args:
            ax: Matplotlib 3D axis
            frame: Frame to draw
            show_bounds: Draw the padded charge bounding box
        """
        ax.cla()
        ax.set_facecolor(self.config.background)

        segments = []
        colors = []
        for line, (start_color, end_color) in zip(frame.lines, frame.gradients):
            line_segments, line_colors = gradient_segments(line.to_numpy(), start_color, end_color)
            segments.append(line_segments)
            colors.append(line_colors)

        if segments:
            collection = Line3DCollection(
                np.concatenate(segments),
                colors=np.concatenate(colors),
                linewidths=frame.line_width
            )
            ax.add_collection3d(collection)

        if frame.markers:
            positions = np.array([marker.position for marker in frame.markers])
            ax.scatter(positions[:, 0], positions[:, 1], positions[:, 2],
                       c=[marker.color for marker in frame.markers],
                       s=self.config.marker_size, depthshade=False)

        if frame.bounds is not None:
            minimum = frame.bounds.minimum.detach().cpu().numpy()
            maximum = frame.bounds.maximum.detach().cpu().numpy()
            if show_bounds:
                ax.add_collection3d(Line3DCollection(
                    box_edges(minimum, maximum), colors=[self.bounds_color], linewidths=0.8
                ))
            # Keep the view cubic so lines are not distorted
            center = 0.5 * (minimum + maximum)
            half = 0.5 * float(np.max(maximum - minimum))
            ax.set_xlim(center[0] - half, center[0] + half)
            ax.set_ylim(center[1] - half, center[1] + half)
            ax.set_zlim(center[2] - half, center[2] + half)

        ax.set_xlabel('x')
        ax.set_ylabel('y')
        ax.set_zlabel('z')
        ax.set_title(f'Field lines - tick {frame.tick} ({len(frame.lines)} lines)')

    def plot_frame(self, frame: 'FieldFrame', show_bounds: bool = True) -> plt.Figure:
        """Render a single frame into a new figure."""
        fig, ax = self.create_axes()
        self.draw_frame(ax, frame, show_bounds=show_bounds)
        return fig

    def animate(self,
                visualizer: 'FieldLineVisualizer',
                n_frames: int,
                dt: float,
                interval: int = 20,
                show_bounds: bool = True) -> Tuple[plt.Figure, FuncAnimation]:
        """
        Animate a running visualiser session.

        The first animation frame starts the session; every later frame steps
        it by dt.

        Args:
            visualizer: Session to drive
            n_frames: Number of animation frames
            dt: Simulation time per frame
            interval: Delay between frames in milliseconds
            show_bounds: Draw the padded charge bounding box

        Returns:
            Figure and animation object
        """
        fig, ax = self.create_axes()

        def update(index: int):
            frame = visualizer.start() if index == 0 else visualizer.step(dt)
            self.draw_frame(ax, frame, show_bounds=show_bounds)
            return ()

        animation = FuncAnimation(fig, update, frames=n_frames, interval=interval,
                                  blit=False, repeat=False)
        return fig, animation

    def plot_field_slice(self,
                         evaluator: 'FieldEvaluator',
                         charges: 'ChargeSet',
                         plane: str = 'xy',
                         extent: Tuple[float, float] = (-6.0, 6.0),
                         grid_size: int = 25,
                         slice_position: float = 0.0) -> plt.Figure:
        """
        Plot field direction and log-magnitude on an axis-aligned slice.

        Args:
            evaluator: Field evaluator
            charges: Charge set
            plane: Plane to plot ('xy', 'xz', 'yz')
            extent: Range of both in-plane coordinates
            grid_size: Samples per axis
            slice_position: Coordinate of the slice along the normal axis

        Returns:
            Matplotlib figure
        """
        plane_map = {'xy': (0, 1, 2), 'xz': (0, 2, 1), 'yz': (1, 2, 0)}
        if plane not in plane_map:
            raise ValueError(f"Unknown plane: {plane}")
        a_idx, b_idx, n_idx = plane_map[plane]

        axis = np.linspace(extent[0], extent[1], grid_size)
        A, B = np.meshgrid(axis, axis)

        coords = np.zeros((A.size, 3))
        coords[:, a_idx] = A.ravel()
        coords[:, b_idx] = B.ravel()
        coords[:, n_idx] = slice_position

        field = evaluator.evaluate(charges, torch.as_tensor(coords, dtype=charges.dtype))
        field = field.detach().cpu().numpy()

        Ea = field[:, a_idx].reshape(A.shape)
        Eb = field[:, b_idx].reshape(A.shape)
        magnitude = np.sqrt(Ea**2 + Eb**2)
        scale = np.where(magnitude > 0, magnitude, 1.0)

        fig, ax = plt.subplots(figsize=self.config.figsize)

        mesh = ax.pcolormesh(A, B, np.log10(magnitude + 1e-30), cmap=self.config.colormap,
                             shading='gouraud')
        fig.colorbar(mesh, ax=ax, label='log10 |E| (in-plane)')
        ax.quiver(A, B, Ea / scale, Eb / scale, color='white', alpha=0.8)

        for charge in charges:
            color = 'red' if charge.charge > 0 else 'blue' if charge.charge < 0 else 'white'
            ax.plot(charge.position[a_idx], charge.position[b_idx], 'o', color=color, markersize=8)

        labels = 'xyz'
        ax.set_xlabel(labels[a_idx])
        ax.set_ylabel(labels[b_idx])
        ax.set_title(f'Electric field - {plane} plane at {labels[n_idx]}={slice_position:g}')
        ax.set_aspect('equal', adjustable='box')
        return fig


class MetricsPlotter(BasePlotter):
    """Plotter for per-tick metric histories."""

    def plot_metrics_history(self, histories: Dict[str, List[float]]) -> plt.Figure:
        """
        Plot metric values against tick.

        Args:
            histories: Metric name to list of values

        Returns:
            Matplotlib figure
        """
        fig, ax = plt.subplots(figsize=(12, 6))
        for name, values in histories.items():
            ax.plot(range(len(values)), values, label=name, linewidth=self.config.line_width)

        ax.set_xlabel('Tick')
        ax.set_ylabel('Metric Value')
        ax.set_title('Field Line Metrics History')
        if histories:
            ax.legend()
        ax.grid(True, alpha=0.3)

        plt.tight_layout()
        return fig

"""
Field line visualisation script.

Runs a field line session for the configured charges and renders it with
matplotlib, either as a single frame after a number of ticks or as an
animation.
"""

import sys
import argparse
import logging
from pathlib import Path

import torch

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import ConfigManager
from src.simulation import FieldLineVisualizer
from src.utils.plotting import FieldLinePlotter, MetricsPlotter, PlotConfig


def setup_logging(config: dict) -> logging.Logger:
    """Setup logging infrastructure."""
    logging_config = config.get('logging', {})
    handlers = [logging.StreamHandler()]

    log_file = logging_config.get('log_file')
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, str(logging_config.get('level', 'INFO')).upper()),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
    return logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description='Visualise electric field lines of moving point charges')
    parser.add_argument('--config-dir', type=str, default=None,
                        help='Directory holding base_config.yaml and charges.yaml')
    parser.add_argument('--frames', type=int, default=None,
                        help='Number of ticks to simulate (defaults to simulation.frames)')
    parser.add_argument('--dt', type=float, default=None,
                        help='Time step per tick (defaults to simulation.dt)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Seed for the oscillation noise offsets')
    parser.add_argument('--animate', action='store_true',
                        help='Show an animation instead of the final frame')
    parser.add_argument('--save', type=str, default=None,
                        help='Save the final frame under plots/<name>')
    parser.add_argument('--no-show', action='store_true',
                        help='Do not open a window')
    return parser.parse_args()


def main():
    args = parse_args()

    manager = ConfigManager(args.config_dir)
    config = manager.load_full_config()
    logger = setup_logging(config)
    logger.info(f"Loaded configuration files: {', '.join(manager.loaded_files)}")

    simulation = config.get('simulation', {})
    n_frames = args.frames if args.frames is not None else int(simulation.get('frames', 200))
    dt = args.dt if args.dt is not None else float(simulation.get('dt', 0.02))

    generator = torch.Generator().manual_seed(args.seed) if args.seed is not None else None
    visualizer = FieldLineVisualizer.from_config(config, generator=generator)

    plot_config = PlotConfig(marker_size=visualizer.settings.rendering.marker_size)
    plotter = FieldLinePlotter(plot_config, bounds_color=visualizer.settings.colors.bounds)

    if args.animate:
        import matplotlib.pyplot as plt
        fig, animation = plotter.animate(visualizer, n_frames, dt)
        if not args.no_show:
            plt.show()
        return 0

    frame = None
    for frame in visualizer.run(n_frames, dt):
        pass

    summary = visualizer.metrics.latest('field_lines')
    if summary is not None:
        logger.info(f"Final tick {frame.tick}: {int(summary.details['n_lines'])} lines, "
                    f"{int(summary.details['n_terminated'])} terminated on sinks, "
                    f"mean length {summary.details['mean_arc_length']:.2f}")

    fig = plotter.plot_frame(frame)
    history_fig = MetricsPlotter(plot_config).plot_metrics_history(
        {'terminated_fraction': visualizer.metrics.get_history('field_lines')}
    )

    if args.save:
        plotter.save_figure(fig, args.save)
        plotter.save_figure(history_fig, f"{args.save}_metrics")

    if not args.no_show:
        import matplotlib.pyplot as plt
        plt.show()

    return 0


if __name__ == "__main__":
    sys.exit(main())

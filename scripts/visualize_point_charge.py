import sys
import argparse
from pathlib import Path

import matplotlib.pyplot as plt

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import ConfigManager
from src.physics import FieldEvaluator
from src.simulation import VisualizerSettings, charges_from_config
from src.utils.plotting import FieldLinePlotter


def plot_charge_field(config_dir=None, plane='xz', extent=(-6.0, 6.0), grid_size=25, slice_position=0.0):
    """
    Plots the electric field of the configured charges on a slice.
    """
    config = ConfigManager(config_dir).load_full_config()
    settings = VisualizerSettings.from_config(config)
    charges = charges_from_config(config, dtype=settings.dtype)

    evaluator = FieldEvaluator(settings.permittivity, settings.softening)
    plotter = FieldLinePlotter()

    fig = plotter.plot_field_slice(evaluator, charges, plane=plane, extent=extent,
                                   grid_size=grid_size, slice_position=slice_position)
    plotter.save_figure(fig, f"charge_field_{plane}")
    plt.show()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Plot the field of the configured charges on a slice')
    parser.add_argument('--config-dir', type=str, default=None)
    parser.add_argument('--plane', choices=['xy', 'xz', 'yz'], default='xz')
    parser.add_argument('--grid-size', type=int, default=25)
    parser.add_argument('--slice', type=float, default=0.0)
    args = parser.parse_args()

    plot_charge_field(args.config_dir, plane=args.plane, grid_size=args.grid_size,
                      slice_position=args.slice)

"""
Node Sharing Plot
=================
Bar chart of node valence in the input mesh: how many nodes were
referenced by 1, 2, 3, ... elements before decoupling. Every bar above
valence 1 turns into duplicated nodes.
"""

import os
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from .decouple_nodes import DecouplingResult
from .export_report import compute_valence_statistics


COLORS = {
    'unshared': '#4682B4',
    'shared': '#DC143C',
}

FIGURE_DPI = 100


def plot_valence_histogram(result: DecouplingResult, filepath: str,
                           dpi: int = FIGURE_DPI) -> str:
    """Save the valence histogram of `result` to `filepath` and return the path."""

    stats = compute_valence_statistics(result)
    histogram = stats['histogram']

    valences = sorted(histogram)
    counts = [histogram[v] for v in valences]
    colors = [COLORS['shared'] if v > 1 else COLORS['unshared'] for v in valences]

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.bar([str(v) for v in valences], counts, color=colors, edgecolor='black')

    ax.set_xlabel('Elements referencing the node')
    ax.set_ylabel('Number of nodes')
    ax.set_title(f"Node sharing before decoupling "
                 f"({result.n_duplicates} duplicates created)")
    ax.grid(True, axis='y', alpha=0.3)

    os.makedirs(os.path.dirname(filepath) or '.', exist_ok=True)
    fig.savefig(filepath, dpi=dpi, bbox_inches='tight')
    plt.close(fig)

    print(f"  Saved plot: {filepath}")
    return filepath


def generate_plots(config, result: DecouplingResult) -> None:
    """Main function: draw the report plots if plotting is enabled."""

    if not config.plotting.enabled:
        print("Plotting disabled in config. Skipping.")
        return

    plot_valence_histogram(result, config.paths.valence_plot, dpi=config.plotting.dpi)

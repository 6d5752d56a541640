# -*- coding: utf-8 -*-
"""
Utility functions for plotting and saving figures.
"""
import os
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
from slugify import slugify


def chart_filename(*parts):
    """Builds a filesystem-safe chart name, e.g. ('density', 2016, 'Non-academic') -> 'density_2016_non_academic'."""
    return "_".join(slugify(str(p), separator="_") for p in parts if str(p))


def save_matplotlib_figure(fig, base_filename, output_charts_dir):
    """Saves a Matplotlib figure to the designated charts directory and returns its path."""
    os.makedirs(output_charts_dir, exist_ok=True)
    chart_path = os.path.join(output_charts_dir, f"{base_filename}.png")

    fig.savefig(chart_path, bbox_inches='tight', dpi=150)
    plt.close(fig)
    return chart_path


def format_currency_axis(ax, axis='y'):
    """Formats an axis as whole dollars ($120,000) instead of scientific notation."""
    formatter = mticker.StrMethodFormatter('${x:,.0f}')
    target = ax.yaxis if axis == 'y' else ax.xaxis
    target.set_major_formatter(formatter)


def format_percent_axis(ax, axis='y', xmax=1.0):
    """Formats an axis holding fractions as percentages."""
    formatter = mticker.PercentFormatter(xmax=xmax)
    target = ax.yaxis if axis == 'y' else ax.xaxis
    target.set_major_formatter(formatter)

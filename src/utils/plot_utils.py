"""
Plot helpers with a consistent style.
Style adapted from BeautifulFigures, Andrey Churkin, https://github.com/AndreyChurkin/BeautifulFigures
"""

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

SCATTER_COLOR = '#77b5b6'
TRENDLINE_COLOR = 'red'


def set_plot_style():
    """Sets a consistent style for matplotlib plots."""
    plt.rcParams.update({
        'font.family': 'monospace',
        'font.size': 12,
        'axes.titlesize': 14,
        'axes.labelsize': 12,
        'xtick.labelsize': 11,
        'ytick.labelsize': 11,
        'legend.fontsize': 11,
        'figure.titlesize': 14,

        # PDF-specific settings
        'pdf.fonttype': 42,              # Embed fonts as TrueType (keeps text selectable)
        'ps.fonttype': 42,               # For PostScript
    })


def get_styled_figure_ax(figsize=(8, 6), grid=True):
    """
    Creates a matplotlib figure and axes with a consistent style.
    """
    set_plot_style()
    fig, ax = plt.subplots(figsize=figsize)

    if grid:
        # Major grid
        ax.grid(True, which='major', linestyle='-', linewidth=0.75, alpha=0.25)

        # Minor ticks and grid
        ax.minorticks_on()
        ax.grid(True, which='minor', linestyle='-', linewidth=0.25, alpha=0.15)

        ax.set_axisbelow(True)
    return fig, ax


def style_legend(ax, loc='upper right', frameon=False):
    """Styles the legend of a plot."""
    handles, labels = ax.get_legend_handles_labels()
    if handles and labels:
        ax.legend(handles, labels, loc=loc, frameon=frameon)


def trendline(x: np.ndarray, y: np.ndarray):
    """Least squares (slope, intercept), or None when x is constant or too short."""
    if len(x) < 2 or np.ptp(x) == 0:
        return None
    slope, intercept = np.polyfit(x, y, 1)
    return float(slope), float(intercept)


def correlation_scatter(sample: pd.DataFrame, x: str = 'NDVI', y: str = 'LST',
                        title: str = 'CORRELATION BETWEEN LST AND NDVI',
                        y_label: str = 'LST (°C)', correlation_text: str = None):
    """
    Scatter of the sampled pixels with a red linear trendline.

    Returns:
        (fig, ax)
    """
    fig, ax = get_styled_figure_ax()
    data = sample[[x, y]].dropna()
    ax.scatter(data[x], data[y], s=4, color=SCATTER_COLOR, label=y)

    fit = trendline(data[x].to_numpy(), data[y].to_numpy())
    if fit is not None:
        slope, intercept = fit
        xs = np.linspace(data[x].min(), data[x].max(), 100)
        ax.plot(xs, slope * xs + intercept, color=TRENDLINE_COLOR, linewidth=1.5,
                label=f"Trendline (y = {slope:.2f}x + {intercept:.2f})")

    ax.set_title(title)
    ax.set_xlabel(x)
    ax.set_ylabel(y_label)
    if correlation_text is not None:
        ax.text(0.02, 0.02, f"r = {correlation_text}", transform=ax.transAxes)
    style_legend(ax)
    fig.tight_layout()
    return fig, ax


def use_headless_backend():
    matplotlib.use('Agg')

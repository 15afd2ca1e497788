#!/usr/bin/env python3
"""
Figure styling for report charts.

Import this module at the start of any script that generates figures so
every chart shares fonts, sizes and colors.

Usage
-----
from utils.figure_style import apply_style, get_color_palette, save_figure
apply_style()
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

FONT_FAMILY = 'sans-serif'
FONT_SIZE = 10
TITLE_SIZE = 12
LABEL_SIZE = 10
TICK_SIZE = 9

FIG_WIDTH = 8.0
FIG_HEIGHT = 5.0

# DPI for saved figures
DPI = 200

PALETTES = {
    'default': ['#1f4e79', '#c55a11', '#548235', '#7f6000', '#7030a0'],
    # Oil, gas and NGL in commodity charts
    'commodity': ['#2f2f2f', '#4472c4', '#ed7d31'],
}


def apply_style():
    """Apply consistent styling for report figures."""
    plt.rcParams.update({
        'font.family': FONT_FAMILY,
        'font.size': FONT_SIZE,
        'axes.titlesize': TITLE_SIZE,
        'axes.labelsize': LABEL_SIZE,
        'xtick.labelsize': TICK_SIZE,
        'ytick.labelsize': TICK_SIZE,
        'figure.figsize': (FIG_WIDTH, FIG_HEIGHT),
        'savefig.dpi': DPI,
        'axes.grid': True,
        'grid.alpha': 0.3,
        'axes.spines.top': False,
        'axes.spines.right': False,
    })


def get_color_palette(name: str = 'default') -> list[str]:
    """Named color list; unknown names fall back to 'default'."""
    return PALETTES.get(name, PALETTES['default'])


def save_figure(fig, output_path: Path, formats: Optional[list[str]] = None) -> list[Path]:
    """
    Save a figure in one or more formats next to ``output_path``.

    Returns
    -------
    list[Path]
        Written files
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    formats = formats or [output_path.suffix.lstrip('.') or 'png']
    written = []
    for fmt in formats:
        path = output_path.with_suffix(f'.{fmt}')
        fig.savefig(path, bbox_inches='tight')
        written.append(path)
    return written

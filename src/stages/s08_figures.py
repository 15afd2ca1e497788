#!/usr/bin/env python3
"""
Stage 08: Figure Generation

Purpose: Chart the main reporting results.

This stage handles:
- Annual royalty trend with cumulative total
- Top regions by royalties
- Effective royalty rate distribution

Figures are drawn from the report queries, so they always agree with the
report CSVs.

Input Files
-----------
- data_work/federal_sales_clean.parquet

Output Files
------------
- figures/royalty_trend.png
- figures/top_regions.png
- figures/rate_distribution.png

Usage
-----
    python src/pipeline.py make_figures
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from config import CLEAN_PATH, REGION_COL
from utils.errors import InputNotFoundError
from utils.figure_style import apply_style, get_color_palette, save_figure
import matplotlib.pyplot as plt
from utils.helpers import get_figures_dir, load_data
from stages import s07_reports


def _floats(series: pd.Series) -> list[float]:
    return [float('nan') if v is None or pd.isna(v) else float(v) for v in series]


def plot_royalty_trend(df: pd.DataFrame, output_path: Path) -> Optional[Path]:
    """Yearly royalties as bars with the cumulative total as a line."""
    summary = s07_reports.yearly_summary(df)
    if summary.empty:
        print("  Warning: No yearly data, skipping royalty trend plot")
        return None

    colors = get_color_palette()
    years = [str(y) for y in summary['year']]
    fig, ax = plt.subplots()
    ax.bar(years, [v / 1e6 for v in _floats(summary['total_royalties'])],
           color=colors[0], label='Royalties')
    ax.set_xlabel('Calendar Year')
    ax.set_ylabel('Royalties (USD millions)')

    ax2 = ax.twinx()
    ax2.plot(years, [v / 1e6 for v in _floats(summary['cumulative_royalties'])],
             'o-', color=colors[1], label='Cumulative')
    ax2.set_ylabel('Cumulative royalties (USD millions)')
    ax2.grid(False)

    ax.set_title('Federal Royalty Revenue by Year')
    fig.legend(loc='upper left', bbox_to_anchor=(0.1, 0.9))

    save_figure(fig, output_path, formats=['png'])
    plt.close(fig)
    return output_path


def plot_top_regions(df: pd.DataFrame, output_path: Path, limit: int = 10) -> Optional[Path]:
    """Horizontal bars of the highest royalty-generating regions."""
    top = s07_reports.top_regions_by_royalties(df, limit=limit)
    if top.empty:
        print("  Warning: No regional data, skipping top regions plot")
        return None

    top = top.iloc[::-1]
    fig, ax = plt.subplots()
    ax.barh(top[REGION_COL].fillna('(unknown)').astype(str),
            [v / 1e6 for v in _floats(top['total_royalties'])],
            color=get_color_palette()[0])
    ax.set_xlabel('Royalties (USD millions)')
    ax.set_title(f'Top {len(top)} Regions by Royalty Revenue')

    save_figure(fig, output_path, formats=['png'])
    plt.close(fig)
    return output_path


def plot_rate_distribution(df: pd.DataFrame, output_path: Path) -> Optional[Path]:
    """Counts per effective royalty rate bucket."""
    dist = s07_reports.royalty_rate_distribution(df)
    dist = dist[dist['rate_bucket'].notna()]
    if dist.empty:
        print("  Warning: No rate data, skipping rate distribution plot")
        return None

    fig, ax = plt.subplots()
    ax.bar([f'{float(b):.2f}' for b in dist['rate_bucket']], dist['occurrences'],
           color=get_color_palette()[2])
    ax.set_xlabel('Effective royalty rate (rounded)')
    ax.set_ylabel('Records')
    ax.set_title('Distribution of Effective Royalty Rates')

    save_figure(fig, output_path, formats=['png'])
    plt.close(fig)
    return output_path


FIGURES = {
    'royalty_trend': plot_royalty_trend,
    'top_regions': plot_top_regions,
    'rate_distribution': plot_rate_distribution,
}


def main(
    input_path: Optional[Path] = None,
    figures_dir: Optional[Path] = None,
) -> list[Path]:
    """
    Execute figure generation.

    Returns
    -------
    list[Path]
        Figures written
    """
    print("=" * 60)
    print("Stage 08: Figure Generation")
    print("=" * 60)

    input_path = Path(input_path or CLEAN_PATH)
    figures_dir = Path(figures_dir or get_figures_dir())

    if not input_path.exists():
        raise InputNotFoundError(
            f"Input file not found: {input_path}. Run 'clean_data' first."
        )

    df = load_data(input_path)
    apply_style()

    written = []
    for name, plot in FIGURES.items():
        path = plot(df, figures_dir / f'{name}.png')
        if path is not None:
            print(f"  Saved: {path}")
            written.append(path)

    print("\n" + "=" * 60)
    print(f"Stage 08 complete. {len(written)} figure(s).")
    print("=" * 60)

    return written


if __name__ == '__main__':
    main()

#!/usr/bin/env python3
"""
Tests for src/stages/s08_figures.py
"""
from __future__ import annotations

from pathlib import Path
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from stages.s08_figures import (
    FIGURES,
    main,
    plot_rate_distribution,
    plot_royalty_trend,
    plot_top_regions,
)
from utils.errors import InputNotFoundError
from utils.figure_style import get_color_palette
from utils.helpers import save_data


class TestPlots:
    """Each figure writes a PNG."""

    @pytest.mark.parametrize('plot', [plot_royalty_trend, plot_top_regions, plot_rate_distribution])
    def test_writes_png(self, plot, temp_dir, clean_sales_df):
        path = plot(clean_sales_df, temp_dir / 'figure.png')
        assert path == temp_dir / 'figure.png'
        assert path.exists()

    @pytest.mark.parametrize('plot', [plot_royalty_trend, plot_top_regions, plot_rate_distribution])
    def test_empty_table_skipped(self, plot, temp_dir, clean_sales_df):
        assert plot(clean_sales_df.iloc[0:0], temp_dir / 'figure.png') is None
        assert not (temp_dir / 'figure.png').exists()


class TestMain:
    """Tests for the stage entry point."""

    def test_writes_all_figures(self, temp_dir, clean_sales_df):
        path = save_data(clean_sales_df, temp_dir / 'clean.parquet')
        written = main(input_path=path, figures_dir=temp_dir / 'figures')
        assert sorted(p.name for p in written) == sorted(f'{name}.png' for name in FIGURES)

    def test_missing_input(self, temp_dir):
        with pytest.raises(InputNotFoundError):
            main(input_path=temp_dir / 'absent.parquet', figures_dir=temp_dir)


def test_unknown_palette_falls_back():
    assert get_color_palette('nope') == get_color_palette('default')

#!/usr/bin/env python3
"""
Tests for src/stages/s02_nulls.py
"""
from __future__ import annotations

from decimal import Decimal
from pathlib import Path
import sys

import pandas as pd
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from config import GAS_VOLUME_COL, NUMERIC_COLUMNS, RATE_COL, TRANSPORT_COL
from stages.s01_types import normalize_types
from stages.s02_nulls import count_missing, fill_missing_numeric, main
from utils.errors import InputNotFoundError
from utils.helpers import load_data, save_data


@pytest.fixture
def typed_df(raw_sales_df):
    return normalize_types(raw_sales_df)


class TestFillMissingNumeric:
    """Tests for fill_missing_numeric."""

    def test_counts_before_fill(self, typed_df):
        counts = count_missing(typed_df)
        assert counts[TRANSPORT_COL] == 1
        assert counts[GAS_VOLUME_COL] == 1
        assert sum(counts.values()) == 2

    def test_fills_with_scaled_zero(self, typed_df):
        df = fill_missing_numeric(typed_df)
        assert str(df[TRANSPORT_COL].iloc[1]) == '0.00'
        assert str(df[GAS_VOLUME_COL].iloc[2]) == '0.00'
        assert all(n == 0 for n in count_missing(df).values())

    def test_rate_zero_has_rate_scale(self):
        df = pd.DataFrame({RATE_COL: [None, Decimal('0.1250')]}, dtype='object')
        out = fill_missing_numeric(df, {RATE_COL: (5, 4)})
        assert str(out[RATE_COL].iloc[0]) == '0.0000'

    def test_present_values_unchanged(self, typed_df):
        df = fill_missing_numeric(typed_df)
        for col in NUMERIC_COLUMNS:
            present = typed_df[col].notna()
            assert list(df.loc[present, col]) == list(typed_df.loc[present, col])

    def test_idempotent(self, typed_df):
        once = fill_missing_numeric(typed_df)
        pd.testing.assert_frame_equal(fill_missing_numeric(once), once)

    def test_text_columns_untouched(self):
        df = pd.DataFrame({'Commodity': [None], RATE_COL: [None]}, dtype='object')
        out = fill_missing_numeric(df)
        assert out['Commodity'].iloc[0] is None


class TestMain:
    """Tests for the stage entry point."""

    def test_updates_in_place(self, temp_dir, typed_df):
        path = save_data(typed_df, temp_dir / 'clean.parquet')
        main(input_path=path)
        saved = load_data(path)
        assert saved[TRANSPORT_COL].iloc[1] == Decimal('0')

    def test_missing_input(self, temp_dir):
        with pytest.raises(InputNotFoundError):
            main(input_path=temp_dir / 'absent.parquet')

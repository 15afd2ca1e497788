#!/usr/bin/env python3
"""
Tests for src/stages/s03_text.py

Tests cover:
- Case, whitespace and trailing punctuation cleanup
- Separator rewrites
- Null handling
"""
from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from config import (
    CATEGORICAL_COLUMNS,
    COMMODITY_COL,
    LAND_CATEGORY_COL,
    REGION_COL,
    REVENUE_TYPE_COL,
)
from stages.s03_text import count_changed, main, normalize_text, normalize_text_value
from utils.errors import InputNotFoundError
from utils.helpers import load_data, save_data


class TestNormalizeTextValue:
    """Tests for normalize_text_value."""

    @pytest.mark.parametrize('raw,expected', [
        (' wyoming ', 'WYOMING'),
        ('gulf  of mexico.', 'GULF OF MEXICO'),
        ('Onshore - Other', 'ONSHORE-OTHER'),
        ('NGL / Gas', 'NGL/GAS'),
        ('oil (bbl)', 'OIL (BBL)'),
        ('Federal ,', 'FEDERAL'),
        ('Royalties.,. ', 'ROYALTIES'),
        ('Royalties\t-\tLate', 'ROYALTIES-LATE'),
        ('A.B', 'A.B'),
        ('', ''),
    ])
    def test_normalizes(self, raw, expected):
        assert normalize_text_value(raw) == expected

    @pytest.mark.parametrize('raw', [None, np.nan])
    def test_null_passes_through(self, raw):
        result = normalize_text_value(raw)
        assert result is None or pd.isna(result)

    def test_idempotent(self):
        once = normalize_text_value('  intergoven  revenue - state. ')
        assert normalize_text_value(once) == once


class TestNormalizeText:
    """Tests for normalize_text."""

    def test_fixture(self, raw_sales_df):
        df = normalize_text(raw_sales_df)
        assert list(df[REGION_COL]) == [
            'WYOMING', 'WYOMING', 'GULF OF MEXICO', 'NEW MEXICO', 'WYOMING',
        ]
        assert df[LAND_CATEGORY_COL].iloc[3] == 'ONSHORE-OTHER'
        assert df[COMMODITY_COL].iloc[3] == 'NGL/GAS'
        assert df[REVENUE_TYPE_COL].iloc[0] == 'INTERGOVEN REVENUE-FEDERAL'

    def test_other_columns_untouched(self, raw_sales_df):
        df = normalize_text(raw_sales_df)
        assert df['Sales Value'].iloc[0] == '1000.00'

    def test_null_keeps_its_value(self):
        df = normalize_text(pd.DataFrame({REGION_COL: [' utah ', None]}), columns=[REGION_COL])
        assert df[REGION_COL].iloc[0] == 'UTAH'
        assert df[REGION_COL].iloc[1] is None

    def test_does_not_modify_input(self, raw_sales_df):
        before = raw_sales_df.copy()
        normalize_text(raw_sales_df)
        pd.testing.assert_frame_equal(raw_sales_df, before)

    def test_count_changed(self, raw_sales_df):
        after = normalize_text(raw_sales_df)
        changed = count_changed(raw_sales_df, after, CATEGORICAL_COLUMNS)
        assert changed[REGION_COL] == 4  # row 4 is already clean
        assert changed[COMMODITY_COL] == 5


class TestMain:
    """Tests for the stage entry point."""

    def test_updates_in_place(self, temp_dir, raw_sales_df):
        path = save_data(raw_sales_df, temp_dir / 'clean.parquet')
        main(input_path=path)
        assert load_data(path)[REGION_COL].iloc[0] == 'WYOMING'

    def test_missing_input(self, temp_dir):
        with pytest.raises(InputNotFoundError):
            main(input_path=temp_dir / 'absent.parquet')

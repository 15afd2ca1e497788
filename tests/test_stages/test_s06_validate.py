#!/usr/bin/env python3
"""
Tests for src/stages/s06_validate.py

Tests cover:
- Record counting
- The possible-duplicate heuristic
- Invariant checks on the cleaned table
"""
from __future__ import annotations

from decimal import Decimal
from pathlib import Path
import sys

import pandas as pd
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from config import EFFICIENCY_COL, RATE_COL, REGION_COL, SALES_VALUE_COL
from stages.s06_validate import (
    RANK_COL,
    count_records,
    find_possible_duplicates,
    main,
    rank_within_key,
    validate_clean,
)
from utils.errors import InputNotFoundError, SchemaError
from utils.helpers import load_diagnostic, save_data


class TestCountRecords:
    """Tests for count_records."""

    def test_count(self, clean_sales_df):
        counts = count_records(clean_sales_df)
        assert list(counts.columns) == ['total_records']
        assert counts['total_records'].iloc[0] == 5

    def test_empty(self, clean_sales_df):
        assert count_records(clean_sales_df.iloc[0:0])['total_records'].iloc[0] == 0


class TestPossibleDuplicates:
    """Tests for rank_within_key and find_possible_duplicates."""

    def test_fixture(self, clean_sales_df):
        dupes = find_possible_duplicates(clean_sales_df)
        assert list(dupes.index) == [4]
        assert dupes[RANK_COL].iloc[0] == 2

    def test_ranks(self, clean_sales_df):
        ranks = rank_within_key(clean_sales_df)
        assert list(ranks) == [1, 1, 1, 1, 2]

    def test_first_occurrence_never_flagged(self, clean_row):
        df = pd.DataFrame([
            clean_row(2015, sales='10.00', royalty='1.00'),
            clean_row(2015, sales='10.00', royalty='1.00'),
            clean_row(2015, sales='10.00', royalty='1.00'),
        ])
        dupes = find_possible_duplicates(df)
        assert list(dupes[RANK_COL]) == [2, 3]
        assert list(dupes.index) == [1, 2]

    def test_differing_key_not_flagged(self, clean_row):
        df = pd.DataFrame([
            clean_row(2015, sales='10.00', royalty='1.00'),
            clean_row(2016, sales='10.00', royalty='1.00'),
            clean_row(2015, region='UTAH', sales='10.00', royalty='1.00'),
            clean_row(2015, sales='10.00', royalty='1.01'),
        ])
        assert find_possible_duplicates(df).empty

    def test_rows_differing_outside_key_still_flagged(self, clean_row):
        df = pd.DataFrame([
            clean_row(2015, sales='10.00', royalty='1.00', commodity='OIL (BBL)'),
            clean_row(2015, sales='10.00', royalty='1.00', commodity='GAS (MCF)'),
        ])
        assert len(find_possible_duplicates(df)) == 1

    def test_null_keys_group_together(self, clean_row):
        df = pd.DataFrame([
            clean_row(2015, sales='10.00', royalty='1.00'),
            clean_row(2015, sales='10.00', royalty='1.00'),
        ])
        df[REGION_COL] = None
        assert len(find_possible_duplicates(df)) == 1

    def test_missing_key_column(self, clean_sales_df):
        with pytest.raises(SchemaError):
            find_possible_duplicates(clean_sales_df.drop(columns=[SALES_VALUE_COL]))

    def test_does_not_modify_input(self, clean_sales_df):
        before = clean_sales_df.copy()
        find_possible_duplicates(clean_sales_df)
        pd.testing.assert_frame_equal(clean_sales_df, before)


class TestValidateClean:
    """Tests for validate_clean."""

    def test_clean_fixture_passes(self, clean_sales_df):
        report = validate_clean(clean_sales_df)
        assert not report.has_errors
        assert not report.has_warnings

    def test_unnormalized_text_fails(self, clean_sales_df):
        clean_sales_df.loc[1, REGION_COL] = 'Wyoming '
        report = validate_clean(clean_sales_df)
        assert report.has_errors

    def test_missing_numeric_fails(self, clean_sales_df):
        clean_sales_df.loc[2, SALES_VALUE_COL] = None
        assert validate_clean(clean_sales_df).error_count == 1

    def test_missing_efficiency_column_fails(self, clean_sales_df):
        report = validate_clean(clean_sales_df.drop(columns=[EFFICIENCY_COL]))
        assert report.has_errors

    def test_rate_out_of_range_warns(self, clean_sales_df):
        clean_sales_df.loc[0, RATE_COL] = Decimal('1.5000')
        report = validate_clean(clean_sales_df)
        assert report.has_warnings
        assert not report.has_errors


class TestMain:
    """Tests for the stage entry point."""

    def test_writes_diagnostics(self, temp_dir, clean_sales_df):
        path = save_data(clean_sales_df, temp_dir / 'clean.parquet')
        diag_dir = temp_dir / 'diagnostics'

        report = main(input_path=path, diag_dir=diag_dir)

        assert not report.has_errors
        assert load_diagnostic('record_count', diag_dir)['total_records'].iloc[0] == 5
        dupes = load_diagnostic('possible_duplicates', diag_dir)
        assert len(dupes) == 1
        assert dupes[RANK_COL].iloc[0] == 2
        assert (diag_dir / 'validation_report.csv').exists()

    def test_missing_input(self, temp_dir):
        with pytest.raises(InputNotFoundError):
            main(input_path=temp_dir / 'absent.parquet', diag_dir=temp_dir)

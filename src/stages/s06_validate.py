#!/usr/bin/env python3
"""
Stage 06: Validation

Purpose: Count records, flag possible duplicates and check cleaning invariants.

Possible duplicates are rows that share (Calendar Year, State/Offshore
Region, Sales Value, RVLA) with an earlier row. Rows are numbered within
each key group in Sales Value order and every row numbered above 1 is
reported. This is a heuristic: two legitimately distinct rows can collide
on the key, and rows differing only outside the key are still grouped.
Nothing is removed from the cleaned table.

Input Files
-----------
- data_work/federal_sales_clean.parquet

Output Files
------------
- data_work/diagnostics/record_count.csv
- data_work/diagnostics/possible_duplicates.csv
- data_work/diagnostics/validation_report.csv

Usage
-----
    python src/pipeline.py validate_data
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from config import (
    CATEGORICAL_COLUMNS,
    CLEAN_PATH,
    DUPLICATE_KEY,
    EFFICIENCY_COL,
    NUMERIC_COLUMNS,
    RATE_COL,
    RATE_RANGE,
    SALES_VALUE_COL,
    SOURCE_COLUMNS,
)
from utils.errors import InputNotFoundError, SchemaError
from utils.helpers import get_data_dir, load_data, save_diagnostic
from utils.validation import (
    DataValidator,
    ValidationReport,
    no_missing_values,
    normalized_text,
    required_columns,
    row_count,
    value_range,
)
from stages._qa_utils import qa_for_stage


RANK_COL = 'rn'


# ============================================================
# RECORD COUNT
# ============================================================

def count_records(df: pd.DataFrame) -> pd.DataFrame:
    """Single-row table with the total record count."""
    return pd.DataFrame({'total_records': [len(df)]})


# ============================================================
# DUPLICATE DETECTION
# ============================================================

def rank_within_key(
    df: pd.DataFrame,
    key: Optional[list[str]] = None,
    order_by: str = SALES_VALUE_COL,
) -> pd.Series:
    """
    Row number (from 1) of each row inside its key group.

    Groups are ordered by ``order_by`` with ties kept in input order. Null
    key values group together.
    """
    key = key or DUPLICATE_KEY
    missing = [c for c in [*key, order_by] if c not in df.columns]
    if missing:
        raise SchemaError(f"Cannot rank duplicates, missing columns: {missing}")

    ordered = df.sort_values(order_by, kind='stable', na_position='last')
    ranks = ordered.groupby(key, dropna=False, sort=False).cumcount() + 1
    return ranks.reindex(df.index).rename(RANK_COL)


def find_possible_duplicates(
    df: pd.DataFrame,
    key: Optional[list[str]] = None,
) -> pd.DataFrame:
    """
    Rows sharing the duplicate key with an earlier row.

    Returns
    -------
    pd.DataFrame
        Flagged rows with all their columns plus ``rn`` (always > 1)
    """
    ranked = df.assign(**{RANK_COL: rank_within_key(df, key)})
    return ranked[ranked[RANK_COL] > 1]


# ============================================================
# INVARIANT CHECKS
# ============================================================

def build_validator() -> DataValidator:
    """Rules every cleaned table must satisfy."""
    low, high = RATE_RANGE
    return (DataValidator()
        .add_rule(required_columns(SOURCE_COLUMNS + [EFFICIENCY_COL]))
        .add_rule(row_count(min_rows=1))
        .add_rule(no_missing_values(list(NUMERIC_COLUMNS)))
        .add_rule(normalized_text(CATEGORICAL_COLUMNS))
        .add_rule(value_range(RATE_COL, min_val=low, max_val=high, severity='warning'))
    )


def validate_clean(df: pd.DataFrame) -> ValidationReport:
    """Run the cleaned-table rules."""
    return build_validator().validate(df)


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(
    input_path: Optional[Path] = None,
    diag_dir: Optional[Path] = None,
    qa_dir: Optional[Path] = None,
) -> ValidationReport:
    """
    Execute validation of the cleaned table.

    Returns
    -------
    ValidationReport
        Invariant check results; the count and duplicate tables are saved
        as diagnostics
    """
    print("=" * 60)
    print("Stage 06: Validation")
    print("=" * 60)

    input_path = Path(input_path or CLEAN_PATH)
    diag_dir = Path(diag_dir or get_data_dir('diagnostics'))

    if not input_path.exists():
        raise InputNotFoundError(
            f"Input file not found: {input_path}. Run 'clean_data' first."
        )

    df = load_data(input_path)

    counts = count_records(df)
    print(f"\n  Total records: {int(counts['total_records'].iloc[0]):,}")
    save_diagnostic(counts, 'record_count', diag_dir)

    duplicates = find_possible_duplicates(df)
    print(f"  Possible duplicates: {len(duplicates):,} "
          f"(key: {', '.join(DUPLICATE_KEY)})")
    save_diagnostic(duplicates, 'possible_duplicates', diag_dir)

    report = validate_clean(df)
    print()
    print(report.format())
    save_diagnostic(report.to_dataframe(), 'validation_report', diag_dir)

    qa_for_stage(
        's06_validate', df,
        additional_metrics={
            'possible_duplicates': len(duplicates),
            'validation_errors': report.error_count,
            'validation_warnings': report.warning_count,
        },
        output_dir=qa_dir,
    )

    print("\n" + "=" * 60)
    print("Stage 06 complete.")
    print("=" * 60)

    return report


if __name__ == '__main__':
    main()

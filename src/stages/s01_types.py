#!/usr/bin/env python3
"""
Stage 01: Type Normalization

Purpose: Coerce financial and rate columns to fixed-precision decimals.

Monetary and volume columns become NUMERIC(20,2) and the effective royalty
rate NUMERIC(5,4), each held as ``decimal.Decimal`` values rounded half away
from zero. Any value that is not a number, or that needs more integer
digits than its column allows, aborts the run before anything is written.
Missing values stay missing; stage 02 fills them.

Input Files
-----------
- data_work/federal_sales_raw.parquet

Output Files
------------
- data_work/federal_sales_clean.parquet

Usage
-----
    python src/pipeline.py run_stage s01_types
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from config import CLEAN_PATH, NUMERIC_COLUMNS, RAW_COPY_PATH, YEAR_COL
from utils.decimals import fit_decimal, to_decimal
from utils.errors import InputNotFoundError, SchemaError, TypeConversionError
from utils.helpers import load_data, save_data
from stages._qa_utils import qa_for_stage


def coerce_decimal_column(
    series: pd.Series,
    precision: int,
    scale: int,
) -> pd.Series:
    """
    Convert a column to Decimals at the given precision and scale.

    Parameters
    ----------
    series : pd.Series
        Raw values (text or numbers)
    precision : int
        Total significant digits allowed
    scale : int
        Digits after the decimal point

    Returns
    -------
    pd.Series
        Object column of Decimal or None

    Raises
    ------
    TypeConversionError
        On the first value that is not numeric or does not fit
    """
    converted = []
    for row, raw in series.items():
        try:
            value = fit_decimal(to_decimal(raw), precision, scale)
        except (ValueError, OverflowError) as e:
            raise TypeConversionError(series.name, row, raw, str(e)) from e
        converted.append(value)
    return pd.Series(converted, index=series.index, name=series.name, dtype='object')


def coerce_year(series: pd.Series) -> pd.Series:
    """Convert the calendar year column to a nullable integer."""
    years = []
    for row, raw in series.items():
        try:
            value = to_decimal(raw)
        except ValueError as e:
            raise TypeConversionError(series.name, row, raw, str(e)) from e
        if value is not None and value != value.to_integral_value():
            raise TypeConversionError(series.name, row, raw, 'not an integer')
        years.append(None if value is None else int(value))
    return pd.Series(years, index=series.index, name=series.name, dtype='Int64')


def normalize_types(
    df: pd.DataFrame,
    numeric_columns: Optional[dict[str, tuple[int, int]]] = None,
) -> pd.DataFrame:
    """
    Return a copy of ``df`` with typed year and decimal columns.

    Parameters
    ----------
    df : pd.DataFrame
        Raw sales table
    numeric_columns : dict, optional
        Column -> (precision, scale); defaults to NUMERIC_COLUMNS

    Returns
    -------
    pd.DataFrame
        Typed table; other columns are unchanged
    """
    numeric_columns = numeric_columns or NUMERIC_COLUMNS
    missing = [c for c in [YEAR_COL, *numeric_columns] if c not in df.columns]
    if missing:
        raise SchemaError(f"Cannot normalize types, missing columns: {missing}")

    df = df.copy()
    df[YEAR_COL] = coerce_year(df[YEAR_COL])
    for col, (precision, scale) in numeric_columns.items():
        df[col] = coerce_decimal_column(df[col], precision, scale)
    return df


def main(
    input_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    qa_dir: Optional[Path] = None,
) -> pd.DataFrame:
    """
    Execute type normalization.

    Reads the raw working copy and writes the first version of the
    cleaned table.
    """
    print("=" * 60)
    print("Stage 01: Type Normalization")
    print("=" * 60)

    input_path = Path(input_path or RAW_COPY_PATH)
    output_path = Path(output_path or CLEAN_PATH)

    if not input_path.exists():
        raise InputNotFoundError(
            f"Input file not found: {input_path}. Run 'load_data' first."
        )

    df = load_data(input_path)
    print(f"\n  Loaded {len(df):,} rows from {input_path.name}")

    df = normalize_types(df)
    for col, (precision, scale) in NUMERIC_COLUMNS.items():
        print(f"    {col}: NUMERIC({precision},{scale})")

    print(f"\n  Saving to: {output_path}")
    save_data(df, output_path)

    qa_for_stage('s01_types', df, output_file=str(output_path), output_dir=qa_dir)

    print("\n" + "=" * 60)
    print("Stage 01 complete.")
    print("=" * 60)

    return df


if __name__ == '__main__':
    main()

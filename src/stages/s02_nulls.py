#!/usr/bin/env python3
"""
Stage 02: Null Filling

Purpose: Replace missing numeric values with zero.

Sums and ratios in the reporting stage must not silently drop rows because
of null propagation, so every numeric column is zero-filled at its own
scale (0.00 for money and volumes, 0.0000 for the rate).

Input Files
-----------
- data_work/federal_sales_clean.parquet

Output Files
------------
- data_work/federal_sales_clean.parquet (updated in place)

Usage
-----
    python src/pipeline.py run_stage s02_nulls
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from config import CLEAN_PATH, NUMERIC_COLUMNS
from utils.decimals import is_missing, quantum
from utils.errors import InputNotFoundError
from utils.helpers import load_data, save_data
from stages._qa_utils import qa_for_stage


def count_missing(
    df: pd.DataFrame,
    columns: Optional[list[str]] = None
) -> dict[str, int]:
    """Null count per numeric column."""
    columns = columns or list(NUMERIC_COLUMNS)
    return {col: int(df[col].map(is_missing).sum()) for col in columns if col in df.columns}


def fill_missing_numeric(
    df: pd.DataFrame,
    numeric_columns: Optional[dict[str, tuple[int, int]]] = None,
) -> pd.DataFrame:
    """
    Return a copy of ``df`` with nulls in numeric columns set to zero.

    Parameters
    ----------
    df : pd.DataFrame
        Typed sales table
    numeric_columns : dict, optional
        Column -> (precision, scale); defaults to NUMERIC_COLUMNS
    """
    numeric_columns = numeric_columns or NUMERIC_COLUMNS
    df = df.copy()
    for col, (_, scale) in numeric_columns.items():
        if col not in df.columns:
            continue
        zero = quantum(scale) * 0
        df[col] = df[col].map(lambda v: zero if is_missing(v) else v).astype('object')
    return df


def main(
    input_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    qa_dir: Optional[Path] = None,
) -> pd.DataFrame:
    """Execute null filling on the cleaned table."""
    print("=" * 60)
    print("Stage 02: Null Filling")
    print("=" * 60)

    input_path = Path(input_path or CLEAN_PATH)
    output_path = Path(output_path or input_path)

    if not input_path.exists():
        raise InputNotFoundError(
            f"Input file not found: {input_path}. Run stage s01_types first."
        )

    df = load_data(input_path)
    before = count_missing(df)
    df = fill_missing_numeric(df)

    print("\n  Filled values:")
    for col, n in before.items():
        print(f"    {col}: {n:,}")

    print(f"\n  Saving to: {output_path}")
    save_data(df, output_path)

    qa_for_stage(
        's02_nulls', df,
        additional_metrics={'filled_cells': sum(before.values())},
        output_file=str(output_path),
        output_dir=qa_dir,
    )

    print("\n" + "=" * 60)
    print("Stage 02 complete.")
    print("=" * 60)

    return df


if __name__ == '__main__':
    main()

#!/usr/bin/env python3
"""
Stage 03: Text Normalization

Purpose: Standardize categorical text so that grouping and joins are exact.

Each categorical value goes through, in order:
1. upper-case
2. trim
3. collapse internal whitespace runs to one space
4. strip trailing periods and commas (and whitespace they expose)
5. rewrite " - " to "-" and " / " to "/"

Punctuation is stripped after whitespace is collapsed so that endings such
as ". ," disappear completely. Null values stay null.

Input Files
-----------
- data_work/federal_sales_clean.parquet

Output Files
------------
- data_work/federal_sales_clean.parquet (updated in place)

Usage
-----
    python src/pipeline.py run_stage s03_text
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Optional
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from config import CATEGORICAL_COLUMNS, CLEAN_PATH, SEPARATOR_REWRITES
from utils.errors import InputNotFoundError
from utils.helpers import load_data, save_data
from stages._qa_utils import qa_for_stage


_WHITESPACE_RUN = re.compile(r'\s+')
_TRAILING_PUNCTUATION = re.compile(r'[\s.,]+$')


def normalize_text_value(value: Optional[str]) -> Optional[str]:
    """
    Normalize one categorical value.

    Examples
    --------
    >>> normalize_text_value('  royalties  -  late payment. ')
    'ROYALTIES-LATE PAYMENT'
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return value
    text = str(value).upper().strip()
    text = _WHITESPACE_RUN.sub(' ', text)
    text = _TRAILING_PUNCTUATION.sub('', text)
    for old, new in SEPARATOR_REWRITES:
        text = text.replace(old, new)
    return text


def normalize_text(
    df: pd.DataFrame,
    columns: Optional[list[str]] = None
) -> pd.DataFrame:
    """Return a copy of ``df`` with categorical columns normalized."""
    columns = columns or CATEGORICAL_COLUMNS
    df = df.copy()
    for col in columns:
        if col in df.columns:
            df[col] = pd.Series(
                [normalize_text_value(v) for v in df[col]],
                index=df.index,
                dtype='object',
            )
    return df


def count_changed(before: pd.DataFrame, after: pd.DataFrame, columns: list[str]) -> dict[str, int]:
    """Number of values rewritten per column."""
    changed = {}
    for col in columns:
        if col in before.columns:
            diff = before[col].fillna('\0').astype(str) != after[col].fillna('\0').astype(str)
            changed[col] = int(diff.sum())
    return changed


def main(
    input_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    qa_dir: Optional[Path] = None,
) -> pd.DataFrame:
    """Execute text normalization on the cleaned table."""
    print("=" * 60)
    print("Stage 03: Text Normalization")
    print("=" * 60)

    input_path = Path(input_path or CLEAN_PATH)
    output_path = Path(output_path or input_path)

    if not input_path.exists():
        raise InputNotFoundError(
            f"Input file not found: {input_path}. Run stage s01_types first."
        )

    df = load_data(input_path)
    normalized = normalize_text(df)
    changed = count_changed(df, normalized, CATEGORICAL_COLUMNS)

    print("\n  Values rewritten:")
    for col, n in changed.items():
        print(f"    {col}: {n:,}")

    print(f"\n  Saving to: {output_path}")
    save_data(normalized, output_path)

    qa_for_stage(
        's03_text', normalized,
        additional_metrics={'rewritten_values': sum(changed.values())},
        output_file=str(output_path),
        output_dir=qa_dir,
    )

    print("\n" + "=" * 60)
    print("Stage 03 complete.")
    print("=" * 60)

    return normalized


if __name__ == '__main__':
    main()

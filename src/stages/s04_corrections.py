#!/usr/bin/env python3
"""
Stage 04: Value Corrections

Purpose: Rewrite known misspelled categorical values by exact match.

The built-in table fixes the "INTERGOVEN" typo in Revenue Type. Further
entries can be listed in ``value_corrections.yml`` at the project root::

    Revenue Type:
      ROYALTIES-LATE PAYMNT: ROYALTIES-LATE PAYMENT
    Commodity:
      OIL(BBL): OIL (BBL)

Keys are matched against already-normalized text. A value that is not in
the table passes through unchanged, and no corrected value may itself be a
key, so applying the corrections twice changes nothing.

Input Files
-----------
- data_work/federal_sales_clean.parquet
- value_corrections.yml (optional)

Output Files
------------
- data_work/federal_sales_clean.parquet (updated in place)

Usage
-----
    python src/pipeline.py run_stage s04_corrections
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from config import CLEAN_PATH, VALUE_CORRECTIONS, VALUE_CORRECTIONS_FILE
from utils.decimals import is_missing
from utils.errors import InputNotFoundError, SchemaError
from utils.helpers import load_data, load_yaml, save_data
from stages._qa_utils import qa_for_stage


Corrections = dict[str, dict[str, str]]


def load_corrections(path: Optional[Path] = None) -> Corrections:
    """
    Merge the built-in corrections with the optional YAML file.

    Parameters
    ----------
    path : Path, optional
        YAML file (default: VALUE_CORRECTIONS_FILE). A missing file is fine.

    Returns
    -------
    dict
        Column -> {wrong: right}

    Raises
    ------
    ValueError
        If the file is malformed or a correction would chain into another
    """
    path = Path(path or VALUE_CORRECTIONS_FILE)
    corrections = {col: dict(table) for col, table in VALUE_CORRECTIONS.items()}

    if path.exists():
        extra = load_yaml(path)
        for col, table in extra.items():
            if not isinstance(table, dict):
                raise ValueError(f"Corrections for '{col}' in {path} must be a mapping")
            for wrong, right in table.items():
                if not isinstance(wrong, str) or not isinstance(right, str):
                    raise ValueError(f"Corrections for '{col}' in {path} must map text to text")
            corrections.setdefault(col, {}).update(table)

    for col, table in corrections.items():
        chained = sorted(set(table.values()) & set(table))
        if chained:
            raise ValueError(f"Corrections for '{col}' chain through {chained}")

    return corrections


def apply_corrections(
    df: pd.DataFrame,
    corrections: Optional[Corrections] = None,
) -> pd.DataFrame:
    """Return a copy of ``df`` with exact-match corrections applied."""
    corrections = VALUE_CORRECTIONS if corrections is None else corrections
    missing = [col for col in corrections if col not in df.columns]
    if missing:
        raise SchemaError(f"Corrections reference unknown columns: {missing}")

    df = df.copy()
    for col, table in corrections.items():
        df[col] = pd.Series(
            [v if is_missing(v) else table.get(v, v) for v in df[col]],
            index=df.index,
            dtype='object',
        )
    return df


def count_corrections(df: pd.DataFrame, corrections: Corrections) -> dict[str, int]:
    """Number of values that the table would rewrite, per column."""
    return {
        col: int(df[col].isin(list(table)).sum())
        for col, table in corrections.items()
        if col in df.columns
    }


def main(
    input_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    corrections_file: Optional[Path] = None,
    qa_dir: Optional[Path] = None,
) -> pd.DataFrame:
    """Execute value corrections on the cleaned table."""
    print("=" * 60)
    print("Stage 04: Value Corrections")
    print("=" * 60)

    input_path = Path(input_path or CLEAN_PATH)
    output_path = Path(output_path or input_path)

    if not input_path.exists():
        raise InputNotFoundError(
            f"Input file not found: {input_path}. Run stage s03_text first."
        )

    corrections = load_corrections(corrections_file)
    df = load_data(input_path)
    counts = count_corrections(df, corrections)
    df = apply_corrections(df, corrections)

    print("\n  Corrected values:")
    for col, n in counts.items():
        print(f"    {col}: {n:,} ({len(corrections[col])} rule(s))")

    print(f"\n  Saving to: {output_path}")
    save_data(df, output_path)

    qa_for_stage(
        's04_corrections', df,
        additional_metrics={'corrected_values': sum(counts.values())},
        output_file=str(output_path),
        output_dir=qa_dir,
    )

    print("\n" + "=" * 60)
    print("Stage 04 complete.")
    print("=" * 60)

    return df


if __name__ == '__main__':
    main()

#!/usr/bin/env python3
"""
Stage 05: Derived Metrics

Purpose: Add the royalty efficiency ratio to the cleaned table.

    royalty_efficiency = round(RVLA / Sales Value * 100, 2)

The ratio is null where Sales Value is zero; that is an expected outcome,
not an error.

Input Files
-----------
- data_work/federal_sales_clean.parquet

Output Files
------------
- data_work/federal_sales_clean.parquet (adds royalty_efficiency)

Usage
-----
    python src/pipeline.py run_stage s05_metrics
"""
from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Optional
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from config import CLEAN_PATH, EFFICIENCY_COL, EFFICIENCY_SCALE, ROYALTY_COL, SALES_VALUE_COL
from utils.decimals import HUNDRED, is_missing, round_half_up, safe_divide
from utils.errors import InputNotFoundError, SchemaError
from utils.helpers import load_data, save_data
from stages._qa_utils import qa_for_stage


def royalty_efficiency(royalty: Optional[Decimal], sales: Optional[Decimal]) -> Optional[Decimal]:
    """
    Royalty as a percentage of sales value.

    Examples
    --------
    >>> royalty_efficiency(Decimal('125.50'), Decimal('1000.00'))
    Decimal('12.55')
    >>> royalty_efficiency(Decimal('10.00'), Decimal('0.00')) is None
    True
    """
    if is_missing(royalty) or is_missing(sales):
        return None
    ratio = safe_divide(royalty, sales)
    if ratio is None:
        return None
    return round_half_up(ratio * HUNDRED, EFFICIENCY_SCALE)


def derive_metrics(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of ``df`` with the royalty_efficiency column."""
    missing = [c for c in (ROYALTY_COL, SALES_VALUE_COL) if c not in df.columns]
    if missing:
        raise SchemaError(f"Cannot derive metrics, missing columns: {missing}")

    df = df.copy()
    df[EFFICIENCY_COL] = pd.Series(
        [royalty_efficiency(r, s) for r, s in zip(df[ROYALTY_COL], df[SALES_VALUE_COL])],
        index=df.index,
        dtype='object',
    )
    return df


def main(
    input_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    qa_dir: Optional[Path] = None,
) -> pd.DataFrame:
    """Execute metric derivation on the cleaned table."""
    print("=" * 60)
    print("Stage 05: Derived Metrics")
    print("=" * 60)

    input_path = Path(input_path or CLEAN_PATH)
    output_path = Path(output_path or input_path)

    if not input_path.exists():
        raise InputNotFoundError(
            f"Input file not found: {input_path}. Run stage s04_corrections first."
        )

    df = derive_metrics(load_data(input_path))
    n_undefined = int(df[EFFICIENCY_COL].isna().sum())
    print(f"\n  {EFFICIENCY_COL}: {len(df) - n_undefined:,} defined, "
          f"{n_undefined:,} undefined (zero sales value)")

    print(f"\n  Saving to: {output_path}")
    save_data(df, output_path)

    qa_for_stage(
        's05_metrics', df,
        additional_metrics={'undefined_efficiency': n_undefined},
        output_file=str(output_path),
        output_dir=qa_dir,
    )

    print("\n" + "=" * 60)
    print("Stage 05 complete.")
    print("=" * 60)

    return df


if __name__ == '__main__':
    main()

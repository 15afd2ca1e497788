#!/usr/bin/env python3
"""
Stage 00: Load Raw Sales

Purpose: Materialize an untouched working copy of the raw federal sales table.

This stage handles:
- Locating the raw ONRR export (CSV, parquet or Excel)
- Reading numeric columns as text so later stages see the raw representation
- Checking that every source column is present
- Generating a synthetic dataset with --demo when no raw file exists

No value is transformed here; the copy keeps the source schema so the raw
file itself is never modified by cleaning.

Input Files
-----------
- data_raw/*.csv, *.parquet, *.xlsx
- OR synthetic data if no raw data exists

Output Files
------------
- data_work/federal_sales_raw.parquet

Usage
-----
    python src/pipeline.py load_data
    python src/pipeline.py load_data --demo
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd
import numpy as np

from config import (
    DEMO_SEED,
    DEMO_YEARS,
    INPUT_PATTERNS,
    NUMERIC_COLUMNS,
    RAW_COPY_PATH,
    SOURCE_COLUMNS,
    YEAR_COL,
    REGION_COL,
    LAND_CLASS_COL,
    LAND_CATEGORY_COL,
    REVENUE_TYPE_COL,
    COMMODITY_COL,
    SALES_VOLUME_COL,
    GAS_VOLUME_COL,
    SALES_VALUE_COL,
    ROYALTY_COL,
    TRANSPORT_COL,
    PROCESSING_COL,
    RATE_COL,
)
from utils.errors import InputNotFoundError, SchemaError
from utils.helpers import get_data_dir, load_data, save_data
from stages._qa_utils import qa_for_stage


# ============================================================
# DATA LOADING
# ============================================================

def find_input_files(
    raw_dir: Path,
    patterns: Optional[list[str]] = None
) -> list[Path]:
    """
    Find all input files matching the given glob patterns.

    Parameters
    ----------
    raw_dir : Path
        Directory to search
    patterns : list, optional
        Glob patterns to match (default: INPUT_PATTERNS)

    Returns
    -------
    list[Path]
        Matching files in sorted order
    """
    patterns = patterns or INPUT_PATTERNS
    files = []
    for pattern in patterns:
        files.extend(Path(raw_dir).glob(pattern))
    return sorted(files)


def read_source(path: Path) -> pd.DataFrame:
    """
    Read one raw export, keeping numeric columns as text.

    Placeholder strings such as NA or NULL are kept as text rather than
    read as missing, so a non-numeric placeholder fails type normalization.

    Parquet files carry their own types and are read as-is.
    """
    path = Path(path)
    if path.suffix.lower() == '.parquet':
        return load_data(path)
    text_columns = {col: str for col in NUMERIC_COLUMNS}
    # Only empty cells are missing; 'NA' or 'N/A' text reaches the type checks
    return load_data(path, dtype=text_columns, keep_default_na=False, na_values=[''])


def load_all_sources(files: list[Path]) -> pd.DataFrame:
    """
    Read and concatenate raw exports.

    Parameters
    ----------
    files : list[Path]
        Files to load

    Returns
    -------
    pd.DataFrame
        All rows, in file order
    """
    if not files:
        raise InputNotFoundError("No input files to load")

    frames = []
    for path in files:
        print(f"  Loading: {path.name}")
        df = read_source(path)
        print(f"    -> {len(df):,} rows, {len(df.columns)} columns")
        frames.append(df)

    if len(frames) == 1:
        return frames[0]
    return pd.concat(frames, ignore_index=True)


def check_schema(df: pd.DataFrame, columns: Optional[list[str]] = None) -> None:
    """
    Raise SchemaError if any source column is missing.

    Extra columns are allowed and carried through untouched.
    """
    columns = columns or SOURCE_COLUMNS
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(f"Source table is missing columns: {missing}")


# ============================================================
# DEMO DATA
# ============================================================

_DEMO_REGIONS = [
    'Wyoming', 'New Mexico', 'Colorado', 'Utah', 'North Dakota',
    'Gulf of Mexico', 'Pacific', 'Montana', 'Oklahoma', 'California',
    'Alaska', 'Texas',
]
_DEMO_LAND_CLASSES = ['Federal', 'Native American']
_DEMO_LAND_CATEGORIES = ['Onshore', 'Offshore', 'Not Tied to a Lease']
_DEMO_REVENUE_TYPES = [
    'Royalties', 'Intergoven Revenue-Federal', 'Intergoven Revenue-State',
    'Royalties - Late Payment',
]
_DEMO_COMMODITIES = ['Oil (bbl)', 'Gas (mcf)', 'NGL (gal)', 'Oil / Gas Condensate']


def _messy(text: str, rng: np.random.Generator) -> str:
    """Apply one of the formatting defects found in the raw export."""
    variant = rng.integers(0, 6)
    if variant == 0:
        return f'  {text.lower()} '
    if variant == 1:
        return text.replace(' ', '   ')
    if variant == 2:
        return f'{text}.'
    if variant == 3:
        return f'{text} ,'
    return text


def generate_demo_data(n_rows: int = 2_000, seed: int = DEMO_SEED) -> pd.DataFrame:
    """
    Generate a synthetic table shaped like the ONRR federal sales export.

    Text columns carry the defects the cleaning stages remove (case,
    stray whitespace, trailing punctuation, the INTERGOVEN typo). Numeric
    columns are text with occasional blanks, and a few rows repeat the
    duplicate key.

    Returns
    -------
    pd.DataFrame
        Synthetic raw dataset
    """
    print("  Generating synthetic demo data...")
    rng = np.random.default_rng(seed)

    def pick(options):
        return [_messy(options[i], rng) for i in rng.integers(0, len(options), n_rows)]

    sales_value = rng.gamma(2.0, 250_000.0, n_rows).round(2)
    sales_value[rng.random(n_rows) < 0.03] = 0.0
    rate = rng.choice([0.125, 0.1667, 0.1875, 0.0], n_rows, p=[0.6, 0.2, 0.15, 0.05])
    royalty = (sales_value * rate).round(2)
    sales_volume = (sales_value / rng.uniform(2.0, 90.0, n_rows)).round(2)
    gas_volume = np.where(rng.random(n_rows) < 0.5, (sales_volume * 1.03).round(2), 0.0)

    df = pd.DataFrame({
        YEAR_COL: rng.choice(DEMO_YEARS, n_rows),
        REGION_COL: pick(_DEMO_REGIONS),
        LAND_CLASS_COL: pick(_DEMO_LAND_CLASSES),
        LAND_CATEGORY_COL: pick(_DEMO_LAND_CATEGORIES),
        REVENUE_TYPE_COL: pick(_DEMO_REVENUE_TYPES),
        COMMODITY_COL: pick(_DEMO_COMMODITIES),
        SALES_VOLUME_COL: sales_volume,
        GAS_VOLUME_COL: gas_volume,
        SALES_VALUE_COL: sales_value,
        ROYALTY_COL: royalty,
        TRANSPORT_COL: (royalty * rng.uniform(0.0, 0.08, n_rows)).round(2),
        PROCESSING_COL: (royalty * rng.uniform(0.0, 0.03, n_rows)).round(2),
        RATE_COL: rate,
    })

    # Numeric columns arrive as text in the raw export
    for col in NUMERIC_COLUMNS:
        df[col] = df[col].map(lambda v: f'{v:.4f}' if col == RATE_COL else f'{v:.2f}')
        blanks = rng.random(n_rows) < 0.02
        df.loc[blanks, col] = None

    # Repeat a handful of rows so the duplicate heuristic has something to find
    repeats = df.sample(n=max(1, n_rows // 200), random_state=seed)
    df = pd.concat([df, repeats], ignore_index=True)

    print(f"    -> Generated {len(df):,} rows")
    return df


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(
    use_demo: bool = False,
    raw_dir: Optional[Path] = None,
    output_path: Optional[Path] = None,
    qa_dir: Optional[Path] = None,
) -> pd.DataFrame:
    """
    Execute the load stage.

    Parameters
    ----------
    use_demo : bool
        Force use of synthetic demo data
    raw_dir : Path, optional
        Directory holding the raw export (default: data_raw/)
    output_path : Path, optional
        Working copy destination (default: RAW_COPY_PATH)
    qa_dir : Path, optional
        QA report directory override

    Returns
    -------
    pd.DataFrame
        The working copy
    """
    print("=" * 60)
    print("Stage 00: Load Raw Sales")
    print("=" * 60)

    raw_dir = Path(raw_dir or get_data_dir('raw'))
    output_path = Path(output_path or RAW_COPY_PATH)

    input_files = find_input_files(raw_dir) if raw_dir.exists() else []

    if use_demo:
        df = generate_demo_data()
    elif not input_files:
        raise InputNotFoundError(
            f"No raw data files found in {raw_dir} "
            f"(expected {', '.join(INPUT_PATTERNS)}); use --demo for synthetic data"
        )
    else:
        print(f"\n  Found {len(input_files)} input file(s)")
        df = load_all_sources(input_files)

    check_schema(df)

    print(f"\n  Saving to: {output_path}")
    save_data(df, output_path)

    print("\n" + "-" * 60)
    print("SUMMARY")
    print("-" * 60)
    print(f"  Rows: {len(df):,}")
    print(f"  Columns: {len(df.columns)}")
    print(f"  Output: {output_path}")

    qa_for_stage('s00_load', df, output_file=str(output_path), output_dir=qa_dir)

    print("\n" + "=" * 60)
    print("Stage 00 complete.")
    print("=" * 60)

    return df


if __name__ == '__main__':
    main()

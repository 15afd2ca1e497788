#!/usr/bin/env python3
"""
Configuration constants for the federal sales pipeline.

This module centralizes paths, column definitions, cleaning rules and
pipeline settings for the ONRR federal sales dataset.

Usage
-----
    from config import DATA_WORK_DIR, NUMERIC_COLUMNS, ENABLE_QA_REPORTS

    # Or import specific sections
    from config import (
        # Paths
        PROJECT_ROOT,
        DATA_RAW_DIR,
        DATA_WORK_DIR,
        DIAGNOSTICS_DIR,

        # Dataset schema
        YEAR_COL,
        CATEGORICAL_COLUMNS,
        NUMERIC_COLUMNS,

        # QA Settings
        ENABLE_QA_REPORTS,
        QA_REPORTS_DIR,
    )
"""
from __future__ import annotations

from pathlib import Path


# =============================================================================
# PATHS
# =============================================================================

def _find_project_root() -> Path:
    """Find project root by looking for characteristic directories."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'src').exists() and (parent / 'pyproject.toml').exists():
            return parent
    # Fallback: use parent of src/
    return Path(__file__).resolve().parent.parent


PROJECT_ROOT = _find_project_root()

# Data directories
DATA_RAW_DIR = PROJECT_ROOT / 'data_raw'
DATA_WORK_DIR = PROJECT_ROOT / 'data_work'
DIAGNOSTICS_DIR = DATA_WORK_DIR / 'diagnostics'

# Output directories
FIGURES_DIR = PROJECT_ROOT / 'figures'


# =============================================================================
# DATASET SCHEMA
# =============================================================================

YEAR_COL = 'Calendar Year'
REGION_COL = 'State/Offshore Region'
LAND_CLASS_COL = 'Land Class'
LAND_CATEGORY_COL = 'Land Category'
REVENUE_TYPE_COL = 'Revenue Type'
COMMODITY_COL = 'Commodity'

SALES_VOLUME_COL = 'Sales Volume'
GAS_VOLUME_COL = 'Gas MMBtu Volume'
SALES_VALUE_COL = 'Sales Value'
ROYALTY_COL = 'Royalty Value Less Allowances (RVLA)'
TRANSPORT_COL = 'Transportation Allowances (TA)'
PROCESSING_COL = 'Processing Allowances (PA)'
RATE_COL = 'Effective Royalty Rate'

EFFICIENCY_COL = 'royalty_efficiency'

CATEGORICAL_COLUMNS = [
    REGION_COL,
    LAND_CLASS_COL,
    LAND_CATEGORY_COL,
    REVENUE_TYPE_COL,
    COMMODITY_COL,
]

# Column -> (precision, scale), as in a SQL NUMERIC(p, s) declaration
NUMERIC_COLUMNS = {
    SALES_VOLUME_COL: (20, 2),
    GAS_VOLUME_COL: (20, 2),
    SALES_VALUE_COL: (20, 2),
    ROYALTY_COL: (20, 2),
    TRANSPORT_COL: (20, 2),
    PROCESSING_COL: (20, 2),
    RATE_COL: (5, 4),
}

SOURCE_COLUMNS = [YEAR_COL] + CATEGORICAL_COLUMNS + list(NUMERIC_COLUMNS)

# Fraction digits of the derived efficiency percentage
EFFICIENCY_SCALE = 2

# Composite key for the possible-duplicate heuristic
DUPLICATE_KEY = [YEAR_COL, REGION_COL, SALES_VALUE_COL, ROYALTY_COL]


# =============================================================================
# CLEANING RULES
# =============================================================================

# Exact-match corrections, column -> {wrong: right}
VALUE_CORRECTIONS = {
    REVENUE_TYPE_COL: {
        'INTERGOVEN REVENUE-FEDERAL': 'INTERGOVERN REVENUE-FEDERAL',
        'INTERGOVEN REVENUE-STATE': 'INTERGOVERN REVENUE-STATE',
    },
}

# Optional YAML file with additional corrections in the same shape
VALUE_CORRECTIONS_FILE = PROJECT_ROOT / 'value_corrections.yml'

# Separator rewrites applied after whitespace and punctuation cleanup
SEPARATOR_REWRITES = [
    (' - ', '-'),
    (' / ', '/'),
]


# =============================================================================
# QUALITY ASSURANCE
# =============================================================================

# Enable per-stage QA report generation
ENABLE_QA_REPORTS = True

# Output directory for QA reports
QA_REPORTS_DIR = DATA_WORK_DIR / 'quality'

# QA thresholds
QA_THRESHOLDS = {
    'max_missing_pct': 5.0,       # Warn if >5% missing values
    'min_row_count': 10,          # Warn if fewer than 10 rows
    'max_duplicate_pct': 1.0,     # Warn if >1% duplicate rows
}

# Domain range for the effective royalty rate (warning only)
RATE_RANGE = (0, 1)


# =============================================================================
# PARALLEL EXECUTION SETTINGS
# =============================================================================

# Run independent report queries on a thread pool
PARALLEL_ENABLED = True

# Maximum number of parallel workers (None = one per report, capped at CPU count)
PARALLEL_MAX_WORKERS = None


# =============================================================================
# FILE NAMING CONVENTIONS
# =============================================================================

INPUT_PATTERNS = ['*.csv', '*.parquet', '*.xlsx']

RAW_COPY_FILE = 'federal_sales_raw.parquet'
CLEAN_FILE = 'federal_sales_clean.parquet'

# Full paths
RAW_COPY_PATH = DATA_WORK_DIR / RAW_COPY_FILE
CLEAN_PATH = DATA_WORK_DIR / CLEAN_FILE

# Prefix for report result tables in DIAGNOSTICS_DIR
REPORT_PREFIX = 'report_'


# =============================================================================
# DEMO DATA
# =============================================================================

DEMO_SEED = 42
DEMO_YEARS = list(range(2013, 2024))


# =============================================================================
# VALIDATION
# =============================================================================

def validate_config() -> bool:
    """
    Validate configuration settings.

    Returns
    -------
    bool
        True if all validations pass

    Raises
    ------
    ValueError
        If any configuration is invalid
    """
    errors = []

    if not PROJECT_ROOT.exists():
        errors.append(f"PROJECT_ROOT does not exist: {PROJECT_ROOT}")

    for col, (precision, scale) in NUMERIC_COLUMNS.items():
        if scale < 0 or precision <= scale:
            errors.append(f"Invalid decimal spec for '{col}': ({precision}, {scale})")

    overlap = set(CATEGORICAL_COLUMNS) & set(NUMERIC_COLUMNS)
    if overlap:
        errors.append(f"Columns declared both categorical and numeric: {sorted(overlap)}")

    missing_key = [c for c in DUPLICATE_KEY if c not in SOURCE_COLUMNS]
    if missing_key:
        errors.append(f"DUPLICATE_KEY references unknown columns: {missing_key}")

    if PARALLEL_MAX_WORKERS is not None and PARALLEL_MAX_WORKERS < 1:
        errors.append(f"PARALLEL_MAX_WORKERS must be positive: {PARALLEL_MAX_WORKERS}")

    if errors:
        raise ValueError("Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors))

    return True


def ensure_directories() -> None:
    """Create required directories if they don't exist."""
    for path in [DATA_RAW_DIR, DATA_WORK_DIR, DIAGNOSTICS_DIR, FIGURES_DIR, QA_REPORTS_DIR]:
        path.mkdir(parents=True, exist_ok=True)


# =============================================================================
# MODULE INITIALIZATION
# =============================================================================

if __name__ == '__main__':
    # Print configuration when run directly
    print("Federal Sales Pipeline Configuration")
    print("=" * 50)
    print(f"PROJECT_ROOT:      {PROJECT_ROOT}")
    print(f"DATA_RAW_DIR:      {DATA_RAW_DIR}")
    print(f"DATA_WORK_DIR:     {DATA_WORK_DIR}")
    print(f"FIGURES_DIR:       {FIGURES_DIR}")
    print()
    print(f"ENABLE_QA_REPORTS: {ENABLE_QA_REPORTS}")
    print(f"QA_REPORTS_DIR:    {QA_REPORTS_DIR}")
    print()
    print("Validating configuration...")
    try:
        validate_config()
        print("Configuration valid.")
    except ValueError as e:
        print(f"Configuration invalid:\n{e}")

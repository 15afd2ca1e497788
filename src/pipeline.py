#!/usr/bin/env python3
"""
Module: pipeline.py
Purpose: Command-line orchestration for the federal sales pipeline.

This module provides a command-line interface to execute individual stages
of the cleaning and reporting pipeline. Cleaning stages run in a fixed
order; validation, reports and figures only read the cleaned table.

Commands
--------
# Data Processing
load_data : Copy the raw export into the working directory
    Options: --demo
    Output: data_work/federal_sales_raw.parquet
clean_data : Run all cleaning stages (s01-s05) and write the cleaned table once
    Output: data_work/federal_sales_clean.parquet

# Analysis
validate_data : Record count, possible duplicates, invariant checks
    Output: data_work/diagnostics/
run_reports : Run the aggregate reports
    Options: --report (repeatable), --sequential, --quiet
    Output: data_work/diagnostics/report_*.csv
make_figures : Chart the main reports
    Output: figures/*.png
run_all : load_data, clean_data, validate_data, run_reports, make_figures
    Options: --demo

# Stage Versioning
run_stage : Run a single stage module by name
    Options: <stage_name>
list_stages : List available stage modules
    Options: --prefix

Usage
-----
    python src/pipeline.py load_data --demo
    python src/pipeline.py clean_data
    python src/pipeline.py run_reports --report yearly_summary
"""
from __future__ import annotations

import argparse
import importlib
import re
import sys
from pathlib import Path
from typing import Optional

# Add src directory for imports when run as a script
sys.path.insert(0, str(Path(__file__).parent))

import pandas as pd

from utils.errors import InputNotFoundError, PipelineError


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(
        description='Federal Sales Pipeline',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    sub = p.add_subparsers(dest='cmd', required=True)

    # Data Processing Commands
    p_load = sub.add_parser('load_data', help='Copy the raw export into data_work/')
    p_load.add_argument(
        '--demo',
        action='store_true',
        help='Use synthetic demo data instead of real data'
    )
    sub.add_parser('clean_data', help='Run all cleaning stages')

    # Analysis Commands
    sub.add_parser('validate_data', help='Count records and flag possible duplicates')

    p_rep = sub.add_parser('run_reports', help='Run aggregate reports')
    p_rep.add_argument(
        '--report', '-r',
        action='append',
        dest='reports',
        default=None,
        help='Report name (repeatable; default: all)'
    )
    p_rep.add_argument(
        '--sequential',
        action='store_true',
        help='Run reports one after another instead of on a thread pool'
    )
    p_rep.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Do not print result tables'
    )

    sub.add_parser('make_figures', help='Chart the main reports')

    p_all = sub.add_parser('run_all', help='Run every stage in order')
    p_all.add_argument(
        '--demo',
        action='store_true',
        help='Use synthetic demo data instead of real data'
    )

    # Stage Versioning Commands
    p_run_stage = sub.add_parser('run_stage', help='Run a specific stage by name')
    p_run_stage.add_argument(
        'stage_name',
        help='Stage name (e.g., s00_load, s03_text)'
    )
    p_list_stages = sub.add_parser('list_stages', help='List available stages')
    p_list_stages.add_argument(
        '--prefix', '-p',
        default=None,
        help='Filter by stage prefix (e.g., s00, s07)'
    )

    return p.parse_args(argv)


# ============================================================
# CLEANING
# ============================================================

def clean_sales(df: pd.DataFrame, corrections: Optional[dict] = None) -> pd.DataFrame:
    """
    Apply the cleaning stages in order and return the cleaned table.

    Parameters
    ----------
    df : pd.DataFrame
        Raw working copy
    corrections : dict, optional
        Value corrections (default: built-in table plus value_corrections.yml)

    Returns
    -------
    pd.DataFrame
        Typed, zero-filled, normalized, corrected table with royalty_efficiency

    Raises
    ------
    TypeConversionError
        If a numeric column holds a non-numeric value
    """
    from stages.s01_types import normalize_types
    from stages.s02_nulls import fill_missing_numeric
    from stages.s03_text import normalize_text
    from stages.s04_corrections import apply_corrections, load_corrections
    from stages.s05_metrics import derive_metrics

    if corrections is None:
        corrections = load_corrections()

    df = normalize_types(df)
    df = fill_missing_numeric(df)
    df = normalize_text(df)
    df = apply_corrections(df, corrections)
    return derive_metrics(df)


def run_clean_data(
    input_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    corrections_file: Optional[Path] = None,
    qa_dir: Optional[Path] = None,
) -> pd.DataFrame:
    """
    Clean the raw working copy and write the cleaned table.

    The table is written only after every stage succeeded, so a failed run
    leaves any previous cleaned table untouched.
    """
    from config import CLEAN_PATH, RAW_COPY_PATH
    from utils.helpers import load_data, save_data
    from stages._qa_utils import qa_for_stage
    from stages.s04_corrections import load_corrections

    print("=" * 60)
    print("Cleaning: stages s01-s05")
    print("=" * 60)

    input_path = Path(input_path or RAW_COPY_PATH)
    output_path = Path(output_path or CLEAN_PATH)
    if not input_path.exists():
        raise InputNotFoundError(
            f"Input file not found: {input_path}. Run 'load_data' first."
        )

    df = load_data(input_path)
    print(f"\n  Loaded {len(df):,} rows from {input_path.name}")

    cleaned = clean_sales(df, load_corrections(corrections_file))

    print(f"  Saving to: {output_path}")
    save_data(cleaned, output_path)

    qa_for_stage('clean_data', cleaned, output_file=str(output_path), output_dir=qa_dir)

    print("\n" + "=" * 60)
    print("Cleaning complete.")
    print("=" * 60)
    return cleaned


# ============================================================
# STAGE DISCOVERY
# ============================================================

def discover_stages(prefix: Optional[str] = None) -> list[tuple[str, str]]:
    """
    Discover available stage modules.

    Parameters
    ----------
    prefix : str, optional
        Filter by stage prefix (e.g., 's00', 's01')

    Returns
    -------
    list[tuple[str, str]]
        (stage_name, purpose) pairs in stage order
    """
    stages_dir = Path(__file__).parent / 'stages'
    stages = []

    for f in sorted(stages_dir.glob('s*.py')):
        name = f.stem
        if prefix and not name.startswith(prefix):
            continue
        match = re.search(r'Purpose:\s*(.+?)(?:\n|$)', f.read_text())
        stages.append((name, match.group(1).strip() if match else ''))

    return stages


def list_available_stages(prefix: Optional[str] = None) -> None:
    """Print available stage modules."""
    print("Available Pipeline Stages")
    print("=" * 60)

    stages = discover_stages(prefix)
    if not stages:
        if prefix:
            print(f"No stages found with prefix '{prefix}'")
        else:
            print("No stages found")
        return

    for name, desc in stages:
        print(f"  {name:<20} {desc}")

    print()
    print(f"Total: {len(stages)} stage(s)")
    print()
    print("Run a stage with: python src/pipeline.py run_stage <stage_name>")


def run_stage_by_name(stage_name: str):
    """
    Run a stage module's main().

    Raises
    ------
    PipelineError
        If no stage module has that name
    """
    known = [name for name, _ in discover_stages()]
    if stage_name not in known:
        raise PipelineError(
            f"Stage '{stage_name}' not found. Available: {', '.join(known)}"
        )
    module = importlib.import_module(f'stages.{stage_name}')
    return module.main()


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns
    -------
    int
        Process exit status
    """
    args = parse_args(argv)

    try:
        if args.cmd == 'load_data':
            from stages import s00_load
            s00_load.main(use_demo=args.demo)

        elif args.cmd == 'clean_data':
            run_clean_data()

        elif args.cmd == 'validate_data':
            from stages import s06_validate
            report = s06_validate.main()
            if report.has_errors:
                print("\nERROR: Validation failed.", file=sys.stderr)
                return 1

        elif args.cmd == 'run_reports':
            from stages import s07_reports
            s07_reports.main(
                names=args.reports,
                parallel=not args.sequential,
                verbose=not args.quiet,
            )

        elif args.cmd == 'make_figures':
            from stages import s08_figures
            s08_figures.main()

        elif args.cmd == 'run_all':
            from stages import s00_load, s06_validate, s07_reports, s08_figures
            s00_load.main(use_demo=args.demo)
            run_clean_data()
            report = s06_validate.main()
            if report.has_errors:
                print("\nERROR: Validation failed.", file=sys.stderr)
                return 1
            s07_reports.main(verbose=False)
            s08_figures.main()

        elif args.cmd == 'run_stage':
            run_stage_by_name(args.stage_name)

        elif args.cmd == 'list_stages':
            list_available_stages(args.prefix)

    except (PipelineError, ValueError) as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())

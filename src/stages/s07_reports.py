#!/usr/bin/env python3
"""
Stage 07: Reporting

Purpose: Run the analytic aggregate queries over the cleaned sales table.

Every report is a read-only function from the cleaned table to a result
table, registered in REPORTS. Reports share no state, so they can run in any
order, alone, or concurrently on a thread pool.

Conventions shared by all reports:
- null group keys form their own group
- descending sorts put null results first, ascending sorts put them last
- ties keep group-key order
- ROUND means half away from zero; ratios with a zero denominator are null

Input Files
-----------
- data_work/federal_sales_clean.parquet

Output Files
------------
- data_work/diagnostics/report_<name>.csv (one per report)

Usage
-----
    python src/pipeline.py run_reports
    python src/pipeline.py run_reports --report yearly_summary --report executive_summary
"""
from __future__ import annotations

import multiprocessing
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from config import (
    CLEAN_PATH,
    COMMODITY_COL,
    GAS_VOLUME_COL,
    LAND_CATEGORY_COL,
    PARALLEL_ENABLED,
    PARALLEL_MAX_WORKERS,
    RATE_COL,
    REGION_COL,
    REPORT_PREFIX,
    ROYALTY_COL,
    SALES_VALUE_COL,
    SALES_VOLUME_COL,
    TRANSPORT_COL,
    YEAR_COL,
)
from utils.decimals import HUNDRED, decimal_mean, decimal_sum, round_half_up, safe_divide
from utils.errors import InputNotFoundError
from utils.helpers import get_data_dir, load_data, save_diagnostic
from stages._qa_utils import generate_qa_report, QAMetrics


# ============================================================
# QUERY HELPERS
# ============================================================

def _aggregate(df: pd.DataFrame, key: str, **columns) -> pd.DataFrame:
    """
    Group by ``key`` and aggregate.

    Each keyword is ``output=(source_column, func)``; ``func`` receives the
    group's values as a Series. ``output=('*', len)`` counts rows.
    """
    grouped = df.groupby(key, dropna=False, sort=True)
    result = {}
    for name, (source, func) in columns.items():
        if source == '*':
            result[name] = grouped.size()
        else:
            result[name] = grouped[source].agg(func).astype('object')
    out = pd.DataFrame(result)
    out.index.name = key
    return out.reset_index()


def _rounded(series: pd.Series, digits: int) -> pd.Series:
    return series.map(lambda v: round_half_up(v, digits)).astype('object')


def _ratio(numerator: pd.Series, denominator: pd.Series, scale: Decimal = Decimal(1)) -> pd.Series:
    values = []
    for num, den in zip(numerator, denominator):
        quotient = safe_divide(num, den)
        values.append(None if quotient is None else quotient * scale)
    return pd.Series(values, index=numerator.index, dtype='object')


def _order(
    df: pd.DataFrame,
    column: str,
    ascending: bool = True,
    limit: Optional[int] = None
) -> pd.DataFrame:
    """Stable sort with SQL null placement, then an optional LIMIT."""
    out = df.sort_values(
        column,
        ascending=ascending,
        na_position='last' if ascending else 'first',
        kind='stable',
    )
    if limit is not None:
        out = out.head(limit)
    return out.reset_index(drop=True)


# ============================================================
# REPORTS
# ============================================================

def annual_royalty_trend(df: pd.DataFrame) -> pd.DataFrame:
    """Total royalties per calendar year."""
    out = _aggregate(df, YEAR_COL, total_royalties=(ROYALTY_COL, decimal_sum))
    out['total_royalties'] = _rounded(out['total_royalties'], 0)
    return _order(out, YEAR_COL)


def top_regions_by_royalties(df: pd.DataFrame, limit: int = 10) -> pd.DataFrame:
    """States or offshore regions generating the most royalty revenue."""
    out = _aggregate(df, REGION_COL, total_royalties=(ROYALTY_COL, decimal_sum))
    out['total_royalties'] = _rounded(out['total_royalties'], 0)
    return _order(out, 'total_royalties', ascending=False, limit=limit)


def avg_rate_by_land_category(df: pd.DataFrame) -> pd.DataFrame:
    """Average effective royalty rate per land category."""
    out = _aggregate(df, LAND_CATEGORY_COL, avg_rate=(RATE_COL, decimal_mean))
    out['avg_rate'] = _rounded(out['avg_rate'], 4)
    return _order(out, 'avg_rate', ascending=False)


def sales_vs_royalties_by_year(df: pd.DataFrame) -> pd.DataFrame:
    """Sales value against royalty value per year."""
    out = _aggregate(
        df, YEAR_COL,
        total_sales=(SALES_VALUE_COL, decimal_sum),
        total_royalties=(ROYALTY_COL, decimal_sum),
    )
    out['total_sales'] = _rounded(out['total_sales'], 0)
    out['total_royalties'] = _rounded(out['total_royalties'], 0)
    return _order(out, YEAR_COL)


def commodity_ranking(df: pd.DataFrame) -> pd.DataFrame:
    """Commodities by sales volume and sales value."""
    out = _aggregate(
        df, COMMODITY_COL,
        total_volume=(SALES_VOLUME_COL, decimal_sum),
        total_sales=(SALES_VALUE_COL, decimal_sum),
    )
    out['total_volume'] = _rounded(out['total_volume'], 0)
    out['total_sales'] = _rounded(out['total_sales'], 0)
    return _order(out, 'total_sales', ascending=False)


def royalty_rate_distribution(df: pd.DataFrame) -> pd.DataFrame:
    """How often each effective royalty rate (to two decimals) occurs."""
    buckets = df.assign(rate_bucket=_rounded(df[RATE_COL], 2))
    out = _aggregate(buckets, 'rate_bucket', occurrences=('*', len))
    return _order(out, 'rate_bucket')


def royalty_per_mmbtu_by_land_category(df: pd.DataFrame) -> pd.DataFrame:
    """Royalty per MMBtu of gas for each land category."""
    out = _aggregate(
        df, LAND_CATEGORY_COL,
        royalties=(ROYALTY_COL, decimal_sum),
        mmbtu=(GAS_VOLUME_COL, decimal_sum),
    )
    out['royalty_per_mmbtu'] = _rounded(_ratio(out['royalties'], out['mmbtu']), 4)
    out = out[[LAND_CATEGORY_COL, 'royalty_per_mmbtu']]
    return _order(out, 'royalty_per_mmbtu', ascending=False)


def top_regions_by_avg_rate(df: pd.DataFrame, limit: int = 5) -> pd.DataFrame:
    """Regions with the highest average effective royalty rate."""
    out = _aggregate(df, REGION_COL, avg_royalty_rate=(RATE_COL, decimal_mean))
    out['avg_royalty_rate'] = _rounded(out['avg_royalty_rate'], 4)
    return _order(out, 'avg_royalty_rate', ascending=False, limit=limit)


def transport_cost_impact_by_year(df: pd.DataFrame, limit: int = 3) -> pd.DataFrame:
    """Years where transportation allowances took the largest share of royalties."""
    out = _aggregate(
        df, YEAR_COL,
        total_transport_cost=(TRANSPORT_COL, decimal_sum),
        total_royalties=(ROYALTY_COL, decimal_sum),
    )
    pct = _ratio(out['total_transport_cost'], out['total_royalties'], HUNDRED)
    out['transport_to_royalty_pct'] = _rounded(pct, 2)
    out['total_transport_cost'] = _rounded(out['total_transport_cost'], 2)
    out['total_royalties'] = _rounded(out['total_royalties'], 2)
    return _order(out, 'transport_to_royalty_pct', ascending=False, limit=limit)


def yearly_summary(df: pd.DataFrame) -> pd.DataFrame:
    """
    Full yearly overview with year-over-year change and running totals.

    ``previous_year_royalties`` and ``cumulative_royalties`` are unrounded
    window values over the year-ordered totals; the percent change uses the
    unrounded totals too.
    """
    years = _aggregate(
        df, YEAR_COL,
        total_royalties=(ROYALTY_COL, decimal_sum),
        total_sales=(SALES_VALUE_COL, decimal_sum),
        avg_royalty_rate=(RATE_COL, decimal_mean),
    )
    years = _order(years, YEAR_COL)

    royalties = list(years['total_royalties'])
    previous = ([None] + royalties)[:len(royalties)]

    change = []
    for current, prior in zip(royalties, previous):
        delta = None if current is None or prior is None else current - prior
        pct = safe_divide(delta, prior)
        change.append(round_half_up(None if pct is None else pct * HUNDRED, 2))

    cumulative = []
    running = None
    for value in royalties:
        if value is not None:
            running = value if running is None else running + value
        cumulative.append(running)

    return pd.DataFrame({
        'year': years[YEAR_COL],
        'total_royalties': _rounded(years['total_royalties'], 0),
        'total_sales': _rounded(years['total_sales'], 0),
        'avg_royalty_rate': _rounded(years['avg_royalty_rate'], 4),
        'previous_year_royalties': pd.Series(previous, dtype='object'),
        'yoy_percent_change': pd.Series(change, dtype='object'),
        'cumulative_royalties': pd.Series(cumulative, dtype='object'),
    })


def executive_summary(df: pd.DataFrame, limit: int = 5) -> pd.DataFrame:
    """Top royalty-generating regions with their average rate."""
    out = _aggregate(
        df, REGION_COL,
        total_royalties=(ROYALTY_COL, decimal_sum),
        avg_rate=(RATE_COL, decimal_mean),
    )
    out['total_royalties'] = _rounded(out['total_royalties'], 0)
    out['avg_rate'] = _rounded(out['avg_rate'], 4)
    return _order(out, 'total_royalties', ascending=False, limit=limit)


# ============================================================
# REGISTRY
# ============================================================

@dataclass(frozen=True)
class Report:
    """A named analytic query."""
    name: str
    question: str
    query: Callable[[pd.DataFrame], pd.DataFrame]


REPORTS: dict[str, Report] = {r.name: r for r in [
    Report('annual_royalty_trend',
           'How has total royalty revenue changed year over year?',
           annual_royalty_trend),
    Report('top_regions_by_royalties',
           'Which states or offshore regions generated the most royalty revenue?',
           top_regions_by_royalties),
    Report('avg_rate_by_land_category',
           'How do royalty rates vary by land category?',
           avg_rate_by_land_category),
    Report('sales_vs_royalties_by_year',
           'How do sales value and royalty value compare each year?',
           sales_vs_royalties_by_year),
    Report('commodity_ranking',
           'Which commodities generated the most volume and value?',
           commodity_ranking),
    Report('royalty_rate_distribution',
           'How common are the different effective royalty rates?',
           royalty_rate_distribution),
    Report('royalty_per_mmbtu_by_land_category',
           'Which land categories yield the highest royalties per MMBtu of gas?',
           royalty_per_mmbtu_by_land_category),
    Report('top_regions_by_avg_rate',
           'Where are royalty rates highest on average?',
           top_regions_by_avg_rate),
    Report('transport_cost_impact_by_year',
           'In which years did transportation costs most reduce royalty returns?',
           transport_cost_impact_by_year),
    Report('yearly_summary',
           'What is the full yearly picture, with growth and running totals?',
           yearly_summary),
    Report('executive_summary',
           'Which regions contribute the most royalty revenue?',
           executive_summary),
]}


def resolve_reports(names: Optional[list[str]] = None) -> list[Report]:
    """Look up reports by name; all of them when ``names`` is empty."""
    if not names:
        return list(REPORTS.values())
    unknown = [n for n in names if n not in REPORTS]
    if unknown:
        available = ', '.join(REPORTS)
        raise ValueError(f"Unknown report(s) {unknown}. Available: {available}")
    return [REPORTS[n] for n in names]


def run_reports(
    df: pd.DataFrame,
    names: Optional[list[str]] = None,
    parallel: bool = True,
    n_workers: Optional[int] = None,
) -> dict[str, pd.DataFrame]:
    """
    Run reports against the cleaned table.

    Parameters
    ----------
    df : pd.DataFrame
        Cleaned sales table; never modified
    names : list[str], optional
        Reports to run (default: all, in registry order)
    parallel : bool
        Use a thread pool when more than one report runs
    n_workers : int, optional
        Pool size (default: PARALLEL_MAX_WORKERS or one per report up to CPU count)

    Returns
    -------
    dict
        Report name -> result table, in request order
    """
    reports = resolve_reports(names)
    use_parallel = parallel and PARALLEL_ENABLED and len(reports) > 1

    if not use_parallel:
        return {r.name: r.query(df) for r in reports}

    if n_workers is None:
        n_workers = PARALLEL_MAX_WORKERS or min(len(reports), multiprocessing.cpu_count())

    with ThreadPoolExecutor(max_workers=n_workers) as executor:
        futures = {r.name: executor.submit(r.query, df) for r in reports}
        # result() re-raises a failing query's exception
        return {name: future.result() for name, future in futures.items()}


def print_report(name: str, result: pd.DataFrame, max_rows: int = 15) -> None:
    """Print a report table with its question."""
    report = REPORTS.get(name)
    print(f"\n  {name}")
    if report:
        print(f"  {report.question}")
    print("  " + "-" * 56)
    text = result.head(max_rows).to_string(index=False)
    for line in text.splitlines():
        print(f"  {line}")
    if len(result) > max_rows:
        print(f"  ... {len(result) - max_rows} more row(s)")


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(
    names: Optional[list[str]] = None,
    parallel: bool = True,
    input_path: Optional[Path] = None,
    diag_dir: Optional[Path] = None,
    qa_dir: Optional[Path] = None,
    verbose: bool = True,
) -> dict[str, pd.DataFrame]:
    """
    Execute the reporting stage.

    Parameters
    ----------
    names : list[str], optional
        Subset of reports to run
    parallel : bool
        Run reports concurrently
    input_path : Path, optional
        Cleaned table (default: CLEAN_PATH)
    diag_dir : Path, optional
        Where report CSVs go (default: data_work/diagnostics/)
    verbose : bool
        Print each result table
    """
    print("=" * 60)
    print("Stage 07: Reporting")
    print("=" * 60)

    input_path = Path(input_path or CLEAN_PATH)
    diag_dir = Path(diag_dir or get_data_dir('diagnostics'))

    if not input_path.exists():
        raise InputNotFoundError(
            f"Input file not found: {input_path}. Run 'clean_data' first."
        )

    df = load_data(input_path)
    print(f"\n  Loaded {len(df):,} rows from {input_path.name}")

    start = time.time()
    results = run_reports(df, names=names, parallel=parallel)
    elapsed = time.time() - start
    mode = 'parallel' if parallel and PARALLEL_ENABLED and len(results) > 1 else 'sequential'
    print(f"  Ran {len(results)} report(s) ({mode}) in {elapsed:.2f}s")

    for name, result in results.items():
        save_diagnostic(result, f'{REPORT_PREFIX}{name}', diag_dir)
        if verbose:
            print_report(name, result)

    metrics = QAMetrics()
    metrics.add('n_rows', len(df))
    metrics.add('n_reports', len(results))
    for name, result in results.items():
        metrics.add(f'{name}_rows', len(result))
    generate_qa_report('s07_reports', metrics, output_dir=qa_dir)

    print("\n" + "=" * 60)
    print("Stage 07 complete.")
    print("=" * 60)

    return results


if __name__ == '__main__':
    main()

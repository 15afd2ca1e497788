#!/usr/bin/env python3
"""
Quality Assurance Utilities for Pipeline Stages.

Each stage finishes by recording a small set of table metrics (row count,
null cells, duplicate rows) so that a drift between runs is visible
without re-reading the parquet outputs.

Usage
-----
    from stages._qa_utils import qa_for_stage

    qa_for_stage('s02_nulls', df, additional_metrics={'filled_cells': 12})
"""
from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd

# Add parent for config import
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import ENABLE_QA_REPORTS, QA_REPORTS_DIR, QA_THRESHOLDS


class QAMetrics:
    """
    Ordered container for QA metrics collected during a stage.

    Examples
    --------
    >>> metrics = QAMetrics()
    >>> metrics.add('n_rows', 1000).add_pct('missing', 2.5)
    QAMetrics({'n_rows': 1000, 'missing_pct': 2.5})
    """

    def __init__(self):
        self._metrics: dict[str, Any] = {}

    def add(self, name: str, value: Any) -> 'QAMetrics':
        self._metrics[name] = value
        return self

    def add_pct(self, name: str, value: float) -> 'QAMetrics':
        """Add a percentage, stored as ``<name>_pct``."""
        self._metrics[f'{name}_pct'] = round(float(value), 2)
        return self

    def add_count(self, name: str, value: int) -> 'QAMetrics':
        """Add a count, stored as ``<name>_count``."""
        self._metrics[f'{name}_count'] = int(value)
        return self

    def to_dict(self) -> dict[str, Any]:
        return self._metrics.copy()

    def __len__(self) -> int:
        return len(self._metrics)

    def __repr__(self) -> str:
        return f"QAMetrics({self._metrics})"


def _as_dict(metrics: Union[QAMetrics, dict]) -> dict[str, Any]:
    if isinstance(metrics, QAMetrics):
        return metrics.to_dict()
    return dict(metrics)


def compute_dataframe_metrics(df: pd.DataFrame) -> QAMetrics:
    """
    Compute standard QA metrics for a table.

    Duplicate rows here are exact full-row matches, unlike the
    key-based possible-duplicate report of the validation stage.
    """
    metrics = QAMetrics()
    metrics.add('n_rows', len(df))
    metrics.add('n_columns', len(df.columns))

    missing_cells = int(df.isna().sum().sum())
    metrics.add_count('missing_cells', missing_cells)
    metrics.add_pct('missing', missing_cells / df.size * 100 if df.size else 0.0)

    n_duplicates = int(df.duplicated().sum()) if len(df.columns) else 0
    metrics.add_count('duplicate_rows', n_duplicates)
    metrics.add_pct('duplicate', n_duplicates / len(df) * 100 if len(df) else 0.0)

    return metrics


def generate_qa_report(
    stage_name: str,
    metrics: Union[QAMetrics, dict],
    output_dir: Optional[Path] = None,
    include_timestamp: bool = True,
) -> Optional[Path]:
    """
    Write a stage's metrics as a long-format CSV.

    Returns
    -------
    Path or None
        Report path, or None when QA reports are disabled
    """
    if not ENABLE_QA_REPORTS:
        return None

    output_dir = Path(output_dir or QA_REPORTS_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    if include_timestamp:
        filename = f'{stage_name}_quality_{timestamp}.csv'
    else:
        filename = f'{stage_name}_quality.csv'
    report_path = output_dir / filename

    rows = [
        {'metric': key, 'value': value, 'stage': stage_name, 'timestamp': timestamp}
        for key, value in _as_dict(metrics).items()
    ]
    pd.DataFrame(rows, columns=['metric', 'value', 'stage', 'timestamp']).to_csv(
        report_path, index=False
    )

    print(f"QA report saved: {report_path}")
    return report_path


def print_qa_summary(metrics: Union[QAMetrics, dict], stage_name: str = '') -> None:
    """Print metrics one per line."""
    print(f"\nQA Summary: {stage_name}" if stage_name else "\nQA Summary")
    print("-" * 40)
    for key, value in _as_dict(metrics).items():
        if isinstance(value, float):
            print(f"  {key}: {value:,.2f}")
        elif isinstance(value, int) and not isinstance(value, bool):
            print(f"  {key}: {value:,}")
        else:
            print(f"  {key}: {value}")


def check_thresholds(
    metrics: Union[QAMetrics, dict],
    thresholds: Optional[dict] = None,
) -> list[str]:
    """
    Compare metrics against QA_THRESHOLDS.

    Returns
    -------
    list[str]
        Warning messages, empty when every threshold holds
    """
    thresholds = QA_THRESHOLDS if thresholds is None else thresholds
    values = _as_dict(metrics)
    warnings = []

    if 'missing_pct' in values and 'max_missing_pct' in thresholds:
        if values['missing_pct'] > thresholds['max_missing_pct']:
            warnings.append(
                f"Missing values ({values['missing_pct']:.1f}%) exceed "
                f"threshold ({thresholds['max_missing_pct']}%)"
            )

    if 'n_rows' in values and 'min_row_count' in thresholds:
        if values['n_rows'] < thresholds['min_row_count']:
            warnings.append(
                f"Row count ({values['n_rows']}) below "
                f"threshold ({thresholds['min_row_count']})"
            )

    if 'duplicate_pct' in values and 'max_duplicate_pct' in thresholds:
        if values['duplicate_pct'] > thresholds['max_duplicate_pct']:
            warnings.append(
                f"Duplicate rows ({values['duplicate_pct']:.1f}%) exceed "
                f"threshold ({thresholds['max_duplicate_pct']}%)"
            )

    return warnings


def qa_for_stage(
    stage_name: str,
    df: pd.DataFrame,
    additional_metrics: Optional[dict] = None,
    output_file: Optional[str] = None,
    output_dir: Optional[Path] = None,
) -> Optional[Path]:
    """
    Complete QA workflow for a pipeline stage: compute metrics, warn on
    threshold violations, print a summary and write the report.
    """
    metrics = compute_dataframe_metrics(df)
    if output_file:
        metrics.add('output_file', str(output_file))
    for key, value in (additional_metrics or {}).items():
        metrics.add(key, value)

    warnings = check_thresholds(metrics)
    if warnings:
        print(f"\nQA Warnings for {stage_name}:")
        for warning in warnings:
            print(f"  WARNING: {warning}")

    print_qa_summary(metrics, stage_name)
    return generate_qa_report(stage_name, metrics, output_dir=output_dir)

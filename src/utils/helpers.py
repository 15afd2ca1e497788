#!/usr/bin/env python3
"""
Common utility functions for the federal sales pipeline.

This module provides shared file and path helpers used across stages.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional
import sys

import pandas as pd

sys.path.insert(0, str(Path(__file__).parent.parent))

from config import DATA_RAW_DIR, DATA_WORK_DIR, DIAGNOSTICS_DIR, FIGURES_DIR, PROJECT_ROOT


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir(subdir: str = 'work') -> Path:
    """Get a data directory ('raw', 'work' or 'diagnostics')."""
    if subdir == 'raw':
        return DATA_RAW_DIR
    elif subdir == 'work':
        return DATA_WORK_DIR
    elif subdir == 'diagnostics':
        return DIAGNOSTICS_DIR
    return PROJECT_ROOT / f'data_{subdir}'


def get_figures_dir() -> Path:
    """Get the figures output directory."""
    return FIGURES_DIR


def load_data(path: Path, **kwargs) -> pd.DataFrame:
    """
    Load a table from CSV, parquet or Excel based on file extension.

    Parameters
    ----------
    path : Path
        File to read
    **kwargs
        Passed through to the pandas reader

    Returns
    -------
    pd.DataFrame
        Loaded table
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == '.csv':
        return pd.read_csv(path, **kwargs)
    elif suffix == '.parquet':
        return pd.read_parquet(path, **kwargs)
    elif suffix in ('.xlsx', '.xls'):
        return pd.read_excel(path, **kwargs)
    raise ValueError(f"Unsupported file format: {path.suffix}")


def save_data(df: pd.DataFrame, path: Path) -> Path:
    """Save a table as parquet or CSV based on file extension."""
    path = Path(path)
    ensure_dir(path.parent)
    suffix = path.suffix.lower()
    if suffix == '.parquet':
        df.to_parquet(path, index=False)
    elif suffix == '.csv':
        df.to_csv(path, index=False)
    else:
        raise ValueError(f"Unsupported file format: {path.suffix}")
    return path


def save_diagnostic(
    df: pd.DataFrame,
    name: str,
    diag_dir: Optional[Path] = None
) -> Path:
    """Save a diagnostic table as ``<diag_dir>/<name>.csv``."""
    diag_dir = diag_dir or DIAGNOSTICS_DIR
    return save_data(df, Path(diag_dir) / f'{name}.csv')


def load_diagnostic(name: str, diag_dir: Optional[Path] = None) -> pd.DataFrame:
    """Load a diagnostic table saved with save_diagnostic()."""
    diag_dir = diag_dir or DIAGNOSTICS_DIR
    path = Path(diag_dir) / f'{name}.csv'
    if not path.exists():
        raise FileNotFoundError(f"Diagnostic not found: {path}")
    return pd.read_csv(path)


def load_yaml(path: Path) -> dict:
    """
    Load a YAML mapping.

    Returns an empty dict for an empty file.
    """
    import yaml
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return data

#!/usr/bin/env python3
"""
Shared pytest fixtures for the test suite.

This module provides common fixtures used across test modules including:
- Temporary directories
- Raw and cleaned federal sales tables
- Redirection of QA reports away from the project tree
"""
from __future__ import annotations

import sys
from pathlib import Path

# Add src directory to Python path for test imports
_project_root = Path(__file__).parent.parent
_src_path = _project_root / 'src'
if str(_src_path) not in sys.path:
    sys.path.insert(0, str(_src_path))

import shutil
import tempfile
from decimal import Decimal

import pandas as pd
import pytest

from config import (
    COMMODITY_COL,
    GAS_VOLUME_COL,
    LAND_CATEGORY_COL,
    LAND_CLASS_COL,
    PROCESSING_COL,
    RATE_COL,
    REGION_COL,
    REVENUE_TYPE_COL,
    ROYALTY_COL,
    SALES_VALUE_COL,
    SALES_VOLUME_COL,
    SOURCE_COLUMNS,
    TRANSPORT_COL,
    VALUE_CORRECTIONS,
    YEAR_COL,
)


# ============================================================
# PATH FIXTURES
# ============================================================

@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def temp_dir():
    """Create a temporary directory that is cleaned up after tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def qa_reports_to_tmp(tmp_path, monkeypatch):
    """Keep per-stage QA reports out of the project's data_work/."""
    import stages._qa_utils as qa
    monkeypatch.setattr(qa, 'QA_REPORTS_DIR', tmp_path / 'quality')


# ============================================================
# DATA FIXTURES
# ============================================================

# Rows as they appear in the raw export: numbers as text, messy labels.
# Row 4 repeats row 1's duplicate key once cleaned.
RAW_ROWS = [
    (2013, ' wyoming ', 'federal', 'onshore', 'intergoven revenue-federal ', 'oil (bbl)',
     '100.00', '0', '1000.00', '125.50', '10.00', '0', '0.1255'),
    (2013, 'Wyoming', 'Federal', 'Onshore', 'Royalties', 'Gas (mcf)',
     '200', '206', '2000', '250', None, '5', '0.125'),
    (2014, 'gulf  of mexico.', 'Federal', 'Offshore', 'Royalties', 'Oil (bbl)',
     '50', None, '0', '0', '0', '0', '0.1875'),
    (2014, 'New Mexico', 'Federal', 'Onshore - Other', 'Intergoven Revenue-State', 'NGL / Gas',
     '10', '0', '400', '50', '4', '1', '0.125'),
    (2013, 'WYOMING', 'Federal', 'Onshore', 'Royalties', 'Gas (mcf)',
     '200', '206', '2000.00', '250.00', '3', '5', '0.125'),
]


@pytest.fixture
def raw_sales_df() -> pd.DataFrame:
    """Small raw federal sales table."""
    return pd.DataFrame(RAW_ROWS, columns=SOURCE_COLUMNS)


@pytest.fixture
def clean_sales_df(raw_sales_df) -> pd.DataFrame:
    """The raw fixture after all cleaning stages."""
    from pipeline import clean_sales
    return clean_sales(raw_sales_df, corrections=VALUE_CORRECTIONS)


def make_clean_row(
    year: int,
    region: str = 'WYOMING',
    royalty: str = '0.00',
    sales: str = '0.00',
    rate: str = '0.1250',
    category: str = 'ONSHORE',
    commodity: str = 'OIL (BBL)',
    gas: str = '0.00',
    transport: str = '0.00',
) -> dict:
    """One already-cleaned record with Decimal values."""
    return {
        YEAR_COL: year,
        REGION_COL: region,
        LAND_CLASS_COL: 'FEDERAL',
        LAND_CATEGORY_COL: category,
        REVENUE_TYPE_COL: 'ROYALTIES',
        COMMODITY_COL: commodity,
        SALES_VOLUME_COL: Decimal('0.00'),
        GAS_VOLUME_COL: Decimal(gas),
        SALES_VALUE_COL: Decimal(sales),
        ROYALTY_COL: Decimal(royalty),
        TRANSPORT_COL: Decimal(transport),
        PROCESSING_COL: Decimal('0.00'),
        RATE_COL: Decimal(rate),
    }


@pytest.fixture
def clean_row():
    """Factory for cleaned records."""
    return make_clean_row

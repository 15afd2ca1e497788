#!/usr/bin/env python3
"""
End-to-end integration tests for the federal sales pipeline.

These tests verify the complete data flow from a raw export to validation
diagnostics, report tables and figures, using synthetic demo data written
to temporary directories.
"""
from __future__ import annotations

import subprocess
import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from config import (
    CATEGORICAL_COLUMNS,
    EFFICIENCY_COL,
    NUMERIC_COLUMNS,
    REVENUE_TYPE_COL,
    ROYALTY_COL,
)
from pipeline import run_clean_data
from stages import s00_load, s06_validate, s07_reports, s08_figures
from stages.s07_reports import REPORTS
from utils.helpers import load_data, load_diagnostic

# Mark all tests as integration and e2e
pytestmark = [pytest.mark.integration, pytest.mark.e2e]


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def project_root():
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


@pytest.fixture
def pipeline_script(project_root):
    """Get the pipeline.py script path."""
    return project_root / 'src' / 'pipeline.py'


@pytest.fixture(scope='module')
def workspace(tmp_path_factory):
    """Run every stage once on demo data and share the outputs."""
    root = tmp_path_factory.mktemp('pipeline')
    paths = {
        'raw': root / 'work' / 'federal_sales_raw.parquet',
        'clean': root / 'work' / 'federal_sales_clean.parquet',
        'diagnostics': root / 'work' / 'diagnostics',
        'quality': root / 'work' / 'quality',
        'figures': root / 'figures',
    }
    s00_load.main(
        use_demo=True, raw_dir=root / 'raw',
        output_path=paths['raw'], qa_dir=paths['quality'],
    )
    run_clean_data(
        input_path=paths['raw'], output_path=paths['clean'],
        corrections_file=root / 'absent.yml', qa_dir=paths['quality'],
    )
    paths['report'] = s06_validate.main(
        input_path=paths['clean'], diag_dir=paths['diagnostics'], qa_dir=paths['quality'],
    )
    paths['results'] = s07_reports.main(
        input_path=paths['clean'], diag_dir=paths['diagnostics'],
        qa_dir=paths['quality'], verbose=False,
    )
    paths['written'] = s08_figures.main(input_path=paths['clean'], figures_dir=paths['figures'])
    return paths


# ============================================================
# HELPER FUNCTIONS
# ============================================================

def run_pipeline_command(project_root, *args, timeout=120):
    """Run a pipeline command and return the result."""
    cmd = [
        sys.executable,
        'src/pipeline.py',
        *args
    ]
    return subprocess.run(
        cmd,
        cwd=project_root,
        capture_output=True,
        text=True,
        timeout=timeout
    )


# ============================================================
# PIPELINE AVAILABILITY TESTS
# ============================================================

class TestPipelineAvailable:
    """Tests that verify the pipeline is available and runnable."""

    def test_pipeline_script_exists(self, pipeline_script):
        assert pipeline_script.exists()

    def test_help(self, project_root):
        result = run_pipeline_command(project_root, '--help')
        assert result.returncode == 0
        assert 'usage' in result.stdout.lower()

    def test_list_stages_command(self, project_root):
        result = run_pipeline_command(project_root, 'list_stages')
        assert result.returncode == 0
        assert 's00_load' in result.stdout
        assert 's08_figures' in result.stdout

    def test_unknown_stage_fails(self, project_root):
        result = run_pipeline_command(project_root, 'run_stage', 's99_nope')
        assert result.returncode == 1
        assert 'not found' in result.stderr


# ============================================================
# FULL RUN ON DEMO DATA
# ============================================================

class TestDemoRun:
    """Verify outputs of a complete run on synthetic data."""

    def test_raw_copy_untransformed(self, workspace):
        raw = load_data(workspace['raw'])
        assert raw[REVENUE_TYPE_COL].str.upper().str.contains('INTERGOVEN REVENUE').any()

    def test_clean_table(self, workspace):
        clean = load_data(workspace['clean'])
        raw = load_data(workspace['raw'])
        assert len(clean) == len(raw)
        assert EFFICIENCY_COL in clean.columns
        for col in NUMERIC_COLUMNS:
            assert clean[col].notna().all()
            assert all(isinstance(v, Decimal) for v in clean[col])
        for col in CATEGORICAL_COLUMNS:
            assert (clean[col] == clean[col].str.upper().str.strip()).all()
        assert not clean[REVENUE_TYPE_COL].str.contains('INTERGOVEN ').any()

    def test_efficiency_null_only_for_zero_sales(self, workspace):
        clean = load_data(workspace['clean'])
        undefined = clean[EFFICIENCY_COL].isna()
        assert undefined.any()
        assert (clean.loc[undefined, 'Sales Value'] == 0).all()

    def test_validation(self, workspace):
        assert not workspace['report'].has_errors
        counts = load_diagnostic('record_count', workspace['diagnostics'])
        assert counts['total_records'].iloc[0] == len(load_data(workspace['clean']))
        dupes = load_diagnostic('possible_duplicates', workspace['diagnostics'])
        assert len(dupes) >= 1
        assert (dupes['rn'] > 1).all()

    def test_every_report_written(self, workspace):
        assert set(workspace['results']) == set(REPORTS)
        for name in REPORTS:
            assert (workspace['diagnostics'] / f'report_{name}.csv').exists()

    def test_reports_agree(self, workspace):
        results = workspace['results']
        trend = results['annual_royalty_trend']
        summary = results['yearly_summary']
        assert list(trend['total_royalties']) == list(summary['total_royalties'])
        clean = load_data(workspace['clean'])
        assert summary['cumulative_royalties'].iloc[-1] == sum(clean[ROYALTY_COL], Decimal(0))

    def test_figures(self, workspace):
        assert len(workspace['written']) == 3
        for path in workspace['written']:
            assert Path(path).exists()

    def test_qa_reports(self, workspace):
        stages = {p.name.split('_quality')[0] for p in workspace['quality'].glob('*.csv')}
        assert {'s00_load', 'clean_data', 's06_validate', 's07_reports'} <= stages

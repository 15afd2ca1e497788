"""
Utilities package.

Provides shared utilities for the federal sales pipeline:
- decimals: fixed-precision parsing, rounding and aggregation
- errors: pipeline exception hierarchy
- figure_style: Matplotlib styling for report charts
- helpers: path and file I/O helpers
- validation: rule-based DataFrame checks
"""

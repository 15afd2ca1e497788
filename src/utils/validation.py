#!/usr/bin/env python3
"""
Rule-based DataFrame validation.

A DataValidator holds a list of ValidationRules. Each rule's check takes a
DataFrame and returns ``(passed, message)``; running the validator yields a
ValidationReport that separates errors from warnings.

Usage
-----
    from utils.validation import DataValidator, no_missing_values, row_count

    validator = (DataValidator()
        .add_rule(row_count(min_rows=1))
        .add_rule(no_missing_values(['Sales Value']))
    )
    report = validator.validate(df)
    if report.has_errors:
        print(report.format())
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Literal, Optional

import pandas as pd


Severity = Literal['error', 'warning']


# ============================================================
# CORE TYPES
# ============================================================

@dataclass
class ValidationRule:
    """A named check over a DataFrame."""
    name: str
    check: Callable[[pd.DataFrame], tuple[bool, str]]
    severity: Severity = 'error'
    description: str = ''


@dataclass
class ValidationResult:
    """Outcome of running one rule."""
    rule_name: str
    passed: bool
    message: str
    severity: Severity = 'error'

    def to_dict(self) -> dict:
        return {
            'rule': self.rule_name,
            'passed': self.passed,
            'severity': self.severity,
            'message': self.message,
        }


@dataclass
class ValidationReport:
    """Collection of rule results."""
    results: list[ValidationResult]
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.passed)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if not r.passed and r.severity == 'error')

    @property
    def warning_count(self) -> int:
        return sum(1 for r in self.results if not r.passed and r.severity == 'warning')

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    @property
    def has_warnings(self) -> bool:
        return self.warning_count > 0

    def format(self) -> str:
        """Format as a printable block."""
        lines = [
            "VALIDATION REPORT",
            "-" * 40,
            f"Rules: {len(self.results)}  Passed: {self.passed}  "
            f"Errors: {self.error_count}  Warnings: {self.warning_count}",
        ]
        for r in self.results:
            if r.passed:
                status = 'PASS'
            elif r.severity == 'error':
                status = 'FAIL'
            else:
                status = 'WARN'
            lines.append(f"  [{status}] {r.rule_name}: {r.message}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            'timestamp': self.timestamp.isoformat(),
            'passed': self.passed,
            'failed': self.failed,
            'has_errors': self.has_errors,
            'error_count': self.error_count,
            'warning_count': self.warning_count,
            'results': [r.to_dict() for r in self.results],
        }

    def to_dataframe(self) -> pd.DataFrame:
        """One row per rule result."""
        return pd.DataFrame(
            [r.to_dict() for r in self.results],
            columns=['rule', 'passed', 'severity', 'message'],
        )


class DataValidator:
    """Runs a list of rules against a DataFrame."""

    def __init__(self, rules: Optional[list[ValidationRule]] = None):
        self.rules: list[ValidationRule] = list(rules or [])

    def add_rule(self, rule: ValidationRule) -> 'DataValidator':
        """Add a rule. Returns self for chaining."""
        self.rules.append(rule)
        return self

    def validate(self, df: pd.DataFrame) -> ValidationReport:
        """Run every rule and collect the results."""
        results = []
        for rule in self.rules:
            passed, message = rule.check(df)
            results.append(ValidationResult(
                rule_name=rule.name,
                passed=bool(passed),
                message=message,
                severity=rule.severity,
            ))
        return ValidationReport(results=results)

    def validate_or_raise(self, df: pd.DataFrame) -> ValidationReport:
        """Validate and raise ValueError if any error-level rule fails."""
        report = self.validate(df)
        if report.has_errors:
            raise ValueError(f"Validation failed:\n{report.format()}")
        return report


# ============================================================
# BUILT-IN RULES
# ============================================================

def required_columns(columns: list[str]) -> ValidationRule:
    """All listed columns are present."""
    def check(df: pd.DataFrame) -> tuple[bool, str]:
        missing = [c for c in columns if c not in df.columns]
        if missing:
            return False, f"Missing columns: {missing}"
        return True, f"All {len(columns)} columns present"

    return ValidationRule(
        name='required_columns',
        check=check,
        description='Required columns exist',
    )


def no_missing_values(columns: list[str], severity: Severity = 'error') -> ValidationRule:
    """No nulls in the listed columns."""
    def check(df: pd.DataFrame) -> tuple[bool, str]:
        present = [c for c in columns if c in df.columns]
        counts = {c: int(df[c].isna().sum()) for c in present}
        bad = {c: n for c, n in counts.items() if n}
        if bad:
            return False, f"Missing values: {bad}"
        return True, f"No missing values in {len(present)} column(s)"

    return ValidationRule(
        name=f"no_missing_values[{', '.join(columns)}]",
        check=check,
        severity=severity,
        description='Columns contain no nulls',
    )


def row_count(min_rows: int = 1, max_rows: Optional[int] = None) -> ValidationRule:
    """Row count falls within [min_rows, max_rows]."""
    def check(df: pd.DataFrame) -> tuple[bool, str]:
        n = len(df)
        if n < min_rows:
            return False, f"{n:,} rows, expected at least {min_rows:,}"
        if max_rows is not None and n > max_rows:
            return False, f"{n:,} rows, expected at most {max_rows:,}"
        return True, f"{n:,} rows"

    return ValidationRule(
        name='row_count',
        check=check,
        description='Row count within bounds',
    )


def value_range(
    column: str,
    min_val=None,
    max_val=None,
    severity: Severity = 'warning'
) -> ValidationRule:
    """Non-null values of a column lie within [min_val, max_val]."""
    def check(df: pd.DataFrame) -> tuple[bool, str]:
        if column not in df.columns:
            return False, f"Column '{column}' not found"
        values = df[column].dropna()
        out = pd.Series(False, index=values.index)
        if min_val is not None:
            out |= values.map(lambda v: v < min_val).astype(bool)
        if max_val is not None:
            out |= values.map(lambda v: v > max_val).astype(bool)
        n_out = int(out.sum())
        if n_out:
            return False, f"{n_out:,} value(s) outside [{min_val}, {max_val}]"
        return True, f"All values within [{min_val}, {max_val}]"

    return ValidationRule(
        name=f'value_range[{column}]',
        check=check,
        severity=severity,
        description=f'{column} within range',
    )


_UNNORMALIZED_TEXT = re.compile(r'^\s|\s$|\s{2}|[.,]$|[a-z]')


def normalized_text(columns: list[str]) -> ValidationRule:
    """
    Text columns are upper-case, trimmed, single-spaced and carry no
    trailing period or comma.
    """
    def check(df: pd.DataFrame) -> tuple[bool, str]:
        bad = {}
        for col in columns:
            if col not in df.columns:
                continue
            values = df[col].dropna().astype(str)
            n_bad = int(values.map(lambda s: bool(_UNNORMALIZED_TEXT.search(s))).sum())
            if n_bad:
                bad[col] = n_bad
        if bad:
            return False, f"Unnormalized text values: {bad}"
        return True, f"Text normalized in {len(columns)} column(s)"

    return ValidationRule(
        name='normalized_text',
        check=check,
        description='Categorical text follows the normalized form',
    )

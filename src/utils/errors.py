#!/usr/bin/env python3
"""
Exception hierarchy for the federal sales pipeline.

Stages raise these instead of exiting so that callers (the CLI, tests,
other stages) decide how a failed run is reported.
"""
from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline failures."""


class InputNotFoundError(PipelineError):
    """Raised when a stage's input file does not exist."""


class SchemaError(PipelineError):
    """Raised when a table is missing required columns."""


class TypeConversionError(PipelineError):
    """
    Raised when a value cannot be coerced to its declared numeric type.

    Attributes
    ----------
    column : str
        Column being converted
    row : object
        Index label of the offending row
    value : object
        Raw value that failed to convert
    """

    def __init__(self, column: str, row, value, reason: str = 'not numeric'):
        self.column = column
        self.row = row
        self.value = value
        self.reason = reason
        super().__init__(
            f"Cannot convert {column!r} at row {row}: {value!r} ({reason})"
        )

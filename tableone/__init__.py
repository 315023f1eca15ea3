"""
Stratified descriptive-statistics ("Table 1") generation.

Modules:
    - data: Dataset and Column views with explicit missing masks
    - options: TableOneOptions, VariableSpec and SummaryKind
    - classifier: Summary-kind inference and explicit overrides
    - stratifier: Row partitions by strata value
    - summarizer: Raw statistics per (variable, stratum)
    - formatter: Display strings for raw statistics
    - assembler: Rows and columns of the final table
    - table_one: TableOneGenerator and the tableone() entry point
    - render: Plain-text and HTML rendering
"""

from tableone.errors import (
    ConfigurationError,
    DataValidationError,
    EmptyStatisticWarning,
    TableAssemblyError,
)
from tableone.options import SummaryKind, TableOneOptions, VariableSpec
from tableone.render import render_html, render_text
from tableone.table_one import TableOneGenerator, TableOneResult, tableone

__all__ = [
    "ConfigurationError",
    "DataValidationError",
    "EmptyStatisticWarning",
    "SummaryKind",
    "TableAssemblyError",
    "TableOneGenerator",
    "TableOneOptions",
    "TableOneResult",
    "VariableSpec",
    "render_html",
    "render_text",
    "tableone",
]

"""
Variable classification: decides how each variable is summarized.

Explicit overrides win; otherwise a column whose non-missing values are all
numeric is summarized as mean (sd), anything else as categorical.
"""

from __future__ import annotations

from collections.abc import Mapping

import pandas as pd

from logger import get_logger
from tableone.data import Column, Dataset
from tableone.options import SummaryKind, TableOneOptions, VariableSpec, is_numeric_value

logger = get_logger(__name__)


def is_numeric_column(column: Column) -> bool:
    """
    True when every non-missing value is numeric (vacuously true when all are missing).
    """
    values = column.observed()
    if len(values) == 0:
        return True
    if pd.api.types.is_bool_dtype(values.dtype) or pd.api.types.is_numeric_dtype(values.dtype):
        return True
    if not pd.api.types.is_object_dtype(values.dtype):
        return False
    return all(is_numeric_value(v) for v in values)


def classify(column: Column, overrides: Mapping[str, SummaryKind]) -> SummaryKind:
    """
    Infer the summary kind of a variable.

    Parameters:
        column (Column): The variable's column.
        overrides (Mapping[str, SummaryKind]): Declared kinds, as returned by
            `TableOneOptions.kind_overrides()`.

    Returns:
        SummaryKind: The declared kind if present, else PARAMETRIC for numeric
        columns and CATEGORICAL otherwise.
    """
    declared = overrides.get(column.name)
    if declared is not None:
        return declared
    if is_numeric_column(column):
        return SummaryKind.PARAMETRIC
    return SummaryKind.CATEGORICAL


def build_variable_specs(dataset: Dataset, options: TableOneOptions) -> tuple[VariableSpec, ...]:
    """
    Resolve the ordered, immutable variable specs for a run.

    Override-list names absent from the variable list are skipped without
    raising; they are reported by `TableOneOptions.ignored_overrides`.
    """
    overrides = options.kind_overrides()
    variables = options.resolved_variables(dataset.columns)

    specs = []
    for name in variables:
        kind = classify(dataset.column(name), overrides)
        has_level = kind is SummaryKind.BINARY and name in options.binary_level_overrides
        specs.append(
            VariableSpec(
                name=name,
                kind=kind,
                display_name=options.display_name(name),
                binary_level=options.binary_level_overrides.get(name) if has_level else None,
                has_binary_level=has_level,
            )
        )
        logger.debug("Variable '%s' classified as %s", name, kind.value)

    for name in options.binary_level_overrides:
        if name in variables and not any(s.name == name and s.kind is SummaryKind.BINARY for s in specs):
            logger.debug("Binary level override for non-binary variable '%s' ignored", name)

    return tuple(specs)

"""
Table assembly: lays formatted variables out as rows and strata as columns.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import pandas as pd

from config import CONFIG
from logger import get_logger
from tableone.errors import ConfigurationError, TableAssemblyError
from tableone.formatter import FormattedVariable
from tableone.options import SummaryKind, VariableSpec
from tableone.stratifier import StratumPartition

logger = get_logger(__name__)


@dataclass(frozen=True)
class SummaryRow:
    """One output row: its label and one cell per data column."""

    label: str
    cells: tuple[str, ...]


@dataclass(frozen=True)
class TableLayout:
    """
    Column layout of the output table.

    Attributes:
        strata: Labels of the retained strata, in column order.
        total_label: Label of the total column, or None.
        missing_label: Label of the missing-count column, or None.
        label_column: Label of the leading row-label column.
    """

    strata: tuple[str, ...]
    total_label: str | None = None
    missing_label: str | None = None
    label_column: str = "variablenames"

    @classmethod
    def from_partition(
        cls, partition: StratumPartition, add_total: bool, add_missing: bool
    ) -> TableLayout:
        return cls(
            strata=tuple(partition.labels),
            total_label=CONFIG.get("tableone.total_column_label", "total") if add_total else None,
            missing_label=CONFIG.get("tableone.missing_column_label", "nmissing") if add_missing else None,
            label_column=CONFIG.get("tableone.label_column", "variablenames"),
        )

    @property
    def data_columns(self) -> list[str]:
        columns = list(self.strata)
        if self.total_label is not None:
            columns.append(self.total_label)
        if self.missing_label is not None:
            columns.append(self.missing_label)
        return columns

    @property
    def columns(self) -> list[str]:
        return [self.label_column, *self.data_columns]

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: If two columns would share a label.
        """
        seen: set[str] = set()
        for label in self.columns:
            if label in seen:
                raise ConfigurationError(
                    f"Column label '{label}' is used more than once; "
                    "rename the stratum value or the configured column labels"
                )
            seen.add(label)


def row_label(spec: VariableSpec, level: Any = None) -> str:
    """
    Row label of a variable's main row.

    Examples: ``age: mean (sd)``, ``bili: median [IQR]``, ``sex: f``, ``stage``.
    """
    match spec.kind:
        case SummaryKind.PARAMETRIC:
            return f"{spec.display_name}: mean (sd)"
        case SummaryKind.NONPARAMETRIC:
            return f"{spec.display_name}: median [IQR]"
        case SummaryKind.BINARY:
            if level is None:
                return spec.display_name
            return f"{spec.display_name}: {level}"
        case SummaryKind.CATEGORICAL:
            return spec.display_name
    raise ConfigurationError(f"Unsupported summary kind: {spec.kind!r}")


def level_label(level: Any) -> str:
    indent = " " * int(CONFIG.get("tableone.level_indent", 4))
    return f"{indent}{level}"


def n_row(
    partition: StratumPartition, layout: TableLayout, n_total: int, n_missing_strata: int
) -> SummaryRow:
    """Leading row with each retained stratum's size."""
    cells = [str(s.size) for s in partition]
    if layout.total_label is not None:
        cells.append(str(n_total))
    if layout.missing_label is not None:
        cells.append(str(n_missing_strata))
    return SummaryRow(CONFIG.get("tableone.n_row_label", "n"), tuple(cells))


def variable_rows(variable: FormattedVariable, layout: TableLayout) -> list[SummaryRow]:
    """
    Rows of one variable: a single row, or a header plus one sub-row per level for categorical variables.
    """
    has_total = layout.total_label is not None
    has_missing = layout.missing_label is not None

    def _cells(position: int, missing: str) -> tuple[str, ...]:
        try:
            cells = [variable.strata[label][position] for label in layout.strata]
            if has_total:
                cells.append(variable.total[position] if variable.total is not None else "")
        except (KeyError, IndexError) as e:
            raise TableAssemblyError(
                f"Variable '{variable.spec.name}' has no cell for row {position} ({e!r})"
            ) from e
        if has_missing:
            cells.append(missing)
        return tuple(cells)

    if variable.spec.kind is not SummaryKind.CATEGORICAL:
        label = row_label(variable.spec, variable.binary_level)
        return [SummaryRow(label, _cells(0, variable.missing))]

    header = [""] * len(layout.strata)
    if has_total:
        header.append("")
    if has_missing:
        header.append(variable.missing)
    rows = [SummaryRow(row_label(variable.spec), tuple(header))]
    for i, level in enumerate(variable.levels):
        rows.append(SummaryRow(level_label(level), _cells(i, "")))
    return rows


def expected_row_count(variables: Sequence[FormattedVariable]) -> int:
    count = 1
    for variable in variables:
        count += 1
        if variable.spec.kind is SummaryKind.CATEGORICAL:
            count += len(variable.levels)
    return count


def assemble_rows(
    variables: Sequence[FormattedVariable],
    partition: StratumPartition,
    layout: TableLayout,
    n_total: int,
    n_missing_strata: int = 0,
) -> list[SummaryRow]:
    """
    Lay out the `n` row followed by every variable in caller order.

    Raises:
        TableAssemblyError: If the row or column count breaks the table layout.
    """
    layout.validate()
    rows = [n_row(partition, layout, n_total, n_missing_strata)]
    for variable in variables:
        rows.extend(variable_rows(variable, layout))

    width = len(layout.data_columns)
    for row in rows:
        if len(row.cells) != width:
            raise TableAssemblyError(
                f"Row '{row.label}' has {len(row.cells)} cells, expected {width}"
            )
    if len(rows) != expected_row_count(variables):
        raise TableAssemblyError(
            f"Assembled {len(rows)} rows, expected {expected_row_count(variables)}"
        )
    return rows


def to_frame(rows: Sequence[SummaryRow], layout: TableLayout) -> pd.DataFrame:
    """Convert summary rows into a DataFrame of strings."""
    records = [(row.label, *row.cells) for row in rows]
    return pd.DataFrame.from_records(records, columns=layout.columns).astype(str)


def assemble(
    variables: Sequence[FormattedVariable],
    partition: StratumPartition,
    n_total: int,
    n_missing_strata: int = 0,
    add_total: bool = False,
    add_missing: bool = True,
) -> pd.DataFrame:
    """
    Build the final table.

    Parameters:
        variables (Sequence[FormattedVariable]): Formatted variables in output order.
        partition (StratumPartition): Retained strata, in column order.
        n_total (int): Number of rows in the whole dataset.
        n_missing_strata (int): Number of rows with a missing strata value.
        add_total (bool): Add the total column.
        add_missing (bool): Add the missing-count column.

    Returns:
        pd.DataFrame: One string column per retained stratum, plus optional
        total and missing-count columns, after the row-label column.
    """
    layout = TableLayout.from_partition(partition, add_total, add_missing)
    rows = assemble_rows(variables, partition, layout, n_total, n_missing_strata)
    logger.debug("Assembled table: %d rows x %d columns", len(rows), len(layout.columns))
    return to_frame(rows, layout)

"""
Table 1 generation: wires Classifier -> Stratifier -> Summarizer -> Formatter -> Assembler.

Usage:
    >>> from tableone import tableone
    >>> df = {"age": [30, 40, 50], "sex": ["f", "m", "f"], "grp": ["A", "A", "B"]}
    >>> tableone(df, "grp", ["age", "sex"])
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from logger import get_logger
from tableone.assembler import assemble
from tableone.classifier import build_variable_specs
from tableone.data import Dataset
from tableone.errors import ConfigurationError, EmptyStatisticWarning
from tableone.formatter import format_variable
from tableone.options import TableOneOptions, VariableSpec
from tableone.stratifier import StratumPartition, partition, whole_partition
from tableone.summarizer import summarize_variable

logger = get_logger(__name__)


@dataclass(frozen=True)
class TableOneResult:
    """
    Output of one generation run.

    Attributes:
        table: The formatted table (strings only).
        specs: Resolved variable specs, in row order.
        empty_statistics: (variable, stratum) pairs whose statistic was undefined.
        ignored_overrides: Override-list names absent from the displayed variables.
        missing_by_stratum: Variable -> stratum label -> missing count, for every
            stratum including the missing-strata partition.
    """

    table: pd.DataFrame
    specs: tuple[VariableSpec, ...]
    empty_statistics: tuple[EmptyStatisticWarning, ...] = field(default=())
    ignored_overrides: tuple[str, ...] = field(default=())
    missing_by_stratum: dict[str, dict[str, int]] = field(default_factory=dict)


def _check_stratum_labels(strata: StratumPartition) -> None:
    # Distinct stratum values must not render to the same label
    clashes = [label for label, count in Counter(strata.labels).items() if count > 1]
    if clashes:
        raise ConfigurationError(
            f"Strata values render to the same column label: {clashes}"
        )


class TableOneGenerator:
    """
    Orchestrator class.
    """

    def __init__(self, data: Any, options: TableOneOptions):
        """
        Parameters:
            data: DataFrame, mapping of columns, list of records, or `Dataset`.
            options (TableOneOptions): Settings for the run.
        """
        self.options = options
        self.dataset = Dataset.from_any(data, options.missing_codes)

    def generate(self) -> TableOneResult:
        """
        Build the stratified summary table.

        Returns:
            TableOneResult: The table plus the resolved specs, the recorded
            empty statistics and the ignored override names.

        Raises:
            ConfigurationError: On invalid or contradictory options.
            TableAssemblyError: If the assembled table breaks its layout invariants.
        """
        options = self.options
        dataset = self.dataset
        logger.log_operation(
            "table_one", "started", strata=options.strata_column, n_rows=dataset.n_rows
        )
        try:
            with logger.track_time("table_one", log_level="debug"):
                result = self._generate()
        except Exception as e:
            logger.log_operation("table_one", "failed", error=str(e))
            raise

        logger.log_operation(
            "table_one",
            "completed",
            variables=len(result.specs),
            columns=result.table.shape[1],
            rows=result.table.shape[0],
        )
        return result

    def _generate(self) -> TableOneResult:
        options = self.options
        dataset = self.dataset

        # 1. Validate and classify
        options.validate(dataset.columns)
        specs = build_variable_specs(dataset, options)
        ignored = options.ignored_overrides([s.name for s in specs])
        if ignored:
            logger.debug("Override names not in the variable list: %s", list(ignored))

        # 2. Stratify
        strata = partition(dataset.column(options.strata_column), options.strata_order)
        _check_stratum_labels(strata)
        retained = strata.retained(options.add_missing_counts)
        total = whole_partition(dataset.n_rows) if options.add_total_column else None
        missing_stratum = strata.missing
        n_missing_strata = missing_stratum.size if missing_stratum is not None else 0

        logger.log_analysis("Table 1", options.strata_column, len(specs), dataset.n_rows)

        # 3. Summarize and format, one variable at a time
        formatted = []
        empty: list[EmptyStatisticWarning] = []
        missing_by_stratum: dict[str, dict[str, int]] = {}
        for spec in specs:
            summary = summarize_variable(
                spec,
                dataset.column(spec.name),
                strata,
                reported=retained.labels,
                total=total,
                level_order=options.level_order,
            )
            empty.extend(summary.empty)
            missing_by_stratum[spec.name] = summary.missing
            formatted.append(
                format_variable(summary, options.decimal_precision, options.add_missing_counts)
            )

        for warning in empty:
            logger.warning("%s", warning)

        # 4. Assemble
        table = assemble(
            formatted,
            retained,
            n_total=dataset.n_rows,
            n_missing_strata=n_missing_strata,
            add_total=options.add_total_column,
            add_missing=options.add_missing_counts,
        )
        return TableOneResult(
            table=table,
            specs=specs,
            empty_statistics=tuple(empty),
            ignored_overrides=ignored,
            missing_by_stratum=missing_by_stratum,
        )


def tableone(
    data: Any,
    strata: str,
    variables: Sequence[str] | None = None,
    *,
    binary_variables: Sequence[str] = (),
    categorical_variables: Sequence[str] = (),
    nonparametric_variables: Sequence[str] = (),
    add_missing_counts: bool | None = None,
    add_total_column: bool | None = None,
    binary_level_overrides: dict[str, Any] | None = None,
    display_names: dict[str, str] | None = None,
    decimal_precision: int | None = None,
    strata_order: str | Sequence[Any] | None = None,
    level_order: str | None = None,
    missing_codes: Sequence[Any] | None = None,
) -> pd.DataFrame:
    """
    Produce a stratified descriptive-statistics table.

    Parameters:
        data: Input table (DataFrame, mapping of columns, or list of records).
        strata (str): Column whose distinct values become the table's columns.
        variables (Sequence[str] | None): Variables to summarize, in row order;
            defaults to every column except `strata`.
        binary_variables / categorical_variables / nonparametric_variables:
            Explicit summary-kind overrides.
        add_missing_counts (bool | None): Add the `nmissing` column and keep
            the `missing` stratum column.
        add_total_column (bool | None): Add a whole-dataset `total` column.
        binary_level_overrides (dict | None): Variable -> displayed binary level.
        display_names (dict | None): Variable -> row label.
        decimal_precision (int | None): Digits kept after rounding.
        strata_order: 'appearance', 'sorted', or explicit stratum values.
        level_order (str | None): 'sorted' or 'appearance'.
        missing_codes: Extra values treated as missing.

    Unset (None) arguments fall back to `CONFIG['tableone']`.

    Returns:
        pd.DataFrame: The formatted table.
    """
    settings = {
        "add_missing_counts": add_missing_counts,
        "add_total_column": add_total_column,
        "binary_level_overrides": binary_level_overrides,
        "display_names": display_names,
        "decimal_precision": decimal_precision,
        "strata_order": strata_order,
        "level_order": level_order,
        "missing_codes": missing_codes,
    }
    options = TableOneOptions(
        strata_column=strata,
        variables=variables,
        binary_variables=binary_variables,
        categorical_variables=categorical_variables,
        nonparametric_variables=nonparametric_variables,
        **{k: v for k, v in settings.items() if v is not None},
    )
    return TableOneGenerator(data, options).generate().table

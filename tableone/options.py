"""
Validated configuration for one table-generation call.

`TableOneOptions` replaces loosely-typed keyword dictionaries with named,
typed fields. Defaults are read from `CONFIG['tableone']` when an options
object is created, and `validate()` runs once against the dataset before the
pipeline starts.
"""

from __future__ import annotations

import numbers
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from config import CONFIG
from logger import get_logger
from tableone.errors import ConfigurationError

logger = get_logger(__name__)

STRATA_ORDERS = ("appearance", "sorted")
LEVEL_ORDERS = ("sorted", "appearance")
MAX_DECIMAL_PRECISION = 15


class SummaryKind(str, Enum):
    """How a variable is summarized in the table."""

    BINARY = "binary"
    CATEGORICAL = "categorical"
    NONPARAMETRIC = "nonparametric"
    PARAMETRIC = "parametric"


def is_numeric_value(value: Any) -> bool:
    """
    True for real numbers, including Python and NumPy booleans.
    """
    if isinstance(value, (complex, np.complexfloating)):
        return False
    return isinstance(value, (numbers.Number, np.bool_))


def level_sort_key(value: Any) -> tuple[int, float | str]:
    """
    Total-order sort key for observed values of any type.

    Numeric (and boolean) values come first in numeric order; every other
    value follows, ordered by its string form.
    """
    if is_numeric_value(value):
        try:
            return (0, float(value))
        except (TypeError, ValueError, OverflowError):
            pass
    return (1, str(value))


def _as_names(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class VariableSpec:
    """
    One table variable: its column, summary kind and display settings.
    """

    name: str
    kind: SummaryKind
    display_name: str
    binary_level: Any = None
    has_binary_level: bool = False


@dataclass(frozen=True)
class TableOneOptions:
    """
    Configuration bundle for a Table 1 run.

    Attributes:
        strata_column: Column whose values define the table's stratum columns.
        variables: Variables to summarize, in output order. Defaults to every
            dataset column except the strata column.
        binary_variables / categorical_variables / nonparametric_variables:
            Explicit summary-kind overrides. Names not present in `variables`
            are not displayed.
        add_missing_counts: Add the `nmissing` column and keep the missing-strata column.
        add_total_column: Add a whole-dataset `total` column.
        binary_level_overrides: Variable -> level displayed for binary variables.
        display_names: Variable -> label printed instead of the column name.
        decimal_precision: Digits kept when rounding statistics and percentages.
        strata_order: 'appearance', 'sorted', or an explicit sequence of stratum values.
        level_order: 'sorted' or 'appearance' ordering of categorical levels.
        missing_codes: Values treated as missing in every column.
    """

    strata_column: str
    variables: tuple[str, ...] | None = None
    binary_variables: tuple[str, ...] = ()
    categorical_variables: tuple[str, ...] = ()
    nonparametric_variables: tuple[str, ...] = ()
    add_missing_counts: bool = field(
        default_factory=lambda: CONFIG.get("tableone.add_missing_counts", True)
    )
    add_total_column: bool = field(
        default_factory=lambda: CONFIG.get("tableone.add_total_column", False)
    )
    binary_level_overrides: Mapping[str, Any] = field(default_factory=dict)
    display_names: Mapping[str, str] = field(default_factory=dict)
    decimal_precision: int = field(
        default_factory=lambda: CONFIG.get("tableone.decimal_precision", 1)
    )
    strata_order: str | tuple[Any, ...] = field(
        default_factory=lambda: CONFIG.get("tableone.strata_order", "appearance")
    )
    level_order: str = field(
        default_factory=lambda: CONFIG.get("tableone.level_order", "sorted")
    )
    missing_codes: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        # Normalize caller sequences into immutable tuples
        object.__setattr__(self, "strata_column", str(self.strata_column))
        if self.variables is not None:
            object.__setattr__(self, "variables", _as_names(self.variables))
        for name in ("binary_variables", "categorical_variables", "nonparametric_variables"):
            object.__setattr__(self, name, _as_names(getattr(self, name)))
        object.__setattr__(self, "binary_level_overrides", dict(self.binary_level_overrides or {}))
        object.__setattr__(self, "display_names", dict(self.display_names or {}))
        if not isinstance(self.strata_order, str):
            object.__setattr__(self, "strata_order", tuple(self.strata_order))
        codes = self.missing_codes
        if codes is None:
            codes = ()
        elif isinstance(codes, (str, bytes)) or not isinstance(codes, (Sequence, set, frozenset, np.ndarray)):
            codes = (codes,)
        object.__setattr__(self, "missing_codes", tuple(codes))

    # --- Override lists ---
    def override_lists(self) -> dict[SummaryKind, tuple[str, ...]]:
        """Override lists in precedence order."""
        return {
            SummaryKind.BINARY: self.binary_variables,
            SummaryKind.CATEGORICAL: self.categorical_variables,
            SummaryKind.NONPARAMETRIC: self.nonparametric_variables,
        }

    def kind_overrides(self) -> dict[str, SummaryKind]:
        """
        Map each overridden variable to its declared kind.

        Raises:
            ConfigurationError: If a variable appears in more than one override list.
        """
        declared: dict[str, SummaryKind] = {}
        conflicts: dict[str, list[str]] = {}
        for kind, names in self.override_lists().items():
            for name in names:
                if name in declared and declared[name] is not kind:
                    conflicts.setdefault(name, [declared[name].value]).append(kind.value)
                declared.setdefault(name, kind)
        if conflicts:
            details = "; ".join(f"'{n}' in {', '.join(k)}" for n, k in conflicts.items())
            raise ConfigurationError(f"Variables listed in more than one override list: {details}")
        return declared

    # --- Resolution helpers ---
    def resolved_variables(self, columns: Sequence[str]) -> tuple[str, ...]:
        """
        The variables to display, in output order, never including the strata column.
        """
        names = self.variables if self.variables is not None else tuple(columns)
        resolved = []
        for name in names:
            if name == self.strata_column:
                logger.debug("Skipping strata column '%s' in variable list", name)
                continue
            resolved.append(name)
        return tuple(resolved)

    def ignored_overrides(self, variables: Sequence[str]) -> tuple[str, ...]:
        """
        Override-list names that are not displayed because they are absent from `variables`.
        """
        shown = set(variables)
        ignored: list[str] = []
        for names in self.override_lists().values():
            for name in names:
                if name not in shown and name not in ignored:
                    ignored.append(name)
        return tuple(ignored)

    def display_name(self, variable: str) -> str:
        return str(self.display_names.get(variable, variable))

    # --- Validation ---
    def validate(self, columns: Sequence[str]) -> None:
        """
        Check the options against the dataset's column names.

        Raises:
            ConfigurationError: On the first invalid or contradictory setting found.
        """
        if self.strata_column not in columns:
            raise ConfigurationError(f"Strata column '{self.strata_column}' not found in dataset")

        precision = self.decimal_precision
        is_int = isinstance(precision, (int, np.integer)) and not isinstance(precision, bool)
        if not is_int or not 0 <= precision <= MAX_DECIMAL_PRECISION:
            raise ConfigurationError(
                f"decimal_precision must be an integer between 0 and {MAX_DECIMAL_PRECISION}, got {precision!r}"
            )

        if isinstance(self.strata_order, str) and self.strata_order not in STRATA_ORDERS:
            raise ConfigurationError(
                f"strata_order must be one of {STRATA_ORDERS} or a sequence of values, got '{self.strata_order}'"
            )

        if self.level_order not in LEVEL_ORDERS:
            raise ConfigurationError(
                f"level_order must be one of {LEVEL_ORDERS}, got '{self.level_order}'"
            )

        self.kind_overrides()

        variables = self.resolved_variables(columns)
        unknown = [v for v in variables if v not in columns]
        if unknown:
            raise ConfigurationError(f"Variables not found in dataset: {unknown}")

        duplicated = [v for v, count in Counter(variables).items() if count > 1]
        if duplicated:
            raise ConfigurationError(f"Variables listed more than once: {duplicated}")

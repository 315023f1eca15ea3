"""
Summary statistics per (variable, stratum).

Every aggregation works on the non-missing values of a stratum only; missing
entries are counted separately. A stratum with no non-missing values yields
an undefined statistic (`n == 0`) which formats as a blank cell.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from logger import get_logger
from tableone.data import Column
from tableone.errors import ConfigurationError, EmptyStatisticWarning
from tableone.options import SummaryKind, VariableSpec, is_numeric_value, level_sort_key
from tableone.stratifier import StratumPartition

logger = get_logger(__name__)


# --- 1. Raw statistics ---
@dataclass(frozen=True)
class MeanSD:
    mean: float
    sd: float
    n: int

    @property
    def defined(self) -> bool:
        return self.n > 0


@dataclass(frozen=True)
class MedianIQR:
    median: float
    q1: float
    q3: float
    n: int

    @property
    def defined(self) -> bool:
        return self.n > 0


@dataclass(frozen=True)
class LevelCounts:
    """
    Counts per categorical level; `n` is the number of non-missing values in the stratum.
    """

    levels: tuple[Any, ...]
    counts: tuple[int, ...]
    n: int

    @property
    def defined(self) -> bool:
        return self.n > 0

    def percentages(self) -> tuple[float, ...]:
        if self.n == 0:
            return tuple(float("nan") for _ in self.counts)
        return tuple(100.0 * c / self.n for c in self.counts)

    def items(self) -> Iterator[tuple[Any, int, float]]:
        """Yield (level, count, percentage of non-missing) in level order."""
        return zip(self.levels, self.counts, self.percentages(), strict=True)


@dataclass(frozen=True)
class BinaryCount:
    """
    Count of the displayed level of a binary variable.
    """

    level: Any
    count: int
    n: int

    @property
    def defined(self) -> bool:
        return self.n > 0

    @property
    def percentage(self) -> float:
        if self.n == 0:
            return float("nan")
        return 100.0 * self.count / self.n


RawStatistic = MeanSD | MedianIQR | LevelCounts | BinaryCount


@dataclass(frozen=True)
class VariableSummary:
    """
    All raw statistics for one variable.

    Attributes:
        spec: The variable being summarized.
        strata: Stratum label -> statistic, for every stratum of the partition.
        missing: Stratum label -> missing count.
        total: Whole-dataset statistic, when a total column is requested.
        missing_total: Missing count over the whole dataset.
        levels: Level order shared by every stratum (categorical variables).
        binary_level: Displayed level (binary variables).
    """

    spec: VariableSpec
    strata: dict[str, RawStatistic]
    missing: dict[str, int]
    total: RawStatistic | None = None
    missing_total: int = 0
    levels: tuple[Any, ...] = ()
    binary_level: Any = None
    empty: tuple[EmptyStatisticWarning, ...] = field(default=())


# --- 2. Numeric helpers ---
def numeric_values(column: Column, rows: np.ndarray, kind: SummaryKind) -> np.ndarray:
    """
    Non-missing values of `column` among `rows` as floats.

    Raises:
        ConfigurationError: If a non-numeric value reaches a numeric summary.
    """
    observed = column.observed(rows)
    if len(observed) == 0:
        return np.empty(0, dtype=float)

    dtype = observed.dtype
    if pd.api.types.is_bool_dtype(dtype) or pd.api.types.is_numeric_dtype(dtype):
        return observed.to_numpy(dtype=float)

    bad = next((v for v in observed if not is_numeric_value(v)), None)
    if bad is not None:
        raise ConfigurationError(
            f"Variable '{column.name}' is summarized as {kind.value} "
            f"but contains non-numeric value {bad!r}"
        )
    return np.asarray([float(v) for v in observed], dtype=float)


def mean_sd(values: np.ndarray) -> MeanSD:
    """
    Mean and sample standard deviation (ddof=1).

    A single observation has no spread and reports an SD of 0.0.
    """
    n = len(values)
    if n == 0:
        return MeanSD(mean=float("nan"), sd=float("nan"), n=0)
    mean = float(np.mean(values))
    sd = float(np.std(values, ddof=1)) if n > 1 else 0.0
    return MeanSD(mean=mean, sd=sd, n=n)


def median_iqr(values: np.ndarray) -> MedianIQR:
    """
    Median and quartiles with linear interpolation between order statistics.
    """
    n = len(values)
    if n == 0:
        nan = float("nan")
        return MedianIQR(median=nan, q1=nan, q3=nan, n=0)
    q1, median, q3 = np.quantile(values, [0.25, 0.5, 0.75])
    return MedianIQR(median=float(median), q1=float(q1), q3=float(q3), n=n)


# --- 3. Level helpers ---
@dataclass(frozen=True, eq=False)
class LevelIndex:
    """
    Factorized column: a code per row (-1 for missing) and the distinct values in first-appearance order.
    """

    codes: np.ndarray
    uniques: tuple[Any, ...]

    @classmethod
    def from_column(cls, column: Column) -> LevelIndex:
        codes, uniques = pd.factorize(column.values, sort=False, use_na_sentinel=True)
        codes = np.where(column.missing, -1, codes)
        return cls(codes=codes, uniques=tuple(uniques))

    def ordered(self, order: str = "sorted") -> tuple[Any, ...]:
        """
        Distinct non-missing values in output order: 'sorted' (total-order comparator) or 'appearance'.
        """
        match order:
            case "sorted":
                return tuple(sorted(self.uniques, key=level_sort_key))
            case "appearance":
                return self.uniques
            case _:
                raise ConfigurationError(f"Unknown level order '{order}'")

    def position(self, level: Any) -> int | None:
        """Index of `level` among the uniques, matching by value first and then by string form."""
        for i, u in enumerate(self.uniques):
            if u == level:
                return i
        for i, u in enumerate(self.uniques):
            if str(u) == str(level):
                return i
        return None

    def count(self, rows: np.ndarray, levels: tuple[Any, ...]) -> LevelCounts:
        """
        Count each level among the non-missing values of `rows`, zero-filling absent levels.
        """
        sub = self.codes[rows]
        sub = sub[sub >= 0]
        by_unique = np.bincount(sub, minlength=len(self.uniques))

        counts = []
        for level in levels:
            pos = self.position(level)
            counts.append(int(by_unique[pos]) if pos is not None else 0)
        return LevelCounts(levels=tuple(levels), counts=tuple(counts), n=int(len(sub)))


def observed_levels(column: Column, order: str = "sorted") -> tuple[Any, ...]:
    """Distinct non-missing values of the whole column, in output order."""
    return LevelIndex.from_column(column).ordered(order)


def binary_display_level(index: LevelIndex, spec: VariableSpec) -> Any:
    """
    Level displayed for a binary variable: the override if given, else the maximum observed value.

    Returns None when the column has no non-missing values and no override.
    """
    if spec.has_binary_level:
        return spec.binary_level
    if not index.uniques:
        return None
    return max(index.uniques, key=level_sort_key)


# --- 4. Public API ---
class _VariableContext:
    """Per-variable state shared by every stratum: factorized levels and the binary level."""

    def __init__(self, spec: VariableSpec, column: Column, level_order: str):
        self.spec = spec
        self.column = column
        self.levels: tuple[Any, ...] = ()
        self.binary_level: Any = None
        self.index: LevelIndex | None = None

        if spec.kind in (SummaryKind.CATEGORICAL, SummaryKind.BINARY):
            self.index = LevelIndex.from_column(column)
            if spec.kind is SummaryKind.CATEGORICAL:
                self.levels = self.index.ordered(level_order)
            else:
                self.binary_level = binary_display_level(self.index, spec)

    def statistic(self, rows: np.ndarray) -> RawStatistic:
        spec, column = self.spec, self.column
        match spec.kind:
            case SummaryKind.PARAMETRIC:
                return mean_sd(numeric_values(column, rows, spec.kind))
            case SummaryKind.NONPARAMETRIC:
                return median_iqr(numeric_values(column, rows, spec.kind))
            case SummaryKind.CATEGORICAL:
                return self.index.count(rows, self.levels)
            case SummaryKind.BINARY:
                if self.binary_level is None:
                    return BinaryCount(level=None, count=0, n=len(rows) - column.missing_in(rows))
                counted = self.index.count(rows, (self.binary_level,))
                return BinaryCount(level=self.binary_level, count=counted.counts[0], n=counted.n)
        raise ConfigurationError(f"Unsupported summary kind: {spec.kind!r}")


def summarize(
    spec: VariableSpec,
    column: Column,
    partition: StratumPartition,
    level_order: str = "sorted",
) -> dict[str, RawStatistic]:
    """
    Compute the statistic dictated by `spec.kind` for every stratum.

    Categorical levels are taken from the whole column so that every stratum
    reports the same level set.
    """
    context = _VariableContext(spec, column, level_order)
    return {stratum.label: context.statistic(stratum.rows) for stratum in partition}


def missing_count(column: Column, partition: StratumPartition) -> dict[str, int]:
    """Missing entries of `column` within each stratum."""
    return {stratum.label: column.missing_in(stratum.rows) for stratum in partition}


def summarize_variable(
    spec: VariableSpec,
    column: Column,
    partition: StratumPartition,
    reported: list[str],
    total: StratumPartition | None = None,
    level_order: str = "sorted",
) -> VariableSummary:
    """
    Summarize one variable over every stratum and, optionally, the whole dataset.

    Parameters:
        spec (VariableSpec): The variable and its summary kind.
        column (Column): The variable's column.
        partition (StratumPartition): All strata, including the missing-strata partition.
        reported (list[str]): Labels of the strata shown in the table; empty
            statistics are recorded only for these and for the total column.
        total (StratumPartition | None): Whole-dataset partition for the total column.
        level_order (str): Ordering of categorical levels.

    Returns:
        VariableSummary: Statistics, missing counts and empty-statistic records.
    """
    context = _VariableContext(spec, column, level_order)
    strata = {s.label: context.statistic(s.rows) for s in partition}

    empty = [EmptyStatisticWarning(spec.name, label) for label in reported if not strata[label].defined]

    total_stat = None
    if total is not None:
        (whole,) = total.strata
        total_stat = context.statistic(whole.rows)
        if not total_stat.defined:
            empty.append(EmptyStatisticWarning(spec.name, whole.label))

    logger.debug(
        "Summarized '%s' (%s) over %d strata, %d missing",
        spec.name, spec.kind.value, len(partition), column.n_missing,
    )
    return VariableSummary(
        spec=spec,
        strata=strata,
        missing=missing_count(column, partition),
        total=total_stat,
        missing_total=column.n_missing,
        levels=context.levels,
        binary_level=context.binary_level,
        empty=tuple(empty),
    )

"""
Display formatting for raw statistics.

Numbers are rounded to the configured precision and printed without
trailing zeros (one decimal digit is always kept), e.g. ``35.0``, ``0.4``,
``2015.62``. Undefined statistics print as an empty string.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from tableone.errors import ConfigurationError
from tableone.options import SummaryKind, VariableSpec
from tableone.summarizer import (
    BinaryCount,
    LevelCounts,
    MeanSD,
    MedianIQR,
    RawStatistic,
    VariableSummary,
)

IQR_SEPARATOR = "–"


def format_number(value: float, precision: int) -> str:
    """
    Round `value` to `precision` digits and print it in short form.

    Examples:
        >>> format_number(35, 1)
        '35.0'
        >>> format_number(0.4049, 2)
        '0.4'
        >>> format_number(12.6, 0)
        '13'
    """
    value = float(value)
    if not math.isfinite(value):
        return str(value)
    rounded = round(value, precision)
    if rounded == 0:
        rounded = 0.0
    if precision == 0:
        return str(int(rounded))
    text = f"{rounded:.{precision}f}".rstrip("0")
    if text.endswith("."):
        text += "0"
    return text


def format_mean_sd(stat: MeanSD, precision: int) -> str:
    if not stat.defined:
        return ""
    return f"{format_number(stat.mean, precision)} ({format_number(stat.sd, precision)})"


def format_median_iqr(stat: MedianIQR, precision: int) -> str:
    if not stat.defined:
        return ""
    return (
        f"{format_number(stat.median, precision)} "
        f"[{format_number(stat.q1, precision)}{IQR_SEPARATOR}{format_number(stat.q3, precision)}]"
    )


def format_count(count: int, percentage: float, precision: int) -> str:
    """`"{count} ({percentage}%)"`; the count is never rounded."""
    return f"{int(count)} ({format_number(percentage, precision)}%)"


def format_missing(count: int, enabled: bool = True) -> str:
    """Missing-count cell: the integer, or blank when missing counts are disabled."""
    return str(int(count)) if enabled else ""


def format_statistic(stat: RawStatistic, kind: SummaryKind, precision: int) -> tuple[str, ...]:
    """
    Format a raw statistic into its display cells.

    Returns:
        tuple[str, ...]: One cell for parametric, nonparametric and binary
        statistics; one cell per level for categorical statistics.

    Raises:
        ConfigurationError: If the statistic does not match `kind`.
    """
    match kind, stat:
        case SummaryKind.PARAMETRIC, MeanSD():
            return (format_mean_sd(stat, precision),)
        case SummaryKind.NONPARAMETRIC, MedianIQR():
            return (format_median_iqr(stat, precision),)
        case SummaryKind.BINARY, BinaryCount():
            if not stat.defined or stat.level is None:
                return ("",)
            return (format_count(stat.count, stat.percentage, precision),)
        case SummaryKind.CATEGORICAL, LevelCounts():
            if not stat.defined:
                return tuple("" for _ in stat.levels)
            return tuple(format_count(c, p, precision) for _, c, p in stat.items())
    raise ConfigurationError(f"Cannot format {type(stat).__name__} as {kind.value}")


@dataclass(frozen=True)
class FormattedVariable:
    """
    Display cells for one variable.

    Attributes:
        spec: The variable.
        strata: Stratum label -> cells (one per output row of the variable's body).
        total: Total-column cells, or None without a total column.
        missing: Missing-count cell for the variable's (header) row.
        levels: Categorical levels, in sub-row order.
        binary_level: Displayed binary level.
    """

    spec: VariableSpec
    strata: dict[str, tuple[str, ...]]
    total: tuple[str, ...] | None
    missing: str
    levels: tuple[Any, ...] = ()
    binary_level: Any = None


def format_variable(
    summary: VariableSummary, precision: int, add_missing_counts: bool = True
) -> FormattedVariable:
    """Format every statistic of a summarized variable."""
    kind = summary.spec.kind
    strata = {
        label: format_statistic(stat, kind, precision) for label, stat in summary.strata.items()
    }
    total = None
    if summary.total is not None:
        total = format_statistic(summary.total, kind, precision)
    return FormattedVariable(
        spec=summary.spec,
        strata=strata,
        total=total,
        missing=format_missing(summary.missing_total, add_missing_counts),
        levels=summary.levels,
        binary_level=summary.binary_level,
    )

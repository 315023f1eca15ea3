"""
Stratification: partitions row positions by the value of the strata column.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from config import CONFIG
from logger import get_logger
from tableone.data import Column
from tableone.errors import ConfigurationError
from tableone.options import level_sort_key

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class Stratum:
    """
    One partition of the rows.

    Attributes:
        label: Column label in the output table.
        value: The strata value (None for the missing-strata partition).
        rows: Sorted row positions belonging to the stratum.
        is_missing: True for the partition of rows with a missing strata value.
    """

    label: str
    value: Any
    rows: np.ndarray
    is_missing: bool = False

    @property
    def size(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class StratumPartition:
    """
    Ordered, disjoint strata covering every row exactly once.
    """

    strata: tuple[Stratum, ...]

    def __iter__(self):
        return iter(self.strata)

    def __len__(self) -> int:
        return len(self.strata)

    @property
    def labels(self) -> list[str]:
        return [s.label for s in self.strata]

    @property
    def n_rows(self) -> int:
        return sum(s.size for s in self.strata)

    @property
    def missing(self) -> Stratum | None:
        return next((s for s in self.strata if s.is_missing), None)

    def retained(self, include_missing: bool) -> StratumPartition:
        """
        Strata shown as table columns. Dropping the missing partition does not move its rows elsewhere.
        """
        if include_missing:
            return self
        return StratumPartition(tuple(s for s in self.strata if not s.is_missing))


def whole_partition(n_rows: int, label: str | None = None) -> StratumPartition:
    """A single stratum covering every row, used for the total column."""
    label = label or CONFIG.get("tableone.total_column_label", "total")
    return StratumPartition((Stratum(label=label, value=None, rows=np.arange(n_rows)),))


def _order_codes(
    uniques: Sequence[Any], order: str | Sequence[Any]
) -> list[int]:
    """
    Positions into `uniques` (which is in first-appearance order) in output order.
    """
    positions = list(range(len(uniques)))
    if isinstance(order, str):
        match order:
            case "appearance":
                return positions
            case "sorted":
                return sorted(positions, key=lambda i: level_sort_key(uniques[i]))
            case _:
                raise ConfigurationError(f"Unknown strata order '{order}'")

    # Explicit order: listed values first, then the rest by appearance
    ordered: list[int] = []
    for wanted in order:
        found = next(
            (i for i in positions if i not in ordered and (uniques[i] == wanted or str(uniques[i]) == str(wanted))),
            None,
        )
        if found is None:
            logger.debug("Stratum value %r in strata_order was not observed", wanted)
            continue
        ordered.append(found)
    ordered.extend(i for i in positions if i not in ordered)
    return ordered


def partition(
    strata_column: Column,
    order: str | Sequence[Any] = "appearance",
    missing_label: str | None = None,
) -> StratumPartition:
    """
    Group row positions by the strata column's value.

    Parameters:
        strata_column (Column): Column defining the strata.
        order (str | Sequence): 'appearance' (first-seen order of non-missing
            values), 'sorted', or an explicit sequence of values.
        missing_label (str | None): Label of the missing-strata partition.

    Returns:
        StratumPartition: Non-missing strata in the requested order, followed
        by the missing partition when at least one row has a missing value.
    """
    missing_label = missing_label or CONFIG.get("tableone.missing_stratum_label", "missing")
    codes, uniques = pd.factorize(strata_column.values, sort=False, use_na_sentinel=True)
    uniques = list(uniques)

    strata = []
    for i in _order_codes(uniques, order):
        strata.append(
            Stratum(label=str(uniques[i]), value=uniques[i], rows=np.flatnonzero(codes == i))
        )

    missing_rows = np.flatnonzero(codes == -1)
    if len(missing_rows) > 0:
        strata.append(Stratum(label=missing_label, value=None, rows=missing_rows, is_missing=True))

    result = StratumPartition(tuple(strata))
    logger.debug(
        "Partitioned %d rows of '%s' into %d strata", len(codes), strata_column.name, len(result)
    )
    return result

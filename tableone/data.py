"""
Columnar dataset abstraction with explicit missingness.

Wraps the caller's table (DataFrame, mapping of columns, or list of records)
into read-only `Column` views. Every column carries a boolean missing mask so
that downstream aggregation never relies on NaN propagation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from logger import get_logger
from tableone.errors import ConfigurationError, DataValidationError

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class Column:
    """
    One named column: values in row order plus the matching missing mask.
    """

    name: str
    values: pd.Series
    missing: np.ndarray

    def __len__(self) -> int:
        return len(self.values)

    @property
    def n_missing(self) -> int:
        return int(self.missing.sum())

    def observed(self, rows: np.ndarray | None = None) -> pd.Series:
        """
        Return the non-missing values, optionally restricted to row positions.
        """
        if rows is None:
            return self.values[~self.missing]
        keep = rows[~self.missing[rows]]
        return self.values.iloc[keep]

    def missing_in(self, rows: np.ndarray) -> int:
        """Count missing entries among the given row positions."""
        return int(self.missing[rows].sum())


def validate_input_data(data: Any) -> pd.DataFrame:
    """
    Validate input data and convert to DataFrame if needed.

    Parameters:
        data: Input data (DataFrame, mapping of column -> sequence, or list of records)

    Returns:
        pd.DataFrame: A copy of the data with a positional row index

    Raises:
        DataValidationError: If input cannot be converted to DataFrame
    """
    match data:
        case pd.DataFrame():
            df = data.copy()
        case Mapping() | list():
            try:
                df = pd.DataFrame(data)
            except (ValueError, TypeError) as e:
                raise DataValidationError(f"Input validation failed: {e}") from e
        case _:
            raise DataValidationError(f"Unsupported data type: {type(data)}")

    if df.columns.has_duplicates:
        dupes = sorted({str(c) for c in df.columns[df.columns.duplicated()]})
        raise DataValidationError(f"Duplicate column names: {dupes}")

    if df.empty:
        logger.warning("Input data is empty")

    df = df.reset_index(drop=True)
    df.columns = [str(c) for c in df.columns]
    df = restore_integer_columns(df)

    logger.debug("Validated input data: %s rows, %s columns", df.shape[0], df.shape[1])
    return df


def _is_whole_number_column(series: pd.Series) -> bool:
    if not pd.api.types.is_float_dtype(series.dtype):
        return False
    values = series.dropna().to_numpy(dtype=float)
    if len(values) == 0 or not np.isfinite(values).all():
        return False
    return bool((np.abs(values) < 2**53).all() and (values == np.round(values)).all())


def restore_integer_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Convert float columns holding only whole numbers to nullable `Int64`.

    pandas stores integer codes with missing entries as float, which would
    print levels and strata as `1.0`, `2.0`. Fractional columns stay float.
    """
    converted = [c for c in df.columns if _is_whole_number_column(df[c])]
    if not converted:
        return df
    df = df.copy()
    for col in converted:
        df[col] = df[col].astype("Int64")
    logger.debug("Restored integer dtype for columns: %s", converted)
    return df


def apply_missing_codes(df: pd.DataFrame, missing_codes: Iterable[Any]) -> pd.DataFrame:
    """
    Replace user-specified missing value codes with NaN.

    Codes are matched across string and numeric representations, so `-99`
    also matches `"-99"` and `-99.0`. Boolean values are only matched by
    boolean codes, so a code of `0` never hides `False`.

    Parameters:
        df: Input DataFrame (modified copy is returned)
        missing_codes: Values to treat as missing in every column

    Returns:
        DataFrame with missing codes replaced by NaN
    """
    codes = [c for c in missing_codes if not pd.isna(c)]
    if not codes:
        return df

    # Boolean codes only match boolean values and vice versa, since False == 0
    flag_codes = [c for c in codes if _is_flag(c)]
    plain_codes = [c for c in codes if not _is_flag(c)]

    df_copy = df.copy()
    for col in df_copy.columns:
        values = df_copy[col]
        is_numeric = pd.api.types.is_numeric_dtype(values) and not pd.api.types.is_bool_dtype(values)
        normalized_vals: set[Any] = set()
        for val in plain_codes:
            if is_numeric:
                # Numeric columns compare against floats only
                try:
                    normalized_vals.add(float(val))
                except (ValueError, TypeError):
                    pass
            else:
                normalized_vals.add(val)
                normalized_vals.add(str(val))

        if pd.api.types.is_bool_dtype(values):
            is_flag = pd.Series(True, index=values.index)
        elif pd.api.types.is_object_dtype(values):
            is_flag = values.map(_is_flag).astype(bool)
        else:
            is_flag = pd.Series(False, index=values.index)

        mask = (values.isin(list(normalized_vals)) & ~is_flag) | (values.isin(flag_codes) & is_flag)
        mask = mask.fillna(False).astype(bool)
        if mask.any():
            df_copy[col] = values.mask(mask)
            logger.debug("Column '%s': %d values matched missing codes", col, int(mask.sum()))

    return restore_integer_columns(df_copy)


def _is_flag(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


class Dataset:
    """
    Read-only columnar view over the caller's table.

    All columns share the positional row index 0..n-1.
    """

    def __init__(self, data: Any, missing_codes: Sequence[Any] = ()):
        frame = validate_input_data(data)
        self._frame = apply_missing_codes(frame, missing_codes)
        self._columns: dict[str, Column] = {}
        logger.log_data_summary(
            "dataset",
            self._frame.shape,
            {c: str(t) for c, t in self._frame.dtypes.items()},
        )

    @classmethod
    def from_any(cls, data: Any, missing_codes: Sequence[Any] | None = None) -> Dataset:
        """
        Build a Dataset from a DataFrame, a mapping of columns, a list of records, or another Dataset.
        """
        if isinstance(data, Dataset):
            if missing_codes:
                return cls(data._frame, missing_codes)
            return data
        return cls(data, missing_codes or ())

    @property
    def n_rows(self) -> int:
        return len(self._frame)

    @property
    def columns(self) -> list[str]:
        return list(self._frame.columns)

    def __contains__(self, name: object) -> bool:
        return name in self._frame.columns

    def __len__(self) -> int:
        return self.n_rows

    def column(self, name: str) -> Column:
        """
        Return the named column.

        Raises:
            ConfigurationError: If the dataset has no such column.
        """
        if name not in self._frame.columns:
            raise ConfigurationError(f"Column '{name}' not found in dataset")
        if name not in self._columns:
            values = self._frame[name]
            self._columns[name] = Column(
                name=name,
                values=values,
                missing=values.isna().to_numpy(dtype=bool),
            )
        return self._columns[name]

"""
Exceptions and reportable conditions raised by the Table One pipeline.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid or contradictory table configuration, or data that contradicts it."""


class DataValidationError(ValueError):
    """Custom exception for input data that cannot be read as a dataset."""


class TableAssemblyError(RuntimeError):
    """An assembled table broke its row or column layout."""


class EmptyStatisticWarning(UserWarning):
    """
    A (variable, stratum) pair has no non-missing observations.

    Recorded on the result and logged, never raised; the matching cell is
    rendered blank.
    """

    def __init__(self, variable: str, stratum: str):
        super().__init__(
            f"Variable '{variable}' has no non-missing values in stratum '{stratum}'"
        )
        self.variable = variable
        self.stratum = stratum

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EmptyStatisticWarning):
            return NotImplemented
        return (self.variable, self.stratum) == (other.variable, other.stratum)

    def __hash__(self) -> int:
        return hash((self.variable, self.stratum))

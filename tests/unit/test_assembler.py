"""
🧪 Unit Tests for Table Assembly
File: tests/unit/test_assembler.py

Tests tableone/assembler.py:
- row_label / level_label: row labels per summary kind
- assemble: column layout, the n row, categorical sub-rows
- Layout checks: column label collisions and broken rows

Run with: pytest tests/unit/test_assembler.py -v
"""

import numpy as np
import pytest

from tableone import assembler
from tableone.assembler import SummaryRow, assemble, level_label, row_label
from tableone.errors import ConfigurationError, TableAssemblyError
from tableone.formatter import FormattedVariable
from tableone.options import SummaryKind, VariableSpec
from tableone.stratifier import Stratum, StratumPartition

# Mark all tests as unit tests
pytestmark = pytest.mark.unit


def spec(name, kind):
    return VariableSpec(name=name, kind=kind, display_name=name)


@pytest.fixture
def strata():
    return StratumPartition((
        Stratum(label="A", value="A", rows=np.array([0, 1, 4])),
        Stratum(label="B", value="B", rows=np.array([2])),
    ))


@pytest.fixture
def age():
    return FormattedVariable(
        spec=spec("age", SummaryKind.PARAMETRIC),
        strata={"A": ("35.0 (7.1)",), "B": ("50.0 (0.0)",)},
        total=("45.0 (12.9)",),
        missing="1",
    )


@pytest.fixture
def sex():
    return FormattedVariable(
        spec=spec("sex", SummaryKind.CATEGORICAL),
        strata={"A": ("2 (66.7%)", "1 (33.3%)"), "B": ("1 (100.0%)", "0 (0.0%)")},
        total=("3 (60.0%)", "2 (40.0%)"),
        missing="0",
        levels=("f", "m"),
    )


class TestLabels:
    """Tests for row labels."""

    def test_row_labels(self):
        assert row_label(spec("age", SummaryKind.PARAMETRIC)) == "age: mean (sd)"
        assert row_label(spec("bili", SummaryKind.NONPARAMETRIC)) == "bili: median [IQR]"
        assert row_label(spec("sex", SummaryKind.BINARY), "m") == "sex: m"
        assert row_label(spec("sex", SummaryKind.BINARY)) == "sex"
        assert row_label(spec("stage", SummaryKind.CATEGORICAL)) == "stage"

    def test_level_label_indent(self):
        assert level_label(2) == "    2"


class TestAssemble:
    """Tests for the assembled table."""

    def test_columns_and_n_row(self, strata, age):
        table = assemble([age], strata, n_total=4, n_missing_strata=1, add_total=True)
        assert list(table.columns) == ["variablenames", "A", "B", "total", "nmissing"]
        assert table.iloc[0].tolist() == ["n", "3", "1", "4", "1"]
        assert table.iloc[1].tolist() == ["age: mean (sd)", "35.0 (7.1)", "50.0 (0.0)", "45.0 (12.9)", "1"]

    def test_without_optional_columns(self, strata, age):
        table = assemble([age], strata, n_total=4, add_total=False, add_missing=False)
        assert list(table.columns) == ["variablenames", "A", "B"]
        assert table.iloc[1].tolist() == ["age: mean (sd)", "35.0 (7.1)", "50.0 (0.0)"]

    def test_categorical_rows(self, strata, sex):
        table = assemble([sex], strata, n_total=4)
        assert table["variablenames"].tolist() == ["n", "sex", "    f", "    m"]
        assert table.iloc[1].tolist() == ["sex", "", "", "0"]
        assert table.iloc[2].tolist() == ["    f", "2 (66.7%)", "1 (100.0%)", ""]
        assert table.iloc[3].tolist() == ["    m", "1 (33.3%)", "0 (0.0%)", ""]

    def test_categorical_header_blank_total(self, strata, sex):
        table = assemble([sex], strata, n_total=4, add_total=True)
        assert table.iloc[1].tolist() == ["sex", "", "", "", "0"]
        assert table.iloc[2]["total"] == "3 (60.0%)"

    def test_variable_order_and_row_count(self, strata, age, sex):
        table = assemble([sex, age], strata, n_total=4)
        assert len(table) == 1 + (1 + 2) + 1
        assert table["variablenames"].tolist()[-1] == "age: mean (sd)"

    def test_all_cells_are_strings(self, strata, age, sex):
        table = assemble([age, sex], strata, n_total=4, add_total=True)
        assert all(isinstance(v, str) for v in table.to_numpy().ravel())


class TestLayoutChecks:
    """Tests for layout validation."""

    @pytest.mark.parametrize("label", ["total", "nmissing", "variablenames"])
    def test_label_collision(self, age, label):
        strata = StratumPartition((Stratum(label=label, value=label, rows=np.array([0])),))
        variable = FormattedVariable(
            spec=age.spec, strata={label: ("1.0 (0.0)",)}, total=("1.0 (0.0)",), missing="0"
        )
        with pytest.raises(ConfigurationError, match="used more than once"):
            assemble([variable], strata, n_total=1, add_total=True, add_missing=True)

    def test_missing_cells_raise(self, strata, sex):
        broken = FormattedVariable(
            spec=sex.spec,
            strata={"A": ("2 (66.7%)",), "B": ("1 (100.0%)",)},
            total=None,
            missing="0",
            levels=("f", "m"),
        )
        with pytest.raises(TableAssemblyError):
            assemble([broken], strata, n_total=4)

    def test_row_width_checked(self, strata, age, monkeypatch):
        monkeypatch.setattr(
            assembler, "variable_rows", lambda variable, layout: [SummaryRow("age", ("1",))]
        )
        with pytest.raises(TableAssemblyError, match="has 1 cells"):
            assemble([age], strata, n_total=4)

"""
🔗 Integration Tests for Table One Generator Pipeline
File: tests/integration/test_table_one_pipeline.py

Tests the flow of generating stratified baseline characteristics tables:
1. Classification, stratification and summarization end to end
2. Missing-strata handling, total column and missing counts
3. Configuration errors and reported conditions
4. Rendering of the assembled table
"""

import logging
import re

import numpy as np
import pandas as pd
import pytest

from tableone import (
    ConfigurationError,
    EmptyStatisticWarning,
    SummaryKind,
    TableOneGenerator,
    TableOneOptions,
    render_html,
    render_text,
    tableone,
)

# Mark as integration test
pytestmark = pytest.mark.integration

COUNT_CELL = re.compile(r"^(\d+) \(([\d.]+)%\)$")


def row(table, label):
    matches = table[table["variablenames"] == label]
    assert len(matches) == 1, f"expected one row labelled {label!r}"
    return matches.iloc[0]


class TestTableOnePipeline:

    def test_parametric_example(self, example_df):
        """🔄 Mean (sd) per stratum with a missing stratum column"""
        table = tableone(example_df, "grp", ["age"])

        assert list(table.columns) == ["variablenames", "A", "B", "missing", "nmissing"]
        assert table.iloc[0].tolist() == ["n", "3", "1", "1", "1"]

        age = row(table, "age: mean (sd)")
        assert age["A"] == "35.0 (7.1)"
        assert age["B"] == "50.0 (0.0)"
        assert age["missing"] == "60.0 (0.0)"
        assert age["nmissing"] == "1"

    def test_categorical_zero_fill(self, example_df):
        """🔄 Every stratum reports every level, zero-filled"""
        table = tableone(example_df, "grp", ["status"], categorical_variables=["status"])

        assert table["variablenames"].tolist() == ["n", "status", "    0", "    1", "    2"]
        assert row(table, "status").tolist() == ["status", "", "", "", "0"]
        assert row(table, "    0")["A"] == "2 (66.7%)"
        assert row(table, "    1")["B"] == "1 (100.0%)"
        assert row(table, "    2")["A"] == "0 (0.0%)"
        assert row(table, "    2")["missing"] == "1 (100.0%)"
        assert row(table, "    2")["nmissing"] == ""

    def test_single_value_stratum(self):
        """🔄 A stratum with one non-missing value reports SD 0.0 and its missing count"""
        df = pd.DataFrame({"age": [30, 40, None, 50], "group": ["A", "A", "B", "B"]})
        result = TableOneGenerator(df, TableOneOptions(strata_column="group")).generate()

        assert result.table.iloc[0].tolist() == ["n", "2", "2", "0"]
        assert row(result.table, "age: mean (sd)").tolist() == [
            "age: mean (sd)", "35.0 (7.1)", "50.0 (0.0)", "1",
        ]

    def test_levels_absent_from_a_stratum(self):
        """🔄 Levels observed in only one stratum still appear in every stratum"""
        df = pd.DataFrame({"status": [0, 1, 0, 2], "group": ["A", "A", "B", "B"]})
        table = tableone(df, "group", categorical_variables=["status"], add_missing_counts=False)

        assert table["variablenames"].tolist() == ["n", "status", "    0", "    1", "    2"]
        assert row(table, "    1").tolist() == ["    1", "1 (50.0%)", "0 (0.0%)"]
        assert row(table, "    2").tolist() == ["    2", "0 (0.0%)", "1 (50.0%)"]

    def test_total_column(self, example_df):
        """🔄 Total column summarizes the whole dataset"""
        table = tableone(example_df, "grp", ["age", "sex"], add_total_column=True)

        assert list(table.columns) == ["variablenames", "A", "B", "missing", "total", "nmissing"]
        assert row(table, "n")["total"] == "5"
        assert row(table, "age: mean (sd)")["total"] == "45.0 (12.9)"
        assert row(table, "sex")["total"] == ""
        assert row(table, "    f")["total"] == "3 (60.0%)"
        assert row(table, "    m")["total"] == "2 (40.0%)"

    def test_without_missing_counts(self, example_df):
        """🔄 Missing-strata rows never leak into other strata"""
        table = tableone(example_df, "grp", ["age"], add_missing_counts=False)

        assert list(table.columns) == ["variablenames", "A", "B"]
        assert row(table, "age: mean (sd)").tolist() == ["age: mean (sd)", "35.0 (7.1)", "50.0 (0.0)"]

    def test_binary_variable(self, example_df):
        """🔄 Binary variables show one level, defaulting to the maximum"""
        table = tableone(example_df, "grp", ["sex"], binary_variables=["sex"])
        sex = row(table, "sex: m")
        assert sex["A"] == "1 (33.3%)"
        assert sex["B"] == "0 (0.0%)"

        table = tableone(
            example_df, "grp", ["sex"], binary_variables=["sex"], binary_level_overrides={"sex": "f"}
        )
        assert row(table, "sex: f")["A"] == "2 (66.7%)"

    def test_nonparametric_and_display_names(self, example_df):
        table = tableone(
            example_df,
            "grp",
            ["age"],
            nonparametric_variables=["age"],
            display_names={"age": "Age"},
            decimal_precision=2,
        )
        assert row(table, "Age: median [IQR]")["A"] == "35.0 [32.5–37.5]"

    def test_default_variables(self, example_df):
        table = tableone(example_df, "grp")
        labels = table["variablenames"].tolist()
        assert labels == [
            "n",
            "age: mean (sd)",
            "sex",
            "    f",
            "    m",
            "status: mean (sd)",
        ]

    def test_n_row_sums_to_row_count(self, clinical_df):
        table = tableone(clinical_df, "trt")
        strata_cells = table.iloc[0].drop(["variablenames", "nmissing"])
        assert sum(int(v) for v in strata_cells) == len(clinical_df)
        assert table.iloc[0]["nmissing"] == "5"

    def test_percentages_sum_to_100(self, clinical_df):
        table = tableone(clinical_df, "trt", ["stage"], categorical_variables=["stage"])
        level_rows = table[table["variablenames"].str.startswith("    ")]
        assert len(level_rows) == 4
        for stratum in ["placebo", "drug"]:
            counts, pcts = zip(*(COUNT_CELL.match(c).groups() for c in level_rows[stratum]), strict=True)
            assert sum(int(c) for c in counts) == int(row(table, "n")[stratum])
            assert sum(float(p) for p in pcts) == pytest.approx(100.0, abs=0.5)

    def test_deterministic(self, clinical_df):
        first = tableone(clinical_df, "trt", nonparametric_variables=["bili"], add_total_column=True)
        second = tableone(clinical_df, "trt", nonparametric_variables=["bili"], add_total_column=True)
        pd.testing.assert_frame_equal(first, second)

    def test_caller_frame_unchanged(self, example_df):
        before = example_df.copy()
        tableone(example_df, "grp", missing_codes=[0])
        pd.testing.assert_frame_equal(example_df, before)

    def test_missing_codes(self, example_df):
        table = tableone(example_df, "grp", ["status"], missing_codes=[0])
        assert row(table, "status: mean (sd)")["nmissing"] == "2"

    def test_strata_order(self, example_df):
        table = tableone(example_df, "grp", ["age"], strata_order=["B", "A"])
        assert list(table.columns)[1:3] == ["B", "A"]

    def test_integer_codes_with_missing_values(self):
        """🔄 Integer-coded columns with gaps print as integers, fractional ones keep decimals"""
        df = {
            "trt": [1, 1, 2, None],
            "status": [0, 1, 2, None],
            "edema": [0.0, 0.5, 1.0, 0.0],
        }
        table = tableone(df, "trt", categorical_variables=["status", "edema"])

        assert list(table.columns) == ["variablenames", "1", "2", "missing", "nmissing"]
        assert table["variablenames"].tolist() == [
            "n", "status", "    0", "    1", "    2", "edema", "    0.0", "    0.5", "    1.0",
        ]
        assert row(table, "    0")["1"] == "1 (50.0%)"
        assert row(table, "    2")["2"] == "1 (100.0%)"
        assert row(table, "status")["nmissing"] == "1"

    def test_numeric_missing_code_keeps_false(self):
        """🔄 A missing code of 0 does not blank False values"""
        df = {
            "flag": [True, False, False, True],
            "grp": ["A", "A", "B", "B"],
        }
        table = tableone(df, "grp", ["flag"], binary_variables=["flag"], missing_codes=[0])
        flag = row(table, "flag: True")
        assert flag["nmissing"] == "0"
        assert flag["A"] == "1 (50.0%)"
        assert flag["B"] == "1 (50.0%)"


class TestGeneratorResult:

    def test_result_fields(self, example_df):
        options = TableOneOptions(
            strata_column="grp",
            variables=["age", "sex"],
            categorical_variables=["sex", "weight"],
        )
        result = TableOneGenerator(example_df, options).generate()

        assert [s.name for s in result.specs] == ["age", "sex"]
        assert result.specs[1].kind is SummaryKind.CATEGORICAL
        assert result.ignored_overrides == ("weight",)
        assert result.empty_statistics == ()

    def test_missing_by_stratum(self, example_df):
        df = pd.DataFrame({"age": [30, 40, None, 50], "group": ["A", "A", "B", "B"]})
        result = TableOneGenerator(df, TableOneOptions(strata_column="group")).generate()
        assert result.missing_by_stratum == {"age": {"A": 0, "B": 1}}

        options = TableOneOptions(strata_column="grp", variables=["age", "sex"])
        result = TableOneGenerator(example_df, options).generate()
        assert result.missing_by_stratum["age"] == {"A": 1, "B": 0, "missing": 0}
        assert result.missing_by_stratum["sex"] == {"A": 0, "B": 0, "missing": 0}

    def test_empty_statistic_recorded_and_logged(self, caplog):
        df = pd.DataFrame({
            "grp": ["A", "A", "B"],
            "age": [30.0, 40.0, np.nan],
        })
        options = TableOneOptions(strata_column="grp")
        with caplog.at_level(logging.WARNING, logger="tableone"):
            result = TableOneGenerator(df, options).generate()

        assert result.empty_statistics == (EmptyStatisticWarning("age", "B"),)
        assert row(result.table, "age: mean (sd)")["B"] == ""
        assert "no non-missing values in stratum 'B'" in caplog.text

    def test_rendering(self, example_df):
        table = tableone(example_df, "grp", add_total_column=True)
        text = render_text(table)
        assert text.splitlines()[0].split() == ["variablenames", "A", "B", "missing", "total", "nmissing"]
        html = render_html(table, title="Baseline")
        assert "<caption>Baseline</caption>" in html
        assert "35.0 (7.1)" in html


class TestConfigurationErrors:

    def test_conflicting_overrides(self, example_df):
        with pytest.raises(ConfigurationError, match="more than one override list"):
            tableone(example_df, "grp", binary_variables=["sex"], categorical_variables=["sex"])

    def test_unknown_strata_column(self, example_df):
        with pytest.raises(ConfigurationError, match="Strata column 'arm' not found"):
            tableone(example_df, "arm")

    def test_unknown_variable(self, example_df):
        with pytest.raises(ConfigurationError, match="weight"):
            tableone(example_df, "grp", ["age", "weight"])

    def test_invalid_precision(self, example_df):
        with pytest.raises(ConfigurationError, match="decimal_precision"):
            tableone(example_df, "grp", decimal_precision=-1)
        with pytest.raises(ConfigurationError, match="between 0 and 15"):
            tableone(example_df, "grp", decimal_precision=16)

    def test_non_numeric_under_numeric_override(self, example_df):
        with pytest.raises(ConfigurationError, match="non-numeric"):
            tableone(example_df, "grp", ["sex"], nonparametric_variables=["sex"])

    def test_stratum_label_collision(self):
        df = pd.DataFrame({"grp": ["total", "A"], "x": [1, 2]})
        with pytest.raises(ConfigurationError, match="used more than once"):
            tableone(df, "grp", add_total_column=True)

    def test_strata_values_with_same_label(self):
        df = pd.DataFrame({"grp": pd.Series([1, "1", 2], dtype=object), "x": [1, 2, 3]})
        with pytest.raises(ConfigurationError, match="same column label"):
            tableone(df, "grp")

    def test_failure_is_logged(self, example_df, caplog):
        with caplog.at_level(logging.ERROR, logger="tableone"):
            with pytest.raises(ConfigurationError):
                tableone(example_df, "arm")
        assert "[table_one] FAILED" in caplog.text

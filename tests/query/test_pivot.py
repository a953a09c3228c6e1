"""
Tests for pivoting of raw query result rows.
"""

import json
import os

import pytest

from semcubes.config import PivotOptions
from semcubes.errors import (
    ArgumentError,
    InvalidPathFormatError,
    NoSuchAttributeError,
    NoSuchDimensionError,
    NoSuchGroupingError,
    NoSuchModelError,
)
from semcubes.metadata import read_schema
from semcubes.query.paths import PathResolver
from semcubes.query.pivot import (
    PivotAccumulator,
    PivotEngine,
    PivotResult,
    composite_key,
    pivot,
)
from semcubes.query.request import QueryRequest

SCHEMA_PATH = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "..", "data", "sales_schema.json"
)

DAYS_2024_01_15 = 19737


@pytest.fixture(scope="module")
def schema():
    return read_schema(SCHEMA_PATH)


@pytest.fixture
def engine(schema):
    return PivotEngine(schema)


def sales_rows():
    return [
        {"geography.country": "USA", "dates.year": 2023, "revenue": 100, "quantity": 1},
        {"geography.country": "UK", "dates.year": 2024, "revenue": 80, "quantity": 2},
        {"geography.country": "USA", "dates.year": 2024, "revenue": 120, "quantity": 3},
        {"geography.country": "DE", "dates.year": 2022, "revenue": 40, "quantity": None},
    ]


class TestCompositeKey:
    def test_row_and_column_keys(self):
        pairs = [("geography.country", "USA"), ("dates.year", 2023)]
        assert composite_key(pairs, ",") == "geography.country:USA,dates.year:2023"
        assert composite_key(pairs, "|") == "geography.country:USA|dates.year:2023"

    def test_values(self):
        assert composite_key([("a.b", None)], ",") == "a.b:null"
        assert composite_key([("a.b", 2023.0)], ",") == "a.b:2023"
        assert composite_key([("a.b", "")], ",") == "a.b:"

    def test_empty(self):
        assert composite_key([], ",") == ""


class TestScenarios:
    def test_single_row_with_columns(self, schema):
        rows = [{"geography.country": "USA", "dates.year": 2023, "revenue": 50000}]
        query = {
            "model": "sales",
            "rows": ["geography.country"],
            "columns": ["dates.year"],
            "metrics": ["revenue"],
        }
        result = pivot(rows, schema, "sales", query)
        assert result == [{"geography.country": "USA", "dates.year:2023": [50000]}]

    def test_four_segment_path_fails(self, engine):
        query = {"model": "sales", "rows": ["a.b.c.d"], "metrics": ["revenue"]}
        with pytest.raises(InvalidPathFormatError):
            engine.pivot(sales_rows(), query)

    @pytest.mark.parametrize(
        "query",
        [
            {"model": "sales"},
            {"model": "sales", "metrics": ["revenue"]},
            {"model": "sales", "rows": ["geography.country"], "metrics": ["revenue"]},
            {
                "model": "sales",
                "rows": ["geography.country"],
                "columns": ["dates.year"],
                "metrics": ["revenue", "quantity"],
            },
        ],
    )
    def test_empty_input(self, engine, query):
        result = engine.pivot([], query)
        assert list(result) == []
        assert result.column_keys == []

    def test_zero_is_not_null(self, engine):
        rows = [{"geography.country": "USA", "dates.year": 2023, "revenue": 0}]

        with_columns = engine.pivot(
            rows,
            {
                "model": "sales",
                "rows": ["geography.country"],
                "columns": ["dates.year"],
                "metrics": ["revenue"],
            },
        )
        assert with_columns[0]["dates.year:2023"] == [0]
        assert with_columns[0]["dates.year:2023"][0] is not None

        without_columns = engine.pivot(
            rows,
            {"model": "sales", "rows": ["geography.country"], "metrics": ["revenue"]},
        )
        assert without_columns[0]["metrics"] == [0]
        assert without_columns[0]["metrics"][0] is not None

    def test_repeated_observations(self, engine):
        rows = [
            {"geography.country": "USA", "dates.year": 2023, "revenue": 10},
            {"geography.country": "USA", "dates.year": 2023, "revenue": 20},
        ]
        result = engine.pivot(
            rows,
            {
                "model": "sales",
                "rows": ["geography.country"],
                "columns": ["dates.year"],
                "metrics": ["revenue"],
            },
        )
        assert len(result) == 1
        assert result[0]["dates.year:2023"] == [10.0, 20.0]


class TestDensify:
    QUERY = {
        "model": "sales",
        "rows": ["geography.country"],
        "columns": ["dates.year"],
        "metrics": ["revenue", "quantity"],
    }

    def test_uniform_column_keys(self, engine):
        result = engine.pivot(sales_rows(), self.QUERY)

        expected_keys = ["dates.year:2022", "dates.year:2023", "dates.year:2024"]
        assert result.column_keys == expected_keys
        for row in result:
            assert sorted(k for k in row if ":" in k) == expected_keys

    def test_missing_combinations_are_null_filled(self, engine):
        result = engine.pivot(sales_rows(), self.QUERY)
        by_country = {row["geography.country"]: row for row in result}

        assert by_country["USA"]["dates.year:2022"] == [None, None]
        assert by_country["USA"]["dates.year:2023"] == [100.0, 1.0]
        assert by_country["USA"]["dates.year:2024"] == [120.0, 3.0]
        assert by_country["UK"]["dates.year:2023"] == [None, None]
        assert by_country["DE"]["dates.year:2022"] == [40.0, None]

    def test_rows_keep_first_seen_order(self, engine):
        result = engine.pivot(sales_rows(), self.QUERY)
        assert [row["geography.country"] for row in result] == ["USA", "UK", "DE"]

    def test_column_keys_sorted_as_text(self, engine):
        rows = [
            {"geography.country": "USA", "dates.year": 10, "revenue": 1},
            {"geography.country": "USA", "dates.year": 9, "revenue": 1},
        ]
        result = engine.pivot(rows, self.QUERY)
        assert result.column_keys == ["dates.year:10", "dates.year:9"]

    def test_output_row_key_order(self, engine):
        result = engine.pivot(sales_rows(), self.QUERY)
        assert list(result[0].keys()) == [
            "geography.country",
            "dates.year:2022",
            "dates.year:2023",
            "dates.year:2024",
        ]

    def test_null_fill_length_follows_metric_count(self, engine):
        query = dict(self.QUERY, metrics=["revenue", "quantity", "clicks"])
        result = engine.pivot(sales_rows(), query)
        assert result[1]["dates.year:2023"] == [None, None, None]

    def test_columns_without_metrics(self, engine):
        query = dict(self.QUERY, metrics=[])
        result = engine.pivot(sales_rows(), query)
        assert result[0]["dates.year:2022"] == []
        assert result[0]["dates.year:2023"] == []

    def test_deterministic(self, engine):
        first = engine.pivot(sales_rows(), self.QUERY).rows
        second = engine.pivot(sales_rows(), self.QUERY).rows
        assert json.dumps(first) == json.dumps(second)


class TestMetricsWithoutColumns:
    def test_metrics_sequence(self, engine):
        rows = [
            {"geography.country": "USA", "revenue": 10, "quantity": 2},
            {"geography.country": "UK", "revenue": 7, "quantity": 1},
            {"geography.country": "USA", "revenue": 5, "quantity": None},
        ]
        result = engine.pivot(
            rows,
            {
                "model": "sales",
                "rows": ["geography.country"],
                "metrics": ["revenue", "quantity"],
            },
        )
        assert result.rows == [
            {"geography.country": "USA", "metrics": [10.0, 2.0, 5.0, None]},
            {"geography.country": "UK", "metrics": [7.0, 1.0]},
        ]
        assert result.column_keys == []

    def test_absent_metric_is_null(self, engine):
        result = engine.pivot(
            [{"geography.country": "USA"}],
            {"model": "sales", "rows": ["geography.country"], "metrics": ["revenue"]},
        )
        assert result[0]["metrics"] == [None]

    def test_no_rows_requested(self, engine):
        rows = [{"revenue": 1}, {"revenue": 2}]
        result = engine.pivot(rows, {"model": "sales", "metrics": ["revenue"]})
        assert result.rows == [{"metrics": [1.0, 2.0]}]

    def test_custom_metrics_key(self, schema):
        engine = PivotEngine(schema, PivotOptions(metrics_key="values"))
        result = engine.pivot(
            [{"revenue": 3}], {"model": "sales", "metrics": ["revenue"]}
        )
        assert result.rows == [{"values": [3.0]}]


class TestFormatting:
    def test_row_fields_are_formatted(self, engine):
        rows = [
            {"dates.date": DAYS_2024_01_15, "revenue": 1},
            {"dates.date": DAYS_2024_01_15 * 86400000, "revenue": 2},
        ]
        result = engine.pivot(
            rows, {"model": "sales", "rows": ["dates.date"], "metrics": ["revenue"]}
        )
        # Raw values differ, so these are two row groups with the same label
        assert result.rows == [
            {"dates.date": "2024-01-15", "metrics": [1.0]},
            {"dates.date": "2024-01-15", "metrics": [2.0]},
        ]

    def test_column_keys_use_formatted_values(self, engine):
        rows = [
            {"geography.country": "USA", "dates.date": DAYS_2024_01_15, "revenue": 1},
            {
                "geography.country": "USA",
                "dates.date": DAYS_2024_01_15 * 86400000,
                "revenue": 2,
            },
        ]
        result = engine.pivot(
            rows,
            {
                "model": "sales",
                "rows": ["geography.country"],
                "columns": ["dates.date"],
                "metrics": ["revenue"],
            },
        )
        assert result.rows == [
            {"geography.country": "USA", "dates.date:2024-01-15": [1.0, 2.0]}
        ]

    def test_out_of_range_date_is_plain_text(self, engine):
        result = engine.pivot(
            [{"dates.date": -86400000, "revenue": 1}],
            {"model": "sales", "rows": ["dates.date"], "metrics": ["revenue"]},
        )
        assert result.rows == [{"dates.date": "-86400000", "metrics": [1.0]}]

    def test_missing_row_value(self, engine):
        result = engine.pivot(
            [{"revenue": 1}],
            {"model": "sales", "rows": ["geography.country"], "metrics": ["revenue"]},
        )
        assert result.rows == [{"geography.country": "", "metrics": [1.0]}]

    def test_multiple_columns(self, engine):
        rows = [
            {
                "geography.country": "USA",
                "dates.year": 2023,
                "geography.region": "West",
                "revenue": 5,
            }
        ]
        result = engine.pivot(
            rows,
            {
                "model": "sales",
                "rows": ["geography.country"],
                "columns": ["dates.year", "geography.region"],
                "metrics": ["revenue"],
            },
        )
        assert result.column_keys == ["dates.year:2023|geography.region:West"]

    def test_aliased_and_qualified_paths(self, engine):
        rows = [
            {
                "orders.prod.category": "Books",
                "_table.datasetGroup": "orders",
                "revenue": 9,
            }
        ]
        result = engine.pivot(
            rows,
            {
                "model": "sales",
                "rows": ["orders.products.category"],
                "columns": ["_table.datasetGroup"],
                "metrics": ["revenue"],
            },
        )
        assert result.rows == [
            {"orders.prod.category": "Books", "_table.datasetGroup:orders": [9.0]}
        ]

    def test_timestamp_column(self, schema):
        micros = (DAYS_2024_01_15 * 86400 + 14 * 3600 + 30 * 60) * 1000000
        engine = PivotEngine(schema, PivotOptions(timestamp_format="%Y-%m-%d %H:%M"))
        result = engine.pivot(
            [{"flags.created_at": micros, "revenue": 1}],
            {"model": "sales", "columns": ["flags.created_at"], "metrics": ["revenue"]},
        )
        assert result.rows == [{"flags.created_at:2024-01-15 14:30": [1.0]}]


class TestFailures:
    @pytest.mark.parametrize(
        "query, error",
        [
            ({"model": "sales", "rows": ["customers.name"]}, NoSuchDimensionError),
            ({"model": "sales", "columns": ["facebook.dates.year"]}, NoSuchGroupingError),
            ({"model": "sales", "columns": ["dates.week"]}, NoSuchAttributeError),
            ({"model": "sales", "rows": ["dates"]}, InvalidPathFormatError),
            ({"model": "marketing", "rows": ["dates.year"]}, NoSuchModelError),
            ({"model": "sales", "rows": "dates.year"}, ArgumentError),
        ],
    )
    def test_errors(self, engine, query, error):
        with pytest.raises(error):
            engine.pivot(sales_rows(), query)

    def test_paths_are_validated_before_rows(self, engine):
        def rows():
            raise AssertionError("rows must not be read")
            yield {}

        with pytest.raises(NoSuchDimensionError):
            engine.pivot(rows(), {"model": "sales", "rows": ["customers.name"]})

    def test_invalid_path_fails_on_empty_input(self, engine):
        with pytest.raises(InvalidPathFormatError):
            engine.pivot([], {"model": "sales", "rows": ["a.b.c.d"]})

    def test_model_name_override(self, engine):
        result = engine.pivot(
            [{"revenue": 1}],
            QueryRequest(model="marketing", metrics=["revenue"]),
            model_name="sales",
        )
        assert result.rows == [{"metrics": [1.0]}]

    def test_no_schema(self):
        with pytest.raises(ArgumentError):
            PivotEngine(None)


class TestAccumulator:
    QUERY = TestDensify.QUERY

    def make_accumulator(self, schema):
        resolver = PathResolver(schema.model("sales"))
        return PivotAccumulator(
            resolver.resolve_all(self.QUERY["rows"]),
            resolver.resolve_all(self.QUERY["columns"]),
            self.QUERY["metrics"],
        )

    def test_merge_equals_single_pass(self, schema, engine):
        data = sales_rows() + [
            {"geography.country": "USA", "dates.year": 2023, "revenue": 7, "quantity": 4}
        ]
        expected = engine.pivot(data, self.QUERY)

        first = self.make_accumulator(schema)
        first.extend(data[:2])
        second = self.make_accumulator(schema)
        second.extend(data[2:])
        first.merge(second)

        merged = first.densify()
        assert merged.rows == expected.rows
        assert merged.column_keys == expected.column_keys
        assert first.row_count == len(data)
        # USA 2023 was observed in both partitions
        assert merged[0]["dates.year:2023"] == [100.0, 1.0, 7.0, 4.0]

    def test_merge_different_queries(self, schema):
        first = self.make_accumulator(schema)
        other = PivotAccumulator([], [], ["revenue"])
        with pytest.raises(ArgumentError):
            first.merge(other)

    def test_engine_accumulator(self, engine):
        accumulator = engine.accumulator(self.QUERY)
        accumulator.add(sales_rows()[0])
        assert len(accumulator) == 1
        assert accumulator.column_keys == ["dates.year:2023"]
        assert accumulator.row_key(sales_rows()[0]) == "geography.country:USA"

    def test_result_to_dict(self, engine):
        result = engine.pivot(sales_rows()[:1], self.QUERY)
        assert isinstance(result, PivotResult)
        assert result.to_dict() == {
            "rows": [{"geography.country": "USA", "dates.year:2023": [100.0, 1.0]}],
            "row_attributes": ["geography.country"],
            "column_keys": ["dates.year:2023"],
            "metrics": ["revenue", "quantity"],
        }

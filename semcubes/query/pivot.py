"""
Pivoting of flat query result rows.

Rows are grouped by the values of the requested row attributes. For every
row group the metric values are collected per combination of column
attribute values (the *column key*). After all rows were consumed the result
is densified: every output row gets every column key observed in the input,
missing combinations are filled with ``None`` values.

The accumulation can be partitioned: build one `PivotAccumulator` per
partition and `merge` them in partition order before densifying.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..common import IgnoringDictionary
from ..config import PivotOptions
from ..errors import ArgumentError
from ..logging import create_logger, get_logger
from ..metadata import Schema, read_schema
from .formatters import format_attribute_value, format_scalar, parse_metric_value
from .paths import PathResolver, ResolvedPath
from .request import QueryRequest

__all__ = [
    "PAIR_SEPARATOR",
    "composite_key",
    "PivotAccumulator",
    "PivotResult",
    "PivotEngine",
    "pivot",
]

PAIR_SEPARATOR = ":"

RawRow = Mapping[str, Any]
MetricValues = list[float | None]


def _key_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    return format_scalar(value)


def composite_key(pairs: Iterable[tuple[str, Any]], separator: str) -> str:
    """Build a composite key from ordered ``(alias, value)`` pairs, e.g.
    ``geography.country:USA,dates.year:2023``. Used for both row keys and
    column keys."""
    return separator.join(
        f"{alias}{PAIR_SEPARATOR}{_key_text(value)}" for alias, value in pairs
    )


@dataclass(slots=True)
class _PivotRecord:
    """Accumulated row: formatted row attribute values and metric value
    sequences per column key."""

    fields: dict[str, str]
    cells: dict[str, MetricValues] = field(default_factory=dict)


class PivotAccumulator:
    """Collects raw rows into pivot records.

    Args:
        rows: resolved row attribute paths, in request order
        columns: resolved column attribute paths, in request order
        metrics: metric names, in request order
        options: key and formatting options
    """

    def __init__(
        self,
        rows: list[ResolvedPath],
        columns: list[ResolvedPath],
        metrics: list[str],
        options: PivotOptions | None = None,
    ):
        self.rows = list(rows)
        self.columns = list(columns)
        self.metrics = list(metrics)
        self.options = options or PivotOptions()

        self.row_count = 0
        self._records: dict[str, _PivotRecord] = {}
        self._column_keys: set[str] = set()

    def _format(self, resolved: ResolvedPath, value: Any) -> str:
        return format_attribute_value(
            value,
            resolved.attribute,
            date_threshold=self.options.date_millis_threshold,
            timestamp_format=self.options.timestamp_format,
        )

    def row_key(self, row: RawRow) -> str:
        """Key of the row group `row` belongs to, built from raw values."""
        pairs = [(r.alias, row.get(r.alias)) for r in self.rows]
        return composite_key(pairs, self.options.row_separator)

    def column_key(self, row: RawRow) -> str:
        """Column key of `row`, built from formatted values."""
        pairs = [(c.alias, self._format(c, row.get(c.alias))) for c in self.columns]
        return composite_key(pairs, self.options.column_separator)

    def metric_values(self, row: RawRow) -> MetricValues:
        return [parse_metric_value(row.get(metric)) for metric in self.metrics]

    def add(self, row: RawRow) -> None:
        """Accumulate one raw row."""
        key = self.row_key(row)

        record = self._records.get(key)
        if record is None:
            fields = {r.alias: self._format(r, row.get(r.alias)) for r in self.rows}
            record = _PivotRecord(fields)
            self._records[key] = record

        if self.columns:
            cell_key = self.column_key(row)
            self._column_keys.add(cell_key)
        else:
            cell_key = self.options.metrics_key

        # Repeated observations extend the sequence
        record.cells.setdefault(cell_key, []).extend(self.metric_values(row))
        self.row_count += 1

    def extend(self, rows: Iterable[RawRow]) -> None:
        for row in rows:
            self.add(row)

    def merge(self, other: PivotAccumulator) -> None:
        """Merge accumulated state of `other` into this accumulator. Metric
        values of `other` are appended after the values of this one, row
        groups first seen in `other` follow the groups of this one."""
        if (
            [r.alias for r in self.rows] != [r.alias for r in other.rows]
            or [c.alias for c in self.columns] != [c.alias for c in other.columns]
            or self.metrics != other.metrics
        ):
            raise ArgumentError("Can not merge accumulators of different queries")

        for key, theirs in other._records.items():
            ours = self._records.get(key)
            if ours is None:
                ours = _PivotRecord(dict(theirs.fields))
                self._records[key] = ours
            for cell_key, values in theirs.cells.items():
                ours.cells.setdefault(cell_key, []).extend(values)

        self._column_keys.update(other._column_keys)
        self.row_count += other.row_count

    @property
    def column_keys(self) -> list[str]:
        """Sorted distinct column keys observed so far."""
        return sorted(self._column_keys)

    def __len__(self) -> int:
        return len(self._records)

    def densify(self) -> PivotResult:
        """Build output rows in row group first-seen order, each with the
        same set of column keys."""
        column_keys = self.column_keys
        empty = [None] * len(self.metrics)
        metrics_key = self.options.metrics_key

        result_rows = []
        for record in self._records.values():
            out: dict[str, Any] = dict(record.fields)

            if self.columns:
                for key in column_keys:
                    values = record.cells.get(key)
                    out[key] = list(values) if values is not None else list(empty)
            else:
                out[metrics_key] = list(record.cells.get(metrics_key, []))

            result_rows.append(out)

        return PivotResult(
            rows=result_rows,
            column_keys=column_keys if self.columns else [],
            row_attributes=[r.alias for r in self.rows],
            metrics=self.metrics,
        )


class PivotResult:
    """Densified pivot output: an ordered sequence of row dictionaries."""

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        column_keys: list[str] | None = None,
        row_attributes: list[str] | None = None,
        metrics: list[str] | None = None,
    ):
        self.rows = rows or []
        self.column_keys = column_keys or []
        self.row_attributes = row_attributes or []
        self.metrics = metrics or []

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, index: int) -> dict[str, Any]:
        return self.rows[index]

    def __bool__(self) -> bool:
        return bool(self.rows)

    def to_dict(self) -> dict[str, Any]:
        d = IgnoringDictionary()

        d["rows"] = self.rows
        d["row_attributes"] = self.row_attributes
        d["column_keys"] = self.column_keys
        d["metrics"] = self.metrics

        return d


class PivotEngine:
    """Pivots raw query result rows of the models of a schema."""

    def __init__(self, schema: Schema | dict, options: PivotOptions | None = None):
        if not schema:
            raise ArgumentError("No schema given for pivot engine")

        self.schema = read_schema(schema)
        self.options = options or PivotOptions()

        if self.options.log_level or self.options.log_path:
            self.logger = create_logger(self.options.log_level, self.options.log_path)
        else:
            self.logger = get_logger()

    def accumulator(
        self, query: QueryRequest | dict, model_name: str | None = None
    ) -> PivotAccumulator:
        """Create an empty accumulator for `query`. All attribute paths of
        the query are resolved here, before any row is seen."""
        query = QueryRequest.from_spec(query)
        model = self.schema.model(model_name or query.model)

        resolver = PathResolver(model)
        rows = resolver.resolve_all(query.rows)
        columns = resolver.resolve_all(query.columns)

        self.logger.debug(
            f"pivot of model '{model.name}': rows {[r.alias for r in rows]}, "
            f"columns {[c.alias for c in columns]}, metrics {query.metrics}"
        )

        return PivotAccumulator(rows, columns, query.metrics, self.options)

    def pivot(
        self,
        data: Iterable[RawRow],
        query: QueryRequest | dict,
        model_name: str | None = None,
    ) -> PivotResult:
        """Pivot raw `data` rows as requested by `query`.

        `model_name` overrides the model named in the query.

        Raises:
            ArgumentError: invalid query request
            NoSuchModelError: unknown model
            InvalidPathFormatError, NoSuchGroupingError, NoSuchDimensionError,
            NoSuchAttributeError: a path of the query can not be resolved
        """
        accumulator = self.accumulator(query, model_name)
        accumulator.extend(data)
        result = accumulator.densify()

        self.logger.info(
            f"pivoted {accumulator.row_count} rows into {len(result)} rows "
            f"with {len(result.column_keys)} column keys"
        )
        return result


def pivot(
    data: Iterable[RawRow],
    schema: Schema | dict,
    model_name: str,
    query: QueryRequest | dict,
    options: PivotOptions | None = None,
) -> list[dict[str, Any]]:
    """Pivot `data` and return the list of output rows."""
    engine = PivotEngine(schema, options)
    return engine.pivot(data, query, model_name).rows

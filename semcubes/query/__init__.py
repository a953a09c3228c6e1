"""
Query side of semcubes: attribute path resolution, value formatting and
pivoting of query results.
"""

from .formatters import (
    format_attribute_value,
    format_date,
    format_timestamp,
    parse_metric_value,
    value_format,
)
from .paths import (
    AttributeRef,
    PathResolver,
    ResolvedPath,
    attribute_alias,
    resolve_attribute,
    resolve_attribute_ref,
    split_path,
)
from .pivot import PivotAccumulator, PivotEngine, PivotResult, composite_key, pivot
from .request import QueryFilter, QueryRequest

__all__ = [
    "AttributeRef",
    "PathResolver",
    "ResolvedPath",
    "attribute_alias",
    "resolve_attribute",
    "resolve_attribute_ref",
    "split_path",
    "format_attribute_value",
    "format_date",
    "format_timestamp",
    "parse_metric_value",
    "value_format",
    "PivotAccumulator",
    "PivotEngine",
    "PivotResult",
    "composite_key",
    "pivot",
    "QueryFilter",
    "QueryRequest",
]

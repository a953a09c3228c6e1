"""
Attribute, measure and metric definitions.

Attributes are the columns of a dimension (or of a degenerate dimension on
the fact dataset). Measures and metrics are carried as plain data - the
pivot works with metric values that already come computed from the query
execution layer.
"""

import re
from enum import Enum
from typing import Any, ClassVar

from pydantic import Field, field_validator

from .base import MetadataObject

__all__ = [
    "DataType",
    "Aggregation",
    "Attribute",
    "Measure",
    "MeasureFilter",
    "Metric",
    "validate_data_type",
]


class DataType(str, Enum):
    """Scalar data types of the semantic layer. Decimals are written as
    ``decimal(precision, scale)`` and are not enumerated here."""

    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    F32 = "f32"
    F64 = "f64"
    BOOL = "bool"
    STRING = "string"
    DATE = "date"
    TIMESTAMP = "timestamp"


class Aggregation(str, Enum):
    """Aggregation functions for measures."""

    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    COUNT_DISTINCT = "count_distinct"
    MIN = "min"
    MAX = "max"


DECIMAL_PATTERN = re.compile(r"^decimal\(\s*(\d+)\s*,\s*(\d+)\s*\)$")

NUMERIC_TYPES = {"i8", "i16", "i32", "i64", "f32", "f64"}


def validate_data_type(value: Any) -> str:
    """Normalize a data type name to its lower-case form. Types not known
    here are kept as opaque lower-case names, an empty name is a string."""
    if isinstance(value, DataType):
        return value.value

    text = str(value).strip().lower()
    if not text:
        return DataType.STRING.value
    if text in {t.value for t in DataType}:
        return text

    match = DECIMAL_PATTERN.match(text)
    if match:
        return f"decimal({match.group(1)}, {match.group(2)})"

    return text


class Attribute(MetadataObject):
    """Dimension attribute - a named column with a declared semantic type."""

    column: str | None = Field(
        None, description="Physical column name, defaults to the attribute name"
    )
    type: str = Field("string", description="Data type of the attribute")
    examples: list[str] = Field(
        default_factory=list, description="Sample values of the attribute"
    )

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v):
        if v is None:
            return DataType.STRING.value
        return validate_data_type(v)

    @property
    def column_name(self) -> str:
        """Physical column of the attribute."""
        return self.column or self.name

    @property
    def is_date(self) -> bool:
        return self.type == DataType.DATE.value

    @property
    def is_timestamp(self) -> bool:
        return self.type == DataType.TIMESTAMP.value

    @property
    def is_numeric(self) -> bool:
        return self.type in NUMERIC_TYPES or DECIMAL_PATTERN.match(self.type) is not None


class MeasureFilter(MetadataObject):
    """Row-level filter of a measure. `name` is not used, the filter is
    identified by its `field`."""

    name: str = Field("filter", description="Filter identifier")
    field: str = Field(..., description="Field to filter on (dimension.attribute)")
    user_attribute: str | None = Field(
        None, alias="userAttribute", description="User attribute for row security"
    )


class Measure(MetadataObject):
    """Aggregated value defined on a grouping."""

    aggregation: Aggregation = Field(..., description="Aggregation function")
    expr: Any = Field(..., description="Column name or structured expression")
    format: str | None = Field(None, description="Display format, e.g. '$#,##0.00'")
    type: str | None = Field(None, description="Result data type")
    synonyms: list[str] = Field(default_factory=list)
    hidden: bool = False
    data_filter: list[MeasureFilter] = Field(default_factory=list, alias="dataFilter")

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v):
        if v is None:
            return v
        return validate_data_type(v)


class Metric(MetadataObject):
    """Derived calculation from measures. These are the names requested in
    the ``metrics`` list of a query."""

    # Default result type of a metric
    default_type: ClassVar[str] = DataType.F64.value

    expr: Any = Field(..., description="Measure name or structured expression")
    format: str | None = Field(None, description="Display format")
    type: str | None = Field(None, description="Result data type")
    synonyms: list[str] = Field(default_factory=list)
    hidden: bool = False

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v):
        if v is None:
            return v
        return validate_data_type(v)

    @property
    def result_type(self) -> str:
        return self.type or self.default_type

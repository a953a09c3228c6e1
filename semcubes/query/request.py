"""
Pydantic models of analytics query requests.

Paths in `rows`, `columns` and `dimensions` use the ``dimension.attribute``
or ``grouping.dimension.attribute`` format. Filters are carried for the
query execution layer, the pivot does not evaluate them.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ArgumentError

__all__ = ["FilterOperator", "QueryFilter", "QueryRequest"]

FilterOperator = Literal["eq", "ne", "gt", "gte", "lt", "lte", "in", "not_in"]

Scalar = str | int | float


class QueryFilter(BaseModel):
    """Filter of a query request."""

    model_config = ConfigDict(extra="forbid")

    field: str = Field(..., description="Field to filter on (dimension.attribute)")
    operator: FilterOperator | None = Field(None, description="Comparison operator")
    value: Scalar | list[Scalar] = Field(..., description="Single value or a list")

    @property
    def effective_operator(self) -> str:
        """Operator of the filter, ``in`` for lists and ``eq`` for single
        values when not specified."""
        if self.operator:
            return self.operator
        return "in" if isinstance(self.value, list) else "eq"


class QueryRequest(BaseModel):
    """Analytics query request. Keys not known here (paging, limits, ...)
    belong to other layers and are ignored."""

    model_config = ConfigDict(extra="ignore")

    model: str = Field(..., min_length=1, description="Model to query")
    dimensions: list[str] = Field(
        default_factory=list, description="Dimension attributes to include"
    )
    rows: list[str] = Field(default_factory=list, description="Pivot row attributes")
    columns: list[str] = Field(
        default_factory=list, description="Pivot column attributes"
    )
    metrics: list[str] = Field(default_factory=list, description="Metrics to compute")
    filter: list[QueryFilter] = Field(default_factory=list, description="Filters")

    @field_validator("dimensions", "rows", "columns", "metrics", "filter", mode="before")
    @classmethod
    def convert_none(cls, v):
        return v if v is not None else []

    @classmethod
    def from_spec(cls, spec: Any) -> QueryRequest:
        """Create a request from a dictionary or return `spec` if it already
        is a request.

        Raises:
            ArgumentError: when `spec` is not a valid request.
        """
        if isinstance(spec, cls):
            return spec
        if not isinstance(spec, dict):
            raise ArgumentError(f"Invalid query request type: {type(spec)}")
        try:
            return cls.model_validate(spec)
        except ValidationError as e:
            raise ArgumentError(f"Invalid query request: {e}", cause=e) from e

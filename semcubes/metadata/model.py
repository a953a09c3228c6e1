"""
Semantic model, grouping and schema definitions.

A `Model` is the queryable business entity. It holds an ordered list of
`Grouping` objects - sets of physical datasets sharing one dimension and
measure vocabulary - and an optional list of model-level dimensions that are
reachable with unqualified two-segment paths.
"""

from __future__ import annotations

import json
import os
from typing import IO, Any, NamedTuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from ..common import get_close_match
from ..errors import ArgumentError, ModelError, NoSuchDimensionError, NoSuchModelError
from ..logging import get_logger
from .attributes import Measure, Metric
from .base import MetadataObject
from .dimension import (
    DegenerateDimensionRef,
    Dimension,
    DimensionRef,
    dimension_ref_from_metadata,
)

__all__ = [
    "Dataset",
    "Grouping",
    "Model",
    "Schema",
    "DimensionAttributeInfo",
    "dimension_attributes",
    "read_schema",
]


class Dataset(BaseModel):
    """Physical dataset of a grouping. Declares which dimension attributes
    and measures it provides; dataset selection is done by the query layer."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    dataset: str = Field(..., description="Physical dataset name")
    label: str | None = None
    description: str | None = None
    uuid: str | None = None
    properties: dict[str, str] = Field(default_factory=dict)
    columns: list[dict[str, Any]] = Field(default_factory=list)
    dimensions: dict[str, list[str]] = Field(default_factory=dict)
    measures: list[str] = Field(default_factory=list)
    row_filter: dict[str, Any] | None = Field(None, alias="rowFilter")


class Grouping(MetadataObject):
    """Set of datasets sharing dimension references and measures."""

    dimensions: list[DimensionRef] = Field(default_factory=list)
    measures: list[Measure] = Field(default_factory=list)
    datasets: list[Dataset] = Field(default_factory=list)

    @field_validator("dimensions", mode="before")
    @classmethod
    def convert_dimensions_input(cls, v):
        """Classify raw dimension references into their variants."""
        if not v:
            return []
        if not isinstance(v, list):
            raise ValueError(f"Dimensions must be a list, got {type(v)}")
        return [dimension_ref_from_metadata(item) for item in v]

    @model_validator(mode="after")
    def validate_grouping(self):
        names = [ref.name for ref in self.dimensions]
        if len(names) != len(set(names)):
            raise ValueError(f"Grouping '{self.name}' has duplicate dimension names")
        return self

    def find_dimension(self, name: str) -> DimensionRef | None:
        """Returns the dimension reference `name` or ``None``."""
        for ref in self.dimensions:
            if ref.name == name:
                return ref
        return None

    @property
    def dimension_names(self) -> list[str]:
        return [ref.name for ref in self.dimensions]

    def __repr__(self):
        return f"<Grouping(name='{self.name}', dimensions={len(self.dimensions)})>"


class Model(MetadataObject):
    """Semantic model - the queryable business entity."""

    namespace: str | None = None
    dimensions: list[Dimension] = Field(default_factory=list)
    groupings: list[Grouping] = Field(
        default_factory=list,
        validation_alias=AliasChoices("groupings", "dataset_groups", "tableGroups"),
        serialization_alias="dataset_groups",
    )
    metrics: list[Metric] = Field(default_factory=list)
    data_filter: list[dict[str, Any]] = Field(default_factory=list, alias="dataFilter")

    @field_validator("dimensions", "metrics", mode="before")
    @classmethod
    def convert_none(cls, v):
        return v if v is not None else []

    @model_validator(mode="after")
    def validate_model(self):
        for label, names in (
            ("dimension", [dim.name for dim in self.dimensions]),
            ("grouping", [grp.name for grp in self.groupings]),
            ("metric", [metric.name for metric in self.metrics]),
        ):
            if len(names) != len(set(names)):
                raise ValueError(f"Model '{self.name}' has duplicate {label} names")
        return self

    def grouping(self, name: str) -> Grouping | None:
        """Returns grouping `name` or ``None``."""
        for grouping in self.groupings:
            if grouping.name == name:
                return grouping
        return None

    def find_dimension(self, name: str) -> Dimension | None:
        """Returns model-level dimension `name` or ``None``."""
        for dimension in self.dimensions:
            if dimension.name == name:
                return dimension
        return None

    def dimension(self, name: str) -> Dimension:
        """Get model-level dimension by name."""
        dimension = self.find_dimension(name)
        if dimension is None:
            available = [dim.name for dim in self.dimensions]
            raise NoSuchDimensionError(
                f"Model '{self.name}' has no dimension '{name}'."
                f"{get_close_match(name, available)}",
                name,
                scope=f"model '{self.name}'",
            )
        return dimension

    def metric(self, name: str) -> Metric | None:
        """Returns metric `name` or ``None``."""
        for metric in self.metrics:
            if metric.name == name:
                return metric
        return None

    @property
    def grouping_names(self) -> list[str]:
        return [grouping.name for grouping in self.groupings]

    def __repr__(self):
        return f"<Model(name='{self.name}', groupings={len(self.groupings)})>"


class Schema(BaseModel):
    """Complete semantic schema - a list of models."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    models: list[Model] = Field(
        default_factory=list,
        validation_alias=AliasChoices("models", "semantic_models"),
        serialization_alias="semantic_models",
    )

    @model_validator(mode="after")
    def validate_schema(self):
        names = [model.name for model in self.models]
        if len(names) != len(set(names)):
            raise ValueError("Schema has duplicate model names")
        return self

    @property
    def model_names(self) -> list[str]:
        return [model.name for model in self.models]

    def model(self, name: str) -> Model:
        """
        Get model by name.

        Raises:
            NoSuchModelError: If the model is not in the schema
        """
        for model in self.models:
            if model.name == name:
                return model

        available = self.model_names
        raise NoSuchModelError(
            f"Model '{name}' not found in schema.{get_close_match(name, available)} "
            f"Available models: {', '.join(available) if available else 'none'}",
            name,
            scope="schema",
        )


def read_schema(source: str | os.PathLike | IO[str] | dict) -> Schema:
    """Read a schema from `source`: a path to a JSON file, an open file or an
    already parsed dictionary.

    Raises:
        ModelError: when the document is not valid JSON or not a valid
            schema.
    """
    if isinstance(source, Schema):
        return source

    if isinstance(source, dict):
        metadata = source
    elif hasattr(source, "read"):
        try:
            metadata = json.load(source)
        except ValueError as e:
            raise ModelError(f"Schema is not a valid JSON document: {e}", cause=e)
    elif isinstance(source, (str, os.PathLike)):
        get_logger().debug(f"reading schema from '{os.fspath(source)}'")
        try:
            with open(source, encoding="utf-8") as f:
                metadata = json.load(f)
        except ValueError as e:
            raise ModelError(
                f"Schema file '{os.fspath(source)}' is not a valid JSON document: {e}",
                cause=e,
            )
    else:
        raise ArgumentError(f"Invalid schema source type: {type(source)}")

    try:
        return Schema.model_validate(metadata)
    except ValidationError as e:
        raise ModelError(f"Invalid schema: {e}", cause=e)


class DimensionAttributeInfo(NamedTuple):
    """Queryable dimension attribute. `key` is the path to use in a query
    request."""

    grouping: str | None
    dimension: str
    attribute: str
    key: str
    is_conformed: bool
    is_virtual: bool


def dimension_attributes(model: Model) -> list[DimensionAttributeInfo]:
    """List every queryable dimension attribute of `model`.

    Grouping-scoped references yield three-part keys
    (``grouping.dimension.attribute``). Model-level dimensions yield
    two-part keys (``dimension.attribute``).
    """
    result = []

    for grouping in model.groupings:
        for ref in grouping.dimensions:
            if isinstance(ref, DegenerateDimensionRef):
                attributes = ref.attributes
            else:
                dimension = model.find_dimension(ref.name)
                if dimension is None:
                    get_logger().warning(
                        f"grouping '{grouping.name}' references unknown "
                        f"dimension '{ref.name}'"
                    )
                    continue
                attributes = dimension.attributes

            for attr in attributes:
                result.append(
                    DimensionAttributeInfo(
                        grouping=grouping.name,
                        dimension=ref.name,
                        attribute=attr.name,
                        key=f"{grouping.name}.{ref.name}.{attr.name}",
                        is_conformed=False,
                        is_virtual=False,
                    )
                )

    for dimension in model.dimensions:
        for attr in dimension.attributes:
            result.append(
                DimensionAttributeInfo(
                    grouping=None,
                    dimension=dimension.name,
                    attribute=attr.name,
                    key=f"{dimension.name}.{attr.name}",
                    is_conformed=not dimension.virtual,
                    is_virtual=dimension.virtual,
                )
            )

    return result

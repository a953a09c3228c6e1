"""
Semantic schema metadata - pydantic models of models, groupings, dimensions
and attributes, as produced by the external metadata service.
"""

from .attributes import Aggregation, Attribute, DataType, Measure, MeasureFilter, Metric
from .base import MetadataObject
from .dimension import (
    DegenerateDimensionRef,
    Dimension,
    DimensionRef,
    Join,
    JoinedDimensionRef,
    dimension_ref_from_metadata,
    to_grouping_ref,
)
from .model import (
    Dataset,
    DimensionAttributeInfo,
    Grouping,
    Model,
    Schema,
    dimension_attributes,
    read_schema,
)

__all__ = [
    "MetadataObject",
    "Aggregation",
    "Attribute",
    "DataType",
    "Measure",
    "MeasureFilter",
    "Metric",
    "Dimension",
    "DimensionRef",
    "Join",
    "JoinedDimensionRef",
    "DegenerateDimensionRef",
    "dimension_ref_from_metadata",
    "to_grouping_ref",
    "Dataset",
    "Grouping",
    "Model",
    "Schema",
    "DimensionAttributeInfo",
    "dimension_attributes",
    "read_schema",
]

"""
Dimension definitions and grouping-local dimension references.

A `Dimension` is defined once on the model. Groupings refer to dimensions
with a `DimensionRef`, which is one of two variants:

* `JoinedDimensionRef` - references a model-level dimension by name and is
  joined to the fact dataset,
* `DegenerateDimensionRef` - carries its own attributes which live directly
  on the fact dataset.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import Field, field_validator, model_validator

from ..errors import NoSuchAttributeError
from .attributes import Attribute
from .base import MetadataObject

__all__ = [
    "Dimension",
    "Join",
    "JoinedDimensionRef",
    "DegenerateDimensionRef",
    "DimensionRef",
    "to_grouping_ref",
    "dimension_ref_from_metadata",
]


def _convert_attributes(v):
    """Convert string and dictionary attributes to `Attribute` objects."""
    if v is None:
        return v

    if not isinstance(v, list):
        raise ValueError(f"Attributes must be a list, got {type(v)}")

    result = []
    for attr in v:
        if isinstance(attr, Attribute):
            result.append(attr)
        elif isinstance(attr, str):
            result.append(Attribute(name=attr))
        elif isinstance(attr, dict):
            result.append(Attribute.model_validate(attr))
        else:
            raise ValueError(
                f"Attributes must be strings, dicts, or Attribute objects, got {type(attr)}"
            )
    return result


def _find_attribute(attributes: list[Attribute], name: str) -> Attribute | None:
    for attr in attributes:
        if attr.name == name:
            return attr
    return None


class Dimension(MetadataObject):
    """Model-level dimension with its attributes.

    Virtual dimensions have no physical table; they expose computed values
    such as the name of the grouping that produced a row.
    """

    alias: str | None = Field(None, description="Table alias used in result keys")
    table: str | None = Field(None, description="Physical table (schema.table)")
    source: dict[str, Any] | None = Field(None, description="Data source configuration")
    attributes: list[Attribute] = Field(default_factory=list)
    virtual: bool = False

    @field_validator("attributes", mode="before")
    @classmethod
    def convert_attributes_input(cls, v):
        return _convert_attributes(v) or []

    @model_validator(mode="after")
    def validate_dimension(self):
        """Check that attribute names are unique."""
        names = [attr.name for attr in self.attributes]
        if len(names) != len(set(names)):
            raise ValueError(f"Dimension '{self.name}' has duplicate attribute names")
        return self

    @property
    def key_name(self) -> str:
        """Name used as the dimension part of result keys."""
        return self.alias or self.name

    @property
    def attribute_names(self) -> list[str]:
        return [attr.name for attr in self.attributes]

    def find_attribute(self, name: str) -> Attribute | None:
        """Returns attribute `name` or ``None``."""
        return _find_attribute(self.attributes, name)

    def attribute(self, name: str) -> Attribute:
        """Get dimension attribute by name."""
        attr = self.find_attribute(name)
        if attr is None:
            raise NoSuchAttributeError(
                f"Attribute '{name}' not found in dimension '{self.name}'",
                name,
                scope=f"dimension '{self.name}'",
            )
        return attr

    def __repr__(self):
        return f"<Dimension(name='{self.name}', attributes={len(self.attributes)})>"


class Join(MetadataObject):
    """Join of the fact dataset to a dimension table."""

    name: str = Field("join", description="Join identifier")
    left_key: str = Field(..., alias="leftKey", description="Column on the fact table")
    right_key: str = Field(
        ..., alias="rightKey", description="Column on the dimension table"
    )
    right_alias: str | None = Field(
        None, alias="rightAlias", description="Alias of the joined table"
    )


class JoinedDimensionRef(MetadataObject):
    """Grouping-local reference to a model-level dimension."""

    kind: Literal["joined"] = "joined"
    join: Join | None = Field(None, description="Join specification")


class DegenerateDimensionRef(MetadataObject):
    """Dimension whose attributes live directly on the fact dataset."""

    kind: Literal["degenerate"] = "degenerate"
    attributes: list[Attribute] = Field(default_factory=list)

    @field_validator("attributes", mode="before")
    @classmethod
    def convert_attributes_input(cls, v):
        return _convert_attributes(v) or []

    def find_attribute(self, name: str) -> Attribute | None:
        """Returns inline attribute `name` or ``None``."""
        return _find_attribute(self.attributes, name)


DimensionRef = Annotated[
    Union[JoinedDimensionRef, DegenerateDimensionRef], Field(discriminator="kind")
]


def dimension_ref_from_metadata(metadata) -> JoinedDimensionRef | DegenerateDimensionRef:
    """Create a dimension reference from `metadata` as sent by the metadata
    service. References with inline ``attributes`` are degenerate, all other
    references are joined. An explicit ``kind`` takes precedence."""

    if isinstance(metadata, (JoinedDimensionRef, DegenerateDimensionRef)):
        return metadata
    elif isinstance(metadata, str):
        return JoinedDimensionRef(name=metadata)
    elif isinstance(metadata, dict):
        kind = metadata.get("kind")
        if kind is None:
            kind = "degenerate" if metadata.get("attributes") is not None else "joined"

        if kind == "degenerate":
            if "join" in metadata and metadata["join"] is not None:
                raise ValueError(
                    f"Degenerate dimension '{metadata.get('name')}' can not have a join"
                )
            return DegenerateDimensionRef.model_validate({**metadata, "kind": kind})
        elif kind == "joined":
            metadata = {k: v for k, v in metadata.items() if k != "attributes"}
            return JoinedDimensionRef.model_validate({**metadata, "kind": kind})
        else:
            raise ValueError(f"Unknown dimension reference kind '{kind}'")
    else:
        raise ValueError(
            f"Dimension references must be strings or dicts, got {type(metadata)}"
        )


def to_grouping_ref(dimension: Dimension) -> DegenerateDimensionRef:
    """Convert a model-level `dimension` into a grouping-style reference that
    carries the dimension's attributes. Used when a two-segment path names a
    dimension that no grouping references, such as a virtual dimension."""
    return DegenerateDimensionRef(
        name=dimension.name,
        label=dimension.label,
        description=dimension.description,
        attributes=list(dimension.attributes),
    )

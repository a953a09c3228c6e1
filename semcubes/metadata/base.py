"""
Base class for semcubes metadata models.

All schema objects - attributes, dimensions, groupings, models - are
pydantic models deriving from `MetadataObject`. The schema is produced by an
external metadata service and is treated as read-only by this package.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..common import to_label
from ..errors import ArgumentError, ModelError


class MetadataObject(BaseModel):
    """
    Base class for all semcubes metadata objects.

    Unknown keys from the metadata service are kept (``extra="allow"``) so
    newer schema documents still load. Fields can be populated either by
    their Python name or by their wire alias.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="allow",
        use_enum_values=True,
        populate_by_name=True,
    )

    name: str = Field(..., description="Unique identifier")
    label: str | None = Field(None, description="Human-readable label")
    description: str | None = Field(None, description="Detailed description")
    info: dict[str, Any] = Field(
        default_factory=dict, description="Additional metadata"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate that name is a non-empty string."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("name must be a non-empty string")
        return v

    @field_validator("info", mode="before")
    @classmethod
    def validate_info(cls, v: Any) -> dict[str, Any]:
        """Ensure info is always a dictionary."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("info must be a dictionary")
        return v

    def get_label(self) -> str:
        """Get display label, using name as fallback."""
        if self.label:
            return self.label
        return to_label(self.name)

    @classmethod
    def from_metadata(cls, metadata):
        """
        Create instance from metadata.

        Args:
            metadata: String name or dictionary metadata

        Returns:
            New instance of the class

        Raises:
            ArgumentError: If metadata type is invalid
            ModelError: If object creation fails
        """
        if isinstance(metadata, str):
            return cls(name=metadata)
        elif isinstance(metadata, dict):
            try:
                return cls.model_validate(metadata)
            except ValidationError as e:
                raise ModelError(f"Failed to create {cls.__name__}: {e}", cause=e)
        else:
            raise ArgumentError(f"Invalid metadata type: {type(metadata)}")

    def to_dict(self, create_label: bool | None = None, **options: Any) -> dict[str, Any]:
        """
        Convert to dictionary representation using pydantic's model_dump.

        Args:
            create_label: If True, generate label from name if not set.
            **options: Additional options passed to pydantic's model_dump.
        """
        result = self.model_dump(exclude_none=True, **options)

        if create_label and "label" not in result:
            result["label"] = self.get_label()

        return result

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"

    def __hash__(self) -> int:
        return hash((self.__class__.__name__, self.name))

"""
Resolution of dotted attribute paths.

A path names a dimension attribute either unqualified as
``dimension.attribute`` or scoped to a grouping as
``grouping.dimension.attribute``. Resolution produces an `AttributeRef`;
the canonical result key of the reference - its *alias* - is derived by
`attribute_alias`.
"""

from __future__ import annotations

import functools
from collections.abc import Iterable
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from ..errors import (
    InvalidPathFormatError,
    NoSuchAttributeError,
    NoSuchDimensionError,
    NoSuchGroupingError,
)
from ..logging import get_logger
from ..metadata import (
    Attribute,
    DegenerateDimensionRef,
    Dimension,
    DimensionRef,
    Model,
    to_grouping_ref,
)

__all__ = [
    "PATH_SEPARATOR",
    "AttributeRef",
    "ResolvedPath",
    "PathResolver",
    "split_path",
    "resolve_attribute_ref",
    "resolve_attribute",
    "attribute_alias",
]

PATH_SEPARATOR = "."


class AttributeRef(BaseModel):
    """Resolved reference to an attribute of a grouping dimension reference.

    `qualifier` is the grouping name of a three-segment path, ``None`` for
    unqualified paths.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    dimension: DimensionRef = Field(..., description="Grouping dimension reference")
    attribute: str = Field(..., description="Attribute name")
    qualifier: str | None = Field(None, description="Grouping qualifier")

    @property
    def path(self) -> str:
        """Dotted path of the reference."""
        parts = [self.dimension.name, self.attribute]
        if self.qualifier:
            parts.insert(0, self.qualifier)
        return PATH_SEPARATOR.join(parts)

    def __str__(self) -> str:
        return self.path


def split_path(path: Any) -> list[str]:
    """Split `path` into its two or three segments.

    Raises:
        InvalidPathFormatError: if the path is not a string of two or three
            non-empty dot-separated segments.
    """
    if not isinstance(path, str):
        raise InvalidPathFormatError(
            f"Attribute path must be a string, got {type(path).__name__}",
            path=repr(path),
        )

    parts = path.split(PATH_SEPARATOR)

    if len(parts) not in (2, 3):
        raise InvalidPathFormatError(
            f"Invalid attribute path '{path}': expected 'dimension.attribute' "
            f"or 'grouping.dimension.attribute', got {len(parts)} segment(s)",
            path=path,
        )
    if not all(parts):
        raise InvalidPathFormatError(
            f"Invalid attribute path '{path}': empty segment", path=path
        )

    return parts


def resolve_attribute_ref(path: str, model: Model) -> AttributeRef:
    """Resolve a dotted `path` against `model`.

    Three-segment paths look the dimension up in the named grouping only.
    Two-segment paths search the dimension references of all groupings in
    declaration order; when no grouping references the dimension, the
    model-level dimensions are searched and a matching dimension is
    converted to a grouping-style reference.

    Raises:
        InvalidPathFormatError: wrong number of segments
        NoSuchGroupingError: unknown qualifier
        NoSuchDimensionError: dimension not found in the searched scope
    """
    parts = split_path(path)

    if len(parts) == 3:
        qualifier, dim_name, attr_name = parts

        grouping = model.grouping(qualifier)
        if grouping is None:
            raise NoSuchGroupingError(
                f"Grouping '{qualifier}' not found in model '{model.name}'",
                qualifier,
                path=path,
                scope=f"model '{model.name}'",
            )

        ref = grouping.find_dimension(dim_name)
        if ref is None:
            raise NoSuchDimensionError(
                f"Dimension '{dim_name}' not found in grouping '{qualifier}'",
                dim_name,
                path=path,
                scope=f"grouping '{qualifier}'",
            )

        return AttributeRef(dimension=ref, attribute=attr_name, qualifier=qualifier)

    dim_name, attr_name = parts

    for grouping in model.groupings:
        ref = grouping.find_dimension(dim_name)
        if ref is not None:
            return AttributeRef(dimension=ref, attribute=attr_name)

    # Model-level (conformed or virtual) dimensions
    dimension = model.find_dimension(dim_name)
    if dimension is not None:
        return AttributeRef(dimension=to_grouping_ref(dimension), attribute=attr_name)

    raise NoSuchDimensionError(
        f"Dimension '{dim_name}' not found in any grouping or in the "
        f"dimensions of model '{model.name}'",
        dim_name,
        path=path,
        scope=f"model '{model.name}'",
    )


def _lookup_attribute(
    ref: AttributeRef, dimensions: Iterable[Dimension]
) -> tuple[str, Attribute]:
    """Returns the key name of the referenced dimension and the attribute
    definition. Inline attributes of a degenerate reference are searched
    first, then the model-level dimension of the same name."""

    dim_ref = ref.dimension

    if isinstance(dim_ref, DegenerateDimensionRef):
        attr = dim_ref.find_attribute(ref.attribute)
        if attr is not None:
            return dim_ref.name, attr

    dimension = None
    for candidate in dimensions:
        if candidate.name == dim_ref.name:
            dimension = candidate
            break

    if dimension is None:
        raise NoSuchDimensionError(
            f"Dimension '{dim_ref.name}' not found",
            dim_ref.name,
            path=ref.path,
            scope="model dimensions",
        )

    attr = dimension.find_attribute(ref.attribute)
    if attr is None:
        raise NoSuchAttributeError(
            f"Attribute '{ref.attribute}' not found in dimension '{dim_ref.name}'",
            ref.attribute,
            path=ref.path,
            scope=f"dimension '{dim_ref.name}'",
        )

    return dimension.key_name, attr


def _compose_alias(qualifier: str | None, dim_key: str, attr_name: str) -> str:
    parts = [dim_key, attr_name]
    if qualifier:
        parts.insert(0, qualifier)
    return PATH_SEPARATOR.join(parts)


def attribute_alias(ref: AttributeRef, dimensions: Iterable[Dimension]) -> str:
    """Canonical result key of `ref`: ``[qualifier.]dimension.attribute``.

    For attributes of joined dimensions the dimension part is the
    dimension's `alias` when it has one.
    """
    dim_key, attr = _lookup_attribute(ref, dimensions)
    return _compose_alias(ref.qualifier, dim_key, attr.name)


def resolve_attribute(ref: AttributeRef, dimensions: Iterable[Dimension]) -> Attribute:
    """Attribute definition of `ref`, found the same way as its alias."""
    _, attr = _lookup_attribute(ref, dimensions)
    return attr


class ResolvedPath(NamedTuple):
    path: str
    ref: AttributeRef
    alias: str
    attribute: Attribute


class PathResolver:
    """Resolves paths of one model, each distinct path only once."""

    def __init__(self, model: Model, max_paths: int = 256):
        self.model = model
        self._resolve_cached = functools.lru_cache(maxsize=max_paths)(self._resolve)

    def _resolve(self, path: str) -> ResolvedPath:
        ref = resolve_attribute_ref(path, self.model)
        dim_key, attr = _lookup_attribute(ref, self.model.dimensions)
        alias = _compose_alias(ref.qualifier, dim_key, attr.name)

        get_logger().debug(f"resolved '{path}' to '{alias}' ({attr.type})")
        return ResolvedPath(path, ref, alias, attr)

    def resolve(self, path: str) -> ResolvedPath:
        """Resolve `path` to its reference, alias and attribute."""
        # lru_cache needs a hashable key
        if not isinstance(path, str):
            split_path(path)
        return self._resolve_cached(path)

    def resolve_all(self, paths: Iterable[str]) -> list[ResolvedPath]:
        return [self.resolve(path) for path in paths]

    def cache_info(self) -> dict[str, Any]:
        return self._resolve_cached.cache_info()._asdict()

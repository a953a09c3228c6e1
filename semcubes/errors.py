"""Exceptions used within semcubes."""

from __future__ import annotations

from typing import Any

__all__ = [
    "SemCubesError",
    "UserError",
    "InternalError",
    "ConfigurationError",
    "ArgumentError",
    "ModelError",
    "InvalidPathFormatError",
    "NoSuchModelError",
    "NoSuchGroupingError",
    "NoSuchDimensionError",
    "NoSuchAttributeError",
]


class SemCubesError(Exception):
    """Generic error class. Carries a `context` dictionary describing where
    the error happened (path, scope, model, ...)."""

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause

    def add_context(self, key: str, value: Any) -> SemCubesError:
        """Fluent interface for adding context."""
        self.context[key] = value
        return self

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class InternalError(SemCubesError):
    """Raised when something unexpected happened in the library."""


class UserError(SemCubesError):
    """Superclass for all errors caused by the library user: invalid query
    paths, unknown names or broken configuration."""


class ConfigurationError(UserError):
    """Raised when there is a problem with configuration options."""


class ArgumentError(UserError):
    """Invalid argument."""


class ModelError(UserError):
    """Model related exception - malformed or inconsistent metadata."""


class InvalidPathFormatError(ArgumentError):
    """Raised when a dotted attribute path has neither two nor three
    segments."""

    def __init__(self, message: str, *, path: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        if path is not None:
            self.add_context("path", path)
        self.path = path


class _LookupError(UserError):
    """Base for the "no such object" errors. `name` is the object that was
    not found, `scope` describes where it was searched for."""

    def __init__(
        self,
        message: str,
        name: str | None = None,
        *,
        path: str | None = None,
        scope: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.name = name
        self.path = path
        self.scope = scope
        if path is not None:
            self.add_context("path", path)
        if scope is not None:
            self.add_context("scope", scope)


class NoSuchModelError(_LookupError):
    """Raised when a model is requested that does not exist in the schema."""


class NoSuchGroupingError(_LookupError):
    """Raised when the qualifier of a path does not name any grouping."""


class NoSuchDimensionError(_LookupError):
    """Raised when an unknown dimension is requested."""


class NoSuchAttributeError(_LookupError):
    """Raised when an unknown attribute, measure or detail requested."""

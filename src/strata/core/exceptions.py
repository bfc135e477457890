"""
Custom exceptions for strata.

All strata exceptions inherit from StrataError for easy catching.
"""

from typing import Any


class StrataError(Exception):
    """Base exception for all strata errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(StrataError):
    """Raised when configuration is invalid or missing."""

    pass


class GeometryError(StrataError):
    """Raised when a mesh cannot be loaded, converted or measured."""

    pass


class SlicingError(StrataError):
    """Raised when slicing/region generation fails."""

    pass


class EngineNotReadyError(SlicingError):
    """Raised when a region operation runs on a slice without usable shells."""

    def __init__(
        self,
        message: str,
        layer_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.layer_index = layer_index


class SliceStateError(SlicingError):
    """Raised when slice operations are invoked out of order or twice."""

    def __init__(
        self,
        message: str,
        layer_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.layer_index = layer_index

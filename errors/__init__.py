"""Custom exception hierarchy for the component generation pipeline."""

from errors.exceptions import (
    ConfigurationError,
    EmptyOutputError,
    ExportMissingError,
    GenerationCancelled,
    GenerationError,
    UpstreamError,
    ValidationError,
)

__all__ = [
    "ConfigurationError",
    "EmptyOutputError",
    "ExportMissingError",
    "GenerationCancelled",
    "GenerationError",
    "UpstreamError",
    "ValidationError",
]

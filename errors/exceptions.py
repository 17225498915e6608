"""Domain-specific exceptions for the component generation pipeline.

These exceptions let the generator distinguish failure modes and report each
as a single terminal ``error`` event.  Validation and configuration errors
are raised before any upstream call is made.
"""

from __future__ import annotations

from models.errors import ErrorCode


class GenerationError(Exception):
    """Base class for failures of one generation attempt."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(GenerationError):
    """The request prompt is empty after trimming or exceeds the size limit."""

    code = ErrorCode.INVALID_REQUEST


class ConfigurationError(GenerationError):
    """Required upstream credentials or configuration are missing."""

    code = ErrorCode.CONFIGURATION_ERROR

    def __init__(self, key_name: str) -> None:
        self.key_name = key_name
        super().__init__(
            f"{key_name} is not configured. Please add it to your .env file."
        )


class UpstreamError(GenerationError):
    """The model service failed or the connection dropped mid-stream."""

    code = ErrorCode.LLM_PROVIDER_ERROR


class EmptyOutputError(GenerationError):
    """Normalization left nothing usable (empty, truncated or refused output)."""

    code = ErrorCode.EMPTY_OUTPUT

    def __init__(self, message: str = "Generated code is too short or invalid", length: int = 0) -> None:
        self.length = length
        super().__init__(message)


class ExportMissingError(GenerationError):
    """No default export is present and no component name could be discovered.

    Treated as a soft warning unless ``require_default_export`` is enabled.
    """

    code = ErrorCode.EXPORT_MISSING

    def __init__(self, message: str = "Generated code has no default export and no component name could be found") -> None:
        super().__init__(message)


class GenerationCancelled(GenerationError):
    """The caller cancelled the generation before the stream ended."""

    code = ErrorCode.CANCELLED

    def __init__(self, message: str = "Generation cancelled") -> None:
        super().__init__(message)

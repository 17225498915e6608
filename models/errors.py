"""Structured error codes for generation failures.

Every failure of a generation is reported to the client as a single terminal
``error`` frame whose ``content`` is a human-readable message.  The codes
below travel alongside in logs and let tests assert the failure class.
"""

from __future__ import annotations

import re
from enum import Enum


class ErrorCode(str, Enum):
    """Failure classes of one generation attempt."""

    INVALID_REQUEST = "INVALID_REQUEST"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    LLM_PROVIDER_ERROR = "LLM_PROVIDER_ERROR"
    EMPTY_OUTPUT = "EMPTY_OUTPUT"
    EXPORT_MISSING = "EXPORT_MISSING"
    CANCELLED = "CANCELLED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def format_error(code: ErrorCode, detail: str) -> str:
    """Format an error for logs: ``{ERROR_CODE}: {detail}``."""
    return f"{code.value}: {detail}"


# LLM-provider patterns, checked in order (first match wins).
_CONTENT_FILTER_RE = re.compile(r"content filter|safety", re.IGNORECASE)
_CONTEXT_LENGTH_RE = re.compile(r"context length|context_length|maximum context|too many tokens", re.IGNORECASE)
_RATE_LIMIT_RE = re.compile(r"rate limit|ratelimit|\b429\b|quota", re.IGNORECASE)
_AUTH_RE = re.compile(r"\b401\b|unauthori[sz]ed|invalid api key|authentication", re.IGNORECASE)
_TIMEOUT_RE = re.compile(r"timeout|timed out", re.IGNORECASE)
_CONNECTION_RE = re.compile(r"connection|connect error|network", re.IGNORECASE)


def classify_upstream_error(error_text: str) -> str:
    """Turn a raw model-service exception string into a user-facing message.

    Classification order (first match wins):
        1. Content filter / safety refusal.
        2. Context length exceeded.
        3. Rate limited.
        4. Authentication rejected by the provider.
        5. Timeout.
        6. Connection failure.
        7. Fallback — generic message carrying the raw text.
    """
    if _CONTENT_FILTER_RE.search(error_text):
        return "The model refused the request (content filtered by safety policy)."
    if _CONTEXT_LENGTH_RE.search(error_text):
        return "The request is too long for the model's context window. Try a shorter prompt."
    if _RATE_LIMIT_RE.search(error_text):
        return "The model service is rate limiting requests. Please retry in a moment."
    if _AUTH_RE.search(error_text):
        return "The model service rejected the configured API key."
    if _TIMEOUT_RE.search(error_text):
        return f"The model service timed out: {error_text}"
    if _CONNECTION_RE.search(error_text):
        return f"Could not reach the model service: {error_text}"
    return f"Failed to generate component: {error_text}" if error_text else "Failed to generate component"

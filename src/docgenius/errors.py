"""
Exception hierarchy for report editing and generation.

Operators raise these; the command resolver and the API layer turn them into
structured failures.
"""

from typing import Optional, Dict, Any


class DocGeniusError(Exception):
    """Base exception for all docgenius errors"""

    # machine-readable category reported back to callers
    error_type = "error"
    retry = False

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = context or {}

    def __str__(self):
        parts = [self.message]
        if self.cause:
            parts.append(f" (caused by: {type(self.cause).__name__}: {str(self.cause)})")
        if self.context:
            parts.append(f" Context: {self.context}")
        return "".join(parts)


# === Editing exceptions ===

class NotFoundError(DocGeniusError):
    """No element matched the search text, or an index was out of range"""
    error_type = "not_found"


class InvalidArgumentError(DocGeniusError):
    """A required operator argument is missing or malformed"""
    error_type = "invalid_argument"


# === Generation service exceptions ===

class GenerationServiceError(DocGeniusError):
    """The generation service failed in a way retrying will not fix"""
    error_type = "generation_failed"


class TransientUpstreamError(GenerationServiceError):
    """The generation service is overloaded or timed out after all retries"""
    error_type = "transient_upstream"
    retry = True


class MalformedGenerationOutputError(GenerationServiceError):
    """Generated output could not be coerced into usable markup or JSON"""
    error_type = "malformed_output"

    def __init__(self, message: str, raw_output: str = "", **kwargs):
        super().__init__(message, **kwargs)
        # keep a bounded snippet for diagnostics
        self.raw_snippet = (raw_output or "")[:500]

"""Exceptions raised by fhirconvert.

Every conversion failure is a ``FhirConverterError`` carrying an
``ErrorCode``. Cancellation is reported with ``ConversionCancelledError``,
which sits outside that hierarchy so callers can tell a failed conversion
from one that was called off.
"""

from __future__ import annotations

from fhirconvert.core.types import ErrorCode


class FhirConverterError(Exception):
    """Base class for structured conversion failures."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        inner_exception: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.inner_exception = inner_exception

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"


class RenderError(FhirConverterError):
    """Raised when a template cannot be resolved, rendered or finished in time."""


class DataParseError(FhirConverterError):
    """Raised when an HL7 v2 message or C-CDA document cannot be parsed."""


class PostprocessError(FhirConverterError):
    """Raised when rendered output is not valid JSON."""


class ConversionCancelledError(Exception):
    """Raised when the caller's cancellation token has been triggered."""

    def __init__(self, message: str = "The conversion was cancelled.") -> None:
        super().__init__(message)

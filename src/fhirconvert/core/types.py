"""Core type definitions for fhirconvert."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DataType(Enum):
    """Input formats a processor can convert."""

    HL7V2 = "hl7v2"
    CCDA = "ccda"


class ErrorCode(Enum):
    """Kinds of structured conversion failure."""

    # Argument validation
    NULL_TEMPLATE_PROVIDER = "null_template_provider"
    NULL_OR_EMPTY_ROOT_TEMPLATE = "null_or_empty_root_template"

    # Template resolution
    TEMPLATE_NOT_FOUND = "template_not_found"
    TEMPLATE_LOADING_ERROR = "template_loading_error"
    TEMPLATE_SYNTAX_ERROR = "template_syntax_error"

    # Rendering
    TEMPLATE_RENDERING_ERROR = "template_rendering_error"
    TIMEOUT_ERROR = "timeout_error"

    # Input data
    NULL_OR_EMPTY_INPUT = "null_or_empty_input"
    INVALID_HL7V2_MESSAGE = "invalid_hl7v2_message"
    INVALID_CCDA_DOCUMENT = "invalid_ccda_document"

    # Output
    JSON_PARSING_ERROR = "json_parsing_error"


@dataclass(frozen=True)
class ProcessorSettings:
    """Settings bound to a processor for its whole lifetime."""

    # Wall-clock bound on rendering in milliseconds; <= 0 disables it
    timeout: int = 0

    # Parse, clean and re-indent the rendered JSON
    post_process: bool = True

    @property
    def has_timeout(self) -> bool:
        """Whether a positive rendering bound is configured."""
        return self.timeout > 0

    @property
    def timeout_seconds(self) -> float | None:
        """The bound in seconds, or None when rendering is unbounded."""
        if not self.has_timeout:
            return None
        return self.timeout / 1000.0

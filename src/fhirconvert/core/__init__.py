"""Core module for fhirconvert."""

from fhirconvert.core.cancellation import CancellationToken, CancellationTokenSource
from fhirconvert.core.exceptions import (
    ConversionCancelledError,
    DataParseError,
    FhirConverterError,
    PostprocessError,
    RenderError,
)
from fhirconvert.core.types import DataType, ErrorCode, ProcessorSettings

__all__ = [
    "CancellationToken",
    "CancellationTokenSource",
    "ConversionCancelledError",
    "DataParseError",
    "DataType",
    "ErrorCode",
    "FhirConverterError",
    "PostprocessError",
    "ProcessorSettings",
    "RenderError",
]

"""fhirconvert - template-driven HL7 v2 and C-CDA to FHIR conversion."""

from fhirconvert.conversion import (
    BaseProcessor,
    CcdaProcessor,
    Hl7v2Processor,
    create_processor,
    load_settings,
)
from fhirconvert.core import (
    CancellationToken,
    CancellationTokenSource,
    ConversionCancelledError,
    DataParseError,
    DataType,
    ErrorCode,
    FhirConverterError,
    ProcessorSettings,
    RenderError,
)
from fhirconvert.templates import (
    CcdaTemplateProvider,
    Hl7v2TemplateProvider,
    TemplateCollectionProvider,
    TemplateDirectoryProvider,
    TemplateProvider,
)

__version__ = "0.1.0"

__all__ = [
    "BaseProcessor",
    "CancellationToken",
    "CancellationTokenSource",
    "CcdaProcessor",
    "CcdaTemplateProvider",
    "ConversionCancelledError",
    "DataParseError",
    "DataType",
    "ErrorCode",
    "FhirConverterError",
    "Hl7v2Processor",
    "Hl7v2TemplateProvider",
    "ProcessorSettings",
    "RenderError",
    "TemplateCollectionProvider",
    "TemplateDirectoryProvider",
    "TemplateProvider",
    "__version__",
    "create_processor",
    "load_settings",
]

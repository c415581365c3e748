"""Template providers and filters for fhirconvert."""

from fhirconvert.templates.filters import FILTER_REGISTRY, register_filters
from fhirconvert.templates.provider import (
    CcdaTemplateProvider,
    Hl7v2TemplateProvider,
    TemplateCollectionProvider,
    TemplateDirectoryLoader,
    TemplateDirectoryProvider,
    TemplateProvider,
    create_environment,
)

__all__ = [
    "FILTER_REGISTRY",
    "CcdaTemplateProvider",
    "Hl7v2TemplateProvider",
    "TemplateCollectionProvider",
    "TemplateDirectoryLoader",
    "TemplateDirectoryProvider",
    "TemplateProvider",
    "create_environment",
    "register_filters",
]

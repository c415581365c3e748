"""Conversion processors and utilities for fhirconvert."""

from fhirconvert.conversion.ccda import CcdaProcessor
from fhirconvert.conversion.factory import PROCESSOR_REGISTRY, create_processor
from fhirconvert.conversion.hl7v2 import Hl7v2Processor
from fhirconvert.conversion.postprocess import post_process
from fhirconvert.conversion.processor import BaseProcessor
from fhirconvert.conversion.settings import load_settings, settings_from_dict

__all__ = [
    "PROCESSOR_REGISTRY",
    "BaseProcessor",
    "CcdaProcessor",
    "Hl7v2Processor",
    "create_processor",
    "load_settings",
    "post_process",
    "settings_from_dict",
]

"""Processor lookup by input format."""

from __future__ import annotations

from fhirconvert.conversion.ccda import CcdaProcessor
from fhirconvert.conversion.hl7v2 import Hl7v2Processor
from fhirconvert.conversion.processor import BaseProcessor
from fhirconvert.core.types import DataType, ProcessorSettings

PROCESSOR_REGISTRY: dict[DataType, type[BaseProcessor]] = {
    DataType.HL7V2: Hl7v2Processor,
    DataType.CCDA: CcdaProcessor,
}


def create_processor(
    data_type: DataType | str,
    settings: ProcessorSettings | None = None,
) -> BaseProcessor:
    """Create the processor for an input format.

    Args:
        data_type: Input format, as a DataType or its value ('hl7v2', 'ccda').
        settings: Settings bound to the new processor.

    Raises:
        ValueError: If the format is not supported.
    """
    if isinstance(data_type, str):
        try:
            data_type = DataType(data_type.lower())
        except ValueError:
            supported = ", ".join(t.value for t in DataType)
            raise ValueError(
                f"Unsupported data type: {data_type!r} (supported: {supported})"
            ) from None
    return PROCESSOR_REGISTRY[data_type](settings)

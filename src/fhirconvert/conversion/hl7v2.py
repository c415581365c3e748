"""HL7 v2 processor."""

from __future__ import annotations

from typing import Any

from fhirconvert.conversion.processor import BaseProcessor
from fhirconvert.core.types import DataType, ProcessorSettings
from fhirconvert.parsers.hl7v2 import HL7v2Message, HL7v2Parser


class Hl7v2Processor(BaseProcessor):
    """Converts HL7 v2 messages.

    Templates see the parsed message as ``msg``, its segments keyed by ID
    as ``data`` (e.g. ``data.PID.get_value("5.1")``) and the input format
    as ``data_type``.
    """

    data_type = DataType.HL7V2

    def __init__(self, settings: ProcessorSettings | None = None) -> None:
        super().__init__(settings)
        self.parser = HL7v2Parser()

    def parse(self, data: str) -> HL7v2Message:
        return self.parser.parse_message(data)

    def build_context(self, model: HL7v2Message) -> dict[str, Any]:
        return {
            "msg": model,
            "data": model.to_template_data(),
            "data_type": self.data_type.value,
        }

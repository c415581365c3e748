"""C-CDA processor."""

from __future__ import annotations

from typing import Any

from fhirconvert.conversion.processor import BaseProcessor
from fhirconvert.core.types import DataType, ProcessorSettings
from fhirconvert.parsers.ccda import CcdaDocument, CcdaParser


class CcdaProcessor(BaseProcessor):
    """Converts C-CDA documents.

    Templates see the document as ``msg`` (e.g. ``msg.ClinicalDocument.id.root``),
    the parsed object itself as ``document`` and the input format as
    ``data_type``.
    """

    data_type = DataType.CCDA

    def __init__(self, settings: ProcessorSettings | None = None) -> None:
        super().__init__(settings)
        self.parser = CcdaParser()

    def parse(self, data: str) -> CcdaDocument:
        return self.parser.parse_document(data)

    def build_context(self, model: CcdaDocument) -> dict[str, Any]:
        return {
            "msg": model.to_template_data(),
            "document": model,
            "data_type": self.data_type.value,
        }

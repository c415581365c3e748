"""C-CDA document parser.

Documents are parsed with defusedxml and turned into nested dictionaries
that templates can walk with attribute access, e.g.
``msg.ClinicalDocument.recordTarget.patientRole.id``.

Conversion rules:
    - XML namespaces are dropped from element and attribute names.
    - Attributes become keys on the element's dictionary.
    - Element text is stored under the ``_`` key.
    - A child element that occurs more than once becomes a list.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from xml.etree.ElementTree import Element

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as SafeET
from defusedxml.ElementTree import ParseError as SafeParseError

from fhirconvert.core.exceptions import DataParseError
from fhirconvert.core.types import ErrorCode

TEXT_KEY = "_"

_NAMESPACE_RE = re.compile(r"^\{[^}]*\}")


def _local_name(tag: str) -> str:
    """Strip a '{namespace}' prefix from a tag or attribute name."""
    return _NAMESPACE_RE.sub("", tag)


def element_to_dict(element: Element) -> dict[str, Any]:
    """Convert an element and its descendants to nested dictionaries."""
    node: dict[str, Any] = {}

    for name, value in element.attrib.items():
        node[_local_name(name)] = value

    for child in element:
        if not isinstance(child.tag, str):
            # Comments and processing instructions
            continue
        key = _local_name(child.tag)
        value = element_to_dict(child)
        if key not in node:
            node[key] = value
        elif isinstance(node[key], list):
            node[key].append(value)
        else:
            node[key] = [node[key], value]

    text = (element.text or "").strip()
    if text:
        node[TEXT_KEY] = text

    return node


@dataclass
class CcdaDocument:
    """A parsed C-CDA document."""

    root_name: str
    data: dict[str, Any]

    def to_template_data(self) -> dict[str, Any]:
        """Return the structure handed to templates."""
        return {self.root_name: self.data}

    @property
    def template_ids(self) -> list[str]:
        """Roots of the document-level templateId elements."""
        ids = self.data.get("templateId", [])
        if isinstance(ids, dict):
            ids = [ids]
        return [i["root"] for i in ids if "root" in i]

    @property
    def document_id(self) -> str | None:
        """The root of the document's ``id`` element."""
        doc_id = self.data.get("id")
        if isinstance(doc_id, dict):
            return doc_id.get("root")
        return None

    def get_section(self, template_id: str) -> dict[str, Any] | None:
        """Find the first body section carrying the given templateId root."""
        for section in self.sections():
            ids = section.get("templateId", [])
            if isinstance(ids, dict):
                ids = [ids]
            if any(i.get("root") == template_id for i in ids):
                return section
        return None

    def sections(self) -> list[dict[str, Any]]:
        """All sections of the structured body, in document order."""
        body = self.data.get("component", {}).get("structuredBody", {})
        components = body.get("component", [])
        if isinstance(components, dict):
            components = [components]
        return [c["section"] for c in components if "section" in c]


class CcdaParser:
    """Parses C-CDA XML text into CcdaDocument objects."""

    def parse_document(self, raw: str | None) -> CcdaDocument:
        """Parse a C-CDA document.

        Args:
            raw: Raw XML text.

        Returns:
            Parsed CcdaDocument.

        Raises:
            DataParseError: If the text is empty or not well-formed XML.
        """
        raw = (raw or "").lstrip("\ufeff")
        if not raw.strip():
            raise DataParseError(ErrorCode.NULL_OR_EMPTY_INPUT, "Empty C-CDA document")

        try:
            root = SafeET.fromstring(raw.strip())
        except (SafeParseError, DefusedXmlException) as e:
            raise DataParseError(
                ErrorCode.INVALID_CCDA_DOCUMENT, f"Invalid C-CDA document: {e}", e
            ) from e

        return CcdaDocument(root_name=_local_name(root.tag), data=element_to_dict(root))

    def parse_file(self, filepath: str | Path) -> CcdaDocument:
        """Parse a C-CDA document from a file."""
        return self.parse_document(Path(filepath).read_text(encoding="utf-8"))

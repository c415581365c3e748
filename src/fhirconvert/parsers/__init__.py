"""Parsers for healthcare data formats."""

from fhirconvert.parsers.ccda import CcdaDocument, CcdaParser
from fhirconvert.parsers.hl7v2 import HL7v2Message, HL7v2Parser, HL7v2Segment

__all__ = ["CcdaDocument", "CcdaParser", "HL7v2Message", "HL7v2Parser", "HL7v2Segment"]

"""HL7 v2.x message parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fhirconvert.core.exceptions import DataParseError
from fhirconvert.core.types import ErrorCode

DEFAULT_ENCODING_CHARS = "^~\\&"


@dataclass
class HL7v2Field:
    """Represents a single HL7 v2.x field with components."""

    value: str
    components: list[str] = field(default_factory=list)
    subcomponents: list[list[str]] = field(default_factory=list)
    repeats: list[HL7v2Field] = field(default_factory=list)

    def get_component(self, index: int) -> str | None:
        """Get component by 1-based index (HL7 convention)."""
        if 1 <= index <= len(self.components):
            return self.components[index - 1] or None
        return None

    def get_repeat(self, index: int) -> HL7v2Field | None:
        """Get a repetition of this field by 1-based index."""
        if not self.repeats:
            return self if index == 1 else None
        if 1 <= index <= len(self.repeats):
            return self.repeats[index - 1]
        return None

    def __str__(self) -> str:
        return self.value


@dataclass
class HL7v2Segment:
    """Represents an HL7 v2.x segment (e.g., PID, PV1)."""

    segment_id: str
    fields: list[HL7v2Field]
    raw: str = ""

    def get_field(self, index: int) -> HL7v2Field | None:
        """Get field by 1-based index (e.g., PID-3 is index 3)."""
        # Field 0 is the segment ID itself
        if index == 0:
            return HL7v2Field(value=self.segment_id, components=[self.segment_id])
        if 1 <= index <= len(self.fields):
            return self.fields[index - 1]
        return None

    def get_value(self, field_path: str) -> str | None:
        """Get value by field path (e.g., 'PID-3.1' or '3.1.2')."""
        path = field_path
        if "-" in path:
            path = path.split("-", 1)[1]

        parts = path.split(".")
        field_obj = self.get_field(int(parts[0]))

        if field_obj is None:
            return None

        # Repeating fields resolve to their first repetition
        field_obj = field_obj.get_repeat(1) or field_obj

        if len(parts) == 1:
            return field_obj.value or None

        comp_idx = int(parts[1])
        value = field_obj.get_component(comp_idx)

        if len(parts) >= 3 and value:
            subcomp_idx = int(parts[2])
            if comp_idx - 1 < len(field_obj.subcomponents) and subcomp_idx - 1 < len(
                field_obj.subcomponents[comp_idx - 1]
            ):
                return field_obj.subcomponents[comp_idx - 1][subcomp_idx - 1] or None

        return value


@dataclass
class HL7v2Message:
    """Represents a complete HL7 v2.x message."""

    segments: list[HL7v2Segment]
    raw: str = ""
    encoding_chars: str = DEFAULT_ENCODING_CHARS
    field_separator: str = "|"

    def get_segment(self, segment_id: str, index: int = 0) -> HL7v2Segment | None:
        """Get segment by ID (e.g., 'PID'). Index for repeating segments."""
        matches = self.get_all_segments(segment_id)
        if index < len(matches):
            return matches[index]
        return None

    def get_all_segments(self, segment_id: str) -> list[HL7v2Segment]:
        """Get all segments with given ID."""
        return [s for s in self.segments if s.segment_id == segment_id]

    @property
    def segment_ids(self) -> list[str]:
        return [s.segment_id for s in self.segments]

    @property
    def message_type(self) -> str | None:
        """Get message type from MSH-9 (e.g., 'ADT^A01')."""
        msh = self.get_segment("MSH")
        if msh:
            return msh.get_value("9")
        return None

    @property
    def control_id(self) -> str | None:
        """Get message control ID from MSH-10."""
        msh = self.get_segment("MSH")
        if msh:
            return msh.get_value("10")
        return None

    def to_template_data(self) -> dict[str, Any]:
        """Return the segments keyed by ID for templates.

        Each segment ID maps to its first occurrence, so templates can write
        ``data.PID.get_value("5.1")``. All segments, in message order, are
        under ``segments``.
        """
        data: dict[str, Any] = {}
        for segment in self.segments:
            data.setdefault(segment.segment_id, segment)
        data["segments"] = list(self.segments)
        return data


class HL7v2Parser:
    """Parses HL7 v2.x messages into HL7v2Message objects."""

    def parse_message(self, raw: str | None) -> HL7v2Message:
        """Parse raw HL7 v2.x message string.

        Args:
            raw: Raw HL7 message (pipe-delimited, \\r or \\n separated).

        Returns:
            Parsed HL7v2Message object.

        Raises:
            DataParseError: If the message is empty or does not start with MSH.
        """
        raw = (raw or "").lstrip("\ufeff")
        if not raw.strip():
            raise DataParseError(ErrorCode.NULL_OR_EMPTY_INPUT, "Empty HL7 message")

        # Normalize line endings
        raw = raw.replace("\r\n", "\r").replace("\n", "\r")
        lines = [line.strip() for line in raw.split("\r") if line.strip()]

        if not lines[0].startswith("MSH") or len(lines[0]) < 8:
            raise DataParseError(
                ErrorCode.INVALID_HL7V2_MESSAGE,
                "HL7 message must start with an MSH segment",
            )

        field_sep = lines[0][3]
        encoding_chars = lines[0][4:8]

        component_sep = encoding_chars[0]
        repetition_sep = encoding_chars[1]
        subcomp_sep = encoding_chars[3]

        segments = []
        for line in lines:
            if len(line) < 3:
                raise DataParseError(
                    ErrorCode.INVALID_HL7V2_MESSAGE, f"Invalid segment: {line!r}"
                )
            segment = self._parse_segment(
                line, field_sep, component_sep, repetition_sep, subcomp_sep
            )
            segments.append(segment)

        return HL7v2Message(
            segments=segments,
            raw=raw,
            encoding_chars=encoding_chars,
            field_separator=field_sep,
        )

    def _parse_segment(
        self,
        line: str,
        field_sep: str,
        comp_sep: str,
        repeat_sep: str,
        subcomp_sep: str,
    ) -> HL7v2Segment:
        """Parse a single segment line."""
        parts = line.split(field_sep)
        segment_id = parts[0]

        if segment_id == "MSH":
            # MSH-1 is the field separator and MSH-2 the encoding characters
            fields = [
                HL7v2Field(value=field_sep, components=[field_sep]),
                HL7v2Field(value=parts[1], components=[parts[1]]),
            ]
            fields.extend(
                self._parse_field(p, comp_sep, repeat_sep, subcomp_sep) for p in parts[2:]
            )
        else:
            fields = [
                self._parse_field(p, comp_sep, repeat_sep, subcomp_sep) for p in parts[1:]
            ]

        return HL7v2Segment(segment_id=segment_id, fields=fields, raw=line)

    def _parse_field(
        self, value: str, comp_sep: str, repeat_sep: str, subcomp_sep: str
    ) -> HL7v2Field:
        """Parse a field value, splitting repetitions when present."""
        if repeat_sep in value:
            repeats = [
                self._parse_field(r, comp_sep, repeat_sep, subcomp_sep)
                for r in value.split(repeat_sep)
            ]
            first = repeats[0]
            return HL7v2Field(
                value=value,
                components=first.components,
                subcomponents=first.subcomponents,
                repeats=repeats,
            )

        components = value.split(comp_sep)
        subcomponents = [c.split(subcomp_sep) for c in components]
        return HL7v2Field(value=value, components=components, subcomponents=subcomponents)

    def parse_file(self, filepath: str | Path) -> list[HL7v2Message]:
        """Parse HL7 messages from a file.

        Handles files with multiple messages separated by blank lines.
        """
        content = Path(filepath).read_text(encoding="utf-8")
        content = content.replace("\r\n", "\n").replace("\r", "\n")

        return [self.parse_message(raw) for raw in content.split("\n\n") if raw.strip()]

"""Jinja filters available to conversion templates."""

from __future__ import annotations

import hashlib
import json
import re
import uuid
from collections.abc import Callable
from typing import Any

from jinja2 import Environment

_HL7_DATETIME_RE = re.compile(
    r"^(?P<year>\d{4})(?P<month>\d{2})?(?P<day>\d{2})?"
    r"(?P<hour>\d{2})?(?P<minute>\d{2})?(?P<second>\d{2})?"
    r"(?P<fraction>\.\d+)?(?P<tz>[+-]\d{4})?$"
)


def to_json_string(value: Any) -> str:
    """Serialize a value to a JSON string."""
    if value is None:
        return ""
    return json.dumps(value, separators=(",", ":"), default=str)


def generate_uuid(value: Any) -> str:
    """Deterministic UUID derived from the SHA-256 of the input text."""
    if value is None or value == "":
        return ""
    digest = hashlib.sha256(str(value).encode("utf-8")).digest()
    return str(uuid.UUID(bytes=digest[:16]))


def format_as_date_time(value: Any) -> str:
    """Convert an HL7/CDA timestamp (YYYYMMDDHHMMSS[.S][+ZZZZ]) to a FHIR dateTime.

    The precision of the input is kept: '1980' stays a year, '198005' a
    year-month, and so on.
    """
    if value is None:
        return ""
    match = _HL7_DATETIME_RE.match(str(value).strip())
    if not match:
        return str(value)

    parts = match.groupdict()
    result = parts["year"]
    if parts["month"]:
        result += f"-{parts['month']}"
    if parts["day"]:
        result += f"-{parts['day']}"
    if parts["hour"]:
        result += f"T{parts['hour']}:{parts['minute'] or '00'}:{parts['second'] or '00'}"
        if parts["fraction"]:
            result += parts["fraction"]
        if parts["tz"]:
            result += f"{parts['tz'][:3]}:{parts['tz'][3:]}"
    return result


def format_as_date(value: Any) -> str:
    """Convert an HL7/CDA timestamp to a FHIR date."""
    formatted = format_as_date_time(value)
    return formatted.split("T", 1)[0]


def gender(value: Any) -> str:
    """Convert HL7 administrative sex to FHIR gender."""
    mapping = {
        "M": "male",
        "F": "female",
        "O": "other",
        "A": "other",
        "U": "unknown",
        "N": "unknown",
    }
    if value is None:
        return "unknown"
    return mapping.get(str(value).strip().upper(), "unknown")


# Registry of filter functions
FILTER_REGISTRY: dict[str, Callable[..., Any]] = {
    "to_json_string": to_json_string,
    "generate_uuid": generate_uuid,
    "format_as_date_time": format_as_date_time,
    "format_as_date": format_as_date,
    "gender": gender,
}


def register_filters(
    environment: Environment,
    filters: dict[str, Callable[..., Any]] | None = None,
) -> Environment:
    """Register the built-in filters (and any extras) on an environment."""
    environment.filters.update(FILTER_REGISTRY)
    if filters:
        environment.filters.update(filters)
    return environment

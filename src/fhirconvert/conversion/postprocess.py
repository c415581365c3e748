"""Post-processing of rendered template output.

Templates build JSON by string concatenation, which leaves artifacts that
are awkward to avoid inside loops: trailing commas, empty values and the
same resource emitted more than once. ``post_process`` cleans those up and
returns indented JSON.
"""

from __future__ import annotations

import json
from typing import Any

from fhirconvert.core.exceptions import PostprocessError
from fhirconvert.core.types import ErrorCode

EMPTY_VALUES: tuple[Any, ...] = (None, "", [], {})


def strip_trailing_commas(text: str) -> str:
    """Remove commas that directly precede a closing bracket, outside strings."""
    result: list[str] = []
    in_string = False
    escaped = False
    pending_comma: int | None = None

    for char in text:
        if in_string:
            result.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char in "}]" and pending_comma is not None:
            del result[pending_comma]
            pending_comma = None
        elif char == ",":
            # Collapse ",," into a single separator
            if pending_comma is not None:
                continue
            pending_comma = len(result)
        elif not char.isspace():
            pending_comma = None
            if char == '"':
                in_string = True

        result.append(char)

    return "".join(result)


def _fix_leading_commas(text: str) -> str:
    """Remove commas that directly follow an opening bracket, outside strings."""
    result: list[str] = []
    in_string = False
    escaped = False
    after_open = False

    for char in text:
        if in_string:
            result.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == "," and after_open:
            continue
        if char in "{[":
            after_open = True
        elif not char.isspace():
            after_open = False
            if char == '"':
                in_string = True
        result.append(char)

    return "".join(result)


def remove_empty_values(value: Any) -> Any:
    """Recursively drop None, empty strings, empty lists and empty objects."""
    if isinstance(value, dict):
        cleaned = {k: remove_empty_values(v) for k, v in value.items()}
        return {k: v for k, v in cleaned.items() if not _is_empty(v)}
    if isinstance(value, list):
        cleaned_list = [remove_empty_values(v) for v in value]
        return [v for v in cleaned_list if not _is_empty(v)]
    return value


def _is_empty(value: Any) -> bool:
    return any(value == empty and type(value) is type(empty) for empty in EMPTY_VALUES)


def merge_json(target: Any, source: Any) -> Any:
    """Merge ``source`` into ``target``.

    Objects merge key by key, arrays are unioned and any other value from
    ``source`` replaces the one in ``target``.
    """
    if isinstance(target, dict) and isinstance(source, dict):
        merged = dict(target)
        for key, value in source.items():
            merged[key] = merge_json(merged[key], value) if key in merged else value
        return merged
    if isinstance(target, list) and isinstance(source, list):
        merged_list = list(target)
        for item in source:
            if item not in merged_list:
                merged_list.append(item)
        return merged_list
    return source


def merge_bundle_entries(bundle: dict[str, Any]) -> dict[str, Any]:
    """Merge Bundle entries whose resources share resourceType and id.

    Entries whose resource has no id, or an empty one, are kept as they are.
    """
    entries = bundle.get("entry")
    if not isinstance(entries, list):
        return bundle

    merged: list[dict[str, Any]] = []
    index: dict[tuple[str, str], int] = {}

    for entry in entries:
        resource = entry.get("resource") if isinstance(entry, dict) else None
        if not isinstance(resource, dict) or not resource.get("id"):
            merged.append(entry)
            continue

        key = (str(resource.get("resourceType", "")), str(resource["id"]))
        if key in index:
            position = index[key]
            merged[position] = merge_json(merged[position], entry)
        else:
            index[key] = len(merged)
            merged.append(entry)

    return {**bundle, "entry": merged}


def post_process(raw: str) -> str:
    """Clean rendered template output and return it as indented JSON.

    Raises:
        PostprocessError: If the output is not valid JSON.
    """
    text = strip_trailing_commas(_fix_leading_commas(raw))
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PostprocessError(
            ErrorCode.JSON_PARSING_ERROR,
            f"Rendered output is not valid JSON: {e.msg} (line {e.lineno}, column {e.colno})",
            e,
        ) from e

    if isinstance(data, dict) and data.get("resourceType") == "Bundle":
        data = merge_bundle_entries(data)

    data = remove_empty_values(data)
    return json.dumps(data, indent=2, ensure_ascii=False)

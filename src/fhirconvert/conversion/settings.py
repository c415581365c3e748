"""Loading processor settings from YAML."""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from fhirconvert.core.types import ProcessorSettings

SETTINGS_KEYS = frozenset(f.name for f in fields(ProcessorSettings))


def settings_from_dict(data: dict[str, Any] | None) -> ProcessorSettings:
    """Build ProcessorSettings from a mapping.

    Raises:
        ValueError: On unknown keys or values of the wrong type.
    """
    if not data:
        return ProcessorSettings()

    unknown = set(data) - SETTINGS_KEYS
    if unknown:
        raise ValueError(f"Unknown processor settings: {sorted(unknown)}")

    timeout = data.get("timeout", 0)
    if timeout is None:
        timeout = 0
    if isinstance(timeout, bool) or not isinstance(timeout, int):
        raise ValueError(f"timeout must be an integer number of milliseconds, got {timeout!r}")

    post_process = data.get("post_process", True)
    if not isinstance(post_process, bool):
        raise ValueError(f"post_process must be a boolean, got {post_process!r}")

    return ProcessorSettings(timeout=timeout, post_process=post_process)


def load_settings(path: str | Path) -> ProcessorSettings:
    """Load ProcessorSettings from a YAML file.

    Example file::

        timeout: 5000
        post_process: true

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file is not a mapping or contains invalid settings.
    """
    settings_path = Path(path)
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with open(settings_path) as f:
        data = yaml.safe_load(f)

    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping: {settings_path}")

    return settings_from_dict(data)


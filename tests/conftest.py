"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"
TEMPLATES_DIR = FIXTURES_DIR / "templates"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def hl7v2_template_dir() -> Path:
    return TEMPLATES_DIR / "hl7v2"


@pytest.fixture
def ccda_template_dir() -> Path:
    return TEMPLATES_DIR / "ccda"


@pytest.fixture
def test_template_dir() -> Path:
    """Templates used to exercise error handling and timeouts."""
    return TEMPLATES_DIR / "test"


@pytest.fixture
def adt_message() -> str:
    return (FIXTURES_DIR / "hl7v2" / "adt_a01.hl7").read_text()


@pytest.fixture
def oru_message() -> str:
    return (FIXTURES_DIR / "hl7v2" / "oru_r01.hl7").read_text()


@pytest.fixture
def ccd_document() -> str:
    return (FIXTURES_DIR / "ccda" / "ccd.xml").read_text()

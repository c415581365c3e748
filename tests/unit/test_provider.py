"""Tests for template providers."""

import threading
from pathlib import Path

import pytest
from jinja2 import Template

from fhirconvert.core.exceptions import RenderError
from fhirconvert.core.types import ErrorCode
from fhirconvert.templates.provider import (
    CcdaTemplateProvider,
    Hl7v2TemplateProvider,
    TemplateCollectionProvider,
    TemplateDirectoryProvider,
)


class TestTemplateDirectoryProvider:
    """Tests for the directory-backed provider."""

    def test_resolves_root_template(self, hl7v2_template_dir: Path) -> None:
        provider = TemplateDirectoryProvider(hl7v2_template_dir)
        template = provider.get_template("ADT_A01")

        assert isinstance(template, Template)
        assert provider.has_template("ORU_R01")

    def test_missing_template_returns_none(self, hl7v2_template_dir: Path) -> None:
        provider = TemplateDirectoryProvider(hl7v2_template_dir)

        assert provider.get_template("NonExistentTemplateName") is None
        assert not provider.has_template("NonExistentTemplateName")

    def test_resolves_partial_by_include_name(self, hl7v2_template_dir: Path) -> None:
        """'Resource/Patient' resolves to the partial file 'Resource/_Patient.j2'."""
        provider = TemplateDirectoryProvider(hl7v2_template_dir)

        assert provider.get_template("Resource/Patient") is not None

    def test_templates_are_cached(self, hl7v2_template_dir: Path) -> None:
        provider = TemplateDirectoryProvider(hl7v2_template_dir)

        assert provider.get_template("ADT_A01") is provider.get_template("ADT_A01")

    def test_concurrent_lookups(self, hl7v2_template_dir: Path) -> None:
        provider = TemplateDirectoryProvider(hl7v2_template_dir)
        results: list[Template | None] = []
        lock = threading.Lock()

        def lookup() -> None:
            template = provider.get_template("ORU_R01")
            with lock:
                results.append(template)

        threads = [threading.Thread(target=lookup) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert all(r is not None for r in results)

    def test_syntax_error_raises_render_error(self, test_template_dir: Path) -> None:
        provider = TemplateDirectoryProvider(test_template_dir)

        with pytest.raises(RenderError) as exc_info:
            provider.get_template("BrokenSyntax")

        assert exc_info.value.error_code == ErrorCode.TEMPLATE_SYNTAX_ERROR

    def test_missing_directory_raises(self, tmp_path: Path) -> None:
        with pytest.raises(RenderError) as exc_info:
            TemplateDirectoryProvider(tmp_path / "missing")

        assert exc_info.value.error_code == ErrorCode.TEMPLATE_LOADING_ERROR

    def test_list_templates(self, hl7v2_template_dir: Path) -> None:
        provider = Hl7v2TemplateProvider(hl7v2_template_dir)

        assert provider.list_templates() == ["ADT_A01", "ORU_R01"]
        assert "Resource/_Patient" in provider.list_templates(include_partials=True)

    def test_custom_extension(self, tmp_path: Path) -> None:
        (tmp_path / "Root.liquid").write_text('{"a": "b"}')
        provider = TemplateDirectoryProvider(tmp_path, extension=".liquid")

        assert provider.get_template("Root") is not None
        assert provider.list_templates() == ["Root"]

    @pytest.mark.parametrize("provider_cls", [Hl7v2TemplateProvider, CcdaTemplateProvider])
    def test_format_providers_match_directory_provider(
        self, provider_cls: type[TemplateDirectoryProvider], hl7v2_template_dir: Path
    ) -> None:
        provider = provider_cls(hl7v2_template_dir)
        plain = TemplateDirectoryProvider(hl7v2_template_dir)

        assert provider.loader.extension == ".j2"
        assert provider.list_templates(include_partials=True) == plain.list_templates(
            include_partials=True
        )
        assert provider.has_template("Resource/Patient")


class TestTemplateCollectionProvider:
    """Tests for the collection-backed provider."""

    def test_exact_key_lookup(self) -> None:
        provider = TemplateCollectionProvider({"TemplateName": Template('{"a":"b"}')})

        assert provider.get_template("TemplateName") is not None
        assert provider.get_template("templatename") is None
        assert provider.get_template("Other") is None

    def test_first_collection_wins(self) -> None:
        first = Template("first")
        second = Template("second")
        provider = TemplateCollectionProvider([{"T": first}, {"T": second, "U": second}])

        assert provider.get_template("T") is first
        assert provider.get_template("U") is second
        assert provider.list_templates() == ["T", "U"]

    def test_from_sources_resolves_includes(self) -> None:
        provider = TemplateCollectionProvider.from_sources(
            {
                "Root": '{"entry": [{% include "Part" %}]}',
                "Part": '{"id": "{{ value }}"}',
            }
        )
        template = provider.get_template("Root")

        assert template is not None
        assert template.render(value="x") == '{"entry": [{"id": "x"}]}'

    def test_from_sources_syntax_error(self) -> None:
        with pytest.raises(RenderError) as exc_info:
            TemplateCollectionProvider.from_sources({"Bad": "{% for %}"})

        assert exc_info.value.error_code == ErrorCode.TEMPLATE_SYNTAX_ERROR

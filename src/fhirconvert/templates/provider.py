"""Template providers resolving root template names to parsed Jinja templates."""

from __future__ import annotations

import logging
import posixpath
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from jinja2 import (
    BaseLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
)

from fhirconvert.core.exceptions import RenderError
from fhirconvert.core.types import ErrorCode
from fhirconvert.templates.filters import register_filters

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".j2"

# Partial (included) templates are stored with this file name prefix
PARTIAL_PREFIX = "_"


def _finalize(value: Any) -> Any:
    return "" if value is None else value


def create_environment(
    loader: BaseLoader,
    filters: dict[str, Callable[..., Any]] | None = None,
) -> Environment:
    """Create the Jinja environment used to parse conversion templates.

    Templates produce JSON, so autoescaping is off and None renders as an
    empty string. The template cache is unbounded so parsed templates live
    as long as the environment.
    """
    environment = Environment(
        loader=loader,
        autoescape=False,
        cache_size=-1,
        auto_reload=False,
        keep_trailing_newline=False,
        finalize=_finalize,
    )
    return register_filters(environment, filters)


def _syntax_error(name: str, error: TemplateSyntaxError) -> RenderError:
    return RenderError(
        ErrorCode.TEMPLATE_SYNTAX_ERROR,
        f"Syntax error in template '{error.name or name}' line {error.lineno}: {error.message}",
        error,
    )


class TemplateProvider(ABC):
    """Resolves template names to parsed templates.

    Implementations must be safe to read from several threads at once.
    """

    @abstractmethod
    def get_template(self, name: str) -> Template | None:
        """Return the parsed template called ``name``, or None if it does not exist.

        Raises:
            RenderError: If the template exists but cannot be loaded or parsed.
        """

    def has_template(self, name: str) -> bool:
        return self.get_template(name) is not None


class TemplateDirectoryLoader(FileSystemLoader):
    """FileSystemLoader that applies the template file naming convention.

    A template name such as ``ADT_A01`` resolves to ``ADT_A01.j2``. When no
    such file exists the partial ``_ADT_A01.j2`` is tried, so an include
    like ``{% include "Resource/Patient" %}`` finds ``Resource/_Patient.j2``.
    """

    def __init__(self, searchpath: str | Path, extension: str = DEFAULT_EXTENSION) -> None:
        super().__init__(searchpath, encoding="utf-8", followlinks=False)
        self.extension = extension

    def _file_name(self, template: str) -> str:
        if self.extension and not template.endswith(self.extension):
            return template + self.extension
        return template

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str | None, Callable[[], bool] | None]:
        name = self._file_name(template)
        try:
            return super().get_source(environment, name)
        except TemplateNotFound:
            head, tail = posixpath.split(name)
            partial = posixpath.join(head, PARTIAL_PREFIX + tail)
            try:
                return super().get_source(environment, partial)
            except TemplateNotFound:
                raise TemplateNotFound(template) from None

    def list_templates(self) -> list[str]:
        """List template names (extension removed), partials included."""
        names = []
        for file_name in super().list_templates():
            if not self.extension:
                names.append(file_name)
            elif file_name.endswith(self.extension):
                names.append(file_name[: -len(self.extension)])
        return sorted(names)


class TemplateDirectoryProvider(TemplateProvider):
    """Loads templates lazily from a directory and caches them for its lifetime."""

    def __init__(
        self,
        template_dir: str | Path,
        extension: str = DEFAULT_EXTENSION,
        filters: dict[str, Callable[..., Any]] | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            template_dir: Root directory containing template files.
            extension: File extension appended to template names.
            filters: Additional Jinja filters to register.

        Raises:
            RenderError: If the directory does not exist.
        """
        self.template_dir = Path(template_dir)
        if not self.template_dir.is_dir():
            raise RenderError(
                ErrorCode.TEMPLATE_LOADING_ERROR,
                f"Template directory not found: {self.template_dir}",
            )
        self.loader = TemplateDirectoryLoader(self.template_dir, extension)
        self.environment = create_environment(self.loader, filters)

    def get_template(self, name: str) -> Template | None:
        try:
            template = self.environment.get_template(name)
        except TemplateNotFound:
            logger.debug("Template %s not found in %s", name, self.template_dir)
            return None
        except TemplateSyntaxError as e:
            raise _syntax_error(name, e) from e
        except (OSError, UnicodeDecodeError) as e:
            raise RenderError(
                ErrorCode.TEMPLATE_LOADING_ERROR,
                f"Failed to load template '{name}': {e}",
                e,
            ) from e

        logger.debug("Resolved template %s from %s", name, self.template_dir)
        return template

    def list_templates(self, include_partials: bool = False) -> list[str]:
        """List template names available in the directory."""
        names = self.loader.list_templates()
        if include_partials:
            return names
        return [n for n in names if not posixpath.basename(n).startswith(PARTIAL_PREFIX)]


class Hl7v2TemplateProvider(TemplateDirectoryProvider):
    """Directory provider for HL7 v2 templates (roots named after message types, e.g. ORU_R01).

    Same behaviour and ``.j2`` default as TemplateDirectoryProvider; the
    subclass only names the format a template library is written for.
    """


class CcdaTemplateProvider(TemplateDirectoryProvider):
    """Directory provider for C-CDA templates (roots named after document types, e.g. CCD).

    Same behaviour and ``.j2`` default as TemplateDirectoryProvider; the
    subclass only names the format a template library is written for.
    """


class TemplateCollectionProvider(TemplateProvider):
    """Serves pre-parsed templates from in-memory mappings.

    Lookup is by exact name only. When several mappings are supplied the
    first one containing the name wins.
    """

    def __init__(
        self,
        collections: Mapping[str, Template] | Sequence[Mapping[str, Template]],
    ) -> None:
        if isinstance(collections, Mapping):
            collections = [collections]
        self.collections: list[Mapping[str, Template]] = list(collections)

    @classmethod
    def from_sources(
        cls,
        sources: Mapping[str, str],
        filters: dict[str, Callable[..., Any]] | None = None,
    ) -> TemplateCollectionProvider:
        """Parse template sources into a collection.

        The templates share one environment, so includes between them
        resolve by name.

        Raises:
            RenderError: If any source has a syntax error.
        """
        environment = create_environment(DictLoader(dict(sources)), filters)
        templates: dict[str, Template] = {}
        for name in sources:
            try:
                templates[name] = environment.get_template(name)
            except TemplateSyntaxError as e:
                raise _syntax_error(name, e) from e
        return cls(templates)

    def get_template(self, name: str) -> Template | None:
        for collection in self.collections:
            template = collection.get(name)
            if template is not None:
                return template
        return None

    def list_templates(self) -> list[str]:
        names: set[str] = set()
        for collection in self.collections:
            names.update(collection)
        return sorted(names)

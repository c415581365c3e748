"""Conversion orchestration shared by every input format.

``BaseProcessor.convert`` validates its arguments, resolves the root
template, renders it against the parsed input and reports every failure as
a ``RenderError``. Cancellation is the one exception: it is raised as
``ConversionCancelledError``.

Timeouts:
    When ``ProcessorSettings.timeout`` is positive the render runs on a
    worker thread and the caller waits at most that long. On timeout the
    caller gets ``RenderError(TIMEOUT_ERROR)`` straight away, but the worker
    is only detached, not stopped: Jinja offers no way to interrupt a
    render, so an abandoned render keeps running in the background until it
    finishes (or until the caller's cancellation token is triggered). The
    bound limits how long the caller waits, not how long the work runs.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from jinja2 import Template, TemplateNotFound, TemplateSyntaxError

from fhirconvert.conversion.postprocess import post_process
from fhirconvert.core.cancellation import CancellationToken
from fhirconvert.core.exceptions import (
    ConversionCancelledError,
    DataParseError,
    FhirConverterError,
    PostprocessError,
    RenderError,
)
from fhirconvert.core.types import DataType, ErrorCode, ProcessorSettings
from fhirconvert.templates.provider import TemplateProvider

logger = logging.getLogger(__name__)


class BaseProcessor(ABC):
    """Converts raw healthcare data to FHIR JSON by rendering templates.

    A processor holds only its settings, so one instance can serve any
    number of concurrent ``convert`` calls.
    """

    data_type: DataType

    def __init__(self, settings: ProcessorSettings | None = None) -> None:
        """Initialize processor.

        Args:
            settings: Processor settings. None means default settings
                (no timeout).
        """
        self.settings = settings or ProcessorSettings()

    @abstractmethod
    def parse(self, data: str) -> Any:
        """Parse raw input into the structure handed to templates."""

    @abstractmethod
    def build_context(self, model: Any) -> dict[str, Any]:
        """Build the template variables for a parsed input."""

    def convert(
        self,
        data: str,
        root_template: str | None,
        template_provider: TemplateProvider | None,
        cancellation_token: CancellationToken | None = None,
    ) -> str:
        """Convert raw data to FHIR JSON.

        Args:
            data: Raw input text.
            root_template: Name of the template that drives rendering.
            template_provider: Provider used to resolve the root template.
            cancellation_token: Optional token; triggering it calls off the
                conversion.

        Returns:
            The rendered output. Conversion is all-or-nothing.

        Raises:
            ConversionCancelledError: If the token is or becomes triggered.
            RenderError: For any other failure (see ``ErrorCode``).
        """
        token = cancellation_token or CancellationToken.none()
        token.raise_if_cancellation_requested()

        template = self._resolve_template(root_template, template_provider)

        try:
            model = self.parse(data)
        except DataParseError as e:
            raise RenderError(e.error_code, e.message, e) from e

        context = self.build_context(model)
        result = self._render_with_timeout(template, context, root_template, token)
        token.raise_if_cancellation_requested()

        if not self.settings.post_process:
            return result
        try:
            return post_process(result)
        except PostprocessError as e:
            raise RenderError(e.error_code, e.message, e) from e

    def _resolve_template(
        self,
        root_template: str | None,
        template_provider: TemplateProvider | None,
    ) -> Template:
        if template_provider is None:
            raise RenderError(ErrorCode.NULL_TEMPLATE_PROVIDER, "Template provider is null.")

        if not root_template:
            raise RenderError(
                ErrorCode.NULL_OR_EMPTY_ROOT_TEMPLATE, "Root template name is null or empty."
            )

        template = template_provider.get_template(root_template)
        if template is None:
            raise RenderError(
                ErrorCode.TEMPLATE_NOT_FOUND, f"Template '{root_template}' not found."
            )
        return template

    def _render_with_timeout(
        self,
        template: Template,
        context: dict[str, Any],
        template_name: str,
        token: CancellationToken,
    ) -> str:
        """Render, bounding the caller's wait when a timeout is configured."""
        timeout = self.settings.timeout_seconds
        if timeout is None:
            return self._render(template, context, template_name, token)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fhirconvert-render")
        try:
            future = executor.submit(self._render, template, context, template_name, token)
            try:
                return future.result(timeout=timeout)
            except FutureTimeoutError as e:
                # A token triggered while waiting is reported as cancellation
                token.raise_if_cancellation_requested()
                logger.warning(
                    "Rendering of template %s exceeded %d ms; abandoning the render",
                    template_name,
                    self.settings.timeout,
                )
                timeout_error = TimeoutError(
                    f"Rendering did not complete within {self.settings.timeout} ms."
                )
                raise RenderError(
                    ErrorCode.TIMEOUT_ERROR,
                    f"Timeout: rendering of template '{template_name}' exceeded "
                    f"{self.settings.timeout} ms.",
                    timeout_error,
                ) from e
        finally:
            # Do not wait for an abandoned render
            executor.shutdown(wait=False)

    def _render(
        self,
        template: Template,
        context: dict[str, Any],
        template_name: str,
        token: CancellationToken,
    ) -> str:
        """Render a template, checking the token between output chunks."""
        token.raise_if_cancellation_requested()
        logger.debug("Rendering template %s", template_name)
        started = time.perf_counter()

        chunks: list[str] = []
        try:
            for chunk in template.generate(context):
                token.raise_if_cancellation_requested()
                chunks.append(chunk)
        except (ConversionCancelledError, FhirConverterError):
            raise
        except TemplateNotFound as e:
            raise RenderError(
                ErrorCode.TEMPLATE_NOT_FOUND,
                f"Template '{e.name}' included from '{template_name}' not found.",
                e,
            ) from e
        except TemplateSyntaxError as e:
            raise RenderError(
                ErrorCode.TEMPLATE_SYNTAX_ERROR,
                f"Syntax error in template '{e.name or template_name}' "
                f"line {e.lineno}: {e.message}",
                e,
            ) from e
        except Exception as e:
            raise RenderError(
                ErrorCode.TEMPLATE_RENDERING_ERROR,
                f"Failed to render template '{template_name}': {e}",
                e,
            ) from e

        logger.debug(
            "Rendered template %s in %.1f ms",
            template_name,
            (time.perf_counter() - started) * 1000,
        )
        return "".join(chunks)

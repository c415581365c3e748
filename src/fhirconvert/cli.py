"""Command-line interface for fhirconvert."""

from __future__ import annotations

import logging
from pathlib import Path

import click
import yaml

from fhirconvert import __version__
from fhirconvert.conversion.factory import create_processor
from fhirconvert.conversion.settings import load_settings
from fhirconvert.core.cancellation import CancellationTokenSource
from fhirconvert.core.exceptions import ConversionCancelledError, FhirConverterError
from fhirconvert.core.types import DataType, ProcessorSettings
from fhirconvert.templates.provider import TemplateDirectoryProvider

DATA_TYPES = [t.value for t in DataType]


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """fhirconvert - Template-driven HL7 v2 and C-CDA to FHIR conversion."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "-f",
    "data_type",
    type=click.Choice(DATA_TYPES, case_sensitive=False),
    required=True,
    help="Input format",
)
@click.option(
    "--template-dir",
    "-d",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    required=True,
    help="Template directory",
)
@click.option(
    "--root-template",
    "-r",
    required=True,
    help="Root template name (e.g. ADT_A01, CCD)",
)
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML processor settings file",
)
@click.option(
    "--timeout",
    type=int,
    default=None,
    help="Rendering timeout in milliseconds (overrides --settings)",
)
@click.option(
    "--cancel-after",
    type=float,
    default=None,
    help="Call the conversion off after this many seconds",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (default: stdout)",
)
def convert(
    input_file: Path,
    data_type: str,
    template_dir: Path,
    root_template: str,
    settings_file: Path | None,
    timeout: int | None,
    cancel_after: float | None,
    output: Path | None,
) -> None:
    """Convert an HL7 v2 message or C-CDA document to FHIR.

    Examples:

        fhirconvert convert -f hl7v2 -d templates/hl7v2 -r ADT_A01 message.hl7

        fhirconvert convert -f ccda -d templates/ccda -r CCD ccd.xml -o bundle.json
    """
    try:
        settings = load_settings(settings_file) if settings_file else ProcessorSettings()
    except (ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid settings file {settings_file}: {e}") from e

    if timeout is not None:
        settings = ProcessorSettings(timeout=timeout, post_process=settings.post_process)

    source = CancellationTokenSource()
    if cancel_after is not None:
        source.cancel_after(cancel_after)

    try:
        processor = create_processor(data_type, settings)
        provider = TemplateDirectoryProvider(template_dir)
        data = input_file.read_text(encoding="utf-8")
        result = processor.convert(data, root_template, provider, source.token)
    except ConversionCancelledError as e:
        raise click.ClickException("Conversion cancelled") from e
    except FhirConverterError as e:
        raise click.ClickException(str(e)) from e
    finally:
        source.cancel()

    if output:
        output.write_text(result, encoding="utf-8")
        click.echo(f"Output written to {output}")
    else:
        click.echo(result)


@cli.command("list-templates")
@click.option(
    "--template-dir",
    "-d",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    required=True,
    help="Template directory",
)
@click.option("--partials", is_flag=True, help="Include partial templates")
def list_templates(template_dir: Path, partials: bool) -> None:
    """List templates available in a template directory."""
    provider = TemplateDirectoryProvider(template_dir)
    names = provider.list_templates(include_partials=partials)

    if not names:
        click.echo(f"No templates found in {template_dir}")
        return

    click.echo(f"Templates in {template_dir}:")
    click.echo()
    for name in names:
        click.echo(f"  - {name}")


def main() -> None:
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

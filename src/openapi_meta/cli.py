"""CLI entry point for openapi-meta."""

import json
import logging
from pathlib import Path

import click

from openapi_meta.config import Settings
from openapi_meta.errors import OpenApiMetaError, ResolutionError, ValidationError
from openapi_meta.generator.synthesize import synthesize
from openapi_meta.parser.detect import detect_format, load_json
from openapi_meta.parser.flatten import dump_path_mapping, flatten, to_path_mapping
from openapi_meta.parser.resolver import resolve
from openapi_meta.parser.validator import ensure_valid, validate


def _read(file_path: Path):
    try:
        return load_json(file_path)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{file_path} is not valid JSON: {e}")


def _write(data, output: Path | None) -> None:
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output is None:
        click.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    click.echo(f"Saved to {output}", err=True)


def _fail(error: OpenApiMetaError) -> None:
    click.echo(json.dumps(error.to_body(), indent=2, ensure_ascii=False), err=True)
    raise SystemExit(1)


@click.group()
@click.option("--log-level", default=None, type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False), help="Logging level.")
@click.option("--allow-remote-refs", is_flag=True, default=False, help="Fetch http(s) $ref targets.")
@click.pass_context
def main(ctx: click.Context, log_level: str | None, allow_remote_refs: bool):
    """openapi-meta — normalise OpenAPI documents and infer them from examples."""
    settings = Settings.from_env()
    if log_level:
        settings.log_level = log_level.upper()
    if allow_remote_refs:
        settings.allow_remote_refs = True
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = settings


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file for the path mapping (default: stdout).")
@click.option("--format", "fmt", default="auto", type=click.Choice(["auto", "openapi", "samples"]), help="Input kind.")
@click.pass_obj
def convert(settings: Settings, doc_path: Path, output: Path | None, fmt: str):
    """Flatten an OpenAPI document (or a samples payload) into per-path metadata."""
    data = _read(doc_path)
    if fmt == "auto":
        fmt = detect_format(data)
        click.echo(f"Detected format: {fmt}", err=True)

    try:
        if fmt == "samples":
            if not isinstance(data, dict):
                raise ValidationError("Samples payload must be a JSON object with input and output")
            data = synthesize(data.get("input"), data.get("output"), data.get("parameters"), settings=settings)
        elif fmt != "openapi":
            raise ResolutionError("Invalid schema: not an OpenAPI document")
        resolved = resolve(data, base_uri=str(doc_path.resolve()), settings=settings)
        ensure_valid(resolved)
        warnings: list[str] = []
        entries = flatten(resolved, warnings=warnings)
    except OpenApiMetaError as e:
        _fail(e)

    click.echo(f"Found {len(entries)} paths ({len(warnings)} warning(s)).", err=True)
    _write(dump_path_mapping(to_path_mapping(entries)), output)


@main.command("validate")
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def validate_cmd(settings: Settings, doc_path: Path):
    """Dereference and validate an OpenAPI document, listing every finding."""
    try:
        resolved = resolve(_read(doc_path), base_uri=str(doc_path.resolve()), settings=settings)
    except OpenApiMetaError as e:
        _fail(e)

    report = validate(resolved)
    for finding in report.errors:
        click.echo(f"{finding.path or '<root>'}: {finding.message}")
    if not report.valid:
        raise SystemExit(1)
    click.echo("Valid OpenAPI 3.0 document.")


@main.command("synthesize")
@click.option("--request", "request_path", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="JSON file with an example request body.")
@click.option("--response", "response_path", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="JSON file with an example response body.")
@click.option("--parameters", "parameters_path", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="JSON file with an array of parameter objects.")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file for the OpenAPI document (default: stdout).")
@click.pass_obj
def synthesize_cmd(settings: Settings, request_path: Path, response_path: Path, parameters_path: Path | None, output: Path | None):
    """Generate an OpenAPI document from example request/response bodies."""
    parameters = _read(parameters_path) if parameters_path else []
    try:
        document = synthesize(_read(request_path), _read(response_path), parameters, settings=settings)
    except OpenApiMetaError as e:
        _fail(e)
    _write(document, output)

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import AppConfig, dump_config, load_config
from ..documents import AsciidocToDocxConverter, DocxToAsciidocConverter, read_asciidoc_file, validate_docx_file
from ..errors import ConversionError
from ..geospatial import GeoConverter, close_default_engine
from ..models import AsciidocToDocxOptions, DocxToAsciidocOptions

console = Console()

app = typer.Typer(help="DOCX, AsciiDoc and geospatial format conversion toolkit")

CONFIG_OPTION = typer.Option(None, "--config", help="Path to config.toml")


def _load_config(path: Path | None) -> AppConfig:
    return load_config(path)


def _fail(exc: ConversionError) -> typer.Exit:
    console.print(f"[red]Error[/red]: {exc.code} - {escape(str(exc))}", soft_wrap=True)
    return typer.Exit(1)


def _parse_attributes(values: list[str]) -> dict[str, str]:
    attributes: dict[str, str] = {}
    for value in values:
        key, sep, setting = value.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got {value!r}", param_hint="--attribute")
        attributes[key.strip()] = setting.strip()
    return attributes


@app.command()
def convert(
    input_file: Path = typer.Argument(..., help="Source geospatial file"),
    output_file: Path = typer.Argument(..., help="Destination file"),
    output_format: str | None = typer.Argument(None, help="Output format; inferred from OUTPUT_FILE when omitted"),
    config: Path | None = CONFIG_OPTION,
) -> None:
    cfg = _load_config(config)
    converter = GeoConverter(config=cfg)
    try:
        result = converter.convert_file(input_file, output_file, output_format)
    except ConversionError as exc:
        raise _fail(exc) from exc
    finally:
        close_default_engine()
    console.print(f"[green]Success[/green]: {result.summary}")


@app.command()
def info(
    file: Path = typer.Argument(..., help="Geospatial file to inspect"),
    geo_format: str | None = typer.Option(None, "--format", help="Input format; inferred from FILE when omitted"),
    config: Path | None = CONFIG_OPTION,
) -> None:
    cfg = _load_config(config)
    converter = GeoConverter(config=cfg)
    try:
        fmt = geo_format or converter.get_format_from_extension(file.suffix)
        details = converter.get_geometry_info(file, fmt)
    except ConversionError as exc:
        raise _fail(exc) from exc
    finally:
        close_default_engine()
    table = Table(title=f"Geometry info: {file.name}")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Count", str(details.count))
    table.add_row("Types", ", ".join(details.types) or "-")
    table.add_row("Bounds", ", ".join(f"{value:g}" for value in details.bounds) if details.bounds else "-")
    console.print(table)


@app.command("docx-to-adoc")
def docx_to_adoc(
    input_file: Path = typer.Argument(..., help="DOCX file to convert"),
    output_file: Path | None = typer.Argument(None, help="Write AsciiDoc here instead of stdout"),
    heading_level: int = typer.Option(0, "--heading-level", min=0, help="Offset added to every heading level"),
    attributes: bool = typer.Option(False, "--attributes", help="Insert document attributes after the title"),
    attribute: list[str] = typer.Option([], "--attribute", help="Extra document attribute as key=value"),
    preserve_line_breaks: bool = typer.Option(False, "--preserve-line-breaks"),
    code_block_style: str = typer.Option("fenced", "--code-block-style", help="fenced or indented"),
    toc: bool = typer.Option(False, "--toc", help="Add table of contents attributes"),
    config: Path | None = CONFIG_OPTION,
) -> None:
    if code_block_style not in ("fenced", "indented"):
        raise typer.BadParameter("Must be 'fenced' or 'indented'", param_hint="--code-block-style")
    options = DocxToAsciidocOptions(
        heading_level=heading_level,
        include_attributes=attributes,
        attributes=_parse_attributes(attribute),
        preserve_line_breaks=preserve_line_breaks,
        code_block_style=code_block_style,  # type: ignore[arg-type]
        include_toc=toc,
    )
    converter = DocxToAsciidocConverter(_load_config(config))
    try:
        result = converter.convert_with_result(input_file, output_file, options)
    except ConversionError as exc:
        raise _fail(exc) from exc
    for warning in result.warnings:
        console.print(f"[yellow]Warning[/yellow]: {warning}")
    if output_file is None:
        typer.echo(result.content or "", nl=False)
    else:
        console.print(f"[green]Success[/green]: {result.summary}")


@app.command("adoc-to-docx")
def adoc_to_docx(
    input_file: Path = typer.Argument(..., help="AsciiDoc file to convert"),
    output_file: Path = typer.Argument(..., help="Destination DOCX file"),
    template: Path | None = typer.Option(None, "--template", help="DOCX file used as the base document"),
    title: str = typer.Option("Converted Document", "--title"),
    author: str | None = typer.Option(None, "--author"),
    orientation: str = typer.Option("portrait", "--orientation", help="portrait or landscape"),
    font_size: float | None = typer.Option(None, "--font-size", min=1, help="Body font size in points"),
    header: str | None = typer.Option(None, "--header"),
    footer: str | None = typer.Option(None, "--footer"),
    config: Path | None = CONFIG_OPTION,
) -> None:
    if orientation not in ("portrait", "landscape"):
        raise typer.BadParameter("Must be 'portrait' or 'landscape'", param_hint="--orientation")
    options = AsciidocToDocxOptions(
        title=title,
        author=author,
        orientation=orientation,  # type: ignore[arg-type]
        font_size=font_size,
        header=header,
        footer=footer,
        template_path=template,
    )
    converter = AsciidocToDocxConverter(_load_config(config))
    try:
        content = read_asciidoc_file(input_file)
        written = converter.convert(content, output_file, options, source=str(input_file))
    except ConversionError as exc:
        raise _fail(exc) from exc
    console.print(f"[green]Success[/green]: wrote {written}")


@app.command("validate-docx")
def validate_docx(file: Path = typer.Argument(..., help="DOCX file to check")) -> None:
    if validate_docx_file(file):
        console.print(f"[green]Valid[/green]: {file}")
        return
    console.print(f"[red]Invalid[/red]: {file}")
    raise typer.Exit(1)


@app.command("show-config")
def show_config(config: Path | None = CONFIG_OPTION) -> None:
    console.print_json(dump_config(_load_config(config)))


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return its exit status."""

    try:
        app(args=list(argv) if argv is not None else None, prog_name="docgeo")
    except SystemExit as exc:
        # Usage errors exit with 2; every failure maps to 1.
        return 0 if exc.code in (None, 0) else 1
    return 0


__all__ = ["app", "main"]

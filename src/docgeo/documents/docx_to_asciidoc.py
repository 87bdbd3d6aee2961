from __future__ import annotations

import dataclasses
import time
from pathlib import Path

import mammoth
from markdownify import ATX, MarkdownConverter

from ..config import AppConfig
from ..errors import wrap_failure
from ..logging import RunLogEntry, StageTimings, build_run_logger
from ..models import DocumentConversionResult, DocxToAsciidocOptions
from ..utils import atomic_write, elapsed_ms, generate_run_id, normalize_newlines, require_file
from .markdown import markdown_to_asciidoc
from .postprocess import post_process_asciidoc

FAILURE_PREFIX = "Failed to convert DOCX to AsciiDoc"


class AsciidocMarkdownConverter(MarkdownConverter):
    """markdownify converter producing the Markdown dialect the rewriter reads."""

    def __init__(self, *, code_block_style: str = "fenced", **options) -> None:  # type: ignore[no-untyped-def]
        options.setdefault("heading_style", ATX)
        options.setdefault("bullets", "*")
        super().__init__(**options)
        self._code_block_style = code_block_style

    def convert_pre(self, el, text, *args, **kwargs):  # type: ignore[no-untyped-def]
        fenced = super().convert_pre(el, text, *args, **kwargs)
        if self._code_block_style != "indented":
            return fenced
        return _indent_fenced_block(fenced)


def _indent_fenced_block(block: str) -> str:
    lines = block.strip("\n").split("\n")
    if len(lines) >= 2 and lines[0].startswith("```") and lines[-1].startswith("```"):
        lines = lines[1:-1]
    body = "\n".join(f"    {line}" if line else "" for line in lines)
    return f"\n\n{body}\n\n"


def docx_to_html(path: Path) -> tuple[str, list[str]]:
    with path.open("rb") as handle:
        result = mammoth.convert_to_html(handle)
    warnings = [f"{message.type}: {message.message}" for message in result.messages]
    return result.value, warnings


def html_to_markdown(html: str, options: DocxToAsciidocOptions) -> str:
    converter = AsciidocMarkdownConverter(code_block_style=options.code_block_style)
    return converter.convert(html)


def validate_docx_file(path: Path) -> bool:
    path = Path(path)
    if not path.exists():
        return False
    try:
        with path.open("rb") as handle:
            mammoth.extract_raw_text(handle)
    except Exception:
        return False
    return True


class DocxToAsciidocConverter:
    name = "docx-to-asciidoc"

    def __init__(self, config: AppConfig | None = None) -> None:
        self._config = config or AppConfig()
        self._logger = build_run_logger(self._config.runtime.log_file)

    def convert(
        self,
        docx_path: Path,
        output_path: Path | None = None,
        options: DocxToAsciidocOptions | None = None,
    ) -> str:
        result = self.convert_with_result(docx_path, output_path, options)
        return result.content or ""

    def convert_with_result(
        self,
        docx_path: Path,
        output_path: Path | None = None,
        options: DocxToAsciidocOptions | None = None,
    ) -> DocumentConversionResult:
        source = Path(docx_path)
        destination = Path(output_path) if output_path is not None else None
        opts = self._resolve_options(options)
        run_id = generate_run_id("docx")
        timings = StageTimings()
        warnings: list[str] = []
        try:
            asciidoc = self._convert_internal(source, opts, timings, warnings)
            if destination is not None:
                start = time.perf_counter()
                atomic_write(destination, asciidoc)
                timings.record("write", elapsed_ms(start))
        except Exception as exc:
            error = wrap_failure(FAILURE_PREFIX, exc)
            self._log(run_id, source, destination, "failure", warnings, error.code, timings)
            raise error from exc

        self._log(run_id, source, destination, "success", warnings, None, timings)
        target = destination if destination is not None else "memory"
        return DocumentConversionResult(
            run_id=run_id,
            content=asciidoc,
            output_path=destination,
            warnings=warnings,
            summary=f"Converted {source.name} -> {target} in {timings.total_ms / 1000:.2f}s",
        )

    def _resolve_options(self, options: DocxToAsciidocOptions | None) -> DocxToAsciidocOptions:
        opts = options or DocxToAsciidocOptions()
        return dataclasses.replace(
            opts,
            default_title=opts.default_title or self._config.documents.default_title,
            author_line=opts.author_line or self._config.documents.author_line,
        )

    def _convert_internal(
        self,
        source: Path,
        options: DocxToAsciidocOptions,
        timings: StageTimings,
        warnings: list[str],
    ) -> str:
        require_file(source, "Input DOCX file")

        start = time.perf_counter()
        html, messages = docx_to_html(source)
        warnings.extend(messages)
        timings.record("html", elapsed_ms(start))

        start = time.perf_counter()
        markdown = html_to_markdown(html, options)
        timings.record("markdown", elapsed_ms(start))

        start = time.perf_counter()
        asciidoc = markdown_to_asciidoc(markdown, options)
        asciidoc = post_process_asciidoc(asciidoc, options)
        timings.record("asciidoc", elapsed_ms(start))
        return normalize_newlines(asciidoc)

    def _log(
        self,
        run_id: str,
        source: Path,
        destination: Path | None,
        status: str,
        warnings: list[str],
        error_code: str | None,
        timings: StageTimings,
    ) -> None:
        self._logger.append(
            RunLogEntry(
                run_id=run_id,
                converter=self.name,
                source=str(source),
                status=status,
                warnings=list(warnings),
                error_code=error_code,
                timings=timings,
                output_path=str(destination) if destination is not None else None,
            )
        )


def convert_docx_to_asciidoc(
    docx_path: Path,
    output_path: Path | None = None,
    options: DocxToAsciidocOptions | None = None,
    *,
    config: AppConfig | None = None,
) -> str:
    return DocxToAsciidocConverter(config).convert(docx_path, output_path, options)


__all__ = [
    "AsciidocMarkdownConverter",
    "DocxToAsciidocConverter",
    "convert_docx_to_asciidoc",
    "docx_to_html",
    "html_to_markdown",
    "validate_docx_file",
]

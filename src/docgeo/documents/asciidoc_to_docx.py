from __future__ import annotations

import dataclasses
import subprocess
import time
from io import BytesIO
from pathlib import Path

from bs4 import BeautifulSoup
from docx import Document
from docx.enum.section import WD_ORIENT
from docx.shared import Pt, Twips
from html4docx import HtmlToDocx

from ..config import AppConfig
from ..errors import wrap_failure
from ..logging import RunLogEntry, StageTimings, build_run_logger
from ..models import AsciidocToDocxOptions
from ..utils import atomic_write_bytes, elapsed_ms, generate_run_id, require_file

FAILURE_PREFIX = "Failed to convert AsciiDoc to DOCX"
HTML_ATTRIBUTES = (
    "showtitle",
    "icons=font",
    "source-highlighter=highlight.js",
)
STRIPPED_TAGS = ("style", "script", "link", "meta")


def render_asciidoc_html(content: str, asciidoctor_path: str = "asciidoctor") -> str:
    """Render *content* to a standalone HTML page with the asciidoctor CLI."""

    command = [asciidoctor_path, "--safe-mode", "server"]
    for attribute in HTML_ATTRIBUTES:
        command.extend(["-a", attribute])
    command.extend(["-o", "-", "-"])
    try:
        result = subprocess.run(
            command,
            input=content,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=True,
        )
    except FileNotFoundError as exc:
        raise RuntimeError(f"asciidoctor executable not found: {asciidoctor_path}") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise RuntimeError(f"asciidoctor exited with status {exc.returncode}: {stderr}") from exc
    return result.stdout


def prepare_html(html: str) -> str:
    """Reduce a standalone HTML page to the body markup the DOCX builder reads."""

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(list(STRIPPED_TAGS)):
        tag.decompose()
    footer = soup.find(id="footer")
    if footer is not None:
        footer.decompose()
    if soup.body is None:
        return str(soup)
    return "".join(str(child) for child in soup.body.contents)


def load_template(template_path: Path | None) -> bytes | None:
    if template_path is None:
        return None
    path = Path(template_path)
    if not path.exists():
        return None
    return path.read_bytes()


def build_docx(html: str, options: AsciidocToDocxOptions, template: bytes | None = None) -> bytes:
    document = Document(BytesIO(template)) if template is not None else Document()
    _apply_page_setup(document, options)
    _apply_properties(document, options)
    HtmlToDocx().add_html_to_document(html, document)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _apply_page_setup(document, options: AsciidocToDocxOptions) -> None:  # type: ignore[no-untyped-def]
    wanted = WD_ORIENT.LANDSCAPE if options.orientation == "landscape" else WD_ORIENT.PORTRAIT
    margins = options.margins
    for section in document.sections:
        if section.orientation != wanted:
            section.page_width, section.page_height = section.page_height, section.page_width
            section.orientation = wanted
        section.top_margin = Twips(margins.top)
        section.right_margin = Twips(margins.right)
        section.bottom_margin = Twips(margins.bottom)
        section.left_margin = Twips(margins.left)
        if options.header:
            section.header.paragraphs[0].text = options.header
        if options.footer:
            section.footer.paragraphs[0].text = options.footer
    if options.font_size:
        document.styles["Normal"].font.size = Pt(options.font_size)


def _apply_properties(document, options: AsciidocToDocxOptions) -> None:  # type: ignore[no-untyped-def]
    properties = document.core_properties
    properties.title = options.title
    if options.author:
        properties.author = options.author


class AsciidocToDocxConverter:
    name = "asciidoc-to-docx"

    def __init__(self, config: AppConfig | None = None) -> None:
        self._config = config or AppConfig()
        self._logger = build_run_logger(self._config.runtime.log_file)

    def convert(
        self,
        asciidoc_content: str,
        output_path: Path,
        options: AsciidocToDocxOptions | None = None,
        *,
        source: str = "<string>",
    ) -> Path:
        destination = Path(output_path)
        opts = options or AsciidocToDocxOptions()
        run_id = generate_run_id("adoc")
        timings = StageTimings()
        try:
            self._convert_internal(asciidoc_content, destination, opts, timings)
        except Exception as exc:
            error = wrap_failure(FAILURE_PREFIX, exc)
            self._log(run_id, source, destination, "failure", error.code, timings)
            raise error from exc
        self._log(run_id, source, destination, "success", None, timings)
        return destination

    def _convert_internal(
        self,
        content: str,
        destination: Path,
        options: AsciidocToDocxOptions,
        timings: StageTimings,
    ) -> None:
        start = time.perf_counter()
        html = render_asciidoc_html(content, self._config.documents.asciidoctor_path)
        timings.record("html", elapsed_ms(start))

        start = time.perf_counter()
        template = load_template(options.template_path)
        payload = build_docx(prepare_html(html), options, template)
        timings.record("docx", elapsed_ms(start))

        start = time.perf_counter()
        atomic_write_bytes(destination, payload)
        timings.record("write", elapsed_ms(start))

    def _log(
        self,
        run_id: str,
        source: str,
        destination: Path,
        status: str,
        error_code: str | None,
        timings: StageTimings,
    ) -> None:
        self._logger.append(
            RunLogEntry(
                run_id=run_id,
                converter=self.name,
                source=source,
                status=status,
                warnings=[],
                error_code=error_code,
                timings=timings,
                output_path=str(destination),
            )
        )


def read_asciidoc_file(path: Path) -> str:
    source = require_file(Path(path), "File")
    return source.read_text(encoding="utf-8")


def convert_asciidoc_to_docx(
    asciidoc_content: str,
    output_path: Path,
    options: AsciidocToDocxOptions | None = None,
    *,
    config: AppConfig | None = None,
) -> Path:
    return AsciidocToDocxConverter(config).convert(asciidoc_content, output_path, options)


def convert_file(
    input_path: Path,
    output_path: Path,
    template_path: Path | None = None,
    *,
    options: AsciidocToDocxOptions | None = None,
    config: AppConfig | None = None,
) -> Path:
    content = read_asciidoc_file(input_path)
    opts = options or AsciidocToDocxOptions()
    if template_path is not None:
        opts = dataclasses.replace(opts, template_path=Path(template_path))
    converter = AsciidocToDocxConverter(config)
    return converter.convert(content, output_path, opts, source=str(input_path))


__all__ = [
    "AsciidocToDocxConverter",
    "build_docx",
    "convert_asciidoc_to_docx",
    "convert_file",
    "load_template",
    "prepare_html",
    "read_asciidoc_file",
    "render_asciidoc_html",
]

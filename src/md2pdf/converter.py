"""Markdown to PDF conversion pipeline.

Joins the sources, parses them, serializes the AST with a fresh verbatim
serializer registry, embeds the highlight style sheet and hands the result
to the renderer.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from md2pdf.assembler import AssembledDocument, assemble
from md2pdf.config import Config
from md2pdf.errors import ParseTimeoutError
from md2pdf.extensions import Extensions
from md2pdf.highlighting import HighlightBridge, default_bridge
from md2pdf.parser import DEFAULT_TIMEOUT, Parser, ParseTimeout
from md2pdf.renderer import DocumentRenderer
from md2pdf.serializer import LinkRenderer, XhtmlSerializer, strip_invalid_chars
from md2pdf.verbatim import HighlightErrorPolicy, VerbatimSerializer, VerbatimSerializers

logger = logging.getLogger(__name__)

SOURCE_SEPARATOR = "\n\n"


def join_sources(sources: Sequence[str]) -> str:
    """Concatenate Markdown sources in the given order.

    Characters that cannot appear in an XML document are removed here, so
    neither text nor code blocks can carry them into the output.
    """
    return strip_invalid_chars(SOURCE_SEPARATOR.join(sources))


@dataclass
class ConversionResult:
    """Result of converting Markdown sources."""

    document: AssembledDocument
    warnings: list[str]


class MarkdownPdfConverter:
    """Convert Markdown sources to a styled XHTML document and PDF."""

    def __init__(
        self,
        *,
        bridge: HighlightBridge | None = None,
        extensions: Extensions = Extensions.ALL,
        code_style: str = "colorful",
        stylesheet: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        on_error: HighlightErrorPolicy = HighlightErrorPolicy.WARN,
        link_renderer: LinkRenderer | None = None,
        verbatim_serializers: dict[str, VerbatimSerializer] | None = None,
        renderer: DocumentRenderer | None = None,
    ) -> None:
        """Initialize converter.

        Args:
            bridge: Highlighting bridge (default: the process-wide bridge)
            extensions: Enabled Markdown extensions
            code_style: Highlight style name
            stylesheet: Optional URI of an external stylesheet
            timeout: Parse time budget in seconds
            on_error: Handling of per-block highlighting failures
            link_renderer: Renders link and image targets
            verbatim_serializers: Explicit code block strategies keyed by tag
            renderer: Renderer for PDF output (default: PyMuPDF)
        """
        self._bridge = bridge if bridge is not None else default_bridge()
        self._parser = Parser(extensions, timeout)
        self._code_style = code_style
        self._stylesheet = stylesheet
        self._on_error = on_error
        self._link_renderer = link_renderer or LinkRenderer()
        self._explicit_serializers = dict(verbatim_serializers or {})
        self._renderer = renderer

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        bridge: HighlightBridge | None = None,
        renderer: DocumentRenderer | None = None,
    ) -> "MarkdownPdfConverter":
        """Create a converter from application configuration."""
        stylesheet = config.output.stylesheet
        return cls(
            bridge=bridge,
            extensions=config.markdown.extensions,
            code_style=config.highlight.style,
            stylesheet=stylesheet.resolve().as_uri() if stylesheet else None,
            timeout=config.markdown.timeout_ms / 1000,
            on_error=config.highlight.on_error,
            renderer=renderer,
        )

    def convert(self, sources: Sequence[str]) -> ConversionResult | None:
        """Convert Markdown sources into an assembled document.

        Args:
            sources: Markdown texts in discovery order

        Returns:
            ConversionResult, or None if parsing exceeded the time budget
        """
        text = join_sources(sources)
        logger.debug(f"Converting {len(sources)} sources ({len(text)} characters)")

        parsed = self._parser.parse(text)
        if isinstance(parsed, ParseTimeout):
            return None

        serializers = VerbatimSerializers(
            self._bridge,
            policy=self._on_error,
            serializers=self._explicit_serializers,
        )
        body = XhtmlSerializer(self._link_renderer, serializers).serialize(parsed)
        style_text = self._bridge.style_sheet(self._code_style)

        document = assemble(body, style_text, self._stylesheet)
        logger.debug(f"Assembled {len(document.body_markup)} characters of body markup")
        return ConversionResult(document=document, warnings=list(serializers.warnings))

    def render_pdf(
        self,
        sources: Sequence[str],
        output_path: Path,
        *,
        markup_path: Path | None = None,
        base_dir: Path | None = None,
    ) -> ConversionResult:
        """Convert Markdown sources and render them to PDF.

        Args:
            sources: Markdown texts in discovery order
            output_path: Where to write the PDF
            markup_path: Optional path for the intermediate XHTML
            base_dir: Directory relative images and links resolve against

        Returns:
            ConversionResult with the rendered document and warnings

        Raises:
            ParseTimeoutError: If parsing exceeded the time budget
            MalformedDocument: If the assembled XHTML is not well-formed
            RenderingFailure: If the layout engine failed
        """
        result = self.convert(sources)
        if result is None:
            raise ParseTimeoutError(self._parser.timeout)

        renderer = self._renderer or DocumentRenderer()
        renderer.render(
            result.document,
            output_path,
            markup_path=markup_path,
            base_dir=base_dir,
        )
        return result

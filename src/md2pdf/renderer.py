"""Rendering of assembled documents to PDF.

The assembled markup is checked with a strict XML parser before it is handed
to the layout engine; a failure there means the assembler produced invalid
XHTML. PyMuPDF's Story API does the layout and pagination.
"""

import logging
from pathlib import Path
from typing import Protocol
from xml.etree import ElementTree as ET

from md2pdf.assembler import AssembledDocument
from md2pdf.errors import MalformedDocument, RenderingFailure

logger = logging.getLogger(__name__)


class LayoutEngine(Protocol):
    """Paginates an XHTML document into a PDF file."""

    def render(self, markup: str, output_path: Path, base_dir: Path | None) -> None: ...


class PyMuPdfLayoutEngine:
    """Layout engine backed by PyMuPDF (MuPDF's HTML story layout)."""

    def __init__(self, paper: str = "a4", margin: float = 54.0) -> None:
        """Initialize layout engine.

        Args:
            paper: Paper format name understood by pymupdf.paper_rect
            margin: Page margin in points on every side
        """
        self.paper = paper
        self.margin = margin

    def render(self, markup: str, output_path: Path, base_dir: Path | None) -> None:
        import pymupdf

        mediabox = pymupdf.paper_rect(self.paper)
        where = mediabox + (self.margin, self.margin, -self.margin, -self.margin)
        archive = str(base_dir) if base_dir is not None else None
        story = pymupdf.Story(html=markup, archive=archive)

        with pymupdf.DocumentWriter(str(output_path)) as writer:
            story.write(writer, lambda rect_num, filled: (mediabox, where, None))


class DocumentRenderer:
    """Validates assembled documents and forwards them to a layout engine."""

    def __init__(self, layout_engine: LayoutEngine | None = None) -> None:
        """Initialize renderer.

        Args:
            layout_engine: Engine producing the PDF (default: PyMuPDF)
        """
        self._layout_engine: LayoutEngine = (
            layout_engine if layout_engine is not None else PyMuPdfLayoutEngine()
        )

    def render(
        self,
        document: AssembledDocument,
        output_path: Path,
        *,
        markup_path: Path | None = None,
        base_dir: Path | None = None,
    ) -> None:
        """Render a document to PDF.

        Args:
            document: Assembled document
            output_path: Where to write the PDF
            markup_path: Optional path for a copy of the XHTML, written
                         before rendering is attempted
            base_dir: Directory relative images and links resolve against

        Raises:
            MalformedDocument: If the markup is not well-formed XML
            RenderingFailure: If the layout engine fails
        """
        markup = document.markup

        if markup_path is not None:
            markup_path.parent.mkdir(parents=True, exist_ok=True)
            markup_path.write_text(markup, encoding="utf-8")
            logger.info(f"Wrote XHTML to {markup_path}")

        try:
            ET.fromstring(markup.encode("utf-8"))
        except ET.ParseError as e:
            logger.error(f"Assembled document is not well-formed: {e}")
            raise MalformedDocument(f"Assembled document is not well-formed: {e}") from e

        output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Rendering PDF to {output_path}")
        try:
            self._layout_engine.render(markup, output_path, base_dir)
        except Exception as e:
            raise RenderingFailure(output_path, e) from e
        logger.info(f"Rendered PDF: {output_path}")

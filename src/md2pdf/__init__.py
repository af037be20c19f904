"""md2pdf - Markdown to PDF with highlighted code blocks.

Converts an ordered set of Markdown documents into one XHTML document with
Pygments-highlighted code and renders it to PDF via PyMuPDF.
"""

from .assembler import AssembledDocument, assemble
from .converter import ConversionResult, MarkdownPdfConverter, join_sources
from .errors import (
    EngineFault,
    HighlightError,
    MalformedDocument,
    Md2PdfError,
    ParseTimeoutError,
    RenderingFailure,
    UnknownLanguageKind,
)
from .extensions import Extensions
from .highlighting import HighlightBridge, PygmentsEngine, default_bridge
from .nodes import Document, LiteralBlock, Node
from .parser import Parser, ParseTimeout
from .renderer import DocumentRenderer, LayoutEngine, PyMuPdfLayoutEngine
from .serializer import LinkRenderer, XhtmlSerializer
from .verbatim import (
    DEFAULT,
    HighlightErrorPolicy,
    HighlightingVerbatimSerializer,
    PlainVerbatimSerializer,
    VerbatimSerializers,
)

__all__ = [
    "DEFAULT",
    "AssembledDocument",
    "ConversionResult",
    "Document",
    "DocumentRenderer",
    "EngineFault",
    "Extensions",
    "HighlightBridge",
    "HighlightError",
    "HighlightErrorPolicy",
    "HighlightingVerbatimSerializer",
    "LayoutEngine",
    "LinkRenderer",
    "LiteralBlock",
    "MalformedDocument",
    "MarkdownPdfConverter",
    "Md2PdfError",
    "Node",
    "ParseTimeout",
    "ParseTimeoutError",
    "Parser",
    "PlainVerbatimSerializer",
    "PyMuPdfLayoutEngine",
    "PygmentsEngine",
    "RenderingFailure",
    "UnknownLanguageKind",
    "VerbatimSerializers",
    "XhtmlSerializer",
    "assemble",
    "default_bridge",
    "join_sources",
]

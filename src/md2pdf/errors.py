"""Exception hierarchy for md2pdf.

Parse timeouts are reported as a ParseTimeout value by the parser; the
ParseTimeoutError below is only raised at the outer render boundary so the
CLI can report it like any other failure.
"""

from pathlib import Path


class Md2PdfError(Exception):
    """Base class for all md2pdf errors."""


class ParseTimeoutError(Md2PdfError):
    """Markdown could not be parsed within the configured time budget."""

    def __init__(self, budget: float) -> None:
        self.budget = budget
        super().__init__(f"Could not render within time limit ({budget * 1000:.0f} ms)")


class HighlightError(Md2PdfError):
    """Base class for failures reported by the highlighting bridge."""


class UnknownLanguageKind(HighlightError):
    """The highlighting engine has no lexer for the requested language."""

    def __init__(self, language: str) -> None:
        self.language = language
        super().__init__(f"No lexer for language: {language!r}")


class EngineFault(HighlightError):
    """The highlighting engine failed for a reason other than an unknown language."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"Highlighting engine failed during {operation!r}: {cause}")


class MalformedDocument(Md2PdfError):
    """The assembled document is not well-formed XHTML."""


class RenderingFailure(Md2PdfError):
    """The layout engine failed to produce the PDF."""

    def __init__(self, output_path: Path, cause: BaseException) -> None:
        self.output_path = output_path
        self.cause = cause
        super().__init__(f"Failed to render {output_path}: {cause}")

"""Assembly of the complete XHTML document."""

from dataclasses import dataclass
from html import escape

XHTML_HEADER = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN"
        "http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">
"""


@dataclass(frozen=True)
class AssembledDocument:
    """A complete document ready for rendering."""

    style_block: str
    stylesheet_ref: str | None
    body_markup: str

    @property
    def markup(self) -> str:
        """Full XHTML text of the document."""
        link = ""
        if self.stylesheet_ref:
            href = escape(self.stylesheet_ref, quote=True)
            link = f'\n        <link rel="stylesheet" type="text/css" href="{href}" />'
        return f"""{XHTML_HEADER}<html xmlns="http://www.w3.org/1999/xhtml">
    <head>
        <meta http-equiv="Content-Type" content="text/html; charset=UTF-8" />
        <style type="text/css">
{_guard_style(self.style_block)}
        </style>{link}
    </head>
    <body>
{self.body_markup}
    </body>
</html>
"""


def _guard_style(css: str) -> str:
    # Style content is character data in XHTML; '<' and '&' would break it.
    return css.replace("&", "\\26 ").replace("<", "\\3C ")


def assemble(
    body_markup: str,
    style_text: str,
    stylesheet_ref: str | None = None,
) -> AssembledDocument:
    """Wrap body markup in the XHTML boilerplate.

    Args:
        body_markup: Serialized document body
        style_text: CSS embedded in the head (the highlight style sheet)
        stylesheet_ref: Optional URI of an external stylesheet to link

    Returns:
        AssembledDocument
    """
    return AssembledDocument(
        style_block=style_text,
        stylesheet_ref=stylesheet_ref,
        body_markup=body_markup,
    )

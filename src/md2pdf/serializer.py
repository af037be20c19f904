"""AST to XHTML serialization.

XhtmlSerializer walks the AST depth-first and emits well-formed XHTML. All
structural kinds use fixed rules; code blocks are handed to the verbatim
serializer registry and whatever markup the resolved strategy returns is
spliced in as-is.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from html import escape, unescape

from md2pdf.nodes import AstNode, Document, LiteralBlock, Node, plain_text
from md2pdf.verbatim import VerbatimSerializers

logger = logging.getLogger(__name__)

# Code points XML 1.0 does not allow anywhere in a document.
_XML_INVALID_CHARS = re.compile("[\x00-\x08\x0e-\x1f\ufffe\uffff]")
_XML_LINE_BREAKS = re.compile("[\x0b\x0c]")


def strip_invalid_chars(text: str) -> str:
    """Drop characters XML 1.0 forbids; vertical tabs and form feeds become newlines."""
    return _XML_INVALID_CHARS.sub("", _XML_LINE_BREAKS.sub("\n", text))


def escape_text(text: str) -> str:
    """Escape text content, normalizing any entities mistune left in place."""
    return escape(strip_invalid_chars(unescape(text)), quote=False)


def escape_attr(value: str) -> str:
    return escape(strip_invalid_chars(unescape(value)), quote=True)


@dataclass(frozen=True)
class Rendering:
    """Attributes for an ``a`` or ``img`` element."""

    href: str
    title: str | None = None
    attributes: tuple[tuple[str, str], ...] = ()


class LinkRenderer:
    """Decides how links and images are written.

    Subclass or replace to rewrite URLs (e.g. to make relative links
    absolute) or to add attributes.
    """

    def render(self, url: str, title: str | None = None) -> Rendering:
        return Rendering(href=url, title=title)


def _attributes(rendering: Rendering, href_name: str) -> str:
    parts = [f'{href_name}="{escape_attr(rendering.href)}"']
    if rendering.title:
        parts.append(f'title="{escape_attr(rendering.title)}"')
    parts.extend(f'{name}="{escape_attr(value)}"' for name, value in rendering.attributes)
    return " ".join(parts)


_SIMPLE_INLINE = {
    "emphasis": "em",
    "strong": "strong",
    "strikethrough": "del",
    "mark": "mark",
    "insert": "ins",
    "superscript": "sup",
    "subscript": "sub",
}


class XhtmlSerializer:
    """Serializes an AST to XHTML body markup."""

    def __init__(
        self,
        link_renderer: LinkRenderer,
        verbatim_serializers: VerbatimSerializers,
    ) -> None:
        """Initialize serializer.

        Args:
            link_renderer: Renders link and image targets
            verbatim_serializers: Registry resolving code block strategies
        """
        self._link_renderer = link_renderer
        self._verbatim_serializers = verbatim_serializers

    def serialize(self, document: Document) -> str:
        """Serialize a document.

        Args:
            document: Parsed AST root

        Returns:
            XHTML fragment suitable for a ``body`` element
        """
        return self._children(document)

    def visit(self, node: AstNode) -> str:
        kind = node.kind
        if kind in _SIMPLE_INLINE:
            tag = _SIMPLE_INLINE[kind]
            return f"<{tag}>{self._children(node)}</{tag}>"
        method: Callable[[AstNode], str] | None = getattr(self, f"visit_{kind}", None)
        if method is None:
            logger.debug(f"No rule for {kind} node, rendering children only")
            return self._children(node)
        return method(node)

    def _children(self, node: AstNode) -> str:
        return "".join(self.visit(child) for child in node.children)

    # Code blocks

    def visit_literal_block(self, node: LiteralBlock) -> str:
        serializer = self._verbatim_serializers.get(node.type)
        return serializer.serialize(node.text)

    # Blocks

    def visit_paragraph(self, node: Node) -> str:
        return f"<p>{self._children(node)}</p>\n"

    def visit_block_text(self, node: Node) -> str:
        return self._children(node)

    def visit_heading(self, node: Node) -> str:
        level = int(node.attrs.get("level", 1))
        return f"<h{level}>{self._children(node)}</h{level}>\n"

    def visit_thematic_break(self, node: Node) -> str:
        return "<hr />\n"

    def visit_block_quote(self, node: Node) -> str:
        return f"<blockquote>\n{self._children(node)}</blockquote>\n"

    def visit_block_html(self, node: Node) -> str:
        return f"<p>{escape(node.raw or '', quote=False)}</p>\n"

    def visit_list(self, node: Node) -> str:
        if node.attrs.get("ordered"):
            start = node.attrs.get("start")
            start_attr = f' start="{int(start)}"' if start is not None and start != 1 else ""
            return f"<ol{start_attr}>\n{self._children(node)}</ol>\n"
        return f"<ul>\n{self._children(node)}</ul>\n"

    def visit_list_item(self, node: Node) -> str:
        return f"<li>{self._children(node)}</li>\n"

    def visit_task_list_item(self, node: Node) -> str:
        checked = ' checked="checked"' if node.attrs.get("checked") else ""
        checkbox = f'<input type="checkbox" disabled="disabled"{checked} />'
        return f'<li class="task-list-item">{checkbox}{self._children(node)}</li>\n'

    def visit_table(self, node: Node) -> str:
        return f"<table>\n{self._children(node)}</table>\n"

    def visit_table_head(self, node: Node) -> str:
        return f"<thead>\n<tr>{self._children(node)}</tr>\n</thead>\n"

    def visit_table_body(self, node: Node) -> str:
        return f"<tbody>\n{self._children(node)}</tbody>\n"

    def visit_table_row(self, node: Node) -> str:
        return f"<tr>{self._children(node)}</tr>\n"

    def visit_table_cell(self, node: Node) -> str:
        tag = "th" if node.attrs.get("head") else "td"
        align = node.attrs.get("align")
        style = f' style="text-align:{escape_attr(align)}"' if align else ""
        return f"<{tag}{style}>{self._children(node)}</{tag}>"

    def visit_def_list(self, node: Node) -> str:
        return f"<dl>\n{self._children(node)}</dl>\n"

    def visit_def_list_head(self, node: Node) -> str:
        return f"<dt>{self._children(node)}</dt>\n"

    def visit_def_list_item(self, node: Node) -> str:
        return f"<dd>{self._children(node)}</dd>\n"

    def visit_footnotes(self, node: Node) -> str:
        return f'<div class="footnotes">\n<hr />\n<ol>\n{self._children(node)}</ol>\n</div>\n'

    def visit_footnote_item(self, node: Node) -> str:
        index = int(node.attrs.get("index", 0))
        backref = f'<a href="#fnref-{index}" class="footnote">↩</a>'
        return f'<li id="fn-{index}">{self._children(node)}{backref}</li>\n'

    # Inlines

    def visit_text(self, node: Node) -> str:
        return escape_text(node.raw or "")

    def visit_codespan(self, node: Node) -> str:
        return f"<code>{escape_text(node.raw or '')}</code>"

    def visit_inline_html(self, node: Node) -> str:
        return escape(node.raw or "", quote=False)

    def visit_linebreak(self, node: Node) -> str:
        return "<br />\n"

    def visit_softbreak(self, node: Node) -> str:
        return "\n"

    def visit_link(self, node: Node) -> str:
        rendering = self._link_renderer.render(
            str(node.attrs.get("url", "")), node.attrs.get("title")
        )
        return f"<a {_attributes(rendering, 'href')}>{self._children(node)}</a>"

    def visit_image(self, node: Node) -> str:
        rendering = self._link_renderer.render(
            str(node.attrs.get("url", "")), node.attrs.get("title")
        )
        alt = escape_attr(plain_text(node))
        return f'<img {_attributes(rendering, "src")} alt="{alt}" />'

    def visit_footnote_ref(self, node: Node) -> str:
        index = int(node.attrs.get("index", 0))
        return f'<sup class="footnote-ref" id="fnref-{index}"><a href="#fn-{index}">{index}</a></sup>'

    def visit_abbr(self, node: Node) -> str:
        title = node.attrs.get("title")
        title_attr = f' title="{escape_attr(title)}"' if title else ""
        return f"<abbr{title_attr}>{self._children(node)}</abbr>"

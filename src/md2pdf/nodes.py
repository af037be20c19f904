"""Immutable AST for parsed Markdown.

The parser turns mistune's token stream into these nodes. Every structural
kind (paragraph, heading, list, link, ...) is a Node tagged by ``kind``;
code blocks become LiteralBlock so the serializer can dispatch on their
language tag.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union


def _frozen_attrs() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Node:
    """A structural Markdown element.

    Leaf kinds such as ``text``, ``codespan`` or ``inline_html`` carry their
    content in ``raw``; container kinds carry ``children``.
    """

    kind: str
    children: tuple["AstNode", ...] = ()
    attrs: Mapping[str, Any] = field(default_factory=_frozen_attrs)
    raw: str | None = None


@dataclass(frozen=True)
class LiteralBlock:
    """A preformatted code block.

    ``type`` is the language tag from the fence info string, or None when
    the block was untagged (indented code, bare fences).
    """

    text: str
    type: str | None = None
    inline: bool = False

    @property
    def kind(self) -> str:
        return "literal_block"


@dataclass(frozen=True)
class Document:
    """Root of a parsed Markdown document."""

    children: tuple["AstNode", ...] = ()

    @property
    def kind(self) -> str:
        return "document"


AstNode = Union[Node, LiteralBlock, Document]


def walk(node: AstNode) -> Iterator[AstNode]:
    """Yield node and all of its descendants in document order."""
    yield node
    for child in getattr(node, "children", ()):
        yield from walk(child)


def plain_text(node: AstNode) -> str:
    """Concatenate the textual content below node.

    Used for attribute values that must not contain markup, such as image
    alt text.
    """
    if isinstance(node, LiteralBlock):
        return node.text
    if isinstance(node, Node) and node.raw is not None and not node.children:
        return node.raw
    return "".join(plain_text(child) for child in node.children)

"""Grammar extensions for the Markdown parser.

Extensions are independently togglable flags. Most of them map onto a
plugin bundled with mistune; fenced code and smart punctuation are
implemented here as mistune plugins of our own.

Fenced code is handled by two rules:

- a block rule that replaces mistune's built-in fence and only accepts a
  fence that is actually closed, so a stray ``` line inside a paragraph does
  not swallow the rest of the document;
- an inline rule for fences embedded in a paragraph, e.g.
  ``Some text with a ```python\\nprint(1)\\n``` block``.

Both emit code tokens that the parser turns into LiteralBlock nodes.
"""

import re
from collections.abc import Callable, Iterable
from enum import Flag
from html import unescape
from typing import Any

import mistune
from mistune import import_plugin

GrammarPlugin = Callable[[mistune.Markdown], None]

INLINE_CODE_BLOCK = "inline_code_block"

FENCED_CODE_PATTERN = (
    r"^ {0,3}(?P<fence_mark>`{3,}|~{3,})[ \t]*(?P<fence_info>[^`\n]*)\n"
    r"(?P<fence_code>(?:[^\n]*\n)*?)"
    r" {0,3}(?P=fence_mark)(?:(?<=`)`*|(?<=~)~*)[ \t]*$"
)

INLINE_FENCED_CODE_PATTERN = (
    r"```(?P<inline_fence_lang>[^\s`]+)[ \t]*\n"
    r"(?P<inline_fence_code>[\s\S]*?)\n?```"
)


class Extensions(Flag):
    """Optional Markdown grammar features."""

    NONE = 0
    TABLES = 0x0001
    FENCED_CODE_BLOCKS = 0x0002
    FOOTNOTES = 0x0004
    STRIKETHROUGH = 0x0008
    TASK_LISTS = 0x0010
    DEFINITIONS = 0x0020
    ABBREVIATIONS = 0x0040
    AUTOLINKS = 0x0080
    MARK = 0x0100
    SUPERSCRIPT = 0x0200
    SUBSCRIPT = 0x0400
    SMARTYPANTS = 0x0800
    HARDWRAPS = 0x1000
    ALL = (
        TABLES
        | FENCED_CODE_BLOCKS
        | FOOTNOTES
        | STRIKETHROUGH
        | TASK_LISTS
        | DEFINITIONS
        | ABBREVIATIONS
        | AUTOLINKS
        | MARK
        | SUPERSCRIPT
        | SUBSCRIPT
        | SMARTYPANTS
        | HARDWRAPS
    )

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "Extensions":
        """Build a flag set from extension names.

        Names are case-insensitive; ``"all"`` enables every extension.

        Args:
            names: Extension names, e.g. ["tables", "footnotes"]

        Returns:
            Combined Extensions flag

        Raises:
            ValueError: If a name is not a known extension
        """
        flags = cls.NONE
        for name in names:
            key = name.strip().upper().replace("-", "_")
            try:
                flags |= cls[key]
            except KeyError:
                raise ValueError(f"Unknown markdown extension: {name}") from None
        return flags


# Extensions backed by plugins that ship with mistune.
MISTUNE_PLUGINS: dict[Extensions, str] = {
    Extensions.TABLES: "table",
    Extensions.FOOTNOTES: "footnotes",
    Extensions.STRIKETHROUGH: "strikethrough",
    Extensions.TASK_LISTS: "task_lists",
    Extensions.DEFINITIONS: "def_list",
    Extensions.ABBREVIATIONS: "abbr",
    Extensions.AUTOLINKS: "url",
    Extensions.MARK: "mark",
    Extensions.SUPERSCRIPT: "superscript",
    Extensions.SUBSCRIPT: "subscript",
}


def _parse_fenced_code(block: Any, m: re.Match[str], state: Any) -> int:
    token: dict[str, Any] = {
        "type": "block_code",
        "raw": m.group("fence_code"),
        "style": "fenced",
        "marker": m.group("fence_mark"),
    }
    info = m.group("fence_info").strip()
    if info:
        token["attrs"] = {"info": info}
    state.append_token(token)
    return m.end() + 1


def _parse_inline_fenced_code(inline: Any, m: re.Match[str], state: Any) -> int:
    state.append_token(
        {
            "type": INLINE_CODE_BLOCK,
            "raw": m.group("inline_fence_code"),
            "attrs": {"info": m.group("inline_fence_lang")},
        }
    )
    return m.end()


def fenced_code(md: mistune.Markdown) -> None:
    """Install the closed-fence block rule and the inline fence rule."""
    md.block.register("fenced_code", FENCED_CODE_PATTERN, _parse_fenced_code)
    md.inline.register(
        "inline_fenced_code",
        INLINE_FENCED_CODE_PATTERN,
        _parse_inline_fenced_code,
        before="codespan",
    )


def disable_fenced_code(md: mistune.Markdown) -> None:
    """Remove fence support so fences parse as plain paragraphs."""
    for rules in (md.block.rules, md.block.list_rules, md.block.block_quote_rules):
        if "fenced_code" in rules:
            rules.remove("fenced_code")


_SMART_REPLACEMENTS = (
    (re.compile(r"---"), "\u2014"),
    (re.compile(r"--"), "\u2013"),
    (re.compile(r"\.\.\."), "\u2026"),
    (re.compile(r"(^|[\s(\[{\u2014\u2013])\""), "\\1\u201c"),
    (re.compile(r"\""), "\u201d"),
    (re.compile(r"(^|[\s(\[{\u2014\u2013])'"), "\\1\u2018"),
    (re.compile(r"'"), "\u2019"),
)


def smarten(text: str) -> str:
    """Replace ASCII dashes, ellipses and straight quotes with typographic ones."""
    for pattern, replacement in _SMART_REPLACEMENTS:
        text = pattern.sub(replacement, text)
    return text


def _smarten_tokens(tokens: list[dict[str, Any]]) -> None:
    for token in tokens:
        if token["type"] == "text":
            token["raw"] = smarten(unescape(token["raw"]))
        elif "children" in token:
            _smarten_tokens(token["children"])


def _smartypants_hook(md: mistune.Markdown, result: Any, state: Any) -> Any:
    if isinstance(result, list):
        _smarten_tokens(result)
    return result


def smartypants(md: mistune.Markdown) -> None:
    """Apply smart punctuation to text tokens once parsing is complete."""
    md.after_render_hooks.append(_smartypants_hook)


def plugins_for(extensions: Extensions) -> list[GrammarPlugin]:
    """Resolve an extension flag set into mistune plugins.

    Args:
        extensions: Enabled extensions

    Returns:
        Plugins in a stable order, ready for mistune.Markdown(plugins=...)
    """
    plugins: list[GrammarPlugin] = []
    if Extensions.FENCED_CODE_BLOCKS in extensions:
        plugins.append(fenced_code)
    else:
        plugins.append(disable_fenced_code)
    for flag, name in MISTUNE_PLUGINS.items():
        if flag in extensions:
            plugins.append(import_plugin(name))
    if Extensions.SMARTYPANTS in extensions:
        plugins.append(smartypants)
    return plugins

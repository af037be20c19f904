"""Budgeted Markdown parser.

Wraps mistune with the configured grammar extensions and converts its token
stream into the immutable AST from md2pdf.nodes. Parsing is bounded by a
time budget: the deadline is checked on every rule match of the block and
inline parsers, so a pathological input stops promptly and the caller gets a
ParseTimeout value instead of an exception.
"""

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import mistune

from md2pdf.extensions import INLINE_CODE_BLOCK, Extensions, GrammarPlugin, plugins_for
from md2pdf.nodes import AstNode, Document, LiteralBlock, Node

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 2.0

_DEADLINE_KEY = "md2pdf.deadline"

_CODE_TOKENS = frozenset({"block_code", INLINE_CODE_BLOCK})


@dataclass(frozen=True)
class ParseTimeout:
    """Parsing exceeded its time budget and produced no document."""

    budget: float
    elapsed: float


class _BudgetExhausted(Exception):
    """Raised inside mistune to unwind out of an over-budget parse."""


def _budgeted(parse_method: Callable[[Any, Any], int | None]) -> Callable[[Any, Any], int | None]:
    def parse_within_budget(m: Any, state: Any) -> int | None:
        deadline = state.env.get(_DEADLINE_KEY)
        if deadline is not None:
            clock, expires_at = deadline
            if clock() > expires_at:
                raise _BudgetExhausted
        return parse_method(m, state)

    return parse_within_budget


class Parser:
    """Markdown parser producing md2pdf AST documents.

    The mistune instance is built once and reused; per-parse state (including
    the deadline) lives in the mistune parse state, so one Parser can be
    shared between threads.
    """

    def __init__(
        self,
        extensions: Extensions = Extensions.ALL,
        timeout: float = DEFAULT_TIMEOUT,
        plugins: Iterable[GrammarPlugin] = (),
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize parser.

        Args:
            extensions: Enabled grammar extensions (default: all)
            timeout: Parse time budget in seconds
            plugins: Additional grammar rule plugins, applied after the
                     extension plugins
            clock: Monotonic clock used for the budget
        """
        self._extensions = extensions
        self._timeout = timeout
        self._clock = clock

        inline = mistune.InlineParser(hard_wrap=Extensions.HARDWRAPS in extensions)
        self._markdown = mistune.Markdown(
            renderer=None,
            block=mistune.BlockParser(),
            inline=inline,
            plugins=[*plugins_for(extensions), *plugins],
        )
        block = self._markdown.block
        block.parse_method = _budgeted(block.parse_method)  # type: ignore[method-assign]
        inline.parse_method = _budgeted(inline.parse_method)  # type: ignore[method-assign]

    @property
    def extensions(self) -> Extensions:
        return self._extensions

    @property
    def timeout(self) -> float:
        return self._timeout

    def parse(self, text: str) -> Document | ParseTimeout:
        """Parse Markdown text into an AST.

        Args:
            text: Markdown source

        Returns:
            Document on success, ParseTimeout if the budget was exceeded
        """
        started = self._clock()
        state = self._markdown.block.state_cls()
        state.env[_DEADLINE_KEY] = (self._clock, started + self._timeout)

        try:
            tokens, _ = self._markdown.parse(text, state)
        except _BudgetExhausted:
            elapsed = self._clock() - started
            logger.warning(
                f"Parsing exceeded time budget of {self._timeout * 1000:.0f} ms "
                f"({len(text)} characters)"
            )
            return ParseTimeout(budget=self._timeout, elapsed=elapsed)

        document = Document(children=_convert_tokens(tokens))
        logger.debug(f"Parsed {len(text)} characters into {len(document.children)} blocks")
        return document


def _convert_tokens(tokens: Sequence[dict[str, Any]]) -> tuple[AstNode, ...]:
    return tuple(_convert_token(token) for token in tokens if token["type"] != "blank_line")


def _convert_token(token: dict[str, Any]) -> AstNode:
    kind = token["type"]
    attrs = dict(token.get("attrs") or {})

    if kind in _CODE_TOKENS:
        info = attrs.get("info") or ""
        tag = info.split(None, 1)[0] if info.strip() else None
        return LiteralBlock(text=token["raw"], type=tag, inline=kind == INLINE_CODE_BLOCK)

    if "tight" in token:
        attrs["tight"] = token["tight"]

    return Node(
        kind=kind,
        children=_convert_tokens(token.get("children", ())),
        attrs=MappingProxyType(attrs),
        raw=token.get("raw"),
    )

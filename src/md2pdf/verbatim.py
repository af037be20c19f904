"""Verbatim serializer registry.

Maps a code block's language tag to the strategy that renders it. Tags
without an explicit registration get a highlighting strategy derived on
first use and cached for the lifetime of the registry; a registry is meant
to live for one conversion run, so a change of style between runs never
sees stale strategies.
"""

import logging
import threading
from collections.abc import Iterator, Mapping, MutableMapping
from enum import StrEnum
from html import escape
from typing import Protocol

from md2pdf.errors import HighlightError
from md2pdf.highlighting import HighlightBridge

logger = logging.getLogger(__name__)

DEFAULT = "-"


class VerbatimSerializer(Protocol):
    """Renders the text of one code block as XHTML."""

    def serialize(self, text: str) -> str: ...


class HighlightErrorPolicy(StrEnum):
    """What to do when a single code block cannot be highlighted.

    DEGRADE: render the block as plain text, log at debug level
    WARN: render as plain text, log a warning and record it for the run
    SURFACE: render an inline error note followed by the plain text
    """

    DEGRADE = "degrade"
    WARN = "warn"
    SURFACE = "surface"


class PlainVerbatimSerializer:
    """Passthrough strategy: escaped text in a pre/code element."""

    def serialize(self, text: str) -> str:
        return f"<pre><code>{escape(text, quote=False)}</code></pre>\n"


class HighlightingVerbatimSerializer:
    """Strategy that highlights a code block for a fixed language."""

    def __init__(
        self,
        bridge: HighlightBridge,
        language: str,
        policy: HighlightErrorPolicy = HighlightErrorPolicy.WARN,
        warnings: list[str] | None = None,
    ) -> None:
        """Initialize strategy.

        Args:
            bridge: Bridge to the shared highlighting engine
            language: Language identifier passed to the engine
            policy: Handling of highlighting failures for this block
            warnings: List that collects warnings under the WARN policy
        """
        self.language = language
        self._bridge = bridge
        self._policy = policy
        self._warnings = warnings if warnings is not None else []
        self._fallback = PlainVerbatimSerializer()

    def serialize(self, text: str) -> str:
        try:
            fragment = self._bridge.highlight(text, self.language)
        except HighlightError as e:
            return self._on_failure(text, e)
        return f'<div class="verbatim" data-language="{escape(self.language)}">\n{fragment}</div>\n'

    def _on_failure(self, text: str, error: HighlightError) -> str:
        plain = self._fallback.serialize(text)
        if self._policy is HighlightErrorPolicy.DEGRADE:
            logger.debug(f"Rendering {self.language} block as plain text: {error}")
            return plain
        if self._policy is HighlightErrorPolicy.WARN:
            message = f"Code block not highlighted: {error}"
            logger.debug(message)
            self._warnings.append(message)
            return plain
        logger.error(f"Highlighting failed for {self.language} block: {error}")
        note = escape(f"Highlighting failed: {error}", quote=False)
        return f'<pre class="highlight-error">{note}</pre>\n{plain}'


class VerbatimSerializers(MutableMapping[str, VerbatimSerializer]):
    """Tag-keyed registry of verbatim serializers.

    Lookups and the derive-and-cache path share one lock, so the registry
    can be used from concurrent serialization paths. Item access behaves
    like get(): reading an unseen tag derives its strategy.
    """

    def __init__(
        self,
        bridge: HighlightBridge,
        *,
        policy: HighlightErrorPolicy = HighlightErrorPolicy.WARN,
        serializers: Mapping[str, VerbatimSerializer] | None = None,
    ) -> None:
        """Initialize registry.

        Args:
            bridge: Bridge used by derived highlighting strategies
            policy: Failure policy handed to derived strategies
            serializers: Explicit strategies keyed by tag
        """
        self._bridge = bridge
        self._policy = policy
        self._serializers: dict[str, VerbatimSerializer] = dict(serializers or {})
        self._derived: set[str] = set()
        self._lock = threading.Lock()
        self.warnings: list[str] = []
        self._serializers.setdefault(DEFAULT, PlainVerbatimSerializer())

    def register(self, tag: str, serializer: VerbatimSerializer) -> None:
        """Register an explicit strategy, replacing any cached one."""
        with self._lock:
            self._serializers[tag] = serializer
            self._derived.discard(tag)

    def get(self, tag: str | None) -> VerbatimSerializer:  # type: ignore[override]
        """Resolve the strategy for a tag.

        Args:
            tag: Language tag of a code block, or None for untagged blocks

        Returns:
            The explicit strategy for tag, the default strategy for None,
            or a highlighting strategy derived for tag and cached
        """
        key = tag or DEFAULT
        with self._lock:
            serializer = self._serializers.get(key)
            if serializer is None:
                serializer = self._derive(key)
                self._serializers[key] = serializer
            return serializer

    def is_derived(self, tag: str) -> bool:
        """Check whether the strategy for tag was derived rather than registered."""
        with self._lock:
            return tag in self._derived

    def __getitem__(self, tag: str) -> VerbatimSerializer:
        return self.get(tag)

    def __setitem__(self, tag: str, serializer: VerbatimSerializer) -> None:
        self.register(tag, serializer)

    def __delitem__(self, tag: str) -> None:
        with self._lock:
            del self._serializers[tag]
            self._derived.discard(tag)

    def __contains__(self, tag: object) -> bool:
        with self._lock:
            return tag in self._serializers

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._serializers))

    def __len__(self) -> int:
        with self._lock:
            return len(self._serializers)

    def _derive(self, tag: str) -> VerbatimSerializer:
        # Caller holds self._lock.
        if tag == DEFAULT:
            return PlainVerbatimSerializer()
        logger.debug(f"Deriving highlighting serializer for {tag}")
        self._derived.add(tag)
        return HighlightingVerbatimSerializer(self._bridge, tag, self._policy, self.warnings)

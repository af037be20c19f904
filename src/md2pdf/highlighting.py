"""Serialized access to the shared syntax-highlighting engine.

The engine works like an embedded interpreter: callers set scratch
variables, run an operation, then read the ``result`` variable back. Its
working values are therefore shared between callers, and every
set/run/get sequence must run as one critical section. HighlightBridge owns
the only lock for an engine and is the only way code outside this module
talks to it.
"""

import logging
import threading
from typing import Any, Protocol

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_all_styles
from pygments.util import ClassNotFound

from md2pdf.errors import EngineFault, HighlightError, UnknownLanguageKind

logger = logging.getLogger(__name__)

CSS_CLASS = "highlight"


class HighlightEngine(Protocol):
    """A stateful highlighting engine driven through scratch variables.

    Operations:
        list_styles: result = sorted available style names
        style_defs: reads ``style``; result = CSS scoped to ``.highlight``
        highlight: reads ``code`` and ``language``; result = HTML fragment

    Thread Safety:
        Not reentrant. Callers must serialize set/run/get sequences.
    """

    def set(self, name: str, value: Any) -> None: ...

    def get(self, name: str) -> Any: ...

    def run(self, operation: str) -> None: ...


class PygmentsEngine:
    """Pygments behind an interpreter-style scratch namespace."""

    def __init__(self) -> None:
        self._scope: dict[str, Any] = {}

    def set(self, name: str, value: Any) -> None:
        self._scope[name] = value

    def get(self, name: str) -> Any:
        return self._scope[name]

    def run(self, operation: str) -> None:
        """Run an operation against the current scratch variables.

        Args:
            operation: One of "list_styles", "style_defs", "highlight"

        Raises:
            UnknownLanguageKind: If no lexer matches the ``language`` variable
            ValueError: If the operation is not known
        """
        if operation == "list_styles":
            self._scope["result"] = sorted(get_all_styles())
        elif operation == "style_defs":
            formatter = HtmlFormatter(style=self._scope["style"])
            self._scope["result"] = formatter.get_style_defs(f".{CSS_CLASS}")
        elif operation == "highlight":
            language = self._scope["language"]
            try:
                lexer = get_lexer_by_name(language)
            except ClassNotFound:
                raise UnknownLanguageKind(language) from None
            formatter = HtmlFormatter(cssclass=CSS_CLASS)
            self._scope["result"] = highlight(self._scope["code"], lexer, formatter)
        else:
            raise ValueError(f"Unknown engine operation: {operation}")


class HighlightBridge:
    """Lock-guarded adapter around one highlighting engine instance."""

    def __init__(self, engine: HighlightEngine | None = None) -> None:
        """Initialize the bridge.

        Args:
            engine: Engine to guard (default: a new PygmentsEngine)
        """
        self._engine: HighlightEngine = engine if engine is not None else PygmentsEngine()
        self._lock = threading.Lock()

    def highlight(self, code: str, language: str) -> str:
        """Highlight code as HTML.

        Args:
            code: Source code to highlight
            language: Language identifier understood by the engine

        Returns:
            HTML fragment with CSS-class based highlighting

        Raises:
            UnknownLanguageKind: If the engine has no lexer for language
            EngineFault: If the engine failed for any other reason
        """
        with self._lock:
            return str(self._call("highlight", code=code, language=language))

    def list_style_names(self) -> list[str]:
        """Return the names of all available highlight styles."""
        with self._lock:
            return list(self._call("list_styles"))

    def style_sheet(self, style_name: str) -> str:
        """Compute the CSS for a highlight style.

        Args:
            style_name: Style name, e.g. "colorful"

        Returns:
            CSS rules scoped to the ``.highlight`` class

        Raises:
            EngineFault: If the style is unknown or the engine failed
        """
        with self._lock:
            css = str(self._call("style_defs", style=style_name))
        logger.debug(f"Computed {len(css)} characters of CSS for style {style_name}")
        return css

    def _call(self, operation: str, **inputs: Any) -> Any:
        # Caller holds self._lock.
        for name, value in inputs.items():
            self._engine.set(name, value)
        try:
            self._engine.run(operation)
            return self._engine.get("result")
        except HighlightError:
            raise
        except Exception as e:
            raise EngineFault(operation, e) from e


_default_bridge: HighlightBridge | None = None
_default_bridge_lock = threading.Lock()


def default_bridge() -> HighlightBridge:
    """Return the process-wide bridge, creating it on first use."""
    global _default_bridge
    with _default_bridge_lock:
        if _default_bridge is None:
            logger.debug("Starting highlighting engine")
            _default_bridge = HighlightBridge()
        return _default_bridge

"""Shared test fixtures."""

import threading
import time
from html import escape
from typing import Any

import pytest
from md2pdf.errors import UnknownLanguageKind
from md2pdf.highlighting import HighlightBridge


class RecordingEngine:
    """Stub highlighting engine that records every operation it runs."""

    def __init__(
        self,
        unknown_languages: frozenset[str] = frozenset(),
        failing_languages: frozenset[str] = frozenset(),
    ) -> None:
        self.scope: dict[str, Any] = {}
        self.operations: list[str] = []
        self.highlighted: list[tuple[str, str]] = []
        self.unknown_languages = unknown_languages
        self.failing_languages = failing_languages

    def set(self, name: str, value: Any) -> None:
        self.scope[name] = value

    def get(self, name: str) -> Any:
        return self.scope[name]

    def run(self, operation: str) -> None:
        self.operations.append(operation)
        if operation == "highlight":
            code = self.scope["code"]
            language = self.scope["language"]
            self.highlighted.append((code, language))
            if language in self.unknown_languages:
                raise UnknownLanguageKind(language)
            if language in self.failing_languages:
                raise RuntimeError("lexer crashed")
            self.scope["result"] = f'<div class="highlight"><pre>{escape(code)}</pre></div>\n'
        elif operation == "style_defs":
            self.scope["result"] = f".highlight {{ color: black; }} /* {self.scope['style']} */"
        elif operation == "list_styles":
            self.scope["result"] = ["colorful", "default"]
        else:
            raise ValueError(f"Unknown engine operation: {operation}")


class InterleavingDetectingEngine:
    """Stub engine that notices when two callers mix their set/run/get calls.

    Each sequence starts with set() and ends with get("result"); a set() or
    run() from another thread in between is recorded as a violation. Every
    call sleeps to widen the race window.
    """

    def __init__(self, latency: float = 0.002) -> None:
        self.latency = latency
        self.violations: list[str] = []
        self._scope: dict[str, Any] = {}
        self._owner: int | None = None
        self._bookkeeping = threading.Lock()

    def _enter(self, call: str) -> None:
        me = threading.get_ident()
        with self._bookkeeping:
            if self._owner is None:
                self._owner = me
            elif self._owner != me:
                self.violations.append(f"{call} from {me} while {self._owner} active")

    def set(self, name: str, value: Any) -> None:
        self._enter("set")
        time.sleep(self.latency)
        self._scope[name] = value

    def run(self, operation: str) -> None:
        self._enter("run")
        time.sleep(self.latency)
        if operation == "highlight":
            self._scope["result"] = f"<pre>{self._scope['language']}:{self._scope['code']}</pre>"
        elif operation == "style_defs":
            self._scope["result"] = f"/* {self._scope['style']} */"
        else:
            self._scope["result"] = ["default"]

    def get(self, name: str) -> Any:
        self._enter("get")
        time.sleep(self.latency)
        value = self._scope[name]
        with self._bookkeeping:
            self._owner = None
        if self.violations:
            raise RuntimeError("interleaved engine access")
        return value


@pytest.fixture
def engine() -> RecordingEngine:
    """Recording stub engine; "nosuchlang" is unknown and "crashlang" faults."""
    return RecordingEngine(
        unknown_languages=frozenset({"nosuchlang"}),
        failing_languages=frozenset({"crashlang"}),
    )


@pytest.fixture
def bridge(engine: RecordingEngine) -> HighlightBridge:
    """Bridge around the recording stub engine."""
    return HighlightBridge(engine)

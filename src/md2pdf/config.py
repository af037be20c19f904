"""Configuration management for md2pdf.

Supports TOML configuration format with auto-discovery.
"""

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from md2pdf.extensions import Extensions
from md2pdf.verbatim import HighlightErrorPolicy

CONFIG_FILENAME = "md2pdf.toml"


@dataclass
class MarkdownConfig:
    """Markdown parsing configuration."""

    extensions: Extensions = Extensions.ALL
    timeout_ms: int = 2000


@dataclass
class HighlightConfig:
    """Code highlighting configuration."""

    style: str = "colorful"
    on_error: HighlightErrorPolicy = HighlightErrorPolicy.WARN


@dataclass
class OutputConfig:
    """Output file configuration."""

    pdf: Path = field(default_factory=lambda: Path("build/documentation/document.pdf"))
    html: Path | None = None
    stylesheet: Path | None = None


@dataclass
class Config:
    """Application configuration."""

    markdown: MarkdownConfig
    highlight: HighlightConfig
    output: OutputConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for md2pdf.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> "Config":
        return cls(
            markdown=MarkdownConfig(),
            highlight=HighlightConfig(),
            output=OutputConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        if not isinstance(data, dict):
            raise ValueError("Configuration must be a dictionary")

        config_dir = path.parent

        return cls(
            markdown=cls._parse_markdown(data.get("markdown")),
            highlight=cls._parse_highlight(data.get("highlight")),
            output=cls._parse_output(data.get("output"), config_dir),
            config_path=path,
        )

    @classmethod
    def _parse_markdown(cls, data: object) -> MarkdownConfig:
        """Parse markdown configuration section.

        Args:
            data: Raw markdown section data

        Returns:
            MarkdownConfig instance
        """
        if data is None:
            return MarkdownConfig()

        if not isinstance(data, dict):
            raise ValueError("markdown section must be a dictionary")

        extensions = Extensions.ALL
        extensions_raw = data.get("extensions", "all")
        if isinstance(extensions_raw, str):
            extensions = Extensions.from_names([extensions_raw])
        elif isinstance(extensions_raw, list):
            for item in extensions_raw:
                if not isinstance(item, str):
                    raise ValueError("markdown.extensions items must be strings")
            extensions = Extensions.from_names(extensions_raw)
        else:
            raise ValueError("markdown.extensions must be a string or a list")

        timeout_ms = data.get("timeout_ms", 2000)
        if not isinstance(timeout_ms, int) or isinstance(timeout_ms, bool):
            raise ValueError("markdown.timeout_ms must be an integer")
        if timeout_ms <= 0:
            raise ValueError("markdown.timeout_ms must be positive")

        return MarkdownConfig(extensions=extensions, timeout_ms=timeout_ms)

    @classmethod
    def _parse_highlight(cls, data: object) -> HighlightConfig:
        """Parse highlight configuration section.

        Args:
            data: Raw highlight section data

        Returns:
            HighlightConfig instance
        """
        if data is None:
            return HighlightConfig()

        if not isinstance(data, dict):
            raise ValueError("highlight section must be a dictionary")

        style = data.get("style", "colorful")
        if not isinstance(style, str):
            raise ValueError("highlight.style must be a string")

        on_error = data.get("on_error", "warn")
        if not isinstance(on_error, str):
            raise ValueError("highlight.on_error must be a string")
        try:
            policy = HighlightErrorPolicy(on_error)
        except ValueError:
            choices = ", ".join(p.value for p in HighlightErrorPolicy)
            raise ValueError(f"highlight.on_error must be one of: {choices}") from None

        return HighlightConfig(style=style, on_error=policy)

    @classmethod
    def _parse_output(cls, data: object, config_dir: Path) -> OutputConfig:
        """Parse output configuration section.

        Args:
            data: Raw output section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            OutputConfig instance
        """
        if data is None:
            return OutputConfig(pdf=config_dir / "build/documentation/document.pdf")

        if not isinstance(data, dict):
            raise ValueError("output section must be a dictionary")

        pdf = data.get("pdf", "build/documentation/document.pdf")
        if not isinstance(pdf, str):
            raise ValueError("output.pdf must be a string")

        html = data.get("html")
        if html is not None and not isinstance(html, str):
            raise ValueError("output.html must be a string")

        stylesheet = data.get("stylesheet")
        if stylesheet is not None and not isinstance(stylesheet, str):
            raise ValueError("output.stylesheet must be a string")

        return OutputConfig(
            pdf=config_dir / pdf,
            html=config_dir / html if html is not None else None,
            stylesheet=config_dir / stylesheet if stylesheet is not None else None,
        )

    def with_overrides(
        self,
        *,
        pdf: Path | None = None,
        html: Path | None = None,
        stylesheet: Path | None = None,
        style: str | None = None,
        timeout_ms: int | None = None,
        on_error: HighlightErrorPolicy | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            pdf: Override output.pdf
            html: Override output.html
            stylesheet: Override output.stylesheet
            style: Override highlight.style
            timeout_ms: Override markdown.timeout_ms
            on_error: Override highlight.on_error

        Returns:
            New Config instance with overrides applied

        Raises:
            ValueError: If timeout_ms is not positive
        """
        output = replace(
            self.output,
            pdf=pdf if pdf is not None else self.output.pdf,
            html=html if html is not None else self.output.html,
            stylesheet=stylesheet if stylesheet is not None else self.output.stylesheet,
        )

        highlight = replace(
            self.highlight,
            style=style if style is not None else self.highlight.style,
            on_error=on_error if on_error is not None else self.highlight.on_error,
        )

        markdown = self.markdown
        if timeout_ms is not None:
            if timeout_ms <= 0:
                raise ValueError("markdown.timeout_ms must be positive")
            markdown = replace(self.markdown, timeout_ms=timeout_ms)

        return replace(self, markdown=markdown, highlight=highlight, output=output)

"""Tests for configuration loading."""

from pathlib import Path
from unittest.mock import patch

import pytest
from md2pdf.config import Config, HighlightConfig, MarkdownConfig, OutputConfig
from md2pdf.extensions import Extensions
from md2pdf.verbatim import HighlightErrorPolicy


class TestConfigLoad:
    """Tests for Config.load()."""

    def test__explicit_path__loads_config(self, tmp_path: Path) -> None:
        """Load config from explicit path."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text("""
[markdown]
extensions = ["tables", "fenced-code-blocks", "footnotes"]
timeout_ms = 500

[highlight]
style = "monokai"
on_error = "surface"

[output]
pdf = "dist/manual.pdf"
html = "dist/manual.xhtml"
stylesheet = "styles/print.css"
""")

        config = Config.load(config_file)

        assert config.markdown.extensions == (
            Extensions.TABLES | Extensions.FENCED_CODE_BLOCKS | Extensions.FOOTNOTES
        )
        assert config.markdown.timeout_ms == 500
        assert config.highlight.style == "monokai"
        assert config.highlight.on_error is HighlightErrorPolicy.SURFACE
        assert config.output.pdf == tmp_path / "dist/manual.pdf"
        assert config.output.html == tmp_path / "dist/manual.xhtml"
        assert config.output.stylesheet == tmp_path / "styles/print.css"
        assert config.config_path == config_file

    def test__minimal_config__uses_defaults(self, tmp_path: Path) -> None:
        """Load minimal config with defaults relative to config file."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text("")

        config = Config.load(config_file)

        assert config.markdown.extensions == Extensions.ALL
        assert config.markdown.timeout_ms == 2000
        assert config.highlight.style == "colorful"
        assert config.highlight.on_error is HighlightErrorPolicy.WARN
        assert config.output.pdf == tmp_path / "build/documentation/document.pdf"
        assert config.output.html is None
        assert config.output.stylesheet is None

    def test__missing_explicit_path__raises_error(self, tmp_path: Path) -> None:
        """Raise FileNotFoundError for missing explicit path."""
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            Config.load(tmp_path / "missing.toml")

    def test__no_path_no_discovery__returns_defaults(self) -> None:
        """Return defaults when no config is found."""
        with patch.object(Config, "_discover_config", return_value=None):
            config = Config.load()

        assert config.markdown == MarkdownConfig()
        assert config.highlight == HighlightConfig()
        assert config.output == OutputConfig()
        assert config.config_path is None


class TestConfigDiscovery:
    """Tests for Config._discover_config()."""

    def test__config_in_current_dir__found(self, tmp_path: Path) -> None:
        """Find config in current directory."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text("")

        with patch("pathlib.Path.cwd", return_value=tmp_path):
            assert Config._discover_config() == config_file

    def test__config_in_parent_dir__found(self, tmp_path: Path) -> None:
        """Find config in a parent directory."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text("")
        subdir = tmp_path / "docs" / "chapters"
        subdir.mkdir(parents=True)

        with patch("pathlib.Path.cwd", return_value=subdir):
            assert Config._discover_config() == config_file

    def test__discovered_config__loaded(self, tmp_path: Path) -> None:
        """Config.load() without a path uses the discovered file."""
        (tmp_path / "md2pdf.toml").write_text('[highlight]\nstyle = "friendly"\n')

        with patch("pathlib.Path.cwd", return_value=tmp_path):
            config = Config.load()

        assert config.highlight.style == "friendly"


class TestMarkdownConfig:
    """Tests for the markdown section."""

    def test__extensions_as_string(self, tmp_path: Path) -> None:
        """A single extension name is accepted."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text('[markdown]\nextensions = "tables"\n')

        assert Config.load(config_file).markdown.extensions == Extensions.TABLES

    def test__unknown_extension__raises_error(self, tmp_path: Path) -> None:
        """Unknown extension names are rejected."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text('[markdown]\nextensions = ["tables", "emoji"]\n')

        with pytest.raises(ValueError, match="Unknown markdown extension"):
            Config.load(config_file)

    def test__invalid_extensions_type__raises_error(self, tmp_path: Path) -> None:
        """Extensions must be a string or list."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text("[markdown]\nextensions = 3\n")

        with pytest.raises(ValueError, match="markdown.extensions must be a string or a list"):
            Config.load(config_file)

    def test__invalid_extensions_item__raises_error(self, tmp_path: Path) -> None:
        """Extension list items must be strings."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text('[markdown]\nextensions = ["tables", 1]\n')

        with pytest.raises(ValueError, match="markdown.extensions items must be strings"):
            Config.load(config_file)

    @pytest.mark.parametrize("value", ['"fast"', "true", "1.5"])
    def test__invalid_timeout_type__raises_error(self, tmp_path: Path, value: str) -> None:
        """Timeout must be an integer."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text(f"[markdown]\ntimeout_ms = {value}\n")

        with pytest.raises(ValueError, match="markdown.timeout_ms must be an integer"):
            Config.load(config_file)

    def test__non_positive_timeout__raises_error(self, tmp_path: Path) -> None:
        """Timeout must be positive."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text("[markdown]\ntimeout_ms = 0\n")

        with pytest.raises(ValueError, match="markdown.timeout_ms must be positive"):
            Config.load(config_file)


class TestHighlightConfig:
    """Tests for the highlight section."""

    def test__invalid_style_type__raises_error(self, tmp_path: Path) -> None:
        """Style must be a string."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text("[highlight]\nstyle = 42\n")

        with pytest.raises(ValueError, match="highlight.style must be a string"):
            Config.load(config_file)

    def test__invalid_on_error__lists_choices(self, tmp_path: Path) -> None:
        """Unknown policies are rejected with the valid choices."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text('[highlight]\non_error = "ignore"\n')

        with pytest.raises(ValueError, match="degrade, warn, surface"):
            Config.load(config_file)


class TestOutputConfig:
    """Tests for the output section."""

    def test__invalid_pdf_type__raises_error(self, tmp_path: Path) -> None:
        """PDF path must be a string."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text("[output]\npdf = 1\n")

        with pytest.raises(ValueError, match="output.pdf must be a string"):
            Config.load(config_file)

    def test__invalid_section_type__raises_error(self, tmp_path: Path) -> None:
        """Sections must be tables."""
        config_file = tmp_path / "md2pdf.toml"
        config_file.write_text('output = "doc.pdf"\n')

        with pytest.raises(ValueError, match="output section must be a dictionary"):
            Config.load(config_file)


class TestWithOverrides:
    """Tests for Config.with_overrides()."""

    def test__overrides_applied(self, tmp_path: Path) -> None:
        """Non-None overrides replace config values."""
        config = Config.load(_empty_config(tmp_path))

        result = config.with_overrides(
            pdf=Path("out.pdf"),
            html=Path("out.xhtml"),
            stylesheet=Path("print.css"),
            style="monokai",
            timeout_ms=100,
            on_error=HighlightErrorPolicy.DEGRADE,
        )

        assert result.output.pdf == Path("out.pdf")
        assert result.output.html == Path("out.xhtml")
        assert result.output.stylesheet == Path("print.css")
        assert result.highlight.style == "monokai"
        assert result.markdown.timeout_ms == 100
        assert result.highlight.on_error is HighlightErrorPolicy.DEGRADE
        assert result.config_path == config.config_path

    def test__none_overrides__keep_values(self, tmp_path: Path) -> None:
        """None overrides leave config values untouched."""
        config = Config.load(_empty_config(tmp_path))

        result = config.with_overrides()

        assert result == config

    def test__original_not_modified(self, tmp_path: Path) -> None:
        """Overrides produce a new Config."""
        config = Config.load(_empty_config(tmp_path))

        config.with_overrides(style="monokai", timeout_ms=100)

        assert config.highlight.style == "colorful"
        assert config.markdown.timeout_ms == 2000

    @pytest.mark.parametrize("timeout_ms", [0, -1])
    def test__non_positive_timeout__raises_error(self, tmp_path: Path, timeout_ms: int) -> None:
        """Overrides go through the same timeout check as the config file."""
        config = Config.load(_empty_config(tmp_path))

        with pytest.raises(ValueError, match="markdown.timeout_ms must be positive"):
            config.with_overrides(timeout_ms=timeout_ms)


def _empty_config(tmp_path: Path) -> Path:
    config_file = tmp_path / "md2pdf.toml"
    config_file.write_text("")
    return config_file

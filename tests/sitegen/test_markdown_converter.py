"""Tests for Markdown -> HTML conversion."""

import pytest

from src.sitegen.template_engine import MarkdownConverter


@pytest.fixture(scope="module")
def converter() -> MarkdownConverter:
    return MarkdownConverter()


class TestBasicConversion:
    def test_paragraphs(self, converter):
        html = converter.convert("First paragraph.\n\nSecond paragraph.\n")
        assert html.count("<p>") == 2

    def test_fenced_code_is_highlighted(self, converter):
        body = "```python\ndef f():\n    return 1\n```\n"
        html = converter.convert(body)
        assert '<div class="highlight">' in html
        assert '<span class="k">def</span>' in html

    def test_footnotes(self, converter):
        html = converter.convert("Claim.[^1]\n\n[^1]: Source.\n")
        assert 'class="footnote-ref"' in html
        assert 'id="fn:1"' in html

    def test_tables(self, converter):
        html = converter.convert("| a | b |\n|---|---|\n| 1 | 2 |\n")
        assert "<table>" in html

    def test_conversion_is_repeatable(self, converter):
        body = "# Title\n\nText.[^n]\n\n[^n]: Note.\n\n```python\nx = 1\n```\n"
        assert converter.convert(body) == converter.convert(body)

    def test_independent_converters_agree(self):
        body = "Text with `code` and a footnote.[^1]\n\n[^1]: Note.\n"
        assert MarkdownConverter().convert(body) == MarkdownConverter().convert(body)


class TestMathPassthrough:
    def test_inline_dollar_math(self, converter):
        html = converter.convert("Euler: $e^{i\\pi} + 1 = 0$.\n", math=True)
        assert '<span class="math inline">\\(e^{i\\pi} + 1 = 0\\)</span>' in html

    def test_math_is_not_markdown_processed(self, converter):
        body = "Sum $*a* + *b*$ here.\n"
        assert "<em>" in converter.convert(body, math=False)
        html = converter.convert(body, math=True)
        assert "<em>" not in html
        assert "\\(*a* + *b*\\)" in html

    def test_display_block(self, converter):
        body = "Before.\n\n$$\n\\sum_i x_i\n$$\n\nAfter.\n"
        html = converter.convert(body, math=True)
        assert '<div class="math display">\\[\\sum_i x_i\\]</div>' in html

    def test_bracket_delimiters(self, converter):
        html = converter.convert("Inline \\(a^2\\) here.\n", math=True)
        assert '<span class="math inline">\\(a^2\\)</span>' in html

    def test_dollar_amounts_are_not_math(self, converter):
        html = converter.convert("It costs $5 and $10.\n", math=True)
        assert "math" not in html

    def test_code_spans_keep_dollars(self, converter):
        html = converter.convert("Use `$x$` literally, but $y$ is math.\n", math=True)
        assert "<code>$x$</code>" in html
        assert "\\(y\\)" in html

    def test_math_flag_off_leaves_no_math_markup(self, converter):
        html = converter.convert("Euler: $e^{i\\pi}$.\n", math=False)
        assert "math inline" not in html


class TestHighlightCss:
    def test_stylesheet_targets_highlight_class(self):
        css = MarkdownConverter(pygments_style="friendly").highlight_css()
        assert ".highlight" in css

    def test_unknown_style_falls_back(self):
        css = MarkdownConverter(pygments_style="no-such-style").highlight_css()
        assert css == MarkdownConverter().highlight_css()

"""Markdown -> HTML conversion with Pygments highlighting and math passthrough.

The converter is a pure function of (body, math flag): the underlying
Markdown instance is reset before every call so footnote counters and
header ids never leak between documents.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as etree

import markdown as md
from markdown.blockprocessors import BlockProcessor
from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor
from markdown.util import AtomicString
from pygments.formatters import HtmlFormatter
from pygments.util import ClassNotFound

from src.common.logging import setup_logging

logger = setup_logging(module_name="sitegen.markdown")

HIGHLIGHT_CSS_CLASS = "highlight"
DEFAULT_PYGMENTS_STYLE = "default"

BASE_EXTENSIONS = [
    "fenced_code",
    "codehilite",
    "footnotes",
    "tables",
    "toc",
    "sane_lists",
    "smarty",
]

EXTENSION_CONFIGS = {
    "codehilite": {
        "css_class": HIGHLIGHT_CSS_CLASS,
        "guess_lang": False,
        "use_pygments": True,
    },
    "footnotes": {
        "UNIQUE_IDS": False,
    },
}

# Inline patterns: (regex, display?)
INLINE_MATH_PATTERNS = [
    (r"(?<!\\)\$\$(.+?)\$\$", True),
    (r"\\\[(.+?)\\\]", True),
    (r"\\\((.+?)\\\)", False),
    (r"(?<![\\$\w])\$(?=\S)(.+?)(?<=\S)\$(?![\d$])", False),
]

# Priority above backslash escapes (180), below backticks (190)
MATH_INLINE_PRIORITY = 185
MATH_BLOCK_PRIORITY = 75


def _math_text(tex: str, display: bool) -> AtomicString:
    tex = tex.strip()
    if display:
        return AtomicString(f"\\[{tex}\\]")
    return AtomicString(f"\\({tex}\\)")


class MathInlineProcessor(InlineProcessor):
    """Wraps inline TeX in a span so Markdown leaves it untouched."""

    def __init__(self, pattern: str, display: bool, md_instance=None):
        super().__init__(pattern, md_instance)
        self.display = display

    def handleMatch(self, m, data):
        el = etree.Element("span")
        el.set("class", "math display" if self.display else "math inline")
        el.text = _math_text(m.group(1), self.display)
        return el, m.start(0), m.end(0)


class MathBlockProcessor(BlockProcessor):
    """A paragraph that is only ``$$ ... $$`` or ``\\[ ... \\]`` becomes a div."""

    BLOCK_RE = re.compile(r"^\s*(?:\$\$(?P<dollar>.+?)\$\$|\\\[(?P<bracket>.+?)\\\])\s*$", re.DOTALL)

    def test(self, parent, block):
        return bool(self.BLOCK_RE.match(block))

    def run(self, parent, blocks):
        block = blocks.pop(0)
        m = self.BLOCK_RE.match(block)
        tex = m.group("dollar") if m.group("dollar") is not None else m.group("bracket")
        el = etree.SubElement(parent, "div")
        el.set("class", "math display")
        el.text = _math_text(tex, True)
        return True


class MathExtension(Extension):
    """Pass TeX through for client-side MathJax rendering."""

    def extendMarkdown(self, md_instance):
        md_instance.parser.blockprocessors.register(
            MathBlockProcessor(md_instance.parser), "math_block", MATH_BLOCK_PRIORITY
        )
        for i, (pattern, display) in enumerate(INLINE_MATH_PATTERNS):
            md_instance.inlinePatterns.register(
                MathInlineProcessor(pattern, display, md_instance),
                f"math_inline_{i}",
                MATH_INLINE_PRIORITY - i,
            )


class MarkdownConverter:
    """Converts Markdown bodies to HTML fragments.

    Usage:
        converter = MarkdownConverter()
        html = converter.convert(item.body, math=item.math)
    """

    def __init__(self, pygments_style: str = DEFAULT_PYGMENTS_STYLE):
        self.pygments_style = pygments_style
        self._plain = self._build(math=False)
        self._math = self._build(math=True)

    def _build(self, math: bool) -> md.Markdown:
        extensions: list = list(BASE_EXTENSIONS)
        if math:
            extensions.append(MathExtension())
        return md.Markdown(
            extensions=extensions,
            extension_configs=EXTENSION_CONFIGS,
            output_format="html",
        )

    def convert(self, body: str, math: bool = False) -> str:
        """Convert one Markdown body to an HTML fragment.

        Args:
            body: Markdown source without front matter.
            math: Pass TeX delimiters through untouched.

        Returns:
            HTML string.
        """
        converter = self._math if math else self._plain
        converter.reset()
        return converter.convert(body)

    def highlight_css(self) -> str:
        """Return the Pygments stylesheet matching the highlighted blocks."""
        try:
            formatter = HtmlFormatter(style=self.pygments_style)
        except ClassNotFound:
            logger.warning(
                "Pygments style '%s' not found. Falling back to '%s'.",
                self.pygments_style,
                DEFAULT_PYGMENTS_STYLE,
            )
            formatter = HtmlFormatter(style=DEFAULT_PYGMENTS_STYLE)
        return formatter.get_style_defs(f".{HIGHLIGHT_CSS_CLASS}") + "\n"

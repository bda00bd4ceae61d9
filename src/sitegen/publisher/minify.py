"""Output minification for HTML, CSS and JS."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

import rcssmin
import rjsmin

PRESERVE_RE = re.compile(
    r"<(?P<tag>pre|textarea|script|style)\b(?P<attrs>[^>]*)>(?P<body>.*?)</(?P=tag)\s*>",
    re.DOTALL | re.IGNORECASE,
)
COMMENT_RE = re.compile(r"<!--(?!\[if).*?-->", re.DOTALL)
WHITESPACE_RE = re.compile(r"\s+")


def minify_css(text: str) -> str:
    return rcssmin.cssmin(text)


def minify_js(text: str) -> str:
    return rjsmin.jsmin(text)


def _collapse(text: str) -> str:
    text = COMMENT_RE.sub("", text)
    return WHITESPACE_RE.sub(" ", text)


def _minify_preserved(match: re.Match) -> str:
    tag = match.group("tag")
    body = match.group("body")
    lowered = tag.lower()
    if lowered == "style":
        body = minify_css(body)
    elif lowered == "script":
        body = minify_js(body)
    return f"<{tag}{match.group('attrs')}>{body}</{tag}>"


def minify_html(html: str) -> str:
    """Collapse whitespace runs and drop comments outside pre/textarea.

    Inline ``<style>`` and ``<script>`` bodies go through the CSS/JS
    minifiers; ``<pre>`` and ``<textarea>`` are left byte-for-byte.
    """
    out = []
    pos = 0
    for match in PRESERVE_RE.finditer(html):
        out.append(_collapse(html[pos:match.start()]))
        out.append(_minify_preserved(match))
        pos = match.end()
    out.append(_collapse(html[pos:]))
    return "".join(out).strip() + "\n"


MINIFIERS = {
    ".html": minify_html,
    ".htm": minify_html,
    ".css": minify_css,
    ".js": minify_js,
}


def minify_for(path: str, text: str) -> str:
    """Minify ``text`` according to the suffix of ``path``; other types pass through."""
    minifier = MINIFIERS.get(PurePosixPath(path).suffix.lower())
    if minifier is None:
        return text
    return minifier(text)


def can_minify(path: str) -> bool:
    return PurePosixPath(path).suffix.lower() in MINIFIERS

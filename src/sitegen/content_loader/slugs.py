"""Slug helpers shared by the loader and the renderer."""

from __future__ import annotations

import re
import unicodedata
from datetime import datetime
from typing import Optional

DATED_FILENAME_RE = re.compile(r"^(?P<date>\d{4}-\d{2}-\d{2})-(?P<rest>.+)$")
NON_WORD_RE = re.compile(r"[^\w]+", re.UNICODE)


def slugify(text: str) -> str:
    """Lowercase, ASCII-fold where possible, and join words with hyphens."""
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = NON_WORD_RE.sub("-", text.lower())
    return text.strip("-_").replace("_", "-")


def split_dated_filename(stem: str) -> tuple[Optional[datetime], str]:
    """Split a ``YYYY-MM-DD-title`` stem into its date and title parts.

    Returns ``(None, stem)`` when the stem carries no valid date prefix.
    """
    match = DATED_FILENAME_RE.match(stem)
    if not match:
        return None, stem
    try:
        date = datetime.strptime(match.group("date"), "%Y-%m-%d")
    except ValueError:
        return None, stem
    return date, match.group("rest")

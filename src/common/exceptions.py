"""Centralized exceptions for the site generator."""

from __future__ import annotations

from pathlib import Path


class SiteError(Exception):
    """Base exception for all site build errors."""


class ConfigError(SiteError):
    """Raised when site.yaml cannot be read or holds invalid values."""


class ParseError(SiteError):
    """Raised when a content file has malformed front matter.

    Recoverable by default: the loader skips the file and reports it.
    """

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.path}: {message}")


class RenderError(SiteError):
    """Raised when a template or partial is missing or fails to render."""

    def __init__(self, template: str, message: str):
        self.template = template
        self.message = message
        super().__init__(f"{template}: {message}")


class SiteIOError(SiteError):
    """Raised when a source cannot be read or the output cannot be written."""

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.path}: {message}")

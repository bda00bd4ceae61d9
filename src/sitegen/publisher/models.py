"""Data models for the publisher module."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from src.common.exceptions import ParseError
from src.sitegen.content_loader.models import StaticFile
from src.sitegen.template_engine.models import RenderedPage


class BuildMode(str, Enum):
    """Pipeline modes."""
    PRODUCTION = "production"
    PREVIEW = "preview"


@dataclass
class SiteManifest:
    """Everything that ends up in the output directory."""
    pages: list[RenderedPage] = field(default_factory=list)
    static_files: list[StaticFile] = field(default_factory=list)
    post_count: int = 0

    @property
    def paths(self) -> list[str]:
        """Output paths, static files first, pages last (pages win on clashes)."""
        return [f.relative_path.as_posix() for f in self.static_files] + [p.path for p in self.pages]

    def page(self, path: str) -> RenderedPage | None:
        for page in self.pages:
            if page.path == path:
                return page
        return None


@dataclass
class BuildResult:
    """Result of one pipeline run."""
    mode: BuildMode
    output_dir: Path
    page_count: int = 0
    static_count: int = 0
    post_count: int = 0
    skipped: list[ParseError] = field(default_factory=list)
    duration_seconds: float = 0.0

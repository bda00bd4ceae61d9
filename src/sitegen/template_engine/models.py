"""Data models for the template engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml
from markupsafe import Markup

from src.common.exceptions import RenderError
from src.sitegen.content_loader.models import ContentItem


@dataclass(frozen=True)
class Theme:
    """Read-only collection of templates and static assets."""
    path: Path
    name: str = "unnamed"
    version: str = "0"

    @property
    def templates_dir(self) -> Path:
        return self.path / "templates"

    @property
    def static_dir(self) -> Path:
        return self.path / "static"

    @classmethod
    def load(cls, path: Path) -> Theme:
        """Load a theme directory and its optional theme.yaml."""
        path = Path(path)
        if not (path / "templates").is_dir():
            raise RenderError(str(path), "theme has no templates/ directory")

        meta: dict = {}
        meta_path = path / "theme.yaml"
        if meta_path.exists():
            try:
                with open(meta_path, encoding="utf-8") as f:
                    meta = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise RenderError(str(meta_path), f"cannot read theme metadata: {e}") from e
            if not isinstance(meta, dict):
                raise RenderError(str(meta_path), "theme metadata must be a mapping")

        return cls(
            path=path,
            name=str(meta.get("name", path.name)),
            version=str(meta.get("version", "0")),
        )


@dataclass(frozen=True)
class PostView:
    """A ContentItem together with its converted HTML and location."""
    item: ContentItem
    html: Markup
    url: str  # site-relative, e.g. "/2020/01/01/a/"
    path: str  # output path, e.g. "2020/01/01/a/index.html"
    excerpt: Markup

    @property
    def title(self) -> str:
        return self.item.title

    @property
    def date(self) -> datetime:
        return self.item.date

    @property
    def slug(self) -> str:
        return self.item.slug

    @property
    def categories(self) -> tuple[str, ...]:
        return self.item.categories

    @property
    def draft(self) -> bool:
        return self.item.draft

    @property
    def math(self) -> bool:
        return self.item.math


@dataclass(frozen=True)
class CategoryGroup:
    """All posts filed under one category."""
    name: str
    slug: str
    posts: tuple[PostView, ...]

    @property
    def url(self) -> str:
        return f"/categories/{self.slug}/"

    @property
    def path(self) -> str:
        return f"categories/{self.slug}/index.html"


@dataclass(frozen=True)
class YearGroup:
    """All posts dated within one year."""
    year: int
    posts: tuple[PostView, ...]

    @property
    def url(self) -> str:
        return f"/archive/{self.year}/"

    @property
    def path(self) -> str:
        return f"archive/{self.year}/index.html"


@dataclass
class SiteIndex:
    """Aggregates used by listing pages."""
    posts: list[PostView] = field(default_factory=list)
    categories: list[CategoryGroup] = field(default_factory=list)
    years: list[YearGroup] = field(default_factory=list)

    def category(self, name: str) -> Optional[CategoryGroup]:
        for group in self.categories:
            if group.name == name:
                return group
        return None

    def year(self, year: int) -> Optional[YearGroup]:
        for group in self.years:
            if group.year == year:
                return group
        return None


@dataclass(frozen=True)
class RenderedPage:
    """Output content plus its destination path relative to the output root."""
    path: str
    content: str

# Template Engine Module
# Markdown conversion + Jinja2 theme templates -> RenderedPage

from .indexes import build_indexes, sort_posts
from .markdown_converter import MarkdownConverter, MathExtension
from .models import (
    CategoryGroup,
    PostView,
    RenderedPage,
    SiteIndex,
    Theme,
    YearGroup,
)
from .renderer import SiteRenderer

__all__ = [
    "build_indexes",
    "sort_posts",
    "MarkdownConverter",
    "MathExtension",
    "CategoryGroup",
    "PostView",
    "RenderedPage",
    "SiteIndex",
    "Theme",
    "YearGroup",
    "SiteRenderer",
]

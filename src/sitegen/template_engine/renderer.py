"""
Site Renderer.
Handles Markdown conversion and Jinja2 template rendering for posts and
listing pages.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional
from urllib.parse import urlparse

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)
from markupsafe import Markup

from src.common.config import SiteSettings
from src.common.exceptions import RenderError
from src.common.logging import setup_logging
from src.sitegen.content_loader.models import ContentItem
from src.sitegen.content_loader.slugs import slugify

from .indexes import build_indexes
from .markdown_converter import MarkdownConverter
from .models import CategoryGroup, PostView, RenderedPage, SiteIndex, Theme, YearGroup

logger = setup_logging(module_name="sitegen.renderer")

BUILTIN_TEMPLATES_DIR = Path(__file__).parent / "builtin"
FIRST_PARAGRAPH_RE = re.compile(r"<p>.*?</p>", re.DOTALL)

POST_TEMPLATE = "post.html"
INDEX_TEMPLATE = "index.html"
CATEGORY_TEMPLATE = "category.html"
CATEGORY_LIST_TEMPLATE = "categories.html"
YEAR_TEMPLATE = "year.html"
ARCHIVE_TEMPLATE = "archive.html"
FEED_TEMPLATE = "feed.xml"
SITEMAP_TEMPLATE = "sitemap.xml"
HIGHLIGHT_CSS_PATH = "assets/css/pygments.css"


MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
DATE_NAME_RE = re.compile(r"(%%|%[BbAa])")


def format_date(value: datetime, fmt: str = "%B %d, %Y") -> str:
    """strftime with English month/day names whatever the process locale is."""
    names = {
        "%B": MONTH_NAMES[value.month - 1],
        "%b": MONTH_NAMES[value.month - 1][:3],
        "%A": DAY_NAMES[value.weekday()],
        "%a": DAY_NAMES[value.weekday()][:3],
    }
    out = []
    for part in DATE_NAME_RE.split(fmt):
        if part:
            out.append(names.get(part) or value.strftime(part))
    return "".join(out)


def rfc3339(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


class SiteRenderer:
    """
    Renders posts and listing pages using the theme's Jinja2 templates.

    Templates are looked up in the site's layouts directory first, then in
    the theme, then in the built-in feed/sitemap templates.

    Usage:
        renderer = SiteRenderer(settings)
        pages = renderer.render_all(items)
    """

    def __init__(
        self,
        settings: SiteSettings,
        theme: Optional[Theme] = None,
        converter: Optional[MarkdownConverter] = None,
    ):
        """
        Initialize the renderer.

        Args:
            settings: Site settings (permalink, base_url, layouts, ...).
            theme: Theme to render with. Defaults to settings.theme_path.
            converter: Markdown converter. Defaults to one using the
                       configured Pygments style.
        """
        self.settings = settings
        self.theme = theme or Theme.load(settings.theme_path)
        self.converter = converter or MarkdownConverter(settings.pygments_style)
        self.base_path = urlparse(settings.base_url).path.rstrip("/")

        loaders = []
        if settings.layouts_path.is_dir():
            loaders.append(FileSystemLoader(str(settings.layouts_path)))
        loaders.append(FileSystemLoader(str(self.theme.templates_dir)))
        loaders.append(FileSystemLoader(str(BUILTIN_TEMPLATES_DIR)))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["date_format"] = format_date
        self.env.filters["rfc3339"] = rfc3339
        self.env.filters["slugify"] = slugify
        self.env.filters["absolute_url"] = self.absolute_url
        self.env.globals["url_for"] = self.url_for

    # --- URLs ---

    def url_for(self, url: str) -> str:
        """Prefix a site-relative URL with the base_url path component."""
        return f"{self.base_path}{url}"

    def absolute_url(self, url: str) -> str:
        """Full URL when base_url is configured, else the prefixed path."""
        if not self.settings.base_url:
            return self.url_for(url)
        return f"{self.settings.base_url}{url}"

    def post_location(self, item: ContentItem) -> tuple[str, str]:
        """Return (url, output path) of a post from the permalink pattern."""
        relative = self.settings.permalink.format(**item.permalink_fields())
        return f"/{relative}", f"{relative}index.html"

    # --- Posts ---

    def prepare(self, item: ContentItem) -> PostView:
        """Convert a ContentItem's body and attach its location."""
        html = self.converter.convert(item.body, math=item.math)
        url, path = self.post_location(item)
        if item.summary:
            excerpt = Markup("<p>{}</p>").format(item.summary)
        else:
            match = FIRST_PARAGRAPH_RE.search(html)
            excerpt = Markup(match.group(0) if match else "")
        return PostView(item=item, html=Markup(html), url=url, path=path, excerpt=excerpt)

    def render_post(self, item: ContentItem | PostView) -> RenderedPage:
        """Render a single post page."""
        post = item if isinstance(item, PostView) else self.prepare(item)
        content = self._render(
            POST_TEMPLATE,
            page={"title": post.title, "url": post.url, "kind": "post"},
            post=post,
        )
        return RenderedPage(path=post.path, content=content)

    # --- Listings ---

    def render_index(self, index: SiteIndex) -> RenderedPage:
        content = self._render(
            INDEX_TEMPLATE,
            page={"title": self.settings.title, "url": "/", "kind": "index"},
            posts=index.posts,
            categories=index.categories,
            years=index.years,
        )
        return RenderedPage(path="index.html", content=content)

    def render_category(self, group: CategoryGroup, index: SiteIndex) -> RenderedPage:
        content = self._render(
            CATEGORY_TEMPLATE,
            page={"title": group.name, "url": group.url, "kind": "category"},
            category=group,
            posts=group.posts,
            categories=index.categories,
        )
        return RenderedPage(path=group.path, content=content)

    def render_category_list(self, index: SiteIndex) -> RenderedPage:
        content = self._render(
            CATEGORY_LIST_TEMPLATE,
            page={"title": "Categories", "url": "/categories/", "kind": "categories"},
            categories=index.categories,
        )
        return RenderedPage(path="categories/index.html", content=content)

    def render_year(self, group: YearGroup, index: SiteIndex) -> RenderedPage:
        content = self._render(
            YEAR_TEMPLATE,
            page={"title": str(group.year), "url": group.url, "kind": "year"},
            year=group,
            posts=group.posts,
            years=index.years,
        )
        return RenderedPage(path=group.path, content=content)

    def render_archive(self, index: SiteIndex) -> RenderedPage:
        content = self._render(
            ARCHIVE_TEMPLATE,
            page={"title": "Archive", "url": "/archive/", "kind": "archive"},
            years=index.years,
        )
        return RenderedPage(path="archive/index.html", content=content)

    def render_feed(self, index: SiteIndex) -> RenderedPage:
        """Atom feed of the most recent posts."""
        posts = index.posts[: self.settings.feed_limit]
        content = self._render(
            FEED_TEMPLATE,
            page={"title": self.settings.title, "url": "/feed.xml", "kind": "feed"},
            posts=posts,
            updated=posts[0].date if posts else None,
        )
        return RenderedPage(path="feed.xml", content=content)

    def render_sitemap(self, index: SiteIndex) -> RenderedPage:
        urls = ["/", "/categories/", "/archive/"]
        urls += [post.url for post in index.posts]
        urls += [group.url for group in index.categories]
        urls += [group.url for group in index.years]
        content = self._render(
            SITEMAP_TEMPLATE,
            page={"title": self.settings.title, "url": "/sitemap.xml", "kind": "sitemap"},
            urls=urls,
        )
        return RenderedPage(path="sitemap.xml", content=content)

    def render_highlight_css(self) -> RenderedPage:
        return RenderedPage(path=HIGHLIGHT_CSS_PATH, content=self.converter.highlight_css())

    def render_all(self, items: Iterable[ContentItem]) -> list[RenderedPage]:
        """Render every page of the site, in a deterministic order."""
        pages, _ = self.render_site(items)
        return pages

    def render_site(self, items: Iterable[ContentItem]) -> tuple[list[RenderedPage], SiteIndex]:
        """Render every page of the site.

        Args:
            items: Loaded content items (drafts already filtered by mode).

        Returns:
            Tuple of (all RenderedPages, the SiteIndex they were built from).

        Raises:
            RenderError: any template is missing or fails. Also raised when two pages
                (a post and a listing, or two posts) share an output path.
        """
        posts = [self.prepare(item) for item in items]
        index = build_indexes(posts)

        pages = [self.render_post(post) for post in index.posts]
        pages.append(self.render_index(index))
        pages.append(self.render_category_list(index))
        pages.extend(self.render_category(group, index) for group in index.categories)
        pages.append(self.render_archive(index))
        pages.extend(self.render_year(group, index) for group in index.years)
        pages.append(self.render_feed(index))
        pages.append(self.render_sitemap(index))
        pages.append(self.render_highlight_css())
        _check_unique_paths(pages, index)

        logger.info(
            "Rendered %d pages (%d posts, %d categories, %d years)",
            len(pages), len(index.posts), len(index.categories), len(index.years),
        )
        return pages, index

    # --- Internal ---

    def _render(self, template_name: str, **context: Any) -> str:
        context.setdefault("site", self.settings)
        context.setdefault("theme", self.theme)
        try:
            template = self.env.get_template(template_name)
            return template.render(**context)
        except TemplateNotFound as e:
            raise RenderError(template_name, f"template not found: {e.name}") from e
        except TemplateSyntaxError as e:
            raise RenderError(e.name or template_name, f"line {e.lineno}: {e.message}") from e
        except TemplateError as e:
            raise RenderError(template_name, str(e)) from e


def _check_unique_paths(pages: list[RenderedPage], index: SiteIndex) -> None:
    """Raise RenderError when two pages would be written to the same file."""
    owners: dict[str, str] = {}
    for post in index.posts:
        if post.path in owners:
            raise RenderError(
                post.path,
                f"posts '{owners[post.path]}' and '{post.item.relative_path.as_posix()}' "
                "map to the same page",
            )
        owners[post.path] = post.item.relative_path.as_posix()
    for page in pages[len(index.posts):]:
        if page.path in owners:
            raise RenderError(
                page.path,
                f"post '{owners[page.path]}' is overwritten by a generated listing page",
            )

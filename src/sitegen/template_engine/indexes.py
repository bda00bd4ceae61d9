"""Grouping of posts into listing pages (home, category, year)."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, TypeVar

from src.common.exceptions import RenderError
from src.sitegen.content_loader.slugs import slugify

from .models import CategoryGroup, PostView, SiteIndex, YearGroup

T = TypeVar("T")


def sort_posts(posts: Iterable[T]) -> list[T]:
    """Sort by date descending, ties broken by slug ascending.

    Works for anything exposing ``date`` and ``slug``.
    """
    by_slug = sorted(posts, key=lambda p: p.slug)
    return sorted(by_slug, key=lambda p: p.date, reverse=True)


def build_indexes(posts: Iterable[PostView]) -> SiteIndex:
    """Group posts by category and by year.

    Raises:
        RenderError: two category names map to the same page slug.
    """
    ordered = sort_posts(posts)

    by_category: dict[str, list[PostView]] = defaultdict(list)
    by_year: dict[int, list[PostView]] = defaultdict(list)
    for post in ordered:
        for name in post.categories:
            by_category[name].append(post)
        by_year[post.date.year].append(post)

    categories = []
    slug_owner: dict[str, str] = {}
    for name in sorted(by_category, key=lambda n: (n.casefold(), n)):
        slug = slugify(name)
        if not slug:
            raise RenderError(f"categories/{name}", "category name has no usable characters")
        if slug in slug_owner:
            raise RenderError(
                f"categories/{slug}/index.html",
                f"categories '{slug_owner[slug]}' and '{name}' map to the same page",
            )
        slug_owner[slug] = name
        categories.append(CategoryGroup(name=name, slug=slug, posts=tuple(by_category[name])))

    years = [
        YearGroup(year=year, posts=tuple(by_year[year]))
        for year in sorted(by_year, reverse=True)
    ]

    return SiteIndex(posts=ordered, categories=categories, years=years)

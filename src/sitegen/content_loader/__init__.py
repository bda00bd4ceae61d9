# Content Loader Module
# Markdown sources with YAML front matter -> ContentItem

from .loader import ContentLoader, load_item, parse_front_matter
from .models import ContentItem, FrontMatter, StaticFile
from .slugs import slugify, split_dated_filename

__all__ = [
    "ContentLoader",
    "load_item",
    "parse_front_matter",
    "ContentItem",
    "FrontMatter",
    "StaticFile",
    "slugify",
    "split_dated_filename",
]

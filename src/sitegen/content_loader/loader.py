"""Content Loader — reads Markdown files with front matter into ContentItems.

Usage:
    loader = ContentLoader(Path("content"), include_drafts=False)
    for item in loader.iter_items():
        ...
    for error in loader.errors:
        ...
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import yaml
from pydantic import ValidationError

from src.common.exceptions import ParseError, SiteIOError
from src.common.logging import setup_logging

from .models import ContentItem, FrontMatter, StaticFile
from .slugs import slugify, split_dated_filename

logger = setup_logging(module_name="sitegen.loader")

MARKDOWN_SUFFIXES = {".md", ".markdown"}
FRONT_MATTER_OPEN = "---"
FRONT_MATTER_CLOSE = {"---", "..."}


def parse_front_matter(text: str, path: Path | str = "<string>") -> tuple[dict[str, Any], str]:
    """Split a leading YAML metadata block from the document body.

    Args:
        text: Full file contents.
        path: Source path, used in error messages.

    Returns:
        Tuple of (metadata mapping, body). Text that does not open with
        ``---`` has no front matter and comes back unchanged.

    Raises:
        ParseError: closing delimiter missing, YAML undecodable, or the
            block is not a mapping.
    """
    text = text.lstrip("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONT_MATTER_OPEN:
        return {}, text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() in FRONT_MATTER_CLOSE:
            end = i
            break
    if end is None:
        raise ParseError(path, "front matter is missing its closing '---' delimiter")

    try:
        meta = yaml.safe_load("".join(lines[1:end]))
    except yaml.YAMLError as e:
        raise ParseError(path, f"invalid YAML in front matter: {e}") from e

    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise ParseError(path, "front matter must be a key/value mapping")

    return {str(k): v for k, v in meta.items()}, "".join(lines[end + 1:])


def load_item(path: Path, content_root: Path) -> ContentItem:
    """Read one Markdown file and build its ContentItem.

    Date and slug fall back to a ``YYYY-MM-DD-title.md`` file name.

    Raises:
        ParseError: malformed or incomplete metadata.
        SiteIOError: the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(path, f"not valid UTF-8: {e}") from e
    except OSError as e:
        raise SiteIOError(path, f"cannot read source: {e.strerror or e}") from e

    meta, body = parse_front_matter(text, path)
    if "category" in meta and "categories" not in meta:
        meta["categories"] = meta.pop("category")

    try:
        front = FrontMatter.model_validate(meta)
    except ValidationError as e:
        raise ParseError(path, _describe_validation_error(e)) from e

    file_date, file_slug = split_dated_filename(path.stem)
    date = front.date or file_date
    if date is None:
        raise ParseError(path, "no 'date' in front matter and no YYYY-MM-DD- file name prefix")

    slug = slugify(front.slug or file_slug)
    if not slug:
        raise ParseError(path, "cannot derive a slug")

    return ContentItem(
        path=path,
        relative_path=path.relative_to(content_root),
        body=body,
        title=front.title,
        date=date,
        slug=slug,
        categories=tuple(dict.fromkeys(front.categories)),
        draft=front.draft,
        math=front.math,
        summary=front.summary,
        extra=dict(front.model_extra or {}),
    )


class ContentLoader:
    """Walks a content root and yields ContentItems lazily.

    Malformed files are skipped and recorded in ``errors`` unless ``strict``
    is set, in which case the first ParseError propagates.
    """

    def __init__(
        self,
        content_root: Path,
        include_drafts: bool = False,
        strict: bool = False,
    ):
        self.content_root = Path(content_root)
        self.include_drafts = include_drafts
        self.strict = strict
        self.errors: list[ParseError] = []

    def iter_items(self) -> Iterator[ContentItem]:
        """Yield one ContentItem per Markdown file, in path order."""
        self.errors = []
        seen: dict[str, Path] = {}

        for path in self._iter_sources():
            if path.suffix.lower() not in MARKDOWN_SUFFIXES:
                continue
            try:
                item = load_item(path, self.content_root)
                if item.draft and not self.include_drafts:
                    logger.debug("Skipping draft %s", item.relative_path)
                    continue
                if item.slug in seen:
                    raise ParseError(
                        path,
                        f"duplicate slug '{item.slug}' (already used by {seen[item.slug]})",
                    )
            except ParseError as e:
                if self.strict:
                    raise
                logger.warning("Skipping %s", e)
                self.errors.append(e)
                continue

            seen[item.slug] = path
            yield item

    def load_all(self) -> list[ContentItem]:
        return list(self.iter_items())

    def iter_static_files(self) -> Iterator[StaticFile]:
        """Yield non-Markdown files under the content root (essay images etc.)."""
        for path in self._iter_sources():
            if path.suffix.lower() in MARKDOWN_SUFFIXES:
                continue
            yield StaticFile(source=path, relative_path=path.relative_to(self.content_root))

    def _iter_sources(self) -> Iterator[Path]:
        if not self.content_root.is_dir():
            raise SiteIOError(self.content_root, "content directory does not exist")
        for path in sorted(self.content_root.rglob("*")):
            if not path.is_file():
                continue
            relative = path.relative_to(self.content_root)
            if any(part.startswith((".", "_")) for part in relative.parts):
                continue
            yield path


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "front matter"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)

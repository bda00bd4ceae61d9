"""Data models for the content loader."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .slugs import slugify


class FrontMatter(BaseModel):
    """Validated metadata block of one Markdown file.

    Unknown keys are preserved in ``model_extra`` and handed to templates.
    """

    model_config = ConfigDict(extra="allow")

    title: str = Field(min_length=1)
    date: Optional[datetime] = None
    slug: Optional[str] = None
    categories: list[str] = Field(default_factory=list)
    draft: bool = False
    math: bool = False
    summary: Optional[str] = None

    @field_validator("title", "slug", "summary", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        # YAML reads `title: 1984` as an int
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip())
            except ValueError:
                return value
        return value

    @field_validator("date")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Mixed aware/naive datetimes cannot be compared when sorting
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @field_validator("categories", mode="before")
    @classmethod
    def _split_categories(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(value, (list, tuple, set)):
            return [str(part).strip() for part in value if str(part).strip()]
        return value


@dataclass(frozen=True)
class ContentItem:
    """One Markdown source file, immutable for the duration of a build."""
    path: Path
    relative_path: Path
    body: str
    title: str
    date: datetime
    slug: str
    categories: tuple[str, ...] = ()
    draft: bool = False
    math: bool = False
    summary: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def year(self) -> int:
        return self.date.year

    def permalink_fields(self) -> dict[str, str]:
        """Values available to the permalink pattern."""
        return {
            "year": f"{self.date.year:04d}",
            "month": f"{self.date.month:02d}",
            "day": f"{self.date.day:02d}",
            "slug": self.slug,
            "category": slugify(self.categories[0]) if self.categories else "uncategorized",
        }


@dataclass(frozen=True)
class StaticFile:
    """A file copied verbatim into the output tree."""
    source: Path
    relative_path: Path

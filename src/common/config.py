"""Site configuration and paths.

Loads settings from <site root>/site.yaml and environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigError

# === Paths ===
PACKAGE_ROOT = Path(__file__).parent.parent
DEFAULT_THEME_DIR = PACKAGE_ROOT / "sitegen" / "template_engine" / "themes" / "default"
CONFIG_FILENAME = "site.yaml"

PERMALINK_FIELDS = {
    "year": "2000",
    "month": "01",
    "day": "01",
    "slug": "slug",
    "category": "category",
}


class ServeSettings(BaseModel):
    """Settings for the preview server."""
    host: str = "127.0.0.1"
    port: int = Field(default=4000, ge=0, le=65535)
    debounce_seconds: float = Field(default=0.5, ge=0)
    livereload: bool = False


class SiteSettings(BaseModel):
    """Top-level site settings.

    Unknown keys are kept and exposed to templates as ``site.<key>``.
    """

    model_config = ConfigDict(extra="allow")

    title: str = "Untitled Blog"
    description: str = ""
    author: str = ""
    base_url: str = ""
    language: str = "en"
    permalink: str = "{year}/{month}/{day}/{slug}/"
    content_dir: Path = Path("content")
    output_dir: Path = Path("_site")
    theme_dir: Optional[Path] = None
    layouts_dir: Path = Path("layouts")
    static_dir: Path = Path("static")
    pygments_style: str = "default"
    strict: bool = False
    minify: bool = False
    feed_limit: int = Field(default=20, ge=1)
    serve: ServeSettings = Field(default_factory=ServeSettings)
    root: Path = Path(".")

    @field_validator("permalink")
    @classmethod
    def _check_permalink(cls, value: str) -> str:
        if "{slug}" not in value:
            raise ValueError("permalink must contain {slug}")
        try:
            value.format(**PERMALINK_FIELDS)
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"unsupported permalink placeholder: {e}") from e
        return value.strip("/") + "/"

    @field_validator("base_url")
    @classmethod
    def _strip_base_url(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def load(cls, root: Path | str = ".", **overrides) -> SiteSettings:
        """Load settings from site.yaml under ``root``, falling back to defaults.

        Environment variables (and a ``.env`` file in the site root) override
        the file; ``overrides`` win over both.
        """
        root = Path(root).resolve()
        load_dotenv(root / ".env")

        data: dict = {}
        settings_path = root / CONFIG_FILENAME
        if settings_path.exists():
            try:
                with open(settings_path, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"{settings_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"{settings_path}: top level must be a mapping")

        serve = dict(data.get("serve") or {})
        if host := os.getenv("SITEGEN_HOST"):
            serve["host"] = host
        if port := os.getenv("SITEGEN_PORT"):
            serve["port"] = port
        if base_url := os.getenv("SITEGEN_BASE_URL"):
            data["base_url"] = base_url
        data["serve"] = serve
        data["root"] = root

        try:
            settings = cls(**data)
        except ValidationError as e:
            raise ConfigError(f"{settings_path}: {e}") from e
        if overrides:
            settings = settings.with_overrides(**overrides)
        return settings

    def with_overrides(self, **overrides) -> SiteSettings:
        """Return a copy with top-level and ``serve_*`` values replaced.

        ``None`` values are ignored so CLI flags can be passed through as-is.
        """
        top = {k: v for k, v in overrides.items() if v is not None and not k.startswith("serve_")}
        serve = {
            k[len("serve_"):]: v
            for k, v in overrides.items()
            if v is not None and k.startswith("serve_")
        }
        data = self.model_dump()
        data.update(top)
        data["serve"].update(serve)
        try:
            return type(self)(**data)
        except ValidationError as e:
            raise ConfigError(str(e)) from e

    def resolve(self, path: Path) -> Path:
        """Resolve a configured path relative to the site root."""
        if path.is_absolute():
            return path
        return self.root / path

    @property
    def content_path(self) -> Path:
        return self.resolve(self.content_dir)

    @property
    def output_path(self) -> Path:
        return self.resolve(self.output_dir)

    @property
    def layouts_path(self) -> Path:
        return self.resolve(self.layouts_dir)

    @property
    def static_path(self) -> Path:
        return self.resolve(self.static_dir)

    @property
    def theme_path(self) -> Path:
        if self.theme_dir is None:
            return DEFAULT_THEME_DIR
        return self.resolve(self.theme_dir)

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

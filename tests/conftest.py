"""Shared test fixtures for sitegen."""

import shutil
import sys
from pathlib import Path
from typing import Callable, Optional

import pytest
import yaml

# Ensure src is importable
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.common.config import SiteSettings


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the test fixtures directory."""
    return PROJECT_ROOT / "fixtures"


@pytest.fixture
def sample_site(tmp_path, fixtures_dir) -> Path:
    """A writable copy of fixtures/sample_site."""
    root = tmp_path / "sample_site"
    shutil.copytree(fixtures_dir / "sample_site", root)
    return root


@pytest.fixture
def site_root(tmp_path) -> Path:
    """An empty site: site.yaml plus an empty content directory."""
    root = tmp_path / "site"
    (root / "content").mkdir(parents=True)
    (root / "site.yaml").write_text(
        yaml.safe_dump({"title": "Test Blog", "author": "Tester"}),
        encoding="utf-8",
    )
    return root


@pytest.fixture
def write_post(site_root) -> Callable[..., Path]:
    """Write a Markdown file into the site's content directory.

    ``front`` may be a dict (dumped as YAML) or a raw string placed between
    the delimiters; ``raw`` bypasses front matter handling entirely.
    """

    def _write(
        name: str,
        front: Optional[object] = None,
        body: str = "Some text.\n",
        raw: Optional[str] = None,
    ) -> Path:
        path = site_root / "content" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if raw is None:
            if isinstance(front, dict):
                front = yaml.safe_dump(front, sort_keys=True)
            raw = f"---\n{front or ''}---\n{body}"
        path.write_text(raw, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def settings(site_root) -> SiteSettings:
    return SiteSettings.load(site_root)


@pytest.fixture
def two_post_site(site_root, write_post) -> Path:
    """a.md published in 2020, b.md a draft from 2021."""
    write_post("a.md", {"title": "A", "date": "2020-01-01", "slug": "a", "draft": False})
    write_post("b.md", {"title": "B", "date": "2021-01-01", "slug": "b", "draft": True})
    return site_root


@pytest.fixture
def theme_factory(tmp_path) -> Callable[..., Path]:
    """Create a minimal theme; ``templates`` overrides files (None removes one)."""
    default_templates = {
        "post.html": "<h1>{{ post.title }}</h1>{{ post.html }}",
        "index.html": "{% for post in posts %}{{ post.slug }}\n{% endfor %}",
        "category.html": "{{ category.name }}:{% for post in posts %} {{ post.slug }}{% endfor %}",
        "categories.html": "{% for group in categories %}{{ group.slug }}\n{% endfor %}",
        "year.html": "{{ year.year }}:{% for post in posts %} {{ post.slug }}{% endfor %}",
        "archive.html": "{% for group in years %}{{ group.year }}\n{% endfor %}",
    }

    def _make(name: str = "mini", version: str = "1.0", templates: Optional[dict] = None) -> Path:
        root = tmp_path / "themes" / name
        (root / "templates").mkdir(parents=True, exist_ok=True)
        (root / "static").mkdir(exist_ok=True)
        (root / "theme.yaml").write_text(f"name: {name}\nversion: '{version}'\n", encoding="utf-8")
        merged = {**default_templates, **(templates or {})}
        for filename, text in merged.items():
            if text is None:
                continue
            target = root / "templates" / filename
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        return root

    return _make

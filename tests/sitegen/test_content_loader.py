"""Tests for the content loader.

Tests cover:
- Front matter splitting and its failure modes
- Metadata validation and Jekyll-style file name fallbacks
- Draft filtering, skip-and-report vs. strict mode
- Duplicate slugs, hidden files, static attachments
"""

import types
from datetime import datetime
from pathlib import Path

import pytest

from src.common.exceptions import ParseError, SiteIOError
from src.sitegen.content_loader import (
    ContentLoader,
    load_item,
    parse_front_matter,
    slugify,
    split_dated_filename,
)


class TestParseFrontMatter:
    def test_splits_metadata_and_body(self):
        meta, body = parse_front_matter("---\ntitle: Hello\ndraft: true\n---\nBody text\n")
        assert meta == {"title": "Hello", "draft": True}
        assert body == "Body text\n"

    def test_no_front_matter_returns_text_unchanged(self):
        meta, body = parse_front_matter("# Just markdown\n")
        assert meta == {}
        assert body == "# Just markdown\n"

    def test_unterminated_block_raises(self):
        with pytest.raises(ParseError, match="closing"):
            parse_front_matter("---\ntitle: Hello\n\nBody without end\n", "a.md")

    def test_invalid_yaml_raises(self):
        with pytest.raises(ParseError, match="invalid YAML"):
            parse_front_matter("---\ntitle: [unclosed\n---\nBody\n", "a.md")

    def test_non_mapping_raises(self):
        with pytest.raises(ParseError, match="mapping"):
            parse_front_matter("---\n- a\n- b\n---\nBody\n", "a.md")

    def test_empty_block_is_empty_mapping(self):
        meta, body = parse_front_matter("---\n---\nBody\n")
        assert meta == {}
        assert body == "Body\n"

    def test_dots_close_the_block(self):
        meta, body = parse_front_matter("---\ntitle: Hello\n...\nBody\n")
        assert meta == {"title": "Hello"}
        assert body == "Body\n"

    def test_byte_order_mark_is_ignored(self):
        meta, _ = parse_front_matter("\ufeff---\ntitle: Hello\n---\nBody\n")
        assert meta["title"] == "Hello"

    def test_error_carries_path(self):
        with pytest.raises(ParseError) as exc_info:
            parse_front_matter("---\ntitle: x\n", Path("content/broken.md"))
        assert exc_info.value.path == Path("content/broken.md")


class TestSlugs:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Property-Based Testing", "property-based-testing"),
            ("  PACE   planning ", "pace-planning"),
            ("Café résumé", "cafe-resume"),
            ("snake_case_title", "snake-case-title"),
        ],
    )
    def test_slugify(self, text, expected):
        assert slugify(text) == expected

    def test_dated_filename(self):
        date, rest = split_dated_filename("2020-03-14-cardinality")
        assert date == datetime(2020, 3, 14)
        assert rest == "cardinality"

    def test_undated_filename(self):
        assert split_dated_filename("cardinality") == (None, "cardinality")

    def test_impossible_date_is_not_a_prefix(self):
        assert split_dated_filename("2020-13-40-oops") == (None, "2020-13-40-oops")


class TestLoadItem:
    def test_full_front_matter(self, site_root, write_post):
        path = write_post(
            "essay.md",
            "title: On Testing\ndate: 2020-01-02\nslug: On Testing!\n"
            "categories: [testing, philosophy, testing]\ndraft: false\nmath: yes\n",
            body="Hello\n",
        )
        item = load_item(path, site_root / "content")
        assert item.title == "On Testing"
        assert item.date == datetime(2020, 1, 2)
        assert item.slug == "on-testing"
        assert item.categories == ("testing", "philosophy")
        assert item.draft is False
        assert item.math is True
        assert item.body == "Hello\n"
        assert item.relative_path == Path("essay.md")

    def test_date_and_slug_from_file_name(self, site_root, write_post):
        path = write_post("2019-07-04-independence.md", "title: Fireworks\n")
        item = load_item(path, site_root / "content")
        assert item.date == datetime(2019, 7, 4)
        assert item.slug == "independence"

    def test_front_matter_wins_over_file_name(self, site_root, write_post):
        path = write_post("2019-07-04-independence.md", "title: T\ndate: 2020-01-01\nslug: other\n")
        item = load_item(path, site_root / "content")
        assert item.date == datetime(2020, 1, 1)
        assert item.slug == "other"

    def test_missing_date_raises(self, site_root, write_post):
        path = write_post("undated.md", "title: No date\n")
        with pytest.raises(ParseError, match="date"):
            load_item(path, site_root / "content")

    def test_bad_date_raises(self, site_root, write_post):
        path = write_post("bad.md", "title: Bad\ndate: not-a-date\n")
        with pytest.raises(ParseError, match="date"):
            load_item(path, site_root / "content")

    def test_missing_title_raises(self, site_root, write_post):
        path = write_post("untitled.md", "date: 2020-01-01\n")
        with pytest.raises(ParseError, match="title"):
            load_item(path, site_root / "content")

    def test_numeric_title_is_text(self, site_root, write_post):
        path = write_post("novel.md", "title: 1984\ndate: 2020-01-01\n")
        assert load_item(path, site_root / "content").title == "1984"

    def test_comma_separated_categories(self, site_root, write_post):
        path = write_post("a.md", "title: A\ndate: 2020-01-01\ncategories: testing, planning\n")
        assert load_item(path, site_root / "content").categories == ("testing", "planning")

    def test_singular_category_key(self, site_root, write_post):
        path = write_post("a.md", "title: A\ndate: 2020-01-01\ncategory: prose\n")
        assert load_item(path, site_root / "content").categories == ("prose",)

    def test_timezone_aware_dates_become_naive_utc(self, site_root, write_post):
        path = write_post("a.md", "title: A\ndate: 2020-01-01T10:00:00+02:00\n")
        assert load_item(path, site_root / "content").date == datetime(2020, 1, 1, 8, 0)

    def test_unknown_keys_kept_as_extra(self, site_root, write_post):
        path = write_post("a.md", "title: A\ndate: 2020-01-01\nlayout: post\ntags: [x]\n")
        item = load_item(path, site_root / "content")
        assert item.extra == {"layout": "post", "tags": ["x"]}

    def test_items_are_immutable(self, site_root, write_post):
        path = write_post("a.md", "title: A\ndate: 2020-01-01\n")
        item = load_item(path, site_root / "content")
        with pytest.raises(AttributeError):
            item.title = "B"

    def test_invalid_utf8_raises_parse_error(self, site_root):
        path = site_root / "content" / "latin1.md"
        path.write_bytes(b"---\ntitle: caf\xe9\n---\n")
        with pytest.raises(ParseError, match="UTF-8"):
            load_item(path, site_root / "content")


class TestContentLoader:
    def test_iter_items_is_lazy(self, site_root, write_post):
        write_post("a.md", "title: A\ndate: 2020-01-01\n")
        items = ContentLoader(site_root / "content").iter_items()
        assert isinstance(items, types.GeneratorType)
        assert [item.slug for item in items] == ["a"]

    def test_drafts_excluded_by_default(self, two_post_site):
        loader = ContentLoader(two_post_site / "content")
        assert [item.slug for item in loader.iter_items()] == ["a"]

    def test_drafts_included_in_preview(self, two_post_site):
        loader = ContentLoader(two_post_site / "content", include_drafts=True)
        assert sorted(item.slug for item in loader.iter_items()) == ["a", "b"]

    def test_recursive_and_sorted(self, site_root, write_post):
        write_post("z.md", "title: Z\ndate: 2020-01-01\n")
        write_post("essays/2020/m.md", "title: M\ndate: 2020-01-01\n")
        write_post("b.markdown", "title: B\ndate: 2020-01-01\n")
        loader = ContentLoader(site_root / "content")
        assert [item.slug for item in loader.iter_items()] == ["b", "m", "z"]

    def test_malformed_file_is_skipped_and_reported(self, site_root, write_post):
        write_post("good.md", "title: Good\ndate: 2020-01-01\n")
        write_post("broken.md", raw="---\ntitle: Broken\ndate: 2020-01-01\nno closing delimiter\n")
        loader = ContentLoader(site_root / "content")
        items = loader.load_all()
        assert [item.slug for item in items] == ["good"]
        assert len(loader.errors) == 1
        assert loader.errors[0].path.name == "broken.md"

    def test_strict_mode_raises(self, site_root, write_post):
        write_post("good.md", "title: Good\ndate: 2020-01-01\n")
        write_post("broken.md", raw="---\ntitle: Broken\n")
        loader = ContentLoader(site_root / "content", strict=True)
        with pytest.raises(ParseError):
            loader.load_all()

    def test_duplicate_slug_is_a_parse_error(self, site_root, write_post):
        write_post("first.md", "title: First\ndate: 2020-01-01\nslug: same\n")
        write_post("second.md", "title: Second\ndate: 2020-01-02\nslug: same\n")
        loader = ContentLoader(site_root / "content")
        items = loader.load_all()
        assert [item.title for item in items] == ["First"]
        assert "duplicate slug" in loader.errors[0].message

    def test_draft_does_not_claim_slug_in_production(self, site_root, write_post):
        write_post("a-draft.md", "title: Draft\ndate: 2020-01-01\nslug: same\ndraft: true\n")
        write_post("b-final.md", "title: Final\ndate: 2020-01-02\nslug: same\n")
        loader = ContentLoader(site_root / "content")
        assert [item.title for item in loader.load_all()] == ["Final"]
        assert loader.errors == []

    def test_hidden_and_underscore_paths_skipped(self, site_root, write_post):
        write_post(".hidden.md", "title: H\ndate: 2020-01-01\n")
        write_post("_drafts/x.md", "title: X\ndate: 2020-01-01\n")
        write_post("visible.md", "title: V\ndate: 2020-01-01\n")
        loader = ContentLoader(site_root / "content")
        assert [item.slug for item in loader.load_all()] == ["visible"]

    def test_static_files(self, site_root, write_post):
        write_post("a.md", "title: A\ndate: 2020-01-01\n")
        image = site_root / "content" / "images" / "plot.png"
        image.parent.mkdir()
        image.write_bytes(b"\x89PNG")
        loader = ContentLoader(site_root / "content")
        static = list(loader.iter_static_files())
        assert [f.relative_path for f in static] == [Path("images/plot.png")]

    def test_missing_content_root(self, tmp_path):
        loader = ContentLoader(tmp_path / "nope")
        with pytest.raises(SiteIOError):
            loader.load_all()

    def test_errors_reset_between_runs(self, site_root, write_post):
        write_post("broken.md", raw="---\ntitle: Broken\n")
        loader = ContentLoader(site_root / "content")
        loader.load_all()
        loader.load_all()
        assert len(loader.errors) == 1

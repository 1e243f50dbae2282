from datetime import datetime, timezone

import pytest

from lifecycle import apply_slug, make_excerpt, render_content, slugify, stamp_publication

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
EARLIER = datetime(2023, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Hello, World!", "hello-world"),
        ("Python   Tips\tand\nTricks", "python-tips-and-tricks"),
        ("C++ & Rust: 2024 edition", "c-rust-2024-edition"),
        ("already-a-slug", "already-a-slug"),
        ("Python - Tips", "python-tips"),
        ("dash--and  -- space", "dash-and-space"),
        ("snake_case stays", "snake_case-stays"),
        ("!!!", ""),
        ("", ""),
    ],
)
def test_slugify_examples(name, expected):
    assert slugify(name) == expected


@pytest.mark.parametrize("name", ["Hello, World!", "  Spaced  Out ", "Ünïcode Títle", "a - b", "MiXeD CaSe"])
def test_slugify_is_idempotent_and_clean(name):
    slug = slugify(name)
    assert slugify(slug) == slug
    assert slug == slug.lower()
    assert not any(ch.isspace() for ch in slug)
    assert all(ch.isalnum() or ch in "-_" for ch in slug)


def test_apply_slug_on_create_and_rename():
    created = apply_slug({"title": "First Post"}, None, "title")
    assert created["slug"] == "first-post"

    current = {"title": "First Post", "slug": "first-post"}
    renamed = apply_slug({"title": "Second Post"}, current, "title")
    assert renamed["slug"] == "second-post"


def test_apply_slug_leaves_slug_when_name_unchanged():
    current = {"name": "Travel", "slug": "travel"}
    assert "slug" not in apply_slug({"name": "Travel"}, current, "name")
    assert "slug" not in apply_slug({"description": "x"}, current, "name")


def test_stamp_publication_on_first_publish():
    changes = stamp_publication({"status": "published"}, {"status": "draft", "published_at": None}, NOW)
    assert changes == {"status": "published", "published_at": NOW, "is_published": True}


def test_stamp_publication_never_resets_published_at():
    current = {"status": "archived", "published_at": EARLIER, "is_published": True}
    changes = stamp_publication({"status": "published"}, current, NOW)
    assert "published_at" not in changes
    assert "is_published" not in changes


@pytest.mark.parametrize("changes", [{"status": "draft"}, {"status": "archived"}, {"title": "Other"}])
def test_stamp_publication_ignores_other_changes(changes):
    assert "published_at" not in stamp_publication(dict(changes), {"status": "draft"}, NOW)


def test_render_content_and_excerpt():
    assert render_content("**bold**") == "<p><strong>bold</strong></p>"
    text = "x" * 300
    assert make_excerpt(text) == "x" * 160
    assert make_excerpt("short") == "short"

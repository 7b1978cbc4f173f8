from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from conftest import write_post
from postpress.content import (
    compare_posts,
    ingest_file,
    load_posts,
    parse_front_matter,
    parse_post_date,
    render_markdown,
    scan_posts,
    slug_from_filename,
    sort_posts,
)
from postpress.errors import ContentError, FrontMatterError
from postpress.models import Post, SkippedPost, SkipReason

UTC = dt.timezone.utc


def make_post(slug: str, when: dt.datetime, title: str = "T") -> Post:
    return Post(published_at=when, slug=slug, title=title, html_body="<p>x</p>")


def test_parse_front_matter_splits_meta_and_body():
    meta, body = parse_front_matter("---\ntitle: Hello\ndate: 2024-01-01 10:00\n---\n# Body\n")
    assert meta == {"title": "Hello", "date": "2024-01-01 10:00"}
    assert body == "# Body\n"


def test_parse_front_matter_without_block_returns_text():
    meta, body = parse_front_matter("# Just a post\n\ntext\n")
    assert meta == {}
    assert body == "# Just a post\n\ntext\n"


def test_parse_front_matter_unclosed_block_is_body():
    text = "---\ntitle: Nope\n\nstill body\n"
    assert parse_front_matter(text) == ({}, text)


def test_parse_front_matter_empty_block():
    assert parse_front_matter("---\n---\nbody\n") == ({}, "body\n")


def test_parse_front_matter_strips_bom():
    meta, body = parse_front_matter("\ufeff---\ntitle: Hi\n---\nbody\n")
    assert meta == {"title": "Hi"}
    assert body == "body\n"


@pytest.mark.parametrize("block", ["title: [unclosed", "- just\n- a list"])
def test_parse_front_matter_rejects_bad_yaml(block):
    with pytest.raises(FrontMatterError):
        parse_front_matter(f"---\n{block}\n---\nbody\n")


def test_parse_post_date_converts_winter_time_to_utc(berlin):
    assert parse_post_date("2024-01-01 10:00", berlin) == dt.datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


def test_parse_post_date_converts_summer_time_to_utc(berlin):
    assert parse_post_date("2024-07-01 12:30", berlin) == dt.datetime(2024, 7, 1, 10, 30, tzinfo=UTC)


@pytest.mark.parametrize(
    "value",
    ["2024-01-01", "2024-01-01T10:00", "01.01.2024 10:00", "2024-13-01 10:00", dt.date(2024, 1, 1), 2024],
)
def test_parse_post_date_rejects_other_formats(value, berlin):
    with pytest.raises(FrontMatterError):
        parse_post_date(value, berlin, Path("post.md"))


def test_front_matter_error_names_the_file(berlin):
    with pytest.raises(FrontMatterError, match="broken.md"):
        parse_post_date("yesterday", berlin, Path("posts/broken.md"))


def test_render_markdown_reports_first_h1():
    html, heading = render_markdown("# Title\n\nText")
    assert html == "<h1>Title</h1>\n<p>Text</p>"
    assert heading == "Title"


def test_render_markdown_finds_setext_heading():
    _, heading = render_markdown("Title\n=====\n\nText\n")
    assert heading == "Title"


def test_render_markdown_skips_lower_headings():
    _, heading = render_markdown("## Intro\n\n# Main\n\n# Second\n")
    assert heading == "Main"


def test_render_markdown_ignores_nested_h1():
    _, heading = render_markdown("> # Quoted\n\nText\n")
    assert heading is None


def test_render_markdown_heading_text_drops_markup():
    _, heading = render_markdown("# Hello *world*\n")
    assert heading == "Hello world"


def test_render_markdown_list_after_paragraph():
    html, _ = render_markdown("Intro\n- a\n- b\n")
    assert "<ul>" in html
    assert "<li>a</li>" in html


def test_slug_from_filename():
    assert slug_from_filename(Path("My First Post.md")) == "My-First-Post"
    assert slug_from_filename(Path("notes.v2.md")) == "notes.v2"


def test_ingest_uses_front_matter_title(tmp_path, berlin):
    path = write_post(tmp_path, "hello world.md", title="Hello", date="2024-01-01 10:00", body="# Other\n")
    post = ingest_file(path, berlin)
    assert isinstance(post, Post)
    assert post.title == "Hello"
    assert post.slug == "hello-world"
    assert post.url_path == "/p/hello-world"
    assert post.published_at == dt.datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


def test_ingest_falls_back_to_first_heading(tmp_path, berlin):
    path = write_post(tmp_path, "a.md", date="2024-01-01 10:00", body="Lead\n\n# From Heading\n\ntext\n")
    post = ingest_file(path, berlin)
    assert post.title == "From Heading"


def test_ingest_strips_front_matter_before_rendering(tmp_path, berlin):
    body = "# Hello\n\nSome *text* and `code`.\n\n- one\n- two\n\n```\nfenced\n```\n"
    path = write_post(tmp_path, "a.md", title="T", date="2024-01-01 10:00", body=body)
    post = ingest_file(path, berlin)
    assert post.html_body == render_markdown(body)[0]
    assert "title:" not in post.html_body
    assert "<hr" not in post.html_body


def test_ingest_skips_missing_date(tmp_path, berlin):
    path = write_post(tmp_path, "a.md", title="T")
    assert ingest_file(path, berlin) == SkippedPost(path, SkipReason.MISSING_DATE)


def test_ingest_skips_missing_title(tmp_path, berlin):
    path = write_post(tmp_path, "a.md", date="2024-01-01 10:00", body="## Only h2\n")
    assert ingest_file(path, berlin) == SkippedPost(path, SkipReason.MISSING_TITLE)


def test_ingest_skips_without_front_matter_or_heading(tmp_path, berlin):
    path = write_post(tmp_path, "a.md", body="plain text\n")
    result = ingest_file(path, berlin)
    assert isinstance(result, SkippedPost)
    assert result.reason is SkipReason.MISSING_DATE


def test_ingest_skips_non_markdown(tmp_path, berlin):
    path = write_post(tmp_path, "notes.txt", title="T", date="2024-01-01 10:00")
    assert ingest_file(path, berlin).reason is SkipReason.NOT_MARKDOWN


def test_ingest_malformed_date_is_fatal(tmp_path, berlin):
    path = write_post(tmp_path, "a.md", title="T", date="2024/01/01")
    with pytest.raises(FrontMatterError):
        ingest_file(path, berlin)


def test_scan_posts_ignores_directories(tmp_path, berlin):
    (tmp_path / "drafts").mkdir()
    write_post(tmp_path / "drafts", "nested.md", title="N", date="2024-01-01 10:00")
    write_post(tmp_path, "top.md", title="Top", date="2024-01-01 10:00")
    results = scan_posts(tmp_path, berlin)
    assert [r.slug for r in results] == ["top"]


def test_scan_posts_missing_directory(tmp_path, berlin):
    with pytest.raises(ContentError):
        scan_posts(tmp_path / "missing", berlin)


def test_load_posts_sorts_and_reports_skips(tmp_path, berlin, capsys):
    write_post(tmp_path, "old.md", title="Old", date="2024-01-01 12:00")
    write_post(tmp_path, "new.md", title="New", date="2024-02-01 12:00")
    write_post(tmp_path, "undated.md", title="Undated")
    posts = load_posts(tmp_path, berlin)
    assert [p.slug for p in posts] == ["new", "old"]
    assert "Skipping undated.md" in capsys.readouterr().err


def test_compare_posts_is_three_way():
    when = dt.datetime(2024, 1, 1, tzinfo=UTC)
    a = make_post("a", when)
    b = make_post("b", when)
    newer = make_post("z", when + dt.timedelta(hours=1))
    assert compare_posts(a, a) == 0
    assert compare_posts(a, b) == -1
    assert compare_posts(b, a) == 1
    assert compare_posts(newer, a) == -1
    assert compare_posts(a, newer) == 1


def test_sort_posts_newest_first_with_slug_tiebreak():
    when = dt.datetime(2024, 1, 1, tzinfo=UTC)
    posts = [
        make_post("c", when),
        make_post("old", when - dt.timedelta(days=1)),
        make_post("a", when),
        make_post("new", when + dt.timedelta(days=1)),
        make_post("b", when),
    ]
    assert [p.slug for p in sort_posts(posts)] == ["new", "a", "b", "c", "old"]
    assert [p.slug for p in sort_posts(list(reversed(posts)))] == ["new", "a", "b", "c", "old"]


@pytest.mark.parametrize(
    "source, expected",
    [
        ("# Tom &amp; Jerry\n", "Tom & Jerry"),
        ("# Caf&eacute; &#38; Bar\n", "Café & Bar"),
        ("# A <b>bold</b> move\n", "A bold move"),
    ],
)
def test_render_markdown_heading_text_decodes_entities(source, expected):
    _, heading = render_markdown(source)
    assert heading == expected


def test_parse_post_date_rejects_time_skipped_by_dst(berlin):
    with pytest.raises(FrontMatterError, match="does not exist"):
        parse_post_date("2024-03-31 02:30", berlin)


def test_parse_post_date_rejects_repeated_dst_hour(berlin):
    with pytest.raises(FrontMatterError, match="ambiguous"):
        parse_post_date("2024-10-27 02:30", berlin)


def test_parse_post_date_accepts_times_around_dst_change(berlin):
    assert parse_post_date("2024-03-31 03:00", berlin) == dt.datetime(2024, 3, 31, 1, 0, tzinfo=UTC)
    assert parse_post_date("2024-10-27 03:00", berlin) == dt.datetime(2024, 10, 27, 2, 0, tzinfo=UTC)

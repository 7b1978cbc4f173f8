from __future__ import annotations

from pathlib import Path

from .content import render_markdown
from .errors import BuildError
from .models import Post
from .render import render_template, write_text

DATE_FMT = "%Y-%m-%d"
POSTS_SUBDIR = "p"


def build_posts(template: str, output_dir: Path, posts: list[Post]) -> list[Path]:
    posts_dir = output_dir / POSTS_SUBDIR
    try:
        posts_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise BuildError(f"Could not create {posts_dir}: {exc}") from exc
    written = []
    for post in posts:
        path = posts_dir / f"{post.slug}.html"
        write_text(path, render_template(template, title=post.title, body=post.html_body))
        written.append(path)
    return written


def build_archive_list(posts: list[Post]) -> str:
    rows = []
    for post in posts:
        rows.append(
            "<li>"
            f'<a href="{post.url_path}">'
            f'<span class="date">{post.published_at.strftime(DATE_FMT)}</span> {post.title}'
            "</a>"
            "</li>"
        )
    return f'<h1>Archive</h1><ul class="archive">{"".join(rows)}</ul>'


def build_archive(template: str, output_dir: Path, posts: list[Post]) -> Path:
    path = output_dir / "archive.html"
    write_text(path, render_template(template, title="Archive", body=build_archive_list(posts)))
    return path


def resolve_page_html(source: Path) -> str:
    """Return the page body for ``source``: markdown is rendered, HTML is used as-is."""
    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise BuildError(f"Could not read page source {source}: {exc}") from exc
    if source.suffix.lower() in {".md", ".markdown"}:
        html_content, _ = render_markdown(text)
        return html_content
    return text


def build_page(template: str, output_dir: Path, source: Path, title: str, filename: str) -> Path:
    path = output_dir / filename
    write_text(path, render_template(template, title=title, body=resolve_page_html(source)))
    return path

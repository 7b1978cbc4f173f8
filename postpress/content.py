from __future__ import annotations

import datetime as dt
import functools
import html as html_lib
import os
import re
import sys
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo

import markdown
import yaml
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markdown.util import HTML_PLACEHOLDER_RE

from .errors import ContentError, FrontMatterError
from .models import IngestResult, Post, SkippedPost, SkipReason
from .render import strip_tags

LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(`{3,}|~{3,})")
POST_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}$")
POST_DATE_FMT = "%Y-%m-%d %H:%M"
DEFAULT_TIMEZONE = "Europe/Berlin"
MARKDOWN_SUFFIXES = {".md"}


def parse_front_matter(text: str, source: Optional[Path] = None) -> tuple[dict, str]:
    """Split a document into its YAML front matter and the remaining body.

    Documents without a closed ``---`` block are returned unchanged with empty
    metadata.
    """
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines(keepends=True)
    if not lines or lines[0].strip() != "---":
        return {}, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end = i
            break
    if end is None:
        return {}, clean_text

    block = "".join(lines[1:end])
    try:
        meta = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"invalid YAML in front matter: {exc}", source) from exc
    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise FrontMatterError("front matter must be a mapping", source)
    body = "".join(lines[end + 1 :])
    return meta, body


def parse_post_date(value: Any, tz: ZoneInfo, source: Optional[Path] = None) -> dt.datetime:
    if not isinstance(value, str) or not POST_DATE_RE.match(value.strip()):
        raise FrontMatterError(f"date {value!r} does not match 'YYYY-MM-DD HH:MM'", source)
    try:
        local = dt.datetime.strptime(value.strip(), POST_DATE_FMT)
    except ValueError as exc:
        raise FrontMatterError(f"invalid date {value!r}: {exc}", source) from exc
    earlier = local.replace(tzinfo=tz, fold=0)
    later = local.replace(tzinfo=tz, fold=1)
    if earlier.utcoffset() != later.utcoffset():
        converted = earlier.astimezone(dt.timezone.utc)
        if converted.astimezone(tz).replace(tzinfo=None) != local:
            raise FrontMatterError(f"date {value!r} does not exist in {tz.key}", source)
        raise FrontMatterError(f"date {value!r} is ambiguous in {tz.key}", source)
    return earlier.astimezone(dt.timezone.utc)


def front_matter_title(meta: dict, source: Optional[Path] = None) -> Optional[str]:
    value = meta.get("title")
    if value is None:
        return None
    if not isinstance(value, str):
        raise FrontMatterError(f"title must be a string, got {value!r}", source)
    value = value.strip()
    return value or None


def normalize_list_spacing(text: str) -> str:
    # Python-Markdown needs a blank line before a list that follows a paragraph.
    lines = text.splitlines()
    out: list[str] = []
    in_fence = False
    fence_marker = ""
    for line in lines:
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(2)
            if not in_fence:
                in_fence = True
                fence_marker = marker
            elif marker == fence_marker:
                in_fence = False
                fence_marker = ""
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        list_match = LIST_MARKER_RE.match(line)
        if list_match and not list_match.group("indent"):
            if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                out.append("")
        out.append(line)
    return "\n".join(out)


class FirstHeadingProcessor(Treeprocessor):
    """Record the text of the first top-level <h1> in the document."""

    def run(self, root):
        self.md.first_heading = None
        for child in root:
            if child.tag == "h1":
                raw = HTML_PLACEHOLDER_RE.sub(self._restore, "".join(child.itertext()))
                text = strip_tags(raw).strip()
                self.md.first_heading = html_lib.unescape(text) or None
                break

    def _restore(self, match):
        index = int(match.group(1))
        blocks = self.md.htmlStash.rawHtmlBlocks
        return str(blocks[index]) if index < len(blocks) else ""


class FirstHeadingExtension(Extension):
    def extendMarkdown(self, md):
        md.first_heading = None
        # After inline parsing (20) and unescaping (0).
        md.treeprocessors.register(FirstHeadingProcessor(md), "first_heading", -10)


def create_markdown() -> markdown.Markdown:
    return markdown.Markdown(extensions=["fenced_code", "tables", FirstHeadingExtension()])


def render_markdown(text: str) -> tuple[str, Optional[str]]:
    md = create_markdown()
    html_content = md.convert(normalize_list_spacing(text))
    heading = md.first_heading
    md.reset()
    return html_content, heading


def slug_from_filename(path: Path) -> str:
    return path.stem.replace(" ", "-")


def read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ContentError(f"Could not read {path}: {exc}") from exc


def ingest_file(path: Path, tz: ZoneInfo) -> IngestResult:
    if path.suffix.lower() not in MARKDOWN_SUFFIXES:
        return SkippedPost(path, SkipReason.NOT_MARKDOWN)

    meta, body = parse_front_matter(read_source(path), path)
    date_value = meta.get("date")
    published_at = parse_post_date(date_value, tz, path) if date_value is not None else None
    title = front_matter_title(meta, path)

    html_content, heading = render_markdown(body)
    if title is None:
        title = heading

    if published_at is None:
        return SkippedPost(path, SkipReason.MISSING_DATE)
    if title is None:
        return SkippedPost(path, SkipReason.MISSING_TITLE)

    return Post(
        published_at=published_at,
        slug=slug_from_filename(path),
        title=title,
        html_body=html_content,
        source=path,
    )


def list_source_files(posts_dir: Path) -> list[Path]:
    if not posts_dir.is_dir():
        raise ContentError(f"Posts directory not found: {posts_dir}")
    files = []
    with os.scandir(posts_dir) as entries:
        for entry in entries:
            try:
                if entry.is_dir():
                    continue
            except OSError:
                continue
            files.append(Path(entry.path))
    return sorted(files, key=lambda p: p.name)


def scan_posts(posts_dir: Path, tz: ZoneInfo) -> list[IngestResult]:
    return [ingest_file(path, tz) for path in list_source_files(posts_dir)]


def compare_posts(a: Post, b: Post) -> int:
    if a.published_at != b.published_at:
        return -1 if a.published_at > b.published_at else 1
    if a.slug != b.slug:
        return -1 if a.slug < b.slug else 1
    a_source = a.source.as_posix() if a.source else ""
    b_source = b.source.as_posix() if b.source else ""
    if a_source != b_source:
        return -1 if a_source < b_source else 1
    return 0


def sort_posts(posts: list[Post]) -> list[Post]:
    return sorted(posts, key=functools.cmp_to_key(compare_posts))


def load_posts(posts_dir: Path, tz: ZoneInfo) -> list[Post]:
    posts: list[Post] = []
    seen: dict[str, Path] = {}
    for result in scan_posts(posts_dir, tz):
        if isinstance(result, SkippedPost):
            print(f"Skipping {result.source.name}: {result.reason.value}", file=sys.stderr)
            continue
        if result.slug in seen:
            print(
                f"Duplicate slug '{result.slug}' ({seen[result.slug].name}, {result.source.name})",
                file=sys.stderr,
            )
        seen[result.slug] = result.source
        posts.append(result)
    return sort_posts(posts)

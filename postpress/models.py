from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class Post:
    published_at: dt.datetime
    slug: str
    title: str
    html_body: str
    source: Optional[Path] = field(default=None, compare=False)

    @property
    def url_path(self) -> str:
        return f"/p/{self.slug}"


class SkipReason(enum.Enum):
    MISSING_DATE = "no date in front matter"
    MISSING_TITLE = "no title in front matter and no level-1 heading"
    NOT_MARKDOWN = "not a .md file"


@dataclass(frozen=True)
class SkippedPost:
    source: Path
    reason: SkipReason


IngestResult = Union[Post, SkippedPost]


@dataclass(frozen=True)
class CVEntry:
    company: str
    start_date: str
    end_date: str
    position: str
    technologies: tuple[str, ...]
    highlights: tuple[str, ...]
    summary: Optional[str] = None

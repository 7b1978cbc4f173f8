from __future__ import annotations

import argparse
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from postpress.config import DEFAULTS

TEMPLATE = (
    "<html><head><title>{{title}}</title></head>"
    "<body><main><h1>{{title}}</h1>{{body}}</main></body></html>"
)

CV_YAML = """\
- company: ACME
  startDate: 2021-03
  endDate: today
  position: Staff Engineer
  summary: Not shown anywhere
  technologies: [Rust, Python]
  highlights:
    - Shipped the build pipeline
    - Cut deploy time in half
- company: Initech
  startDate: 2018-01
  endDate: 2021-02
  position: Developer
  technologies:
    - TypeScript
  highlights:
    - Wrote the TPS report service
"""


@pytest.fixture
def berlin() -> ZoneInfo:
    return ZoneInfo("Europe/Berlin")


@pytest.fixture
def make_args():
    def factory(**overrides) -> argparse.Namespace:
        values = dict(DEFAULTS)
        values.update(overrides)
        return argparse.Namespace(**values)

    return factory


def write_post(directory: Path, name: str, *, title=None, date=None, body="Some text.\n") -> Path:
    lines = []
    if title is not None or date is not None:
        lines.append("---")
        if title is not None:
            lines.append(f"title: {title}")
        if date is not None:
            lines.append(f"date: {date}")
        lines.append("---")
    path = directory / name
    path.write_text("\n".join(lines) + ("\n" if lines else "") + body, encoding="utf-8")
    return path


@pytest.fixture
def site(tmp_path: Path) -> Path:
    (tmp_path / "posts").mkdir()
    (tmp_path / "dist").mkdir()
    (tmp_path / "dist" / "style.css").write_text("body {}", encoding="utf-8")
    (tmp_path / "template.html").write_text(TEMPLATE, encoding="utf-8")
    (tmp_path / "index.html").write_text("<p>Welcome home</p>", encoding="utf-8")
    (tmp_path / "projects.md").write_text("# Projects\n\n- postpress\n", encoding="utf-8")
    (tmp_path / "contact.md").write_text("Mail me at *hello@example.com*.\n", encoding="utf-8")
    (tmp_path / "cv_input.yaml").write_text(CV_YAML, encoding="utf-8")
    return tmp_path

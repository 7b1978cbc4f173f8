"""CV page built from a YAML list of positions.

Each entry looks like::

    - company: ACME
      startDate: 2020
      endDate: today
      position: Developer
      summary: not rendered
      technologies: [Rust, Python]
      highlights:
        - Shipped things
"""

from __future__ import annotations

from pathlib import Path

import yaml

from .errors import BuildError, CVValidationError
from .models import CVEntry
from .render import add_main_class, add_noindex, render_template, write_text

SCALAR_FIELDS = (
    ("company", "company"),
    ("startDate", "start_date"),
    ("endDate", "end_date"),
    ("position", "position"),
)
LIST_FIELDS = (
    ("technologies", "technologies"),
    ("highlights", "highlights"),
)


class CVLoader(yaml.SafeLoader):
    """SafeLoader that keeps dates such as 2019-03-01 as plain strings."""


CVLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _scalar(value: object) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _entry_label(index: int, raw: object) -> str:
    if isinstance(raw, dict) and _scalar(raw.get("company")):
        return f"entry {index} ({raw['company']})"
    return f"entry {index}"


def validate_entry(index: int, raw: object) -> list[str]:
    label = _entry_label(index, raw)
    if not isinstance(raw, dict):
        return [f"{label}: expected a mapping, got {type(raw).__name__}"]
    problems = []
    for key, _ in SCALAR_FIELDS:
        if key not in raw or raw[key] is None:
            problems.append(f"{label}: missing required field '{key}'")
        elif not _scalar(raw[key]):
            problems.append(f"{label}: field '{key}' must be a string")
    for key, _ in LIST_FIELDS:
        if key not in raw or raw[key] is None:
            problems.append(f"{label}: missing required field '{key}'")
        elif not isinstance(raw[key], list):
            problems.append(f"{label}: field '{key}' must be a list of strings")
        else:
            for position, item in enumerate(raw[key]):
                if not _scalar(item):
                    problems.append(f"{label}: {key}[{position}] must be a string")
    return problems


def parse_cv(text: str) -> list[CVEntry]:
    try:
        data = yaml.load(text, Loader=CVLoader)
    except yaml.YAMLError as exc:
        raise BuildError(f"Invalid YAML in CV document: {exc}") from exc
    if not isinstance(data, list):
        raise CVValidationError(["document: top level must be a list of entries"])

    problems = []
    for index, raw in enumerate(data):
        problems.extend(validate_entry(index, raw))
    if problems:
        raise CVValidationError(problems)

    entries = []
    for raw in data:
        values = {attr: str(raw[key]) for key, attr in SCALAR_FIELDS}
        values.update({attr: tuple(str(item) for item in raw[key]) for key, attr in LIST_FIELDS})
        summary = raw.get("summary")
        entries.append(CVEntry(summary=None if summary is None else str(summary), **values))
    return entries


def render_cv_header(args: object) -> str:
    return (
        '<div class="printOnly page-break-after">'
        f'<img src="{args.cv_photo}" alt="{args.site_name}" />'
        f"<h1>{args.site_name}</h1>"
        f"<pre>from {args.site_url}</pre>"
        "</div>"
    )


def render_entry(entry: CVEntry) -> str:
    technologies = "".join(f"<li>{item}</li>\n" for item in entry.technologies)
    highlights = "".join(f"<li>{item}</li>\n" for item in entry.highlights)
    return (
        "<section>"
        f"<h2>{entry.company}</h2>\n"
        f'<span class="date">{entry.start_date} – {entry.end_date}</span>'
        f'<ul class="technologies">{technologies}</ul>\n'
        f'<i class="role">{entry.position}</i>'
        f'<ul class="highlights">{highlights}</ul>\n'
        "</section>"
    )


def render_cv_body(entries: list[CVEntry], args: object) -> str:
    return render_cv_header(args) + "".join(render_entry(entry) for entry in entries)


def build_cv(template: str, output_dir: Path, cv_path: Path, args: object) -> Path:
    try:
        text = cv_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise BuildError(f"Could not read CV document {cv_path}: {exc}") from exc
    entries = parse_cv(text)
    html_doc = render_template(template, title="CV", body=render_cv_body(entries, args))
    html_doc = add_main_class(add_noindex(html_doc), "cv")
    path = output_dir / "cv.html"
    write_text(path, html_doc)
    return path

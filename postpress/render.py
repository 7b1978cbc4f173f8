from __future__ import annotations

import re
import shutil
from pathlib import Path

from .errors import BuildError, StaticCopyError, TemplateError

NOINDEX_META = '<meta name="robots" content="noindex">\n'
TAG_RE = re.compile(r"<[^>]+>")


def render_template(template: str, **context: str) -> str:
    """Replace every ``{{key}}`` marker with its value, verbatim.

    Values are inserted unescaped; ``body`` is substituted last so markers that
    appear inside post markup are not expanded.
    """
    output = template
    late_keys = {"body"}
    for key, value in context.items():
        if key in late_keys:
            continue
        output = output.replace(f"{{{{{key}}}}}", value)
    for key in late_keys:
        if key in context:
            output = output.replace(f"{{{{{key}}}}}", context[key])
    return output


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def add_noindex(html_doc: str) -> str:
    return html_doc.replace("</head>", f"{NOINDEX_META}</head>")


def add_main_class(html_doc: str, css_class: str) -> str:
    return html_doc.replace("<main>", f'<main class="{css_class}">')


def read_template(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TemplateError(f"Could not read template {path}: {exc}") from exc


def write_text(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise BuildError(f"Could not write {path}: {exc}") from exc


def copy_static(static_dir: Path, output_dir: Path) -> list[Path]:
    """Copy the flat files of ``static_dir`` into ``output_dir``.

    Nested directories are not supported and abort the copy.
    """
    if not static_dir.exists():
        return []
    if not static_dir.is_dir():
        raise StaticCopyError(f"Static path {static_dir} is not a directory")
    try:
        items = sorted(static_dir.iterdir())
    except OSError as exc:
        raise StaticCopyError(f"Could not list static directory {static_dir}: {exc}") from exc
    nested = [item.name for item in items if item.is_dir()]
    if nested:
        raise StaticCopyError(
            f"Static directory {static_dir} contains subdirectories, which are not supported: "
            + ", ".join(nested)
        )
    copied = []
    for item in items:
        dest = output_dir / item.name
        try:
            shutil.copy2(item, dest)
        except OSError as exc:
            raise StaticCopyError(f"Could not copy {item} to {dest}: {exc}") from exc
        copied.append(dest)
    return copied

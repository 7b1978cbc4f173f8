from __future__ import annotations

import datetime as dt
import shutil
from email.utils import format_datetime
from pathlib import Path

from .errors import BuildError


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def rfc822_date(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return format_datetime(value.astimezone(dt.timezone.utc))


def clean_output_dir(output_dir: Path, project_root: Path) -> None:
    """Empty ``output_dir`` while keeping the directory itself."""
    if not output_dir.exists():
        output_dir.mkdir(parents=True)
        return
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        raise BuildError("Refusing to clean project root.")
    if not output_resolved.is_relative_to(root_resolved):
        raise BuildError("Refusing to clean output directory outside project root.")
    for item in output_dir.iterdir():
        if item.is_dir() and not item.is_symlink():
            shutil.rmtree(item)
        else:
            item.unlink()

from __future__ import annotations

import json
import sys
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

try:
    import tomllib as toml
except ImportError:
    import tomli as toml

DEFAULTS = {
    "posts": "posts",
    "static": "dist",
    "output": "public",
    "template": "template.html",
    "home": "index.html",
    "projects": "projects.md",
    "contact": "contact.md",
    "cv": "cv_input.yaml",
    "site_name": "Timm Preetz",
    "site_url": "https://timm.preetz.xyz",
    "site_description": "Posts by Timm Preetz",
    "feed_description": "plain text desc",
    "cv_photo": "/timm.jpg",
    "timezone": "Europe/Berlin",
    "clean": True,
}


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            print(f"Invalid TOML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        return data
    if suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            print(f"Invalid YAML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            print(f"YAML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"Invalid JSON in config file {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"JSON config must be an object: {path}", file=sys.stderr)
        sys.exit(1)
    return data


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        print(f"Unknown timezone: {name}", file=sys.stderr)
        sys.exit(1)

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from .config import DEFAULTS, load_config, resolve_timezone
from .content import load_posts
from .cv import build_cv
from .errors import BuildError
from .feed import build_feed
from .pages import build_archive, build_page, build_posts
from .render import copy_static, read_template
from .utils import clean_output_dir, parse_bool

AUX_PAGES = (
    ("home", "Home", "index.html"),
    ("projects", "Projects", "projects.html"),
    ("contact", "Contact", "contact.html"),
)


def build_site(args: argparse.Namespace) -> int:
    """Run the whole pipeline once and return the number of posts written."""
    project_root = Path.cwd()
    posts_dir = Path(args.posts)
    static_dir = Path(args.static)
    output_dir = Path(args.output)
    tz = resolve_timezone(args.timezone)

    template = read_template(Path(args.template))

    if parse_bool(args.clean):
        clean_output_dir(output_dir, project_root)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)
    copy_static(static_dir, output_dir)

    posts = load_posts(posts_dir, tz)

    build_posts(template, output_dir, posts)
    build_feed(output_dir, posts, args)
    build_archive(template, output_dir, posts)
    for key, title, filename in AUX_PAGES:
        build_page(template, output_dir, Path(getattr(args, key)), title, filename)
    build_cv(template, output_dir, Path(args.cv), args)
    return len(posts)


def build_parser(config: dict, config_path: str) -> argparse.ArgumentParser:
    def cfg_str(key: str) -> str:
        value = config.get(key)
        return str(DEFAULTS[key]) if value is None else str(value)

    def cfg_bool(key: str) -> bool:
        value = config.get(key)
        return DEFAULTS[key] if value is None else parse_bool(value)

    parser = argparse.ArgumentParser(description="Build the static site from markdown posts.")
    parser.add_argument("--config", default=config_path, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--posts", default=cfg_str("posts"), help="Directory containing Markdown posts.")
    parser.add_argument("--static", default=cfg_str("static"), help="Directory of flat files copied as-is.")
    parser.add_argument("--output", default=cfg_str("output"), help="Output directory for the site.")
    parser.add_argument("--template", default=cfg_str("template"), help="Page template with {{title}} and {{body}}.")
    parser.add_argument("--home", default=cfg_str("home"), help="Source of the home page (HTML or Markdown).")
    parser.add_argument("--projects", default=cfg_str("projects"), help="Source of the projects page.")
    parser.add_argument("--contact", default=cfg_str("contact"), help="Source of the contact page.")
    parser.add_argument("--cv", default=cfg_str("cv"), help="YAML document with CV entries.")
    parser.add_argument("--site-name", default=cfg_str("site_name"), help="Site title used in feed and CV.")
    parser.add_argument("--site-url", default=cfg_str("site_url"), help="Public site URL used for feed links.")
    parser.add_argument(
        "--site-description",
        default=cfg_str("site_description"),
        help="Feed channel description.",
    )
    parser.add_argument(
        "--feed-description",
        default=cfg_str("feed_description"),
        help="Description text used for every feed item.",
    )
    parser.add_argument("--cv-photo", default=cfg_str("cv_photo"), help="Image shown on the printed CV.")
    parser.add_argument(
        "--timezone",
        default=cfg_str("timezone"),
        help="Timezone used to read front matter dates.",
    )
    parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("clean"),
        help="Empty the output directory before building.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default="site.toml")
    pre_args, _ = pre_parser.parse_known_args(argv)
    config = load_config(Path(pre_args.config))

    args = build_parser(config, pre_args.config).parse_args(argv)
    start = time.perf_counter()
    try:
        count = build_site(args)
    except BuildError as exc:
        print(f"Build failed: {exc}", file=sys.stderr)
        sys.exit(1)
    elapsed = time.perf_counter() - start
    print(f"Built {count} posts.")
    print(f"Build completed in {elapsed:.2f}s.")
    print(f"Site generated in: {args.output}")

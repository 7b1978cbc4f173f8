from __future__ import annotations

import datetime as dt
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from .errors import FeedValidationError
from .models import Post
from .render import write_text
from .utils import join_url, rfc822_date

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"


@dataclass
class FeedItem:
    title: Optional[str] = None
    guid: Optional[str] = None
    guid_is_permalink: bool = True
    description: Optional[str] = None
    content: Optional[str] = None
    pub_date: Optional[str] = None


@dataclass
class FeedChannel:
    title: str = ""
    link: str = ""
    description: str = ""
    last_build_date: Optional[str] = None
    items: list[FeedItem] = field(default_factory=list)


def build_channel(posts: list[Post], args: object, now: Optional[dt.datetime] = None) -> FeedChannel:
    """Assemble the RSS channel for ``posts`` (newest first).

    ``lastBuildDate`` is the newest post's date; an empty feed uses ``now``.
    """
    site_url = args.site_url.rstrip("/")
    if posts:
        last_build = rfc822_date(posts[0].published_at)
    else:
        last_build = rfc822_date(now or dt.datetime.now(dt.timezone.utc))
    channel = FeedChannel(
        title=args.site_name,
        link=site_url,
        description=args.site_description,
        last_build_date=last_build,
    )
    for post in posts:
        channel.items.append(
            FeedItem(
                title=post.title,
                guid=join_url(site_url, post.url_path),
                guid_is_permalink=True,
                description=args.feed_description,
                content=post.html_body,
                pub_date=rfc822_date(post.published_at),
            )
        )
    return channel


def _is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _is_rfc822(value: str) -> bool:
    try:
        return parsedate_to_datetime(value) is not None
    except (TypeError, ValueError):
        return False


def validate_channel(channel: FeedChannel) -> list[str]:
    problems = []
    if not channel.title:
        problems.append("channel: missing title")
    if not channel.link:
        problems.append("channel: missing link")
    elif not _is_absolute_url(channel.link):
        problems.append(f"channel: link is not an absolute URL: {channel.link!r}")
    if not channel.description:
        problems.append("channel: missing description")
    if channel.last_build_date is not None and not _is_rfc822(channel.last_build_date):
        problems.append(f"channel: lastBuildDate is not an RFC 822 date: {channel.last_build_date!r}")

    for index, item in enumerate(channel.items):
        label = f"item {index}" + (f" ({item.title})" if item.title else "")
        if not item.title and not item.description:
            problems.append(f"{label}: needs a title or a description")
        if item.guid is not None:
            if not item.guid:
                problems.append(f"{label}: empty guid")
            elif item.guid_is_permalink and not _is_absolute_url(item.guid):
                problems.append(f"{label}: permalink guid is not an absolute URL: {item.guid!r}")
        if item.pub_date is not None and not _is_rfc822(item.pub_date):
            problems.append(f"{label}: pubDate is not an RFC 822 date: {item.pub_date!r}")
    return problems


def serialize_channel(channel: FeedChannel) -> str:
    ET.register_namespace("content", CONTENT_NS)
    rss = ET.Element("rss", version="2.0")
    node = ET.SubElement(rss, "channel")
    ET.SubElement(node, "title").text = channel.title
    ET.SubElement(node, "link").text = channel.link
    ET.SubElement(node, "description").text = channel.description
    if channel.last_build_date:
        ET.SubElement(node, "lastBuildDate").text = channel.last_build_date

    for item in channel.items:
        entry = ET.SubElement(node, "item")
        if item.title:
            ET.SubElement(entry, "title").text = item.title
        if item.guid:
            ET.SubElement(
                entry, "guid", isPermaLink="true" if item.guid_is_permalink else "false"
            ).text = item.guid
        if item.description:
            ET.SubElement(entry, "description").text = item.description
        if item.content:
            ET.SubElement(entry, f"{{{CONTENT_NS}}}encoded").text = item.content
        if item.pub_date:
            ET.SubElement(entry, "pubDate").text = item.pub_date

    ET.indent(rss, space="  ")
    xml_str = ET.tostring(rss, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{xml_str}\n'


def build_feed(output_dir: Path, posts: list[Post], args: object) -> Path:
    channel = build_channel(posts, args)
    problems = validate_channel(channel)
    if problems:
        raise FeedValidationError(problems)
    path = output_dir / "rss.xml"
    write_text(path, serialize_channel(channel))
    return path

"""RSS 2.0 rendering of Gelbooru posts."""

import html
import re
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from datetime import datetime, timezone
from email.utils import format_datetime

from booru_rss.models.feed import FeedConfig
from booru_rss.models.post import PostRecord

ATOM_NS = "http://www.w3.org/2005/Atom"
GENERATOR = "Gelbooru RSS Generator v2.0"
WEBMASTER = "admin@example.com (RSS Generator)"
GUID_NAMESPACE = "gelbooru"
POST_VIEW_URL = "https://gelbooru.com/index.php?page=post&s=view&id={post_id}"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

_WHITESPACE_RE = re.compile(r"\s+")
# Anything outside the XML 1.0 Char production
_XML_ILLEGAL_RE = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def xml_safe(text: str) -> str:
    """Drop characters that cannot appear in an XML 1.0 document."""
    return _XML_ILLEGAL_RE.sub("", text)


def normalize_tags(tags: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", tags).strip()


def to_rfc822(value: datetime) -> str:
    """Format an aware datetime as an RFC 822 date in GMT."""
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def post_guid(feed_id: str, post_id: int) -> str:
    return f"{GUID_NAMESPACE}:{feed_id}:{post_id}"


def _text_element(parent: ET.Element, tag: str, text: str, **attrib: str) -> ET.Element:
    element = ET.SubElement(parent, tag, attrib={k: xml_safe(v) for k, v in attrib.items()})
    element.text = xml_safe(text)
    return element


def _build_item(channel: ET.Element, post: PostRecord, config: FeedConfig, feed_id: str) -> None:
    # Upstream values are embedded as HTML inside the description
    image_url = html.escape(xml_safe(post.file_url), quote=True)
    tags = html.escape(normalize_tags(xml_safe(post.tags)), quote=False)
    description = f'<img src="{image_url}" referrerpolicy="no-referrer"><br/>Tags: {tags}'

    item = ET.SubElement(channel, "item")
    _text_element(item, "title", post.title or f"Post {post.id}")
    _text_element(item, "description", description)
    _text_element(item, "link", POST_VIEW_URL.format(post_id=post.id))
    _text_element(item, "guid", post_guid(feed_id, post.id), isPermaLink="false")
    _text_element(item, "pubDate", to_rfc822(post.created_at))
    _text_element(item, "author", config.artist_name)


def render_feed(
    posts: Sequence[PostRecord],
    config: FeedConfig,
    feed_id: str,
    base_url: str,
    interval_minutes: int,
    now: datetime | None = None,
) -> str | None:
    """Render posts into an RSS 2.0 document.

    Characters not allowed in XML 1.0 are dropped from every text value, so
    the result always parses.

    Args:
        posts: Posts to publish, in the order they should appear.
        config: Feed metadata for the channel block.
        feed_id: Feed identifier, used in GUIDs and the self link.
        base_url: Externally visible base URL of this server.
        interval_minutes: Refresh interval, published as the channel ttl.
        now: Build time override (defaults to the current UTC time).

    Returns:
        Serialized XML document with a UTF-8 declaration, or None when
        there are no posts.
    """
    if not posts:
        return None

    now = now or datetime.now(timezone.utc)

    rss = ET.Element("rss", attrib={"version": "2.0", "xmlns:atom": ATOM_NS})
    channel = ET.SubElement(rss, "channel")

    _text_element(channel, "title", config.feed_title)
    _text_element(channel, "link", config.feed_link)
    ET.SubElement(
        channel,
        "atom:link",
        attrib={
            "href": xml_safe(f"{base_url.rstrip('/')}/rss/{feed_id}"),
            "rel": "self",
            "type": "application/rss+xml",
        },
    )
    _text_element(
        channel, "description", f"{config.feed_title} - Powered by Gelbooru RSS Generator"
    )
    _text_element(channel, "generator", GENERATOR)
    _text_element(channel, "webMaster", WEBMASTER)
    _text_element(channel, "language", "en")

    # No icon means no <image> block at all
    if config.icon_url:
        image = ET.SubElement(channel, "image")
        _text_element(image, "url", config.icon_url)
        _text_element(image, "title", config.feed_title)
        _text_element(image, "link", config.feed_link)

    _text_element(channel, "lastBuildDate", to_rfc822(now))
    _text_element(channel, "ttl", str(interval_minutes))

    for post in posts:
        _build_item(channel, post, config, feed_id)

    return XML_DECLARATION + ET.tostring(rss, encoding="unicode")

"""
OPML import/export.

Subscription lists exported by other readers are often Latin-1 or
Windows-1252 encoded, so imports go through the encoding-aware region decoder
before the XML is parsed.
"""

import io
from collections.abc import Iterable
from datetime import datetime, timezone
from xml.etree import ElementTree as ET

from .logging_config import get_logger
from .xml_region import parse_region

logger = get_logger(__name__)


class OPMLFeed:
    """OPML feed entry."""

    def __init__(
        self,
        title: str,
        xml_url: str,
        html_url: str | None = None,
        categories: list[str] | None = None,
    ):
        """
        Initialize OPML feed entry.

        Args:
            title: Feed title.
            xml_url: Feed XML URL.
            html_url: Optional feed website URL.
            categories: Titles of the enclosing outline folders, outermost first.
        """
        self.title = title
        self.xml_url = xml_url
        self.html_url = html_url
        self.categories = categories or []

    def __repr__(self) -> str:
        return f"OPMLFeed(title={self.title!r}, xml_url={self.xml_url!r})"


def _walk(outline: ET.Element, categories: list[str], feeds: list[OPMLFeed]) -> None:
    for child in outline.findall("outline"):
        title = child.get("title") or child.get("text", "")
        xml_url = child.get("xmlUrl")
        if xml_url:
            feeds.append(
                OPMLFeed(
                    title=title,
                    xml_url=xml_url,
                    html_url=child.get("htmlUrl"),
                    categories=list(categories),
                )
            )
        else:
            # Folder; nested feeds inherit its title
            _walk(child, [*categories, title] if title else categories, feeds)


def parse_opml(content: bytes | str) -> list[OPMLFeed]:
    """
    Parse OPML file.

    Args:
        content: OPML document as fetched or uploaded.

    Returns:
        List of OPML feed entries.

    Raises:
        ValueError: If OPML parsing fails.
    """
    try:
        parsed = parse_region(content)
    except ET.ParseError as e:
        raise ValueError(f"Invalid OPML format: {e}")

    root = parsed.document
    body = root.find("body")
    if body is None:
        return []

    feeds: list[OPMLFeed] = []
    _walk(body, [], feeds)
    logger.debug(
        "Parsed OPML",
        extra={"feeds": len(feeds), "encoding": parsed.encoding},
    )
    return feeds


def generate_opml(feeds: Iterable[OPMLFeed], title: str = "Glean Subscriptions") -> str:
    """
    Generate OPML file from feeds.

    Feeds with categories are grouped under one folder per first category.

    Args:
        feeds: Feeds to export.
        title: OPML document title.

    Returns:
        OPML XML string, UTF-8 declared.
    """
    opml = ET.Element("opml", version="2.0")

    head = ET.SubElement(opml, "head")
    ET.SubElement(head, "title").text = title
    ET.SubElement(head, "dateCreated").text = datetime.now(timezone.utc).strftime(
        "%a, %d %b %Y %H:%M:%S GMT"
    )

    body = ET.SubElement(opml, "body")
    folders: dict[str, ET.Element] = {}

    for feed in feeds:
        parent = body
        if feed.categories:
            folder = feed.categories[0]
            if folder not in folders:
                folders[folder] = ET.SubElement(body, "outline", text=folder, title=folder)
            parent = folders[folder]

        outline = ET.SubElement(
            parent,
            "outline",
            type="rss",
            text=feed.title,
            title=feed.title,
            xmlUrl=feed.xml_url,
        )
        if feed.html_url:
            outline.set("htmlUrl", feed.html_url)

    tree = ET.ElementTree(opml)
    ET.indent(tree, space="  ")

    output = io.BytesIO()
    tree.write(output, encoding="utf-8", xml_declaration=True)
    return output.getvalue().decode("utf-8")

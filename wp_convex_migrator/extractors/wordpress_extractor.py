"""
Reader and classifier for WordPress WXR export files.

:func:`load_export_items` turns every ``<item>`` of the export channel into
an :class:`~wp_convex_migrator.models.ExportItem`, whatever its post type.
:func:`classify_items` then splits them into the attachment index, the posts
eligible for import and the items that are skipped with a reason.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parsedate_to_datetime
import html
import os
from typing import Dict, List, Optional, Tuple
import xml.etree.ElementTree as ET

from wp_convex_migrator.models import ExportItem
from wp_convex_migrator.utils.errors import InputError, ParseError

NS = {
    "wp": "http://wordpress.org/export/1.2/",
    "content": "http://purl.org/rss/1.0/modules/content/",
    "excerpt": "http://wordpress.org/export/1.2/excerpt/",
    "dc": "http://purl.org/dc/elements/1.1/",
}

THUMBNAIL_META_KEY = "_thumbnail_id"

STATUS_POLICIES = ("publish_only", "all_but_trash")


def _text(item: ET.Element, path: str) -> str:
    return (item.findtext(path, default="", namespaces=NS) or "").strip()


def _parse_date(item: ET.Element) -> Optional[datetime]:
    raw = _text(item, "wp:post_date")
    if raw and not raw.startswith("0000"):
        try:
            return datetime.strptime(raw, "%Y-%m-%d %H:%M:%S")
        except ValueError:
            pass
    raw = _text(item, "pubDate")
    if raw:
        try:
            return parsedate_to_datetime(raw)
        except (TypeError, ValueError):
            return None
    return None


def _thumbnail_id(item: ET.Element) -> Optional[str]:
    for meta in item.findall("wp:postmeta", NS):
        if _text(meta, "wp:meta_key") == THUMBNAIL_META_KEY:
            return _text(meta, "wp:meta_value") or None
    return None


def _item_from_element(item: ET.Element) -> ExportItem:
    categories = [
        html.unescape(cat.text.strip())
        for cat in item.findall("category[@domain='category']")
        if cat.text and cat.text.strip()
    ]
    return ExportItem(
        post_id=_text(item, "wp:post_id"),
        post_type=_text(item, "wp:post_type"),
        status=_text(item, "wp:status"),
        title=_text(item, "title") or "Untitled",
        slug=_text(item, "wp:post_name"),
        content=item.findtext("content:encoded", default="", namespaces=NS) or "",
        excerpt=item.findtext("excerpt:encoded", default="", namespaces=NS) or "",
        publish_date=_parse_date(item),
        author=_text(item, "dc:creator") or "Admin",
        categories=categories,
        thumbnail_id=_thumbnail_id(item),
        attachment_url=_text(item, "wp:attachment_url") or None,
        link=_text(item, "link") or None,
    )


def load_export_items(file_path: str) -> List[ExportItem]:
    """Parse a WordPress XML export into a list of items.

    Args:
        file_path: Path to the ``.xml`` export.

    Returns:
        Every ``<item>`` in document order.

    Raises:
        InputError: If the path does not point to a readable file.
        ParseError: If the file is not well-formed XML.
    """
    if not file_path or not os.path.isfile(file_path):
        raise InputError(f"File not found: {file_path}")
    try:
        tree = ET.parse(file_path)
    except ET.ParseError as e:
        raise ParseError(f"Malformed export {file_path}: {e}") from e
    return [_item_from_element(item) for item in tree.getroot().iter("item")]


def build_attachment_index(items: List[ExportItem]) -> Dict[str, str]:
    """Map attachment ids to their public URLs."""
    return {
        item.post_id: item.attachment_url
        for item in items
        if item.post_type == "attachment" and item.post_id and item.attachment_url
    }


def is_eligible(item: ExportItem, status_policy: str = "publish_only") -> Tuple[bool, str]:
    """Return whether ``item`` should be imported, with the reason when not."""
    if status_policy not in STATUS_POLICIES:
        raise ValueError(f"Unknown status policy: {status_policy}")
    if item.post_type != "post":
        return False, f"post type '{item.post_type or 'unknown'}'"
    if status_policy == "publish_only" and item.status != "publish":
        return False, f"status '{item.status or 'unknown'}'"
    if item.status == "trash":
        return False, "status 'trash'"
    return True, ""


@dataclass
class ClassifiedExport:
    attachments: Dict[str, str] = field(default_factory=dict)
    posts: List[ExportItem] = field(default_factory=list)
    skipped: List[Tuple[ExportItem, str]] = field(default_factory=list)


def classify_items(items: List[ExportItem], status_policy: str = "publish_only") -> ClassifiedExport:
    """
    Split export items into attachments, eligible posts and skipped items.

    The attachment index is complete before any post is classified, since
    posts point at their featured image by attachment id.
    """
    result = ClassifiedExport(attachments=build_attachment_index(items))
    for item in items:
        if item.post_type == "attachment":
            continue
        eligible, reason = is_eligible(item, status_policy)
        if eligible:
            result.posts.append(item)
        else:
            result.skipped.append((item, reason))
    return result


def featured_image_url(item: ExportItem, attachments: Dict[str, str]) -> Optional[str]:
    if not item.thumbnail_id:
        return None
    return attachments.get(item.thumbnail_id)


def featured_images_by_slug(items: List[ExportItem]) -> Dict[str, str]:
    """Map post slugs to the URL of their featured image, for posts that have one."""
    attachments = build_attachment_index(items)
    featured: Dict[str, str] = {}
    for item in items:
        if item.post_type != "post" or not item.slug:
            continue
        url = featured_image_url(item, attachments)
        if url:
            featured[item.slug] = url
    return featured

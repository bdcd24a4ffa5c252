"""
HTML to Markdown conversion with image migration.

Images are found with a regular expression over the raw HTML rather than a
full parse.  ``srcset`` candidates, lazy-load attributes such as
``data-src`` and images produced by shortcodes at render time are therefore
left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import unescape
import re
from typing import Callable, Dict, List, Optional

from bs4 import BeautifulSoup
from markdownify import markdownify

from wp_convex_migrator.utils.errors import ContentConversionError

__all__ = [
    "ContentResult",
    "convert_html_to_markdown",
    "extract_image_urls",
    "transform_content",
]

ImageMigrator = Callable[[str, str], Optional[str]]

_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"'>]+)["']""", re.IGNORECASE)
_CAPTION_RE = re.compile(r"\[/?caption[^\]]*\]", re.IGNORECASE)
# A URL ends at a quote, whitespace, a tag bracket or the end of the text
_URL_END = r"""(?=["'\s<>]|$)"""


@dataclass
class ContentResult:
    markdown: str
    image_failures: int = 0
    image_map: Dict[str, str] = field(default_factory=dict)


def extract_image_urls(html: str) -> List[str]:
    """Distinct ``<img src>`` URLs in order of first appearance."""
    seen: Dict[str, None] = {}
    for match in _IMG_SRC_RE.finditer(html or ""):
        seen.setdefault(match.group(1).strip(), None)
    return [url for url in seen if url]


def convert_html_to_markdown(html: str) -> str:
    """
    Convert WordPress post HTML to Markdown.

    ``[caption]`` shortcodes, ``<script>`` and ``<style>`` are removed
    first.  Headings use ATX style and code blocks are fenced.

    :raises ContentConversionError: if the converter fails on the input.
    """
    if not html or not html.strip():
        return ""
    try:
        cleaned = _CAPTION_RE.sub("", html)
        soup = BeautifulSoup(cleaned, "html.parser")
        for bad in soup.find_all(["script", "style"]):
            bad.decompose()
        text = markdownify(str(soup), heading_style="ATX", code_language="", bullets="-")
    except Exception as e:
        raise ContentConversionError(f"Could not convert HTML to Markdown: {e}") from e
    text = text.replace("\xa0", " ")
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def transform_content(
    html: str,
    *,
    alt: str = "",
    image_migrator: Optional[ImageMigrator] = None,
) -> ContentResult:
    """
    Migrate the images referenced by ``html`` and convert it to Markdown.

    Each distinct image URL is handed to ``image_migrator(url, alt)`` with
    HTML entities decoded, and the migrator returns the new delivery URL or
    ``None`` on failure.  Failed images keep their original URL and are
    counted in ``image_failures``.  Once every image has been handled, old
    URLs are replaced by new ones throughout the HTML before conversion.
    Only whole URLs are replaced, so ``a.png`` never rewrites the front of
    ``a.png?w=300``.

    Without an ``image_migrator`` no images are touched.
    """
    html = html or ""
    image_map: Dict[str, str] = {}
    failures = 0
    if image_migrator is not None:
        for old_url in extract_image_urls(html):
            new_url = image_migrator(unescape(old_url), alt)
            if new_url:
                image_map[old_url] = new_url
            else:
                failures += 1

    if image_map:
        keys = sorted(image_map, key=len, reverse=True)
        pattern = re.compile("(?:%s)%s" % ("|".join(re.escape(k) for k in keys), _URL_END))
        html = pattern.sub(lambda m: image_map[m.group(0)], html)

    return ContentResult(
        markdown=convert_html_to_markdown(html),
        image_failures=failures,
        image_map=image_map,
    )

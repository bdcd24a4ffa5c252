"""
Parsers and converters used by the migration pipeline.

Currently this subpackage exposes the HTML → Markdown helpers from
:mod:`wp_convex_migrator.parsers.markdown_parser`.
"""

from .markdown_parser import ContentResult, convert_html_to_markdown, extract_image_urls, transform_content

__all__ = ["ContentResult", "convert_html_to_markdown", "extract_image_urls", "transform_content"]

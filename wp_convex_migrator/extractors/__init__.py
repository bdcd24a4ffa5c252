"""
Extractors for WordPress export files.

This subpackage parses the WXR (XML) export produced by WordPress into
:class:`~wp_convex_migrator.models.ExportItem` records and classifies them
into attachments, importable posts and skipped items.
"""

from .wordpress_extractor import (
    ClassifiedExport,
    build_attachment_index,
    classify_items,
    featured_image_url,
    featured_images_by_slug,
    load_export_items,
)

__all__ = [
    "ClassifiedExport",
    "build_attachment_index",
    "classify_items",
    "featured_image_url",
    "featured_images_by_slug",
    "load_export_items",
]

"""
Remote service clients.

This subpackage holds the clients for the two services the migration
writes to: the Convex deployment holding posts and categories, and
Cloudflare Images holding uploaded media.  Both are plain objects built once
per run and handed to the migration tool.
"""

from .cloudflare_images import IMAGE_VARIANTS, CloudflareImagesClient, ImageMigrator
from .convex_client import ContentStore, ConvexClient

__all__ = ["IMAGE_VARIANTS", "CloudflareImagesClient", "ContentStore", "ConvexClient", "ImageMigrator"]

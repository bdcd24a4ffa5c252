#!/usr/bin/env python3
"""
Update existing blog posts in Convex with featured images from a WordPress export.

Usage:
  python scripts/fix_featured_images.py export.xml --dry-run   # preview changes
  python scripts/fix_featured_images.py export.xml             # execute
  python scripts/fix_featured_images.py export.xml --force     # re-upload all images
"""

import os
import sys

# Ensure project root is on sys.path when running the script directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from wp_convex_migrator.cli import fix_images_main

if __name__ == "__main__":
    sys.exit(fix_images_main())

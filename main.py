"""
Entry point for the WordPress to Convex migration tool.

Usage: python main.py path/to/wordpress-export.xml [--dry-run] [--force] [--yes]
"""

import sys

from wp_convex_migrator.cli import main

if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Create the initial blog categories in Convex.

Usage:
  python scripts/seed_categories.py [--input categories.json] [--dry-run]
"""

import os
import sys

# Ensure project root is on sys.path when running the script directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from wp_convex_migrator.cli import seed_categories_main

if __name__ == "__main__":
    sys.exit(seed_categories_main())

"""
Top-level package for the WordPress → Convex migration utility.

This package bundles all components required to read a WordPress export,
convert post HTML to Markdown, move images to Cloudflare Images, resolve
categories and create posts in the site's Convex content store.  Modules
are split into subpackages:

* :mod:`wp_convex_migrator.extractors` – XML export reader and classifier
* :mod:`wp_convex_migrator.parsers` – HTML to Markdown conversion
* :mod:`wp_convex_migrator.migrators` – Convex and Cloudflare Images clients
* :mod:`wp_convex_migrator.utils` – errors, retries, categories and reports

Each layer has no direct knowledge of configuration or execution strategy;
orchestration is handled in :mod:`wp_convex_migrator.migration_tool` and
the command line in :mod:`wp_convex_migrator.cli`.
"""

__version__ = "0.1.0"

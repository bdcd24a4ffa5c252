"""
Command line entry points.

``wp-convex-migrate``
    Import posts from a WordPress export into Convex.

``wp-convex-fix-images``
    Attach featured images from the export to posts already in Convex.

``wp-convex-seed-categories``
    Create the initial blog categories.

Every command reads ``config/migration_config.json`` (or ``--config``) plus
environment variables; flags given on the command line win.  Exit code is 1
for input, configuration or parse errors and for anything unexpected, 0
otherwise.  Failures of individual posts are reported in the summary and do
not change the exit code.
"""

from __future__ import annotations

import argparse
import os
from typing import Any, Callable, Dict, List, Optional

from wp_convex_migrator.extractors.wordpress_extractor import featured_images_by_slug, load_export_items
from wp_convex_migrator.migration_tool import DEFAULT_CONFIG_FILE, WordPressMigrationTool, load_config, validate_config
from wp_convex_migrator.migrators.cloudflare_images import CloudflareImagesClient, ImageMigrator
from wp_convex_migrator.migrators.convex_client import ContentStore, ConvexClient
from wp_convex_migrator.utils.categories import DEFAULT_CATEGORIES, load_seed_file, seed_categories
from wp_convex_migrator.utils.errors import ImageUploadError, InputError, MigrationError
from wp_convex_migrator.utils.report import print_summary
from wp_convex_migrator.utils.retry import RetryPolicy


def _base_parser(description: str) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description=description)
    p.add_argument("--config", default=None, help=f"Path to the JSON config (default: {DEFAULT_CONFIG_FILE})")
    p.add_argument("--dry-run", dest="dry_run", action="store_true", default=None,
                   help="Run lookups and conversions but skip uploads and mutations")
    return p


def _load(args: argparse.Namespace) -> Dict[str, Any]:
    if args.config and not os.path.exists(args.config):
        raise InputError(f"Config file not found: {args.config}")
    config = load_config(config_file=args.config or DEFAULT_CONFIG_FILE)
    migration = config["migration"]
    for key in ("dry_run", "force", "limit", "status_policy"):
        value = getattr(args, key, None)
        if value is not None:
            migration[key] = value
    validate_config(config)
    return config


def build_store(config: Dict[str, Any]) -> ContentStore:
    url = config["convex"].get("url")
    if not url:
        raise InputError("Convex URL not configured (set CONVEX_URL or convex.url in the config file)")
    return ContentStore(ConvexClient(url, deploy_key=config["convex"].get("deploy_key") or None))


def build_image_migrator(config: Dict[str, Any], log: Callable[..., None]) -> ImageMigrator:
    cf = config["cloudflare"]
    missing = [key for key in ("account_id", "api_token", "account_hash") if not cf.get(key)]
    if missing:
        raise InputError(f"Cloudflare Images not configured, missing: {', '.join(missing)}")
    migration = config["migration"]

    def on_retry(attempt: int, error: BaseException, wait: float) -> None:
        log(f"Upload failed (attempt {attempt}/{migration['retry_attempts']}): {error}", "WARNING")
        log(f"Retrying in {wait:.1f}s...", "WARNING")

    policy = RetryPolicy(
        max_attempts=int(migration["retry_attempts"]),
        delay=float(migration["retry_delay"]),
        retry_on=(ImageUploadError,),
        on_retry=on_retry,
    )
    images = CloudflareImagesClient(cf["account_id"], cf["api_token"], cf["account_hash"])
    return ImageMigrator(images, policy, variant=migration["image_variant"], log=log)


def _make_tool(config: Dict[str, Any]) -> WordPressMigrationTool:
    tool = WordPressMigrationTool(config, store=build_store(config))
    if not tool.dry_run:
        tool.image_migrator = build_image_migrator(config, tool.log_message)
    return tool


def _confirm(count: int, input_fn: Callable[[str], str]) -> bool:
    print(f"\nAbout to import {count} posts to Convex")
    print("Images will be downloaded and uploaded to Cloudflare")
    try:
        input_fn("\nPress Ctrl+C to cancel, or Enter to continue...")
    except (EOFError, KeyboardInterrupt):
        return False
    return True


def main(argv: Optional[List[str]] = None, *, input_fn: Callable[[str], str] = input) -> int:
    p = _base_parser("Import WordPress posts into the Convex blog")
    p.add_argument("export", nargs="?", help="Path to the WordPress XML export")
    p.add_argument("--force", dest="force", action="store_true", default=None,
                   help="Refresh the featured image of posts that already exist")
    p.add_argument("--limit", type=int, default=None, help="Import at most N posts")
    p.add_argument("--status-policy", dest="status_policy", choices=["publish_only", "all_but_trash"],
                   default=None, help="Which post statuses to import")
    p.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    args = p.parse_args(argv)

    if not args.export:
        print("[ERROR] Please provide the path to the WordPress XML export file")
        p.print_usage()
        return 1

    try:
        config = _load(args)
        tool = _make_tool(config)
        tool.log_message("Starting WordPress to Convex migration")
        classified = tool.extract(args.export)
        if not classified.posts:
            tool.log_message("No posts found to migrate", "WARNING")
            return 0

        needs_confirm = not tool.dry_run and not args.yes and config["migration"].get("confirm", True)
        if needs_confirm and not _confirm(len(classified.posts), input_fn):
            tool.log_message("Migration cancelled", "WARNING")
            return 1

        stats = tool.import_posts(classified.posts, classified.attachments)
        print_summary(stats, dry_run=tool.dry_run)
        tool.log_message("Migration complete")
        return 0
    except MigrationError as e:
        print(f"[ERROR] {e}")
        return 1
    except Exception as e:
        print(f"[ERROR] Migration failed: {e}")
        return 1


def fix_images_main(argv: Optional[List[str]] = None) -> int:
    p = _base_parser("Attach featured images from a WordPress export to existing Convex posts")
    p.add_argument("export", nargs="?", help="Path to the WordPress XML export")
    p.add_argument("--force", dest="force", action="store_true", default=None,
                   help="Re-upload images for posts that already have one")
    args = p.parse_args(argv)

    if not args.export:
        print("[ERROR] Please provide the path to the WordPress XML export file")
        p.print_usage()
        return 1

    try:
        config = _load(args)
        tool = _make_tool(config)
        tool.log_message(f"Mode: {'DRY RUN (no changes)' if tool.dry_run else 'LIVE MIGRATION'}")
        tool.log_message(f"Force: {'YES (re-upload all)' if tool.force else 'NO (skip existing)'}")
        featured = featured_images_by_slug(load_export_items(args.export))
        tool.log_message(f"Found {len(featured)} posts with featured images")
        stats = tool.fix_featured_images(featured)
        print_summary(stats, dry_run=tool.dry_run, title="FEATURED IMAGE SUMMARY")
        return 0
    except MigrationError as e:
        print(f"[ERROR] {e}")
        return 1
    except Exception as e:
        print(f"[ERROR] Fatal error: {e}")
        return 1


def seed_categories_main(argv: Optional[List[str]] = None) -> int:
    p = _base_parser("Create the initial blog categories in Convex")
    p.add_argument("--input", default=None, help="JSON file with the categories to create")
    args = p.parse_args(argv)

    try:
        config = _load(args)
        store = build_store(config)
        categories = load_seed_file(args.input) if args.input else DEFAULT_CATEGORIES
        dry_run = bool(config["migration"]["dry_run"])
        print(f"[INFO] Seeding {len(categories)} categories to Convex")
        stats = seed_categories(store, categories, dry_run=dry_run)
        print_summary(stats, dry_run=dry_run, title="CATEGORY SEED SUMMARY")
        return 0
    except (MigrationError, OSError, ValueError) as e:
        print(f"[ERROR] {e}")
        return 1

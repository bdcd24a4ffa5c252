"""
High-level orchestration of the WordPress → Convex migration.

This module defines a :class:`WordPressMigrationTool` class that ties
together the extractor, the Markdown converter, the category resolver and
the remote clients into a complete pipeline.  Posts are handled strictly one
after another: each post's create-or-skip decision, and every remote call it
needs, finishes before the next post starts.

Configuration is supplied as a dictionary, usually produced by
:func:`load_config` from a JSON file plus environment variables.  The
``convex`` section holds the deployment URL, the ``cloudflare`` section the
image store credentials and the ``migration`` section the run options
(dry-run, force, limit, status policy, retry and delay settings).

The remote clients are not created here.  The caller builds them once per
run and passes them in.
"""

from __future__ import annotations

from datetime import datetime
import json
import os
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from wp_convex_migrator.extractors.wordpress_extractor import (
    STATUS_POLICIES,
    ClassifiedExport,
    classify_items,
    featured_image_url,
    load_export_items,
)
from wp_convex_migrator.migrators.cloudflare_images import IMAGE_VARIANTS
from wp_convex_migrator.models import ExportItem, RemotePost, SeoData, TransformedPost
from wp_convex_migrator.parsers.markdown_parser import convert_html_to_markdown, extract_image_urls, transform_content
from wp_convex_migrator.utils.categories import CategoryResolver, slugify_label
from wp_convex_migrator.utils.errors import InputError, report_error, report_ok
from wp_convex_migrator.utils.report import Outcome, PostResult, RunStatistics

DEFAULT_CONFIG_FILE = "config/migration_config.json"
LOG_FILE = os.path.join("reports", "migration", "migration.log")

META_DESCRIPTION_LENGTH = 160

ImageMigratorFn = Callable[[str, str], Optional[str]]


def load_config(config: Optional[Dict[str, Any]] = None, *, config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the run configuration.

    Values from ``config_file`` (when it exists) or ``config`` win; missing
    keys fall back to environment variables and then to built-in defaults.

    :raises InputError: if the file is not valid JSON or an option has an
        unusable value.
    """
    if config_file and os.path.exists(config_file):
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise InputError(f"Invalid config in {config_file}: {e}") from e
    elif config is None:
        config = {}

    # Ensure essential keys exist to prevent KeyErrors
    config.setdefault("convex", {})
    config["convex"].setdefault("url", os.getenv("CONVEX_URL") or os.getenv("VITE_CONVEX_URL", ""))
    config["convex"].setdefault("deploy_key", os.getenv("CONVEX_DEPLOY_KEY", ""))

    config.setdefault("cloudflare", {})
    config["cloudflare"].setdefault("account_id", os.getenv("CLOUDFLARE_ACCOUNT_ID", ""))
    config["cloudflare"].setdefault("api_token", os.getenv("CLOUDFLARE_API_TOKEN", ""))
    config["cloudflare"].setdefault("account_hash", os.getenv("CLOUDFLARE_ACCOUNT_HASH", ""))

    config.setdefault("migration", {})
    config["migration"].setdefault("dry_run", False)
    config["migration"].setdefault("force", False)
    config["migration"].setdefault("limit", None)
    config["migration"].setdefault("status_policy", "publish_only")
    config["migration"].setdefault("retry_attempts", 3)
    config["migration"].setdefault("retry_delay", 2.0)
    config["migration"].setdefault("post_delay", 0.0)
    config["migration"].setdefault("image_fix_delay", 0.5)
    config["migration"].setdefault("image_variant", "large")
    config["migration"].setdefault("confirm", True)

    validate_config(config)
    return config


def validate_config(config: Dict[str, Any]) -> None:
    migration = config["migration"]
    if migration["status_policy"] not in STATUS_POLICIES:
        raise InputError(
            f"Unknown status_policy '{migration['status_policy']}' (expected one of {', '.join(STATUS_POLICIES)})"
        )
    if migration["image_variant"] not in IMAGE_VARIANTS:
        raise InputError(f"Unknown image_variant '{migration['image_variant']}'")
    if int(migration["retry_attempts"]) < 1:
        raise InputError("retry_attempts must be at least 1")
    if migration["limit"] is not None and int(migration["limit"]) < 0:
        raise InputError("limit must not be negative")
    for key in ("retry_delay", "post_delay", "image_fix_delay"):
        if float(migration[key]) < 0:
            raise InputError(f"{key} must not be negative")


def _filename_from_url(url: str, fallback: str) -> str:
    name = url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    return name or fallback


class WordPressMigrationTool:
    """
    Encapsulates all state and behavior required to migrate a WordPress
    export into the Convex content store.  Success and failure details are
    printed as they happen, appended to the migration log and recorded as
    structured events through :mod:`wp_convex_migrator.utils.errors`.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        *,
        store,
        image_migrator: Optional[ImageMigratorFn] = None,
        sleep: Callable[[float], None] = time.sleep,
        echo: Callable[[str], None] = print,
    ) -> None:
        self.config = config
        self.store = store
        self.image_migrator = image_migrator
        self.sleep = sleep
        self.echo = echo

        migration = config.get("migration", {})
        self.dry_run: bool = bool(migration.get("dry_run", False))
        self.force: bool = bool(migration.get("force", False))
        self.limit: Optional[int] = migration.get("limit")
        self.status_policy: str = migration.get("status_policy", "publish_only")
        self.post_delay: float = float(migration.get("post_delay", 0.0))
        self.image_fix_delay: float = float(migration.get("image_fix_delay", 0.5))

        self.categories = CategoryResolver(store, dry_run=self.dry_run, log=self.log_message)

    def log_message(self, message: str, level: str = "INFO") -> None:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.echo(f"[{level}] {message}")
        os.makedirs(os.path.dirname(LOG_FILE), exist_ok=True)
        with open(LOG_FILE, "a", encoding="utf-8") as f:
            f.write(f"[{timestamp}] {level}: {message}\n")

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def extract(self, xml_path: str) -> ClassifiedExport:
        """Read and classify an export; skipped posts get one log line each."""
        self.log_message(f"Reading WordPress export {xml_path}")
        items = load_export_items(xml_path)
        self.log_message(f"Found {len(items)} items in export")

        classified = classify_items(items, self.status_policy)
        self.log_message(f"Found {len(classified.attachments)} attachments")
        for item, reason in classified.skipped:
            if item.post_type == "post":
                self.log_message(f"Skipping '{item.title}' ({reason})")
                report_ok("POST_INELIGIBLE", item.as_log_ref(), {"reason": reason})
        self.log_message(f"Found {len(classified.posts)} blog posts to migrate")
        return classified

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def _migrate_image(self, url: str, alt: str) -> Optional[str]:
        if self.dry_run:
            self.log_message(f"Dry-run: would migrate image {url}")
            return None
        if self.image_migrator is None:
            return None
        return self.image_migrator(url, alt)

    def build_post(self, item: ExportItem, attachments: Dict[str, str], slug: str) -> Tuple[TransformedPost, int]:
        """
        Turn an export item into the post that will be created.

        Returns the post and the number of images that could not be migrated.
        """
        ref = {"slug": slug, "title": item.title}

        def migrate_inline(url: str, alt: str) -> Optional[str]:
            new_url = self.image_migrator(url, alt)
            if not new_url:
                report_error("IMAGE_UPLOAD", ref, extra={"url": url})
            return new_url

        if self.dry_run:
            for url in extract_image_urls(item.content):
                self.log_message(f"Dry-run: would migrate image {url}")
        content = transform_content(
            item.content,
            alt=item.title,
            image_migrator=None if self.dry_run or self.image_migrator is None else migrate_inline,
        )
        image_failures = content.image_failures
        excerpt = convert_html_to_markdown(item.excerpt) or None

        category_id = self.categories.resolve(item.categories[0]) if item.categories else None

        featured_image: Optional[str] = None
        source_url = featured_image_url(item, attachments)
        if source_url:
            featured_image = self._migrate_image(source_url, item.title)
            if featured_image is None and not self.dry_run:
                image_failures += 1
                report_error("FEATURED_IMAGE", ref)

        post = TransformedPost(
            title=item.title,
            slug=slug,
            content=content.markdown,
            excerpt=excerpt,
            featured_image=featured_image,
            category_id=category_id,
            author_name=item.author,
            status="published" if item.status == "publish" else "draft",
            seo=SeoData(
                meta_title=item.title,
                meta_description=excerpt[:META_DESCRIPTION_LENGTH] if excerpt else None,
            ),
        )
        return post, image_failures

    def _refresh_featured_image(self, item: ExportItem, existing: RemotePost, attachments: Dict[str, str]) -> PostResult:
        ref = {"slug": existing.slug, "title": item.title}
        source_url = featured_image_url(item, attachments)
        if not source_url:
            self.log_message("Already exists and the export has no featured image, skipping")
            return PostResult.skipped(existing.slug, "already exists")
        if self.dry_run:
            self.log_message(f"Dry-run: would update featured image from {source_url}")
            return PostResult.updated(existing.slug, existing.id)
        new_url = self._migrate_image(source_url, _filename_from_url(source_url, existing.slug))
        if not new_url:
            report_error("FEATURED_IMAGE", ref)
            return PostResult.failed(existing.slug, "Failed to upload featured image", image_failures=1)
        self.store.update_featured_image(existing.id, new_url)
        report_ok("FEATURED_IMAGE_UPDATED", ref, {"post_id": existing.id, "url": new_url})
        self.log_message(f"Updated featured image: {new_url}")
        return PostResult.updated(existing.slug, existing.id)

    def process_post(self, item: ExportItem, attachments: Dict[str, str]) -> PostResult:
        """
        Import a single post.

        The post is skipped when its slug already exists in the store; with
        ``force`` enabled its featured image is refreshed instead.  Any error
        raised while transforming or creating the post is recorded and turned
        into a failed result; it never propagates to the caller.
        """
        slug = item.slug or slugify_label(item.title)
        ref = {"slug": slug, "title": item.title}
        image_failures = 0
        try:
            if not slug:
                raise ValueError("post has neither a slug nor a title to derive one from")

            existing = self.store.get_post_by_slug(slug)
            if existing is not None:
                if self.force:
                    return self._refresh_featured_image(item, existing, attachments)
                self.log_message("Already exists, skipping")
                report_ok("POST_SKIPPED", ref, {"post_id": existing.id})
                return PostResult.skipped(slug, "already exists")

            post, image_failures = self.build_post(item, attachments, slug)

            if self.dry_run:
                self.log_message(f"Dry-run: would create post '{slug}' ({post.status})")
                return PostResult.created(slug, None)

            post_id = self.store.create_post(post.to_create_args())
            report_ok("POST_CREATED", ref, {"post_id": post_id, "image_failures": image_failures})
            self.log_message("Imported successfully")
            return PostResult.created(slug, post_id, image_failures=image_failures)
        except Exception as e:
            report_error("POST_FAILED", ref, e)
            self.log_message(f"Failed to import '{slug}': {e}", "ERROR")
            return PostResult.failed(slug, str(e), image_failures=image_failures)

    def import_posts(self, posts: List[ExportItem], attachments: Dict[str, str]) -> RunStatistics:
        """
        Import ``posts`` one at a time and return the run statistics.

        ``limit`` caps the number of posts handled.  When ``post_delay`` is
        set, that many seconds are slept between two posts.
        """
        if self.limit is not None:
            posts = posts[: int(self.limit)]
        stats = RunStatistics()
        total = len(posts)
        self.log_message(f"Importing {total} posts to Convex")
        for index, item in enumerate(posts):
            self.log_message(f"[{index + 1}/{total}] Processing: {item.title}")
            stats.record(self.process_post(item, attachments))
            if self.post_delay and index < total - 1:
                self.sleep(self.post_delay)
        return stats

    # ------------------------------------------------------------------
    # Featured image repair
    # ------------------------------------------------------------------

    def _fix_featured_image(self, post: RemotePost, featured: Dict[str, str]) -> PostResult:
        if post.featured_image and not self.force:
            self.log_message("Already has featured image (use --force to re-upload)")
            return PostResult.skipped(post.slug, "already has featured image")

        source_url = featured.get(post.slug)
        if not source_url:
            self.log_message("No featured image in WordPress export")
            return PostResult.skipped(post.slug, "no featured image in export")

        self.log_message(f"WordPress URL: {source_url}")
        if self.dry_run:
            self.log_message("Dry-run: would upload this image to Cloudflare")
            return PostResult.updated(post.slug, post.id)

        ref = {"slug": post.slug, "title": post.title}
        new_url = self._migrate_image(source_url, _filename_from_url(source_url, f"{post.slug}.jpg"))
        if not new_url:
            report_error("FEATURED_IMAGE", ref)
            return PostResult.failed(post.slug, "Failed to upload to Cloudflare", image_failures=1)

        try:
            self.store.update_featured_image(post.id, new_url)
        except Exception as e:
            report_error("FEATURED_IMAGE_UPDATE", ref, e)
            self.log_message(f"Failed to update post: {e}", "ERROR")
            return PostResult.failed(post.slug, f"Failed to update post: {e}")

        report_ok("FEATURED_IMAGE_UPDATED", ref, {"post_id": post.id, "url": new_url})
        self.log_message("Featured image migration complete")
        return PostResult.updated(post.slug, post.id)

    def fix_featured_images(self, featured: Dict[str, str], posts: Optional[List[RemotePost]] = None) -> RunStatistics:
        """
        Attach featured images to posts already in the store.

        ``featured`` maps post slugs to the image URL found in the export.
        Posts that already have a featured image are left alone unless
        ``force`` is enabled.  A fixed ``image_fix_delay`` is slept after
        every post that reached the image store.
        """
        if posts is None:
            self.log_message("Fetching posts from Convex")
            posts = self.store.list_posts()
            self.log_message(f"Found {len(posts)} posts in database")

        stats = RunStatistics()
        total = len(posts)
        for index, post in enumerate(posts):
            self.log_message(f"[{index + 1}/{total}] Processing: {post.title} ({post.slug})")
            result = stats.record(self._fix_featured_image(post, featured))
            if result.outcome is not Outcome.SKIPPED and not self.dry_run and self.image_fix_delay:
                self.sleep(self.image_fix_delay)
        return stats

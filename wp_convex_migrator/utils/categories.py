from __future__ import annotations

from html import unescape
import json
import re
from typing import Callable, Dict, List, Optional

from .errors import RemoteLookupError, RemoteMutationError, report_error, report_ok
from .report import PostResult, RunStatistics


# Categories created by ``wp-convex-seed-categories`` when no input file is given
DEFAULT_CATEGORIES: List[Dict[str, str]] = [
    {
        "name": "SEO",
        "slug": "seo",
        "description": "Search Engine Optimization articles and strategies",
    },
    {
        "name": "GEO",
        "slug": "geo",
        "description": "Generative Engine Optimization insights",
    },
    {
        "name": "Case Studies",
        "slug": "case-studies",
        "description": "Client success stories and results",
    },
    {
        "name": "Industry News",
        "slug": "industry-news",
        "description": "Latest updates in search and digital marketing",
    },
]


def _print_log(message: str, level: str = "INFO") -> None:
    print(f"[{level}] {message}")


def clean_label(value: Optional[str]) -> str:
    """Unescape HTML entities and collapse inner whitespace."""
    if not value:
        return ""
    return re.sub(r"\s+", " ", unescape(value).strip())


def slugify_label(label: Optional[str]) -> str:
    """
    Derive the slug used for a category label.

    Lowercases, turns every run of characters outside ``[a-z0-9]`` into a
    single hyphen and trims hyphens at both ends.  Accented letters are not
    transliterated: ``"Saúde"`` becomes ``"sa-de"``, the slug categories
    created by earlier imports already carry.  Applying it to an existing
    slug returns the slug unchanged.
    """
    text = re.sub(r"[^a-z0-9]+", "-", (label or "").lower())
    return text.strip("-")


class CategoryResolver:
    """
    Look up a category by the slug of its label, creating it when missing.

    There is no locking between the lookup and the create; two resolvers
    running at once could both create the same slug.  The importer only ever
    calls this from its single sequential loop.
    """

    def __init__(self, store, *, dry_run: bool = False, log: Callable[..., None] = _print_log) -> None:
        self.store = store
        self.dry_run = dry_run
        self.log = log

    def resolve(self, label: Optional[str]) -> Optional[str]:
        name = clean_label(label)
        slug = slugify_label(name)
        if not slug:
            return None

        existing = self.store.get_category_by_slug(slug)
        if existing is not None:
            return existing.id

        if self.dry_run:
            self.log(f"Dry-run: would create category '{name}' ({slug})")
            return None

        self.log(f"Creating category: {name}")
        category_id = self.store.create_category(name=name, slug=slug)
        report_ok("CATEGORY_CREATED", {"slug": slug, "title": name}, {"category_id": category_id})
        return category_id


def load_seed_file(path: str) -> List[Dict[str, str]]:
    """
    Read a list of categories to seed from a JSON file.

    Accepts either a list or ``{"categories": [...]}``; entries need a
    ``name`` and may carry ``slug`` and ``description``.  A missing slug is
    derived from the name.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("categories", [])
    categories: List[Dict[str, str]] = []
    for entry in data:
        name = clean_label(entry.get("name"))
        if not name:
            raise ValueError(f"Category entry without a name in {path}: {entry!r}")
        item = {"name": name, "slug": entry.get("slug") or slugify_label(name)}
        if entry.get("description"):
            item["description"] = entry["description"]
        categories.append(item)
    return categories


def seed_categories(
    store,
    categories: List[Dict[str, str]],
    *,
    dry_run: bool = False,
    log: Callable[..., None] = _print_log,
) -> RunStatistics:
    """Create every category whose slug is not yet in the store."""
    stats = RunStatistics()
    for cat in categories:
        name = cat["name"]
        slug = cat.get("slug") or slugify_label(name)
        try:
            if store.get_category_by_slug(slug) is not None:
                log(f"Skipped: '{name}' (already exists)")
                stats.record(PostResult.skipped(slug, "already exists"))
                continue
            if dry_run:
                log(f"Dry-run: would create category '{name}'")
                stats.record(PostResult.created(slug, None))
                continue
            category_id = store.create_category(name=name, slug=slug, description=cat.get("description"))
            log(f"Created: '{name}'")
            report_ok("CATEGORY_CREATED", {"slug": slug, "title": name}, {"category_id": category_id})
            stats.record(PostResult.created(slug, category_id))
        except (RemoteLookupError, RemoteMutationError) as e:
            log(f"Failed: '{name}' - {e}", "ERROR")
            report_error("CATEGORY_FAILED", {"slug": slug, "title": name}, e)
            stats.record(PostResult.failed(slug, str(e)))
    return stats

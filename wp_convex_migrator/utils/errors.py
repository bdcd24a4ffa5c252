"""
Error taxonomy and structured logging for migration events.

The exceptions defined here separate fatal input problems (``InputError``,
``ParseError``) from per-post and per-image failures that the importer
records and moves past.

Every event worth keeping after a run is appended to a JSON Lines file under
``reports/migration`` so that the information can be reviewed or parsed
later.  Two public functions are provided:

``report_error``
    Record an error that occurred for a post.  An optional exception can be
    supplied and will be serialized to the log.

``report_ok``
    Record a successful step for a post.  Additional key/value information can
    be attached to the entry via the ``extra`` parameter.

The ``ERRORS`` dictionary maps error or event codes to human readable
messages.  Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional


class MigrationError(Exception):
    """Base class for every error raised by the migration pipeline."""


class InputError(MigrationError):
    """Bad command line arguments, missing export file or unusable config."""


class ParseError(MigrationError):
    """The export file is not well-formed XML."""


class RemoteLookupError(MigrationError):
    """A content or category store query failed."""


class RemoteMutationError(MigrationError):
    """A content or category store mutation failed."""


class ImageUploadError(MigrationError):
    """The image store refused or failed an upload."""


class ContentConversionError(MigrationError):
    """HTML could not be converted to Markdown."""


class RetryError(MigrationError):
    """All attempts of a retried operation failed."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


# Mapping of event codes used throughout the migration to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
ERRORS: Dict[str, str] = {
    "IMAGE_UPLOAD": "Failed to migrate image to Cloudflare",
    "FEATURED_IMAGE": "Failed to migrate featured image",
    "POST_FAILED": "Post import failed",
    "FEATURED_IMAGE_UPDATE": "Failed to update featured image",
    "CATEGORY_FAILED": "Failed to seed category",
    "POST_CREATED": "Post created successfully",
    "POST_SKIPPED": "Post already exists, skipped",
    "POST_INELIGIBLE": "Post not eligible for import",
    "FEATURED_IMAGE_UPDATED": "Featured image updated",
    "CATEGORY_CREATED": "Category created",
}

_REPORT_DIR = os.path.join("reports", "migration")
_ERROR_LOG = os.path.join(_REPORT_DIR, "errors.jsonl")
_OK_LOG = os.path.join(_REPORT_DIR, "success.jsonl")


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, default=str)
        f.write("\n")


def _entry(code: str, post: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "code": code,
        "message": ERRORS.get(code, code),
        "slug": post.get("slug"),
        "title": post.get("title"),
    }


def report_error(
    code: str,
    post: Dict[str, Any],
    exc: Optional[BaseException] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Log an error event for ``post``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    post:
        Mapping describing the post.  Only the ``slug`` and ``title`` keys are
        referenced if present.
    exc:
        Optional exception instance that triggered the error.  The string
        representation of the exception will be included in the log entry.
    extra:
        Optional additional fields merged into the log entry.
    """
    entry = _entry(code, post)
    if exc is not None:
        entry["error"] = str(exc)
    if extra:
        entry.update(extra)
    _write_jsonl(_ERROR_LOG, entry)


def report_ok(code: str, post: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
    """Log a successful event for ``post``.

    ``extra`` is merged into the log entry when given.
    """
    entry = _entry(code, post)
    if extra:
        entry.update(extra)
    _write_jsonl(_OK_LOG, entry)

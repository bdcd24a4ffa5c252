"""
Cloudflare Images helpers.

Uploads go to ``POST /accounts/{account_id}/images/v1`` either as a remote
``url`` (Cloudflare downloads the file itself) or as a multipart ``file``.
Delivery URLs are built from the public account hash and never need the API
token.

:class:`ImageMigrator` combines an upload with a :class:`RetryPolicy` and a
variant lookup; it is the callable the content transformer uses for inline
images and the importer uses for featured images.
"""

from __future__ import annotations

import json
import os
from typing import Any, Callable, Dict, Optional

import requests

from wp_convex_migrator.utils.errors import ImageUploadError, RetryError
from wp_convex_migrator.utils.retry import RetryPolicy

API_BASE = "https://api.cloudflare.com/client/v4"
DELIVERY_BASE = "https://imagedelivery.net"

# Variant names used by the migration → names configured in Cloudflare
IMAGE_VARIANTS: Dict[str, str] = {
    "thumbnail": "thumbnail",  # 400px wide
    "medium": "medium",  # 800px wide
    "large": "large",  # 1200px wide
    "social": "og",  # 1200x630
    "original": "public",
}


class CloudflareImagesClient:
    def __init__(
        self,
        account_id: str,
        api_token: str,
        account_hash: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 60.0,
    ) -> None:
        self.account_id = account_id
        self.api_token = api_token
        self.account_hash = account_hash
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def upload_url(self) -> str:
        return f"{API_BASE}/accounts/{self.account_id}/images/v1"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_token}"}

    def _post(self, *, data: Dict[str, str], files: Optional[Dict[str, Any]] = None) -> str:
        try:
            resp = self.session.post(
                self.upload_url,
                headers=self._headers(),
                data=data,
                files=files,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ImageUploadError(f"Cloudflare Images upload failed: {e}") from e
        try:
            payload = resp.json()
        except ValueError:
            raise ImageUploadError(f"Cloudflare Images upload failed: HTTP {resp.status_code}")
        if not isinstance(payload, dict):
            raise ImageUploadError(f"Cloudflare Images upload failed: HTTP {resp.status_code}, unexpected response body")

        result = payload.get("result")
        if not payload.get("success") or not isinstance(result, dict) or not result.get("id"):
            errors = payload.get("errors") or []
            first = errors[0] if isinstance(errors, list) and errors else None
            message = first.get("message") if isinstance(first, dict) else None
            raise ImageUploadError(f"Cloudflare Images upload failed: {message or f'HTTP {resp.status_code}'}")
        return result["id"]

    def upload_from_url(self, url: str, metadata: Optional[Dict[str, str]] = None) -> str:
        """Have Cloudflare fetch ``url`` and store it.  Returns the image id."""
        data = {"url": url}
        if metadata:
            data["metadata"] = json.dumps(metadata)
        return self._post(data=data)

    def upload_file(self, path: str, metadata: Optional[Dict[str, str]] = None) -> str:
        data: Dict[str, str] = {}
        if metadata:
            data["metadata"] = json.dumps(metadata)
        with open(path, "rb") as fh:
            return self._post(data=data, files={"file": (os.path.basename(path), fh)})

    def get_image_url(self, image_id: str, variant: str = "original") -> str:
        if variant not in IMAGE_VARIANTS:
            raise ValueError(f"Unknown image variant: {variant}")
        return f"{DELIVERY_BASE}/{self.account_hash}/{image_id}/{IMAGE_VARIANTS[variant]}"


def _print_log(message: str, level: str = "INFO") -> None:
    print(f"[{level}] {message}")


class ImageMigrator:
    """
    Upload a remote image to Cloudflare and return its delivery URL.

    Upload errors are retried according to ``policy``; after the last failed
    attempt the call returns ``None`` so the caller can carry on without the
    image.
    """

    def __init__(
        self,
        images: CloudflareImagesClient,
        policy: Optional[RetryPolicy] = None,
        *,
        variant: str = "large",
        log: Callable[..., None] = _print_log,
    ) -> None:
        if variant not in IMAGE_VARIANTS:
            raise ValueError(f"Unknown image variant: {variant}")
        self.images = images
        self.policy = policy or RetryPolicy(retry_on=(ImageUploadError,))
        self.variant = variant
        self.log = log

    def __call__(self, url: str, alt: str = "") -> Optional[str]:
        self.log(f"Migrating image: {url}")
        metadata = {"alt": alt} if alt else None
        try:
            image_id = self.policy.call(self.images.upload_from_url, url, metadata)
        except RetryError as e:
            self.log(f"Failed to migrate image {url} after {e.attempts} attempts: {e.last_error}", "ERROR")
            return None
        new_url = self.images.get_image_url(image_id, self.variant)
        self.log(f"Image uploaded: {new_url}")
        return new_url

"""
Convex content store helpers for the WordPress → Convex migration.

:class:`ConvexClient` talks to a Convex deployment through its public HTTP
API (``/api/query`` and ``/api/mutation``).  Each request names a function
by path (``"posts:getBySlug"``) and returns the function's value, or raises
when the deployment reports an error.

:class:`ContentStore` wraps the handful of post and category functions the
migration needs and turns their documents into pydantic models.

Calls are made exactly once.  Convex mutations are not idempotent beyond the
slug checks done by the server functions, so nothing here retries.

Usage example::

    client = ConvexClient("https://happy-otter-123.convex.cloud")
    store = ContentStore(client)
    if store.get_post_by_slug("hello-world") is None:
        store.create_post(post.to_create_args())
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

import requests

from wp_convex_migrator.models import RemoteCategory, RemotePost
from wp_convex_migrator.utils.errors import MigrationError, RemoteLookupError, RemoteMutationError


class ConvexClient:
    def __init__(
        self,
        url: str,
        *,
        deploy_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        if not url:
            raise ValueError("Convex deployment URL is required")
        self.url = url.rstrip("/")
        self.deploy_key = deploy_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.deploy_key:
            headers["Authorization"] = f"Convex {self.deploy_key}"
        return headers

    def _call(self, kind: str, path: str, args: Dict[str, Any], error_cls: Type[MigrationError]) -> Any:
        body = {"path": path, "args": args, "format": "json"}
        try:
            resp = self.session.post(
                f"{self.url}/api/{kind}",
                headers=self._headers(),
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise error_cls(f"{kind} {path} failed: {e}") from e

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict) and payload.get("status") == "error":
            raise error_cls(f"{kind} {path} failed: {payload.get('errorMessage') or 'unknown error'}")
        if resp.status_code >= 400 or not isinstance(payload, dict):
            raise error_cls(f"{kind} {path} failed: HTTP {resp.status_code} {resp.text[:200]}")
        return payload.get("value")

    def query(self, path: str, args: Optional[Dict[str, Any]] = None) -> Any:
        return self._call("query", path, args or {}, RemoteLookupError)

    def mutation(self, path: str, args: Optional[Dict[str, Any]] = None) -> Any:
        return self._call("mutation", path, args or {}, RemoteMutationError)


class ContentStore:
    """Post and category functions of the site's Convex deployment."""

    def __init__(self, client: ConvexClient) -> None:
        self.client = client

    # Posts

    def get_post_by_slug(self, slug: str) -> Optional[RemotePost]:
        doc = self.client.query("posts:getBySlug", {"slug": slug})
        return RemotePost.model_validate(doc) if doc else None

    def list_posts(self) -> List[RemotePost]:
        docs = self.client.query("posts:list", {}) or []
        return [RemotePost.model_validate(d) for d in docs]

    def create_post(self, args: Dict[str, Any]) -> str:
        return self.client.mutation("posts:create", args)

    def update_featured_image(self, post_id: str, featured_image: str) -> str:
        return self.client.mutation(
            "posts:updateFeaturedImage", {"id": post_id, "featuredImage": featured_image}
        )

    # Categories

    def get_category_by_slug(self, slug: str) -> Optional[RemoteCategory]:
        doc = self.client.query("categories:getBySlug", {"slug": slug})
        return RemoteCategory.model_validate(doc) if doc else None

    def create_category(self, *, name: str, slug: str, description: Optional[str] = None) -> str:
        args: Dict[str, Any] = {"name": name, "slug": slug}
        if description:
            args["description"] = description
        return self.client.mutation("categories:create", args)

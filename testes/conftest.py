import os
import sys
from typing import Any, Dict, List, Optional

import pytest

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from wp_convex_migrator.models import RemoteCategory, RemotePost
from wp_convex_migrator.utils.errors import RemoteMutationError


SAMPLE_EXPORT = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
    xmlns:excerpt="http://wordpress.org/export/1.2/excerpt/"
    xmlns:content="http://purl.org/rss/1.0/modules/content/"
    xmlns:dc="http://purl.org/dc/elements/1.1/"
    xmlns:wp="http://wordpress.org/export/1.2/">
<channel>
  <title>One Percent SEO</title>
  <item>
    <title>Hero image</title>
    <wp:post_id>10</wp:post_id>
    <wp:post_type><![CDATA[attachment]]></wp:post_type>
    <wp:status><![CDATA[inherit]]></wp:status>
    <wp:post_name><![CDATA[hero-image]]></wp:post_name>
    <wp:attachment_url><![CDATA[https://old.example.com/wp-content/uploads/hero.jpg]]></wp:attachment_url>
  </item>
  <item>
    <title>Local SEO Wins</title>
    <link>https://old.example.com/local-seo-wins/</link>
    <pubDate>Tue, 04 Mar 2025 10:00:00 +0000</pubDate>
    <dc:creator><![CDATA[jane]]></dc:creator>
    <category domain="category" nicename="case-studies"><![CDATA[Case Studies]]></category>
    <category domain="category" nicename="seo"><![CDATA[SEO]]></category>
    <category domain="post_tag" nicename="local"><![CDATA[local]]></category>
    <content:encoded><![CDATA[<h2>Results</h2><p>Traffic grew.</p><p><img src="https://old.example.com/wp-content/uploads/chart.png" alt="chart" /></p>]]></content:encoded>
    <excerpt:encoded><![CDATA[<p>How a plumber tripled calls.</p>]]></excerpt:encoded>
    <wp:post_id>11</wp:post_id>
    <wp:post_date><![CDATA[2025-03-04 10:00:00]]></wp:post_date>
    <wp:post_name><![CDATA[local-seo-wins]]></wp:post_name>
    <wp:status><![CDATA[publish]]></wp:status>
    <wp:post_type><![CDATA[post]]></wp:post_type>
    <wp:postmeta>
      <wp:meta_key><![CDATA[_edit_last]]></wp:meta_key>
      <wp:meta_value><![CDATA[1]]></wp:meta_value>
    </wp:postmeta>
    <wp:postmeta>
      <wp:meta_key><![CDATA[_thumbnail_id]]></wp:meta_key>
      <wp:meta_value><![CDATA[10]]></wp:meta_value>
    </wp:postmeta>
  </item>
  <item>
    <title>GEO Explained</title>
    <dc:creator><![CDATA[sam]]></dc:creator>
    <content:encoded><![CDATA[<p>Generative engines &amp; you.</p>]]></content:encoded>
    <excerpt:encoded><![CDATA[]]></excerpt:encoded>
    <wp:post_id>12</wp:post_id>
    <wp:post_date><![CDATA[2025-04-01 09:30:00]]></wp:post_date>
    <wp:post_name><![CDATA[geo-explained]]></wp:post_name>
    <wp:status><![CDATA[publish]]></wp:status>
    <wp:post_type><![CDATA[post]]></wp:post_type>
  </item>
  <item>
    <title>Unfinished thoughts</title>
    <dc:creator><![CDATA[sam]]></dc:creator>
    <content:encoded><![CDATA[<p>Draft body</p>]]></content:encoded>
    <wp:post_id>13</wp:post_id>
    <wp:post_date><![CDATA[0000-00-00 00:00:00]]></wp:post_date>
    <wp:post_name><![CDATA[]]></wp:post_name>
    <wp:status><![CDATA[draft]]></wp:status>
    <wp:post_type><![CDATA[post]]></wp:post_type>
  </item>
  <item>
    <title>About</title>
    <wp:post_id>14</wp:post_id>
    <wp:post_name><![CDATA[about]]></wp:post_name>
    <wp:status><![CDATA[publish]]></wp:status>
    <wp:post_type><![CDATA[page]]></wp:post_type>
  </item>
</channel>
</rss>
"""


class FakeStore:
    """In-memory stand-in for the Convex content store."""

    def __init__(self) -> None:
        self.posts: Dict[str, RemotePost] = {}
        self.categories: Dict[str, RemoteCategory] = {}
        self.created_posts: List[Dict[str, Any]] = []
        self.created_categories: List[Dict[str, Any]] = []
        self.featured_updates: List[tuple] = []
        self.fail_create_for: set = set()
        self._next = 0

    def _new_id(self, prefix: str) -> str:
        self._next += 1
        return f"{prefix}_{self._next}"

    def get_post_by_slug(self, slug: str) -> Optional[RemotePost]:
        return self.posts.get(slug)

    def list_posts(self) -> List[RemotePost]:
        return list(self.posts.values())

    def create_post(self, args: Dict[str, Any]) -> str:
        if args["slug"] in self.fail_create_for:
            raise RemoteMutationError(f"mutation posts:create failed for {args['slug']}")
        post_id = self._new_id("post")
        self.created_posts.append(args)
        self.posts[args["slug"]] = RemotePost.model_validate({"_id": post_id, **args})
        return post_id

    def update_featured_image(self, post_id: str, featured_image: str) -> str:
        self.featured_updates.append((post_id, featured_image))
        for slug, post in self.posts.items():
            if post.id == post_id:
                self.posts[slug] = post.model_copy(update={"featured_image": featured_image})
        return post_id

    def get_category_by_slug(self, slug: str) -> Optional[RemoteCategory]:
        return self.categories.get(slug)

    def create_category(self, *, name: str, slug: str, description: Optional[str] = None) -> str:
        category_id = self._new_id("cat")
        self.created_categories.append({"name": name, "slug": slug, "description": description})
        self.categories[slug] = RemoteCategory.model_validate({"_id": category_id, "name": name, "slug": slug})
        return category_id


class FakeImageMigrator:
    """Callable image migrator; URLs listed in ``failing`` always fail."""

    def __init__(self, failing=()) -> None:
        self.failing = set(failing)
        self.calls: List[tuple] = []

    def __call__(self, url: str, alt: str = "") -> Optional[str]:
        self.calls.append((url, alt))
        if url in self.failing:
            return None
        name = url.rsplit("/", 1)[-1]
        return f"https://imagedelivery.net/HASH/{name}/large"


@pytest.fixture(autouse=True)
def _isolated_reports(tmp_path, monkeypatch):
    # Log files and JSONL reports are written relative to the working directory
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def export_path(tmp_path):
    path = tmp_path / "export.xml"
    path.write_text(SAMPLE_EXPORT, encoding="utf-8")
    return str(path)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def images():
    return FakeImageMigrator()

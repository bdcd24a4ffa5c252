from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ExportItem(BaseModel):
    """One ``<item>`` of a WordPress export, whatever its post type."""

    model_config = ConfigDict(str_strip_whitespace=True)

    post_id: str = ""
    post_type: str = ""
    status: str = ""
    title: str = "Untitled"
    slug: str = ""
    content: str = ""
    excerpt: str = ""
    publish_date: Optional[datetime] = None
    author: str = "Admin"
    categories: List[str] = Field(default_factory=list)
    thumbnail_id: Optional[str] = None
    attachment_url: Optional[str] = None
    link: Optional[str] = None

    def as_log_ref(self) -> dict[str, Any]:
        return {"slug": self.slug or f"wp-{self.post_id}", "title": self.title}


class SeoData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    meta_title: Optional[str] = Field(None, alias="metaTitle")
    meta_description: Optional[str] = Field(None, alias="metaDescription")
    og_image: Optional[str] = Field(None, alias="ogImage")
    noindex: Optional[bool] = None


class TransformedPost(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    content: str
    excerpt: Optional[str] = None
    featured_image: Optional[str] = Field(None, alias="featuredImage")
    category_id: Optional[str] = Field(None, alias="categoryId")
    author_name: str = Field(..., alias="authorName")
    status: Literal["draft", "published"] = "draft"
    seo: SeoData = Field(default_factory=SeoData)

    @field_validator("excerpt", "featured_image", "category_id", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_create_args(self) -> dict[str, Any]:
        """Arguments for the ``posts:create`` mutation."""
        return self.model_dump(by_alias=True, exclude_none=True)


class RemoteCategory(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., alias="_id")
    name: str = ""
    slug: str = ""
    description: Optional[str] = None


class RemotePost(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., alias="_id")
    title: str = ""
    slug: str = ""
    featured_image: Optional[str] = Field(None, alias="featuredImage")
    status: Optional[str] = None

# cloudos/schemas/news.py
from __future__ import annotations
from datetime import datetime
from typing import List, Optional
from pydantic import Field, field_validator
from cloudos.core.rbac import Role
from cloudos.models.news import NewsPriority
from cloudos.schemas.base import ApiModel


class NewsCreate(ApiModel):
    title: str = Field(min_length=3, max_length=200)
    content: str = Field(min_length=10)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    priority: NewsPriority = NewsPriority.NORMAL
    target_roles: Optional[List[Role]] = None
    target_users: Optional[List[int]] = None
    featured_image: Optional[str] = None
    publish_now: bool = False
    expires_at: Optional[datetime] = None

    @field_validator("title", "content", "excerpt", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class Author(ApiModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    avatar: Optional[str] = None


class NewsOut(ApiModel):
    id: int
    title: str
    content: str
    excerpt: Optional[str] = None
    status: str
    priority: str
    target_roles: List[str] = []
    featured_image: Optional[str] = None
    author_id: int
    author: Optional[Author] = None
    published_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("target_roles", mode="before")
    @classmethod
    def _split_roles(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [r for r in v.split(",") if r]
        return v


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    pages: int


class NewsPage(ApiModel):
    success: bool = True
    articles: List[NewsOut]
    pagination: Pagination


class NewsCreated(ApiModel):
    success: bool = True
    article: NewsOut

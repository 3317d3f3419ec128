"""Post API schemas."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from postboard.schemas.common import CamelModel, TrimmedStr


class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class CreatePostRequest(BaseModel):
    title: TrimmedStr
    content: TrimmedStr
    status: PostStatus = PostStatus.DRAFT


class UpdatePostRequest(BaseModel):
    title: TrimmedStr | None = None
    content: TrimmedStr | None = None
    status: PostStatus | None = None

    @model_validator(mode="after")
    def _require_one_field(self) -> "UpdatePostRequest":
        if self.title is None and self.content is None and self.status is None:
            raise ValueError("At least one of title, content or status must be provided")
        return self

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_none=True)


class PostAuthor(CamelModel):
    id: str
    name: str | None = None
    email: str | None = None


class Post(CamelModel):
    id: str
    title: str
    content: str
    author: PostAuthor
    status: PostStatus
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _published_posts_carry_stamp(self) -> "Post":
        if self.status == PostStatus.PUBLISHED and self.published_at is None:
            raise ValueError("Published posts must have publishedAt set")
        return self


class PublicPostAuthor(CamelModel):
    id: str
    name: str | None = None


class PublicPost(CamelModel):
    id: str
    title: str
    content: str
    author: PublicPostAuthor
    status: Literal[PostStatus.PUBLISHED]
    published_at: datetime
    created_at: datetime
    updated_at: datetime


class PublicPostPage(CamelModel):
    posts: list[PublicPost]
    page: int
    total_pages: int
    total: int


class PostResponse(CamelModel):
    success: Literal[True] = True
    data: Post


class PostListResponse(CamelModel):
    success: Literal[True] = True
    count: int
    data: list[Post]


class PublicPostListResponse(CamelModel):
    success: Literal[True] = True
    count: int
    page: int
    total_pages: int
    total: int
    data: list[PublicPost]


class DeletePostResponse(CamelModel):
    success: Literal[True] = True
    data: dict[str, object] = Field(default_factory=dict)

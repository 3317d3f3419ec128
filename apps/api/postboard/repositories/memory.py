"""In-memory document store used by the API and tests."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
import re
from threading import Lock
from uuid import uuid4

from postboard.schemas.auth import Role
from postboard.schemas.post import PostStatus

_UPDATABLE_POST_FIELDS = frozenset({"title", "content", "status", "published_at"})
_TEXT_TOKEN_RE = re.compile(r"\w+")


class StoreError(Exception):
    """Raised when the document store cannot complete an operation."""


class DuplicateKeyError(StoreError):
    """Raised when a write violates a unique index."""


def _text_tokens(text: str) -> set[str]:
    return set(_TEXT_TOKEN_RE.findall(text.lower()))


@dataclass(slots=True)
class UserRecord:
    id: str
    name: str
    email: str
    password_hash: str
    role: Role
    created_at: datetime


@dataclass(slots=True)
class PostRecord:
    id: str
    title: str
    content: str
    author_id: str
    status: PostStatus
    created_at: datetime
    updated_at: datetime
    published_at: datetime | None = None

    def matches_text(self, terms: set[str]) -> bool:
        """Any search term present as a word of the title or content."""
        return bool(terms & (_text_tokens(self.title) | _text_tokens(self.content)))


@dataclass(slots=True)
class InMemoryStore:
    """Deterministic document store with per-document atomic writes.

    Collections keep insertion order, which is the natural order returned by
    unsorted finds and the tie-breaker for sorted ones.
    """

    users: dict[str, UserRecord] = field(default_factory=dict)
    posts: dict[str, PostRecord] = field(default_factory=dict)
    user_write_count: int = 0
    post_write_count: int = 0
    failure_message: str | None = None
    _user_index_lock: Lock = field(default_factory=Lock, init=False, repr=False, compare=False)

    def _maybe_fail(self) -> None:
        if self.failure_message is not None:
            message = self.failure_message
            self.failure_message = None
            raise StoreError(message)

    def create_user(self, *, name: str, email: str, password_hash: str, role: Role) -> UserRecord:
        self._maybe_fail()
        # Unique email index: check and insert under one lock.
        with self._user_index_lock:
            if any(record.email == email for record in self.users.values()):
                raise DuplicateKeyError("E11000 duplicate key error: users.email")

            user = UserRecord(
                id=str(uuid4()),
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                created_at=datetime.now(UTC),
            )
            self.users[user.id] = user
            self.user_write_count += 1
        return user

    def get_user(self, user_id: str) -> UserRecord | None:
        self._maybe_fail()
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> UserRecord | None:
        self._maybe_fail()
        for record in self.users.values():
            if record.email == email:
                return record
        return None

    def create_post(
        self,
        *,
        author_id: str,
        title: str,
        content: str,
        status: PostStatus,
        published_at: datetime | None,
        created_at: datetime | None = None,
    ) -> PostRecord:
        self._maybe_fail()
        now = created_at or datetime.now(UTC)
        post = PostRecord(
            id=str(uuid4()),
            title=title,
            content=content,
            author_id=author_id,
            status=status,
            created_at=now,
            updated_at=now,
            published_at=published_at,
        )
        self.posts[post.id] = post
        self.post_write_count += 1
        return post

    def get_post(self, post_id: str) -> PostRecord | None:
        self._maybe_fail()
        return self.posts.get(post_id)

    def update_post(self, post_id: str, changes: Mapping[str, object]) -> PostRecord | None:
        """Apply ``changes`` to one post in a single write."""
        self._maybe_fail()
        unknown = set(changes) - _UPDATABLE_POST_FIELDS
        if unknown:
            raise ValueError(f"Unsupported post fields: {sorted(unknown)}")

        post = self.posts.get(post_id)
        if post is None:
            return None

        for key, value in changes.items():
            setattr(post, key, value)
        post.updated_at = datetime.now(UTC)
        self.post_write_count += 1
        return post

    def delete_post(self, post_id: str) -> bool:
        self._maybe_fail()
        removed = self.posts.pop(post_id, None)
        if removed is None:
            return False
        self.post_write_count += 1
        return True

    def _select_posts(
        self,
        *,
        author_id: str | None,
        status: PostStatus | None,
        text: str | None,
    ) -> list[PostRecord]:
        terms = _text_tokens(text) if text else set()
        selected: list[PostRecord] = []
        for record in self.posts.values():
            if author_id is not None and record.author_id != author_id:
                continue
            if status is not None and record.status != status:
                continue
            if text and not record.matches_text(terms):
                continue
            selected.append(record)
        return selected

    def find_posts(
        self,
        *,
        author_id: str | None = None,
        status: PostStatus | None = None,
        text: str | None = None,
        newest_published_first: bool = False,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[PostRecord]:
        self._maybe_fail()
        selected = self._select_posts(author_id=author_id, status=status, text=text)
        if newest_published_first:
            # Stable sort keeps insertion order for equal timestamps.
            selected.sort(
                key=lambda record: record.published_at or datetime.min.replace(tzinfo=UTC),
                reverse=True,
            )
        end = None if limit is None else skip + limit
        return selected[skip:end]

    def count_posts(
        self,
        *,
        author_id: str | None = None,
        status: PostStatus | None = None,
        text: str | None = None,
    ) -> int:
        self._maybe_fail()
        return len(self._select_posts(author_id=author_id, status=status, text=text))

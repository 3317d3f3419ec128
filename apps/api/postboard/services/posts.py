"""Access-controlled post service layer.

Every operation takes the caller explicitly. Authorization runs on the
fetched record before any write, so a rejected call leaves the store as it
was. Fetch-check-write sequences are not locked: two concurrent authorized
updates of one post resolve as last write wins.
"""

from __future__ import annotations

from datetime import UTC, datetime
import logging
import math

from postboard.core.logging_safety import safe_log_identifier
from postboard.domain.post_policy import (
    ensure_authenticated,
    ensure_can_modify,
    ensure_can_read,
    publish_stamp,
)
from postboard.errors import ApiError
from postboard.repositories.memory import InMemoryStore, PostRecord
from postboard.schemas.auth import AuthPrincipal
from postboard.schemas.error import ErrorKind
from postboard.schemas.post import (
    Post,
    PostAuthor,
    PostStatus,
    PublicPost,
    PublicPostAuthor,
    PublicPostPage,
)

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset({"title", "content", "status"})


def _not_found(post_id: str) -> ApiError:
    return ApiError(ErrorKind.NOT_FOUND, f"No post found with id {post_id}")


def _coerce_status(value: object) -> PostStatus:
    try:
        return PostStatus(value)
    except ValueError as exc:
        raise ApiError(ErrorKind.VALIDATION, 'Status must be either "draft" or "published"') from exc


class PostService:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def create_post(
        self,
        *,
        caller: AuthPrincipal,
        title: str,
        content: str,
        status: PostStatus = PostStatus.DRAFT,
    ) -> Post:
        ensure_authenticated(caller)
        status = _coerce_status(status)
        now = datetime.now(UTC)
        record = self._store.create_post(
            author_id=caller.user_id,
            title=title,
            content=content,
            status=status,
            published_at=publish_stamp(
                current_status=None,
                requested_status=status,
                current_published_at=None,
                now=now,
            ),
            created_at=now,
        )
        logger.info(
            "post.created post_id=%s author_id=%s status=%s",
            record.id,
            safe_log_identifier(caller.user_id, prefix="uid"),
            record.status.value,
        )
        return self._to_post(record)

    def list_my_posts(self, *, caller: AuthPrincipal) -> list[Post]:
        """Authors see their own posts; admins see every post."""
        ensure_authenticated(caller)
        author_id = None if caller.is_admin else caller.user_id
        return [self._to_post(record) for record in self._store.find_posts(author_id=author_id)]

    def get_post(self, *, post_id: str, requester: AuthPrincipal) -> Post:
        record = self._store.get_post(post_id)
        if record is None:
            raise _not_found(post_id)

        ensure_can_read(requester, author_id=record.author_id, status=record.status)
        return self._to_post(record)

    def update_post(
        self,
        *,
        post_id: str,
        caller: AuthPrincipal,
        changes: dict[str, object],
    ) -> Post:
        ensure_authenticated(caller)
        record = self._store.get_post(post_id)
        if record is None:
            raise _not_found(post_id)

        ensure_can_modify(caller, author_id=record.author_id, action="update")

        unsupported = set(changes) - _EDITABLE_FIELDS
        if unsupported:
            raise ApiError(
                ErrorKind.VALIDATION,
                "Only title, content and status can be updated",
                details={"fields": sorted(unsupported)},
            )

        updates = dict(changes)
        if "status" in updates:
            requested_status = _coerce_status(updates["status"])
            updates["status"] = requested_status
            stamp = publish_stamp(
                current_status=record.status,
                requested_status=requested_status,
                current_published_at=record.published_at,
                now=datetime.now(UTC),
            )
            if stamp != record.published_at:
                updates["published_at"] = stamp

        updated = self._store.update_post(post_id, updates)
        if updated is None:
            # Deleted between the read and the write.
            raise _not_found(post_id)

        logger.info(
            "post.updated post_id=%s caller_id=%s fields=%s",
            post_id,
            safe_log_identifier(caller.user_id, prefix="uid"),
            ",".join(sorted(updates)),
        )
        return self._to_post(updated)

    def delete_post(self, *, post_id: str, caller: AuthPrincipal) -> None:
        ensure_authenticated(caller)
        record = self._store.get_post(post_id)
        if record is None:
            raise _not_found(post_id)

        ensure_can_modify(caller, author_id=record.author_id, action="delete")
        if not self._store.delete_post(post_id):
            raise _not_found(post_id)

        logger.info(
            "post.deleted post_id=%s caller_id=%s",
            post_id,
            safe_log_identifier(caller.user_id, prefix="uid"),
        )

    def list_public_posts(self, *, page: int = 1, limit: int = 10, search: str = "") -> PublicPostPage:
        """Published posts, newest first, with optional text search.

        ``page`` is 1-based; pages past the end come back empty with the
        same totals.
        """
        if page < 1 or limit < 1:
            raise ApiError(ErrorKind.VALIDATION, "page and limit must be positive integers")

        text = search.strip() or None
        total = self._store.count_posts(status=PostStatus.PUBLISHED, text=text)
        records = self._store.find_posts(
            status=PostStatus.PUBLISHED,
            text=text,
            newest_published_first=True,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return PublicPostPage(
            posts=[self._to_public_post(record) for record in records],
            page=page,
            total_pages=math.ceil(total / limit),
            total=total,
        )

    def _to_post(self, record: PostRecord) -> Post:
        author = self._store.get_user(record.author_id)
        return Post(
            id=record.id,
            title=record.title,
            content=record.content,
            author=PostAuthor(
                id=record.author_id,
                name=author.name if author is not None else None,
                email=author.email if author is not None else None,
            ),
            status=record.status,
            published_at=record.published_at,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def _to_public_post(self, record: PostRecord) -> PublicPost:
        author = self._store.get_user(record.author_id)
        return PublicPost(
            id=record.id,
            title=record.title,
            content=record.content,
            author=PublicPostAuthor(
                id=record.author_id,
                name=author.name if author is not None else None,
            ),
            status=record.status,
            published_at=record.published_at,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

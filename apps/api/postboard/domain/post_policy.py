"""Post visibility, ownership and publish-stamp rules."""

from datetime import datetime

from postboard.errors import ApiError
from postboard.schemas.auth import AuthPrincipal
from postboard.schemas.error import ErrorKind
from postboard.schemas.post import PostStatus


def is_owner(principal: AuthPrincipal, author_id: str) -> bool:
    return not principal.is_guest and principal.user_id == author_id


def can_read(principal: AuthPrincipal, *, author_id: str, status: PostStatus) -> bool:
    """Published posts are public; drafts are visible to their author and admins."""
    if status == PostStatus.PUBLISHED:
        return True
    return principal.is_admin or is_owner(principal, author_id)


def can_modify(principal: AuthPrincipal, *, author_id: str) -> bool:
    return principal.is_admin or is_owner(principal, author_id)


def ensure_authenticated(principal: AuthPrincipal) -> None:
    if principal.is_guest:
        raise ApiError(ErrorKind.UNAUTHORIZED, "Not authorized, no token")


def ensure_can_read(principal: AuthPrincipal, *, author_id: str, status: PostStatus) -> None:
    if not can_read(principal, author_id=author_id, status=status):
        raise ApiError(ErrorKind.FORBIDDEN, "Not authorized to view this post")


def ensure_can_modify(principal: AuthPrincipal, *, author_id: str, action: str) -> None:
    if not can_modify(principal, author_id=author_id):
        raise ApiError(ErrorKind.FORBIDDEN, f"Not authorized to {action} this post")


def publish_stamp(
    *,
    current_status: PostStatus | None,
    requested_status: PostStatus | None,
    current_published_at: datetime | None,
    now: datetime,
) -> datetime | None:
    """Return the ``published_at`` value after a status change.

    ``current_status`` is None for a post being created. The stamp is set
    whenever the post enters ``published`` from another state; leaving
    ``published`` never clears it.
    """
    if requested_status == PostStatus.PUBLISHED and current_status != PostStatus.PUBLISHED:
        return now
    return current_published_at

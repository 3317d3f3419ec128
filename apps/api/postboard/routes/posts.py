"""Post routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from postboard.routes.dependencies import (
    get_authenticated_principal,
    get_optional_principal,
    get_post_service,
)
from postboard.schemas.auth import AuthPrincipal
from postboard.schemas.error import (
    ForbiddenError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
    ValidationFailedError,
)
from postboard.schemas.post import (
    CreatePostRequest,
    DeletePostResponse,
    PostListResponse,
    PostResponse,
    PublicPostListResponse,
    UpdatePostRequest,
)
from postboard.services.posts import PostService

router = APIRouter(prefix="/posts", tags=["Posts"])

_POST_ID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

PostId = Annotated[str, Path(alias="postId", pattern=_POST_ID_PATTERN)]


@router.get(
    "/public",
    response_model=PublicPostListResponse,
    responses={400: {"model": ValidationFailedError}},
)
async def list_public_posts(
    service: Annotated[PostService, Depends(get_post_service)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    search: Annotated[str, Query(max_length=200)] = "",
) -> PublicPostListResponse:
    result = service.list_public_posts(page=page, limit=limit, search=search)
    return PublicPostListResponse(
        count=len(result.posts),
        page=result.page,
        total_pages=result.total_pages,
        total=result.total,
        data=result.posts,
    )


@router.get(
    "",
    response_model=PostListResponse,
    responses={401: {"model": UnauthorizedError}},
)
async def list_my_posts(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[PostService, Depends(get_post_service)],
) -> PostListResponse:
    posts = service.list_my_posts(caller=principal)
    return PostListResponse(count=len(posts), data=posts)


@router.post(
    "",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ValidationFailedError},
        401: {"model": UnauthorizedError},
        429: {"model": RateLimitedError},
    },
)
async def create_post(
    payload: CreatePostRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[PostService, Depends(get_post_service)],
) -> PostResponse:
    post = service.create_post(
        caller=principal,
        title=payload.title,
        content=payload.content,
        status=payload.status,
    )
    return PostResponse(data=post)


@router.get(
    "/{postId}",
    response_model=PostResponse,
    responses={
        400: {"model": ValidationFailedError},
        401: {"model": UnauthorizedError},
        403: {"model": ForbiddenError},
        404: {"model": NotFoundError},
    },
)
async def get_post(
    post_id: PostId,
    principal: Annotated[AuthPrincipal, Depends(get_optional_principal)],
    service: Annotated[PostService, Depends(get_post_service)],
) -> PostResponse:
    return PostResponse(data=service.get_post(post_id=post_id, requester=principal))


@router.put(
    "/{postId}",
    response_model=PostResponse,
    responses={
        400: {"model": ValidationFailedError},
        401: {"model": UnauthorizedError},
        403: {"model": ForbiddenError},
        404: {"model": NotFoundError},
    },
)
async def update_post(
    post_id: PostId,
    payload: UpdatePostRequest,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[PostService, Depends(get_post_service)],
) -> PostResponse:
    post = service.update_post(post_id=post_id, caller=principal, changes=payload.changes())
    return PostResponse(data=post)


@router.delete(
    "/{postId}",
    response_model=DeletePostResponse,
    responses={
        400: {"model": ValidationFailedError},
        401: {"model": UnauthorizedError},
        403: {"model": ForbiddenError},
        404: {"model": NotFoundError},
    },
)
async def delete_post(
    post_id: PostId,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[PostService, Depends(get_post_service)],
) -> DeletePostResponse:
    service.delete_post(post_id=post_id, caller=principal)
    return DeletePostResponse()

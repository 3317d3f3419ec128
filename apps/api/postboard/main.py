"""FastAPI application entrypoint."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from postboard.errors import STATUS_BY_KIND, ApiError
from postboard.middleware.security_headers import SecurityHeadersMiddleware
from postboard.repositories.memory import InMemoryStore, StoreError
from postboard.routes import auth_router, posts_router
from postboard.routes.dependencies import enforce_rate_limit
from postboard.schemas.error import ErrorKind, ErrorResponse

logger = logging.getLogger(__name__)

_OPENAPI_RESPONSE_CODES: dict[str, dict[str, set[str]]] = {
    "/api/v1/health": {"get": {"200", "429"}},
    "/api/v1/auth/register": {"post": {"201", "400", "429"}},
    "/api/v1/auth/login": {"post": {"200", "400", "401", "429"}},
    "/api/v1/auth/me": {"get": {"200", "401", "404", "429"}},
    "/api/v1/posts/public": {"get": {"200", "400", "429"}},
    "/api/v1/posts": {
        "get": {"200", "401", "429"},
        "post": {"201", "400", "401", "429"},
    },
    "/api/v1/posts/{postId}": {
        "get": {"200", "400", "401", "403", "404", "429"},
        "put": {"200", "400", "401", "403", "404", "429"},
        "delete": {"200", "400", "401", "403", "404", "429"},
    },
}


def _apply_contract_response_codes(schema: dict) -> None:
    """Limit documented response codes to the published API contract."""
    for path, methods in _OPENAPI_RESPONSE_CODES.items():
        path_item = schema.get("paths", {}).get(path)
        if not path_item:
            continue

        for method, allowed_codes in methods.items():
            operation = path_item.get(method)
            if not operation:
                continue

            responses = operation.setdefault("responses", {})
            for status_code in list(responses.keys()):
                if status_code not in allowed_codes:
                    responses.pop(status_code, None)

            for status_code in sorted(allowed_codes):
                responses.setdefault(status_code, {"description": "See API contract"})


def _validation_message(exc: RequestValidationError) -> str:
    messages: list[str] = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location)
        message = str(error.get("msg", "Invalid value"))
        messages.append(f"{field}: {message}" if field else message)
    return ", ".join(messages) or "Invalid request"


def _error_response(payload: ErrorResponse, *, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_KIND[payload.code],
        content=payload.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


def create_app() -> FastAPI:
    # Every API route shares one per-client request budget.
    app = FastAPI(
        title="Postboard API",
        version="1.0.0",
        dependencies=[Depends(enforce_rate_limit)],
    )
    app.state.store = InMemoryStore()
    app.state.rate_limiter = None

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return _error_response(exc.payload, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        payload = ErrorResponse(code=ErrorKind.VALIDATION, error=_validation_message(exc))
        return _error_response(payload)

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
        # Store details stay in the logs.
        logger.error(
            "store.failed method=%s path=%s error_type=%s error=%s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc,
        )
        payload = ErrorResponse(code=ErrorKind.INTERNAL, error="Internal server error")
        return _error_response(payload)

    api_prefix = "/api/v1"

    @app.get(f"{api_prefix}/health", tags=["Health"])
    async def health() -> dict[str, object]:
        return {"success": True, "message": "Server is running"}

    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(posts_router, prefix=api_prefix)

    def custom_openapi() -> dict:
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        _apply_contract_response_codes(schema)
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi

    return app


app = create_app()

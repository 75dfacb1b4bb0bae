"""
Authorization error taxonomy.

Core modules (catalog, scope resolver, hierarchy, projector) raise these
without knowing about HTTP. `register_error_handlers` turns them into JSON
responses with the status code each class carries.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AuthorizationError(Exception):
    """Base class for every denial the core can produce."""

    status_code: int = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(AuthorizationError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required"


class Forbidden(AuthorizationError):
    """Principal is known but lacks the required permission(s)."""

    def __init__(self, missing: Iterable[str] = (), detail: str | None = None) -> None:
        self.missing = tuple(sorted(set(missing)))
        if detail is None and self.missing:
            detail = f"Missing permission: {', '.join(self.missing)}"
        super().__init__(detail)


class InvalidRoleEscalation(Forbidden):
    """Creation or update would hand out a role at or above the actor's rank."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail=detail or "Cannot assign a role at or above your own rank")


class ConfigurationError(AuthorizationError):
    """
    A referenced permission, page, role or resource type does not exist.

    Always fails closed: rendered as 403, never as "allow".
    """

    default_detail = "Access denied"


class ScopeFilterMissing(ConfigurationError):
    """A scoped store was queried without any scope filter attached."""


class NotFound(AuthorizationError):
    """
    Absent, or present but outside the caller's scope.

    The caller cannot tell the two cases apart.
    """

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Conflict(AuthorizationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class CreatorCycleError(Conflict):
    default_detail = "Creator relation would form a cycle"


class InvalidPermissionName(AuthorizationError):
    status_code = 422
    default_detail = "Invalid permission name"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthorizationError)
    async def _authorization_error_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
        logger.info(
            "Request denied status=%s error=%s path=%s method=%s",
            exc.status_code,
            type(exc).__name__,
            request.url.path,
            request.method,
        )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error": type(exc).__name__},
            headers=headers,
        )

from __future__ import annotations

import logging

import jwt
from fastapi import Request
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from propauth.errors import Unauthenticated
from propauth.models.security import User
from propauth.security.config import SecurityConfig
from propauth.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def extract_bearer_token(request: Request, config: SecurityConfig) -> str | None:
    """
    Read `Authorization: <prefix> <token>`.

    - Missing header: None (the caller decides whether auth is required)
    - Wrong prefix or empty token: Unauthenticated
    """

    header_name = config.auth.authorization_header
    bearer_prefix = config.auth.bearer_prefix

    raw = request.headers.get(header_name)
    if not raw:
        logger.info("Missing Authorization header path=%s method=%s", request.url.path, request.method)
        return None

    prefix = f"{bearer_prefix} "
    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise Unauthenticated(f"Invalid {header_name}. Expected '{bearer_prefix} <token>'.")

    token = raw[len(prefix) :].strip()
    if not token:
        logger.warning("Empty bearer token path=%s method=%s", request.url.path, request.method)
        raise Unauthenticated(f"Invalid {header_name}. Missing token after '{bearer_prefix}'.")

    return token


def user_id_from_token(token: str, settings: Settings) -> int:
    """
    Map a bearer token to a principal id.

    - `dummy`: the token is the integer user id
    - `jwt`: HS256 (or the configured algorithm) token carrying `id` or `sub`
    """

    if settings.auth_provider == "jwt":
        if not settings.jwt_secret:
            raise Unauthenticated("Token verification is not configured")
        try:
            claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        except jwt.PyJWTError as exc:
            logger.warning("Rejected bearer token: %s", type(exc).__name__)
            raise Unauthenticated("Invalid or expired token") from exc
        raw_id = claims.get("id", claims.get("sub"))
    else:
        raw_id = token

    try:
        return int(raw_id)
    except (TypeError, ValueError) as exc:
        logger.warning("Bearer token does not name a user id (provider=%s)", settings.auth_provider)
        raise Unauthenticated("Invalid bearer token") from exc


def extract_user_id(request: Request, config: SecurityConfig, settings: Settings | None = None) -> int | None:
    token = extract_bearer_token(request, config)
    if token is None:
        return None
    return user_id_from_token(token, settings or get_settings())


def load_user(db: Session, user_id: int) -> User:
    user = db.execute(
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.role))
        .execution_options(skip_scope_filter=True)
    ).scalar_one_or_none()

    if user is None or not user.is_active:
        raise Unauthenticated("Invalid or inactive user")

    return user

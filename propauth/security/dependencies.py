from __future__ import annotations

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from propauth.db.session import attach_authz, get_db
from propauth.errors import Forbidden, Unauthenticated
from propauth.models.security import User
from propauth.security.auth import extract_user_id, load_user
from propauth.security.catalog import PermissionCatalog, accepted_names
from propauth.security.config import SecurityConfig
from propauth.security.context import AuthzContext
from propauth.security.scope import ScopeResolver
from propauth.settings import get_settings

logger = logging.getLogger(__name__)


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def get_current_user(request: Request) -> User:
    user = getattr(request.state, "user", None)
    if user is None:
        raise Unauthenticated()
    return user


def get_authz(request: Request) -> AuthzContext:
    authz = getattr(request.state, "authz", None)
    if authz is None:
        raise Unauthenticated()
    return authz


def enforce_security(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    db: Session = Depends(get_db),
) -> None:
    """
    Global security dependency.

    Runs after routing, so it can read decorator metadata as well as the
    YAML route table. Steps:
    1. authenticate (401 on any failure)
    2. check required permissions, any-of or all-of (403 naming the missing ones)
    3. resolve the scope filter for the declared resource types and leave
       everything on `request.state.authz` and on the request session,
       which the route handler shares

    Nothing is written to the database.
    """

    path = request.url.path
    method = request.method.upper()

    rule = config.match(path, method)

    endpoint = request.scope.get("endpoint")
    decorator_permissions = set(getattr(endpoint, "__security_required_permissions__", set())) if endpoint else set()
    decorator_require_all = bool(getattr(endpoint, "__security_require_all__", False)) if endpoint else False
    decorator_scope = set(getattr(endpoint, "__security_scope__", set())) if endpoint else set()

    auth_required = rule.auth_required or bool(decorator_permissions) or bool(decorator_scope)
    if not auth_required:
        return

    user_id = extract_user_id(request, config)
    if user_id is None:
        raise Unauthenticated()

    user = load_user(db, user_id)
    request.state.user = user

    catalog = PermissionCatalog(db)
    required = set(rule.required_permissions) | decorator_permissions
    require_all = rule.require_all or decorator_require_all
    _check_permissions(catalog, user, required, require_all)

    scope_types = set(rule.scope) | decorator_scope
    scope = None
    if scope_types:
        resolver = ScopeResolver(db, max_depth=get_settings().max_scope_depth)
        scope = resolver.build_filter(user, sorted(scope_types, key=lambda t: t.value))

    request.state.authz = AuthzContext(
        user_id=user.id,
        role_id=user.role_id,
        role_name=user.role.name,
        is_admin=user.is_admin,
        permissions=catalog.resolved_for(user),
        scope=scope,
    )
    attach_authz(db, request)
    logger.debug(
        "Access granted user_id=%s role=%s path=%s method=%s scope=%s",
        user.id,
        user.role.name,
        path,
        method,
        scope.summary() if scope is not None else None,
    )


def _check_permissions(catalog: PermissionCatalog, user: User, required: set[str], require_all: bool) -> None:
    """
    Each required name is satisfied by itself or its `_own` counterpart.

    `require_all` needs every name satisfied; otherwise one is enough.
    """

    if not required:
        return

    unsatisfied = sorted(name for name in required if not catalog.has_any(user, accepted_names(name)))
    denied = bool(unsatisfied) if require_all else len(unsatisfied) == len(required)
    if denied:
        logger.debug("Access denied user_id=%s missing=%s", user.id, unsatisfied)
        raise Forbidden(missing=unsatisfied)

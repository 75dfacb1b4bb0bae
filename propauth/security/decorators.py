from __future__ import annotations

from collections.abc import Callable, Iterable

from propauth.security.resources import ResourceType


def require_permissions(permissions: Iterable[str], require_all: bool = False) -> Callable:
    """
    Decorator-style alternative to a route entry in security_config.yaml.

    This decorator does NOT check anything itself. It attaches metadata that
    the global security dependency reads after routing.
    """

    def decorator(fn: Callable) -> Callable:
        existing = set(getattr(fn, "__security_required_permissions__", set()))
        setattr(fn, "__security_required_permissions__", existing | set(permissions))
        if require_all:
            setattr(fn, "__security_require_all__", True)
        return fn

    return decorator


def scoped(*resource_types: ResourceType) -> Callable:
    """
    Ask the global security dependency to resolve a scope filter for these
    resource types before the handler runs.
    """

    def decorator(fn: Callable) -> Callable:
        existing = set(getattr(fn, "__security_scope__", set()))
        setattr(fn, "__security_scope__", existing | set(resource_types))
        return fn

    return decorator

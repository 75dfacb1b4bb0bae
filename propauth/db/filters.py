from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session, with_loader_criteria

from propauth.security.context import ScopeFilter
from propauth.security.resources import scoped_models

_DENY_ALL = ScopeFilter(is_admin=False)


@event.listens_for(Session, "do_orm_execute")
def _apply_scope_filter(execute_state) -> None:
    """
    Transparent data scoping.

    Handlers keep writing plain queries:
        db.scalars(select(Tenant)).all()
    and get back only rows inside `Session.info["scope"]`. List and detail
    lookups share this one predicate.

    - no request context: untouched (provisioning, scripts)
    - authenticated request that declared no scope: every scoped model is
      hidden from non-admins
    - admin scope: untouched
    - otherwise every scoped model is limited to its resolved ids; a type the
      request did not resolve is limited to nothing
    """

    if not execute_state.is_select:
        return
    # Refreshing attributes of an already-loaded row is not a visibility decision.
    if execute_state.is_column_load:
        return
    if execute_state.execution_options.get("skip_scope_filter", False):
        return

    info = execute_state.session.info
    scope = info.get("scope")
    if scope is None:
        authz = info.get("authz")
        if authz is None or authz.is_admin:
            return
        scope = _DENY_ALL
    if scope.is_admin:
        return

    options = []
    for resource_type, model in scoped_models().items():
        ids = sorted(scope.ids_for(resource_type))
        options.append(with_loader_criteria(model, model.id.in_(ids), include_aliases=True))

    execute_state.statement = execute_state.statement.options(*options)

# cloudos/api/permissions.py
from json import JSONDecodeError
from typing import Any, Callable, Optional

from fastapi import Depends, Request
from starlette.concurrency import run_in_threadpool

from cloudos.api.deps import AuthContext, get_auth, get_current_user
from cloudos.core import rbac
from cloudos.core.errors import AccessDenied, InsufficientPermissions
from cloudos.core.rbac import Role
from cloudos.schemas.user import CurrentUser


def require_roles(*allowed: Role) -> Callable[..., CurrentUser]:
    """
    Use: Depends(require_roles(Role.ADMIN, Role.SUPPORT))
    401 comes from get_current_user; a wrong role is a 403 naming both sides.
    """
    required = [Role(r).value for r in allowed]

    def _checker(
        request: Request,
        user: CurrentUser = Depends(get_current_user),
        auth: AuthContext = Depends(get_auth),
    ) -> CurrentUser:
        if not auth.policy.role_allowed(user.role, allowed):
            auth.audit.record_denied(user.id, request)
            raise InsufficientPermissions(required=required, current=user.role.value)
        return user

    return _checker


def require_capability(capability: str) -> Callable[..., CurrentUser]:
    def _checker(
        request: Request,
        user: CurrentUser = Depends(get_current_user),
        auth: AuthContext = Depends(get_auth),
    ) -> CurrentUser:
        if not auth.policy.has_capability(user.role, capability):
            auth.audit.record_denied(user.id, request)
            raise InsufficientPermissions(required=[capability], current=user.role.value)
        return user

    return _checker


async def _owner_from_request(request: Request, field: str) -> Optional[Any]:
    if field in request.path_params:
        return request.path_params[field]
    if request.headers.get("content-type", "").lower().startswith("application/json"):
        try:
            body = await request.json()
        except (JSONDecodeError, UnicodeDecodeError):
            return None
        if isinstance(body, dict):
            return body.get(field)
    return None


def require_ownership_or_admin(field: str = "user_id") -> Callable[..., Any]:
    """
    Use: Depends(require_ownership_or_admin("user_id"))
    ADMIN always passes; everyone else only on their own resource.
    """
    async def _checker(
        request: Request,
        user: CurrentUser = Depends(get_current_user),
        auth: AuthContext = Depends(get_auth),
    ) -> CurrentUser:
        if user.role is Role.ADMIN:
            return user
        owner = await _owner_from_request(request, field)
        if not auth.policy.owns_or_admin(user.role, user.id, owner):
            await run_in_threadpool(auth.audit.record_denied, user.id, request)
            raise AccessDenied()
        return user

    return _checker


require_admin = require_roles(*rbac.ADMIN_ONLY)
require_admin_or_support = require_roles(*rbac.ADMIN_OR_SUPPORT)
require_accounting = require_roles(*rbac.ACCOUNTING)
require_warehouse = require_roles(*rbac.WAREHOUSE)

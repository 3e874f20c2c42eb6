"""
FastAPI dependencies that gate routes on the permission evaluator.

The current user is resolved once per request by `get_current_user`; its
role's grants and admin flags are then passed explicitly to the evaluator.
A missing or invalid token is rejected with 401 before any check runs; a
failed check is rejected with 403 and names the scope that was required.
"""
from typing import Iterable, List, Optional
from fastapi import Depends, HTTPException, status

from portray.core import config
from portray.features.users.dependencies import get_current_user
from portray.features.users.models import User
from portray.features.permissions import evaluator
from portray.features.permissions.evaluator import AccessRequest
from portray.features.permissions.grammar import Level, describe
from portray.utils import get_logger


log = get_logger(__name__)


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _as_requests(checks: Iterable[AccessRequest | tuple]) -> List[AccessRequest]:
    requests = []
    for check in checks:
        request = AccessRequest(*check)
        requests.append(request._replace(level=Level(request.level)))
    return requests


def user_has_permission(
    user: User,
    section: str,
    subsection: Optional[str] = None,
    level: Level | str = Level.READ,
) -> bool:
    """Check a scope for a user inside a route handler."""
    return evaluator.has_exact_level(
        user.role_permissions,
        user.is_system_admin,
        section,
        subsection,
        level,
        role_name=user.active_role_name,
        infer_hierarchy=config.PERMISSION_LEVEL_INHERITANCE,
    )


def require_permission(section: str, subsection: Optional[str] = None, level: Level | str = Level.READ):
    """
    FastAPI dependency to require one permission scope.

    Usage:
        @router.post("/ports")
        async def create_port(
            user: User = Depends(require_permission("ports", level="write"))
        ):
            ...

    Returns:
        Dependency function that returns the current user if they have permission

    Raises:
        HTTPException: 403 if user doesn't have permission
    """
    required = Level(level)

    async def permission_dependency(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if not user_has_permission(current_user, section, subsection, required):
            scope = describe(section, subsection, required)
            log.debug(f"User {current_user.id} denied {scope}")
            raise _forbidden(f"Access denied. Required permission: {scope}")
        return current_user

    return permission_dependency


def require_all_permissions(checks: Iterable[AccessRequest | tuple]):
    """
    FastAPI dependency to require ALL of the given scopes.

    Usage:
        Depends(require_all_permissions([("customers", None, "read"), ("customers", "contracts", "write")]))
    """
    requests = _as_requests(checks)

    async def permission_dependency(
        current_user: User = Depends(get_current_user)
    ) -> User:
        allowed = evaluator.has_all(
            current_user.role_permissions,
            current_user.is_system_admin,
            requests,
            role_name=current_user.active_role_name,
            infer_hierarchy=config.PERMISSION_LEVEL_INHERITANCE,
        )
        if not allowed:
            required = ", ".join(describe(r.section, r.subsection, r.level) for r in requests)
            raise _forbidden(f"Access denied. Required permissions: {required}")
        return current_user

    return permission_dependency


def require_any_permission(checks: Iterable[AccessRequest | tuple]):
    """FastAPI dependency to require ANY of the given scopes."""
    requests = _as_requests(checks)

    async def permission_dependency(
        current_user: User = Depends(get_current_user)
    ) -> User:
        allowed = evaluator.has_any(
            current_user.role_permissions,
            current_user.is_system_admin,
            requests,
            role_name=current_user.active_role_name,
            infer_hierarchy=config.PERMISSION_LEVEL_INHERITANCE,
        )
        if not allowed:
            required = " OR ".join(describe(r.section, r.subsection, r.level) for r in requests)
            raise _forbidden(f"Access denied. Required permissions (any): {required}")
        return current_user

    return permission_dependency


def holds_admin_override(user: User) -> bool:
    return evaluator.is_admin_override(user.is_system_admin, user.active_role_name)


def ensure_system_admin(user: User):
    """Raise 403 unless the user holds the administrator override."""
    if not holds_admin_override(user):
        raise _forbidden("System administrator access required")


def is_reserved_role_name(name: Optional[str]) -> bool:
    return name is not None and name in config.SYSTEM_ADMIN_ROLE_NAMES


def require_system_admin():
    """FastAPI dependency to require the system administrator override."""
    async def admin_dependency(
        current_user: User = Depends(get_current_user)
    ) -> User:
        ensure_system_admin(current_user)
        return current_user

    return admin_dependency


def require_role(allowed_roles: List[str]):
    """FastAPI dependency to require one of the named roles."""
    async def role_dependency(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.active_role_name not in allowed_roles:
            raise _forbidden(f"Access denied. Required roles: {', '.join(allowed_roles)}")
        return current_user

    return role_dependency

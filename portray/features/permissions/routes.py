"""
Permission inspection API routes.

Lets the front end ask what the current user may do without re-implementing
the evaluator client-side.
"""
from typing import Optional
from fastapi import APIRouter, Depends

from portray.core import config
from portray.features.users.dependencies import get_current_user
from portray.features.users.models import User
from portray.features.permissions import evaluator
from portray.features.permissions.dependencies import user_has_permission
from portray.features.permissions.grammar import Level, decode_all, describe
from portray.features.permissions.schemas import (
    GrantResponse,
    LevelsResponse,
    MyPermissionsResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
    PermissionSummary,
)


router = APIRouter()


def _levels(user: User, section: str, subsection: Optional[str]) -> LevelsResponse:
    levels = evaluator.levels_for(
        user.role_permissions,
        user.is_system_admin,
        section,
        subsection,
        role_name=user.active_role_name,
        infer_hierarchy=config.PERMISSION_LEVEL_INHERITANCE,
    )
    return LevelsResponse(**levels.as_dict())


@router.post("/check", response_model=PermissionCheckResponse)
async def check_permission(
    check: PermissionCheckRequest,
    current_user: User = Depends(get_current_user)
):
    """Check whether the current user holds a scope."""
    allowed = user_has_permission(current_user, check.section, check.subsection, check.level)
    any_access = evaluator.has_any_access(
        current_user.role_permissions,
        current_user.is_system_admin,
        check.section,
        check.subsection,
        role_name=current_user.active_role_name,
    )
    reason = None
    if not allowed:
        reason = f"Missing permission {describe(check.section, check.subsection, check.level)}"
    return PermissionCheckResponse(
        has_permission=allowed,
        has_any_access=any_access,
        levels=_levels(current_user, check.section, check.subsection),
        reason=reason,
    )


@router.get("/me", response_model=MyPermissionsResponse)
async def get_my_permissions(
    current_user: User = Depends(get_current_user)
):
    """List the current user's grants, decoded, with a summary."""
    permissions = current_user.role_permissions
    grants = [
        GrantResponse(
            section=grant.section,
            subsection=grant.subsection,
            levels=[level for level in Level if level in grant.levels],
            malformed=grant.malformed,
        )
        for grant in decode_all(permissions)
    ]
    return MyPermissionsResponse(
        user_id=current_user.id,
        role_name=current_user.role_name,
        is_system_admin=evaluator.is_admin_override(current_user.is_system_admin, current_user.active_role_name),
        permissions=[p for p in permissions if isinstance(p, str)],
        grants=grants,
        summary=PermissionSummary(**evaluator.summarize(permissions)),
    )


@router.get("/me/levels", response_model=LevelsResponse)
async def get_my_levels(
    section: str,
    subsection: Optional[str] = None,
    current_user: User = Depends(get_current_user)
):
    """Read/write/manage flags for one scope."""
    return _levels(current_user, section, subsection)

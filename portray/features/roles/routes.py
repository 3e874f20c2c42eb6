"""
Role management API routes.

Roles are guarded by the users-access:roles scope.
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from portray.core.database.engine import get_db
from portray.features.users.models import User
from portray.features.roles.models import Role
from portray.features.roles.schemas import RoleCreate, RoleUpdate, RoleResponse
from portray.features.permissions.dependencies import (
    ensure_system_admin,
    is_reserved_role_name,
    require_permission,
)
from portray.utils import get_logger


log = get_logger(__name__)
router = APIRouter()

SECTION, SUBSECTION = "users-access", "roles"


async def get_role_by_id(
    role_id: str,
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Role:
    """Get role by ID or raise 404."""
    role = await db.get(Role, role_id)
    if role is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")
    return role


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: Optional[str] = None):
    stmt = select(Role).where(Role.name == name)
    if exclude_id:
        stmt = stmt.where(Role.id != exclude_id)
    if (await db.execute(stmt)).scalars().first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Role with this name already exists"
        )


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    role: RoleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "write"))]
):
    """Create a new role."""
    if is_reserved_role_name(role.name):
        ensure_system_admin(current_user)
    await _ensure_name_free(db, role.name)

    db_role = Role(**role.model_dump())
    db.add(db_role)
    await db.commit()
    await db.refresh(db_role)

    log.info(f"Role {db_role.name!r} created by {current_user.id}")
    return db_role


@router.get("", response_model=List[RoleResponse])
async def list_roles(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "read"))],
    skip: int = 0,
    limit: int = 100,
    is_active: Optional[bool] = None
):
    """List roles, optionally only active or inactive ones."""
    stmt = select(Role).order_by(Role.name)
    if is_active is not None:
        stmt = stmt.where(Role.is_active == is_active)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return result.scalars().all()


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role: Annotated[Role, Depends(get_role_by_id)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "read"))]
):
    """Get a specific role by ID."""
    return role


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_update: RoleUpdate,
    role: Annotated[Role, Depends(get_role_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "write"))]
):
    """Update a role's name, description or grants."""
    update_data = role_update.model_dump(exclude_unset=True)
    if is_reserved_role_name(role.name) or is_reserved_role_name(update_data.get("name")):
        ensure_system_admin(current_user)
    if update_data.get("name"):
        await _ensure_name_free(db, update_data["name"], exclude_id=role.id)

    for key, value in update_data.items():
        if value is not None:
            setattr(role, key, value)

    await db.commit()
    await db.refresh(role)
    return role


@router.patch("/{role_id}/toggle-status", response_model=RoleResponse)
async def toggle_role_status(
    role: Annotated[Role, Depends(get_role_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "manage"))]
):
    """Activate or deactivate a role. Users of an inactive role lose its grants."""
    if is_reserved_role_name(role.name):
        ensure_system_admin(current_user)
    role.is_active = not role.is_active
    await db.commit()
    await db.refresh(role)
    return role


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role: Annotated[Role, Depends(get_role_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "manage"))]
):
    """Delete a role that no user is assigned to."""
    if is_reserved_role_name(role.name):
        ensure_system_admin(current_user)
    assigned = await db.scalar(select(func.count()).select_from(User).where(User.role_id == role.id))
    if assigned:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Role is assigned to {assigned} user(s)"
        )

    await db.delete(role)
    await db.commit()
    return None

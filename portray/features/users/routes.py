"""
Authentication and user management routes.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from portray.core import config
from portray.core.database.engine import get_db
from portray.core.limiter import limiter
from portray.features.users.models import User, Session
from portray.features.users.schemas import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    TokenResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from portray.features.users.auth import (
    create_session_token,
    hash_password,
    session_expiry,
    verify_password,
)
from portray.features.users.dependencies import get_current_session, get_current_user
from portray.features.notifications.models import Notification
from portray.features.roles.models import Role
from portray.features.permissions.dependencies import (
    ensure_system_admin,
    holds_admin_override,
    is_reserved_role_name,
    require_permission,
)
from portray.features.audit import service as audit
from portray.utils import get_logger, utcnow


log = get_logger(__name__)
auth_router = APIRouter(tags=["auth"])
router = APIRouter(tags=["users"])

SECTION, SUBSECTION = "users-access", "users"


async def _reload_user(db: AsyncSession, user_id: str) -> User:
    """Load a user with its role, overwriting any stale state in the session."""
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _open_session(db: AsyncSession, user_id: str, remember_me: bool = False) -> tuple[Session, str]:
    session = Session(user_id=user_id, expires_at=session_expiry(remember_me), created_at=utcnow())
    db.add(session)
    await db.flush()
    return session, create_session_token(session.id, user_id, session.expires_at)


# Authentication endpoints
@auth_router.post("/login", response_model=LoginResponse)
@limiter.limit(config.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Exchange email and password for a bearer token."""
    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active or not verify_password(credentials.password, user.password_hash):
        log.info(f"Failed login for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    user.last_login_at = utcnow()
    session, token = await _open_session(db, user.id, credentials.remember_me)
    await db.commit()
    user = await _reload_user(db, user.id)

    return LoginResponse(
        token=token,
        expires_at=session.expires_at,
        user=CurrentUserResponse.model_validate(user),
    )


@auth_router.post("/logout")
async def logout(
    session: Annotated[Session, Depends(get_current_session)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Revoke the current session."""
    await db.delete(session)
    await db.commit()
    return {"message": "Logged out successfully"}


@auth_router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    session: Annotated[Session, Depends(get_current_session)],
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Replace the current session with a fresh one."""
    new_session, token = await _open_session(db, user.id)
    await db.delete(session)
    await db.commit()
    return TokenResponse(token=token, expires_at=new_session.expires_at)


@auth_router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    user: Annotated[User, Depends(get_current_user)]
):
    """Get the current user with their role's grants."""
    return user


# User management endpoints
async def get_user_by_id(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)]
) -> User:
    """Get user by ID or raise 404."""
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def _ensure_role_exists(db: AsyncSession, role_id: Optional[str]) -> Optional[Role]:
    if role_id is None:
        return None
    role = await db.get(Role, role_id)
    if role is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Role not found")
    return role


async def _ensure_email_free(db: AsyncSession, email: str, exclude_id: Optional[str] = None):
    stmt = select(User).where(User.email == email)
    if exclude_id:
        stmt = stmt.where(User.id != exclude_id)
    if (await db.execute(stmt)).scalars().first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )


@router.get("", response_model=list[UserResponse])
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "read"))],
    role_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100
):
    """List users, optionally filtered by role or status."""
    stmt = select(User).order_by(User.email)
    if role_id:
        stmt = stmt.where(User.role_id == role_id)
    if is_active is not None:
        stmt = stmt.where(User.is_active == is_active)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return result.scalars().all()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user: Annotated[User, Depends(get_user_by_id)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "read"))]
):
    """Get a user by ID."""
    return user


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "write"))]
):
    """Create a user account."""
    await _ensure_email_free(db, user_data.email)
    role = await _ensure_role_exists(db, user_data.role_id)
    if user_data.is_system_admin or is_reserved_role_name(role and role.name):
        ensure_system_admin(current_user)

    user = User(
        **user_data.model_dump(exclude={"password"}),
        password_hash=hash_password(user_data.password),
    )
    user.role = role
    db.add(user)
    await db.flush()
    await audit.log_user_creation(db, user, current_user.id, request)
    await db.commit()
    return await _reload_user(db, user.id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    update_data: UserUpdate,
    request: Request,
    user: Annotated[User, Depends(get_user_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "write"))]
):
    """Update a user. Role changes are audited separately from profile changes."""
    changes = update_data.model_dump(exclude_unset=True)
    # only administrators may edit administrator accounts
    if holds_admin_override(user):
        ensure_system_admin(current_user)
    elif changes.get("is_system_admin") is not None and changes["is_system_admin"] != user.is_system_admin:
        ensure_system_admin(current_user)
    if changes.get("email"):
        await _ensure_email_free(db, changes["email"], exclude_id=user.id)

    old_values = audit.snapshot(user)
    old_role_name = user.role_name

    if "role_id" in changes:
        new_role = await _ensure_role_exists(db, changes["role_id"])
        if changes["role_id"] != user.role_id and (
            is_reserved_role_name(new_role and new_role.name) or is_reserved_role_name(user.role_name)
        ):
            ensure_system_admin(current_user)
        user.role_id = changes["role_id"]
        user.role = new_role
    for key in ("email", "first_name", "last_name", "is_system_admin"):
        if changes.get(key) is not None:
            setattr(user, key, changes[key])
    if changes.get("password"):
        user.password_hash = hash_password(changes["password"])

    await db.flush()
    if user.role_id != old_values["role_id"]:
        await audit.log_user_role_change(db, user, current_user.id, old_role_name, user.role_name, request)
    await audit.log_user_update(db, user, current_user.id, old_values, request)
    await db.commit()
    return await _reload_user(db, user.id)


@router.patch("/{user_id}/toggle-status", response_model=UserResponse)
async def toggle_user_status(
    request: Request,
    user: Annotated[User, Depends(get_user_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "manage"))]
):
    """Activate or deactivate a user. Deactivation ends their sessions."""
    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot change your own status"
        )
    if holds_admin_override(user):
        ensure_system_admin(current_user)

    old_status = user.is_active
    user.is_active = not user.is_active
    if not user.is_active:
        await db.execute(delete(Session).where(Session.user_id == user.id))

    await audit.log_user_status_change(db, user, current_user.id, old_status, request)
    await db.commit()
    return await _reload_user(db, user.id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    request: Request,
    user: Annotated[User, Depends(get_user_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, SUBSECTION, "manage"))]
):
    """Delete a user account."""
    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete your own account"
        )
    if holds_admin_override(user):
        ensure_system_admin(current_user)

    await audit.log_user_deletion(db, user, current_user.id, request)
    await db.execute(delete(Notification).where(Notification.user_id == user.id))
    await db.execute(delete(Session).where(Session.user_id == user.id))
    await db.delete(user)
    await db.commit()
    return None

"""
Helpers that record user lifecycle changes in the audit log.

Entries are added to the caller's session and committed with the rest of the
request's changes.
"""
from typing import Any, Dict, Optional
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from portray.features.audit.models import UserAuditLog
from portray.utils import get_logger


log = get_logger(__name__)

# Fields compared when describing an update, with their wording
TRACKED_FIELDS = {
    "email": "email",
    "first_name": "first name",
    "last_name": "last name",
    "role_id": "role",
    "is_system_admin": "system admin flag",
}


def snapshot(user) -> Dict[str, Any]:
    """Audit-relevant fields of a user."""
    return {
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role_id": user.role_id,
        "is_system_admin": user.is_system_admin,
        "is_active": user.is_active,
    }


def _client(request: Optional[Request]) -> tuple[Optional[str], Optional[str]]:
    if request is None:
        return None, None
    ip_address = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    return ip_address, user_agent[:255] if user_agent else None


async def create_user_audit_log(
    db: AsyncSession,
    target_user_id: str,
    performed_by_id: Optional[str],
    action: str,
    description: str,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> UserAuditLog:
    """
    Add an audit log entry to the session.

    Args:
        db: Database session
        target_user_id: User whose account changed
        performed_by_id: User performing the action
        action: created, updated, status_changed, role_changed or deleted
        description: Human readable summary
        old_values: Values before the change
        new_values: Values after the change
        request: Source of client IP address and user agent
    """
    ip_address, user_agent = _client(request)
    entry = UserAuditLog(
        target_user_id=target_user_id,
        performed_by_id=performed_by_id,
        action=action,
        description=description,
        old_values=old_values,
        new_values=new_values,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    await db.flush()

    log.info(f"Audit: target={target_user_id} by={performed_by_id} action={action}")
    return entry


async def log_user_creation(db: AsyncSession, user, performed_by_id: str, request: Optional[Request] = None):
    return await create_user_audit_log(
        db,
        target_user_id=user.id,
        performed_by_id=performed_by_id,
        action="created",
        description=f"User account created with email: {user.email}",
        new_values=snapshot(user),
        request=request,
    )


async def log_user_update(
    db: AsyncSession,
    user,
    performed_by_id: str,
    old_values: Dict[str, Any],
    request: Optional[Request] = None,
) -> Optional[UserAuditLog]:
    """Record which tracked fields changed. Nothing is written when none did."""
    new_values = snapshot(user)
    changes = []
    for key, label in TRACKED_FIELDS.items():
        if old_values.get(key) != new_values.get(key):
            changes.append(f"{label} changed from {old_values.get(key)} to {new_values.get(key)}")

    if not changes:
        return None

    return await create_user_audit_log(
        db,
        target_user_id=user.id,
        performed_by_id=performed_by_id,
        action="updated",
        description=f"User profile updated: {', '.join(changes)}",
        old_values=old_values,
        new_values=new_values,
        request=request,
    )


async def log_user_status_change(
    db: AsyncSession,
    user,
    performed_by_id: str,
    old_status: bool,
    request: Optional[Request] = None,
):
    def word(active: bool) -> str:
        return "active" if active else "inactive"

    return await create_user_audit_log(
        db,
        target_user_id=user.id,
        performed_by_id=performed_by_id,
        action="status_changed",
        description=f"User status changed from {word(old_status)} to {word(user.is_active)}",
        old_values={"is_active": old_status},
        new_values={"is_active": user.is_active},
        request=request,
    )


async def log_user_role_change(
    db: AsyncSession,
    user,
    performed_by_id: str,
    old_role: Optional[str],
    new_role: Optional[str],
    request: Optional[Request] = None,
):
    return await create_user_audit_log(
        db,
        target_user_id=user.id,
        performed_by_id=performed_by_id,
        action="role_changed",
        description=f"User role changed from {old_role or 'none'} to {new_role or 'none'}",
        old_values={"role": old_role},
        new_values={"role": new_role},
        request=request,
    )


async def log_user_deletion(db: AsyncSession, user, performed_by_id: str, request: Optional[Request] = None):
    return await create_user_audit_log(
        db,
        target_user_id=user.id,
        performed_by_id=performed_by_id,
        action="deleted",
        description=f"User account deleted: {user.email}",
        old_values=snapshot(user),
        request=request,
    )

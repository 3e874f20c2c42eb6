"""
User audit log routes, guarded by the audit-logs section.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from portray.core.database.engine import get_db
from portray.features.users.models import User
from portray.features.audit.models import UserAuditLog
from portray.features.audit.schemas import UserAuditLogListResponse, UserAuditLogResponse
from portray.features.permissions.dependencies import require_permission


router = APIRouter()


@router.get("", response_model=UserAuditLogListResponse)
async def list_user_audit_logs(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission("audit-logs", level="read"))],
    skip: int = 0,
    limit: int = 50,
    target_user_id: Optional[str] = None,
    performed_by_id: Optional[str] = None,
    action: Optional[str] = None
):
    """List user audit logs, newest first, with optional filtering."""
    stmt = select(UserAuditLog)

    if target_user_id:
        stmt = stmt.where(UserAuditLog.target_user_id == target_user_id)
    if performed_by_id:
        stmt = stmt.where(UserAuditLog.performed_by_id == performed_by_id)
    if action:
        stmt = stmt.where(UserAuditLog.action == action)

    total = await db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    stmt = stmt.order_by(UserAuditLog.created_at.desc(), UserAuditLog.id.desc()).offset(skip).limit(limit)
    logs = (await db.execute(stmt)).scalars().all()

    pages = (total + limit - 1) // limit if limit > 0 else 0
    page = (skip // limit) + 1 if limit > 0 else 1

    return UserAuditLogListResponse(
        items=[UserAuditLogResponse.model_validate(entry) for entry in logs],
        total=total,
        page=page,
        page_size=limit,
        pages=pages
    )


@router.get("/users/{user_id}", response_model=UserAuditLogListResponse)
async def list_audit_logs_for_user(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission("audit-logs", level="read"))],
    skip: int = 0,
    limit: int = 50
):
    """Audit history of one user."""
    return await list_user_audit_logs(db, current_user, skip=skip, limit=limit, target_user_id=user_id)

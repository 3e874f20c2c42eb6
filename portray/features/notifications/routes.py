"""
Notification routes. Every user sees and changes only their own notifications.
"""
from typing import Annotated, List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from portray.core.database.engine import get_db
from portray.features.users.dependencies import get_current_user
from portray.features.users.models import User
from portray.features.notifications.models import Notification
from portray.features.notifications.schemas import NotificationResponse, UnreadCountResponse


router = APIRouter()


async def get_own_notification(
    notification_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)]
) -> Notification:
    """Another user's notification is reported as missing."""
    notification = await db.get(Notification, notification_id)
    if notification is None or notification.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    unread_only: bool = False,
    skip: int = 0,
    limit: int = 50
):
    """List the current user's notifications, newest first."""
    stmt = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
    result = await db.execute(stmt.offset(skip).limit(limit))
    return result.scalars().all()


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    count = await db.scalar(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == current_user.id,
            Notification.is_read.is_(False),
        )
    )
    return UnreadCountResponse(count=count or 0)


@router.patch("/read-all")
async def mark_all_read(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Mark every notification of the current user as read."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == current_user.id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return {"updated": result.rowcount}


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification: Annotated[Notification, Depends(get_own_notification)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return notification


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification: Annotated[Notification, Depends(get_own_notification)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    await db.delete(notification)
    await db.commit()
    return None

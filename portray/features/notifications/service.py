"""
Helpers for raising notifications from other features.
"""
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from portray.features.notifications.models import Notification
from portray.utils import get_logger


log = get_logger(__name__)


async def notify(
    db: AsyncSession,
    user_id: str,
    title: str,
    message: str,
    type: str = "info",
    data: Optional[Dict[str, Any]] = None,
) -> Notification:
    """Queue a notification in the caller's transaction."""
    notification = Notification(user_id=user_id, title=title, message=message, type=type, data=data)
    db.add(notification)
    await db.flush()
    log.debug(f"Notification {notification.id} queued for {user_id}")
    return notification

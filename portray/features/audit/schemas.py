"""
Pydantic schemas for audit log responses.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict


class UserAuditLogResponse(BaseModel):
    id: str
    target_user_id: str
    performed_by_id: Optional[str]
    action: str
    description: str
    old_values: Optional[Dict[str, Any]]
    new_values: Optional[Dict[str, Any]]
    ip_address: Optional[str]
    user_agent: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserAuditLogListResponse(BaseModel):
    """Schema for paginated audit log list."""
    items: List[UserAuditLogResponse]
    total: int
    page: int
    page_size: int
    pages: int

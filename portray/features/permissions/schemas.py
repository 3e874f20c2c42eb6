"""
Pydantic schemas for permission checks.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from portray.features.permissions.grammar import Level


class GrantResponse(BaseModel):
    """A decoded grant."""
    section: str
    subsection: Optional[str] = None
    levels: List[Level] = []
    malformed: bool = False


class LevelsResponse(BaseModel):
    read: bool
    write: bool
    manage: bool


class PermissionCheckRequest(BaseModel):
    """Schema for checking whether the caller holds a scope."""
    section: str = Field(..., min_length=1, description="Section, e.g. 'ports'")
    subsection: Optional[str] = Field(None, description="Optional subsection, e.g. 'terminals'")
    level: Level = Field(Level.READ, description="Required level")


class PermissionCheckResponse(BaseModel):
    has_permission: bool
    has_any_access: bool
    levels: LevelsResponse
    reason: Optional[str] = None


class PermissionSummary(BaseModel):
    total_permissions: int
    read_count: int
    write_count: int
    manage_count: int
    sections: List[str]


class MyPermissionsResponse(BaseModel):
    """Everything the caller's role grants."""
    user_id: str
    role_name: Optional[str]
    is_system_admin: bool
    permissions: List[str]
    grants: List[GrantResponse]
    summary: PermissionSummary

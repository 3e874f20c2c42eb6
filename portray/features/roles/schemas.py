"""
Pydantic schemas for role management.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from portray.features.permissions.grammar import validate


def _validated_permissions(values: List[str]) -> List[str]:
    cleaned = []
    for value in values:
        validate(value)
        if value not in cleaned:
            cleaned.append(value)
    return cleaned


class RoleBase(BaseModel):
    """Base role schema."""
    name: str = Field(..., min_length=1, max_length=100, description="Unique role name")
    description: Optional[str] = Field(None, max_length=1000, description="Role description")


class RoleCreate(RoleBase):
    """Schema for creating a new role."""
    permissions: List[str] = Field(
        default_factory=list,
        description="Grants such as 'ports:read,write' or 'ports:terminals:read'"
    )

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Role name must not be blank")
        return v.strip()

    @field_validator("permissions")
    @classmethod
    def permissions_well_formed(cls, v: List[str]) -> List[str]:
        return _validated_permissions(v)


class RoleUpdate(BaseModel):
    """Schema for updating a role. Only provided fields change."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    permissions: Optional[List[str]] = None

    @field_validator("permissions")
    @classmethod
    def permissions_well_formed(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return _validated_permissions(v)


class RoleResponse(RoleBase):
    """Schema for role response."""
    id: str
    permissions: List[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

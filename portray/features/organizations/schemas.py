"""
Pydantic schemas for organization requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class OrganizationBase(BaseModel):
    organization_name: str = Field(..., min_length=1, max_length=255)
    display_name: str = Field(..., min_length=1, max_length=255)
    organization_code: str = Field(..., min_length=1, max_length=50)
    register_office: str = Field(..., min_length=1, max_length=500)
    country: str = Field(..., min_length=1, max_length=100)
    telephone: str | None = Field(None, max_length=30)
    fax: str | None = Field(None, max_length=30)
    website: str | None = Field(None, max_length=255)
    logo_url: str | None = Field(None, max_length=500)


class OrganizationCreate(OrganizationBase):
    """Schema for creating an organization."""
    pass


class OrganizationUpdate(BaseModel):
    """Schema for updating an organization. Only provided fields change."""
    organization_name: str | None = Field(None, min_length=1, max_length=255)
    display_name: str | None = Field(None, min_length=1, max_length=255)
    organization_code: str | None = Field(None, min_length=1, max_length=50)
    register_office: str | None = Field(None, min_length=1, max_length=500)
    country: str | None = Field(None, min_length=1, max_length=100)
    telephone: str | None = Field(None, max_length=30)
    fax: str | None = Field(None, max_length=30)
    website: str | None = Field(None, max_length=255)
    logo_url: str | None = Field(None, max_length=500)


class OrganizationResponse(OrganizationBase):
    id: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

"""
Organization feature routes.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from portray.core.database.engine import get_db
from portray.features.users.models import User
from portray.features.organizations.models import Organization
from portray.features.organizations.schemas import (
    OrganizationCreate,
    OrganizationUpdate,
    OrganizationResponse,
)
from portray.features.organizations.dependencies import get_organization_by_id
from portray.features.ports.models import Port
from portray.features.ports.schemas import PortResponse
from portray.features.permissions.dependencies import require_permission


router = APIRouter(tags=["organizations"])

SECTION = "organizations"
REQUIRED_FIELDS = {"organization_name", "display_name", "organization_code", "register_office", "country"}


async def _ensure_unique(db: AsyncSession, data: dict, exclude_id: Optional[str] = None):
    """Organization name, display name and code must each be unique."""
    labels = {
        "organization_name": "name",
        "display_name": "display name",
        "organization_code": "code",
    }
    conditions = [getattr(Organization, field) == data[field] for field in labels if data.get(field)]
    if not conditions:
        return

    stmt = select(Organization).where(or_(*conditions))
    if exclude_id:
        stmt = stmt.where(Organization.id != exclude_id)
    existing = (await db.execute(stmt)).scalars().first()
    if existing is None:
        return

    for field, label in labels.items():
        if data.get(field) and getattr(existing, field) == data[field]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Organization with this {label} already exists"
            )


@router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    org_data: OrganizationCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="write"))]
):
    """Create a new organization."""
    await _ensure_unique(db, org_data.model_dump())

    organization = Organization(**org_data.model_dump())
    db.add(organization)
    await db.commit()
    await db.refresh(organization)
    return organization


@router.get("", response_model=list[OrganizationResponse])
async def list_organizations(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="read"))],
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100
):
    """List organizations, optionally only active or inactive ones."""
    query = select(Organization).order_by(Organization.organization_name)
    if is_active is not None:
        query = query.where(Organization.is_active == is_active)
    result = await db.execute(query.offset(skip).limit(limit))
    return result.scalars().all()


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization: Annotated[Organization, Depends(get_organization_by_id)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="read"))]
):
    """Get organization by ID."""
    return organization


@router.put("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    update_data: OrganizationUpdate,
    organization: Annotated[Organization, Depends(get_organization_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="write"))]
):
    """Update organization information."""
    changes = update_data.model_dump(exclude_unset=True)
    await _ensure_unique(db, changes, exclude_id=organization.id)

    for key, value in changes.items():
        if value is None and key in REQUIRED_FIELDS:
            continue
        setattr(organization, key, value)

    await db.commit()
    await db.refresh(organization)
    return organization


@router.patch("/{organization_id}/toggle-status", response_model=OrganizationResponse)
async def toggle_organization_status(
    organization: Annotated[Organization, Depends(get_organization_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="manage"))]
):
    """Activate or deactivate an organization."""
    organization.is_active = not organization.is_active
    await db.commit()
    await db.refresh(organization)
    return organization


@router.get("/{organization_id}/ports", response_model=list[PortResponse])
async def list_organization_ports(
    organization: Annotated[Organization, Depends(get_organization_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission("ports", level="read"))]
):
    """List the ports belonging to an organization."""
    result = await db.execute(
        select(Port).where(Port.organization_id == organization.id).order_by(Port.port_name)
    )
    return result.scalars().all()

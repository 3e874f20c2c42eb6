"""
Port, terminal and terminal activation routes.

Ports are guarded by the ports section, terminals by ports:terminals and the
activation workflow by ports:terminal-activation.
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from portray.core.database.engine import get_db
from portray.features.users.models import User
from portray.features.organizations.models import Organization
from portray.features.customers.models import Customer
from portray.features.ports.models import ActivationLog, Port, SubscriptionType, Terminal, TerminalStatus
from portray.features.ports.schemas import (
    ActivationLogResponse,
    PortCreate,
    PortResponse,
    PortUpdate,
    SubscriptionTypeResponse,
    TerminalActivation,
    TerminalCreate,
    TerminalResponse,
    TerminalStatusUpdate,
    TerminalUpdate,
)
from portray.features.permissions.dependencies import require_any_permission, require_permission
from portray.features.notifications.service import notify
from portray.utils import add_months, get_logger


log = get_logger(__name__)
router = APIRouter()
terminal_router = APIRouter()
subscription_router = APIRouter()

SECTION = "ports"
TERMINALS = "terminals"
ACTIVATION = "terminal-activation"


async def get_port_by_id(
    port_id: str,
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Port:
    """Get port by ID or raise 404."""
    port = await db.get(Port, port_id)
    if port is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Port not found")
    return port


async def get_terminal_by_id(
    terminal_id: str,
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Terminal:
    """Get terminal by ID or raise 404."""
    terminal = await db.get(Terminal, terminal_id)
    if terminal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Terminal not found")
    return terminal


async def _log_activation(
    db: AsyncSession,
    terminal: Terminal,
    action: str,
    description: str,
    performed_by_id: str,
    data: Optional[dict] = None,
) -> ActivationLog:
    entry = ActivationLog(
        terminal_id=terminal.id,
        action=action,
        description=description,
        performed_by_id=performed_by_id,
        data=data,
    )
    db.add(entry)
    await db.flush()
    log.info(f"Terminal {terminal.short_code}: {description}")
    return entry


# Ports
@router.get("", response_model=List[PortResponse])
async def list_ports(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="read"))],
    organization_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100
):
    """List ports, optionally for one organization."""
    stmt = select(Port).order_by(Port.port_name)
    if organization_id:
        stmt = stmt.where(Port.organization_id == organization_id)
    if is_active is not None:
        stmt = stmt.where(Port.is_active == is_active)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return result.scalars().all()


@router.get("/{port_id}", response_model=PortResponse)
async def get_port(
    port: Annotated[Port, Depends(get_port_by_id)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="read"))]
):
    return port


@router.post("", response_model=PortResponse, status_code=status.HTTP_201_CREATED)
async def create_port(
    port_data: PortCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="write"))]
):
    """Create a port under an existing organization."""
    if await db.get(Organization, port_data.organization_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Organization not found")

    port = Port(**port_data.model_dump())
    db.add(port)
    await db.commit()
    await db.refresh(port)
    return port


@router.put("/{port_id}", response_model=PortResponse)
async def update_port(
    update_data: PortUpdate,
    port: Annotated[Port, Depends(get_port_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="write"))]
):
    for key, value in update_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(port, key, value)
    await db.commit()
    await db.refresh(port)
    return port


@router.patch("/{port_id}/toggle-status", response_model=PortResponse)
async def toggle_port_status(
    port: Annotated[Port, Depends(get_port_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="manage"))]
):
    port.is_active = not port.is_active
    await db.commit()
    await db.refresh(port)
    return port


@router.delete("/{port_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_port(
    port: Annotated[Port, Depends(get_port_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="manage"))]
):
    """Delete a port that has no terminals."""
    terminals = await db.scalar(select(func.count()).select_from(Terminal).where(Terminal.port_id == port.id))
    if terminals:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Port has {terminals} terminal(s)"
        )
    await db.delete(port)
    await db.commit()
    return None


@router.get("/{port_id}/terminals", response_model=List[TerminalResponse])
async def list_port_terminals(
    port: Annotated[Port, Depends(get_port_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, TERMINALS, "read"))]
):
    result = await db.execute(
        select(Terminal).where(Terminal.port_id == port.id).order_by(Terminal.terminal_name)
    )
    return result.scalars().all()


# Terminals
@terminal_router.get("", response_model=List[TerminalResponse])
async def list_terminals(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, TERMINALS, "read"))],
    port_id: Optional[str] = None,
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    skip: int = 0,
    limit: int = 100
):
    """List terminals, optionally for one port or in one status."""
    stmt = select(Terminal).order_by(Terminal.terminal_name)
    if port_id:
        stmt = stmt.where(Terminal.port_id == port_id)
    if status_filter:
        stmt = stmt.where(Terminal.status == status_filter)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return result.scalars().all()


@terminal_router.get("/pending-activation", response_model=List[TerminalResponse])
async def list_pending_terminals(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, ACTIVATION, "read"))]
):
    """Terminals waiting for activation."""
    result = await db.execute(
        select(Terminal).where(Terminal.status == TerminalStatus.PENDING).order_by(Terminal.created_at)
    )
    return result.scalars().all()


@terminal_router.get("/{terminal_id}", response_model=TerminalResponse)
async def get_terminal(
    terminal: Annotated[Terminal, Depends(get_terminal_by_id)],
    current_user: Annotated[User, Depends(require_permission(SECTION, TERMINALS, "read"))]
):
    return terminal


@terminal_router.post("", response_model=TerminalResponse, status_code=status.HTTP_201_CREATED)
async def create_terminal(
    terminal_data: TerminalCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, TERMINALS, "write"))]
):
    """Register a terminal. It starts out waiting for activation."""
    if await db.get(Port, terminal_data.port_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Port not found")

    existing = await db.execute(select(Terminal).where(Terminal.short_code == terminal_data.short_code))
    if existing.scalars().first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Terminal with this short code already exists"
        )

    terminal = Terminal(
        **terminal_data.model_dump(),
        status=TerminalStatus.PENDING,
        created_by_id=current_user.id,
    )
    db.add(terminal)
    await db.flush()
    await _log_activation(db, terminal, "created", "Terminal created and queued for activation", current_user.id)
    await db.commit()
    await db.refresh(terminal)
    return terminal


@terminal_router.put("/{terminal_id}", response_model=TerminalResponse)
async def update_terminal(
    update_data: TerminalUpdate,
    terminal: Annotated[Terminal, Depends(get_terminal_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, TERMINALS, "write"))]
):
    """Update terminal details. Short code and activation fields are not editable here."""
    for key, value in update_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(terminal, key, value)
    if terminal.same_as_billing:
        terminal.shipping_address = terminal.billing_address
        terminal.shipping_city = terminal.billing_city
        terminal.shipping_pin_code = terminal.billing_pin_code
        terminal.shipping_phone = terminal.billing_phone
        terminal.shipping_fax = terminal.billing_fax

    await db.commit()
    await db.refresh(terminal)
    return terminal


@terminal_router.delete("/{terminal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_terminal(
    terminal: Annotated[Terminal, Depends(get_terminal_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, TERMINALS, "manage"))]
):
    """Delete a terminal that has no customers, along with its activation log."""
    customers = await db.scalar(
        select(func.count()).select_from(Customer).where(Customer.terminal_id == terminal.id)
    )
    if customers:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Terminal has {customers} customer(s)"
        )
    await db.execute(delete(ActivationLog).where(ActivationLog.terminal_id == terminal.id))
    await db.delete(terminal)
    await db.commit()
    return None


# Activation workflow
@terminal_router.put("/{terminal_id}/activate", response_model=TerminalResponse)
async def activate_terminal(
    activation: TerminalActivation,
    terminal: Annotated[Terminal, Depends(get_terminal_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, ACTIVATION, "write"))]
):
    """
    Activate a terminal for a subscription.

    The end date is the start date plus the subscription's months. The user
    who registered the terminal is notified.
    """
    subscription = await db.get(SubscriptionType, activation.subscription_type_id)
    if subscription is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Subscription type not found")

    terminal.status = TerminalStatus.ACTIVE
    terminal.subscription_type_id = subscription.id
    terminal.activation_start_date = activation.activation_start_date
    terminal.activation_end_date = add_months(activation.activation_start_date, subscription.months)
    terminal.work_order_no = activation.work_order_no
    terminal.work_order_date = activation.work_order_date

    await _log_activation(
        db,
        terminal,
        "activated",
        f"Terminal activated with {subscription.name} subscription",
        current_user.id,
        data={
            "subscription_type_id": subscription.id,
            "activation_start_date": terminal.activation_start_date.isoformat(),
            "activation_end_date": terminal.activation_end_date.isoformat(),
            "work_order_no": terminal.work_order_no,
        },
    )
    if terminal.created_by_id:
        await notify(
            db,
            terminal.created_by_id,
            title="Terminal activated",
            message=(
                f"Terminal {terminal.terminal_name} ({terminal.short_code}) is active until "
                f"{terminal.activation_end_date.isoformat()}"
            ),
            type="success",
            data={"terminal_id": terminal.id},
        )
    await db.commit()
    await db.refresh(terminal)
    return terminal


@terminal_router.patch("/{terminal_id}/status", response_model=TerminalResponse)
async def change_terminal_status(
    status_update: TerminalStatusUpdate,
    terminal: Annotated[Terminal, Depends(get_terminal_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, ACTIVATION, "manage"))]
):
    """Move a terminal to another status, e.g. suspend it."""
    old_status = terminal.status
    if old_status == status_update.status:
        return terminal

    terminal.status = status_update.status
    await _log_activation(
        db,
        terminal,
        "status_changed",
        f"Status changed from {old_status} to {status_update.status}",
        current_user.id,
        data={"old_status": old_status, "new_status": status_update.status},
    )
    await db.commit()
    await db.refresh(terminal)
    return terminal


@terminal_router.get("/{terminal_id}/activation-logs", response_model=List[ActivationLogResponse])
async def list_activation_logs(
    terminal: Annotated[Terminal, Depends(get_terminal_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, ACTIVATION, "read"))]
):
    """Activation history of a terminal, oldest first."""
    result = await db.execute(
        select(ActivationLog)
        .where(ActivationLog.terminal_id == terminal.id)
        .order_by(ActivationLog.created_at, ActivationLog.id)
    )
    return result.scalars().all()


@subscription_router.get("", response_model=List[SubscriptionTypeResponse])
async def list_subscription_types(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_any_permission([
        (SECTION, ACTIVATION, "read"),
        (SECTION, TERMINALS, "read"),
    ]))]
):
    """Subscription types, readable by terminal and activation staff."""
    result = await db.execute(select(SubscriptionType).order_by(SubscriptionType.months))
    return result.scalars().all()

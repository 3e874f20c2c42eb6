"""
Customer and contract routes.

Customers are guarded by the customers section, contracts and their tariffs
by customers:contracts.
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from portray.core.database.engine import get_db
from portray.features.users.models import User
from portray.features.ports.models import Terminal
from portray.features.customers.models import Customer, Contract, ContractTariff
from portray.features.customers.schemas import (
    ContractCreate,
    ContractResponse,
    ContractUpdate,
    CustomerCreate,
    CustomerResponse,
    CustomerStatusUpdate,
    CustomerUpdate,
    TariffCreate,
    TariffResponse,
)
from portray.features.customers.service import next_customer_code
from portray.features.permissions.dependencies import require_permission
from portray.utils import get_logger


log = get_logger(__name__)
router = APIRouter()
contract_router = APIRouter()

SECTION = "customers"
CONTRACTS = "contracts"


async def get_customer_by_id(
    customer_id: str,
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Customer:
    """Get customer by ID or raise 404."""
    customer = await db.get(Customer, customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return customer


async def get_contract_by_id(
    contract_id: str,
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Contract:
    """Get contract by ID or raise 404."""
    contract = await db.get(Contract, contract_id)
    if contract is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contract not found")
    return contract


async def _reload_contract(db: AsyncSession, contract_id: str) -> Contract:
    result = await db.execute(
        select(Contract).where(Contract.id == contract_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _ensure_contract_number_free(db: AsyncSession, number: str, exclude_id: Optional[str] = None):
    stmt = select(Contract).where(Contract.contract_number == number)
    if exclude_id:
        stmt = stmt.where(Contract.id != exclude_id)
    if (await db.execute(stmt)).scalars().first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Contract with this number already exists"
        )


# Customers
@router.get("", response_model=List[CustomerResponse])
async def list_customers(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="read"))],
    terminal_id: Optional[str] = None,
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    skip: int = 0,
    limit: int = 100
):
    """List customers, optionally for one terminal or in one status."""
    stmt = select(Customer).order_by(Customer.customer_code)
    if terminal_id:
        stmt = stmt.where(Customer.terminal_id == terminal_id)
    if status_filter:
        stmt = stmt.where(Customer.status == status_filter)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return result.scalars().all()


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer: Annotated[Customer, Depends(get_customer_by_id)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="read"))]
):
    return customer


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="write"))]
):
    """Create a customer and assign the terminal's next customer code."""
    terminal = await db.get(Terminal, customer_data.terminal_id)
    if terminal is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Terminal not found")

    customer = Customer(
        **customer_data.model_dump(),
        customer_code=await next_customer_code(db, terminal),
    )
    db.add(customer)
    await db.commit()
    await db.refresh(customer)

    log.info(f"Customer {customer.customer_code} created by {current_user.id}")
    return customer


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    update_data: CustomerUpdate,
    customer: Annotated[Customer, Depends(get_customer_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="write"))]
):
    """Update customer details. The customer code never changes."""
    for key, value in update_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(customer, key, value)
    await db.commit()
    await db.refresh(customer)
    return customer


@router.patch("/{customer_id}/status", response_model=CustomerResponse)
async def change_customer_status(
    status_update: CustomerStatusUpdate,
    customer: Annotated[Customer, Depends(get_customer_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="manage"))]
):
    customer.status = status_update.status
    await db.commit()
    await db.refresh(customer)
    return customer


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer: Annotated[Customer, Depends(get_customer_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, level="manage"))]
):
    """Delete a customer without contracts."""
    contracts = await db.scalar(
        select(func.count()).select_from(Contract).where(Contract.customer_id == customer.id)
    )
    if contracts:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Customer has {contracts} contract(s)"
        )
    await db.delete(customer)
    await db.commit()
    return None


@router.get("/{customer_id}/contracts", response_model=List[ContractResponse])
async def list_customer_contracts(
    customer: Annotated[Customer, Depends(get_customer_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, CONTRACTS, "read"))]
):
    result = await db.execute(
        select(Contract).where(Contract.customer_id == customer.id).order_by(Contract.valid_from)
    )
    return result.scalars().all()


# Contracts
@contract_router.get("", response_model=List[ContractResponse])
async def list_contracts(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, CONTRACTS, "read"))],
    customer_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100
):
    stmt = select(Contract).order_by(Contract.valid_from, Contract.contract_number)
    if customer_id:
        stmt = stmt.where(Contract.customer_id == customer_id)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return result.scalars().all()


@contract_router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(
    contract: Annotated[Contract, Depends(get_contract_by_id)],
    current_user: Annotated[User, Depends(require_permission(SECTION, CONTRACTS, "read"))]
):
    return contract


@contract_router.post("", response_model=ContractResponse, status_code=status.HTTP_201_CREATED)
async def create_contract(
    contract_data: ContractCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, CONTRACTS, "write"))]
):
    """Create a contract, optionally with its initial tariffs."""
    if await db.get(Customer, contract_data.customer_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Customer not found")
    await _ensure_contract_number_free(db, contract_data.contract_number)

    contract = Contract(
        **contract_data.model_dump(exclude={"tariffs"}),
        tariffs=[ContractTariff(**tariff.model_dump()) for tariff in contract_data.tariffs],
    )
    db.add(contract)
    await db.commit()
    return await _reload_contract(db, contract.id)


@contract_router.put("/{contract_id}", response_model=ContractResponse)
async def update_contract(
    update_data: ContractUpdate,
    contract: Annotated[Contract, Depends(get_contract_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, CONTRACTS, "write"))]
):
    """Update a contract. The resulting period must still end after it starts."""
    changes = {k: v for k, v in update_data.model_dump(exclude_unset=True).items() if v is not None}
    if "contract_number" in changes:
        await _ensure_contract_number_free(db, changes["contract_number"], exclude_id=contract.id)

    valid_from = changes.get("valid_from", contract.valid_from)
    valid_to = changes.get("valid_to", contract.valid_to)
    if valid_to <= valid_from:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="valid_to must be after valid_from"
        )

    for key, value in changes.items():
        setattr(contract, key, value)
    await db.commit()
    return await _reload_contract(db, contract.id)


@contract_router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contract(
    contract: Annotated[Contract, Depends(get_contract_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, CONTRACTS, "manage"))]
):
    await db.delete(contract)
    await db.commit()
    return None


@contract_router.get("/{contract_id}/tariffs", response_model=List[TariffResponse])
async def list_tariffs(
    contract: Annotated[Contract, Depends(get_contract_by_id)],
    current_user: Annotated[User, Depends(require_permission(SECTION, CONTRACTS, "read"))]
):
    return contract.tariffs


@contract_router.post("/{contract_id}/tariffs", response_model=TariffResponse, status_code=status.HTTP_201_CREATED)
async def add_tariff(
    tariff_data: TariffCreate,
    contract: Annotated[Contract, Depends(get_contract_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, CONTRACTS, "write"))]
):
    tariff = ContractTariff(contract_id=contract.id, **tariff_data.model_dump())
    db.add(tariff)
    await db.commit()
    await db.refresh(tariff)
    return tariff


@contract_router.delete("/{contract_id}/tariffs/{tariff_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tariff(
    tariff_id: str,
    contract: Annotated[Contract, Depends(get_contract_by_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_permission(SECTION, CONTRACTS, "write"))]
):
    tariff = await db.get(ContractTariff, tariff_id)
    if tariff is None or tariff.contract_id != contract.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tariff not found")
    await db.delete(tariff)
    await db.commit()
    return None

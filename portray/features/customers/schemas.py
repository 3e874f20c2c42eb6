"""
Pydantic schemas for customers, contracts and tariffs.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal
from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator


CustomerStatus = Literal["Active", "Inactive"]
ContractStatus = Literal["Draft", "Active", "Expired", "Terminated"]


class CustomerBase(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    display_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=30)
    pan: str | None = Field(None, max_length=20)
    gst: str | None = Field(None, max_length=20)
    address: str | None = Field(None, max_length=500)
    country: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)


class CustomerCreate(CustomerBase):
    """The customer code is generated; it cannot be supplied."""
    terminal_id: str


class CustomerUpdate(BaseModel):
    customer_name: str | None = Field(None, min_length=1, max_length=255)
    display_name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=30)
    pan: str | None = Field(None, max_length=20)
    gst: str | None = Field(None, max_length=20)
    address: str | None = Field(None, max_length=500)
    country: str | None = Field(None, min_length=1, max_length=100)
    state: str | None = Field(None, min_length=1, max_length=100)


class CustomerStatusUpdate(BaseModel):
    status: CustomerStatus


class CustomerResponse(CustomerBase):
    id: str
    terminal_id: str
    customer_code: str
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TariffCreate(BaseModel):
    service_type: str = Field(..., min_length=1, max_length=100)
    rate: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    currency: str = Field("INR", min_length=3, max_length=3)
    unit: str = Field("per container", min_length=1, max_length=50)


class TariffResponse(TariffCreate):
    id: str
    contract_id: str

    model_config = ConfigDict(from_attributes=True)


class ContractCreate(BaseModel):
    customer_id: str
    contract_number: str = Field(..., min_length=1, max_length=100)
    valid_from: date
    valid_to: date
    status: ContractStatus = "Draft"
    remarks: str | None = None
    tariffs: List[TariffCreate] = []

    @field_validator("valid_to")
    @classmethod
    def validate_period(cls, v: date, info: ValidationInfo) -> date:
        valid_from = info.data.get("valid_from")
        if valid_from is not None and v <= valid_from:
            raise ValueError("valid_to must be after valid_from")
        return v


class ContractUpdate(BaseModel):
    contract_number: str | None = Field(None, min_length=1, max_length=100)
    valid_from: date | None = None
    valid_to: date | None = None
    status: ContractStatus | None = None
    remarks: str | None = None


class ContractResponse(BaseModel):
    id: str
    customer_id: str
    contract_number: str
    valid_from: date
    valid_to: date
    status: str
    remarks: str | None = None
    tariffs: List[TariffResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

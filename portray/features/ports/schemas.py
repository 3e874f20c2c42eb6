"""
Pydantic schemas for ports, terminals and terminal activation.
"""
from datetime import date, datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portray.features.ports.models import TerminalStatus


class PortBase(BaseModel):
    port_name: str = Field(..., min_length=1, max_length=255)
    display_name: str = Field(..., min_length=1, max_length=6)
    address: str = Field(..., min_length=1, max_length=500)
    country: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)


class PortCreate(PortBase):
    organization_id: str


class PortUpdate(BaseModel):
    port_name: str | None = Field(None, min_length=1, max_length=255)
    display_name: str | None = Field(None, min_length=1, max_length=6)
    address: str | None = Field(None, min_length=1, max_length=500)
    country: str | None = Field(None, min_length=1, max_length=100)
    state: str | None = Field(None, min_length=1, max_length=100)


class PortResponse(PortBase):
    id: str
    organization_id: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TerminalBase(BaseModel):
    terminal_name: str = Field(..., min_length=1, max_length=255)
    short_code: str = Field(..., min_length=1, max_length=6)
    gst: str | None = Field(None, max_length=20)
    pan: str | None = Field(None, max_length=20)
    currency: str = Field("INR", min_length=3, max_length=3)
    timezone: str = Field("Asia/Kolkata", max_length=64)

    billing_address: str = Field(..., min_length=1, max_length=500)
    billing_city: str = Field(..., min_length=1, max_length=100)
    billing_pin_code: str = Field(..., min_length=1, max_length=20)
    billing_phone: str | None = Field(None, max_length=30)
    billing_fax: str | None = Field(None, max_length=30)

    same_as_billing: bool = False
    shipping_address: str | None = Field(None, max_length=500)
    shipping_city: str | None = Field(None, max_length=100)
    shipping_pin_code: str | None = Field(None, max_length=20)
    shipping_phone: str | None = Field(None, max_length=30)
    shipping_fax: str | None = Field(None, max_length=30)

    @field_validator("short_code")
    @classmethod
    def normalize_short_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v.isalnum():
            raise ValueError("Short code must be alphanumeric")
        return v


class TerminalCreate(TerminalBase):
    port_id: str

    @model_validator(mode="after")
    def copy_billing_to_shipping(self) -> "TerminalCreate":
        if self.same_as_billing:
            self.shipping_address = self.billing_address
            self.shipping_city = self.billing_city
            self.shipping_pin_code = self.billing_pin_code
            self.shipping_phone = self.billing_phone
            self.shipping_fax = self.billing_fax
        return self


class TerminalUpdate(BaseModel):
    terminal_name: str | None = Field(None, min_length=1, max_length=255)
    gst: str | None = Field(None, max_length=20)
    pan: str | None = Field(None, max_length=20)
    currency: str | None = Field(None, min_length=3, max_length=3)
    timezone: str | None = Field(None, max_length=64)
    billing_address: str | None = Field(None, min_length=1, max_length=500)
    billing_city: str | None = Field(None, min_length=1, max_length=100)
    billing_pin_code: str | None = Field(None, min_length=1, max_length=20)
    billing_phone: str | None = Field(None, max_length=30)
    billing_fax: str | None = Field(None, max_length=30)
    same_as_billing: bool | None = None
    shipping_address: str | None = Field(None, max_length=500)
    shipping_city: str | None = Field(None, max_length=100)
    shipping_pin_code: str | None = Field(None, max_length=20)
    shipping_phone: str | None = Field(None, max_length=30)
    shipping_fax: str | None = Field(None, max_length=30)


class TerminalResponse(TerminalBase):
    id: str
    port_id: str
    status: str
    is_active: bool
    subscription_type_id: int | None = None
    activation_start_date: date | None = None
    activation_end_date: date | None = None
    work_order_no: str | None = None
    work_order_date: date | None = None
    created_by_id: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionTypeResponse(BaseModel):
    id: int
    name: str
    months: int

    model_config = ConfigDict(from_attributes=True)


class TerminalActivation(BaseModel):
    """Activate a terminal for a subscription period starting on a given date."""
    activation_start_date: date
    subscription_type_id: int
    work_order_no: str | None = Field(None, max_length=100)
    work_order_date: date | None = None


class TerminalStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in TerminalStatus.ALL:
            raise ValueError(f"Status must be one of: {', '.join(TerminalStatus.ALL)}")
        return v


class ActivationLogResponse(BaseModel):
    id: str
    terminal_id: str
    action: str
    description: str
    performed_by_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

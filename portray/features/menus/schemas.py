"""
Pydantic schemas for menus and the navigation tree.
"""
from datetime import datetime
from typing import List, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class MenuBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    label: str = Field(..., min_length=1, max_length=255)
    icon: str | None = Field(None, max_length=100)
    route: str | None = Field(None, max_length=255)
    sort_order: int = 0

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip().lower()
        if not v or ":" in v or "," in v:
            raise ValueError("Menu name must be a non-empty permission section name")
        return v


class MenuCreate(MenuBase):
    menu_type: Literal["glink", "plink"] = "glink"
    parent_id: str | None = None

    @model_validator(mode="after")
    def check_parent(self) -> "MenuCreate":
        if self.menu_type == "plink" and not self.parent_id:
            raise ValueError("A plink menu needs a parent")
        if self.menu_type == "glink" and self.parent_id:
            raise ValueError("A glink menu cannot have a parent")
        return self


class MenuUpdate(BaseModel):
    label: str | None = Field(None, min_length=1, max_length=255)
    icon: str | None = Field(None, max_length=100)
    route: str | None = Field(None, max_length=255)
    sort_order: int | None = None


class MenuResponse(MenuBase):
    id: str
    menu_type: str
    parent_id: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NavigationNode(BaseModel):
    id: str
    name: str
    label: str
    icon: str | None = None
    route: str | None = None
    children: List["NavigationNode"] = []

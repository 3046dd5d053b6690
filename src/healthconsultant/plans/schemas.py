"""Pydantic schemas for plan endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from healthconsultant.common.schemas import CamelModel


class PlanCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    features: list[str] = []
    monthly_price: float = Field(default=0, ge=0)
    yearly_price: float = Field(default=0, ge=0)
    is_active: bool = True
    is_popular: bool = False
    interactions_limit: Optional[int] = Field(default=None, ge=0)


class PlanUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    features: Optional[list[str]] = None
    monthly_price: Optional[float] = Field(default=None, ge=0)
    yearly_price: Optional[float] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    is_popular: Optional[bool] = None
    interactions_limit: Optional[int] = Field(default=None, ge=0)
    # interactions_limit=None is ambiguous in a PATCH; this makes "unlimited" explicit.
    unlimited: bool = False


class PlanResponse(CamelModel):
    id: str
    title: str
    description: str = ""
    features: list[str] = []
    monthly_price: float = 0
    yearly_price: float = 0
    is_active: bool = True
    is_popular: bool = False
    interactions_limit: Optional[int] = None
    stripe_product_id: Optional[str] = None
    stripe_price_ids: dict[str, str] = {}
    created_at: datetime

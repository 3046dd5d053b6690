"""Pydantic schemas for account endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from healthconsultant.common.schemas import CamelModel


class UserCreate(CamelModel):
    email: EmailStr
    first_name: Optional[str] = None
    plan: Optional[str] = None
    is_admin: bool = False


class UserUpdate(CamelModel):
    first_name: Optional[str] = None
    plan: Optional[str] = None
    is_active: Optional[bool] = None
    is_admin: Optional[bool] = None
    subscription_status: Optional[str] = None


class PlanChangeRequest(CamelModel):
    plan: str = Field(..., min_length=1)


class PlanChangeResponse(CamelModel):
    message: str
    plan: Optional[str] = None


class UserResponse(CamelModel):
    id: str
    email: str
    first_name: Optional[str] = None
    plan: Optional[str] = None
    plan_id: Optional[str] = None
    is_active: bool = True
    is_admin: bool = False
    stripe_customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    subscription_status: Optional[str] = None
    created_at: datetime

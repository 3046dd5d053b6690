"""Pydantic schemas for interaction-limit endpoints."""

from typing import Literal, Optional

from healthconsultant.common.schemas import CamelModel

InteractionType = Literal["chat", "image_analysis", "health_report"]


class InteractionRequest(CamelModel):
    interaction_type: InteractionType = "chat"


class InteractionLimitResponse(CamelModel):
    current_month: int
    limit: Optional[int] = None
    remaining: Optional[int] = None
    has_unlimited: bool


class InteractionGranted(CamelModel):
    can_interact: bool = True
    remaining_interactions: Optional[int] = None
    limit: Optional[int] = None
    current_month: int
    has_unlimited: bool


class InteractionDenied(CamelModel):
    can_interact: bool = False
    remaining_interactions: Optional[int] = 0
    limit: Optional[int] = None
    message: str

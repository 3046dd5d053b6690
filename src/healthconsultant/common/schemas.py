"""Shared Pydantic schemas for HealthConsultant."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes as camelCase (what the web and mobile clients speak),
    accepts either spelling on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "healthconsultant"


class ErrorResponse(BaseModel):
    message: str
    code: str


class MessageResponse(BaseModel):
    message: str

"""Pydantic schemas for request parsing and response serialization.

Schema Hierarchy
=================
::
    LinkCreate (Input)
    ├─ target_url: str
    └─ code: str | None

    LinkResponse (Output)
    ├─ id: str
    ├─ code: str
    ├─ target_url: str
    ├─ clicks: int
    ├─ last_clicked: datetime | None (ISO-8601, UTC)
    └─ created_at: datetime (ISO-8601, UTC)

    ErrorResponse (Output)
    └─ error: str

    HealthResponse (Output)
    ├─ status: HealthStatus
    ├─ database: HealthStatus
    └─ version: str

Key Behaviours
===============
- Input schemas only check shape and types. Format rules for URLs and codes
  belong to the service so they apply to every caller, not just HTTP.
- Timestamps read back without tzinfo (SQLite) are serialized as UTC.
- Models are configured for ORM attribute mapping.
"""

import datetime

from pydantic import BaseModel, Field, field_serializer

from shortlinks.enums import HealthStatus

__all__ = ["ErrorResponse", "HealthResponse", "LinkCreate", "LinkResponse"]


class LinkCreate(BaseModel):
    target_url: str = Field(..., description="Absolute http(s) URL to redirect to")
    code: str | None = Field(None, description="Optional 6-8 character alphanumeric code")


class LinkResponse(BaseModel):
    id: str
    code: str
    target_url: str
    clicks: int
    last_clicked: datetime.datetime | None
    created_at: datetime.datetime

    model_config = {"from_attributes": True}

    @field_serializer("last_clicked", "created_at")
    def serialize_timestamp(self, value: datetime.datetime | None) -> str | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.UTC)
        return value.isoformat()


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus
    version: str

"""Pydantic schemas for sellers"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SellerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class SellerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime

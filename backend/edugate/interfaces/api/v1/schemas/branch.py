from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BranchCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    is_main: bool = False
    location: str | None = None


class BranchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    school_id: UUID
    name: str
    is_main: bool
    location: str | None = None
    created_at: datetime
    updated_at: datetime

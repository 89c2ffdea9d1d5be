from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from edugate.domain.roles import UserRole


class PrincipalCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1, max_length=255)
    role: UserRole
    home_branch_id: UUID | None = None


class PrincipalScopeUpdate(BaseModel):
    role: UserRole | None = None
    home_branch_id: UUID | None = None


class PrincipalResponse(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: UserRole
    school_id: UUID
    home_branch_id: UUID | None = None
    viewing_branch_id: UUID | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ScopeResponse(BaseModel):
    school_id: UUID
    branch_id: UUID | None = None
    is_branch_restricted: bool


class MeResponse(BaseModel):
    id: UUID
    email: str
    role: UserRole
    school_id: UUID
    home_branch_id: UUID | None = None
    viewing_branch_id: UUID | None = None
    is_demo: bool
    scope: ScopeResponse


class ProfileResponse(BaseModel):
    data: dict | None = None
    is_demo: bool


class ViewingBranchUpdate(BaseModel):
    branch_id: UUID | None = None

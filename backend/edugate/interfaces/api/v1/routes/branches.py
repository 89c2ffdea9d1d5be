from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from edugate.application.services.branch_service import create_branch, list_branches
from edugate.domain.identity import Identity
from edugate.domain.scope import TenantScope
from edugate.infrastructure.db.session import get_db
from edugate.interfaces.api.v1.dependencies.auth import get_current_identity, get_current_scope
from edugate.interfaces.api.v1.schemas.branch import BranchCreate, BranchResponse

router = APIRouter(prefix="/branches", tags=["branches"])


@router.get("", response_model=list[BranchResponse])
def get_branches(
    identity: Identity = Depends(get_current_identity),
    scope: TenantScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    return list_branches(db, identity, scope)


@router.post("", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
def create_branch_endpoint(
    payload: BranchCreate,
    identity: Identity = Depends(get_current_identity),
    scope: TenantScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    return create_branch(db, identity, scope, payload)

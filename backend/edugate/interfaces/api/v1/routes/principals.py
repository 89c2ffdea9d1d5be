from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from edugate.application.services.principal_service import (
    create_principal,
    deactivate_principal,
    list_principals,
    serialize_principal,
    update_principal_scope,
)
from edugate.domain.identity import Identity
from edugate.domain.roles import UserRole
from edugate.domain.scope import TenantScope
from edugate.infrastructure.db.session import get_db
from edugate.interfaces.api.v1.dependencies.auth import get_current_scope, require_admin, require_roles
from edugate.interfaces.api.v1.schemas.principal import PrincipalCreate, PrincipalResponse, PrincipalScopeUpdate

router = APIRouter(prefix="/principals", tags=["principals"])


@router.get("", response_model=list[PrincipalResponse])
def get_principals(
    _: Identity = Depends(require_roles([UserRole.admin, UserRole.proprietor])),
    scope: TenantScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    return [serialize_principal(user) for user in list_principals(db, scope)]


@router.post("", response_model=PrincipalResponse, status_code=status.HTTP_201_CREATED)
def create_principal_endpoint(
    payload: PrincipalCreate,
    identity: Identity = Depends(require_admin),
    scope: TenantScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    return serialize_principal(create_principal(db, identity, scope, payload))


@router.patch("/{principal_id}/scope", response_model=PrincipalResponse)
def update_principal_scope_endpoint(
    principal_id: UUID,
    payload: PrincipalScopeUpdate,
    identity: Identity = Depends(require_admin),
    scope: TenantScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    return serialize_principal(update_principal_scope(db, identity, scope, principal_id, payload))


@router.delete("/{principal_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_principal_endpoint(
    principal_id: UUID,
    identity: Identity = Depends(require_admin),
    scope: TenantScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    deactivate_principal(db, identity, scope, principal_id)

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from edugate.application.services.demo_service import DemoMode, with_demo_fallback
from edugate.application.services.principal_service import get_own_profile, serialize_principal, set_viewing_branch
from edugate.domain.identity import Identity
from edugate.domain.scope import TenantScope
from edugate.infrastructure.db.session import get_db
from edugate.interfaces.api.v1.dependencies.auth import get_current_identity, get_current_scope, get_demo_mode
from edugate.interfaces.api.v1.schemas.principal import (
    MeResponse,
    PrincipalResponse,
    ProfileResponse,
    ScopeResponse,
    ViewingBranchUpdate,
)

router = APIRouter(prefix="/me", tags=["me"])


@router.get("", response_model=MeResponse)
def get_me(
    identity: Identity = Depends(get_current_identity),
    scope: TenantScope = Depends(get_current_scope),
):
    return MeResponse(
        id=identity.id,
        email=identity.email,
        role=identity.role,
        school_id=identity.school_id,
        home_branch_id=identity.home_branch_id,
        viewing_branch_id=identity.viewing_branch_id,
        is_demo=identity.is_demo,
        scope=ScopeResponse(
            school_id=scope.school_id,
            branch_id=scope.branch_id,
            is_branch_restricted=scope.is_branch_restricted,
        ),
    )


@router.get(
    "/profile",
    response_model=ProfileResponse,
    summary="Own profile",
    description="Role-specific profile row of the caller. Demo accounts get a static profile flagged with is_demo.",
)
def get_profile(
    identity: Identity = Depends(get_current_identity),
    scope: TenantScope = Depends(get_current_scope),
    demo_mode: DemoMode = Depends(get_demo_mode),
    db: Session = Depends(get_db),
):
    result = with_demo_fallback(
        lambda: get_own_profile(db, identity, scope),
        role=identity.role,
        email=identity.email,
        demo_mode=demo_mode,
    )
    return ProfileResponse(data=result.data, is_demo=result.is_demo)


@router.put("/viewing-branch", response_model=PrincipalResponse)
def update_viewing_branch(
    payload: ViewingBranchUpdate,
    identity: Identity = Depends(get_current_identity),
    scope: TenantScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    user = set_viewing_branch(db, identity, scope, payload.branch_id)
    return serialize_principal(user)

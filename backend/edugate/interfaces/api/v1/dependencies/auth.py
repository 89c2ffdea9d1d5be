from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from edugate.application.errors import UnauthenticatedError
from edugate.application.services.demo_service import DemoMode, DisabledDemoMode
from edugate.application.services.identity_service import resolve_identity
from edugate.application.services.scope_service import resolve_tenant_scope
from edugate.domain.identity import Identity
from edugate.domain.roles import UserRole
from edugate.domain.scope import TenantScope
from edugate.infrastructure.db.session import get_db
from edugate.infrastructure.logging import bind_principal_context

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


def get_demo_mode(request: Request) -> DemoMode:
    return getattr(request.app.state, "demo_mode", None) or DisabledDemoMode()


def get_current_identity(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    demo_mode: DemoMode = Depends(get_demo_mode),
) -> Identity:
    try:
        identity = resolve_identity(db, token, demo_mode)
    except UnauthenticatedError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    bind_principal_context(identity.id, identity.school_id, identity.role.value, identity.is_demo)
    return identity


def get_current_scope(identity: Identity = Depends(get_current_identity)) -> TenantScope:
    return resolve_tenant_scope(identity)


def require_roles(allowed_roles: list[UserRole]) -> Callable:
    def checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role permissions")
        return identity

    return checker


def require_admin(identity: Identity = Depends(require_roles([UserRole.admin]))) -> Identity:
    return identity

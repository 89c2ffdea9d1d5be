from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.sql import ColumnElement

from edugate.application.errors import ConflictError, ForbiddenError, NotFoundError, PermissionDeniedError, ValidationError
from edugate.application.services.branch_service import get_branch_in_school
from edugate.application.services.query_facade import MODELS, scope_clause, serialize_record
from edugate.application.services.scope_service import bind_scope
from edugate.application.services.security_service import hash_password
from edugate.domain.entities import PROFILE_ENTITIES
from edugate.domain.identity import Identity
from edugate.domain.roles import BRANCH_SWITCHING_ROLES, UserRole
from edugate.domain.scope import TenantScope
from edugate.infrastructure.cache import scoped_cache
from edugate.infrastructure.db.models import User
from edugate.infrastructure.logging import get_logger
from edugate.interfaces.api.v1.schemas.principal import PrincipalCreate, PrincipalScopeUpdate

logger = get_logger(__name__)


def serialize_principal(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": UserRole(user.role),
        "school_id": user.school_id,
        "home_branch_id": user.home_branch_id,
        "viewing_branch_id": user.viewing_branch_id,
        "is_active": user.is_active,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def load_principal_row(db: Session, identity: Identity) -> User:
    """Load the principal record backing an identity.

    Synthetic demo identities have no record; the lookup is denied for them.
    """
    user = None if identity.is_demo else db.get(User, identity.id)
    if user is None or not user.is_active:
        raise PermissionDeniedError("Principal has no provisioned record")
    return user


def get_own_profile(db: Session, identity: Identity, scope: TenantScope) -> dict[str, Any]:
    user = load_principal_row(db, identity)
    entity = PROFILE_ENTITIES.get(identity.role)
    if entity is not None:
        model = MODELS[entity]
        bind_scope(db, identity, scope)
        row = db.execute(
            select(model).where(model.user_id == user.id, scope_clause(model, scope)).order_by(model.created_at)
        ).scalars().first()
        if row is not None:
            return {"kind": entity.value, **serialize_record(row)}
    return {
        "kind": "principal",
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": identity.role.value,
    }


def _same_home_branch(scope: TenantScope) -> ColumnElement[bool]:
    if scope.branch_id is None:
        return User.home_branch_id.is_(None)
    return User.home_branch_id == scope.branch_id


def list_principals(db: Session, scope: TenantScope) -> list[User]:
    """Principals of the caller's school; a restricted caller only sees its own branch."""
    query = select(User).where(User.school_id == scope.school_id)
    if scope.is_branch_restricted:
        query = query.where(_same_home_branch(scope))
    return list(db.execute(query.order_by(User.created_at, User.email)).scalars().all())


def _get_managed_principal(db: Session, principal_id: UUID, scope: TenantScope) -> User:
    query = select(User).where(User.id == principal_id, User.school_id == scope.school_id)
    if scope.is_branch_restricted:
        query = query.where(_same_home_branch(scope))
    user = db.execute(query).scalar_one_or_none()
    if user is None:
        raise NotFoundError("Principal not found")
    return user


def _ensure_assignable_branch(scope: TenantScope, home_branch_id: UUID | None) -> None:
    if scope.is_branch_restricted and home_branch_id != scope.branch_id:
        raise ForbiddenError("Branch-restricted administrators can only assign their own branch")


def create_principal(db: Session, identity: Identity, scope: TenantScope, payload: PrincipalCreate) -> User:
    email = payload.email.strip().lower()
    if db.execute(select(User.id).where(User.email == email)).scalar_one_or_none() is not None:
        raise ConflictError("Email already registered")

    home_branch_id = payload.home_branch_id
    if scope.is_branch_restricted:
        home_branch_id = home_branch_id or scope.branch_id
        _ensure_assignable_branch(scope, home_branch_id)

    bind_scope(db, identity, scope)
    if home_branch_id is not None:
        get_branch_in_school(db, home_branch_id, scope.school_id)

    user = User(
        email=email,
        hashed_password=hash_password(payload.password),
        full_name=payload.full_name,
        role=payload.role.value,
        school_id=scope.school_id,
        home_branch_id=home_branch_id,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(
        "principal_created",
        principal_id=str(user.id),
        role=user.role,
        branch_restricted=user.home_branch_id is not None,
    )
    return user


def update_principal_scope(
    db: Session,
    identity: Identity,
    scope: TenantScope,
    principal_id: UUID,
    payload: PrincipalScopeUpdate,
) -> User:
    """Change role or home branch. Cached reads for the principal are dropped unconditionally."""
    user = _get_managed_principal(db, principal_id, scope)
    changes = payload.model_dump(exclude_unset=True)
    bind_scope(db, identity, scope)

    if "home_branch_id" in changes:
        _ensure_assignable_branch(scope, changes["home_branch_id"])
        if changes["home_branch_id"] is not None:
            get_branch_in_school(db, changes["home_branch_id"], scope.school_id)
        user.home_branch_id = changes["home_branch_id"]
    if "role" in changes and changes["role"] is not None:
        user.role = UserRole(changes["role"]).value

    db.commit()
    db.refresh(user)
    scoped_cache.invalidate_principal(user.id)
    logger.info("principal_scope_updated", principal_id=str(user.id), fields=sorted(changes))
    return user


def deactivate_principal(db: Session, identity: Identity, scope: TenantScope, principal_id: UUID) -> None:
    if principal_id == identity.id:
        raise ValidationError("Principals cannot deactivate themselves")
    user = _get_managed_principal(db, principal_id, scope)
    user.is_active = False
    db.commit()
    scoped_cache.invalidate_principal(user.id)
    logger.info("principal_deactivated", principal_id=str(user.id))


def set_viewing_branch(db: Session, identity: Identity, scope: TenantScope, branch_id: UUID | None) -> User:
    """Switch the soft "currently viewing" branch. The visibility scope is not touched."""
    if identity.role not in BRANCH_SWITCHING_ROLES:
        raise ForbiddenError("Only administrators and proprietors can switch branches")
    user = load_principal_row(db, identity)
    if branch_id is not None:
        bind_scope(db, identity, scope)
        get_branch_in_school(db, branch_id, scope.school_id)
        if scope.is_branch_restricted and branch_id != scope.branch_id:
            raise ValidationError("Restricted principals can only view their home branch")
    user.viewing_branch_id = branch_id
    db.commit()
    db.refresh(user)
    logger.info("viewing_branch_switched", principal_id=str(user.id), branch_id=str(branch_id))
    return user

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from edugate.application.errors import ForbiddenError, ValidationError
from edugate.application.services.scope_service import bind_scope
from edugate.domain.identity import Identity
from edugate.domain.roles import BRANCH_SWITCHING_ROLES
from edugate.domain.scope import TenantScope
from edugate.infrastructure.db.models import Branch
from edugate.infrastructure.logging import get_logger
from edugate.interfaces.api.v1.schemas.branch import BranchCreate

logger = get_logger(__name__)


def get_branch_in_school(db: Session, branch_id: UUID, school_id: UUID) -> Branch:
    branch = db.execute(
        select(Branch).where(Branch.id == branch_id, Branch.school_id == school_id)
    ).scalar_one_or_none()
    if branch is None:
        raise ValidationError("Branch does not belong to this school")
    return branch


def list_branches(db: Session, identity: Identity, scope: TenantScope) -> list[Branch]:
    bind_scope(db, identity, scope)
    return list(
        db.execute(
            select(Branch)
            .where(Branch.school_id == scope.school_id)
            .order_by(Branch.is_main.desc(), Branch.name)
        )
        .scalars()
        .all()
    )


def create_branch(db: Session, identity: Identity, scope: TenantScope, payload: BranchCreate) -> Branch:
    if identity.role not in BRANCH_SWITCHING_ROLES:
        raise ForbiddenError("Only administrators and proprietors can create branches")
    if scope.is_branch_restricted:
        raise ForbiddenError("Branch-restricted principals cannot create branches")

    bind_scope(db, identity, scope)
    branch = Branch(school_id=scope.school_id, name=payload.name, is_main=payload.is_main, location=payload.location)
    if payload.is_main:
        for existing in list_branches(db, identity, scope):
            existing.is_main = False
    db.add(branch)
    db.commit()
    bind_scope(db, identity, scope)
    db.refresh(branch)
    logger.info("branch_created", branch_id=str(branch.id), is_main=branch.is_main)
    return branch

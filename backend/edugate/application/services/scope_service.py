from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.orm import Session

from edugate.config import settings
from edugate.domain.identity import Identity
from edugate.domain.scope import TenantScope, UnassignedBranchPolicy
from edugate.infrastructure.logging import get_logger

logger = get_logger(__name__)


def resolve_tenant_scope(
    identity: Identity,
    unassigned_policy: UnassignedBranchPolicy | None = None,
) -> TenantScope:
    """Derive the tenancy boundary from the identity record.

    Only the hard ``home_branch_id`` assignment restricts. ``viewing_branch_id`` is a
    UI default and is ignored here.
    """
    policy = unassigned_policy or settings.unassigned_branch_policy
    if identity.home_branch_id is not None:
        return TenantScope(school_id=identity.school_id, branch_id=identity.home_branch_id, is_branch_restricted=True)
    return TenantScope(
        school_id=identity.school_id,
        branch_id=None,
        is_branch_restricted=policy == UnassignedBranchPolicy.no_branches,
    )


def _rls_applies(db: Session) -> bool:
    return settings.enable_rls and db.get_bind().dialect.name == "postgresql"


def _set_local(db: Session, name: str, value: str) -> None:
    db.execute(text("SELECT set_config(:name, :value, true)"), {"name": name, "value": value})


def bind_scope(db: Session, identity: Identity, scope: TenantScope) -> None:
    """Copy the scope into transaction-local settings read by the row policies.

    Settings vanish at commit, so façade operations call this before each statement batch.
    """
    if not _rls_applies(db):
        return
    _set_local(db, "app.current_school_id", str(scope.school_id))
    _set_local(db, "app.current_branch_id", str(scope.branch_id) if scope.branch_id is not None else "")
    _set_local(db, "app.branch_restricted", "true" if scope.is_branch_restricted else "false")
    _set_local(db, "app.current_user_id", str(identity.id))
    _set_local(db, "app.current_role", identity.role.value)
    _set_local(db, "app.is_elevated", "false")


@contextmanager
def elevated_session(db: Session, identity: Identity, reason: str) -> Iterator[Session]:
    """Lift the row policies for one audited administrative check."""
    logger.warning(
        "elevated_session_opened",
        principal_id=str(identity.id),
        role=identity.role.value,
        reason=reason,
    )
    if _rls_applies(db):
        _set_local(db, "app.is_elevated", "true")
    try:
        yield db
    finally:
        if _rls_applies(db):
            _set_local(db, "app.is_elevated", "false")

"""Pure-Python rendering of the row visibility predicate.

Postgres enforces the same predicate through the policies in
``edugate.infrastructure.db.row_policies`` and the query façade narrows queries
with the SQLAlchemy rendering. This one evaluates already-materialized rows, such as
cached payloads, and must agree with the other two.
"""

from collections.abc import Iterable
from uuid import UUID

from edugate.domain.roles import UserRole
from edugate.domain.scope import TenantScope

AUDIENCE_ALL = "all"


def _same(left: UUID | str | None, right: UUID | str | None) -> bool:
    if left is None or right is None:
        return False
    return str(left) == str(right)


def is_row_visible(scope: TenantScope, *, school_id: UUID | str | None, branch_id: UUID | str | None) -> bool:
    if not _same(school_id, scope.school_id):
        return False
    if not scope.is_branch_restricted or branch_id is None:
        return True
    return _same(branch_id, scope.branch_id)


def is_notification_addressed_to(
    principal_id: UUID | str,
    role: UserRole,
    *,
    user_id: UUID | str | None,
    audience: Iterable[str] | None,
) -> bool:
    if user_id is not None:
        return _same(user_id, principal_id)
    tags = set(audience or ())
    return AUDIENCE_ALL in tags or role.value in tags


def is_notification_visible(
    scope: TenantScope,
    principal_id: UUID | str,
    role: UserRole,
    *,
    school_id: UUID | str | None,
    branch_id: UUID | str | None,
    user_id: UUID | str | None,
    audience: Iterable[str] | None,
) -> bool:
    return is_row_visible(scope, school_id=school_id, branch_id=branch_id) and is_notification_addressed_to(
        principal_id, role, user_id=user_id, audience=audience
    )

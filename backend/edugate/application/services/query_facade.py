"""Scoped reads and writes over tenant tables.

Every query is narrowed to the caller's scope here, and the same scope is bound
into the session for the Postgres row policies. Neither layer relies on the other.
Tenant identifiers always come from the resolved scope, never from request payloads.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import and_, inspect, or_, select, type_coerce
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session
from sqlalchemy.sql import ColumnElement, Select

from edugate.application.errors import (
    ForbiddenError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    is_permission_denied,
)
from edugate.application.services.pagination_service import paginate_scalars, paginate_sequence
from edugate.application.services.scope_service import bind_scope, elevated_session
from edugate.domain.entities import ScopedEntity, can_write
from edugate.domain.identity import Identity
from edugate.domain.roles import UserRole
from edugate.domain.scope import TenantScope
from edugate.domain.visibility import (
    AUDIENCE_ALL,
    is_notification_addressed_to,
    is_notification_visible,
    is_row_visible,
)
from edugate.infrastructure.cache import scoped_cache
from edugate.infrastructure.db.models import (
    AttendanceRecord,
    Branch,
    Fee,
    Notification,
    Parent,
    SchoolClass,
    Student,
    Teacher,
    User,
)
from edugate.infrastructure.logging import get_logger
from edugate.interfaces.api.v1.schemas.pagination import PaginationParams

logger = get_logger(__name__)

MODELS: dict[ScopedEntity, Any] = {
    ScopedEntity.students: Student,
    ScopedEntity.teachers: Teacher,
    ScopedEntity.parents: Parent,
    ScopedEntity.classes: SchoolClass,
    ScopedEntity.fees: Fee,
    ScopedEntity.attendance: AttendanceRecord,
    ScopedEntity.notifications: Notification,
}

SEARCH_COLUMNS: dict[ScopedEntity, list[Any]] = {
    ScopedEntity.students: [Student.full_name, Student.email],
    ScopedEntity.teachers: [Teacher.full_name, Teacher.email, Teacher.subject],
    ScopedEntity.parents: [Parent.full_name, Parent.email],
    ScopedEntity.classes: [SchoolClass.name, SchoolClass.grade],
    ScopedEntity.fees: [Fee.title],
    ScopedEntity.attendance: [],
    ScopedEntity.notifications: [Notification.title],
}

# Foreign keys on a payload that must point at a row visible in the same scope.
REFERENCES: dict[ScopedEntity, dict[str, ScopedEntity]] = {
    ScopedEntity.students: {"class_id": ScopedEntity.classes},
    ScopedEntity.classes: {"teacher_id": ScopedEntity.teachers},
    ScopedEntity.fees: {"student_id": ScopedEntity.students},
    ScopedEntity.attendance: {"student_id": ScopedEntity.students, "class_id": ScopedEntity.classes},
}

# Cached reads that change when a row of the key entity is written or cascaded.
DEPENDENTS: dict[ScopedEntity, tuple[ScopedEntity, ...]] = {
    ScopedEntity.students: (ScopedEntity.fees, ScopedEntity.attendance),
    ScopedEntity.teachers: (ScopedEntity.classes,),
    ScopedEntity.classes: (ScopedEntity.students, ScopedEntity.attendance),
}

OWNER_COLUMN = "user_id"
TENANT_COLUMNS = ("school_id",)


def scope_clause(model: Any, scope: TenantScope) -> ColumnElement[bool]:
    clause = model.school_id == scope.school_id
    if not scope.is_branch_restricted:
        return clause
    if scope.branch_id is None:
        return and_(clause, model.branch_id.is_(None))
    return and_(clause, or_(model.branch_id.is_(None), model.branch_id == scope.branch_id))


def addressee_clause(identity: Identity, dialect_name: str | None = None) -> ColumnElement[bool]:
    broadcast: ColumnElement[bool] = Notification.user_id.is_(None)
    if dialect_name == "postgresql":
        audience = type_coerce(Notification.audience, JSONB)
        broadcast = and_(
            broadcast, or_(audience.contains([identity.role.value]), audience.contains([AUDIENCE_ALL]))
        )
    # Elsewhere audience membership is checked on the loaded rows.
    return or_(Notification.user_id == identity.id, broadcast)


def scoped_select(entity: ScopedEntity, scope: TenantScope) -> Select:
    model = MODELS[entity]
    return select(model).where(scope_clause(model, scope)).order_by(model.created_at, model.id)


def serialize_record(instance: Any) -> dict[str, Any]:
    return {attr.key: getattr(instance, attr.key) for attr in inspect(instance).mapper.column_attrs}


def ensure_can_write(identity: Identity, entity: ScopedEntity) -> None:
    if not can_write(entity, identity.role):
        raise ForbiddenError(f"Role {identity.role.value} may not modify {entity.value}")


def _payload_in_scope(scope: TenantScope, payload: dict[str, Any]) -> bool:
    return all(
        is_row_visible(scope, school_id=item.get("school_id"), branch_id=item.get("branch_id"))
        for item in payload.get("items", [])
    )


def list_records(
    db: Session,
    identity: Identity,
    scope: TenantScope,
    entity: ScopedEntity,
    params: PaginationParams,
) -> dict[str, Any]:
    if entity == ScopedEntity.notifications:
        return list_notifications(db, identity, scope, params)

    def load() -> dict[str, Any]:
        bind_scope(db, identity, scope)
        items, meta = paginate_scalars(db, scoped_select(entity, scope), params, SEARCH_COLUMNS[entity])
        return {"items": [serialize_record(item) for item in items], "pagination": meta.model_dump()}

    cache_key = scoped_cache.build_scoped_cache_key(entity.value, identity, scope, params.cache_fragment())
    return scoped_cache.get_or_load(
        cache_key,
        load,
        is_payload_visible=lambda payload: _payload_in_scope(scope, payload),
    )


def get_record(db: Session, identity: Identity, scope: TenantScope, entity: ScopedEntity, record_id: UUID) -> Any:
    """Return the row, or raise NotFoundError whether it is missing or outside scope."""
    if entity == ScopedEntity.notifications:
        return get_notification(db, identity, scope, record_id)
    model = MODELS[entity]
    bind_scope(db, identity, scope)
    record = db.execute(select(model).where(model.id == record_id, scope_clause(model, scope))).scalar_one_or_none()
    if record is None:
        raise NotFoundError(f"{entity.value} record not found")
    return record


def _resolve_write_branch(
    db: Session, scope: TenantScope, requested_branch_id: UUID | None
) -> UUID | None:
    if scope.is_branch_restricted:
        if requested_branch_id is not None and requested_branch_id != scope.branch_id:
            raise ValidationError("branch_id is outside the principal's branch")
        return scope.branch_id
    if requested_branch_id is None:
        return None
    branch = db.execute(
        select(Branch.id).where(Branch.id == requested_branch_id, Branch.school_id == scope.school_id)
    ).scalar_one_or_none()
    if branch is None:
        raise ValidationError("branch_id does not belong to the principal's school")
    return requested_branch_id


def _ensure_visible_reference(
    db: Session, scope: TenantScope, field: str, target: ScopedEntity, value: UUID
) -> None:
    model = MODELS[target]
    found = db.execute(select(model.id).where(model.id == value, scope_clause(model, scope))).scalar_one_or_none()
    if found is None:
        raise ValidationError(f"{field} does not reference a visible {target.value} record")


def _ensure_school_principal(db: Session, scope: TenantScope, field: str, value: UUID) -> None:
    found = db.execute(
        select(User.id).where(User.id == value, User.school_id == scope.school_id, User.is_active.is_(True))
    ).scalar_one_or_none()
    if found is None:
        raise ValidationError(f"{field} does not reference an active principal of this school")


def _strip_tenant_columns(entity: ScopedEntity, values: dict[str, Any]) -> dict[str, Any]:
    cleaned = dict(values)
    for column in TENANT_COLUMNS:
        if column in cleaned:
            cleaned.pop(column)
            logger.warning("client_tenant_id_ignored", entity=entity.value, column=column)
    return cleaned


def _validate_references(db: Session, scope: TenantScope, entity: ScopedEntity, values: dict[str, Any]) -> None:
    for field, target in REFERENCES.get(entity, {}).items():
        if values.get(field) is not None:
            _ensure_visible_reference(db, scope, field, target, values[field])
    if values.get(OWNER_COLUMN) is not None:
        _ensure_school_principal(db, scope, OWNER_COLUMN, values[OWNER_COLUMN])


def _commit_or_deny(db: Session, table: str) -> None:
    try:
        db.commit()
    except DBAPIError as exc:
        db.rollback()
        if is_permission_denied(exc):
            logger.warning("row_policy_rejected_write", table=table)
            raise PermissionDeniedError("Write rejected by row visibility policy") from exc
        raise


def _commit_and_reload(db: Session, identity: Identity, scope: TenantScope, instance: Any) -> None:
    _commit_or_deny(db, instance.__tablename__)
    bind_scope(db, identity, scope)
    db.refresh(instance)


def invalidate_entity_cache(scope: TenantScope, entity: ScopedEntity) -> None:
    scoped_cache.invalidate_entity(scope.school_id, entity.value)
    for dependent in DEPENDENTS.get(entity, ()):
        scoped_cache.invalidate_entity(scope.school_id, dependent.value)


def create_record(
    db: Session,
    identity: Identity,
    scope: TenantScope,
    entity: ScopedEntity,
    values: dict[str, Any],
) -> Any:
    ensure_can_write(identity, entity)
    values = _strip_tenant_columns(entity, values)
    bind_scope(db, identity, scope)

    values["branch_id"] = _resolve_write_branch(db, scope, values.get("branch_id"))
    _validate_references(db, scope, entity, values)
    if entity == ScopedEntity.attendance:
        values["recorded_by"] = None if identity.is_demo else identity.id

    record = MODELS[entity](**values, school_id=scope.school_id)
    db.add(record)
    _commit_and_reload(db, identity, scope, record)
    invalidate_entity_cache(scope, entity)
    logger.info("scoped_record_created", entity=entity.value, record_id=str(record.id))
    return record


def update_record(
    db: Session,
    identity: Identity,
    scope: TenantScope,
    entity: ScopedEntity,
    record_id: UUID,
    values: dict[str, Any],
) -> Any:
    ensure_can_write(identity, entity)
    values = _strip_tenant_columns(entity, values)
    record = get_record(db, identity, scope, entity, record_id)

    if "branch_id" in values:
        values["branch_id"] = _resolve_write_branch(db, scope, values["branch_id"])
    _validate_references(db, scope, entity, values)

    for field, value in values.items():
        setattr(record, field, value)
    _commit_and_reload(db, identity, scope, record)
    invalidate_entity_cache(scope, entity)
    logger.info("scoped_record_updated", entity=entity.value, record_id=str(record.id), fields=sorted(values))
    return record


def delete_record(
    db: Session,
    identity: Identity,
    scope: TenantScope,
    entity: ScopedEntity,
    record_id: UUID,
) -> None:
    ensure_can_write(identity, entity)
    record = get_record(db, identity, scope, entity, record_id)
    db.delete(record)
    _commit_or_deny(db, record.__tablename__)
    invalidate_entity_cache(scope, entity)
    logger.info("scoped_record_deleted", entity=entity.value, record_id=str(record_id))


def _notification_visible_to(identity: Identity, notification: Notification) -> bool:
    return is_notification_addressed_to(
        identity.id, identity.role, user_id=notification.user_id, audience=notification.audience
    )


def _notifications_in_scope(identity: Identity, scope: TenantScope, payload: dict[str, Any]) -> bool:
    return all(
        is_notification_visible(
            scope,
            identity.id,
            identity.role,
            school_id=item.get("school_id"),
            branch_id=item.get("branch_id"),
            user_id=item.get("user_id"),
            audience=item.get("audience"),
        )
        for item in payload.get("items", [])
    )


def list_notifications(
    db: Session,
    identity: Identity,
    scope: TenantScope,
    params: PaginationParams,
) -> dict[str, Any]:
    def load() -> dict[str, Any]:
        bind_scope(db, identity, scope)
        dialect_name = db.get_bind().dialect.name
        query = scoped_select(ScopedEntity.notifications, scope).where(addressee_clause(identity, dialect_name))
        if dialect_name == "postgresql":
            items, meta = paginate_scalars(db, query, params, SEARCH_COLUMNS[ScopedEntity.notifications])
            return {"items": [serialize_record(item) for item in items], "pagination": meta.model_dump()}

        rows = [row for row in db.execute(query).scalars().all() if _notification_visible_to(identity, row)]
        total = len(rows)
        if params.search:
            needle = params.search.lower()
            rows = [row for row in rows if needle in row.title.lower()]
        page, meta = paginate_sequence(rows, params, total=total)
        return {"items": [serialize_record(row) for row in page], "pagination": meta.model_dump()}

    cache_key = scoped_cache.build_scoped_cache_key(
        ScopedEntity.notifications.value, identity, scope, params.cache_fragment()
    )
    return scoped_cache.get_or_load(
        cache_key,
        load,
        is_payload_visible=lambda payload: _notifications_in_scope(identity, scope, payload),
    )


def get_notification(db: Session, identity: Identity, scope: TenantScope, notification_id: UUID) -> Notification:
    bind_scope(db, identity, scope)
    notification = db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            scope_clause(Notification, scope),
            addressee_clause(identity, db.get_bind().dialect.name),
        )
    ).scalar_one_or_none()
    if notification is None or not _notification_visible_to(identity, notification):
        raise NotFoundError("notifications record not found")
    return notification


def create_notification(
    db: Session,
    identity: Identity,
    scope: TenantScope,
    values: dict[str, Any],
) -> Notification:
    ensure_can_write(identity, ScopedEntity.notifications)
    values = _strip_tenant_columns(ScopedEntity.notifications, values)
    audience = sorted({str(tag) for tag in values.get("audience") or []})
    for tag in audience:
        if tag != AUDIENCE_ALL and tag not in {role.value for role in UserRole}:
            raise ValidationError(f"Unknown audience tag: {tag}")
    if values.get("user_id") is None and not audience:
        raise ValidationError("A broadcast notification needs a non-empty audience")

    bind_scope(db, identity, scope)
    branch_id = _resolve_write_branch(db, scope, values.get("branch_id"))
    if values.get("user_id") is not None:
        _ensure_school_principal(db, scope, "user_id", values["user_id"])

    notification = Notification(
        school_id=scope.school_id,
        branch_id=branch_id,
        user_id=values.get("user_id"),
        audience=audience,
        title=values["title"],
        body=values["body"],
        created_by=None if identity.is_demo else identity.id,
    )
    db.add(notification)
    _commit_and_reload(db, identity, scope, notification)
    invalidate_entity_cache(scope, ScopedEntity.notifications)
    logger.info(
        "notification_created",
        notification_id=str(notification.id),
        broadcast=notification.user_id is None,
        audience=audience,
    )
    return notification


def check_record_existence(
    db: Session,
    identity: Identity,
    scope: TenantScope,
    entity: ScopedEntity,
    record_id: UUID,
) -> dict[str, Any]:
    """Tell Denied from NotFound for administrators, through the audited elevated path."""
    if identity.role != UserRole.admin or identity.is_demo:
        raise ForbiddenError("Existence checks are restricted to administrators")
    model = MODELS[entity]

    bind_scope(db, identity, scope)
    visible = (
        db.execute(select(model.id).where(model.id == record_id, scope_clause(model, scope))).scalar_one_or_none()
        is not None
    )
    with elevated_session(db, identity, reason=f"existence_check:{entity.value}"):
        exists = db.execute(select(model.id).where(model.id == record_id)).scalar_one_or_none() is not None

    logger.warning(
        "elevated_existence_check",
        principal_id=str(identity.id),
        entity=entity.value,
        record_id=str(record_id),
        exists=exists,
        visible_in_scope=visible,
    )
    return {"entity": entity.value, "record_id": record_id, "exists": exists, "visible_in_scope": visible}


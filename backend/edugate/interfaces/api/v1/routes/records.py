from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from edugate.application.services.query_facade import (
    create_record,
    delete_record,
    get_record,
    list_records,
    serialize_record,
    update_record,
)
from edugate.domain.entities import ScopedEntity
from edugate.domain.identity import Identity
from edugate.domain.scope import TenantScope
from edugate.infrastructure.db.session import get_db
from edugate.interfaces.api.v1.dependencies.auth import get_current_identity, get_current_scope
from edugate.interfaces.api.v1.dependencies.pagination import get_pagination_params
from edugate.interfaces.api.v1.schemas.pagination import PaginationParams
from edugate.interfaces.api.v1.schemas.records import (
    AttendanceCreate,
    AttendanceListResponse,
    AttendanceResponse,
    AttendanceUpdate,
    ClassCreate,
    ClassListResponse,
    ClassResponse,
    ClassUpdate,
    FeeCreate,
    FeeListResponse,
    FeeResponse,
    FeeUpdate,
    ParentCreate,
    ParentListResponse,
    ParentResponse,
    ParentUpdate,
    StudentCreate,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
    TeacherCreate,
    TeacherListResponse,
    TeacherResponse,
    TeacherUpdate,
)


def build_scoped_router(
    entity: ScopedEntity,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    response_schema: type[BaseModel],
    list_schema: type[BaseModel],
) -> APIRouter:
    """CRUD routes for one tenant table, all narrowed to the caller's scope."""
    router = APIRouter(prefix=f"/{entity.value}", tags=[entity.value])
    label = entity.value.rstrip("s")

    @router.get("", response_model=list_schema, name=f"list_{entity.value}")
    def list_endpoint(
        identity: Identity = Depends(get_current_identity),
        scope: TenantScope = Depends(get_current_scope),
        pagination: PaginationParams = Depends(get_pagination_params),
        db: Session = Depends(get_db),
    ):
        return list_records(db, identity, scope, entity, pagination)

    @router.get("/{record_id}", response_model=response_schema, name=f"get_{label}")
    def get_endpoint(
        record_id: UUID,
        identity: Identity = Depends(get_current_identity),
        scope: TenantScope = Depends(get_current_scope),
        db: Session = Depends(get_db),
    ):
        return serialize_record(get_record(db, identity, scope, entity, record_id))

    @router.post(
        "",
        response_model=response_schema,
        status_code=status.HTTP_201_CREATED,
        name=f"create_{label}",
    )
    def create_endpoint(
        payload: create_schema,  # type: ignore[valid-type]
        identity: Identity = Depends(get_current_identity),
        scope: TenantScope = Depends(get_current_scope),
        db: Session = Depends(get_db),
    ):
        record = create_record(db, identity, scope, entity, payload.model_dump())
        return serialize_record(record)

    @router.put("/{record_id}", response_model=response_schema, name=f"update_{label}")
    def update_endpoint(
        record_id: UUID,
        payload: update_schema,  # type: ignore[valid-type]
        identity: Identity = Depends(get_current_identity),
        scope: TenantScope = Depends(get_current_scope),
        db: Session = Depends(get_db),
    ):
        record = update_record(db, identity, scope, entity, record_id, payload.model_dump(exclude_unset=True))
        return serialize_record(record)

    @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT, name=f"delete_{label}")
    def delete_endpoint(
        record_id: UUID,
        identity: Identity = Depends(get_current_identity),
        scope: TenantScope = Depends(get_current_scope),
        db: Session = Depends(get_db),
    ):
        delete_record(db, identity, scope, entity, record_id)

    return router


students_router = build_scoped_router(
    ScopedEntity.students, StudentCreate, StudentUpdate, StudentResponse, StudentListResponse
)
teachers_router = build_scoped_router(
    ScopedEntity.teachers, TeacherCreate, TeacherUpdate, TeacherResponse, TeacherListResponse
)
parents_router = build_scoped_router(
    ScopedEntity.parents, ParentCreate, ParentUpdate, ParentResponse, ParentListResponse
)
classes_router = build_scoped_router(
    ScopedEntity.classes, ClassCreate, ClassUpdate, ClassResponse, ClassListResponse
)
fees_router = build_scoped_router(ScopedEntity.fees, FeeCreate, FeeUpdate, FeeResponse, FeeListResponse)
attendance_router = build_scoped_router(
    ScopedEntity.attendance, AttendanceCreate, AttendanceUpdate, AttendanceResponse, AttendanceListResponse
)

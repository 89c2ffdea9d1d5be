from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from edugate.application.services.query_facade import (
    create_notification,
    get_notification,
    list_notifications,
    serialize_record,
)
from edugate.domain.identity import Identity
from edugate.domain.scope import TenantScope
from edugate.infrastructure.db.session import get_db
from edugate.interfaces.api.v1.dependencies.auth import get_current_identity, get_current_scope
from edugate.interfaces.api.v1.dependencies.pagination import get_pagination_params
from edugate.interfaces.api.v1.schemas.pagination import PaginationParams
from edugate.interfaces.api.v1.schemas.records import (
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List notifications",
    description="Notifications in the caller's scope that target the caller directly or one of their audience tags.",
)
def get_notifications(
    identity: Identity = Depends(get_current_identity),
    scope: TenantScope = Depends(get_current_scope),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    return list_notifications(db, identity, scope, pagination)


@router.get("/{notification_id}", response_model=NotificationResponse)
def get_notification_endpoint(
    notification_id: UUID,
    identity: Identity = Depends(get_current_identity),
    scope: TenantScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    return serialize_record(get_notification(db, identity, scope, notification_id))


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
def create_notification_endpoint(
    payload: NotificationCreate,
    identity: Identity = Depends(get_current_identity),
    scope: TenantScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    return serialize_record(create_notification(db, identity, scope, payload.model_dump()))

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from edugate.application.services.query_facade import check_record_existence
from edugate.domain.entities import ScopedEntity
from edugate.domain.identity import Identity
from edugate.domain.scope import TenantScope
from edugate.infrastructure.db.session import get_db
from edugate.interfaces.api.v1.dependencies.auth import get_current_scope, require_admin
from edugate.interfaces.api.v1.schemas.admin import ExistenceCheckResponse

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/existence/{entity}/{record_id}",
    response_model=ExistenceCheckResponse,
    summary="Audited existence check",
    description=(
        "Reports whether a record exists at all and whether it is visible in the caller's scope. "
        "Runs through the elevated path and is logged."
    ),
)
def get_record_existence(
    entity: ScopedEntity,
    record_id: UUID,
    identity: Identity = Depends(require_admin),
    scope: TenantScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    return check_record_existence(db, identity, scope, entity, record_id)

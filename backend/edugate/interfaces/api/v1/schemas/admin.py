from uuid import UUID

from pydantic import BaseModel

from edugate.domain.entities import ScopedEntity


class ExistenceCheckResponse(BaseModel):
    entity: ScopedEntity
    record_id: UUID
    exists: bool
    visible_in_scope: bool

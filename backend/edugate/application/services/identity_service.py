from uuid import UUID

from sqlalchemy.orm import Session

from edugate.application.errors import UnauthenticatedError
from edugate.application.services.demo_service import DemoMode
from edugate.application.services.security_service import decode_access_token
from edugate.domain.identity import Identity
from edugate.domain.roles import normalize_role
from edugate.infrastructure.db.models import User
from edugate.infrastructure.logging import get_logger

logger = get_logger(__name__)


def identity_from_principal(user: User) -> Identity:
    try:
        role = normalize_role(user.role)
    except ValueError as exc:
        logger.warning("principal_role_unrecognized", principal_id=str(user.id), role=user.role)
        raise UnauthenticatedError("Principal role is not recognized") from exc
    return Identity(
        id=user.id,
        email=user.email,
        role=role,
        school_id=user.school_id,
        home_branch_id=user.home_branch_id,
        viewing_branch_id=user.viewing_branch_id,
    )


def resolve_identity(db: Session, token: str | None, demo_mode: DemoMode) -> Identity:
    """Map a bearer token to a verified identity.

    Demo tokens resolve without touching the credential store, and only while the
    configured demo mode recognizes them. Every other token must name an active principal.
    """
    if not token:
        raise UnauthenticatedError("Missing authentication token")
    claims = decode_access_token(token)
    if claims is None:
        raise UnauthenticatedError("Invalid authentication token")

    if claims.get("demo"):
        identity = demo_mode.identity_from_claims(claims)
        if identity is None:
            logger.warning("demo_token_rejected", demo_mode_enabled=demo_mode.enabled)
            raise UnauthenticatedError("Invalid authentication token")
        return identity

    user = db.get(User, UUID(str(claims["sub"])))
    if user is None or not user.is_active:
        raise UnauthenticatedError("Principal not found or inactive")
    return identity_from_principal(user)
